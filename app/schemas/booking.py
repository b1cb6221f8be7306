"""Booking schemas."""
from pydantic import BaseModel, ConfigDict, Field
from typing import Optional, List
from datetime import datetime, date

from app.schemas.enums import BookingType, VMType


class BookingAttributes(BaseModel):
    """Type-dependent details of a booking."""

    vm_type: Optional[VMType] = None
    opponent: Optional[str] = None
    opponent2: Optional[str] = None
    partner: Optional[str] = None
    description: Optional[str] = None


class BookingCreate(BookingAttributes):
    """Schema for reserving one or more consecutive hours."""

    court_id: int
    date: date
    hour: int = Field(..., ge=8, le=21)
    duration: int = Field(default=1, ge=1)
    type: BookingType = BookingType.FREE


class BookingUpdate(BookingAttributes):
    """Schema for editing a single booked hour.

    Court, date and hour cannot be changed here; use the move endpoint.
    """

    type: Optional[BookingType] = None


class BookingMove(BaseModel):
    """Schema for relocating a booking on the same date."""

    court_id: int
    hour: int = Field(..., ge=8, le=21)


class BookingInDB(BookingAttributes):
    """Schema for a stored one-hour booking."""

    id: str
    court_id: int
    user_id: str
    user_name: str
    date: date
    hour: int
    type: BookingType
    created_at: datetime
    updated_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)


class BlockInfo(BaseModel):
    """Where an hour sits inside a multi-hour reservation."""

    is_part_of_block: bool
    is_block_start: bool
    block_length: int


class BookingBlock(BaseModel):
    """A resolved multi-hour reservation."""

    court_id: int
    date: date
    start_hour: int
    end_hour: int
    bookings: List[BookingInDB]


class GridCell(BaseModel):
    """A single (court, hour) cell of the day grid."""

    court_id: int
    hour: int
    booking: Optional[BookingInDB] = None
    block: BlockInfo


class DayGrid(BaseModel):
    """All cells for one date, ordered by court then hour."""

    date: date
    hours: List[int]
    cells: List[GridCell]


class CheckResult(BaseModel):
    ok: bool = True


class CancelResult(BaseModel):
    removed: int
    booking_ids: List[str]
