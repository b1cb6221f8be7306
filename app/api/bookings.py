"""Booking endpoints."""
from datetime import date
from typing import List
from fastapi import APIRouter, Depends, Query

from app.api.deps import get_actor, get_booking_service
from app.schemas.booking import (
    BlockInfo,
    BookingAttributes,
    BookingBlock,
    BookingCreate,
    BookingInDB,
    BookingMove,
    BookingUpdate,
    CancelResult,
    CheckResult,
    DayGrid,
)
from app.schemas.enums import BookingType
from app.services.booking_service import BookingService
from app.services.rules import Actor, allowed_types

router = APIRouter(prefix="/bookings", tags=["bookings"])


def _attributes(request: BookingCreate) -> BookingAttributes:
    return BookingAttributes(**request.model_dump(include=set(BookingAttributes.model_fields)))


@router.get("", response_model=List[BookingInDB])
async def list_bookings(
    date: date = Query(..., description="Day to list (YYYY-MM-DD)"),
    actor: Actor = Depends(get_actor),
    bookings: BookingService = Depends(get_booking_service),
):
    """List all bookings of a day, ordered by court and hour."""
    return await bookings.list_bookings(date)


@router.get("/grid", response_model=DayGrid)
async def get_day_grid(
    date: date = Query(..., description="Day to render (YYYY-MM-DD)"),
    actor: Actor = Depends(get_actor),
    bookings: BookingService = Depends(get_booking_service),
):
    """
    Get every (court, hour) cell of a day with its block information.

    Only cells with ``is_block_start`` should be drawn; they span
    ``block_length`` rows.
    """
    return await bookings.day_grid(date)


@router.get("/allowed-types", response_model=List[BookingType])
async def get_allowed_types(actor: Actor = Depends(get_actor)):
    """Booking types the current user's role may create."""
    return allowed_types(actor.role)


@router.get("/block-info", response_model=BlockInfo)
async def get_block_info(
    court_id: int,
    date: date,
    hour: int = Query(..., ge=8, le=21),
    actor: Actor = Depends(get_actor),
    bookings: BookingService = Depends(get_booking_service),
):
    """Describe the block around a single cell."""
    return await bookings.block_info(court_id, date, hour)


@router.post("/check", response_model=CheckResult)
async def check_booking(
    request: BookingCreate,
    actor: Actor = Depends(get_actor),
    bookings: BookingService = Depends(get_booking_service),
):
    """
    Validate a booking request without creating it.

    Returns ``{"ok": true}`` or the same error the create call would return.
    """
    await bookings.can_create(
        actor,
        request.court_id,
        request.date,
        request.hour,
        request.duration,
        request.type,
        _attributes(request),
    )
    return CheckResult()


@router.post("", response_model=List[BookingInDB], status_code=201)
async def create_booking(
    request: BookingCreate,
    actor: Actor = Depends(get_actor),
    bookings: BookingService = Depends(get_booking_service),
):
    """
    Book one or more consecutive hours on a court.

    One record is created per hour; all of them or none are stored.
    """
    return await bookings.create(
        actor,
        request.court_id,
        request.date,
        request.hour,
        request.duration,
        request.type,
        _attributes(request),
    )


@router.get("/{booking_id}", response_model=BookingInDB)
async def get_booking(
    booking_id: str,
    actor: Actor = Depends(get_actor),
    bookings: BookingService = Depends(get_booking_service),
):
    """Get a single booked hour."""
    return await bookings.get_booking(booking_id)


@router.get("/{booking_id}/block", response_model=BookingBlock)
async def get_booking_block(
    booking_id: str,
    actor: Actor = Depends(get_actor),
    bookings: BookingService = Depends(get_booking_service),
):
    """Get the whole multi-hour reservation a booking belongs to."""
    return await bookings.block_of(booking_id)


@router.put("/{booking_id}", response_model=BookingInDB)
async def update_booking(
    booking_id: str,
    changes: BookingUpdate,
    actor: Actor = Depends(get_actor),
    bookings: BookingService = Depends(get_booking_service),
):
    """
    Edit type and details of one booked hour.

    Only the owner or an admin may edit. Fields left out keep their value.
    """
    return await bookings.update(actor, booking_id, changes)


@router.post("/{booking_id}/move", response_model=BookingInDB)
async def move_booking(
    booking_id: str,
    target: BookingMove,
    actor: Actor = Depends(get_actor),
    bookings: BookingService = Depends(get_booking_service),
):
    """
    Move one booked hour to another court and/or hour on the same day.

    On any failure the booking stays where it was.
    """
    return await bookings.move(actor, booking_id, target.court_id, target.hour)


@router.delete("/{booking_id}", response_model=CancelResult)
async def cancel_booking(
    booking_id: str,
    confirm: bool = Query(default=False, description="Required for multi-hour reservations"),
    actor: Actor = Depends(get_actor),
    bookings: BookingService = Depends(get_booking_service),
):
    """
    Cancel a reservation.

    The complete block the booking belongs to is removed. Blocks longer than
    one hour need ``confirm=true``; without it the call answers 428 with the
    block length.
    """
    removed = await bookings.cancel(actor, booking_id, confirm=confirm)
    return CancelResult(removed=len(removed), booking_ids=[b.id for b in removed])
