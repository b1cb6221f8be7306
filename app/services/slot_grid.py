"""Addressable booking space: courts x date x hour."""
from datetime import date, datetime
from typing import Dict, Iterable, List, Optional, Tuple, Union

import pytz

from app.core.config import settings
from app.core.errors import ValidationError
from app.schemas.booking import BookingInDB
from app.schemas.court import Court

COURTS: List[Court] = [
    Court(id=1, name="Court 1"),
    Court(id=2, name="Court 2"),
    Court(id=3, name="Court 3"),
    Court(id=4, name="Court 4"),
]

OPENING_HOUR = 8
LAST_START_HOUR = 21  # last slot runs 21:00-22:00
HOURS: List[int] = list(range(OPENING_HOUR, LAST_START_HOUR + 1))


def get_court(court_id: int) -> Court:
    for court in COURTS:
        if court.id == court_id:
            return court
    raise ValidationError(f"Unknown court {court_id}")


def validate_court(court_id: int) -> int:
    if isinstance(court_id, bool) or not isinstance(court_id, int):
        raise ValidationError(f"Unknown court {court_id!r}")
    return get_court(court_id).id


def validate_hour(hour: int) -> int:
    if isinstance(hour, bool) or not isinstance(hour, int):
        raise ValidationError(f"Hour must be an integer, got {hour!r}")
    if not OPENING_HOUR <= hour <= LAST_START_HOUR:
        raise ValidationError(
            f"Hour {hour} is outside opening hours ({OPENING_HOUR}-{LAST_START_HOUR})"
        )
    return hour


def parse_date(value: Union[str, date]) -> date:
    """Accept a date or an ISO ``YYYY-MM-DD`` string."""
    if isinstance(value, datetime):
        raise ValidationError("Expected a calendar date, not a timestamp")
    if isinstance(value, date):
        return value
    try:
        return date.fromisoformat(str(value).strip())
    except ValueError as e:
        raise ValidationError(f"Malformed date {value!r}, expected YYYY-MM-DD") from e


def is_weekend(day: date) -> bool:
    return day.weekday() >= 5


def club_today() -> date:
    """Today's date in the club's time zone."""
    club_tz = pytz.timezone(settings.CLUB_TIMEZONE)
    return datetime.now(pytz.UTC).astimezone(club_tz).date()


def ensure_not_past(day: date, today: date) -> None:
    if day < today:
        raise ValidationError(f"Cannot book {day.isoformat()}: date is in the past")


class SlotGrid:
    """Read-only view of one date's bookings, indexed by (court, hour)."""

    def __init__(self, day: date, bookings: Iterable[BookingInDB]):
        self.date = day
        self._cells: Dict[Tuple[int, int], BookingInDB] = {}
        for booking in bookings:
            if booking.date == day:
                self._cells[(booking.court_id, booking.hour)] = booking

    def booking_at(self, court_id: int, hour: int) -> Optional[BookingInDB]:
        return self._cells.get((court_id, hour))

    def occupied(self, court_id: int, hour: int, ignore_id: Optional[str] = None) -> bool:
        booking = self.booking_at(court_id, hour)
        return booking is not None and booking.id != ignore_id

    def bookings(self) -> List[BookingInDB]:
        return sorted(self._cells.values(), key=lambda b: (b.court_id, b.hour))

    def bookings_for_user(self, user_id: str) -> List[BookingInDB]:
        return [b for b in self.bookings() if b.user_id == user_id]

    def __len__(self) -> int:
        return len(self._cells)
