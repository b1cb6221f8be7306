"""In-process store, the local key-value backend."""
import logging
from datetime import date
from typing import Dict, List, Optional, Sequence, Tuple

from app.core.errors import NotFoundError, SlotConflictError, StoreError, ValidationError
from app.schemas.booking import BookingInDB
from app.schemas.user import UserInDB
from app.stores.base import EntityStore

logger = logging.getLogger(__name__)


class InMemoryStore(EntityStore):
    """Keeps users and bookings in dictionaries keyed by id.

    Records are copied on the way in and out so callers never share state
    with the store. Each method runs without awaiting, which makes every
    call atomic on the event loop.
    """

    def __init__(self):
        self._users: Dict[str, UserInDB] = {}
        self._bookings: Dict[str, BookingInDB] = {}

    def _slot_owner(self, court_id: int, day: date, hour: int) -> Optional[str]:
        for booking in self._bookings.values():
            if (booking.court_id, booking.date, booking.hour) == (court_id, day, hour):
                return booking.id
        return None

    async def list_bookings(self, day: date) -> List[BookingInDB]:
        return [
            b.model_copy()
            for b in sorted(self._bookings.values(), key=lambda b: (b.court_id, b.hour))
            if b.date == day
        ]

    async def get_booking(self, booking_id: str) -> Optional[BookingInDB]:
        booking = self._bookings.get(booking_id)
        return booking.model_copy() if booking else None

    async def insert_bookings(self, bookings: Sequence[BookingInDB]) -> List[BookingInDB]:
        seen: set = set()
        for booking in bookings:
            slot: Tuple[int, date, int] = (booking.court_id, booking.date, booking.hour)
            if booking.id in self._bookings:
                raise StoreError(f"Booking {booking.id} already exists")
            if slot in seen or self._slot_owner(*slot) is not None:
                raise SlotConflictError(
                    f"Court {booking.court_id} is already booked at {booking.hour}:00"
                )
            seen.add(slot)

        for booking in bookings:
            self._bookings[booking.id] = booking.model_copy()
        return [b.model_copy() for b in bookings]

    async def update_booking(self, booking: BookingInDB) -> BookingInDB:
        if booking.id not in self._bookings:
            raise NotFoundError("Booking not found")
        holder = self._slot_owner(booking.court_id, booking.date, booking.hour)
        if holder is not None and holder != booking.id:
            raise SlotConflictError(
                f"Court {booking.court_id} is already booked at {booking.hour}:00"
            )
        self._bookings[booking.id] = booking.model_copy()
        return booking.model_copy()

    async def delete_bookings(self, booking_ids: Sequence[str]) -> int:
        removed = 0
        for booking_id in booking_ids:
            if self._bookings.pop(booking_id, None) is not None:
                removed += 1
        return removed

    async def list_users(self) -> List[UserInDB]:
        return [u.model_copy() for u in sorted(self._users.values(), key=lambda u: u.email)]

    async def get_user(self, user_id: str) -> Optional[UserInDB]:
        user = self._users.get(user_id)
        return user.model_copy() if user else None

    async def find_user_by_email(self, email: str) -> Optional[UserInDB]:
        wanted = email.strip().lower()
        for user in self._users.values():
            if user.email.lower() == wanted:
                return user.model_copy()
        return None

    async def insert_user(self, user: UserInDB) -> UserInDB:
        if user.id in self._users:
            raise StoreError(f"User {user.id} already exists")
        if await self.find_user_by_email(user.email) is not None:
            raise ValidationError("Email already registered")
        self._users[user.id] = user.model_copy()
        return user.model_copy()

    async def update_user(self, user: UserInDB) -> UserInDB:
        if user.id not in self._users:
            raise NotFoundError("User not found")
        self._users[user.id] = user.model_copy()
        return user.model_copy()

    async def delete_user(self, user_id: str) -> bool:
        if self._users.pop(user_id, None) is None:
            return False
        owned = [b.id for b in self._bookings.values() if b.user_id == user_id]
        for booking_id in owned:
            del self._bookings[booking_id]
        logger.info(f"Removed user {user_id} and {len(owned)} booking(s)")
        return True
