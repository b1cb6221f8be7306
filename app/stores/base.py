"""Entity store interface consumed by the booking and user services."""
from abc import ABC, abstractmethod
from datetime import date
from typing import List, Optional, Sequence

from app.schemas.booking import BookingInDB
from app.schemas.user import UserInDB


class EntityStore(ABC):
    """CRUD access to users and bookings.

    Adapters only persist; they never apply booking rules. The one exception
    is slot uniqueness, which adapters that can enforce it atomically report
    as ``SlotConflictError``.
    """

    # Bookings

    @abstractmethod
    async def list_bookings(self, day: date) -> List[BookingInDB]:
        """All bookings on ``day``."""

    @abstractmethod
    async def get_booking(self, booking_id: str) -> Optional[BookingInDB]:
        ...

    @abstractmethod
    async def insert_bookings(self, bookings: Sequence[BookingInDB]) -> List[BookingInDB]:
        """Persist all bookings or none of them."""

    @abstractmethod
    async def update_booking(self, booking: BookingInDB) -> BookingInDB:
        ...

    @abstractmethod
    async def delete_bookings(self, booking_ids: Sequence[str]) -> int:
        """Delete the given bookings together; returns how many existed."""

    # Users

    @abstractmethod
    async def list_users(self) -> List[UserInDB]:
        ...

    @abstractmethod
    async def get_user(self, user_id: str) -> Optional[UserInDB]:
        ...

    @abstractmethod
    async def find_user_by_email(self, email: str) -> Optional[UserInDB]:
        """Case-insensitive lookup."""

    @abstractmethod
    async def insert_user(self, user: UserInDB) -> UserInDB:
        ...

    @abstractmethod
    async def update_user(self, user: UserInDB) -> UserInDB:
        ...

    @abstractmethod
    async def delete_user(self, user_id: str) -> bool:
        """Delete the user and every booking they own."""

    async def close(self) -> None:
        """Release connections held by the adapter."""
