"""SQLAlchemy-backed store."""
import logging
from contextlib import asynccontextmanager
from datetime import date
from typing import AsyncIterator, List, Optional, Sequence

from sqlalchemy import delete, func, select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from app.core.errors import NotFoundError, SlotConflictError, StoreError, ValidationError
from app.models.booking import Booking
from app.models.user import User
from app.schemas.booking import BookingInDB
from app.schemas.user import UserInDB
from app.stores.base import EntityStore

logger = logging.getLogger(__name__)

_BOOKING_FIELDS = (
    "court_id", "user_id", "user_name", "date", "hour", "type", "vm_type",
    "opponent", "opponent2", "partner", "description", "created_at", "updated_at",
)
_USER_FIELDS = (
    "email", "first_name", "last_name", "full_name", "role", "status",
    "password_hash", "created_at", "updated_at",
)


def _booking_columns(booking: BookingInDB) -> dict:
    data = booking.model_dump(mode="python", include=set(_BOOKING_FIELDS))
    data["type"] = booking.type.value
    data["vm_type"] = booking.vm_type.value if booking.vm_type else None
    return data


def _user_columns(user: UserInDB) -> dict:
    data = user.model_dump(mode="python", include=set(_USER_FIELDS))
    data["role"] = user.role.value
    data["status"] = user.status.value
    return data


class SqlStore(EntityStore):
    """Persists through an async SQLAlchemy session factory.

    Multi-row writes run in one transaction, and the ``uq_bookings_slot``
    constraint turns a lost slot race into ``SlotConflictError``.
    """

    def __init__(self, session_factory: async_sessionmaker):
        self._session_factory = session_factory

    @asynccontextmanager
    async def _session(self, what: str) -> AsyncIterator[AsyncSession]:
        """Session whose database failures surface as StoreError."""
        try:
            async with self._session_factory() as db:
                yield db
        except SQLAlchemyError as e:
            logger.error(f"Database error while {what}: {e}", exc_info=True)
            raise StoreError(f"Database error while {what}") from e

    async def _commit(self, db: AsyncSession, what: str) -> None:
        try:
            await db.commit()
        except IntegrityError as e:
            await db.rollback()
            logger.info(f"Integrity error while {what}: {e.orig}")
            raise SlotConflictError(f"Slot already booked while {what}") from e
        except SQLAlchemyError as e:
            await db.rollback()
            logger.error(f"Database error while {what}: {e}", exc_info=True)
            raise StoreError(f"Database error while {what}") from e

    async def list_bookings(self, day: date) -> List[BookingInDB]:
        async with self._session(f"listing bookings for {day}") as db:
            result = await db.execute(
                select(Booking)
                .where(Booking.date == day)
                .order_by(Booking.court_id, Booking.hour)
            )
            return [BookingInDB.model_validate(row) for row in result.scalars().all()]

    async def get_booking(self, booking_id: str) -> Optional[BookingInDB]:
        async with self._session(f"loading booking {booking_id}") as db:
            booking = await db.get(Booking, booking_id)
            return BookingInDB.model_validate(booking) if booking else None

    async def insert_bookings(self, bookings: Sequence[BookingInDB]) -> List[BookingInDB]:
        async with self._session("inserting bookings") as db:
            for booking in bookings:
                db.add(Booking(id=booking.id, **_booking_columns(booking)))
            await self._commit(db, f"inserting {len(bookings)} booking(s)")
        return list(bookings)

    async def update_booking(self, booking: BookingInDB) -> BookingInDB:
        async with self._session(f"updating booking {booking.id}") as db:
            row = await db.get(Booking, booking.id)
            if row is None:
                raise NotFoundError("Booking not found")

            for field, value in _booking_columns(booking).items():
                setattr(row, field, value)

            await self._commit(db, f"updating booking {booking.id}")
            await db.refresh(row)
            return BookingInDB.model_validate(row)

    async def delete_bookings(self, booking_ids: Sequence[str]) -> int:
        if not booking_ids:
            return 0
        async with self._session("deleting bookings") as db:
            result = await db.execute(delete(Booking).where(Booking.id.in_(list(booking_ids))))
            await self._commit(db, f"deleting {len(booking_ids)} booking(s)")
            return result.rowcount

    async def list_users(self) -> List[UserInDB]:
        async with self._session("listing users") as db:
            result = await db.execute(select(User).order_by(User.email))
            return [UserInDB.model_validate(row) for row in result.scalars().all()]

    async def get_user(self, user_id: str) -> Optional[UserInDB]:
        async with self._session(f"loading user {user_id}") as db:
            user = await db.get(User, user_id)
            return UserInDB.model_validate(user) if user else None

    async def find_user_by_email(self, email: str) -> Optional[UserInDB]:
        async with self._session("looking up a user by email") as db:
            result = await db.execute(
                select(User).where(func.lower(User.email) == email.strip().lower())
            )
            user = result.scalar_one_or_none()
            return UserInDB.model_validate(user) if user else None

    async def insert_user(self, user: UserInDB) -> UserInDB:
        async with self._session(f"inserting user {user.id}") as db:
            db.add(User(id=user.id, **_user_columns(user)))
            try:
                await db.commit()
            except IntegrityError as e:
                await db.rollback()
                raise ValidationError("Email already registered") from e
        return user

    async def update_user(self, user: UserInDB) -> UserInDB:
        async with self._session(f"updating user {user.id}") as db:
            row = await db.get(User, user.id)
            if row is None:
                raise NotFoundError("User not found")

            for field, value in _user_columns(user).items():
                setattr(row, field, value)

            await self._commit(db, f"updating user {user.id}")
            await db.refresh(row)
            return UserInDB.model_validate(row)

    async def delete_user(self, user_id: str) -> bool:
        async with self._session(f"deleting user {user_id}") as db:
            user = await db.get(User, user_id)
            if user is None:
                return False

            # Explicit so the cascade does not depend on database FK support
            result = await db.execute(delete(Booking).where(Booking.user_id == user_id))
            await db.execute(delete(User).where(User.id == user_id))
            await self._commit(db, f"deleting user {user_id}")

        logger.info(f"Removed user {user_id} and {result.rowcount} booking(s)")
        return True
