"""Booking service: validates and executes create, update, cancel and move."""
import asyncio
import logging
import uuid
from contextlib import asynccontextmanager
from datetime import date, datetime, timezone
from typing import AsyncIterator, Callable, Dict, List, Optional, Tuple, Union

from app.core.errors import (
    ConfirmationRequired,
    NotFoundError,
    RuleViolation,
    SlotConflictError,
    ValidationError,
)
from app.schemas.booking import (
    BlockInfo,
    BookingAttributes,
    BookingBlock,
    BookingInDB,
    BookingUpdate,
    DayGrid,
    GridCell,
)
from app.schemas.enums import BookingType
from app.services import block_resolver, rules
from app.services.rules import Actor
from app.services.slot_grid import (
    COURTS,
    HOURS,
    SlotGrid,
    club_today,
    ensure_not_past,
    parse_date,
    validate_court,
    validate_hour,
)
from app.stores.base import EntityStore

logger = logging.getLogger(__name__)


class DateLocks:
    """One asyncio lock per calendar date.

    Every read-validate-write sequence on a date runs under that date's lock,
    so two requests cannot both see a slot as free and both book it. A date's
    lock is dropped once its last holder or waiter leaves.
    """

    def __init__(self):
        self._locks: Dict[date, asyncio.Lock] = {}
        self._holders: Dict[date, int] = {}

    def __len__(self) -> int:
        return len(self._locks)

    @asynccontextmanager
    async def for_date(self, day: date) -> AsyncIterator[None]:
        lock = self._locks.setdefault(day, asyncio.Lock())
        self._holders[day] = self._holders.get(day, 0) + 1
        try:
            async with lock:
                yield
        finally:
            self._holders[day] -= 1
            if not self._holders[day]:
                del self._holders[day]
                del self._locks[day]


def _slot_taken(e: SlotConflictError, hour: Optional[int] = None) -> RuleViolation:
    return RuleViolation("slot_taken", e.message, hour=hour)


class BookingService:
    """The single authority for booking rules.

    Callers pass the acting user explicitly; the role used for permission and
    quota decisions is whatever the caller loaded from the store, never a
    value supplied by a client.
    """

    def __init__(
        self,
        store: EntityStore,
        today: Callable[[], date] = club_today,
        locks: Optional[DateLocks] = None,
    ):
        self.store = store
        self.today = today
        self.locks = locks if locks is not None else DateLocks()

    # Queries

    async def load_grid(self, day: Union[str, date]) -> SlotGrid:
        day = parse_date(day)
        return SlotGrid(day, await self.store.list_bookings(day))

    async def list_bookings(self, day: Union[str, date]) -> List[BookingInDB]:
        return (await self.load_grid(day)).bookings()

    async def get_booking(self, booking_id: str) -> BookingInDB:
        booking = await self.store.get_booking(booking_id)
        if booking is None:
            raise NotFoundError("Booking not found")
        return booking

    async def find_block(self, court_id: int, day: Union[str, date], start_hour: int) -> List[BookingInDB]:
        validate_court(court_id)
        validate_hour(start_hour)
        grid = await self.load_grid(day)
        return block_resolver.find_block(grid, court_id, start_hour)

    async def block_info(self, court_id: int, day: Union[str, date], hour: int) -> BlockInfo:
        validate_court(court_id)
        validate_hour(hour)
        grid = await self.load_grid(day)
        return block_resolver.block_info(grid, court_id, hour)

    async def block_of(self, booking_id: str) -> BookingBlock:
        """The full reservation a booking belongs to."""
        booking = await self.get_booking(booking_id)
        grid = await self.load_grid(booking.date)
        block = block_resolver.find_block_containing(grid, booking.court_id, booking.hour)
        return BookingBlock(
            court_id=booking.court_id,
            date=booking.date,
            start_hour=block[0].hour,
            end_hour=block[-1].hour,
            bookings=block,
        )

    async def day_grid(self, day: Union[str, date]) -> DayGrid:
        grid = await self.load_grid(day)
        cells = [
            GridCell(
                court_id=court.id,
                hour=hour,
                booking=grid.booking_at(court.id, hour),
                block=block_resolver.block_info(grid, court.id, hour),
            )
            for court in COURTS
            for hour in HOURS
        ]
        return DayGrid(date=grid.date, hours=HOURS, cells=cells)

    # Validation

    def _check_create(
        self,
        actor: Actor,
        grid: SlotGrid,
        court_id: int,
        start_hour: int,
        duration: int,
        booking_type: BookingType,
        attrs: BookingAttributes,
    ) -> BookingAttributes:
        """Run every creation rule against ``grid``; returns the cleaned attributes."""
        ensure_not_past(grid.date, self.today())
        rules.check_opening_hours(start_hour, duration)
        rules.check_slots_free(grid, court_id, start_hour, duration)
        rules.check_type_allowed(actor.role, booking_type)

        attrs = rules.normalize_attributes(booking_type, attrs)
        rules.check_attributes(booking_type, attrs)
        rules.check_daily_quota(grid, actor.role, actor.user_id, booking_type, duration)
        return attrs

    @staticmethod
    def _parse_request(
        court_id: int,
        day: Union[str, date],
        start_hour: int,
        duration: int,
        booking_type: Union[str, BookingType],
        attrs: Optional[BookingAttributes],
    ) -> Tuple[date, BookingType, BookingAttributes]:
        validate_court(court_id)
        validate_hour(start_hour)
        if isinstance(duration, bool) or not isinstance(duration, int):
            raise ValidationError(f"Duration must be an integer, got {duration!r}")
        if duration < 1:
            raise ValidationError("Duration must be at least 1 hour")
        booking_type = rules.parse_enum(BookingType, booking_type, "booking type")
        return parse_date(day), booking_type, attrs or BookingAttributes()

    async def can_create(
        self,
        actor: Actor,
        court_id: int,
        day: Union[str, date],
        start_hour: int,
        duration: int = 1,
        booking_type: Union[str, BookingType] = BookingType.FREE,
        attrs: Optional[BookingAttributes] = None,
    ) -> None:
        """Raise the first rule the request breaks; return None if it may be created."""
        day, booking_type, attrs = self._parse_request(
            court_id, day, start_hour, duration, booking_type, attrs
        )
        grid = await self.load_grid(day)
        self._check_create(actor, grid, court_id, start_hour, duration, booking_type, attrs)

    # Commands

    async def create(
        self,
        actor: Actor,
        court_id: int,
        day: Union[str, date],
        start_hour: int,
        duration: int = 1,
        booking_type: Union[str, BookingType] = BookingType.FREE,
        attrs: Optional[BookingAttributes] = None,
    ) -> List[BookingInDB]:
        """Book ``duration`` consecutive hours as one record per hour."""
        day, booking_type, attrs = self._parse_request(
            court_id, day, start_hour, duration, booking_type, attrs
        )

        async with self.locks.for_date(day):
            grid = await self.load_grid(day)
            try:
                attrs = self._check_create(
                    actor, grid, court_id, start_hour, duration, booking_type, attrs
                )
            except RuleViolation as e:
                logger.info(f"Create rejected for {actor.user_id} ({e.rule}): {e.message}")
                raise

            created_at = datetime.now(timezone.utc)
            bookings = [
                BookingInDB(
                    id=str(uuid.uuid4()),
                    court_id=court_id,
                    user_id=actor.user_id,
                    user_name=actor.name,
                    date=day,
                    hour=hour,
                    type=booking_type,
                    created_at=created_at,
                    **attrs.model_dump(),
                )
                for hour in range(start_hour, start_hour + duration)
            ]

            try:
                created = await self.store.insert_bookings(bookings)
            except SlotConflictError as e:
                raise _slot_taken(e) from e

        logger.info(
            f"{actor.user_id} booked court {court_id} on {day} "
            f"{start_hour}:00-{start_hour + duration}:00 ({booking_type.value})"
        )
        return created

    async def update(self, actor: Actor, booking_id: str, changes: BookingUpdate) -> BookingInDB:
        """Edit type and attributes of a single booked hour."""
        booking = await self.get_booking(booking_id)
        rules.check_can_modify(actor, booking)

        async with self.locks.for_date(booking.date):
            booking = await self.get_booking(booking_id)
            grid = await self.load_grid(booking.date)

            new_type = rules.parse_enum(BookingType, changes.type, "booking type") or booking.type
            # Fields the client did not send keep their stored value
            source = {
                field: changes if field in changes.model_fields_set else booking
                for field in BookingAttributes.model_fields
            }
            merged = BookingAttributes(
                **{field: getattr(obj, field) for field, obj in source.items()}
            )

            rules.check_type_allowed(actor.role, new_type)
            attrs = rules.normalize_attributes(new_type, merged)
            rules.check_attributes(new_type, attrs)
            rules.check_daily_quota(
                grid, actor.role, booking.user_id, new_type, 0, exclude_id=booking.id
            )

            updated = booking.model_copy(
                update={
                    "type": new_type,
                    "updated_at": datetime.now(timezone.utc),
                    **attrs.model_dump(),
                }
            )
            updated = await self.store.update_booking(updated)

        logger.info(f"{actor.user_id} updated booking {booking_id}")
        return updated

    async def cancel(self, actor: Actor, booking_id: str, confirm: bool = False) -> List[BookingInDB]:
        """Delete the whole block the booking belongs to."""
        booking = await self.get_booking(booking_id)
        rules.check_can_modify(actor, booking)

        async with self.locks.for_date(booking.date):
            grid = await self.load_grid(booking.date)
            block = block_resolver.find_block_containing(grid, booking.court_id, booking.hour)
            if booking_id not in {b.id for b in block}:
                raise NotFoundError("Booking not found")

            if len(block) > 1 and not confirm:
                raise ConfirmationRequired(
                    f"This cancels the complete {len(block)}-hour booking; confirm to proceed",
                    block_length=len(block),
                )

            await self.store.delete_bookings([b.id for b in block])

        logger.info(
            f"{actor.user_id} cancelled {len(block)} hour(s) on court {booking.court_id} "
            f"{booking.date} from {block[0].hour}:00"
        )
        return block

    async def move(
        self, actor: Actor, booking_id: str, target_court_id: int, target_hour: int
    ) -> BookingInDB:
        """Relocate one booked hour to another court or hour of the same date."""
        validate_court(target_court_id)
        validate_hour(target_hour)

        booking = await self.get_booking(booking_id)
        rules.check_can_modify(actor, booking)

        async with self.locks.for_date(booking.date):
            booking = await self.get_booking(booking_id)
            grid = await self.load_grid(booking.date)

            try:
                ensure_not_past(booking.date, self.today())
                rules.check_type_allowed(actor.role, booking.type)
                rules.check_slots_free(grid, target_court_id, target_hour, 1, ignore_id=booking.id)
                rules.check_daily_quota(
                    grid, actor.role, booking.user_id, booking.type, 1, exclude_id=booking.id
                )
            except RuleViolation as e:
                logger.info(f"Move of {booking_id} rejected ({e.rule}): {e.message}")
                raise

            moved = booking.model_copy(
                update={
                    "court_id": target_court_id,
                    "hour": target_hour,
                    "updated_at": datetime.now(timezone.utc),
                }
            )
            try:
                moved = await self.store.update_booking(moved)
            except SlotConflictError as e:
                raise _slot_taken(e, hour=target_hour) from e

        logger.info(
            f"{actor.user_id} moved booking {booking_id} from court {booking.court_id} "
            f"{booking.hour}:00 to court {target_court_id} {target_hour}:00"
        )
        return moved
