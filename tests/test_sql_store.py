import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from app.core.database import Base, init_db
from app.core.errors import (
    NotFoundError,
    RuleViolation,
    SlotConflictError,
    StoreError,
    ValidationError,
)
from app.schemas.enums import BookingType, UserRole, VMType
from app.services.booking_service import BookingService
from app.stores.sql import SqlStore
from tests.helpers import TODAY, TUESDAY, actor, make_booking, make_user


@pytest_asyncio.fixture
async def engine():
    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    await init_db(bind=engine)
    yield engine
    await engine.dispose()


@pytest.fixture
def sql_store(engine):
    return SqlStore(async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False))


@pytest.mark.asyncio
async def test_bookings_round_trip_with_enums(sql_store):
    await sql_store.insert_user(make_user("member-1"))
    booking = make_booking(
        court_id=3,
        hour=18,
        booking_type=BookingType.VM,
        vm_type=VMType.SINGLES,
        opponent="Anna",
    )

    await sql_store.insert_bookings([booking])

    stored = await sql_store.get_booking(booking.id)
    assert stored.type == BookingType.VM
    assert stored.vm_type == VMType.SINGLES
    assert stored.opponent == "Anna"
    assert stored.date == TUESDAY
    assert [b.id for b in await sql_store.list_bookings(TUESDAY)] == [booking.id]


@pytest.mark.asyncio
async def test_duplicate_slot_rolls_back_whole_insert(sql_store):
    await sql_store.insert_bookings([make_booking(hour=10)])

    with pytest.raises(SlotConflictError):
        await sql_store.insert_bookings([make_booking(hour=9), make_booking(hour=10)])

    assert [b.hour for b in await sql_store.list_bookings(TUESDAY)] == [10]


@pytest.mark.asyncio
async def test_update_into_taken_slot_conflicts(sql_store):
    first = make_booking(hour=9)
    second = make_booking(hour=10, user_id="member-2")
    await sql_store.insert_bookings([first, second])

    with pytest.raises(SlotConflictError):
        await sql_store.update_booking(first.model_copy(update={"hour": 10}))

    assert (await sql_store.get_booking(first.id)).hour == 9

    with pytest.raises(NotFoundError):
        await sql_store.update_booking(make_booking(id="missing"))


@pytest.mark.asyncio
async def test_delete_bookings_counts_existing(sql_store):
    booking = make_booking()
    await sql_store.insert_bookings([booking])

    assert await sql_store.delete_bookings([booking.id, "missing"]) == 1
    assert await sql_store.delete_bookings([]) == 0


@pytest.mark.asyncio
async def test_users_by_email_case_insensitive(sql_store):
    await sql_store.insert_user(make_user("member-1", email="erika@example.com"))

    found = await sql_store.find_user_by_email(" Erika@Example.com ")
    assert found.id == "member-1"
    assert found.role == UserRole.MEMBER

    with pytest.raises(ValidationError):
        await sql_store.insert_user(make_user("member-2", email="erika@example.com"))


@pytest.mark.asyncio
async def test_update_user(sql_store):
    user = make_user("member-1")
    await sql_store.insert_user(user)

    updated = await sql_store.update_user(user.model_copy(update={"role": UserRole.TRAINER}))

    assert updated.role == UserRole.TRAINER
    assert [u.id for u in await sql_store.list_users()] == ["member-1"]


@pytest.mark.asyncio
async def test_delete_user_removes_their_bookings(sql_store):
    await sql_store.insert_user(make_user("member-1"))
    await sql_store.insert_user(make_user("member-2"))
    await sql_store.insert_bookings(
        [make_booking(hour=9, user_id="member-1"), make_booking(hour=10, user_id="member-2")]
    )

    assert await sql_store.delete_user("member-1")
    assert not await sql_store.delete_user("member-1")

    assert [b.user_id for b in await sql_store.list_bookings(TUESDAY)] == ["member-2"]


@pytest.mark.asyncio
async def test_booking_service_on_sql_store(sql_store):
    service = BookingService(sql_store, today=lambda: TODAY)
    admin = actor("admin-1", UserRole.ADMIN)
    await sql_store.insert_user(make_user("admin-1", role=UserRole.ADMIN))

    created = await service.create(
        admin, 2, TUESDAY, 9, duration=3, booking_type=BookingType.MAINTENANCE
    )
    with pytest.raises(RuleViolation):
        await service.create(admin, 2, TUESDAY, 10)

    removed = await service.cancel(admin, created[1].id, confirm=True)
    assert len(removed) == 3
    assert await sql_store.list_bookings(TUESDAY) == []


@pytest.mark.asyncio
async def test_database_failures_surface_as_store_errors(engine, sql_store):
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)

    with pytest.raises(StoreError):
        await sql_store.list_bookings(TUESDAY)
    with pytest.raises(StoreError):
        await sql_store.get_booking("b-1")
    with pytest.raises(StoreError):
        await sql_store.get_user("member-1")
    with pytest.raises(StoreError):
        await sql_store.find_user_by_email("erika@example.com")
    with pytest.raises(StoreError):
        await sql_store.insert_user(make_user("member-1"))
