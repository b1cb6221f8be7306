"""Builders shared by the test modules."""
import itertools
from datetime import date, datetime

from app.schemas.booking import BookingInDB
from app.schemas.enums import AccountStatus, BookingType, UserRole
from app.schemas.user import UserInDB
from app.services.rules import Actor

MONDAY = date(2029, 12, 31)
TUESDAY = date(2030, 1, 1)
WEDNESDAY = date(2030, 1, 2)
SATURDAY = date(2030, 1, 5)
SUNDAY = date(2030, 1, 6)

TODAY = MONDAY

_ids = itertools.count(1)


def make_booking(
    court_id=1,
    hour=10,
    day=TUESDAY,
    user_id="member-1",
    booking_type=BookingType.FREE,
    **attrs,
) -> BookingInDB:
    return BookingInDB(
        id=attrs.pop("id", f"b-{next(_ids)}"),
        court_id=court_id,
        user_id=user_id,
        user_name=attrs.pop("user_name", user_id.title()),
        date=day,
        hour=hour,
        type=booking_type,
        created_at=datetime(2029, 12, 1, 12, 0),
        **attrs,
    )


def make_user(
    user_id="member-1",
    role=UserRole.MEMBER,
    status=AccountStatus.APPROVED,
    email=None,
    password_hash="not-a-real-hash",
) -> UserInDB:
    return UserInDB(
        id=user_id,
        email=email or f"{user_id}@example.com",
        first_name=user_id.split("-")[0].title(),
        last_name="Tester",
        full_name=f"{user_id.split('-')[0].title()} Tester",
        role=role,
        status=status,
        password_hash=password_hash,
        created_at=datetime(2029, 12, 1, 12, 0),
    )


def actor(user_id="member-1", role=UserRole.MEMBER) -> Actor:
    return Actor(user_id=user_id, name=user_id.title(), role=role)
