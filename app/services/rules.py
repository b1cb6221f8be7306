"""Booking rules: role permissions, opening hours, collisions, attributes and quota.

The functions here are pure; they look only at their arguments and a
``SlotGrid`` of the target date and raise on the first failed rule.
"""
import logging
from dataclasses import dataclass
from datetime import date
from enum import Enum
from typing import Dict, List, Optional, Tuple, Type, TypeVar, Union

from app.core.config import settings
from app.core.errors import AuthorizationError, RuleViolation, ValidationError
from app.schemas.booking import BookingAttributes, BookingInDB
from app.schemas.enums import BookingType, UserRole, VMType
from app.schemas.user import UserInDB
from app.services.slot_grid import LAST_START_HOUR, SlotGrid, is_weekend

logger = logging.getLogger(__name__)

ALLOWED_TYPES: Dict[UserRole, Tuple[BookingType, ...]] = {
    UserRole.ADMIN: tuple(BookingType),
    UserRole.TRAINER: (BookingType.FREE, BookingType.VM, BookingType.TRAINING, BookingType.MATCH),
    UserRole.MEMBER: (BookingType.FREE, BookingType.VM),
    UserRole.GUEST: (),
}

# Types a trainer may book without counting against the weekday quota
TRAINER_EXEMPT_TYPES = (BookingType.TRAINING, BookingType.MATCH)

E = TypeVar("E", bound=Enum)


@dataclass(frozen=True)
class Actor:
    """The authenticated user on whose behalf an operation runs."""

    user_id: str
    name: str
    role: UserRole

    @property
    def is_admin(self) -> bool:
        return self.role == UserRole.ADMIN

    @classmethod
    def from_user(cls, user: UserInDB) -> "Actor":
        return cls(user_id=user.id, name=user.full_name, role=user.role)


def parse_enum(enum_cls: Type[E], value: Union[str, E, None], field: str) -> Optional[E]:
    """Map raw input onto a closed enum; anything unknown is rejected."""
    if value is None or isinstance(value, enum_cls):
        return value
    try:
        return enum_cls(value)
    except ValueError as e:
        allowed = ", ".join(member.value for member in enum_cls)
        raise ValidationError(f"Invalid {field} {value!r}; expected one of: {allowed}") from e


def allowed_types(role: UserRole) -> List[BookingType]:
    return list(ALLOWED_TYPES.get(role, ()))


def check_type_allowed(role: UserRole, booking_type: BookingType) -> None:
    if booking_type not in ALLOWED_TYPES.get(role, ()):
        raise RuleViolation(
            "type_not_allowed",
            f"Role {role.value} may not create {booking_type.value} bookings",
        )


def check_opening_hours(start_hour: int, duration: int) -> None:
    if duration < 1:
        raise ValidationError("Duration must be at least 1 hour")
    if start_hour + duration - 1 > LAST_START_HOUR:
        raise RuleViolation(
            "opening_hours",
            f"Booking exceeds opening hours: the court closes at {LAST_START_HOUR + 1}:00",
            hour=start_hour,
        )


def check_slots_free(
    grid: SlotGrid,
    court_id: int,
    start_hour: int,
    duration: int,
    ignore_id: Optional[str] = None,
) -> None:
    """Reject the request if any hour of the range is already booked."""
    for hour in range(start_hour, start_hour + duration):
        if grid.occupied(court_id, hour, ignore_id=ignore_id):
            raise RuleViolation(
                "slot_taken",
                f"Court {court_id} is already booked at {hour}:00",
                hour=hour,
            )


def _clean(value: Optional[str]) -> Optional[str]:
    if value is None:
        return None
    value = value.strip()
    return value or None


def normalize_attributes(booking_type: BookingType, attrs: BookingAttributes) -> BookingAttributes:
    """Keep only the attributes that belong to ``booking_type``, trimmed."""
    if booking_type == BookingType.VM:
        vm_type = attrs.vm_type
        if vm_type == VMType.SINGLES:
            return BookingAttributes(vm_type=vm_type, opponent=_clean(attrs.opponent))
        return BookingAttributes(
            vm_type=vm_type,
            opponent=_clean(attrs.opponent),
            opponent2=_clean(attrs.opponent2),
            partner=_clean(attrs.partner),
        )
    if booking_type == BookingType.MATCH:
        return BookingAttributes(opponent=_clean(attrs.opponent))
    if booking_type == BookingType.TRAINING:
        return BookingAttributes(description=_clean(attrs.description))
    return BookingAttributes()


def check_attributes(booking_type: BookingType, attrs: BookingAttributes) -> None:
    """VM bookings must name everyone on court; other types need nothing."""
    if booking_type != BookingType.VM:
        return

    if attrs.vm_type is None:
        raise RuleViolation(
            "missing_attribute", "Championship bookings need a match type", attribute="vm_type"
        )

    if attrs.vm_type == VMType.SINGLES:
        required = ("opponent",)
    else:
        required = ("partner", "opponent", "opponent2")

    for field in required:
        if not _clean(getattr(attrs, field)):
            raise RuleViolation(
                "missing_attribute",
                f"{attrs.vm_type.value.capitalize()} championship bookings require {field}",
                attribute=field,
            )


def is_quota_exempt(role: UserRole, booking_type: BookingType, day: date) -> bool:
    if role == UserRole.ADMIN:
        return True
    if role == UserRole.TRAINER and booking_type in TRAINER_EXEMPT_TYPES:
        return True
    return is_weekend(day)


def check_daily_quota(
    grid: SlotGrid,
    role: UserRole,
    owner_id: str,
    booking_type: BookingType,
    requested_hours: int,
    exclude_id: Optional[str] = None,
    limit: Optional[int] = None,
) -> None:
    """Enforce the Mon-Fri hours-per-day limit for the booking owner."""
    if is_quota_exempt(role, booking_type, grid.date):
        return

    limit = settings.WEEKDAY_MAX_HOURS if limit is None else limit
    held = sum(1 for b in grid.bookings_for_user(owner_id) if b.id != exclude_id)
    if held + requested_hours > limit:
        logger.info(
            f"Quota rejected for user {owner_id} on {grid.date}: "
            f"{held} held + {requested_hours} requested > {limit}"
        )
        raise RuleViolation(
            "daily_quota",
            f"Bookings are limited to max {limit} hour Mon-Fri (no limit on weekends)",
        )


def check_can_modify(actor: Actor, booking: BookingInDB) -> None:
    if booking.user_id != actor.user_id and not actor.is_admin:
        raise AuthorizationError("Not authorized to change this booking")
