import pytest

from app.core.errors import AuthorizationError, RuleViolation, ValidationError
from app.schemas.booking import BookingAttributes
from app.schemas.enums import BookingType, UserRole, VMType
from app.services import rules
from app.services.slot_grid import SlotGrid
from tests.helpers import SATURDAY, TUESDAY, actor, make_booking


def test_allowed_types_per_role():
    assert set(rules.allowed_types(UserRole.ADMIN)) == set(BookingType)
    assert rules.allowed_types(UserRole.TRAINER) == [
        BookingType.FREE,
        BookingType.VM,
        BookingType.TRAINING,
        BookingType.MATCH,
    ]
    assert rules.allowed_types(UserRole.MEMBER) == [BookingType.FREE, BookingType.VM]
    assert rules.allowed_types(UserRole.GUEST) == []


def test_check_type_allowed():
    rules.check_type_allowed(UserRole.ADMIN, BookingType.MAINTENANCE)
    with pytest.raises(RuleViolation) as exc:
        rules.check_type_allowed(UserRole.MEMBER, BookingType.TRAINING)
    assert exc.value.rule == "type_not_allowed"
    with pytest.raises(RuleViolation):
        rules.check_type_allowed(UserRole.GUEST, BookingType.FREE)


def test_parse_enum_rejects_unknown_values():
    assert rules.parse_enum(BookingType, "VM", "booking type") == BookingType.VM
    assert rules.parse_enum(BookingType, None, "booking type") is None
    with pytest.raises(ValidationError):
        rules.parse_enum(BookingType, "vm", "booking type")
    with pytest.raises(ValidationError):
        rules.parse_enum(VMType, "TRIPLES", "VM type")


def test_opening_hours():
    rules.check_opening_hours(19, 3)
    with pytest.raises(RuleViolation) as exc:
        rules.check_opening_hours(20, 3)
    assert exc.value.rule == "opening_hours"
    with pytest.raises(ValidationError):
        rules.check_opening_hours(10, 0)


def test_check_slots_free_names_first_conflict():
    grid = SlotGrid(TUESDAY, [make_booking(hour=11), make_booking(hour=12)])

    rules.check_slots_free(grid, 1, 8, 3)
    rules.check_slots_free(grid, 2, 11, 2)
    with pytest.raises(RuleViolation) as exc:
        rules.check_slots_free(grid, 1, 10, 3)
    assert exc.value.rule == "slot_taken"
    assert exc.value.hour == 11


@pytest.mark.parametrize(
    "attrs, missing",
    [
        (BookingAttributes(), "vm_type"),
        (BookingAttributes(vm_type=VMType.SINGLES), "opponent"),
        (BookingAttributes(vm_type=VMType.SINGLES, opponent="   "), "opponent"),
        (BookingAttributes(vm_type=VMType.DOUBLES, opponent="A", opponent2="B"), "partner"),
        (BookingAttributes(vm_type=VMType.DOUBLES, partner="P", opponent="A"), "opponent2"),
        (BookingAttributes(vm_type=VMType.MIXED, partner="P", opponent2="B"), "opponent"),
    ],
)
def test_vm_attribute_completeness(attrs, missing):
    with pytest.raises(RuleViolation) as exc:
        rules.check_attributes(BookingType.VM, attrs)
    assert exc.value.rule == "missing_attribute"
    assert exc.value.attribute == missing


def test_complete_vm_and_other_types_pass():
    rules.check_attributes(BookingType.VM, BookingAttributes(vm_type=VMType.SINGLES, opponent="A"))
    rules.check_attributes(
        BookingType.VM,
        BookingAttributes(vm_type=VMType.MIXED, partner="P", opponent="A", opponent2="B"),
    )
    rules.check_attributes(BookingType.MATCH, BookingAttributes())
    rules.check_attributes(BookingType.TRAINING, BookingAttributes())


def test_normalize_attributes_keeps_only_relevant_fields():
    raw = BookingAttributes(
        vm_type=VMType.SINGLES,
        opponent="  Anna ",
        opponent2="Ben",
        partner="Carl",
        description="x",
    )

    singles = rules.normalize_attributes(BookingType.VM, raw)
    assert singles == BookingAttributes(vm_type=VMType.SINGLES, opponent="Anna")

    match = rules.normalize_attributes(BookingType.MATCH, raw)
    assert match == BookingAttributes(opponent="Anna")

    training = rules.normalize_attributes(BookingType.TRAINING, raw)
    assert training == BookingAttributes(description="x")

    assert rules.normalize_attributes(BookingType.FREE, raw) == BookingAttributes()


def test_quota_exemptions():
    assert rules.is_quota_exempt(UserRole.ADMIN, BookingType.FREE, TUESDAY)
    assert rules.is_quota_exempt(UserRole.TRAINER, BookingType.TRAINING, TUESDAY)
    assert rules.is_quota_exempt(UserRole.TRAINER, BookingType.MATCH, TUESDAY)
    assert not rules.is_quota_exempt(UserRole.TRAINER, BookingType.FREE, TUESDAY)
    assert not rules.is_quota_exempt(UserRole.MEMBER, BookingType.FREE, TUESDAY)
    assert rules.is_quota_exempt(UserRole.MEMBER, BookingType.FREE, SATURDAY)


def test_daily_quota_counts_existing_hours():
    existing = make_booking(hour=9, user_id="member-1")
    grid = SlotGrid(TUESDAY, [existing, make_booking(hour=10, user_id="member-2")])

    with pytest.raises(RuleViolation) as exc:
        rules.check_daily_quota(grid, UserRole.MEMBER, "member-1", BookingType.FREE, 1)
    assert exc.value.rule == "daily_quota"
    assert "max 1 hour Mon-Fri" in exc.value.message

    # The booking being edited or moved does not count against itself
    rules.check_daily_quota(
        grid, UserRole.MEMBER, "member-1", BookingType.FREE, 1, exclude_id=existing.id
    )


def test_daily_quota_rejects_multi_hour_weekday_request():
    grid = SlotGrid(TUESDAY, [])
    rules.check_daily_quota(grid, UserRole.MEMBER, "member-1", BookingType.FREE, 1)
    with pytest.raises(RuleViolation):
        rules.check_daily_quota(grid, UserRole.MEMBER, "member-1", BookingType.FREE, 2)


def test_daily_quota_limit_is_configurable():
    grid = SlotGrid(TUESDAY, [make_booking(hour=9)])
    rules.check_daily_quota(grid, UserRole.MEMBER, "member-1", BookingType.FREE, 1, limit=2)


def test_check_can_modify():
    booking = make_booking(user_id="member-1")
    rules.check_can_modify(actor("member-1"), booking)
    rules.check_can_modify(actor("admin-1", UserRole.ADMIN), booking)
    with pytest.raises(AuthorizationError):
        rules.check_can_modify(actor("member-2"), booking)
