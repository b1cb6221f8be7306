import pytest

from app.schemas.enums import UserRole
from app.services.booking_service import BookingService
from app.stores.memory import InMemoryStore
from tests.helpers import TODAY, actor


@pytest.fixture
def store():
    return InMemoryStore()


@pytest.fixture
def service(store):
    return BookingService(store, today=lambda: TODAY)


@pytest.fixture
def admin():
    return actor("admin-1", UserRole.ADMIN)


@pytest.fixture
def trainer():
    return actor("trainer-1", UserRole.TRAINER)


@pytest.fixture
def member():
    return actor("member-1", UserRole.MEMBER)


@pytest.fixture
def other_member():
    return actor("member-2", UserRole.MEMBER)


@pytest.fixture
def guest():
    return actor("guest-1", UserRole.GUEST)
