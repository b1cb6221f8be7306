import json

import httpx
import pytest

from app.core.errors import NotFoundError, SlotConflictError, StoreError, ValidationError
from app.stores.remote import RemoteStore
from tests.helpers import TUESDAY, make_booking, make_user


class FakeApi:
    """Minimal in-test remote API served through httpx.MockTransport."""

    def __init__(self):
        self.bookings = {}
        self.users = {}
        self.requests = []
        self.fail_reads = 0
        self.reject_slots = set()

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append((request.method, request.url.path))
        parts = request.url.path.strip("/").split("/")

        if request.method == "GET" and self.fail_reads:
            self.fail_reads -= 1
            raise httpx.ConnectError("connection refused", request=request)

        if parts[0] == "bookings":
            return self._bookings(request, parts)
        if parts[0] == "users":
            return self._users(request, parts)
        return httpx.Response(404)

    def _bookings(self, request, parts):
        if request.method == "GET" and len(parts) == 1:
            day = request.url.params["date"]
            return httpx.Response(200, json=[b for b in self.bookings.values() if b["date"] == day])
        if request.method == "POST":
            body = json.loads(request.content)
            if body["hour"] in self.reject_slots:
                return httpx.Response(409, json={"error": "Slot already booked"})
            self.bookings[body["id"]] = body
            return httpx.Response(201, json=body)

        booking_id = parts[1]
        if booking_id not in self.bookings:
            return httpx.Response(404)
        if request.method == "DELETE":
            del self.bookings[booking_id]
            return httpx.Response(204)
        if request.method == "PUT":
            self.bookings[booking_id] = json.loads(request.content)
        return httpx.Response(200, json=self.bookings[booking_id])

    def _users(self, request, parts):
        if request.method == "GET" and len(parts) == 1:
            email = request.url.params.get("email")
            users = [u for u in self.users.values() if email is None or u["email"] == email]
            return httpx.Response(200, json=users)
        if request.method == "POST":
            body = json.loads(request.content)
            self.users[body["id"]] = body
            return httpx.Response(201, json=body)
        user_id = parts[1]
        if user_id not in self.users:
            return httpx.Response(404)
        if request.method == "DELETE":
            del self.users[user_id]
            return httpx.Response(204)
        return httpx.Response(200, json=self.users[user_id])


@pytest.fixture
def api():
    return FakeApi()


@pytest.fixture
def remote(api):
    return RemoteStore(
        base_url="http://booking.test",
        token="t0ken",
        transport=httpx.MockTransport(api),
        max_retries=3,
        request_delay=0,
        retry_backoff=0,
    )


@pytest.mark.asyncio
async def test_insert_and_list_bookings(remote, api):
    booking = make_booking(hour=9)

    await remote.insert_bookings([booking])

    listed = await remote.list_bookings(TUESDAY)
    assert [b.id for b in listed] == [booking.id]
    assert (await remote.get_booking(booking.id)).hour == 9
    assert await remote.get_booking("missing") is None
    await remote.close()


@pytest.mark.asyncio
async def test_reads_are_retried(remote, api):
    api.fail_reads = 2

    assert await remote.list_bookings(TUESDAY) == []
    assert [m for m, _ in api.requests] == ["GET", "GET", "GET"]


@pytest.mark.asyncio
async def test_reads_give_up_after_max_retries(remote, api):
    api.fail_reads = 3

    with pytest.raises(StoreError):
        await remote.list_users()


@pytest.mark.asyncio
async def test_conflict_maps_to_slot_conflict_and_rolls_back(remote, api):
    api.reject_slots = {11}

    with pytest.raises(SlotConflictError) as exc:
        await remote.insert_bookings([make_booking(hour=10), make_booking(hour=11)])

    assert exc.value.message == "Slot already booked"
    assert api.bookings == {}
    assert api.requests[-1][0] == "DELETE"


@pytest.mark.asyncio
async def test_writes_are_not_retried(api):
    def broken(request):
        api.requests.append((request.method, request.url.path))
        raise httpx.ReadTimeout("timed out", request=request)

    store = RemoteStore(
        base_url="http://booking.test",
        transport=httpx.MockTransport(broken),
        max_retries=3,
        request_delay=0,
        retry_backoff=0,
    )

    with pytest.raises(StoreError):
        await store.insert_bookings([make_booking()])
    assert len(api.requests) == 1


@pytest.mark.asyncio
async def test_update_and_delete_missing_records(remote):
    with pytest.raises(NotFoundError):
        await remote.update_booking(make_booking(id="missing"))
    with pytest.raises(NotFoundError):
        await remote.update_user(make_user("missing"))
    assert await remote.delete_bookings(["missing"]) == 0
    assert not await remote.delete_user("missing")


@pytest.mark.asyncio
async def test_users_by_email(remote):
    await remote.insert_user(make_user("member-1", email="erika@example.com"))

    found = await remote.find_user_by_email("Erika@Example.com")

    assert found.id == "member-1"
    assert await remote.find_user_by_email("nobody@example.com") is None


@pytest.mark.asyncio
async def test_auth_header_and_base_path():
    seen = {}

    def capture(request):
        seen["auth"] = request.headers.get("Authorization")
        seen["path"] = request.url.path
        return httpx.Response(200, json=[])

    store = RemoteStore(
        base_url="http://booking.test/api/",
        token="t0ken",
        transport=httpx.MockTransport(capture),
        request_delay=0,
    )
    await store.list_users()

    assert seen == {"auth": "Bearer t0ken", "path": "/api/users"}


@pytest.mark.asyncio
async def test_duplicate_user_maps_to_validation_error():
    def conflict(request):
        return httpx.Response(409, json={"error": "Email already registered"})

    store = RemoteStore(
        base_url="http://booking.test",
        transport=httpx.MockTransport(conflict),
        request_delay=0,
    )

    with pytest.raises(ValidationError):
        await store.insert_user(make_user("member-1"))
