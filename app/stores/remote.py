"""Store adapter for a remote booking REST API.

The remote service exposes plain CRUD resources:

    GET    /bookings?date=YYYY-MM-DD     GET    /users
    GET    /bookings/{id}                GET    /users?email=...
    POST   /bookings                     GET    /users/{id}
    PUT    /bookings/{id}                POST   /users
    DELETE /bookings/{id}                PUT    /users/{id}
                                         DELETE /users/{id}   (cascades)

Reads are retried with exponential backoff; writes are sent once so a
timed-out request never lands twice.
"""
import asyncio
import logging
from datetime import date
from typing import Any, Dict, List, Optional, Sequence

import httpx

from app.core.config import settings
from app.core.errors import NotFoundError, SlotConflictError, StoreError, ValidationError
from app.schemas.booking import BookingInDB
from app.schemas.user import UserInDB
from app.stores.base import EntityStore

logger = logging.getLogger(__name__)


class RemoteStore(EntityStore):
    """Client for the remote booking API."""

    def __init__(
        self,
        base_url: Optional[str] = None,
        token: Optional[str] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        max_retries: Optional[int] = None,
        request_delay: Optional[float] = None,
        retry_backoff: float = 1.0,
    ):
        """Initialize the client.

        Args:
            base_url: API root, defaults to REMOTE_API_BASE_URL
            token: Bearer token sent with every request
            transport: Optional httpx transport (used by tests)
            max_retries: Attempts for idempotent reads
            request_delay: Minimum delay between requests in seconds
            retry_backoff: Base of the exponential backoff in seconds
        """
        self.base_url = (base_url or settings.REMOTE_API_BASE_URL).rstrip("/")
        self.max_retries = max(1, max_retries if max_retries is not None else settings.MAX_RETRIES)
        self.request_delay = (
            request_delay if request_delay is not None else settings.REQUEST_DELAY_SECONDS
        )
        self.retry_backoff = retry_backoff
        self._last_request_time = 0.0

        headers = {"Accept": "application/json"}
        token = token or settings.REMOTE_API_TOKEN
        if token:
            headers["Authorization"] = f"Bearer {token}"

        self._client = httpx.AsyncClient(
            base_url=self.base_url,
            headers=headers,
            transport=transport,
            timeout=30.0,
        )

    async def close(self) -> None:
        await self._client.aclose()

    async def _rate_limit(self):
        """Keep a minimum delay between consecutive requests."""
        if self.request_delay <= 0:
            return

        current_time = asyncio.get_running_loop().time()
        time_since_last_request = current_time - self._last_request_time

        if time_since_last_request < self.request_delay:
            await asyncio.sleep(self.request_delay - time_since_last_request)

        self._last_request_time = asyncio.get_running_loop().time()

    async def _make_request(
        self,
        method: str,
        url: str,
        params: Optional[Dict[str, Any]] = None,
        json_data: Optional[Any] = None,
    ) -> Optional[httpx.Response]:
        """
        Send a request and map failures onto store errors.

        Args:
            method: HTTP method
            url: Path relative to the API root
            params: Query parameters
            json_data: JSON body

        Returns:
            The response, or None when the resource does not exist

        Raises:
            SlotConflictError: The API answered 409
            StoreError: Any other transport or HTTP failure
        """
        attempts = self.max_retries if method == "GET" else 1

        for attempt in range(attempts):
            await self._rate_limit()
            try:
                logger.debug(f"{method} {url} (attempt {attempt + 1}/{attempts})")
                response = await self._client.request(method, url, params=params, json=json_data)

                if response.status_code == 404:
                    return None
                if response.status_code == 409:
                    raise SlotConflictError(_error_message(response, "Slot already booked"))
                response.raise_for_status()
                return response

            except httpx.HTTPError as e:
                logger.warning(f"{method} {url} failed (attempt {attempt + 1}/{attempts}): {e}")

                if attempt == attempts - 1:
                    logger.error(f"Remote store request {method} {url} failed", exc_info=True)
                    raise StoreError(f"Remote store request failed: {e}") from e

                # Exponential backoff
                await asyncio.sleep(self.retry_backoff * (2 ** attempt))

        raise StoreError("Max retries exceeded")

    async def list_bookings(self, day: date) -> List[BookingInDB]:
        response = await self._make_request("GET", "/bookings", params={"date": day.isoformat()})
        if response is None:
            return []
        return [BookingInDB.model_validate(item) for item in response.json()]

    async def get_booking(self, booking_id: str) -> Optional[BookingInDB]:
        response = await self._make_request("GET", f"/bookings/{booking_id}")
        return BookingInDB.model_validate(response.json()) if response is not None else None

    async def insert_bookings(self, bookings: Sequence[BookingInDB]) -> List[BookingInDB]:
        """Create bookings one by one, undoing the ones already sent on failure."""
        created: List[BookingInDB] = []
        try:
            for booking in bookings:
                response = await self._make_request(
                    "POST", "/bookings", json_data=booking.model_dump(mode="json")
                )
                if response is None:
                    raise StoreError("Remote store rejected booking insert")
                created.append(BookingInDB.model_validate(response.json()))
        except StoreError:
            if created:
                logger.warning(f"Rolling back {len(created)} booking(s) after failed insert")
                await self.delete_bookings([b.id for b in created])
            raise
        return created

    async def update_booking(self, booking: BookingInDB) -> BookingInDB:
        response = await self._make_request(
            "PUT", f"/bookings/{booking.id}", json_data=booking.model_dump(mode="json")
        )
        if response is None:
            raise NotFoundError("Booking not found")
        return BookingInDB.model_validate(response.json())

    async def delete_bookings(self, booking_ids: Sequence[str]) -> int:
        removed = 0
        for booking_id in booking_ids:
            if await self._make_request("DELETE", f"/bookings/{booking_id}") is not None:
                removed += 1
        return removed

    async def list_users(self) -> List[UserInDB]:
        response = await self._make_request("GET", "/users")
        if response is None:
            return []
        return [UserInDB.model_validate(item) for item in response.json()]

    async def get_user(self, user_id: str) -> Optional[UserInDB]:
        response = await self._make_request("GET", f"/users/{user_id}")
        return UserInDB.model_validate(response.json()) if response is not None else None

    async def find_user_by_email(self, email: str) -> Optional[UserInDB]:
        response = await self._make_request(
            "GET", "/users", params={"email": email.strip().lower()}
        )
        if response is None:
            return None
        items = response.json()
        return UserInDB.model_validate(items[0]) if items else None

    async def insert_user(self, user: UserInDB) -> UserInDB:
        try:
            response = await self._make_request(
                "POST", "/users", json_data=user.model_dump(mode="json")
            )
        except SlotConflictError as e:
            raise ValidationError("Email already registered") from e
        if response is None:
            raise StoreError("Remote store rejected user insert")
        return UserInDB.model_validate(response.json())

    async def update_user(self, user: UserInDB) -> UserInDB:
        response = await self._make_request(
            "PUT", f"/users/{user.id}", json_data=user.model_dump(mode="json")
        )
        if response is None:
            raise NotFoundError("User not found")
        return UserInDB.model_validate(response.json())

    async def delete_user(self, user_id: str) -> bool:
        return await self._make_request("DELETE", f"/users/{user_id}") is not None


def _error_message(response: httpx.Response, default: str) -> str:
    try:
        body = response.json()
    except ValueError:
        return default
    if isinstance(body, dict):
        return body.get("error") or body.get("detail") or default
    return default
