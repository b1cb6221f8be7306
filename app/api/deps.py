"""Shared request dependencies."""
from typing import Optional

from fastapi import Depends, Request
from fastapi.security import OAuth2PasswordBearer

from app.core.errors import AuthenticationError, AuthorizationError
from app.core.security import decode_access_token
from app.schemas.enums import AccountStatus
from app.schemas.user import UserInDB
from app.services.booking_service import BookingService
from app.services.rules import Actor
from app.services.user_service import UserService

oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/auth/login", auto_error=False)


def get_booking_service(request: Request) -> BookingService:
    return request.app.state.booking_service


def get_user_service(request: Request) -> UserService:
    return request.app.state.user_service


async def get_current_user(
    token: Optional[str] = Depends(oauth2_scheme),
    users: UserService = Depends(get_user_service),
) -> UserInDB:
    """
    Resolve the bearer token to a stored, approved user.

    The role is read from the store on every request, so a role change or a
    revoked approval takes effect immediately.
    """
    if not token:
        raise AuthenticationError("Access token required")

    payload = decode_access_token(token)
    user = await users.store.get_user(payload["sub"])
    if user is None:
        raise AuthenticationError("User not found")
    if user.status != AccountStatus.APPROVED:
        raise AuthorizationError("Account is not approved")
    return user


async def get_actor(user: UserInDB = Depends(get_current_user)) -> Actor:
    return Actor.from_user(user)
