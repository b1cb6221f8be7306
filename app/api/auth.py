"""Authentication endpoints."""
from fastapi import APIRouter, Depends

from app.api.deps import get_current_user, get_user_service
from app.core.security import create_access_token
from app.schemas.user import (
    LoginRequest,
    RegistrationResponse,
    TokenResponse,
    UserInDB,
    UserPublic,
    UserRegister,
)
from app.services.user_service import UserService

router = APIRouter(prefix="/auth", tags=["auth"])


@router.post("/register", response_model=RegistrationResponse, status_code=201)
async def register(
    data: UserRegister,
    users: UserService = Depends(get_user_service),
):
    """
    Register a new member account.

    The account starts as PENDING and cannot log in until an admin approves it.
    """
    user = await users.register(data)
    return RegistrationResponse(
        message="Registration successful. Please wait for admin approval.",
        user_id=user.id,
    )


@router.post("/login", response_model=TokenResponse)
async def login(
    credentials: LoginRequest,
    users: UserService = Depends(get_user_service),
):
    """
    Log in with email and password.

    Returns a bearer token and the user profile (without the password hash).
    """
    user = await users.authenticate(credentials.email, credentials.password)
    token = create_access_token(user.id, user.email)
    return TokenResponse(access_token=token, user=UserPublic.model_validate(user.model_dump()))


@router.get("/me", response_model=UserPublic)
async def me(user: UserInDB = Depends(get_current_user)):
    """Return the logged-in user."""
    return UserPublic.model_validate(user.model_dump())
