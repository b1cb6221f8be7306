"""User schemas."""
from pydantic import BaseModel, ConfigDict, EmailStr, Field
from typing import Optional
from datetime import datetime

from app.schemas.enums import AccountStatus, UserRole


class UserBase(BaseModel):
    """Base user schema."""

    email: str
    first_name: str
    last_name: str
    full_name: str
    role: UserRole = UserRole.MEMBER
    status: AccountStatus = AccountStatus.PENDING


class UserRegister(BaseModel):
    """Schema for self-registration."""

    first_name: str = Field(..., min_length=1)
    last_name: str = Field(..., min_length=1)
    email: EmailStr
    password: str
    password_confirm: str


class LoginRequest(BaseModel):
    """Schema for logging in."""

    email: str
    password: str


class UserInDB(UserBase):
    """Schema for a stored user, including the password hash."""

    id: str
    password_hash: str
    created_at: datetime
    updated_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)


class UserPublic(UserBase):
    """Schema for a user as returned by the API."""

    id: str
    created_at: datetime
    updated_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)


class TokenResponse(BaseModel):
    """Schema for a successful login."""

    access_token: str
    token_type: str = "bearer"
    user: UserPublic


class RegistrationResponse(BaseModel):
    message: str
    user_id: str


class UserStatusUpdate(BaseModel):
    status: AccountStatus


class UserRoleUpdate(BaseModel):
    role: UserRole
