"""API schemas."""
from app.schemas.enums import (
    AccountStatus,
    BookingType,
    UserRole,
    VMType,
)
from app.schemas.user import (
    LoginRequest,
    RegistrationResponse,
    TokenResponse,
    UserInDB,
    UserPublic,
    UserRegister,
    UserRoleUpdate,
    UserStatusUpdate,
)
from app.schemas.booking import (
    BlockInfo,
    BookingAttributes,
    BookingBlock,
    BookingCreate,
    BookingInDB,
    BookingMove,
    BookingUpdate,
    CancelResult,
    CheckResult,
    DayGrid,
    GridCell,
)
from app.schemas.court import Court

__all__ = [
    "AccountStatus",
    "BookingType",
    "UserRole",
    "VMType",
    "LoginRequest",
    "RegistrationResponse",
    "TokenResponse",
    "UserInDB",
    "UserPublic",
    "UserRegister",
    "UserRoleUpdate",
    "UserStatusUpdate",
    "BlockInfo",
    "BookingAttributes",
    "BookingBlock",
    "BookingCreate",
    "BookingInDB",
    "BookingMove",
    "BookingUpdate",
    "CancelResult",
    "CheckResult",
    "DayGrid",
    "GridCell",
    "Court",
]
