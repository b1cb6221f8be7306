"""User service: registration, login and admin account management."""
import logging
import uuid
from datetime import datetime, timezone
from typing import List

from app.core.config import settings
from app.core.errors import (
    AuthenticationError,
    AuthorizationError,
    ConfirmationRequired,
    NotFoundError,
    ValidationError,
)
from app.core.security import hash_password, verify_password
from app.schemas.enums import AccountStatus, UserRole
from app.schemas.user import UserInDB, UserRegister
from app.services.rules import Actor

logger = logging.getLogger(__name__)

DEMO_USERS = [
    # email, first name, last name, role, password
    ("admin@stv.de", "Vorstand", "Admin", UserRole.ADMIN, "admin"),
    ("trainer@stv.de", "Coach", "Esume", UserRole.TRAINER, "coach"),
    ("demo@stv.de", "Max", "Mustermann", UserRole.MEMBER, "demo"),
]


def _require_admin(actor: Actor) -> None:
    if not actor.is_admin:
        raise AuthorizationError("Insufficient permissions")


class UserService:
    """Account lifecycle on top of an entity store."""

    def __init__(self, store):
        self.store = store

    async def register(self, data: UserRegister) -> UserInDB:
        """Create a PENDING member account awaiting admin approval."""
        first_name = data.first_name.strip()
        last_name = data.last_name.strip()
        if not first_name or not last_name:
            raise ValidationError("First and last name are required")
        if data.password != data.password_confirm:
            raise ValidationError("Passwords do not match")
        if len(data.password) < settings.MIN_PASSWORD_LENGTH:
            raise ValidationError(
                f"Password must be at least {settings.MIN_PASSWORD_LENGTH} characters"
            )

        email = str(data.email).strip().lower()
        if await self.store.find_user_by_email(email) is not None:
            raise ValidationError("Email already registered")

        user = UserInDB(
            id=str(uuid.uuid4()),
            email=email,
            first_name=first_name,
            last_name=last_name,
            full_name=f"{first_name} {last_name}",
            role=UserRole.MEMBER,
            status=AccountStatus.PENDING,
            password_hash=hash_password(data.password),
            created_at=datetime.now(timezone.utc),
        )
        user = await self.store.insert_user(user)
        logger.info(f"Registered user {user.id} ({user.email}), pending approval")
        return user

    async def authenticate(self, email: str, password: str) -> UserInDB:
        """Check credentials; only approved accounts may log in."""
        user = await self.store.find_user_by_email(email)
        if user is None or not verify_password(password, user.password_hash):
            raise AuthenticationError("Invalid email or password")
        if user.status == AccountStatus.REJECTED:
            raise AuthorizationError("Account has been rejected. Please contact the club.")
        if user.status != AccountStatus.APPROVED:
            raise AuthorizationError("Account pending approval. Please wait for admin approval.")
        return user

    async def get_user(self, user_id: str) -> UserInDB:
        user = await self.store.get_user(user_id)
        if user is None:
            raise NotFoundError("User not found")
        return user

    async def list_users(self, actor: Actor) -> List[UserInDB]:
        _require_admin(actor)
        return await self.store.list_users()

    async def set_status(self, actor: Actor, user_id: str, status: AccountStatus) -> UserInDB:
        _require_admin(actor)
        user = await self.get_user(user_id)
        user = user.model_copy(
            update={"status": status, "updated_at": datetime.now(timezone.utc)}
        )
        user = await self.store.update_user(user)
        logger.info(f"{actor.user_id} set status of {user_id} to {status.value}")
        return user

    async def set_role(
        self, actor: Actor, user_id: str, role: UserRole, confirm: bool = False
    ) -> UserInDB:
        """Change a user's role; an admin demoting themselves must confirm."""
        _require_admin(actor)
        if user_id == actor.user_id and role != UserRole.ADMIN and not confirm:
            raise ConfirmationRequired(
                "You are removing your own admin rights; confirm to proceed"
            )

        user = await self.get_user(user_id)
        user = user.model_copy(
            update={"role": role, "updated_at": datetime.now(timezone.utc)}
        )
        user = await self.store.update_user(user)
        logger.info(f"{actor.user_id} set role of {user_id} to {role.value}")
        return user

    async def remove_user(self, actor: Actor, user_id: str) -> None:
        """Delete a user together with all of their bookings."""
        _require_admin(actor)
        if user_id == actor.user_id:
            raise AuthorizationError("Cannot delete your own account")
        if not await self.store.delete_user(user_id):
            raise NotFoundError("User not found")
        logger.info(f"{actor.user_id} deleted user {user_id} and their bookings")

    async def seed_demo_users(self) -> int:
        """Create the demo admin, trainer and member if they are missing."""
        created = 0
        for email, first_name, last_name, role, password in DEMO_USERS:
            if await self.store.find_user_by_email(email) is not None:
                continue
            await self.store.insert_user(
                UserInDB(
                    id=str(uuid.uuid4()),
                    email=email,
                    first_name=first_name,
                    last_name=last_name,
                    full_name=f"{first_name} {last_name}",
                    role=role,
                    status=AccountStatus.APPROVED,
                    password_hash=hash_password(password),
                    created_at=datetime.now(timezone.utc),
                )
            )
            created += 1
        if created:
            logger.info(f"Seeded {created} demo user(s)")
        return created
