"""User administration endpoints (admin only)."""
from typing import List
from fastapi import APIRouter, Depends, Query

from app.api.deps import get_actor, get_user_service
from app.schemas.user import UserPublic, UserRoleUpdate, UserStatusUpdate
from app.services.rules import Actor
from app.services.user_service import UserService

router = APIRouter(prefix="/users", tags=["users"])


@router.get("", response_model=List[UserPublic])
async def list_users(
    actor: Actor = Depends(get_actor),
    users: UserService = Depends(get_user_service),
):
    """List all accounts, pending ones included."""
    return [UserPublic.model_validate(u.model_dump()) for u in await users.list_users(actor)]


@router.patch("/{user_id}/status", response_model=UserPublic)
async def update_user_status(
    user_id: str,
    update: UserStatusUpdate,
    actor: Actor = Depends(get_actor),
    users: UserService = Depends(get_user_service),
):
    """
    Approve or reject an account.

    Args:
        user_id: User ID
        update: New account status
    """
    user = await users.set_status(actor, user_id, update.status)
    return UserPublic.model_validate(user.model_dump())


@router.patch("/{user_id}/role", response_model=UserPublic)
async def update_user_role(
    user_id: str,
    update: UserRoleUpdate,
    confirm: bool = Query(default=False, description="Required to remove your own admin role"),
    actor: Actor = Depends(get_actor),
    users: UserService = Depends(get_user_service),
):
    """
    Assign a role to a user.

    Args:
        user_id: User ID
        update: New role
        confirm: Must be true when an admin demotes themselves
    """
    user = await users.set_role(actor, user_id, update.role, confirm=confirm)
    return UserPublic.model_validate(user.model_dump())


@router.delete("/{user_id}", status_code=204)
async def delete_user(
    user_id: str,
    actor: Actor = Depends(get_actor),
    users: UserService = Depends(get_user_service),
):
    """
    Delete a user and all of their bookings.

    Admins cannot delete their own account.
    """
    await users.remove_user(actor, user_id)
