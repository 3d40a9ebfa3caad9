"""
Admin-only user management endpoints under /users.

CHANGELOG:
- 2026-10-15: Initial creation

TODO:
- None
"""

import logging
from datetime import datetime
from typing import Annotated

from fastapi import APIRouter, Path
from pydantic import BaseModel, ConfigDict

from energymon.api.deps import AdminUser, DbSession
from energymon.errors import InputValidationError, NotFoundError
from energymon.services import users as user_store
from energymon.services.users import UserPatch

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/users", tags=["users"])

MIN_USERNAME_LENGTH = 3
MAX_USERNAME_LENGTH = 50
MIN_PASSWORD_LENGTH = 6

UserId = Annotated[int, Path(gt=0, description="User id.")]


# ---------------------------------------------------------------------------
# Pydantic models
# ---------------------------------------------------------------------------


class UserOut(BaseModel):
    """Public view of a user (never includes the password hash)."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    username: str
    is_admin: bool
    created_at: datetime


class UserList(BaseModel):
    users: list[UserOut]
    total: int


class UserCreate(BaseModel):
    username: str | None = None
    password: str | None = None
    is_admin: bool = False


class UserUpdate(BaseModel):
    """Partial update body; only fields present in the JSON are applied."""

    username: str | None = None
    password: str | None = None
    is_admin: bool | None = None

    def to_patch(self) -> UserPatch:
        """Convert to a UserPatch, rejecting explicit nulls.

        Raises:
            InputValidationError: If no field was sent or a field is null.
        """
        present = self.model_fields_set
        if not present:
            raise InputValidationError("No fields provided for update")
        for name in present:
            if getattr(self, name) is None:
                raise InputValidationError(f"{name} cannot be null")
        return UserPatch(username=self.username, password=self.password, is_admin=self.is_admin)


class UserMessage(BaseModel):
    message: str
    user: UserOut


class DeletedMessage(BaseModel):
    message: str
    id: int


# ---------------------------------------------------------------------------
# Validation
# ---------------------------------------------------------------------------


def validate_username(username: str) -> None:
    if len(username) < MIN_USERNAME_LENGTH:
        raise InputValidationError("Username must be at least 3 characters")
    if len(username) > MAX_USERNAME_LENGTH:
        raise InputValidationError("Username must be at most 50 characters")


def validate_password(password: str) -> None:
    if len(password) < MIN_PASSWORD_LENGTH:
        raise InputValidationError("Password must be at least 6 characters")


# ---------------------------------------------------------------------------
# Routes
# ---------------------------------------------------------------------------


@router.get("", response_model=UserList)
async def list_users(admin: AdminUser, db: DbSession) -> UserList:
    """List all users, newest first."""
    users = await user_store.list_users(db)
    return UserList(users=[UserOut.model_validate(u) for u in users], total=len(users))


@router.post("", response_model=UserMessage, status_code=201)
async def create_user(payload: UserCreate, admin: AdminUser, db: DbSession) -> UserMessage:
    """Create a user.

    Raises:
        InputValidationError: 400 on missing or too-short username/password.
        ConflictError: 409 if the username is taken.
    """
    if not payload.username or not payload.password:
        raise InputValidationError("Username and password required")
    validate_username(payload.username)
    validate_password(payload.password)

    user = await user_store.create_user(db, payload.username, payload.password, payload.is_admin)
    logger.info("Admin id=%s created user id=%s", admin.id, user.id)
    return UserMessage(message="User created successfully", user=UserOut.model_validate(user))


@router.get("/{user_id}", response_model=UserOut)
async def get_user(user_id: UserId, admin: AdminUser, db: DbSession) -> UserOut:
    """Return a single user.

    Raises:
        NotFoundError: 404 if the user does not exist.
    """
    user = await user_store.get_user(db, user_id)
    if user is None:
        raise NotFoundError("User not found")
    return UserOut.model_validate(user)


@router.put("/{user_id}", response_model=UserMessage)
async def update_user(
    user_id: UserId,
    payload: UserUpdate,
    admin: AdminUser,
    db: DbSession,
) -> UserMessage:
    """Apply a partial update to a user.

    Raises:
        InputValidationError: 400 on an empty body or invalid values.
        ConflictError: 409 if renaming to a taken username.
        NotFoundError: 404 if the user does not exist.
    """
    patch = payload.to_patch()
    if patch.username is not None:
        validate_username(patch.username)
    if patch.password is not None:
        validate_password(patch.password)

    user = await user_store.update_user(db, user_id, patch)
    if user is None:
        raise NotFoundError("User not found")
    return UserMessage(message="User updated successfully", user=UserOut.model_validate(user))


@router.delete("/{user_id}", response_model=DeletedMessage)
async def delete_user(user_id: UserId, admin: AdminUser, db: DbSession) -> DeletedMessage:
    """Delete a user other than the caller.

    Raises:
        InputValidationError: 400 when an admin tries to delete themselves.
        NotFoundError: 404 if the user does not exist.
    """
    if user_id == admin.id:
        raise InputValidationError("You cannot delete your own user")
    if not await user_store.delete_user(db, user_id):
        raise NotFoundError("User not found")
    return DeletedMessage(message="User deleted successfully", id=user_id)
