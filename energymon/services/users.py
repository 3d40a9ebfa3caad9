"""
Credential store: user lookup, CRUD and password authentication.

Passwords are hashed before they reach the database and hashes never leave
this module's callers in API responses.

CHANGELOG:
- 2026-10-15: Initial creation

TODO:
- None
"""

import logging
from dataclasses import dataclass

from sqlalchemy import delete, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from energymon.auth.passwords import hash_password, verify_password
from energymon.db.models import User
from energymon.errors import ConflictError

logger = logging.getLogger(__name__)

USERNAME_EXISTS_MESSAGE = "Username already exists"


@dataclass(frozen=True)
class UserPatch:
    """Partial update of a user; None means "leave unchanged".

    Attributes:
        username: New login name, or None.
        password: New plain-text password (hashed on apply), or None.
        is_admin: New admin flag, or None.
    """

    username: str | None = None
    password: str | None = None
    is_admin: bool | None = None


async def get_user(db: AsyncSession, user_id: int) -> User | None:
    return await db.get(User, user_id)


async def get_user_by_username(db: AsyncSession, username: str) -> User | None:
    result = await db.execute(select(User).where(User.username == username))
    return result.scalar_one_or_none()


async def list_users(db: AsyncSession) -> list[User]:
    """Return all users, newest first."""
    result = await db.execute(select(User).order_by(User.created_at.desc(), User.id.desc()))
    return list(result.scalars().all())


async def _username_taken(db: AsyncSession, username: str, exclude_id: int | None = None) -> bool:
    stmt = select(User.id).where(User.username == username)
    if exclude_id is not None:
        stmt = stmt.where(User.id != exclude_id)
    result = await db.execute(stmt)
    return result.first() is not None


async def create_user(
    db: AsyncSession,
    username: str,
    password: str,
    is_admin: bool = False,
) -> User:
    """Create a user with a hashed password.

    Raises:
        ConflictError: If the username is already taken.
    """
    if await _username_taken(db, username):
        raise ConflictError(USERNAME_EXISTS_MESSAGE)

    user = User(username=username, password_hash=hash_password(password), is_admin=is_admin)
    db.add(user)
    try:
        await db.commit()
    except IntegrityError as exc:
        # Lost a race with a concurrent create of the same name.
        await db.rollback()
        raise ConflictError(USERNAME_EXISTS_MESSAGE) from exc
    await db.refresh(user)
    logger.info("Created user id=%s username=%s admin=%s", user.id, user.username, user.is_admin)
    return user


async def update_user(db: AsyncSession, user_id: int, patch: UserPatch) -> User | None:
    """Apply a partial update to a user.

    Returns:
        User | None: The updated user, or None if absent.

    Raises:
        ConflictError: If renaming to a username held by another user.
    """
    user = await db.get(User, user_id)
    if user is None:
        return None

    if patch.username is not None:
        if await _username_taken(db, patch.username, exclude_id=user_id):
            raise ConflictError(USERNAME_EXISTS_MESSAGE)
        user.username = patch.username
    if patch.password is not None:
        user.password_hash = hash_password(patch.password)
    if patch.is_admin is not None:
        user.is_admin = patch.is_admin

    try:
        await db.commit()
    except IntegrityError as exc:
        await db.rollback()
        raise ConflictError(USERNAME_EXISTS_MESSAGE) from exc
    await db.refresh(user)
    logger.info("Updated user id=%s", user_id)
    return user


async def delete_user(db: AsyncSession, user_id: int) -> bool:
    """Delete a user. Returns False if it did not exist."""
    result = await db.execute(delete(User).where(User.id == user_id).returning(User.id))
    deleted = result.scalar_one_or_none()
    await db.commit()
    if deleted is None:
        return False
    logger.info("Deleted user id=%s", user_id)
    return True


async def authenticate(db: AsyncSession, username: str, password: str) -> User | None:
    """Return the user if the credentials match, otherwise None."""
    user = await get_user_by_username(db, username)
    if user is None or not verify_password(password, user.password_hash):
        logger.info("Failed login for username=%s", username)
        return None
    return user
