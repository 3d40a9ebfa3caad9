"""
FastAPI dependency injection providers.

Provides database sessions from the Database owned by the application
lifespan, the runtime Settings, bearer-token authentication, the admin gate,
and the shared from/to query range.

CHANGELOG:
- 2026-10-15: Initial creation

TODO:
- None
"""

import logging
from collections.abc import AsyncGenerator
from dataclasses import dataclass
from datetime import datetime
from typing import Annotated

from fastapi import Depends, Query, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.ext.asyncio import AsyncSession

from energymon.auth.tokens import decode_access_token
from energymon.config import Settings
from energymon.db.models import User
from energymon.errors import AuthError, ForbiddenError, InputValidationError
from energymon.services.ingestion import as_utc
from energymon.services.users import get_user

logger = logging.getLogger(__name__)

_bearer_scheme = HTTPBearer(auto_error=False)


async def get_db(request: Request) -> AsyncGenerator[AsyncSession, None]:
    """Yield an async database session from the application's Database.

    Yields:
        AsyncSession: An async SQLAlchemy session, closed after the request.
    """
    async for session in request.app.state.db.session():
        yield session


def get_app_settings(request: Request) -> Settings:
    """Return the Settings instance stored on app.state."""
    return request.app.state.settings


# Type aliases for route signatures:
#   async def my_route(db: DbSession, settings: AppSettings): ...
DbSession = Annotated[AsyncSession, Depends(get_db)]
AppSettings = Annotated[Settings, Depends(get_app_settings)]


async def get_current_user(
    db: DbSession,
    settings: AppSettings,
    credentials: Annotated[HTTPAuthorizationCredentials | None, Depends(_bearer_scheme)],
) -> User:
    """Authenticate the request's bearer token and load its user.

    The user row is re-read on every request so that deleted users and
    changed admin flags take effect before the token expires.

    Raises:
        AuthError: 401 if the token is missing, invalid, expired, or its user
            no longer exists.
    """
    if credentials is None or not credentials.credentials:
        raise AuthError("Access token required")

    claims = decode_access_token(credentials.credentials, settings.jwt_secret)
    if claims is None:
        raise AuthError("Invalid or expired token")

    user = await get_user(db, claims.user_id)
    if user is None:
        logger.info("Token for deleted user id=%s rejected", claims.user_id)
        raise AuthError("User not found")
    return user


CurrentUser = Annotated[User, Depends(get_current_user)]


async def require_admin(user: CurrentUser) -> User:
    """Allow only admin users through.

    Raises:
        ForbiddenError: 403 for authenticated non-admin users.
    """
    if not user.is_admin:
        raise ForbiddenError("Admin privileges required")
    return user


AdminUser = Annotated[User, Depends(require_admin)]


@dataclass(frozen=True)
class TimeRange:
    """Inclusive timestamp bounds from the ``from``/``to`` query parameters."""

    start: datetime | None = None
    end: datetime | None = None


def utc_param(value: datetime | None, name: str) -> datetime | None:
    """Normalise a request timestamp to UTC.

    Raises:
        InputValidationError: 400 if the instant is outside the representable range.
    """
    if value is None:
        return None
    try:
        return as_utc(value)
    except OverflowError as exc:
        raise InputValidationError(f"Invalid {name} timestamp") from exc


def get_time_range(
    start: Annotated[
        datetime | None,
        Query(alias="from", description="Inclusive lower bound (ISO-8601)."),
    ] = None,
    end: Annotated[
        datetime | None,
        Query(alias="to", description="Inclusive upper bound (ISO-8601)."),
    ] = None,
) -> TimeRange:
    """Parse the range query parameters; offset-less values are taken as UTC."""
    return TimeRange(
        start=utc_param(start, "from"),
        end=utc_param(end, "to"),
    )


QueryRange = Annotated[TimeRange, Depends(get_time_range)]
