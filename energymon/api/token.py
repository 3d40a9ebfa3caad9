"""
POST /token login endpoint.

Verifies a username/password pair against the credential store and issues a
signed access token together with the user's public profile.

CHANGELOG:
- 2026-10-15: Initial creation

TODO:
- None
"""

import logging

from fastapi import APIRouter
from pydantic import BaseModel

from energymon.api.deps import AppSettings, DbSession
from energymon.auth.tokens import create_access_token
from energymon.errors import AuthError, InputValidationError
from energymon.services.users import authenticate

logger = logging.getLogger(__name__)

router = APIRouter(tags=["auth"])


class TokenRequest(BaseModel):
    """Login credentials. Both fields are required; checked in the handler."""

    username: str | None = None
    password: str | None = None


class TokenUser(BaseModel):
    id: int
    username: str
    is_admin: bool


class TokenResponse(BaseModel):
    """Issued access token.

    Attributes:
        access_token: Signed JWT.
        token_type: Always "Bearer".
        expires_in: Token lifetime in seconds.
        user: Public profile of the authenticated user.
    """

    access_token: str
    token_type: str = "Bearer"
    expires_in: int
    user: TokenUser


@router.post("/token", response_model=TokenResponse)
async def login(payload: TokenRequest, db: DbSession, settings: AppSettings) -> TokenResponse:
    """Exchange credentials for a bearer token.

    Raises:
        InputValidationError: 400 if username or password is missing.
        AuthError: 401 on unknown user or wrong password.
    """
    if not payload.username or not payload.password:
        raise InputValidationError("Username and password required")

    user = await authenticate(db, payload.username, payload.password)
    if user is None:
        raise AuthError("Invalid credentials")

    token = create_access_token(
        user.id,
        user.username,
        user.is_admin,
        settings.jwt_secret,
        settings.jwt_expires_minutes,
    )
    logger.info("Issued token for user id=%s", user.id)
    return TokenResponse(
        access_token=token,
        expires_in=settings.jwt_expires_minutes * 60,
        user=TokenUser(id=user.id, username=user.username, is_admin=user.is_admin),
    )
