"""
Signed, time-limited access tokens (HS256 JWT via python-jose).

Tokens carry the user id, username and admin flag. The API re-reads the user
row on every request, so the claims are only used to locate the user and a
deleted account loses access immediately.

CHANGELOG:
- 2026-10-15: Initial creation

TODO:
- None
"""

import logging
from dataclasses import dataclass
from datetime import UTC, datetime, timedelta

from jose import JWTError, jwt

logger = logging.getLogger(__name__)

JWT_ALGORITHM = "HS256"


@dataclass(frozen=True)
class TokenClaims:
    """Decoded access token payload.

    Attributes:
        user_id: Primary key of the authenticated user.
        username: Username at issue time.
        is_admin: Admin flag at issue time.
        expires_at: Expiry instant (UTC).
    """

    user_id: int
    username: str
    is_admin: bool
    expires_at: datetime


def create_access_token(
    user_id: int,
    username: str,
    is_admin: bool,
    secret: str,
    expires_minutes: int = 60,
    now: datetime | None = None,
) -> str:
    """Issue a signed access token for a user.

    Args:
        user_id: Primary key of the user.
        username: The user's login name.
        is_admin: Whether the user holds admin privileges.
        secret: HS256 signing key.
        expires_minutes: Token lifetime.
        now: Issue time, defaults to the current UTC time.

    Returns:
        str: Encoded JWT.
    """
    issued_at = now or datetime.now(UTC)
    payload = {
        "sub": str(user_id),
        "id": user_id,
        "username": username,
        "is_admin": is_admin,
        "iat": issued_at,
        "exp": issued_at + timedelta(minutes=expires_minutes),
    }
    return jwt.encode(payload, secret, algorithm=JWT_ALGORITHM)


def decode_access_token(token: str, secret: str) -> TokenClaims | None:
    """Verify a token's signature and expiry and return its claims.

    Args:
        token: Encoded JWT from the Authorization header.
        secret: HS256 signing key.

    Returns:
        TokenClaims | None: The claims, or None if the token is invalid,
            expired, or missing required claims.
    """
    try:
        payload = jwt.decode(token, secret, algorithms=[JWT_ALGORITHM])
    except JWTError as exc:
        logger.info("Rejected access token: %s", exc)
        return None

    user_id = payload.get("id")
    username = payload.get("username")
    exp = payload.get("exp")
    if not isinstance(user_id, int) or not isinstance(username, str) or exp is None:
        logger.info("Rejected access token: missing claims")
        return None

    return TokenClaims(
        user_id=user_id,
        username=username,
        is_admin=bool(payload.get("is_admin", False)),
        expires_at=datetime.fromtimestamp(exp, tz=UTC),
    )
