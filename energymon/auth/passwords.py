"""
Salted password hashing with bcrypt through passlib.

CHANGELOG:
- 2026-10-15: Initial creation
"""

from passlib.context import CryptContext

_pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")


def hash_password(password: str) -> str:
    """Return a salted bcrypt hash of a plain-text password."""
    return _pwd_context.hash(password)


def verify_password(password: str, password_hash: str) -> bool:
    """Check a plain-text password against a stored hash.

    Malformed or unknown hash formats count as a mismatch rather than an
    error, so a corrupted row can never log anyone in.

    Args:
        password: Plain-text password from the login request.
        password_hash: Hash stored in users.password_hash.

    Returns:
        bool: True if the password matches.
    """
    try:
        return _pwd_context.verify(password, password_hash)
    except ValueError:
        return False
