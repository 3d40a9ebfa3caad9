"""
Authentication package.

Exports password hashing helpers and the signed access token codec used by
the API dependencies in energymon.api.deps.

CHANGELOG:
- 2026-10-15: Initial creation

TODO:
- None
"""

from energymon.auth.passwords import hash_password, verify_password
from energymon.auth.tokens import TokenClaims, create_access_token, decode_access_token

__all__ = [
    "TokenClaims",
    "create_access_token",
    "decode_access_token",
    "hash_password",
    "verify_password",
]
