"""
Tests for password hashing, access tokens and the bearer-token dependencies.

CHANGELOG:
- 2026-10-15: Initial creation
"""

from datetime import UTC, datetime, timedelta
from unittest.mock import AsyncMock, patch

from conftest import TEST_JWT_SECRET
from fastapi.testclient import TestClient

from energymon.auth.passwords import hash_password, verify_password
from energymon.auth.tokens import create_access_token, decode_access_token
from energymon.db.models import User

# ---------------------------------------------------------------------------
# Passwords
# ---------------------------------------------------------------------------


class TestPasswords:
    def test_hash_is_salted_and_verifies(self) -> None:
        first = hash_password("secret123")
        second = hash_password("secret123")

        assert first != second
        assert first != "secret123"
        assert verify_password("secret123", first)
        assert verify_password("secret123", second)

    def test_wrong_password_rejected(self) -> None:
        assert not verify_password("wrong", hash_password("secret123"))

    def test_malformed_hash_is_a_mismatch(self) -> None:
        assert not verify_password("secret123", "not-a-bcrypt-hash")


# ---------------------------------------------------------------------------
# Tokens
# ---------------------------------------------------------------------------


class TestTokens:
    def test_round_trip_claims(self) -> None:
        token = create_access_token(7, "alice", True, TEST_JWT_SECRET, 60)

        claims = decode_access_token(token, TEST_JWT_SECRET)

        assert claims is not None
        assert claims.user_id == 7
        assert claims.username == "alice"
        assert claims.is_admin is True

    def test_expiry_follows_lifetime(self) -> None:
        now = datetime.now(UTC).replace(microsecond=0)
        token = create_access_token(1, "a", False, TEST_JWT_SECRET, 30, now=now)

        claims = decode_access_token(token, TEST_JWT_SECRET)

        assert claims is not None
        assert claims.expires_at == now + timedelta(minutes=30)

    def test_expired_token_rejected(self) -> None:
        issued = datetime.now(UTC) - timedelta(hours=2)
        token = create_access_token(1, "a", False, TEST_JWT_SECRET, 60, now=issued)
        assert decode_access_token(token, TEST_JWT_SECRET) is None

    def test_wrong_secret_rejected(self) -> None:
        token = create_access_token(1, "a", False, TEST_JWT_SECRET, 60)
        assert decode_access_token(token, "another-secret-0123456789") is None

    def test_garbage_rejected(self) -> None:
        assert decode_access_token("not.a.jwt", TEST_JWT_SECRET) is None


# ---------------------------------------------------------------------------
# get_current_user / require_admin through the API
# ---------------------------------------------------------------------------


def _bearer(user: User) -> dict[str, str]:
    token = create_access_token(user.id, user.username, user.is_admin, TEST_JWT_SECRET, 60)
    return {"Authorization": f"Bearer {token}"}


class TestBearerDependency:
    """Token checks on an admin-only route (GET /users)."""

    URL = "/users"

    def test_missing_token_returns_401(self, client: TestClient) -> None:
        response = client.get(self.URL)
        assert response.status_code == 401
        assert response.json() == {"error": "Access token required"}
        assert response.headers["www-authenticate"] == "Bearer"

    def test_invalid_token_returns_401(self, client: TestClient) -> None:
        response = client.get(self.URL, headers={"Authorization": "Bearer garbage"})
        assert response.status_code == 401
        assert response.json() == {"error": "Invalid or expired token"}

    def test_non_bearer_scheme_returns_401(self, client: TestClient) -> None:
        response = client.get(self.URL, headers={"Authorization": "Basic abc"})
        assert response.status_code == 401
        assert response.json() == {"error": "Access token required"}

    def test_deleted_user_returns_401(self, client: TestClient, admin_user: User) -> None:
        with patch("energymon.api.deps.get_user", new_callable=AsyncMock, return_value=None):
            response = client.get(self.URL, headers=_bearer(admin_user))
        assert response.status_code == 401
        assert response.json() == {"error": "User not found"}

    def test_non_admin_returns_403(self, client: TestClient, regular_user: User) -> None:
        with patch(
            "energymon.api.deps.get_user", new_callable=AsyncMock, return_value=regular_user
        ):
            response = client.get(self.URL, headers=_bearer(regular_user))
        assert response.status_code == 403
        assert response.json() == {"error": "Admin privileges required"}

    def test_admin_passes(self, client: TestClient, admin_user: User) -> None:
        with (
            patch("energymon.api.deps.get_user", new_callable=AsyncMock, return_value=admin_user),
            patch(
                "energymon.services.users.list_users",
                new_callable=AsyncMock,
                return_value=[admin_user],
            ),
        ):
            response = client.get(self.URL, headers=_bearer(admin_user))
        assert response.status_code == 200
        assert response.json()["total"] == 1

    def test_admin_flag_is_reread_from_database(
        self, client: TestClient, admin_user: User
    ) -> None:
        """A token issued while admin no longer grants admin after demotion."""
        demoted = User(
            id=admin_user.id,
            username=admin_user.username,
            password_hash="x",
            is_admin=False,
            created_at=admin_user.created_at,
        )
        with patch("energymon.api.deps.get_user", new_callable=AsyncMock, return_value=demoted):
            response = client.get(self.URL, headers=_bearer(admin_user))
        assert response.status_code == 403
