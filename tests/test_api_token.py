"""
Tests for POST /token.

CHANGELOG:
- 2026-10-15: Initial creation
"""

from unittest.mock import AsyncMock, patch

from conftest import TEST_JWT_SECRET
from fastapi.testclient import TestClient

from energymon.auth.tokens import decode_access_token
from energymon.db.models import User

TOKEN_URL = "/token"


class TestLogin:
    @patch("energymon.api.token.authenticate", new_callable=AsyncMock)
    def test_valid_credentials_issue_token(
        self, mock_auth: AsyncMock, client: TestClient, admin_user: User
    ) -> None:
        mock_auth.return_value = admin_user

        response = client.post(TOKEN_URL, json={"username": "admin", "password": "admin123"})

        assert response.status_code == 200
        body = response.json()
        assert body["token_type"] == "Bearer"
        assert body["expires_in"] == 3600
        assert body["user"] == {"id": 1, "username": "admin", "is_admin": True}
        claims = decode_access_token(body["access_token"], TEST_JWT_SECRET)
        assert claims is not None
        assert claims.user_id == 1
        assert "password_hash" not in response.text

    @patch("energymon.api.token.authenticate", new_callable=AsyncMock, return_value=None)
    def test_bad_credentials_return_401(self, mock_auth: AsyncMock, client: TestClient) -> None:
        response = client.post(TOKEN_URL, json={"username": "admin", "password": "nope"})

        assert response.status_code == 401
        assert response.json() == {"error": "Invalid credentials"}

    def test_missing_password_returns_400(self, client: TestClient) -> None:
        response = client.post(TOKEN_URL, json={"username": "admin"})

        assert response.status_code == 400
        assert response.json() == {"error": "Username and password required"}

    def test_non_json_body_returns_400(self, client: TestClient) -> None:
        response = client.post(
            TOKEN_URL, content=b"{not json", headers={"Content-Type": "application/json"}
        )

        assert response.status_code == 400
        assert "error" in response.json()
