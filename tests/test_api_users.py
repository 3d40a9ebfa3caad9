"""
Tests for the admin-only /users endpoints.

CHANGELOG:
- 2026-10-15: Initial creation
"""

from collections.abc import Callable
from unittest.mock import AsyncMock, patch

import pytest
from conftest import make_user
from fastapi.testclient import TestClient

from energymon.db.models import User
from energymon.errors import ConflictError
from energymon.services.users import UserPatch

STORE = "energymon.services.users"


@pytest.fixture(autouse=True)
def _as_admin(login_as: Callable[[User], None], admin_user: User) -> None:
    login_as(admin_user)


class TestAdminGate:
    def test_non_admin_gets_403(
        self, client: TestClient, login_as: Callable[[User], None], regular_user: User
    ) -> None:
        login_as(regular_user)
        for method, url in [("GET", "/users"), ("POST", "/users"), ("DELETE", "/users/5")]:
            response = client.request(method, url, json={"username": "eve", "password": "secret1"})
            assert response.status_code == 403, url
            assert response.json() == {"error": "Admin privileges required"}


class TestListUsers:
    @patch(f"{STORE}.list_users", new_callable=AsyncMock)
    def test_lists_without_password_hash(self, mock_list: AsyncMock, client: TestClient) -> None:
        mock_list.return_value = [make_user(3, "carol", False), make_user(1, "admin", True)]

        response = client.get("/users")

        assert response.status_code == 200
        body = response.json()
        assert body["total"] == 2
        assert [u["username"] for u in body["users"]] == ["carol", "admin"]
        assert "password_hash" not in response.text


class TestCreateUser:
    @patch(f"{STORE}.create_user", new_callable=AsyncMock)
    def test_creates_user(self, mock_create: AsyncMock, client: TestClient) -> None:
        mock_create.return_value = make_user(4, "dave", False)

        response = client.post("/users", json={"username": "dave", "password": "secret1"})

        assert response.status_code == 201
        assert response.json()["message"] == "User created successfully"
        assert response.json()["user"]["username"] == "dave"
        mock_create.assert_awaited_once()
        assert mock_create.await_args.args[1:] == ("dave", "secret1", False)

    @patch(f"{STORE}.create_user", new_callable=AsyncMock)
    def test_short_username_returns_400(self, mock_create: AsyncMock, client: TestClient) -> None:
        response = client.post("/users", json={"username": "ab", "password": "secret1"})

        assert response.status_code == 400
        assert response.json() == {"error": "Username must be at least 3 characters"}
        mock_create.assert_not_awaited()

    def test_short_password_returns_400(self, client: TestClient) -> None:
        response = client.post("/users", json={"username": "dave", "password": "12345"})

        assert response.status_code == 400
        assert response.json() == {"error": "Password must be at least 6 characters"}

    def test_missing_fields_return_400(self, client: TestClient) -> None:
        response = client.post("/users", json={"username": "dave"})

        assert response.status_code == 400
        assert response.json() == {"error": "Username and password required"}

    @patch(f"{STORE}.create_user", new_callable=AsyncMock)
    def test_duplicate_returns_409(self, mock_create: AsyncMock, client: TestClient) -> None:
        mock_create.side_effect = ConflictError("Username already exists")

        response = client.post("/users", json={"username": "admin", "password": "secret1"})

        assert response.status_code == 409
        assert response.json() == {"error": "Username already exists"}


class TestGetUser:
    @patch(f"{STORE}.get_user", new_callable=AsyncMock, return_value=None)
    def test_missing_returns_404(self, mock_get: AsyncMock, client: TestClient) -> None:
        response = client.get("/users/99")

        assert response.status_code == 404
        assert response.json() == {"error": "User not found"}

    def test_non_integer_id_returns_400(self, client: TestClient) -> None:
        response = client.get("/users/abc")

        assert response.status_code == 400
        assert response.json() == {"error": "Invalid ID"}

    def test_non_positive_id_returns_400(self, client: TestClient) -> None:
        assert client.get("/users/0").json() == {"error": "Invalid ID"}


class TestUpdateUser:
    @patch(f"{STORE}.update_user", new_callable=AsyncMock)
    def test_only_present_fields_are_patched(
        self, mock_update: AsyncMock, client: TestClient
    ) -> None:
        mock_update.return_value = make_user(3, "carol", True)

        response = client.put("/users/3", json={"is_admin": True})

        assert response.status_code == 200
        assert response.json()["message"] == "User updated successfully"
        assert mock_update.await_args.args[1:] == (3, UserPatch(is_admin=True))

    def test_empty_body_returns_400(self, client: TestClient) -> None:
        response = client.put("/users/3", json={})

        assert response.status_code == 400
        assert response.json() == {"error": "No fields provided for update"}

    def test_explicit_null_returns_400(self, client: TestClient) -> None:
        response = client.put("/users/3", json={"username": None})

        assert response.status_code == 400
        assert response.json() == {"error": "username cannot be null"}

    def test_short_username_returns_400(self, client: TestClient) -> None:
        response = client.put("/users/3", json={"username": "xy"})

        assert response.json() == {"error": "Username must be at least 3 characters"}

    @patch(f"{STORE}.update_user", new_callable=AsyncMock, return_value=None)
    def test_missing_returns_404(self, mock_update: AsyncMock, client: TestClient) -> None:
        response = client.put("/users/99", json={"password": "secret1"})

        assert response.status_code == 404

    @patch(f"{STORE}.update_user", new_callable=AsyncMock)
    def test_rename_conflict_returns_409(self, mock_update: AsyncMock, client: TestClient) -> None:
        mock_update.side_effect = ConflictError("Username already exists")

        response = client.put("/users/3", json={"username": "admin"})

        assert response.status_code == 409


class TestDeleteUser:
    @patch(f"{STORE}.delete_user", new_callable=AsyncMock)
    def test_self_delete_returns_400(self, mock_delete: AsyncMock, client: TestClient) -> None:
        response = client.delete("/users/1")

        assert response.status_code == 400
        assert response.json() == {"error": "You cannot delete your own user"}
        mock_delete.assert_not_awaited()

    @patch(f"{STORE}.delete_user", new_callable=AsyncMock, return_value=True)
    def test_deletes_other_user(self, mock_delete: AsyncMock, client: TestClient) -> None:
        response = client.delete("/users/3")

        assert response.status_code == 200
        assert response.json() == {"message": "User deleted successfully", "id": 3}

    @patch(f"{STORE}.delete_user", new_callable=AsyncMock, return_value=False)
    def test_missing_returns_404(self, mock_delete: AsyncMock, client: TestClient) -> None:
        assert client.delete("/users/99").status_code == 404
