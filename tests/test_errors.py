"""
Tests for the JSON error handlers and request logging plumbing.

Uses a bare FastAPI app with only the error handlers installed, so each
failure mode can be raised directly from a route.

CHANGELOG:
- 2026-10-15: Initial creation
"""

import json
import logging

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient
from sqlalchemy.exc import OperationalError

from energymon.db.session import Database
from energymon.errors import (
    AuthError,
    ConflictError,
    MalformedInputError,
    register_error_handlers,
)
from energymon.logging_config import JsonFormatter


@pytest.fixture()
def error_client() -> TestClient:
    app = FastAPI()
    register_error_handlers(app)

    @app.get("/auth")
    async def _auth() -> None:
        raise AuthError("Invalid or expired token")

    @app.get("/conflict")
    async def _conflict() -> None:
        raise ConflictError("Username already exists")

    @app.get("/malformed")
    async def _malformed() -> None:
        raise MalformedInputError("Malformed CSV at line 2")

    @app.get("/db")
    async def _db() -> None:
        raise OperationalError("SELECT 1", {}, Exception("password=hunter2"))

    @app.get("/boom")
    async def _boom() -> None:
        raise RuntimeError("secret detail")

    @app.get("/items/{item_id}")
    async def _item(item_id: int) -> dict:
        return {"id": item_id}

    return TestClient(app, raise_server_exceptions=False)


class TestErrorHandlers:
    def test_auth_error_has_challenge_header(self, error_client: TestClient) -> None:
        response = error_client.get("/auth")

        assert response.status_code == 401
        assert response.json() == {"error": "Invalid or expired token"}
        assert response.headers["www-authenticate"] == "Bearer"

    def test_conflict(self, error_client: TestClient) -> None:
        response = error_client.get("/conflict")

        assert response.status_code == 409
        assert response.json() == {"error": "Username already exists"}

    def test_malformed_input_is_400(self, error_client: TestClient) -> None:
        assert error_client.get("/malformed").status_code == 400

    def test_database_error_is_masked(self, error_client: TestClient) -> None:
        response = error_client.get("/db")

        assert response.status_code == 500
        assert response.json() == {"error": "Internal server error"}
        assert "hunter2" not in response.text

    def test_unhandled_error_is_masked(self, error_client: TestClient) -> None:
        response = error_client.get("/boom")

        assert response.status_code == 500
        assert response.json() == {"error": "Internal server error"}

    def test_bad_path_param_is_invalid_id(self, error_client: TestClient) -> None:
        response = error_client.get("/items/abc")

        assert response.status_code == 400
        assert response.json() == {"error": "Invalid ID"}


class TestJsonFormatter:
    def test_renders_json_line(self) -> None:
        record = logging.LogRecord("energymon.test", logging.INFO, __file__, 1, "hello %s", ("x",), None)

        entry = json.loads(JsonFormatter().format(record))

        assert entry["level"] == "INFO"
        assert entry["logger"] == "energymon.test"
        assert entry["msg"] == "hello x"


class TestDatabase:
    @pytest.mark.asyncio
    async def test_session_before_open_raises(self) -> None:
        db = Database("postgresql+asyncpg://u:p@localhost/db")

        with pytest.raises(RuntimeError):
            async for _ in db.session():
                pass

    @pytest.mark.asyncio
    async def test_open_is_idempotent_and_close_resets(self) -> None:
        db = Database("postgresql+asyncpg://u:p@localhost/db")
        db.open()
        engine = db.engine
        db.open()

        assert db.engine is engine
        assert db.is_open

        await db.close()
        assert not db.is_open
