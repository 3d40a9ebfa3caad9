"""
Tests for the unauthenticated GET /health and GET / endpoints.

CHANGELOG:
- 2026-10-15: Initial creation
"""

from datetime import datetime

from fastapi.testclient import TestClient

from energymon import __version__


class TestHealth:
    def test_health_returns_ok(self, client: TestClient) -> None:
        response = client.get("/health")

        assert response.status_code == 200
        body = response.json()
        assert body["status"] == "ok"
        assert body["version"] == __version__
        assert body["timestamp"].endswith("Z")
        datetime.fromisoformat(body["timestamp"])

    def test_health_needs_no_auth(self, client: TestClient) -> None:
        assert client.get("/health").status_code == 200


class TestIndex:
    def test_lists_endpoints(self, client: TestClient) -> None:
        response = client.get("/")

        assert response.status_code == 200
        body = response.json()
        assert body["version"] == __version__
        assert "data" in body["endpoints"]

    def test_unknown_route_is_json_404(self, client: TestClient) -> None:
        response = client.get("/does-not-exist")

        assert response.status_code == 404
        assert response.json() == {"error": "Not Found"}
