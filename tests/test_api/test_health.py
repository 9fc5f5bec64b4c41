"""Tests for health check endpoints."""

from fastapi.testclient import TestClient

from shop_agent.api.main import app

client = TestClient(app)


class TestHealthEndpoint:
    """Tests for /health endpoint."""

    def test_health_returns_200(self):
        response = client.get("/health")
        assert response.status_code == 200

    def test_health_returns_healthy_status(self):
        data = client.get("/health").json()
        assert data["status"] == "healthy"

    def test_health_includes_version(self):
        data = client.get("/health").json()
        assert data["version"] == "0.1.0"

    def test_health_includes_default_provider(self):
        data = client.get("/health").json()
        assert data["provider"] in ("deepseek", "gemini")
