"""API tests for health, metrics and service info endpoints."""

from __future__ import annotations

from unittest.mock import AsyncMock


class TestHealthEndpoints:
    """Tests for /api/v1/health and /api/v1/health/live."""

    async def test_healthy_with_console_backends(self, client):
        response = await client.get("/api/v1/health")

        assert response.status_code == 200
        body = response.json()
        assert body["status"] == "healthy"
        assert set(body["dependencies"]) == {"email", "push"}
        assert body["dependencies"]["email"]["details"]["backend"] == "console"
        assert body["hub"] == {"running": True, "connections": 0, "rooms": 0}

    async def test_unreachable_relay_returns_503(self, app, client):
        app.state.email.health_check = AsyncMock(return_value=False)

        response = await client.get("/api/v1/health")

        assert response.status_code == 503
        body = response.json()
        assert body["status"] == "degraded"
        assert body["dependencies"]["email"]["status"] == "unhealthy"
        assert body["dependencies"]["push"]["status"] == "healthy"

    async def test_liveness(self, client):
        response = await client.get("/api/v1/health/live")

        assert response.status_code == 200
        assert response.json()["status"] == "healthy"

    async def test_health_needs_no_token(self, client):
        response = await client.get("/api/v1/health", headers={"Authorization": "Bearer junk"})

        assert response.status_code == 200


class TestObservabilityEndpoints:
    async def test_metrics_exposition(self, client):
        await client.get("/api/v1/health/live")

        response = await client.get("/metrics")

        assert response.status_code == 200
        assert response.headers["content-type"].startswith("text/plain")
        assert "notification_service_http_requests_total" in response.text
        assert "notification_service_websocket_connections_active" in response.text

    async def test_service_info(self, client):
        response = await client.get("/")

        assert response.status_code == 200
        body = response.json()
        assert body["service"]
        assert body["health"] == "/api/v1/health"

    async def test_request_id_echoed(self, client):
        response = await client.get("/api/v1/health/live", headers={"X-Request-ID": "trace-me"})

        assert response.headers["x-request-id"] == "trace-me"
