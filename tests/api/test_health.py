"""API tests for health endpoints."""

from httpx import ASGITransport, AsyncClient

from billpro.api.main import app


class TestHealth:
    async def test_root_health(self, client):
        response = await client.get("/health")

        assert response.status_code == 200
        assert response.json()["status"] == "healthy"

    async def test_api_health(self, client):
        response = await client.get("/api/health")

        data = response.json()
        assert response.status_code == 200
        assert data["status"] == "healthy"
        assert data["uptime_seconds"] >= 0

    async def test_response_time_header(self, client):
        response = await client.get("/api/health", headers={"X-Request-ID": "req-42"})

        assert response.headers["X-Request-ID"] == "req-42"
        assert response.headers["X-Response-Time"].endswith("ms")


class TestDatabaseHealth:
    async def test_database_available(self, billing_db):
        transport = ASGITransport(app=app)
        async with AsyncClient(transport=transport, base_url="http://test") as ac:
            response = await ac.get("/api/health/db")

        data = response.json()
        assert response.status_code == 200
        assert data["status"] == "healthy"
        assert data["database"]["available"] is True
        assert data["database"]["latency_ms"] >= 0
