"""
Integration test for health endpoint.
Verifies the FastAPI app responds with 200 on GET /health.
"""
import pytest
from httpx import AsyncClient, ASGITransport

from pgfinder.api import app as app_module
from pgfinder.api.app import app


@pytest.mark.asyncio
async def test_health_endpoint():
    """Test that /health returns 200 with database status."""
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        response = await client.get("/health")
        assert response.status_code == 200
        assert response.json() == {"status": "ok", "database": "connected"}


@pytest.mark.asyncio
async def test_health_reports_unavailable_database(monkeypatch):
    monkeypatch.setattr(app_module, "is_database_available", lambda: False)

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        response = await client.get("/health")
        assert response.status_code == 200
        assert response.json()["database"] == "unavailable"
