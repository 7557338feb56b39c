"""Tests for the health check endpoint."""

import pytest
from httpx import ASGITransport, AsyncClient

from craftmatch.main import create_app


@pytest.mark.asyncio
async def test_health_before_startup_reports_starting():
    """Without the lifespan the pipeline is not built yet, but health still answers."""
    transport = ASGITransport(app=create_app())
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        response = await client.get("/api/v1/health")

    assert response.status_code == 200
    data = response.json()
    assert data["status"] == "starting"
    assert "version" in data
    assert "environment" in data
    assert "professions" not in data


@pytest.mark.asyncio
async def test_health_summarises_pipeline(client, catalog):
    response = await client.get("/api/v1/health")

    data = response.json()
    assert data["status"] == "healthy"
    assert data["professions"] == len(catalog.names)
    assert data["aiFallback"] == "disabled"
    assert data["decisionRecorder"] == "stopped"
