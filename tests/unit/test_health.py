"""Tests for health check endpoints."""

import pytest
from httpx import AsyncClient


@pytest.mark.asyncio
async def test_health_check(client: AsyncClient) -> None:
    """Test health endpoint returns healthy status."""
    response = await client.get("/api/health")

    assert response.status_code == 200
    data = response.json()
    assert data["status"] == "healthy"
    assert "timestamp" in data
    assert data["version"] == "0.1.0"


@pytest.mark.asyncio
async def test_api_root_returns_info(client: AsyncClient) -> None:
    """Test API root endpoint returns API info."""
    response = await client.get("/api/")

    assert response.status_code == 200
    data = response.json()
    assert data["name"] == "SEO Live Audit API"
    assert data["env"] == "test"


@pytest.mark.asyncio
async def test_ready_without_credentials_is_degraded(client: AsyncClient) -> None:
    """Unconfigured providers degrade readiness but never fail it."""
    response = await client.get("/api/ready")

    assert response.status_code == 200
    data = response.json()
    assert data["status"] == "degraded"
    assert data["providers"]["perplexity"]["status"] == "unconfigured"
    assert data["providers"]["perplexity"]["degraded_steps"] == [
        "serp_research",
        "ai_analysis",
        "local",
    ]
    assert data["providers"]["dataforseo"]["degraded_steps"] == [
        "technical",
        "content",
        "competitor",
    ]


@pytest.mark.asyncio
async def test_ready_with_credentials(client: AsyncClient, monkeypatch: pytest.MonkeyPatch) -> None:
    """Configured providers make the service ready."""
    from api.config import get_settings

    monkeypatch.setenv("PERPLEXITY_API_KEY", "pplx-test")
    monkeypatch.setenv("DATAFORSEO_LOGIN", "user")
    monkeypatch.setenv("DATAFORSEO_PASSWORD", "secret")
    get_settings.cache_clear()

    response = await client.get("/api/ready")

    data = response.json()
    assert data["status"] == "ready"
    assert data["providers"]["perplexity"] == {"status": "configured", "degraded_steps": []}
    assert data["providers"]["dataforseo"] == {"status": "configured", "degraded_steps": []}
