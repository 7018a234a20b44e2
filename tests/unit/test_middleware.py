"""Tests for middleware components."""

import pytest
from httpx import AsyncClient


@pytest.mark.asyncio
async def test_request_id_generated(client: AsyncClient) -> None:
    """A request ID is generated when none is sent."""
    response = await client.get("/api/health")

    assert response.status_code == 200
    assert response.headers.get("X-Request-ID")


@pytest.mark.asyncio
async def test_request_id_echoed(client: AsyncClient) -> None:
    """An incoming request ID is echoed back."""
    response = await client.get("/api/health", headers={"X-Request-ID": "req-123"})

    assert response.headers["X-Request-ID"] == "req-123"


@pytest.mark.asyncio
async def test_request_id_on_error_responses(client: AsyncClient) -> None:
    """Error responses carry the request ID too."""
    response = await client.post(
        "/api/audit",
        json={"domain": "", "market": "US"},
        headers={"X-Request-ID": "req-400"},
    )

    assert response.status_code == 400
    assert response.headers["X-Request-ID"] == "req-400"
