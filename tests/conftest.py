"""Pytest configuration and fixtures."""

import os
from collections.abc import AsyncGenerator, Iterator

import pytest
from httpx import ASGITransport, AsyncClient

# Set test environment before any app code runs; blank credentials keep
# every real provider unconfigured so no test reaches the network
os.environ["ENV"] = "test"
os.environ["PERPLEXITY_API_KEY"] = ""
os.environ["DATAFORSEO_LOGIN"] = ""
os.environ["DATAFORSEO_PASSWORD"] = ""
os.environ["SENTRY_DSN"] = ""


@pytest.fixture(autouse=True)
def clear_settings_cache() -> Iterator[None]:
    """Re-read settings for every test."""
    from api.config import get_settings

    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture
def ai_adapter():
    """Configured mock adapter standing in for the AI provider."""
    from audit.providers import MockAdapter

    return MockAdapter()


@pytest.fixture
def data_adapter():
    """Configured mock adapter standing in for the structured-data provider."""
    from audit.providers import MockAdapter

    return MockAdapter()


@pytest.fixture
def orchestrator(ai_adapter, data_adapter):
    """Orchestrator over the mock adapters with a short step timeout."""
    from audit.orchestrator import AuditOrchestrator, OrchestratorConfig

    return AuditOrchestrator(
        ai_adapter=ai_adapter,
        data_adapter=data_adapter,
        config=OrchestratorConfig(step_timeout_seconds=0.5),
    )


@pytest.fixture
async def client() -> AsyncGenerator[AsyncClient, None]:
    """Create async test client using the settings-built (unconfigured) providers."""
    from api.main import app

    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
    ) as ac:
        yield ac


@pytest.fixture
async def mock_client(orchestrator) -> AsyncGenerator[AsyncClient, None]:
    """Create async test client whose audits run against the mock adapters."""
    from api.deps import get_orchestrator
    from api.main import app

    app.dependency_overrides[get_orchestrator] = lambda: orchestrator
    try:
        async with AsyncClient(
            transport=ASGITransport(app=app),
            base_url="http://test",
        ) as ac:
            yield ac
    finally:
        app.dependency_overrides.pop(get_orchestrator, None)
