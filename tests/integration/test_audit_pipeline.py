"""Integration test for the full audit pipeline.

Runs the real Perplexity and DataForSEO adapters against scripted HTTP
transports, through the orchestrator and the HTTP API.
"""

import httpx
import pytest
from httpx import ASGITransport, AsyncClient

from audit.orchestrator import AuditOrchestrator, OrchestratorConfig
from audit.providers import DataForSEOAdapter, PerplexityAdapter, ProviderConfig

ON_PAGE = {
    "status_code": 20000,
    "tasks": [
        {
            "status_code": 20000,
            "result": [
                {
                    "items": [
                        {
                            "onpage_score": 72,
                            "page_timing": {"largest_contentful_paint": 3100},
                            "checks": {"high_loading_time": True, "no_description": True},
                        }
                    ]
                }
            ],
        }
    ],
}

RANKED_KEYWORDS = {
    "status_code": 20000,
    "tasks": [
        {
            "status_code": 20000,
            "result": [
                {
                    "total_count": 12,
                    "metrics": {"organic": {"pos_1": 1, "pos_2_3": 2, "pos_4_10": 4, "etv": 88.0}},
                    "items": [
                        {
                            "keyword_data": {
                                "keyword": "running shoes",
                                "keyword_info": {"search_volume": 9900},
                            },
                            "ranked_serp_element": {"serp_item": {"rank_group": 14}},
                        }
                    ],
                }
            ],
        }
    ],
}

COMPETITORS = {
    "status_code": 20000,
    "tasks": [
        {
            "status_code": 20000,
            "result": [{"total_count": 1, "items": [{"domain": "rival.example", "intersections": 40}]}],
        }
    ],
}


def dataforseo_handler(request: httpx.Request) -> httpx.Response:
    path = request.url.path
    if path.endswith("/on_page/instant_pages"):
        return httpx.Response(200, json=ON_PAGE)
    if path.endswith("/ranked_keywords/live"):
        return httpx.Response(200, json=RANKED_KEYWORDS)
    if path.endswith("/competitors_domain/live"):
        return httpx.Response(200, json=COMPETITORS)
    return httpx.Response(404, json={"status_code": 40400})


def perplexity_timeout_handler(request: httpx.Request) -> httpx.Response:
    raise httpx.ReadTimeout("timed out", request=request)


def perplexity_ok_handler(request: httpx.Request) -> httpx.Response:
    return httpx.Response(
        200,
        json={
            "model": "sonar-pro",
            "choices": [
                {
                    "message": {
                        "content": "1. Add product schema to category pages\n"
                        "2. Target 'best running shoes' comparison intent"
                    }
                }
            ],
            "citations": ["https://example.org/serp"],
        },
    )


def build_orchestrator(perplexity_handler) -> AuditOrchestrator:
    ai = PerplexityAdapter(
        ProviderConfig(api_key="pplx-test", transport=httpx.MockTransport(perplexity_handler))
    )
    data = DataForSEOAdapter(
        ProviderConfig(
            login="user",
            password="secret",
            transport=httpx.MockTransport(dataforseo_handler),
        )
    )
    return AuditOrchestrator(ai, data, config=OrchestratorConfig(step_timeout_seconds=5.0))


async def post_audit(orchestrator: AuditOrchestrator, body: dict) -> httpx.Response:
    from api.deps import get_orchestrator
    from api.main import app

    app.dependency_overrides[get_orchestrator] = lambda: orchestrator
    try:
        async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
            return await ac.post("/api/audit", json=body)
    finally:
        app.dependency_overrides.pop(get_orchestrator, None)


@pytest.mark.asyncio
@pytest.mark.integration
async def test_ai_timeout_data_success() -> None:
    """AI provider times out, structured data succeeds."""
    response = await post_audit(
        build_orchestrator(perplexity_timeout_handler),
        {"domain": "example.com", "market": "US"},
    )

    assert response.status_code == 200
    data = response.json()
    sections = data["sections"]

    for kind in ("serp_research", "ai_analysis", "local"):
        assert sections[kind]["status"] == "fallback"
        assert sections[kind]["error"].startswith("timeout")
        assert set(sections[kind]["payload"]) == {"content", "citations", "model"}

    assert sections["technical"]["status"] == "ok"
    assert sections["technical"]["payload"]["metrics"]["onpage_score"] == 72
    assert sections["content"]["payload"]["metrics"]["ranked_keywords"] == 12
    assert sections["competitor"]["payload"]["items"] == [
        "Benchmark against rival.example (40 shared keywords)"
    ]

    recommendations = data["recommendations"]
    assert "Target SERP-identified keyword opportunities in US" in recommendations
    assert "Resolve high loading time" in recommendations


@pytest.mark.asyncio
@pytest.mark.integration
async def test_all_providers_answer() -> None:
    """Every provider answers: every section is real data."""
    response = await post_audit(
        build_orchestrator(perplexity_ok_handler),
        {"domain": "https://example.com", "market": "UK"},
    )

    assert response.status_code == 200
    data = response.json()
    assert all(section["status"] == "ok" for section in data["sections"].values())
    assert data["sections"]["serp_research"]["payload"]["citations"] == [
        {"title": "https://example.org/serp", "url": "https://example.org/serp", "snippet": ""}
    ]
    assert data["recommendations"][0] == "Add product schema to category pages"
