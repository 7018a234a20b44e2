"""Audit endpoints."""

from fastapi import APIRouter, status

from api.deps import OrchestratorDep
from api.schemas import ErrorResponse
from api.schemas.audit import AuditCreate, AuditEndpointInfo, AuditResponse
from api.services.audit_service import submit_audit

router = APIRouter(prefix="/audit", tags=["Audit"])


@router.post(
    "",
    response_model=AuditResponse,
    status_code=status.HTTP_200_OK,
    responses={
        status.HTTP_400_BAD_REQUEST: {"model": ErrorResponse},
        status.HTTP_500_INTERNAL_SERVER_ERROR: {"model": ErrorResponse},
    },
)
async def create_audit(payload: AuditCreate, orchestrator: OrchestratorDep) -> AuditResponse:
    """
    Run a live SEO audit for a domain in a target market.

    Always returns a complete report when the input is valid. Sections
    whose provider failed or is not configured are marked `fallback`
    and carry placeholder content.
    """
    report = await submit_audit(
        payload.domain,
        payload.market,
        language=payload.language,
        orchestrator=orchestrator,
    )
    return AuditResponse.from_report(report)


@router.get("", response_model=AuditEndpointInfo)
async def describe_audit() -> AuditEndpointInfo:
    """Describe the audit endpoint."""
    return AuditEndpointInfo(
        message="SEO Live Audit API with Perplexity Sonar Pro SERP Research",
        endpoints={
            "POST": "Submit domain and market for comprehensive SERP-based audit",
            "parameters": {
                "domain": 'string - The domain to audit (e.g., "example.com")',
                "market": 'string - Target market/country (e.g., "US", "UK", "DE")',
                "language": 'string - Optional report language (default "en")',
            },
            "features": [
                "Perplexity Sonar Pro SERP research and analysis",
                "AI-powered SEO insights with live search data",
                "DataForSEO technical, content and competitor data",
                "Market-specific recommendations",
                "Placeholder sections when a provider is unavailable",
            ],
        },
    )
