"""Health check endpoints."""

import time
from datetime import UTC, datetime

import structlog
from fastapi import APIRouter
from pydantic import BaseModel, Field

from api.config import APP_VERSION, get_settings
from audit.models import AI_STEP_KINDS, DATA_STEP_KINDS, DECLARED_STEP_KINDS, StepKind

router = APIRouter(tags=["Health"])
logger = structlog.get_logger()

# Track server start time for uptime calculation
_server_start_time = time.time()


class HealthResponse(BaseModel):
    """Health check response."""

    status: str = Field(..., description="Health status: healthy")
    timestamp: str = Field(..., description="ISO 8601 timestamp")
    version: str = Field(..., description="API version")
    uptime_seconds: int = Field(..., description="Server uptime in seconds")


class ProviderCheck(BaseModel):
    """Configuration state of one provider."""

    status: str = Field(..., description="Status: configured, unconfigured")
    degraded_steps: list[str] = Field(
        default_factory=list, description="Steps served by fallback content while unconfigured"
    )


class ReadyResponse(BaseModel):
    """Readiness check response with provider status."""

    status: str = Field(..., description="Overall status: ready, degraded")
    timestamp: str = Field(..., description="ISO 8601 timestamp")
    version: str = Field(..., description="API version")
    uptime_seconds: int = Field(..., description="Server uptime in seconds")
    providers: dict[str, ProviderCheck] = Field(..., description="Per-provider configuration")


class ApiInfoResponse(BaseModel):
    """API information response."""

    name: str
    version: str
    env: str
    docs: str | None


def _uptime() -> int:
    return int(time.time() - _server_start_time)


def _steps(kinds: frozenset[StepKind]) -> list[str]:
    return [kind.value for kind in DECLARED_STEP_KINDS if kind in kinds]


@router.get("/health", response_model=HealthResponse)
async def health_check() -> HealthResponse:
    """
    Basic health check endpoint.

    Returns healthy if the API is running. Does not check providers.
    Use /ready for provider configuration.
    """
    return HealthResponse(
        status="healthy",
        timestamp=datetime.now(UTC).isoformat(),
        version=APP_VERSION,
        uptime_seconds=_uptime(),
    )


@router.get("/ready", response_model=ReadyResponse)
async def readiness_check() -> ReadyResponse:
    """
    Readiness check with provider configuration.

    Missing credentials never make the service unready: audits still
    succeed with fallback sections, so the status is only "degraded".
    """
    settings = get_settings()

    providers = {
        "perplexity": ProviderCheck(
            status="configured" if settings.perplexity_configured else "unconfigured",
            degraded_steps=[] if settings.perplexity_configured else _steps(AI_STEP_KINDS),
        ),
        "dataforseo": ProviderCheck(
            status="configured" if settings.dataforseo_configured else "unconfigured",
            degraded_steps=[] if settings.dataforseo_configured else _steps(DATA_STEP_KINDS),
        ),
    }

    unconfigured = [name for name, check in providers.items() if check.status == "unconfigured"]
    if unconfigured:
        logger.info("providers_unconfigured", providers=unconfigured)

    return ReadyResponse(
        status="degraded" if unconfigured else "ready",
        timestamp=datetime.now(UTC).isoformat(),
        version=APP_VERSION,
        uptime_seconds=_uptime(),
        providers=providers,
    )


@router.get("/", response_model=ApiInfoResponse)
async def root() -> ApiInfoResponse:
    """Root endpoint with API information."""
    settings = get_settings()
    return ApiInfoResponse(
        name="SEO Live Audit API",
        version=APP_VERSION,
        env=settings.env,
        docs="/docs" if settings.debug else None,
    )
