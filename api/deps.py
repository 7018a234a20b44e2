"""FastAPI dependencies for dependency injection."""

from typing import Annotated

from fastapi import Depends

from api.config import Settings, get_settings
from audit.orchestrator import AuditOrchestrator, OrchestratorConfig
from audit.providers import (
    DataForSEOAdapter,
    PerplexityAdapter,
    ProviderAdapter,
    ProviderConfig,
)

__all__ = ["SettingsDep", "OrchestratorDep", "build_adapters", "get_orchestrator"]


# Settings dependency
SettingsDep = Annotated[Settings, Depends(get_settings)]


def build_adapters(settings: Settings) -> tuple[ProviderAdapter, ProviderAdapter]:
    """Build the (AI, structured-data) adapter pair with explicit credentials."""
    timeout = settings.audit_step_timeout_seconds

    ai_adapter = PerplexityAdapter(
        ProviderConfig(
            api_key=settings.perplexity_api_key or "",
            base_url=settings.perplexity_base_url,
            model=settings.perplexity_model,
            timeout_seconds=timeout,
        )
    )
    data_adapter = DataForSEOAdapter(
        ProviderConfig(
            login=settings.dataforseo_login or "",
            password=settings.dataforseo_password or "",
            base_url=settings.dataforseo_base_url,
            timeout_seconds=timeout,
        )
    )
    return ai_adapter, data_adapter


def get_orchestrator(settings: SettingsDep) -> AuditOrchestrator:
    """Get an orchestrator wired to the configured providers."""
    ai_adapter, data_adapter = build_adapters(settings)
    return AuditOrchestrator(
        ai_adapter=ai_adapter,
        data_adapter=data_adapter,
        config=OrchestratorConfig(
            step_timeout_seconds=settings.audit_step_timeout_seconds,
            language=settings.audit_default_language,
            use_fallbacks=settings.audit_use_fallbacks,
        ),
    )


OrchestratorDep = Annotated[AuditOrchestrator, Depends(get_orchestrator)]
