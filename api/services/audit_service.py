"""Audit service - the inbound submitAudit operation."""

import structlog

from api.config import get_settings
from api.sentry import set_audit_context
from audit.orchestrator import AuditOrchestrator
from audit.reports.contract import AuditReport

logger = structlog.get_logger(__name__)


async def submit_audit(
    domain: str | None,
    market: str | None,
    *,
    language: str | None = None,
    orchestrator: AuditOrchestrator | None = None,
) -> AuditReport:
    """
    Run a full audit for a domain/market pair.

    Args:
        domain: Domain to audit
        market: Target market code
        language: Report language, defaults to the configured language
        orchestrator: Orchestrator to use; built from settings when omitted

    Returns:
        Complete AuditReport (degraded sections are marked, never omitted)

    Raises:
        InvalidRequestError: If domain or market is missing or blank
        InternalError: If the report cannot be assembled
    """
    if orchestrator is None:
        from api.deps import get_orchestrator

        orchestrator = get_orchestrator(get_settings())

    logger.info("audit_submitted", domain=domain, market=market)
    set_audit_context(str(domain or ""), str(market or ""))
    return await orchestrator.submit(domain, market, language)
