"""SEO Live Audit - orchestration package.

Use explicit imports:
    from audit.models import AuditRequest, StepKind, StepOutcome
    from audit.providers import PerplexityAdapter, DataForSEOAdapter, get_adapter
    from audit.fallback import FallbackGenerator
    from audit.orchestrator import AuditOrchestrator, run_audit
    from audit.reports.assembler import ReportAssembler
"""

__all__ = [
    "AuditRequest",
    "StepKind",
    "StepOutcome",
    "AuditOrchestrator",
    "run_audit",
    "FallbackGenerator",
    "ReportAssembler",
]
