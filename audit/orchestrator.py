"""Audit orchestrator with per-step isolation and fallbacks."""

import asyncio
import time
from collections.abc import Callable
from dataclasses import dataclass

import structlog

from api.exceptions import InternalError
from api.metrics import record_audit, record_audit_step
from audit.fallback import FallbackGenerator
from audit.models import (
    AuditRequest,
    FailureKind,
    StepKind,
    StepOutcome,
    StepStatus,
    empty_payload,
    payload_fields,
)
from audit.prompts import build_query
from audit.providers import ProviderAdapter
from audit.reports.assembler import ReportAssembler
from audit.reports.contract import AuditReport

logger = structlog.get_logger(__name__)


@dataclass
class OrchestratorConfig:
    """Configuration for an audit run."""

    step_timeout_seconds: float = 30.0
    language: str = "en"

    # Substitute placeholder payloads for failed steps
    use_fallbacks: bool = True


@dataclass(frozen=True)
class PlannedStep:
    """A step in the audit plan."""

    kind: StepKind
    adapter: ProviderAdapter
    depends_on: StepKind | None = None


# Progress callback type: (completed, total, message)
ProgressCallback = Callable[[int, int, str], None]


class AuditOrchestrator:
    """Fans an audit out to the providers and assembles one report."""

    def __init__(
        self,
        ai_adapter: ProviderAdapter,
        data_adapter: ProviderAdapter,
        fallback: FallbackGenerator | None = None,
        assembler: ReportAssembler | None = None,
        config: OrchestratorConfig | None = None,
        progress_callback: ProgressCallback | None = None,
    ):
        self.ai_adapter = ai_adapter
        self.data_adapter = data_adapter
        self.fallback = fallback or FallbackGenerator()
        self.assembler = assembler or ReportAssembler()
        self.config = config or OrchestratorConfig()
        self.progress_callback = progress_callback

    def build_step_plan(self) -> list[PlannedStep]:
        """Get the declared steps and their dependencies."""
        return [
            PlannedStep(StepKind.SERP_RESEARCH, self.ai_adapter),
            PlannedStep(StepKind.AI_ANALYSIS, self.ai_adapter, depends_on=StepKind.SERP_RESEARCH),
            PlannedStep(StepKind.TECHNICAL, self.data_adapter),
            PlannedStep(StepKind.CONTENT, self.data_adapter),
            PlannedStep(StepKind.COMPETITOR, self.data_adapter),
            PlannedStep(StepKind.LOCAL, self.ai_adapter),
        ]

    @staticmethod
    def build_chains(plan: list[PlannedStep]) -> list[list[PlannedStep]]:
        """Group steps into chains; a dependent step joins its dependency's chain."""
        chains: list[list[PlannedStep]] = []
        chain_for: dict[StepKind, list[PlannedStep]] = {}

        for step in plan:
            if step.depends_on is not None and step.depends_on in chain_for:
                chain = chain_for[step.depends_on]
                chain.append(step)
            else:
                chain = [step]
                chains.append(chain)
            chain_for[step.kind] = chain

        return chains

    def _report_progress(self, completed: int, total: int, status: str) -> None:
        """Report progress if callback is set."""
        if not self.progress_callback:
            return
        try:
            self.progress_callback(completed, total, status)
        except Exception as e:
            logger.warning("progress_callback_failed", error=str(e))

    async def submit(
        self, domain: str | None, market: str | None, language: str | None = None
    ) -> AuditReport:
        """Validate raw input and run the audit."""
        request = AuditRequest.create(domain, market, language or self.config.language)
        return await self.run(request)

    async def run(self, request: AuditRequest) -> AuditReport:
        """
        Run every audit step and assemble the report.

        Independent steps run concurrently; a dependent step runs after
        its dependency within the same chain. A failing step never
        affects its siblings.

        Args:
            request: Audit request for one domain/market pair

        Returns:
            AuditReport with every declared section present

        Raises:
            InvalidRequestError: If domain or market is blank (no provider is contacted)
            InternalError: If the outcomes cannot be assembled
            asyncio.CancelledError: If the caller cancels the run
        """
        request = AuditRequest.create(request.domain, request.market, request.language)

        plan = self.build_step_plan()
        chains = self.build_chains(plan)
        total = len(plan)
        start_time = time.perf_counter()

        log = logger.bind(domain=request.domain, market=request.market)
        log.info("audit_started", steps=total, chains=len(chains))
        self._report_progress(0, total, "Starting audit")

        outcomes: list[StepOutcome] = []

        async def run_chain(chain: list[PlannedStep]) -> None:
            settled: dict[StepKind, StepOutcome] = {}
            for step in chain:
                outcome = await self._run_step(step, request, settled)
                settled[step.kind] = outcome
                outcomes.append(outcome)
                self._report_progress(
                    len(outcomes),
                    total,
                    f"{step.kind.value}: {outcome.status.value}",
                )

        try:
            await asyncio.gather(*(run_chain(chain) for chain in chains))
        except asyncio.CancelledError:
            log.warning("audit_cancelled", completed=len(outcomes), total=total)
            record_audit("cancelled")
            raise

        try:
            report = self.assembler.assemble(
                request.domain, request.market, outcomes, language=request.language
            )
        except InternalError:
            record_audit("error")
            raise

        degraded = [kind.value for kind in report.degraded_sections]
        log.info(
            "audit_completed",
            degraded=degraded,
            recommendations=len(report.recommendations),
            duration_ms=round((time.perf_counter() - start_time) * 1000, 2),
        )
        record_audit("degraded" if degraded else "completed")
        self._report_progress(total, total, "Audit complete")
        return report

    async def _run_step(
        self,
        step: PlannedStep,
        request: AuditRequest,
        prior: dict[StepKind, StepOutcome],
    ) -> StepOutcome:
        """Run one step; every failure becomes a degraded outcome."""
        adapter = step.adapter
        provider = adapter.provider_type.value

        if not adapter.is_configured:
            detail = f"{FailureKind.UNAUTHENTICATED.value}: {provider} credentials not configured"
            logger.info("audit_step_skipped", step=step.kind.value, provider=provider)
            return self._degrade(step.kind, request, detail, provider, 0.0)

        timeout = self.config.step_timeout_seconds
        start_time = time.perf_counter()

        try:
            query = build_query(step.kind, request, prior)
            result = await asyncio.wait_for(adapter.query(query), timeout=timeout)
        except TimeoutError:
            detail = f"{FailureKind.TIMEOUT.value}: step exceeded {timeout}s"
        except Exception as e:
            detail = f"{FailureKind.UNREACHABLE.value}: {type(e).__name__}: {e}"
        else:
            latency_ms = result.latency_ms or (time.perf_counter() - start_time) * 1000
            if result.failure is not None:
                detail = result.failure.describe()
            elif result.payload is None:
                detail = f"{FailureKind.BAD_RESPONSE.value}: empty result"
            else:
                missing = [key for key in payload_fields(step.kind) if key not in result.payload]
                if not missing:
                    logger.info(
                        "audit_step_completed",
                        step=step.kind.value,
                        provider=provider,
                        latency_ms=round(latency_ms, 2),
                    )
                    record_audit_step(step.kind.value, StepStatus.OK.value, latency_ms / 1000)
                    return StepOutcome(
                        kind=step.kind,
                        status=StepStatus.OK,
                        payload=result.payload,
                        provider=provider,
                        latency_ms=latency_ms,
                    )
                detail = f"{FailureKind.BAD_RESPONSE.value}: payload missing {', '.join(missing)}"

        latency_ms = (time.perf_counter() - start_time) * 1000
        logger.warning(
            "audit_step_failed",
            step=step.kind.value,
            provider=provider,
            error=detail,
            latency_ms=round(latency_ms, 2),
        )
        return self._degrade(step.kind, request, detail, provider, latency_ms)

    def _degrade(
        self,
        kind: StepKind,
        request: AuditRequest,
        detail: str,
        provider: str,
        latency_ms: float,
    ) -> StepOutcome:
        """Build a FALLBACK outcome (or FAILED when fallbacks are off)."""
        if self.config.use_fallbacks:
            status = StepStatus.FALLBACK
            payload = self.fallback.generate(kind, request.domain, request.market)
        else:
            status = StepStatus.FAILED
            payload = empty_payload(kind)

        record_audit_step(kind.value, status.value, latency_ms / 1000)
        return StepOutcome(
            kind=kind,
            status=status,
            payload=payload,
            error_detail=detail,
            provider=provider,
            latency_ms=latency_ms,
        )


async def run_audit(
    domain: str,
    market: str,
    ai_adapter: ProviderAdapter,
    data_adapter: ProviderAdapter,
    config: OrchestratorConfig | None = None,
    progress_callback: ProgressCallback | None = None,
) -> AuditReport:
    """Convenience function to run an audit."""
    orchestrator = AuditOrchestrator(
        ai_adapter=ai_adapter,
        data_adapter=data_adapter,
        config=config,
        progress_callback=progress_callback,
    )
    return await orchestrator.submit(domain, market)
