"""Report assembler for combining step outcomes.

Folds the outcomes of an audit run into a complete, versioned report.
Apart from the timestamp, assembly is a pure function of its inputs.
"""

import re
from collections.abc import Callable, Iterable
from dataclasses import dataclass
from datetime import UTC, datetime

import structlog

from api.exceptions import InternalError
from audit.models import (
    AI_STEP_KINDS,
    DECLARED_STEP_KINDS,
    StepKind,
    StepOutcome,
    StepStatus,
    payload_fields,
)
from audit.reports.contract import CURRENT_VERSION, AuditReport, SectionResult

logger = structlog.get_logger(__name__)

# Generic, market-qualified advice used when a section has no real data
GENERIC_RECOMMENDATIONS: dict[StepKind, str] = {
    StepKind.SERP_RESEARCH: "Target SERP-identified keyword opportunities in {market}",
    StepKind.AI_ANALYSIS: "Create content targeting {market}-specific search intent",
    StepKind.TECHNICAL: "Improve page loading speed to match {market} SERP leaders",
    StepKind.CONTENT: "Optimize for featured snippets in {market} search results",
    StepKind.COMPETITOR: "Build quality backlinks relevant to {market} search landscape",
    StepKind.LOCAL: "Enhance local SEO presence in {market} market",
}

# Numbered or bulleted lines in AI content: "1. ...", "2) ...", "- ...", "* ..."
_LIST_LINE = re.compile(r"^\s*(?:\d+[.)]|[-*•])\s+(.+?)\s*$")
_MARKDOWN_EMPHASIS = re.compile(r"[*_`]+")


@dataclass
class ReportAssemblerConfig:
    """Configuration for report assembly."""

    max_specific_per_section: int = 2
    max_recommendations: int = 12

    # Bounds for a list line to count as a recommendation
    min_recommendation_chars: int = 15
    max_recommendation_chars: int = 200


class ReportAssembler:
    """Assembles step outcomes into a complete report."""

    def __init__(
        self,
        config: ReportAssemblerConfig | None = None,
        clock: Callable[[], datetime] | None = None,
    ):
        self.config = config or ReportAssemblerConfig()
        self.clock = clock or (lambda: datetime.now(UTC))

    def assemble(
        self,
        domain: str,
        market: str,
        outcomes: Iterable[StepOutcome],
        language: str = "en",
    ) -> AuditReport:
        """
        Assemble a complete report from step outcomes.

        Outcomes are folded in order, so when a step kind appears more
        than once the last outcome wins.

        Args:
            domain: Audited domain
            market: Target market code
            outcomes: Step outcomes, in completion order
            language: Report language

        Returns:
            AuditReport with one section per declared step kind

        Raises:
            InternalError: If an outcome has an undeclared kind, carries a
                payload of the wrong shape, or a declared kind is missing.
        """
        folded = self._fold(outcomes)

        sections = {kind: self._build_section(folded[kind]) for kind in DECLARED_STEP_KINDS}
        recommendations = self._build_recommendations(market, sections)

        return AuditReport(
            domain=domain,
            market=market,
            language=language,
            timestamp=self.clock(),
            recommendations=recommendations,
            sections=sections,
            version=CURRENT_VERSION,
        )

    def _fold(self, outcomes: Iterable[StepOutcome]) -> dict[StepKind, StepOutcome]:
        folded: dict[StepKind, StepOutcome] = {}

        for outcome in outcomes:
            try:
                kind = StepKind(outcome.kind)
            except ValueError:
                logger.error("report_assembly_failed", reason="unknown_step_kind", kind=outcome.kind)
                raise InternalError(f"Unrecognized step kind: {outcome.kind!r}") from None

            missing = [key for key in payload_fields(kind) if key not in outcome.payload]
            if missing:
                logger.error(
                    "report_assembly_failed",
                    reason="payload_shape",
                    kind=kind.value,
                    missing=missing,
                )
                raise InternalError(f"Payload for {kind.value} is missing {', '.join(missing)}")

            folded[kind] = outcome

        absent = [kind.value for kind in DECLARED_STEP_KINDS if kind not in folded]
        if absent:
            logger.error("report_assembly_failed", reason="missing_sections", missing=absent)
            raise InternalError(f"No outcome for step kind(s): {', '.join(absent)}")

        return folded

    def _build_section(self, outcome: StepOutcome) -> SectionResult:
        return SectionResult(
            status=outcome.status,
            payload=outcome.payload,
            error=outcome.error_detail,
            provider=outcome.provider,
        )

    def _build_recommendations(
        self,
        market: str,
        sections: dict[StepKind, SectionResult],
    ) -> list[str]:
        """Specific advice from real sections, generic advice for degraded ones."""
        recommendations: list[str] = []
        seen: set[str] = set()

        def add(text: str) -> None:
            key = text.casefold()
            if key not in seen:
                seen.add(key)
                recommendations.append(text)

        for kind in DECLARED_STEP_KINDS:
            section = sections[kind]
            specific: list[str] = []
            if section.status == StepStatus.OK:
                specific = self._specific_recommendations(kind, section)

            if specific:
                for text in specific:
                    add(text)
            else:
                add(GENERIC_RECOMMENDATIONS[kind].format(market=market))

        return recommendations[: self.config.max_recommendations]

    def _specific_recommendations(self, kind: StepKind, section: SectionResult) -> list[str]:
        limit = self.config.max_specific_per_section

        if kind in AI_STEP_KINDS:
            lines = self._extract_list_lines(str(section.payload.get("content", "")))
            return lines[:limit]

        items = section.payload.get("items") or []
        return [str(item).strip() for item in items if str(item).strip()][:limit]

    def _extract_list_lines(self, content: str) -> list[str]:
        """Pull numbered/bulleted lines out of free-form AI content."""
        lines = []
        for raw in content.splitlines():
            match = _LIST_LINE.match(raw)
            if not match:
                continue
            text = _MARKDOWN_EMPHASIS.sub("", match.group(1)).strip().rstrip(":")
            if (
                self.config.min_recommendation_chars
                <= len(text)
                <= self.config.max_recommendation_chars
            ):
                lines.append(text)
        return lines


def assemble_report(
    domain: str,
    market: str,
    outcomes: Iterable[StepOutcome],
    language: str = "en",
    config: ReportAssemblerConfig | None = None,
) -> AuditReport:
    """Convenience function to assemble a report."""
    assembler = ReportAssembler(config)
    return assembler.assemble(domain, market, outcomes, language)
