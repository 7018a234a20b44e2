"""Deterministic placeholder payloads for degraded steps.

A fallback payload has exactly the shape of a real payload of the same
step kind; only the section status tells them apart.
"""

from typing import Any

from audit.models import StepKind

FALLBACK_MODEL = "fallback"


class FallbackGenerator:
    """Builds placeholder payloads keyed by step kind.

    Pure and total: no I/O, no clock, and no input is rejected.
    """

    def generate(self, kind: StepKind, domain: str, market: str) -> dict[str, Any]:
        """Get the placeholder payload for a step."""
        domain = str(domain)
        market = str(market)

        builders = {
            StepKind.SERP_RESEARCH: self._serp_research,
            StepKind.AI_ANALYSIS: self._ai_analysis,
            StepKind.LOCAL: self._local,
            StepKind.TECHNICAL: self._technical,
            StepKind.CONTENT: self._content,
            StepKind.COMPETITOR: self._competitor,
        }
        return builders[StepKind(kind)](domain, market)

    def _ai_payload(self, content: str) -> dict[str, Any]:
        return {"content": content, "citations": [], "model": FALLBACK_MODEL}

    def _serp_research(self, domain: str, market: str) -> dict[str, Any]:
        return self._ai_payload(
            f"SERP research temporarily unavailable for {domain} in the {market} market."
        )

    def _ai_analysis(self, domain: str, market: str) -> dict[str, Any]:
        return self._ai_payload(
            f"SEO analysis temporarily unavailable for {domain}. "
            f"Review these areas for the {market} market:\n"
            f"1. Search landscape and competitor ranking patterns in {market}\n"
            f"2. SERP feature opportunities (snippets, local packs, ads)\n"
            f"3. Content gaps against top-ranking pages\n"
            f"4. Market-specific keyword opportunities and search intent"
        )

    def _local(self, domain: str, market: str) -> dict[str, Any]:
        return self._ai_payload(
            f"Local SEO analysis temporarily unavailable for {domain}. "
            f"Review these areas for the {market} market:\n"
            f"1. Local search optimization strategies\n"
            f"2. Google Business Profile optimization\n"
            f"3. Local citation opportunities\n"
            f"4. Geo-targeted content for {market}"
        )

    def _technical(self, domain: str, market: str) -> dict[str, Any]:
        return {
            "summary": f"Technical audit data unavailable for {domain}; suggested checks listed",
            "metrics": {},
            "items": [
                "Page speed analysis with Core Web Vitals",
                f"Mobile responsiveness for {market} market",
                "Meta tags optimization based on SERP analysis",
                "Internal linking structure optimization",
                "Schema markup implementation for SERP features",
                f"Local SEO setup for {market} market",
            ],
        }

    def _content(self, domain: str, market: str) -> dict[str, Any]:
        return {
            "summary": f"Content analysis data unavailable for {domain}; suggestions listed",
            "metrics": {},
            "items": [
                f"Keyword density analysis for {market} search terms",
                "Content gap analysis vs top SERP competitors",
                "Readability assessment for target market",
                "Content freshness evaluation",
                "Featured snippet optimization opportunities",
                f"Market-specific content localization for {market}",
            ],
        }

    def _competitor(self, domain: str, market: str) -> dict[str, Any]:
        return {
            "summary": f"Competitor data unavailable for {domain}; analysis tasks listed",
            "metrics": {},
            "items": [
                f"Identify top SERP competitors in {market}",
                "Analyze competitor keyword strategies from search results",
                "Compare backlink profiles of ranking competitors",
                "Content strategy comparison with SERP leaders",
                f"Local competitor analysis for {market} market",
                "SERP feature competition analysis",
            ],
        }
