"""Query builders for each audit step.

Every builder is a plain function of the request (and, for dependent
steps, the outcomes already produced in the same chain), so the
orchestrator never formats provider text itself.
"""

from collections.abc import Mapping

from audit.models import AuditRequest, ProviderQuery, StepKind, StepOutcome, StepStatus

# Upper bound on SERP research text folded into the analysis prompt
SERP_CONTEXT_MAX_CHARS = 2000


def serp_research_prompt(request: AuditRequest) -> str:
    return f"SEO audit analysis for {request.domain} in {request.market} market"


def seo_analysis_prompt(request: AuditRequest, serp_context: str = "") -> str:
    """Build the SERP insight prompt, optionally grounded in prior research."""
    domain = request.domain
    market = request.market

    prompt = f"""Based on SERP analysis for {domain} in the {market} market, provide comprehensive SEO insights:

1. Current search landscape analysis for {domain}'s industry in {market}
2. Competitor ranking patterns and strategies observed in search results
3. SERP features (snippets, local packs, ads) opportunities for {domain}
4. Content gaps identified from top-ranking pages
5. Technical SEO recommendations based on {market} search behavior
6. Market-specific keyword opportunities and search intent patterns
7. Mobile vs desktop SERP differences for {market}
8. Local SEO opportunities if applicable to {market}

Provide actionable recommendations with specific examples from current search results."""

    if serp_context:
        context = serp_context.strip()[:SERP_CONTEXT_MAX_CHARS]
        prompt = f"Current SERP research findings:\n{context}\n\n{prompt}"

    return prompt


def local_seo_prompt(request: AuditRequest) -> str:
    domain = request.domain
    market = request.market
    return f"""Analyze local SEO opportunities for {domain} in the {market} market:
1. Local search optimization strategies
2. Google My Business optimization
3. Local citation opportunities
4. Market-specific local ranking factors
5. Geo-targeted content recommendations
Provide location-specific SEO advice."""


def build_query(
    kind: StepKind,
    request: AuditRequest,
    prior: Mapping[StepKind, StepOutcome] | None = None,
) -> ProviderQuery:
    """Build the provider query for a step.

    Args:
        kind: Step being issued
        request: Validated audit request
        prior: Outcomes already settled earlier in the same chain

    Returns:
        ProviderQuery ready for an adapter
    """
    prior = prior or {}

    if kind == StepKind.SERP_RESEARCH:
        text = serp_research_prompt(request)
    elif kind == StepKind.AI_ANALYSIS:
        serp = prior.get(StepKind.SERP_RESEARCH)
        serp_context = ""
        if serp is not None and serp.status == StepStatus.OK:
            serp_context = str(serp.payload.get("content", ""))
        text = seo_analysis_prompt(request, serp_context)
    elif kind == StepKind.LOCAL:
        text = local_seo_prompt(request)
    else:
        # Structured-data steps are keyed by the bare host
        text = request.host

    return ProviderQuery(
        kind=kind,
        text=text,
        market=request.market,
        language=request.language,
        domain=request.host,
    )
