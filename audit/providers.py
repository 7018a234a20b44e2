"""Provider adapters - unified interface for SEO analysis providers.

Each adapter turns a ProviderQuery into a ProviderResult. Transport
errors, HTTP errors and malformed bodies are all mapped onto the four
FailureKind values here, so nothing raises past the adapter boundary.
"""

import asyncio
import time
from abc import ABC, abstractmethod
from dataclasses import dataclass, field, replace
from typing import Any

import httpx
import structlog

from audit.models import (
    AI_STEP_KINDS,
    DATA_STEP_KINDS,
    FailureKind,
    ProviderQuery,
    ProviderResult,
    ProviderType,
    StepKind,
)

logger = structlog.get_logger(__name__)

PERPLEXITY_BASE_URL = "https://api.perplexity.ai"
DATAFORSEO_BASE_URL = "https://api.dataforseo.com/v3"

SYSTEM_PROMPT = (
    "You are an expert SEO consultant. Provide detailed, actionable SEO analysis "
    "and recommendations. Focus on technical SEO, content optimization, and "
    "market-specific strategies."
)

# DataForSEO status codes
DATAFORSEO_OK = 20000

# Market codes accepted by the audit form mapped to DataForSEO location names
MARKET_LOCATIONS = {
    "US": "United States",
    "UK": "United Kingdom",
    "GB": "United Kingdom",
    "CA": "Canada",
    "AU": "Australia",
    "DE": "Germany",
    "FR": "France",
    "ES": "Spain",
    "IT": "Italy",
    "NL": "Netherlands",
    "BR": "Brazil",
    "MX": "Mexico",
    "IN": "India",
    "JP": "Japan",
}

# On-page checks that are good news when true
POSITIVE_CHECKS = frozenset(
    {
        "canonical",
        "from_sitemap",
        "has_html_doctype",
        "has_micromarkup",
        "is_https",
        "is_www",
        "meta_charset_consistency",
        "seo_friendly_url",
        "seo_friendly_url_characters_check",
        "seo_friendly_url_dynamic_check",
        "seo_friendly_url_keywords_check",
        "seo_friendly_url_relative_length_check",
    }
)

MAX_PAYLOAD_ITEMS = 10


def location_name_for(market: str) -> str:
    """Map a market code to a DataForSEO location name; unknown codes pass through."""
    return MARKET_LOCATIONS.get(market.strip().upper(), market.strip())


class ProviderResponseError(Exception):
    """Raised inside an adapter when a response cannot be used."""

    def __init__(self, kind: FailureKind, message: str):
        self.kind = kind
        self.message = message
        super().__init__(message)


@dataclass
class ProviderConfig:
    """Configuration for a provider adapter."""

    api_key: str = ""
    login: str = ""
    password: str = ""
    base_url: str = ""
    model: str = ""
    timeout_seconds: float = 30.0

    # Completion settings (AI providers)
    max_tokens: int = 1000
    temperature: float = 0.2

    # Injected transport, used by tests to avoid the network
    transport: httpx.AsyncBaseTransport | None = field(default=None, repr=False)


class ProviderAdapter(ABC):
    """Abstract base class for provider adapters."""

    provider_type: ProviderType
    serves: frozenset[StepKind] = frozenset()

    def __init__(self, config: ProviderConfig):
        self.config = config

    @property
    @abstractmethod
    def is_configured(self) -> bool:
        """Whether credentials are present."""
        ...

    @abstractmethod
    async def _send(self, client: httpx.AsyncClient, query: ProviderQuery) -> dict[str, Any]:
        """Issue the request and return a normalized payload."""
        ...

    @abstractmethod
    async def health_check(self) -> bool:
        """Check if the provider is available."""
        ...

    def _client(self, timeout: float | None = None) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            timeout=timeout if timeout is not None else self.config.timeout_seconds,
            transport=self.config.transport,
        )

    async def query(self, query: ProviderQuery) -> ProviderResult:
        """Run a single query. Always returns a result, never raises."""
        start_time = time.perf_counter()

        def elapsed() -> float:
            return (time.perf_counter() - start_time) * 1000

        if not self.is_configured:
            return ProviderResult.failed(
                self.provider_type,
                FailureKind.UNAUTHENTICATED,
                f"{self.provider_type.value} credentials not configured",
            )

        try:
            async with self._client() as client:
                payload = await self._send(client, query)
        except ProviderResponseError as e:
            return ProviderResult.failed(self.provider_type, e.kind, e.message, elapsed())
        except httpx.TimeoutException:
            return ProviderResult.failed(
                self.provider_type,
                FailureKind.TIMEOUT,
                f"Request timed out after {self.config.timeout_seconds}s",
                elapsed(),
            )
        except httpx.TransportError as e:
            return ProviderResult.failed(
                self.provider_type,
                FailureKind.UNREACHABLE,
                f"{type(e).__name__}: {e}",
                elapsed(),
            )
        except (ValueError, KeyError, IndexError, TypeError, AttributeError) as e:
            # Invalid JSON or a body missing required fields
            return ProviderResult.failed(
                self.provider_type,
                FailureKind.BAD_RESPONSE,
                f"Malformed response: {type(e).__name__}: {e}",
                elapsed(),
            )
        except Exception as e:
            logger.warning(
                "provider_unexpected_error",
                provider=self.provider_type.value,
                kind=query.kind.value,
                error=str(e),
            )
            return ProviderResult.failed(
                self.provider_type, FailureKind.UNREACHABLE, str(e), elapsed()
            )

        return ProviderResult.success(self.provider_type, payload, elapsed())

    def _check_status(self, response: httpx.Response) -> None:
        """Map a non-success HTTP status onto a failure kind."""
        if response.is_success:
            return

        body = response.text[:500]
        message = f"HTTP {response.status_code}: {body}"

        if response.status_code in (401, 403):
            raise ProviderResponseError(FailureKind.UNAUTHENTICATED, message)
        if response.status_code == 408:
            raise ProviderResponseError(FailureKind.TIMEOUT, message)
        if response.status_code == 429 or response.status_code >= 500:
            raise ProviderResponseError(FailureKind.UNREACHABLE, message)
        raise ProviderResponseError(FailureKind.BAD_RESPONSE, message)

    def _json_object(self, response: httpx.Response) -> dict[str, Any]:
        """Decode a JSON body that must be an object."""
        data = response.json()
        if not isinstance(data, dict):
            raise ProviderResponseError(
                FailureKind.BAD_RESPONSE,
                f"Expected a JSON object, got {type(data).__name__}",
            )
        return data


class PerplexityAdapter(ProviderAdapter):
    """Perplexity chat completions - AI analysis and SERP research."""

    provider_type = ProviderType.PERPLEXITY
    serves = AI_STEP_KINDS

    def __init__(self, config: ProviderConfig):
        super().__init__(
            replace(
                config,
                base_url=config.base_url or PERPLEXITY_BASE_URL,
                model=config.model or "sonar-pro",
            )
        )

    @property
    def is_configured(self) -> bool:
        return bool(self.config.api_key)

    def _headers(self) -> dict[str, str]:
        return {
            "Authorization": f"Bearer {self.config.api_key}",
            "Content-Type": "application/json",
        }

    def _build_body(self, query: ProviderQuery) -> dict[str, Any]:
        user_prompt = (
            f"{query.text}\n\nTarget market: {query.market}. "
            f"Respond in language: {query.language}."
        )
        body: dict[str, Any] = {
            "model": self.config.model,
            "messages": [
                {"role": "system", "content": SYSTEM_PROMPT},
                {"role": "user", "content": user_prompt},
            ],
            "max_tokens": self.config.max_tokens,
            "temperature": self.config.temperature,
            "stream": False,
        }

        market = query.market.strip().upper()
        if market == "UK":
            market = "GB"
        if len(market) == 2 and market.isalpha():
            body["web_search_options"] = {"user_location": {"country": market}}

        return body

    async def _send(self, client: httpx.AsyncClient, query: ProviderQuery) -> dict[str, Any]:
        response = await client.post(
            f"{self.config.base_url}/chat/completions",
            headers=self._headers(),
            json=self._build_body(query),
        )
        self._check_status(response)

        data = self._json_object(response)
        choices = data.get("choices") or []
        if not choices:
            raise ProviderResponseError(FailureKind.BAD_RESPONSE, "No choices in response")

        content = choices[0]["message"]["content"]
        if not isinstance(content, str) or not content.strip():
            raise ProviderResponseError(FailureKind.BAD_RESPONSE, "Empty completion content")

        return {
            "content": content,
            "citations": self._normalize_citations(data),
            "model": data.get("model") or self.config.model,
        }

    def _normalize_citations(self, data: dict[str, Any]) -> list[dict[str, str]]:
        """Merge search_results and bare citation URLs, de-duplicated by URL."""
        citations: list[dict[str, str]] = []
        seen: set[str] = set()

        for result in data.get("search_results") or []:
            if not isinstance(result, dict) or not result.get("url"):
                continue
            url = str(result["url"])
            if url in seen:
                continue
            seen.add(url)
            citations.append(
                {
                    "title": str(result.get("title") or url),
                    "url": url,
                    "snippet": str(result.get("snippet") or ""),
                }
            )

        for url in data.get("citations") or []:
            if isinstance(url, str) and url and url not in seen:
                seen.add(url)
                citations.append({"title": url, "url": url, "snippet": ""})

        return citations

    async def health_check(self) -> bool:
        """Perplexity has no free status endpoint; report configuration only."""
        return self.is_configured


class DataForSEOAdapter(ProviderAdapter):
    """DataForSEO v3 - technical, content and competitor data."""

    provider_type = ProviderType.DATAFORSEO
    serves = DATA_STEP_KINDS

    ENDPOINTS = {
        StepKind.TECHNICAL: "/on_page/instant_pages",
        StepKind.CONTENT: "/dataforseo_labs/google/ranked_keywords/live",
        StepKind.COMPETITOR: "/dataforseo_labs/google/competitors_domain/live",
    }

    def __init__(self, config: ProviderConfig):
        super().__init__(replace(config, base_url=config.base_url or DATAFORSEO_BASE_URL))

    @property
    def is_configured(self) -> bool:
        return bool(self.config.login and self.config.password)

    def _auth(self) -> httpx.BasicAuth:
        return httpx.BasicAuth(self.config.login, self.config.password)

    def _build_task(self, query: ProviderQuery) -> dict[str, Any]:
        target = query.domain or query.text
        if query.kind == StepKind.TECHNICAL:
            return {
                "url": f"https://{target}",
                "enable_javascript": True,
                "load_resources": True,
            }
        return {
            "target": target,
            "location_name": location_name_for(query.market),
            "language_code": query.language,
            "limit": MAX_PAYLOAD_ITEMS,
        }

    async def _send(self, client: httpx.AsyncClient, query: ProviderQuery) -> dict[str, Any]:
        endpoint = self.ENDPOINTS.get(query.kind)
        if endpoint is None:
            raise ProviderResponseError(
                FailureKind.BAD_RESPONSE, f"No DataForSEO endpoint for step {query.kind.value}"
            )

        response = await client.post(
            f"{self.config.base_url}{endpoint}",
            auth=self._auth(),
            json=[self._build_task(query)],
        )
        self._check_status(response)

        data = self._json_object(response)
        self._check_api_status(data)

        tasks = data.get("tasks")
        if not tasks:
            raise ProviderResponseError(FailureKind.BAD_RESPONSE, "No tasks in response")
        task = tasks[0]
        self._check_api_status(task)

        results = task.get("result") or []
        result = results[0] if results and isinstance(results[0], dict) else {}

        target = query.domain or query.text
        if query.kind == StepKind.TECHNICAL:
            return self._normalize_on_page(target, result)
        if query.kind == StepKind.CONTENT:
            return self._normalize_ranked_keywords(target, result)
        return self._normalize_competitors(target, result)

    def _check_api_status(self, data: dict[str, Any]) -> None:
        """DataForSEO reports errors in the body with 2xx HTTP status."""
        code = data.get("status_code")
        if code == DATAFORSEO_OK:
            return

        message = f"DataForSEO {code}: {data.get('status_message', 'unknown error')}"
        if isinstance(code, int) and 40100 <= code < 40200:
            raise ProviderResponseError(FailureKind.UNAUTHENTICATED, message)
        if isinstance(code, int) and code >= 50000:
            raise ProviderResponseError(FailureKind.UNREACHABLE, message)
        raise ProviderResponseError(FailureKind.BAD_RESPONSE, message)

    def _normalize_on_page(self, target: str, result: dict[str, Any]) -> dict[str, Any]:
        pages = result.get("items") or []
        if not pages:
            raise ProviderResponseError(FailureKind.BAD_RESPONSE, "No page data in on-page result")
        page = pages[0]

        checks = page.get("checks") or {}
        issues = sorted(
            name for name, flagged in checks.items() if flagged is True and name not in POSITIVE_CHECKS
        )

        metrics: dict[str, float] = {}
        score = page.get("onpage_score")
        if isinstance(score, int | float):
            metrics["onpage_score"] = score
        for key, value in (page.get("page_timing") or {}).items():
            if isinstance(value, int | float) and not isinstance(value, bool):
                metrics[key] = value

        score_text = f"{score:g}" if isinstance(score, int | float) else "n/a"
        return {
            "summary": f"On-page score {score_text} for {target}, {len(issues)} issue(s) flagged",
            "metrics": metrics,
            "items": [f"Resolve {name.replace('_', ' ')}" for name in issues[:MAX_PAYLOAD_ITEMS]],
        }

    def _normalize_ranked_keywords(self, target: str, result: dict[str, Any]) -> dict[str, Any]:
        organic = (result.get("metrics") or {}).get("organic") or {}
        total = result.get("total_count") or 0

        metrics: dict[str, float] = {"ranked_keywords": total}
        if isinstance(organic.get("etv"), int | float):
            metrics["organic_etv"] = round(organic["etv"], 2)
        top_3 = (organic.get("pos_1") or 0) + (organic.get("pos_2_3") or 0)
        metrics["top_3"] = top_3
        metrics["top_10"] = top_3 + (organic.get("pos_4_10") or 0)

        items = []
        for entry in (result.get("items") or [])[:MAX_PAYLOAD_ITEMS]:
            keyword_data = entry.get("keyword_data") or {}
            keyword = keyword_data.get("keyword")
            if not keyword:
                continue
            volume = (keyword_data.get("keyword_info") or {}).get("search_volume")
            serp_item = (entry.get("ranked_serp_element") or {}).get("serp_item") or {}
            rank = serp_item.get("rank_group")

            detail = []
            if rank is not None:
                detail.append(f"currently #{rank}")
            if volume is not None:
                detail.append(f"{volume} monthly searches")
            suffix = f" ({', '.join(detail)})" if detail else ""
            items.append(f'Strengthen content for "{keyword}"{suffix}')

        return {
            "summary": f"{target} ranks for {total} organic keyword(s)",
            "metrics": metrics,
            "items": items,
        }

    def _normalize_competitors(self, target: str, result: dict[str, Any]) -> dict[str, Any]:
        total = result.get("total_count") or 0

        items = []
        for entry in result.get("items") or []:
            competitor = entry.get("domain")
            if not competitor or competitor == target:
                continue
            shared = entry.get("intersections")
            suffix = f" ({shared} shared keywords)" if shared is not None else ""
            items.append(f"Benchmark against {competitor}{suffix}")
            if len(items) >= MAX_PAYLOAD_ITEMS:
                break

        return {
            "summary": f"{total} organic competitor(s) found for {target}",
            "metrics": {"competitors_found": total},
            "items": items,
        }

    async def health_check(self) -> bool:
        """Check if DataForSEO accepts the configured credentials."""
        if not self.is_configured:
            return False

        try:
            async with self._client(timeout=5.0) as client:
                response = await client.get(
                    f"{self.config.base_url}/appendix/user_data",
                    auth=self._auth(),
                )
                is_healthy: bool = (
                    response.status_code == 200
                    and response.json().get("status_code") == DATAFORSEO_OK
                )
                return is_healthy
        except (httpx.HTTPError, ValueError):
            return False


class MockAdapter(ProviderAdapter):
    """Mock adapter for testing and offline runs."""

    provider_type = ProviderType.MOCK
    serves = AI_STEP_KINDS | DATA_STEP_KINDS

    def __init__(self, config: ProviderConfig | None = None, configured: bool = True):
        super().__init__(config or ProviderConfig())
        self.configured = configured
        self.payloads: dict[StepKind, dict[str, Any]] = {}
        self.failures: dict[StepKind, tuple[FailureKind, str]] = {}
        self.exceptions: dict[StepKind, Exception] = {}
        self.delays: dict[StepKind, float] = {}
        self.default_delay: float = 0.0
        self.calls: list[ProviderQuery] = []

    @property
    def is_configured(self) -> bool:
        return self.configured

    def set_payload(self, kind: StepKind, payload: dict[str, Any]) -> None:
        """Set a specific payload for a step kind."""
        self.payloads[kind] = payload

    def set_failure(
        self, kind: StepKind, failure: FailureKind, message: str = "Simulated failure"
    ) -> None:
        """Return a typed failure for a step kind."""
        self.failures[kind] = (failure, message)

    def set_exception(self, kind: StepKind, exc: Exception) -> None:
        """Raise from query() for a step kind, as a misbehaving adapter would."""
        self.exceptions[kind] = exc

    def set_delay(self, seconds: float, kind: StepKind | None = None) -> None:
        """Delay responses, for one kind or all of them."""
        if kind is None:
            self.default_delay = seconds
        else:
            self.delays[kind] = seconds

    async def query(self, query: ProviderQuery) -> ProviderResult:
        """Return a mock result."""
        self.calls.append(query)

        delay = self.delays.get(query.kind, self.default_delay)
        if delay:
            await asyncio.sleep(delay)

        if query.kind in self.exceptions:
            raise self.exceptions[query.kind]

        if query.kind in self.failures:
            failure, message = self.failures[query.kind]
            return ProviderResult.failed(self.provider_type, failure, message, latency_ms=50.0)

        payload = self.payloads.get(query.kind)
        if payload is None:
            payload = self._generate_mock_payload(query)
        return ProviderResult.success(self.provider_type, payload, latency_ms=50.0)

    async def _send(self, client: httpx.AsyncClient, query: ProviderQuery) -> dict[str, Any]:
        return self._generate_mock_payload(query)

    def _generate_mock_payload(self, query: ProviderQuery) -> dict[str, Any]:
        """Generate a realistic payload of the right shape."""
        domain = query.domain or "the site"
        market = query.market

        if query.kind in AI_STEP_KINDS:
            return {
                "content": (
                    f"Search results in {market} favor pages with structured data.\n"
                    f"1. Add FAQ schema to the main landing pages of {domain}\n"
                    f"2. Publish comparison content for high-intent {market} queries\n"
                    f"3. Tighten title tags to match top-ranking {market} results"
                ),
                "citations": [
                    {
                        "title": "Search Central documentation",
                        "url": "https://developers.google.com/search/docs",
                        "snippet": "Structured data helps search engines understand pages.",
                    }
                ],
                "model": "mock",
            }

        items = {
            StepKind.TECHNICAL: ["Resolve high loading time", "Resolve no image alt"],
            StepKind.CONTENT: ['Strengthen content for "seo audit" (currently #8, 2400 monthly searches)'],
            StepKind.COMPETITOR: ["Benchmark against competitor.example (120 shared keywords)"],
        }
        return {
            "summary": f"Mock {query.kind.value} data for {domain}",
            "metrics": {"score": 85},
            "items": items.get(query.kind, []),
        }

    async def health_check(self) -> bool:
        """Mock adapter is always healthy."""
        return True


def get_adapter(
    provider_type: ProviderType,
    config: ProviderConfig | None = None,
) -> ProviderAdapter:
    """Factory function to get a provider adapter."""
    if config is None:
        config = ProviderConfig()

    adapters: dict[ProviderType, type[ProviderAdapter]] = {
        ProviderType.PERPLEXITY: PerplexityAdapter,
        ProviderType.DATAFORSEO: DataForSEOAdapter,
        ProviderType.MOCK: MockAdapter,
    }

    adapter_class = adapters.get(provider_type)
    if adapter_class is None:
        raise ValueError(f"Unknown provider type: {provider_type}")

    result: ProviderAdapter = adapter_class(config)
    return result
