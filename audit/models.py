"""Data models for the audit orchestration layer."""

from dataclasses import dataclass, field
from enum import StrEnum
from typing import Any

from api.exceptions import InvalidRequestError


class StepKind(StrEnum):
    """Analysis facets, in report order."""

    SERP_RESEARCH = "serp_research"
    AI_ANALYSIS = "ai_analysis"
    TECHNICAL = "technical"
    CONTENT = "content"
    COMPETITOR = "competitor"
    LOCAL = "local"


class StepStatus(StrEnum):
    """Outcome status of a single step."""

    OK = "ok"
    FAILED = "failed"
    FALLBACK = "fallback"


class FailureKind(StrEnum):
    """Typed provider failures."""

    UNAUTHENTICATED = "unauthenticated"
    UNREACHABLE = "unreachable"
    BAD_RESPONSE = "bad_response"
    TIMEOUT = "timeout"


class ProviderType(StrEnum):
    """Supported analysis providers."""

    PERPLEXITY = "perplexity"
    DATAFORSEO = "dataforseo"
    MOCK = "mock"


# Every declared section, in the order it appears in the report
DECLARED_STEP_KINDS: tuple[StepKind, ...] = tuple(StepKind)

# Kinds answered by the AI-analysis provider; the rest are structured data
AI_STEP_KINDS = frozenset({StepKind.SERP_RESEARCH, StepKind.AI_ANALYSIS, StepKind.LOCAL})
DATA_STEP_KINDS = frozenset({StepKind.TECHNICAL, StepKind.CONTENT, StepKind.COMPETITOR})

AI_PAYLOAD_FIELDS = ("content", "citations", "model")
DATA_PAYLOAD_FIELDS = ("summary", "metrics", "items")


def payload_fields(kind: StepKind) -> tuple[str, ...]:
    """Get the payload keys every result of this kind carries."""
    if kind in AI_STEP_KINDS:
        return AI_PAYLOAD_FIELDS
    return DATA_PAYLOAD_FIELDS


def empty_payload(kind: StepKind) -> dict[str, Any]:
    """Build a shape-conformant payload with no content."""
    if kind in AI_STEP_KINDS:
        return {"content": "", "citations": [], "model": ""}
    return {"summary": "", "metrics": {}, "items": []}


@dataclass(frozen=True)
class AuditRequest:
    """A validated audit request for one domain/market pair."""

    domain: str
    market: str
    language: str = "en"

    @classmethod
    def create(cls, domain: str | None, market: str | None, language: str = "en") -> "AuditRequest":
        """Validate raw input and build a request.

        Raises:
            InvalidRequestError: If domain or market is missing or blank.
        """
        domain = (domain or "").strip()
        market = (market or "").strip()

        if not domain:
            raise InvalidRequestError("Domain and market are required", field="domain")
        if not market:
            raise InvalidRequestError("Domain and market are required", field="market")

        return cls(domain=domain, market=market, language=(language or "en").strip() or "en")

    @property
    def host(self) -> str:
        """Domain without scheme, path, or trailing slash."""
        host = self.domain
        for prefix in ("https://", "http://"):
            if host.lower().startswith(prefix):
                host = host[len(prefix) :]
        return host.split("/", 1)[0] or self.domain

    def to_dict(self) -> dict:
        """Convert to dictionary."""
        return {
            "domain": self.domain,
            "market": self.market,
            "language": self.language,
        }


@dataclass(frozen=True)
class ProviderQuery:
    """A single query sent to a provider adapter."""

    kind: StepKind
    text: str
    market: str
    language: str = "en"
    domain: str = ""


@dataclass(frozen=True)
class ProviderFailure:
    """Typed failure returned by a provider adapter."""

    provider: ProviderType
    kind: FailureKind
    message: str

    def describe(self) -> str:
        """Short human readable form, kept as a step's error detail."""
        return f"{self.kind.value}: {self.message}"

    def to_dict(self) -> dict:
        """Convert to dictionary."""
        return {
            "provider": self.provider.value,
            "kind": self.kind.value,
            "message": self.message,
        }


@dataclass(frozen=True)
class ProviderResult:
    """Result of a provider query: a payload or a typed failure."""

    provider: ProviderType
    payload: dict[str, Any] | None = None
    failure: ProviderFailure | None = None
    latency_ms: float = 0.0

    @classmethod
    def success(
        cls, provider: ProviderType, payload: dict[str, Any], latency_ms: float = 0.0
    ) -> "ProviderResult":
        return cls(provider=provider, payload=payload, latency_ms=latency_ms)

    @classmethod
    def failed(
        cls,
        provider: ProviderType,
        kind: FailureKind,
        message: str,
        latency_ms: float = 0.0,
    ) -> "ProviderResult":
        return cls(
            provider=provider,
            failure=ProviderFailure(provider=provider, kind=kind, message=message),
            latency_ms=latency_ms,
        )

    @property
    def ok(self) -> bool:
        return self.failure is None and self.payload is not None


@dataclass(frozen=True)
class StepOutcome:
    """Outcome of one orchestration step. Never mutated after creation."""

    kind: StepKind
    status: StepStatus
    payload: dict[str, Any] = field(default_factory=dict)
    error_detail: str | None = None
    provider: str | None = None
    latency_ms: float = 0.0

    @property
    def degraded(self) -> bool:
        """True when the section does not carry real provider data."""
        return self.status != StepStatus.OK

    def to_dict(self) -> dict:
        """Convert to dictionary."""
        return {
            "kind": self.kind.value,
            "status": self.status.value,
            "payload": self.payload,
            "error_detail": self.error_detail,
            "provider": self.provider,
            "latency_ms": round(self.latency_ms, 2),
        }
