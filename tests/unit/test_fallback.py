"""Tests for fallback payload generation."""

import pytest

from audit.fallback import FALLBACK_MODEL, FallbackGenerator
from audit.models import AI_STEP_KINDS, DECLARED_STEP_KINDS, StepKind, payload_fields


@pytest.fixture
def generator() -> FallbackGenerator:
    return FallbackGenerator()


class TestFallbackGenerator:
    """Tests for FallbackGenerator."""

    @pytest.mark.parametrize("kind", list(StepKind))
    def test_shape_matches_real_payload(self, generator: FallbackGenerator, kind: StepKind) -> None:
        """Every fallback carries exactly the real payload fields."""
        payload = generator.generate(kind, "example.com", "US")

        assert tuple(payload) == payload_fields(kind)

    @pytest.mark.parametrize(
        ("domain", "market"),
        [
            ("x", "U"),
            ("example.com", "US"),
            ("https://sub.example.co.uk/path", "United Kingdom"),
            ("{domain}", "{market}"),
            ("ünïcödé.example", "DE"),
        ],
    )
    def test_total_for_any_input(self, generator: FallbackGenerator, domain, market) -> None:
        """Never fails, whatever the inputs."""
        for kind in DECLARED_STEP_KINDS:
            payload = generator.generate(kind, domain, market)
            assert payload

    def test_deterministic(self, generator: FallbackGenerator) -> None:
        """Same inputs give equal payloads."""
        for kind in DECLARED_STEP_KINDS:
            assert generator.generate(kind, "example.com", "US") == FallbackGenerator().generate(
                kind, "example.com", "US"
            )

    def test_ai_fallback_is_marked(self, generator: FallbackGenerator) -> None:
        """AI fallbacks name the fallback model and cite nothing."""
        for kind in AI_STEP_KINDS:
            payload = generator.generate(kind, "example.com", "US")
            assert payload["model"] == FALLBACK_MODEL
            assert payload["citations"] == []
            assert "example.com" in payload["content"]

    def test_technical_checks_are_market_qualified(self, generator: FallbackGenerator) -> None:
        """Placeholder checks mention the market."""
        payload = generator.generate(StepKind.TECHNICAL, "example.com", "UK")

        assert "Page speed analysis with Core Web Vitals" in payload["items"]
        assert "Mobile responsiveness for UK market" in payload["items"]
        assert payload["metrics"] == {}

    def test_competitor_tasks(self, generator: FallbackGenerator) -> None:
        """Competitor placeholder lists analysis tasks."""
        payload = generator.generate(StepKind.COMPETITOR, "example.com", "DE")

        assert payload["items"][0] == "Identify top SERP competitors in DE"
        assert len(payload["items"]) == 6

    def test_accepts_plain_string_kind(self, generator: FallbackGenerator) -> None:
        """String values of the enum work too."""
        payload = generator.generate("content", "example.com", "US")  # type: ignore[arg-type]

        assert "Content freshness evaluation" in payload["items"]
