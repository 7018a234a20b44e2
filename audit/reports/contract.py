"""Report JSON contract and data structures.

Defines the stable audit report format. Every declared section is
always present in the serialized report, whatever its status.
"""

from dataclasses import dataclass, field
from datetime import datetime
from enum import StrEnum
from typing import Any

import orjson

from audit.models import DECLARED_STEP_KINDS, StepKind, StepStatus


class ReportVersion(StrEnum):
    """Report schema versions."""

    V1_0 = "1.0"


# Current version
CURRENT_VERSION = ReportVersion.V1_0


@dataclass(frozen=True)
class SectionResult:
    """One report section: the payload of a step plus its status."""

    status: StepStatus
    payload: dict[str, Any]
    error: str | None = None
    provider: str | None = None

    def to_dict(self) -> dict:
        """Convert to dictionary."""
        return {
            "status": self.status.value,
            "payload": self.payload,
            "error": self.error,
            "provider": self.provider,
        }


@dataclass
class AuditReport:
    """Complete audit report."""

    domain: str
    market: str
    timestamp: datetime
    recommendations: list[str] = field(default_factory=list)
    sections: dict[StepKind, SectionResult] = field(default_factory=dict)
    language: str = "en"
    version: ReportVersion = CURRENT_VERSION

    @property
    def degraded_sections(self) -> list[StepKind]:
        """Sections not backed by real provider data."""
        return [kind for kind, section in self.sections.items() if section.status != StepStatus.OK]

    def to_dict(self) -> dict:
        """Convert to dictionary with sections in declared order."""
        return {
            "version": self.version.value,
            "domain": self.domain,
            "market": self.market,
            "language": self.language,
            "timestamp": self.timestamp.isoformat(),
            "recommendations": list(self.recommendations),
            "sections": {
                kind.value: self.sections[kind].to_dict() for kind in DECLARED_STEP_KINDS
            },
        }

    def to_json(self) -> bytes:
        """Canonical JSON encoding (sorted keys)."""
        return orjson.dumps(self.to_dict(), option=orjson.OPT_SORT_KEYS)
