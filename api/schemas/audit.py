"""Audit request and report schemas."""

from datetime import datetime
from typing import Any

from pydantic import BaseModel, Field

from audit.reports.contract import AuditReport


class AuditCreate(BaseModel):
    """Schema for submitting an audit.

    Blank values are accepted here and rejected by the audit core, so
    every missing-field case gets the same invalid_request error.
    """

    domain: str | None = Field(default=None, description='Domain to audit (e.g., "example.com")')
    market: str | None = Field(default=None, description='Target market code (e.g., "US", "UK")')
    language: str | None = Field(default=None, description="Report language (default: en)")


class SectionRead(BaseModel):
    """One report section."""

    status: str = Field(..., description="ok, failed or fallback")
    payload: dict[str, Any]
    error: str | None = Field(None, description="Original provider error for degraded sections")
    provider: str | None = None


class AuditResponse(BaseModel):
    """Complete audit report."""

    version: str
    domain: str
    market: str
    language: str
    timestamp: datetime
    recommendations: list[str]
    sections: dict[str, SectionRead]

    @classmethod
    def from_report(cls, report: AuditReport) -> "AuditResponse":
        """Build the response from an assembled report."""
        return cls.model_validate(report.to_dict())


class AuditEndpointInfo(BaseModel):
    """Description of the audit endpoint."""

    message: str
    endpoints: dict[str, Any]
