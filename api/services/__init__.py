"""Business logic services package."""

from api.services.audit_service import submit_audit

__all__ = ["submit_audit"]
