"""Custom exceptions and error handling."""

from typing import Any

from fastapi import status


class SeoAuditError(Exception):
    """Base exception for the SEO audit application."""

    def __init__(
        self,
        message: str,
        code: str = "error",
        status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR,
        details: dict[str, Any] | None = None,
    ):
        self.message = message
        self.code = code
        self.status_code = status_code
        self.details = details or {}
        super().__init__(message)


class InvalidRequestError(SeoAuditError):
    """Malformed audit input. Raised before any provider is contacted."""

    def __init__(self, message: str, field: str | None = None):
        details = {"field": field} if field else {}
        super().__init__(
            message=message,
            code="invalid_request",
            status_code=status.HTTP_400_BAD_REQUEST,
            details=details,
        )


class InternalError(SeoAuditError):
    """Invariant violation inside the audit core."""

    def __init__(self, message: str = "Internal server error"):
        super().__init__(
            message=message,
            code="internal_error",
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        )
