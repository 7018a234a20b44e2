"""Tests for custom exceptions and error handling."""

from fastapi import status

from api.exceptions import InternalError, InvalidRequestError, SeoAuditError


def test_seo_audit_error_base() -> None:
    """Test base SeoAuditError."""
    error = SeoAuditError(message="Test error", code="test_error")
    assert error.message == "Test error"
    assert error.code == "test_error"
    assert error.status_code == status.HTTP_500_INTERNAL_SERVER_ERROR
    assert error.details == {}
    assert str(error) == "Test error"


def test_invalid_request_error() -> None:
    """Test InvalidRequestError."""
    error = InvalidRequestError("Domain and market are required", field="market")
    assert error.code == "invalid_request"
    assert error.status_code == status.HTTP_400_BAD_REQUEST
    assert error.details == {"field": "market"}


def test_invalid_request_error_without_field() -> None:
    """Test InvalidRequestError without a field."""
    error = InvalidRequestError("Bad input")
    assert error.details == {}


def test_internal_error() -> None:
    """Test InternalError."""
    error = InternalError()
    assert error.message == "Internal server error"
    assert error.code == "internal_error"
    assert error.status_code == status.HTTP_500_INTERNAL_SERVER_ERROR


def test_errors_share_base() -> None:
    """Both error kinds are SeoAuditErrors."""
    assert isinstance(InvalidRequestError("x"), SeoAuditError)
    assert isinstance(InternalError("x"), SeoAuditError)
