"""
Tests for unified error schema.

Validates ErrorCode enum, APIError dataclass, error factory functions,
and the mapping of exceptions and dedup summaries onto HTTP errors.
"""

from __future__ import annotations

from fastapi import HTTPException

from conceptgraph.api.errors import dedup_failure_to_http, handle_endpoint_error
from conceptgraph.graph.dedup import DedupErrorType, DeduplicationSummary
from conceptgraph.models.errors import (
    APIError,
    ErrorCode,
    concept_not_found_error,
    concurrent_operation_error,
    critical_error,
    internal_error,
    service_unavailable_error,
    validation_error,
)


class TestErrorCode:
    """Test ErrorCode enum."""

    def test_all_error_codes_unique(self) -> None:
        """All error codes should have unique values."""
        codes = [e.value for e in ErrorCode]
        assert len(codes) == len(set(codes)), "Error codes must be unique"

    def test_error_codes_uppercase(self) -> None:
        """All error codes should be uppercase snake_case."""
        for code in ErrorCode:
            assert code.value.isupper(), f"Error code {code.value} should be uppercase"

    def test_dedup_error_types_have_codes(self) -> None:
        """Every dedup failure class has a matching API error code."""
        for error_type in DedupErrorType:
            assert ErrorCode(error_type.value).value == error_type.value


class TestAPIError:
    """Test APIError dataclass."""

    def test_minimal_error_creation(self) -> None:
        """Create error with only required fields."""
        error = APIError(code=ErrorCode.INTERNAL_ERROR, message="Something went wrong")
        assert error.code == ErrorCode.INTERNAL_ERROR
        assert error.message == "Something went wrong"
        assert error.detail is None
        assert error.hint is None
        assert error.retryable is False

    def test_to_dict_omits_unset_fields(self) -> None:
        error = APIError(code=ErrorCode.VALIDATION_ERROR, message="Bad input")
        assert error.to_dict() == {
            "error": {
                "code": "VALIDATION_ERROR",
                "message": "Bad input",
                "retryable": False,
            }
        }

    def test_to_dict_includes_detail_and_hint(self) -> None:
        error = APIError(
            code=ErrorCode.SERVICE_UNAVAILABLE,
            message="Busy",
            detail="queue full",
            hint="retry later",
            retryable=True,
        )
        body = error.to_dict()["error"]
        assert body["detail"] == "queue full"
        assert body["hint"] == "retry later"
        assert body["retryable"] is True


class TestErrorFactories:
    """Test predefined error factories."""

    def test_concurrent_operation_is_retryable(self) -> None:
        error = concurrent_operation_error("2 active")
        assert error.code == ErrorCode.CONCURRENT_OPERATION
        assert error.detail == "2 active"
        assert error.retryable is True

    def test_critical_error(self) -> None:
        error = critical_error("boom")
        assert error.code == ErrorCode.CRITICAL_ERROR
        assert error.detail == "boom"
        assert "were kept" in (error.hint or "")

    def test_concept_not_found(self) -> None:
        error = concept_not_found_error("abcdef123456")
        assert error.code == ErrorCode.CONCEPT_NOT_FOUND
        assert "abcdef123456" in (error.detail or "")
        assert error.retryable is False

    def test_validation_error_names_field(self) -> None:
        error = validation_error("threshold", "must be <= 1")
        assert "threshold" in error.message
        assert error.detail == "must be <= 1"

    def test_service_unavailable_and_internal(self) -> None:
        assert service_unavailable_error().retryable is True
        assert internal_error().code == ErrorCode.INTERNAL_ERROR


class TestHandleEndpointError:
    """Test exception-to-HTTP mapping."""

    def test_not_found_value_error(self) -> None:
        exc = handle_endpoint_error(ValueError("Concept not found: x"), "test")
        assert exc.status_code == 404
        assert exc.detail["error"]["code"] == "RESOURCE_NOT_FOUND"

    def test_other_value_error(self) -> None:
        exc = handle_endpoint_error(ValueError("bad threshold"), "test")
        assert exc.status_code == 400
        assert exc.detail["error"]["code"] == "VALIDATION_ERROR"

    def test_unexpected_error_hides_message(self) -> None:
        exc = handle_endpoint_error(RuntimeError("secret path /etc"), "test")
        assert exc.status_code == 500
        assert exc.detail["error"]["code"] == "INTERNAL_ERROR"
        assert "secret" not in str(exc.detail)

    def test_http_exception_passthrough(self) -> None:
        original = HTTPException(status_code=418, detail="teapot")
        assert handle_endpoint_error(original, "test") is original


class TestDedupFailureToHttp:
    """Test dedup summary mapping."""

    def test_concurrent_maps_to_409(self) -> None:
        summary = DeduplicationSummary(
            success=False,
            error="Another deduplication process is already running (1 active)",
            error_type=DedupErrorType.CONCURRENT_OPERATION,
        )
        exc = dedup_failure_to_http(summary)
        assert exc.status_code == 409
        assert exc.detail["error"]["code"] == "CONCURRENT_OPERATION"
        assert "1 active" in exc.detail["error"]["detail"]

    def test_critical_maps_to_500(self) -> None:
        summary = DeduplicationSummary(
            success=False,
            error="Critical error during deduplication: boom",
            error_type=DedupErrorType.CRITICAL_ERROR,
        )
        exc = dedup_failure_to_http(summary)
        assert exc.status_code == 500
        assert exc.detail["error"]["code"] == "CRITICAL_ERROR"
