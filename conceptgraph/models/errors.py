"""
Unified error schema for the concept graph API.

Provides consistent error codes, messages, and hints for all API responses.
All errors include retryability information and optional debugging details.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


class ErrorCode(str, Enum):
    """Standardized error codes for API responses."""

    # Deduplication errors
    CONCURRENT_OPERATION = "CONCURRENT_OPERATION"
    CRITICAL_ERROR = "CRITICAL_ERROR"

    # Resource errors (RESOURCE_*)
    CONCEPT_NOT_FOUND = "CONCEPT_NOT_FOUND"
    RESOURCE_NOT_FOUND = "RESOURCE_NOT_FOUND"

    # Validation errors (VALIDATION_*)
    VALIDATION_ERROR = "VALIDATION_ERROR"

    # Capacity and generic errors
    SERVICE_UNAVAILABLE = "SERVICE_UNAVAILABLE"
    INTERNAL_ERROR = "INTERNAL_ERROR"


@dataclass
class APIError:
    """
    Structured error response for API endpoints.

    Attributes:
        code: Standardized error code from ErrorCode enum
        message: Human-readable error message
        detail: Optional technical details for debugging
        hint: Optional suggestion for resolving the error
        retryable: Whether the client should retry the request
    """

    code: ErrorCode
    message: str
    detail: str | None = None
    hint: str | None = None
    retryable: bool = False

    def to_dict(self) -> dict[str, dict[str, str | bool]]:
        """
        Convert error to dictionary format for JSON responses.

        Returns:
            Dictionary with 'error' key containing error details
        """
        error_dict: dict[str, str | bool] = {
            "code": self.code.value,
            "message": self.message,
            "retryable": self.retryable,
        }

        if self.detail is not None:
            error_dict["detail"] = self.detail

        if self.hint is not None:
            error_dict["hint"] = self.hint

        return {"error": error_dict}


# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
# Predefined Error Factories
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━


def concurrent_operation_error(detail: str | None = None) -> APIError:
    """Create error for a dedup run rejected by an active lock."""
    return APIError(
        code=ErrorCode.CONCURRENT_OPERATION,
        message="Another deduplication process is already running",
        detail=detail,
        hint="Wait for the running deduplication to finish and try again",
        retryable=True,
    )


def critical_error(detail: str | None = None) -> APIError:
    """Create error for a dedup run aborted by an unexpected failure."""
    return APIError(
        code=ErrorCode.CRITICAL_ERROR,
        message="Deduplication aborted",
        detail=detail,
        hint="Groups merged before the failure were kept; check server logs",
        retryable=True,
    )


def concept_not_found_error(concept_id: str) -> APIError:
    """Create error for a missing concept."""
    return APIError(
        code=ErrorCode.CONCEPT_NOT_FOUND,
        message="Concept not found",
        detail=f"Concept ID: {concept_id}",
        hint="The concept may have been merged into another concept",
        retryable=False,
    )


def validation_error(field: str, reason: str) -> APIError:
    """Create error for validation failures."""
    return APIError(
        code=ErrorCode.VALIDATION_ERROR,
        message=f"Validation failed for field: {field}",
        detail=reason,
        hint="Check the input format and try again",
        retryable=False,
    )


def service_unavailable_error(detail: str | None = None) -> APIError:
    """Create error for service unavailability."""
    return APIError(
        code=ErrorCode.SERVICE_UNAVAILABLE,
        message="Service temporarily unavailable",
        detail=detail,
        hint="Please try again in a moment",
        retryable=True,
    )


def internal_error(detail: str | None = None) -> APIError:
    """Create generic internal error."""
    return APIError(
        code=ErrorCode.INTERNAL_ERROR,
        message="An internal error occurred",
        detail=detail,
        hint="Please try again. If the problem persists, contact support.",
        retryable=True,
    )
