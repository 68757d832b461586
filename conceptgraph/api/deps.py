"""
Dependency injection providers for API endpoints.

Provides FastAPI dependencies that inject service instances into route
handlers, enabling loose coupling and testability.
"""

from __future__ import annotations

from fastapi import HTTPException

from conceptgraph.core.validators import is_valid_document_id, is_valid_record_id
from conceptgraph.models.errors import service_unavailable_error, validation_error
from conceptgraph.services import ConceptGraphService, get_services


def get_graph_service() -> ConceptGraphService:
    """
    Dependency provider for ConceptGraphService.

    Returns:
        ConceptGraphService instance from the global container

    Raises:
        HTTPException: 503 if the service container is not running
    """
    try:
        return get_services().graph
    except RuntimeError as e:
        api_error = service_unavailable_error(detail=str(e))
        raise HTTPException(status_code=503, detail=api_error.to_dict()) from e


def validate_record_id(value: str, field_name: str = "ID") -> str:
    """
    Validate that a string is a valid record ID (12 hex characters).

    Args:
        value: The string to validate
        field_name: Name of the field for error messages

    Returns:
        The validated value

    Raises:
        HTTPException: If the value is not a valid record ID
    """
    if not is_valid_record_id(value):
        api_error = validation_error(field_name, "must be 12 hex characters")
        raise HTTPException(status_code=400, detail=api_error.to_dict())
    return value


def validate_document_id(value: str) -> str:
    """
    Validate a document ID path or query parameter.

    Raises:
        HTTPException: If the value is not a valid document ID
    """
    if not is_valid_document_id(value):
        api_error = validation_error(
            "document ID", "1-128 letters, digits, '_', '-', ':' or '.'"
        )
        raise HTTPException(status_code=400, detail=api_error.to_dict())
    return value


class ValidatedConceptId:
    """
    Dependency class for validated concept ID path parameters.

    Usage:
        @router.get("/concepts/{concept_id}")
        async def endpoint(concept_id: str = Depends(ValidatedConceptId())):
            ...
    """

    def __call__(self, concept_id: str) -> str:
        """Validate and return the concept ID."""
        return validate_record_id(concept_id, "concept ID")


class ValidatedDocumentId:
    """
    Dependency class for validated document ID path parameters.

    Usage:
        @router.post("/documents/{document_id}/extraction")
        async def endpoint(document_id: str = Depends(ValidatedDocumentId())):
            ...
    """

    def __call__(self, document_id: str) -> str:
        """Validate and return the document ID."""
        return validate_document_id(document_id)
