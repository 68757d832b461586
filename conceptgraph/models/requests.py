"""
Request models for API endpoints.

Defines Pydantic models for validating incoming HTTP requests.
The extraction payload itself is the ExtractionResult schema from
conceptgraph.graph.schemas.
"""

from __future__ import annotations

from pydantic import BaseModel, Field, field_validator

from conceptgraph.core.validators import is_valid_document_id


class DeduplicateRequest(BaseModel):
    """Request model for starting a deduplication run.

    Omitted fields fall back to the configured defaults.
    """

    document_id: str | None = Field(
        default=None, description="Only deduplicate concepts citing this document"
    )
    threshold: float | None = Field(
        default=None,
        ge=0.0,
        le=1.0,
        description="Similarity threshold override (0.0-1.0)",
    )
    max_concepts: int | None = Field(
        default=None,
        ge=1,
        description="Cap on concepts considered, highest confidence first",
    )

    @field_validator("document_id")
    @classmethod
    def validate_document_id(cls, v: str | None) -> str | None:
        """Validate document ID format."""
        if v is not None and not is_valid_document_id(v):
            raise ValueError("Invalid document ID format")
        return v
