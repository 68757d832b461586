"""
Extraction schemas: the payload an upstream extractor hands to ingestion.

Key distinction from models.py:
- schemas.py: Extraction output (name-based references, no IDs)
- models.py: Storage models (ID-based, with timestamps and provenance)

Missing optional fields are filled with the same defaults the extractor
applies: confidence/strength 0.5, description = name, type "related to".
Out-of-range scores are clamped rather than rejected.
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, Field, field_validator, model_validator

from conceptgraph.graph.models import clamp_unit

DEFAULT_RELATIONSHIP_TYPE = "related to"


class ExtractedConcept(BaseModel):
    """
    A concept extracted from a document.

    Attributes:
        name: Primary name (e.g., "Machine Learning")
        description: Brief description; defaults to the name
        confidence: Extraction confidence, clamped to [0, 1]
        category: Optional grouping (e.g., "technology")
        aliases: Alternative names
    """

    name: str = Field(min_length=1)
    description: str = ""
    confidence: float = 0.5
    category: str | None = None
    aliases: list[str] = Field(default_factory=list)

    @field_validator("confidence", mode="before")
    @classmethod
    def _clamp_confidence(cls, value: Any) -> float:
        return clamp_unit(value)

    @field_validator("aliases", mode="before")
    @classmethod
    def _aliases_or_empty(cls, value: Any) -> Any:
        return value if isinstance(value, list) else []

    @model_validator(mode="after")
    def _default_description(self) -> ExtractedConcept:
        if not self.description:
            self.description = self.name
        return self


class ExtractedRelationship(BaseModel):
    """
    A relationship between two extracted concepts, referenced by name.

    Attributes:
        source: Name of the source concept
        target: Name of the target concept
        type: Relationship type (e.g., "uses"); defaults to "related to"
        strength: Edge weight, clamped to [0, 1]
        context: Supporting text from the document
    """

    source: str = Field(min_length=1)
    target: str = Field(min_length=1)
    type: str = DEFAULT_RELATIONSHIP_TYPE
    strength: float = 0.5
    context: str = ""

    @field_validator("strength", mode="before")
    @classmethod
    def _clamp_strength(cls, value: Any) -> float:
        return clamp_unit(value)

    @field_validator("type", mode="before")
    @classmethod
    def _default_type(cls, value: Any) -> Any:
        return value or DEFAULT_RELATIONSHIP_TYPE

    @field_validator("context", mode="before")
    @classmethod
    def _context_or_empty(cls, value: Any) -> Any:
        return value or ""


class ExtractionResult(BaseModel):
    """
    Complete extraction result for one document.

    Attributes:
        concepts: Extracted concepts
        relationships: Extracted relationships between them
    """

    concepts: list[ExtractedConcept] = Field(default_factory=list)
    relationships: list[ExtractedRelationship] = Field(default_factory=list)
