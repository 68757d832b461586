"""
Knowledge graph data models: Concept, Relationship, DeduplicationLock.

These store the ACTUAL graph data held by a GraphStore. The extraction
payload that produces them lives in schemas.py (name-based references,
no IDs); these models are ID-based, with timestamps and provenance.
"""

from __future__ import annotations

import time
from datetime import datetime, timezone
from enum import Enum
from typing import Any
from uuid import uuid4

from pydantic import BaseModel, Field, field_validator

DEDUPLICATION_OPERATION = "deduplication"


def _generate_id() -> str:
    """Generate a 12-character hex ID from UUID4."""
    return uuid4().hex[:12]


def _generate_process_id() -> str:
    """Generate a run identifier: epoch millis plus a random suffix."""
    return f"{int(time.time() * 1000)}-{uuid4().hex[:9]}"


def _utc_now() -> datetime:
    """Get current UTC datetime (timezone-aware)."""
    return datetime.now(timezone.utc)


def clamp_unit(value: Any) -> float:
    """
    Clamp a numeric score into the closed [0, 1] range.

    Args:
        value: Number (or numeric string) to clamp

    Returns:
        The value bounded to 0.0..1.0
    """
    return max(0.0, min(1.0, float(value)))


class Concept(BaseModel):
    """
    A node in the knowledge graph.

    Represents a distinct idea extracted from one or more documents.

    Attributes:
        id: Unique 12-character identifier
        name: Primary display name (e.g., "Machine Learning")
        description: Brief description of the concept
        confidence_score: Extraction confidence, always clamped to [0, 1]
        category: Optional grouping (e.g., "technology", "person")
        aliases: Alternative names; never contains ``name`` after a merge
        document_ids: Documents that contributed to this concept
        created_at: When this concept was first created
    """

    id: str = Field(default_factory=_generate_id)
    name: str
    description: str = ""
    confidence_score: float = 0.5
    category: str | None = None
    aliases: list[str] = Field(default_factory=list)
    document_ids: list[str] = Field(default_factory=list)
    created_at: datetime = Field(default_factory=_utc_now)

    @field_validator("confidence_score", mode="before")
    @classmethod
    def _clamp_confidence(cls, value: Any) -> float:
        return clamp_unit(value)

    @field_validator("aliases", "document_ids", mode="after")
    @classmethod
    def _dedupe(cls, values: list[str]) -> list[str]:
        # Set semantics with stable order
        return list(dict.fromkeys(values))


class Relationship(BaseModel):
    """
    A directed, typed edge between two concepts.

    Attributes:
        id: Unique 12-character identifier
        source_concept_id: ID of the origin concept
        target_concept_id: ID of the destination concept
        relationship_type: Free-form type (e.g., "uses", "depends on")
        strength: Edge weight clamped to [0, 1]
        context: Supporting text explaining the relationship
        document_id: Document the relationship was extracted from
        created_at: When this relationship was created
    """

    id: str = Field(default_factory=_generate_id)
    source_concept_id: str
    target_concept_id: str
    relationship_type: str
    strength: float = 0.5
    context: str = ""
    document_id: str | None = None
    created_at: datetime = Field(default_factory=_utc_now)

    @field_validator("strength", mode="before")
    @classmethod
    def _clamp_strength(cls, value: Any) -> float:
        return clamp_unit(value)


class LockStatus(str, Enum):
    """Deduplication lock lifecycle states."""

    ACTIVE = "active"
    COMPLETED = "completed"
    FAILED = "failed"

    @property
    def is_terminal(self) -> bool:
        """Completed and failed locks never change again."""
        return self is not LockStatus.ACTIVE


class DeduplicationLock(BaseModel):
    """
    Mutual-exclusion record guarding a deduplication run.

    Transitions active -> completed | failed exactly once.

    Attributes:
        id: Unique 12-character identifier
        process_id: Identifier of the run that owns the lock
        operation_type: Tag such as "deduplication"
        status: Current lifecycle state
        created_at: When the run started
        completed_at: Set when the lock reaches a terminal state
        document_id: Optional document the run is scoped to
        error_message: Failure reason for failed locks
        concepts_processed: Number of concepts the run considered
    """

    id: str = Field(default_factory=_generate_id)
    process_id: str = Field(default_factory=_generate_process_id)
    operation_type: str = DEDUPLICATION_OPERATION
    status: LockStatus = LockStatus.ACTIVE
    created_at: datetime = Field(default_factory=_utc_now)
    completed_at: datetime | None = None
    document_id: str | None = None
    error_message: str | None = None
    concepts_processed: int | None = 0
