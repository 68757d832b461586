"""
Pydantic response models for the concept graph API.
"""

from __future__ import annotations

from pydantic import BaseModel, Field

from conceptgraph.graph.models import Concept, DeduplicationLock, Relationship


class HealthResponse(BaseModel):
    """Response for /health endpoint."""

    status: str
    version: str
    store_backend: str


class GraphNode(BaseModel):
    """A concept as rendered in the graph view."""

    id: str
    name: str
    category: str
    size: int
    description: str
    confidence: float


class GraphEdge(BaseModel):
    """A relationship as rendered in the graph view."""

    id: str
    source: str
    target: str
    strength: float
    type: str
    context: str


class GraphDataResponse(BaseModel):
    """Response for /graph endpoint."""

    nodes: list[GraphNode] = Field(default_factory=list)
    edges: list[GraphEdge] = Field(default_factory=list)


class ConceptListResponse(BaseModel):
    """Response for listing concepts."""

    concepts: list[Concept]
    total: int


class ConceptRelationshipsResponse(BaseModel):
    """A concept's relationships and the concepts they connect to."""

    concept_id: str
    relationships: list[Relationship]
    related_concepts: list[Concept]


class LockListResponse(BaseModel):
    """Response for listing deduplication locks."""

    locks: list[DeduplicationLock]
    total: int
