"""
Concept graph core: models, storage and the deduplication engine.

This package provides:
- Storage models: Concept, Relationship, DeduplicationLock
- GraphStore backends: InMemoryGraphStore, JsonGraphStore
- Similarity scoring, greedy clustering and group merging
- DeduplicationOrchestrator: lock-guarded end-to-end dedup runs
- Extraction ingestion and read-side graph queries
"""

from conceptgraph.graph.clustering import MergeGroup, cluster_concepts
from conceptgraph.graph.dedup import (
    DedupErrorType,
    DeduplicationOrchestrator,
    DeduplicationSummary,
)
from conceptgraph.graph.ingestion import IngestionReport, ingest_extraction
from conceptgraph.graph.locks import LockManager
from conceptgraph.graph.merge import MergeExecutor, MergeOutcome
from conceptgraph.graph.models import (
    Concept,
    DeduplicationLock,
    LockStatus,
    Relationship,
)
from conceptgraph.graph.persistence import JsonGraphStore, export_graphml
from conceptgraph.graph.queries import get_concept_relationships, get_graph_data
from conceptgraph.graph.schemas import (
    ExtractedConcept,
    ExtractedRelationship,
    ExtractionResult,
)
from conceptgraph.graph.similarity import (
    ConceptScorer,
    DeduplicationConfig,
    concept_similarity,
    string_similarity,
)
from conceptgraph.graph.store import GraphStore, InMemoryGraphStore

__all__ = [
    "Concept",
    "ConceptScorer",
    "DedupErrorType",
    "DeduplicationConfig",
    "DeduplicationLock",
    "DeduplicationOrchestrator",
    "DeduplicationSummary",
    "ExtractedConcept",
    "ExtractedRelationship",
    "ExtractionResult",
    "GraphStore",
    "InMemoryGraphStore",
    "IngestionReport",
    "JsonGraphStore",
    "LockManager",
    "LockStatus",
    "MergeExecutor",
    "MergeGroup",
    "MergeOutcome",
    "Relationship",
    "cluster_concepts",
    "concept_similarity",
    "export_graphml",
    "get_concept_relationships",
    "get_graph_data",
    "ingest_extraction",
    "string_similarity",
]
