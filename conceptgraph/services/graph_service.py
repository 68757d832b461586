"""
Concept Graph Service: async facade over the graph store.

Wraps the synchronous graph core for use from FastAPI handlers:
- Deduplication runs (lock-guarded)
- Extraction ingestion with optional follow-up deduplication
- Graph, concept and lock queries
- GraphML export

Store work is blocking (file I/O for the JSON backend, CPU for
clustering), so every call is pushed to a worker thread.
"""

from __future__ import annotations

import asyncio
import logging
from pathlib import Path
from typing import Any

from conceptgraph.graph.dedup import DeduplicationOrchestrator, DeduplicationSummary
from conceptgraph.graph.ingestion import IngestionReport, ingest_extraction
from conceptgraph.graph.locks import LockManager
from conceptgraph.graph.models import (
    Concept,
    DeduplicationLock,
    LockStatus,
    Relationship,
)
from conceptgraph.graph.persistence import export_graphml
from conceptgraph.graph.queries import get_concept_relationships, get_graph_data
from conceptgraph.graph.schemas import ExtractionResult
from conceptgraph.graph.similarity import DeduplicationConfig
from conceptgraph.graph.store import GraphStore

logger = logging.getLogger(__name__)

EXPORT_FILENAME = "concept_graph.graphml"
INGEST_DEDUP_THRESHOLD = 0.8


class ConceptGraphService:
    """
    Async service for concept graph operations.

    Usage:
        service = ConceptGraphService(store, export_path=Path("data/exports"))
        report = await service.ingest_extraction("doc-1", result)
        summary = await service.deduplicate()
    """

    def __init__(
        self,
        store: GraphStore,
        export_path: Path,
        config: DeduplicationConfig | None = None,
        lock_manager: LockManager | None = None,
        auto_deduplicate: bool = True,
    ) -> None:
        """
        Initialize the service.

        Args:
            store: Backing GraphStore
            export_path: Directory for GraphML exports
            config: Default DeduplicationConfig for runs
            lock_manager: Optional LockManager. Built over ``store`` if omitted.
            auto_deduplicate: Run a document-scoped dedup after each ingestion
        """
        self.store = store
        self.export_path = export_path
        self.config = config or DeduplicationConfig()
        self.lock_manager = lock_manager or LockManager(store)
        self.auto_deduplicate = auto_deduplicate
        self._orchestrator = DeduplicationOrchestrator(
            store, self.lock_manager, self.config
        )

    # ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
    # DEDUPLICATION
    # ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━

    async def deduplicate(
        self,
        document_id: str | None = None,
        threshold: float | None = None,
        max_concepts: int | None = None,
    ) -> DeduplicationSummary:
        """
        Run a deduplication pass.

        Args:
            document_id: Only consider concepts citing this document
            threshold: Similarity threshold override
            max_concepts: Concept cap override

        Returns:
            DeduplicationSummary (failures are reported, not raised)
        """
        return await asyncio.to_thread(
            self._orchestrator.deduplicate, document_id, threshold, max_concepts
        )

    async def list_locks(
        self,
        status: LockStatus | None = None,
        operation_type: str | None = None,
    ) -> list[DeduplicationLock]:
        """List deduplication locks, oldest first."""
        return await asyncio.to_thread(self.store.list_locks, status, operation_type)

    # ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
    # INGESTION
    # ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━

    async def ingest_extraction(
        self, document_id: str, result: ExtractionResult
    ) -> IngestionReport:
        """
        Persist a document's extraction and optionally deduplicate it.

        The follow-up run is scoped to the document and uses a fixed 0.8
        threshold. Its failure (including CONCURRENT_OPERATION) is
        reported on the ingestion report and does not fail ingestion.

        Args:
            document_id: Document the extraction belongs to
            result: Extraction payload

        Returns:
            IngestionReport, with ``deduplication`` set if a run happened
        """
        report = await asyncio.to_thread(
            ingest_extraction, self.store, document_id, result
        )

        if self.auto_deduplicate and report.concepts_created:
            logger.info("Running automatic concept deduplication...")
            summary = await self.deduplicate(
                document_id=document_id, threshold=INGEST_DEDUP_THRESHOLD
            )
            if summary.success:
                logger.info(
                    f"Deduplication: {summary.merged_count} concepts merged, "
                    f"{summary.aliases_added} aliases added"
                )
            else:
                logger.warning(f"Deduplication failed: {summary.error}")
            report.deduplication = summary

        return report

    # ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
    # QUERIES
    # ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━

    async def get_graph_data(self) -> dict[str, list[dict[str, Any]]]:
        """Get the node/edge payload for graph visualization."""
        return await asyncio.to_thread(get_graph_data, self.store)

    async def list_concepts(self, document_id: str | None = None) -> list[Concept]:
        """List concepts newest first, optionally scoped to a document."""
        return await asyncio.to_thread(self.store.get_concepts, document_id)

    async def get_concept(self, concept_id: str) -> Concept | None:
        """Get a concept by ID, or None if missing (or merged away)."""
        return await asyncio.to_thread(self.store.get_concept, concept_id)

    async def get_concept_relationships(
        self, concept_id: str
    ) -> tuple[list[Relationship], list[Concept]]:
        """
        Get a concept's relationships and related concepts.

        Raises:
            ValueError: If the concept does not exist
        """
        return await asyncio.to_thread(
            get_concept_relationships, self.store, concept_id
        )

    # ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
    # EXPORT
    # ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━

    async def export_graphml(self) -> Path:
        """
        Export the whole graph to GraphML.

        Returns:
            Path of the written file
        """
        output = self.export_path / EXPORT_FILENAME
        await asyncio.to_thread(export_graphml, self.store, output)
        logger.info(f"Exported concept graph to {output}")
        return output
