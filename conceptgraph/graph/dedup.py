"""
Deduplication orchestrator: one end-to-end dedup run.

A run:
1. Fails out stale locks left behind by crashed runs
2. Returns CONCURRENT_OPERATION if another dedup run is active
3. Claims a lock (atomically) scoped to the optional document
4. Loads candidate concepts and clusters them into merge groups
5. Merges every group sequentially; a failing group is rolled back and
   counted, the run carries on
6. Marks the lock completed and returns a summary

The orchestrator never raises: unexpected failures become a
CRITICAL_ERROR summary and the lock (if claimed) is marked failed.
"""

from __future__ import annotations

import logging
import time
from enum import Enum

from pydantic import BaseModel, Field

from conceptgraph.core.logging import bind_process_id
from conceptgraph.graph.clustering import cluster_concepts, rank_concepts
from conceptgraph.graph.locks import LockManager
from conceptgraph.graph.merge import MergeExecutor
from conceptgraph.graph.models import (
    DEDUPLICATION_OPERATION,
    DeduplicationLock,
    LockStatus,
)
from conceptgraph.graph.similarity import ConceptScorer, DeduplicationConfig
from conceptgraph.graph.store import GraphStore

logger = logging.getLogger(__name__)


class DedupErrorType(str, Enum):
    """Failure classes reported on an unsuccessful run."""

    CONCURRENT_OPERATION = "CONCURRENT_OPERATION"
    CRITICAL_ERROR = "CRITICAL_ERROR"


class DeduplicationSummary(BaseModel):
    """
    Outcome of a deduplication run.

    Attributes:
        success: False only for CONCURRENT_OPERATION and CRITICAL_ERROR
        merged_count: Duplicate concepts merged away
        aliases_added: Total growth of primaries' alias lists
        total_operations: Merge groups attempted
        failed_merges: Merge groups that failed and were rolled back
        failed_merge_messages: One message per failed group
        processing_time: Wall-clock duration in milliseconds
        concepts_processed: Concepts considered after the max_concepts cap
        locks_reaped: Stale locks failed out at the start of the run
        lock_id: Lock claimed by this run, if any
        warning: Set when some merges failed
        error: Failure message for unsuccessful runs
        error_type: Failure class for unsuccessful runs
    """

    success: bool
    merged_count: int = 0
    aliases_added: int = 0
    total_operations: int = 0
    failed_merges: int = 0
    failed_merge_messages: list[str] = Field(default_factory=list)
    processing_time: float = 0.0
    concepts_processed: int = 0
    locks_reaped: int = 0
    lock_id: str | None = None
    warning: str | None = None
    error: str | None = None
    error_type: DedupErrorType | None = None


class DeduplicationOrchestrator:
    """
    Runs deduplication against a GraphStore under a lock.

    Example:
        store = InMemoryGraphStore()
        orchestrator = DeduplicationOrchestrator(store)
        summary = orchestrator.deduplicate(threshold=0.8)
        if not summary.success:
            print(summary.error_type, summary.error)
    """

    def __init__(
        self,
        store: GraphStore,
        lock_manager: LockManager | None = None,
        config: DeduplicationConfig | None = None,
    ) -> None:
        """
        Initialize the orchestrator.

        Args:
            store: GraphStore holding concepts, relationships and locks
            lock_manager: Optional LockManager. Built over ``store`` if omitted.
            config: Optional DeduplicationConfig. Uses defaults if not provided.
        """
        self.store = store
        self.lock_manager = lock_manager or LockManager(store)
        self.config = config or DeduplicationConfig()

    def deduplicate(
        self,
        document_id: str | None = None,
        threshold: float | None = None,
        max_concepts: int | None = None,
    ) -> DeduplicationSummary:
        """
        Run one deduplication pass.

        Args:
            document_id: Only consider concepts citing this document
            threshold: Similarity threshold; defaults to the config value
            max_concepts: Cap on concepts considered; defaults to the config value

        Returns:
            DeduplicationSummary (never raises)
        """
        start = time.perf_counter()
        lock: DeduplicationLock | None = None
        reaped = 0

        try:
            overrides = {"threshold": threshold, "max_concepts": max_concepts}
            config = DeduplicationConfig.model_validate(
                {
                    **self.config.model_dump(),
                    **{k: v for k, v in overrides.items() if v is not None},
                }
            )

            reaped = self.lock_manager.reap_stale_locks()
            if reaped:
                logger.info(f"Cleaned up {reaped} stale locks")

            active = self.lock_manager.list_active_locks(DEDUPLICATION_OPERATION)
            if active:
                return self._concurrent(active, reaped, start)

            lock = self.lock_manager.acquire_lock(
                DEDUPLICATION_OPERATION, document_id=document_id
            )
            if lock is None:
                return self._concurrent(
                    self.lock_manager.list_active_locks(DEDUPLICATION_OPERATION),
                    reaped,
                    start,
                )

            with bind_process_id(lock.process_id):
                summary = self._run(lock, document_id, config)
            summary.locks_reaped = reaped
            summary.processing_time = _elapsed_ms(start)
            logger.info(
                f"Deduplication completed: {summary.merged_count} concepts merged, "
                f"{summary.failed_merges} failed, "
                f"{summary.processing_time:.0f}ms"
            )
            return summary

        except Exception as e:
            logger.exception(f"Critical error during deduplication: {e}")
            if lock is not None:
                self.lock_manager.update_lock(
                    lock.id, LockStatus.FAILED, error_message=str(e)
                )
            return DeduplicationSummary(
                success=False,
                error=f"Critical error during deduplication: {e}",
                error_type=DedupErrorType.CRITICAL_ERROR,
                processing_time=_elapsed_ms(start),
                locks_reaped=reaped,
                lock_id=lock.id if lock else None,
            )

    def _run(
        self,
        lock: DeduplicationLock,
        document_id: str | None,
        config: DeduplicationConfig,
    ) -> DeduplicationSummary:
        scope = f"document {document_id}" if document_id else "all documents"
        logger.info(
            f"Starting deduplication for {scope} "
            f"(threshold: {config.threshold}, max concepts: {config.max_concepts})"
        )

        concepts = self.store.get_concepts(document_id)
        candidates = rank_concepts(concepts, config.max_concepts)
        self.lock_manager.update_lock(
            lock.id, LockStatus.ACTIVE, concepts_processed=len(candidates)
        )

        scorer = ConceptScorer(config)
        groups = cluster_concepts(
            candidates,
            threshold=config.threshold,
            max_concepts=config.max_concepts,
            similarity=scorer.similarity,
        )

        summary = DeduplicationSummary(
            success=True,
            total_operations=len(groups),
            concepts_processed=len(candidates),
            lock_id=lock.id,
        )

        executor = MergeExecutor(self.store, config)
        for group in groups:
            outcome = executor.execute_merge(group)
            if outcome.success:
                summary.merged_count += outcome.merged_count
                summary.aliases_added += outcome.aliases_added
            elif not outcome.skipped:
                summary.failed_merges += 1
                summary.failed_merge_messages.append(outcome.error or "")

        if summary.failed_merges:
            summary.warning = f"{summary.failed_merges} merge operations failed"

        self.lock_manager.update_lock(
            lock.id, LockStatus.COMPLETED, concepts_processed=len(candidates)
        )
        return summary

    def _concurrent(
        self, active: list[DeduplicationLock], reaped: int, start: float
    ) -> DeduplicationSummary:
        logger.warning(
            f"Deduplication already in progress ({len(active)} active runs)"
        )
        return DeduplicationSummary(
            success=False,
            error=(
                "Another deduplication process is already running "
                f"({len(active)} active)"
            ),
            error_type=DedupErrorType.CONCURRENT_OPERATION,
            processing_time=_elapsed_ms(start),
            locks_reaped=reaped,
        )


def _elapsed_ms(start: float) -> float:
    return (time.perf_counter() - start) * 1000
