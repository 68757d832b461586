"""
Lock manager for deduplication runs.

Owns the lock table of a GraphStore. A lock moves active -> completed or
active -> failed exactly once. Locks left active by a crashed run are
failed out by reap_stale_locks() once they are older than the timeout.

Lock-table writes after a run has started are best-effort: a failed
update is logged and swallowed, since the run already succeeded or
failed on its own merits.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from datetime import datetime, timedelta, timezone

from conceptgraph.graph.models import (
    DEDUPLICATION_OPERATION,
    DeduplicationLock,
    LockStatus,
)
from conceptgraph.graph.store import GraphStore

logger = logging.getLogger(__name__)

DEFAULT_LOCK_TIMEOUT = timedelta(minutes=30)
STALE_LOCK_MESSAGE = "Lock timeout - process may have crashed"


def _utc_now() -> datetime:
    """Get current UTC datetime (timezone-aware)."""
    return datetime.now(timezone.utc)


class LockManager:
    """
    Create, update, list and reap deduplication locks.

    Example:
        locks = LockManager(store)
        locks.reap_stale_locks()
        lock = locks.acquire_lock("deduplication")
        if lock is None:
            ...  # another run is active
        locks.update_lock(lock.id, LockStatus.COMPLETED, concepts_processed=42)
    """

    def __init__(
        self,
        store: GraphStore,
        timeout: timedelta = DEFAULT_LOCK_TIMEOUT,
        clock: Callable[[], datetime] = _utc_now,
    ) -> None:
        """
        Initialize the lock manager.

        Args:
            store: Backing GraphStore holding the lock table
            timeout: Age after which an active lock counts as stale
            clock: Source of the current time (overridable in tests)
        """
        self.store = store
        self.timeout = timeout
        self._clock = clock

    def create_lock(
        self,
        operation_type: str = DEDUPLICATION_OPERATION,
        document_id: str | None = None,
    ) -> DeduplicationLock:
        """
        Create an active lock unconditionally.

        No uniqueness is enforced; use acquire_lock() to claim exclusively.

        Args:
            operation_type: Tag for the guarded operation
            document_id: Optional document the run is scoped to

        Returns:
            The stored lock
        """
        lock = self.store.create_lock(
            DeduplicationLock(
                operation_type=operation_type,
                document_id=document_id,
                created_at=self._clock(),
            )
        )
        logger.info(f"Created lock {lock.id} (process {lock.process_id})")
        return lock

    def acquire_lock(
        self,
        operation_type: str = DEDUPLICATION_OPERATION,
        document_id: str | None = None,
    ) -> DeduplicationLock | None:
        """
        Atomically create an active lock if none of this type is active.

        Args:
            operation_type: Tag for the guarded operation
            document_id: Optional document the run is scoped to

        Returns:
            The stored lock, or None if another active lock exists
        """
        lock = self.store.create_lock_if_none_active(
            DeduplicationLock(
                operation_type=operation_type,
                document_id=document_id,
                created_at=self._clock(),
            )
        )
        if lock is None:
            logger.info(f"Lock for '{operation_type}' is held by another run")
        else:
            logger.info(f"Acquired lock {lock.id} (process {lock.process_id})")
        return lock

    def update_lock(
        self,
        lock_id: str,
        status: LockStatus,
        error_message: str | None = None,
        concepts_processed: int | None = None,
    ) -> DeduplicationLock | None:
        """
        Update a lock's status and counters (best-effort).

        completed_at is stamped automatically when the status becomes
        completed or failed. Terminal locks are left untouched.

        Args:
            lock_id: ID of the lock to update
            status: New status
            error_message: Optional failure reason
            concepts_processed: Optional count of concepts considered

        Returns:
            The updated lock, or None if the update failed or was refused
        """
        try:
            current = self.store.get_lock(lock_id)
            if current is None:
                raise ValueError(f"Lock not found: {lock_id}")
            if current.status.is_terminal:
                logger.warning(
                    f"Lock {lock_id} already {current.status.value}; "
                    f"ignoring transition to {status.value}"
                )
                return None

            fields: dict[str, object] = {"status": status}
            if error_message is not None:
                fields["error_message"] = error_message
            if concepts_processed is not None:
                fields["concepts_processed"] = concepts_processed
            if status.is_terminal:
                fields["completed_at"] = self._clock()
            return self.store.update_lock(lock_id, **fields)
        except Exception as e:
            logger.error(f"Failed to update lock {lock_id}: {e}")
            return None

    def list_active_locks(
        self, operation_type: str | None = None
    ) -> list[DeduplicationLock]:
        """
        List active locks, optionally filtered by operation type.

        Args:
            operation_type: Only return locks with this tag

        Returns:
            Active locks, oldest first
        """
        return self.store.list_locks(
            status=LockStatus.ACTIVE, operation_type=operation_type
        )

    def reap_stale_locks(self) -> int:
        """
        Fail out active locks older than the timeout.

        Returns:
            Number of locks transitioned to failed
        """
        cutoff = self._clock() - self.timeout
        reaped = 0

        for lock in self.list_active_locks():
            if lock.created_at >= cutoff:
                continue
            if self.update_lock(
                lock.id, LockStatus.FAILED, error_message=STALE_LOCK_MESSAGE
            ):
                reaped += 1
                logger.warning(
                    f"Reaped stale lock {lock.id} (process {lock.process_id}, "
                    f"created {lock.created_at.isoformat()})"
                )

        return reaped
