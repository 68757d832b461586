"""
GraphStore: persistence interface for concepts, relationships and locks.

The deduplication engine holds no state of its own: every step is a
read-modify-write against a GraphStore. Backends implement the abstract
interface below; InMemoryGraphStore is the reference implementation and
the base of the file-backed JsonGraphStore (see persistence.py).

Design Decisions:
- Reads return copies, so callers can only change state through the
  update/delete operations
- Updates replace the stored model with a re-validated copy, which keeps
  invariants (confidence clamping, alias de-duplication) on every write
- transaction() gives savepoint semantics: a failing block is rolled
  back to its own starting point, nested blocks included
- create_lock_if_none_active() claims a lock atomically instead of a
  separate check followed by an insert
"""

from __future__ import annotations

import logging
import threading
from abc import ABC, abstractmethod
from collections.abc import Iterator
from contextlib import contextmanager
from typing import Any

from conceptgraph.graph.models import (
    Concept,
    DeduplicationLock,
    LockStatus,
    Relationship,
)

logger = logging.getLogger(__name__)

_Tables = tuple[
    dict[str, Concept], dict[str, Relationship], dict[str, DeduplicationLock]
]


class GraphStore(ABC):
    """
    Abstract base class for graph store backends.

    All lookups by ID return None once a record has been deleted;
    updates and deletes of missing records raise ValueError.
    """

    # ========== Concept Operations ==========

    @abstractmethod
    def get_concepts(self, document_id: str | None = None) -> list[Concept]:
        """List concepts (newest first), optionally only those citing a document."""

    @abstractmethod
    def get_concept(self, concept_id: str) -> Concept | None:
        """Get a concept by ID, or None if it does not exist."""

    @abstractmethod
    def create_concept(self, concept: Concept) -> Concept:
        """Insert a concept and return the stored copy."""

    @abstractmethod
    def update_concept(self, concept_id: str, **fields: Any) -> Concept:
        """Apply a partial update to a concept and return the new state."""

    @abstractmethod
    def delete_concept(self, concept_id: str) -> None:
        """Delete a concept."""

    # ========== Relationship Operations ==========

    @abstractmethod
    def get_relationships(self, document_id: str | None = None) -> list[Relationship]:
        """List relationships, optionally only those from one document."""

    @abstractmethod
    def get_relationship(self, relationship_id: str) -> Relationship | None:
        """Get a relationship by ID, or None if it does not exist."""

    @abstractmethod
    def get_relationships_by_concept(self, concept_id: str) -> list[Relationship]:
        """Relationships where the concept is the source, then where it is the target."""

    @abstractmethod
    def create_relationship(self, relationship: Relationship) -> Relationship:
        """Insert a relationship and return the stored copy."""

    @abstractmethod
    def update_relationship(self, relationship_id: str, **fields: Any) -> Relationship:
        """Apply a partial update to a relationship and return the new state."""

    @abstractmethod
    def delete_relationship(self, relationship_id: str) -> None:
        """Delete a relationship."""

    # ========== Lock Operations ==========

    @abstractmethod
    def create_lock(self, lock: DeduplicationLock) -> DeduplicationLock:
        """Insert a lock record unconditionally."""

    @abstractmethod
    def create_lock_if_none_active(
        self, lock: DeduplicationLock
    ) -> DeduplicationLock | None:
        """
        Insert ``lock`` only if no active lock of the same operation type exists.

        Returns:
            The stored lock, or None if another active lock holds the claim
        """

    @abstractmethod
    def get_lock(self, lock_id: str) -> DeduplicationLock | None:
        """Get a lock by ID, or None if it does not exist."""

    @abstractmethod
    def update_lock(self, lock_id: str, **fields: Any) -> DeduplicationLock:
        """Apply a partial update to a lock and return the new state."""

    @abstractmethod
    def list_locks(
        self,
        status: LockStatus | None = None,
        operation_type: str | None = None,
    ) -> list[DeduplicationLock]:
        """List locks (oldest first), optionally filtered by status and type."""

    # ========== Transactions ==========

    @abstractmethod
    def transaction(self) -> Any:
        """
        Context manager making the enclosed operations atomic.

        If the block raises, every write made inside it is undone and the
        exception propagates.
        """


class InMemoryGraphStore(GraphStore):
    """
    Dict-backed GraphStore.

    Thread Safety:
        A re-entrant lock serializes every operation. A transaction holds
        the lock for its whole duration, so concurrent writers never see a
        half-applied merge.
    """

    def __init__(self) -> None:
        """Initialize empty record tables."""
        self._concepts: dict[str, Concept] = {}
        self._relationships: dict[str, Relationship] = {}
        self._locks: dict[str, DeduplicationLock] = {}
        self._mutex = threading.RLock()
        self._depth = 0

    # ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
    # TRANSACTIONS
    # ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━

    def _snapshot(self) -> _Tables:
        # Stored models are never mutated in place, so shallow copies suffice
        return dict(self._concepts), dict(self._relationships), dict(self._locks)

    def _restore(self, snapshot: _Tables) -> None:
        self._concepts, self._relationships, self._locks = snapshot

    def _commit(self) -> None:
        """Hook called after the outermost transaction succeeds."""

    @contextmanager
    def transaction(self) -> Iterator[InMemoryGraphStore]:
        """
        Run the enclosed block atomically.

        Each nesting level is its own savepoint: a failure restores the
        state captured when that level was entered. The commit hook only
        runs when the outermost level completes; if it raises, the
        outermost block is rolled back as well.

        Yields:
            This store
        """
        with self._mutex:
            snapshot = self._snapshot()
            self._depth += 1
            try:
                yield self
            except BaseException:
                self._restore(snapshot)
                raise
            finally:
                self._depth -= 1
            if self._depth == 0:
                try:
                    self._commit()
                except BaseException:
                    # A failed commit undoes the whole outermost block
                    self._restore(snapshot)
                    raise

    # ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
    # CONCEPTS
    # ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━

    def get_concepts(self, document_id: str | None = None) -> list[Concept]:
        with self._mutex:
            concepts = [
                c.model_copy(deep=True)
                for c in self._concepts.values()
                if document_id is None or document_id in c.document_ids
            ]
        concepts.sort(key=lambda c: c.created_at, reverse=True)
        return concepts

    def get_concept(self, concept_id: str) -> Concept | None:
        with self._mutex:
            concept = self._concepts.get(concept_id)
            return concept.model_copy(deep=True) if concept else None

    def create_concept(self, concept: Concept) -> Concept:
        with self.transaction():
            if concept.id in self._concepts:
                raise ValueError(f"Concept already exists: {concept.id}")
            stored = Concept.model_validate(concept.model_dump())
            self._concepts[stored.id] = stored
        return stored.model_copy(deep=True)

    def update_concept(self, concept_id: str, **fields: Any) -> Concept:
        with self.transaction():
            current = self._concepts.get(concept_id)
            if current is None:
                raise ValueError(f"Concept not found: {concept_id}")
            fields.pop("id", None)
            updated = Concept.model_validate({**current.model_dump(), **fields})
            self._concepts[concept_id] = updated
        return updated.model_copy(deep=True)

    def delete_concept(self, concept_id: str) -> None:
        with self.transaction():
            if self._concepts.pop(concept_id, None) is None:
                raise ValueError(f"Concept not found: {concept_id}")

    # ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
    # RELATIONSHIPS
    # ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━

    def get_relationships(self, document_id: str | None = None) -> list[Relationship]:
        with self._mutex:
            return [
                r.model_copy(deep=True)
                for r in self._relationships.values()
                if document_id is None or r.document_id == document_id
            ]

    def get_relationship(self, relationship_id: str) -> Relationship | None:
        with self._mutex:
            rel = self._relationships.get(relationship_id)
            return rel.model_copy(deep=True) if rel else None

    def get_relationships_by_concept(self, concept_id: str) -> list[Relationship]:
        with self._mutex:
            as_source = [
                r.model_copy(deep=True)
                for r in self._relationships.values()
                if r.source_concept_id == concept_id
            ]
            as_target = [
                r.model_copy(deep=True)
                for r in self._relationships.values()
                if r.target_concept_id == concept_id
            ]
        return as_source + as_target

    def create_relationship(self, relationship: Relationship) -> Relationship:
        with self.transaction():
            if relationship.id in self._relationships:
                raise ValueError(f"Relationship already exists: {relationship.id}")
            stored = Relationship.model_validate(relationship.model_dump())
            self._relationships[stored.id] = stored
        return stored.model_copy(deep=True)

    def update_relationship(self, relationship_id: str, **fields: Any) -> Relationship:
        with self.transaction():
            current = self._relationships.get(relationship_id)
            if current is None:
                raise ValueError(f"Relationship not found: {relationship_id}")
            fields.pop("id", None)
            updated = Relationship.model_validate({**current.model_dump(), **fields})
            self._relationships[relationship_id] = updated
        return updated.model_copy(deep=True)

    def delete_relationship(self, relationship_id: str) -> None:
        with self.transaction():
            if self._relationships.pop(relationship_id, None) is None:
                raise ValueError(f"Relationship not found: {relationship_id}")

    # ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
    # LOCKS
    # ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━

    def create_lock(self, lock: DeduplicationLock) -> DeduplicationLock:
        with self.transaction():
            if lock.id in self._locks:
                raise ValueError(f"Lock already exists: {lock.id}")
            stored = DeduplicationLock.model_validate(lock.model_dump())
            self._locks[stored.id] = stored
        return stored.model_copy(deep=True)

    def create_lock_if_none_active(
        self, lock: DeduplicationLock
    ) -> DeduplicationLock | None:
        with self.transaction():
            for existing in self._locks.values():
                if (
                    existing.status is LockStatus.ACTIVE
                    and existing.operation_type == lock.operation_type
                ):
                    return None
            return self.create_lock(lock)

    def get_lock(self, lock_id: str) -> DeduplicationLock | None:
        with self._mutex:
            lock = self._locks.get(lock_id)
            return lock.model_copy(deep=True) if lock else None

    def update_lock(self, lock_id: str, **fields: Any) -> DeduplicationLock:
        with self.transaction():
            current = self._locks.get(lock_id)
            if current is None:
                raise ValueError(f"Lock not found: {lock_id}")
            fields.pop("id", None)
            updated = DeduplicationLock.model_validate(
                {**current.model_dump(), **fields}
            )
            self._locks[lock_id] = updated
        return updated.model_copy(deep=True)

    def list_locks(
        self,
        status: LockStatus | None = None,
        operation_type: str | None = None,
    ) -> list[DeduplicationLock]:
        with self._mutex:
            locks = [
                lock.model_copy(deep=True)
                for lock in self._locks.values()
                if (status is None or lock.status == status)
                and (operation_type is None or lock.operation_type == operation_type)
            ]
        locks.sort(key=lambda lock: lock.created_at)
        return locks
