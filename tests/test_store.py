"""
Tests for the in-memory GraphStore.

Tests cover:
- CRUD semantics and not-found errors
- Copy-on-read isolation and re-validation on update
- Transaction rollback, including nested savepoints
- Atomic lock claiming
"""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import TYPE_CHECKING

import pytest

from conceptgraph.graph.models import Concept, DeduplicationLock, LockStatus
from conceptgraph.graph.store import InMemoryGraphStore

if TYPE_CHECKING:
    from conftest import GraphBuilder


class TestConcepts:
    """Concept CRUD."""

    def test_create_and_get(self, builder: GraphBuilder) -> None:
        concept = builder.concept("Python")
        assert builder.store.get_concept(concept.id) == concept

    def test_get_missing_returns_none(self, store: InMemoryGraphStore) -> None:
        assert store.get_concept("000000000000") is None

    def test_get_after_delete_returns_none(self, builder: GraphBuilder) -> None:
        concept = builder.concept("Python")
        builder.store.delete_concept(concept.id)
        assert builder.store.get_concept(concept.id) is None

    def test_duplicate_id_rejected(self, builder: GraphBuilder) -> None:
        concept = builder.concept("Python")
        with pytest.raises(ValueError, match="already exists"):
            builder.store.create_concept(concept)

    def test_update_missing_raises(self, store: InMemoryGraphStore) -> None:
        with pytest.raises(ValueError, match="Concept not found"):
            store.update_concept("000000000000", name="x")

    def test_delete_missing_raises(self, store: InMemoryGraphStore) -> None:
        with pytest.raises(ValueError, match="Concept not found"):
            store.delete_concept("000000000000")

    def test_update_revalidates(self, builder: GraphBuilder) -> None:
        """Updates go through model validation (clamping, de-duplication)."""
        concept = builder.concept("Python")
        updated = builder.store.update_concept(
            concept.id, confidence_score=1.7, aliases=["Py", "Py", "CPython"]
        )
        assert updated.confidence_score == 1.0
        assert updated.aliases == ["Py", "CPython"]

    def test_update_keeps_id(self, builder: GraphBuilder) -> None:
        concept = builder.concept("Python")
        updated = builder.store.update_concept(concept.id, id="ffffffffffff")
        assert updated.id == concept.id

    def test_reads_are_copies(self, builder: GraphBuilder) -> None:
        concept = builder.concept("Python")
        fetched = builder.store.get_concept(concept.id)
        assert fetched is not None
        fetched.aliases.append("mutated")
        assert builder.store.get_concept(concept.id).aliases == []  # type: ignore[union-attr]

    def test_list_newest_first(self, store: InMemoryGraphStore) -> None:
        base = datetime(2024, 1, 1, tzinfo=timezone.utc)
        for i, name in enumerate(["old", "mid", "new"]):
            store.create_concept(
                Concept(name=name, created_at=base + timedelta(minutes=i))
            )
        assert [c.name for c in store.get_concepts()] == ["new", "mid", "old"]

    def test_list_by_document(self, builder: GraphBuilder) -> None:
        builder.concept("A", document_ids=["doc-1"])
        builder.concept("B", document_ids=["doc-2"])
        builder.concept("C", document_ids=["doc-1", "doc-2"])
        names = {c.name for c in builder.store.get_concepts("doc-1")}
        assert names == {"A", "C"}


class TestRelationships:
    """Relationship CRUD and lookup by concept."""

    def test_by_concept_sources_then_targets(self, builder: GraphBuilder) -> None:
        a = builder.concept("A")
        b = builder.concept("B")
        c = builder.concept("C")
        incoming = builder.relationship(c, a)
        outgoing = builder.relationship(a, b)

        rels = builder.store.get_relationships_by_concept(a.id)

        assert [r.id for r in rels] == [outgoing.id, incoming.id]

    def test_strength_clamped(self, builder: GraphBuilder) -> None:
        a = builder.concept("A")
        b = builder.concept("B")
        rel = builder.relationship(a, b, strength=-3)
        assert rel.strength == 0.0

    def test_by_document(self, builder: GraphBuilder) -> None:
        a = builder.concept("A")
        b = builder.concept("B")
        builder.relationship(a, b, document_id="doc-1")
        builder.relationship(b, a, document_id="doc-2")
        assert len(builder.store.get_relationships("doc-1")) == 1
        assert len(builder.store.get_relationships()) == 2

    def test_delete_missing_raises(self, store: InMemoryGraphStore) -> None:
        with pytest.raises(ValueError, match="Relationship not found"):
            store.delete_relationship("000000000000")


class TestTransactions:
    """Atomic blocks and savepoints."""

    def test_rollback_on_error(self, builder: GraphBuilder) -> None:
        store = builder.store
        keep = builder.concept("Keep")

        with pytest.raises(RuntimeError):
            with store.transaction():
                store.update_concept(keep.id, name="Changed")
                builder.concept("Temp")
                raise RuntimeError("boom")

        assert store.get_concept(keep.id).name == "Keep"  # type: ignore[union-attr]
        assert [c.name for c in store.get_concepts()] == ["Keep"]

    def test_commit_on_success(self, builder: GraphBuilder) -> None:
        store = builder.store
        with store.transaction():
            builder.concept("A")
            builder.concept("B")
        assert len(store.get_concepts()) == 2

    def test_nested_savepoint(self, builder: GraphBuilder) -> None:
        """An inner failure only undoes the inner block."""
        store = builder.store

        with store.transaction():
            builder.concept("Outer")
            with pytest.raises(RuntimeError):
                with store.transaction():
                    builder.concept("Inner")
                    raise RuntimeError("inner")

        assert [c.name for c in store.get_concepts()] == ["Outer"]


class TestLocks:
    """Lock table operations."""

    def test_list_filters(self, store: InMemoryGraphStore) -> None:
        store.create_lock(DeduplicationLock())
        store.create_lock(DeduplicationLock(status=LockStatus.COMPLETED))
        store.create_lock(DeduplicationLock(operation_type="reindex"))

        assert len(store.list_locks()) == 3
        assert len(store.list_locks(status=LockStatus.ACTIVE)) == 2
        assert len(store.list_locks(operation_type="reindex")) == 1
        assert (
            len(
                store.list_locks(
                    status=LockStatus.ACTIVE, operation_type="deduplication"
                )
            )
            == 1
        )

    def test_create_if_none_active(self, store: InMemoryGraphStore) -> None:
        first = store.create_lock_if_none_active(DeduplicationLock())
        second = store.create_lock_if_none_active(DeduplicationLock())

        assert first is not None
        assert second is None
        assert len(store.list_locks()) == 1

    def test_create_if_none_active_ignores_other_types(
        self, store: InMemoryGraphStore
    ) -> None:
        store.create_lock(DeduplicationLock(operation_type="reindex"))
        assert store.create_lock_if_none_active(DeduplicationLock()) is not None

    def test_create_if_none_active_after_completion(
        self, store: InMemoryGraphStore
    ) -> None:
        lock = store.create_lock_if_none_active(DeduplicationLock())
        assert lock is not None
        store.update_lock(lock.id, status=LockStatus.COMPLETED)
        assert store.create_lock_if_none_active(DeduplicationLock()) is not None

    def test_update_missing_lock_raises(self, store: InMemoryGraphStore) -> None:
        with pytest.raises(ValueError, match="Lock not found"):
            store.update_lock("000000000000", status=LockStatus.FAILED)
