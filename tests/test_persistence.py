"""
Tests for JSON persistence and GraphML export.

Tests cover:
- Round-trip through JsonGraphStore files
- Rolled-back transactions never reach disk
- GraphML node/edge attributes
"""

from __future__ import annotations

import json
from pathlib import Path

import networkx as nx
import pytest

from conceptgraph.graph import persistence
from conceptgraph.graph.clustering import MergeGroup
from conceptgraph.graph.merge import MergeExecutor
from conceptgraph.graph.models import Concept, DeduplicationLock, Relationship
from conceptgraph.graph.persistence import (
    CONCEPTS_FILE,
    LOCKS_FILE,
    RELATIONSHIPS_FILE,
    JsonGraphStore,
    export_graphml,
)
from conceptgraph.graph.store import InMemoryGraphStore


def _seed(store: InMemoryGraphStore) -> tuple[Concept, Concept, Relationship]:
    a = store.create_concept(
        Concept(
            name="Python",
            description="A language",
            confidence_score=0.9,
            category="language",
            aliases=["CPython", "Py"],
            document_ids=["doc-1", "doc-2"],
        )
    )
    b = store.create_concept(Concept(name="Django", document_ids=["doc-1"]))
    rel = store.create_relationship(
        Relationship(
            source_concept_id=b.id,
            target_concept_id=a.id,
            relationship_type="written in",
            strength=0.7,
            context="Django is a Python web framework",
        )
    )
    return a, b, rel


class TestJsonGraphStore:
    """File-backed store behavior."""

    def test_creates_directory(self, tmp_path: Path) -> None:
        JsonGraphStore(tmp_path / "nested" / "graph")
        assert (tmp_path / "nested" / "graph").is_dir()

    def test_round_trip(self, tmp_path: Path) -> None:
        store = JsonGraphStore(tmp_path)
        a, b, rel = _seed(store)
        lock = store.create_lock(DeduplicationLock(document_id="doc-1"))

        reopened = JsonGraphStore(tmp_path)

        assert reopened.get_concept(a.id) == a
        assert reopened.get_concept(b.id) == b
        assert reopened.get_relationship(rel.id) == rel
        assert reopened.get_lock(lock.id) == lock

    def test_files_written(self, tmp_path: Path) -> None:
        store = JsonGraphStore(tmp_path)
        _seed(store)

        concepts = json.loads((tmp_path / CONCEPTS_FILE).read_text())
        relationships = json.loads((tmp_path / RELATIONSHIPS_FILE).read_text())
        locks = json.loads((tmp_path / LOCKS_FILE).read_text())

        assert {c["name"] for c in concepts} == {"Python", "Django"}
        assert relationships[0]["relationship_type"] == "written in"
        assert locks == []

    def test_rollback_not_persisted(self, tmp_path: Path) -> None:
        store = JsonGraphStore(tmp_path)
        a, _, _ = _seed(store)

        try:
            with store.transaction():
                store.update_concept(a.id, name="Renamed")
                store.delete_concept(a.id)
                raise RuntimeError("abort")
        except RuntimeError:
            pass

        reopened = JsonGraphStore(tmp_path)
        concept = reopened.get_concept(a.id)
        assert concept is not None
        assert concept.name == "Python"

    def test_failed_write_rolls_back_memory(
        self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        store = JsonGraphStore(tmp_path)
        a, _, _ = _seed(store)

        def _disk_full(path: Path, content: str) -> None:
            raise OSError("disk full")

        monkeypatch.setattr(persistence, "_atomic_write", _disk_full)

        with pytest.raises(OSError, match="disk full"):
            store.update_concept(a.id, name="Renamed")

        concept = store.get_concept(a.id)
        assert concept is not None
        assert concept.name == "Python"

    def test_failed_write_fails_merge_group(
        self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        """A group whose commit cannot reach disk is fully undone."""
        store = JsonGraphStore(tmp_path)
        primary = store.create_concept(Concept(name="Rust", confidence_score=0.9))
        dup = store.create_concept(Concept(name="rust", confidence_score=0.8))

        def _disk_full(path: Path, content: str) -> None:
            raise OSError("disk full")

        monkeypatch.setattr(persistence, "_atomic_write", _disk_full)

        outcome = MergeExecutor(store).execute_merge(
            MergeGroup(primary=primary, duplicates=[dup])
        )

        assert not outcome.success
        assert "disk full" in (outcome.error or "")
        assert store.get_concept(dup.id) == dup
        assert store.get_concept(primary.id) == primary

        monkeypatch.undo()
        reopened = JsonGraphStore(tmp_path)
        assert {c.id for c in reopened.get_concepts()} == {primary.id, dup.id}

    def test_no_temp_files_left(self, tmp_path: Path) -> None:
        store = JsonGraphStore(tmp_path)
        _seed(store)
        assert list(tmp_path.glob("*.tmp")) == []


class TestExportGraphML:
    """GraphML export."""

    def test_export(self, tmp_path: Path, store: InMemoryGraphStore) -> None:
        a, b, rel = _seed(store)
        output = tmp_path / "exports" / "graph.graphml"

        export_graphml(store, output)

        graph = nx.read_graphml(output)
        assert set(graph.nodes) == {a.id, b.id}
        node = graph.nodes[a.id]
        assert node["name"] == "Python"
        assert node["aliases"] == "CPython,Py"
        assert node["document_count"] == 2
        assert node["category"] == "language"

        edges = list(graph.edges(data=True))
        assert len(edges) == 1
        source, target, data = edges[0]
        assert (source, target) == (b.id, a.id)
        assert data["relationship_type"] == "written in"
        assert data["strength"] == 0.7

    def test_export_skips_dangling(
        self, tmp_path: Path, store: InMemoryGraphStore
    ) -> None:
        a, b, _ = _seed(store)
        store.delete_concept(b.id)
        output = tmp_path / "graph.graphml"

        export_graphml(store, output)

        graph = nx.read_graphml(output)
        assert list(graph.nodes) == [a.id]
        assert graph.number_of_edges() == 0
