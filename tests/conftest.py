"""
Pytest configuration and fixtures for concept graph tests.
"""

from __future__ import annotations

from collections.abc import Callable
from datetime import datetime, timedelta, timezone
from typing import Any

import pytest

from conceptgraph.graph.models import Concept, Relationship
from conceptgraph.graph.store import GraphStore, InMemoryGraphStore


def _make_concept(name: str, **fields: Any) -> Concept:
    fields.setdefault("description", f"About {name}")
    fields.setdefault("confidence_score", 0.8)
    return Concept(name=name, **fields)


class GraphBuilder:
    """Seeds a GraphStore with concepts and relationships."""

    def __init__(self, store: GraphStore) -> None:
        self.store = store

    def concept(self, name: str, **fields: Any) -> Concept:
        return self.store.create_concept(_make_concept(name, **fields))

    def relationship(
        self,
        source: Concept,
        target: Concept,
        relationship_type: str = "uses",
        **fields: Any,
    ) -> Relationship:
        return self.store.create_relationship(
            Relationship(
                source_concept_id=source.id,
                target_concept_id=target.id,
                relationship_type=relationship_type,
                **fields,
            )
        )


class FakeClock:
    """Manually advanced clock for lock timeout tests."""

    def __init__(self, start: datetime | None = None) -> None:
        self.now = start or datetime(2024, 1, 1, 12, 0, tzinfo=timezone.utc)

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs: float) -> None:
        self.now += timedelta(**kwargs)


@pytest.fixture
def make_concept() -> Callable[..., Concept]:
    """Factory for unsaved Concepts with test-friendly defaults."""
    return _make_concept


@pytest.fixture
def store() -> InMemoryGraphStore:
    """Fresh in-memory graph store."""
    return InMemoryGraphStore()


@pytest.fixture
def builder(store: InMemoryGraphStore) -> GraphBuilder:
    """GraphBuilder bound to the in-memory ``store`` fixture."""
    return GraphBuilder(store)


@pytest.fixture
def clock() -> FakeClock:
    """Controllable clock starting at a fixed UTC instant."""
    return FakeClock()
