"""
Graph persistence: JSON-file backed store and GraphML export.

JsonGraphStore keeps the InMemoryGraphStore tables and mirrors them to
disk after every committed (outermost) transaction:

    <base_path>/
        concepts.json       - All Concept objects
        relationships.json  - All Relationship objects
        locks.json          - All DeduplicationLock objects

Design Decisions:
- Atomic writes using tempfile + os.replace to prevent corruption
- JSON for data files (human-readable, easy debugging)
- A rolled-back transaction never reaches disk
- GraphML for interoperability (Gephi, Neo4j, yEd, etc.)
"""

from __future__ import annotations

import json
import logging
import os
import tempfile
from pathlib import Path
from typing import Any

import networkx as nx  # type: ignore[import-untyped]

from conceptgraph.graph.models import Concept, DeduplicationLock, Relationship
from conceptgraph.graph.store import GraphStore, InMemoryGraphStore

logger = logging.getLogger(__name__)

CONCEPTS_FILE = "concepts.json"
RELATIONSHIPS_FILE = "relationships.json"
LOCKS_FILE = "locks.json"


def _atomic_write(path: Path, content: str) -> None:
    """
    Atomically write content to a file.

    Uses the write-to-temp-then-rename pattern. File renames are atomic
    on POSIX systems, preventing partial writes even if the process is
    interrupted mid-write.

    Args:
        path: Target file path
        content: String content to write

    Raises:
        OSError: If write or rename fails
    """
    # Temp file in the same directory keeps the rename on one filesystem
    fd, temp_path = tempfile.mkstemp(dir=path.parent, suffix=".tmp")
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as f:
            f.write(content)
        os.replace(temp_path, path)
    except Exception:
        if os.path.exists(temp_path):
            os.unlink(temp_path)
        raise


def _read_records(path: Path) -> list[dict[str, Any]]:
    if not path.exists():
        return []
    return json.loads(path.read_text(encoding="utf-8"))


class JsonGraphStore(InMemoryGraphStore):
    """
    File-backed GraphStore for single-host deployments.

    Loads all tables at construction time and rewrites them atomically
    whenever an outermost transaction commits.
    """

    def __init__(self, base_path: Path) -> None:
        """
        Open (or create) a store directory.

        Args:
            base_path: Directory holding the JSON table files
        """
        super().__init__()
        self.base_path = base_path
        self.base_path.mkdir(parents=True, exist_ok=True)
        self._load()

    def _load(self) -> None:
        for data in _read_records(self.base_path / CONCEPTS_FILE):
            concept = Concept.model_validate(data)
            self._concepts[concept.id] = concept
        for data in _read_records(self.base_path / RELATIONSHIPS_FILE):
            rel = Relationship.model_validate(data)
            self._relationships[rel.id] = rel
        for data in _read_records(self.base_path / LOCKS_FILE):
            lock = DeduplicationLock.model_validate(data)
            self._locks[lock.id] = lock

        logger.info(
            f"Loaded graph store from {self.base_path}: "
            f"{len(self._concepts)} concepts, "
            f"{len(self._relationships)} relationships, "
            f"{len(self._locks)} locks"
        )

    def _commit(self) -> None:
        tables: list[tuple[str, list[Any]]] = [
            (CONCEPTS_FILE, list(self._concepts.values())),
            (RELATIONSHIPS_FILE, list(self._relationships.values())),
            (LOCKS_FILE, list(self._locks.values())),
        ]
        for filename, records in tables:
            payload = [r.model_dump(mode="json") for r in records]
            _atomic_write(self.base_path / filename, json.dumps(payload, indent=2))


def export_graphml(store: GraphStore, output_path: Path) -> None:
    """
    Export the concept graph to GraphML format.

    Creates a NetworkX-compatible GraphML file suitable for import into
    graph visualization tools like Gephi, yEd, or Cytoscape.

    Node attributes exported:
        - name, description, category, confidence
        - aliases: Comma-separated list of alternative names
        - document_count: Number of contributing documents

    Edge attributes exported:
        - relationship_type, strength, context

    Relationships whose endpoints no longer exist are skipped.

    Args:
        store: GraphStore to export
        output_path: File path for the GraphML output
    """
    G: nx.MultiDiGraph = nx.MultiDiGraph()

    for concept in store.get_concepts():
        G.add_node(
            concept.id,
            name=concept.name,
            description=concept.description,
            category=concept.category or "",
            confidence=concept.confidence_score,
            # GraphML doesn't support lists
            aliases=",".join(concept.aliases),
            document_count=len(concept.document_ids),
        )

    for rel in store.get_relationships():
        if rel.source_concept_id not in G or rel.target_concept_id not in G:
            logger.debug(f"Skipping dangling relationship {rel.id} in export")
            continue
        G.add_edge(
            rel.source_concept_id,
            rel.target_concept_id,
            key=rel.id,
            relationship_type=rel.relationship_type,
            strength=rel.strength,
            context=rel.context,
        )

    output_path.parent.mkdir(parents=True, exist_ok=True)
    nx.write_graphml(G, str(output_path))
