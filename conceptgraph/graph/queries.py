"""
Read-side views over a GraphStore for visualization and browsing.
"""

from __future__ import annotations

from typing import Any

from conceptgraph.graph.models import Concept, Relationship
from conceptgraph.graph.store import GraphStore

DEFAULT_CATEGORY = "default"


def get_graph_data(store: GraphStore) -> dict[str, list[dict[str, Any]]]:
    """
    Build the node/edge payload used by graph visualizations.

    Node size is the number of contributing documents (at least 1) and
    uncategorized concepts fall into the "default" category.

    Args:
        store: GraphStore to read from

    Returns:
        Dictionary with:
        - nodes: id, name, category, size, description, confidence
        - edges: id, source, target, strength, type, context
    """
    nodes = [
        {
            "id": concept.id,
            "name": concept.name,
            "category": concept.category or DEFAULT_CATEGORY,
            "size": len(concept.document_ids) or 1,
            "description": concept.description,
            "confidence": concept.confidence_score,
        }
        for concept in store.get_concepts()
    ]
    edges = [
        {
            "id": rel.id,
            "source": rel.source_concept_id,
            "target": rel.target_concept_id,
            "strength": rel.strength,
            "type": rel.relationship_type,
            "context": rel.context,
        }
        for rel in store.get_relationships()
    ]
    return {"nodes": nodes, "edges": edges}


def get_concept_relationships(
    store: GraphStore, concept_id: str
) -> tuple[list[Relationship], list[Concept]]:
    """
    Get a concept's relationships and the concepts on their far ends.

    Related concepts are distinct, in discovery order; references to
    concepts that no longer exist are dropped.

    Args:
        store: GraphStore to read from
        concept_id: Concept to look up

    Returns:
        Tuple of (relationships, related_concepts)

    Raises:
        ValueError: If the concept does not exist
    """
    if store.get_concept(concept_id) is None:
        raise ValueError(f"Concept not found: {concept_id}")

    relationships = store.get_relationships_by_concept(concept_id)
    related_ids: dict[str, None] = {}
    for rel in relationships:
        for endpoint in (rel.source_concept_id, rel.target_concept_id):
            if endpoint != concept_id:
                related_ids[endpoint] = None

    related = [store.get_concept(cid) for cid in related_ids]
    return relationships, [c for c in related if c is not None]
