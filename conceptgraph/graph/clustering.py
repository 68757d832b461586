"""
Greedy clustering of concepts into duplicate groups.

Concepts are ranked by confidence (highest first) and capped at
max_concepts. Each unprocessed concept in rank order becomes a primary
and collects every later unprocessed concept scoring at or above the
threshold against it. Groups are disjoint.

Chaining is one hop only: a concept similar to a duplicate but not to
the primary is left for a later primary, never folded in transitively.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Sequence
from dataclasses import dataclass, field

from conceptgraph.graph.models import Concept
from conceptgraph.graph.similarity import concept_similarity

logger = logging.getLogger(__name__)

DEFAULT_THRESHOLD = 0.8
DEFAULT_MAX_CONCEPTS = 1000

SimilarityFn = Callable[[Concept, Concept], float]


@dataclass
class MergeGroup:
    """
    One primary concept plus the duplicates to fold into it.

    Attributes:
        primary: Highest-ranked concept of the group; survives the merge
        duplicates: Concepts to merge away, in discovery order
        max_similarity: Highest primary/duplicate score in the group
    """

    primary: Concept
    duplicates: list[Concept] = field(default_factory=list)
    max_similarity: float = 0.0

    @property
    def duplicate_ids(self) -> list[str]:
        """IDs of the duplicates, in discovery order."""
        return [d.id for d in self.duplicates]


def rank_concepts(
    concepts: Sequence[Concept], max_concepts: int = DEFAULT_MAX_CONCEPTS
) -> list[Concept]:
    """
    Sort by confidence descending and truncate to ``max_concepts``.

    The sort is stable, so ties keep their incoming order.

    Args:
        concepts: Candidate concepts
        max_concepts: Maximum number of concepts to keep

    Returns:
        The ranked, truncated list
    """
    ranked = sorted(concepts, key=lambda c: c.confidence_score, reverse=True)
    if len(ranked) > max_concepts:
        logger.info(
            f"Too many concepts ({len(ranked)}); "
            f"processing the top {max_concepts} by confidence"
        )
    return ranked[:max_concepts]


def cluster_concepts(
    concepts: Sequence[Concept],
    threshold: float = DEFAULT_THRESHOLD,
    max_concepts: int = DEFAULT_MAX_CONCEPTS,
    similarity: SimilarityFn = concept_similarity,
) -> list[MergeGroup]:
    """
    Partition concepts into disjoint duplicate groups.

    Args:
        concepts: Candidate concepts, in any order
        threshold: Minimum score for a concept to join a primary's group
        max_concepts: Cap on the number of concepts considered
        similarity: Pairwise scoring function

    Returns:
        Groups with at least one duplicate, in primary rank order

    Raises:
        ValueError: If threshold is outside [0, 1] or max_concepts < 1
    """
    if not 0.0 <= threshold <= 1.0:
        raise ValueError(f"threshold must be within [0, 1], got {threshold}")
    if max_concepts < 1:
        raise ValueError(f"max_concepts must be positive, got {max_concepts}")

    ranked = rank_concepts(concepts, max_concepts)
    processed: set[str] = set()
    groups: list[MergeGroup] = []

    for i, primary in enumerate(ranked):
        if primary.id in processed:
            continue

        group = MergeGroup(primary=primary)
        for candidate in ranked[i + 1 :]:
            if candidate.id in processed:
                continue

            score = similarity(primary, candidate)
            if score >= threshold:
                group.duplicates.append(candidate)
                group.max_similarity = max(group.max_similarity, score)
                processed.add(candidate.id)
                logger.debug(
                    f"Found duplicate: '{primary.name}' <-> "
                    f"'{candidate.name}' ({score:.2f})"
                )

        if group.duplicates:
            processed.add(primary.id)
            groups.append(group)

    logger.info(
        f"Clustered {len(ranked)} concepts into {len(groups)} merge groups "
        f"(threshold: {threshold})"
    )
    return groups
