"""
Concept similarity scoring for duplicate detection.

This module provides:
- DeduplicationConfig: thresholds, limits and signal weights for a run
- String similarity: normalized Levenshtein (via rapidfuzz)
- Alias overlap: Jaccard over name + aliases
- ConceptScorer: weighted blend of the signals

The score is purely lexical:
1. Name similarity (weight 0.5)
2. Description similarity (weight 0.3)
3. Alias overlap (weight 0.2)
4. Category match (flat +0.1 bonus)
capped at 1.0.
"""

from __future__ import annotations

from collections.abc import Iterable
from typing import TYPE_CHECKING

from pydantic import BaseModel, Field
from rapidfuzz.distance import Levenshtein

if TYPE_CHECKING:
    from conceptgraph.graph.models import Concept


# ============================================================================
# Configuration
# ============================================================================


class DeduplicationConfig(BaseModel):
    """
    Configuration for a deduplication run.

    Attributes:
        threshold: Minimum similarity for two concepts to be merged
        max_concepts: Cap on concepts considered (highest confidence first)
        confidence_boost: Multiplier applied to the averaged confidence of
            a merged group (result capped at 1.0)
        name_weight: Weight for name string similarity
        description_weight: Weight for description string similarity
        alias_weight: Weight for alias overlap (Jaccard)
        category_bonus: Flat bonus when both categories are set and equal
        directional_relationship_keys: If False, A->B and B->A edges of the
            same type are treated as the same edge during relationship merge
    """

    threshold: float = Field(default=0.8, ge=0.0, le=1.0)
    max_concepts: int = Field(default=1000, ge=1)
    confidence_boost: float = Field(default=1.1, ge=0.0)
    name_weight: float = Field(default=0.5, ge=0.0, le=1.0)
    description_weight: float = Field(default=0.3, ge=0.0, le=1.0)
    alias_weight: float = Field(default=0.2, ge=0.0, le=1.0)
    category_bonus: float = Field(default=0.1, ge=0.0, le=1.0)
    directional_relationship_keys: bool = False


# ============================================================================
# String Similarity Functions
# ============================================================================


def string_similarity(s1: str | None, s2: str | None) -> float:
    """
    Compute normalized Levenshtein similarity between two strings.

    Exact matches short-circuit to 1.0. Otherwise both strings are
    lower-cased and scored as ``(len(longer) - distance) / len(longer)``
    using unit-cost insert/delete/substitute edit distance.

    Args:
        s1: First string (None is treated as "")
        s2: Second string (None is treated as "")

    Returns:
        Similarity score between 0.0 and 1.0.

    Examples:
        >>> string_similarity("kitten", "sitting")
        0.571...
        >>> string_similarity("", "")
        1.0
    """
    s1 = s1 or ""
    s2 = s2 or ""
    if s1 == s2:
        return 1.0

    a = s1.lower()
    b = s2.lower()
    longer, shorter = (a, b) if len(a) > len(b) else (b, a)
    if not longer:
        return 1.0

    distance = Levenshtein.distance(longer, shorter)
    return (len(longer) - distance) / len(longer)


def alias_overlap_score(names_a: Iterable[str], names_b: Iterable[str]) -> float:
    """
    Compute Jaccard similarity between two name sets.

    Jaccard = |A intersection B| / |A union B|. Case is preserved as
    stored; "ML" and "ml" are different members.

    Args:
        names_a: First set of names (typically name + aliases).
        names_b: Second set of names.

    Returns:
        Jaccard similarity between 0.0 and 1.0 (0.0 for two empty sets).

    Examples:
        >>> alias_overlap_score(["ML", "Machine Learning"], ["Machine Learning"])
        0.5
    """
    set_a = set(names_a)
    set_b = set(names_b)
    union = set_a | set_b
    if not union:
        return 0.0
    return len(set_a & set_b) / len(union)


def _name_set(concept: Concept) -> set[str]:
    return {concept.name or "", *concept.aliases}


# ============================================================================
# Concept Scorer
# ============================================================================


class ConceptScorer:
    """
    Computes similarity between concepts for deduplication.

    Uses the signal weights of a DeduplicationConfig:
    - name_sim: string similarity of names
    - description_sim: string similarity of descriptions
    - alias_sim: Jaccard overlap of {name} | aliases
    - category_bonus: flat bonus for equal, non-empty categories

    Example:
        scorer = ConceptScorer()
        score = scorer.similarity(concept_a, concept_b)
        score, signals = scorer.compute_similarity(concept_a, concept_b)
    """

    def __init__(self, config: DeduplicationConfig | None = None) -> None:
        """
        Initialize the scorer.

        Args:
            config: Optional DeduplicationConfig. Uses defaults if not provided.
        """
        self.config = config or DeduplicationConfig()

    def compute_similarity(
        self, concept_a: Concept, concept_b: Concept
    ) -> tuple[float, dict[str, float]]:
        """
        Compute the blended similarity and the individual signals.

        Args:
            concept_a: First concept
            concept_b: Second concept

        Returns:
            Tuple of (score capped at 1.0, signal dict)
        """
        config = self.config

        name_sim = string_similarity(concept_a.name, concept_b.name)
        description_sim = string_similarity(
            concept_a.description, concept_b.description
        )
        alias_sim = alias_overlap_score(_name_set(concept_a), _name_set(concept_b))
        category_bonus = (
            config.category_bonus
            if concept_a.category
            and concept_b.category
            and concept_a.category == concept_b.category
            else 0.0
        )

        signals = {
            "name_sim": name_sim,
            "description_sim": description_sim,
            "alias_sim": alias_sim,
            "category_bonus": category_bonus,
        }
        score = (
            config.name_weight * name_sim
            + config.description_weight * description_sim
            + config.alias_weight * alias_sim
            + category_bonus
        )
        return min(1.0, score), signals

    def similarity(self, concept_a: Concept, concept_b: Concept) -> float:
        """Return only the blended score for a pair of concepts."""
        score, _ = self.compute_similarity(concept_a, concept_b)
        return score


_default_scorer = ConceptScorer()


def concept_similarity(concept_a: Concept, concept_b: Concept) -> float:
    """Score two concepts with the default weights."""
    return _default_scorer.similarity(concept_a, concept_b)
