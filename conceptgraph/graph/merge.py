"""
Merge executor: folds a duplicate group into its primary concept.

For each MergeGroup:
1. Skip the group if the primary no longer exists
2. Snapshot relationships touching the primary and every duplicate
3. Union aliases and document IDs, boost the averaged confidence
4. Update the primary in place (description is kept as-is)
5. Rewire relationships from duplicates to the primary, dropping
   self-loops and redundant parallel edges of the same type
6. Delete the duplicates

Steps 2-6 run inside one store transaction, so a group either merges
completely or not at all. A failing group is reported and the caller
moves on to the next one.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from dataclasses import dataclass, field

from conceptgraph.graph.clustering import MergeGroup
from conceptgraph.graph.models import Concept, Relationship
from conceptgraph.graph.similarity import DeduplicationConfig
from conceptgraph.graph.store import GraphStore

logger = logging.getLogger(__name__)

CONTEXT_SEPARATOR = "; "


# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
# Results
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━


@dataclass
class RelationshipMergeStats:
    """
    Counters from one run of the relationship merge routine.

    Attributes:
        rewired: Relationships repointed in place to the primary
        strengthened: Existing relationships that absorbed a stronger duplicate
        self_loops: Relationships dropped because both ends became the primary
        redundant: Relationships dropped as a second copy of the same edge
        deleted: Relationships actually deleted
        delete_failures: IDs whose deletion failed (logged and ignored)
    """

    rewired: int = 0
    strengthened: int = 0
    self_loops: int = 0
    redundant: int = 0
    deleted: int = 0
    delete_failures: list[str] = field(default_factory=list)

    @property
    def changed(self) -> bool:
        """True if the routine modified or deleted anything."""
        return bool(self.rewired or self.strengthened or self.deleted)


@dataclass
class MergeOutcome:
    """
    Result of merging one group.

    Attributes:
        success: True if the group was merged
        merged_concept_id: ID of the surviving primary concept
        skipped: True if the group was skipped (primary vanished)
        error: Failure message for failed groups
        merged_count: Number of duplicates deleted
        aliases_added: Growth of the primary's alias list
        relationships: Relationship merge counters
    """

    success: bool
    merged_concept_id: str
    skipped: bool = False
    error: str | None = None
    merged_count: int = 0
    aliases_added: int = 0
    relationships: RelationshipMergeStats | None = None


# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
# Relationship helpers
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━


def relationship_key(source_id: str, target_id: str, relationship_type: str) -> str:
    """Canonical "source-target-type" key for an edge."""
    return f"{source_id}-{target_id}-{relationship_type}"


def snapshot_relationships(
    store: GraphStore, concept_ids: Iterable[str]
) -> dict[str, Relationship]:
    """
    Index relationships touching any of ``concept_ids`` by canonical key.

    The first relationship seen for a key wins.

    Args:
        store: GraphStore to read from
        concept_ids: Primary and duplicate concept IDs

    Returns:
        Mapping of "source-target-type" to Relationship
    """
    snapshot: dict[str, Relationship] = {}
    for concept_id in concept_ids:
        for rel in store.get_relationships_by_concept(concept_id):
            key = relationship_key(
                rel.source_concept_id, rel.target_concept_id, rel.relationship_type
            )
            snapshot.setdefault(key, rel)
    return snapshot


def merge_relationships(
    store: GraphStore,
    primary_id: str,
    duplicate_ids: list[str],
    existing: dict[str, Relationship],
    directional: bool = False,
) -> RelationshipMergeStats:
    """
    Rewire duplicates' relationships onto the primary without redundancy.

    For every relationship touching a duplicate (read live, per duplicate,
    in discovery order):
    - endpoints equal to any duplicate are replaced by the primary
    - a resulting self-loop is dropped
    - a second instance of an edge already rewired in this pass is dropped
    - a collision with a different pre-merge edge keeps the pre-merge edge,
      which takes over the strength (and appends the context) when the
      incoming edge is stronger; the incoming edge is dropped
    - otherwise the relationship is repointed in place

    Unless ``directional`` is set, A->B and B->A of the same type count as
    the same edge. Deletions run last and are best-effort.

    Args:
        store: GraphStore to mutate
        primary_id: Surviving concept ID
        duplicate_ids: Concept IDs being merged away
        existing: Pre-merge snapshot from snapshot_relationships()
        directional: Treat edge direction as significant

    Returns:
        RelationshipMergeStats for the pass
    """
    stats = RelationshipMergeStats()
    duplicate_set = set(duplicate_ids)
    seen: set[str] = set()
    to_delete: dict[str, None] = {}

    def _resolve(concept_id: str) -> str:
        return primary_id if concept_id in duplicate_set else concept_id

    for duplicate_id in duplicate_ids:
        for rel in store.get_relationships_by_concept(duplicate_id):
            if rel.id in to_delete:
                continue

            new_source = _resolve(rel.source_concept_id)
            new_target = _resolve(rel.target_concept_id)

            if new_source == new_target:
                logger.debug(f"Dropping self-relationship: {rel.relationship_type}")
                to_delete[rel.id] = None
                stats.self_loops += 1
                continue

            key = relationship_key(new_source, new_target, rel.relationship_type)
            keys = [key]
            if not directional:
                keys.append(
                    relationship_key(new_target, new_source, rel.relationship_type)
                )

            if any(k in seen for k in keys):
                logger.debug(f"Duplicate relationship found: {rel.relationship_type}")
                to_delete[rel.id] = None
                stats.redundant += 1
                continue

            collision_key = next((k for k in keys if k in existing), None)
            collision = existing[collision_key] if collision_key else None

            if collision is not None and collision.id != rel.id:
                logger.debug(f"Merging duplicate relationship: {rel.relationship_type}")
                if rel.strength > collision.strength:
                    context = (
                        f"{collision.context}{CONTEXT_SEPARATOR}{rel.context}"
                    ).strip()
                    updated = store.update_relationship(
                        collision.id,
                        source_concept_id=new_source,
                        target_concept_id=new_target,
                        strength=rel.strength,
                        context=context,
                    )
                    # Later collisions compare against the strengthened edge
                    existing[collision_key] = updated
                    stats.strengthened += 1
                to_delete[rel.id] = None
                stats.redundant += 1
                continue

            store.update_relationship(
                rel.id, source_concept_id=new_source, target_concept_id=new_target
            )
            seen.add(key)
            stats.rewired += 1

    for rel_id in to_delete:
        try:
            store.delete_relationship(rel_id)
            stats.deleted += 1
        except Exception as e:
            logger.warning(f"Failed to delete duplicate relationship {rel_id}: {e}")
            stats.delete_failures.append(rel_id)

    logger.info(
        f"Processed {len(seen)} unique relationships, "
        f"removed {stats.deleted} duplicates"
    )
    return stats


# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
# Merge Executor
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━


def merged_aliases(primary: Concept, duplicates: list[Concept]) -> list[str]:
    """
    Union of primary aliases, duplicate aliases and duplicate names.

    The primary's own name is excluded. Order is stable: primary aliases
    first, then each duplicate's aliases followed by its name.
    """
    names: dict[str, None] = dict.fromkeys(primary.aliases)
    for duplicate in duplicates:
        names.update(dict.fromkeys(duplicate.aliases))
        names[duplicate.name] = None
    names.pop(primary.name, None)
    return list(names)


def merged_document_ids(primary: Concept, duplicates: list[Concept]) -> list[str]:
    """Union of the group's document IDs, primary's first."""
    ids: dict[str, None] = dict.fromkeys(primary.document_ids)
    for duplicate in duplicates:
        ids.update(dict.fromkeys(duplicate.document_ids))
    return list(ids)


def merged_confidence(
    primary: Concept, duplicates: list[Concept], boost: float = 1.1
) -> float:
    """Average confidence of the group times ``boost``, capped at 1.0."""
    scores = [primary.confidence_score] + [d.confidence_score for d in duplicates]
    return min(1.0, (sum(scores) / len(scores)) * boost)


class MergeExecutor:
    """
    Applies MergeGroups to a GraphStore.

    Example:
        executor = MergeExecutor(store)
        for group in cluster_concepts(concepts):
            outcome = executor.execute_merge(group)
    """

    def __init__(
        self, store: GraphStore, config: DeduplicationConfig | None = None
    ) -> None:
        """
        Initialize the executor.

        Args:
            store: GraphStore to mutate
            config: Optional DeduplicationConfig. Uses defaults if not provided.
        """
        self.store = store
        self.config = config or DeduplicationConfig()

    def execute_merge(self, group: MergeGroup) -> MergeOutcome:
        """
        Merge one group, isolating any failure to the group.

        Args:
            group: The primary and its duplicates

        Returns:
            MergeOutcome describing success, skip, or failure
        """
        primary = group.primary

        if self.store.get_concept(primary.id) is None:
            logger.warning(
                f"Primary concept '{primary.name}' no longer exists, skipping merge"
            )
            return MergeOutcome(
                success=False, merged_concept_id=primary.id, skipped=True
            )

        try:
            with self.store.transaction():
                outcome = self._merge(group)
        except Exception as e:
            message = f"Failed to merge '{primary.name}': {e}"
            logger.error(message)
            return MergeOutcome(
                success=False, merged_concept_id=primary.id, error=message
            )

        logger.info(
            f"Merged {outcome.merged_count} concepts into '{primary.name}'"
        )
        return outcome

    def _merge(self, group: MergeGroup) -> MergeOutcome:
        primary = group.primary
        duplicates = group.duplicates
        duplicate_ids = group.duplicate_ids

        existing = snapshot_relationships(self.store, [primary.id, *duplicate_ids])

        aliases = merged_aliases(primary, duplicates)
        self.store.update_concept(
            primary.id,
            aliases=aliases,
            document_ids=merged_document_ids(primary, duplicates),
            confidence_score=merged_confidence(
                primary, duplicates, self.config.confidence_boost
            ),
            description=primary.description,
        )

        rel_stats = merge_relationships(
            self.store,
            primary.id,
            duplicate_ids,
            existing,
            directional=self.config.directional_relationship_keys,
        )

        for duplicate_id in duplicate_ids:
            self.store.delete_concept(duplicate_id)

        return MergeOutcome(
            success=True,
            merged_concept_id=primary.id,
            merged_count=len(duplicates),
            aliases_added=max(0, len(aliases) - len(primary.aliases)),
            relationships=rel_stats,
        )
