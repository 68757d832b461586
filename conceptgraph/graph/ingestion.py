"""
Extraction ingestion: persist an ExtractionResult as concepts and relationships.

Concepts are created first and indexed by name; relationships are then
resolved through that index. Relationships naming a concept that was not
created are skipped. Individual creation failures are collected into the
report instead of aborting the document.
"""

from __future__ import annotations

import logging

from pydantic import BaseModel, Field

from conceptgraph.graph.dedup import DeduplicationSummary
from conceptgraph.graph.models import Concept, Relationship
from conceptgraph.graph.schemas import ExtractionResult
from conceptgraph.graph.store import GraphStore

logger = logging.getLogger(__name__)


class IngestionReport(BaseModel):
    """
    Result of ingesting one document's extraction.

    Attributes:
        document_id: Document the extraction came from
        concepts_created: Number of concepts persisted
        relationships_created: Number of relationships persisted
        concept_ids: IDs of the created concepts, keyed by extracted name
        failed_concepts: Names of concepts that could not be created
        failed_relationships: "source -> target" of relationships that failed
        skipped_relationships: "source -> target" of unresolved relationships
        deduplication: Summary of the follow-up dedup run, if one ran
        warning: Set when any item failed to create
    """

    document_id: str
    concepts_created: int = 0
    relationships_created: int = 0
    concept_ids: dict[str, str] = Field(default_factory=dict)
    failed_concepts: list[str] = Field(default_factory=list)
    failed_relationships: list[str] = Field(default_factory=list)
    skipped_relationships: list[str] = Field(default_factory=list)
    deduplication: DeduplicationSummary | None = None
    warning: str | None = None


def ingest_extraction(
    store: GraphStore, document_id: str, result: ExtractionResult
) -> IngestionReport:
    """
    Persist extracted concepts and relationships for a document.

    Args:
        store: GraphStore to write to
        document_id: Document the extraction belongs to
        result: Extraction payload

    Returns:
        IngestionReport with counts and per-item failures
    """
    report = IngestionReport(document_id=document_id)
    logger.info(
        f"Ingesting {len(result.concepts)} concepts and "
        f"{len(result.relationships)} relationships for document {document_id}"
    )

    for extracted in result.concepts:
        try:
            concept = store.create_concept(
                Concept(
                    name=extracted.name,
                    description=extracted.description,
                    confidence_score=extracted.confidence,
                    category=extracted.category,
                    aliases=extracted.aliases,
                    document_ids=[document_id],
                )
            )
        except Exception as e:
            logger.error(f"Failed to create concept '{extracted.name}': {e}")
            report.failed_concepts.append(extracted.name)
            continue

        report.concept_ids[extracted.name] = concept.id
        report.concepts_created += 1
        logger.debug(
            f"Created concept: '{concept.name}' "
            f"(confidence: {concept.confidence_score:.2f})"
        )

    for extracted in result.relationships:
        label = f"{extracted.source} -> {extracted.target}"
        source_id = report.concept_ids.get(extracted.source)
        target_id = report.concept_ids.get(extracted.target)

        if source_id is None or target_id is None:
            logger.warning(f"Skipping relationship '{label}': concept(s) not found")
            report.skipped_relationships.append(label)
            continue

        try:
            store.create_relationship(
                Relationship(
                    source_concept_id=source_id,
                    target_concept_id=target_id,
                    relationship_type=extracted.type,
                    strength=extracted.strength,
                    context=extracted.context,
                    document_id=document_id,
                )
            )
        except Exception as e:
            logger.error(f"Failed to create relationship '{label}': {e}")
            report.failed_relationships.append(label)
            continue

        report.relationships_created += 1

    if report.failed_concepts or report.failed_relationships:
        report.warning = (
            f"Some items failed to create: {len(report.failed_concepts)} concepts, "
            f"{len(report.failed_relationships)} relationships"
        )

    logger.info(
        f"Document processing complete: {report.concepts_created} concepts, "
        f"{report.relationships_created} relationships created"
    )
    return report
