"""
Concept graph API endpoints.

Provides endpoints for:
- Graph visualization data and GraphML export
- Concept lookup, listing and neighborhood queries
- Extraction ingestion per document
- Deduplication runs and lock inspection
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, Query
from fastapi.responses import FileResponse

from conceptgraph import __version__
from conceptgraph.api.deps import (
    ValidatedConceptId,
    ValidatedDocumentId,
    get_graph_service,
)
from conceptgraph.api.errors import dedup_failure_to_http, handle_endpoint_error
from conceptgraph.core.config import get_settings
from conceptgraph.core.validators import DOCUMENT_ID_PATTERN
from conceptgraph.graph.dedup import DeduplicationSummary
from conceptgraph.graph.ingestion import IngestionReport
from conceptgraph.graph.models import Concept, LockStatus
from conceptgraph.graph.schemas import ExtractionResult
from conceptgraph.models.api import (
    ConceptListResponse,
    ConceptRelationshipsResponse,
    GraphDataResponse,
    HealthResponse,
    LockListResponse,
)
from conceptgraph.models.errors import concept_not_found_error
from conceptgraph.models.requests import DeduplicateRequest
from conceptgraph.services import ConceptGraphService

router = APIRouter(tags=["concept-graph"])

# Health check endpoint for Docker/k8s
health_router = APIRouter(tags=["health"])


@health_router.get("/health", response_model=HealthResponse)
async def health_check() -> HealthResponse:
    """
    Health check endpoint for monitoring and orchestration.

    Returns:
        Status, package version and configured store backend
    """
    return HealthResponse(
        status="ok",
        version=__version__,
        store_backend=get_settings().store_backend,
    )


# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
# GRAPH
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━


@router.get("/graph", response_model=GraphDataResponse)
async def get_graph(
    graph_service: ConceptGraphService = Depends(get_graph_service),
) -> GraphDataResponse:
    """
    Get every concept and relationship as graph nodes and edges.

    Args:
        graph_service: Injected concept graph service

    Returns:
        GraphDataResponse with nodes and edges
    """
    try:
        data = await graph_service.get_graph_data()
    except Exception as e:
        raise handle_endpoint_error(e, "get_graph")
    return GraphDataResponse.model_validate(data)


@router.get("/graph/export")
async def export_graph(
    graph_service: ConceptGraphService = Depends(get_graph_service),
) -> FileResponse:
    """
    Export the concept graph as a GraphML download.

    Suitable for visualization tools like Gephi, yEd, or Cytoscape.

    Args:
        graph_service: Injected concept graph service

    Returns:
        FileResponse with attachment disposition
    """
    try:
        path = await graph_service.export_graphml()
    except Exception as e:
        raise handle_endpoint_error(e, "export_graph")
    return FileResponse(path=path, filename=path.name, media_type="application/xml")


# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
# CONCEPTS
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━


@router.get("/concepts", response_model=ConceptListResponse)
async def list_concepts(
    document_id: str | None = Query(
        default=None, pattern=DOCUMENT_ID_PATTERN.pattern
    ),
    graph_service: ConceptGraphService = Depends(get_graph_service),
) -> ConceptListResponse:
    """
    List concepts, newest first.

    Args:
        document_id: Only return concepts citing this document
        graph_service: Injected concept graph service

    Returns:
        ConceptListResponse with concepts and total count
    """
    concepts = await graph_service.list_concepts(document_id)
    return ConceptListResponse(concepts=concepts, total=len(concepts))


@router.get("/concepts/{concept_id}", response_model=Concept)
async def get_concept(
    concept_id: str = Depends(ValidatedConceptId()),
    graph_service: ConceptGraphService = Depends(get_graph_service),
) -> Concept:
    """
    Get a single concept.

    Args:
        concept_id: 12-character concept identifier
        graph_service: Injected concept graph service

    Returns:
        The concept

    Raises:
        HTTPException: 404 if the concept does not exist
    """
    concept = await graph_service.get_concept(concept_id)
    if concept is None:
        raise HTTPException(
            status_code=404, detail=concept_not_found_error(concept_id).to_dict()
        )
    return concept


@router.get(
    "/concepts/{concept_id}/relationships",
    response_model=ConceptRelationshipsResponse,
)
async def get_concept_relationships(
    concept_id: str = Depends(ValidatedConceptId()),
    graph_service: ConceptGraphService = Depends(get_graph_service),
) -> ConceptRelationshipsResponse:
    """
    Get a concept's relationships and the concepts they connect to.

    Args:
        concept_id: 12-character concept identifier
        graph_service: Injected concept graph service

    Returns:
        ConceptRelationshipsResponse

    Raises:
        HTTPException: 404 if the concept does not exist
    """
    try:
        relationships, related = await graph_service.get_concept_relationships(
            concept_id
        )
    except Exception as e:
        raise handle_endpoint_error(e, f"concept_relationships concept={concept_id}")

    return ConceptRelationshipsResponse(
        concept_id=concept_id,
        relationships=relationships,
        related_concepts=related,
    )


# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
# INGESTION
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━


@router.post("/documents/{document_id}/extraction", response_model=IngestionReport)
async def ingest_extraction(
    result: ExtractionResult,
    document_id: str = Depends(ValidatedDocumentId()),
    graph_service: ConceptGraphService = Depends(get_graph_service),
) -> IngestionReport:
    """
    Store the concepts and relationships extracted from a document.

    A document-scoped deduplication runs afterwards when enabled; its
    summary is attached to the report.

    Args:
        result: Extraction payload
        document_id: Document the extraction belongs to
        graph_service: Injected concept graph service

    Returns:
        IngestionReport with counts and per-item failures
    """
    try:
        return await graph_service.ingest_extraction(document_id, result)
    except Exception as e:
        raise handle_endpoint_error(e, f"ingest_extraction document={document_id}")


# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
# DEDUPLICATION
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━


@router.post("/dedup", response_model=DeduplicationSummary)
async def deduplicate(
    request: DeduplicateRequest,
    graph_service: ConceptGraphService = Depends(get_graph_service),
) -> DeduplicationSummary:
    """
    Run a deduplication pass.

    Args:
        request: Optional document scope, threshold and concept cap
        graph_service: Injected concept graph service

    Returns:
        DeduplicationSummary for a completed run

    Raises:
        HTTPException: 409 if another run is active, 500 on a critical error
    """
    summary = await graph_service.deduplicate(
        document_id=request.document_id,
        threshold=request.threshold,
        max_concepts=request.max_concepts,
    )
    if not summary.success:
        raise dedup_failure_to_http(summary)
    return summary


@router.get("/dedup/locks", response_model=LockListResponse)
async def list_locks(
    status: LockStatus | None = None,
    operation_type: str | None = None,
    graph_service: ConceptGraphService = Depends(get_graph_service),
) -> LockListResponse:
    """
    List deduplication locks, oldest first.

    Args:
        status: Only return locks in this state
        operation_type: Only return locks with this tag
        graph_service: Injected concept graph service

    Returns:
        LockListResponse with locks and total count
    """
    locks = await graph_service.list_locks(status, operation_type)
    return LockListResponse(locks=locks, total=len(locks))
