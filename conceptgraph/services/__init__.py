"""
Service Container and Lifecycle Management.

Provides a centralized container for service instances with
startup/shutdown lifecycle management for FastAPI integration.
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from datetime import timedelta
from typing import AsyncIterator

from fastapi import FastAPI

from conceptgraph.core.config import Settings, get_settings
from conceptgraph.graph.locks import LockManager
from conceptgraph.graph.persistence import JsonGraphStore
from conceptgraph.graph.similarity import DeduplicationConfig
from conceptgraph.graph.store import GraphStore, InMemoryGraphStore
from conceptgraph.services.graph_service import ConceptGraphService

logger = logging.getLogger(__name__)


def build_store(settings: Settings) -> GraphStore:
    """
    Create the GraphStore selected by ``settings.store_backend``.

    Args:
        settings: Application settings

    Returns:
        JsonGraphStore under ``<data_path>/graph`` or an InMemoryGraphStore
    """
    if settings.store_backend == "memory":
        logger.info("Using in-memory graph store")
        return InMemoryGraphStore()

    graph_path = settings.data_path / "graph"
    logger.info(f"Using JSON graph store at {graph_path}")
    return JsonGraphStore(graph_path)


class ServiceContainer:
    """
    Dependency injection container for services.

    Manages service lifecycle with startup/shutdown hooks for proper
    resource management in FastAPI applications.
    """

    def __init__(self, settings: Settings | None = None) -> None:
        """Initialize container with empty service references."""
        self._settings = settings
        self._graph: ConceptGraphService | None = None

    @property
    def graph(self) -> ConceptGraphService:
        """Get concept graph service instance."""
        if self._graph is None:
            raise RuntimeError(
                "ServiceContainer not initialized - call startup() first"
            )
        return self._graph

    async def startup(self) -> None:
        """Build the store and the services on top of it."""
        logger.info("Starting service container")

        settings = self._settings or get_settings()
        store = build_store(settings)
        config = DeduplicationConfig(
            threshold=settings.dedup_threshold,
            max_concepts=settings.dedup_max_concepts,
            confidence_boost=settings.confidence_boost,
            directional_relationship_keys=settings.directional_relationship_keys,
        )
        lock_manager = LockManager(
            store, timeout=timedelta(minutes=settings.lock_timeout_minutes)
        )
        self._graph = ConceptGraphService(
            store,
            export_path=settings.data_path / "exports",
            config=config,
            lock_manager=lock_manager,
            auto_deduplicate=settings.auto_deduplicate_on_ingest,
        )

        logger.info("Service container started")

    async def shutdown(self) -> None:
        """Release service references."""
        logger.info("Shutting down service container")
        self._graph = None
        logger.info("Service container shutdown complete")


# Global service container instance
_services: ServiceContainer | None = None


def get_services() -> ServiceContainer:
    """
    Get the global service container instance.

    Returns:
        Global ServiceContainer singleton

    Raises:
        RuntimeError: If container hasn't been initialized
    """
    if _services is None:
        raise RuntimeError(
            "Services not initialized - ensure services_lifespan() is used"
        )
    return _services


@asynccontextmanager
async def services_lifespan(app: FastAPI) -> AsyncIterator[None]:
    """
    FastAPI lifespan context manager for service initialization.

    Args:
        app: FastAPI application instance

    Yields:
        None (context manager pattern)
    """
    global _services

    _services = ServiceContainer()
    await _services.startup()
    logger.info("FastAPI services initialized")

    try:
        yield
    finally:
        if _services:
            await _services.shutdown()
        _services = None
        logger.info("FastAPI services cleaned up")


__all__ = [
    "ConceptGraphService",
    "ServiceContainer",
    "build_store",
    "get_services",
    "services_lifespan",
]
