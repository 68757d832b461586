"""
API router modules.

- graph: Concepts, graph views, extraction ingestion and deduplication
- health: Health check for monitoring
"""

from conceptgraph.api.routers.graph import health_router
from conceptgraph.api.routers.graph import router as graph_router

__all__ = ["graph_router", "health_router"]
