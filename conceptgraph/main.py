"""
FastAPI application entry point.

Configures and creates the FastAPI application with:
- Service lifecycle management
- Exception handlers
- Router mounting
"""

from dotenv import load_dotenv
from fastapi import FastAPI

# Load environment variables first
load_dotenv()

from conceptgraph import __version__  # noqa: E402
from conceptgraph.core.config import get_settings  # noqa: E402
from conceptgraph.core.logging import configure_logging  # noqa: E402

configure_logging(get_settings().log_level)

# Import application components
from conceptgraph.api.errors import register_exception_handlers  # noqa: E402
from conceptgraph.api.routers import graph_router, health_router  # noqa: E402
from conceptgraph.services import services_lifespan  # noqa: E402

# Create FastAPI application with service lifecycle management
app = FastAPI(
    title="Concept Graph",
    description="Concept knowledge graph with lock-guarded deduplication",
    version=__version__,
    lifespan=services_lifespan,
)

# Register exception handlers
register_exception_handlers(app)

# Mount API routers
app.include_router(health_router)
app.include_router(graph_router)


if __name__ == "__main__":
    import uvicorn

    uvicorn.run("conceptgraph.main:app", host="127.0.0.1", port=8000, reload=True)
