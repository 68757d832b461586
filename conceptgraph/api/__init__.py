"""
API layer package.

Provides HTTP endpoint routing, error handling, and dependency providers.
"""

from conceptgraph.api.errors import handle_endpoint_error, register_exception_handlers

__all__ = ["handle_endpoint_error", "register_exception_handlers"]
