"""
Logging configuration and run-scoped context.

Every deduplication run owns a process id (the one stored on its lock).
The orchestrator binds it to a context variable for the duration of the
run, and RunContextFilter copies it onto each log record so interleaved
output from separate runs can be told apart.
"""

from __future__ import annotations

import logging
from collections.abc import Iterator
from contextlib import contextmanager
from contextvars import ContextVar

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - [%(process_id)s] %(message)s"

_current_process_id: ContextVar[str | None] = ContextVar(
    "conceptgraph_process_id", default=None
)


class RunContextFilter(logging.Filter):
    """Attach the active dedup run's process id to log records."""

    def filter(self, record: logging.LogRecord) -> bool:
        """
        Stamp the record with ``process_id``.

        Args:
            record: The log record to annotate

        Returns:
            Always True; records are never dropped
        """
        record.process_id = _current_process_id.get() or "-"
        return True


def current_process_id() -> str | None:
    """Return the process id bound to the current context, if any."""
    return _current_process_id.get()


@contextmanager
def bind_process_id(process_id: str) -> Iterator[None]:
    """Bind a dedup run's process id for log records emitted inside the block."""
    token = _current_process_id.set(process_id)
    try:
        yield
    finally:
        _current_process_id.reset(token)


def configure_logging(level: str = "INFO") -> None:
    """
    Configure root logging with the run-context filter installed.

    Args:
        level: Log level name (e.g. "INFO", "DEBUG")
    """
    handler = logging.StreamHandler()
    handler.addFilter(RunContextFilter())
    logging.basicConfig(
        level=level.upper(),
        format=LOG_FORMAT,
        handlers=[handler],
    )
