"""Context management for structured logging.

Request-scoped fields (request id, calling service, connection id) are held
in a ContextVar and injected into every log record by
``ContextInjectingFilter``, so call sites never pass them explicitly.
"""

from __future__ import annotations

import logging
from contextvars import ContextVar
from typing import Any

# Each async task gets its own copy automatically
_log_context: ContextVar[dict[str, Any]] = ContextVar("log_context", default={})


def set_log_context(**kwargs: Any) -> None:
    """Add fields to the logging context of the current task.

    Example:
        ```python
        set_log_context(request_id="abc-123")
        set_log_context(service_id="billing")
        logger.info("Processing request")  # Includes request_id and service_id
        ```
    """
    current = _log_context.get().copy()
    current.update(kwargs)
    _log_context.set(current)


def get_log_context() -> dict[str, Any]:
    """Get a copy of the current logging context."""
    return _log_context.get().copy()


def clear_log_context() -> None:
    """Clear all logging context for the current task."""
    _log_context.set({})


def remove_from_log_context(*keys: str) -> None:
    """Remove specific keys from the logging context."""
    current = _log_context.get().copy()
    for key in keys:
        current.pop(key, None)
    _log_context.set(current)


class ContextInjectingFilter(logging.Filter):
    """Logging filter that copies the current log context onto each record.

    Attached to the root logger by ``configure_logging`` so every logger
    benefits. Existing record attributes are never overwritten.
    """

    def filter(self, record: logging.LogRecord) -> bool:
        for key, value in _log_context.get().items():
            if not hasattr(record, key):
                setattr(record, key, value)
        return True
