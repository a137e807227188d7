"""Structured logging built on the standard library.

Usage:
    from notification_service.infra.logging import setup_logging, set_log_context

    setup_logging()
    set_log_context(request_id="abc-123")
"""

from __future__ import annotations

from notification_service.infra.logging.config import configure_logging, setup_logging, shutdown
from notification_service.infra.logging.context import (
    ContextInjectingFilter,
    clear_log_context,
    get_log_context,
    remove_from_log_context,
    set_log_context,
)
from notification_service.infra.logging.formatters import JSONFormatter

__all__ = [
    "ContextInjectingFilter",
    "JSONFormatter",
    "clear_log_context",
    "configure_logging",
    "get_log_context",
    "remove_from_log_context",
    "set_log_context",
    "setup_logging",
    "shutdown",
]
