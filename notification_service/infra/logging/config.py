"""Logging configuration setup.

Provides production-ready logging configuration using:
- dictConfig for formatters and filters
- QueueHandler + QueueListener for non-blocking I/O
- ContextInjectingFilter for automatic context propagation
- All handlers behind the root logger (child loggers propagate)
- JSONL format for machine parsing
"""

from __future__ import annotations

import atexit
import logging
import logging.config
from logging.handlers import QueueHandler, QueueListener, RotatingFileHandler
from pathlib import Path
from queue import Queue
from typing import TYPE_CHECKING, Any

from notification_service.infra.logging.formatters import JSONFormatter

if TYPE_CHECKING:
    from notification_service.core.settings.logs import LoggingSettings

_log_queue: Queue[logging.LogRecord] | None = None
_listener: QueueListener | None = None
_LOGGING_INITIALIZED = False

TEXT_FORMAT = "%(asctime)s - %(levelname)s - %(name)s - %(message)s"
TEXT_DATEFMT = "%Y-%m-%d %H:%M:%S"
UVICORN_LOGGERS = ("uvicorn", "uvicorn.error", "uvicorn.access")

logger = logging.getLogger(__name__)


def shutdown() -> None:
    """Stop the QueueListener, flushing pending records."""
    global _log_queue, _listener

    if _listener is not None:
        _listener.stop()
        _listener = None
    _log_queue = None


def setup_logging(
    log_settings: LoggingSettings | None = None,
    *,
    force: bool = False,
    **configure_kwargs: Any,
) -> None:
    """Ensure logging is configured once across entrypoints.

    Args:
        log_settings: Optional logging settings instance. If omitted, settings
            are loaded via get_logging_settings().
        force: Reconfigure logging even if it was already initialized.
        **configure_kwargs: Explicit overrides for configure_logging().
    """
    global _LOGGING_INITIALIZED

    if _LOGGING_INITIALIZED and not force:
        return

    if log_settings is None:
        from notification_service.core.settings import get_logging_settings

        log_settings = get_logging_settings()

    log_config = {**log_settings.to_logging_kwargs(), **configure_kwargs}
    configure_logging(**log_config)
    _LOGGING_INITIALIZED = True


def configure_logging(
    log_level: str = "INFO",
    console_level: str | None = None,
    file_level: str | None = None,
    file_path: str | Path | None = None,
    json_logs: bool = True,
    console_enabled: bool = True,
    include_context: bool = True,
    capture_warnings: bool = True,
    include_uvicorn: bool = True,
    file_max_bytes: int = 10 * 1024 * 1024,
    file_backup_count: int = 5,
    service_name: str = "notification-service",
) -> None:
    """Configure logging with dictConfig and the QueueHandler pattern.

    Args:
        log_level: Root logger level (DEBUG, INFO, WARNING, ERROR, CRITICAL).
        console_level: Console handler level. If None, uses log_level.
        file_level: File handler level. If None, uses log_level.
        file_path: Path to log file. None disables file logging.
        json_logs: Enable JSONL (JSON Lines) structured logging.
        console_enabled: Enable console/stderr logging.
        include_context: Enable ContextInjectingFilter for auto context.
        capture_warnings: Forward Python warnings to logging system.
        include_uvicorn: Route uvicorn loggers through the root handlers.
        file_max_bytes: Maximum log file size before rotation.
        file_backup_count: Number of rotated log files to keep.
        service_name: Static ``service`` field added to JSON records.
    """
    global _log_queue, _listener

    if capture_warnings:
        logging.captureWarnings(True)

    path = Path(file_path) if file_path else None
    if path:
        path.parent.mkdir(parents=True, exist_ok=True)

    filters: dict[str, Any] = {}
    root_filters: list[str] = []
    if include_context:
        filters["context"] = {
            "()": "notification_service.infra.logging.context.ContextInjectingFilter",
        }
        root_filters.append("context")

    logging.config.dictConfig(
        {
            "version": 1,
            "disable_existing_loggers": False,
            "filters": filters,
            "root": {
                "level": log_level.upper(),
                "handlers": [],
                "filters": root_filters,
            },
        }
    )

    # Reconfiguration replaces the previous listener
    shutdown()

    handlers: list[logging.Handler] = []
    if console_enabled:
        console_handler = logging.StreamHandler()
        console_handler.setLevel((console_level or log_level).upper())
        console_handler.setFormatter(_build_formatter(json_logs, service_name))
        handlers.append(console_handler)

    if path:
        file_handler = RotatingFileHandler(
            path,
            maxBytes=file_max_bytes,
            backupCount=file_backup_count,
            encoding="utf-8",
        )
        file_handler.setLevel((file_level or log_level).upper())
        file_handler.setFormatter(_build_formatter(json_logs, service_name))
        handlers.append(file_handler)

    _log_queue = Queue()
    if handlers:
        _listener = QueueListener(_log_queue, *handlers, respect_handler_level=True)
        _listener.start()
        atexit.register(shutdown)

    root = logging.getLogger()
    for handler in list(root.handlers):
        if isinstance(handler, QueueHandler):
            root.removeHandler(handler)
    root.addHandler(QueueHandler(_log_queue))

    if include_uvicorn:
        for name in UVICORN_LOGGERS:
            uvicorn_logger = logging.getLogger(name)
            uvicorn_logger.handlers.clear()
            uvicorn_logger.propagate = True

    logger.debug(
        "Logging configured",
        extra={"json_logs": json_logs, "file_path": str(path) if path else None},
    )


def _build_formatter(json_logs: bool, service_name: str) -> logging.Formatter:
    if json_logs:
        return JSONFormatter(
            fmt_keys={"level": "levelname", "logger": "name", "message": "message"},
            static={"service": service_name},
        )
    return logging.Formatter(fmt=TEXT_FORMAT, datefmt=TEXT_DATEFMT)
