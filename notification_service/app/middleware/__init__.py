"""Middleware configuration for FastAPI application.

The middleware stack, in execution order (outermost first):
- Request ID: Request tracking, sets request_id in the logging context
- Metrics: HTTP request metrics and X-Process-Time header
- CORS: Cross-Origin Resource Sharing, when origins are configured
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from fastapi.middleware.cors import CORSMiddleware

from notification_service.app.middleware.metrics import MetricsMiddleware
from notification_service.app.middleware.request_id import RequestIDMiddleware

if TYPE_CHECKING:
    from fastapi import FastAPI

    from notification_service.core.settings import AppSettings

logger = logging.getLogger(__name__)

__all__ = ["MetricsMiddleware", "RequestIDMiddleware", "configure_middleware"]


def configure_middleware(app: FastAPI, settings: AppSettings) -> None:
    """Configure all middleware for the FastAPI application.

    Middleware is applied in REVERSE order (last added = first to execute).
    """
    if settings.cors_origins:
        app.add_middleware(
            CORSMiddleware,
            allow_origins=settings.cors_origins,
            allow_credentials=settings.cors_allow_credentials,
            allow_methods=settings.cors_allow_methods,
            allow_headers=settings.cors_allow_headers,
        )

    app.add_middleware(MetricsMiddleware)
    app.add_middleware(RequestIDMiddleware)

    logger.debug(
        "Middleware configured",
        extra={"cors_enabled": bool(settings.cors_origins)},
    )
