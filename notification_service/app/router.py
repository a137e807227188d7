"""Router registry and setup."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from notification_service.core.settings import get_app_settings, get_websocket_settings
from notification_service.features.health.router import router as health_router
from notification_service.features.metrics.router import router as metrics_router
from notification_service.features.notifications.router import router as notifications_router
from notification_service.features.realtime.router import router as realtime_router
from notification_service.features.realtime.router import ws_router

if TYPE_CHECKING:
    from fastapi import FastAPI

    from notification_service.core.settings import AppSettings, WebSocketSettings

logger = logging.getLogger(__name__)


def setup_routers(
    app: FastAPI,
    app_settings: AppSettings | None = None,
    websocket_settings: WebSocketSettings | None = None,
) -> None:
    """Register all feature routers with the application.

    Args:
        app: FastAPI application instance.
        app_settings: Optional application settings override for the API prefix.
        websocket_settings: Optional override for realtime/WebSocket behavior.
    """
    app_settings = app_settings or get_app_settings()
    websocket_settings = websocket_settings or get_websocket_settings()

    api_prefix = app_settings.api_prefix

    # Include metrics endpoint (no prefix - accessible at /metrics)
    app.include_router(metrics_router)

    app.include_router(notifications_router, prefix=api_prefix)
    app.include_router(realtime_router, prefix=api_prefix)
    app.include_router(health_router, prefix=api_prefix)

    # WebSocket endpoint lives at /ws regardless of the API prefix
    app.include_router(ws_router)
    if not websocket_settings.enabled:
        logger.info("WebSocket disabled, /ws will refuse connections")

    @app.get("/", tags=["root"], summary="Service information")
    async def root() -> dict[str, Any]:
        return {
            "service": app_settings.service_name,
            "version": app_settings.version,
            "environment": app_settings.environment,
            "docs": app_settings.get_docs_url(),
            "health": f"{api_prefix}/health",
        }

    logger.debug("Routers registered", extra={"api_prefix": api_prefix})
