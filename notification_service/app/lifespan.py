"""Application lifespan management.

Startup Order:
1. Core (logging, application info metric)
2. Mail adapter (SMTP or console)
3. Push client (gateway, console or disabled)
4. Connection hub
5. Notification dispatcher
6. Health aggregator

Shutdown Order: Reverse of startup (what starts first, shuts down last)

Every long-lived object is stored on ``app.state`` so dependencies and tests
reach a single owned instance.
"""

from __future__ import annotations

from contextlib import asynccontextmanager
import logging
from typing import TYPE_CHECKING

from notification_service.core.settings import (
    get_app_settings,
    get_email_settings,
    get_logging_settings,
    get_push_settings,
    get_websocket_settings,
)
from notification_service.features.health import (
    EmailHealthProvider,
    HealthAggregator,
    PushHealthProvider,
)
from notification_service.features.notifications.service import NotificationDispatcher
from notification_service.infra.email import EmailService
from notification_service.infra.logging.config import setup_logging, shutdown as shutdown_logging
from notification_service.infra.metrics.prometheus import application_info
from notification_service.infra.push import create_push_client
from notification_service.infra.realtime import ConnectionHub

if TYPE_CHECKING:
    from collections.abc import AsyncIterator

    from fastapi import FastAPI

logger = logging.getLogger(__name__)


def _startup_core() -> None:
    """Configure logging and publish the application info metric."""
    app = get_app_settings()

    setup_logging(log_settings=get_logging_settings(), force=True)
    logger.info(
        "Application starting",
        extra={"service": app.service_name, "environment": app.environment},
    )

    application_info.info(
        {
            "version": app.version,
            "service": app.service_name,
            "environment": app.environment,
        }
    )


async def _startup_realtime(app: FastAPI) -> ConnectionHub:
    ws_settings = get_websocket_settings()
    hub = ConnectionHub(ws_settings)
    if ws_settings.enabled:
        await hub.start()
    else:
        logger.info("WebSocket disabled, connection hub not started")
    app.state.hub = hub
    return hub


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Manage application lifecycle.

    Args:
        app: FastAPI application instance.

    Yields:
        None during application runtime.
    """
    # =========================================================================
    # STARTUP PHASE
    # =========================================================================

    _startup_core()
    app_settings = get_app_settings()
    email_settings = get_email_settings()
    push_settings = get_push_settings()

    email_service = EmailService.from_settings(email_settings)
    push_client = create_push_client(push_settings)
    hub = await _startup_realtime(app)

    app.state.email = email_service
    app.state.push = push_client
    app.state.dispatcher = NotificationDispatcher(email_service, push_client, hub)

    health = HealthAggregator(
        check_timeout=max(email_settings.health_check_timeout, push_settings.timeout) + 1.0,
    )
    health.add_provider(EmailHealthProvider(email_service))
    health.add_provider(PushHealthProvider(push_client))
    app.state.health = health

    logger.info(
        "Application is LIVE and ready to serve requests on http://%s:%s",
        app_settings.host,
        app_settings.port,
        extra={
            "service": app_settings.service_name,
            "environment": app_settings.environment,
            "version": app_settings.version,
            "email_backend": email_service.backend_name,
            "push_backend": push_client.backend_name,
            "websocket_enabled": hub.is_running,
        },
    )

    if app_settings.debug:
        logger.debug(
            "Debug mode: Application configuration",
            extra={
                "api_prefix": app_settings.api_prefix,
                "docs_enabled": app_settings.docs_enabled,
                "root_path": app_settings.root_path,
                "push_configured": push_settings.is_configured,
                "smtp_host": email_settings.smtp_host,
            },
        )

    # =========================================================================
    # APPLICATION RUNTIME
    # =========================================================================

    try:
        yield
    finally:
        # =====================================================================
        # SHUTDOWN PHASE - Close services in reverse order
        # =====================================================================

        logger.info("Application shutting down", extra={"service": app_settings.service_name})

        await hub.stop()
        await push_client.close()
        await email_service.close()

        logger.info("Application shutdown complete")
        shutdown_logging()
