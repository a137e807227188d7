"""Configuration check command."""

import asyncio
import sys

import click
from pydantic import ValidationError

from notification_service.cli.formatters import error, header, info, success, warning
from notification_service.core.settings import (
    clear_settings_cache,
    get_app_settings,
    get_auth_settings,
    get_email_settings,
    get_push_settings,
    get_websocket_settings,
)
from notification_service.infra.email import EmailService


async def _check_mail_relay() -> bool:
    service = EmailService.from_settings(get_email_settings())
    try:
        return await service.health_check()
    finally:
        await service.close()


@click.command(name="check-config")
@click.option("--connect/--no-connect", default=False, help="Also try to reach the mail relay")
def check_config(connect: bool) -> None:
    """Validate configuration loaded from the environment and .env."""
    clear_settings_cache()
    try:
        app = get_app_settings()
        auth = get_auth_settings()
        email = get_email_settings()
        push = get_push_settings()
        ws = get_websocket_settings()
    except ValidationError as e:
        error(f"Invalid configuration:\n{e}")
        sys.exit(1)

    success("Settings loaded successfully")

    header("Application")
    info(f"{app.service_name} {app.version} ({app.environment}) on {app.host}:{app.port}")

    header("Authentication")
    if auth.allowed_services:
        info(f"Allowed services: {', '.join(auth.allowed_services)}")
    else:
        warning("AUTH_ALLOWED_SERVICES is empty; every authenticated request will be refused")

    header("Email")
    info(f"Backend: {email.backend}, sender: {email.sender}")
    if connect and email.backend == "smtp":
        if asyncio.run(_check_mail_relay()):
            success(f"Mail relay {email.smtp_host}:{email.smtp_port} reachable")
        else:
            error(f"Mail relay {email.smtp_host}:{email.smtp_port} unreachable")
            sys.exit(1)

    header("Push")
    if push.backend == "gateway" and not push.is_configured:
        warning("PUSH_BACKEND=gateway but project id or service account credentials are missing")
    else:
        info(f"Backend: {push.backend}")

    header("WebSocket")
    if ws.enabled:
        info(
            f"max_connections={ws.max_connections}, heartbeat={ws.heartbeat_interval}s, "
            f"require_auth={ws.require_auth}"
        )
    else:
        warning("WebSocket channel disabled")
