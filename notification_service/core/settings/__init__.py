"""Modular Pydantic Settings v2 configuration.

One frozen settings model per domain (app, auth, email, push, websocket,
logging), each read from environment variables with its own prefix and an
optional ``.env`` file.

Import settings via the cached loaders:
    from notification_service.core.settings import get_app_settings
"""

from __future__ import annotations

from .app import AppSettings
from .auth import AuthSettings
from .email import EmailSettings
from .loader import (
    clear_settings_cache,
    get_app_settings,
    get_auth_settings,
    get_email_settings,
    get_logging_settings,
    get_push_settings,
    get_websocket_settings,
)
from .logs import LoggingSettings
from .push import PushSettings
from .websocket import WebSocketSettings

__all__ = [
    "AppSettings",
    "AuthSettings",
    "EmailSettings",
    "LoggingSettings",
    "PushSettings",
    "WebSocketSettings",
    "clear_settings_cache",
    "get_app_settings",
    "get_auth_settings",
    "get_email_settings",
    "get_logging_settings",
    "get_push_settings",
    "get_websocket_settings",
]
