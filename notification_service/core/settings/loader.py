"""LRU-cached settings loaders.

Settings are loaded and validated once, then cached for the lifetime of the
process.

Usage:
    from notification_service.core.settings import get_auth_settings

    settings = get_auth_settings()  # First call: loads and validates
    settings = get_auth_settings()  # Subsequent calls: returns cached instance

Testing:
    Clear the cache to force a reload after changing the environment:
    clear_settings_cache()
"""

from __future__ import annotations

from functools import lru_cache

from .app import AppSettings
from .auth import AuthSettings
from .email import EmailSettings
from .logs import LoggingSettings
from .push import PushSettings
from .websocket import WebSocketSettings


@lru_cache(maxsize=1)
def get_app_settings() -> AppSettings:
    """Get cached application settings."""
    return AppSettings()


@lru_cache(maxsize=1)
def get_auth_settings() -> AuthSettings:
    """Get cached service authentication settings."""
    return AuthSettings()


@lru_cache(maxsize=1)
def get_email_settings() -> EmailSettings:
    """Get cached email settings."""
    return EmailSettings()


@lru_cache(maxsize=1)
def get_push_settings() -> PushSettings:
    """Get cached push gateway settings."""
    return PushSettings()


@lru_cache(maxsize=1)
def get_websocket_settings() -> WebSocketSettings:
    """Get cached WebSocket settings."""
    return WebSocketSettings()


@lru_cache(maxsize=1)
def get_logging_settings() -> LoggingSettings:
    """Get cached logging settings."""
    return LoggingSettings()


def clear_settings_cache() -> None:
    """Drop every cached settings instance."""
    for loader in (
        get_app_settings,
        get_auth_settings,
        get_email_settings,
        get_push_settings,
        get_websocket_settings,
        get_logging_settings,
    ):
        loader.cache_clear()
