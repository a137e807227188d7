"""WebSocket configuration settings."""

from __future__ import annotations

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class WebSocketSettings(BaseSettings):
    """Real-time channel and connection hub settings.

    Environment variables use WS_ prefix.
    Example: WS_HEARTBEAT_INTERVAL=25
    """

    # ──────────────────────────────────────────────────────────────
    # Connection limits
    # ──────────────────────────────────────────────────────────────

    max_connections: int = Field(
        default=10000,
        ge=1,
        le=100000,
        description="Maximum concurrent WebSocket connections per instance",
    )

    max_rooms_per_connection: int = Field(
        default=50,
        ge=1,
        le=500,
        description="Maximum rooms a single connection can join",
    )

    max_message_size: int = Field(
        default=65536,
        ge=1024,
        le=1048576,
        description="Maximum incoming message size in bytes (default 64KB)",
    )

    outbound_queue_size: int = Field(
        default=1000,
        ge=1,
        le=100000,
        description="Events buffered per connection before new events are dropped",
    )

    # ──────────────────────────────────────────────────────────────
    # Heartbeat and timeout settings
    # ──────────────────────────────────────────────────────────────

    heartbeat_interval: float = Field(
        default=25.0,
        ge=0,
        le=300,
        description="Interval between ping events in seconds (0 to disable)",
    )

    connection_timeout: float = Field(
        default=60.0,
        ge=0,
        le=600,
        description="Disconnect peers silent for this many seconds (0 to disable)",
    )

    # ──────────────────────────────────────────────────────────────
    # Authentication
    # ──────────────────────────────────────────────────────────────

    require_auth: bool = Field(
        default=False,
        description="Require a service token (query param or header) on connect",
    )

    # ──────────────────────────────────────────────────────────────
    # Feature flags
    # ──────────────────────────────────────────────────────────────

    enabled: bool = Field(
        default=True,
        description="Enable the WebSocket endpoint",
    )

    model_config = SettingsConfigDict(
        env_prefix="WS_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        frozen=True,
        extra="ignore",
        env_ignore_empty=True,
    )
