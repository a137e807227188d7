"""Mobile push delivery infrastructure."""

from __future__ import annotations

from .client import (
    BasePushClient,
    ConsolePushClient,
    DisabledPushClient,
    GatewayPushClient,
    create_push_client,
)
from .schemas import PushMessage, PushReport, PushTargetKind

__all__ = [
    "BasePushClient",
    "ConsolePushClient",
    "DisabledPushClient",
    "GatewayPushClient",
    "PushMessage",
    "PushReport",
    "PushTargetKind",
    "create_push_client",
]
