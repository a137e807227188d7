"""Real-time connection hub and peer transports."""

from __future__ import annotations

from notification_service.infra.realtime.hub import Connection, ConnectionHub, ConnectionState
from notification_service.infra.realtime.transport import PeerTransport, WebSocketTransport

__all__ = [
    "Connection",
    "ConnectionHub",
    "ConnectionState",
    "PeerTransport",
    "WebSocketTransport",
]
