"""Peer transport capability used by the connection hub.

The hub only ever talks to a peer through ``PeerTransport``. The FastAPI
WebSocket implementation below is the one used in production; tests plug in
their own.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any, Protocol, runtime_checkable

from starlette.websockets import WebSocketState

if TYPE_CHECKING:
    from fastapi import WebSocket

logger = logging.getLogger(__name__)


@runtime_checkable
class PeerTransport(Protocol):
    """Send capability of one connected peer."""

    async def send(self, event: str, payload: Any) -> None:
        """Deliver one ``(event, payload)`` pair to the peer.

        Raises on transport failure.
        """
        ...

    async def close(self, code: int = 1000, reason: str = "") -> None:
        """Close the underlying channel. Must tolerate an already-closed peer."""
        ...


class WebSocketTransport:
    """PeerTransport over a Starlette/FastAPI WebSocket.

    Frames are JSON text ``{"event": <name>, "data": <payload>}``.
    """

    def __init__(self, websocket: WebSocket) -> None:
        self.websocket = websocket

    @property
    def is_open(self) -> bool:
        return (
            self.websocket.client_state == WebSocketState.CONNECTED
            and self.websocket.application_state == WebSocketState.CONNECTED
        )

    async def send(self, event: str, payload: Any) -> None:
        await self.websocket.send_json({"event": event, "data": payload})

    async def close(self, code: int = 1000, reason: str = "") -> None:
        if not self.is_open:
            return
        try:
            await self.websocket.close(code=code, reason=reason)
        except RuntimeError as e:
            # Raced with the peer closing first
            logger.debug("WebSocket already closed", extra={"error": str(e)})
