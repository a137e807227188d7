"""Per-connection protocol driver for the real-time channel.

A ``RealtimeSession`` sits between one peer transport and the hub: it
registers the peer, interprets inbound frames and unregisters it on close.
"""

from __future__ import annotations

import json
import logging
import time
from typing import TYPE_CHECKING, Any

from pydantic import ValidationError

from notification_service.core.exceptions import HubCapacityError
from notification_service.features.realtime.schemas import (
    ClientMessageType,
    ClientPingMessage,
    ClientPongMessage,
    FrameErrorCode,
    JoinMessage,
    LeaveMessage,
    SystemEvent,
    client_message_adapter,
)
from notification_service.infra.metrics import tracking

if TYPE_CHECKING:
    from notification_service.infra.realtime.hub import ConnectionHub
    from notification_service.infra.realtime.transport import PeerTransport

logger = logging.getLogger(__name__)

_KNOWN_TYPES = {t.value for t in ClientMessageType}


class RealtimeSession:
    """Drive the hub on behalf of one peer.

    Example:
        session = RealtimeSession(hub, WebSocketTransport(websocket), max_message_size=65536)
        await session.accept()
        try:
            while (message := await websocket.receive())["type"] != "websocket.disconnect":
                await session.on_message(message.get("text") or message.get("bytes") or "")
        finally:
            await session.disconnect()
    """

    def __init__(
        self,
        hub: ConnectionHub,
        transport: PeerTransport,
        *,
        max_message_size: int = 65536,
    ) -> None:
        self.hub = hub
        self.transport = transport
        self.max_message_size = max_message_size
        self.connection_id: str | None = None

    async def accept(self) -> str:
        """Register the peer and greet it with its connection id.

        Raises:
            HubCapacityError: If the hub is full.
            RealtimeUnavailableError: If the hub is not running.
        """
        self.connection_id = await self.hub.accept(self.transport)
        await self._send(SystemEvent.CONNECTED, {"connectionId": self.connection_id})
        return self.connection_id

    async def disconnect(self, code: int = 1000, reason: str = "") -> None:
        if self.connection_id is not None:
            await self.hub.disconnect(self.connection_id, code=code, reason=reason)

    async def on_message(self, raw: str | bytes) -> None:
        """Handle one inbound frame. Protocol errors are answered, never raised."""
        if self.connection_id is None:
            return
        self.hub.touch(self.connection_id)

        size = len(raw.encode()) if isinstance(raw, str) else len(raw)
        if size > self.max_message_size:
            await self._error(
                FrameErrorCode.MESSAGE_TOO_LARGE,
                f"Message exceeds {self.max_message_size} bytes",
            )
            return

        try:
            frame = json.loads(raw)
        except (json.JSONDecodeError, UnicodeDecodeError):
            await self._error(FrameErrorCode.INVALID_JSON, "Invalid JSON message")
            return

        if not isinstance(frame, dict) or not isinstance(frame.get("type"), str):
            await self._error(FrameErrorCode.INVALID_MESSAGE, "Message must be an object with a 'type'")
            return

        msg_type = frame["type"]
        if msg_type not in _KNOWN_TYPES:
            tracking.track_message_received("unknown")
            await self._error(FrameErrorCode.UNKNOWN_TYPE, f"Unknown message type: {msg_type}")
            return

        try:
            message = client_message_adapter.validate_python(frame)
        except ValidationError as e:
            await self._error(
                FrameErrorCode.INVALID_MESSAGE,
                f"Invalid '{msg_type}' message",
                errors=e.errors(include_url=False, include_context=False),
            )
            return

        tracking.track_message_received(msg_type)
        await self._handle(message)

    async def _handle(self, message: Any) -> None:
        connection_id = self.connection_id
        if isinstance(message, JoinMessage):
            try:
                joined = await self.hub.join(connection_id, message.room)
            except HubCapacityError as e:
                await self._error(FrameErrorCode.ROOM_LIMIT, e.detail)
                return
            if joined:
                await self._send(SystemEvent.JOINED, {"room": message.room})
        elif isinstance(message, LeaveMessage):
            if await self.hub.leave(connection_id, message.room):
                await self._send(SystemEvent.LEFT, {"room": message.room})
        elif isinstance(message, ClientPingMessage):
            await self._send(SystemEvent.PONG, {"timestamp": time.time()})
        elif isinstance(message, ClientPongMessage):
            # touch() above already recorded the activity
            return

    async def _send(self, event: SystemEvent, payload: Any) -> None:
        await self.hub.send_to(self.connection_id, event.value, payload)

    async def _error(self, code: FrameErrorCode, message: str, **extra: Any) -> None:
        logger.debug(
            "Rejected realtime frame",
            extra={"connection_id": self.connection_id, "code": code.value},
        )
        payload: dict[str, Any] = {"code": code.value, "message": message}
        if extra:
            payload["details"] = extra
        await self._send(SystemEvent.ERROR, payload)
