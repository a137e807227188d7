"""Pydantic schemas for the real-time channel and socket dispatch endpoints.

Message Types:
- Client → Server: join (alias subscribe), leave (alias unsubscribe), ping, pong
- Server → Client: ``{"event": <name>, "data": <payload>}`` with system events
  connected, joined, left, ping, pong, error
"""

from __future__ import annotations

from enum import Enum
from typing import Annotated, Any, Literal

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter, field_validator

ROOM_NAME_MAX_LENGTH = 255


class ClientMessageType(str, Enum):
    """Message types sent from client to server."""

    JOIN = "join"
    SUBSCRIBE = "subscribe"
    LEAVE = "leave"
    UNSUBSCRIBE = "unsubscribe"
    PING = "ping"
    PONG = "pong"


class SystemEvent(str, Enum):
    """Events the server sends on its own behalf."""

    CONNECTED = "connected"
    JOINED = "joined"
    LEFT = "left"
    PING = "ping"
    PONG = "pong"
    ERROR = "error"


class FrameErrorCode(str, Enum):
    INVALID_JSON = "invalid_json"
    INVALID_MESSAGE = "invalid_message"
    UNKNOWN_TYPE = "unknown_type"
    MESSAGE_TOO_LARGE = "message_too_large"
    ROOM_LIMIT = "room_limit"


# ──────────────────────────────────────────────────────────────
# Client → Server Messages
# ──────────────────────────────────────────────────────────────


class JoinMessage(BaseModel):
    """Request to join a room."""

    type: Literal["join", "subscribe"]
    room: str = Field(..., min_length=1, max_length=ROOM_NAME_MAX_LENGTH)


class LeaveMessage(BaseModel):
    """Request to leave a room."""

    type: Literal["leave", "unsubscribe"]
    room: str = Field(..., min_length=1, max_length=ROOM_NAME_MAX_LENGTH)


class ClientPingMessage(BaseModel):
    type: Literal["ping"]


class ClientPongMessage(BaseModel):
    """Answer to a server heartbeat."""

    type: Literal["pong"]


ClientMessage = Annotated[
    JoinMessage | LeaveMessage | ClientPingMessage | ClientPongMessage,
    Field(discriminator="type"),
]

client_message_adapter: TypeAdapter[ClientMessage] = TypeAdapter(ClientMessage)


# ──────────────────────────────────────────────────────────────
# REST API Schemas
# ──────────────────────────────────────────────────────────────


class BroadcastRequest(BaseModel):
    """Request to send an event to every connected peer."""

    event: str = Field(..., min_length=1, max_length=100, description="Event name")
    data: Any = Field(..., description="Opaque event payload")

    @field_validator("data")
    @classmethod
    def data_not_null(cls, v: Any) -> Any:
        if v is None:
            msg = "data must not be null"
            raise ValueError(msg)
        return v


class EmitRequest(BroadcastRequest):
    """Request to send an event to every member of a room."""

    room: str = Field(..., min_length=1, max_length=ROOM_NAME_MAX_LENGTH, description="Target room")


class ToastRequest(BaseModel):
    """Request to show a toast to one user's connections."""

    model_config = ConfigDict(populate_by_name=True)

    user_id: str = Field(
        ...,
        alias="userId",
        min_length=1,
        max_length=ROOM_NAME_MAX_LENGTH,
        description="User whose room receives the toast",
    )
    toast: dict[str, Any] = Field(..., description="Toast content (type, message, duration...)")


class ConnectionStats(BaseModel):
    """Statistics about live connections."""

    running: bool
    connections: int = Field(..., ge=0)
    room_count: int = Field(..., ge=0)
    rooms: dict[str, int] = Field(
        default_factory=dict,
        description="Room name to member count",
    )
    queued_events: int = Field(default=0, ge=0)
