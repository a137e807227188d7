"""Real-time channel routers.

Endpoints:
- WS /ws: Peer connection endpoint (join rooms, receive events)
- POST /ws/broadcast: Send an event to every connected peer
- POST /ws/emit: Send an event to every member of a room
- POST /ws/toast: Send a ``new_toast`` event to one user's room
- GET /ws/stats: Connection and room statistics (admin)
"""

from __future__ import annotations

import logging
from typing import Annotated

from fastapi import APIRouter, Depends, Query, WebSocket, WebSocketDisconnect, status

from notification_service.core.dependencies.auth import RequirePermissions, get_authenticator
from notification_service.core.dependencies.services import DispatcherDep, HubDep
from notification_service.core.exceptions import AuthError, HubCapacityError, RealtimeUnavailableError
from notification_service.core.schemas.common import ErrorResponse, MessageResponse
from notification_service.core.settings import get_websocket_settings
from notification_service.features.realtime.schemas import (
    BroadcastRequest,
    ConnectionStats,
    EmitRequest,
    ToastRequest,
)
from notification_service.features.realtime.session import RealtimeSession
from notification_service.infra.auth import ServiceIdentity, permissions
from notification_service.infra.logging import set_log_context
from notification_service.infra.realtime import WebSocketTransport

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/ws", tags=["realtime"])
ws_router = APIRouter(tags=["realtime"])

ERROR_RESPONSES = {
    400: {"model": ErrorResponse, "description": "Validation error"},
    401: {"model": ErrorResponse, "description": "Missing, invalid or expired token"},
    403: {"model": ErrorResponse, "description": "Caller not allowed or missing permission"},
    503: {"model": ErrorResponse, "description": "Connection hub not running"},
}


# ──────────────────────────────────────────────────────────────
# REST dispatch
# ──────────────────────────────────────────────────────────────


@router.post(
    "/broadcast",
    response_model=MessageResponse,
    status_code=status.HTTP_202_ACCEPTED,
    summary="Broadcast an event to every connected peer",
    responses=ERROR_RESPONSES,
)
async def broadcast_event(
    body: BroadcastRequest,
    dispatcher: DispatcherDep,
    caller: Annotated[ServiceIdentity, Depends(RequirePermissions(*permissions.BROADCAST))],
) -> MessageResponse:
    """Returns as soon as the event is queued for every peer."""
    recipients = await dispatcher.broadcast(body.event, body.data)
    return MessageResponse(
        message="WebSocket message broadcast",
        details={"event": body.event, "recipients": recipients},
    )


@router.post(
    "/emit",
    response_model=MessageResponse,
    status_code=status.HTTP_202_ACCEPTED,
    summary="Emit an event to a room",
    responses=ERROR_RESPONSES,
)
async def emit_to_room(
    body: EmitRequest,
    dispatcher: DispatcherDep,
    caller: Annotated[ServiceIdentity, Depends(RequirePermissions(*permissions.EMIT_TO_ROOM))],
) -> MessageResponse:
    """An empty or unknown room is accepted with zero recipients."""
    recipients = await dispatcher.emit_to_room(body.room, body.event, body.data)
    return MessageResponse(
        message=f"Message sent to room {body.room}",
        details={"room": body.room, "event": body.event, "recipients": recipients},
    )


@router.post(
    "/toast",
    response_model=MessageResponse,
    status_code=status.HTTP_202_ACCEPTED,
    summary="Show a toast to a user",
    responses=ERROR_RESPONSES,
)
async def send_toast(
    body: ToastRequest,
    dispatcher: DispatcherDep,
    caller: Annotated[ServiceIdentity, Depends(RequirePermissions(*permissions.EMIT_TO_ROOM))],
) -> MessageResponse:
    recipients = await dispatcher.send_toast_to_user(body.user_id, body.toast)
    return MessageResponse(
        message=f"Toast sent to user {body.user_id}",
        details={"userId": body.user_id, "recipients": recipients},
    )


@router.get(
    "/stats",
    response_model=ConnectionStats,
    summary="Get connection hub statistics",
    responses=ERROR_RESPONSES,
)
async def get_stats(
    hub: HubDep,
    caller: Annotated[ServiceIdentity, Depends(RequirePermissions(*permissions.VIEW_HUB_STATS))],
) -> ConnectionStats:
    return ConnectionStats(**hub.stats())


# ──────────────────────────────────────────────────────────────
# Peer endpoint
# ──────────────────────────────────────────────────────────────


@ws_router.websocket("/ws")
async def websocket_endpoint(
    websocket: WebSocket,
    token: Annotated[str | None, Query(description="Service token when auth is required")] = None,
) -> None:
    """Real-time channel.

    Message Protocol:
        Client → Server:
        - {"type": "join", "room": "..."} (alias "subscribe")
        - {"type": "leave", "room": "..."} (alias "unsubscribe")
        - {"type": "ping"}
        - {"type": "pong"}

        Server → Client (always {"event": ..., "data": ...}):
        - connected {"connectionId": "..."}
        - joined / left {"room": "..."}
        - ping / pong {"timestamp": ...}
        - error {"code": "...", "message": "..."}
        - any event emitted to a joined room or broadcast
    """
    settings = get_websocket_settings()
    if not settings.enabled:
        await websocket.close(code=status.WS_1013_TRY_AGAIN_LATER, reason="WebSocket disabled")
        return

    hub = getattr(websocket.app.state, "hub", None)
    if hub is None or not hub.is_running:
        await websocket.close(code=status.WS_1013_TRY_AGAIN_LATER, reason="Server not ready")
        return

    if settings.require_auth:
        header = websocket.headers.get("Authorization") or (f"Bearer {token}" if token else None)
        try:
            identity = get_authenticator().authenticate(header)
        except AuthError as e:
            logger.warning(
                "WebSocket connection rejected",
                extra={"code": e.code.value, "reason": e.detail},
            )
            await websocket.close(code=status.WS_1008_POLICY_VIOLATION, reason=e.detail)
            return
        set_log_context(service_id=identity.id)

    await websocket.accept()
    session = RealtimeSession(
        hub,
        WebSocketTransport(websocket),
        max_message_size=settings.max_message_size,
    )

    try:
        connection_id = await session.accept()
    except (HubCapacityError, RealtimeUnavailableError) as e:
        logger.warning("WebSocket connection refused", extra={"reason": e.detail})
        await websocket.close(code=status.WS_1013_TRY_AGAIN_LATER, reason=e.detail)
        return

    set_log_context(connection_id=connection_id)
    try:
        while True:
            message = await websocket.receive()
            if message["type"] == "websocket.disconnect":
                break
            # Text and binary frames both carry JSON
            await session.on_message(message.get("text") or message.get("bytes") or "")
    except WebSocketDisconnect:
        logger.debug("WebSocket client disconnected", extra={"connection_id": connection_id})
    except Exception as e:
        logger.exception("WebSocket error", extra={"connection_id": connection_id, "error": str(e)})
    finally:
        await session.disconnect()
