"""In-process connection hub.

Keeps the registry of live connections and the rooms they joined, and fans
``(event, payload)`` pairs out to them.

The registry is two maps kept mutually consistent:

- ``connection_id -> Connection`` (each connection knows its rooms)
- ``room -> set[connection_id]``

A room exists only while it has at least one member. Every mutation and every
fan-out snapshot runs under one ``asyncio.Lock``; no transport I/O ever
happens while it is held. Fan-out is a non-blocking enqueue into each peer's
bounded outbound queue, drained by a per-connection writer task, so a slow or
dead peer never stalls the others or the caller.
"""

from __future__ import annotations

import asyncio
import contextlib
from dataclasses import dataclass, field
from enum import StrEnum
import logging
import time
from typing import TYPE_CHECKING, Any
from uuid import uuid4

from notification_service.core.exceptions import HubCapacityError, RealtimeUnavailableError
from notification_service.infra.metrics import tracking

if TYPE_CHECKING:
    from notification_service.core.settings.websocket import WebSocketSettings
    from notification_service.infra.realtime.transport import PeerTransport

logger = logging.getLogger(__name__)

# Outcome labels for websocket_peer_deliveries_total
SENT = "sent"
FAILED = "failed"
DROPPED = "dropped"

# Seconds stop() waits for queued events to reach their peers
SHUTDOWN_DRAIN_TIMEOUT = 1.0


class ConnectionState(StrEnum):
    OPEN = "open"
    CLOSING = "closing"
    CLOSED = "closed"


@dataclass(eq=False)
class Connection:
    """One live peer registered with the hub."""

    connection_id: str
    transport: PeerTransport
    queue: asyncio.Queue[tuple[str, Any]]
    rooms: set[str] = field(default_factory=set)
    state: ConnectionState = ConnectionState.OPEN
    connected_at: float = field(default_factory=time.time)
    last_seen: float = field(default_factory=time.time)
    writer: asyncio.Task[None] | None = None

    def touch(self) -> None:
        self.last_seen = time.time()


class ConnectionHub:
    """Registry of connections and rooms with fire-and-forget fan-out.

    One instance is owned by the application lifespan and passed to whoever
    needs it.

    Example:
        hub = ConnectionHub(get_websocket_settings())
        await hub.start()

        connection_id = await hub.accept(transport)
        await hub.join(connection_id, "user-42")
        await hub.emit_to_room("user-42", "new_toast", {"text": "Saved"})

        await hub.stop()
    """

    def __init__(self, settings: WebSocketSettings) -> None:
        self.settings = settings

        self._connections: dict[str, Connection] = {}
        self._rooms: dict[str, set[str]] = {}
        self._lock = asyncio.Lock()

        self._running = False
        self._heartbeat_task: asyncio.Task[None] | None = None

    # ──────────────────────────────────────────────────────────────
    # Lifecycle
    # ──────────────────────────────────────────────────────────────

    @property
    def is_running(self) -> bool:
        return self._running

    async def start(self) -> None:
        """Start accepting connections and, if configured, the heartbeat."""
        if self._running:
            return
        self._running = True

        if self.settings.heartbeat_interval > 0:
            self._heartbeat_task = asyncio.create_task(
                self._heartbeat_loop(), name="hub-heartbeat"
            )

        tracking.update_hub_gauges(0, 0)
        logger.info(
            "Connection hub started",
            extra={
                "max_connections": self.settings.max_connections,
                "heartbeat_interval": self.settings.heartbeat_interval,
            },
        )

    async def stop(self) -> None:
        """Stop the heartbeat, deliver what is already queued and disconnect every peer."""
        if not self._running:
            return
        self._running = False

        if self._heartbeat_task is not None:
            self._heartbeat_task.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await self._heartbeat_task
            self._heartbeat_task = None

        try:
            async with asyncio.timeout(SHUTDOWN_DRAIN_TIMEOUT):
                await self.flush()
        except TimeoutError:
            logger.warning("Shutdown drain timed out, dropping queued events")

        connection_ids = list(self._connections)
        for connection_id in connection_ids:
            await self.disconnect(connection_id, code=1001, reason="Server shutdown")

        logger.info(
            "Connection hub stopped",
            extra={"connections_closed": len(connection_ids)},
        )

    # ──────────────────────────────────────────────────────────────
    # Registry mutations
    # ──────────────────────────────────────────────────────────────

    async def accept(self, transport: PeerTransport) -> str:
        """Register a new connection with no room membership.

        Returns:
            A fresh connection id, never reused.

        Raises:
            RealtimeUnavailableError: If the hub is not running.
            HubCapacityError: If ``max_connections`` is reached.
        """
        if not self._running:
            raise RealtimeUnavailableError("Connection hub is not running")

        async with self._lock:
            if len(self._connections) >= self.settings.max_connections:
                logger.warning(
                    "Connection refused: max connections reached",
                    extra={"max": self.settings.max_connections},
                )
                raise HubCapacityError(
                    "Maximum connections reached",
                    details={"max_connections": self.settings.max_connections},
                )

            connection_id = str(uuid4())
            connection = Connection(
                connection_id=connection_id,
                transport=transport,
                queue=asyncio.Queue(maxsize=self.settings.outbound_queue_size),
            )
            connection.writer = asyncio.create_task(
                self._writer(connection), name=f"hub-writer-{connection_id}"
            )
            self._connections[connection_id] = connection
            self._update_gauges()

        logger.info(
            "Connection accepted",
            extra={"connection_id": connection_id, "total_connections": len(self._connections)},
        )
        return connection_id

    async def join(self, connection_id: str, room: str) -> bool:
        """Add ``connection_id`` to ``room``, creating the room if needed.

        Idempotent.

        Returns:
            False if the connection is unknown, True otherwise.

        Raises:
            HubCapacityError: If the connection already sits in
                ``max_rooms_per_connection`` other rooms.
        """
        async with self._lock:
            connection = self._connections.get(connection_id)
            if connection is None:
                return False
            if room in connection.rooms:
                return True
            if len(connection.rooms) >= self.settings.max_rooms_per_connection:
                raise HubCapacityError(
                    "Maximum rooms per connection reached",
                    details={"max_rooms": self.settings.max_rooms_per_connection},
                )

            connection.rooms.add(room)
            self._rooms.setdefault(room, set()).add(connection_id)
            self._update_gauges()

        logger.debug("Joined room", extra={"connection_id": connection_id, "room": room})
        return True

    async def leave(self, connection_id: str, room: str) -> bool:
        """Remove ``connection_id`` from ``room``; empty rooms are reclaimed.

        Idempotent.

        Returns:
            False if the connection is unknown, True otherwise.
        """
        async with self._lock:
            connection = self._connections.get(connection_id)
            if connection is None:
                return False
            connection.rooms.discard(room)
            self._remove_member(room, connection_id)
            self._update_gauges()

        logger.debug("Left room", extra={"connection_id": connection_id, "room": room})
        return True

    async def disconnect(self, connection_id: str, code: int = 1000, reason: str = "") -> bool:
        """Leave every room, unregister, stop the writer and close the transport.

        A second call for the same id is a no-op.

        Returns:
            True if the connection was registered.
        """
        async with self._lock:
            connection = self._connections.pop(connection_id, None)
            if connection is None:
                return False
            connection.state = ConnectionState.CLOSING
            for room in connection.rooms:
                self._remove_member(room, connection_id)
            rooms = sorted(connection.rooms)
            connection.rooms.clear()
            self._update_gauges()

        await self._stop_writer(connection)

        try:
            await connection.transport.close(code, reason)
        except Exception as e:
            logger.warning(
                "Failed to close peer transport",
                extra={"connection_id": connection_id, "error": str(e)},
            )
        connection.state = ConnectionState.CLOSED

        duration = time.time() - connection.connected_at
        tracking.observe_connection_duration(duration)
        logger.info(
            "Connection closed",
            extra={
                "connection_id": connection_id,
                "rooms": rooms,
                "duration_seconds": round(duration, 3),
                "total_connections": len(self._connections),
            },
        )
        return True

    # ──────────────────────────────────────────────────────────────
    # Fan-out
    # ──────────────────────────────────────────────────────────────

    async def broadcast(self, event: str, payload: Any) -> int:
        """Queue ``(event, payload)`` for every registered connection.

        Returns once fan-out is scheduled.

        Returns:
            Number of peers the event was queued for.
        """
        async with self._lock:
            targets = list(self._connections.values())
            queued = self._enqueue_all(targets, event, payload)

        logger.debug(
            "Broadcast scheduled",
            extra={"event": event, "recipients": queued, "connections": len(targets)},
        )
        return queued

    async def emit_to_room(self, room: str, event: str, payload: Any) -> int:
        """Queue ``(event, payload)`` for every current member of ``room``.

        A room with no members is a silent no-op.

        Returns:
            Number of peers the event was queued for.
        """
        async with self._lock:
            member_ids = self._rooms.get(room)
            if not member_ids:
                logger.debug("Emit to empty room", extra={"room": room, "event": event})
                return 0
            targets = [self._connections[cid] for cid in member_ids]
            queued = self._enqueue_all(targets, event, payload)

        logger.debug(
            "Room emit scheduled",
            extra={"room": room, "event": event, "recipients": queued},
        )
        return queued

    async def send_to(self, connection_id: str, event: str, payload: Any) -> bool:
        """Queue an event for one connection.

        Returns:
            True if the event was queued.
        """
        async with self._lock:
            connection = self._connections.get(connection_id)
            if connection is None:
                return False
            return self._enqueue_all([connection], event, payload) == 1

    async def flush(self) -> None:
        """Wait until every currently queued event has been handed to its transport."""
        queues = [c.queue for c in self._connections.values()]
        await asyncio.gather(*(q.join() for q in queues))

    def touch(self, connection_id: str) -> None:
        """Record activity from a peer (resets its silence timer)."""
        connection = self._connections.get(connection_id)
        if connection is not None:
            connection.touch()

    # ──────────────────────────────────────────────────────────────
    # Queries
    # ──────────────────────────────────────────────────────────────

    def has_connection(self, connection_id: str) -> bool:
        return connection_id in self._connections

    def is_member(self, connection_id: str, room: str) -> bool:
        return connection_id in self._rooms.get(room, ())

    def rooms_of(self, connection_id: str) -> frozenset[str]:
        connection = self._connections.get(connection_id)
        return frozenset(connection.rooms) if connection else frozenset()

    def members_of(self, room: str) -> frozenset[str]:
        return frozenset(self._rooms.get(room, ()))

    @property
    def connection_count(self) -> int:
        return len(self._connections)

    @property
    def room_count(self) -> int:
        return len(self._rooms)

    def stats(self) -> dict[str, Any]:
        """Snapshot of hub state for diagnostics."""
        return {
            "running": self._running,
            "connections": len(self._connections),
            "rooms": {room: len(members) for room, members in self._rooms.items()},
            "room_count": len(self._rooms),
            "queued_events": sum(c.queue.qsize() for c in self._connections.values()),
        }

    # ──────────────────────────────────────────────────────────────
    # Internals
    # ──────────────────────────────────────────────────────────────

    def _remove_member(self, room: str, connection_id: str) -> None:
        """Drop one membership; must be called with the lock held."""
        members = self._rooms.get(room)
        if members is None:
            return
        members.discard(connection_id)
        if not members:
            del self._rooms[room]

    def _enqueue_all(self, targets: list[Connection], event: str, payload: Any) -> int:
        queued = 0
        for connection in targets:
            if connection.state is not ConnectionState.OPEN:
                continue
            try:
                connection.queue.put_nowait((event, payload))
            except asyncio.QueueFull:
                logger.warning(
                    "Outbound queue full, dropping event",
                    extra={"connection_id": connection.connection_id, "event": event},
                )
                tracking.track_peer_delivery(DROPPED)
                continue
            queued += 1
        return queued

    async def _writer(self, connection: Connection) -> None:
        """Drain one connection's queue into its transport."""
        while True:
            event, payload = await connection.queue.get()
            try:
                await connection.transport.send(event, payload)
            except Exception as e:
                logger.warning(
                    "Failed to deliver event to peer",
                    extra={
                        "connection_id": connection.connection_id,
                        "event": event,
                        "error": str(e),
                    },
                )
                tracking.track_peer_delivery(FAILED)
                failed = True
            else:
                tracking.track_peer_delivery(SENT)
                failed = False
            finally:
                connection.queue.task_done()

            if failed:
                await self.disconnect(connection.connection_id, code=1011, reason="Delivery failed")
                return

    async def _stop_writer(self, connection: Connection) -> None:
        writer = connection.writer
        if writer is not None and writer is not asyncio.current_task():
            writer.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await writer

        # Release anyone waiting in flush()
        while not connection.queue.empty():
            connection.queue.get_nowait()
            connection.queue.task_done()

    async def _heartbeat_loop(self) -> None:
        """Ping every peer periodically and drop the ones gone silent."""
        while self._running:
            await asyncio.sleep(self.settings.heartbeat_interval)
            try:
                await self._heartbeat_once()
            except Exception:
                logger.exception("Heartbeat sweep failed")

    async def _heartbeat_once(self) -> None:
        timeout = self.settings.connection_timeout
        now = time.time()
        async with self._lock:
            snapshot = list(self._connections.values())
            stale = {
                c.connection_id
                for c in snapshot
                if timeout > 0 and now - c.last_seen > timeout
            }
            alive = [c for c in snapshot if c.connection_id not in stale]
            self._enqueue_all(alive, "ping", {"timestamp": now})

        for connection_id in stale:
            logger.warning("Connection timed out", extra={"connection_id": connection_id})
            await self.disconnect(connection_id, code=1001, reason="Connection timeout")

    def _update_gauges(self) -> None:
        tracking.update_hub_gauges(len(self._connections), len(self._rooms))
