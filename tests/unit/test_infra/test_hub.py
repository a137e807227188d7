"""Unit tests for the in-process connection hub."""

from __future__ import annotations

import asyncio

import pytest

from notification_service.core.exceptions import HubCapacityError, RealtimeUnavailableError
from notification_service.core.settings import WebSocketSettings
from notification_service.infra.realtime import ConnectionHub, ConnectionState, PeerTransport
from notification_service.infra.realtime import hub as hub_module

from tests.utils import RecordingTransport


def _settings(**overrides) -> WebSocketSettings:
    values = {
        "max_connections": 100,
        "max_rooms_per_connection": 10,
        "outbound_queue_size": 16,
        "heartbeat_interval": 0,
        "connection_timeout": 0,
    }
    values.update(overrides)
    return WebSocketSettings(**values)


@pytest.fixture
async def hub():
    hub = ConnectionHub(_settings())
    await hub.start()
    yield hub
    await hub.stop()


class HangingTransport(RecordingTransport):
    """Transport whose sends never complete."""

    async def send(self, event, payload):
        await asyncio.Event().wait()


async def _connect(hub: ConnectionHub, **kwargs) -> tuple[str, RecordingTransport]:
    transport = RecordingTransport(**kwargs)
    return await hub.accept(transport), transport


# ──────────────────────────────────────────────────────────────
# Lifecycle
# ──────────────────────────────────────────────────────────────


class TestHubLifecycle:
    """Tests for start/stop and admission."""

    async def test_accept_requires_running_hub(self):
        """A stopped hub refuses new connections."""
        hub = ConnectionHub(_settings())

        with pytest.raises(RealtimeUnavailableError):
            await hub.accept(RecordingTransport())

    async def test_accept_registers_without_rooms(self, hub):
        """A fresh connection is registered and belongs to no room."""
        connection_id, _ = await _connect(hub)

        assert hub.has_connection(connection_id)
        assert hub.rooms_of(connection_id) == frozenset()
        assert hub.connection_count == 1

    async def test_connection_ids_are_unique(self, hub):
        """Ids are never reused, even after a disconnect."""
        first, _ = await _connect(hub)
        await hub.disconnect(first)
        second, _ = await _connect(hub)

        assert first != second

    async def test_max_connections_enforced(self):
        """The hub refuses connections beyond its capacity."""
        hub = ConnectionHub(_settings(max_connections=1))
        await hub.start()
        try:
            await hub.accept(RecordingTransport())
            with pytest.raises(HubCapacityError):
                await hub.accept(RecordingTransport())
        finally:
            await hub.stop()

    async def test_stop_closes_every_peer(self):
        """Stopping the hub disconnects every peer with a going-away code."""
        hub = ConnectionHub(_settings())
        await hub.start()
        _, t1 = await _connect(hub)
        _, t2 = await _connect(hub)

        await hub.stop()

        assert hub.connection_count == 0
        assert t1.closed == (1001, "Server shutdown")
        assert t2.closed == (1001, "Server shutdown")
        assert not hub.is_running

    async def test_stop_delivers_already_queued_events(self):
        hub = ConnectionHub(_settings())
        await hub.start()
        _, transport = await _connect(hub)
        await hub.broadcast("maintenance", {"at": "22:00"})

        await hub.stop()

        assert transport.events("maintenance") == [("maintenance", {"at": "22:00"})]
        assert transport.closed == (1001, "Server shutdown")

    async def test_stop_gives_up_on_a_stuck_peer(self, monkeypatch):
        monkeypatch.setattr(hub_module, "SHUTDOWN_DRAIN_TIMEOUT", 0.05)
        hub = ConnectionHub(_settings())
        await hub.start()
        transport = HangingTransport()
        connection_id = await hub.accept(transport)
        await hub.broadcast("maintenance", "soon")

        await hub.stop()

        assert not hub.has_connection(connection_id)
        assert transport.closed == (1001, "Server shutdown")

    def test_recording_transport_satisfies_protocol(self):
        assert isinstance(RecordingTransport(), PeerTransport)


# ──────────────────────────────────────────────────────────────
# Rooms
# ──────────────────────────────────────────────────────────────


class TestHubRooms:
    """Tests for room membership."""

    async def test_join_is_visible_immediately(self, hub):
        """Membership is observable as soon as join returns."""
        connection_id, _ = await _connect(hub)

        assert await hub.join(connection_id, "room-X") is True

        assert hub.is_member(connection_id, "room-X")
        assert hub.members_of("room-X") == {connection_id}
        assert "room-X" in hub.rooms_of(connection_id)

    async def test_join_is_idempotent(self, hub):
        connection_id, _ = await _connect(hub)

        await hub.join(connection_id, "room-X")
        await hub.join(connection_id, "room-X")

        assert hub.members_of("room-X") == {connection_id}
        assert hub.room_count == 1

    async def test_join_unknown_connection_returns_false(self, hub):
        """Joining with an unknown id is refused without creating the room."""
        assert await hub.join("missing", "room-X") is False
        assert hub.room_count == 0

    async def test_leave_removes_membership(self, hub):
        """After a leave the connection is absent from the room."""
        c1, _ = await _connect(hub)
        c2, _ = await _connect(hub)
        await hub.join(c1, "room-X")
        await hub.join(c2, "room-X")

        await hub.leave(c1, "room-X")

        assert not hub.is_member(c1, "room-X")
        assert hub.members_of("room-X") == {c2}

    async def test_leave_reclaims_empty_room(self, hub):
        """A room disappears once its last member leaves."""
        connection_id, _ = await _connect(hub)
        await hub.join(connection_id, "room-X")

        await hub.leave(connection_id, "room-X")

        assert hub.room_count == 0
        assert hub.members_of("room-X") == frozenset()

    async def test_leave_room_never_joined_is_noop(self, hub):
        connection_id, _ = await _connect(hub)

        assert await hub.leave(connection_id, "never-joined") is True
        assert hub.room_count == 0

    async def test_max_rooms_per_connection(self):
        """A connection cannot sit in more rooms than allowed."""
        hub = ConnectionHub(_settings(max_rooms_per_connection=2))
        await hub.start()
        try:
            connection_id = await hub.accept(RecordingTransport())
            await hub.join(connection_id, "a")
            await hub.join(connection_id, "b")

            with pytest.raises(HubCapacityError):
                await hub.join(connection_id, "c")
            # Re-joining a current room is still fine
            assert await hub.join(connection_id, "a") is True
        finally:
            await hub.stop()

    async def test_random_join_leave_sequences_stay_consistent(self, hub):
        """Both registry maps agree after any join/leave sequence."""
        ids = [(await _connect(hub))[0] for _ in range(3)]
        ops = [
            ("join", 0, "a"), ("join", 1, "a"), ("join", 2, "b"), ("leave", 0, "a"),
            ("join", 0, "b"), ("leave", 1, "a"), ("join", 1, "a"), ("leave", 2, "b"),
        ]
        for op, idx, room in ops:
            if op == "join":
                await hub.join(ids[idx], room)
            else:
                await hub.leave(ids[idx], room)
                assert not hub.is_member(ids[idx], room)

        for connection_id in ids:
            for room in hub.rooms_of(connection_id):
                assert connection_id in hub.members_of(room)
        assert hub.members_of("a") == {ids[1]}
        assert hub.members_of("b") == {ids[0]}


# ──────────────────────────────────────────────────────────────
# Disconnect
# ──────────────────────────────────────────────────────────────


class TestHubDisconnect:
    """Tests for connection removal."""

    async def test_disconnect_leaves_every_room(self, hub):
        """A disconnected peer is absent from every room and the registry."""
        c1, transport = await _connect(hub)
        c2, _ = await _connect(hub)
        await hub.join(c1, "room-X")
        await hub.join(c1, "room-Y")
        await hub.join(c2, "room-X")

        assert await hub.disconnect(c1) is True

        assert not hub.has_connection(c1)
        assert hub.members_of("room-X") == {c2}
        assert hub.members_of("room-Y") == frozenset()
        assert hub.room_count == 1
        assert transport.closed == (1000, "")

    async def test_disconnect_removes_rooms_it_was_alone_in(self, hub):
        connection_id, _ = await _connect(hub)
        await hub.join(connection_id, "room-X")
        await hub.join(connection_id, "room-Y")

        await hub.disconnect(connection_id)

        assert hub.room_count == 0

    async def test_disconnect_twice_is_noop(self, hub):
        connection_id, _ = await _connect(hub)

        assert await hub.disconnect(connection_id) is True
        assert await hub.disconnect(connection_id) is False

    async def test_disconnect_tolerates_failing_close(self, hub):
        """A transport that fails to close is still unregistered."""

        class ExplodingClose(RecordingTransport):
            async def close(self, code: int = 1000, reason: str = "") -> None:
                raise RuntimeError("already closed")

        connection_id = await hub.accept(ExplodingClose())

        assert await hub.disconnect(connection_id) is True
        assert not hub.has_connection(connection_id)


# ──────────────────────────────────────────────────────────────
# Fan-out
# ──────────────────────────────────────────────────────────────


class TestHubFanOut:
    """Tests for broadcast and room emission."""

    async def test_emit_reaches_only_room_members(self, hub):
        """Members receive the event, a connection outside the room does not."""
        c1, t1 = await _connect(hub)
        c2, t2 = await _connect(hub)
        _, t3 = await _connect(hub)
        await hub.join(c1, "room-X")
        await hub.join(c2, "room-X")

        recipients = await hub.emit_to_room("room-X", "ping", {"n": 1})
        await hub.flush()

        assert recipients == 2
        assert t1.sent == [("ping", {"n": 1})]
        assert t2.sent == [("ping", {"n": 1})]
        assert t3.sent == []

    async def test_emit_to_empty_room_is_noop(self, hub):
        """Emitting to a room with no members never raises and sends nothing."""
        _, transport = await _connect(hub)

        assert await hub.emit_to_room("nobody-here", "ping", {}) == 0
        await hub.flush()

        assert transport.sent == []
        assert hub.room_count == 0

    async def test_emit_after_leave_is_noop(self, hub):
        connection_id, transport = await _connect(hub)
        await hub.join(connection_id, "room-X")
        await hub.leave(connection_id, "room-X")

        assert await hub.emit_to_room("room-X", "ping", {}) == 0
        await hub.flush()

        assert transport.sent == []

    async def test_broadcast_reaches_every_connection(self, hub):
        """Broadcast ignores rooms and reaches every registered connection."""
        c1, t1 = await _connect(hub)
        _, t2 = await _connect(hub)
        await hub.join(c1, "room-X")

        assert await hub.broadcast("announcement", {"text": "hi"}) == 2
        await hub.flush()

        assert t1.sent == [("announcement", {"text": "hi"})]
        assert t2.sent == [("announcement", {"text": "hi"})]

    async def test_broadcast_targets_connections_registered_at_call_time(self, hub):
        _, t1 = await _connect(hub)
        await hub.broadcast("first", 1)
        _, t2 = await _connect(hub)
        await hub.flush()

        assert t1.sent == [("first", 1)]
        assert t2.sent == []

    async def test_payload_is_passed_through_untouched(self, hub):
        """Payloads are opaque: any JSON-like value arrives as given."""
        _, transport = await _connect(hub)
        payloads = ["text", 42, [1, 2, 3], {"nested": {"list": [None, True]}}]

        for payload in payloads:
            await hub.broadcast("cargo", payload)
        await hub.flush()

        assert [p for _, p in transport.sent] == payloads

    async def test_events_arrive_in_order_per_peer(self, hub):
        _, transport = await _connect(hub)

        for i in range(10):
            await hub.broadcast("seq", i)
        await hub.flush()

        assert [p for _, p in transport.sent] == list(range(10))

    async def test_broadcast_returns_before_delivery(self, hub):
        """Fan-out only schedules sends; a slow peer does not block the caller."""
        gate = asyncio.Event()

        class SlowTransport(RecordingTransport):
            async def send(self, event, payload):
                await gate.wait()
                await super().send(event, payload)

        slow = SlowTransport()
        await hub.accept(slow)

        recipients = await asyncio.wait_for(hub.broadcast("event", {}), timeout=1)

        assert recipients == 1
        assert slow.sent == []
        gate.set()
        await hub.flush()
        assert slow.sent == [("event", {})]

    async def test_failing_peer_does_not_affect_others(self, hub):
        """A peer whose send fails is disconnected; the others still receive."""
        bad_id, bad = await _connect(hub, fail_on_send=True)
        _, good = await _connect(hub)

        assert await hub.broadcast("event", {"n": 1}) == 2
        await hub.flush()
        # Give the failing writer a chance to finish its own disconnect
        for _ in range(5):
            await asyncio.sleep(0)

        assert good.sent == [("event", {"n": 1})]
        assert not hub.has_connection(bad_id)
        assert bad.closed is not None
        assert bad.closed[0] == 1011

    async def test_full_queue_drops_event_for_that_peer_only(self):
        """A peer whose outbound queue is full loses the event; others get it."""
        hub = ConnectionHub(_settings(outbound_queue_size=1))
        await hub.start()
        gate = asyncio.Event()

        class StuckTransport(RecordingTransport):
            async def send(self, event, payload):
                await gate.wait()
                await super().send(event, payload)

        try:
            stuck = StuckTransport()
            await hub.accept(stuck)
            _, healthy = await _connect(hub)

            await hub.broadcast("e", 1)
            await asyncio.sleep(0)  # writer takes the first event and blocks
            await hub.broadcast("e", 2)  # fills the stuck queue
            await asyncio.sleep(0)  # healthy writer drains its copy
            recipients = await hub.broadcast("e", 3)

            assert recipients == 1
            gate.set()
            await hub.flush()
            assert [p for _, p in healthy.sent] == [1, 2, 3]
            assert [p for _, p in stuck.sent] == [1, 2]
        finally:
            await hub.stop()

    async def test_disconnect_racing_broadcast_never_errors(self, hub):
        """Disconnecting while fan-out is in flight never makes the hub raise."""
        ids = [(await _connect(hub))[0] for _ in range(20)]

        results = await asyncio.gather(
            hub.broadcast("race", {}),
            *(hub.disconnect(cid) for cid in ids[::2]),
            hub.broadcast("race", {}),
        )
        await hub.flush()

        assert all(r is not None for r in results)
        assert hub.connection_count == 10

    async def test_send_to_single_connection(self, hub):
        connection_id, transport = await _connect(hub)

        assert await hub.send_to(connection_id, "hello", {"x": 1}) is True
        assert await hub.send_to("missing", "hello", {}) is False
        await hub.flush()

        assert transport.sent == [("hello", {"x": 1})]


# ──────────────────────────────────────────────────────────────
# Heartbeat and stats
# ──────────────────────────────────────────────────────────────


class TestHubHeartbeat:
    """Tests for the heartbeat loop."""

    async def test_heartbeat_pings_live_peers(self):
        hub = ConnectionHub(_settings(heartbeat_interval=0.01, connection_timeout=0))
        await hub.start()
        try:
            _, transport = await _connect(hub)
            await asyncio.sleep(0.05)
            await hub.flush()

            assert transport.events("ping")
            assert "timestamp" in transport.events("ping")[0][1]
        finally:
            await hub.stop()

    async def test_heartbeat_drops_silent_peers(self):
        hub = ConnectionHub(_settings(heartbeat_interval=0.01, connection_timeout=0.02))
        await hub.start()
        try:
            connection_id, transport = await _connect(hub)
            await asyncio.sleep(0.1)

            assert not hub.has_connection(connection_id)
            assert transport.closed == (1001, "Connection timeout")
        finally:
            await hub.stop()

    async def test_failed_sweep_does_not_stop_the_heartbeat(self):
        hub = ConnectionHub(_settings(heartbeat_interval=0.01, connection_timeout=0.02))
        sweep = hub._heartbeat_once
        calls = 0

        async def flaky_sweep():
            nonlocal calls
            calls += 1
            if calls == 1:
                raise RuntimeError("sweep failed")
            await sweep()

        hub._heartbeat_once = flaky_sweep
        await hub.start()
        try:
            connection_id, transport = await _connect(hub)
            await asyncio.sleep(0.1)

            assert calls > 1
            assert not hub.has_connection(connection_id)
            assert transport.closed == (1001, "Connection timeout")
        finally:
            await hub.stop()


class TestHubStats:
    async def test_stats_snapshot(self, hub):
        c1, _ = await _connect(hub)
        c2, _ = await _connect(hub)
        await hub.join(c1, "a")
        await hub.join(c2, "a")
        await hub.join(c2, "b")

        stats = hub.stats()

        assert stats["running"] is True
        assert stats["connections"] == 2
        assert stats["rooms"] == {"a": 2, "b": 1}
        assert stats["room_count"] == 2

    async def test_connection_state_transitions(self, hub):
        connection_id, _ = await _connect(hub)
        connection = hub._connections[connection_id]
        assert connection.state is ConnectionState.OPEN

        await hub.disconnect(connection_id)

        assert connection.state is ConnectionState.CLOSED
