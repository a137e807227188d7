"""Tests for application startup and shutdown."""

from __future__ import annotations

from notification_service.app.main import create_app
from notification_service.features.notifications.service import NotificationDispatcher

from tests.utils import RecordingTransport


class TestLifespan:
    """The lifespan owns the hub, the adapters and the health aggregator."""

    async def test_startup_populates_state(self):
        app = create_app()

        async with app.router.lifespan_context(app):
            assert app.state.hub.is_running
            assert isinstance(app.state.dispatcher, NotificationDispatcher)
            assert app.state.dispatcher.hub is app.state.hub
            assert app.state.email.backend_name == "console"
            assert app.state.push.backend_name == "console"
            assert app.state.health.list_providers() == ["email", "push"]

    async def test_shutdown_disconnects_peers(self):
        app = create_app()
        transport = RecordingTransport()

        async with app.router.lifespan_context(app):
            await app.state.hub.accept(transport)

        assert not app.state.hub.is_running
        assert transport.closed == (1001, "Server shutdown")

    async def test_disabled_websocket_leaves_hub_stopped(self, monkeypatch):
        monkeypatch.setenv("WS_ENABLED", "false")
        app = create_app()

        async with app.router.lifespan_context(app):
            assert not app.state.hub.is_running
