"""Dependencies for the long-lived objects created in the lifespan.

The hub and the dispatcher live on ``app.state``; routes receive them through
these dependencies so tests can override them.
"""

from __future__ import annotations

from typing import Annotated

from fastapi import Depends
from starlette.requests import HTTPConnection

from notification_service.core.exceptions import RealtimeUnavailableError
from notification_service.features.notifications.service import NotificationDispatcher
from notification_service.infra.realtime import ConnectionHub


def get_hub(connection: HTTPConnection) -> ConnectionHub:
    """Get the application's connection hub.

    Raises:
        RealtimeUnavailableError: If the hub was not created at startup.
    """
    hub = getattr(connection.app.state, "hub", None)
    if hub is None:
        raise RealtimeUnavailableError("Connection hub not initialized")
    return hub


def get_dispatcher(connection: HTTPConnection) -> NotificationDispatcher:
    dispatcher = getattr(connection.app.state, "dispatcher", None)
    if dispatcher is None:
        raise RealtimeUnavailableError("Notification dispatcher not initialized")
    return dispatcher


HubDep = Annotated[ConnectionHub, Depends(get_hub)]
DispatcherDep = Annotated[NotificationDispatcher, Depends(get_dispatcher)]

__all__ = ["DispatcherDep", "HubDep", "get_dispatcher", "get_hub"]
