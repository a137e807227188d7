"""Permissions carried in service tokens."""

from __future__ import annotations

from enum import StrEnum

from notification_service.core.settings.auth import WILDCARD_PERMISSION


class Permission(StrEnum):
    """Permission names checked by the dispatch endpoints."""

    SEND = "notify:send"
    EMAIL = "notify:email"
    PUSH = "notify:push"
    SOCKET = "notify:socket"
    BROADCAST = "notify:broadcast"
    ADMIN = "notify:admin"
    ALL = WILDCARD_PERMISSION


SEND_EMAIL = (Permission.SEND, Permission.EMAIL)
SEND_PUSH = (Permission.SEND, Permission.PUSH)
EMIT_TO_ROOM = (Permission.SEND, Permission.SOCKET)
BROADCAST = (Permission.ADMIN, Permission.BROADCAST)
VIEW_HUB_STATS = (Permission.ADMIN,)
