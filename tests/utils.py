"""Test utilities and helper functions.

Usage:
    from tests.utils import RecordingTransport

    transport = RecordingTransport()
    connection_id = await hub.accept(transport)
    ...
    assert transport.sent == [("ping", {"n": 1})]
"""

from __future__ import annotations

from typing import Any


class RecordingTransport:
    """In-memory peer transport that records everything sent to it."""

    def __init__(self, *, fail_on_send: bool = False) -> None:
        self.sent: list[tuple[str, Any]] = []
        self.closed: tuple[int, str] | None = None
        self.fail_on_send = fail_on_send

    async def send(self, event: str, payload: Any) -> None:
        if self.fail_on_send:
            raise ConnectionError("peer went away")
        self.sent.append((event, payload))

    async def close(self, code: int = 1000, reason: str = "") -> None:
        self.closed = (code, reason)

    def events(self, name: str | None = None) -> list[tuple[str, Any]]:
        return [(e, p) for e, p in self.sent if name is None or e == name]
