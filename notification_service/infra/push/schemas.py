"""Push notification schemas and delivery reports."""

from __future__ import annotations

from datetime import UTC, datetime
from enum import StrEnum
from typing import Any

from pydantic import BaseModel, Field


class PushTargetKind(StrEnum):
    """How a push was addressed."""

    DEVICE = "device"
    MULTICAST = "multicast"
    TOPIC = "topic"


class PushMessage(BaseModel):
    """Notification content shared by every target kind.

    Example:
        message = PushMessage(title="New invoice", body="Invoice #42 is ready", data={"id": "42"})
    """

    title: str = Field(min_length=1, max_length=500, description="Notification title")
    body: str = Field(min_length=1, max_length=4000, description="Notification body")
    data: dict[str, str] = Field(
        default_factory=dict,
        description="Key/value data delivered alongside the notification",
    )

    def to_payload(self) -> dict[str, Any]:
        return {
            "notification": {"title": self.title, "body": self.body},
            "data": dict(self.data),
        }


class PushReport(BaseModel):
    """Outcome of one push attempt, whatever its target kind.

    Example:
        report = await client.send_multicast(tokens, message)
        if report.success_count == 0:
            ...
    """

    target: PushTargetKind
    success_count: int = Field(default=0, ge=0)
    failure_count: int = Field(default=0, ge=0)
    message_id: str | None = Field(
        default=None,
        description="Gateway message name of the first successful delivery",
    )
    errors: list[str] = Field(default_factory=list)
    backend: str = "gateway"
    timestamp: datetime = Field(default_factory=lambda: datetime.now(UTC))

    @property
    def delivered(self) -> bool:
        return self.success_count > 0

    @classmethod
    def failure(
        cls,
        target: PushTargetKind,
        error: str,
        *,
        count: int = 1,
        backend: str = "gateway",
    ) -> PushReport:
        return cls(
            target=target,
            failure_count=count,
            errors=[error],
            backend=backend,
        )
