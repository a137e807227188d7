"""Helper functions for tracking delivery and operational metrics."""

from __future__ import annotations

from contextlib import contextmanager
from dataclasses import dataclass
from enum import StrEnum
import logging
import time
from typing import TYPE_CHECKING

from notification_service.infra.metrics import prometheus

if TYPE_CHECKING:
    from collections.abc import Iterator

logger = logging.getLogger(__name__)


class DeliveryChannel(StrEnum):
    """Transport a notification was dispatched through."""

    EMAIL = "email"
    PUSH = "push"
    SOCKET = "socket"


class DeliveryStatus(StrEnum):
    SUCCESS = "success"
    FAILURE = "failure"


@dataclass(frozen=True)
class DeliveryOutcome:
    """Result of one dispatch attempt, used for observability only.

    Attributes:
        channel: Transport the attempt went through.
        status: Whether the attempt succeeded.
        classification: Template name for mail, push target kind for push
            (``device``, ``multicast`` or ``topic:<name>``), ``broadcast:<event>``
            or ``emit:<event>`` for socket events.
    """

    channel: DeliveryChannel
    status: DeliveryStatus
    classification: str


class DeliveryAttempt:
    """Mutable marker handed out by ``delivery_attempt``.

    The attempt counts as a failure unless ``succeeded()`` is called.
    """

    def __init__(self, channel: DeliveryChannel, classification: str) -> None:
        self.channel = channel
        self.classification = classification
        self.status = DeliveryStatus.FAILURE

    def succeeded(self) -> None:
        self.status = DeliveryStatus.SUCCESS

    def failed(self) -> None:
        self.status = DeliveryStatus.FAILURE

    @property
    def outcome(self) -> DeliveryOutcome:
        return DeliveryOutcome(self.channel, self.status, self.classification)


# ============================================================================
# Delivery Tracking
# ============================================================================


def record_delivery(outcome: DeliveryOutcome, duration: float | None = None) -> None:
    """Record one dispatch attempt.

    Args:
        outcome: Channel, status and classification of the attempt.
        duration: Optional time in seconds spent handing off to the transport.

    Example:
        record_delivery(DeliveryOutcome(DeliveryChannel.EMAIL, DeliveryStatus.SUCCESS, "invoice"))
    """
    prometheus.notifications_sent_total.labels(
        channel=outcome.channel.value,
        status=outcome.status.value,
        classification=outcome.classification,
    ).inc()

    if duration is not None:
        prometheus.notification_delivery_duration_seconds.labels(
            channel=outcome.channel.value,
        ).observe(duration)

    logger.debug(
        "Tracked delivery",
        extra={
            "channel": outcome.channel.value,
            "status": outcome.status.value,
            "classification": outcome.classification,
        },
    )


@contextmanager
def delivery_attempt(channel: DeliveryChannel, classification: str) -> Iterator[DeliveryAttempt]:
    """Record exactly one outcome for the enclosed dispatch attempt.

    The outcome is a failure if the block raises or never calls
    ``attempt.succeeded()``.

    Example:
        with delivery_attempt(DeliveryChannel.PUSH, "device") as attempt:
            report = await adapter.send(...)
            if report.success_count:
                attempt.succeeded()
    """
    attempt = DeliveryAttempt(channel, classification)
    start = time.perf_counter()
    try:
        yield attempt
    except BaseException:
        attempt.failed()
        raise
    finally:
        record_delivery(attempt.outcome, time.perf_counter() - start)


# ============================================================================
# Error Tracking
# ============================================================================


def track_error(code: str, status_code: int) -> None:
    """Track an error returned to a caller."""
    prometheus.errors_total.labels(code=code, status_code=str(status_code)).inc()


# ============================================================================
# Connection Hub Tracking
# ============================================================================


def track_peer_delivery(outcome: str) -> None:
    """Track one per-peer delivery (``sent``, ``failed`` or ``dropped``)."""
    prometheus.websocket_peer_deliveries_total.labels(outcome=outcome).inc()


def track_message_received(message_type: str) -> None:
    prometheus.websocket_messages_received_total.labels(message_type=message_type).inc()


def update_hub_gauges(connections: int, rooms: int) -> None:
    prometheus.websocket_connections_active.set(connections)
    prometheus.websocket_rooms_active.set(rooms)


def observe_connection_duration(seconds: float) -> None:
    prometheus.websocket_connection_duration_seconds.observe(seconds)
