"""Unit tests for delivery metric tracking."""

from __future__ import annotations

import pytest

from notification_service.infra.metrics import REGISTRY, tracking
from notification_service.infra.metrics.tracking import DeliveryChannel


def _sent(channel: str, status: str, classification: str) -> float:
    value = REGISTRY.get_sample_value(
        "notification_service_sent_total",
        {"channel": channel, "status": status, "classification": classification},
    )
    return value or 0.0


class TestDeliveryAttempt:
    """Tests for the delivery_attempt context manager."""

    def test_success_recorded_once(self):
        before_ok = _sent("email", "success", "tracking-ok")
        before_fail = _sent("email", "failure", "tracking-ok")

        with tracking.delivery_attempt(DeliveryChannel.EMAIL, "tracking-ok") as attempt:
            attempt.succeeded()

        assert _sent("email", "success", "tracking-ok") == before_ok + 1
        assert _sent("email", "failure", "tracking-ok") == before_fail

    def test_attempt_without_success_is_a_failure(self):
        before = _sent("push", "failure", "tracking-silent")

        with tracking.delivery_attempt(DeliveryChannel.PUSH, "tracking-silent"):
            pass

        assert _sent("push", "failure", "tracking-silent") == before + 1

    def test_exception_records_failure_and_propagates(self):
        before_ok = _sent("socket", "success", "tracking-raise")
        before_fail = _sent("socket", "failure", "tracking-raise")

        with pytest.raises(RuntimeError):
            with tracking.delivery_attempt(DeliveryChannel.SOCKET, "tracking-raise") as attempt:
                attempt.succeeded()
                raise RuntimeError("transport gone")

        assert _sent("socket", "success", "tracking-raise") == before_ok
        assert _sent("socket", "failure", "tracking-raise") == before_fail + 1


class TestErrorTracking:
    def test_track_error_counts_by_code(self):
        labels = {"code": "TRACKING_TEST", "status_code": "418"}
        before = REGISTRY.get_sample_value("notification_service_errors_total", labels) or 0.0

        tracking.track_error("TRACKING_TEST", 418)

        assert REGISTRY.get_sample_value("notification_service_errors_total", labels) == before + 1
