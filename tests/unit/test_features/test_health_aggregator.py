"""Unit tests for health providers and aggregation."""

from __future__ import annotations

import asyncio
from unittest.mock import AsyncMock, MagicMock

import pytest

from notification_service.core.schemas.common import HealthStatus
from notification_service.features.health import (
    EmailHealthProvider,
    HealthAggregator,
    HealthCheckResult,
    PushHealthProvider,
)
from notification_service.features.health.service import HealthService
from notification_service.infra.push import ConsolePushClient, DisabledPushClient


class StaticProvider:
    """Provider that returns a fixed result, optionally after a delay."""

    def __init__(self, name: str, status: HealthStatus, delay: float = 0.0) -> None:
        self._name = name
        self._status = status
        self._delay = delay

    @property
    def name(self) -> str:
        return self._name

    async def check_health(self) -> HealthCheckResult:
        if self._delay:
            await asyncio.sleep(self._delay)
        return HealthCheckResult(status=self._status, message=self._status.value)


class ExplodingProvider:
    name = "exploding"

    async def check_health(self) -> HealthCheckResult:
        raise RuntimeError("kaboom")


class TestHealthAggregator:
    """Tests for concurrent provider checks."""

    async def test_all_healthy(self):
        aggregator = HealthAggregator()
        aggregator.add_provider(StaticProvider("email", HealthStatus.HEALTHY))
        aggregator.add_provider(StaticProvider("push", HealthStatus.HEALTHY))

        result = await aggregator.check_all()

        assert result.is_healthy
        assert set(result.checks) == {"email", "push"}

    async def test_one_unhealthy_degrades(self):
        aggregator = HealthAggregator()
        aggregator.add_provider(StaticProvider("email", HealthStatus.HEALTHY))
        aggregator.add_provider(StaticProvider("push", HealthStatus.UNHEALTHY))

        result = await aggregator.check_all()

        assert result.status == HealthStatus.DEGRADED
        assert result.checks["push"].status == HealthStatus.UNHEALTHY

    async def test_provider_exception_is_unhealthy(self):
        aggregator = HealthAggregator()
        aggregator.add_provider(ExplodingProvider())

        result = await aggregator.check_all()

        assert result.checks["exploding"].status == HealthStatus.UNHEALTHY

    async def test_timeout_marks_everything_unhealthy(self):
        aggregator = HealthAggregator(check_timeout=0.05)
        aggregator.add_provider(StaticProvider("slow", HealthStatus.HEALTHY, delay=1.0))

        result = await aggregator.check_all()

        assert result.status == HealthStatus.DEGRADED
        assert result.checks["slow"].metadata == {"error": "timeout"}

    def test_rejects_non_providers_and_duplicates(self):
        aggregator = HealthAggregator()
        aggregator.add_provider(StaticProvider("email", HealthStatus.HEALTHY))

        with pytest.raises(TypeError):
            aggregator.add_provider(object())
        with pytest.raises(ValueError):
            aggregator.add_provider(StaticProvider("email", HealthStatus.HEALTHY))
        assert aggregator.list_providers() == ["email"]


class TestProviders:
    """Tests for the mail and push providers."""

    async def test_email_provider_reports_relay_state(self):
        email = MagicMock(backend_name="smtp")
        email.health_check = AsyncMock(side_effect=[True, False])
        provider = EmailHealthProvider(email)

        up = await provider.check_health()
        down = await provider.check_health()

        assert up.status == HealthStatus.HEALTHY
        assert up.metadata == {"backend": "smtp"}
        assert down.status == HealthStatus.UNHEALTHY

    async def test_push_provider_follows_initialization(self):
        assert (await PushHealthProvider(ConsolePushClient()).check_health()).status == (
            HealthStatus.HEALTHY
        )
        assert (await PushHealthProvider(DisabledPushClient()).check_health()).status == (
            HealthStatus.UNHEALTHY
        )


class TestHealthService:
    async def test_response_includes_dependencies(self):
        aggregator = HealthAggregator()
        aggregator.add_provider(StaticProvider("email", HealthStatus.HEALTHY))

        response = await HealthService(aggregator).check_health()

        assert response.status == HealthStatus.HEALTHY
        assert response.dependencies["email"].details["latency_ms"] == 0.0
        assert response.hub is None
