"""Health check aggregator running providers concurrently.

Example:
    aggregator = HealthAggregator(check_timeout=10.0)
    aggregator.add_provider(EmailHealthProvider(email_service))
    aggregator.add_provider(PushHealthProvider(push_client))

    result = await aggregator.check_all()
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
from datetime import UTC, datetime
import logging
import time

from notification_service.core.schemas.common import HealthStatus
from notification_service.features.health.providers import HealthCheckResult, HealthProvider

logger = logging.getLogger(__name__)

DEFAULT_CHECK_TIMEOUT_SECONDS = 10.0


@dataclass
class AggregatedHealthResult:
    """Aggregated health check result from all providers.

    Attributes:
        status: Overall status
        checks: Individual provider check results
        timestamp: When the health check was performed
        duration_ms: Total duration of all checks in milliseconds
    """

    status: HealthStatus
    checks: dict[str, HealthCheckResult] = field(default_factory=dict)
    timestamp: datetime = field(default_factory=lambda: datetime.now(UTC))
    duration_ms: float = 0.0

    @property
    def is_healthy(self) -> bool:
        return self.status == HealthStatus.HEALTHY


class HealthAggregator:
    """Run every registered provider concurrently and combine the results.

    The overall status is ``healthy`` only when every provider reports
    healthy, otherwise ``degraded``.
    """

    def __init__(self, check_timeout: float = DEFAULT_CHECK_TIMEOUT_SECONDS) -> None:
        self._check_timeout = check_timeout
        self._providers: dict[str, HealthProvider] = {}

    def add_provider(self, provider: HealthProvider) -> None:
        """Register a health check provider.

        Raises:
            TypeError: If provider doesn't implement HealthProvider protocol
            ValueError: If a provider with the same name is already registered
        """
        if not isinstance(provider, HealthProvider):
            raise TypeError(
                f"Provider must implement HealthProvider protocol, got {type(provider).__name__}"
            )
        if provider.name in self._providers:
            raise ValueError(f"Provider '{provider.name}' already registered")

        self._providers[provider.name] = provider
        logger.info("Registered health provider", extra={"provider": provider.name})

    def list_providers(self) -> list[str]:
        return list(self._providers)

    async def check_all(self) -> AggregatedHealthResult:
        start_time = time.perf_counter()
        checks = await self._run_concurrent_checks()

        status = (
            HealthStatus.HEALTHY
            if all(c.status == HealthStatus.HEALTHY for c in checks.values())
            else HealthStatus.DEGRADED
        )
        result = AggregatedHealthResult(
            status=status,
            checks=checks,
            duration_ms=(time.perf_counter() - start_time) * 1000,
        )

        if not result.is_healthy:
            logger.warning(
                "Health check degraded",
                extra={
                    "unhealthy": [n for n, c in checks.items() if c.status != HealthStatus.HEALTHY],
                },
            )
        return result

    async def _run_concurrent_checks(self) -> dict[str, HealthCheckResult]:
        if not self._providers:
            return {}

        async def check_provider(
            name: str, provider: HealthProvider
        ) -> tuple[str, HealthCheckResult]:
            try:
                return name, await provider.check_health()
            except Exception as e:
                logger.exception("Health check failed for provider", extra={"provider": name})
                return name, HealthCheckResult(
                    status=HealthStatus.UNHEALTHY,
                    message=f"Check error: {e}",
                    metadata={"error": str(e), "error_type": type(e).__name__},
                )

        try:
            async with asyncio.timeout(self._check_timeout):
                results = await asyncio.gather(
                    *(check_provider(name, p) for name, p in self._providers.items())
                )
        except TimeoutError:
            logger.error(
                "Health check timed out",
                extra={"timeout": self._check_timeout, "providers": list(self._providers)},
            )
            return {
                name: HealthCheckResult(
                    status=HealthStatus.UNHEALTHY,
                    message=f"Check timed out after {self._check_timeout}s",
                    metadata={"error": "timeout"},
                )
                for name in self._providers
            }

        return dict(results)
