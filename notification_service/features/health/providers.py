"""Health check providers using Protocol-based architecture.

Each provider reports on one delivery dependency. Custom checks only need to
implement ``HealthProvider`` and be registered with the aggregator.
"""

from __future__ import annotations

from dataclasses import dataclass, field
import logging
import time
from typing import TYPE_CHECKING, Any, Protocol, runtime_checkable

from notification_service.core.schemas.common import HealthStatus

if TYPE_CHECKING:
    from notification_service.infra.email import EmailService
    from notification_service.infra.push import BasePushClient

logger = logging.getLogger(__name__)


@dataclass
class HealthCheckResult:
    """Result from a single health check.

    Attributes:
        status: Health status (HEALTHY, DEGRADED, UNHEALTHY)
        message: Human-readable status message
        latency_ms: Check duration in milliseconds
        metadata: Additional provider-specific details
    """

    status: HealthStatus
    message: str = ""
    latency_ms: float = 0.0
    metadata: dict[str, Any] = field(default_factory=dict)


@runtime_checkable
class HealthProvider(Protocol):
    """Protocol for health check providers."""

    @property
    def name(self) -> str:
        """Unique identifier for this health check (e.g. "email")."""
        ...

    async def check_health(self) -> HealthCheckResult:
        ...


class EmailHealthProvider:
    """Checks that the SMTP relay accepts a connection.

    The console backend is always healthy.
    """

    def __init__(self, email: EmailService) -> None:
        self._email = email

    @property
    def name(self) -> str:
        return "email"

    async def check_health(self) -> HealthCheckResult:
        start = time.perf_counter()
        reachable = await self._email.health_check()
        latency_ms = (time.perf_counter() - start) * 1000
        backend = self._email.backend_name

        if reachable:
            return HealthCheckResult(
                status=HealthStatus.HEALTHY,
                message="Mail relay reachable",
                latency_ms=latency_ms,
                metadata={"backend": backend},
            )
        return HealthCheckResult(
            status=HealthStatus.UNHEALTHY,
            message="Mail relay unreachable",
            latency_ms=latency_ms,
            metadata={"backend": backend},
        )


class PushHealthProvider:
    """Checks that the push client is initialized."""

    def __init__(self, push: BasePushClient) -> None:
        self._push = push

    @property
    def name(self) -> str:
        return "push"

    async def check_health(self) -> HealthCheckResult:
        backend = self._push.backend_name
        if await self._push.health_check():
            return HealthCheckResult(
                status=HealthStatus.HEALTHY,
                message="Push client initialized",
                metadata={"backend": backend},
            )
        return HealthCheckResult(
            status=HealthStatus.UNHEALTHY,
            message="Push client not initialized",
            metadata={"backend": backend},
        )
