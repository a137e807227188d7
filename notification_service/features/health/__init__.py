"""Health check feature module.

## Endpoints

- `/health` - Composite check of the mail relay and push client, 503 when degraded
- `/health/live` - Liveness probe, always 200

## Custom Providers

Create custom health checks by implementing the HealthProvider protocol:

    >>> from notification_service.features.health import (
    ...     HealthCheckResult,
    ...     HealthProvider,
    ... )
    >>>
    >>> class QueueHealthProvider:
    ...     @property
    ...     def name(self) -> str:
    ...         return "queue"
    ...
    ...     async def check_health(self) -> HealthCheckResult:
    ...         return HealthCheckResult(status=HealthStatus.HEALTHY)
    >>>
    >>> app.state.health.add_provider(QueueHealthProvider())
"""

from __future__ import annotations

from notification_service.features.health.aggregator import (
    AggregatedHealthResult,
    HealthAggregator,
)
from notification_service.features.health.providers import (
    EmailHealthProvider,
    HealthCheckResult,
    HealthProvider,
    PushHealthProvider,
)
from notification_service.features.health.router import router

__all__ = [
    "AggregatedHealthResult",
    "EmailHealthProvider",
    "HealthAggregator",
    "HealthCheckResult",
    "HealthProvider",
    "PushHealthProvider",
    "router",
]
