"""Health service and dependency injection helpers.

Example:
    @router.get("/health")
    async def health(service: HealthServiceDep):
        return await service.check_health()
"""

from __future__ import annotations

from datetime import UTC, datetime
from typing import TYPE_CHECKING, Annotated

from fastapi import Depends
from starlette.requests import HTTPConnection

from notification_service.core.settings import get_app_settings
from notification_service.features.health.aggregator import HealthAggregator
from notification_service.features.health.schemas import DependencyHealth, HealthResponse

if TYPE_CHECKING:
    from notification_service.infra.realtime import ConnectionHub


class HealthService:
    """Builds the composite health response."""

    def __init__(self, aggregator: HealthAggregator, hub: ConnectionHub | None = None) -> None:
        self.aggregator = aggregator
        self.hub = hub

    async def check_health(self) -> HealthResponse:
        settings = get_app_settings()
        result = await self.aggregator.check_all()

        hub_info = None
        if self.hub is not None:
            hub_info = {
                "running": self.hub.is_running,
                "connections": self.hub.connection_count,
                "rooms": self.hub.room_count,
            }

        return HealthResponse(
            status=result.status,
            service=settings.service_name,
            version=settings.version,
            timestamp=result.timestamp,
            dependencies={
                name: DependencyHealth(
                    status=check.status,
                    message=check.message,
                    details={**check.metadata, "latency_ms": round(check.latency_ms, 2)},
                )
                for name, check in result.checks.items()
            },
            hub=hub_info,
        )

    @staticmethod
    def now() -> datetime:
        return datetime.now(UTC)


def get_health_service(connection: HTTPConnection) -> HealthService:
    """Build the health service from the aggregator created at startup.

    Without a configured aggregator every check passes trivially.
    """
    state = connection.app.state
    aggregator = getattr(state, "health", None) or HealthAggregator()
    return HealthService(aggregator, getattr(state, "hub", None))


HealthServiceDep = Annotated[HealthService, Depends(get_health_service)]

__all__ = ["HealthService", "HealthServiceDep", "get_health_service"]
