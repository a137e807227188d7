"""Health check response schemas."""

from __future__ import annotations

from datetime import datetime
from typing import Any

from pydantic import BaseModel, Field

from notification_service.core.schemas.common import HealthStatus


class DependencyHealth(BaseModel):
    """Status of one checked dependency."""

    status: HealthStatus
    message: str = ""
    details: dict[str, Any] = Field(default_factory=dict)


class HealthResponse(BaseModel):
    """Composite health status.

    ``healthy`` only when every dependency is healthy, ``degraded`` otherwise.
    """

    status: HealthStatus = Field(..., description="Overall status")
    service: str = Field(..., description="Service name")
    version: str = Field(..., description="Service version")
    timestamp: datetime = Field(..., description="When the checks ran")
    dependencies: dict[str, DependencyHealth] = Field(
        default_factory=dict,
        description="Per-dependency status",
    )
    hub: dict[str, Any] | None = Field(
        default=None,
        description="Connection hub counters (informational)",
    )


class LivenessResponse(BaseModel):
    status: HealthStatus = HealthStatus.HEALTHY
    service: str
    timestamp: datetime
