"""Health check API endpoints.

- /health: Composite dependency status, 200 when healthy and 503 otherwise
- /health/live: Liveness probe, always 200 while the process serves requests
"""

from __future__ import annotations

from fastapi import APIRouter, Response, status

from notification_service.core.schemas.common import HealthStatus
from notification_service.core.settings import get_app_settings
from notification_service.features.health.schemas import HealthResponse, LivenessResponse

# Must be importable at runtime for FastAPI to resolve the Depends() metadata
from notification_service.features.health.service import HealthService, HealthServiceDep  # noqa: TC001

router = APIRouter(prefix="/health", tags=["health"])


@router.get(
    "",
    response_model=HealthResponse,
    responses={503: {"model": HealthResponse, "description": "At least one dependency is unhealthy"}},
    summary="Composite health check",
)
async def health_check(response: Response, service: HealthServiceDep) -> HealthResponse:
    """Check the mail relay and the push client."""
    result = await service.check_health()
    if result.status != HealthStatus.HEALTHY:
        response.status_code = status.HTTP_503_SERVICE_UNAVAILABLE
    return result


@router.get(
    "/live",
    response_model=LivenessResponse,
    summary="Liveness probe",
)
async def liveness_check() -> LivenessResponse:
    return LivenessResponse(
        service=get_app_settings().service_name,
        timestamp=HealthService.now(),
    )
