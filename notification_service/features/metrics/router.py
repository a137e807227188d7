"""Prometheus metrics endpoint.

Endpoints:
    GET /metrics - Prometheus scrape endpoint

Metrics Exposed:
    Delivery Metrics:
        - notification_service_sent_total - Attempts by channel, status, classification
        - notification_service_delivery_duration_seconds - Attempt latency by channel

    Connection Hub Metrics:
        - notification_service_websocket_connections_active - Open connections
        - notification_service_websocket_rooms_active - Non-empty rooms
        - notification_service_websocket_peer_deliveries_total - Per-peer enqueue outcomes

    HTTP Request Metrics:
        - notification_service_http_requests_total - Requests by method, path, status
        - notification_service_http_request_duration_seconds - Request latency histogram
"""

from __future__ import annotations

from fastapi import APIRouter, Response
from prometheus_client import CONTENT_TYPE_LATEST, generate_latest

from notification_service.infra.metrics.prometheus import REGISTRY

router = APIRouter(tags=["observability"])


@router.get("/metrics", include_in_schema=False)
async def metrics() -> Response:
    """Expose the service registry in Prometheus text format."""
    return Response(
        content=generate_latest(REGISTRY),
        media_type=CONTENT_TYPE_LATEST,
        headers={"Cache-Control": "no-cache, no-store, must-revalidate"},
    )
