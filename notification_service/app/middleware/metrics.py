"""Metrics middleware for HTTP request instrumentation with trace correlation."""

from __future__ import annotations

import time
from typing import TYPE_CHECKING

from opentelemetry import trace
from starlette.middleware.base import BaseHTTPMiddleware

from notification_service.infra.metrics.prometheus import (
    http_request_duration_seconds,
    http_requests_in_progress,
    http_requests_total,
)

if TYPE_CHECKING:
    from collections.abc import Callable

    from fastapi import Request, Response


class MetricsMiddleware(BaseHTTPMiddleware):
    """Collect HTTP metrics with trace correlation via exemplars.

    Uses route path templates for low cardinality labels and adds an
    X-Process-Time header with the request duration.
    """

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        method = request.method
        start_time = time.perf_counter()
        status_code = 500
        http_requests_in_progress.labels(method=method).inc()
        try:
            response = await call_next(request)
            status_code = response.status_code
            response.headers["X-Process-Time"] = f"{time.perf_counter() - start_time:.6f}"
            return response  # type: ignore[no-any-return]
        finally:
            duration = time.perf_counter() - start_time
            http_requests_in_progress.labels(method=method).dec()

            route = request.scope.get("route")
            endpoint = getattr(route, "path", None) or "unmatched"

            exemplar = None
            span_context = trace.get_current_span().get_span_context()
            if span_context.is_valid:
                exemplar = {"trace_id": format(span_context.trace_id, "032x")}

            http_request_duration_seconds.labels(method=method, endpoint=endpoint).observe(
                duration, exemplar=exemplar
            )
            http_requests_total.labels(
                method=method, endpoint=endpoint, status=str(status_code)
            ).inc(exemplar=exemplar)
