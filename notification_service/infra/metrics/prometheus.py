"""Prometheus metrics for monitoring with exemplar support."""

from __future__ import annotations

from prometheus_client import CollectorRegistry, Counter, Gauge, Histogram, Info

# Custom registry so tests and the /metrics endpoint see only service metrics
REGISTRY = CollectorRegistry()

METRIC_PREFIX = "notification_service_"

# Covers response times from 1ms to 10s
DEFAULT_LATENCY_BUCKETS = (
    0.001,
    0.005,
    0.01,
    0.025,
    0.05,
    0.1,
    0.25,
    0.5,
    1.0,
    2.5,
    5.0,
    10.0,
)

# HTTP metrics
http_requests_total = Counter(
    f"{METRIC_PREFIX}http_requests_total",
    "Total HTTP requests",
    ["method", "endpoint", "status"],
    registry=REGISTRY,
)

http_request_duration_seconds = Histogram(
    f"{METRIC_PREFIX}http_request_duration_seconds",
    "HTTP request duration in seconds",
    ["method", "endpoint"],
    buckets=DEFAULT_LATENCY_BUCKETS,
    registry=REGISTRY,
)

http_requests_in_progress = Gauge(
    f"{METRIC_PREFIX}http_requests_in_progress",
    "Number of HTTP requests in progress",
    ["method"],
    registry=REGISTRY,
)

# Delivery metrics
notifications_sent_total = Counter(
    f"{METRIC_PREFIX}sent_total",
    "Notification dispatch attempts by channel, outcome and classification",
    ["channel", "status", "classification"],
    registry=REGISTRY,
)

notification_delivery_duration_seconds = Histogram(
    f"{METRIC_PREFIX}delivery_duration_seconds",
    "Time spent handing a notification to its transport",
    ["channel"],
    buckets=DEFAULT_LATENCY_BUCKETS,
    registry=REGISTRY,
)

# Connection hub metrics
websocket_connections_active = Gauge(
    f"{METRIC_PREFIX}websocket_connections_active",
    "Current number of registered hub connections",
    registry=REGISTRY,
)

websocket_rooms_active = Gauge(
    f"{METRIC_PREFIX}websocket_rooms_active",
    "Current number of rooms with at least one member",
    registry=REGISTRY,
)

websocket_peer_deliveries_total = Counter(
    f"{METRIC_PREFIX}websocket_peer_deliveries_total",
    "Per-peer event deliveries by outcome (sent, failed, dropped)",
    ["outcome"],
    registry=REGISTRY,
)

websocket_messages_received_total = Counter(
    f"{METRIC_PREFIX}websocket_messages_received_total",
    "Total number of messages received from peers",
    ["message_type"],
    registry=REGISTRY,
)

websocket_connection_duration_seconds = Histogram(
    f"{METRIC_PREFIX}websocket_connection_duration_seconds",
    "Duration of hub connections in seconds",
    buckets=(1, 5, 10, 30, 60, 120, 300, 600, 1800, 3600),
    registry=REGISTRY,
)

# Error metrics
errors_total = Counter(
    f"{METRIC_PREFIX}errors_total",
    "Errors returned to callers by error code",
    ["code", "status_code"],
    registry=REGISTRY,
)

application_info = Info(
    f"{METRIC_PREFIX}application",
    "Service name, version and environment",
    registry=REGISTRY,
)
