"""
Metrics instrumentation for observability.
Exposes Prometheus-compatible metrics at /metrics endpoint.
"""

from fastapi import Response
from prometheus_client import CONTENT_TYPE_LATEST, Counter, Histogram, generate_latest

# Auth metrics
login_attempts = Counter(
    'login_attempts_total',
    'Total login attempts',
    ['result']  # success, invalid, locked
)

refresh_rotations = Counter(
    'refresh_rotations_total',
    'Refresh token rotations',
    ['result']  # rotated, reuse_detected, invalid
)

# Rate limiting
rate_limited_requests = Counter(
    'rate_limited_requests_total',
    'Requests rejected by the rate limiter',
    ['kind']  # general, write, auth
)

# Aggregation job
aggregation_runs = Counter(
    'aggregation_runs_total',
    'Event aggregation runs',
    ['status']  # completed, failed
)

aggregation_duration = Histogram(
    'aggregation_duration_seconds',
    'Event aggregation run duration',
    buckets=[1, 5, 10, 30, 60, 120, 300, 600]
)

aggregated_events = Counter(
    'aggregated_events_total',
    'Events upserted by the aggregation job',
    ['source', 'result']  # upserted, skipped, error
)

upstream_requests = Counter(
    'upstream_requests_total',
    'Requests to third-party APIs',
    ['provider', 'result']  # ok, error
)

# Cache metrics
cache_operations = Counter(
    'cache_operations_total',
    'Cache operations',
    ['operation', 'result']  # get/set, hit/miss
)


def metrics_endpoint() -> Response:
    return Response(
        content=generate_latest(),
        media_type=CONTENT_TYPE_LATEST
    )


def record_login(result: str):
    """Record login attempt. Result: success, invalid, locked"""
    login_attempts.labels(result=result).inc()


def record_refresh(result: str):
    refresh_rotations.labels(result=result).inc()


def record_rate_limited(kind: str):
    rate_limited_requests.labels(kind=kind).inc()


def record_aggregated_event(source: str, result: str):
    aggregated_events.labels(source=source, result=result).inc()


def record_upstream(provider: str, ok: bool):
    upstream_requests.labels(provider=provider, result="ok" if ok else "error").inc()


def record_cache_operation(operation: str, hit: bool):
    result = "hit" if hit else "miss"
    cache_operations.labels(operation=operation, result=result).inc()
