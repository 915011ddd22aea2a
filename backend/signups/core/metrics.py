"""
Metrics instrumentation for observability.
Exposes Prometheus-compatible metrics at /metrics endpoint.
"""

from prometheus_client import Counter, Histogram, generate_latest, CONTENT_TYPE_LATEST
from fastapi import Response

# Membership metrics
membership_changes = Counter(
    'membership_changes_total',
    'Join/drop requests by outcome',
    ['action', 'result']  # applied, noop, conflict, unavailable, not_found
)

membership_latency = Histogram(
    'membership_change_latency_seconds',
    'Join/drop latency including retries',
    ['action'],
    buckets=[0.001, 0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5]
)

membership_retries = Counter(
    'membership_retries_total',
    'Membership change retries',
    ['reason']  # version_conflict, store_unavailable
)

# Cache metrics
cache_operations = Counter(
    'cache_operations_total',
    'Cache operations',
    ['operation', 'result']  # get/set, hit/miss
)

redis_connection_errors = Counter(
    'redis_connection_errors_total',
    'Redis connection errors'
)


def metrics_endpoint() -> Response:
    """Prometheus metrics endpoint."""
    return Response(
        content=generate_latest(),
        media_type=CONTENT_TYPE_LATEST
    )


def record_membership_change(action: str, result: str):
    membership_changes.labels(action=action, result=result).inc()


def record_membership_retry(reason: str):
    """Reason: version_conflict, store_unavailable"""
    membership_retries.labels(reason=reason).inc()


def record_cache_operation(operation: str, hit: bool):
    """Record cache operation."""
    result = "hit" if hit else "miss"
    cache_operations.labels(operation=operation, result=result).inc()
