"""
Metrics instrumentation for observability.
Exposes Prometheus-compatible metrics at /metrics endpoint.
"""

from prometheus_client import Counter, Histogram, generate_latest, CONTENT_TYPE_LATEST
from fastapi import Response

# Registration metrics
registration_attempts = Counter(
    'registration_attempts_total',
    'Total event registration attempts',
    ['outcome']  # success, rejected, conflict
)

registration_latency = Histogram(
    'registration_latency_seconds',
    'Event registration latency',
    buckets=[0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0]
)

# Merchandise metrics
checkout_attempts = Counter(
    'checkout_attempts_total',
    'Merchandise checkout attempts',
    ['outcome']  # success, rejected, stock_conflict
)

# Cache metrics
cache_operations = Counter(
    'cache_operations_total',
    'Cache operations',
    ['operation', 'result']  # get/set, hit/miss
)

cache_invalidations = Counter(
    'cache_invalidations_total',
    'Cache invalidations by mutation type',
    ['mutation']
)

# Side channels
notification_failures = Counter(
    'notification_failures_total',
    'Best-effort notifications that raised',
    ['kind']
)


def metrics_endpoint() -> Response:
    """Prometheus metrics endpoint."""
    return Response(
        content=generate_latest(),
        media_type=CONTENT_TYPE_LATEST
    )


def record_registration_attempt(outcome: str):
    """Record registration attempt. Outcome: success, rejected, conflict"""
    registration_attempts.labels(outcome=outcome).inc()


def record_checkout_attempt(outcome: str):
    checkout_attempts.labels(outcome=outcome).inc()


def record_cache_operation(operation: str, hit: bool):
    """Record cache operation."""
    result = "hit" if hit else "miss"
    cache_operations.labels(operation=operation, result=result).inc()


def record_cache_invalidation(mutation: str):
    cache_invalidations.labels(mutation=mutation).inc()


def record_notification_failure(kind: str):
    notification_failures.labels(kind=kind).inc()
