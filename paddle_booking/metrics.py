"""
Prometheus metrics for backend calls and booking lifecycle events.

Metrics are exposed via the /metrics endpoint for scraping by Prometheus.

Example:
    >>> from paddle_booking.metrics import status_transitions
    >>> status_transitions.labels(
    ...     entity="reservation", from_status="pending", to_status="confirmed"
    ... ).inc()
"""

from __future__ import annotations

from prometheus_client import Counter, Histogram

# =============================================================================
# Backend Metrics
# =============================================================================

backend_requests = Counter(
    "paddle_backend_requests_total",
    "Total requests made to the backend-as-a-service",
    ["resource", "method", "status_code"],
)
"""
Counter for backend requests.

Labels:
    resource: Table, RPC or auth path (e.g. "reservations", "rpc/assign_delivery_job")
    method: HTTP method
    status_code: HTTP status code, or "error" for transport failures
"""

backend_latency = Histogram(
    "paddle_backend_latency_seconds",
    "Backend request latency in seconds",
    ["resource"],
    buckets=(0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0, float("inf")),
)

# =============================================================================
# Lifecycle Metrics
# =============================================================================

status_transitions = Counter(
    "paddle_status_transitions_total",
    "Successful status transitions",
    ["entity", "from_status", "to_status"],
)
"""
Counter for applied status transitions.

Labels:
    entity: reservation or delivery_job
    from_status: Status before the write
    to_status: Status after the write
"""

rejected_transitions = Counter(
    "paddle_rejected_transitions_total",
    "Status transitions rejected by the lifecycle rules or a concurrent writer",
    ["entity", "reason"],
)

job_assignments = Counter(
    "paddle_job_assignments_total",
    "Delivery job acceptance attempts",
    ["outcome"],
)
"""Counter for job acceptance attempts (outcome: assigned, or the rejection code)."""
