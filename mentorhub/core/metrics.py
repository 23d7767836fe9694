"""Prometheus metrics for HTTP traffic and booking lifecycle events."""

from __future__ import annotations

from collections.abc import Awaitable, Callable
from time import perf_counter

from fastapi import Request, Response
from prometheus_client import CONTENT_TYPE_LATEST, Counter, Gauge, Histogram, generate_latest

LATENCY_BUCKETS = (0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0)

HTTP_REQUESTS_TOTAL = Counter(
    "mentorhub_http_requests_total",
    "HTTP requests served, by route template and status.",
    ["method", "path", "status_code"],
)
HTTP_REQUEST_DURATION_SECONDS = Histogram(
    "mentorhub_http_request_duration_seconds",
    "HTTP request latency by route template.",
    ["method", "path"],
    buckets=LATENCY_BUCKETS,
)
HTTP_REQUESTS_IN_PROGRESS = Gauge(
    "mentorhub_http_requests_in_progress",
    "HTTP requests currently being handled.",
    ["method"],
)

SESSION_TRANSITIONS_TOTAL = Counter(
    "mentorhub_session_transitions_total",
    "Committed mentoring session status transitions.",
    ["from_status", "to_status"],
)
NOTIFICATION_DELIVERY_FAILURES_TOTAL = Counter(
    "mentorhub_notification_delivery_failures_total",
    "Notifications that could not be stored for a triggering event.",
    ["type"],
)
SLOT_RESERVATION_CONFLICTS_TOTAL = Counter(
    "mentorhub_slot_reservation_conflicts_total",
    "Slot reservations rejected because the slot was already booked.",
)


def _route_template(request: Request) -> str:
    """Label by route template so path parameters do not explode cardinality."""
    route = request.scope.get("route")
    return str(getattr(route, "path", None) or request.url.path)


async def instrument_http_request(
    request: Request,
    call_next: Callable[[Request], Awaitable[Response]],
) -> Response:
    method = request.method.upper()
    in_progress = HTTP_REQUESTS_IN_PROGRESS.labels(method=method)
    in_progress.inc()
    started_at = perf_counter()
    status_code = 500
    try:
        response = await call_next(request)
        status_code = response.status_code
        return response
    finally:
        in_progress.dec()
        path = _route_template(request)
        HTTP_REQUESTS_TOTAL.labels(method=method, path=path, status_code=str(status_code)).inc()
        HTTP_REQUEST_DURATION_SECONDS.labels(method=method, path=path).observe(perf_counter() - started_at)


def build_metrics_response() -> Response:
    return Response(content=generate_latest(), media_type=CONTENT_TYPE_LATEST)
