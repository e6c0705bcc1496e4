"""Prometheus metrics for the API and the retention worker."""

from __future__ import annotations

import time
from collections.abc import Awaitable, Callable

from fastapi import APIRouter, Request, Response
from prometheus_client import CONTENT_TYPE_LATEST, Counter, Histogram, generate_latest
from starlette.middleware.base import BaseHTTPMiddleware

REQUEST_LATENCY_SECONDS = Histogram(
    "http_request_latency_seconds",
    "Latency of HTTP requests in seconds.",
    labelnames=("method", "path"),
)
REQUEST_COUNTER = Counter(
    "http_requests_total",
    "Total number of HTTP requests processed.",
    labelnames=("method", "path", "status"),
)
REQUEST_ERROR_COUNTER = Counter(
    "http_request_errors_total",
    "Total number of HTTP requests that resulted in server errors.",
    labelnames=("method", "path", "status"),
)
REGISTRATION_COUNTER = Counter(
    "shareholder_registrations_total",
    "Public registration submissions by company and outcome.",
    labelnames=("company", "outcome"),
)
NOTIFICATION_COUNTER = Counter(
    "shareholder_notifications_total",
    "Emails handed to the transport by kind and outcome.",
    labelnames=("kind", "outcome"),
)
DATA_RETENTION_RECORD_COUNTER = Counter(
    "data_retention_shareholder_records_deleted_total",
    "Count of shareholder records deleted by the retention job.",
)


class PrometheusMiddleware(BaseHTTPMiddleware):
    """Middleware that records request metrics for Prometheus scraping."""

    async def dispatch(
        self, request: Request, call_next: Callable[[Request], Awaitable[Response]]
    ) -> Response:  # type: ignore[override]
        method = request.method
        start_time = time.perf_counter()
        status = "500"

        try:
            response = await call_next(request)
            status = str(response.status_code)
            if response.status_code >= 500:
                REQUEST_ERROR_COUNTER.labels(
                    method=method, path=_route_template(request), status=status
                ).inc()
            return response
        except Exception:
            REQUEST_ERROR_COUNTER.labels(method=method, path=_route_template(request), status="500").inc()
            raise
        finally:
            latency = time.perf_counter() - start_time
            path = _route_template(request)
            REQUEST_LATENCY_SECONDS.labels(method=method, path=path).observe(latency)
            REQUEST_COUNTER.labels(method=method, path=path, status=status).inc()


def _route_template(request: Request) -> str:
    # Label by route template so company names and record ids do not explode cardinality.
    # Included routes may report their path without the router prefix.
    route = request.scope.get("route")
    template = getattr(route, "path", None)
    if not template:
        return request.url.path
    concrete = [segment for segment in request.url.path.split("/") if segment]
    relative = [segment for segment in template.split("/") if segment]
    prefix = concrete[: max(len(concrete) - len(relative), 0)]
    return "/" + "/".join(prefix + relative)


metrics_router = APIRouter(tags=["observability"])


@metrics_router.get("/metrics", include_in_schema=False)
def metrics_endpoint() -> Response:
    """Expose Prometheus metrics for scraping."""
    payload = generate_latest()
    return Response(content=payload, media_type=CONTENT_TYPE_LATEST)


def record_registration(company: str, outcome: str) -> None:
    REGISTRATION_COUNTER.labels(company=company, outcome=outcome).inc()


__all__ = [
    "DATA_RETENTION_RECORD_COUNTER",
    "NOTIFICATION_COUNTER",
    "PrometheusMiddleware",
    "REGISTRATION_COUNTER",
    "REQUEST_COUNTER",
    "REQUEST_ERROR_COUNTER",
    "REQUEST_LATENCY_SECONDS",
    "metrics_endpoint",
    "metrics_router",
    "record_registration",
]
