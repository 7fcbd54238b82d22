"""Prometheus metrics middleware for FastAPI.

Exposes HTTP request metrics and a /metrics endpoint
for Prometheus scraping.
"""

import time

from prometheus_client import Counter, Histogram, make_asgi_app
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

# =============================================================================
# HTTP METRICS
# =============================================================================

HTTP_REQUESTS_TOTAL = Counter(
    "datavault_http_requests_total",
    "Total HTTP requests",
    ["method", "path", "status"],
)

HTTP_REQUEST_DURATION = Histogram(
    "datavault_http_request_duration_seconds",
    "HTTP request duration in seconds",
    ["method", "path"],
    buckets=[0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0],
)


# =============================================================================
# MIDDLEWARE
# =============================================================================


class PrometheusMiddleware(BaseHTTPMiddleware):
    """Records HTTP request metrics for Prometheus.

    Requests are labelled by route template rather than raw path so
    record ids do not create one series per item.
    """

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        """Process request and record metrics.

        Args:
            request: Incoming HTTP request.
            call_next: Next middleware/handler in the chain.

        Returns:
            HTTP response from downstream handler.
        """
        if request.url.path.startswith("/metrics"):
            return await call_next(request)

        start = time.perf_counter()
        response = await call_next(request)
        duration = time.perf_counter() - start

        path = _route_template(request)
        HTTP_REQUESTS_TOTAL.labels(
            method=request.method,
            path=path,
            status=str(response.status_code),
        ).inc()
        HTTP_REQUEST_DURATION.labels(method=request.method, path=path).observe(duration)

        return response


def _route_template(request: Request) -> str:
    """Matched route path (``/api/v1/data/{item_id}``), or the raw path."""
    route = request.scope.get("route")
    return getattr(route, "path", request.url.path)


# =============================================================================
# MOUNT HELPER
# =============================================================================


def mount_metrics(app) -> None:
    """Mount the /metrics Prometheus endpoint on a FastAPI app.

    The mounted ASGI sub-app bypasses FastAPI's dependency chain, so no
    JWT authentication is required to scrape it.

    Args:
        app: FastAPI application instance.
    """
    metrics_app = make_asgi_app()
    app.mount("/metrics", metrics_app)
