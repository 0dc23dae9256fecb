"""Prometheus middleware for HTTP request and error counters."""

from __future__ import annotations

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request

from ..routes_metrics import http_errors_total, http_requests_total


class PrometheusMiddleware(BaseHTTPMiddleware):
    """Count requests by route template and error responses by status.

    Route templates (``/api/orders/{order_id}``) keep label cardinality
    bounded; raw paths would create one series per order.
    """

    async def dispatch(self, request: Request, call_next):
        response = await call_next(request)
        route = request.scope.get("route")
        path = route.path if route else request.url.path
        status = str(response.status_code)
        http_requests_total.labels(path=path, method=request.method, status=status).inc()
        if response.status_code >= 400:
            http_errors_total.labels(status=status).inc()
        return response
