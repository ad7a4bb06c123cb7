"""
Prometheus metrics middleware for HTTP request tracking.

Records duration and status code of every request through the
prometheus_metrics module.
"""

import time
from typing import Callable

from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware

from ..core.ulid_helper import is_valid_ulid
from ..monitoring.prometheus_metrics import prometheus_metrics

METRICS_PATH = "/metrics"


def normalize_path(raw_path: str) -> str:
    """Replace ULID segments with ``:id`` to keep label cardinality bounded."""
    return "/".join(":id" if is_valid_ulid(segment) else segment for segment in raw_path.split("/"))


class PrometheusMiddleware(BaseHTTPMiddleware):
    """Middleware to collect Prometheus metrics for HTTP requests."""

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        # Skip metrics collection for the metrics endpoint itself
        if request.url.path == METRICS_PATH:
            return await call_next(request)

        method = request.method
        path = normalize_path(request.url.path)
        start_time = time.time()

        try:
            response = await call_next(request)
        except Exception:
            prometheus_metrics.record_http_request(
                method=method, endpoint=path, duration=time.time() - start_time, status_code=500
            )
            raise

        prometheus_metrics.record_http_request(
            method=method,
            endpoint=path,
            duration=time.time() - start_time,
            status_code=response.status_code,
        )
        return response
