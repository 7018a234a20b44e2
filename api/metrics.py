"""Prometheus metrics for monitoring and observability."""

from __future__ import annotations

import re
import time
from collections.abc import Awaitable, Callable

from fastapi import APIRouter, Request, Response
from prometheus_client import (
    CONTENT_TYPE_LATEST,
    Counter,
    Gauge,
    Histogram,
    generate_latest,
)
from starlette.middleware.base import BaseHTTPMiddleware

# Request metrics
REQUEST_COUNT = Counter(
    "seo_audit_http_requests_total",
    "Total HTTP requests",
    ["method", "endpoint", "status_code"],
)

REQUEST_LATENCY = Histogram(
    "seo_audit_http_request_duration_seconds",
    "HTTP request latency in seconds",
    ["method", "endpoint"],
    buckets=[0.01, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0, 30.0, 60.0],
)

REQUEST_IN_PROGRESS = Gauge(
    "seo_audit_http_requests_in_progress",
    "HTTP requests currently being processed",
    ["method", "endpoint"],
)

# Error metrics
ERROR_COUNT = Counter(
    "seo_audit_errors_total",
    "Total application errors",
    ["error_type", "endpoint"],
)

# Audit metrics
AUDITS_TOTAL = Counter(
    "seo_audit_audits_total",
    "Total audits by final status",
    ["status"],
)

AUDIT_STEPS_TOTAL = Counter(
    "seo_audit_steps_total",
    "Total audit steps by kind and status",
    ["step", "status"],
)

AUDIT_STEP_LATENCY = Histogram(
    "seo_audit_step_duration_seconds",
    "Audit step latency in seconds",
    ["step"],
    buckets=[0.1, 0.5, 1.0, 2.5, 5.0, 10.0, 20.0, 30.0, 60.0],
)

router = APIRouter(tags=["Metrics"])


def get_metrics() -> bytes:
    """Generate Prometheus metrics output."""
    metrics: bytes = generate_latest()
    return metrics


@router.get("/metrics", include_in_schema=False)
async def metrics_endpoint() -> Response:
    """Prometheus scrape endpoint."""
    return Response(content=get_metrics(), media_type=CONTENT_TYPE_LATEST)


class MetricsMiddleware(BaseHTTPMiddleware):
    """Middleware to collect request metrics."""

    # Paths to exclude from metrics
    EXCLUDE_PATHS = {"/metrics", "/api/health", "/api/ready", "/favicon.ico"}

    async def dispatch(
        self,
        request: Request,
        call_next: Callable[[Request], Awaitable[Response]],
    ) -> Response:
        if request.url.path in self.EXCLUDE_PATHS:
            return await call_next(request)

        method = request.method
        endpoint = self._normalize_path(request.url.path)

        REQUEST_IN_PROGRESS.labels(method=method, endpoint=endpoint).inc()
        start_time = time.perf_counter()

        try:
            response = await call_next(request)
            REQUEST_COUNT.labels(
                method=method,
                endpoint=endpoint,
                status_code=str(response.status_code),
            ).inc()
            REQUEST_LATENCY.labels(method=method, endpoint=endpoint).observe(
                time.perf_counter() - start_time
            )
            return response

        except Exception as e:
            ERROR_COUNT.labels(error_type=type(e).__name__, endpoint=endpoint).inc()
            raise

        finally:
            REQUEST_IN_PROGRESS.labels(method=method, endpoint=endpoint).dec()

    def _normalize_path(self, path: str) -> str:
        """Collapse numeric path segments so label cardinality stays bounded."""
        return re.sub(r"/\d+(/|$)", r"/{id}\1", path)


def record_audit(status: str) -> None:
    """Record a finished audit (completed, degraded, cancelled, error)."""
    AUDITS_TOTAL.labels(status=status).inc()


def record_audit_step(step: str, status: str, duration_seconds: float) -> None:
    """Record a settled audit step."""
    AUDIT_STEPS_TOTAL.labels(step=step, status=status).inc()
    AUDIT_STEP_LATENCY.labels(step=step).observe(max(duration_seconds, 0.0))


def record_error(error_type: str, endpoint: str) -> None:
    """Record a handled application error."""
    ERROR_COUNT.labels(error_type=error_type, endpoint=endpoint).inc()
