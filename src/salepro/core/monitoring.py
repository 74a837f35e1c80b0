"""Prometheus metrics and Sentry integration.

Provides:
- MetricsMiddleware: ASGI middleware for HTTP request metrics
- track_store_call(): Context manager for record store call metrics
- init_sentry(): Initialize Sentry when a DSN is configured
- get_metrics_response(): Prometheus exposition for the /metrics route
"""

from __future__ import annotations

import time
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

import structlog
from prometheus_client import REGISTRY, Counter, Histogram, generate_latest
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

logger = structlog.get_logger(__name__)

# ── HTTP Metrics ─────────────────────────────────────────────────────────────

http_requests_total = Counter(
    "http_requests_total",
    "Total HTTP requests",
    ["method", "endpoint", "status_code"],
)

http_request_duration_seconds = Histogram(
    "http_request_duration_seconds",
    "HTTP request duration in seconds",
    ["method", "endpoint"],
    buckets=(0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0),
)

# ── Record Store Metrics ─────────────────────────────────────────────────────

record_store_requests_total = Counter(
    "record_store_requests_total",
    "Total calls to the hosted record store",
    ["collection", "operation", "status"],
)

record_store_request_duration_seconds = Histogram(
    "record_store_request_duration_seconds",
    "Record store call duration in seconds (including retries)",
    ["collection", "operation"],
    buckets=(0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0, 30.0),
)


# ── Metrics Middleware ───────────────────────────────────────────────────────


class MetricsMiddleware(BaseHTTPMiddleware):
    """ASGI middleware that records Prometheus metrics for every HTTP request.

    Skips the /metrics endpoint itself to avoid self-referential counting.
    """

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        if request.url.path == "/metrics":
            return await call_next(request)

        start_time = time.perf_counter()
        response = await call_next(request)
        duration = time.perf_counter() - start_time

        # Route path pattern (set once routing matched) keeps label cardinality low
        route = request.scope.get("route")
        endpoint = getattr(route, "path", request.url.path)

        http_requests_total.labels(
            method=request.method,
            endpoint=endpoint,
            status_code=str(response.status_code),
        ).inc()

        http_request_duration_seconds.labels(
            method=request.method,
            endpoint=endpoint,
        ).observe(duration)

        return response


# ── Record Store Metrics Helper ──────────────────────────────────────────────


@asynccontextmanager
async def track_store_call(collection: str, operation: str) -> AsyncGenerator[None, None]:
    """Context manager that records count and duration of a record store call.

    Usage:
        async with track_store_call("deal_c", "fetch"):
            envelope = await self._send(...)
    """
    start_time = time.perf_counter()
    status = "success"

    try:
        yield
    except Exception:
        status = "error"
        raise
    finally:
        record_store_requests_total.labels(
            collection=collection,
            operation=operation,
            status=status,
        ).inc()
        record_store_request_duration_seconds.labels(
            collection=collection,
            operation=operation,
        ).observe(time.perf_counter() - start_time)


# ── Sentry Integration ───────────────────────────────────────────────────────


def init_sentry(dsn: str, environment: str) -> None:
    """Initialize Sentry SDK.

    Args:
        dsn: Sentry DSN string.
        environment: Deployment environment (development, staging, production).
    """
    import sentry_sdk
    from sentry_sdk.integrations.fastapi import FastApiIntegration
    from sentry_sdk.integrations.starlette import StarletteIntegration

    traces_sample_rate = 0.1 if environment == "production" else 1.0

    sentry_sdk.init(
        dsn=dsn,
        environment=environment,
        traces_sample_rate=traces_sample_rate,
        integrations=[
            StarletteIntegration(),
            FastApiIntegration(),
        ],
    )
    logger.info("sentry.initialized", environment=environment)


# ── Metrics Endpoint ─────────────────────────────────────────────────────────


def get_metrics_response() -> Response:
    """Generate Prometheus exposition format response."""
    return Response(
        content=generate_latest(REGISTRY),
        media_type="text/plain; version=0.0.4; charset=utf-8",
    )
