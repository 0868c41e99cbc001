"""
Request logging and metrics middleware.

Assigns every request a correlation ID (taken from X-Correlation-ID or
generated), binds it into the structlog context for the duration of the
request, records Prometheus HTTP metrics and echoes the ID back in the
response headers, including on unexpected 500 responses.
"""

import time
import uuid
import structlog
from typing import Iterable, Optional

from fastapi import Request, status
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.routing import Match

from shared.logging import bind_context, clear_context
from shared.metrics import ResourceMetrics

logger = structlog.get_logger(__name__)

CORRELATION_ID_HEADER = "X-Correlation-ID"

UNMATCHED_ENDPOINT = "unmatched"


def endpoint_label(request: Request) -> str:
    """
    Resolve the route template serving a request.

    Entity ids never reach metric labels: ``/api/category-trees/7`` is
    reported as ``/api/category-trees/{entity_id}`` and paths no route
    matches share a single label.
    """
    partial = None
    for route in request.app.routes:
        match, _ = route.matches(request.scope)
        if match == Match.FULL:
            return route.path
        if match == Match.PARTIAL and partial is None:
            partial = route.path
    return partial or UNMATCHED_ENDPOINT


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """Middleware for request logging, metrics and correlation IDs."""

    def __init__(
        self,
        app,
        metrics: Optional[ResourceMetrics] = None,
        skip_paths: Iterable[str] = ("/health", "/metrics"),
    ):
        super().__init__(app)
        self.metrics = metrics
        self.skip_paths = {p.rstrip("/") or "/" for p in skip_paths}

    def is_quiet(self, path: str) -> bool:
        """Whether the path is one of the skip paths or lies beneath one."""
        path = path.rstrip("/") or "/"
        return any(path == p or path.startswith(p + "/") for p in self.skip_paths)

    async def dispatch(self, request: Request, call_next):
        """Process request and log details."""
        correlation_id = request.headers.get(CORRELATION_ID_HEADER) or str(uuid.uuid4())

        method = request.method
        path = request.url.path
        quiet = self.is_quiet(path)
        endpoint = endpoint_label(request)

        clear_context()
        bind_context(correlation_id=correlation_id)

        if self.metrics is not None:
            self.metrics.http_requests_in_progress.labels(method=method, endpoint=endpoint).inc()

        start_time = time.time()

        if not quiet:
            logger.info(
                "request_started",
                method=method,
                path=path,
                client_ip=request.client.host if request.client else "unknown"
            )

        try:
            try:
                response = await call_next(request)
            except Exception as e:
                logger.error(
                    "request_failed",
                    method=method,
                    path=path,
                    error=str(e),
                    duration=f"{time.time() - start_time:.3f}s",
                    exc_info=True
                )
                response = JSONResponse(
                    status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                    content={"detail": "Internal server error"}
                )

            duration = time.time() - start_time

            if self.metrics is not None:
                self.metrics.http_requests_total.labels(
                    method=method,
                    endpoint=endpoint,
                    status=response.status_code
                ).inc()
                self.metrics.http_request_duration_seconds.labels(
                    method=method,
                    endpoint=endpoint
                ).observe(duration)

            if not quiet:
                logger.info(
                    "request_completed",
                    method=method,
                    path=path,
                    status_code=response.status_code,
                    duration=f"{duration:.3f}s"
                )

            response.headers[CORRELATION_ID_HEADER] = correlation_id
            return response

        finally:
            if self.metrics is not None:
                self.metrics.http_requests_in_progress.labels(method=method, endpoint=endpoint).dec()
            clear_context()
