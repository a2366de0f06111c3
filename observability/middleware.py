"""Per-request correlation ids, RED metrics and access logging."""

import re
import time
from typing import Callable

from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.types import ASGIApp

from .logging import correlation_id_context, get_logger
from .metrics import (
    http_request_duration_seconds,
    http_requests_in_progress,
    http_requests_total,
)

logger = get_logger(__name__)

REQUEST_ID_HEADERS = ("X-Request-ID", "X-Correlation-ID")
QUIET_PREFIXES = ("/api/health", "/metrics")
# An uncached "all" sweep makes ~25 sequential provider calls.
SLOW_REQUEST_SECONDS = 10.0


def _endpoint_label(path: str) -> str:
    """Collapse numeric segments to keep metric cardinality bounded."""
    return re.sub(r"/\d+", "/{id}", path)


class ObservabilityMiddleware(BaseHTTPMiddleware):

    def __init__(self, app: ASGIApp, enable_request_logging: bool = True):
        super().__init__(app)
        self.enable_request_logging = enable_request_logging

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        incoming = next((request.headers[h] for h in REQUEST_ID_HEADERS if request.headers.get(h)), None)
        endpoint = _endpoint_label(request.url.path)
        method = request.method
        log_it = self.enable_request_logging and not request.url.path.startswith(QUIET_PREFIXES)

        with correlation_id_context(incoming) as request_id:
            request.state.correlation_id = request_id
            in_progress = http_requests_in_progress.labels(method=method, endpoint=endpoint)
            in_progress.inc()
            started = time.monotonic()
            status = 500
            try:
                response = await call_next(request)
                status = response.status_code
                response.headers["X-Request-ID"] = request_id
                return response
            except Exception:
                logger.exception(f"[HTTP] {method} {endpoint} raised")
                raise
            finally:
                elapsed = time.monotonic() - started
                in_progress.dec()
                http_requests_total.labels(method=method, endpoint=endpoint, status=status).inc()
                http_request_duration_seconds.labels(method=method, endpoint=endpoint).observe(elapsed)
                if log_it:
                    self._log_access(request, endpoint, status, elapsed)

    def _log_access(self, request: Request, endpoint: str, status: int, elapsed: float) -> None:
        fields = {
            "event": "http_request",
            "method": request.method,
            "path": endpoint,
            "query": request.url.query or None,
            "status_code": status,
            "duration_seconds": round(elapsed, 3),
            "client_host": request.client.host if request.client else None,
        }
        if status >= 500:
            logger.error(f"[HTTP] {request.method} {endpoint} -> {status}", extra=fields)
        elif elapsed > SLOW_REQUEST_SECONDS:
            logger.warning(f"[HTTP] Slow request {request.method} {endpoint} ({elapsed:.1f}s)", extra=fields)
        else:
            logger.info(f"[HTTP] {request.method} {endpoint} -> {status}", extra=fields)
