"""Custom middleware for request tracking and logging."""

import time
import uuid
import logging
from typing import Callable, Optional
from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.types import ASGIApp
import structlog

from .config import settings
from .dependencies import SESSION_HEADER
from .observability import metrics_collector


logger = logging.getLogger(__name__)


class RequestIDMiddleware(BaseHTTPMiddleware):
    """
    Middleware that adds a unique request ID to each request.

    The request ID is either extracted from the X-Request-ID header
    or generated if not present. It is bound into the structlog context
    together with the booking session ID, so every log line written while
    handling the request carries both.
    """

    def __init__(self, app: ASGIApp, header_name: str = "X-Request-ID"):
        super().__init__(app)
        self.header_name = header_name

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        """Process request and add request ID."""
        request_id = request.headers.get(self.header_name)
        if not request_id:
            request_id = str(uuid.uuid4())

        request.state.request_id = request_id

        structlog.contextvars.clear_contextvars()
        structlog.contextvars.bind_contextvars(
            request_id=request_id,
            booking_session=request.headers.get(SESSION_HEADER),
        )

        try:
            response = await call_next(request)
        finally:
            structlog.contextvars.clear_contextvars()

        response.headers[self.header_name] = request_id
        return response


class LoggingMiddleware(BaseHTTPMiddleware):
    """
    Middleware that logs HTTP requests and responses.

    Logs request and response information including timing, status codes
    and correlation IDs, and records the request metrics.
    """

    def __init__(
        self,
        app: ASGIApp,
        log_request_body: bool = False,
        skip_paths: Optional[list] = None,
    ):
        super().__init__(app)
        self.log_request_body = log_request_body
        self.skip_paths = skip_paths or ["/health", "/metrics", "/favicon.ico"]

    def _should_log(self, path: str) -> bool:
        """Check if request should be logged."""
        return path not in self.skip_paths

    def _get_client_ip(self, request: Request) -> str:
        """Extract client IP address from request."""
        forwarded_for = request.headers.get("X-Forwarded-For")
        if forwarded_for:
            return forwarded_for.split(",")[0].strip()

        if request.client:
            return request.client.host

        return "unknown"

    def _endpoint_label(self, request: Request) -> str:
        # Route templates keep the metric label set bounded
        route = request.scope.get("route")
        return getattr(route, "path", None) or "unmatched"

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        """Process request and log information."""
        if not self._should_log(request.url.path):
            return await call_next(request)

        start_time = time.perf_counter()

        log_data = {
            "request_id": getattr(request.state, "request_id", "unknown"),
            "booking_session": request.headers.get(SESSION_HEADER),
            "method": request.method,
            "path": request.url.path,
            "client_ip": self._get_client_ip(request),
            "user_agent": request.headers.get("User-Agent", "unknown"),
        }

        if self.log_request_body and request.method in ["POST", "PUT", "PATCH"]:
            body = await request.body()
            if body:
                log_data["request_body"] = body.decode("utf-8", errors="replace")[:1000]

        logger.info("HTTP request started", extra=log_data)

        response = await call_next(request)

        duration = time.perf_counter() - start_time
        metrics_collector.record_request(
            request.method, self._endpoint_label(request), response.status_code, duration
        )

        log_data.update({
            "status_code": response.status_code,
            "duration_ms": round(duration * 1000, 2),
        })

        if response.status_code >= 500:
            logger.error("HTTP request completed with server error", extra=log_data)
        elif response.status_code >= 400:
            logger.warning("HTTP request completed with client error", extra=log_data)
        else:
            logger.info("HTTP request completed successfully", extra=log_data)

        return response


def setup_middleware(app, enable_logging: bool = True) -> None:
    """
    Setup all middleware on the FastAPI app.

    Args:
        app: FastAPI application instance
        enable_logging: Whether to enable request logging middleware
    """
    # Last added runs first
    if enable_logging:
        app.add_middleware(
            LoggingMiddleware,
            log_request_body=settings.debug and not settings.is_production,
        )

    app.add_middleware(RequestIDMiddleware)
