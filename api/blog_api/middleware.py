"""HTTP middleware: request logging and security headers."""

from __future__ import annotations

import logging
import os
import time
from typing import Callable

from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware

logger = logging.getLogger(__name__)

# Paths not worth a log line per request
EXCLUDED_PATHS = {
    "/health",
    "/docs",
    "/openapi.json",
    "/redoc",
}


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """
    Log one line per API call with method, path, status and duration.

    Client errors are logged at INFO with their error class, server errors at
    WARNING. Health checks and docs are skipped.
    """

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        path = request.url.path
        started = time.perf_counter()

        response = await call_next(request)

        if self._should_log_request(request, path):
            elapsed_ms = (time.perf_counter() - started) * 1000
            self._log_api_call(request, response, elapsed_ms)

        return response

    def _should_log_request(self, request: Request, path: str) -> bool:
        # Skip OPTIONS requests (CORS preflight)
        if request.method == "OPTIONS":
            return False
        return path not in EXCLUDED_PATHS

    def _log_api_call(self, request: Request, response: Response, elapsed_ms: float) -> None:
        status_code = response.status_code
        line = f"{request.method} {request.url.path} -> {status_code} ({elapsed_ms:.1f} ms)"
        if status_code >= 500:
            logger.warning(f"{line} [{self._classify_error(status_code)}]")
        elif status_code >= 400:
            logger.info(f"{line} [{self._classify_error(status_code)}]")
        else:
            logger.debug(line)

    def _classify_error(self, status_code: int) -> str:
        """Classify an HTTP error status code into an error type."""
        if status_code == 400:
            return "bad_request"
        elif status_code == 401:
            return "unauthorized"
        elif status_code == 403:
            return "forbidden"
        elif status_code == 404:
            return "not_found"
        elif status_code == 409:
            return "conflict"
        elif status_code == 503:
            return "unavailable"
        elif status_code >= 500:
            return "server_error"
        else:
            return f"http_{status_code}"


class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    """Add security headers to all responses."""

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        response = await call_next(request)

        response.headers["X-Content-Type-Options"] = "nosniff"
        response.headers["X-Frame-Options"] = "DENY"
        response.headers["Referrer-Policy"] = "strict-origin-when-cross-origin"

        # HSTS only where HTTPS is guaranteed
        environment = os.getenv("ENVIRONMENT", "development")
        if environment == "production" or request.url.scheme == "https":
            response.headers["Strict-Transport-Security"] = "max-age=31536000; includeSubDomains"

        # JSON API: nothing to load, nothing to frame
        response.headers["Content-Security-Policy"] = "default-src 'none'; frame-ancestors 'none'"

        return response
