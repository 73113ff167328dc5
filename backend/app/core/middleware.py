"""
HTTP middleware: request logging and response security headers.
"""

import time
from typing import Callable

from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware

from app.core.logging import get_correlation_id, log_request, log_response, set_correlation_id

CORRELATION_HEADER = "X-Correlation-ID"

# Polled by load balancers; not worth a log line per hit
QUIET_PATHS = {"/healthcheck"}


class LoggingMiddleware(BaseHTTPMiddleware):
    """Assigns a correlation id to each request and logs it with its outcome."""

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        correlation_id = set_correlation_id(request.headers.get(CORRELATION_HEADER))
        request.state.correlation_id = correlation_id
        quiet = request.url.path in QUIET_PATHS

        if not quiet:
            log_request(request, correlation_id)

        started = time.perf_counter()
        status_code = 500
        response = None
        try:
            response = await call_next(request)
            status_code = response.status_code
        finally:
            if not quiet:
                log_response(request, status_code, (time.perf_counter() - started) * 1000, correlation_id)

        response.headers[CORRELATION_HEADER] = correlation_id
        return response


class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    """
    Hardening headers for every response.

    File routes return user-uploaded bytes as octet streams; browsers must not
    sniff another content type from them.
    """

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        response = await call_next(request)

        response.headers["X-Content-Type-Options"] = "nosniff"
        response.headers["X-Frame-Options"] = "DENY"
        response.headers["Referrer-Policy"] = "no-referrer"

        correlation_id = get_correlation_id()
        if correlation_id:
            response.headers.setdefault(CORRELATION_HEADER, correlation_id)

        return response
