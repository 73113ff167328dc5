"""
Request-scoped logging helpers.

Every request gets a correlation id, kept in a context variable so that log
lines emitted anywhere while serving it (controllers, cache, tar streaming)
can be bound to it.
"""

import uuid
from contextvars import ContextVar
from typing import Any, Dict, Optional

from fastapi import Request
from loguru import logger

correlation_id_var: ContextVar[Optional[str]] = ContextVar("correlation_id", default=None)


def get_correlation_id() -> Optional[str]:
    return correlation_id_var.get()


def set_correlation_id(cid: Optional[str] = None) -> str:
    """Use ``cid`` (e.g. an incoming ``X-Correlation-ID``) or generate one."""
    cid = cid or uuid.uuid4().hex
    correlation_id_var.set(cid)
    return cid


def _auth_scheme(request: Request) -> Optional[str]:
    # Only the scheme is logged, never the token
    authorization = request.headers.get("authorization")
    if not authorization:
        return None
    return authorization.split(" ", 1)[0].lower()


def log_request(request: Request, correlation_id: Optional[str] = None) -> None:
    logger.bind(
        correlation_id=correlation_id or get_correlation_id(),
        client_ip=request.client.host if request.client else None,
        auth_scheme=_auth_scheme(request),
    ).info("{} {}", request.method, request.url.path)


def log_response(
    request: Request,
    status_code: int,
    elapsed_ms: float,
    correlation_id: Optional[str] = None,
) -> None:
    """Log the outcome of a request; 4xx at warning, 5xx at error."""
    user = getattr(request.state, "user", None)
    bound = logger.bind(
        correlation_id=correlation_id or get_correlation_id(),
        user_id=user.id if user is not None else None,
    )

    if status_code >= 500:
        log = bound.error
    elif status_code >= 400:
        log = bound.warning
    else:
        log = bound.info
    log("{} {} -> {} ({}ms)", request.method, request.url.path, status_code, round(elapsed_ms, 2))


def log_error(
    error: Exception,
    context: Optional[Dict[str, Any]] = None,
    correlation_id: Optional[str] = None,
) -> None:
    """Log ``error`` with its traceback and any extra ``context`` fields."""
    extra = {
        "correlation_id": correlation_id or get_correlation_id(),
        "error_type": error.__class__.__name__,
    }
    if context:
        extra.update(context)

    logger.bind(**extra).opt(exception=error).error("Error occurred: {}", str(error))
