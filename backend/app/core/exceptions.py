"""
Global exception handlers for FastAPI application.
"""

from fastapi import Request, status
from fastapi.responses import JSONResponse
from fastapi.exceptions import RequestValidationError
from loguru import logger
from sqlalchemy.exc import TimeoutError as SQLAlchemyTimeoutError

from app.core.logging import get_correlation_id
from app.utils.exceptions import PublishAPIException
from app.utils.formatters import format_error_response


async def publish_api_exception_handler(request: Request, exc: PublishAPIException) -> JSONResponse:
    """Single normalization point for domain errors."""
    status_code = exc.status_code
    error_response = format_error_response(exc, status_code)

    if status_code >= 500:
        logger.opt(exception=exc).error("Publish API exception: {}", exc.message)
    else:
        logger.info("Request rejected ({}): {}", status_code, exc.message)

    headers = None
    if status_code == status.HTTP_401_UNAUTHORIZED:
        headers = {"WWW-Authenticate": "Token"}

    return JSONResponse(
        status_code=status_code,
        content=error_response,
        headers=headers,
    )


async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Handle Pydantic validation errors (malformed ids, missing fields) as 400s."""
    errors = []
    for error in exc.errors():
        field = ".".join(str(loc) for loc in error.get("loc", []))
        errors.append({
            "field": field,
            "message": error.get("msg"),
            "type": error.get("type")
        })

    error_response = {
        "error": "ValidationError",
        "detail": "Request validation failed",
        "status_code": status.HTTP_400_BAD_REQUEST,
        "errors": errors
    }

    logger.warning(f"Validation error: {errors}")

    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content=error_response
    )


async def generic_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Handle generic exceptions."""
    if isinstance(exc, SQLAlchemyTimeoutError):
        return JSONResponse(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            content={
                "error": "ServiceUnavailable",
                "detail": "Database is busy (connection pool exhausted). Please retry in a moment.",
                "status_code": status.HTTP_503_SERVICE_UNAVAILABLE,
            },
            headers={"Retry-After": "3"},
        )

    error_response = {
        "error": exc.__class__.__name__,
        "detail": str(exc),
        "status_code": status.HTTP_500_INTERNAL_SERVER_ERROR,
        "correlation_id": getattr(request.state, "correlation_id", None) or get_correlation_id(),
    }

    logger.exception(f"Unhandled exception: {exc}")

    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content=error_response
    )
