"""Global exception handlers for consistent error responses.

Every error leaves the API as::

    {"error": {"code": ..., "message": ..., "request_id": ..., "details": ...}}

- AppError subclasses map to 400 / 403 / 429
- anything else becomes a generic 500 without internals
"""

import logging
from typing import Any

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from gradekit.core.errors import (
    AppError,
    AuthenticationAppError,
    RateLimitAppError,
    ValidationAppError,
)
from gradekit.core.logging import get_request_id

logger = logging.getLogger(__name__)

INTERNAL_ERROR_MESSAGE = "An unexpected error occurred. Please try again later."

_STATUS_BY_ERROR: tuple[tuple[type[AppError], int], ...] = (
    (RateLimitAppError, 429),
    (AuthenticationAppError, 403),
    (ValidationAppError, 400),
)


def status_code_for(exc: AppError) -> int:
    """Return the HTTP status an application error is reported with."""
    for error_type, status_code in _STATUS_BY_ERROR:
        if isinstance(exc, error_type):
            return status_code
    return 400


def _envelope(code: str, message: str, details: Any = None) -> dict[str, Any]:
    body: dict[str, Any] = {"code": code, "message": message, "request_id": get_request_id()}
    if details:
        body["details"] = details
    return {"error": body}


async def app_error_handler(request: Request, exc: AppError) -> JSONResponse:
    """Render an ``AppError`` with its mapped status code.

    Rate limit errors also carry Retry-After / X-RateLimit-* headers.
    """
    status_code = status_code_for(exc)
    logger.warning(
        "error.handled",
        extra={
            "error_code": exc.code,
            "status_code": status_code,
            "path": request.url.path,
        },
    )

    headers = exc.headers if isinstance(exc, RateLimitAppError) else None
    return JSONResponse(
        status_code=status_code,
        content=_envelope(exc.code, exc.message, exc.details),
        headers=headers or None,
    )


async def general_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Fallback for unexpected errors; logs the failure, hides the details."""
    logger.error(
        "error.unhandled",
        exc_info=exc,
        extra={
            "error_type": type(exc).__name__,
            "method": request.method,
            "path": request.url.path,
        },
    )
    return JSONResponse(
        status_code=500,
        content=_envelope("internal_server_error", INTERNAL_ERROR_MESSAGE),
    )


def setup_exception_handlers(app: FastAPI) -> None:
    """Register the handlers on ``app``."""
    app.add_exception_handler(AppError, app_error_handler)
    app.add_exception_handler(Exception, general_exception_handler)
