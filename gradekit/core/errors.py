"""Application-level exception types.

Routes and services raise these; ``gradekit.core.exception_handlers`` turns
them into JSON error responses with a stable shape.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, NotRequired, TypedDict


class ErrorDetails(TypedDict, total=False):
    """Structured error context returned to clients under ``error.details``."""

    hint: str
    field: str
    url: str
    operation: str
    limit: int
    window_seconds: int
    reset_at: int
    retry_after: int
    context: NotRequired[dict[str, Any]]


@dataclass
class AppError(Exception):
    """Base error for application/domain failures.

    Attributes:
        code: Stable, machine-readable error code.
        message: Human-readable error message.
        details: Optional structured details for clients and logs.
    """

    code: str
    message: str
    details: ErrorDetails | None = None

    def __post_init__(self) -> None:
        # Populate Exception args so str(error) is useful in logs/tracebacks.
        super().__init__(self.message)


class ValidationAppError(AppError):
    """Raised when request input fails validation."""


class AuthenticationAppError(AppError):
    """Raised when authentication/authorization fails."""


class RateLimitAppError(AppError):
    """Raised when a caller has used up the budget of a rate limited operation.

    ``headers`` carries the Retry-After / X-RateLimit-* values the handler
    copies onto the 429 response.
    """

    def __init__(
        self,
        code: str,
        message: str,
        details: ErrorDetails | None = None,
        *,
        headers: dict[str, str] | None = None,
    ) -> None:
        super().__init__(code=code, message=message, details=details)
        self.headers = headers or {}
