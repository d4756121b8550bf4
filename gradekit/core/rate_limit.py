"""Per-user rate limiting of named operations.

This module wires the limiter adapter into the HTTP layer:

- ``Operation`` names every guarded action and ``get_operation_limits``
  maps it to its window/budget from settings.
- Limiter keys are ``"<operation>:<user id>"``, so one user's uploads do
  not eat into their submission budget.
- ``enforce_rate_limit`` counts a request and raises ``RateLimitAppError``
  (rendered as HTTP 429) once the budget is spent.
- ``rate_limited(operation)`` packages that as a route dependency.
"""

from __future__ import annotations

import logging
import math
import time
from enum import Enum
from typing import Awaitable, Callable

from fastapi import Depends, Request

from gradekit.adapters.rate_limit.base import (
    AbstractRateLimiter,
    RateLimitConfig,
    RateLimitResult,
)
from gradekit.core.auth import get_user_id
from gradekit.core.config import RateLimitSettings, Settings, settings
from gradekit.core.errors import RateLimitAppError
from gradekit.core.lifespan import get_settings
from gradekit.core.logging import hash_identifier

logger = logging.getLogger(__name__)


class Operation(str, Enum):
    """Rate limited operations."""

    SUBMISSION = "submission"
    GITHUB_FETCH = "github_fetch"
    FILE_UPLOAD = "file_upload"
    WEBSITE_TEST = "website_test"


def get_operation_limits(
    rate_limit_settings: RateLimitSettings | None = None,
) -> dict[Operation, RateLimitConfig]:
    """Return the window/budget of every operation.

    Args:
        rate_limit_settings: Source of the values; defaults to ``settings.rate_limit``.

    Returns:
        Mapping of operation to its RateLimitConfig.
    """

    cfg = rate_limit_settings or settings.rate_limit
    return {
        operation: RateLimitConfig(
            window_seconds=getattr(cfg, f"{operation.value}_window_seconds"),
            max_requests=getattr(cfg, f"{operation.value}_max_requests"),
        )
        for operation in Operation
    }


def get_rate_limit_key(user_id: str, operation: Operation | str) -> str:
    """Build the limiter identifier for a user and operation."""

    name = operation.value if isinstance(operation, Operation) else operation
    return f"{name}:{user_id}"


def get_rate_limiter(request: Request) -> AbstractRateLimiter:
    """Return the limiter the application lifespan attached to ``app.state``."""

    return request.app.state.rate_limiter


def _describe_window(window_seconds: float) -> str:
    if window_seconds % 3600 == 0:
        hours = int(window_seconds // 3600)
        return "hour" if hours == 1 else f"{hours} hours"
    if window_seconds % 60 == 0:
        minutes = int(window_seconds // 60)
        return "minute" if minutes == 1 else f"{minutes} minutes"
    return f"{window_seconds:g} seconds"


def build_exceeded_message(
    operation: Operation,
    config: RateLimitConfig,
    result: RateLimitResult,
    *,
    now: float | None = None,
) -> str:
    """Human readable 429 message telling the caller when to come back.

    Example:
        "Rate limit exceeded. You can make 20 file_upload requests per hour.
        Try again in 12 minutes."
    """

    now = time.time() if now is None else now
    minutes = max(1, math.ceil((result.reset_at - now) / 60))
    unit = "minute" if minutes == 1 else "minutes"
    return (
        f"Rate limit exceeded. You can make {config.max_requests} {operation.value} "
        f"requests per {_describe_window(config.window_seconds)}. "
        f"Try again in {minutes} {unit}."
    )


def _build_headers(result: RateLimitResult) -> dict[str, str]:
    return {
        "Retry-After": str(result.retry_after_seconds or 0),
        "X-RateLimit-Limit": str(result.limit),
        "X-RateLimit-Remaining": str(result.remaining),
        "X-RateLimit-Reset": str(math.ceil(result.reset_at)),
    }


def enforce_rate_limit(
    limiter: AbstractRateLimiter,
    operation: Operation,
    user_id: str,
    app_config: Settings | None = None,
) -> RateLimitResult | None:
    """Count one ``operation`` request for ``user_id``.

    Args:
        limiter: Limiter holding the per-process counters.
        operation: Operation being performed.
        user_id: Caller identity (see ``get_user_id``).
        app_config: Settings of the running app; defaults to global settings.

    Returns:
        The allowed RateLimitResult, or None when rate limiting is disabled.

    Raises:
        RateLimitAppError: When the caller's budget for this window is spent.
    """

    cfg = app_config or settings
    if not cfg.app.rate_limit_enabled:
        return None

    config = get_operation_limits(cfg.rate_limit)[operation]
    key = get_rate_limit_key(user_id, operation)
    log_fields = {
        "operation": operation.value,
        "key_hash": hash_identifier(key),
        "limit": config.max_requests,
        "window_s": config.window_seconds,
    }

    result = limiter.check(key, config)
    if result.allowed:
        logger.info("rate_limit.allowed", extra={**log_fields, "remaining": result.remaining})
        return result

    logger.warning(
        "rate_limit.exceeded",
        extra={**log_fields, "retry_after_s": result.retry_after_seconds},
    )

    raise RateLimitAppError(
        code="rate_limit_exceeded",
        message=build_exceeded_message(operation, config, result),
        details={
            "operation": operation.value,
            "limit": config.max_requests,
            "window_seconds": int(config.window_seconds),
            "reset_at": math.ceil(result.reset_at),
            "retry_after": result.retry_after_seconds or 0,
        },
        headers=_build_headers(result) if cfg.app.rate_limit_include_headers else None,
    )


def rate_limited(
    operation: Operation,
) -> Callable[..., Awaitable[RateLimitResult | None]]:
    """Build a route dependency that rate limits ``operation`` per user.

    Usage:
        @router.post("/upload", dependencies=[Depends(rate_limited(Operation.FILE_UPLOAD))])
        async def upload(): ...
    """

    async def _dependency(
        limiter: AbstractRateLimiter = Depends(get_rate_limiter),
        user_id: str = Depends(get_user_id),
        app_config: Settings = Depends(get_settings),
    ) -> RateLimitResult | None:
        return enforce_rate_limit(limiter, operation, user_id, app_config)

    return _dependency
