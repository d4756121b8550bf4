from __future__ import annotations

import time

from fastapi import APIRouter, Depends

from gradekit.adapters.rate_limit.base import AbstractRateLimiter
from gradekit.core.auth import get_user_id, verify_api_key
from gradekit.core.config import Settings
from gradekit.core.lifespan import get_settings
from gradekit.core.rate_limit import (
    Operation,
    enforce_rate_limit,
    get_operation_limits,
    get_rate_limiter,
)
from gradekit.schemas.rate_limit import OperationLimit, RateLimitStatus

router = APIRouter(
    prefix="/rate-limits",
    tags=["Rate Limits"],
    dependencies=[Depends(verify_api_key)],
)


@router.get("", response_model=list[OperationLimit])
async def list_operation_limits(
    app_config: Settings = Depends(get_settings),
) -> list[OperationLimit]:
    """List every rate limited operation with its window and budget."""
    return [
        OperationLimit(
            operation=operation.value,
            window_seconds=config.window_seconds,
            max_requests=config.max_requests,
        )
        for operation, config in get_operation_limits(app_config.rate_limit).items()
    ]


@router.post("/{operation}/consume", response_model=RateLimitStatus)
async def consume(
    operation: Operation,
    limiter: AbstractRateLimiter = Depends(get_rate_limiter),
    user_id: str = Depends(get_user_id),
    app_config: Settings = Depends(get_settings),
) -> RateLimitStatus:
    """Consume one unit of the caller's budget for ``operation``.

    Lets the grading frontend guard actions it performs itself (e.g. direct
    uploads) with the same per-user budget.

    Raises:
        RateLimitAppError: 429 once the budget for the current window is spent.
    """
    result = enforce_rate_limit(limiter, operation, user_id, app_config)
    if result is None:
        # Rate limiting disabled: report a full budget
        config = get_operation_limits(app_config.rate_limit)[operation]
        return RateLimitStatus(
            operation=operation.value,
            allowed=True,
            limit=config.max_requests,
            remaining=config.max_requests,
            reset_at=time.time() + config.window_seconds,
        )

    return RateLimitStatus(
        operation=operation.value,
        allowed=result.allowed,
        limit=result.limit,
        remaining=result.remaining,
        reset_at=result.reset_at,
    )
