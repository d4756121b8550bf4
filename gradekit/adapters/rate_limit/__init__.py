"""Rate limiting adapters.

Routes depend on ``AbstractRateLimiter``; the in-memory fixed-window
implementation is the only backend today, a shared store (e.g. Redis) can be
added behind the same interface for multi-instance deployments.
"""

from gradekit.adapters.rate_limit.base import (
    AbstractRateLimiter,
    RateLimitConfig,
    RateLimitResult,
)
from gradekit.adapters.rate_limit.in_memory import InMemoryFixedWindowRateLimiter

__all__ = [
    "AbstractRateLimiter",
    "InMemoryFixedWindowRateLimiter",
    "RateLimitConfig",
    "RateLimitResult",
]
