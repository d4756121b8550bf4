"""Rate limiter interfaces.

Route dependencies talk to ``AbstractRateLimiter`` only, so the per-process
store can later be replaced by a shared one without touching the HTTP layer.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass


@dataclass(frozen=True)
class RateLimitConfig:
    """Budget of a rate limited operation.

    Attributes:
        window_seconds: Length of a window, counted from the first request.
        max_requests: Requests allowed inside one window.
    """

    window_seconds: float
    max_requests: int


@dataclass(frozen=True)
class RateLimitResult:
    """Outcome of a rate limit check.

    Attributes:
        allowed: Whether the request may proceed.
        limit: Max requests per window.
        remaining: Requests left in the current window (0 when blocked).
        reset_at: UNIX epoch seconds when the current window ends.
        retry_after_seconds: Whole seconds to wait when blocked, else None.
    """

    allowed: bool
    limit: int
    remaining: int
    reset_at: float
    retry_after_seconds: int | None


class AbstractRateLimiter(ABC):
    """Interface for rate limiters."""

    @abstractmethod
    def check(self, identifier: str, config: RateLimitConfig) -> RateLimitResult:
        """Count one request for ``identifier`` against ``config``.

        Args:
            identifier: Lookup key, usually ``"<operation>:<user id>"``.
            config: Window and budget to enforce.

        Returns:
            RateLimitResult describing whether the request was allowed.
        """
        raise NotImplementedError

    @abstractmethod
    def sweep(self) -> int:
        """Drop windows that have already ended.

        Returns:
            Number of identifiers removed.
        """
        raise NotImplementedError
