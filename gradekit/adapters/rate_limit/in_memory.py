"""In-memory fixed-window rate limiter.

Notes:
- Per-process only: every worker keeps its own counters, so running N
  workers multiplies the effective budget by N.
- Thread-safe: the check-then-act sequence runs under a lock.
- Windows start at an identifier's first request (not at wall-clock
  boundaries) and are replaced wholesale once they end.
"""

from __future__ import annotations

import math
import threading
import time
from dataclasses import dataclass
from typing import Callable

from gradekit.adapters.rate_limit.base import (
    AbstractRateLimiter,
    RateLimitConfig,
    RateLimitResult,
)


@dataclass
class _WindowState:
    count: int
    reset_at: float


class InMemoryFixedWindowRateLimiter(AbstractRateLimiter):
    """Fixed-window request counter keyed by identifier.

    Budgets are passed per call, so one instance serves every named
    operation; identifiers are expected to carry the operation prefix.

    ``config`` is not validated: zero or negative budgets give degenerate but
    well-defined answers (the first request of a window is always let
    through, later ones are not).
    """

    def __init__(self, *, clock: Callable[[], float] = time.time) -> None:
        """Initialize an empty limiter.

        Args:
            clock: Time source returning UNIX time in seconds.
        """
        self._clock = clock
        self._lock = threading.RLock()
        self._state_by_key: dict[str, _WindowState] = {}

    def __len__(self) -> int:
        with self._lock:
            return len(self._state_by_key)

    def check(self, identifier: str, config: RateLimitConfig) -> RateLimitResult:
        """Count one request for ``identifier``.

        A missing or ended window is replaced by a fresh one holding this
        request. Inside a live window the request is counted while budget
        remains; otherwise it is denied and the window is left untouched.

        Args:
            identifier: Lookup key (e.g. ``"file_upload:user-42"``).
            config: Window length and request budget.

        Returns:
            RateLimitResult with the decision and window metadata.

        Raises:
            ValueError: If identifier is empty.
        """
        if not identifier:
            raise ValueError("identifier must be a non-empty string")

        now = self._clock()

        with self._lock:
            state = self._state_by_key.get(identifier)

            if state is None or now >= state.reset_at:
                state = _WindowState(count=1, reset_at=now + config.window_seconds)
                self._state_by_key[identifier] = state
                return self._allowed(config, state)

            if state.count < config.max_requests:
                state.count += 1
                return self._allowed(config, state)

            return RateLimitResult(
                allowed=False,
                limit=config.max_requests,
                remaining=0,
                reset_at=state.reset_at,
                retry_after_seconds=max(0, math.ceil(state.reset_at - now)),
            )

    def sweep(self) -> int:
        """Remove every window whose reset time has passed.

        Only bounds memory; ``check`` already ignores ended windows.
        """
        now = self._clock()
        with self._lock:
            expired = [k for k, s in self._state_by_key.items() if now >= s.reset_at]
            for key in expired:
                del self._state_by_key[key]
        return len(expired)

    @staticmethod
    def _allowed(config: RateLimitConfig, state: _WindowState) -> RateLimitResult:
        return RateLimitResult(
            allowed=True,
            limit=config.max_requests,
            remaining=max(0, config.max_requests - state.count),
            reset_at=state.reset_at,
            retry_after_seconds=None,
        )
