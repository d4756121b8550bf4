"""Background task that periodically purges expired entries from a store.

Each in-memory store gets its own sweeper, started and stopped by the
application lifespan so no timers outlive the app (or a test).
"""

from __future__ import annotations

import asyncio
import logging
from typing import Callable

logger = logging.getLogger(__name__)


class PeriodicSweeper:
    """Call ``sweep`` every ``interval_seconds`` until stopped.

    Args:
        name: Label used in log records (e.g. ``"cache"``).
        sweep: Callable removing expired entries and returning how many.
        interval_seconds: Delay between two sweeps.
    """

    def __init__(self, name: str, sweep: Callable[[], int], interval_seconds: float) -> None:
        if interval_seconds <= 0:
            raise ValueError("interval_seconds must be > 0")
        self.name = name
        self.interval_seconds = interval_seconds
        self._sweep = sweep
        self._task: asyncio.Task[None] | None = None

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self) -> None:
        """Schedule the sweep loop on the running event loop (idempotent)."""
        if self.running:
            return
        self._task = asyncio.create_task(self._run(), name=f"sweeper:{self.name}")
        logger.info(
            "sweeper.started",
            extra={"sweeper": self.name, "interval_s": self.interval_seconds},
        )

    async def stop(self) -> None:
        """Cancel the loop and wait for it to finish."""
        task, self._task = self._task, None
        if task is None:
            return
        if not task.done():
            task.cancel()
        try:
            await task
        except asyncio.CancelledError:
            pass
        logger.info("sweeper.stopped", extra={"sweeper": self.name})

    def run_once(self) -> int:
        """Run a single sweep now; failures are logged, not raised."""
        try:
            removed = self._sweep()
        except Exception as exc:
            logger.exception(
                "sweeper.failed",
                extra={"sweeper": self.name, "error_type": type(exc).__name__},
            )
            return 0

        if removed:
            logger.info("sweeper.swept", extra={"sweeper": self.name, "removed": removed})
        return removed

    async def _run(self) -> None:
        while True:
            await asyncio.sleep(self.interval_seconds)
            self.run_once()
