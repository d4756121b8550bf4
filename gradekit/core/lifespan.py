"""Application lifespan: owns the in-memory stores and their sweepers.

The limiter and cache are built when the app starts, exposed on
``app.state`` for request dependencies, and torn down on shutdown.
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator

from fastapi import FastAPI, Request

from gradekit.adapters.rate_limit.in_memory import InMemoryFixedWindowRateLimiter
from gradekit.core.config import Settings, settings
from gradekit.core.sweeper import PeriodicSweeper
from gradekit.utils.ttl_cache import TTLCache

logger = logging.getLogger(__name__)


def build_lifespan(config: Settings | None = None):
    """Return a lifespan context manager bound to ``config``.

    Args:
        config: Settings to build the stores from; defaults to global settings.
    """

    cfg = config or settings

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        rate_limiter = InMemoryFixedWindowRateLimiter()
        cache = TTLCache(
            max_size=cfg.cache.max_size,
            dedupe_in_flight=cfg.cache.dedupe_in_flight,
        )
        sweepers = [
            PeriodicSweeper(
                "rate_limiter",
                rate_limiter.sweep,
                cfg.rate_limit.sweep_interval_seconds,
            ),
            PeriodicSweeper("cache", cache.sweep, cfg.cache.sweep_interval_seconds),
        ]

        app.state.rate_limiter = rate_limiter
        app.state.cache = cache
        app.state.sweepers = sweepers

        for sweeper in sweepers:
            sweeper.start()
        logger.info(
            "app.started",
            extra={"app_env": cfg.app_env, "cache_max_size": cache.max_size},
        )

        try:
            yield
        finally:
            for sweeper in sweepers:
                await sweeper.stop()
            cache.clear()
            logger.info("app.stopped")

    return lifespan


def get_cache(request: Request) -> TTLCache:
    """Return the cache the lifespan attached to ``app.state``."""

    return request.app.state.cache


def get_settings(request: Request) -> Settings:
    """Return the settings the app was created with."""

    return request.app.state.settings
