from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, Response, status

from gradekit.core.auth import verify_api_key
from gradekit.core.lifespan import get_cache
from gradekit.schemas.cache import CacheStats, SweepResult
from gradekit.utils.ttl_cache import TTLCache

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/cache",
    tags=["Cache"],
    dependencies=[Depends(verify_api_key)],
)


@router.get("/stats", response_model=CacheStats)
async def cache_stats(cache: TTLCache = Depends(get_cache)) -> CacheStats:
    """Return cache counters (no cached values are exposed)."""
    return CacheStats(**cache.stats())


@router.post("/sweep", response_model=SweepResult)
async def sweep_cache(cache: TTLCache = Depends(get_cache)) -> SweepResult:
    """Purge expired entries now instead of waiting for the background sweep."""
    removed = cache.sweep()
    logger.info("cache.manual_sweep", extra={"removed": removed})
    return SweepResult(removed=removed)


@router.delete("", status_code=status.HTTP_204_NO_CONTENT)
async def clear_cache(cache: TTLCache = Depends(get_cache)) -> Response:
    """Drop every cached entry."""
    cache.clear()
    logger.info("cache.cleared")
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.delete("/{key:path}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_cache_key(key: str, cache: TTLCache = Depends(get_cache)) -> Response:
    """Invalidate one key, e.g. ``github:owner/repo`` after a student pushes."""
    removed = cache.delete(key)
    logger.info("cache.deleted", extra={"cache_key": key[:32], "existed": removed})
    return Response(status_code=status.HTTP_204_NO_CONTENT)
