from __future__ import annotations

from pydantic import BaseModel


class CacheStats(BaseModel):
    size: int
    max_size: int
    hits: int
    misses: int
    evictions: int
    hit_rate: float


class SweepResult(BaseModel):
    removed: int
