"""In-memory TTL cache used to avoid repeated external calls.

Entries carry their own TTL, expire lazily on read and in bulk through
``sweep()``. Capacity is enforced by evicting the earliest *inserted* key
still present: reads never reorder entries, so this is FIFO and not LRU.

Per-process only. Multi-instance deployments need a shared store.
"""

from __future__ import annotations

import asyncio
import logging
import threading
import time
from collections import OrderedDict
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, TypeVar

from gradekit.core.config import settings

logger = logging.getLogger(__name__)

T = TypeVar("T")

_MISSING = object()


@dataclass
class CacheItem:
    """Cached value with its absolute expiry (UNIX seconds)."""

    value: Any
    expires_at: float


class TTLCache:
    """Thread-safe, bounded key-value store with per-entry expiry.

    Attributes:
        max_size: Maximum number of entries held at once.
        dedupe_in_flight: When True, concurrent ``with_cache`` misses on the
            same key share a single producer call.
    """

    def __init__(
        self,
        max_size: int = 1000,
        *,
        clock: Callable[[], float] = time.time,
        dedupe_in_flight: bool = True,
    ) -> None:
        if max_size < 1:
            raise ValueError("max_size must be >= 1")

        self.max_size = max_size
        self.dedupe_in_flight = dedupe_in_flight
        self._clock = clock
        self._store: OrderedDict[str, CacheItem] = OrderedDict()
        self._lock = threading.RLock()
        self._in_flight: dict[str, asyncio.Future[Any]] = {}
        self._hits = 0
        self._misses = 0
        self._evictions = 0

    def __repr__(self) -> str:  # pragma: no cover - representation only
        return (
            f"TTLCache(max_size={self.max_size}, size={len(self._store)}, "
            f"hits={self._hits}, misses={self._misses}, evictions={self._evictions})"
        )

    def __len__(self) -> int:
        with self._lock:
            return len(self._store)

    def __contains__(self, key: object) -> bool:
        with self._lock:
            item = self._store.get(key)  # type: ignore[call-overload]
            return item is not None and not self._is_expired(item, self._clock())

    def get(self, key: str, default: Any = None) -> Any:
        """Return the cached value, or ``default`` when absent or expired.

        Expired entries are deleted as a side effect.
        """
        value = self._lookup(key)
        return default if value is _MISSING else value

    def set(self, key: str, value: Any, ttl_seconds: float) -> None:
        """Insert or overwrite ``key`` with an expiry ``ttl_seconds`` from now.

        Inserting a new key into a full cache first evicts the oldest
        inserted entry. Overwriting keeps the key's original position and
        evicts nothing, so a full cache stays full after an overwrite.
        """
        with self._lock:
            if key not in self._store and len(self._store) >= self.max_size:
                evicted_key, _ = self._store.popitem(last=False)
                self._evictions += 1
                logger.debug(
                    "cache.evict",
                    extra={"cache_key": evicted_key[:32], "reason": "capacity"},
                )

            self._store[key] = CacheItem(value=value, expires_at=self._clock() + ttl_seconds)

            logger.debug(
                "cache.set",
                extra={
                    "cache_key": key[:32],
                    "size": len(self._store),
                    "ttl_s": ttl_seconds,
                },
            )

    def delete(self, key: str) -> bool:
        """Remove ``key``; returns whether it was present."""
        with self._lock:
            return self._store.pop(key, None) is not None

    def clear(self) -> None:
        """Remove all entries and reset counters."""
        with self._lock:
            self._store.clear()
            self._hits = 0
            self._misses = 0
            self._evictions = 0

    def sweep(self) -> int:
        """Drop every expired entry regardless of access; returns the count."""
        now = self._clock()
        with self._lock:
            expired = [k for k, item in self._store.items() if self._is_expired(item, now)]
            for key in expired:
                del self._store[key]
            self._evictions += len(expired)
        return len(expired)

    def stats(self) -> dict[str, int | float]:
        """Return counters without exposing any cached value."""
        with self._lock:
            lookups = self._hits + self._misses
            return {
                "size": len(self._store),
                "max_size": self.max_size,
                "hits": self._hits,
                "misses": self._misses,
                "evictions": self._evictions,
                "hit_rate": round(self._hits / lookups, 4) if lookups else 0.0,
            }

    async def with_cache(
        self,
        key: str,
        fn: Callable[[], Awaitable[T]],
        ttl_seconds: float,
    ) -> T:
        """Return the cached value for ``key`` or produce, store and return it.

        Args:
            key: Cache key (see ``CacheKeys``).
            fn: Zero-argument coroutine function producing the value.
            ttl_seconds: Lifetime of a freshly produced value.

        Returns:
            Cached or freshly produced value.

        Raises:
            Exception: Whatever ``fn`` raises; failures are not cached.
        """
        cached = self._lookup(key)
        if cached is not _MISSING:
            return cached

        if not self.dedupe_in_flight:
            return await self._produce(key, fn, ttl_seconds)

        pending = self._in_flight.get(key)
        if pending is None:
            pending = asyncio.ensure_future(self._produce(key, fn, ttl_seconds))
            self._in_flight[key] = pending
            pending.add_done_callback(lambda fut: self._forget_in_flight(key, fut))
        else:
            logger.debug("cache.join_in_flight", extra={"cache_key": key[:32]})

        # shield: one cancelled waiter must not cancel the fetch others await
        return await asyncio.shield(pending)

    async def _produce(self, key: str, fn: Callable[[], Awaitable[T]], ttl_seconds: float) -> T:
        value = await fn()
        self.set(key, value, ttl_seconds)
        return value

    def _forget_in_flight(self, key: str, fut: asyncio.Future[Any]) -> None:
        if self._in_flight.get(key) is fut:
            del self._in_flight[key]
        # Mark the exception retrieved; waiters re-raise it through shield()
        if not fut.cancelled():
            fut.exception()

    def _lookup(self, key: str) -> Any:
        with self._lock:
            item = self._store.get(key)
            if item is None:
                self._misses += 1
                logger.debug("cache.miss", extra={"cache_key": key[:32], "reason": "not_found"})
                return _MISSING

            if self._is_expired(item, self._clock()):
                del self._store[key]
                self._evictions += 1
                self._misses += 1
                logger.debug("cache.miss", extra={"cache_key": key[:32], "reason": "expired"})
                return _MISSING

            self._hits += 1
            logger.debug("cache.hit", extra={"cache_key": key[:32]})
            return item.value

    @staticmethod
    def _is_expired(item: CacheItem, now: float) -> bool:
        return now > item.expires_at


class CacheKeys:
    """Key builders for cached resource types."""

    @staticmethod
    def github(owner: str, repo: str) -> str:
        return f"github:{owner}/{repo}"

    @staticmethod
    def website(url: str) -> str:
        return f"website:{url}"

    @staticmethod
    def document(url: str) -> str:
        # Documents are unique per submission, so this is rarely hit
        return f"document:{url}"


class CacheTTL:
    """Default lifetimes (seconds) per resource type from the global ``settings.cache``.

    Routes pass the running app's ``CacheSettings`` values instead.
    """

    GITHUB_REPO: float = settings.cache.github_repo_ttl_seconds
    WEBSITE_TEST: float = settings.cache.website_test_ttl_seconds
    DOCUMENT: float = settings.cache.document_ttl_seconds
