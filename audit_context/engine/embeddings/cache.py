"""Embedding cache with time-to-live.

Maps a content fingerprint to a previously computed embedding. The cache is
passed into the provider rather than held as a process-wide singleton, so
tests can inject a fake or a controlled clock.
"""

import asyncio
import hashlib
import logging
import time
from collections.abc import Callable
from dataclasses import dataclass
from threading import Lock
from typing import Protocol

from ..core.query import normalize_text

logger = logging.getLogger(__name__)

Clock = Callable[[], float]


def fingerprint_text(text: str) -> str:
    """Stable cache key for a text: SHA-256 of its normalized form."""
    return hashlib.sha256(normalize_text(text).encode("utf-8")).hexdigest()


@dataclass(frozen=True)
class EmbeddingVector:
    """An embedding plus the fingerprint of the text it was derived from.

    Attributes:
        values: Vector components (768 for text-embedding-004).
        fingerprint: Fingerprint of the source text.
        generated_at: Unix timestamp of generation.
    """

    values: tuple[float, ...]
    fingerprint: str
    generated_at: float

    @property
    def dimensions(self) -> int:
        return len(self.values)


@dataclass(frozen=True)
class CacheEntry:
    """A cached vector and the time it stops being servable."""

    vector: EmbeddingVector
    expires_at: float

    def is_expired(self, now: float) -> bool:
        return now >= self.expires_at


class EmbeddingCache(Protocol):
    """Interface the provider needs from a cache."""

    def get(self, key: str) -> EmbeddingVector | None: ...

    def put(self, key: str, value: EmbeddingVector, ttl: float) -> None: ...

    def delete(self, key: str) -> None: ...

    def clear(self) -> None: ...


class InMemoryEmbeddingCache:
    """Thread-safe in-memory TTL cache.

    Entries are never served at or after ``expires_at``. Expired entries are
    evicted lazily on access and in bulk by :meth:`sweep_expired`. When
    ``max_size`` is set, the entry closest to expiry is evicted to make room.
    """

    def __init__(self, clock: Clock = time.time, max_size: int | None = None):
        self._clock = clock
        self.max_size = max_size
        self._entries: dict[str, CacheEntry] = {}
        self._lock = Lock()
        self.hits = 0
        self.misses = 0

    def get(self, key: str) -> EmbeddingVector | None:
        """Return the cached vector, or None on miss or expiry."""
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                self.misses += 1
                return None
            if entry.is_expired(self._clock()):
                del self._entries[key]
                self.misses += 1
                return None
            self.hits += 1
            return entry.vector

    def put(self, key: str, value: EmbeddingVector, ttl: float) -> None:
        """Store a vector for ``ttl`` seconds."""
        with self._lock:
            if (
                self.max_size is not None
                and key not in self._entries
                and len(self._entries) >= self.max_size
            ):
                oldest_key = min(self._entries, key=lambda k: self._entries[k].expires_at)
                del self._entries[oldest_key]
            self._entries[key] = CacheEntry(vector=value, expires_at=self._clock() + ttl)

    def delete(self, key: str) -> None:
        with self._lock:
            self._entries.pop(key, None)

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()
        logger.info("Embedding cache cleared")

    def sweep_expired(self) -> int:
        """Evict every expired entry.

        Returns:
            Number of entries evicted.
        """
        now = self._clock()
        with self._lock:
            expired = [k for k, entry in self._entries.items() if entry.is_expired(now)]
            for key in expired:
                del self._entries[key]
        if expired:
            logger.debug(f"Embedding cache sweep evicted {len(expired)} entries")
        return len(expired)

    def stats(self) -> dict[str, float | int | None]:
        """Cache statistics for monitoring."""
        with self._lock:
            oldest = min(
                (entry.vector.generated_at for entry in self._entries.values()),
                default=None,
            )
            return {
                "size": len(self._entries),
                "oldest_entry": oldest,
                "hits": self.hits,
                "misses": self.misses,
            }

    def __len__(self) -> int:
        return len(self._entries)


class CacheSweeper:
    """Background task that periodically evicts expired cache entries.

    Example:
        sweeper = CacheSweeper(cache, interval_seconds=600)
        sweeper.start()
        ...
        await sweeper.stop()
    """

    def __init__(self, cache: InMemoryEmbeddingCache, interval_seconds: float = 600.0):
        self.cache = cache
        self.interval_seconds = interval_seconds
        self._task: asyncio.Task | None = None

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self) -> None:
        """Start sweeping on the running event loop."""
        if self.running:
            return
        self._task = asyncio.get_running_loop().create_task(self._run())

    async def stop(self) -> None:
        if self._task is None:
            return
        self._task.cancel()
        try:
            await self._task
        except asyncio.CancelledError:
            pass
        self._task = None

    async def _run(self) -> None:
        while True:
            await asyncio.sleep(self.interval_seconds)
            self.cache.sweep_expired()
