"""Embedding provider adapter.

Wraps an external embedding client with production features:
- Cache-aware get-or-compute keyed by content fingerprint
- Single-flight deduplication of concurrent requests for the same text
- Bounded concurrency and fixed-interval rate limiting
- Per-call timeout with one retry and backoff
- Explicit ``EmbeddingOk | EmbeddingUnavailable`` results (never raises)

The provider is the only component that writes to the embedding cache.
"""

import asyncio
import logging
import time
from collections.abc import Iterable, Sequence
from dataclasses import dataclass
from typing import TYPE_CHECKING

from ...errors import EmbeddingClientError
from .cache import Clock, EmbeddingCache, EmbeddingVector, fingerprint_text
from .client import EmbeddingClient

if TYPE_CHECKING:
    from ...config import Settings

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class EmbeddingOk:
    """An embedding was obtained (from cache or the API)."""

    vector: EmbeddingVector
    cached: bool = False


@dataclass(frozen=True)
class EmbeddingUnavailable:
    """No embedding could be obtained; callers fall back to keyword scoring."""

    fingerprint: str
    reason: str


EmbeddingResult = EmbeddingOk | EmbeddingUnavailable


class AsyncRateLimiter:
    """Fixed-interval rate limiter: dispatches at most one call per interval.

    The lock is created per running event loop, so one limiter can serve
    successive ``asyncio.run`` calls.
    """

    def __init__(self, requests_per_second: float = 10.0):
        self.interval = 1.0 / requests_per_second if requests_per_second > 0 else 0.0
        self._last_call = 0.0
        self._lock: asyncio.Lock | None = None
        self._loop: asyncio.AbstractEventLoop | None = None

    def _get_lock(self) -> asyncio.Lock:
        loop = asyncio.get_running_loop()
        if self._lock is None or self._loop is not loop:
            self._lock = asyncio.Lock()
            self._loop = loop
        return self._lock

    async def wait(self) -> None:
        """Wait until the next call may be dispatched."""
        if self.interval <= 0:
            return
        async with self._get_lock():
            now = time.monotonic()
            time_since_last = now - self._last_call
            if time_since_last < self.interval:
                sleep_time = self.interval - time_since_last
                logger.debug(f"Rate limiting: sleeping {sleep_time:.3f}s")
                await asyncio.sleep(sleep_time)
            self._last_call = time.monotonic()


class EmbeddingProvider:
    """Cache-aware adapter around an :class:`EmbeddingClient`.

    Example:
        provider = EmbeddingProvider(client, InMemoryEmbeddingCache())
        result = await provider.get_or_compute("late payment of vendor invoices")
        if isinstance(result, EmbeddingOk):
            ...
    """

    def __init__(
        self,
        client: EmbeddingClient | None,
        cache: EmbeddingCache,
        *,
        ttl_seconds: float = 24 * 60 * 60,
        timeout_seconds: float = 5.0,
        max_retries: int = 1,
        retry_backoff_seconds: float = 0.5,
        requests_per_second: float = 10.0,
        max_concurrency: int = 10,
        expected_dimensions: int | None = None,
        clock: Clock = time.time,
    ):
        """Initialize the provider.

        Args:
            client: External embedding client; None makes every call unavailable.
            cache: Cache to read from and write to.
            ttl_seconds: Lifetime of cached embeddings (default 24h).
            timeout_seconds: Timeout per external call.
            max_retries: Retries after a failed call before giving up.
            retry_backoff_seconds: Base delay before a retry (doubles per retry).
            requests_per_second: Dispatch rate limit (0 disables pacing).
            max_concurrency: Maximum external calls in flight.
            expected_dimensions: Reject vectors of another length (None skips).
            clock: Time source for ``generated_at``.
        """
        self.client = client
        self.cache = cache
        self.ttl_seconds = ttl_seconds
        self.timeout_seconds = timeout_seconds
        self.max_retries = max_retries
        self.retry_backoff_seconds = retry_backoff_seconds
        self.expected_dimensions = expected_dimensions
        self._clock = clock

        self.max_concurrency = max_concurrency
        self._rate_limiter = AsyncRateLimiter(requests_per_second)
        # Bound to one event loop; rebuilt by _bind_loop when the loop changes
        self._loop: asyncio.AbstractEventLoop | None = None
        self._semaphore: asyncio.Semaphore | None = None
        self._inflight: dict[str, asyncio.Future[EmbeddingResult]] = {}

        # Usage tracking
        self.call_count = 0
        self.error_count = 0
        self.cache_hits = 0
        self.cache_misses = 0

    @classmethod
    def from_settings(
        cls,
        settings: "Settings",
        client: EmbeddingClient | None,
        cache: EmbeddingCache,
    ) -> "EmbeddingProvider":
        return cls(
            client,
            cache,
            ttl_seconds=settings.embedding_cache_ttl_seconds,
            timeout_seconds=settings.embedding_timeout_seconds,
            max_retries=settings.embedding_max_retries,
            retry_backoff_seconds=settings.embedding_retry_backoff_seconds,
            requests_per_second=settings.embedding_requests_per_second,
            max_concurrency=settings.embedding_max_concurrency,
            expected_dimensions=settings.embedding_dimensions,
        )

    def is_available(self) -> bool:
        """Check if an external client is configured."""
        return self.client is not None

    async def get_or_compute(self, text: str) -> EmbeddingResult:
        """Return the embedding for a text, computing it on cache miss.

        Concurrent calls for the same uncached text share one external call.

        Args:
            text: Text to embed.

        Returns:
            EmbeddingOk, or EmbeddingUnavailable if the API failed or timed out.
        """
        key = fingerprint_text(text)

        cached = self.cache.get(key)
        if cached is not None:
            self.cache_hits += 1
            return EmbeddingOk(vector=cached, cached=True)
        self.cache_misses += 1

        if self.client is None:
            return EmbeddingUnavailable(key, "embedding client not configured")

        loop = self._bind_loop()
        pending = self._inflight.get(key)
        if pending is not None:
            logger.debug(f"Joining in-flight embedding for {key[:12]}")
            return await asyncio.shield(pending)

        future: asyncio.Future[EmbeddingResult] = loop.create_future()
        self._inflight[key] = future
        try:
            result = await self._compute(key, text)
        except asyncio.CancelledError:
            future.set_result(EmbeddingUnavailable(key, "request cancelled"))
            raise
        except Exception as e:
            logger.error(f"Embedding failed for {key[:12]}: {e}", exc_info=True)
            result = EmbeddingUnavailable(key, f"unexpected error: {e}")
            future.set_result(result)
            return result
        else:
            future.set_result(result)
            return result
        finally:
            if not future.done():
                future.set_result(EmbeddingUnavailable(key, "request aborted"))
            if self._inflight.get(key) is future:
                del self._inflight[key]

    def _bind_loop(self) -> asyncio.AbstractEventLoop:
        """Rebuild loop-bound state when called from a new event loop."""
        loop = asyncio.get_running_loop()
        if self._loop is not loop:
            if self._loop is not None:
                logger.debug("Event loop changed, resetting concurrency state")
            self._loop = loop
            self._semaphore = asyncio.Semaphore(self.max_concurrency)
            # Futures of a finished loop can never be awaited here
            self._inflight.clear()
        return loop

    async def get_or_compute_batch(self, texts: Sequence[str]) -> list[EmbeddingResult]:
        """Embed many texts concurrently with partial-success semantics.

        A slow or failed item never blocks or fails the others; results are
        returned in input order.
        """
        if not texts:
            return []
        results = await asyncio.gather(*(self.get_or_compute(t) for t in texts))
        failed = sum(1 for r in results if isinstance(r, EmbeddingUnavailable))
        if failed:
            logger.warning(f"Batch embedding: {failed}/{len(texts)} unavailable")
        return list(results)

    async def prewarm(self, texts: Iterable[str]) -> dict[str, int]:
        """Populate the cache ahead of requests.

        Returns:
            Counts of embeddings generated, already cached, and failed.
        """
        unique = list(dict.fromkeys(texts))
        if self.client is None:
            logger.warning("Embeddings not available, skipping cache prewarm")
            return {"generated": 0, "cached": 0, "failed": len(unique)}

        logger.info(f"Prewarming embedding cache for {len(unique)} texts")
        results = await self.get_or_compute_batch(unique)
        stats = {
            "generated": sum(1 for r in results if isinstance(r, EmbeddingOk) and not r.cached),
            "cached": sum(1 for r in results if isinstance(r, EmbeddingOk) and r.cached),
            "failed": sum(1 for r in results if isinstance(r, EmbeddingUnavailable)),
        }
        logger.info(
            f"Embeddings ready: {stats['generated']} generated, {stats['cached']} cached, "
            f"{stats['failed']} failed"
        )
        return stats

    async def _compute(self, key: str, text: str) -> EmbeddingResult:
        """Call the API under the concurrency and rate limits, with retry."""
        reason = "unknown error"
        self._bind_loop()
        async with self._semaphore:
            for attempt in range(self.max_retries + 1):
                await self._rate_limiter.wait()
                self.call_count += 1
                try:
                    values = await asyncio.wait_for(
                        self.client.embed(text), timeout=self.timeout_seconds
                    )
                    vector = self._to_vector(key, values)
                except TimeoutError:
                    reason = f"timed out after {self.timeout_seconds}s"
                except EmbeddingClientError as e:
                    reason = str(e)
                except Exception as e:
                    reason = f"unexpected error: {e}"
                    logger.error(f"Embedding call failed for {key[:12]}: {e}", exc_info=True)
                else:
                    self._store(key, vector)
                    return EmbeddingOk(vector=vector)

                self.error_count += 1
                if attempt < self.max_retries:
                    delay = self.retry_backoff_seconds * (2**attempt)
                    logger.warning(
                        f"Embedding error: {reason}. Retrying in {delay}s "
                        f"({attempt + 1}/{self.max_retries})"
                    )
                    await asyncio.sleep(delay)

        logger.warning(f"Embedding unavailable for {key[:12]}: {reason}")
        return EmbeddingUnavailable(key, reason)

    def _store(self, key: str, vector: EmbeddingVector) -> None:
        """Write to the cache; a failed write leaves the result uncached."""
        try:
            self.cache.put(key, vector, self.ttl_seconds)
        except Exception as e:
            logger.warning(f"Embedding cache write failed for {key[:12]}: {e}")

    def _to_vector(self, key: str, values: Sequence[float]) -> EmbeddingVector:
        if not values:
            raise EmbeddingClientError("empty embedding")
        if self.expected_dimensions is not None and len(values) != self.expected_dimensions:
            raise EmbeddingClientError(
                f"Expected {self.expected_dimensions} dimensions, got {len(values)}"
            )
        return EmbeddingVector(
            values=tuple(float(v) for v in values),
            fingerprint=key,
            generated_at=self._clock(),
        )

    def clear_cache(self) -> None:
        self.cache.clear()

    def usage(self) -> dict[str, int]:
        """Get usage statistics."""
        return {
            "call_count": self.call_count,
            "error_count": self.error_count,
            "cache_hits": self.cache_hits,
            "cache_misses": self.cache_misses,
            "in_flight": len(self._inflight),
        }

    def reset_usage(self) -> None:
        """Reset usage counters (e.g., for daily reset)."""
        self.call_count = 0
        self.error_count = 0
        self.cache_hits = 0
        self.cache_misses = 0
