"""
Tests for the embedding cache.

Tests:
- Fingerprints are stable under whitespace/Unicode normalization
- TTL expiry (never served at or after expires_at)
- Size bound eviction, sweeping and statistics
"""

import asyncio

from conftest import FakeClock

from audit_context.engine.embeddings.cache import (
    CacheSweeper,
    EmbeddingVector,
    InMemoryEmbeddingCache,
    fingerprint_text,
)


def _vector(key: str, generated_at: float = 0.0) -> EmbeddingVector:
    return EmbeddingVector(values=(0.1, 0.2, 0.3), fingerprint=key, generated_at=generated_at)


class TestFingerprint:
    def test_whitespace_normalized(self):
        assert fingerprint_text("late  payment\n of invoices ") == fingerprint_text(
            "late payment of invoices"
        )

    def test_unicode_normalized(self):
        # Full-width characters fold to ASCII under NFKC
        assert fingerprint_text("ＡＢＣ") == fingerprint_text("ABC")

    def test_case_sensitive(self):
        assert fingerprint_text("Cash") != fingerprint_text("cash")

    def test_hex_sha256(self):
        key = fingerprint_text("anything")
        assert len(key) == 64
        int(key, 16)


class TestInMemoryEmbeddingCache:
    """Test suite for InMemoryEmbeddingCache."""

    def test_get_put(self, cache):
        vector = _vector("k")
        assert cache.get("k") is None
        cache.put("k", vector, ttl=60)
        assert cache.get("k") is vector
        assert len(cache) == 1

    def test_expiry_boundary(self):
        clock = FakeClock(now=1000.0)
        cache = InMemoryEmbeddingCache(clock=clock)
        cache.put("k", _vector("k"), ttl=10)

        clock.advance(9.5)
        assert cache.get("k") is not None

        clock.advance(0.5)
        assert cache.get("k") is None
        assert len(cache) == 0

    def test_overwrite_extends_ttl(self, cache, clock):
        cache.put("k", _vector("k"), ttl=10)
        clock.advance(8)
        cache.put("k", _vector("k"), ttl=10)
        clock.advance(8)
        assert cache.get("k") is not None

    def test_delete_and_clear(self, cache):
        cache.put("a", _vector("a"), ttl=60)
        cache.put("b", _vector("b"), ttl=60)
        cache.delete("a")
        cache.delete("missing")
        assert cache.get("a") is None
        cache.clear()
        assert len(cache) == 0

    def test_max_size_evicts_soonest_expiring(self, clock):
        cache = InMemoryEmbeddingCache(clock=clock, max_size=2)
        cache.put("short", _vector("short"), ttl=10)
        cache.put("long", _vector("long"), ttl=100)
        cache.put("new", _vector("new"), ttl=50)
        assert cache.get("short") is None
        assert cache.get("long") is not None
        assert cache.get("new") is not None

    def test_sweep_expired(self, cache, clock):
        cache.put("old", _vector("old"), ttl=5)
        cache.put("fresh", _vector("fresh"), ttl=500)
        clock.advance(10)
        assert cache.sweep_expired() == 1
        assert len(cache) == 1

    def test_stats(self, cache):
        cache.put("a", _vector("a", generated_at=50.0), ttl=60)
        cache.put("b", _vector("b", generated_at=20.0), ttl=60)
        cache.get("a")
        cache.get("missing")
        stats = cache.stats()
        assert stats == {"size": 2, "oldest_entry": 20.0, "hits": 1, "misses": 1}


class TestCacheSweeper:
    async def test_sweeps_in_background(self, cache, clock):
        cache.put("old", _vector("old"), ttl=5)
        clock.advance(10)

        sweeper = CacheSweeper(cache, interval_seconds=0.01)
        sweeper.start()
        assert sweeper.running
        await asyncio.sleep(0.05)
        await sweeper.stop()

        assert not sweeper.running
        assert len(cache) == 0
