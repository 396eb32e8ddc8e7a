"""Pytest fixtures and test utilities for the retrieval engine test suite."""

import asyncio
import hashlib
from collections import Counter

import pytest

from audit_context.engine.core.query import normalize_text
from audit_context.engine.embeddings.cache import InMemoryEmbeddingCache
from audit_context.engine.embeddings.provider import EmbeddingProvider
from audit_context.errors import EmbeddingClientError
from audit_context.models.candidate import Candidate

DIMENSIONS = 8


# ============================================================================
# FAKES
# ============================================================================


def hash_vector(text: str, dimensions: int = DIMENSIONS) -> list[float]:
    """Deterministic pseudo-embedding derived from the normalized text."""
    digest = hashlib.sha256(normalize_text(text).encode("utf-8")).digest()
    return [(digest[i] - 127.5) / 127.5 for i in range(dimensions)]


class FakeEmbeddingClient:
    """Embedding client that records calls and can be told to fail.

    Attributes:
        calls: Number of embed() calls per exact input text.
        fail_texts: Texts whose calls raise EmbeddingClientError.
        fail_all: Make every call fail.
        delay: Seconds to sleep inside each call.
        vectors: Explicit vectors per text (hash vectors otherwise).
    """

    def __init__(self, dimensions: int = DIMENSIONS, delay: float = 0.0):
        self.dimensions = dimensions
        self.delay = delay
        self.calls: Counter[str] = Counter()
        self.fail_texts: set[str] = set()
        self.fail_all = False
        self.vectors: dict[str, list[float]] = {}

    @property
    def total_calls(self) -> int:
        return sum(self.calls.values())

    async def embed(self, text: str) -> list[float]:
        self.calls[text] += 1
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.fail_all or text in self.fail_texts:
            raise EmbeddingClientError("HTTP 503: unavailable", status_code=503)
        if text in self.vectors:
            return list(self.vectors[text])
        return hash_vector(text, self.dimensions)


class FakeClock:
    """Manually advanced clock."""

    def __init__(self, now: float = 1_700_000_000.0):
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


def make_candidate(id: str = "AR-001", **overrides) -> Candidate:
    """Build a candidate with sensible defaults."""
    data = {
        "id": id,
        "period": "2024",
        "unit": "Engineering",
        "project_id": "PRJ-1",
        "project_name": "Harbor Tower",
        "risk_area": "Safety",
        "description": "Fire extinguishers not inspected",
        "code": "F-01",
        "subholding": "SH1",
        "severity": 8,
    }
    data.update(overrides)
    return Candidate(**data)


# ============================================================================
# FIXTURES
# ============================================================================


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def fake_client():
    return FakeEmbeddingClient()


@pytest.fixture
def cache(clock):
    return InMemoryEmbeddingCache(clock=clock)


@pytest.fixture
def provider(fake_client, cache, clock):
    """Provider with no pacing or backoff so tests run fast."""
    return EmbeddingProvider(
        fake_client,
        cache,
        timeout_seconds=1.0,
        max_retries=1,
        retry_backoff_seconds=0.0,
        requests_per_second=0,
        max_concurrency=10,
        clock=clock,
    )


@pytest.fixture
def offline_provider(cache, clock):
    """Provider without an embedding client."""
    return EmbeddingProvider(None, cache, requests_per_second=0, clock=clock)
