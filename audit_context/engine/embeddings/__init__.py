"""Embedding cache, provider adapter and API client.

Usage:
    from audit_context.engine.embeddings import (
        EmbeddingProvider,
        GeminiEmbeddingClient,
        InMemoryEmbeddingCache,
    )
"""

from .cache import (
    CacheEntry,
    CacheSweeper,
    EmbeddingCache,
    EmbeddingVector,
    InMemoryEmbeddingCache,
    fingerprint_text,
)
from .client import EmbeddingClient, GeminiEmbeddingClient
from .provider import (
    AsyncRateLimiter,
    EmbeddingOk,
    EmbeddingProvider,
    EmbeddingResult,
    EmbeddingUnavailable,
)

__all__ = [
    # Cache
    "CacheEntry",
    "CacheSweeper",
    "EmbeddingCache",
    "EmbeddingVector",
    "InMemoryEmbeddingCache",
    "fingerprint_text",
    # Client
    "EmbeddingClient",
    "GeminiEmbeddingClient",
    # Provider
    "AsyncRateLimiter",
    "EmbeddingOk",
    "EmbeddingProvider",
    "EmbeddingResult",
    "EmbeddingUnavailable",
]
