"""Retrieval engine orchestrator.

Ties the pieces together for one request:

1. Validate filters and drop ineligible candidates
2. Select a strategy (or honor an override)
3. Rank with keyword, semantic or hybrid scoring
4. Assemble the budgeted context text

Embedding failures never surface here; the worst case is a keyword-only
ranking flagged with ``embedding_fallback`` in the metadata.
"""

import logging
import time
from collections.abc import Iterable, Mapping, Sequence
from typing import TYPE_CHECKING, Any

from ..config import Settings
from ..config import settings as default_settings
from ..errors import InvalidFilterCombinationError
from ..models.candidate import Candidate, QueryFilters
from ..models.context import ContextBudget, ContextResult, ScoredCandidate
from ..models.enums import Strategy
from .context.assembler import ContextAssembler
from .core.finding import build_embedding_text, filter_eligible
from .core.tokens import get_token_counter
from .embeddings.cache import CacheSweeper, EmbeddingCache, InMemoryEmbeddingCache
from .embeddings.client import EmbeddingClient, GeminiEmbeddingClient
from .embeddings.provider import EmbeddingProvider
from .scoring.constants import (
    DEFAULT_FINAL_LIMIT,
    DEFAULT_KEYWORD_STAGE_LIMIT,
    DEFAULT_MIN_SIMILARITY,
    DEFAULT_SEMANTIC_STAGE_LIMIT,
    HYBRID_KEYWORD_WEIGHT,
    HYBRID_MIN_SIMILARITY,
    HYBRID_SEMANTIC_WEIGHT,
)
from .scoring.hybrid_fusion import HybridCombiner
from .scoring.keyword_scorer import rank_by_keyword
from .scoring.semantic_scorer import SemanticRanker
from .scoring.strategy import select_strategy

if TYPE_CHECKING:
    from ..services.candidate_store import CandidateSource

logger = logging.getLogger(__name__)

FiltersInput = QueryFilters | Mapping[str, Any] | None


def _elapsed_ms(start: float) -> int:
    return int((time.perf_counter() - start) * 1000)


class RetrievalEngine:
    """Builds ranked, budgeted context for audit-finding questions.

    Example:
        engine = RetrievalEngine.from_settings()
        result = await engine.build_context(
            "Analyze safety violations in hospitals from 2024",
            {"period": 2024, "keywords": ["safety", "hospital"]},
            candidates,
        )
        print(result.context_text)
    """

    def __init__(
        self,
        provider: EmbeddingProvider,
        *,
        assembler: ContextAssembler | None = None,
        budget: ContextBudget | None = None,
        keyword_stage_limit: int = DEFAULT_KEYWORD_STAGE_LIMIT,
        semantic_stage_limit: int = DEFAULT_SEMANTIC_STAGE_LIMIT,
        final_limit: int = DEFAULT_FINAL_LIMIT,
        semantic_weight: float = HYBRID_SEMANTIC_WEIGHT,
        keyword_weight: float = HYBRID_KEYWORD_WEIGHT,
        min_similarity: float = DEFAULT_MIN_SIMILARITY,
        hybrid_min_similarity: float = HYBRID_MIN_SIMILARITY,
        sweeper: CacheSweeper | None = None,
    ):
        self.provider = provider
        self.sweeper = sweeper
        self.assembler = assembler or ContextAssembler()
        self.budget = budget or ContextBudget()
        self.final_limit = final_limit
        self.min_similarity = min_similarity
        self.ranker = SemanticRanker(provider)
        self.combiner = HybridCombiner(
            self.ranker,
            keyword_stage_limit=keyword_stage_limit,
            semantic_stage_limit=semantic_stage_limit,
            final_limit=final_limit,
            semantic_weight=semantic_weight,
            keyword_weight=keyword_weight,
            semantic_min_similarity=hybrid_min_similarity,
        )

    @classmethod
    def from_settings(
        cls,
        settings: Settings | None = None,
        *,
        cache: EmbeddingCache | None = None,
        client: EmbeddingClient | None = None,
    ) -> "RetrievalEngine":
        """Build an engine from settings.

        Args:
            settings: Settings to use (the module-level settings when None).
            cache: Embedding cache to share (a fresh in-memory cache when None).
            client: Embedding client (a Gemini client when None and an API
                key is configured; otherwise embeddings are unavailable).

        Expired cache entries are evicted lazily on access. When
        ``embedding_cache_sweep_seconds`` is set and the cache is in memory,
        the engine also owns a ``CacheSweeper``; call ``start_sweeper()``
        from the serving event loop and ``aclose()`` on shutdown.
        """
        settings = settings or default_settings
        if cache is None:
            cache = InMemoryEmbeddingCache(max_size=settings.embedding_cache_max_size)
        if client is None:
            client = GeminiEmbeddingClient.from_settings(settings)

        provider = EmbeddingProvider.from_settings(settings, client, cache)
        sweeper = None
        if settings.embedding_cache_sweep_seconds and isinstance(cache, InMemoryEmbeddingCache):
            sweeper = CacheSweeper(cache, interval_seconds=settings.embedding_cache_sweep_seconds)
        assembler = ContextAssembler(
            get_token_counter(settings.token_estimator, settings.chars_per_token)
        )
        return cls(
            provider,
            assembler=assembler,
            budget=ContextBudget(
                max_candidates=settings.max_context_candidates,
                max_tokens=settings.max_context_tokens,
                chars_per_token=settings.chars_per_token,
            ),
            keyword_stage_limit=settings.keyword_stage_limit,
            semantic_stage_limit=settings.semantic_stage_limit,
            final_limit=settings.final_limit,
            semantic_weight=settings.semantic_weight,
            keyword_weight=settings.keyword_weight,
            min_similarity=settings.min_similarity,
            hybrid_min_similarity=settings.hybrid_min_similarity,
            sweeper=sweeper,
        )

    async def build_context(
        self,
        query_text: str,
        filters: FiltersInput,
        candidates: Sequence[Candidate],
        *,
        strategy: Strategy | str | None = None,
        budget: ContextBudget | None = None,
    ) -> ContextResult:
        """Rank candidates for a query and assemble the context text.

        Args:
            query_text: Natural-language question.
            filters: Request filters (validated here).
            candidates: Candidate pool from the document store.
            strategy: Force a strategy instead of selecting one.
            budget: Override the engine's context budget.

        Returns:
            ContextResult; an empty pool yields empty text and zero counts.

        Raises:
            InvalidFilterCombinationError: If the filters or the strategy are invalid.
        """
        start = time.perf_counter()
        parsed = QueryFilters.parse(filters)
        eligible = filter_eligible(candidates, parsed)
        if strategy is None:
            chosen = select_strategy(query_text, parsed)
        else:
            try:
                chosen = Strategy(strategy)
            except ValueError as e:
                raise InvalidFilterCombinationError(
                    f"Unknown strategy: {strategy!r}", field="strategy"
                ) from e

        logger.info(
            f"Building context: strategy={chosen} pool={len(candidates)} "
            f"eligible={len(eligible)}"
        )

        rank_start = time.perf_counter()
        ranked, stage_counts = await self._rank(chosen, query_text, parsed, eligible)
        rank_ms = _elapsed_ms(rank_start)

        assemble_start = time.perf_counter()
        result = self.assembler.build(
            ranked,
            budget or self.budget,
            chosen,
            total_candidates=len(candidates),
            stage_counts=stage_counts,
        )
        result.metadata.timing = {
            "rank_ms": rank_ms,
            "assemble_ms": _elapsed_ms(assemble_start),
            "total_ms": _elapsed_ms(start),
        }
        return result

    async def retrieve(
        self,
        query_text: str,
        filters: FiltersInput,
        source: "CandidateSource",
        **kwargs: Any,
    ) -> ContextResult:
        """Fetch candidates from a store, then build the context.

        Keyword arguments are passed through to :meth:`build_context`.
        """
        parsed = QueryFilters.parse(filters)
        candidates = await source.query(parsed)
        return await self.build_context(query_text, parsed, candidates, **kwargs)

    async def _rank(
        self,
        strategy: Strategy,
        query_text: str,
        filters: QueryFilters,
        candidates: Sequence[Candidate],
    ) -> tuple[list[ScoredCandidate], dict[str, int]]:
        if not candidates:
            return [], {"pool": 0, "final": 0}

        if strategy == Strategy.HYBRID:
            ranking = await self.combiner.combine_rank(query_text, candidates, filters)
            return ranking.results, ranking.stage_counts

        if strategy == Strategy.SEMANTIC:
            ranked = await self.ranker.rank(
                query_text,
                candidates,
                filters,
                top_k=self.final_limit,
                min_similarity=self.min_similarity,
            )
        else:
            ranked = rank_by_keyword(candidates, filters, limit=self.final_limit)
        return ranked, {"pool": len(candidates), "final": len(ranked)}

    async def prewarm(self, candidates: Iterable[Candidate]) -> dict[str, int]:
        """Compute and cache embeddings for candidates ahead of requests."""
        return await self.provider.prewarm(build_embedding_text(c) for c in candidates)

    def clear_cache(self) -> None:
        self.provider.clear_cache()

    def usage(self) -> dict[str, int]:
        return self.provider.usage()

    def start_sweeper(self) -> bool:
        """Start the background cache sweeper on the running event loop.

        Returns:
            False if the engine has no sweeper.
        """
        if self.sweeper is None:
            return False
        self.sweeper.start()
        logger.info(f"Cache sweeper started (every {self.sweeper.interval_seconds}s)")
        return True

    async def aclose(self) -> None:
        """Stop the cache sweeper and close the embedding client."""
        if self.sweeper is not None:
            await self.sweeper.stop()
        aclose = getattr(self.provider.client, "aclose", None)
        if aclose is not None:
            await aclose()
