"""Semantic scoring for the retrieval engine.

This module ranks candidates by cosine similarity between the query embedding
and each candidate's embedding, obtained through the embedding provider.

When embeddings are unavailable the ranker falls back to keyword scoring:
- Query embedding unavailable: every candidate uses its keyword score
- One candidate embedding unavailable: that candidate uses its keyword score
so ranking never aborts solely because the embedding API is down.
"""

from __future__ import annotations

import logging
import math
from collections.abc import Sequence

from ...models.candidate import Candidate, QueryFilters
from ...models.context import ScoreBreakdown, ScoredCandidate
from ...models.enums import MatchReason
from ..core.finding import build_embedding_text
from ..core.query import extract_keywords
from ..embeddings.provider import EmbeddingOk, EmbeddingProvider
from .constants import DEFAULT_FINAL_LIMIT, DEFAULT_MIN_SIMILARITY
from .keyword_scorer import KeywordScore, score_candidate, sort_scored

logger = logging.getLogger(__name__)


def cosine_similarity(vec_a: Sequence[float], vec_b: Sequence[float]) -> float:
    """Cosine similarity ``dot(a, b) / (|a| * |b|)``, clamped to [-1, 1].

    Zero vectors have similarity 0.0.

    Raises:
        ValueError: If the vectors have different lengths.
    """
    if len(vec_a) != len(vec_b):
        raise ValueError(f"Vectors must have same length ({len(vec_a)} != {len(vec_b)})")

    dot = math.fsum(a * b for a, b in zip(vec_a, vec_b))
    norm_a = math.sqrt(math.fsum(a * a for a in vec_a))
    norm_b = math.sqrt(math.fsum(b * b for b in vec_b))
    if norm_a == 0 or norm_b == 0:
        return 0.0
    return max(-1.0, min(1.0, dot / (norm_a * norm_b)))


def fallback_filters(query_text: str, filters: QueryFilters) -> QueryFilters:
    """Filters used to keyword-score candidates whose embedding is unavailable.

    If the request carries no keywords, keywords extracted from the query
    text stand in so the fallback still reflects what was asked.
    """
    if filters.keywords:
        return filters
    keywords = extract_keywords(query_text)
    if not keywords:
        return filters
    return filters.model_copy(update={"keywords": tuple(keywords)})


class SemanticRanker:
    """Ranks candidates by embedding similarity to the query.

    Ranking is deterministic for identical cached embeddings: results are
    ordered by score descending, candidate id ascending, independent of the
    order in which concurrent embedding calls complete.
    """

    def __init__(self, provider: EmbeddingProvider):
        """Initialize the semantic ranker.

        Args:
            provider: Embedding provider (cache-aware, never raises).
        """
        self.provider = provider

    async def score_all(
        self,
        query_text: str,
        candidates: Sequence[Candidate],
        filters: QueryFilters | None = None,
    ) -> list[ScoredCandidate]:
        """Score every candidate without thresholding or truncation.

        Args:
            query_text: The search query.
            candidates: Candidates to score.
            filters: Request filters (used for keyword scores and fallback).

        Returns:
            Unsorted scored candidates. ``breakdown.semantic_score`` is None
            and ``match_reason`` is KEYWORD for fallback scores.
        """
        if not candidates:
            return []

        filters = filters or QueryFilters()
        keyword_scores = [score_candidate(c, filters) for c in candidates]

        query_result = await self.provider.get_or_compute(query_text)
        if not isinstance(query_result, EmbeddingOk):
            logger.warning(
                f"Query embedding unavailable ({query_result.reason}), "
                f"falling back to keyword scoring for {len(candidates)} candidates"
            )
            return self._fallback_all(query_text, candidates, filters, keyword_scores)

        query_vector = query_result.vector.values
        texts = [build_embedding_text(c) for c in candidates]
        results = await self.provider.get_or_compute_batch(texts)

        fallback = fallback_filters(query_text, filters)
        scored: list[ScoredCandidate] = []
        fallback_count = 0
        for candidate, keyword, result in zip(candidates, keyword_scores, results):
            similarity = None
            if isinstance(result, EmbeddingOk):
                try:
                    similarity = cosine_similarity(query_vector, result.vector.values)
                except ValueError as e:
                    logger.warning(f"Skipping embedding for {candidate.id}: {e}")

            if similarity is None:
                fallback_count += 1
                scored.append(self._fallback_one(candidate, keyword, fallback, filters))
                continue

            scored.append(
                ScoredCandidate(
                    candidate=candidate,
                    score=similarity,
                    breakdown=ScoreBreakdown(
                        keyword_score=keyword.score,
                        rule_points=dict(keyword.rule_points),
                        matched_keywords=list(keyword.matched_keywords),
                        semantic_score=similarity,
                        match_reason=MatchReason.SEMANTIC,
                    ),
                )
            )

        if fallback_count:
            logger.warning(
                f"Embeddings unavailable for {fallback_count}/{len(candidates)} candidates, "
                f"using keyword scores"
            )
        return scored

    async def rank(
        self,
        query_text: str,
        candidates: Sequence[Candidate],
        filters: QueryFilters | None = None,
        top_k: int = DEFAULT_FINAL_LIMIT,
        min_similarity: float = DEFAULT_MIN_SIMILARITY,
    ) -> list[ScoredCandidate]:
        """Rank candidates by semantic similarity to the query.

        Args:
            query_text: The search query.
            candidates: Candidates to rank.
            filters: Request filters (keyword scores and fallback).
            top_k: Maximum number of results.
            min_similarity: Minimum cosine similarity for embedding scores.
                Keyword fallback scores are not cosine values and are kept.

        Returns:
            Ranked candidates, best first, at most ``top_k``.
        """
        scored = await self.score_all(query_text, candidates, filters)
        kept = [
            sc
            for sc in scored
            if sc.breakdown.semantic_score is None or sc.breakdown.semantic_score >= min_similarity
        ]
        ranked = sort_scored(kept)[:top_k]
        logger.info(
            f"Semantic ranking: {len(candidates)} candidates, {len(kept)} above "
            f"{min_similarity}, returning {len(ranked)}"
        )
        return ranked

    def _fallback_all(
        self,
        query_text: str,
        candidates: Sequence[Candidate],
        filters: QueryFilters,
        keyword_scores: Sequence[KeywordScore],
    ) -> list[ScoredCandidate]:
        fallback = fallback_filters(query_text, filters)
        return [
            self._fallback_one(candidate, keyword, fallback, filters)
            for candidate, keyword in zip(candidates, keyword_scores)
        ]

    @staticmethod
    def _fallback_one(
        candidate: Candidate,
        keyword: KeywordScore,
        fallback: QueryFilters,
        filters: QueryFilters,
    ) -> ScoredCandidate:
        if fallback is not filters:
            keyword = score_candidate(candidate, fallback)
        breakdown = keyword.to_breakdown()
        return ScoredCandidate(candidate=candidate, score=keyword.normalized, breakdown=breakdown)
