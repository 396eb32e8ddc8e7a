"""Three-stage hybrid ranking.

Stage 1 keyword-scores the whole pool and keeps the best few (cheap, no API
calls). Stage 2 semantically ranks the survivors. Stage 3 fuses both signals
into ``semantic_weight * semantic + keyword_weight * keyword / 100`` and keeps
the final cut. Stage counts never grow: final <= stage 2 <= stage 1 <= pool.
"""

import logging
from collections.abc import Sequence
from dataclasses import dataclass, field

from ...models.candidate import Candidate, QueryFilters
from ...models.context import ScoreBreakdown, ScoredCandidate
from ...models.enums import MatchReason
from .constants import (
    DEFAULT_FINAL_LIMIT,
    DEFAULT_KEYWORD_STAGE_LIMIT,
    DEFAULT_SEMANTIC_STAGE_LIMIT,
    HYBRID_KEYWORD_WEIGHT,
    HYBRID_MIN_SIMILARITY,
    HYBRID_SEMANTIC_WEIGHT,
    MAX_KEYWORD_SCORE,
)
from .keyword_scorer import rank_by_keyword, sort_scored
from .semantic_scorer import SemanticRanker

logger = logging.getLogger(__name__)


@dataclass
class HybridRanking:
    """Fused ranking plus the number of candidates left after each stage."""

    results: list[ScoredCandidate]
    stage_counts: dict[str, int] = field(default_factory=dict)


def fuse_scores(
    semantic: float,
    keyword_score: float,
    semantic_weight: float = HYBRID_SEMANTIC_WEIGHT,
    keyword_weight: float = HYBRID_KEYWORD_WEIGHT,
) -> float:
    """Weighted fusion of a semantic score and a 0-100 keyword score."""
    return semantic_weight * semantic + keyword_weight * keyword_score / MAX_KEYWORD_SCORE


class HybridCombiner:
    """Narrows a pool by keyword, then semantic, then fused score.

    Example:
        combiner = HybridCombiner(SemanticRanker(provider))
        ranking = await combiner.combine_rank(query, candidates, filters)
        ranking.stage_counts  # {"pool": 150, "keyword": 60, "semantic": 30, "final": 20}
    """

    def __init__(
        self,
        ranker: SemanticRanker,
        keyword_stage_limit: int = DEFAULT_KEYWORD_STAGE_LIMIT,
        semantic_stage_limit: int = DEFAULT_SEMANTIC_STAGE_LIMIT,
        final_limit: int = DEFAULT_FINAL_LIMIT,
        semantic_weight: float = HYBRID_SEMANTIC_WEIGHT,
        keyword_weight: float = HYBRID_KEYWORD_WEIGHT,
        semantic_min_similarity: float = HYBRID_MIN_SIMILARITY,
    ):
        if not final_limit <= semantic_stage_limit <= keyword_stage_limit:
            raise ValueError(
                f"Stage limits must narrow, got {keyword_stage_limit} -> "
                f"{semantic_stage_limit} -> {final_limit}"
            )
        self.ranker = ranker
        self.keyword_stage_limit = keyword_stage_limit
        self.semantic_stage_limit = semantic_stage_limit
        self.final_limit = final_limit
        self.semantic_weight = semantic_weight
        self.keyword_weight = keyword_weight
        self.semantic_min_similarity = semantic_min_similarity

    async def combine_rank(
        self,
        query_text: str,
        candidates: Sequence[Candidate],
        filters: QueryFilters,
    ) -> HybridRanking:
        """Rank candidates with the three-stage hybrid pipeline.

        Candidates whose embedding is unavailable use their normalized
        keyword score as the semantic component.

        Args:
            query_text: The search query.
            candidates: Candidate pool.
            filters: Request filters.

        Returns:
            HybridRanking ordered by combined score desc, id asc.
        """
        stage_counts = {"pool": len(candidates)}

        # Stage 1: keyword narrowing
        keyword_ranked = rank_by_keyword(candidates, filters, limit=self.keyword_stage_limit)
        stage_counts["keyword"] = len(keyword_ranked)
        keyword_by_id = {sc.id: sc.breakdown for sc in keyword_ranked}

        # Stage 2: semantic narrowing
        semantic_ranked = await self.ranker.rank(
            query_text,
            [sc.candidate for sc in keyword_ranked],
            filters,
            top_k=self.semantic_stage_limit,
            min_similarity=self.semantic_min_similarity,
        )
        stage_counts["semantic"] = len(semantic_ranked)

        # Stage 3: fusion
        fused = []
        for sc in semantic_ranked:
            keyword = keyword_by_id[sc.id]
            semantic = sc.breakdown.semantic_score
            if semantic is None:
                semantic = sc.score  # keyword fallback, already in [0, 1]
            combined = fuse_scores(
                semantic, keyword.keyword_score, self.semantic_weight, self.keyword_weight
            )
            fused.append(
                ScoredCandidate(
                    candidate=sc.candidate,
                    score=combined,
                    breakdown=ScoreBreakdown(
                        keyword_score=keyword.keyword_score,
                        rule_points=dict(keyword.rule_points),
                        matched_keywords=list(keyword.matched_keywords),
                        semantic_score=sc.breakdown.semantic_score,
                        combined_score=combined,
                        match_reason=MatchReason.HYBRID,
                    ),
                )
            )

        results = sort_scored(fused)[: self.final_limit]
        stage_counts["final"] = len(results)

        logger.info(
            f"Hybrid ranking: {stage_counts['pool']} → {stage_counts['keyword']} → "
            f"{stage_counts['semantic']} → {stage_counts['final']}"
        )
        return HybridRanking(results=results, stage_counts=stage_counts)
