"""Scoring engine for audit finding retrieval.

This package provides the ranking algorithms:
- Rule-based keyword scoring (period, unit, project, keywords)
- Semantic ranking via embeddings, with keyword fallback
- Three-stage hybrid fusion
- Strategy selection from query intent and filters

Usage:
    from audit_context.engine.scoring import (
        HybridCombiner,
        SemanticRanker,
        rank_by_keyword,
        select_strategy,
    )
"""

from .constants import (
    DEFAULT_FINAL_LIMIT,
    DEFAULT_KEYWORD_STAGE_LIMIT,
    DEFAULT_MIN_SIMILARITY,
    DEFAULT_SEMANTIC_STAGE_LIMIT,
    HYBRID_KEYWORD_WEIGHT,
    HYBRID_MIN_SIMILARITY,
    HYBRID_SEMANTIC_WEIGHT,
    MAX_KEYWORD_SCORE,
)
from .hybrid_fusion import HybridCombiner, HybridRanking, fuse_scores
from .keyword_scorer import (
    KeywordScore,
    calculate_keyword_points,
    rank_by_keyword,
    score_candidate,
    sort_scored,
)
from .semantic_scorer import SemanticRanker, cosine_similarity, fallback_filters
from .strategy import select_strategy

__all__ = [
    # Constants
    "DEFAULT_FINAL_LIMIT",
    "DEFAULT_KEYWORD_STAGE_LIMIT",
    "DEFAULT_MIN_SIMILARITY",
    "DEFAULT_SEMANTIC_STAGE_LIMIT",
    "HYBRID_KEYWORD_WEIGHT",
    "HYBRID_MIN_SIMILARITY",
    "HYBRID_SEMANTIC_WEIGHT",
    "MAX_KEYWORD_SCORE",
    # Keyword scorer
    "KeywordScore",
    "calculate_keyword_points",
    "rank_by_keyword",
    "score_candidate",
    "sort_scored",
    # Semantic scorer
    "SemanticRanker",
    "cosine_similarity",
    "fallback_filters",
    # Hybrid fusion
    "HybridCombiner",
    "HybridRanking",
    "fuse_scores",
    # Strategy
    "select_strategy",
]
