"""Keyword scoring for the retrieval engine.

This module provides rule-based relevance scoring of a candidate against the
request filters:
- Period, unit and project exact matches (fixed points each)
- Free-text keyword coverage (case-insensitive substring, distributed points)

Scoring is pure and deterministic: no I/O, no randomness.
"""

import logging
from collections.abc import Iterable, Sequence
from dataclasses import dataclass, field

from ...models.candidate import Candidate, QueryFilters
from ...models.context import ScoreBreakdown, ScoredCandidate
from ...models.enums import MatchReason
from ..core.finding import build_searchable_text
from .constants import (
    KEYWORD_MATCH_MAX_POINTS,
    MAX_KEYWORD_SCORE,
    PERIOD_MATCH_POINTS,
    PROJECT_MATCH_POINTS,
    RULE_KEYWORDS,
    RULE_PERIOD,
    RULE_PROJECT,
    RULE_UNIT,
    UNIT_MATCH_POINTS,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class KeywordScore:
    """Keyword relevance of one candidate.

    Attributes:
        score: Total points in [0, 100].
        rule_points: Points awarded per rule (only rules that matched).
        matched_keywords: Filter keywords found in the searchable text.
    """

    score: float
    rule_points: dict[str, float] = field(default_factory=dict)
    matched_keywords: tuple[str, ...] = ()

    @property
    def normalized(self) -> float:
        """Score rescaled to [0, 1]."""
        return self.score / MAX_KEYWORD_SCORE

    def to_breakdown(self) -> ScoreBreakdown:
        return ScoreBreakdown(
            keyword_score=self.score,
            rule_points=dict(self.rule_points),
            matched_keywords=list(self.matched_keywords),
            match_reason=MatchReason.KEYWORD,
        )


def _same(value: str | None, expected: str | None) -> bool:
    """Exact match, ignoring case and surrounding whitespace."""
    if not value or not expected:
        return False
    return value.strip().casefold() == expected.strip().casefold()


def calculate_keyword_points(
    searchable_text: str,
    keywords: Sequence[str],
) -> tuple[float, tuple[str, ...]]:
    """Calculate keyword coverage points for a text.

    Each keyword is worth ``KEYWORD_MATCH_MAX_POINTS / len(keywords)``, so
    matching every keyword earns the full 25 points.

    Args:
        searchable_text: Text to search in.
        keywords: Keywords to look for (case-insensitive substring).

    Returns:
        Tuple of (points, matched keywords in input order).
    """
    if not keywords:
        return 0.0, ()

    text_lower = searchable_text.casefold()
    matched = tuple(kw for kw in keywords if kw and kw.casefold() in text_lower)
    points = KEYWORD_MATCH_MAX_POINTS * len(matched) / len(keywords)
    return points, matched


def score_candidate(candidate: Candidate, filters: QueryFilters) -> KeywordScore:
    """Calculate keyword relevance score for a candidate.

    Rules (independent, additive, capped at 100):
    - Period exact match: 30
    - Unit exact match: 25
    - Project identifier exact match: 20
    - Keywords found in the searchable text: up to 25, split evenly

    Args:
        candidate: The candidate to score.
        filters: Request filters to match against.

    Returns:
        KeywordScore with the total and the per-rule breakdown.
    """
    rule_points: dict[str, float] = {}

    if _same(candidate.period, filters.period):
        rule_points[RULE_PERIOD] = PERIOD_MATCH_POINTS

    if _same(candidate.unit, filters.unit):
        rule_points[RULE_UNIT] = UNIT_MATCH_POINTS

    # Project filters may carry either the identifier or the display name
    if _same(candidate.project_id, filters.project_id) or _same(
        candidate.project_name, filters.project_id
    ):
        rule_points[RULE_PROJECT] = PROJECT_MATCH_POINTS

    matched: tuple[str, ...] = ()
    if filters.keywords:
        points, matched = calculate_keyword_points(
            build_searchable_text(candidate), filters.keywords
        )
        if points > 0:
            rule_points[RULE_KEYWORDS] = points

    score = min(MAX_KEYWORD_SCORE, sum(rule_points.values()))
    return KeywordScore(score=score, rule_points=rule_points, matched_keywords=matched)


def rank_by_keyword(
    candidates: Iterable[Candidate],
    filters: QueryFilters,
    limit: int | None = None,
) -> list[ScoredCandidate]:
    """Score and rank candidates by keyword relevance.

    Scores are normalized to [0, 1]. Ties are broken by candidate id
    ascending.

    Args:
        candidates: Candidates to rank.
        filters: Request filters.
        limit: Keep only the first ``limit`` results (None keeps all).

    Returns:
        Ranked candidates, best first.
    """
    scored = []
    for candidate in candidates:
        keyword = score_candidate(candidate, filters)
        scored.append(
            ScoredCandidate(
                candidate=candidate,
                score=keyword.normalized,
                breakdown=keyword.to_breakdown(),
            )
        )

    ranked = sort_scored(scored)
    if limit is not None:
        ranked = ranked[:limit]

    logger.debug(f"Keyword ranking: {len(scored)} scored, {len(ranked)} kept")
    return ranked


def sort_scored(scored: Iterable[ScoredCandidate]) -> list[ScoredCandidate]:
    """Sort by score descending, candidate id ascending for ties."""
    return sorted(scored, key=lambda sc: (-sc.score, sc.candidate.id))
