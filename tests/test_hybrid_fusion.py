"""
Tests for three-stage hybrid ranking.

Tests:
- Stage narrowing is monotonic (final <= semantic <= keyword <= pool)
- Combined score = 0.7 * semantic + 0.3 * keyword / 100
- Degraded (no embeddings) ranking matches keyword ordering
"""

import pytest
from conftest import make_candidate

from audit_context.engine.scoring.hybrid_fusion import HybridCombiner, fuse_scores
from audit_context.engine.scoring.keyword_scorer import rank_by_keyword
from audit_context.engine.scoring.semantic_scorer import SemanticRanker
from audit_context.models import MatchReason, QueryFilters

QUERY = "Analyze safety violations in hospitals from 2024"
FILTERS = QueryFilters(period="2024", keywords=("safety", "hospital"))


def _pool(size: int):
    units = ["Engineering", "Finance", "Operations"]
    descriptions = [
        "Safety signage missing in hospital wing",
        "Hospital waste disposal log incomplete",
        "Fire safety drill not performed",
        "Vendor invoices paid late",
    ]
    return [
        make_candidate(
            f"AR-{i:03d}",
            period="2024" if i % 2 else "2023",
            unit=units[i % len(units)],
            description=descriptions[i % len(descriptions)],
        )
        for i in range(size)
    ]


def test_fuse_scores():
    assert fuse_scores(0.5, 80.0) == pytest.approx(0.35 + 0.24)
    assert fuse_scores(1.0, 100.0) == pytest.approx(1.0)


class TestHybridCombiner:
    """Test suite for HybridCombiner.combine_rank."""

    async def test_stage_narrowing(self, provider):
        combiner = HybridCombiner(SemanticRanker(provider))
        ranking = await combiner.combine_rank(QUERY, _pool(150), FILTERS)

        assert ranking.stage_counts == {"pool": 150, "keyword": 60, "semantic": 30, "final": 20}
        assert len(ranking.results) == 20

    async def test_small_pool(self, provider):
        combiner = HybridCombiner(SemanticRanker(provider))
        ranking = await combiner.combine_rank(QUERY, _pool(7), FILTERS)

        counts = ranking.stage_counts
        assert counts["final"] <= counts["semantic"] <= counts["keyword"] <= counts["pool"] == 7
        assert len(ranking.results) == 7

    async def test_combined_scores(self, provider):
        combiner = HybridCombiner(SemanticRanker(provider))
        ranking = await combiner.combine_rank(QUERY, _pool(40), FILTERS)

        scores = [sc.score for sc in ranking.results]
        assert scores == sorted(scores, reverse=True)
        for sc in ranking.results:
            breakdown = sc.breakdown
            assert breakdown.match_reason == MatchReason.HYBRID
            assert breakdown.semantic_score is not None
            expected = 0.7 * breakdown.semantic_score + 0.3 * breakdown.keyword_score / 100
            assert sc.score == pytest.approx(expected)
            assert breakdown.combined_score == sc.score

    async def test_degrades_to_keyword_order(self, offline_provider):
        pool = _pool(50)
        combiner = HybridCombiner(SemanticRanker(offline_provider))
        ranking = await combiner.combine_rank(QUERY, pool, FILTERS)

        expected = [sc.id for sc in rank_by_keyword(pool, FILTERS, limit=20)]
        assert [sc.id for sc in ranking.results] == expected
        assert all(sc.breakdown.semantic_score is None for sc in ranking.results)

    async def test_custom_limits(self, provider):
        combiner = HybridCombiner(
            SemanticRanker(provider), keyword_stage_limit=10, semantic_stage_limit=5, final_limit=3
        )
        ranking = await combiner.combine_rank(QUERY, _pool(30), FILTERS)
        assert ranking.stage_counts == {"pool": 30, "keyword": 10, "semantic": 5, "final": 3}

    def test_limits_must_narrow(self, provider):
        with pytest.raises(ValueError, match="must narrow"):
            HybridCombiner(SemanticRanker(provider), semantic_stage_limit=100)

    async def test_embeds_only_keyword_survivors(self, provider, fake_client):
        combiner = HybridCombiner(
            SemanticRanker(provider), keyword_stage_limit=10, semantic_stage_limit=5, final_limit=3
        )
        await combiner.combine_rank(QUERY, _pool(30), FILTERS)
        # 10 candidate embeddings (some texts repeat across the pool) + 1 query
        assert fake_client.total_calls <= 11
