"""Scoring constants for the retrieval engine.

This module contains all constants used by keyword and hybrid ranking:
- Keyword rule weights
- Hybrid fusion weights and stage cutoffs
"""

# ---------------------------------------------------------------------------
# Keyword rule weights. Rules are independent and additive; the total is
# capped at MAX_KEYWORD_SCORE.
# ---------------------------------------------------------------------------
PERIOD_MATCH_POINTS = 30.0
UNIT_MATCH_POINTS = 25.0
PROJECT_MATCH_POINTS = 20.0
KEYWORD_MATCH_MAX_POINTS = 25.0  # Distributed evenly across filter keywords
MAX_KEYWORD_SCORE = 100.0

RULE_PERIOD = "period"
RULE_UNIT = "unit"
RULE_PROJECT = "project"
RULE_KEYWORDS = "keywords"

# ---------------------------------------------------------------------------
# Hybrid fusion. Fixed weights; stage cutoffs are defaults that settings may
# override (150 -> 60 -> 30 -> 20 in production traffic).
# ---------------------------------------------------------------------------
HYBRID_SEMANTIC_WEIGHT = 0.7
HYBRID_KEYWORD_WEIGHT = 0.3

DEFAULT_KEYWORD_STAGE_LIMIT = 60
DEFAULT_SEMANTIC_STAGE_LIMIT = 30
DEFAULT_FINAL_LIMIT = 20

DEFAULT_MIN_SIMILARITY = 0.3
HYBRID_MIN_SIMILARITY = -1.0  # Stage 2 narrows by count only

