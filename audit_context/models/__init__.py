"""Pydantic models for the retrieval engine.

Import from submodules directly for narrower imports:

    from audit_context.models.enums import Strategy
    from audit_context.models.context import ContextResult
"""

# ============ ENUMS ============
from .enums import MatchReason, SeverityLevel, Strategy, TokenEstimator

# ============ CANDIDATE MODELS ============
from .candidate import Candidate, QueryFilters

# ============ CONTEXT MODELS ============
from .context import (
    ContextBudget,
    ContextMetadata,
    ContextResult,
    ScoreBreakdown,
    ScoredCandidate,
)

__all__ = [
    # Enums
    "MatchReason",
    "SeverityLevel",
    "Strategy",
    "TokenEstimator",
    # Candidates
    "Candidate",
    "QueryFilters",
    # Context
    "ContextBudget",
    "ContextMetadata",
    "ContextResult",
    "ScoreBreakdown",
    "ScoredCandidate",
]
