"""Scoring and context output models."""

from pydantic import BaseModel, ConfigDict, Field

from .candidate import Candidate
from .enums import MatchReason, Strategy

# ============ SCORING MODELS ============


class ScoreBreakdown(BaseModel):
    """Explains how a candidate's score was produced."""

    keyword_score: float = Field(default=0.0, ge=0.0, le=100.0, description="Keyword score (0-100)")
    rule_points: dict[str, float] = Field(
        default_factory=dict, description="Points awarded per keyword rule"
    )
    matched_keywords: list[str] = Field(
        default_factory=list, description="Filter keywords found in the searchable text"
    )
    semantic_score: float | None = Field(
        default=None,
        ge=-1.0,
        le=1.0,
        description="Cosine similarity to the query (None when embeddings were unavailable)",
    )
    combined_score: float | None = Field(
        default=None, description="Weighted fusion score (hybrid strategy only)"
    )
    match_reason: MatchReason = Field(
        default=MatchReason.KEYWORD, description="Signal that produced the final score"
    )


class ScoredCandidate(BaseModel):
    """A candidate with the score it was ranked by. Created fresh per request."""

    model_config = ConfigDict(frozen=True)

    candidate: Candidate
    score: float = Field(..., description="Ranking score; range depends on the strategy")
    breakdown: ScoreBreakdown = Field(default_factory=ScoreBreakdown)

    @property
    def id(self) -> str:
        return self.candidate.id


# ============ CONTEXT MODELS ============


class ContextBudget(BaseModel):
    """Caps applied by the context assembler."""

    model_config = ConfigDict(frozen=True)

    max_candidates: int = Field(default=20, ge=1, description="Maximum candidates to include")
    max_tokens: int = Field(default=10000, ge=1, description="Maximum estimated tokens")
    chars_per_token: int = Field(
        default=4, ge=1, description="Characters per token for the estimate"
    )


class ContextMetadata(BaseModel):
    """Metadata describing an assembled context."""

    strategy_used: Strategy = Field(..., description="Ranking strategy applied")
    candidate_count: int = Field(default=0, ge=0, description="Candidates included in the text")
    dropped_count: int = Field(
        default=0, ge=0, description="Ranked candidates dropped because of the budget"
    )
    average_score: float = Field(default=0.0, description="Mean score of included candidates")
    estimated_tokens: int = Field(default=0, ge=0, description="Estimated tokens of the text")
    over_budget: bool = Field(
        default=False,
        description="True when the single first candidate alone exceeds max_tokens",
    )
    truncated: bool = Field(default=False, description="Whether any ranked candidate was dropped")
    total_candidates: int = Field(
        default=0, ge=0, description="Size of the candidate pool before ranking"
    )
    embedding_fallback: bool = Field(
        default=False,
        description="Whether any included score fell back to keyword scoring",
    )
    stage_counts: dict[str, int] = Field(
        default_factory=dict, description="Candidate counts after each ranking stage"
    )
    timing: dict[str, int] | None = Field(
        default=None,
        description="Timing breakdown in milliseconds (rank_ms, assemble_ms, total_ms)",
    )


class ContextResult(BaseModel):
    """Size-bounded context handed to the language-model prompting layer."""

    context_text: str = Field(default="", description="Rendered context block")
    metadata: ContextMetadata
    selected: list[ScoredCandidate] = Field(
        default_factory=list, description="Candidates included, in rendered order"
    )
