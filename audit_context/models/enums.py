"""Enumeration types for the retrieval engine."""

from enum import StrEnum


class Strategy(StrEnum):
    """Ranking strategy applied to a request."""

    KEYWORD = "keyword"
    SEMANTIC = "semantic"
    HYBRID = "hybrid"


class MatchReason(StrEnum):
    """Which signal produced a candidate's final score."""

    KEYWORD = "keyword"  # Keyword rules only (or embedding fallback)
    SEMANTIC = "semantic"  # Cosine similarity
    HYBRID = "hybrid"  # Weighted semantic + keyword fusion


class SeverityLevel(StrEnum):
    """Priority label derived from a finding's severity score."""

    CRITICAL = "Critical"
    HIGH = "High"
    MEDIUM = "Medium"
    LOW = "Low"


class TokenEstimator(StrEnum):
    """How the context assembler counts tokens."""

    CHARS = "chars"  # len(text) / chars_per_token
    TIKTOKEN = "tiktoken"  # cl100k_base encoding
