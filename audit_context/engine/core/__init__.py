"""Engine core module.

This module contains core utilities shared by the scorers and the assembler:
- Query text handling (analytical intent, keyword extraction, normalization)
- Audit finding views (searchable text, embedding text, severity labels)
- Token counting
"""

from .finding import (
    build_embedding_text,
    build_searchable_text,
    filter_eligible,
    is_non_finding,
    severity_level,
)
from .query import (
    ANALYTICAL_TERMS,
    STOP_WORDS,
    extract_keywords,
    find_analytical_terms,
    has_analytical_intent,
    normalize_text,
)
from .tokens import count_tokens, estimate_tokens, get_encoder, get_token_counter

__all__ = [
    # Finding views
    "build_embedding_text",
    "build_searchable_text",
    "filter_eligible",
    "is_non_finding",
    "severity_level",
    # Query utilities
    "ANALYTICAL_TERMS",
    "STOP_WORDS",
    "extract_keywords",
    "find_analytical_terms",
    "has_analytical_intent",
    "normalize_text",
    # Token utilities
    "count_tokens",
    "estimate_tokens",
    "get_encoder",
    "get_token_counter",
]
