"""Services the retrieval engine consumes."""

from .candidate_store import CandidateSource, InMemoryCandidateSource

__all__ = ["CandidateSource", "InMemoryCandidateSource"]
