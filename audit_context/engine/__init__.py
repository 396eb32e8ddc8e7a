"""Retrieval engine for audit findings.

Usage:
    from audit_context.engine import RetrievalEngine

    engine = RetrievalEngine.from_settings()
    result = await engine.build_context(query, filters, candidates)
"""

from .retrieval import RetrievalEngine

__all__ = ["RetrievalEngine"]
