"""Audit finding helpers for the retrieval engine.

Derives the text views and labels of a :class:`Candidate` used for scoring,
embedding and rendering.
"""

from collections.abc import Iterable

from ...models.candidate import Candidate, QueryFilters
from ...models.enums import SeverityLevel

UNKNOWN_PROJECT = "UNKNOWN_PROJECT"
NON_FINDING_CODE_PREFIX = "NF"

# Inclusive lower bounds on the severity scalar
SEVERITY_CRITICAL_MIN = 16.0
SEVERITY_HIGH_MIN = 11.0
SEVERITY_MEDIUM_MIN = 6.0


def build_searchable_text(candidate: Candidate) -> str:
    """Concatenate the fields keyword matching searches over."""
    parts = [
        candidate.project_name,
        candidate.project_id,
        candidate.unit,
        candidate.risk_area,
        candidate.description,
        candidate.code,
        candidate.subholding,
    ]
    return " ".join(p for p in parts if p)


def build_embedding_text(candidate: Candidate) -> str:
    """Build the text a candidate's embedding is derived from.

    The project name is left out so that names never reach the external
    embedding API; the project identifier stands in for it.
    """
    parts = [
        candidate.project_id or UNKNOWN_PROJECT,
        candidate.unit,
        candidate.risk_area,
        candidate.description,
        candidate.code,
    ]
    return " ".join(p for p in parts if p)


def severity_level(severity: float) -> SeverityLevel:
    """Map a severity score to its priority label."""
    if severity >= SEVERITY_CRITICAL_MIN:
        return SeverityLevel.CRITICAL
    if severity >= SEVERITY_HIGH_MIN:
        return SeverityLevel.HIGH
    if severity >= SEVERITY_MEDIUM_MIN:
        return SeverityLevel.MEDIUM
    return SeverityLevel.LOW


def is_non_finding(candidate: Candidate) -> bool:
    """Non-findings carry a code starting with 'NF'."""
    return candidate.code.strip().upper().startswith(NON_FINDING_CODE_PREFIX)


def filter_eligible(candidates: Iterable[Candidate], filters: QueryFilters) -> list[Candidate]:
    """Drop candidates excluded by the severity threshold or non-finding flag.

    Args:
        candidates: Candidate pool, in caller order.
        filters: Request filters.

    Returns:
        Eligible candidates, caller order preserved.
    """
    eligible = []
    for candidate in candidates:
        if filters.min_severity is not None and candidate.severity < filters.min_severity:
            continue
        if filters.exclude_non_findings and is_non_finding(candidate):
            continue
        eligible.append(candidate)
    return eligible
