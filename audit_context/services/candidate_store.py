"""Candidate sources for the retrieval engine.

The engine only reads from a store; it never mutates or writes back.
"""

import logging
from collections.abc import Iterable
from typing import Protocol

from ..engine.core.finding import filter_eligible
from ..models.candidate import Candidate, QueryFilters

logger = logging.getLogger(__name__)


class CandidateSource(Protocol):
    """A document store that can return the candidates matching filters."""

    async def query(self, filters: QueryFilters) -> list[Candidate]: ...


def _matches(value: str | None, expected: str | None) -> bool:
    if expected is None:
        return True
    return value is not None and value.strip().casefold() == expected.casefold()


class InMemoryCandidateSource:
    """Candidate source over a fixed list of findings.

    Applies the structural filters (period, unit, project) and the
    severity/non-finding eligibility filters. Keywords are left to the
    scorers.
    """

    def __init__(self, candidates: Iterable[Candidate]):
        self._candidates = list(candidates)

    def __len__(self) -> int:
        return len(self._candidates)

    async def query(self, filters: QueryFilters) -> list[Candidate]:
        matched = [
            c
            for c in self._candidates
            if _matches(c.period, filters.period)
            and _matches(c.unit, filters.unit)
            and (
                _matches(c.project_id, filters.project_id)
                or _matches(c.project_name, filters.project_id)
            )
        ]
        result = filter_eligible(matched, filters)
        logger.debug(f"Candidate query: {len(result)}/{len(self._candidates)} matched")
        return result
