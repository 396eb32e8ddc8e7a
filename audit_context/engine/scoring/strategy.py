"""Ranking strategy selection.

Chooses keyword, semantic or hybrid ranking from the query text and the
filters. Pure function of its two inputs (~0 ms, no LLM call).
"""

import logging

from ...models.candidate import QueryFilters
from ...models.enums import Strategy
from ..core.query import find_analytical_terms

logger = logging.getLogger(__name__)


def select_strategy(query_text: str, filters: QueryFilters) -> Strategy:
    """Return the ranking strategy for a request.

    Decision table:

    ============  ===============  ========
    analytical    specific filter  strategy
    ============  ===============  ========
    yes           yes              HYBRID
    yes           no               SEMANTIC
    no            yes              KEYWORD
    no            no               HYBRID
    ============  ===============  ========

    "Analytical" means the query contains a term from the analytical lexicon
    (why, how, analyze, compare, trend, ...). "Specific filter" means any of
    period, unit, project or keywords is set.

    Args:
        query_text: Natural-language query.
        filters: Request filters.

    Returns:
        The strategy to apply.
    """
    analytical = find_analytical_terms(query_text or "")
    specific = filters.has_specific_constraint

    if analytical and specific:
        strategy = Strategy.HYBRID
    elif analytical:
        strategy = Strategy.SEMANTIC
    elif specific:
        strategy = Strategy.KEYWORD
    else:
        strategy = Strategy.HYBRID  # Safe default when nothing narrows the request

    logger.debug(
        f"Strategy selection: analytical={analytical} specific={specific} → {strategy}"
    )
    return strategy
