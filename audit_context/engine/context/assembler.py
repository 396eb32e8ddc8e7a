"""Context assembly under a candidate and token budget.

Renders ranked candidates into the fixed-format text block handed to the
language-model prompting layer, stopping as soon as either cap would be
exceeded.
"""

import logging
from collections.abc import Callable, Sequence

from ...models.context import ContextBudget, ContextMetadata, ContextResult, ScoredCandidate
from ...models.enums import Strategy
from ..core.finding import severity_level
from ..core.tokens import estimate_tokens

logger = logging.getLogger(__name__)

CONTEXT_HEADER = "Relevant Audit Results:\n\n"
MISSING_VALUE = "N/A"


def _value(value: str | None) -> str:
    return value if value else MISSING_VALUE


def format_candidate(scored: ScoredCandidate, index: int) -> str:
    """Render one ranked candidate as a context block (1-based ``index``)."""
    c = scored.candidate
    level = severity_level(c.severity)
    return (
        f"Audit Result {index} [{c.id}]:\n"
        f"Project: {_value(c.project_name)}\n"
        f"Project ID: {_value(c.project_id)}\n"
        f"Year: {_value(c.period)}\n"
        f"Department: {_value(c.unit)}\n"
        f"Risk Area: {_value(c.risk_area)}\n"
        f"Description: {_value(c.description)}\n"
        f"Code: {_value(c.code)}\n"
        f"Severity: {level} (Score: {c.severity:g})\n"
        f"Subholding: {_value(c.subholding)}\n"
        f"Relevance: {scored.score:.3f} ({scored.breakdown.match_reason})\n"
    )


def truncation_notice(omitted: int) -> str:
    return f"[Context truncated: {omitted} additional audit results omitted due to budget]"


class ContextAssembler:
    """Builds a size-bounded context from ranked candidates.

    The first candidate is always included, even if it alone exceeds the
    token budget; that case is flagged with ``over_budget``. Otherwise the
    text never holds more than ``max_candidates`` blocks nor more than
    ``max_tokens`` estimated tokens.
    """

    def __init__(self, token_counter: Callable[[str], int] | None = None):
        """Initialize the assembler.

        Args:
            token_counter: Token counting function. Defaults to the
                ``ceil(chars / chars_per_token)`` estimate of the budget.
        """
        self.token_counter = token_counter

    def _counter(self, budget: ContextBudget) -> Callable[[str], int]:
        if self.token_counter is not None:
            return self.token_counter
        return lambda text: estimate_tokens(text, budget.chars_per_token)

    def build(
        self,
        ranked: Sequence[ScoredCandidate],
        budget: ContextBudget | None = None,
        strategy: Strategy = Strategy.HYBRID,
        *,
        total_candidates: int | None = None,
        stage_counts: dict[str, int] | None = None,
        timing: dict[str, int] | None = None,
    ) -> ContextResult:
        """Assemble the context text for a ranked list.

        Args:
            ranked: Candidates, best first.
            budget: Candidate and token caps (defaults apply when None).
            strategy: Strategy that produced the ranking.
            total_candidates: Pool size before ranking, for metadata.
            stage_counts: Candidate counts per ranking stage, for metadata.
            timing: Phase timings in milliseconds, for metadata.

        Returns:
            ContextResult with the rendered text and its metadata.
        """
        budget = budget or ContextBudget()
        count_tokens = self._counter(budget)
        total = len(ranked) if total_candidates is None else total_candidates

        if not ranked:
            return ContextResult(
                context_text="",
                metadata=ContextMetadata(
                    strategy_used=strategy,
                    total_candidates=total,
                    stage_counts=dict(stage_counts or {}),
                    timing=timing,
                ),
            )

        text = CONTEXT_HEADER
        selected: list[ScoredCandidate] = []
        for scored in ranked[: budget.max_candidates]:
            extended = text + format_candidate(scored, len(selected) + 1) + "\n"
            if selected and count_tokens(extended.rstrip()) > budget.max_tokens:
                break
            text = extended
            selected.append(scored)

        dropped = len(ranked) - len(selected)
        text = text.rstrip()
        over_budget = count_tokens(text) > budget.max_tokens

        if dropped and not over_budget:
            with_notice = f"{text}\n\n{truncation_notice(dropped)}"
            if count_tokens(with_notice) <= budget.max_tokens:
                text = with_notice

        if over_budget:
            logger.warning(
                f"First candidate {selected[0].id} alone exceeds the budget of "
                f"{budget.max_tokens} tokens; included anyway"
            )

        fallback = strategy != Strategy.KEYWORD and any(
            sc.breakdown.semantic_score is None for sc in selected
        )
        estimated = count_tokens(text)
        metadata = ContextMetadata(
            strategy_used=strategy,
            candidate_count=len(selected),
            dropped_count=dropped,
            average_score=sum(sc.score for sc in selected) / len(selected),
            estimated_tokens=estimated,
            over_budget=over_budget,
            truncated=dropped > 0,
            total_candidates=total,
            embedding_fallback=fallback,
            stage_counts=dict(stage_counts or {}),
            timing=timing,
        )

        logger.info(
            f"Context assembled: {len(selected)} candidates, {dropped} dropped, "
            f"~{estimated} tokens"
        )
        return ContextResult(context_text=text, metadata=metadata, selected=selected)
