"""Token counting utilities.

Two counters are provided: a character-ratio estimate (the documented
approximation the context budget is defined in) and exact counting with
tiktoken for callers that want it.
"""

import math
from collections.abc import Callable

import tiktoken

from ...models.enums import TokenEstimator

# Initialize tiktoken encoder (using cl100k_base for GPT-4/Claude compatibility)
_encoding: tiktoken.Encoding | None = None


def get_encoder() -> tiktoken.Encoding:
    """Get or create the tiktoken encoder (lazy initialization).

    Returns:
        The tiktoken encoding instance for cl100k_base
    """
    global _encoding
    if _encoding is None:
        _encoding = tiktoken.get_encoding("cl100k_base")
    return _encoding


def count_tokens(text: str) -> int:
    """Count tokens in text using tiktoken.

    Args:
        text: Text to count tokens for

    Returns:
        Number of tokens in the text
    """
    if not text:
        return 0
    return len(get_encoder().encode(text))


def estimate_tokens(text: str, chars_per_token: int = 4) -> int:
    """Estimate token count as ``ceil(len(text) / chars_per_token)``.

    Not exact tokenization; ~4 characters per token is a reasonable
    approximation for English text.
    """
    if not text:
        return 0
    return math.ceil(len(text) / chars_per_token)


def get_token_counter(
    estimator: TokenEstimator, chars_per_token: int = 4
) -> Callable[[str], int]:
    """Return the token counting function for an estimator choice."""
    if estimator == TokenEstimator.TIKTOKEN:
        return count_tokens
    return lambda text: estimate_tokens(text, chars_per_token)
