"""Context assembly for the language-model prompting layer."""

from .assembler import (
    CONTEXT_HEADER,
    ContextAssembler,
    format_candidate,
    truncation_notice,
)

__all__ = [
    "CONTEXT_HEADER",
    "ContextAssembler",
    "format_candidate",
    "truncation_notice",
]
