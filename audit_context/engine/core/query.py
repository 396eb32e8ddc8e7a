"""Query text utilities.

This module provides the text handling shared by strategy selection, keyword
fallback and embedding fingerprints.
"""

import re
import unicodedata

# ---------------------------------------------------------------------------
# Analytical intent. A query containing any of these terms is asking for
# reasoning over findings rather than a structured lookup.
# ---------------------------------------------------------------------------
ANALYTICAL_TERMS = frozenset(
    {
        "why",
        "how",
        "analyze",
        "compare",
        "trend",
        "pattern",
        "recommend",
        "suggest",
        "explain",
        "insight",
        "relationship",
        "correlation",
        "impact",
        "cause",
        "effect",
    }
)

# Irregular forms that suffix matching does not reach
ANALYTICAL_ALIASES: dict[str, str] = {
    "analyse": "analyze",
    "analysed": "analyze",
    "analysing": "analyze",
    "analysis": "analyze",
    "analyses": "analyze",
    "analytical": "analyze",
    "comparison": "compare",
    "comparisons": "compare",
    "recommendation": "recommend",
    "recommendations": "recommend",
    "suggestion": "suggest",
    "suggestions": "suggest",
    "explanation": "explain",
    "correlate": "correlation",
    "correlated": "correlation",
    "causal": "cause",
}

# Inflectional suffixes accepted after an analytical term (or its e-less stem)
INFLECTION_SUFFIXES = frozenset({"", "s", "es", "d", "ed", "ing", "ful"})

# ---------------------------------------------------------------------------
# Stop words, excluded when keywords are derived from free query text.
# Without this, "what are the findings" would match every description
# containing "the".
# ---------------------------------------------------------------------------
STOP_WORDS = frozenset(
    {
        # Articles, auxiliaries, modals
        "the", "are", "was", "were", "been", "have", "has", "had", "does", "did",
        "will", "would", "could", "should", "may", "might", "can",
        # Prepositions
        "for", "with", "from", "into", "during", "before", "after", "between",
        "over", "under", "about",
        # Adverbs and conjunctions
        "then", "here", "there", "when", "where", "why", "how", "all", "each",
        "more", "most", "other", "some", "such", "not", "only", "than", "too",
        "very", "just", "because", "but", "and",
        # Pronouns and determiners
        "what", "which", "who", "this", "that", "these", "those", "its", "our",
        "their", "any",
        # Request verbs that carry no topic
        "show", "list", "find", "give", "tell", "please",
    }
)  # fmt: skip

_WORD_RE = re.compile(r"[^\W\d_]+")
_WHITESPACE_RE = re.compile(r"\s+")


def normalize_text(text: str) -> str:
    """Normalize text for fingerprinting.

    Applies Unicode NFKC, collapses runs of whitespace and strips the ends.
    Case is preserved since embedding models are case-sensitive.
    """
    return _WHITESPACE_RE.sub(" ", unicodedata.normalize("NFKC", text)).strip()


def _match_analytical_term(word: str) -> str | None:
    if word in ANALYTICAL_TERMS:
        return word
    alias = ANALYTICAL_ALIASES.get(word)
    if alias is not None:
        return alias
    for term in ANALYTICAL_TERMS:
        stems = (term, term[:-1]) if term.endswith("e") else (term,)
        for stem in stems:
            if word.startswith(stem) and word[len(stem):] in INFLECTION_SUFFIXES:
                return term
    return None


def find_analytical_terms(query: str) -> list[str]:
    """Return the analytical lexicon terms present in a query.

    Terms match as whole words, including simple inflections ("trends",
    "compared", "analysis"), so "show" does not count as "how".

    Args:
        query: Natural-language query text.

    Returns:
        Canonical lexicon terms found, in order of first appearance.
    """
    found: list[str] = []
    for word in _WORD_RE.findall(query.lower()):
        term = _match_analytical_term(word)
        if term is not None and term not in found:
            found.append(term)
    return found


def has_analytical_intent(query: str) -> bool:
    """Check whether a query asks for analysis rather than a lookup."""
    return bool(find_analytical_terms(query))


def extract_keywords(query: str) -> list[str]:
    """Extract meaningful keywords from a query, filtering stop words.

    Args:
        query: The search query string.

    Returns:
        Unique lowercase keywords in query order, stop words, numbers and
        words shorter than 3 characters removed.
    """
    words = re.split(r"[^\w]+", query.lower())
    keywords: list[str] = []
    for w in words:
        if len(w) >= 3 and w not in STOP_WORDS and not w.isdigit() and w not in keywords:
            keywords.append(w)
    return keywords
