"""
Portable lexical ranking.

Used when the store has no full-text search (e.g. SQLite). Mirrors the
behaviour of plainto_tsquery: every query term must occur in the chunk.

Dependencies: re, math (stdlib)
System role: Lexical scoring fallback for the retrieval engine
"""

import math
import re

TOKEN_PATTERN = re.compile(r"[a-z0-9]+")

STOPWORDS = frozenset({
    "a", "an", "and", "are", "as", "at", "be", "by", "for", "from", "in", "is",
    "it", "of", "on", "or", "that", "the", "this", "to", "was", "what", "with",
})


def query_terms(query: str) -> list[str]:
    """Distinct lowercase terms of a query, stopwords removed, in query order."""
    seen: dict[str, None] = {}
    for token in TOKEN_PATTERN.findall(query.lower()):
        if token not in STOPWORDS:
            seen.setdefault(token, None)
    return list(seen)


def rank_text(content: str, terms: list[str]) -> float:
    """
    Score a chunk against query terms.

    Returns 0.0 unless every term occurs. Otherwise term frequency
    normalized by document length, roughly on the scale of ts_rank.
    """
    if not terms:
        return 0.0
    tokens = TOKEN_PATTERN.findall(content.lower())
    if not tokens:
        return 0.0

    counts = {term: 0 for term in terms}
    for token in tokens:
        if token in counts:
            counts[token] += 1
    if any(count == 0 for count in counts.values()):
        return 0.0

    frequency = sum(counts.values())
    return frequency / (10.0 * (1.0 + math.log(len(tokens))))
