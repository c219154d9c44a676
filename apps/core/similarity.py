"""
String similarity primitives for address matching.

Pure functions with no Django dependencies. Callers normalize text first
(see normalize_address_text); nothing here special-cases case or whitespace.
"""
import re
from typing import List, Sequence

_WHITESPACE = re.compile(r'\s+')
_TOKEN_SPLIT = re.compile(r'[\s,]+')


def normalize_address_text(text: str) -> str:
    """Lowercase, collapse runs of whitespace and strip."""
    return _WHITESPACE.sub(' ', (text or '').lower()).strip()


def meaningful_tokens(text: str) -> List[str]:
    """Split on whitespace/commas, keeping parts longer than one character."""
    return [part for part in _TOKEN_SPLIT.split(text or '') if len(part) > 1]


def levenshtein_distance(a: str, b: str) -> int:
    """
    Classic edit distance: insert, delete and substitute each cost 1.

    Uses two rolling rows instead of the full matrix.
    """
    if a == b:
        return 0
    if not a:
        return len(b)
    if not b:
        return len(a)

    previous = list(range(len(b) + 1))
    for i, char_a in enumerate(a, start=1):
        current = [i] + [0] * len(b)
        for j, char_b in enumerate(b, start=1):
            cost = 0 if char_a == char_b else 1
            current[j] = min(
                previous[j] + 1,        # deletion
                current[j - 1] + 1,     # insertion
                previous[j - 1] + cost, # substitution
            )
        previous = current
    return previous[len(b)]


def token_match_percentage(input_tokens: Sequence[str], candidate_text: str) -> float:
    """
    Fraction of input_tokens contained in some word of candidate_text.

    Matching is substring containment against each whitespace-delimited,
    lowercased word, so "123" matches "12345". Returns 0.0 for no tokens.
    """
    if not input_tokens:
        return 0.0

    candidate_words = (candidate_text or '').lower().split()
    matched = sum(
        1 for token in input_tokens
        if any(token in word for word in candidate_words)
    )
    return matched / len(input_tokens)
