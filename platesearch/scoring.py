"""Plate normalization and confidence scoring for plate lookups."""

import re

from rapidfuzz.distance import Levenshtein

EXACT_CONFIDENCE = 100
NORMALIZED_CONFIDENCE = 95

# Fuzzy hits must strictly exceed this similarity (0–1 scale)
FUZZY_THRESHOLD = 0.8

# Callers treat results below this confidence as not found
DEFAULT_MIN_CONFIDENCE = 80

MIN_QUERY_LENGTH = 3
MAX_QUERY_LENGTH = 10

_NON_ALNUM_RE = re.compile(r'[^A-Za-z0-9]')


def normalize_plate(value: str) -> str:
    """Reduce a plate string to its uppercase ASCII alphanumeric form.

    Spaces, dashes, dots and any other separators are dropped, so that
    'abc-1234', 'ABC 1234' and 'ABC1234' all normalize to 'ABC1234'.

    Args:
        value: Raw plate string (stored plate or user query).

    Returns:
        Normalized plate, or '' for non-string input.
    """
    if not isinstance(value, str):
        return ''
    return _NON_ALNUM_RE.sub('', value).upper()


def is_searchable_length(normalized: str) -> bool:
    """Check whether a normalized query is long enough (and short enough) to search."""
    return MIN_QUERY_LENGTH <= len(normalized) <= MAX_QUERY_LENGTH


def similarity(a: str, b: str) -> float:
    """Calculate the edit-distance similarity of two normalized plates.

    The ratio is (maxLen - distance) / maxLen, with the Levenshtein
    distance counting single-character insertions, deletions and
    substitutions.

    Args:
        a: First normalized plate.
        b: Second normalized plate.

    Returns:
        Similarity between 0.0 and 1.0.
    """
    max_len = max(len(a), len(b))
    if max_len == 0:
        return 1.0
    distance = Levenshtein.distance(a, b)
    return (max_len - distance) / max_len


def to_confidence(sim: float) -> int:
    """Convert a similarity ratio into an integer confidence (half-up rounding)."""
    return int(sim * 100 + 0.5)
