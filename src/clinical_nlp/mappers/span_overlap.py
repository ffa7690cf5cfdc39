"""
Span overlap resolution between independently computed entity lists

Two spans refer to the same mention when their texts match approximately
(bounded edit distance, tolerant to casing and punctuation) and their offset
ranges intersect.
"""

from typing import NamedTuple

from rapidfuzz.distance import Levenshtein
from rapidfuzz.utils import default_process

DEFAULT_TOLERANCE = 0.2


class Span(NamedTuple):
    text: str
    begin_offset: int
    end_offset: int


def max_errors(pattern: str, tolerance: float = DEFAULT_TOLERANCE) -> int:
    """Edit distance allowed when searching for ``pattern``"""
    return int(len(pattern) * tolerance)


def approximate_search(text: str, pattern: str, errors: int) -> bool:
    """
    True if some substring of ``text`` is within ``errors`` edits of ``pattern``

    Any alignment with k edits covers between len(pattern) - k and
    len(pattern) + k characters of text, so only those window widths are tried.
    """
    if not pattern or not text:
        return False
    if len(pattern) - errors > len(text):
        return False

    shortest = max(1, len(pattern) - errors)
    longest = min(len(text), len(pattern) + errors)
    for width in range(shortest, longest + 1):
        for start in range(len(text) - width + 1):
            window = text[start:start + width]
            if Levenshtein.distance(pattern, window, score_cutoff=errors) <= errors:
                return True
    return False


def strings_overlap(a: str, b: str, tolerance: float = DEFAULT_TOLERANCE) -> bool:
    """Approximate containment of the shorter text in the longer one"""
    a = default_process(a or '')
    b = default_process(b or '')
    if not a or not b:
        return False
    # order-independent choice of pattern keeps the check symmetric
    pattern, text = sorted((a, b), key=lambda s: (len(s), s))
    return approximate_search(text, pattern, max_errors(pattern, tolerance))


def offsets_overlap(begin_a: int, end_a: int, begin_b: int, end_b: int) -> bool:
    """Half-open interval intersection"""
    return begin_a < end_b and begin_b < end_a


def spans_overlap(a: Span, b: Span, tolerance: float = DEFAULT_TOLERANCE) -> bool:
    """Whether two spans from different detection lists denote the same mention"""
    if not offsets_overlap(a.begin_offset, a.end_offset, b.begin_offset, b.end_offset):
        return False
    return strings_overlap(a.text, b.text, tolerance)
