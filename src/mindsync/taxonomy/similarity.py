"""Token similarity used to map free-form suggestions onto known categories."""

from __future__ import annotations

import re
from typing import Iterable, Optional, Tuple

_SPLIT = re.compile(r"[\s/]+")


def tokenize(text: str) -> set[str]:
    """Split ``text`` on whitespace and slashes into a lowercase token set."""
    return {token for token in _SPLIT.split(text.lower()) if token}


def similarity(first: str, second: str) -> float:
    """Return the Jaccard similarity of the token sets of two strings.

    An empty union scores 0.
    """
    left = tokenize(first)
    right = tokenize(second)
    union = left | right
    if not union:
        return 0.0
    return len(left & right) / len(union)


def best_match(candidate: str, pool: Iterable[str]) -> Tuple[Optional[str], float]:
    """Return the entry of ``pool`` most similar to ``candidate``.

    Ties keep the entry seen first. Returns ``(None, 0.0)`` when nothing shares a
    token with the candidate.
    """
    best: Optional[str] = None
    best_score = 0.0
    for entry in pool:
        score = similarity(candidate, entry)
        if score > best_score:
            best, best_score = entry, score
    return best, best_score


__all__ = ["tokenize", "similarity", "best_match"]
