"""Resolution of AI-suggested category paths onto a bounded taxonomy."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Sequence

from mindsync.config.models import TaxonomyConfig, TaxonomyMode

from .similarity import best_match

LOGGER = logging.getLogger(__name__)

UNCLASSIFIED = "Unclassified"
FUZZY_THRESHOLD = 0.3
VOCABULARY_THRESHOLD = 0.2


class ResolutionOutcome(str, Enum):
    """How a suggestion was turned into its resolved path."""

    EXACT = "exact"
    FUZZY = "fuzzy"
    FALLBACK = "fallback"
    ROOT = "root"
    FLEXIBLE = "flexible"
    VOCABULARY = "vocabulary"


@dataclass(slots=True, frozen=True)
class Resolution:
    """Result of resolving one suggestion.

    Attributes:
        path: Resolved path without surrounding slashes; empty means the root.
        outcome: Branch of the algorithm that produced ``path``.
        score: Similarity score for fuzzy and vocabulary matches.
        low_confidence: True when the path was forced rather than matched.
    """

    path: str
    outcome: ResolutionOutcome
    score: float = 0.0
    low_confidence: bool = False


def normalize_path(path: str) -> str:
    """Strip surrounding slashes and drop empty segments."""
    return "/".join(segment.strip() for segment in path.split("/") if segment.strip())


def truncate_depth(path: str, max_depth: int) -> str:
    """Keep the first ``max_depth`` segments of ``path``."""
    segments = [segment for segment in path.split("/") if segment]
    return "/".join(segments[:max_depth])


class TaxonomyResolver:
    """Map free-form category suggestions onto valid, bounded paths.

    Strict mode keeps every result inside ``existing`` (exact, then best fuzzy
    match, then the first entry as a forced fallback); flexible mode accepts the
    suggestion after depth truncation. Both modes honour ``max_depth``.
    """

    def __init__(self, config: TaxonomyConfig) -> None:
        self.config = config

    def resolve(self, suggested: str, existing: Sequence[str]) -> str:
        """Return the resolved path for ``suggested``."""
        return self.resolve_with_outcome(suggested, existing).path

    def resolve_with_outcome(self, suggested: str, existing: Sequence[str]) -> Resolution:
        """Resolve ``suggested`` and report which branch produced the result.

        Args:
            suggested: Raw category suggested by the AI.
            existing: Known categories, in caller-defined priority order. The
                first entry is the forced fallback in strict mode.

        Returns:
            Resolution: The resolved path and how it was reached.
        """
        path = normalize_path(suggested) or UNCLASSIFIED
        path = truncate_depth(path, self.config.max_depth)
        known = [entry for entry in (normalize_path(item) for item in existing) if entry]

        if self.config.mode == TaxonomyMode.FLEXIBLE:
            resolution = Resolution(path=path, outcome=ResolutionOutcome.FLEXIBLE)
        else:
            resolution = self._resolve_strict(path, known)

        if resolution.outcome not in (ResolutionOutcome.EXACT, ResolutionOutcome.ROOT):
            vocabulary_path, score = self._vocabulary_match(resolution.path, known)
            if vocabulary_path is not None and vocabulary_path != resolution.path:
                LOGGER.debug("Vocabulary enforcement: %s -> %s", resolution.path, vocabulary_path)
                resolution = Resolution(
                    path=vocabulary_path, outcome=ResolutionOutcome.VOCABULARY, score=score
                )

        bounded = truncate_depth(resolution.path, self.config.max_depth)
        if bounded != resolution.path:
            resolution = Resolution(
                path=bounded,
                outcome=resolution.outcome,
                score=resolution.score,
                low_confidence=resolution.low_confidence,
            )
        LOGGER.debug(
            "Resolved %r -> %r (%s)", suggested, resolution.path, resolution.outcome.value
        )
        return resolution

    def enforce_vocabulary(self, path: str, existing: Sequence[str]) -> str:
        """Return ``path`` or its nearest vocabulary-rooted alternative."""
        known = [entry for entry in (normalize_path(item) for item in existing) if entry]
        match, _ = self._vocabulary_match(path, known)
        return match if match is not None else path

    def in_vocabulary(self, path: str) -> bool:
        """Return True when the top segment of ``path`` matches the vocabulary.

        An empty vocabulary accepts everything, as does the root path.
        """
        vocabulary = self.config.category_vocabulary
        top = normalize_path(path).split("/", 1)[0].lower()
        if not vocabulary or not top:
            return True
        for entry in vocabulary:
            word = entry.lower()
            if word in top or word.startswith(top):
                return True
        return False

    def _resolve_strict(self, path: str, known: list[str]) -> Resolution:
        if not known:
            return Resolution(path="", outcome=ResolutionOutcome.ROOT)
        if path in known:
            return Resolution(path=path, outcome=ResolutionOutcome.EXACT, score=1.0)
        match, score = best_match(path, known)
        if match is not None and score > FUZZY_THRESHOLD:
            return Resolution(path=match, outcome=ResolutionOutcome.FUZZY, score=score)
        LOGGER.warning(
            "Low-confidence classification: %r matched no category above %.1f; "
            "falling back to %r.",
            path,
            FUZZY_THRESHOLD,
            known[0],
        )
        return Resolution(
            path=known[0], outcome=ResolutionOutcome.FALLBACK, score=score, low_confidence=True
        )

    def _vocabulary_match(self, path: str, known: list[str]) -> tuple[str | None, float]:
        if self.in_vocabulary(path):
            return None, 0.0
        pool = [entry for entry in known if self.in_vocabulary(entry)]
        if self.config.mode == TaxonomyMode.FLEXIBLE:
            pool.extend(
                entry
                for entry in (normalize_path(item) for item in self.config.category_vocabulary)
                if entry and entry not in pool
            )
        match, score = best_match(path, pool)
        if match is None or score <= VOCABULARY_THRESHOLD:
            return None, score
        return match, score


__all__ = [
    "FUZZY_THRESHOLD",
    "UNCLASSIFIED",
    "VOCABULARY_THRESHOLD",
    "Resolution",
    "ResolutionOutcome",
    "TaxonomyResolver",
    "normalize_path",
    "truncate_depth",
]
