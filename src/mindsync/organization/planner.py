"""Turn raw AI suggestions into bounded proposals."""

from __future__ import annotations

import logging
from typing import Sequence

from mindsync.classification.models import AnalysisResult
from mindsync.config.models import TaxonomyMode
from mindsync.staging.models import Proposal
from mindsync.taxonomy.corrections import CorrectionLearner
from mindsync.taxonomy.resolver import (
    UNCLASSIFIED,
    TaxonomyResolver,
    normalize_path,
    truncate_depth,
)
from mindsync.taxonomy.similarity import best_match

LOGGER = logging.getLogger(__name__)

DEFAULT_CONFIDENCE = 0.8
CORRECTION_CONFIDENCE = 0.95


def _parent(path: str) -> str:
    return path.rsplit("/", 1)[0] if "/" in path else ""


class ProposalPlanner:
    """Apply corrections and taxonomy rules to an analysis result.

    The rules run in a fixed order: learned correction (which bypasses all
    others), depth truncation, vocabulary enforcement, the sibling limit in
    flexible mode, then strict-mode resolution.
    """

    def __init__(self, resolver: TaxonomyResolver, learner: CorrectionLearner) -> None:
        self.resolver = resolver
        self.learner = learner

    @property
    def config(self):
        return self.resolver.config

    def plan(
        self, file_name: str, analysis: AnalysisResult, existing: Sequence[str]
    ) -> Proposal:
        """Return the proposal for ``file_name``.

        Args:
            file_name: Name of the analyzed file, used for correction lookup.
            analysis: Normalized provider output.
            existing: Known categories, in fallback priority order.

        Returns:
            Proposal: Proposal whose ``target_path`` has no surrounding slashes.
        """
        suggested = analysis.category or UNCLASSIFIED
        tags = tuple(analysis.tags)

        correction = self.learner.find_applicable(file_name)
        if correction is not None:
            LOGGER.debug(
                "Applying learned correction for %s: %s -> %s",
                file_name,
                suggested,
                correction.user_chosen,
            )
            return Proposal(
                target_path=normalize_path(correction.user_chosen),
                summary=analysis.summary,
                tags=tags,
                reasoning=f"Applied learned correction (original suggestion: {suggested})",
                confidence=CORRECTION_CONFIDENCE,
            )

        path = normalize_path(suggested) or UNCLASSIFIED
        path = truncate_depth(path, self.config.max_depth)
        path = self.resolver.enforce_vocabulary(path, existing)
        if self.config.mode == TaxonomyMode.FLEXIBLE:
            path = self.limit_siblings(path, existing)
        resolution = self.resolver.resolve_with_outcome(path, existing)

        reasoning = analysis.reasoning or "AI analysis"
        if resolution.low_confidence:
            reasoning = f"{reasoning} (no close category match; fell back to {resolution.path!r})"
        confidence = analysis.confidence if analysis.confidence is not None else DEFAULT_CONFIDENCE
        return Proposal(
            target_path=normalize_path(resolution.path),
            summary=analysis.summary,
            tags=tags,
            reasoning=reasoning,
            confidence=confidence,
        )

    def limit_siblings(self, path: str, existing: Sequence[str]) -> str:
        """Collapse a new category onto a sibling when its parent is full.

        A path that already exists is returned unchanged. Otherwise, when the
        parent already holds ``max_children`` categories, the most similar
        sibling (or the first one) is used instead.
        """
        known = [entry for entry in (normalize_path(item) for item in existing) if entry]
        if not path or path in known:
            return path
        parent = _parent(path)
        siblings = [entry for entry in known if _parent(entry) == parent]
        if len(siblings) < self.config.max_children:
            return path
        match, _ = best_match(path, siblings)
        collapsed = match or siblings[0]
        LOGGER.info(
            "Max children (%d) reached under %r: %s -> %s",
            self.config.max_children,
            parent or "/",
            path,
            collapsed,
        )
        return collapsed


__all__ = ["ProposalPlanner", "DEFAULT_CONFIDENCE", "CORRECTION_CONFIDENCE"]
