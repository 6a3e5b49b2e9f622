"""Analysis provider protocol and factory."""

from __future__ import annotations

import logging
from typing import Any, Optional, Protocol, Sequence, runtime_checkable

from mindsync.config.models import LLMSettings
from mindsync.ingestion.extractors import ContentSupplement

from .models import AnalysisContext, ManifestItem

LOGGER = logging.getLogger(__name__)


@runtime_checkable
class AnalysisProvider(Protocol):
    """External AI capability used by the reconciliation engine.

    Both methods return the provider's raw answer (a JSON string, possibly
    fenced, or already-decoded data); callers normalize it. Failures are
    raised as exceptions.
    """

    def analyze_manifest(self, items: Sequence[ManifestItem], context: AnalysisContext) -> Any:
        """Triage a batch of files from metadata only."""
        ...

    def analyze_supplement(
        self, item: ManifestItem, supplement: ContentSupplement, context: AnalysisContext
    ) -> Any:
        """Classify one file from its content slice."""
        ...


def build_provider(settings: LLMSettings) -> Optional[AnalysisProvider]:
    """Return the provider configured by ``settings``.

    Returns None when no provider is configured, in which case the engine
    produces placeholder proposals.
    """
    if not settings.provider:
        LOGGER.info("No LLM provider configured; analysis will use placeholders.")
        return None
    from .dspy_provider import DSPyAnalysisProvider

    return DSPyAnalysisProvider(settings)


__all__ = ["AnalysisProvider", "build_provider"]
