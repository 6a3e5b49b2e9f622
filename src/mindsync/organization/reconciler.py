"""Batch reconciliation: hashing, duplicate detection and two-phase analysis."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Iterable, List, Optional, Tuple

from mindsync.classification import (
    AnalysisContext,
    AnalysisProvider,
    AnalysisResult,
    InstructionKind,
    ManifestInstruction,
    ManifestItem,
    ParseFailure,
    is_capability_error,
    normalize_analysis_response,
    normalize_manifest_response,
)
from mindsync.config.models import TaxonomyConfig, TaxonomyMode
from mindsync.ingestion import ContentExtractor, LocalFileSystem, extract_categories
from mindsync.ingestion.extractors import RequestType
from mindsync.staging import FileStatus, Proposal, StagedFile, StagingStore, WorkflowStatus
from mindsync.state import DedupIndex, MetadataRepository
from mindsync.taxonomy.ignore import should_ignore
from mindsync.taxonomy.resolver import UNCLASSIFIED

from .planner import ProposalPlanner

LOGGER = logging.getLogger(__name__)

ACTIVE_STATUSES = (FileStatus.PENDING, FileStatus.ANALYZING)
NOT_SUPPORTED_TAG = "ModelNotSupported"
PLACEHOLDER_TAG = "NeedsAIConfig"
READ_FAILED_TAG = "ReadFailed"


class BatchReconciler:
    """Drive staged files from ``pending`` to a proposal or an error.

    Every file is isolated: a failure while processing one file marks only
    that file as ``error``. A failure of the shared manifest call marks every
    file still in flight as ``error``. Files whose status is changed by someone
    else while the batch runs are skipped at the next decision point.
    """

    def __init__(
        self,
        store: StagingStore,
        filesystem: LocalFileSystem,
        extractor: ContentExtractor,
        planner: ProposalPlanner,
        provider: Optional[AnalysisProvider],
        repository: MetadataRepository,
        *,
        root: Optional[Path],
        taxonomy: TaxonomyConfig,
    ) -> None:
        self.store = store
        self.filesystem = filesystem
        self.extractor = extractor
        self.planner = planner
        self.provider = provider
        self.repository = repository
        self.root = root
        self.taxonomy = taxonomy

    def load_context(self) -> Tuple[AnalysisContext, DedupIndex]:
        """Return the analysis context and duplicate index for a new batch.

        Existing categories are those recorded in the index followed by the
        folders found under the library root, in that order.
        """
        if self.root is None:
            return AnalysisContext(existing_categories=[], taxonomy=self.taxonomy), DedupIndex()

        document = self.repository.load_index(self.root)
        categories = document.categories()
        scan = self.filesystem.scan_tree(self.root, exclude=(self.repository.base_dirname,))
        if scan.ok and scan.value is not None:
            for category in extract_categories(scan.value):
                if category in categories:
                    continue
                if should_ignore(category, self.taxonomy.ignore_patterns):
                    continue
                categories.append(category)
        elif self.root.exists():
            LOGGER.warning("Unable to scan library root for categories: %s", scan.error)
        LOGGER.debug("Loaded %d existing categories", len(categories))
        context = AnalysisContext(existing_categories=categories, taxonomy=self.taxonomy)
        return context, DedupIndex(document.files)

    def process_files(self, file_ids: Optional[Iterable[str]] = None) -> List[str]:
        """Analyze pending files and write the outcome into the staging store.

        Args:
            file_ids: Files to process; defaults to every pending file.

        Returns:
            List[str]: Ids that were taken into the batch.
        """
        targets = self._pending_ids(file_ids)
        if not targets:
            return []

        LOGGER.info("Processing %d staged file(s)", len(targets))
        self.store.set_workflow(WorkflowStatus.ANALYZING)
        try:
            self._process_batch(targets)
        except Exception as exc:  # batch-level failure degrades every file still in flight
            LOGGER.exception("Batch processing failed")
            self._fail_remaining(targets, f"Batch processing failed: {exc}")
        finally:
            self.store.set_workflow(WorkflowStatus.REVIEWING)
        return targets

    # Batch phases ----------------------------------------------------------

    def _process_batch(self, targets: List[str]) -> None:
        context, dedup = self.load_context()

        candidates: List[str] = []
        for file_id in targets:
            item = self._active(file_id)
            if item is None:
                continue
            self.store.set_status(file_id, FileStatus.ANALYZING)
            try:
                if self._check_duplicate(file_id, dedup):
                    continue
            except Exception as exc:  # per-file isolation
                LOGGER.exception("Hashing %s failed", item.display_name)
                self._fail(file_id, f"Analysis error: {exc}")
                continue
            candidates.append(file_id)

        if not candidates:
            return
        provider = self.provider
        if provider is None:
            for file_id in candidates:
                self._placeholder(file_id)
            return

        items = [self._manifest_item(item) for item in self._active_items(candidates)]
        if not items:
            return
        try:
            raw = provider.analyze_manifest(items, context)
        except Exception as exc:  # provider failures are opaque
            LOGGER.error("Manifest analysis failed: %s", exc)
            self._fail_remaining(candidates, f"AI analysis failed: {exc}")
            return
        manifest = normalize_manifest_response(raw)
        if isinstance(manifest, ParseFailure):
            LOGGER.error("Manifest response rejected: %s (%s)", manifest.message, manifest.excerpt)
            self._fail_remaining(candidates, f"AI analysis failed: {manifest.message}")
            return

        for file_id in candidates:
            item = self._active(file_id)
            if item is None:
                LOGGER.debug("Skipping %s; status changed during the batch", file_id)
                continue
            try:
                self._apply_instruction(provider, item, manifest.items.get(file_id), context)
            except Exception as exc:  # per-file isolation
                if is_capability_error(exc):
                    self._not_supported(item, exc)
                else:
                    LOGGER.warning("Analysis of %s failed: %s", item.display_name, exc)
                    self._fail(file_id, f"Analysis error: {exc}")

    def _check_duplicate(self, file_id: str, dedup: DedupIndex) -> bool:
        """Hash the file and flag duplicates; return True when the file is settled."""
        item = self.store.get(file_id)
        if item is None:
            return True
        digest = self.filesystem.hash(item.source_path)
        if not digest.ok or digest.value is None:
            self._fail(file_id, f"Hash failed: {digest.error}")
            return True
        self.store.set_hash(file_id, digest.value)

        if not item.is_reanalysis:
            match = dedup.classify(digest.value, item.display_name)
            if match is not None:
                LOGGER.info("%s is a duplicate of %s", item.display_name, match.existing_name)
                proposal = Proposal(
                    target_path="",
                    summary=match.summary,
                    tags=tuple(match.tags),
                    reasoning=match.reasoning,
                    confidence=1.0,
                    skip=True,
                )
                self.store.set_proposal(file_id, proposal, status=FileStatus.DUPLICATE)
                return True
        dedup.register(digest.value, item.display_name)
        return False

    def _apply_instruction(
        self,
        provider: AnalysisProvider,
        item: StagedFile,
        instruction: Optional[ManifestInstruction],
        context: AnalysisContext,
    ) -> None:
        if instruction is None:
            self._fail(item.id, "AI returned no instruction for this file")
            return

        kind = instruction.instruction
        request_type: RequestType = instruction.request_type
        if kind == InstructionKind.DIRECT and self.taxonomy.force_deep_analysis:
            kind = InstructionKind.NEED_INFO
            request_type = "image_vision" if item.mime_type.startswith("image/") else "text_preview"

        if kind == InstructionKind.DIRECT:
            if instruction.result is None:
                self._fail(item.id, "AI returned a direct instruction without a result")
                return
            result = instruction.result
        else:
            LOGGER.debug(
                "%s needs %s: %s", item.display_name, request_type, instruction.reason or "-"
            )
            supplement_result = self._supplement(provider, item, request_type, context)
            if supplement_result is None:
                return
            result = supplement_result

        if self._active(item.id) is None:
            return
        proposal = self.planner.plan(item.display_name, result, context.existing_categories)
        self.store.set_proposal(item.id, proposal)
        self._remember_category(proposal.target_path, context)

    def _supplement(
        self,
        provider: AnalysisProvider,
        item: StagedFile,
        request_type: RequestType,
        context: AnalysisContext,
    ) -> Optional[AnalysisResult]:
        supplement = self.extractor.extract(item.source_path, request_type)
        if supplement is None:
            LOGGER.warning("Content of %s could not be read", item.display_name)
            return AnalysisResult(
                category=f"_{UNCLASSIFIED}",
                summary=f"Unable to read {item.display_name}",
                tags=[READ_FAILED_TAG],
                reasoning="File content could not be read",
                confidence=0.0,
            )
        raw = provider.analyze_supplement(self._manifest_item(item), supplement, context)
        parsed = normalize_analysis_response(raw)
        if isinstance(parsed, ParseFailure):
            self._fail(item.id, f"Malformed AI response: {parsed.message}")
            return None
        return parsed

    def _remember_category(self, path: str, context: AnalysisContext) -> None:
        """Make categories minted in flexible mode visible to later files of the batch."""
        if self.taxonomy.mode != TaxonomyMode.FLEXIBLE or not path:
            return
        existing = context.existing_categories
        if path not in existing and isinstance(existing, list):
            existing.append(path)

    # Outcomes --------------------------------------------------------------

    def _placeholder(self, file_id: str) -> None:
        item = self._active(file_id)
        if item is None:
            return
        proposal = Proposal(
            target_path=UNCLASSIFIED,
            summary="No AI provider is configured.",
            tags=(PLACEHOLDER_TAG,),
            reasoning="Configure `llm.provider` to enable analysis.",
            confidence=0.0,
        )
        self.store.set_proposal(file_id, proposal)

    def _not_supported(self, item: StagedFile, exc: BaseException) -> None:
        LOGGER.warning("Model does not support the content of %s: %s", item.display_name, exc)
        proposal = Proposal(
            target_path="",
            summary="The configured model does not support this file type.",
            tags=(NOT_SUPPORTED_TAG,),
            reasoning=str(exc),
            confidence=0.0,
        )
        self.store.set_proposal(
            item.id,
            proposal,
            status=FileStatus.ERROR,
            error=f"File type not supported by the configured model: {exc}",
        )

    def _fail(self, file_id: str, message: str) -> None:
        if self._active(file_id) is None:
            return
        self.store.set_status(file_id, FileStatus.ERROR, message)

    def _fail_remaining(self, file_ids: Iterable[str], message: str) -> None:
        for file_id in file_ids:
            self._fail(file_id, message)

    # Helpers ---------------------------------------------------------------

    def _pending_ids(self, file_ids: Optional[Iterable[str]]) -> List[str]:
        pending = [item.id for item in self.store.files if item.status == FileStatus.PENDING]
        if file_ids is None:
            return pending
        wanted = set(file_ids)
        return [file_id for file_id in pending if file_id in wanted]

    def _active(self, file_id: str) -> Optional[StagedFile]:
        item = self.store.get(file_id)
        if item is None or item.status not in ACTIVE_STATUSES:
            return None
        return item

    def _active_items(self, file_ids: Iterable[str]) -> List[StagedFile]:
        return [item for item in (self._active(file_id) for file_id in file_ids) if item]

    @staticmethod
    def _manifest_item(item: StagedFile) -> ManifestItem:
        return ManifestItem(
            id=item.id, name=item.display_name, size=item.size_bytes, mime_type=item.mime_type
        )


__all__ = ["BatchReconciler", "NOT_SUPPORTED_TAG", "PLACEHOLDER_TAG", "READ_FAILED_TAG"]
