"""Organizer session wiring configuration and collaborators together."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Iterable, List, Optional

from mindsync.classification import AnalysisProvider, build_provider
from mindsync.config.models import LLMSettings, MindSyncConfig
from mindsync.ingestion import (
    ContentExtractor,
    HashComputer,
    IngestionPipeline,
    IngestionResult,
    LocalFileSystem,
)
from mindsync.organization import (
    BatchReconciler,
    CommitEngine,
    CommitResult,
    ProposalPlanner,
    StorageNotConfiguredError,
    UndoResult,
)
from mindsync.staging import StagingStore
from mindsync.state import MetadataDocument, MetadataRepository
from mindsync.taxonomy import CategoryTree, CorrectionLearner, TaxonomyResolver

LOGGER = logging.getLogger(__name__)

ProviderFactory = Callable[[LLMSettings], Optional[AnalysisProvider]]


def resolve_root(config: MindSyncConfig) -> Optional[Path]:
    """Return the configured library root, or None when it is not set."""
    if not config.storage.root_path:
        return None
    return Path(config.storage.root_path).expanduser().resolve()


@dataclass
class OrganizerSession:
    """Everything one organize/commit/undo run needs, built from a config.

    The session owns the staging store; the reconciler and commit engine share
    it and always re-read it rather than caching snapshots.
    """

    config: MindSyncConfig
    root: Optional[Path]
    store: StagingStore
    filesystem: LocalFileSystem
    repository: MetadataRepository
    learner: CorrectionLearner
    provider: Optional[AnalysisProvider]
    reconciler: BatchReconciler
    committer: CommitEngine

    @classmethod
    def from_config(
        cls,
        config: MindSyncConfig,
        *,
        provider_factory: ProviderFactory = build_provider,
        store: Optional[StagingStore] = None,
    ) -> "OrganizerSession":
        """Build a session for ``config``.

        Args:
            config: Effective configuration.
            provider_factory: Builds the analysis provider from the LLM settings.
            store: Existing staging store to reuse.
        """
        root = resolve_root(config)
        repository = MetadataRepository(config.storage.state_dirname)
        records = repository.load_corrections(root) if root is not None else []
        learner = CorrectionLearner(records, limit=config.storage.correction_limit)
        filesystem = LocalFileSystem(hasher=HashComputer(config.processing.hash_chunk_size))
        store = store or StagingStore()
        provider = provider_factory(config.llm)

        planner = ProposalPlanner(TaxonomyResolver(config.taxonomy), learner)
        extractor = ContentExtractor(
            filesystem, text_preview_chars=config.processing.text_preview_chars
        )
        reconciler = BatchReconciler(
            store,
            filesystem,
            extractor,
            planner,
            provider,
            repository,
            root=root,
            taxonomy=config.taxonomy,
        )
        committer = CommitEngine(
            store,
            filesystem,
            repository,
            learner,
            root=root,
            taxonomy=config.taxonomy,
            conflict_resolution=config.organization.conflict_resolution,
        )
        return cls(
            config=config,
            root=root,
            store=store,
            filesystem=filesystem,
            repository=repository,
            learner=learner,
            provider=provider,
            reconciler=reconciler,
            committer=committer,
        )

    def require_root(self) -> Path:
        return self.committer.require_root()

    def stage(self, paths: Iterable[Path]) -> IngestionResult:
        """Discover files under ``paths`` and add them to staging as pending."""
        exclude = [self.repository.state_dir(self.root)] if self.root is not None else []
        pipeline = IngestionPipeline.from_config(
            self.config.processing, self.config.taxonomy, exclude=exclude
        )
        result = pipeline.run(paths)
        self.store.add_pending(result.pending)
        LOGGER.info(
            "Staged %d file(s); %d ignored, %d error(s)",
            len(result.pending),
            len(result.ignored),
            len(result.errors),
        )
        return result

    def process(self, file_ids: Optional[Iterable[str]] = None) -> List[str]:
        return self.reconciler.process_files(file_ids)

    def commit(self, selected_ids: Optional[Iterable[str]] = None) -> CommitResult:
        return self.committer.commit(selected_ids)

    def undo(self) -> UndoResult:
        return self.committer.undo()

    def load_index(self) -> MetadataDocument:
        """Return the library index, or an empty document when no root is set."""
        if self.root is None:
            return MetadataDocument()
        return self.repository.load_index(self.root)

    def category_tree(self) -> CategoryTree:
        document = self.load_index()
        return CategoryTree(document.taxonomy.root, max_children=self.config.taxonomy.max_children)

    def add_category(self, name: str, parent: Optional[str] = None) -> bool:
        """Add a category to the persisted taxonomy tree.

        Raises:
            StorageNotConfiguredError: If no library root is configured.
        """
        root = self.require_root()
        document = self.repository.load_index(root)
        tree = CategoryTree(document.taxonomy.root, max_children=self.config.taxonomy.max_children)
        if not tree.add_category(name, parent):
            return False
        document.taxonomy.root = tree.roots
        return self.repository.save_index(root, document)


__all__ = ["OrganizerSession", "ProviderFactory", "StorageNotConfiguredError", "resolve_root"]
