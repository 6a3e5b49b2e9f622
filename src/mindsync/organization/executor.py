"""Commit staged proposals to disk and undo the most recent commit."""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from pathlib import Path
from typing import Iterable, List, Literal, Optional, Tuple

from mindsync.config.models import TaxonomyConfig
from mindsync.ingestion import LocalFileSystem, PendingFile, TypeDetector
from mindsync.staging import StagedFile, StagingStore, WorkflowStatus
from mindsync.state import (
    AIInfo,
    FileEntry,
    MetadataRepository,
    StateError,
    UndoLog,
    UndoOperation,
)
from mindsync.taxonomy.categories import CategoryTree
from mindsync.taxonomy.corrections import CorrectionLearner
from mindsync.taxonomy.resolver import normalize_path

from .errors import StorageNotConfiguredError
from .models import CommitResult, MoveResult, UndoResult

LOGGER = logging.getLogger(__name__)

ConflictStrategy = Literal["append_number", "skip"]


class CommitEngine:
    """Move approved files into the library and keep the undo log.

    Each move is attempted independently; a failed move leaves its file staged
    so it can be retried. Only the most recent commit can be undone.
    """

    def __init__(
        self,
        store: StagingStore,
        filesystem: LocalFileSystem,
        repository: MetadataRepository,
        learner: CorrectionLearner,
        *,
        root: Optional[Path],
        taxonomy: TaxonomyConfig,
        conflict_resolution: ConflictStrategy = "append_number",
        detector: Optional[TypeDetector] = None,
    ) -> None:
        self.store = store
        self.filesystem = filesystem
        self.repository = repository
        self.learner = learner
        self.root = root
        self.taxonomy = taxonomy
        self.conflict_resolution = conflict_resolution
        self.detector = detector or TypeDetector()
        self._undo_log: Optional[UndoLog] = None

    def require_root(self) -> Path:
        """Return the library root.

        Raises:
            StorageNotConfiguredError: If no root storage location is configured.
        """
        if self.root is None:
            raise StorageNotConfiguredError(
                "No library root is configured. Set `storage.root_path` before moving files."
            )
        return self.root

    def eligible(self, selected_ids: Optional[Iterable[str]] = None) -> List[StagedFile]:
        """Return committable files, optionally limited to ``selected_ids``."""
        wanted = set(selected_ids) if selected_ids is not None else None
        return [
            item
            for item in self.store.files
            if item.is_committable and (wanted is None or item.id in wanted)
        ]

    def commit(self, selected_ids: Optional[Iterable[str]] = None) -> CommitResult:
        """Move every eligible staged file to its effective target path.

        Args:
            selected_ids: Limit the commit to these ids; defaults to all eligible files.

        Returns:
            CommitResult: Per-file outcomes plus non-fatal bookkeeping warnings.

        Raises:
            StorageNotConfiguredError: If no library root is configured.
        """
        root = self.require_root()
        eligible = self.eligible(selected_ids)
        result = CommitResult()
        if not eligible:
            return result

        self.store.set_workflow(WorkflowStatus.EXECUTING)
        moved: List[Tuple[StagedFile, MoveResult]] = []
        for item in eligible:
            try:
                outcome = self._move(item, root)
            except Exception as exc:  # per-file isolation
                LOGGER.exception("Moving %s failed", item.display_name)
                outcome = MoveResult(
                    file_id=item.id, success=False, source_path=item.source_path, error=str(exc)
                )
            result.results.append(outcome)
            if outcome.success:
                moved.append((item, outcome))
            else:
                LOGGER.warning("Could not move %s: %s", item.display_name, outcome.error)

        if moved:
            self.store.remove(item.id for item, _ in moved)
            result.warnings.extend(self._write_undo_log(root, moved))
            result.warnings.extend(self._persist_index(root, moved))
            result.warnings.extend(self._record_corrections(root, moved))

        LOGGER.info(
            "Commit finished: %d moved, %d failed", result.success_count, result.fail_count
        )
        self.store.set_workflow(
            WorkflowStatus.DONE if result.fail_count == 0 else WorkflowStatus.REVIEWING
        )
        return result

    def undo(self) -> UndoResult:
        """Move the files of the last commit back to where they came from.

        Restored files are dropped from the index and staged again as pending.
        The undo log is cleared afterwards, even when some moves failed.

        Raises:
            StorageNotConfiguredError: If no library root is configured.
        """
        root = self.require_root()
        result = UndoResult()
        try:
            log = self._undo_log or self.repository.load_undo_log(root)
        except StateError as exc:
            LOGGER.warning("Discarding unreadable undo log: %s", exc)
            result.errors.append(str(exc))
            self._clear_undo_log(root)
            return result
        if log is None or not log.operations:
            self._clear_undo_log(root)
            return result

        restored: List[Path] = []
        restored_from: List[str] = []
        for operation in log.operations:
            moved_to = Path(operation.source)
            original = Path(operation.target)
            error = self._restore(moved_to, original)
            if error is not None:
                LOGGER.warning("Undo skipped %s: %s", moved_to, error)
                result.fail_count += 1
                result.errors.append(error)
                continue
            result.success_count += 1
            restored.append(original)
            restored_from.append(operation.source)

        if restored_from:
            try:
                self.repository.remove_entries(root, restored_from)
            except (StateError, OSError) as exc:
                result.errors.append(f"Index not updated: {exc}")
            result.readmitted_ids = self.store.add_pending(
                self._pending_file(path) for path in restored
            )
        self._clear_undo_log(root)
        LOGGER.info(
            "Undo finished: %d restored, %d failed", result.success_count, result.fail_count
        )
        return result

    # Moves -----------------------------------------------------------------

    def _move(self, item: StagedFile, root: Path) -> MoveResult:
        source = item.source_path

        def failed(reason: str) -> MoveResult:
            return MoveResult(file_id=item.id, success=False, source_path=source, error=reason)

        target = item.effective_target_path
        if target is None:
            return failed("No target path")
        clean = normalize_path(target.strip())
        if ".." in Path(clean).parts or Path(clean).is_absolute():
            return failed(f"Invalid target path: {target}")
        if not source.is_absolute() or not self.filesystem.exists(source):
            return failed(f"Source file not found: {source}")

        directory = root / clean if clean else root
        ensured = self.filesystem.ensure_dir(directory)
        if not ensured.ok:
            return failed(ensured.error or f"Unable to create {directory}")

        destination = directory / source.name
        if destination.resolve() == source.resolve():
            return MoveResult(
                file_id=item.id,
                success=True,
                source_path=source,
                target_path=destination,
                no_op=True,
            )

        conflict_applied = False
        if self.filesystem.exists(destination):
            if self.conflict_resolution == "skip":
                return failed(f"Destination already exists: {destination}")
            destination = self._next_free(destination)
            conflict_applied = True

        moved = self.filesystem.move(source, destination)
        if not moved.ok:
            return failed(moved.error or "Move failed")
        return MoveResult(
            file_id=item.id,
            success=True,
            source_path=source,
            target_path=destination,
            conflict_applied=conflict_applied,
        )

    def _next_free(self, destination: Path) -> Path:
        counter = 1
        while True:
            candidate = destination.with_name(f"{destination.stem}-{counter}{destination.suffix}")
            if not self.filesystem.exists(candidate):
                return candidate
            counter += 1

    def _restore(self, moved_to: Path, original: Path) -> Optional[str]:
        if not self.filesystem.exists(moved_to):
            return f"File no longer at {moved_to}"
        if self.filesystem.exists(original):
            return f"Original location is occupied: {original}"
        ensured = self.filesystem.ensure_dir(original.parent)
        if not ensured.ok:
            return ensured.error
        moved = self.filesystem.move(moved_to, original)
        return None if moved.ok else moved.error

    # Bookkeeping -----------------------------------------------------------

    def _write_undo_log(self, root: Path, moved: List[Tuple[StagedFile, MoveResult]]) -> List[str]:
        operations = [
            UndoOperation(source=str(outcome.target_path), target=str(outcome.source_path))
            for _, outcome in moved
            if not outcome.no_op
        ]
        if not operations:
            return []
        log = UndoLog(operations=operations)
        self._undo_log = log
        try:
            self.repository.save_undo_log(root, log)
        except OSError as exc:
            return [f"Undo log not saved: {exc}"]
        return []

    def _persist_index(self, root: Path, moved: List[Tuple[StagedFile, MoveResult]]) -> List[str]:
        try:
            document = self.repository.load_index(root)
        except StateError as exc:
            return [f"Index not updated: {exc}"]

        document.config = self.taxonomy.model_copy(deep=True)
        tree = CategoryTree(document.taxonomy.root)
        for item, outcome in moved:
            category = normalize_path(item.effective_target_path or "")
            proposal = item.proposal
            key = item.content_hash or item.display_name
            document.files[key] = FileEntry(
                id=item.id,
                original_name=item.display_name,
                current_path=str(outcome.target_path),
                content_hash=item.content_hash or "",
                category=category,
                size=item.size_bytes,
                mtime=self._mtime(outcome.target_path),
                ai=AIInfo(
                    summary=item.effective_summary,
                    tags=list(item.effective_tags),
                    reasoning=proposal.reasoning if proposal else "",
                    confidence=proposal.confidence if proposal else 0.0,
                ),
                user_override=(
                    item.user_edit is not None and item.user_edit.target_path is not None
                ),
            )
            if category:
                tree.ensure_path(category)
        document.taxonomy.root = tree.roots

        try:
            saved = self.repository.save_index(root, document)
        except OSError as exc:
            return [f"Index not saved: {exc}"]
        if not saved:
            return ["Index not saved: refusing to replace existing data with an empty index"]
        return []

    def _record_corrections(
        self, root: Path, moved: List[Tuple[StagedFile, MoveResult]]
    ) -> List[str]:
        changed = False
        for item, _ in moved:
            if item.proposal is None or item.user_edit is None:
                continue
            chosen = item.user_edit.target_path
            if chosen is None:
                continue
            if self.learner.record(item.proposal.target_path, chosen, item.display_name):
                changed = True
        if not changed:
            return []
        try:
            self.repository.save_corrections(root, self.learner.records)
        except OSError as exc:
            return [f"Corrections not saved: {exc}"]
        return []

    def _clear_undo_log(self, root: Path) -> None:
        self._undo_log = None
        self.repository.clear_undo_log(root)

    def _pending_file(self, path: Path) -> PendingFile:
        mime, _ = self.detector.detect(path)
        try:
            stat = path.stat()
        except OSError:
            return PendingFile(path=path, mime_type=mime)
        return PendingFile(
            path=path,
            size_bytes=stat.st_size,
            mime_type=mime,
            modified_at=datetime.fromtimestamp(stat.st_mtime, tz=timezone.utc),
        )

    @staticmethod
    def _mtime(path: Optional[Path]) -> Optional[float]:
        if path is None:
            return None
        try:
            return path.stat().st_mtime
        except OSError:
            return None


__all__ = ["CommitEngine", "ConflictStrategy"]
