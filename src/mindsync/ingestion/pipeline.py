"""High-level ingestion pipeline orchestration."""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from pathlib import Path
from typing import Iterable

from mindsync.config.models import ProcessingOptions, TaxonomyConfig

from .detectors import TypeDetector
from .discovery import DirectoryScanner
from .models import IngestionResult, PendingFile

LOGGER = logging.getLogger(__name__)


class IngestionPipeline:
    """Collect the files that should enter staging from one or more paths."""

    def __init__(
        self,
        scanner: DirectoryScanner,
        detector: TypeDetector,
        *,
        exclude: Iterable[Path] = (),
    ) -> None:
        self.scanner = scanner
        self.detector = detector
        self.exclude = [path.expanduser().resolve() for path in exclude]

    @classmethod
    def from_config(
        cls,
        processing: ProcessingOptions,
        taxonomy: TaxonomyConfig,
        *,
        exclude: Iterable[Path] = (),
    ) -> "IngestionPipeline":
        """Build a pipeline whose scanner honours the configured filters."""
        detector = TypeDetector()
        max_size = (
            processing.max_file_size_mb * 1024 * 1024 if processing.max_file_size_mb > 0 else None
        )
        scanner = DirectoryScanner(
            recursive=processing.recurse_directories,
            include_hidden=processing.process_hidden_files,
            follow_symlinks=processing.follow_symlinks,
            max_size_bytes=max_size,
            ignore_patterns=taxonomy.ignore_patterns,
            detector=detector,
        )
        return cls(scanner, detector, exclude=exclude)

    def run(self, roots: Iterable[Path]) -> IngestionResult:
        """Process one or more roots and return aggregated results."""
        result = IngestionResult()
        seen: set[Path] = set()

        for root in roots:
            root_path = root.expanduser()
            if not root_path.exists():
                result.errors.append(f"{root_path}: path does not exist")
                continue
            if root_path.is_file():
                pending = self._pending_for_file(root_path.resolve(), result)
                candidates: Iterable[PendingFile] = [pending] if pending else []
            else:
                candidates = self.scanner.scan(root_path)

            for pending in candidates:
                if pending.path in seen or self._is_excluded(pending.path):
                    continue
                seen.add(pending.path)
                result.pending.append(pending)

        LOGGER.info(
            "Ingestion collected %d file(s), ignored %d.", len(result.pending), len(result.ignored)
        )
        return result

    def _pending_for_file(self, path: Path, result: IngestionResult) -> PendingFile | None:
        if self.scanner.is_excluded(Path(path.name)):
            result.ignored.append(path)
            return None
        try:
            stat = path.stat()
        except OSError as exc:
            result.errors.append(f"{path}: {exc}")
            return None
        mime, _ = self.detector.detect(path)
        return PendingFile(
            path=path,
            size_bytes=stat.st_size,
            mime_type=mime,
            modified_at=datetime.fromtimestamp(stat.st_mtime, tz=timezone.utc),
        )

    def _is_excluded(self, path: Path) -> bool:
        return any(path == excluded or excluded in path.parents for excluded in self.exclude)


__all__ = ["IngestionPipeline"]
