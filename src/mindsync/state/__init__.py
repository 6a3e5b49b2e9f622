"""State persistence helpers for MindSync libraries."""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, Iterable, List, Optional

from pydantic import ValidationError

from mindsync.taxonomy.corrections import CorrectionRecord

from .dedup import DedupIndex, DuplicateCheck, DuplicateKind, DuplicateMatch
from .errors import MissingStateError, StateError
from .models import (
    AIInfo,
    FileEntry,
    MetadataDocument,
    UndoLog,
    UndoOperation,
    migrate_legacy,
)

LOGGER = logging.getLogger(__name__)

DEFAULT_STATE_DIRNAME = ".mindsync"
INDEX_FILENAME = "index.json"
UNDO_LOG_FILENAME = "undo_log.json"
CORRECTIONS_FILENAME = "corrections.json"
LOG_FILENAME = "mindsync.log"


class MetadataRepository:
    """Manage the persisted index, undo log and correction log of a library."""

    def __init__(self, base_dirname: str = DEFAULT_STATE_DIRNAME) -> None:
        """Initialize the repository with an optional base directory name.

        Args:
            base_dirname: Name of the directory (under the library root) that
                stores state artifacts.
        """
        self._base_dirname = base_dirname

    @property
    def base_dirname(self) -> str:
        """Return the directory name used for library metadata."""
        return self._base_dirname

    def state_dir(self, root: Path) -> Path:
        """Return the path to the state directory for a library."""
        return root / self._base_dirname

    def log_path(self, root: Path) -> Path:
        return self.state_dir(root) / LOG_FILENAME

    def initialize(self, root: Path) -> Path:
        """Create the state directory when missing and return it."""
        directory = self.state_dir(root)
        directory.mkdir(parents=True, exist_ok=True)
        return directory

    # Index -----------------------------------------------------------------

    def load_index(self, root: Path, *, required: bool = False) -> MetadataDocument:
        """Load the metadata document, migrating the legacy array format.

        A missing index yields a fresh, empty document unless ``required``.

        Raises:
            MissingStateError: If ``required`` and no index exists.
            StateError: If stored data cannot be parsed.
        """
        path = self.state_dir(root) / INDEX_FILENAME
        data = self._read_json(path)
        if data is None:
            if required:
                raise MissingStateError(f"No library index found at {path}")
            return MetadataDocument()
        if isinstance(data, list):
            LOGGER.info("Migrating legacy index with %d item(s) to version 3.0.", len(data))
            return migrate_legacy(data)
        if not isinstance(data, dict):
            raise StateError("Invalid index data: expected an object or a list")
        if data.get("version") != "3.0":
            raise StateError(f"Unsupported index version: {data.get('version')!r}")
        try:
            return MetadataDocument.model_validate(data)
        except ValidationError as exc:
            raise StateError(f"Invalid index data: {exc}") from exc

    def save_index(self, root: Path, document: MetadataDocument) -> bool:
        """Persist ``document`` unless it would replace richer data with nothing.

        Returns:
            bool: False when the write was refused because the stored index has
            files (or categories) and ``document`` has none.
        """
        path = self.state_dir(root) / INDEX_FILENAME
        if path.exists():
            try:
                current = self.load_index(root)
            except StateError as exc:
                LOGGER.warning("Existing index unreadable, overwriting: %s", exc)
            else:
                if current.files and not document.files:
                    LOGGER.warning(
                        "Refusing to overwrite populated index at %s with no files.", path
                    )
                    return False
                if current.taxonomy.root and not document.taxonomy.root:
                    LOGGER.warning(
                        "Refusing to overwrite populated taxonomy at %s with an empty one.", path
                    )
                    return False
        self._write_json(root, INDEX_FILENAME, document.to_json_dict())
        return True

    def remove_entries(self, root: Path, current_paths: Iterable[str]) -> int:
        """Drop index entries whose ``current_path`` is listed.

        Returns:
            int: Number of entries removed.
        """
        targets = {str(path) for path in current_paths}
        if not targets:
            return 0
        document = self.load_index(root)
        kept = {
            key: entry for key, entry in document.files.items() if entry.current_path not in targets
        }
        removed = len(document.files) - len(kept)
        if removed:
            document.files = kept
            self._write_json(root, INDEX_FILENAME, document.to_json_dict())
        return removed

    # Undo log --------------------------------------------------------------

    def load_undo_log(self, root: Path) -> Optional[UndoLog]:
        data = self._read_json(self.state_dir(root) / UNDO_LOG_FILENAME)
        if data is None:
            return None
        try:
            return UndoLog.model_validate(data)
        except ValidationError as exc:
            raise StateError(f"Invalid undo log data: {exc}") from exc

    def save_undo_log(self, root: Path, log: UndoLog) -> None:
        self._write_json(root, UNDO_LOG_FILENAME, log.model_dump(mode="json"))

    def clear_undo_log(self, root: Path) -> None:
        (self.state_dir(root) / UNDO_LOG_FILENAME).unlink(missing_ok=True)

    # Corrections -----------------------------------------------------------

    def load_corrections(self, root: Path) -> List[CorrectionRecord]:
        data = self._read_json(self.state_dir(root) / CORRECTIONS_FILENAME)
        if data is None:
            return []
        if not isinstance(data, list):
            raise StateError("Invalid corrections data: expected a list")
        try:
            return [CorrectionRecord.model_validate(item) for item in data]
        except ValidationError as exc:
            raise StateError(f"Invalid corrections data: {exc}") from exc

    def save_corrections(self, root: Path, records: Iterable[CorrectionRecord]) -> None:
        payload = [record.model_dump(mode="json", by_alias=True) for record in records]
        self._write_json(root, CORRECTIONS_FILENAME, payload)

    # Helpers ---------------------------------------------------------------

    def _read_json(self, path: Path) -> Any:
        if not path.exists():
            return None
        try:
            return json.loads(path.read_text(encoding="utf-8"))
        except json.JSONDecodeError as exc:
            raise StateError(f"Invalid JSON in {path}: {exc}") from exc
        except OSError as exc:
            raise StateError(f"Unable to read {path}: {exc}") from exc

    def _write_json(self, root: Path, filename: str, payload: Any) -> None:
        directory = self.initialize(root)
        (directory / filename).write_text(
            json.dumps(payload, indent=2, ensure_ascii=False), encoding="utf-8"
        )


__all__ = [
    "AIInfo",
    "DEFAULT_STATE_DIRNAME",
    "DedupIndex",
    "DuplicateCheck",
    "DuplicateKind",
    "DuplicateMatch",
    "FileEntry",
    "MetadataDocument",
    "MetadataRepository",
    "MissingStateError",
    "StateError",
    "UndoLog",
    "UndoOperation",
]
