"""Local filesystem capability used by the reconciliation and commit engines.

Every method reports failure through :class:`FsResult` instead of raising, so
callers decide how a failure maps onto staging state.
"""

from __future__ import annotations

import base64
import logging
import shutil
from pathlib import Path
from typing import Iterable

from .detectors import HashComputer, HashError
from .discovery import DirectoryScanner
from .models import FsResult, TextContent
from .tree import DirectoryNode

LOGGER = logging.getLogger(__name__)

TEXT_EXTENSIONS = frozenset(
    {
        ".txt", ".md", ".json", ".csv", ".py", ".js", ".ts", ".tsx", ".jsx", ".vue",
        ".html", ".css", ".scss", ".less", ".sql", ".xml", ".yaml", ".yml", ".log",
        ".ini", ".cfg", ".conf", ".env", ".sh", ".bat", ".ps1", ".c", ".cpp", ".h",
        ".java", ".go", ".rs", ".rb", ".php",
    }
)  # fmt: skip


def is_text_path(path: Path) -> bool:
    """Return True when the extension is known to hold plain text."""
    return path.suffix.lower() in TEXT_EXTENSIONS


class LocalFileSystem:
    """Filesystem operations with explicit success/failure results."""

    def __init__(
        self,
        *,
        hasher: HashComputer | None = None,
        scanner: DirectoryScanner | None = None,
    ) -> None:
        self.hasher = hasher or HashComputer()
        self.scanner = scanner or DirectoryScanner(
            recursive=True,
            include_hidden=False,
            follow_symlinks=False,
            max_size_bytes=None,
        )

    def read_text(self, path: Path, max_chars: int = 30_000) -> FsResult[TextContent]:
        """Read up to ``max_chars`` characters of a text file.

        Binary files succeed with ``is_text=False`` and a short metadata
        description as content.
        """
        try:
            size = path.stat().st_size
            if not is_text_path(path):
                description = (
                    f"[Binary File] Name: {path.name}, Size: {size} bytes, "
                    f"Extension: {path.suffix.lower() or 'none'}"
                )
                return FsResult.success(TextContent(content=description, is_text=False))
            with path.open("r", encoding="utf-8", errors="replace") as handle:
                content = handle.read(max_chars)
        except OSError as exc:
            return FsResult.failure(f"Unable to read {path}: {exc}")
        return FsResult.success(TextContent(content=content, is_text=True))

    def read_binary_base64(self, path: Path) -> FsResult[str]:
        """Return the file contents encoded as base64."""
        try:
            payload = path.read_bytes()
        except OSError as exc:
            return FsResult.failure(f"Unable to read {path}: {exc}")
        return FsResult.success(base64.b64encode(payload).decode("ascii"))

    def ensure_dir(self, path: Path) -> FsResult[None]:
        """Create ``path`` (and parents) when missing."""
        try:
            path.mkdir(parents=True, exist_ok=True)
        except OSError as exc:
            return FsResult.failure(f"Unable to create directory {path}: {exc}")
        return FsResult.success()

    def move(self, source: Path, destination: Path) -> FsResult[None]:
        """Move ``source`` to ``destination``; the parent must already exist."""
        try:
            shutil.move(str(source), str(destination))
        except (OSError, shutil.Error) as exc:
            return FsResult.failure(f"Unable to move {source} -> {destination}: {exc}")
        LOGGER.debug("Moved %s -> %s", source, destination)
        return FsResult.success()

    def exists(self, path: Path) -> bool:
        return path.exists()

    def scan_tree(self, root: Path, *, exclude: Iterable[str] = ()) -> FsResult[DirectoryNode]:
        """Return the directory tree rooted at ``root``."""
        if not root.is_dir():
            return FsResult.failure(f"Not a directory: {root}")
        try:
            tree = self.scanner.scan_tree(root, exclude=exclude)
        except OSError as exc:
            return FsResult.failure(f"Unable to scan {root}: {exc}")
        return FsResult.success(tree)

    def hash(self, path: Path) -> FsResult[str]:
        """Return the content digest of ``path``."""
        try:
            return FsResult.success(self.hasher.compute(path))
        except HashError as exc:
            return FsResult.failure(str(exc))


__all__ = ["LocalFileSystem", "TEXT_EXTENSIONS", "is_text_path"]
