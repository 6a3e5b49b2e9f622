"""File discovery utilities."""

from __future__ import annotations

from datetime import datetime, timezone
from pathlib import Path
from typing import Iterable, Iterator, Sequence

from mindsync.taxonomy.ignore import should_ignore

from .detectors import TypeDetector
from .models import PendingFile
from .tree import DirectoryNode, FileNode


def _is_hidden(path: Path) -> bool:
    return any(part.startswith(".") for part in path.parts if part not in (".", ".."))


class DirectoryScanner:
    """Discover files within a directory tree subject to configuration filters."""

    def __init__(
        self,
        *,
        recursive: bool,
        include_hidden: bool,
        follow_symlinks: bool,
        max_size_bytes: int | None,
        ignore_patterns: Sequence[str] = (),
        detector: TypeDetector | None = None,
    ) -> None:
        self.recursive = recursive
        self.include_hidden = include_hidden
        self.follow_symlinks = follow_symlinks
        self.max_size_bytes = max_size_bytes
        self.ignore_patterns = list(ignore_patterns)
        self.detector = detector or TypeDetector()

    def scan(self, root: Path) -> Iterator[PendingFile]:
        """Yield files discovered under root respecting configured filters."""
        root = root.expanduser().resolve()
        if not root.exists():
            return

        for path in self._iter_paths(root):
            if not path.is_file() and not (self.follow_symlinks and path.is_symlink()):
                continue
            try:
                relative = path.relative_to(root)
            except ValueError:
                relative = Path(path.name)
            if self.is_excluded(relative):
                continue
            try:
                stat = path.stat(follow_symlinks=self.follow_symlinks)
            except OSError:
                continue
            if self.max_size_bytes is not None and stat.st_size > self.max_size_bytes:
                continue

            mime, _ = self.detector.detect(path)
            yield PendingFile(
                path=path,
                size_bytes=stat.st_size,
                mime_type=mime,
                modified_at=datetime.fromtimestamp(stat.st_mtime, tz=timezone.utc),
            )

    def is_excluded(self, relative: Path) -> bool:
        """Return True when hidden-file or ignore-pattern rules reject ``relative``."""
        if not self.include_hidden and _is_hidden(relative):
            return True
        return should_ignore(relative, self.ignore_patterns)

    def scan_tree(self, root: Path, *, exclude: Iterable[str] = ()) -> DirectoryNode:
        """Return the full directory tree under ``root``.

        Hidden entries are always skipped, as are names listed in ``exclude``.
        Subdirectories are walked regardless of the ``recursive`` flag since the
        tree describes the existing taxonomy, not the files to stage.
        """
        root = root.expanduser().resolve()
        excluded = set(exclude)
        return self._walk(root, excluded)

    def _walk(self, directory: Path, excluded: set[str]) -> DirectoryNode:
        children: list[FileNode | DirectoryNode] = []
        try:
            entries = sorted(directory.iterdir(), key=lambda item: item.name.lower())
        except OSError:
            entries = []
        for entry in entries:
            if entry.name.startswith(".") or entry.name in excluded:
                continue
            if entry.is_symlink() and not self.follow_symlinks:
                continue
            if entry.is_dir():
                children.append(self._walk(entry, excluded))
            elif entry.is_file():
                try:
                    size = entry.stat().st_size
                except OSError:
                    size = 0
                children.append(FileNode(name=entry.name, path=str(entry), size_bytes=size))
        return DirectoryNode(name=directory.name, path=str(directory), children=children)

    def _iter_paths(self, root: Path) -> Iterable[Path]:
        """Internal helper to iterate candidate paths."""
        if root.is_file():
            yield root
            return

        if self.recursive:
            yield from sorted(root.rglob("*"))
        else:
            yield from sorted(root.iterdir())
