"""File type detection and hashing utilities."""

from __future__ import annotations

import hashlib
import logging
import mimetypes
from pathlib import Path
from typing import Any, Optional, Tuple

LOGGER = logging.getLogger(__name__)

DEFAULT_CHUNK_SIZE = 2 * 1024 * 1024

_EXTRA_TYPES = {
    ".md": "text/markdown",
    ".yaml": "application/x-yaml",
    ".yml": "application/x-yaml",
    ".ts": "text/x-typescript",
    ".tsx": "text/x-typescript",
    ".webp": "image/webp",
}

# Content sniffing answers that say less than a known file extension does.
_GENERIC_TYPES = frozenset(
    {
        "application/octet-stream",
        "application/x-empty",
        "application/zip",
        "inode/x-empty",
        "text/plain",
    }
)

_UNKNOWN = "application/octet-stream"


class HashError(Exception):
    """Raised when a content digest cannot be computed."""


class TypeDetector:
    """Identify MIME type and file category using python-magic and heuristics.

    File contents are sniffed with libmagic first. The extension is consulted
    when the content answer is generic (plain text, empty, raw bytes) or when
    the file cannot be opened.
    """

    def __init__(self) -> None:
        self._magic: Any = None

    def _get_magic(self) -> Any:
        if self._magic is None:
            try:
                import magic

                self._magic = magic.Magic(mime=True)
            except (ImportError, OSError) as exc:
                LOGGER.warning("python-magic is unavailable; using file extensions: %s", exc)
                self._magic = False
        return self._magic

    def _sniff(self, path: Path) -> Optional[str]:
        sniffer = self._get_magic()
        if not sniffer or not path.is_file():
            return None
        try:
            detected = sniffer.from_file(str(path))
        except Exception as exc:  # libmagic raises its own MagicException
            LOGGER.debug("Could not sniff MIME type of %s: %s", path, exc)
            return None
        return detected.split(";", 1)[0].strip().lower() or None

    @staticmethod
    def _from_extension(path: Path) -> Optional[str]:
        suffix = path.suffix.lower()
        if suffix in _EXTRA_TYPES:
            return _EXTRA_TYPES[suffix]
        guessed, _ = mimetypes.guess_type(path.name)
        return guessed

    def detect(self, path: Path) -> Tuple[str, str]:
        """Return MIME type and normalized category.

        Args:
            path: File to inspect.

        Returns:
            Tuple[str, str]: MIME type and its major type (``text``, ``image``, ...).
        """
        sniffed = self._sniff(path)
        mime = sniffed
        if sniffed is None or sniffed in _GENERIC_TYPES:
            mime = self._from_extension(path) or sniffed or _UNKNOWN
        if mime in {"inode/x-empty", "application/x-empty"}:
            mime = "text/plain"
        category = mime.split("/", 1)[0] if mime != _UNKNOWN else "unknown"
        return mime, category


class HashComputer:
    """Compute content digests for deduplication.

    Files are read in fixed-size chunks so arbitrarily large files never have to
    fit in memory. MD5 is used for duplicate detection only.
    """

    def __init__(self, chunk_size: int = DEFAULT_CHUNK_SIZE) -> None:
        if chunk_size <= 0:
            raise ValueError("chunk_size must be positive")
        self.chunk_size = chunk_size

    def compute(self, path: Path) -> str:
        """Return a hex digest representing the file contents.

        Raises:
            HashError: If the file cannot be read.
        """
        digest = hashlib.md5(usedforsecurity=False)
        try:
            with path.open("rb") as handle:
                for chunk in iter(lambda: handle.read(self.chunk_size), b""):
                    digest.update(chunk)
        except OSError as exc:
            raise HashError(f"Unable to hash {path}: {exc}") from exc
        return digest.hexdigest()

    def compute_bytes(self, payload: bytes) -> str:
        """Return the digest of an in-memory payload."""
        return hashlib.md5(payload, usedforsecurity=False).hexdigest()


__all__ = ["TypeDetector", "HashComputer", "HashError", "DEFAULT_CHUNK_SIZE"]
