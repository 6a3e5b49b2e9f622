"""Content extraction for the supplement phase of analysis."""

from __future__ import annotations

import base64
import binascii
import io
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Literal, Optional

from PIL import Image, UnidentifiedImageError

from .detectors import TypeDetector
from .filesystem import LocalFileSystem

LOGGER = logging.getLogger(__name__)

RequestType = Literal["text_preview", "image_vision", "full_text", "pdf_document"]
FULL_TEXT_CHARS = 30_000


@dataclass(slots=True)
class ContentSupplement:
    """Content slice sent alongside a single-file analysis request.

    Attributes:
        request_type: Kind of content carried (``pdf_document`` for PDFs
            regardless of what was requested).
        mime_type: MIME type of the source file.
        text: Text preview, or a metadata description when unreadable.
        data_base64: Encoded payload for vision and document requests.
        fallback: True when ``text`` describes the file instead of quoting it.
    """

    request_type: RequestType
    mime_type: str
    text: Optional[str] = None
    data_base64: Optional[str] = None
    fallback: bool = False

    @property
    def is_binary(self) -> bool:
        return self.data_base64 is not None


def describe_unreadable(path: Path, mime_type: str) -> str:
    """Return the metadata description used when content cannot be read."""
    return (
        f"[System note] The file ({mime_type or 'unknown format'}) could not be read as text. "
        f'Classify it from its name "{path.name}" and file type only.'
    )


class ContentExtractor:
    """Fetch the content slice an analysis provider asked for."""

    def __init__(
        self,
        filesystem: LocalFileSystem,
        *,
        text_preview_chars: int = 8000,
        detector: TypeDetector | None = None,
    ) -> None:
        self.filesystem = filesystem
        self.text_preview_chars = text_preview_chars
        self.detector = detector or TypeDetector()

    def extract(self, path: Path, request_type: RequestType) -> Optional[ContentSupplement]:
        """Return the supplement for ``path``.

        PDFs are always sent as documents. Returns None only when binary
        content (image or PDF) could not be read; text requests fall back to a
        metadata description instead.
        """
        mime, _ = self.detector.detect(path)
        if path.suffix.lower() == ".pdf":
            return self._binary(path, "pdf_document", mime)
        if request_type == "image_vision":
            return self._binary(path, "image_vision", mime)

        limit = FULL_TEXT_CHARS if request_type == "full_text" else self.text_preview_chars
        result = self.filesystem.read_text(path, max_chars=limit)
        if result.ok and result.value is not None and result.value.is_text:
            text = result.value.content[:limit]
            if text.strip():
                return ContentSupplement(request_type=request_type, mime_type=mime, text=text)
        elif not result.ok:
            LOGGER.warning("Unable to read %s for analysis: %s", path, result.error)

        LOGGER.info("Content of %s not readable; using metadata fallback.", path.name)
        return ContentSupplement(
            request_type="text_preview",
            mime_type=mime,
            text=describe_unreadable(path, mime),
            fallback=True,
        )

    def _binary(
        self, path: Path, request_type: RequestType, mime: str
    ) -> Optional[ContentSupplement]:
        result = self.filesystem.read_binary_base64(path)
        if not result.ok or not result.value:
            LOGGER.warning("Unable to read %s for analysis: %s", path, result.error)
            return None
        if request_type == "image_vision" and not is_readable_image(result.value):
            LOGGER.warning("Image %s could not be decoded.", path)
            return None
        return ContentSupplement(
            request_type=request_type,
            mime_type=mime,
            data_base64=result.value,
        )


def is_readable_image(data_base64: str) -> bool:
    """Return True when Pillow can identify the encoded image."""
    try:
        payload = base64.b64decode(data_base64, validate=True)
        with Image.open(io.BytesIO(payload)) as image:
            image.verify()
    except (binascii.Error, UnidentifiedImageError, OSError, SyntaxError):
        return False
    return True


__all__ = [
    "ContentExtractor",
    "ContentSupplement",
    "RequestType",
    "describe_unreadable",
    "is_readable_image",
]
