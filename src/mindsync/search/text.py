"""Text normalization utilities for search."""

from __future__ import annotations

import re

_CONTROL_CHARS = re.compile(r"[\x00-\x08\x0B\x0C\x0E-\x1F]")
_WHITESPACE = re.compile(r"\s+")


def normalize_search_text(text: str, *, limit: int = 4096) -> str:
    """Return text with control characters removed and whitespace collapsed.

    Args:
        text: Source text such as a summary or a query.
        limit: Maximum number of characters kept; ``0`` keeps everything.

    Returns:
        str: Normalized text.
    """

    sanitized = _CONTROL_CHARS.sub(" ", text)
    sanitized = _WHITESPACE.sub(" ", sanitized).strip()
    if limit > 0:
        return sanitized[:limit]
    return sanitized


def snippet(text: str, needle: str, *, context: int = 20) -> str:
    """Return ``needle`` in ``text`` with ``context`` characters on each side."""
    index = text.lower().find(needle.lower())
    if index < 0:
        return text[: context * 2]
    start = max(0, index - context)
    end = min(len(text), index + len(needle) + context)
    return f"...{text[start:end]}..."


__all__ = ["normalize_search_text", "snippet"]
