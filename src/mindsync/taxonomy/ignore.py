"""Ignore-pattern matching for files excluded from staging."""

from __future__ import annotations

from fnmatch import fnmatch
from pathlib import Path, PurePath
from typing import Iterable

_GLOB_CHARS = frozenset("*?[")


def _is_glob(pattern: str) -> bool:
    return any(char in _GLOB_CHARS for char in pattern)


def should_ignore(path: Path | PurePath | str, patterns: Iterable[str]) -> bool:
    """Return True when any component of ``path`` matches an ignore pattern.

    Glob patterns (``*.tmp``) are matched against every path component, plain
    names (``node_modules``) must equal a component exactly. Matching is
    case-sensitive, like the file names themselves.

    Args:
        path: File name or relative path to test.
        patterns: Configured ignore patterns.

    Returns:
        bool: Whether the path is excluded.
    """
    parts = PurePath(path).parts
    if not parts:
        return False
    for pattern in patterns:
        pattern = pattern.strip()
        if not pattern:
            continue
        if _is_glob(pattern):
            if any(fnmatch(part, pattern) for part in parts):
                return True
        elif pattern in parts:
            return True
    return False


__all__ = ["should_ignore"]
