"""Weighted keyword search over indexed files."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from pathlib import PurePath
from typing import Dict, Iterable, List, Literal, Optional, Sequence, Tuple

from mindsync.state import FileEntry

from .text import normalize_search_text, snippet

HighlightField = Literal["fileName", "tags", "summary", "category"]

FIELD_WEIGHTS: Dict[HighlightField, float] = {
    "fileName": 1.0,
    "tags": 0.8,
    "summary": 0.6,
    "category": 0.4,
}
FIELD_MULTIPLIERS: Dict[HighlightField, int] = {
    "fileName": 10,
    "tags": 5,
    "summary": 3,
    "category": 2,
}
DEFAULT_LIMIT = 50

FILE_TYPE_GROUPS: Dict[str, Tuple[str, ...]] = {
    "doc": ("txt", "md", "doc", "docx", "pdf", "rtf"),
    "spreadsheet": ("csv", "xlsx", "xls"),
    "presentation": ("ppt", "pptx"),
    "image": ("jpg", "jpeg", "png", "gif", "svg", "webp"),
    "code": (
        "js", "ts", "tsx", "jsx", "py", "java", "cpp", "c", "go", "rs", "html", "css", "json",
    ),
    "audio": ("mp3", "wav", "flac", "aac"),
    "video": ("mp4", "mov", "avi", "mkv"),
    "archive": ("zip", "rar", "7z", "tar", "gz"),
}


def file_type_group(file_name: str) -> str:
    """Return the coarse type group of ``file_name`` (``other`` when unknown)."""
    extension = PurePath(file_name).suffix.lower().lstrip(".")
    for group, extensions in FILE_TYPE_GROUPS.items():
        if extension in extensions:
            return group
    return "other"


@dataclass(slots=True, frozen=True)
class Highlight:
    field: HighlightField
    text: str


@dataclass(slots=True)
class SearchFilters:
    """Restrictions applied before scoring.

    Attributes:
        file_types: Accepted type groups (see :data:`FILE_TYPE_GROUPS`).
        tags: Tags that must all be present (case-insensitive).
        categories: Accepted categories (exact match).
        added_after: Earliest accepted ``added_at``.
        added_before: Latest accepted ``added_at``.
    """

    file_types: Sequence[str] = ()
    tags: Sequence[str] = ()
    categories: Sequence[str] = ()
    added_after: Optional[datetime] = None
    added_before: Optional[datetime] = None

    def accepts(self, entry: FileEntry) -> bool:
        if self.file_types and file_type_group(entry.original_name) not in self.file_types:
            return False
        if self.tags:
            present = {tag.lower() for tag in entry.ai.tags}
            if not all(tag.lower() in present for tag in self.tags):
                return False
        if self.categories and entry.category not in self.categories:
            return False
        if self.added_after is not None and entry.added_at < self.added_after:
            return False
        if self.added_before is not None and entry.added_at > self.added_before:
            return False
        return True


@dataclass(slots=True)
class SearchResult:
    entry: FileEntry
    score: float
    highlights: List[Highlight] = field(default_factory=list)


def score_entry(entry: FileEntry, query: str) -> Tuple[float, List[Highlight]]:
    """Return the relevance score of ``entry`` for ``query`` and the matched fields.

    An empty query scores every entry as 1.
    """
    needle = normalize_search_text(query).lower()
    if not needle:
        return 1.0, []

    score = 0.0
    highlights: List[Highlight] = []
    if needle in entry.original_name.lower():
        score += FIELD_WEIGHTS["fileName"] * FIELD_MULTIPLIERS["fileName"]
        highlights.append(Highlight("fileName", entry.original_name))

    matched_tags = [tag for tag in entry.ai.tags if needle in tag.lower()]
    if matched_tags:
        score += FIELD_WEIGHTS["tags"] * FIELD_MULTIPLIERS["tags"] * len(matched_tags)
        highlights.extend(Highlight("tags", tag) for tag in matched_tags)

    summary = entry.ai.summary
    if needle in summary.lower():
        score += FIELD_WEIGHTS["summary"] * FIELD_MULTIPLIERS["summary"]
        highlights.append(Highlight("summary", snippet(summary, needle)))

    if needle in entry.category.lower():
        score += FIELD_WEIGHTS["category"] * FIELD_MULTIPLIERS["category"]
        highlights.append(Highlight("category", entry.category))

    return score, highlights


def search(
    entries: Iterable[FileEntry],
    query: str,
    *,
    filters: Optional[SearchFilters] = None,
    limit: int = DEFAULT_LIMIT,
) -> List[SearchResult]:
    """Filter, score and rank ``entries``.

    Entries that match none of the fields are dropped when ``query`` is not
    empty. Equal scores keep their input order.
    """
    results: List[SearchResult] = []
    for entry in entries:
        if filters is not None and not filters.accepts(entry):
            continue
        score, highlights = score_entry(entry, query)
        if score <= 0:
            continue
        results.append(SearchResult(entry=entry, score=score, highlights=highlights))
    results.sort(key=lambda result: result.score, reverse=True)
    return results[:limit] if limit > 0 else results


def filter_options(entries: Iterable[FileEntry]) -> Dict[str, List[str]]:
    """Return the sorted categories, tags and type groups present in ``entries``."""
    categories: set[str] = set()
    tags: set[str] = set()
    groups: set[str] = set()
    for entry in entries:
        if entry.category:
            categories.add(entry.category)
        tags.update(entry.ai.tags)
        groups.add(file_type_group(entry.original_name))
    return {
        "categories": sorted(categories),
        "tags": sorted(tags),
        "fileTypes": sorted(groups),
    }


__all__ = [
    "DEFAULT_LIMIT",
    "FIELD_WEIGHTS",
    "FILE_TYPE_GROUPS",
    "Highlight",
    "SearchFilters",
    "SearchResult",
    "file_type_group",
    "filter_options",
    "score_entry",
    "search",
]
