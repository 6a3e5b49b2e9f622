"""Keyword search over the library index."""

from .scorer import (
    FILE_TYPE_GROUPS,
    Highlight,
    SearchFilters,
    SearchResult,
    file_type_group,
    filter_options,
    score_entry,
    search,
)
from .text import normalize_search_text, snippet

__all__ = [
    "FILE_TYPE_GROUPS",
    "Highlight",
    "SearchFilters",
    "SearchResult",
    "file_type_group",
    "filter_options",
    "normalize_search_text",
    "score_entry",
    "search",
    "snippet",
]
