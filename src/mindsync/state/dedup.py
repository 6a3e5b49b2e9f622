"""Content-hash duplicate detection against the persisted index."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Dict, Mapping, Optional

from .models import FileEntry


class DuplicateKind(str, Enum):
    """Classification of a duplicate, also used as the proposal tag."""

    EXACT = "ExactDuplicate"
    RENAMED = "ContentDuplicateRenamed"


@dataclass(slots=True, frozen=True)
class DuplicateCheck:
    """Outcome of looking a digest up in the index."""

    is_duplicate: bool
    existing_name: Optional[str] = None


@dataclass(slots=True, frozen=True)
class DuplicateMatch:
    """A candidate whose content is already known under ``existing_name``."""

    kind: DuplicateKind
    candidate_name: str
    existing_name: str

    @property
    def summary(self) -> str:
        if self.kind is DuplicateKind.EXACT:
            return "Exact duplicate (same name and content)."
        return (
            f'Same content already stored as "{self.existing_name}"; '
            "consider keeping a single name."
        )

    @property
    def reasoning(self) -> str:
        if self.kind is DuplicateKind.EXACT:
            return "Content hash and file name both match an indexed file."
        return (
            f'Content hash matches but names differ: "{self.candidate_name}" '
            f'vs existing "{self.existing_name}".'
        )

    @property
    def tags(self) -> list[str]:
        if self.kind is DuplicateKind.EXACT:
            return [self.kind.value]
        return [self.kind.value, "DifferentName"]


class DedupIndex:
    """Digest lookup over indexed files plus files seen earlier in the batch."""

    def __init__(self, entries: Optional[Mapping[str, FileEntry]] = None) -> None:
        self._names: Dict[str, str] = {
            digest: entry.original_name for digest, entry in (entries or {}).items()
        }

    def __contains__(self, digest: object) -> bool:
        return digest in self._names

    def __len__(self) -> int:
        return len(self._names)

    def register(self, digest: str, name: str) -> None:
        """Remember ``digest``; the first registered name is kept."""
        self._names.setdefault(digest, name)

    def check_duplicate(self, digest: str) -> DuplicateCheck:
        """Return whether ``digest`` is already known and under which name."""
        name = self._names.get(digest)
        if name is None:
            return DuplicateCheck(is_duplicate=False)
        return DuplicateCheck(is_duplicate=True, existing_name=name)

    def classify(self, digest: str, candidate_name: str) -> Optional[DuplicateMatch]:
        """Return the duplicate classification for a candidate, if any."""
        check = self.check_duplicate(digest)
        if not check.is_duplicate or check.existing_name is None:
            return None
        kind = (
            DuplicateKind.EXACT if check.existing_name == candidate_name else DuplicateKind.RENAMED
        )
        return DuplicateMatch(
            kind=kind, candidate_name=candidate_name, existing_name=check.existing_name
        )


__all__ = ["DedupIndex", "DuplicateCheck", "DuplicateKind", "DuplicateMatch"]
