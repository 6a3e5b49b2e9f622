"""Persisted metadata models for an organized library (format version 3.0)."""

from __future__ import annotations

import re
from datetime import datetime, timezone
from typing import Any, Dict, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

from mindsync.config.models import TaxonomyConfig
from mindsync.taxonomy.categories import CategoryNode, default_roots

METADATA_VERSION = "3.0"


class PersistedModel(BaseModel):
    """Base for models stored as camelCase JSON."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="ignore")


class AIInfo(PersistedModel):
    """AI-derived description of an indexed file."""

    summary: str = ""
    tags: List[str] = Field(default_factory=list)
    reasoning: str = ""
    confidence: float = 0.0


class FileEntry(PersistedModel):
    """Index entry for a committed file, keyed by content hash."""

    id: str
    original_name: str
    current_path: str
    content_hash: str = ""
    category: str = ""
    size: int = 0
    mtime: Optional[float] = None
    ai: AIInfo = Field(default_factory=AIInfo)
    user_override: bool = False
    added_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))


class TaxonomyState(PersistedModel):
    """Category tree stored in the metadata document."""

    root: List[CategoryNode] = Field(default_factory=default_roots)


class MetadataDocument(PersistedModel):
    """Top-level ``index.json`` document."""

    version: Literal["3.0"] = METADATA_VERSION
    config: TaxonomyConfig = Field(default_factory=TaxonomyConfig)
    taxonomy: TaxonomyState = Field(default_factory=TaxonomyState)
    files: Dict[str, FileEntry] = Field(default_factory=dict)

    @field_validator("config", mode="before")
    @classmethod
    def _drop_unknown_config_keys(cls, value: Any) -> Any:
        if isinstance(value, dict):
            known = set(TaxonomyConfig.model_fields)
            known |= {to_camel(name) for name in known}
            return {key: item for key, item in value.items() if key in known}
        return value

    def categories(self) -> List[str]:
        """Return the distinct categories of indexed files in insertion order."""
        seen: Dict[str, None] = {}
        for entry in self.files.values():
            category = entry.category.strip("/")
            if category:
                seen.setdefault(category, None)
        return list(seen)

    def to_json_dict(self) -> Dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True)


class UndoOperation(BaseModel):
    """One inverse move: ``source`` is where the file is now, ``target`` where it was."""

    source: str
    target: str


class UndoLog(BaseModel):
    """Inverse operations of the most recent commit."""

    timestamp: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    operations: List[UndoOperation] = Field(default_factory=list)


def _legacy_key(item: Dict[str, Any], name: str) -> str:
    digest = item.get("contentHash") or item.get("hash")
    if digest:
        return str(digest)
    location = str(item.get("filePath") or "")
    basis = location.rsplit("/", 1)[-1] or name
    return re.sub(r"\s+", "_", basis)


def migrate_legacy(items: List[Dict[str, Any]]) -> MetadataDocument:
    """Convert the version-less array format into a 3.0 document.

    Items sharing a key keep the first occurrence so hash keys stay unique.
    """
    document = MetadataDocument()
    for index, item in enumerate(items):
        if not isinstance(item, dict):
            continue
        name = str(item.get("fileName") or item.get("name") or item.get("originalName") or "")
        if not name:
            continue
        key = _legacy_key(item, name)
        if key in document.files:
            continue
        document.files[key] = FileEntry(
            id=str(item.get("id") or f"legacy-{index}"),
            original_name=name,
            current_path=str(item.get("filePath") or item.get("currentPath") or ""),
            content_hash=str(item.get("contentHash") or item.get("hash") or ""),
            category=str(item.get("category") or ""),
            ai=AIInfo(
                summary=str(item.get("summary") or ""),
                tags=[str(tag) for tag in item.get("tags") or []],
                reasoning=str(item.get("reasoning") or ""),
                confidence=float(item.get("confidence") or 0.0),
            ),
            user_override=bool(item.get("userOverride", False)),
        )
    return document


__all__ = [
    "METADATA_VERSION",
    "AIInfo",
    "FileEntry",
    "MetadataDocument",
    "TaxonomyState",
    "UndoLog",
    "UndoOperation",
    "migrate_legacy",
]
