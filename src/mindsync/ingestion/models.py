"""Data models shared by ingestion helpers."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from typing import Generic, List, Optional, TypeVar

from pydantic import BaseModel, Field

T = TypeVar("T")


class PendingFile(BaseModel):
    """A file discovered on disk that is about to enter staging.

    Attributes:
        path: Absolute path of the file.
        size_bytes: File size in bytes.
        mime_type: Detected MIME type.
        modified_at: Last modification timestamp.
    """

    path: Path
    size_bytes: int = 0
    mime_type: str = "application/octet-stream"
    modified_at: Optional[datetime] = None


class IngestionResult(BaseModel):
    """Outcome of collecting files for staging."""

    pending: List[PendingFile] = Field(default_factory=list)
    ignored: List[Path] = Field(default_factory=list)
    errors: List[str] = Field(default_factory=list)


@dataclass(slots=True)
class FsResult(Generic[T]):
    """Explicit success/failure result returned by filesystem capabilities.

    Attributes:
        ok: Whether the operation succeeded.
        value: Payload on success.
        error: Human-readable failure reason.
    """

    ok: bool
    value: Optional[T] = None
    error: Optional[str] = None

    @classmethod
    def success(cls, value: Optional[T] = None) -> "FsResult[T]":
        return cls(ok=True, value=value)

    @classmethod
    def failure(cls, error: str) -> "FsResult[T]":
        return cls(ok=False, error=error)


@dataclass(slots=True)
class TextContent:
    """Text read from a file, or a metadata description when not textual."""

    content: str
    is_text: bool


__all__ = ["PendingFile", "IngestionResult", "FsResult", "TextContent"]
