"""Immutable models describing the files under review."""

from __future__ import annotations

import uuid
from datetime import datetime, timezone
from enum import Enum
from pathlib import Path
from typing import Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field, field_validator


class FileStatus(str, Enum):
    """Lifecycle status of a staged file."""

    PENDING = "pending"
    ANALYZING = "analyzing"
    SUCCESS = "success"
    DUPLICATE = "duplicate"
    ERROR = "error"


class WorkflowStatus(str, Enum):
    """Status of the batch as a whole."""

    IDLE = "idle"
    ANALYZING = "analyzing"
    REVIEWING = "reviewing"
    EXECUTING = "executing"
    DONE = "done"


class FrozenModel(BaseModel):
    model_config = ConfigDict(frozen=True, extra="forbid")


class Proposal(FrozenModel):
    """Classification proposed for a file.

    Attributes:
        target_path: Category path relative to the library root; empty is the root.
        summary: Short description of the file.
        tags: Keywords describing the file.
        reasoning: Explanation of how the proposal was reached.
        confidence: Confidence between 0 and 1.
        skip: True when the file must not be moved (duplicates).
    """

    target_path: str = ""
    summary: str = ""
    tags: Tuple[str, ...] = ()
    reasoning: str = ""
    confidence: float = Field(default=0.0, ge=0.0, le=1.0)
    skip: bool = False


class UserEdit(FrozenModel):
    """User overrides; any field that is set wins over the proposal."""

    target_path: Optional[str] = None
    summary: Optional[str] = None
    tags: Optional[Tuple[str, ...]] = None

    def merged(self, other: "UserEdit") -> "UserEdit":
        """Return this edit with the fields set on ``other`` applied on top."""
        return self.model_copy(update=other.model_dump(exclude_none=True))


def new_file_id() -> str:
    return uuid.uuid4().hex[:12]


class StagedFile(FrozenModel):
    """One file in the review pipeline.

    Attributes:
        id: Handle unique within the staging session.
        source_path: Absolute location of the file, used for moving and undo.
        name: Display name (the original file name).
        size_bytes: File size in bytes.
        mime_type: Detected MIME type.
        status: Lifecycle status.
        content_hash: Content digest once hashing completed.
        proposal: AI/resolver output.
        user_edit: User overrides.
        error: Failure message when ``status`` is ``error``.
        is_reanalysis: Set by re-analysis; the next pass skips the duplicate check.
        added_at: When the file entered staging.
    """

    id: str = Field(default_factory=new_file_id)
    source_path: Path
    name: str = ""
    size_bytes: int = 0
    mime_type: str = "application/octet-stream"
    status: FileStatus = FileStatus.PENDING
    content_hash: Optional[str] = None
    proposal: Optional[Proposal] = None
    user_edit: Optional[UserEdit] = None
    error: Optional[str] = None
    is_reanalysis: bool = False
    added_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

    @field_validator("name", mode="after")
    @classmethod
    def _strip_name(cls, value: str) -> str:
        return value.strip()

    @property
    def display_name(self) -> str:
        return self.name or self.source_path.name

    @property
    def effective_target_path(self) -> Optional[str]:
        if self.user_edit is not None and self.user_edit.target_path is not None:
            return self.user_edit.target_path
        return self.proposal.target_path if self.proposal is not None else None

    @property
    def effective_summary(self) -> str:
        if self.user_edit is not None and self.user_edit.summary is not None:
            return self.user_edit.summary
        return self.proposal.summary if self.proposal is not None else ""

    @property
    def effective_tags(self) -> Tuple[str, ...]:
        if self.user_edit is not None and self.user_edit.tags is not None:
            return self.user_edit.tags
        return self.proposal.tags if self.proposal is not None else ()

    @property
    def is_committable(self) -> bool:
        return self.status == FileStatus.SUCCESS and not (
            self.proposal is not None and self.proposal.skip
        )


class StagingState(FrozenModel):
    """Snapshot of the staging session."""

    files: Tuple[StagedFile, ...] = ()
    selected_ids: frozenset[str] = frozenset()
    focused_id: Optional[str] = None
    workflow: WorkflowStatus = WorkflowStatus.IDLE

    def get(self, file_id: str) -> Optional[StagedFile]:
        return next((item for item in self.files if item.id == file_id), None)

    def ids(self) -> Tuple[str, ...]:
        return tuple(item.id for item in self.files)

    def with_status(self, *statuses: FileStatus) -> Tuple[StagedFile, ...]:
        return tuple(item for item in self.files if item.status in statuses)


__all__ = [
    "FileStatus",
    "Proposal",
    "StagedFile",
    "StagingState",
    "UserEdit",
    "WorkflowStatus",
    "new_file_id",
]
