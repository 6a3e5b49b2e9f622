"""Result models for commit and undo operations."""

from __future__ import annotations

from pathlib import Path
from typing import List, Optional

from pydantic import BaseModel, Field


class MoveResult(BaseModel):
    """Outcome of moving one staged file.

    Attributes:
        file_id: Staged file id.
        success: Whether the file reached its target.
        source_path: Location before the move.
        target_path: Final location (may carry a conflict suffix).
        error: Failure reason when ``success`` is False.
        no_op: True when the file already sat at its target.
        conflict_applied: True when a numeric suffix was added to avoid a clash.
    """

    file_id: str
    success: bool
    source_path: Optional[Path] = None
    target_path: Optional[Path] = None
    error: Optional[str] = None
    no_op: bool = False
    conflict_applied: bool = False


class CommitResult(BaseModel):
    """Aggregated outcome of a commit."""

    results: List[MoveResult] = Field(default_factory=list)
    warnings: List[str] = Field(default_factory=list)

    @property
    def success_count(self) -> int:
        return sum(1 for result in self.results if result.success)

    @property
    def fail_count(self) -> int:
        return sum(1 for result in self.results if not result.success)


class UndoResult(BaseModel):
    """Aggregated outcome of an undo."""

    success_count: int = 0
    fail_count: int = 0
    errors: List[str] = Field(default_factory=list)
    readmitted_ids: List[str] = Field(default_factory=list)


__all__ = ["CommitResult", "MoveResult", "UndoResult"]
