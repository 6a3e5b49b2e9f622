"""Staging session: files under review and their lifecycle."""

from .errors import InvalidTransitionError, StagingError, UnknownFileError
from .models import FileStatus, Proposal, StagedFile, StagingState, UserEdit, WorkflowStatus
from .reducer import can_transition, reduce
from .store import StagingStore, staged_from_pending

__all__ = [
    "FileStatus",
    "InvalidTransitionError",
    "Proposal",
    "StagedFile",
    "StagingError",
    "StagingState",
    "StagingStore",
    "UnknownFileError",
    "UserEdit",
    "WorkflowStatus",
    "can_transition",
    "reduce",
    "staged_from_pending",
]
