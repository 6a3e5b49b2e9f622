"""Proposal planning, batch reconciliation and commit/undo."""

from .errors import OrganizationError, StorageNotConfiguredError
from .executor import CommitEngine
from .models import CommitResult, MoveResult, UndoResult
from .planner import ProposalPlanner
from .reconciler import BatchReconciler

__all__ = [
    "BatchReconciler",
    "CommitEngine",
    "CommitResult",
    "MoveResult",
    "OrganizationError",
    "ProposalPlanner",
    "StorageNotConfiguredError",
    "UndoResult",
]
