"""Stateful wrapper around the staging reducer."""

from __future__ import annotations

import logging
from typing import Callable, Iterable, List, Optional

from mindsync.ingestion.models import PendingFile

from .models import FileStatus, Proposal, StagedFile, StagingState, UserEdit, WorkflowStatus
from .reducer import (
    Action,
    AddFiles,
    BatchAddTag,
    BatchRemoveFiles,
    BatchUpdateTargetPath,
    ClearSelection,
    ClearSession,
    EditFile,
    FocusFile,
    Reanalyze,
    RemoveFiles,
    SelectAll,
    SetHash,
    SetProposal,
    SetStatus,
    SetWorkflow,
    ToggleSelection,
    reduce,
)

LOGGER = logging.getLogger(__name__)

Listener = Callable[[StagingState, Action], None]


def staged_from_pending(pending: PendingFile) -> StagedFile:
    """Create a pending staged file for a discovered file."""
    return StagedFile(
        source_path=pending.path,
        name=pending.path.name,
        size_bytes=pending.size_bytes,
        mime_type=pending.mime_type,
    )


class StagingStore:
    """Single source of truth for the files under review.

    All mutations go through :meth:`dispatch`; readers should re-read
    :attr:`state` rather than hold on to previous snapshots.
    """

    def __init__(self, state: Optional[StagingState] = None) -> None:
        self._state = state or StagingState()
        self._listeners: List[Listener] = []

    @property
    def state(self) -> StagingState:
        return self._state

    @property
    def files(self) -> tuple[StagedFile, ...]:
        return self._state.files

    @property
    def workflow(self) -> WorkflowStatus:
        return self._state.workflow

    def get(self, file_id: str) -> Optional[StagedFile]:
        return self._state.get(file_id)

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Register ``listener`` and return a callable that removes it."""
        self._listeners.append(listener)
        return lambda: self._listeners.remove(listener)

    def dispatch(self, action: Action) -> StagingState:
        """Apply ``action`` and notify listeners with the new state."""
        self._state = reduce(self._state, action)
        LOGGER.debug("Staging action %s applied", type(action).__name__)
        for listener in list(self._listeners):
            listener(self._state, action)
        return self._state

    # Convenience wrappers --------------------------------------------------

    def add_pending(self, pending: Iterable[PendingFile]) -> List[str]:
        """Stage discovered files and return their new ids."""
        staged = tuple(staged_from_pending(item) for item in pending)
        self.dispatch(AddFiles(staged))
        return [item.id for item in staged]

    def set_status(self, file_id: str, status: FileStatus, error: Optional[str] = None) -> None:
        self.dispatch(SetStatus(file_id, status, error))

    def set_hash(self, file_id: str, content_hash: str) -> None:
        self.dispatch(SetHash(file_id, content_hash))

    def set_proposal(
        self,
        file_id: str,
        proposal: Proposal,
        status: FileStatus = FileStatus.SUCCESS,
        error: Optional[str] = None,
    ) -> None:
        self.dispatch(SetProposal(file_id, proposal, status, error))

    def edit(
        self,
        file_id: str,
        *,
        target_path: Optional[str] = None,
        summary: Optional[str] = None,
        tags: Optional[Iterable[str]] = None,
    ) -> None:
        edit = UserEdit(
            target_path=target_path,
            summary=summary,
            tags=tuple(tags) if tags is not None else None,
        )
        self.dispatch(EditFile(file_id, edit))

    def focus(self, file_id: Optional[str]) -> None:
        self.dispatch(FocusFile(file_id))

    def remove(self, file_ids: Iterable[str]) -> None:
        self.dispatch(RemoveFiles(frozenset(file_ids)))

    def clear(self) -> None:
        self.dispatch(ClearSession())

    def toggle_selection(self, file_id: str, multi: bool = False) -> None:
        self.dispatch(ToggleSelection(file_id, multi))

    def select_all(self) -> None:
        self.dispatch(SelectAll())

    def clear_selection(self) -> None:
        self.dispatch(ClearSelection())

    def batch_update_target_path(self, target_path: str) -> None:
        self.dispatch(BatchUpdateTargetPath(target_path))

    def batch_add_tag(self, tag: str) -> None:
        self.dispatch(BatchAddTag(tag))

    def batch_remove_files(self) -> None:
        self.dispatch(BatchRemoveFiles())

    def reanalyze(self, file_ids: Optional[Iterable[str]] = None) -> None:
        ids = frozenset(file_ids) if file_ids is not None else None
        self.dispatch(Reanalyze(ids))

    def set_workflow(self, status: WorkflowStatus) -> None:
        self.dispatch(SetWorkflow(status))


__all__ = ["StagingStore", "staged_from_pending"]
