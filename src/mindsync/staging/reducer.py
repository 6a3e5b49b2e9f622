"""Actions and the pure reducer that applies them to :class:`StagingState`.

Every mutation of the staging session is expressed as an action and applied by
:func:`reduce`, which returns a new state and never mutates its input.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Dict, FrozenSet, Iterable, Optional, Tuple, Union

from .errors import InvalidTransitionError, UnknownFileError
from .models import FileStatus, Proposal, StagedFile, StagingState, UserEdit, WorkflowStatus

ALLOWED_TRANSITIONS: Dict[FileStatus, FrozenSet[FileStatus]] = {
    FileStatus.PENDING: frozenset({FileStatus.ANALYZING, FileStatus.ERROR}),
    FileStatus.ANALYZING: frozenset(
        {FileStatus.SUCCESS, FileStatus.ERROR, FileStatus.DUPLICATE}
    ),
    FileStatus.SUCCESS: frozenset(),
    FileStatus.DUPLICATE: frozenset(),
    FileStatus.ERROR: frozenset(),
}


def can_transition(current: FileStatus, target: FileStatus) -> bool:
    """Return True when ``current -> target`` is a legal lifecycle step.

    Re-entering the current status is always allowed; leaving a terminal
    status is only possible through :class:`Reanalyze`.
    """
    return current == target or target in ALLOWED_TRANSITIONS[current]


@dataclass(frozen=True, slots=True)
class AddFiles:
    files: Tuple[StagedFile, ...]


@dataclass(frozen=True, slots=True)
class RemoveFiles:
    ids: FrozenSet[str]


@dataclass(frozen=True, slots=True)
class ClearSession:
    pass


@dataclass(frozen=True, slots=True)
class SetStatus:
    file_id: str
    status: FileStatus
    error: Optional[str] = None


@dataclass(frozen=True, slots=True)
class SetHash:
    file_id: str
    content_hash: str


@dataclass(frozen=True, slots=True)
class SetProposal:
    """Attach a proposal and move the file to ``status`` (success by default)."""

    file_id: str
    proposal: Proposal
    status: FileStatus = FileStatus.SUCCESS
    error: Optional[str] = None


@dataclass(frozen=True, slots=True)
class EditFile:
    """Merge ``edit`` into the file's user overrides."""

    file_id: str
    edit: UserEdit


@dataclass(frozen=True, slots=True)
class FocusFile:
    file_id: Optional[str]


@dataclass(frozen=True, slots=True)
class ToggleSelection:
    file_id: str
    multi: bool = False


@dataclass(frozen=True, slots=True)
class SelectAll:
    pass


@dataclass(frozen=True, slots=True)
class ClearSelection:
    pass


@dataclass(frozen=True, slots=True)
class BatchUpdateTargetPath:
    target_path: str


@dataclass(frozen=True, slots=True)
class BatchAddTag:
    tag: str


@dataclass(frozen=True, slots=True)
class BatchRemoveFiles:
    pass


@dataclass(frozen=True, slots=True)
class Reanalyze:
    """Reset files to pending; ``ids=None`` targets the current selection."""

    ids: Optional[FrozenSet[str]] = None


@dataclass(frozen=True, slots=True)
class SetWorkflow:
    status: WorkflowStatus


Action = Union[
    AddFiles,
    RemoveFiles,
    ClearSession,
    SetStatus,
    SetHash,
    SetProposal,
    EditFile,
    FocusFile,
    ToggleSelection,
    SelectAll,
    ClearSelection,
    BatchUpdateTargetPath,
    BatchAddTag,
    BatchRemoveFiles,
    Reanalyze,
    SetWorkflow,
]


def _replace_file(
    state: StagingState, file_id: str, update: Callable[[StagedFile], StagedFile]
) -> StagingState:
    if state.get(file_id) is None:
        raise UnknownFileError(f"Unknown staged file id: {file_id}")
    files = tuple(update(item) if item.id == file_id else item for item in state.files)
    return state.model_copy(update={"files": files})


def _transition(item: StagedFile, target: FileStatus) -> None:
    if not can_transition(item.status, target):
        raise InvalidTransitionError(
            f"Cannot move {item.display_name} from {item.status.value} to {target.value}"
        )


def _map_selected(
    state: StagingState, update: Callable[[StagedFile], StagedFile]
) -> StagingState:
    if not state.selected_ids:
        return state
    files = tuple(update(item) if item.id in state.selected_ids else item for item in state.files)
    return state.model_copy(update={"files": files})


def _without(state: StagingState, ids: Iterable[str]) -> StagingState:
    removed = frozenset(ids)
    focused = None if state.focused_id in removed else state.focused_id
    return state.model_copy(
        update={
            "files": tuple(item for item in state.files if item.id not in removed),
            "selected_ids": state.selected_ids - removed,
            "focused_id": focused,
        }
    )


def _add_tag(item: StagedFile, tag: str) -> StagedFile:
    current = item.effective_tags
    if tag in current:
        return item
    edit = (item.user_edit or UserEdit()).model_copy(update={"tags": current + (tag,)})
    return item.model_copy(update={"user_edit": edit})


def _set_target(item: StagedFile, target_path: str) -> StagedFile:
    edit = (item.user_edit or UserEdit()).model_copy(update={"target_path": target_path})
    return item.model_copy(update={"user_edit": edit})


def _reset(item: StagedFile) -> StagedFile:
    return item.model_copy(
        update={
            "status": FileStatus.PENDING,
            "proposal": None,
            "user_edit": None,
            "error": None,
            "is_reanalysis": True,
        }
    )


def reduce(state: StagingState, action: Action) -> StagingState:
    """Return the state that results from applying ``action`` to ``state``.

    Raises:
        UnknownFileError: If a single-file action names an id that is not staged.
        InvalidTransitionError: If a status change violates the lifecycle.
    """
    if isinstance(action, AddFiles):
        known = set(state.ids())
        fresh = tuple(item for item in action.files if item.id not in known)
        return state.model_copy(update={"files": state.files + fresh})

    if isinstance(action, RemoveFiles):
        return _without(state, action.ids)

    if isinstance(action, ClearSession):
        return StagingState()

    if isinstance(action, SetStatus):
        current = state.get(action.file_id)
        if current is None:
            raise UnknownFileError(f"Unknown staged file id: {action.file_id}")
        _transition(current, action.status)
        error = action.error if action.status == FileStatus.ERROR else None
        return _replace_file(
            state,
            action.file_id,
            lambda item: item.model_copy(update={"status": action.status, "error": error}),
        )

    if isinstance(action, SetHash):
        return _replace_file(
            state,
            action.file_id,
            lambda item: item.model_copy(update={"content_hash": action.content_hash}),
        )

    if isinstance(action, SetProposal):
        current = state.get(action.file_id)
        if current is None:
            raise UnknownFileError(f"Unknown staged file id: {action.file_id}")
        _transition(current, action.status)
        error = action.error if action.status == FileStatus.ERROR else None
        return _replace_file(
            state,
            action.file_id,
            lambda item: item.model_copy(
                update={"proposal": action.proposal, "status": action.status, "error": error}
            ),
        )

    if isinstance(action, EditFile):
        return _replace_file(
            state,
            action.file_id,
            lambda item: item.model_copy(
                update={"user_edit": (item.user_edit or UserEdit()).merged(action.edit)}
            ),
        )

    if isinstance(action, FocusFile):
        if action.file_id is not None and state.get(action.file_id) is None:
            raise UnknownFileError(f"Unknown staged file id: {action.file_id}")
        return state.model_copy(update={"focused_id": action.file_id})

    if isinstance(action, ToggleSelection):
        if state.get(action.file_id) is None:
            raise UnknownFileError(f"Unknown staged file id: {action.file_id}")
        selected = set(state.selected_ids) if action.multi else set()
        if action.file_id in selected:
            selected.discard(action.file_id)
        else:
            selected.add(action.file_id)
        return state.model_copy(
            update={"selected_ids": frozenset(selected), "focused_id": action.file_id}
        )

    if isinstance(action, SelectAll):
        return state.model_copy(update={"selected_ids": frozenset(state.ids())})

    if isinstance(action, ClearSelection):
        return state.model_copy(update={"selected_ids": frozenset()})

    if isinstance(action, BatchUpdateTargetPath):
        return _map_selected(state, lambda item: _set_target(item, action.target_path))

    if isinstance(action, BatchAddTag):
        return _map_selected(state, lambda item: _add_tag(item, action.tag))

    if isinstance(action, BatchRemoveFiles):
        return _without(state, state.selected_ids)

    if isinstance(action, Reanalyze):
        targets = action.ids if action.ids is not None else state.selected_ids
        if not targets:
            return state
        files = tuple(_reset(item) if item.id in targets else item for item in state.files)
        return state.model_copy(update={"files": files})

    if isinstance(action, SetWorkflow):
        return state.model_copy(update={"workflow": action.status})

    raise TypeError(f"Unsupported staging action: {action!r}")


__all__ = [
    "ALLOWED_TRANSITIONS",
    "Action",
    "AddFiles",
    "BatchAddTag",
    "BatchRemoveFiles",
    "BatchUpdateTargetPath",
    "ClearSelection",
    "ClearSession",
    "EditFile",
    "FocusFile",
    "Reanalyze",
    "RemoveFiles",
    "SelectAll",
    "SetHash",
    "SetProposal",
    "SetStatus",
    "SetWorkflow",
    "ToggleSelection",
    "can_transition",
    "reduce",
]
