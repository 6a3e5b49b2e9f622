"""Tests for the staging reducer and store."""

from __future__ import annotations

from pathlib import Path

import pytest

from mindsync.ingestion import PendingFile
from mindsync.staging import (
    FileStatus,
    InvalidTransitionError,
    Proposal,
    StagedFile,
    StagingState,
    StagingStore,
    UnknownFileError,
    WorkflowStatus,
    can_transition,
    reduce,
)
from mindsync.staging.reducer import AddFiles, SetStatus


def _store(*names: str) -> tuple[StagingStore, list[str]]:
    store = StagingStore()
    ids = store.add_pending(PendingFile(path=Path("/inbox") / name) for name in names)
    return store, ids


def _to_success(store: StagingStore, file_id: str, target: str = "Work") -> None:
    store.set_status(file_id, FileStatus.ANALYZING)
    store.set_proposal(file_id, Proposal(target_path=target, tags=("a",), confidence=0.7))


def test_add_pending_creates_pending_files() -> None:
    store, ids = _store("a.txt", "b.txt")

    assert len(ids) == 2
    assert [item.status for item in store.files] == [FileStatus.PENDING, FileStatus.PENDING]
    assert store.get(ids[0]).display_name == "a.txt"


def test_adding_existing_id_is_ignored() -> None:
    item = StagedFile(source_path=Path("/inbox/a.txt"), name="a.txt")
    state = reduce(StagingState(), AddFiles((item,)))

    again = reduce(state, AddFiles((item,)))

    assert len(again.files) == 1


@pytest.mark.parametrize(
    ("current", "target", "allowed"),
    [
        (FileStatus.PENDING, FileStatus.ANALYZING, True),
        (FileStatus.PENDING, FileStatus.ERROR, True),
        (FileStatus.PENDING, FileStatus.SUCCESS, False),
        (FileStatus.ANALYZING, FileStatus.SUCCESS, True),
        (FileStatus.ANALYZING, FileStatus.DUPLICATE, True),
        (FileStatus.ANALYZING, FileStatus.ERROR, True),
        (FileStatus.ANALYZING, FileStatus.PENDING, False),
        (FileStatus.SUCCESS, FileStatus.ANALYZING, False),
        (FileStatus.ERROR, FileStatus.SUCCESS, False),
        (FileStatus.SUCCESS, FileStatus.SUCCESS, True),
    ],
)
def test_transition_table(current: FileStatus, target: FileStatus, allowed: bool) -> None:
    assert can_transition(current, target) is allowed


def test_illegal_transition_raises() -> None:
    store, ids = _store("a.txt")

    with pytest.raises(InvalidTransitionError):
        store.set_proposal(ids[0], Proposal(target_path="Work"))

    assert store.get(ids[0]).status == FileStatus.PENDING


def test_reducer_does_not_mutate_input_state() -> None:
    store, ids = _store("a.txt")
    before = store.state

    after = reduce(before, SetStatus(ids[0], FileStatus.ANALYZING))

    assert before.files[0].status == FileStatus.PENDING
    assert after.files[0].status == FileStatus.ANALYZING


def test_error_message_only_kept_for_error_status() -> None:
    store, ids = _store("a.txt")

    store.set_status(ids[0], FileStatus.ANALYZING, "ignored")
    assert store.get(ids[0]).error is None

    store.set_status(ids[0], FileStatus.ERROR, "boom")
    assert store.get(ids[0]).error == "boom"


def test_reanalyze_resets_terminal_files_to_pending() -> None:
    store, ids = _store("a.txt", "b.txt")
    _to_success(store, ids[0])
    store.set_status(ids[1], FileStatus.ERROR, "failed")
    store.edit(ids[0], target_path="Life")

    store.reanalyze(ids)

    for file_id in ids:
        item = store.get(file_id)
        assert item.status == FileStatus.PENDING
        assert item.proposal is None
        assert item.user_edit is None
        assert item.error is None
        assert item.is_reanalysis is True


def test_reanalyze_without_ids_targets_selection() -> None:
    store, ids = _store("a.txt", "b.txt")
    _to_success(store, ids[0])
    _to_success(store, ids[1])

    store.toggle_selection(ids[1])
    store.reanalyze()

    assert store.get(ids[0]).status == FileStatus.SUCCESS
    assert store.get(ids[1]).status == FileStatus.PENDING


def test_user_edit_overrides_proposal_fields() -> None:
    store, ids = _store("a.txt")
    _to_success(store, ids[0])

    store.edit(ids[0], target_path="Life/Health")
    store.edit(ids[0], summary="Checkup results")
    item = store.get(ids[0])

    assert item.effective_target_path == "Life/Health"
    assert item.effective_summary == "Checkup results"
    assert item.effective_tags == ("a",)
    assert item.proposal.target_path == "Work"


def test_toggle_selection_single_and_multi() -> None:
    store, ids = _store("a.txt", "b.txt", "c.txt")

    store.toggle_selection(ids[0])
    store.toggle_selection(ids[1])
    assert store.state.selected_ids == {ids[1]}

    store.toggle_selection(ids[2], multi=True)
    assert store.state.selected_ids == {ids[1], ids[2]}
    assert store.state.focused_id == ids[2]

    store.toggle_selection(ids[2], multi=True)
    assert store.state.selected_ids == {ids[1]}


def test_batch_operations_only_touch_selection() -> None:
    store, ids = _store("a.txt", "b.txt", "c.txt")
    for file_id in ids:
        _to_success(store, file_id)
    store.select_all()
    store.toggle_selection(ids[2], multi=True)

    store.batch_update_target_path("Archive")
    store.batch_add_tag("reviewed")
    store.batch_add_tag("reviewed")

    for file_id in ids[:2]:
        item = store.get(file_id)
        assert item.effective_target_path == "Archive"
        assert item.effective_tags == ("a", "reviewed")
    assert store.get(ids[2]).effective_target_path == "Work"

    store.batch_remove_files()
    assert store.state.ids() == (ids[2],)
    assert store.state.selected_ids == frozenset()


def test_batch_operations_without_selection_are_no_ops() -> None:
    store, ids = _store("a.txt")
    _to_success(store, ids[0])
    before = store.state

    store.batch_update_target_path("Archive")
    store.batch_remove_files()

    assert store.state == before


def test_remove_clears_focus_and_selection() -> None:
    store, ids = _store("a.txt", "b.txt")
    store.toggle_selection(ids[0])

    store.remove([ids[0]])

    assert store.state.focused_id is None
    assert store.state.selected_ids == frozenset()
    assert store.state.ids() == (ids[1],)


@pytest.mark.parametrize(
    "action",
    [
        lambda store: store.set_status("missing", FileStatus.ANALYZING),
        lambda store: store.edit("missing", target_path="Work"),
        lambda store: store.focus("missing"),
        lambda store: store.toggle_selection("missing"),
    ],
)
def test_unknown_ids_raise(action) -> None:
    store, _ = _store("a.txt")

    with pytest.raises(UnknownFileError):
        action(store)


def test_duplicates_and_skips_are_not_committable() -> None:
    store, ids = _store("a.txt", "b.txt")
    _to_success(store, ids[0])
    store.set_status(ids[1], FileStatus.ANALYZING)
    store.set_proposal(ids[1], Proposal(skip=True), status=FileStatus.DUPLICATE)

    assert store.get(ids[0]).is_committable
    assert not store.get(ids[1]).is_committable


def test_listeners_receive_new_state_until_unsubscribed() -> None:
    store, ids = _store("a.txt")
    seen: list[WorkflowStatus] = []
    unsubscribe = store.subscribe(lambda state, _: seen.append(state.workflow))

    store.set_workflow(WorkflowStatus.ANALYZING)
    unsubscribe()
    store.set_workflow(WorkflowStatus.REVIEWING)

    assert seen == [WorkflowStatus.ANALYZING]
    assert store.workflow == WorkflowStatus.REVIEWING


def test_clear_resets_session() -> None:
    store, _ = _store("a.txt")
    store.set_workflow(WorkflowStatus.DONE)

    store.clear()

    assert store.files == ()
    assert store.workflow == WorkflowStatus.IDLE
