"""State repository tests."""

from __future__ import annotations

import json
from pathlib import Path

import pytest

from mindsync.config.models import TaxonomyMode
from mindsync.state import (
    DEFAULT_STATE_DIRNAME,
    AIInfo,
    FileEntry,
    MetadataDocument,
    MetadataRepository,
    MissingStateError,
    StateError,
    UndoLog,
    UndoOperation,
)
from mindsync.taxonomy import CorrectionRecord


def _document() -> MetadataDocument:
    """Return a document holding one indexed file."""
    document = MetadataDocument()
    document.files["abc123"] = FileEntry(
        id="f1",
        original_name="budget.xlsx",
        current_path="/library/Work/Finance/budget.xlsx",
        content_hash="abc123",
        category="Work/Finance",
        size=42,
        ai=AIInfo(summary="Yearly budget", tags=["budget"], confidence=0.9),
    )
    return document


def test_initialize_creates_state_directory(tmp_path: Path) -> None:
    repo = MetadataRepository()

    directory = repo.initialize(tmp_path)

    assert directory == tmp_path / DEFAULT_STATE_DIRNAME
    assert directory.is_dir()
    assert repo.log_path(tmp_path) == directory / "mindsync.log"


def test_load_missing_index_returns_empty_document(tmp_path: Path) -> None:
    repo = MetadataRepository()

    document = repo.load_index(tmp_path)

    assert document.version == "3.0"
    assert document.files == {}
    assert [node.name for node in document.taxonomy.root][0] == "Work"

    with pytest.raises(MissingStateError):
        repo.load_index(tmp_path, required=True)


def test_save_and_load_round_trip_uses_camel_case(tmp_path: Path) -> None:
    """Ensure the index is stored with camelCase keys and loads back unchanged.

    Args:
        tmp_path: Temporary directory provided by pytest.
    """
    repo = MetadataRepository()

    assert repo.save_index(tmp_path, _document())

    raw = json.loads((tmp_path / ".mindsync" / "index.json").read_text(encoding="utf-8"))
    assert raw["version"] == "3.0"
    assert raw["files"]["abc123"]["originalName"] == "budget.xlsx"
    assert raw["config"]["maxDepth"] == 3

    loaded = repo.load_index(tmp_path)
    entry = loaded.files["abc123"]
    assert entry.category == "Work/Finance"
    assert entry.ai.tags == ["budget"]
    assert loaded.categories() == ["Work/Finance"]
    assert loaded.config.mode == TaxonomyMode.STRICT


def test_save_refuses_to_replace_populated_index_with_empty_one(tmp_path: Path) -> None:
    repo = MetadataRepository()
    repo.save_index(tmp_path, _document())

    assert repo.save_index(tmp_path, MetadataDocument()) is False
    assert "abc123" in repo.load_index(tmp_path).files

    emptied_taxonomy = _document()
    emptied_taxonomy.taxonomy.root = []
    assert repo.save_index(tmp_path, emptied_taxonomy) is False


def test_legacy_array_index_is_migrated(tmp_path: Path) -> None:
    state_dir = tmp_path / ".mindsync"
    state_dir.mkdir()
    legacy = [
        {
            "fileName": "notes.md",
            "filePath": "/library/Life/notes.md",
            "contentHash": "h1",
            "category": "Life",
            "tags": ["notes"],
            "confidence": 0.7,
        },
        {"fileName": "photo one.png", "filePath": "/library/Life/photo one.png"},
        {"fileName": "notes.md", "contentHash": "h1"},
        "garbage",
    ]
    (state_dir / "index.json").write_text(json.dumps(legacy), encoding="utf-8")

    document = MetadataRepository().load_index(tmp_path)

    assert document.version == "3.0"
    assert set(document.files) == {"h1", "photo_one.png"}
    assert document.files["h1"].ai.tags == ["notes"]
    assert document.files["h1"].current_path == "/library/Life/notes.md"


def test_unsupported_version_raises(tmp_path: Path) -> None:
    state_dir = tmp_path / ".mindsync"
    state_dir.mkdir()
    (state_dir / "index.json").write_text(json.dumps({"version": "2.0"}), encoding="utf-8")

    with pytest.raises(StateError):
        MetadataRepository().load_index(tmp_path)


def test_invalid_json_raises_state_error(tmp_path: Path) -> None:
    state_dir = tmp_path / ".mindsync"
    state_dir.mkdir()
    (state_dir / "index.json").write_text("{not json", encoding="utf-8")

    with pytest.raises(StateError):
        MetadataRepository().load_index(tmp_path)


def test_unknown_config_keys_are_dropped(tmp_path: Path) -> None:
    state_dir = tmp_path / ".mindsync"
    state_dir.mkdir()
    payload = {"version": "3.0", "config": {"mode": "flexible", "legacyOption": True}}
    (state_dir / "index.json").write_text(json.dumps(payload), encoding="utf-8")

    document = MetadataRepository().load_index(tmp_path)

    assert document.config.mode == TaxonomyMode.FLEXIBLE


def test_remove_entries_by_current_path(tmp_path: Path) -> None:
    repo = MetadataRepository()
    document = _document()
    document.files["def456"] = FileEntry(
        id="f2", original_name="trip.pdf", current_path="/library/Life/trip.pdf"
    )
    repo.save_index(tmp_path, document)

    removed = repo.remove_entries(tmp_path, ["/library/Work/Finance/budget.xlsx"])

    assert removed == 1
    assert set(repo.load_index(tmp_path).files) == {"def456"}
    assert repo.remove_entries(tmp_path, []) == 0


def test_undo_log_round_trip_and_clear(tmp_path: Path) -> None:
    repo = MetadataRepository()
    log = UndoLog(operations=[UndoOperation(source="/library/A/x.txt", target="/inbox/x.txt")])

    assert repo.load_undo_log(tmp_path) is None
    repo.save_undo_log(tmp_path, log)

    loaded = repo.load_undo_log(tmp_path)
    assert loaded is not None
    assert loaded.operations == log.operations

    repo.clear_undo_log(tmp_path)
    assert repo.load_undo_log(tmp_path) is None


def test_corrections_round_trip(tmp_path: Path) -> None:
    repo = MetadataRepository()
    records = [CorrectionRecord(ai_suggested="Work", user_chosen="Life", file_name="a.txt")]

    repo.save_corrections(tmp_path, records)

    raw = json.loads((tmp_path / ".mindsync" / "corrections.json").read_text(encoding="utf-8"))
    assert raw[0]["aiSuggested"] == "Work"
    assert repo.load_corrections(tmp_path)[0].user_chosen == "Life"


def test_custom_state_dirname(tmp_path: Path) -> None:
    repo = MetadataRepository(".library-state")

    repo.save_index(tmp_path, _document())

    assert (tmp_path / ".library-state" / "index.json").exists()
    assert repo.base_dirname == ".library-state"
