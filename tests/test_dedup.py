"""Tests for content hashing and duplicate classification."""

from __future__ import annotations

from pathlib import Path

import pytest

from mindsync.ingestion import HashComputer, HashError
from mindsync.state import DedupIndex, DuplicateKind, FileEntry


def test_hash_is_stable_across_chunk_sizes(tmp_path: Path) -> None:
    payload = bytes(range(256)) * 64
    path = tmp_path / "blob.bin"
    path.write_bytes(payload)

    small = HashComputer(chunk_size=7).compute(path)
    large = HashComputer().compute(path)

    assert small == large == HashComputer().compute_bytes(payload)


def test_hash_depends_only_on_content(tmp_path: Path) -> None:
    first = tmp_path / "report.pdf"
    second = tmp_path / "report_v2.pdf"
    first.write_bytes(b"quarterly numbers")
    second.write_bytes(b"quarterly numbers")

    hasher = HashComputer()

    assert hasher.compute(first) == hasher.compute(second)


def test_hash_missing_file_raises(tmp_path: Path) -> None:
    with pytest.raises(HashError):
        HashComputer().compute(tmp_path / "missing.txt")


def test_chunk_size_must_be_positive() -> None:
    with pytest.raises(ValueError):
        HashComputer(chunk_size=0)


def _entry(name: str, digest: str) -> FileEntry:
    return FileEntry(
        id="f1", original_name=name, current_path=f"/library/{name}", content_hash=digest
    )


def test_check_duplicate_reports_existing_name() -> None:
    index = DedupIndex({"abc": _entry("report.pdf", "abc")})

    check = index.check_duplicate("abc")

    assert check.is_duplicate
    assert check.existing_name == "report.pdf"
    assert not index.check_duplicate("zzz").is_duplicate


def test_classify_distinguishes_exact_and_renamed_duplicates() -> None:
    index = DedupIndex({"abc": _entry("report.pdf", "abc")})

    exact = index.classify("abc", "report.pdf")
    renamed = index.classify("abc", "report_v2.pdf")

    assert exact is not None and exact.kind is DuplicateKind.EXACT
    assert exact.tags == ["ExactDuplicate"]
    assert renamed is not None and renamed.kind is DuplicateKind.RENAMED
    assert renamed.tags == ["ContentDuplicateRenamed", "DifferentName"]
    assert "report.pdf" in renamed.summary
    assert "report_v2.pdf" in renamed.reasoning
    assert index.classify("zzz", "other.pdf") is None


def test_register_keeps_first_name_seen() -> None:
    index = DedupIndex()

    index.register("abc", "first.txt")
    index.register("abc", "second.txt")

    assert "abc" in index
    assert len(index) == 1
    assert index.check_duplicate("abc").existing_name == "first.txt"
