"""Tests for building organizer sessions from configuration."""

from __future__ import annotations

from pathlib import Path

import pytest
from pydantic import ValidationError

from mindsync.config.models import ProcessingOptions


def test_session_hashes_with_configured_chunk_size(
    inbox: Path, library: Path, make_config, open_session
) -> None:
    config = make_config()
    config.processing = ProcessingOptions(hash_chunk_size=4)
    (library / "report.pdf").write_bytes(b"quarterly figures")
    (inbox / "report_v2.pdf").write_bytes(b"quarterly figures")
    session = open_session(config)

    assert session.filesystem.hasher.chunk_size == 4
    first = session.filesystem.hash(library / "report.pdf")
    second = session.filesystem.hash(inbox / "report_v2.pdf")
    assert first.ok and second.ok
    assert first.value == second.value


def test_hash_chunk_size_must_be_positive() -> None:
    with pytest.raises(ValidationError):
        ProcessingOptions(hash_chunk_size=0)
