"""Tests for ignore-pattern matching."""

from __future__ import annotations

from pathlib import Path

import pytest

from mindsync.config.models import DEFAULT_IGNORE_PATTERNS
from mindsync.taxonomy import should_ignore


@pytest.mark.parametrize(
    ("path", "expected"),
    [
        (".DS_Store", True),
        ("photos/.DS_Store", True),
        ("node_modules/pkg/index.js", True),
        ("draft.tmp", True),
        ("project/.git/config", True),
        ("notes.txt", False),
        ("my_node_modules_notes.txt", False),
        ("archive.tmp.txt", False),
    ],
)
def test_default_patterns(path: str, expected: bool) -> None:
    assert should_ignore(path, DEFAULT_IGNORE_PATTERNS) is expected


def test_plain_names_must_match_whole_component() -> None:
    assert should_ignore(Path("build/output.log"), ["build"])
    assert not should_ignore(Path("rebuild/output.log"), ["build"])


def test_blank_patterns_and_empty_paths_are_ignored() -> None:
    assert not should_ignore("notes.txt", ["", "   "])
    assert not should_ignore("", ["*"])


def test_matching_is_case_sensitive() -> None:
    assert not should_ignore("DRAFT.TMP", ["*.tmp"])
