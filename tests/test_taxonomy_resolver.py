"""Tests for category resolution and token similarity."""

from __future__ import annotations

import pytest

from mindsync.config.models import TaxonomyConfig, TaxonomyMode
from mindsync.taxonomy import (
    ResolutionOutcome,
    TaxonomyResolver,
    best_match,
    normalize_path,
    similarity,
    truncate_depth,
)
from mindsync.taxonomy.similarity import tokenize


def _resolver(**overrides) -> TaxonomyResolver:
    return TaxonomyResolver(TaxonomyConfig(**overrides))


def test_strict_fuzzy_match_picks_closest_existing_category() -> None:
    resolver = _resolver(mode=TaxonomyMode.STRICT, max_depth=3)

    resolution = resolver.resolve_with_outcome("Finance", ["Work/Finance", "Work/Travel"])

    assert resolution.path == "Work/Finance"
    assert resolution.outcome is ResolutionOutcome.FUZZY
    assert resolution.score == pytest.approx(0.5)
    assert resolution.low_confidence is False


def test_flexible_mode_truncates_to_max_depth() -> None:
    resolver = _resolver(mode=TaxonomyMode.FLEXIBLE, max_depth=2)

    assert resolver.resolve("A/B/C/D", []) == "A/B"


def test_strict_mode_without_categories_resolves_to_root() -> None:
    resolver = _resolver(mode=TaxonomyMode.STRICT)

    resolution = resolver.resolve_with_outcome("Anything", [])

    assert resolution.path == ""
    assert resolution.outcome is ResolutionOutcome.ROOT


def test_strict_exact_match_ignores_surrounding_slashes() -> None:
    resolver = _resolver()

    resolution = resolver.resolve_with_outcome("/Work/Finance/", ["/Work/Travel", "/Work/Finance"])

    assert resolution.path == "Work/Finance"
    assert resolution.outcome is ResolutionOutcome.EXACT


def test_strict_fallback_uses_first_category_and_warns(
    caplog: pytest.LogCaptureFixture,
) -> None:
    resolver = _resolver()

    with caplog.at_level("WARNING", logger="mindsync.taxonomy.resolver"):
        resolution = resolver.resolve_with_outcome("Gardening", ["Work/Finance", "Life/Travel"])

    assert resolution.path == "Work/Finance"
    assert resolution.outcome is ResolutionOutcome.FALLBACK
    assert resolution.low_confidence is True
    assert "Low-confidence classification" in caplog.text


def test_strict_results_always_come_from_existing() -> None:
    existing = ["Work", "Work/Finance", "Life/Health", "Archive/2023"]
    resolver = _resolver(max_depth=2)

    for suggestion in ["", "Work", "finance", "Health Notes", "Life/Health/Doctors", "Zzz/Yyy"]:
        assert resolver.resolve(suggestion, existing) in existing


@pytest.mark.parametrize("mode", [TaxonomyMode.STRICT, TaxonomyMode.FLEXIBLE])
@pytest.mark.parametrize("max_depth", [1, 2, 3])
def test_resolved_paths_respect_max_depth(mode: TaxonomyMode, max_depth: int) -> None:
    existing = ["A", "A/B", "A/B/C", "A/B/C/D", "X/Y/Z/W/V"]
    resolver = _resolver(mode=mode, max_depth=max_depth)

    for suggestion in ["A/B/C/D/E", "X/Y/Z/W/V", "Q", "", "A/B"]:
        path = resolver.resolve(suggestion, existing)
        depth = len([segment for segment in path.split("/") if segment])
        assert depth <= max_depth


def test_empty_suggestion_becomes_unclassified_in_flexible_mode() -> None:
    resolver = _resolver(mode=TaxonomyMode.FLEXIBLE)

    assert resolver.resolve("  ", []) == "Unclassified"
    assert resolver.resolve("///", ["Work"]) == "Unclassified"


def test_strict_vocabulary_moves_result_under_preferred_root() -> None:
    resolver = _resolver(category_vocabulary=["Work"])

    resolution = resolver.resolve_with_outcome("Photos", ["Hobby/Photos", "Work/Photos"])

    assert resolution.path == "Work/Photos"
    assert resolution.outcome is ResolutionOutcome.VOCABULARY


def test_flexible_vocabulary_matches_vocabulary_entries() -> None:
    resolver = _resolver(mode=TaxonomyMode.FLEXIBLE, category_vocabulary=["Work", "Life"])

    assert resolver.resolve("Job/Work", []) == "Work"
    # nothing in the vocabulary is similar enough, so the suggestion stands
    assert resolver.resolve("Random/Stuff", []) == "Random/Stuff"


def test_in_vocabulary_matches_prefix_and_containment() -> None:
    resolver = _resolver(category_vocabulary=["Work", "Life"])

    assert resolver.in_vocabulary("Workshop/Notes")
    assert resolver.in_vocabulary("Lif")
    assert resolver.in_vocabulary("")
    assert not resolver.in_vocabulary("Hobby/Photos")
    assert _resolver().in_vocabulary("Anything")


def test_normalize_and_truncate_helpers() -> None:
    assert normalize_path("/Work//Finance/ ") == "Work/Finance"
    assert normalize_path("") == ""
    assert truncate_depth("A/B/C", 2) == "A/B"
    assert truncate_depth("A", 3) == "A"


def test_tokenize_splits_on_whitespace_and_slashes() -> None:
    assert tokenize("Work/Finance  Reports") == {"work", "finance", "reports"}
    assert tokenize("") == set()


def test_similarity_is_symmetric_and_bounded() -> None:
    samples = ["Work/Finance", "finance", "Life Travel", "", "Work/Finance/Tax"]

    for first in samples:
        for second in samples:
            score = similarity(first, second)
            assert 0.0 <= score <= 1.0
            assert score == pytest.approx(similarity(second, first))

    assert similarity("", "") == 0.0
    assert similarity("Work/Finance", "work finance") == 1.0


def test_best_match_keeps_first_entry_on_ties() -> None:
    match, score = best_match("Photos", ["Hobby/Photos", "Work/Photos"])

    assert match == "Hobby/Photos"
    assert score == pytest.approx(0.5)
    assert best_match("Photos", ["Work", "Life"]) == (None, 0.0)
