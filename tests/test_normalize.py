"""Tests for normalization of raw provider responses."""

from __future__ import annotations

import pytest

from mindsync.classification import (
    AnalysisResult,
    InstructionKind,
    ManifestResponse,
    ParseFailure,
    normalize_analysis_response,
    normalize_manifest_response,
)
from mindsync.classification.normalize import coerce_confidence, parse_json_payload


def test_fenced_json_is_decoded() -> None:
    raw = '```json\n{"category": "Work/Finance", "summary": "Budget", "tags": ["money"]}\n```'

    result = normalize_analysis_response(raw)

    assert isinstance(result, AnalysisResult)
    assert result.category == "Work/Finance"
    assert result.tags == ["money"]


def test_json_embedded_in_prose_is_extracted() -> None:
    raw = 'Sure! Here is the answer: {"category": "Life", "summary": "Trip"} Hope it helps.'

    result = normalize_analysis_response(raw)

    assert isinstance(result, AnalysisResult)
    assert result.category == "Life"


def test_array_wrapped_result_uses_first_object() -> None:
    result = normalize_analysis_response('[{"classification": "Archive", "keywords": "a, #b"}]')

    assert isinstance(result, AnalysisResult)
    assert result.category == "Archive"
    assert result.tags == ["a", "b"]


@pytest.mark.parametrize("key", ["category", "classification", "targetPath", "target_path", "path"])
def test_category_field_variants(key: str) -> None:
    result = normalize_analysis_response({key: " Work "})

    assert isinstance(result, AnalysisResult)
    assert result.category == "Work"


def test_description_and_reason_fallbacks() -> None:
    result = normalize_analysis_response(
        {"category": "Work", "description": "Quarterly plan", "reason": "Mentions Q3"}
    )

    assert isinstance(result, AnalysisResult)
    assert result.summary == "Quarterly plan"
    assert result.reasoning == "Mentions Q3"
    assert result.confidence is None


@pytest.mark.parametrize(
    "raw",
    ["", "no json here", "```\n```", "[1, 2, 3]", '"just a string"', '{"foo": "bar"}'],
)
def test_unusable_responses_become_parse_failures(raw: str) -> None:
    assert isinstance(normalize_analysis_response(raw), ParseFailure)


@pytest.mark.parametrize(
    ("value", "expected"),
    [
        (0.85, 0.85),
        (85, 0.85),
        ("90%", 0.9),
        ("high", 0.9),
        ("Medium", 0.6),
        ("low", 0.3),
        (-1, 0.0),
        (250, 1.0),
        ("unknown", None),
        (True, None),
        (None, None),
    ],
)
def test_coerce_confidence(value, expected) -> None:
    if expected is None:
        assert coerce_confidence(value) is None
    else:
        assert coerce_confidence(value) == pytest.approx(expected)


def test_parse_json_payload_passes_decoded_data_through() -> None:
    payload = {"items": {}}

    assert parse_json_payload(payload) is payload
    assert parse_json_payload(b'{"a": 1}') == {"a": 1}


def test_manifest_items_object() -> None:
    raw = {
        "items": {
            "f1": {"instruction": "Direct", "category": "Work", "summary": "Plan", "tags": ["q3"]},
            "f2": {"instruction": "Need_Info", "requestType": "image_vision", "reason": "photo"},
        }
    }

    manifest = normalize_manifest_response(raw)

    assert isinstance(manifest, ManifestResponse)
    assert manifest.items["f1"].instruction is InstructionKind.DIRECT
    assert manifest.items["f1"].result is not None
    assert manifest.items["f1"].result.category == "Work"
    assert manifest.items["f2"].instruction is InstructionKind.NEED_INFO
    assert manifest.items["f2"].request_type == "image_vision"
    assert manifest.items["f2"].reason == "photo"


def test_manifest_bare_mapping_and_list_shapes() -> None:
    bare = normalize_manifest_response('{"f1": {"instruction": "direct", "category": "Life"}}')
    listed = normalize_manifest_response(
        '```json\n[{"id": "f1", "instruction": "need-info", "requestType": "full_text"}]\n```'
    )

    assert isinstance(bare, ManifestResponse)
    assert bare.items["f1"].instruction is InstructionKind.DIRECT
    assert isinstance(listed, ManifestResponse)
    assert listed.items["f1"].instruction is InstructionKind.NEED_INFO
    assert listed.items["f1"].request_type == "full_text"


def test_manifest_list_wrapped_items_object() -> None:
    manifest = normalize_manifest_response([{"items": {"f1": {"category": "Work"}}}])

    assert isinstance(manifest, ManifestResponse)
    assert manifest.items["f1"].instruction is InstructionKind.DIRECT


def test_manifest_list_wrapped_bare_mapping() -> None:
    manifest = normalize_manifest_response(
        '[{"f1": {"instruction": "Direct", "category": "Work", "summary": "s"}}]'
    )

    assert isinstance(manifest, ManifestResponse)
    assert manifest.items["f1"].instruction is InstructionKind.DIRECT
    assert manifest.items["f1"].result is not None
    assert manifest.items["f1"].result.category == "Work"


def test_manifest_infers_and_repairs_instructions() -> None:
    raw = {
        "items": {
            "inferred_direct": {"category": "Work"},
            "inferred_need": {"requestType": "text_preview"},
            "bad_request_type": {"instruction": "NeedMoreInfo", "requestType": "audio"},
            "direct_without_result": {"instruction": "Direct"},
            "unknown_instruction": {"instruction": "Maybe", "category": "Work"},
            "not_an_object": "Direct",
        }
    }

    manifest = normalize_manifest_response(raw)

    assert isinstance(manifest, ManifestResponse)
    assert manifest.items["inferred_direct"].instruction is InstructionKind.DIRECT
    assert manifest.items["inferred_need"].instruction is InstructionKind.NEED_INFO
    assert manifest.items["bad_request_type"].request_type == "text_preview"
    assert set(manifest.items) == {"inferred_direct", "inferred_need", "bad_request_type"}


def test_manifest_rejects_non_json() -> None:
    failure = normalize_manifest_response("The files look like documents.")

    assert isinstance(failure, ParseFailure)
    assert failure.excerpt.startswith("The files")
    assert isinstance(normalize_manifest_response('{"items": 5}'), ParseFailure)
