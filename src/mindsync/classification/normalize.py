"""Pure normalization of raw provider responses.

Providers return JSON that may be wrapped in Markdown code fences, wrapped in
an array, or use field-name variants. The functions here turn such raw output
into typed models or a :class:`ParseFailure`, and never raise.
"""

from __future__ import annotations

import json
import re
from typing import Any, Dict, List, Mapping, Optional, Union

from .models import (
    AnalysisResult,
    InstructionKind,
    ManifestInstruction,
    ManifestResponse,
    ParseFailure,
)

_FENCE = re.compile(r"```(?:json|JSON)?")
_REQUEST_TYPES = {"text_preview", "image_vision", "full_text", "pdf_document"}
_CATEGORY_KEYS = ("category", "classification", "targetPath", "target_path", "path")
_CONFIDENCE_LABELS = {"high": 0.9, "medium": 0.6, "low": 0.3}


def _excerpt(raw: Any) -> str:
    return str(raw)[:200]


def parse_json_payload(raw: Any) -> Union[Any, ParseFailure]:
    """Decode ``raw`` into Python data.

    Strings have code fences removed before decoding; when that fails the
    outermost JSON object or array embedded in the text is tried. Already
    decoded data is returned unchanged.
    """
    if not isinstance(raw, (str, bytes)):
        return raw
    text = raw.decode("utf-8", errors="replace") if isinstance(raw, bytes) else raw
    text = _FENCE.sub("", text).strip()
    if not text:
        return ParseFailure("Empty response")
    try:
        return json.loads(text)
    except json.JSONDecodeError:
        pass
    for opener, closer in (("{", "}"), ("[", "]")):
        start, end = text.find(opener), text.rfind(closer)
        if start != -1 and end > start:
            try:
                return json.loads(text[start : end + 1])
            except json.JSONDecodeError:
                continue
    return ParseFailure("Response is not valid JSON", _excerpt(raw))


def _coerce_tags(value: Any) -> List[str]:
    if isinstance(value, str):
        candidates: List[Any] = re.split(r"[,，;；]", value)
    elif isinstance(value, (list, tuple)):
        candidates = list(value)
    else:
        return []
    tags: List[str] = []
    for item in candidates:
        if not isinstance(item, (str, int, float)):
            continue
        tag = str(item).strip().lstrip("#")
        if tag and tag not in tags:
            tags.append(tag)
    return tags


def coerce_confidence(value: Any) -> Optional[float]:
    """Return ``value`` as a float clamped to ``[0, 1]``, or None when unusable.

    Percentages (values above 1 and up to 100) are scaled down.
    """
    if isinstance(value, bool) or value is None:
        return None
    if isinstance(value, str):
        label = value.strip().lower()
        if label in _CONFIDENCE_LABELS:
            return _CONFIDENCE_LABELS[label]
        label = label.rstrip("%")
        try:
            number = float(label)
        except ValueError:
            return None
    elif isinstance(value, (int, float)):
        number = float(value)
    else:
        return None
    if number != number:  # NaN
        return None
    if 1.0 < number <= 100.0:
        number /= 100.0
    return min(max(number, 0.0), 1.0)


def _text(value: Any) -> str:
    return value.strip() if isinstance(value, str) else ""


def _result_from_mapping(data: Mapping[str, Any]) -> Optional[AnalysisResult]:
    category = next(
        (data[key] for key in _CATEGORY_KEYS if isinstance(data.get(key), str)), None
    )
    summary = data.get("summary", data.get("description"))
    tags = data.get("tags", data.get("keywords"))
    if category is None and summary is None and tags is None:
        return None
    reasoning = _text(data.get("reasoning", data.get("reason")))
    return AnalysisResult(
        category=category.strip() if category else "",
        summary=_text(summary),
        tags=_coerce_tags(tags),
        reasoning=reasoning or None,
        confidence=coerce_confidence(data.get("confidence")),
    )


def normalize_analysis_response(raw: Any) -> Union[AnalysisResult, ParseFailure]:
    """Normalize a single-file analysis response."""
    data = parse_json_payload(raw)
    if isinstance(data, ParseFailure):
        return data
    if isinstance(data, list):
        data = next((item for item in data if isinstance(item, dict)), None)
        if data is None:
            return ParseFailure("Response array holds no object", _excerpt(raw))
    if not isinstance(data, dict):
        return ParseFailure("Response is not a JSON object", _excerpt(raw))
    result = _result_from_mapping(data)
    if result is None:
        return ParseFailure("Response has no category, summary or tags", _excerpt(raw))
    return result


def _instruction_kind(value: Any, data: Mapping[str, Any]) -> Optional[InstructionKind]:
    if isinstance(value, str):
        label = re.sub(r"[\s_-]+", "", value).lower()
        if label == "direct":
            return InstructionKind.DIRECT
        if label in {"needinfo", "needmoreinfo", "needsinfo"}:
            return InstructionKind.NEED_INFO
        return None
    if any(key in data for key in _CATEGORY_KEYS):
        return InstructionKind.DIRECT
    if "requestType" in data or "request_type" in data:
        return InstructionKind.NEED_INFO
    return None


def _normalize_instruction(data: Mapping[str, Any]) -> Optional[ManifestInstruction]:
    kind = _instruction_kind(data.get("instruction"), data)
    if kind is None:
        return None
    if kind is InstructionKind.DIRECT:
        result = _result_from_mapping(data)
        if result is None:
            return None
        return ManifestInstruction(instruction=kind, result=result)
    request_type = data.get("requestType", data.get("request_type"))
    if request_type not in _REQUEST_TYPES:
        request_type = "text_preview"
    return ManifestInstruction(
        instruction=kind,
        reason=_text(data.get("reason")) or None,
        request_type=request_type,
    )


def normalize_manifest_response(raw: Any) -> Union[ManifestResponse, ParseFailure]:
    """Normalize a manifest-phase response.

    Accepts ``{"items": {id: instruction}}``, a bare ``{id: instruction}``
    mapping (either may arrive wrapped in a one-element array),
    or a list of instructions carrying an ``id`` field. Entries that
    cannot be understood are dropped; their files receive no instruction.
    """
    data = parse_json_payload(raw)
    if isinstance(data, ParseFailure):
        return data
    if isinstance(data, list) and len(data) == 1 and isinstance(data[0], dict):
        if "id" not in data[0]:
            data = data[0]
    entries: Dict[str, Any] = {}
    if isinstance(data, dict):
        items = data.get("items", data)
        if isinstance(items, dict):
            entries = {str(key): value for key, value in items.items()}
        elif isinstance(items, list):
            entries = {
                str(item["id"]): item for item in items if isinstance(item, dict) and "id" in item
            }
        else:
            return ParseFailure("Manifest items are neither an object nor a list", _excerpt(raw))
    elif isinstance(data, list):
        entries = {
            str(item["id"]): item for item in data if isinstance(item, dict) and "id" in item
        }
    else:
        return ParseFailure("Manifest response is not a JSON object", _excerpt(raw))

    response = ManifestResponse()
    for file_id, entry in entries.items():
        if not isinstance(entry, dict):
            continue
        instruction = _normalize_instruction(entry)
        if instruction is not None:
            response.items[file_id] = instruction
    return response


__all__ = [
    "coerce_confidence",
    "normalize_analysis_response",
    "normalize_manifest_response",
    "parse_json_payload",
]
