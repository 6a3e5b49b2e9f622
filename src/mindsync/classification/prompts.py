"""Prompt builders for the manifest and supplement analysis phases."""

from __future__ import annotations

import json
from typing import Sequence

from mindsync.config.models import TaxonomyConfig, TaxonomyMode
from mindsync.ingestion.extractors import ContentSupplement

from .models import AnalysisContext, ManifestItem

_LANGUAGE_HINTS = {
    "zh": "Write category names, tags and summaries in Chinese.",
    "en": "Write category names, tags and summaries in English.",
    "auto": "Use the language that best matches the file names and content.",
}

RESULT_SCHEMA = (
    '{"category": "Parent/Child", "summary": "...", "tags": ["..."], '
    '"reasoning": "...", "confidence": 0.85}'
)


def _format_categories(categories: Sequence[str]) -> str:
    return ", ".join(categories) if categories else "(none)"


def taxonomy_rules(context: AnalysisContext) -> str:
    """Describe the taxonomy bounds for the model."""
    config: TaxonomyConfig = context.taxonomy
    lines = [f"Existing categories: {_format_categories(context.existing_categories)}"]
    if config.mode == TaxonomyMode.STRICT:
        if context.existing_categories:
            lines.append("Mode: strict. Choose one of the existing categories exactly.")
        else:
            lines.append(
                "Mode: strict. No categories exist yet; leave category empty and rely on tags."
            )
    else:
        lines.append(
            "Mode: flexible. Prefer existing categories; create a new one only when none fits."
        )
    lines.append(
        f"Use at most {config.max_depth} path segments separated by '/', and no more than "
        f"{config.max_children} subcategories under one parent."
    )
    if config.target_category_count:
        lines.append(f"Aim for about {config.target_category_count} categories overall.")
    if config.category_vocabulary:
        lines.append(
            "Top-level category names should come from: "
            + ", ".join(config.category_vocabulary)
        )
    lines.append(_LANGUAGE_HINTS[config.category_language])
    return "\n".join(lines)


def build_manifest_prompt(items: Sequence[ManifestItem], context: AnalysisContext) -> str:
    """Return the prompt for the cheap, metadata-only triage call."""
    manifest = json.dumps(
        [item.model_dump(by_alias=True) for item in items], ensure_ascii=False, indent=2
    )
    return (
        "You organize files into a knowledge library. For each file below you only see "
        "its name, size and MIME type.\n"
        f"{taxonomy_rules(context)}\n\n"
        "For every file decide:\n"
        '- "Direct" when the name alone is enough; include category, summary, tags, '
        "reasoning and confidence.\n"
        '- "Need_Info" when content is required; include "reason" and a "requestType" of '
        "text_preview, image_vision, full_text or pdf_document.\n\n"
        'Return only JSON shaped as {"items": {"<id>": {"instruction": "Direct", ...}}}.\n\n'
        f"Files:\n{manifest}"
    )


def build_supplement_prompt(
    item: ManifestItem, supplement: ContentSupplement, context: AnalysisContext
) -> str:
    """Return the prompt for the single-file content analysis call."""
    header = (
        "Classify the file below for a knowledge library.\n"
        f"{taxonomy_rules(context)}\n\n"
        f"File name: {item.name}\nMIME type: {item.mime_type}\nSize: {item.size} bytes\n"
    )
    if supplement.is_binary:
        body = "The file content is attached."
    else:
        body = f"Content preview:\n{supplement.text or ''}"
    return (
        f"{header}\n{body}\n\n"
        "Give 3-5 precise tags, a summary with the key points, your reasoning and a "
        f"confidence between 0 and 1.\nReturn only JSON: {RESULT_SCHEMA}"
    )


__all__ = ["build_manifest_prompt", "build_supplement_prompt", "taxonomy_rules", "RESULT_SCHEMA"]
