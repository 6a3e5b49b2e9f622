"""Models exchanged with analysis providers."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List, Optional, Sequence

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from mindsync.config.models import TaxonomyConfig
from mindsync.ingestion.extractors import RequestType


class InstructionKind(str, Enum):
    """Manifest-phase verdict for one file."""

    DIRECT = "Direct"
    NEED_INFO = "Need_Info"


class ManifestItem(BaseModel):
    """File description sent during the manifest phase."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    id: str
    name: str
    size: int
    mime_type: str = "application/octet-stream"


class AnalysisResult(BaseModel):
    """Normalized classification returned by a provider.

    Attributes:
        category: Suggested category path.
        summary: Short description of the file.
        tags: Keywords describing the file.
        reasoning: Explanation for the suggestion, when given.
        confidence: Provider confidence in ``[0, 1]``, when given.
    """

    category: str = ""
    summary: str = ""
    tags: List[str] = Field(default_factory=list)
    reasoning: Optional[str] = None
    confidence: Optional[float] = Field(default=None, ge=0.0, le=1.0)


class ManifestInstruction(BaseModel):
    """Instruction for one file in a manifest response."""

    instruction: InstructionKind
    result: Optional[AnalysisResult] = None
    reason: Optional[str] = None
    request_type: RequestType = "text_preview"


class ManifestResponse(BaseModel):
    """Normalized manifest-phase response keyed by file id."""

    items: Dict[str, ManifestInstruction] = Field(default_factory=dict)


@dataclass(slots=True, frozen=True)
class ParseFailure:
    """A provider response that could not be normalized."""

    message: str
    excerpt: str = ""


@dataclass(slots=True)
class AnalysisContext:
    """Taxonomy information shared by every provider call in a batch."""

    existing_categories: Sequence[str] = field(default_factory=list)
    taxonomy: TaxonomyConfig = field(default_factory=TaxonomyConfig)


__all__ = [
    "AnalysisContext",
    "AnalysisResult",
    "InstructionKind",
    "ManifestInstruction",
    "ManifestItem",
    "ManifestResponse",
    "ParseFailure",
]
