"""AI analysis protocol, response normalization and providers."""

from .errors import CapabilityNotSupportedError, ProviderError, is_capability_error
from .models import (
    AnalysisContext,
    AnalysisResult,
    InstructionKind,
    ManifestInstruction,
    ManifestItem,
    ManifestResponse,
    ParseFailure,
)
from .normalize import normalize_analysis_response, normalize_manifest_response
from .provider import AnalysisProvider, build_provider

__all__ = [
    "AnalysisContext",
    "AnalysisProvider",
    "AnalysisResult",
    "CapabilityNotSupportedError",
    "InstructionKind",
    "ManifestInstruction",
    "ManifestItem",
    "ManifestResponse",
    "ParseFailure",
    "ProviderError",
    "build_provider",
    "is_capability_error",
    "normalize_analysis_response",
    "normalize_manifest_response",
]
