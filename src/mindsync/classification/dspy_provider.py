"""DSPy-backed analysis provider."""

from __future__ import annotations

import logging
from typing import Any, Optional, Sequence

try:  # pragma: no cover - optional dependency
    import dspy  # type: ignore
except ImportError:  # pragma: no cover - executed when DSPy absent
    dspy = None  # type: ignore[assignment]

from mindsync.config.models import LLMSettings
from mindsync.ingestion.extractors import ContentSupplement

from .errors import CapabilityNotSupportedError, ProviderError, is_capability_error
from .models import AnalysisContext, ManifestItem
from .prompts import build_manifest_prompt, build_supplement_prompt

LOGGER = logging.getLogger(__name__)


class DSPyAnalysisProvider:
    """Run manifest and supplement analysis through a DSPy language model."""

    def __init__(self, settings: Optional[LLMSettings] = None) -> None:
        """Initialise the provider with the configured LLM settings.

        Args:
            settings: LLM configuration.

        Raises:
            RuntimeError: If DSPy is unavailable or the language model cannot be configured.
        """
        if dspy is None:
            raise RuntimeError(
                "AI analysis requires DSPy. Install the 'llm' extra or unset `llm.provider`."
            )
        self._settings = settings or LLMSettings()
        self._language_model = self._configure_language_model()
        self._text_program, self._attachment_program = self._build_programs()

    def analyze_manifest(self, items: Sequence[ManifestItem], context: AnalysisContext) -> Any:
        prompt = build_manifest_prompt(items, context)
        LOGGER.debug("Manifest request for %d file(s)", len(items))
        return self._run(self._text_program, prompt=prompt)

    def analyze_supplement(
        self, item: ManifestItem, supplement: ContentSupplement, context: AnalysisContext
    ) -> Any:
        if supplement.request_type == "image_vision" and not self._settings.supports_vision:
            raise CapabilityNotSupportedError(
                f"Model {self._settings.model} does not support image vision input"
            )
        if supplement.request_type == "pdf_document" and not self._settings.supports_documents:
            raise CapabilityNotSupportedError(
                f"Model {self._settings.model} does not support PDF document input"
            )
        prompt = build_supplement_prompt(item, supplement, context)
        if supplement.is_binary:
            attachment = self._attachment(supplement)
            return self._run(self._attachment_program, prompt=prompt, attachment=attachment)
        return self._run(self._text_program, prompt=prompt)

    def _run(self, program: Any, **inputs: Any) -> str:
        try:
            with dspy.context(lm=self._language_model):
                prediction = program(**inputs)
        except Exception as exc:  # DSPy and LiteLLM raise provider-specific types
            if is_capability_error(exc):
                raise CapabilityNotSupportedError(str(exc)) from exc
            raise ProviderError(f"{self._settings.provider} request failed: {exc}") from exc
        response = getattr(prediction, "response", "") if prediction else ""
        if not isinstance(response, str) or not response.strip():
            raise ProviderError("Language model returned an empty response")
        return response

    def _configure_language_model(self) -> Any:
        """Build the DSPy language model according to the LLM settings."""
        if (
            self._settings.provider != "local"
            and self._settings.api_base_url is None
            and not self._settings.api_key
        ):
            raise RuntimeError(
                "An API key is required for the configured LLM provider. Update `llm.api_key`."
            )

        model = self._settings.model
        if self._settings.provider and "/" not in model and not self._settings.api_base_url:
            model = f"{self._settings.provider}/{model}"

        lm_kwargs: dict[str, object] = {
            "model": model,
            "temperature": self._settings.temperature,
            "max_tokens": self._settings.max_tokens,
            "timeout": self._settings.timeout_seconds,
        }
        if self._settings.api_base_url:
            lm_kwargs["api_base"] = self._settings.api_base_url
        if self._settings.api_key is not None:
            lm_kwargs["api_key"] = self._settings.api_key

        try:
            return dspy.LM(**lm_kwargs)
        except Exception as exc:  # pragma: no cover - DSPy configuration errors
            raise RuntimeError(
                "Unable to configure the DSPy language model. Verify your LLM settings."
            ) from exc

    @staticmethod
    def _build_programs() -> tuple[Any, Any]:
        """Construct the DSPy programs for text-only and attachment requests."""

        class FileAnalysisSignature(dspy.Signature):  # type: ignore[misc]
            """Follow the instructions and answer with JSON only."""

            prompt: str = dspy.InputField()
            response: str = dspy.OutputField(desc="JSON document")

        class AttachmentAnalysisSignature(dspy.Signature):  # type: ignore[misc]
            """Inspect the attached file, follow the instructions and answer with JSON only."""

            prompt: str = dspy.InputField()
            attachment: "dspy.Image" = dspy.InputField()
            response: str = dspy.OutputField(desc="JSON document")

        return dspy.Predict(FileAnalysisSignature), dspy.Predict(AttachmentAnalysisSignature)

    @staticmethod
    def _attachment(supplement: ContentSupplement) -> Any:
        """Return a DSPy payload carrying the base64 content as a data URI."""
        data_uri = f"data:{supplement.mime_type};base64,{supplement.data_base64}"
        if hasattr(dspy.Image, "from_url"):
            return dspy.Image.from_url(data_uri)
        return dspy.Image(url=data_uri)


__all__ = ["DSPyAnalysisProvider"]
