"""Configuration models describing MindSync settings."""

from __future__ import annotations

from enum import Enum
from typing import List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel


class MindSyncBaseModel(BaseModel):
    """Shared configuration for MindSync Pydantic models."""

    model_config = ConfigDict(extra="forbid")


class TaxonomyMode(str, Enum):
    """Taxonomy governance policy applied to AI suggestions."""

    STRICT = "strict"
    FLEXIBLE = "flexible"


DEFAULT_IGNORE_PATTERNS = [".DS_Store", "node_modules", "*.tmp", ".git"]


class LLMSettings(MindSyncBaseModel):
    """LLM configuration options.

    Attributes:
        provider: Identifier for the language-model provider. ``None`` means no AI
            provider is configured and placeholder proposals are produced instead.
        model: Model name to target when issuing requests.
        temperature: Sampling temperature for generative calls.
        max_tokens: Maximum number of tokens in responses.
        api_key: Optional credential for hosted providers.
        api_base_url: Optional custom endpoint for OpenAI-compatible gateways.
        timeout_seconds: Upper bound for a single provider call.
        supports_vision: Whether the model accepts image payloads.
        supports_documents: Whether the model accepts PDF payloads.
    """

    provider: Optional[str] = None
    model: str = "gemini-2.0-flash"
    temperature: float = 0.1
    max_tokens: int = 2_000
    api_key: Optional[str] = None
    api_base_url: Optional[str] = None
    timeout_seconds: float = 60.0
    supports_vision: bool = False
    supports_documents: bool = False


class TaxonomyConfig(MindSyncBaseModel):
    """Taxonomy bounds and governance policy.

    Persisted inside the metadata document using camelCase keys, while the YAML
    configuration file uses the snake_case field names.

    Attributes:
        mode: ``strict`` keeps suggestions inside the existing tree, ``flexible``
            allows new categories within the configured bounds.
        max_depth: Maximum number of path segments in a resolved category.
        max_children: Maximum siblings under one parent when minting categories.
        ignore_patterns: Glob-like name/extension patterns excluded from staging.
        target_category_count: Soft hint forwarded to the AI prompt.
        category_vocabulary: Preferred top-level category names.
        category_language: Language hint for category names.
        force_deep_analysis: Upgrade every manifest hit to content analysis.
    """

    model_config = ConfigDict(
        extra="forbid",
        alias_generator=to_camel,
        populate_by_name=True,
        use_enum_values=False,
    )

    mode: TaxonomyMode = TaxonomyMode.STRICT
    max_depth: int = Field(default=3, ge=1)
    max_children: int = Field(default=10, ge=1)
    ignore_patterns: List[str] = Field(default_factory=lambda: list(DEFAULT_IGNORE_PATTERNS))
    target_category_count: Optional[int] = None
    category_vocabulary: List[str] = Field(default_factory=list)
    category_language: Literal["zh", "en", "auto"] = "auto"
    force_deep_analysis: bool = False

    @field_validator("category_vocabulary", mode="after")
    @classmethod
    def _strip_vocabulary(cls, value: List[str]) -> List[str]:
        return [entry.strip() for entry in value if entry and entry.strip()]

    def add_ignore_pattern(self, pattern: str) -> None:
        """Register an additional ignore pattern if it is not present yet."""

        if pattern not in self.ignore_patterns:
            self.ignore_patterns.append(pattern)

    def remove_ignore_pattern(self, pattern: str) -> None:
        """Drop an ignore pattern."""

        self.ignore_patterns = [entry for entry in self.ignore_patterns if entry != pattern]


class StorageSettings(MindSyncBaseModel):
    """Location of the organized library and its bookkeeping files.

    Attributes:
        root_path: Root directory receiving organized files.
        state_dirname: Directory (under the root) holding index, logs and undo data.
        correction_limit: Number of user corrections retained for replay.
    """

    root_path: Optional[str] = None
    state_dirname: str = ".mindsync"
    correction_limit: int = Field(default=100, ge=1)


class ProcessingOptions(MindSyncBaseModel):
    """Processing options governing ingestion behavior.

    Attributes:
        text_preview_chars: Characters of text sent during supplement analysis.
        hash_chunk_size: Bytes read per chunk while hashing.
        recurse_directories: Whether to recurse into subdirectories.
        process_hidden_files: Whether hidden files should be included.
        follow_symlinks: Whether to traverse symbolic links.
        max_file_size_mb: Files larger than this are not staged (0 disables).
    """

    text_preview_chars: int = 8_000
    hash_chunk_size: int = Field(default=2 * 1024 * 1024, ge=1)
    recurse_directories: bool = False
    process_hidden_files: bool = False
    follow_symlinks: bool = False
    max_file_size_mb: int = 0


class OrganizationOptions(MindSyncBaseModel):
    """Settings that govern committing staged files.

    Attributes:
        conflict_resolution: Strategy used when the destination file exists.
    """

    conflict_resolution: Literal["append_number", "skip"] = "append_number"


class AmbiguitySettings(MindSyncBaseModel):
    """Configuration related to ambiguous classification results.

    Attributes:
        confidence_threshold: Proposals below this confidence are highlighted.
    """

    confidence_threshold: float = 0.6


class LoggingSettings(MindSyncBaseModel):
    """Runtime logging configuration.

    Attributes:
        level: Logging verbosity level.
        max_size_mb: Maximum log size before rotation.
        backup_count: Number of historical log files to retain.
    """

    level: str = "WARNING"
    max_size_mb: int = 10
    backup_count: int = 5


class CLIOptions(MindSyncBaseModel):
    """CLI behavior defaults and presentation preferences.

    Attributes:
        quiet_default: Whether commands suppress non-error output by default.
        summary_default: Whether commands only print summary lines by default.
    """

    quiet_default: bool = False
    summary_default: bool = False


class MindSyncConfig(MindSyncBaseModel):
    """Top-level configuration struct for MindSync."""

    llm: LLMSettings = Field(default_factory=LLMSettings)
    taxonomy: TaxonomyConfig = Field(default_factory=TaxonomyConfig)
    storage: StorageSettings = Field(default_factory=StorageSettings)
    processing: ProcessingOptions = Field(default_factory=ProcessingOptions)
    organization: OrganizationOptions = Field(default_factory=OrganizationOptions)
    ambiguity: AmbiguitySettings = Field(default_factory=AmbiguitySettings)
    logging: LoggingSettings = Field(default_factory=LoggingSettings)
    cli: CLIOptions = Field(default_factory=CLIOptions)


__all__ = [
    "MindSyncBaseModel",
    "TaxonomyMode",
    "DEFAULT_IGNORE_PATTERNS",
    "LLMSettings",
    "TaxonomyConfig",
    "StorageSettings",
    "ProcessingOptions",
    "OrganizationOptions",
    "AmbiguitySettings",
    "LoggingSettings",
    "CLIOptions",
    "MindSyncConfig",
]
