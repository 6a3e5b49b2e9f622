"""Configuration management for MindSync.

The host application loads one :class:`MindSyncConfig` at startup through
:class:`ConfigManager` and passes it explicitly to every collaborator. Updates
are written back only through :meth:`ConfigManager.save` or
:meth:`ConfigManager.set_value`.
"""

from __future__ import annotations

import os
import textwrap
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Mapping

import yaml

from .exceptions import ConfigError
from .models import MindSyncConfig, TaxonomyConfig, TaxonomyMode
from .resolver import assign_dotted, flatten_for_env, resolve_with_precedence

DEFAULT_CONFIG_PATH = Path("~/.mindsync/config.yaml")
ENV_PREFIX = "MINDSYNC__"
_CONFIG_HEADER = textwrap.dedent(
    """\
    # MindSync configuration file
    # Generated automatically; manage via `mindsync config set KEY --value VALUE`.
    """
)


class ConfigManager:
    """Load and persist configuration data, applying precedence rules."""

    def __init__(
        self,
        config_path: Path | None = None,
        *,
        env: Mapping[str, str] | None = None,
    ) -> None:
        self._config_path = (config_path or DEFAULT_CONFIG_PATH).expanduser()
        self._env = env if env is not None else os.environ

    @property
    def config_path(self) -> Path:
        """Return the resolved configuration path."""
        return self._config_path

    def load(
        self,
        *,
        cli_overrides: Mapping[str, Any] | None = None,
        include_env: bool = True,
        ensure_file: bool = True,
        env_overrides: Mapping[str, str] | None = None,
    ) -> MindSyncConfig:
        """Return the effective configuration (defaults < file < env < CLI)."""
        if ensure_file:
            self.ensure_exists()

        env_source: Mapping[str, str] | None = None
        if include_env:
            env_source = env_overrides if env_overrides is not None else self._env

        return resolve_with_precedence(
            defaults=MindSyncConfig(),
            file_overrides=self._read_file(),
            env_overrides=self._env_overrides(env_source) if env_source else None,
            cli_overrides=cli_overrides,
        )

    def save(self, config: MindSyncConfig | Mapping[str, Any]) -> None:
        """Persist a full configuration (model or raw mapping) to disk."""
        if isinstance(config, MindSyncConfig):
            data = config.model_dump(mode="json")
        else:
            data = dict(config)
        self._write_file(data)

    def set_value(self, key: str, raw_value: str) -> MindSyncConfig:
        """Assign a dotted KEY in the config file and return the validated result.

        Args:
            key: Dotted path such as ``taxonomy.max_depth``.
            raw_value: Value parsed as a YAML scalar before assignment.

        Returns:
            MindSyncConfig: Configuration after the update.

        Raises:
            ConfigError: If the value cannot be parsed or fails validation.
        """
        try:
            value = yaml.safe_load(raw_value)
        except yaml.YAMLError as exc:
            raise ConfigError(f"Unable to parse value for {key}: {exc}") from exc

        data = self._read_file()
        assign_dotted(data, key.split("."), value, source_name="file")
        validated = resolve_with_precedence(defaults=MindSyncConfig(), file_overrides=data)
        self._write_file(data)
        return validated

    def update_taxonomy(self, taxonomy: TaxonomyConfig) -> None:
        """Persist a new taxonomy section, leaving other sections untouched."""
        data = self._read_file()
        data["taxonomy"] = taxonomy.model_dump(mode="json")
        self._write_file(data)

    def ensure_exists(self) -> Path:
        """Create a configuration file with defaults if one does not exist."""
        if not self._config_path.exists():
            self._write_file(MindSyncConfig().model_dump(mode="json"))
        return self._config_path

    def read_text(self) -> str:
        """Return the current configuration file contents."""
        if not self._config_path.exists():
            return ""
        return self._config_path.read_text(encoding="utf-8")

    def _read_file(self) -> dict[str, Any]:
        if not self._config_path.exists():
            return {}

        try:
            raw = yaml.safe_load(self._config_path.read_text(encoding="utf-8")) or {}
        except yaml.YAMLError as exc:
            raise ConfigError(f"Failed to parse configuration file: {exc}") from exc

        if not isinstance(raw, dict):
            raise ConfigError("Configuration file must contain a mapping at the top level.")
        return raw

    def _write_file(self, data: Mapping[str, Any]) -> None:
        self._config_path.parent.mkdir(parents=True, exist_ok=True)
        stamp = datetime.now(timezone.utc).isoformat().replace("+00:00", "Z")
        body = yaml.safe_dump(dict(data), sort_keys=False, allow_unicode=True)
        self._config_path.write_text(
            f"{_CONFIG_HEADER}# Last updated: {stamp}\n{body}", encoding="utf-8"
        )

    def _env_overrides(self, env: Mapping[str, str]) -> dict[str, Any]:
        overrides: dict[str, Any] = {}
        for key, raw_value in env.items():
            if not key.startswith(ENV_PREFIX):
                continue
            path = [segment.lower() for segment in key[len(ENV_PREFIX) :].split("__") if segment]
            if not path:
                continue
            try:
                value = yaml.safe_load(raw_value)
            except yaml.YAMLError:
                value = raw_value
            assign_dotted(overrides, path, value, source_name="environment")
        return overrides


__all__ = [
    "ConfigManager",
    "DEFAULT_CONFIG_PATH",
    "ENV_PREFIX",
    "MindSyncConfig",
    "TaxonomyConfig",
    "TaxonomyMode",
    "resolve_with_precedence",
    "flatten_for_env",
    "ConfigError",
]
