"""Shared fixtures for the MindSync test suite."""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, Callable, Iterator, Mapping, Optional, Sequence

import pytest

from mindsync.classification import AnalysisContext, ManifestItem
from mindsync.config.models import MindSyncConfig, StorageSettings, TaxonomyConfig
from mindsync.ingestion import FsResult, LocalFileSystem
from mindsync.ingestion.extractors import ContentSupplement
from mindsync.session import OrganizerSession


class ScriptedProvider:
    """Analysis provider answering from canned responses keyed by file name.

    ``manifest`` maps a file name to its raw manifest entry; names missing from
    it receive no instruction. ``supplements`` maps a file name to the raw
    single-file response.
    """

    def __init__(
        self,
        manifest: Optional[Mapping[str, Any]] = None,
        supplements: Optional[Mapping[str, Any]] = None,
        *,
        manifest_error: Optional[Exception] = None,
        supplement_errors: Optional[Mapping[str, Exception]] = None,
        fenced: bool = False,
    ) -> None:
        self.manifest = dict(manifest or {})
        self.supplements = dict(supplements or {})
        self.manifest_error = manifest_error
        self.supplement_errors = dict(supplement_errors or {})
        self.fenced = fenced
        self.on_manifest: Optional[Callable[[Sequence[ManifestItem]], None]] = None
        self.manifest_calls: list[list[ManifestItem]] = []
        self.contexts: list[AnalysisContext] = []
        self.supplement_calls: list[tuple[str, str]] = []

    def analyze_manifest(self, items: Sequence[ManifestItem], context: AnalysisContext) -> Any:
        self.manifest_calls.append(list(items))
        self.contexts.append(context)
        if self.on_manifest is not None:
            self.on_manifest(items)
        if self.manifest_error is not None:
            raise self.manifest_error
        entries = {
            item.id: self.manifest[item.name] for item in items if item.name in self.manifest
        }
        payload = {"items": entries}
        if self.fenced:
            return f"```json\n{json.dumps(payload)}\n```"
        return payload

    def analyze_supplement(
        self, item: ManifestItem, supplement: ContentSupplement, context: AnalysisContext
    ) -> Any:
        self.supplement_calls.append((item.name, supplement.request_type))
        error = self.supplement_errors.get(item.name)
        if error is not None:
            raise error
        return self.supplements[item.name]


class FlakyFileSystem(LocalFileSystem):
    """Local filesystem whose moves fail for selected file names."""

    def __init__(self, failing_names: Sequence[str]) -> None:
        super().__init__()
        self.failing_names = set(failing_names)

    def move(self, source: Path, destination: Path) -> FsResult[None]:
        if source.name in self.failing_names:
            return FsResult.failure(f"Simulated failure moving {source.name}")
        return super().move(source, destination)


@pytest.fixture
def inbox(tmp_path: Path) -> Path:
    """Directory holding files waiting to be organized."""
    path = tmp_path / "inbox"
    path.mkdir()
    return path


@pytest.fixture
def library(tmp_path: Path) -> Path:
    """Library root receiving organized files."""
    path = tmp_path / "library"
    path.mkdir()
    return path


@pytest.fixture
def make_config(library: Path) -> Callable[..., MindSyncConfig]:
    """Return a factory building configs rooted at ``library``."""

    def _build(*, root: Optional[Path] = library, **taxonomy: Any) -> MindSyncConfig:
        return MindSyncConfig(
            storage=StorageSettings(root_path=str(root) if root is not None else None),
            taxonomy=TaxonomyConfig(**taxonomy),
        )

    return _build


@pytest.fixture
def open_session() -> Callable[..., OrganizerSession]:
    """Return a factory building sessions around a fixed provider."""

    def _build(config: MindSyncConfig, provider: Any = None) -> OrganizerSession:
        return OrganizerSession.from_config(config, provider_factory=lambda _: provider)

    return _build


@pytest.fixture
def scripted_provider() -> type[ScriptedProvider]:
    return ScriptedProvider


@pytest.fixture
def flaky_filesystem() -> type[FlakyFileSystem]:
    return FlakyFileSystem


@pytest.fixture(autouse=True)
def reset_mindsync_logger() -> Iterator[None]:
    """Undo handler changes made by CLI logging setup."""
    yield
    logger = logging.getLogger("mindsync")
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()
    logger.setLevel(logging.NOTSET)
    logger.propagate = True
