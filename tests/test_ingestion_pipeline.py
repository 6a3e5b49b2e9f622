"""Tests covering file discovery and staging intake."""

from pathlib import Path

import pytest
from PIL import Image

from mindsync.config.models import ProcessingOptions, TaxonomyConfig
from mindsync.ingestion import DirectoryScanner, IngestionPipeline, TypeDetector


def test_directory_scanner_filters(tmp_path: Path) -> None:
    visible = tmp_path / "visible.txt"
    visible.write_text("hello", encoding="utf-8")

    hidden = tmp_path / ".hidden.txt"
    hidden.write_text("secret", encoding="utf-8")

    oversized = tmp_path / "oversized.bin"
    oversized.write_bytes(b"x" * 2048)

    (tmp_path / "draft.tmp").write_text("tmp", encoding="utf-8")

    scanner = DirectoryScanner(
        recursive=False,
        include_hidden=False,
        follow_symlinks=False,
        max_size_bytes=1024,
        ignore_patterns=["*.tmp"],
    )

    found = list(scanner.scan(tmp_path))

    assert [item.path.name for item in found] == ["visible.txt"]
    assert found[0].size_bytes == 5
    assert found[0].mime_type == "text/plain"


def test_ingestion_pipeline_respects_recursion_and_ignores(tmp_path: Path) -> None:
    (tmp_path / "note.txt").write_text("first line\nsecond", encoding="utf-8")
    Image.new("RGB", (32, 16), color="red").save(tmp_path / "image.png")
    nested = tmp_path / "node_modules" / "pkg"
    nested.mkdir(parents=True)
    (nested / "index.js").write_text("module.exports = {}", encoding="utf-8")
    sub = tmp_path / "sub"
    sub.mkdir()
    (sub / "deep.md").write_text("# deep", encoding="utf-8")

    flat = IngestionPipeline.from_config(ProcessingOptions(), TaxonomyConfig())
    recursive = IngestionPipeline.from_config(
        ProcessingOptions(recurse_directories=True), TaxonomyConfig()
    )

    flat_names = sorted(item.path.name for item in flat.run([tmp_path]).pending)
    recursive_result = recursive.run([tmp_path])

    assert flat_names == ["image.png", "note.txt"]
    assert sorted(item.path.name for item in recursive_result.pending) == [
        "deep.md",
        "image.png",
        "note.txt",
    ]
    image = next(item for item in recursive_result.pending if item.path.name == "image.png")
    assert image.mime_type == "image/png"
    assert image.modified_at is not None


def test_pipeline_accepts_single_files_and_reports_missing_paths(tmp_path: Path) -> None:
    target = tmp_path / "single.txt"
    target.write_text("one", encoding="utf-8")
    (tmp_path / "ignored.tmp").write_text("tmp", encoding="utf-8")

    pipeline = IngestionPipeline.from_config(ProcessingOptions(), TaxonomyConfig())
    result = pipeline.run([target, target, tmp_path / "ignored.tmp", tmp_path / "nope.txt"])

    assert [item.path for item in result.pending] == [target.resolve()]
    assert result.ignored == [(tmp_path / "ignored.tmp").resolve()]
    assert len(result.errors) == 1
    assert "does not exist" in result.errors[0]


def test_pipeline_excludes_state_directory(tmp_path: Path) -> None:
    state_dir = tmp_path / ".mindsync"
    state_dir.mkdir()
    (state_dir / "index.json").write_text("{}", encoding="utf-8")
    (tmp_path / "keep.txt").write_text("keep", encoding="utf-8")

    pipeline = IngestionPipeline.from_config(
        ProcessingOptions(recurse_directories=True, process_hidden_files=True),
        TaxonomyConfig(),
        exclude=[state_dir],
    )

    names = [item.path.name for item in pipeline.run([tmp_path]).pending]

    assert names == ["keep.txt"]


def test_type_detector_categories() -> None:
    detector = TypeDetector()

    assert detector.detect(Path("notes.md")) == ("text/markdown", "text")
    assert detector.detect(Path("photo.PNG"))[1] == "image"
    assert detector.detect(Path("blob.unknownext")) == ("application/octet-stream", "unknown")


def test_type_detector_reads_content_of_extensionless_files(tmp_path: Path) -> None:
    pytest.importorskip("magic")
    document = tmp_path / "scan"
    document.write_bytes(b"%PDF-1.4\n%\xe2\xe3\xcf\xd3\n1 0 obj\n<< >>\nendobj\n")

    assert TypeDetector().detect(document) == ("application/pdf", "application")


def test_type_detector_prefers_extension_over_generic_content(tmp_path: Path) -> None:
    notes = tmp_path / "notes.md"
    notes.write_text("# Heading\n\nplain words\n", encoding="utf-8")
    empty = tmp_path / "empty.txt"
    empty.write_bytes(b"")

    assert TypeDetector().detect(notes) == ("text/markdown", "text")
    assert TypeDetector().detect(empty) == ("text/plain", "text")
