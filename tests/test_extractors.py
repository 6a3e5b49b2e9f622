"""Tests for the filesystem capability and content extraction."""

from __future__ import annotations

import base64
from pathlib import Path

from PIL import Image

from mindsync.ingestion import ContentExtractor, LocalFileSystem
from mindsync.ingestion.extractors import is_readable_image


def _extractor(**kwargs) -> ContentExtractor:
    return ContentExtractor(LocalFileSystem(), **kwargs)


def test_text_preview_is_truncated(tmp_path: Path) -> None:
    path = tmp_path / "notes.md"
    path.write_text("x" * 500, encoding="utf-8")

    supplement = _extractor(text_preview_chars=100).extract(path, "text_preview")

    assert supplement is not None
    assert supplement.request_type == "text_preview"
    assert supplement.text == "x" * 100
    assert supplement.fallback is False
    assert not supplement.is_binary


def test_full_text_uses_larger_limit(tmp_path: Path) -> None:
    path = tmp_path / "notes.txt"
    path.write_text("y" * 500, encoding="utf-8")

    supplement = _extractor(text_preview_chars=100).extract(path, "full_text")

    assert supplement is not None
    assert supplement.text == "y" * 500


def test_binary_file_falls_back_to_metadata_description(tmp_path: Path) -> None:
    path = tmp_path / "archive.zip"
    path.write_bytes(b"PK\x03\x04binary")

    supplement = _extractor().extract(path, "text_preview")

    assert supplement is not None
    assert supplement.fallback is True
    assert "archive.zip" in (supplement.text or "")


def test_empty_text_file_falls_back(tmp_path: Path) -> None:
    path = tmp_path / "empty.txt"
    path.write_text("   ", encoding="utf-8")

    supplement = _extractor().extract(path, "text_preview")

    assert supplement is not None
    assert supplement.fallback is True


def test_pdf_is_always_sent_as_document(tmp_path: Path) -> None:
    path = tmp_path / "report.pdf"
    path.write_bytes(b"%PDF-1.4 fake")

    supplement = _extractor().extract(path, "text_preview")

    assert supplement is not None
    assert supplement.request_type == "pdf_document"
    assert supplement.mime_type == "application/pdf"
    assert base64.b64decode(supplement.data_base64 or "") == b"%PDF-1.4 fake"


def test_image_vision_reads_real_images(tmp_path: Path) -> None:
    path = tmp_path / "photo.png"
    Image.new("RGB", (8, 8), color="blue").save(path)

    supplement = _extractor().extract(path, "image_vision")

    assert supplement is not None
    assert supplement.request_type == "image_vision"
    assert supplement.is_binary
    assert is_readable_image(supplement.data_base64 or "")


def test_unreadable_image_returns_none(tmp_path: Path) -> None:
    path = tmp_path / "broken.png"
    path.write_bytes(b"not an image")

    assert _extractor().extract(path, "image_vision") is None
    assert _extractor().extract(tmp_path / "missing.pdf", "pdf_document") is None


def test_filesystem_reports_failures_instead_of_raising(tmp_path: Path) -> None:
    filesystem = LocalFileSystem()
    missing = tmp_path / "missing.txt"

    assert not filesystem.read_text(missing).ok
    assert not filesystem.read_binary_base64(missing).ok
    assert not filesystem.hash(missing).ok
    assert not filesystem.scan_tree(missing).ok
    moved = filesystem.move(missing, tmp_path / "elsewhere.txt")
    assert not moved.ok
    assert "missing.txt" in (moved.error or "")


def test_filesystem_read_text_describes_binary_files(tmp_path: Path) -> None:
    path = tmp_path / "photo.jpg"
    path.write_bytes(b"\xff\xd8\xff")

    result = LocalFileSystem().read_text(path)

    assert result.ok and result.value is not None
    assert result.value.is_text is False
    assert "[Binary File]" in result.value.content


def test_filesystem_move_and_ensure_dir(tmp_path: Path) -> None:
    filesystem = LocalFileSystem()
    source = tmp_path / "a.txt"
    source.write_text("hello", encoding="utf-8")
    target_dir = tmp_path / "nested" / "dir"

    assert filesystem.ensure_dir(target_dir).ok
    assert filesystem.move(source, target_dir / "a.txt").ok
    assert not source.exists()
    assert (target_dir / "a.txt").read_text(encoding="utf-8") == "hello"
