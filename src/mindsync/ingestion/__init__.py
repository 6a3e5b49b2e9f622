"""Ingestion pipeline package."""

from .detectors import HashComputer, HashError, TypeDetector
from .discovery import DirectoryScanner
from .extractors import ContentExtractor, ContentSupplement
from .filesystem import LocalFileSystem
from .models import FsResult, IngestionResult, PendingFile, TextContent
from .pipeline import IngestionPipeline
from .tree import DirectoryNode, FileNode, extract_categories, fold_tree

__all__ = [
    "ContentExtractor",
    "ContentSupplement",
    "DirectoryNode",
    "DirectoryScanner",
    "FileNode",
    "FsResult",
    "HashComputer",
    "HashError",
    "IngestionPipeline",
    "IngestionResult",
    "LocalFileSystem",
    "PendingFile",
    "TextContent",
    "TypeDetector",
    "extract_categories",
    "fold_tree",
]
