"""Shared helpers for the MindSync CLI."""

from __future__ import annotations

import logging
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Any, Iterable, Optional

from rich.console import Console
from rich.logging import RichHandler
from rich.table import Table
from rich.tree import Tree

from mindsync.config.models import LoggingSettings
from mindsync.organization import CommitResult, UndoResult
from mindsync.staging import FileStatus, StagedFile
from mindsync.taxonomy import CategoryNode

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"

_STATUS_STYLES = {
    FileStatus.PENDING: "white",
    FileStatus.ANALYZING: "cyan",
    FileStatus.SUCCESS: "green",
    FileStatus.DUPLICATE: "yellow",
    FileStatus.ERROR: "red",
}


def configure_logging(
    settings: LoggingSettings,
    log_path: Optional[Path] = None,
    *,
    console: Optional[Console] = None,
) -> None:
    """Route ``mindsync`` log records to a rotating file and the console.

    The file handler is installed only when ``log_path`` is given (a library
    root is configured). Console output is limited to warnings and above.
    """
    logger = logging.getLogger("mindsync")
    level = logging.getLevelName(settings.level.upper())
    if not isinstance(level, int):
        level = logging.WARNING
    logger.setLevel(min(level, logging.INFO) if log_path is not None else level)
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()

    stream = RichHandler(
        console=console or Console(stderr=True), show_path=False, rich_tracebacks=False
    )
    stream.setLevel(max(level, logging.WARNING))
    logger.addHandler(stream)

    if log_path is not None:
        log_path.parent.mkdir(parents=True, exist_ok=True)
        file_handler = RotatingFileHandler(
            log_path,
            maxBytes=settings.max_size_mb * 1024 * 1024,
            backupCount=settings.backup_count,
            encoding="utf-8",
        )
        file_handler.setLevel(min(level, logging.INFO))
        file_handler.setFormatter(logging.Formatter(LOG_FORMAT))
        logger.addHandler(file_handler)
    logger.propagate = False


def relative_to(path: Path, root: Optional[Path]) -> str:
    """Return ``path`` relative to ``root`` when possible."""
    if root is None:
        return str(path)
    try:
        return path.relative_to(root).as_posix()
    except ValueError:
        return str(path)


def staged_record(item: StagedFile) -> dict[str, Any]:
    """Return a JSON-serializable description of a staged file."""
    proposal = item.proposal
    return {
        "id": item.id,
        "name": item.display_name,
        "source_path": str(item.source_path),
        "status": item.status.value,
        "content_hash": item.content_hash,
        "target_path": item.effective_target_path,
        "summary": item.effective_summary,
        "tags": list(item.effective_tags),
        "reasoning": proposal.reasoning if proposal else None,
        "confidence": proposal.confidence if proposal else None,
        "error": item.error,
    }


def build_review_table(files: Iterable[StagedFile], *, confidence_threshold: float) -> Table:
    """Return the review table listing each staged file and its proposal."""
    table = Table(title="Staged files")
    table.add_column("File", overflow="fold")
    table.add_column("Status")
    table.add_column("Target", overflow="fold")
    table.add_column("Tags", overflow="fold")
    table.add_column("Confidence", justify="right")
    table.add_column("Notes", overflow="fold")
    for item in files:
        proposal = item.proposal
        confidence = "-"
        if proposal is not None and item.status == FileStatus.SUCCESS:
            style = "yellow" if proposal.confidence < confidence_threshold else "green"
            confidence = f"[{style}]{proposal.confidence:.2f}[/{style}]"
        target = item.effective_target_path
        notes = item.error or (proposal.summary if proposal else "")
        status_style = _STATUS_STYLES[item.status]
        table.add_row(
            item.display_name,
            f"[{status_style}]{item.status.value}[/{status_style}]",
            "-" if target is None else (target or "(root)"),
            ", ".join(item.effective_tags) or "-",
            confidence,
            notes,
        )
    return table


def commit_payload(result: CommitResult, root: Optional[Path]) -> dict[str, Any]:
    return {
        "success_count": result.success_count,
        "fail_count": result.fail_count,
        "results": [
            {
                "id": outcome.file_id,
                "success": outcome.success,
                "source": str(outcome.source_path) if outcome.source_path else None,
                "target": relative_to(outcome.target_path, root) if outcome.target_path else None,
                "no_op": outcome.no_op,
                "conflict_applied": outcome.conflict_applied,
                "error": outcome.error,
            }
            for outcome in result.results
        ],
        "warnings": list(result.warnings),
    }


def undo_payload(result: UndoResult) -> dict[str, Any]:
    return result.model_dump(mode="json")


def build_category_tree(roots: Iterable[CategoryNode], *, title: str = "Categories") -> Tree:
    """Render category nodes as a rich tree."""
    tree = Tree(f"[bold]{title}[/bold]")

    def _add(branch: Tree, node: CategoryNode) -> None:
        child = branch.add(node.name)
        for grandchild in node.children:
            _add(child, grandchild)

    for node in roots:
        _add(tree, node)
    return tree


__all__ = [
    "build_category_tree",
    "build_review_table",
    "commit_payload",
    "configure_logging",
    "relative_to",
    "staged_record",
    "undo_payload",
]
