"""Command line interface for MindSync."""

from __future__ import annotations

import difflib
from pathlib import Path
from typing import Any, Optional, Sequence

import click
import yaml
from click.core import ParameterSource
from rich.console import Console
from rich.syntax import Syntax
from rich.table import Table

from mindsync.classification import build_provider
from mindsync.cli_support import (
    build_category_tree,
    build_review_table,
    commit_payload,
    configure_logging,
    relative_to,
    staged_record,
    undo_payload,
)
from mindsync.config import ConfigError, ConfigManager, MindSyncConfig
from mindsync.config.models import LLMSettings
from mindsync.organization import StorageNotConfiguredError
from mindsync.search import SearchFilters, search as search_entries
from mindsync.session import OrganizerSession
from mindsync.staging import FileStatus
from mindsync.state import StateError

console = Console()


def _handle_cli_error(
    message: str,
    *,
    code: str,
    json_output: bool,
    details: Any | None = None,
    original: Exception | None = None,
) -> None:
    """Emit a standardized error and terminate the command appropriately.

    Args:
        message: Human-readable error message.
        code: Machine-readable error identifier.
        json_output: Indicates whether JSON mode is active.
        details: Optional structured details to include in the payload.
        original: Original exception for chaining when not using JSON.

    Raises:
        SystemExit: When emitting JSON output to terminate the command.
        click.ClickException: For non-JSON flows to surface the error.
    """

    if json_output:
        payload: dict[str, Any] = {"error": {"code": code, "message": message}}
        if details is not None:
            payload["error"]["details"] = details
        console.print_json(data=payload)
        raise SystemExit(1)

    if isinstance(original, click.ClickException):
        raise original

    raise click.ClickException(message) from original


def _emit_message(message: Any, *, mode: str, quiet: bool, summary_only: bool) -> None:
    """Conditionally print CLI output according to quiet/summary settings.

    Args:
        message: Renderable or string to emit.
        mode: Output mode identifier (`detail`, `summary`, `warning`, or `error`).
        quiet: Whether quiet mode is active.
        summary_only: Whether only summary lines should be emitted.
    """

    if quiet and mode != "error":
        return

    important_modes = {"summary", "warning", "error"}
    if summary_only and mode not in important_modes:
        return

    console.print(message)


def _format_summary_line(command: str, root: Path | str, metrics: dict[str, Any]) -> str:
    """Return a consistent summary line for CLI commands."""

    parts = ", ".join(f"{key}={value}" for key, value in metrics.items())
    return f"[green]{command} summary for {root}: {parts}.[/green]"


def _output_modes(
    ctx: click.Context,
    config: MindSyncConfig,
    *,
    quiet: bool,
    summary_mode: bool,
    json_output: bool,
) -> tuple[bool, bool]:
    """Resolve quiet/summary flags against the configured CLI defaults."""

    explicit_quiet = ctx.get_parameter_source("quiet") == ParameterSource.COMMANDLINE
    explicit_summary = ctx.get_parameter_source("summary_mode") == ParameterSource.COMMANDLINE

    quiet_enabled = quiet if explicit_quiet else config.cli.quiet_default
    summary_only = summary_mode if explicit_summary else config.cli.summary_default

    if json_output:
        if explicit_quiet and quiet_enabled:
            raise click.ClickException("--json cannot be combined with --quiet.")
        if explicit_summary and summary_only:
            raise click.ClickException("--json cannot be combined with --summary.")
        return False, False

    if quiet_enabled and summary_only:
        raise click.ClickException(
            "Quiet and summary modes cannot both be enabled. Adjust CLI defaults or flags."
        )
    return quiet_enabled, summary_only


def _load_config(
    root: Optional[str] = None, overrides: Optional[dict[str, Any]] = None
) -> MindSyncConfig:
    """Load the effective configuration, applying ``--root`` as a CLI override."""
    cli_overrides: dict[str, Any] = dict(overrides or {})
    if root:
        cli_overrides["storage"] = {"root_path": str(Path(root).expanduser().resolve())}
    manager = ConfigManager()
    manager.ensure_exists()
    return manager.load(cli_overrides=cli_overrides or None)


def _no_provider(_: LLMSettings) -> None:
    return None


def _open_session(
    config: MindSyncConfig, *, with_provider: bool = False, log_to_file: bool = True
) -> OrganizerSession:
    """Build the session and install logging for one command."""
    session = OrganizerSession.from_config(
        config, provider_factory=build_provider if with_provider else _no_provider
    )
    log_path = None
    if log_to_file and session.root is not None and session.root.exists():
        log_path = session.repository.log_path(session.root)
    configure_logging(config.logging, log_path)
    return session


_root_option = click.option(
    "--root",
    type=click.Path(file_okay=False, path_type=str),
    help="Library root receiving organized files (overrides storage.root_path).",
)


@click.group(context_settings={"help_option_names": ["-h", "--help"]})
@click.version_option(package_name="mindsync")
def cli() -> None:
    """MindSync sorts files into a knowledge library with AI-assisted proposals."""


@cli.command()
@click.argument("paths", nargs=-1, required=True, type=click.Path(exists=True, path_type=str))
@_root_option
@click.option("-r", "--recursive", is_flag=True, help="Include all subdirectories.")
@click.option("--yes", "assume_yes", is_flag=True, help="Commit without asking for confirmation.")
@click.option("--dry-run", is_flag=True, help="Show proposals without moving files.")
@click.option("--json", "json_output", is_flag=True, help="Emit JSON describing the batch.")
@click.option("--summary", "summary_mode", is_flag=True, help="Only emit summary lines.")
@click.option("--quiet", is_flag=True, help="Suppress non-error output.")
@click.pass_context
def organize(
    ctx: click.Context,
    paths: Sequence[str],
    root: Optional[str],
    recursive: bool,
    assume_yes: bool,
    dry_run: bool,
    json_output: bool,
    summary_mode: bool,
    quiet: bool,
) -> None:
    """Stage files under PATHS, analyze them and commit the proposals.

    Without --yes the review table is shown and confirmation is requested
    before any file is moved. --json never prompts; combine it with --yes to
    commit.
    """

    try:
        overrides = {"processing": {"recurse_directories": True}} if recursive else None
        config = _load_config(root, overrides)
        quiet_enabled, summary_only = _output_modes(
            ctx, config, quiet=quiet, summary_mode=summary_mode, json_output=json_output
        )
        session = _open_session(config, with_provider=True, log_to_file=not dry_run)
        if not dry_run:
            session.require_root()

        ingestion = session.stage([Path(path).expanduser().resolve() for path in paths])
        for error in ingestion.errors:
            _emit_message(
                f"[yellow]{error}[/yellow]",
                mode="warning",
                quiet=quiet_enabled,
                summary_only=summary_only,
            )
        session.process()

        files = session.store.files
        if not json_output:
            _emit_message(
                build_review_table(
                    files, confidence_threshold=config.ambiguity.confidence_threshold
                ),
                mode="detail",
                quiet=quiet_enabled,
                summary_only=summary_only,
            )

        payload: dict[str, Any] = {
            "files": [staged_record(item) for item in files],
            "ingestion": {
                "staged": len(ingestion.pending),
                "ignored": [str(path) for path in ingestion.ignored],
                "errors": list(ingestion.errors),
            },
            "dry_run": dry_run,
            "commit": None,
        }

        committable = session.committer.eligible()
        counts = {
            status.value: len(session.store.state.with_status(status)) for status in FileStatus
        }
        if dry_run:
            if json_output:
                console.print_json(data=payload)
                return
            _emit_message(
                "[yellow]Dry run: no files were moved.[/yellow]",
                mode="summary",
                quiet=quiet_enabled,
                summary_only=summary_only,
            )
            _emit_message(
                _format_summary_line("Organize", ", ".join(paths), counts),
                mode="summary",
                quiet=quiet_enabled,
                summary_only=summary_only,
            )
            return

        if not committable:
            if json_output:
                console.print_json(data=payload)
                return
            _emit_message(
                "[yellow]Nothing to commit.[/yellow]",
                mode="summary",
                quiet=quiet_enabled,
                summary_only=summary_only,
            )
            return

        proceed = assume_yes or (
            not json_output
            and click.confirm(f"Move {len(committable)} file(s) into the library?", default=False)
        )
        if not proceed:
            if json_output:
                console.print_json(data=payload)
                return
            _emit_message(
                "[yellow]Commit cancelled; files remain staged only for this run.[/yellow]",
                mode="summary",
                quiet=quiet_enabled,
                summary_only=summary_only,
            )
            return

        result = session.commit()
        library_root = session.require_root()
        payload["commit"] = commit_payload(result, library_root)
        if json_output:
            console.print_json(data=payload)
            return

        for outcome in result.results:
            if not outcome.success:
                _emit_message(
                    f"[red]Failed to move {outcome.source_path}: {outcome.error}[/red]",
                    mode="error",
                    quiet=quiet_enabled,
                    summary_only=summary_only,
                )
        for warning in result.warnings:
            _emit_message(
                f"[yellow]{warning}[/yellow]",
                mode="warning",
                quiet=quiet_enabled,
                summary_only=summary_only,
            )
        _emit_message(
            _format_summary_line(
                "Commit",
                library_root,
                {"moved": result.success_count, "failed": result.fail_count},
            ),
            mode="summary",
            quiet=quiet_enabled,
            summary_only=summary_only,
        )
    except click.ClickException as exc:
        _handle_cli_error(
            exc.format_message(), code="cli_error", json_output=json_output, original=exc
        )
    except StorageNotConfiguredError as exc:
        _handle_cli_error(
            str(exc), code="storage_not_configured", json_output=json_output, original=exc
        )
    except ConfigError as exc:
        _handle_cli_error(str(exc), code="config_error", json_output=json_output, original=exc)
    except StateError as exc:
        _handle_cli_error(str(exc), code="state_error", json_output=json_output, original=exc)
    except RuntimeError as exc:
        _handle_cli_error(str(exc), code="provider_error", json_output=json_output, original=exc)


@cli.command()
@_root_option
@click.option("--json", "json_output", is_flag=True, help="Emit JSON describing the undo.")
@click.option("--summary", "summary_mode", is_flag=True, help="Only emit summary lines.")
@click.option("--quiet", is_flag=True, help="Suppress non-error output.")
@click.pass_context
def undo(
    ctx: click.Context,
    root: Optional[str],
    json_output: bool,
    summary_mode: bool,
    quiet: bool,
) -> None:
    """Move the files of the most recent commit back to where they came from."""

    try:
        config = _load_config(root)
        quiet_enabled, summary_only = _output_modes(
            ctx, config, quiet=quiet, summary_mode=summary_mode, json_output=json_output
        )
        session = _open_session(config)
        library_root = session.require_root()
        result = session.undo()
    except click.ClickException as exc:
        _handle_cli_error(
            exc.format_message(), code="cli_error", json_output=json_output, original=exc
        )
        return
    except StorageNotConfiguredError as exc:
        _handle_cli_error(
            str(exc), code="storage_not_configured", json_output=json_output, original=exc
        )
        return
    except (ConfigError, StateError) as exc:
        _handle_cli_error(str(exc), code="undo_error", json_output=json_output, original=exc)
        return

    if json_output:
        console.print_json(data=undo_payload(result))
        return

    if result.success_count == 0 and result.fail_count == 0 and not result.errors:
        _emit_message(
            "[yellow]Nothing to undo.[/yellow]",
            mode="summary",
            quiet=quiet_enabled,
            summary_only=summary_only,
        )
        return
    for error in result.errors:
        _emit_message(
            f"[red]{error}[/red]", mode="error", quiet=quiet_enabled, summary_only=summary_only
        )
    _emit_message(
        _format_summary_line(
            "Undo",
            library_root,
            {"restored": result.success_count, "failed": result.fail_count},
        ),
        mode="summary",
        quiet=quiet_enabled,
        summary_only=summary_only,
    )


@cli.command()
@_root_option
@click.option("--json", "json_output", is_flag=True, help="Emit status information as JSON.")
def status(root: Optional[str], json_output: bool) -> None:
    """Summarize the library index, taxonomy and undo state."""

    try:
        config = _load_config(root)
        session = _open_session(config)
        library_root = session.require_root()
        document = session.load_index()
        undo_log = session.repository.load_undo_log(library_root)
    except StorageNotConfiguredError as exc:
        _handle_cli_error(
            str(exc), code="storage_not_configured", json_output=json_output, original=exc
        )
        return
    except (ConfigError, StateError) as exc:
        _handle_cli_error(str(exc), code="state_error", json_output=json_output, original=exc)
        return

    categories = document.categories()
    payload = {
        "root": str(library_root),
        "version": document.version,
        "files": len(document.files),
        "categories": categories,
        "taxonomy_mode": document.config.mode.value,
        "corrections": len(session.learner.records),
        "undo_operations": len(undo_log.operations) if undo_log else 0,
    }
    if json_output:
        console.print_json(data=payload)
        return

    table = Table(title=f"Library {library_root}")
    table.add_column("Metric")
    table.add_column("Value", overflow="fold")
    table.add_row("Indexed files", str(payload["files"]))
    table.add_row("Categories", ", ".join(categories) or "-")
    table.add_row("Taxonomy mode", payload["taxonomy_mode"])
    table.add_row("Corrections", str(payload["corrections"]))
    table.add_row("Undo operations", str(payload["undo_operations"]))
    console.print(table)


@cli.command()
@click.argument("query", required=False, default="")
@_root_option
@click.option("--type", "file_types", multiple=True, help="File type group (doc, image, ...).")
@click.option("--tag", "tags", multiple=True, help="Required tag; repeat to require several.")
@click.option("--category", "categories", multiple=True, help="Accepted category.")
@click.option("--limit", type=int, default=50, show_default=True, help="Maximum results.")
@click.option("--json", "json_output", is_flag=True, help="Emit results as JSON.")
def search(
    query: str,
    root: Optional[str],
    file_types: Sequence[str],
    tags: Sequence[str],
    categories: Sequence[str],
    limit: int,
    json_output: bool,
) -> None:
    """Search indexed files by name, tags, summary and category."""

    try:
        config = _load_config(root)
        session = _open_session(config)
        library_root = session.require_root()
        document = session.load_index()
    except StorageNotConfiguredError as exc:
        _handle_cli_error(
            str(exc), code="storage_not_configured", json_output=json_output, original=exc
        )
        return
    except (ConfigError, StateError) as exc:
        _handle_cli_error(str(exc), code="state_error", json_output=json_output, original=exc)
        return

    filters = SearchFilters(file_types=file_types, tags=tags, categories=categories)
    results = search_entries(document.files.values(), query, filters=filters, limit=limit)

    if json_output:
        console.print_json(
            data={
                "query": query,
                "results": [
                    {
                        "name": result.entry.original_name,
                        "path": result.entry.current_path,
                        "category": result.entry.category,
                        "score": result.score,
                        "highlights": [
                            {"field": item.field, "text": item.text} for item in result.highlights
                        ],
                    }
                    for result in results
                ],
            }
        )
        return

    if not results:
        console.print("[yellow]No matching files.[/yellow]")
        return
    table = Table(title=f"Results for {query!r}" if query else "Indexed files")
    table.add_column("File", overflow="fold")
    table.add_column("Category", overflow="fold")
    table.add_column("Score", justify="right")
    table.add_column("Path", overflow="fold")
    for result in results:
        table.add_row(
            result.entry.original_name,
            result.entry.category or "-",
            f"{result.score:.1f}",
            relative_to(Path(result.entry.current_path), library_root),
        )
    console.print(table)


@cli.group()
def config() -> None:
    """Manage MindSync configuration files and overrides."""


@config.command("view")
@click.option("--no-env", is_flag=True, help="Ignore environment overrides when displaying output.")
def config_view(no_env: bool) -> None:
    """Display the effective configuration after applying precedence rules."""
    manager = ConfigManager()
    try:
        manager.ensure_exists()
        loaded = manager.load(include_env=not no_env)
    except ConfigError as exc:
        raise click.ClickException(str(exc)) from exc

    yaml_text = yaml.safe_dump(loaded.model_dump(mode="json"), sort_keys=False)
    console.print(Syntax(yaml_text, "yaml", word_wrap=True))


@config.command("set")
@click.argument("key")
@click.option("--value", required=True, help="Value to assign to KEY.")
def config_set(key: str, value: str) -> None:
    """Persist a configuration value expressed as a dotted KEY."""
    segments = [segment.strip() for segment in key.split(".") if segment.strip()]
    if not segments:
        raise click.ClickException("KEY must specify a dotted path such as 'taxonomy.max_depth'.")

    manager = ConfigManager()
    manager.ensure_exists()
    before = manager.read_text().splitlines()
    try:
        manager.set_value(".".join(segments), value)
    except ConfigError as exc:
        raise click.ClickException(str(exc)) from exc
    after = manager.read_text().splitlines()

    diff = [
        line
        for line in difflib.unified_diff(
            before,
            after,
            fromfile="config.yaml (before)",
            tofile="config.yaml (after)",
            lineterm="",
        )
        if not line.lstrip("+-").startswith("# Last updated:")
    ]
    if len(diff) <= 2:
        console.print("[yellow]No changes applied; value already up to date.[/yellow]")
        return
    console.print(Syntax("\n".join(diff), "diff", word_wrap=False))
    console.print(f"[green]Updated {'.'.join(segments)}.[/green]")


@cli.group()
def taxonomy() -> None:
    """Inspect and extend the library category tree."""


@taxonomy.command("show")
@_root_option
@click.option("--json", "json_output", is_flag=True, help="Emit the tree as JSON.")
def taxonomy_show(root: Optional[str], json_output: bool) -> None:
    """Display the category tree stored in the library index."""
    try:
        session = _open_session(_load_config(root))
        session.require_root()
        tree = session.category_tree()
    except StorageNotConfiguredError as exc:
        _handle_cli_error(
            str(exc), code="storage_not_configured", json_output=json_output, original=exc
        )
        return
    except (ConfigError, StateError) as exc:
        _handle_cli_error(str(exc), code="state_error", json_output=json_output, original=exc)
        return

    if json_output:
        console.print_json(data={"categories": tree.all_paths()})
        return
    console.print(build_category_tree(tree.roots))


@taxonomy.command("add")
@click.argument("name")
@click.option("--parent", type=str, help="Existing category path to nest under.")
@_root_option
def taxonomy_add(name: str, parent: Optional[str], root: Optional[str]) -> None:
    """Add category NAME to the library taxonomy."""
    try:
        session = _open_session(_load_config(root))
        added = session.add_category(name, parent)
    except (StorageNotConfiguredError, ConfigError, StateError) as exc:
        raise click.ClickException(str(exc)) from exc

    if not added:
        raise click.ClickException(
            f"Could not add {name!r}: parent missing, name taken or the parent is full."
        )
    location = f"{parent.strip('/')}/{name}" if parent else name
    console.print(f"[green]Added category {location}.[/green]")


def main() -> None:
    """Invoke the Click CLI as the console script entry point."""
    cli()


if __name__ == "__main__":
    main()
