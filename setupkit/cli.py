from __future__ import annotations

import json
import logging
import sys
from enum import Enum
from pathlib import Path
from typing import Callable, Optional

import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.table import Table

from . import __version__
from .config import DEBUG_MODES, Settings, ensure_config_file, load_settings
from .errors import (
    InvalidSnapshotId,
    ManifestParseError,
    MissingInitialization,
    ProjectExistsError,
    SetupkitError,
    SnapshotExists,
    SnapshotNotFound,
)
from .snapshot import clone_snapshot, create_snapshot, init_project, show_snapshots
from .tui import run_browser
from .variables import stream_asker

app = typer.Typer(help="Capture project trees as snapshots and clone them with variables filled in.")
snapshot_app = typer.Typer(help="Create, clone and list snapshots.")
config_app = typer.Typer(help="Inspect the active configuration.")
app.add_typer(snapshot_app, name="snapshot")
app.add_typer(config_app, name="config")
console = Console()
err_console = Console(stderr=True)

logger = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_ERROR = 1
EXIT_INVALID_INPUT = 2
EXIT_NOT_FOUND = 3

ERROR_CODES: dict[type, tuple[int, str]] = {
    MissingInitialization: (EXIT_INVALID_INPUT, "missing_initialization"),
    ManifestParseError: (EXIT_INVALID_INPUT, "manifest_parse_error"),
    InvalidSnapshotId: (EXIT_INVALID_INPUT, "invalid_snapshot_id"),
    SnapshotExists: (EXIT_INVALID_INPUT, "snapshot_exists"),
    ProjectExistsError: (EXIT_INVALID_INPUT, "project_exists"),
    SnapshotNotFound: (EXIT_NOT_FOUND, "snapshot_not_found"),
}


class OutputFormat(str, Enum):
    table = "table"
    json = "json"
    md = "md"


def _configure_logging(level: str) -> None:
    logging.basicConfig(
        level=level.upper(),
        format="%(message)s",
        handlers=[RichHandler(console=err_console, show_path=False)],
        force=True,
    )


def _settings(ctx: typer.Context) -> Settings:
    return ctx.obj["settings"]


def _json_print(payload: dict) -> None:
    typer.echo(json.dumps(payload, ensure_ascii=True, sort_keys=True))


def _print_key_value_table(title: str, rows: list[tuple[str, str]]) -> None:
    table = Table(title=title)
    table.add_column("Field")
    table.add_column("Value")
    for key, value in rows:
        table.add_row(key, value)
    console.print(table)


def _emit_success(
    command: str,
    output_format: OutputFormat,
    data: dict,
    md_renderer: Callable[[dict], str] | None = None,
    table_renderer: Callable[[dict], None] | None = None,
) -> None:
    if output_format == OutputFormat.json:
        _json_print(
            {
                "ok": True,
                "command": command,
                "exit_code": EXIT_OK,
                "data": data,
            }
        )
        return

    if output_format == OutputFormat.md and md_renderer is not None:
        console.print(md_renderer(data))
        return

    if output_format == OutputFormat.table and table_renderer is not None:
        table_renderer(data)
        return

    if output_format == OutputFormat.md:
        lines = [f"# {command}", ""]
        lines.extend(f"- **{key}**: {value}" for key, value in data.items())
        console.print("\n".join(lines))
    else:
        _print_key_value_table(
            title=command,
            rows=[(str(key), str(value)) for key, value in data.items()],
        )


def _emit_error(
    command: str,
    output_format: OutputFormat,
    exit_code: int,
    code: str,
    message: str,
) -> None:
    if output_format == OutputFormat.json:
        _json_print(
            {
                "ok": False,
                "command": command,
                "exit_code": exit_code,
                "error": {
                    "code": code,
                    "message": message,
                },
            }
        )
    elif output_format == OutputFormat.md:
        console.print(f"# {command}\n\n- **status**: error\n- **code**: {code}\n- **message**: {message}")
    else:
        err_console.print(f"[red]Error ({code}):[/red] {message}", markup=True, highlight=False)

    raise typer.Exit(code=exit_code)


def _emit_engine_error(command: str, output_format: OutputFormat, error: SetupkitError) -> None:
    exit_code, code = EXIT_ERROR, "io_error"
    for error_type, mapped in ERROR_CODES.items():
        if isinstance(error, error_type):
            exit_code, code = mapped
            break
    logger.debug("%s failed: %r", command, error)
    _emit_error(command=command, output_format=output_format, exit_code=exit_code, code=code, message=str(error))


@app.callback()
def main(
    ctx: typer.Context,
    config: Optional[Path] = typer.Option(
        None, "--config", "-c", envvar="SETUPKIT_CONFIG", help="Custom YAML config file."
    ),
    log_level: Optional[str] = typer.Option(
        None, "--log-level", help=f"One of: {', '.join(DEBUG_MODES)}. Defaults to the config's debug_mode."
    ),
):
    settings = load_settings(config)
    if log_level and log_level.lower() not in DEBUG_MODES:
        raise typer.BadParameter(f"Unsupported log level: {log_level}", param_hint="--log-level")
    _configure_logging(log_level or settings.debug_mode)

    try:
        created = ensure_config_file(settings)
    except OSError as error:
        logger.error("Could not create config file %s: %s", settings.config_file_path, error)
    else:
        if created is not None:
            err_console.print(f"Created file: {created}")

    ctx.obj = {"settings": settings}


@snapshot_app.command("create")
def snapshot_create(
    ctx: typer.Context,
    project_path: Path = typer.Argument(..., help="Initialized project directory to capture."),
    name: Optional[str] = typer.Option(None, "--name", "-n", help="Snapshot id; defaults to the manifest project name."),
    output_format: OutputFormat = typer.Option(OutputFormat.table, "--format", help="Output format."),
):
    """Capture a project directory as a snapshot."""
    settings = _settings(ctx)
    try:
        report = create_snapshot(project_path, settings.snapshots_path, name=name)
    except SetupkitError as error:
        _emit_engine_error("snapshot create", output_format, error)
        raise

    data = {"id": report.snapshot_id, "path": str(report.path)}
    _emit_success(command="snapshot create", output_format=output_format, data=data)


@snapshot_app.command("clone")
def snapshot_clone(
    ctx: typer.Context,
    snapshot_id: str = typer.Argument(..., help="Snapshot id to clone."),
    destination: Path = typer.Option(Path("."), "--destination", "-d", help="Directory to clone into."),
    output_format: OutputFormat = typer.Option(OutputFormat.table, "--format", help="Output format."),
):
    """Clone a snapshot, prompting for its template variables."""
    settings = _settings(ctx)
    prompt_stream = sys.stderr if output_format == OutputFormat.json else sys.stdout
    try:
        report = clone_snapshot(
            settings.snapshots_path,
            snapshot_id,
            destination,
            ask=stream_asker(sys.stdin, prompt_stream),
        )
    except SetupkitError as error:
        _emit_engine_error("snapshot clone", output_format, error)
        raise

    data = {
        "id": report.snapshot_id,
        "destination": str(report.destination),
        "variables": dict(report.answers),
    }

    def render_table(payload: dict) -> None:
        console.print(f"Snapshot created in: [bold]{payload['destination']}[/bold]")
        if payload["variables"]:
            _print_key_value_table(title="Variables", rows=sorted(payload["variables"].items()))

    _emit_success(command="snapshot clone", output_format=output_format, data=data, table_renderer=render_table)


@snapshot_app.command("show")
def snapshot_show(
    ctx: typer.Context,
    output_format: OutputFormat = typer.Option(OutputFormat.table, "--format", help="Output format."),
):
    """List stored snapshots."""
    settings = _settings(ctx)
    try:
        snapshots = show_snapshots(settings.snapshots_path)
    except SetupkitError as error:
        _emit_engine_error("snapshot show", output_format, error)
        raise
    data = {"snapshots_path": str(settings.snapshots_path), "snapshots": snapshots}

    def render_md(payload: dict) -> str:
        lines = [f"# Snapshots in `{payload['snapshots_path']}`", ""]
        lines.extend(f"- `{item}`" for item in payload["snapshots"])
        return "\n".join(lines)

    def render_table(payload: dict) -> None:
        if not payload["snapshots"]:
            console.print(f"No snapshots on {payload['snapshots_path']}")
            return
        table = Table(title="Snapshots")
        table.add_column("Id")
        for item in payload["snapshots"]:
            table.add_row(item)
        console.print(table)

    _emit_success(
        command="snapshot show",
        output_format=output_format,
        data=data,
        md_renderer=render_md,
        table_renderer=render_table,
    )


@config_app.command("show")
def config_show(
    ctx: typer.Context,
    output_format: OutputFormat = typer.Option(OutputFormat.table, "--format", help="Output format."),
):
    """Show the current configuration."""
    settings = _settings(ctx)

    def render_table(payload: dict) -> None:
        _print_key_value_table(title="Config", rows=list(payload.items()))

    _emit_success(command="config show", output_format=output_format, data=settings.as_dict(), table_renderer=render_table)


@app.command("init")
def init(
    directory: Path = typer.Option(Path("."), "--dir", help="Directory to prepare for snapshots."),
    name: Optional[str] = typer.Option(None, "--name", "-n", help="Project name written to the manifest."),
    force: bool = typer.Option(False, "--force", "-f", help="Overwrite existing setupkit files."),
    output_format: OutputFormat = typer.Option(OutputFormat.table, "--format", help="Output format."),
):
    """Write the manifest and ignore file a snapshot source needs."""
    project_name = name if name is not None else typer.prompt("Please inform the project name", default=directory.resolve().name)
    try:
        report = init_project(directory, project_name, force=force)
    except SetupkitError as error:
        _emit_engine_error("init", output_format, error)
        raise

    data = {
        "directory": str(report.directory),
        "project_name": report.project_name,
        "written": list(report.written),
    }
    _emit_success(command="init", output_format=output_format, data=data)


@app.command("tui")
def tui(ctx: typer.Context):
    """Browse snapshots and clone one interactively."""
    settings = _settings(ctx)

    def clone(snapshot_id, destination, ask):
        return clone_snapshot(settings.snapshots_path, snapshot_id, destination, ask=ask)

    try:
        snapshots = show_snapshots(settings.snapshots_path)
    except SetupkitError as error:
        _emit_engine_error("tui", OutputFormat.table, error)
        raise

    run_browser(snapshots, clone, console=console)


@app.command("version")
def version(
    output_format: OutputFormat = typer.Option(OutputFormat.table, "--format", help="Output format."),
) -> None:
    """Print version."""
    _emit_success(command="version", output_format=output_format, data={"version": __version__})


if __name__ == "__main__":
    app()
