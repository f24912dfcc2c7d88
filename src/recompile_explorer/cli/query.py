"""One-shot queries against the analysis server (no UI)."""

import json
from contextlib import contextmanager
from typing import Iterator

import click
import typer
from rich.table import Table
from rich.text import Text

from ..exceptions import AdapterIOError, ExplorerError
from ..logging_config import setup_logging
from ..models import RecompileReason
from ..protocol import BlockingAdapter, spawn_server
from . import app
from ._common import console, fail, print_diagnostics, resolve_config


@contextmanager
def _blocking_session(ctx: typer.Context) -> Iterator[BlockingAdapter]:
    """Start the server, send ``init``, and stop the server afterwards."""
    options = ctx.obj or {}
    try:
        settings = resolve_config(blocking=True, **options)
    except ExplorerError as e:
        raise fail(e)

    setup_logging(
        verbose=settings.verbosity == "verbose",
        quiet=settings.verbosity == "quiet",
        log_file=settings.log_file,
    )

    adapter = None
    try:
        process = spawn_server(settings.server_command, cwd=settings.server_cwd)
        adapter = BlockingAdapter.from_process(process)
        adapter.initialize()
        yield adapter
    except ExplorerError as e:
        diagnostics = None
        if isinstance(e, AdapterIOError) and adapter is not None:
            # Pipe broke because the server died; its own output explains why
            diagnostics = adapter.check_health(timeout=settings.shutdown_timeout_seconds)
        if diagnostics is not None:
            print_diagnostics(adapter.returncode, diagnostics)
            raise typer.Exit(1)
        raise fail(e)
    finally:
        if adapter is not None:
            adapter.close(timeout=settings.shutdown_timeout_seconds)


@app.command()
def files(
    ctx: typer.Context,
    json_output: bool = typer.Option(
        False,
        "--json",
        help="Output in machine-readable JSON format",
    ),
):
    """
    List every file the analysis server knows and how many files recompile with it.

    [bold cyan]Examples:[/bold cyan]

      recompile-explorer files

      recompile-explorer -C /path/to/project files --json
    """
    with _blocking_session(ctx) as adapter:
        records = adapter.list_files()

    if json_output:
        print(json.dumps([record.to_dict() for record in records], indent=2))
        return

    console.print()
    console.print(f"[bold cyan]FILES[/bold cyan] -- {len(records)} total")
    console.print()

    table = Table(show_header=True, show_lines=False, pad_edge=True)
    table.add_column("Path", min_width=30)
    table.add_column("Dependents", justify="right")
    for record in sorted(records, key=lambda r: len(r.dependents), reverse=True):
        table.add_row(record.path, str(len(record.dependents)))
    console.print(table)


@app.command()
def causes(
    ctx: typer.Context,
    source: str = typer.Argument(..., help="File that depends on SINK"),
    sink: str = typer.Argument(..., help="File SOURCE depends on"),
    reason: str = typer.Option(
        RecompileReason.COMPILE.value,
        "--reason",
        "-r",
        help="Recompile reason to explain",
        click_type=click.Choice([r.value for r in RecompileReason], case_sensitive=False),
    ),
    json_output: bool = typer.Option(
        False,
        "--json",
        help="Output in machine-readable JSON format",
    ),
):
    """
    Show the source snippets that make SOURCE depend on SINK.

    [bold cyan]Examples:[/bold cyan]

      recompile-explorer causes lib/app/web.ex lib/app/router.ex

      recompile-explorer causes lib/a.ex lib/b.ex --reason exports --json
    """
    with _blocking_session(ctx) as adapter:
        found = adapter.fetch_dependency_causes(source, sink, RecompileReason(reason.lower()))

    if json_output:
        print(json.dumps([cause.to_dict() for cause in found], indent=2))
        return

    if not found:
        console.print(f"[yellow]No causes reported for {source} -> {sink}.[/yellow]")
        return

    from .tui import render_causes

    console.print()
    console.print(Text(f"{source} -> {sink}", style="bold cyan"))
    console.print()
    console.print(render_causes(tuple(found)))
