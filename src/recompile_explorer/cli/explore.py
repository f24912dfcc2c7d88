"""Interactive browsing, the default command."""

from pathlib import Path
from typing import Optional

import typer

from ..exceptions import ExplorerError, ServerExitedError
from ..logging_config import setup_logging
from ..session import ExplorerSession, connect
from . import app
from ._common import console, fail, print_diagnostics, resolve_config


@app.callback(invoke_without_command=True, no_args_is_help=False)
def main(
    ctx: typer.Context,
    path: Optional[Path] = typer.Option(
        None,
        "-C",
        "--path",
        help="Project root the analysis server runs in (default: current directory)",
        exists=True,
        file_okay=False,
        dir_okay=True,
        readable=True,
    ),
    server: Optional[str] = typer.Option(
        None,
        "--server",
        help="Command that starts the analysis server (shell-quoted)",
    ),
    blocking: bool = typer.Option(
        False,
        "--blocking",
        help="Talk to the server on the UI thread instead of a background thread",
    ),
    config: Optional[Path] = typer.Option(
        None,
        "-c",
        "--config",
        help="Configuration file (TOML)",
        exists=True,
        file_okay=True,
        dir_okay=False,
        readable=True,
    ),
    log_file: Optional[Path] = typer.Option(
        None,
        "--log-file",
        help="Append log records to this file",
        dir_okay=False,
    ),
    verbose: bool = typer.Option(
        False,
        "--verbose",
        "-v",
        help="Log protocol traffic and event cascades",
    ),
    version: bool = typer.Option(
        False,
        "--version",
        help="Show version and exit",
    ),
):
    """
    Browse the recompilation-dependency graph of a project.

    Starts the analysis server, lists every file, and lets you drill into the
    files that recompile when one changes, walk the chain that explains each
    dependency, and read the source snippets behind every link.

    [bold cyan]Examples:[/bold cyan]

      recompile-explorer

      recompile-explorer -C /path/to/project

      recompile-explorer --server "mix run --no-halt priv/server.exs"

      recompile-explorer files --json
    """
    # Subcommands build their own config from the same options
    ctx.ensure_object(dict)
    ctx.obj.update(
        config=config, path=path, server=server, log_file=log_file, verbose=verbose
    )

    if ctx.invoked_subcommand is not None:
        return

    from .. import __version__

    if version:
        console.print(
            f"[bold cyan]Recompile Explorer[/bold cyan] version [green]{__version__}[/green]"
        )
        raise typer.Exit(0)

    try:
        settings = resolve_config(
            config=config,
            path=path,
            server=server,
            blocking=blocking,
            log_file=log_file,
            verbose=verbose,
        )
    except ExplorerError as e:
        raise fail(e)

    logger = setup_logging(
        verbose=settings.verbosity == "verbose",
        quiet=settings.verbosity == "quiet",
        log_file=settings.log_file,
        tui=True,
    )

    # Imported late so subcommands never pay for Textual start-up
    from .tui import run_tui

    try:
        adapter = connect(settings)
    except ExplorerError as e:
        raise fail(e)

    session = ExplorerSession(
        adapter,
        max_dispatch_depth=settings.max_dispatch_depth,
        exit_grace_seconds=settings.shutdown_timeout_seconds,
    )
    try:
        failure = run_tui(session, poll_interval=settings.poll_interval_seconds)
    finally:
        session.close(timeout=settings.shutdown_timeout_seconds)

    if failure is None:
        return

    logger.error(f"{failure.__class__.__name__}: {failure}")
    if isinstance(failure, ServerExitedError):
        print_diagnostics(failure.returncode, failure.diagnostics)
        raise typer.Exit(failure.exit_code)
    raise fail(failure)
