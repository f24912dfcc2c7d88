"""Shared CLI helpers."""

from pathlib import Path
from typing import Optional

import typer
from rich.console import Console
from rich.markup import escape

from ..config import ExplorerConfig, load_config
from ..exceptions import ExplorerError

console = Console()
err_console = Console(stderr=True)


def resolve_config(
    config: Optional[Path] = None,
    path: Optional[Path] = None,
    server: Optional[str] = None,
    blocking: bool = False,
    log_file: Optional[Path] = None,
    verbose: bool = False,
) -> ExplorerConfig:
    """Build configuration from CLI options."""
    overrides = {}
    if path is not None:
        overrides["server_cwd"] = str(path)
    if server is not None:
        overrides["server_command"] = server
    if blocking:
        overrides["adapter_mode"] = "blocking"
    if log_file is not None:
        overrides["log_file"] = str(log_file)
    if verbose:
        overrides["verbose"] = True
    return load_config(config_file=config, **overrides)


def print_error(message: str) -> None:
    err_console.print(f"[red]Error:[/red] {escape(message)}", highlight=False)


def fail(error: ExplorerError) -> typer.Exit:
    """Print ``error`` with its hint and return the exit matching its kind."""
    print_error(str(error))
    if error.hint:
        err_console.print(f"[dim]Hint: {escape(error.hint)}[/dim]", highlight=False)
    return typer.Exit(error.exit_code)


def print_diagnostics(returncode: Optional[int], diagnostics: str) -> None:
    """Show what the analysis server wrote before it exited."""
    err_console.print(
        f"[red]Analysis server exited[/red] (code {returncode})", highlight=False
    )
    if diagnostics.strip():
        err_console.print(diagnostics.rstrip(), markup=False, highlight=False)
