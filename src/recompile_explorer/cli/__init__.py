"""CLI entry point: registers all subcommands."""

import typer

app = typer.Typer(
    name="recompile-explorer",
    help="Recompile Explorer - browse which files force recompilation of which, and why",
    add_completion=False,
    rich_markup_mode="rich",
)


def main() -> None:
    app()


# Import subcommands to register them
from .explore import main as _main_callback  # noqa: F401, E402
from .query import files as _files, causes as _causes  # noqa: F401, E402
