"""
Logging configuration for Recompile Explorer.

Console output goes through rich; while the Textual UI owns the terminal,
records are routed to Textual's devtools console instead so they never draw
over the screen.
"""

import logging
from typing import Optional

from rich.console import Console
from rich.logging import RichHandler
from textual.logging import TextualHandler

LOGGER_NAME = "recompile_explorer"


def setup_logging(
    verbose: bool = False,
    quiet: bool = False,
    log_file: Optional[str] = None,
    tui: bool = False,
) -> logging.Logger:
    """
    Configure logging for a command or for the interactive UI.

    Args:
        verbose: Enable DEBUG level logging
        quiet: Suppress all but ERROR level logging
        log_file: Optional file path to write logs to
        tui: Route console records through Textual instead of stderr

    Returns:
        Configured logger instance for recompile_explorer
    """
    if quiet:
        level = logging.ERROR
    elif verbose:
        level = logging.DEBUG
    else:
        level = logging.WARNING

    handlers: list[logging.Handler] = []
    if tui:
        handlers.append(TextualHandler())
    else:
        handlers.append(
            RichHandler(
                console=Console(stderr=True),
                rich_tracebacks=True,
                tracebacks_show_locals=verbose,
                markup=False,
                show_time=True,
                show_path=verbose,
            )
        )

    if log_file:
        file_handler = logging.FileHandler(log_file, mode="a")
        file_handler.setFormatter(
            logging.Formatter(
                "%(asctime)s - %(name)s - %(threadName)s - %(levelname)s - %(message)s",
                datefmt="%Y-%m-%d %H:%M:%S",
            )
        )
        handlers.append(file_handler)

    # force=True: the UI re-configures after a command already did
    logging.basicConfig(
        level=level, format="%(message)s", datefmt="[%X]", handlers=handlers, force=True
    )

    logger = logging.getLogger(LOGGER_NAME)
    logger.setLevel(level)
    return logger

