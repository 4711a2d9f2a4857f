"""karma-ci CLI.

Package structure:
    cli/
    ├── __init__.py           # This file - app assembly
    ├── helpers.py            # Logging setup, notifier factory, GitHub files
    ├── output.py             # Rich formatting
    └── commands/
        ├── analyze.py        # analyze command
        ├── patterns.py       # patterns command
        └── action.py         # action command (GitHub Action entry point)
"""

from __future__ import annotations

from typing import Annotated

import typer

from karma_ci import __version__

from .commands import action, analyze, patterns
from .helpers import configure_global_logging
from .output import console

# =============================================================================
# Typer app definition
# =============================================================================

app = typer.Typer(
    name="karma-ci",
    help="Classify failed CI logs and suggest how to heal them",
    add_completion=False,
)


def version_callback(value: bool) -> None:
    """Print version and exit."""
    if value:
        console.print(f"karma-ci v{__version__}")
        raise typer.Exit()


@app.callback()
def main(
    version: bool = typer.Option(
        False,
        "--version",
        "-V",
        callback=version_callback,
        is_eager=True,
        help="Show version and exit",
    ),
    log_level: Annotated[
        str,
        typer.Option(
            "--log-level",
            "-L",
            help="Logging level (DEBUG, INFO, WARNING, ERROR)",
            envvar="KARMA_CI_LOG_LEVEL",
        ),
    ] = "WARNING",
    log_format: Annotated[
        str,
        typer.Option(
            "--log-format",
            help="Log format: console or json",
            envvar="KARMA_CI_LOG_FORMAT",
        ),
    ] = "console",
) -> None:
    """karma-ci - CI failure classification and healing suggestions."""
    configure_global_logging(log_level, log_format)


# =============================================================================
# Command registration
# =============================================================================

app.command()(analyze)
app.command()(patterns)
app.command()(action)


__all__ = ["app", "main"]
