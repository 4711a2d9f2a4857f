"""Shared utilities for karma-ci CLI commands."""

from __future__ import annotations

import os
import sys
from collections.abc import Mapping
from pathlib import Path

import typer

from karma_ci.core.config import NotificationSettings
from karma_ci.core.exceptions import KarmaError
from karma_ci.core.logging import configure_logging, get_logger
from karma_ci.notifications import DiscordNotifier, Notifier, SlackNotifier

from .output import console

_logger = get_logger("cli")

LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR")
LOG_FORMATS = ("console", "json")


def configure_global_logging(level: str, log_format: str) -> None:
    """Configure logging from the global CLI options.

    Raises:
        typer.BadParameter: If the level or format is unknown.
    """
    level = level.upper()
    if level not in LOG_LEVELS:
        raise typer.BadParameter(f"must be one of {', '.join(LOG_LEVELS)}", param_hint="--log-level")
    if log_format not in LOG_FORMATS:
        raise typer.BadParameter(f"must be one of {', '.join(LOG_FORMATS)}", param_hint="--log-format")
    configure_logging(level=level, format=log_format)  # type: ignore[arg-type]


def exit_with_error(error: KarmaError | OSError) -> typer.Exit:
    """Print an error and build the exit (code 2) to raise."""
    console.print(f"[red]Error:[/red] {error}")
    return typer.Exit(2)


def read_log(source: Path | None) -> str:
    """Read log text from a file, or from stdin when source is None or ``-``."""
    if source is None or str(source) == "-":
        # CI logs are not guaranteed to be valid UTF-8.
        return sys.stdin.buffer.read().decode("utf-8", errors="replace")
    return source.read_text(encoding="utf-8", errors="replace")


def create_notifiers_from_config(settings: NotificationSettings) -> list[Notifier]:
    """Build one notifier per configured webhook."""
    notifiers: list[Notifier] = []
    if settings.slack_webhook:
        notifiers.append(SlackNotifier(
            webhook_url=settings.slack_webhook,
            timeout=settings.timeout_seconds,
            max_retries=settings.max_retries,
        ))
    if settings.discord_webhook:
        notifiers.append(DiscordNotifier(
            webhook_url=settings.discord_webhook,
            timeout=settings.timeout_seconds,
            max_retries=settings.max_retries,
        ))
    return notifiers


def run_url(environ: Mapping[str, str]) -> str | None:
    """Link to the current GitHub Actions run, if the runner exposes one."""
    server = environ.get("GITHUB_SERVER_URL")
    repository = environ.get("GITHUB_REPOSITORY")
    run_id = environ.get("GITHUB_RUN_ID")
    if server and repository and run_id:
        return f"{server}/{repository}/actions/runs/{run_id}"
    return None


def append_github_file(env_var: str, content: str, environ: Mapping[str, str] = os.environ) -> bool:
    """Append to a GitHub-provided file such as ``$GITHUB_OUTPUT``.

    Returns:
        False when the variable is unset (not running inside Actions).
    """
    path = environ.get(env_var)
    if not path:
        return False
    with open(path, "a", encoding="utf-8") as f:
        f.write(content)
    _logger.debug("github_file_written", target=env_var, size=len(content))
    return True


def set_output(name: str, value: str, environ: Mapping[str, str] = os.environ) -> None:
    """Record a step output as ``name=value``."""
    append_github_file("GITHUB_OUTPUT", f"{name}={value}\n", environ)
