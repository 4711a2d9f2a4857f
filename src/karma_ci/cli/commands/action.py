"""GitHub Action entry point for karma-ci.

Reads the action inputs from ``INPUT_*`` environment variables and the
failed job's log from ``KARMA_CI_LOG`` (or ``--log-file``), then:

1. Classifies the log and builds healing suggestions.
2. Writes ``failure-pattern``, ``suggestion`` and ``retryable`` step outputs.
   ``retryable`` is false when the retry budget (``max-retries``) is zero;
   otherwise ``max-retries`` and the planned ``retry-delays-ms`` are written too.
3. Prints the markdown report and appends it to the job step summary.
4. Notifies the configured Slack/Discord webhooks with a link to the run.

Re-running the failed job is left to the workflow, which can gate a retry
step on the ``retryable`` output.
"""

from __future__ import annotations

import asyncio
import os
import time
from pathlib import Path

import typer

from karma_ci.analysis import AnalysisResult, Analyzer
from karma_ci.core.config import KarmaConfig, RetrySettings
from karma_ci.core.exceptions import KarmaError
from karma_ci.core.logging import RunContext, configure_logging, get_logger, with_context
from karma_ci.execution import RetryExecutor
from karma_ci.healing import Healer
from karma_ci.notifications import NotificationManager, NotificationPayload, NotificationStatus
from karma_ci.reporting import HealingReport, Reporter

from ..helpers import (
    append_github_file,
    create_notifiers_from_config,
    exit_with_error,
    read_log,
    run_url,
    set_output,
)
from ..output import console, print_plain

_logger = get_logger("cli.action")

REPORT_TITLE = "Karma CI Report"


def action(
    log_file: Path | None = typer.Option(
        None,
        "--log-file",
        "-f",
        help="Read the failed log from this file instead of KARMA_CI_LOG",
        exists=True,
        dir_okay=False,
    ),
    config_file: Path | None = typer.Option(
        None,
        "--config",
        "-c",
        help="YAML configuration file (replaces the INPUT_* environment inputs)",
        exists=True,
        dir_okay=False,
    ),
) -> None:
    """Run karma-ci as a GitHub Action step."""
    started_at = time.monotonic()
    environ = dict(os.environ)

    try:
        if config_file is not None:
            config = KarmaConfig.from_yaml(config_file)
            configure_logging(
                level=config.log.level,
                format=config.log.format,
                file_path=config.log.file,
            )
        else:
            config = KarmaConfig.from_env(environ)
        log = read_log(log_file) if log_file is not None else environ.get("KARMA_CI_LOG", "")
    except (KarmaError, OSError) as e:
        raise exit_with_error(e) from None

    with with_context(RunContext.from_environ(environ)):
        console.print("[bold magenta]Karma CI[/bold magenta] analyzing build...")

        analysis = Analyzer().analyze(log if config.analyze_logs else "")
        suggestions = Healer().suggest(analysis) if config.auto_heal else []
        _print_detection(analysis)

        primary = analysis.primary
        set_output("failure-pattern", primary.id if primary else "", environ)
        set_output("suggestion", primary.suggestion if primary else "", environ)
        should_retry = analysis.retryable and config.retry.max_retries > 0
        set_output("retryable", str(should_retry).lower(), environ)
        if should_retry:
            delays = _retry_plan(config.retry)
            set_output("max-retries", str(config.retry.max_retries), environ)
            set_output("retry-delays-ms", ",".join(map(str, delays)), environ)
            console.print(f"   Retry budget: {len(delays)} attempt(s), delays {delays} ms", markup=False)

        report = Reporter().generate(analysis, suggestions, started_at)
        console.print()
        print_plain(report.markdown)
        append_github_file("GITHUB_STEP_SUMMARY", report.markdown + "\n", environ)

        notifiers = create_notifiers_from_config(config.notifications)
        if notifiers:
            results = asyncio.run(_notify(NotificationManager(notifiers), report, environ))
            _logger.info("notifications_sent", results=results)


def _retry_plan(settings: RetrySettings) -> list[int]:
    """Backoff delays, in ms, the workflow should wait before each retry."""
    executor = RetryExecutor(settings.to_retry_config())
    return [executor.calculate_delay(index) for index in range(settings.max_retries)]


def _print_detection(analysis: AnalysisResult) -> None:
    if analysis.primary is None:
        console.print("[dim]No known failure pattern detected.[/dim]")
        return
    primary = analysis.primary
    console.print(f"\nDetected: [bold]{primary.name}[/bold]")
    console.print(f"   Severity: {primary.severity.value}")
    console.print(f"   Retryable: {str(analysis.retryable).lower()}")
    console.print(f"   Suggestion: {primary.suggestion}", markup=False)


async def _notify(
    manager: NotificationManager,
    report: HealingReport,
    environ: dict[str, str],
) -> dict[str, bool]:
    payload = NotificationPayload(
        title=REPORT_TITLE,
        status=NotificationStatus.HEALED if report.healed else NotificationStatus.FAILURE,
        message=report.summary,
        details=report.analysis.snippets[0] if report.analysis.snippets else None,
        url=run_url(environ),
    )
    try:
        return await manager.notify(payload)
    finally:
        await manager.close()
