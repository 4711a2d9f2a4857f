"""Rich output helpers for the karma-ci CLI.

All human-facing CLI output goes through the shared ``console``. Machine
output (``--json``, the markdown report) is printed with markup and
wrapping disabled so it survives copy-paste and parsing intact.
"""

from __future__ import annotations

import json
from collections.abc import Iterable
from typing import Any

from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from karma_ci.analysis import AnalysisResult
from karma_ci.core.patterns import FailureSignature, Severity

# Shared console instance
console = Console()


SEVERITY_COLORS: dict[Severity, str] = {
    Severity.LOW: "dim",
    Severity.MEDIUM: "yellow",
    Severity.HIGH: "red",
    Severity.CRITICAL: "bold red",
}


def format_severity(severity: Severity) -> str:
    """Severity value wrapped in its colour markup."""
    color = SEVERITY_COLORS.get(severity, "white")
    return f"[{color}]{severity.value}[/{color}]"


def format_bool(value: bool) -> str:
    return "[green]yes[/green]" if value else "[dim]no[/dim]"


def print_plain(text: str) -> None:
    """Print text verbatim: no markup, no highlighting, no wrapping."""
    console.print(text, markup=False, highlight=False, soft_wrap=True)


def print_json(data: Any) -> None:
    print_plain(json.dumps(data, indent=2))


def create_signatures_table(
    signatures: Iterable[FailureSignature],
    title: str = "Failure Signatures",
) -> Table:
    """Table of signatures: id, name, category, severity, retryable."""
    table = Table(title=title)
    table.add_column("ID", style="cyan", no_wrap=True)
    table.add_column("Name")
    table.add_column("Category", style="magenta")
    table.add_column("Severity")
    table.add_column("Retryable", justify="center")
    for signature in signatures:
        table.add_row(
            signature.id,
            signature.name,
            signature.category.value,
            format_severity(signature.severity),
            format_bool(signature.retryable),
        )
    return table


def create_analysis_panel(result: AnalysisResult) -> Panel:
    """Headline panel for one analyzed log."""
    if result.primary is None:
        body = "[dim]No known failure pattern detected.[/dim]"
        border = "dim"
    else:
        primary = result.primary
        body = "\n".join([
            f"[bold]{primary.name}[/bold] ({primary.id})",
            f"Severity: {format_severity(primary.severity)}",
            f"Retryable: {format_bool(result.retryable)}",
            f"Suggestion: {primary.suggestion}",
        ])
        border = SEVERITY_COLORS.get(primary.severity, "white")
    return Panel(body, title="Analysis", border_style=border)
