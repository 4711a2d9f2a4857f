"""Analyze command for karma-ci CLI.

Classifies a CI log file (or stdin) against the failure signature catalog.
"""

from __future__ import annotations

from pathlib import Path

import typer
from rich.rule import Rule

from karma_ci.analysis import Analyzer
from karma_ci.healing import Healer

from ..helpers import exit_with_error, read_log
from ..output import console, create_analysis_panel, create_signatures_table, print_json, print_plain


def analyze(
    log_file: Path | None = typer.Argument(
        None,
        help="CI log file to analyze. Omit or pass '-' to read stdin.",
        show_default=False,
    ),
    json_output: bool = typer.Option(
        False,
        "--json",
        "-j",
        help="Output the analysis as JSON",
    ),
    suggest: bool = typer.Option(
        False,
        "--suggest",
        "-s",
        help="Include healing commands and config changes",
    ),
) -> None:
    """Classify a failed CI log and suggest a fix."""
    try:
        log = read_log(log_file)
    except OSError as e:
        raise exit_with_error(e) from None

    result = Analyzer().analyze(log)
    suggestions = Healer().suggest(result) if suggest else []

    if json_output:
        data = result.to_dict()
        if suggest:
            data["suggestions"] = [s.to_dict() for s in suggestions]
        print_json(data)
        return

    console.print(create_analysis_panel(result))
    if len(result.matches) > 1:
        console.print(create_signatures_table(result.matches, title="All Matches"))

    for index, snippet in enumerate(result.snippets, 1):
        console.print(Rule(f"Snippet {index}", style="dim"))
        print_plain(snippet)

    for suggestion in suggestions:
        console.print(Rule(suggestion.signature.name, style="cyan"))
        print_plain(str(suggestion))
        for command in suggestion.commands:
            print_plain(f"  $ {command}")
        for change in suggestion.config_changes:
            print_plain(f"  - {change}")
