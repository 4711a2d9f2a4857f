"""Patterns command for karma-ci CLI."""

from __future__ import annotations

import typer

from karma_ci.core.patterns import SIGNATURES, Category, signatures_by_category

from ..output import console, create_signatures_table, print_json


def patterns(
    category: Category | None = typer.Option(
        None,
        "--category",
        "-c",
        help="Only list signatures in this category",
        case_sensitive=False,
    ),
    json_output: bool = typer.Option(
        False,
        "--json",
        "-j",
        help="Output the catalog as JSON",
    ),
) -> None:
    """List the built-in failure signatures."""
    signatures = signatures_by_category(category) if category is not None else list(SIGNATURES)

    if json_output:
        print_json([s.to_dict() for s in signatures])
        return

    title = f"Failure Signatures ({category.value})" if category is not None else "Failure Signatures"
    console.print(create_signatures_table(signatures, title=title))
    console.print(f"[dim]{len(signatures)} signature(s)[/dim]")
