"""Classify raw CI log text against the failure signature catalog.

The analyzer is a pure function of its input and the static catalog: it
never raises, and an unmatched log is a normal outcome rather than an error.

Example usage:
    from karma_ci.analysis import Analyzer

    result = Analyzer().analyze(log_text)
    if result.retryable:
        ...  # hand the failed step to a RetryExecutor
    print(result.summary)
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass
from typing import Any

from karma_ci.core.constants import MAX_SNIPPETS, NO_MATCH_SUMMARY, SNIPPET_CONTEXT_LINES
from karma_ci.core.logging import get_logger
from karma_ci.core.patterns import SIGNATURES, FailureSignature, best_match, match_all

_logger = get_logger("analyzer")


@dataclass(frozen=True)
class AnalysisResult:
    """Outcome of classifying one log.

    Attributes:
        matched: True iff at least one signature matched.
        matches: Matched signatures in catalog order, each at most once.
        primary: Highest-severity match (earliest declared on ties).
        retryable: ``primary.retryable``, False when nothing matched.
        summary: ``[SEVERITY] Name: Suggestion`` or the no-match text.
        snippets: Up to five excerpts of log lines around matches.
    """

    matched: bool
    matches: tuple[FailureSignature, ...]
    primary: FailureSignature | None
    retryable: bool
    summary: str
    snippets: tuple[str, ...]

    def to_dict(self) -> dict[str, Any]:
        """Convert to a JSON-compatible dictionary."""
        return {
            "matched": self.matched,
            "matches": [signature.to_dict() for signature in self.matches],
            "primary": self.primary.to_dict() if self.primary else None,
            "retryable": self.retryable,
            "summary": self.summary,
            "snippets": list(self.snippets),
        }


def format_summary(primary: FailureSignature | None) -> str:
    """Build the one-line summary for a primary match."""
    if primary is None:
        return NO_MATCH_SUMMARY
    return f"[{primary.severity.value.upper()}] {primary.name}: {primary.suggestion}"


class Analyzer:
    """Matches log text against a signature catalog and ranks the matches.

    Args:
        signatures: Catalog to classify against. Defaults to the built-in one.
        context_lines: Lines kept before and after each matching line.
        max_snippets: Cap on excerpts across all matched signatures.
    """

    def __init__(
        self,
        signatures: Sequence[FailureSignature] = SIGNATURES,
        context_lines: int = SNIPPET_CONTEXT_LINES,
        max_snippets: int = MAX_SNIPPETS,
    ) -> None:
        self.signatures = tuple(signatures)
        self.context_lines = context_lines
        self.max_snippets = max_snippets

    def analyze(self, log: str) -> AnalysisResult:
        """Classify a CI log.

        Args:
            log: Raw log text. Empty text yields the no-match result.

        Returns:
            AnalysisResult with matches, primary match, and snippets.
        """
        matches = match_all(log, self.signatures)
        primary = best_match(log, self.signatures)
        snippets = self.extract_snippets(log, matches)

        result = AnalysisResult(
            matched=bool(matches),
            matches=tuple(matches),
            primary=primary,
            retryable=primary.retryable if primary is not None else False,
            summary=format_summary(primary),
            snippets=tuple(snippets),
        )
        _logger.debug(
            "log_analyzed",
            line_count=log.count("\n") + 1 if log else 0,
            match_count=len(matches),
            primary=primary.id if primary else None,
            retryable=result.retryable,
        )
        return result

    def extract_snippets(
        self,
        log: str,
        matches: Sequence[FailureSignature],
    ) -> list[str]:
        """Collect excerpts of the lines surrounding each match.

        Each signature is scanned over the lines in order. A line index is
        captured at most once across all signatures, so overlapping
        signatures do not produce duplicate excerpts.
        """
        if not log or not matches:
            return []

        lines = log.split("\n")
        snippets: list[str] = []
        captured: set[int] = set()

        for signature in matches:
            for index, line in enumerate(lines):
                if len(snippets) >= self.max_snippets:
                    return snippets
                if index in captured or not signature.matches(line):
                    continue
                captured.add(index)
                start = max(0, index - self.context_lines)
                end = min(len(lines), index + self.context_lines + 1)
                snippets.append("\n".join(lines[start:end]))

        return snippets


_default_analyzer = Analyzer()


def analyze(log: str) -> AnalysisResult:
    """Classify a log with the built-in catalog."""
    return _default_analyzer.analyze(log)
