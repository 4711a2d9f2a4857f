"""Healing reports: a summary line plus a markdown document.

The markdown is what the GitHub Action prints to the job log and what
callers typically post to a step summary.
"""

from __future__ import annotations

import time
from collections.abc import Callable, Sequence
from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import Any

from karma_ci.analysis import AnalysisResult
from karma_ci.core.constants import MS_PER_MINUTE, MS_PER_SECOND
from karma_ci.execution import RetryOutcome
from karma_ci.healing import HealingSuggestion

REPORT_TITLE = "# Karma CI Healing Report"


def format_duration(duration_ms: float) -> str:
    """Render a duration as ``850ms``, ``1.5s`` or ``2.0m``."""
    if duration_ms < MS_PER_SECOND:
        return f"{round(duration_ms)}ms"
    if duration_ms < MS_PER_MINUTE:
        return f"{duration_ms / MS_PER_SECOND:.1f}s"
    return f"{duration_ms / MS_PER_MINUTE:.1f}m"


@dataclass(frozen=True)
class HealingReport:
    """Everything known about one analyzed (and possibly retried) failure."""

    timestamp: str
    duration: str
    analysis: AnalysisResult
    suggestions: tuple[HealingSuggestion, ...]
    retry_outcome: RetryOutcome[Any] | None
    healed: bool
    summary: str
    markdown: str = field(repr=False)

    def to_dict(self) -> dict[str, Any]:
        return {
            "timestamp": self.timestamp,
            "duration": self.duration,
            "analysis": self.analysis.to_dict(),
            "suggestions": [s.to_dict() for s in self.suggestions],
            "retry": self.retry_outcome.to_dict() if self.retry_outcome else None,
            "healed": self.healed,
            "summary": self.summary,
        }


class Reporter:
    """Builds HealingReports.

    Args:
        clock: Monotonic clock in seconds, used to measure duration.
    """

    def __init__(self, clock: Callable[[], float] = time.monotonic) -> None:
        self._clock = clock

    def generate(
        self,
        analysis: AnalysisResult,
        suggestions: Sequence[HealingSuggestion],
        started_at: float,
        retry_outcome: RetryOutcome[Any] | None = None,
    ) -> HealingReport:
        """Assemble a report.

        Args:
            analysis: Classification of the failed log.
            suggestions: Healing suggestions for the matches.
            started_at: Clock reading taken when processing began.
            retry_outcome: Result of retrying, if a retry was attempted.
        """
        duration_ms = max(0.0, (self._clock() - started_at) * 1000)
        healed = retry_outcome.success if retry_outcome is not None else False
        summary = self.build_summary(analysis, healed, retry_outcome)

        fields: dict[str, Any] = {
            "timestamp": datetime.now(UTC).isoformat(),
            "duration": format_duration(duration_ms),
            "analysis": analysis,
            "suggestions": tuple(suggestions),
            "retry_outcome": retry_outcome,
            "healed": healed,
            "summary": summary,
        }
        return HealingReport(markdown=self.to_markdown(**fields), **fields)

    @staticmethod
    def build_summary(
        analysis: AnalysisResult,
        healed: bool,
        retry_outcome: RetryOutcome[Any] | None = None,
    ) -> str:
        parts: list[str] = []

        if analysis.primary is not None:
            primary = analysis.primary
            parts.append(f"Detected: {primary.name} ({primary.severity.value})")
        else:
            parts.append("No known failure pattern detected")

        if retry_outcome is not None:
            parts.append(f"Attempts: {retry_outcome.attempt_count}")
            parts.append("Status: HEALED" if healed else "Status: UNRESOLVED")

        return " | ".join(parts)

    @staticmethod
    def to_markdown(
        *,
        timestamp: str,
        duration: str,
        analysis: AnalysisResult,
        suggestions: tuple[HealingSuggestion, ...],
        retry_outcome: RetryOutcome[Any] | None,
        healed: bool,
        summary: str,
    ) -> str:
        lines: list[str] = [
            REPORT_TITLE,
            "",
            f"**Time:** {timestamp}",
            f"**Duration:** {duration}",
            f"**Status:** {'Healed' if healed else 'Unresolved'}",
            f"**Summary:** {summary}",
            "",
            "## Analysis",
            "",
            f"**Patterns detected:** {len(analysis.matches)}",
        ]

        if analysis.primary is not None:
            primary = analysis.primary
            lines.append(
                f"**Primary:** {primary.name} ({primary.category.value}, {primary.severity.value})"
            )
            lines.append(f"**Suggestion:** {primary.suggestion}")

        if suggestions:
            lines.extend(["", "## Suggestions", ""])
            for suggestion in suggestions:
                lines.append(f"### {suggestion.signature.name}")
                lines.append(suggestion.suggestion)
                if suggestion.commands:
                    lines.extend(["```bash", *suggestion.commands, "```"])
                if suggestion.config_changes:
                    lines.append("**Config changes:**")
                    lines.extend(f"- {change}" for change in suggestion.config_changes)
                lines.append("")

        if retry_outcome is not None:
            lines.extend([
                "## Retry Results",
                "",
                f"**Attempts:** {retry_outcome.attempt_count}",
                f"**Total delay:** {retry_outcome.total_delay_ms}ms",
                f"**Success:** {str(retry_outcome.success).lower()}",
            ])

        return "\n".join(lines)
