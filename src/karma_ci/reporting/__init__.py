"""Report rendering for analyzed CI failures."""

from karma_ci.reporting.report import HealingReport, Reporter, format_duration

__all__ = [
    "HealingReport",
    "Reporter",
    "format_duration",
]
