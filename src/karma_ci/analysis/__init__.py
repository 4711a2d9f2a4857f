"""Log analysis: classify CI logs against the failure signature catalog."""

from karma_ci.analysis.analyzer import AnalysisResult, Analyzer, analyze, format_summary

__all__ = [
    "AnalysisResult",
    "Analyzer",
    "analyze",
    "format_summary",
]
