"""Resilient execution: retries with exponential backoff and jitter."""

from karma_ci.execution.retry import RetryConfig, RetryExecutor, RetryOutcome

__all__ = [
    "RetryConfig",
    "RetryExecutor",
    "RetryOutcome",
]
