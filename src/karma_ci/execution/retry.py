"""Retry executor with capped exponential backoff and jitter.

Wraps any asynchronous operation and re-invokes it until it succeeds or the
attempt budget (``max_retries + 1`` invocations) runs out. Failures never
escape ``execute()``: they are collected, in order, on the returned
RetryOutcome so the caller decides how to handle exhaustion.

Example usage:
    from karma_ci.execution.retry import RetryConfig, RetryExecutor

    executor = RetryExecutor(RetryConfig(max_retries=3, base_delay_ms=1000))
    outcome = await executor.execute(upload_artifact)
    if not outcome.success:
        logger.error("upload_failed", errors=[str(e) for e in outcome.errors])

Delay Calculation
=================

For the attempt with zero-based index ``i``::

    exponential = base_delay_ms * 2**i
    capped      = min(exponential, max_delay_ms)
    jitter      = capped * jitter_factor * uniform(-1, 1)
    delay       = max(0, floor(capped + jitter + 0.5))

The result is clamped so it never exceeds ``max_delay_ms * (1 + jitter_factor)``.
"""

from __future__ import annotations

import asyncio
import inspect
import math
import random
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import Any, Generic, TypeVar

from karma_ci.core.constants import (
    DEFAULT_BASE_DELAY_MS,
    DEFAULT_JITTER_FACTOR,
    DEFAULT_MAX_DELAY_MS,
    DEFAULT_MAX_RETRIES,
)
from karma_ci.core.logging import get_logger

_logger = get_logger("retry")

T = TypeVar("T")

# 2**62 times any sane base delay is far beyond any sane max delay.
_MAX_EXPONENT = 62

RetryCallback = Callable[[int, int, Exception], Any]
"""``on_retry(retry_number, delay_ms, error)``; may return an awaitable."""

Operation = Callable[[], Awaitable[T] | T]
SleepFunc = Callable[[float], Awaitable[Any]]


@dataclass(frozen=True)
class RetryConfig:
    """Configuration for a RetryExecutor.

    Attributes:
        max_retries: Retries after the first attempt (0 = single attempt).
        base_delay_ms: Delay before the first retry, before jitter.
        max_delay_ms: Cap on the exponential delay, before jitter.
        jitter_factor: Fraction of the delay randomly added or removed (0-1).
        on_retry: Called before each retry with the 1-based number of the
            upcoming retry, its delay in ms, and the error that caused it.
    """

    max_retries: int = DEFAULT_MAX_RETRIES
    base_delay_ms: float = DEFAULT_BASE_DELAY_MS
    max_delay_ms: float = DEFAULT_MAX_DELAY_MS
    jitter_factor: float = DEFAULT_JITTER_FACTOR
    on_retry: RetryCallback | None = None

    def __post_init__(self) -> None:
        """Validate configuration values."""
        if self.max_retries < 0:
            raise ValueError(f"max_retries must be >= 0, got {self.max_retries}")
        if self.base_delay_ms <= 0:
            raise ValueError(f"base_delay_ms must be positive, got {self.base_delay_ms}")
        if self.max_delay_ms <= 0:
            raise ValueError(f"max_delay_ms must be positive, got {self.max_delay_ms}")
        if not 0.0 <= self.jitter_factor <= 1.0:
            raise ValueError(f"jitter_factor must be 0.0-1.0, got {self.jitter_factor}")

    @property
    def max_attempts(self) -> int:
        """Total invocations allowed (first attempt plus retries)."""
        return self.max_retries + 1

    @property
    def delay_ceiling_ms(self) -> float:
        """Largest delay calculate_delay() can ever return."""
        return self.max_delay_ms * (1 + self.jitter_factor)


@dataclass(frozen=True)
class RetryOutcome(Generic[T]):
    """Result of one ``RetryExecutor.execute()`` call.

    Attributes:
        success: Whether some attempt succeeded.
        value: The successful attempt's return value (None on failure).
        attempt_count: Invocations performed, including the successful one.
        errors: One exception per failed attempt, in order.
        total_delay_ms: Sum of the delays scheduled between attempts.
    """

    success: bool
    attempt_count: int
    errors: tuple[Exception, ...]
    total_delay_ms: int
    value: T | None = None

    @property
    def last_error(self) -> Exception | None:
        """Most recent failure, if any."""
        return self.errors[-1] if self.errors else None

    def to_dict(self) -> dict[str, object]:
        """Convert to dictionary for logging/serialization."""
        return {
            "success": self.success,
            "attempt_count": self.attempt_count,
            "errors": [f"{type(e).__name__}: {e}" for e in self.errors],
            "total_delay_ms": self.total_delay_ms,
        }


class RetryExecutor:
    """Runs an async operation with retries and exponential backoff.

    The executor holds only its configuration; attempt counters, error
    lists and delay totals live inside each ``execute()`` call, so one
    executor can serve concurrent calls.

    Args:
        config: Retry budget and backoff parameters.
        rng: Source of jitter randomness. Defaults to a fresh Random.
        sleep: Coroutine used to wait between attempts, given seconds.
    """

    def __init__(
        self,
        config: RetryConfig | None = None,
        *,
        rng: random.Random | None = None,
        sleep: SleepFunc = asyncio.sleep,
    ) -> None:
        self.config = config or RetryConfig()
        self._rng = rng or random.Random()
        self._sleep = sleep

    def calculate_delay(self, attempt_index: int) -> int:
        """Delay in milliseconds to wait after the failed attempt ``attempt_index``.

        Args:
            attempt_index: Zero-based index of the attempt that just failed.

        Returns:
            Non-negative integer delay, at most ``config.delay_ceiling_ms``.
        """
        cfg = self.config
        exponent = min(max(attempt_index, 0), _MAX_EXPONENT)
        exponential = cfg.base_delay_ms * (2.0 ** exponent)
        capped = min(exponential, cfg.max_delay_ms)
        jitter = capped * cfg.jitter_factor * self._rng.uniform(-1.0, 1.0)
        # Halves round up.
        delay = math.floor(capped + jitter + 0.5)
        return max(0, min(delay, math.floor(cfg.delay_ceiling_ms)))

    async def execute(self, operation: Operation[T]) -> RetryOutcome[T]:
        """Invoke ``operation`` until it succeeds or the budget is spent.

        Args:
            operation: Zero-argument callable. Async functions are awaited;
                a plain return value counts as success.

        Returns:
            RetryOutcome describing every attempt. Operation failures are
            recorded, never raised. Cancellation propagates.
        """
        cfg = self.config
        errors: list[Exception] = []
        total_delay_ms = 0

        for attempt_index in range(cfg.max_attempts):
            try:
                value = operation()
                if inspect.isawaitable(value):
                    value = await value
            except Exception as error:
                errors.append(error)
            else:
                if errors:
                    _logger.info(
                        "retry_succeeded",
                        attempt_count=attempt_index + 1,
                        failed_attempts=len(errors),
                        total_delay_ms=total_delay_ms,
                    )
                return RetryOutcome(
                    success=True,
                    value=value,
                    attempt_count=attempt_index + 1,
                    errors=tuple(errors),
                    total_delay_ms=total_delay_ms,
                )

            if attempt_index < cfg.max_retries:
                error = errors[-1]
                delay_ms = self.calculate_delay(attempt_index)
                total_delay_ms += delay_ms
                _logger.warning(
                    "retry_scheduled",
                    retry_number=attempt_index + 1,
                    max_retries=cfg.max_retries,
                    delay_ms=delay_ms,
                    error_type=type(error).__name__,
                    error=str(error),
                )
                if cfg.on_retry is not None:
                    callback_result = cfg.on_retry(attempt_index + 1, delay_ms, error)
                    if inspect.isawaitable(callback_result):
                        await callback_result
                await self._sleep(delay_ms / 1000)

        _logger.error(
            "retry_exhausted",
            attempt_count=cfg.max_attempts,
            total_delay_ms=total_delay_ms,
            last_error=str(errors[-1]),
        )
        return RetryOutcome(
            success=False,
            attempt_count=cfg.max_attempts,
            errors=tuple(errors),
            total_delay_ms=total_delay_ms,
        )
