"""Notification framework base types and protocols.

Provides the core notification infrastructure:
- NotificationStatus enum for the outcome being reported
- NotificationPayload carrying the message
- Notifier protocol for delivery backends
- NotificationManager fanning a payload out to every backend
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass
from enum import Enum
from typing import Protocol, runtime_checkable

from karma_ci.core.logging import get_logger

_logger = get_logger("notifications")


class NotificationStatus(str, Enum):
    """Outcome a notification reports."""

    SUCCESS = "success"
    FAILURE = "failure"
    HEALED = "healed"
    RETRYING = "retrying"


@dataclass(frozen=True)
class NotificationPayload:
    """Backend-independent content of one notification."""

    title: str
    status: NotificationStatus
    message: str
    details: str | None = None
    """Free-form detail, usually the first log snippet."""

    url: str | None = None
    """Link to the CI run."""

    attempt: int | None = None
    max_attempts: int | None = None


@runtime_checkable
class Notifier(Protocol):
    """Protocol for notification backends.

    ``send()`` reports delivery failures by returning False; it must not
    raise.
    """

    @property
    def name(self) -> str:
        """Short backend name used in result maps and logs."""
        ...

    async def send(self, payload: NotificationPayload) -> bool:
        ...

    async def close(self) -> None:
        """Release connections held by the notifier."""
        ...


class NotificationManager:
    """Delivers a payload to every registered notifier concurrently.

    Failures are logged and reported in the result map; they never
    interrupt other deliveries or propagate to the caller.
    """

    def __init__(self, notifiers: list[Notifier] | None = None) -> None:
        self._notifiers: list[Notifier] = notifiers or []

    def add_notifier(self, notifier: Notifier) -> None:
        self._notifiers.append(notifier)

    @property
    def notifier_count(self) -> int:
        return len(self._notifiers)

    async def notify(self, payload: NotificationPayload) -> dict[str, bool]:
        """Send ``payload`` through every notifier.

        Returns:
            Map of notifier name to delivery success.
        """
        if not self._notifiers:
            return {}

        results = await asyncio.gather(
            *(notifier.send(payload) for notifier in self._notifiers),
            return_exceptions=True,
        )

        delivered: dict[str, bool] = {}
        for notifier, result in zip(self._notifiers, results, strict=True):
            if isinstance(result, BaseException):
                _logger.warning(
                    "notifier_failed",
                    notifier=notifier.name,
                    error=str(result),
                )
                delivered[notifier.name] = False
            else:
                delivered[notifier.name] = bool(result)
        return delivered

    async def close(self) -> None:
        """Close all notifiers, ignoring individual close errors."""
        for notifier in self._notifiers:
            try:
                await notifier.close()
            except Exception as e:
                _logger.warning("notifier_close_failed", notifier=notifier.name, error=str(e))
