"""Shared HTTP delivery for webhook-based notifiers, using httpx.

Concrete notifiers only build the JSON body; this base class owns the
client, the missing-URL handling, and retrying failed deliveries through a
RetryExecutor.
"""

from __future__ import annotations

import os
from typing import Any

import httpx

from karma_ci.core.constants import (
    NOTIFICATION_BASE_DELAY_MS,
    NOTIFICATION_MAX_RETRIES,
    NOTIFICATION_TIMEOUT_SECONDS,
)
from karma_ci.core.exceptions import NotificationError
from karma_ci.core.logging import get_logger
from karma_ci.execution import RetryConfig, RetryExecutor
from karma_ci.notifications.base import NotificationPayload

_logger = get_logger("notifications.webhook")


class WebhookNotifier:
    """Base class for notifiers that POST JSON to an incoming webhook.

    Subclasses set ``name`` and ``default_url_env`` and implement
    ``build_payload()``.

    Args:
        webhook_url: Direct webhook URL. Falls back to ``webhook_url_env``.
        webhook_url_env: Environment variable holding the URL.
        timeout: HTTP request timeout in seconds.
        max_retries: Extra delivery attempts after a failure.
        executor: Retry executor to use instead of one built from max_retries.
    """

    name = "webhook"
    default_url_env = "KARMA_CI_WEBHOOK_URL"

    def __init__(
        self,
        webhook_url: str | None = None,
        webhook_url_env: str | None = None,
        timeout: float = NOTIFICATION_TIMEOUT_SECONDS,
        max_retries: int = NOTIFICATION_MAX_RETRIES,
        executor: RetryExecutor | None = None,
    ) -> None:
        self._webhook_url = webhook_url or os.environ.get(
            webhook_url_env or self.default_url_env, ""
        )
        self._timeout = timeout
        self._executor = executor or RetryExecutor(
            RetryConfig(max_retries=max_retries, base_delay_ms=NOTIFICATION_BASE_DELAY_MS)
        )
        self._client: httpx.AsyncClient | None = None
        self._warned_no_webhook = False

    @property
    def configured(self) -> bool:
        return bool(self._webhook_url)

    def build_payload(self, payload: NotificationPayload) -> dict[str, Any]:
        raise NotImplementedError

    async def _get_client(self) -> httpx.AsyncClient:
        """Get or create the HTTP client."""
        if self._client is None or self._client.is_closed:
            self._client = httpx.AsyncClient(timeout=httpx.Timeout(self._timeout))
        return self._client

    async def _post(self, body: dict[str, Any]) -> None:
        """POST once.

        Raises:
            NotificationError: If the webhook answers with status >= 400.
            httpx.RequestError: On transport failures.
        """
        client = await self._get_client()
        response = await client.post(self._webhook_url, json=body)
        if response.status_code >= 400:
            raise NotificationError(
                f"{self.name} webhook returned {response.status_code}: {response.text[:200]}"
            )

    async def send(self, payload: NotificationPayload) -> bool:
        """Deliver a notification, retrying transient failures.

        Returns:
            True if delivered, False if unconfigured or every attempt failed.
        """
        if not self._webhook_url:
            if not self._warned_no_webhook:
                _logger.warning("webhook_not_configured", notifier=self.name)
                self._warned_no_webhook = True
            return False

        body = self.build_payload(payload)
        outcome = await self._executor.execute(lambda: self._post(body))
        if outcome.success:
            _logger.debug(
                "notification_sent",
                notifier=self.name,
                title=payload.title,
                attempts=outcome.attempt_count,
            )
            return True

        _logger.warning(
            "notification_failed",
            notifier=self.name,
            attempts=outcome.attempt_count,
            error=str(outcome.last_error),
        )
        return False

    async def close(self) -> None:
        """Close the HTTP client."""
        if self._client is not None and not self._client.is_closed:
            await self._client.aclose()
            self._client = None
