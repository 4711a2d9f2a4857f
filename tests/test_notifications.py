"""Tests for karma_ci.notifications.

Covers Slack and Discord payload building, webhook delivery with retries,
missing-URL handling, close, and NotificationManager fan-out.
"""

from __future__ import annotations

import os
from unittest.mock import AsyncMock, MagicMock, patch

import httpx
import pytest

from karma_ci.execution import RetryConfig, RetryExecutor
from karma_ci.notifications import (
    DiscordNotifier,
    NotificationManager,
    NotificationPayload,
    NotificationStatus,
    Notifier,
    SlackNotifier,
)
from tests.helpers import FakeSleep

SLACK_URL = "https://hooks.slack.com/services/T000/B000/XXXX"
DISCORD_URL = "https://discord.com/api/webhooks/1/abc"

# ─── Fixtures ──────────────────────────────────────────────────────────


@pytest.fixture
def payload() -> NotificationPayload:
    return NotificationPayload(
        title="Karma CI Report",
        status=NotificationStatus.FAILURE,
        message="Detected: Disk Space Full (critical)",
        details="FATAL: No space left on device",
        url="https://github.com/acme/app/actions/runs/42",
        attempt=2,
        max_attempts=4,
    )


@pytest.fixture
def executor(fake_sleep: FakeSleep) -> RetryExecutor:
    return RetryExecutor(RetryConfig(max_retries=2, base_delay_ms=10), sleep=fake_sleep)


def mock_client(*, status_code: int = 200, side_effect: object = None) -> AsyncMock:
    response = MagicMock()
    response.status_code = status_code
    response.text = "ok" if status_code < 400 else "invalid_payload"
    client = AsyncMock()
    client.is_closed = False
    if side_effect is not None:
        client.post = AsyncMock(side_effect=side_effect)
    else:
        client.post = AsyncMock(return_value=response)
    return client


# ─── Slack payload ─────────────────────────────────────────────────────


class TestSlackPayload:
    def test_header_and_message(self, payload: NotificationPayload) -> None:
        body = SlackNotifier(webhook_url=SLACK_URL).build_payload(payload)
        blocks = body["blocks"]

        assert blocks[0]["type"] == "header"
        assert blocks[0]["text"]["text"] == ":x: Karma CI Report"
        assert blocks[1]["text"] == {"type": "mrkdwn", "text": payload.message}
        assert body["text"] == f"Karma CI Report: {payload.message}"

    def test_details_code_block(self, payload: NotificationPayload) -> None:
        blocks = SlackNotifier(webhook_url=SLACK_URL).build_payload(payload)["blocks"]
        assert {"type": "mrkdwn", "text": "```FATAL: No space left on device```"} in [
            b.get("text") for b in blocks
        ]

    def test_view_run_button(self, payload: NotificationPayload) -> None:
        blocks = SlackNotifier(webhook_url=SLACK_URL).build_payload(payload)["blocks"]
        actions = blocks[-1]

        assert actions["type"] == "actions"
        button = actions["elements"][0]
        assert button["text"]["text"] == "View Run"
        assert button["url"] == payload.url

    def test_minimal_payload(self) -> None:
        minimal = NotificationPayload(
            title="Karma CI Report",
            status=NotificationStatus.HEALED,
            message="Healed",
        )
        blocks = SlackNotifier(webhook_url=SLACK_URL).build_payload(minimal)["blocks"]

        assert len(blocks) == 2
        assert blocks[0]["text"]["text"].startswith(":trident:")

    @pytest.mark.parametrize("status", list(NotificationStatus))
    def test_every_status_has_emoji(self, status: NotificationStatus) -> None:
        minimal = NotificationPayload(title="T", status=status, message="m")
        header = SlackNotifier(webhook_url=SLACK_URL).build_payload(minimal)["blocks"][0]
        assert not header["text"]["text"].startswith(":bell:")


# ─── Discord payload ───────────────────────────────────────────────────


class TestDiscordPayload:
    def test_embed(self, payload: NotificationPayload) -> None:
        body = DiscordNotifier(webhook_url=DISCORD_URL).build_payload(payload)
        embed = body["embeds"][0]

        assert embed["title"] == "Karma CI Report"
        assert embed["description"] == payload.message
        assert embed["color"] == 0xEF4444
        assert embed["url"] == payload.url
        assert embed["footer"] == {"text": "Attempt 2/4"}
        assert embed["fields"] == [
            {"name": "Details", "value": "```FATAL: No space left on device```"}
        ]

    def test_details_truncated(self) -> None:
        long_payload = NotificationPayload(
            title="T",
            status=NotificationStatus.RETRYING,
            message="m",
            details="x" * 1500,
        )
        embed = DiscordNotifier(webhook_url=DISCORD_URL).build_payload(long_payload)["embeds"][0]

        assert embed["fields"][0]["value"] == "```" + "x" * 1000 + "```"
        assert embed["color"] == 0xF59E0B

    def test_minimal_embed(self) -> None:
        minimal = NotificationPayload(title="T", status=NotificationStatus.SUCCESS, message="m")
        embed = DiscordNotifier(webhook_url=DISCORD_URL).build_payload(minimal)["embeds"][0]

        assert embed["fields"] == []
        assert "url" not in embed
        assert "footer" not in embed
        assert embed["color"] == 0x22C55E


# ─── Delivery ──────────────────────────────────────────────────────────


class TestWebhookDelivery:
    @pytest.mark.asyncio
    async def test_send_success(
        self, payload: NotificationPayload, executor: RetryExecutor
    ) -> None:
        n = SlackNotifier(webhook_url=SLACK_URL, executor=executor)
        n._client = mock_client()

        assert await n.send(payload) is True
        n._client.post.assert_awaited_once()
        call = n._client.post.call_args
        assert call.args[0] == SLACK_URL
        assert "blocks" in call.kwargs["json"]

    @pytest.mark.asyncio
    async def test_http_error_retried_then_fails(
        self, payload: NotificationPayload, executor: RetryExecutor, fake_sleep: FakeSleep
    ) -> None:
        n = DiscordNotifier(webhook_url=DISCORD_URL, executor=executor)
        n._client = mock_client(status_code=400)

        assert await n.send(payload) is False
        assert n._client.post.await_count == 3
        assert len(fake_sleep.calls) == 2

    @pytest.mark.asyncio
    async def test_transient_error_then_success(
        self, payload: NotificationPayload, executor: RetryExecutor
    ) -> None:
        response = MagicMock(status_code=204)
        n = SlackNotifier(webhook_url=SLACK_URL, executor=executor)
        n._client = mock_client(side_effect=[httpx.ConnectError("refused"), response])

        assert await n.send(payload) is True
        assert n._client.post.await_count == 2

    @pytest.mark.asyncio
    async def test_timeout_never_raises(
        self, payload: NotificationPayload, executor: RetryExecutor
    ) -> None:
        n = SlackNotifier(webhook_url=SLACK_URL, executor=executor)
        n._client = mock_client(side_effect=httpx.TimeoutException("timeout"))

        assert await n.send(payload) is False

    @pytest.mark.asyncio
    async def test_missing_url_returns_false(self, payload: NotificationPayload) -> None:
        with patch.dict(os.environ, {}, clear=True):
            n = SlackNotifier()

        assert n.configured is False
        assert await n.send(payload) is False
        assert await n.send(payload) is False
        assert n._client is None

    def test_url_from_environment(self) -> None:
        with patch.dict(os.environ, {"DISCORD_WEBHOOK_URL": DISCORD_URL}):
            assert DiscordNotifier().configured is True

    def test_url_from_custom_environment_variable(self) -> None:
        with patch.dict(os.environ, {"MY_SLACK": SLACK_URL}):
            assert SlackNotifier(webhook_url_env="MY_SLACK").configured is True

    @pytest.mark.asyncio
    async def test_close(self) -> None:
        n = SlackNotifier(webhook_url=SLACK_URL)
        client = mock_client()
        n._client = client

        await n.close()

        client.aclose.assert_awaited_once()
        assert n._client is None

    @pytest.mark.asyncio
    async def test_get_client_creates_httpx_client(self) -> None:
        n = SlackNotifier(webhook_url=SLACK_URL)
        client = await n._get_client()

        assert isinstance(client, httpx.AsyncClient)
        assert await n._get_client() is client
        await n.close()

    def test_satisfies_notifier_protocol(self) -> None:
        assert isinstance(SlackNotifier(webhook_url=SLACK_URL), Notifier)
        assert isinstance(DiscordNotifier(webhook_url=DISCORD_URL), Notifier)


# ─── Manager ───────────────────────────────────────────────────────────


def fake_notifier(name: str, *, result: bool = True, error: Exception | None = None) -> MagicMock:
    notifier = MagicMock()
    notifier.name = name
    notifier.send = AsyncMock(return_value=result, side_effect=error)
    notifier.close = AsyncMock()
    return notifier


class TestNotificationManager:
    @pytest.mark.asyncio
    async def test_empty_manager(self, payload: NotificationPayload) -> None:
        assert await NotificationManager().notify(payload) == {}

    @pytest.mark.asyncio
    async def test_fan_out(self, payload: NotificationPayload) -> None:
        slack = fake_notifier("slack")
        discord = fake_notifier("discord", result=False)
        manager = NotificationManager([slack, discord])

        results = await manager.notify(payload)

        assert results == {"slack": True, "discord": False}
        slack.send.assert_awaited_once_with(payload)
        discord.send.assert_awaited_once_with(payload)

    @pytest.mark.asyncio
    async def test_raising_notifier_isolated(self, payload: NotificationPayload) -> None:
        broken = fake_notifier("broken", error=RuntimeError("boom"))
        healthy = fake_notifier("healthy")
        manager = NotificationManager([broken, healthy])

        assert await manager.notify(payload) == {"broken": False, "healthy": True}

    @pytest.mark.asyncio
    async def test_add_notifier_and_close(self) -> None:
        manager = NotificationManager()
        failing_close = fake_notifier("a")
        failing_close.close.side_effect = RuntimeError("close failed")
        other = fake_notifier("b")
        manager.add_notifier(failing_close)
        manager.add_notifier(other)

        await manager.close()

        assert manager.notifier_count == 2
        other.close.assert_awaited_once()
