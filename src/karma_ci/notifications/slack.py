"""Slack notifications via incoming webhooks, formatted with Block Kit."""

from __future__ import annotations

from typing import Any

from karma_ci.notifications.base import NotificationPayload, NotificationStatus
from karma_ci.notifications.webhook import WebhookNotifier


def _get_status_emoji(status: NotificationStatus) -> str:
    """Slack emoji shortcode for a notification status."""
    emoji_map = {
        NotificationStatus.SUCCESS: ":white_check_mark:",
        NotificationStatus.FAILURE: ":x:",
        NotificationStatus.HEALED: ":trident:",
        NotificationStatus.RETRYING: ":arrows_counterclockwise:",
    }
    return emoji_map.get(status, ":bell:")


class SlackNotifier(WebhookNotifier):
    """Posts Block Kit messages to a Slack incoming webhook.

    Example usage:
        notifier = SlackNotifier(webhook_url="https://hooks.slack.com/services/...")
        await notifier.send(payload)
    """

    name = "slack"
    default_url_env = "SLACK_WEBHOOK_URL"

    def build_payload(self, payload: NotificationPayload) -> dict[str, Any]:
        emoji = _get_status_emoji(payload.status)
        blocks: list[dict[str, Any]] = [
            {
                "type": "header",
                "text": {"type": "plain_text", "text": f"{emoji} {payload.title}", "emoji": True},
            },
            {"type": "section", "text": {"type": "mrkdwn", "text": payload.message}},
        ]

        if payload.details:
            blocks.append({
                "type": "section",
                "text": {"type": "mrkdwn", "text": f"```{payload.details}```"},
            })

        if payload.attempt is not None and payload.max_attempts is not None:
            blocks.append({
                "type": "context",
                "elements": [{
                    "type": "mrkdwn",
                    "text": f"Attempt {payload.attempt}/{payload.max_attempts}",
                }],
            })

        if payload.url:
            blocks.append({
                "type": "actions",
                "elements": [{
                    "type": "button",
                    "text": {"type": "plain_text", "text": "View Run"},
                    "url": payload.url,
                }],
            })

        return {"text": f"{payload.title}: {payload.message}", "blocks": blocks}
