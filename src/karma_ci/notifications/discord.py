"""Discord notifications via channel webhooks, formatted as embeds."""

from __future__ import annotations

from typing import Any

from karma_ci.core.constants import DISCORD_DETAILS_MAX_CHARS
from karma_ci.notifications.base import NotificationPayload, NotificationStatus
from karma_ci.notifications.webhook import WebhookNotifier


def _get_status_color(status: NotificationStatus) -> int:
    """Embed colour (RGB int) for a notification status."""
    color_map = {
        NotificationStatus.SUCCESS: 0x22C55E,  # Green
        NotificationStatus.FAILURE: 0xEF4444,  # Red
        NotificationStatus.HEALED: 0xA855F7,  # Purple
        NotificationStatus.RETRYING: 0xF59E0B,  # Amber
    }
    return color_map.get(status, 0x439FE0)


class DiscordNotifier(WebhookNotifier):
    """Posts embeds to a Discord channel webhook."""

    name = "discord"
    default_url_env = "DISCORD_WEBHOOK_URL"

    def build_payload(self, payload: NotificationPayload) -> dict[str, Any]:
        embed: dict[str, Any] = {
            "title": payload.title,
            "description": payload.message,
            "color": _get_status_color(payload.status),
            "fields": [],
        }

        if payload.details:
            details = payload.details[:DISCORD_DETAILS_MAX_CHARS]
            embed["fields"].append({"name": "Details", "value": f"```{details}```"})

        if payload.url:
            embed["url"] = payload.url

        if payload.attempt is not None:
            embed["footer"] = {"text": f"Attempt {payload.attempt}/{payload.max_attempts}"}

        return {"embeds": [embed]}
