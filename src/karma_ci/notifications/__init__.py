"""Chat notifications for analyzed and retried CI failures.

Usage:
    from karma_ci.notifications import (
        DiscordNotifier,
        NotificationManager,
        NotificationPayload,
        NotificationStatus,
        SlackNotifier,
    )

    manager = NotificationManager([
        SlackNotifier(webhook_url="..."),
        DiscordNotifier(webhook_url="..."),
    ])
    await manager.notify(NotificationPayload(
        title="Karma CI Report",
        status=NotificationStatus.FAILURE,
        message="Detected: Disk Space Full (critical)",
    ))
"""

from karma_ci.notifications.base import (
    NotificationManager,
    NotificationPayload,
    NotificationStatus,
    Notifier,
)
from karma_ci.notifications.discord import DiscordNotifier
from karma_ci.notifications.slack import SlackNotifier
from karma_ci.notifications.webhook import WebhookNotifier

__all__ = [
    "DiscordNotifier",
    "NotificationManager",
    "NotificationPayload",
    "NotificationStatus",
    "Notifier",
    "SlackNotifier",
    "WebhookNotifier",
]
