"""Exception hierarchy for karma-ci.

All project exceptions inherit from KarmaError so callers can catch broadly
(KarmaError) or narrowly (e.g., ConfigurationError). The analyzer and the
retry executor never raise these for normal outcomes; they are reserved for
misconfiguration and broken static data.
"""

from __future__ import annotations


class KarmaError(Exception):
    """Base exception for all karma-ci errors."""


class ConfigurationError(KarmaError):
    """Raised when configuration from the environment or a YAML file is invalid.

    Examples: non-numeric INPUT_MAX_RETRIES, negative delays, unreadable
    config file.
    """


class CatalogError(KarmaError):
    """Raised when the failure signature catalog violates its invariants.

    Detected once at import time: duplicate ids or empty suggestions.
    """


class NotificationError(KarmaError):
    """Raised inside a notifier when a webhook delivery attempt fails.

    Never escapes ``Notifier.send()``; the retry executor records it.
    """
