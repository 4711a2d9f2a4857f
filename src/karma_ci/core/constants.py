"""Global constants for karma-ci.

Centralizes the magic numbers shared by the analyzer, the retry executor,
the reporter, and the notifiers.
"""

# =============================================================================
# Analysis
# =============================================================================

SNIPPET_CONTEXT_LINES = 3
"""Lines of context captured before and after a matching log line."""

MAX_SNIPPETS = 5
"""Maximum number of log excerpts attached to an analysis result."""

NO_MATCH_SUMMARY = "No known failure pattern detected."
"""Summary text used when no signature matches."""

# =============================================================================
# Retry defaults (milliseconds)
# =============================================================================

DEFAULT_MAX_RETRIES = 3
DEFAULT_BASE_DELAY_MS = 1000.0
DEFAULT_MAX_DELAY_MS = 30_000.0
DEFAULT_JITTER_FACTOR = 0.5

# =============================================================================
# Notifications
# =============================================================================

DISCORD_DETAILS_MAX_CHARS = 1000
"""Discord embed field values are truncated to this many characters."""

NOTIFICATION_TIMEOUT_SECONDS = 10.0
"""Default HTTP timeout for webhook delivery."""

NOTIFICATION_MAX_RETRIES = 2
"""Default retries for a failed webhook delivery."""

NOTIFICATION_BASE_DELAY_MS = 500.0

# =============================================================================
# Duration formatting
# =============================================================================

MS_PER_SECOND = 1000
MS_PER_MINUTE = 60_000
