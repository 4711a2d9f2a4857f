"""Configuration models for karma-ci.

Settings come from either GitHub Action inputs (``INPUT_*`` environment
variables) or a YAML file. Both paths validate through the same pydantic
models and report problems as ConfigurationError.
"""

from __future__ import annotations

from collections.abc import Mapping
from pathlib import Path
from typing import Any, Literal

import yaml
from pydantic import BaseModel, Field, ValidationError, model_validator

from karma_ci.core.constants import (
    DEFAULT_BASE_DELAY_MS,
    DEFAULT_JITTER_FACTOR,
    DEFAULT_MAX_DELAY_MS,
    DEFAULT_MAX_RETRIES,
    NOTIFICATION_MAX_RETRIES,
    NOTIFICATION_TIMEOUT_SECONDS,
)
from karma_ci.core.exceptions import ConfigurationError
from karma_ci.execution.retry import RetryCallback, RetryConfig


class RetrySettings(BaseModel):
    """Backoff settings for retrying a failed step."""

    max_retries: int = Field(default=DEFAULT_MAX_RETRIES, ge=0, description="Retries after the first attempt")
    base_delay_ms: float = Field(default=DEFAULT_BASE_DELAY_MS, gt=0, description="Delay before the first retry")
    max_delay_ms: float = Field(default=DEFAULT_MAX_DELAY_MS, gt=0, description="Cap on the exponential delay")
    jitter_factor: float = Field(
        default=DEFAULT_JITTER_FACTOR,
        ge=0.0,
        le=1.0,
        description="Fraction of the delay randomly added or removed",
    )

    @model_validator(mode="after")
    def _validate_delay_range(self) -> RetrySettings:
        if self.base_delay_ms > self.max_delay_ms:
            raise ValueError(
                f"base_delay_ms ({self.base_delay_ms}) must not exceed "
                f"max_delay_ms ({self.max_delay_ms})"
            )
        return self

    def to_retry_config(self, on_retry: RetryCallback | None = None) -> RetryConfig:
        return RetryConfig(
            max_retries=self.max_retries,
            base_delay_ms=self.base_delay_ms,
            max_delay_ms=self.max_delay_ms,
            jitter_factor=self.jitter_factor,
            on_retry=on_retry,
        )


class NotificationSettings(BaseModel):
    """Chat webhook targets. Unset webhooks disable that channel."""

    slack_webhook: str | None = Field(default=None, description="Slack incoming webhook URL")
    discord_webhook: str | None = Field(default=None, description="Discord channel webhook URL")
    timeout_seconds: float = Field(default=NOTIFICATION_TIMEOUT_SECONDS, gt=0)
    max_retries: int = Field(default=NOTIFICATION_MAX_RETRIES, ge=0, description="Delivery retries per webhook")


class LogSettings(BaseModel):
    level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO"
    format: Literal["console", "json"] = "console"
    file: Path | None = None


class KarmaConfig(BaseModel):
    """Top-level karma-ci configuration."""

    retry: RetrySettings = Field(default_factory=RetrySettings)
    notifications: NotificationSettings = Field(default_factory=NotificationSettings)
    log: LogSettings = Field(default_factory=LogSettings)
    analyze_logs: bool = Field(default=True, description="Classify the failed log")
    auto_heal: bool = Field(default=True, description="Produce healing suggestions")

    @classmethod
    def from_env(cls, environ: Mapping[str, str]) -> KarmaConfig:
        """Build configuration from GitHub Action inputs.

        Each input may be spelled with underscores or dashes
        (``INPUT_MAX_RETRIES`` or ``INPUT_MAX-RETRIES``). Boolean inputs are
        true only when exactly ``"true"``.

        Raises:
            ConfigurationError: If a numeric input is malformed or out of range.
        """
        retry: dict[str, Any] = {}
        notifications: dict[str, Any] = {}

        max_retries = _action_input(environ, "max_retries")
        if max_retries is not None:
            retry["max_retries"] = _parse_int("max-retries", max_retries)
        base_delay = _action_input(environ, "base_delay_ms")
        if base_delay is not None:
            retry["base_delay_ms"] = _parse_int("base-delay-ms", base_delay)

        for key in ("slack_webhook", "discord_webhook"):
            value = _action_input(environ, key)
            if value:
                notifications[key] = value

        data: dict[str, Any] = {
            "retry": retry,
            "notifications": notifications,
            "analyze_logs": (_action_input(environ, "analyze_logs") or "true") == "true",
            "auto_heal": (_action_input(environ, "auto_heal") or "true") == "true",
        }
        return cls._validate(data, source="action inputs")

    @classmethod
    def from_yaml(cls, path: Path) -> KarmaConfig:
        """Load configuration from a YAML file.

        Raises:
            ConfigurationError: If the file is unreadable, not a mapping,
                or fails validation.
        """
        try:
            with open(path) as f:
                data = yaml.safe_load(f)
        except (OSError, yaml.YAMLError) as e:
            raise ConfigurationError(f"Cannot read config {path}: {e}") from e

        if data is None:
            data = {}
        if not isinstance(data, dict):
            raise ConfigurationError(f"Config {path} must be a mapping, got {type(data).__name__}")
        return cls._validate(data, source=str(path))

    @classmethod
    def _validate(cls, data: dict[str, Any], *, source: str) -> KarmaConfig:
        try:
            return cls.model_validate(data)
        except ValidationError as e:
            raise ConfigurationError(f"Invalid configuration in {source}: {e}") from e


def _action_input(environ: Mapping[str, str], name: str) -> str | None:
    """Look up ``INPUT_<NAME>`` then its dashed spelling."""
    underscored = f"INPUT_{name.upper()}"
    if underscored in environ:
        return environ[underscored]
    return environ.get(underscored.replace("_", "-").replace("INPUT-", "INPUT_", 1))


def _parse_int(name: str, raw: str) -> int:
    try:
        return int(raw.strip())
    except ValueError:
        raise ConfigurationError(f"Input '{name}' must be an integer, got {raw!r}") from None
