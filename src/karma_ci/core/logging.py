"""Structured logging infrastructure for karma-ci.

Provides structured logging using structlog with CI run context such as the
repository, workflow, and run id. Supports console output for humans and
JSON output for log collectors, optionally mirrored to a rotating file.

Example usage:
    from karma_ci.core.logging import RunContext, configure_logging, get_logger, with_context

    # Configure once at startup
    configure_logging(level="DEBUG", format="console")

    # Get a component-specific logger
    logger = get_logger("analyzer")
    logger.info("log_analyzed", matches=3)

    # Correlate everything logged during one CI run
    ctx = RunContext(repository="octo/repo", run_id="1234")
    with with_context(ctx):
        logger.info("retry_scheduled")  # includes repository, run_id
"""

from __future__ import annotations

import logging
import sys
from collections.abc import Iterator
from contextlib import contextmanager
from contextvars import ContextVar
from dataclasses import dataclass
from datetime import UTC, datetime
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Any, Literal

import structlog
from structlog.types import EventDict, Processor, WrappedLogger

# Field name fragments whose values must never reach a log sink.
# Webhook URLs embed their credentials in the path, so they count.
SENSITIVE_PATTERNS = frozenset({
    "api_key",
    "apikey",
    "token",
    "secret",
    "password",
    "credential",
    "auth",
    "bearer",
    "authorization",
    "webhook",
})

LogLevel = Literal["DEBUG", "INFO", "WARNING", "ERROR"]
LogFormat = Literal["console", "json"]


@dataclass(frozen=True)
class RunContext:
    """Immutable context for correlating log entries across one CI run.

    Attributes:
        repository: ``owner/name`` of the repository being built.
        run_id: CI run identifier (``GITHUB_RUN_ID`` on GitHub Actions).
        workflow: Workflow name, if known.
        component: Component name for the current operation.
    """

    repository: str | None = None
    run_id: str | None = None
    workflow: str | None = None
    component: str = "unknown"

    @classmethod
    def from_environ(cls, environ: dict[str, str]) -> RunContext:
        """Build a context from GitHub Actions environment variables."""
        return cls(
            repository=environ.get("GITHUB_REPOSITORY"),
            run_id=environ.get("GITHUB_RUN_ID"),
            workflow=environ.get("GITHUB_WORKFLOW"),
        )

    def to_dict(self) -> dict[str, Any]:
        """Convert context to a dictionary for logging, skipping unset fields."""
        result: dict[str, Any] = {"component": self.component}
        if self.repository is not None:
            result["repository"] = self.repository
        if self.run_id is not None:
            result["run_id"] = self.run_id
        if self.workflow is not None:
            result["workflow"] = self.workflow
        return result


_current_context: ContextVar[RunContext | None] = ContextVar(
    "karma_ci_context", default=None
)


def get_current_context() -> RunContext | None:
    """Get the current RunContext if set."""
    return _current_context.get()


@contextmanager
def with_context(ctx: RunContext) -> Iterator[RunContext]:
    """Set the RunContext for the duration of a block.

    Log calls inside the block include the context fields automatically
    when the ``_merge_run_context`` processor is active.
    """
    token = _current_context.set(ctx)
    try:
        yield ctx
    finally:
        _current_context.reset(token)


def _redact(key: str, value: Any) -> Any:
    """Mask ``value`` if ``key`` names a secret; recurse one level into dicts."""
    lowered = key.lower()
    if any(fragment in lowered for fragment in SENSITIVE_PATTERNS):
        return "[REDACTED]"
    if isinstance(value, dict):
        return {
            inner_key: "[REDACTED]"
            if any(fragment in str(inner_key).lower() for fragment in SENSITIVE_PATTERNS)
            else inner_value
            for inner_key, inner_value in value.items()
        }
    return value


def _redact_secrets(
    logger: WrappedLogger,
    method_name: str,
    event_dict: EventDict,
) -> EventDict:
    """Structlog processor masking webhook URLs, tokens and the like."""
    return {key: _redact(key, value) for key, value in event_dict.items()}


def _stamp_utc(
    logger: WrappedLogger,
    method_name: str,
    event_dict: EventDict,
) -> EventDict:
    """Structlog processor that adds an ISO8601 UTC timestamp."""
    event_dict.setdefault("timestamp", datetime.now(UTC).isoformat())
    return event_dict


def _merge_run_context(
    logger: WrappedLogger,
    method_name: str,
    event_dict: EventDict,
) -> EventDict:
    """Structlog processor that adds the active RunContext.

    Fields bound explicitly on the logger win over context fields.
    """
    run = get_current_context()
    if run is None:
        return event_dict
    return {**run.to_dict(), **event_dict}


class KarmaLogger:
    """Component logger wrapping structlog.

    The structlog logger is looked up on every call, so loggers created at
    import time still follow a later ``configure_logging()``.
    """

    def __init__(self, component: str, **initial_context: Any) -> None:
        self.component = component
        self._context: dict[str, Any] = {"component": component, **initial_context}

    def bind(self, **context: Any) -> KarmaLogger:
        """Return a copy of this logger with extra fields bound."""
        child = KarmaLogger(self.component)
        child._context = {**self._context, **context}
        return child

    def _emit(self, method: str, event: str, fields: dict[str, Any]) -> None:
        bound = structlog.get_logger().bind(**self._context)
        getattr(bound, method)(event, **fields)

    def debug(self, event: str, **fields: Any) -> None:
        self._emit("debug", event, fields)

    def info(self, event: str, **fields: Any) -> None:
        self._emit("info", event, fields)

    def warning(self, event: str, **fields: Any) -> None:
        self._emit("warning", event, fields)

    def error(self, event: str, **fields: Any) -> None:
        self._emit("error", event, fields)


def _build_processors(format: LogFormat, include_timestamps: bool) -> list[Processor]:  # noqa: A002
    """Assemble the structlog processor chain for one output format."""
    chain: list[Processor] = [
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_log_level,
        _redact_secrets,
        _merge_run_context,
    ]
    if include_timestamps:
        chain.append(_stamp_utc)
    chain += [
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
    ]
    renderer: Processor = (
        structlog.processors.JSONRenderer()
        if format == "json"
        else structlog.dev.ConsoleRenderer(colors=sys.stderr.isatty())
    )
    chain.append(renderer)
    return chain


def _build_handlers(
    level: int,
    file_path: Path | None,
    max_file_size_mb: int,
    backup_count: int,
) -> list[logging.Handler]:
    """Stderr handler, plus a rotating file handler when a path is given."""
    sinks: list[logging.Handler] = [logging.StreamHandler(sys.stderr)]
    if file_path is not None:
        file_path.parent.mkdir(parents=True, exist_ok=True)
        sinks.append(RotatingFileHandler(
            file_path,
            maxBytes=max_file_size_mb * 1024 * 1024,
            backupCount=backup_count,
            encoding="utf-8",
        ))
    for sink in sinks:
        sink.setLevel(level)
    return sinks


def configure_logging(
    level: LogLevel = "INFO",
    format: LogFormat = "console",  # noqa: A002
    file_path: Path | None = None,
    max_file_size_mb: int = 10,
    backup_count: int = 3,
    include_timestamps: bool = True,
) -> None:
    """Configure karma-ci structured logging.

    Call once at startup, before anything logs. Console output goes to
    stderr so that stdout stays clean for ``--json`` output and for the
    GitHub Actions report. Calling again replaces the previous setup.

    Args:
        level: Minimum log level to capture.
        format: ``"console"`` for human-readable, ``"json"`` for structured.
        file_path: Optional file that receives the same records, rotated.
        max_file_size_mb: Size at which the log file rotates.
        backup_count: Rotated files kept alongside the active one.
        include_timestamps: Whether to include ISO8601 timestamps.
    """
    numeric_level = logging.getLevelName(level)

    root = logging.getLogger()
    root.handlers.clear()
    root.setLevel(numeric_level)
    for sink in _build_handlers(numeric_level, file_path, max_file_size_mb, backup_count):
        root.addHandler(sink)

    # Loggers are not cached so import-time KarmaLoggers see this configuration.
    structlog.configure(
        processors=_build_processors(format, include_timestamps),
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=False,
    )


def get_logger(component: str, **initial_context: Any) -> KarmaLogger:
    """Get a karma-ci logger bound to a component name."""
    return KarmaLogger(component, **initial_context)
