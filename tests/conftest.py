"""Pytest fixtures for karma-ci tests."""

import logging
import random
from collections.abc import Generator

import pytest
import structlog

from tests.helpers import FakeSleep


@pytest.fixture(autouse=True)
def reset_logging_state() -> Generator[None, None, None]:
    """Reset logging state before and after each test.

    This ensures test isolation for logging configuration.
    """
    structlog.reset_defaults()

    root_logger = logging.getLogger()
    original_level = root_logger.level
    original_handlers = root_logger.handlers[:]
    for handler in original_handlers:
        root_logger.removeHandler(handler)

    yield

    structlog.reset_defaults()
    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)
    for handler in original_handlers:
        root_logger.addHandler(handler)
    root_logger.setLevel(original_level)


@pytest.fixture
def fake_sleep() -> FakeSleep:
    return FakeSleep()


@pytest.fixture
def seeded_rng() -> random.Random:
    return random.Random(1234)


@pytest.fixture
def disk_full_log() -> str:
    """A realistic failed job log whose worst failure is a full disk."""
    return "\n".join([
        "Run npm ci",
        "npm WARN deprecated inflight@1.0.6",
        "added 812 packages in 14s",
        "Run npm run build",
        "> app@1.0.0 build",
        "> tsc -p tsconfig.json",
        "FATAL: No space left on device",
        "Error: Process completed with exit code 1.",
    ])
