"""Shared test helpers for karma-ci tests."""

import re

from karma_ci.core.patterns import Category, FailureSignature, Severity


class FakeSleep:
    """Records requested sleeps instead of waiting."""

    def __init__(self) -> None:
        self.calls: list[float] = []

    async def __call__(self, seconds: float) -> None:
        self.calls.append(seconds)


def make_signature(
    signature_id: str,
    pattern: str,
    severity: Severity = Severity.MEDIUM,
    retryable: bool = False,
) -> FailureSignature:
    """Test helper: build a signature for a custom catalog."""
    return FailureSignature(
        id=signature_id,
        name=signature_id.title(),
        category=Category.BUILD,
        pattern=re.compile(pattern, re.IGNORECASE),
        severity=severity,
        retryable=retryable,
        suggestion=f"Fix {signature_id}.",
        auto_fixable=False,
    )
