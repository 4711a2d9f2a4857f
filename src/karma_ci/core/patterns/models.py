"""Data model for failure signatures."""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Any

from .codes import Category, Severity


@dataclass(frozen=True)
class FailureSignature:
    """A named rule tying a log pattern to severity, retryability and a fix.

    Signatures are defined once at import time and never mutated.

    Attributes:
        id: Short identifier, unique across the catalog (e.g. ``infra-disk``).
        name: Human-readable label.
        category: Pipeline area the failure belongs to.
        pattern: Case-insensitive compiled regex, searched unanchored.
        severity: Used to rank matches.
        retryable: Whether seeing this failure justifies an automatic retry.
        suggestion: Remediation text shown to the user.
        auto_fixable: Carried for the healer; no behavior in matching.
    """

    id: str
    name: str
    category: Category
    pattern: re.Pattern[str]
    severity: Severity
    retryable: bool
    suggestion: str
    auto_fixable: bool

    def matches(self, text: str) -> bool:
        """Whether the pattern occurs anywhere in ``text``."""
        return self.pattern.search(text) is not None

    def to_dict(self) -> dict[str, Any]:
        """Convert to a JSON-compatible dictionary."""
        return {
            "id": self.id,
            "name": self.name,
            "category": self.category.value,
            "pattern": self.pattern.pattern,
            "severity": self.severity.value,
            "retryable": self.retryable,
            "suggestion": self.suggestion,
            "auto_fixable": self.auto_fixable,
        }
