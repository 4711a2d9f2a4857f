"""Failure categories and severity levels.

Contains the two fixed enumerations every failure signature is tagged with.

Severity Ordering
=================

Severities form a total order used to pick the primary match of a log::

    critical > high > medium > low

``Severity.rank`` exposes that order as an integer (higher = more severe),
so ranking code can build sort keys without a lookup table.
"""

from __future__ import annotations

from enum import Enum


class Category(str, Enum):
    """High-level area of the CI pipeline a failure belongs to."""

    TEST = "test"
    """Test suite failures: assertions, snapshots, flaky tests."""

    BUILD = "build"
    """Compilation, bundling, linting, and image build errors."""

    DEPENDENCY = "dependency"
    """Package resolution, install, lockfile, and registry problems."""

    TIMEOUT = "timeout"
    """Job, network, or image pull time limits exceeded."""

    INFRASTRUCTURE = "infrastructure"
    """Runner, container, cache, artifact, and deployment problems."""

    PERMISSION = "permission"
    """Credentials, access rights, SSH keys, and API rate limits."""

    NETWORK = "network"
    """DNS, TLS, proxy, and connection-level failures."""

    RESOURCE = "resource"
    """CPU, memory, file descriptor, and inode exhaustion."""


class Severity(str, Enum):
    """How bad a failure is.

    String values are what appears in reports and JSON output.
    """

    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"

    @property
    def rank(self) -> int:
        """Integer position in the severity order (critical is highest)."""
        return _SEVERITY_RANK[self]


_SEVERITY_RANK: dict[Severity, int] = {
    Severity.LOW: 1,
    Severity.MEDIUM: 2,
    Severity.HIGH: 3,
    Severity.CRITICAL: 4,
}
