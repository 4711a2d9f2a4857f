"""Remediation suggestions for matched failure signatures.

Turns an AnalysisResult into one HealingSuggestion per matched signature,
attaching shell commands and configuration changes known to fix it. The
lookup tables are static data keyed by signature id; signatures without an
entry get empty tuples.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from karma_ci.analysis import AnalysisResult
from karma_ci.core.patterns import FailureSignature

# Shell commands that commonly fix a failure, keyed by signature id.
FIX_COMMANDS: dict[str, tuple[str, ...]] = {
    "dep-conflict": ("npm install --legacy-peer-deps", "npm ls --all"),
    "dep-lockfile": ("rm -rf node_modules", "npm install"),
    "dep-install-fail": ("npm cache clean --force", "rm -rf node_modules", "npm install"),
    "dep-audit": ("npm audit fix",),
    "build-eslint": ("npx eslint --fix .",),
    "test-snapshot": ("npx jest --updateSnapshot",),
    "test-memory": ('NODE_OPTIONS="--max-old-space-size=4096" npm test',),
    "infra-disk": ("docker system prune -af", "npm cache clean --force"),
    "gh-checkout": ("git fetch --unshallow || true",),
    "res-file-limit": ("ulimit -n 65536",),
}

# Workflow or tool configuration changes, keyed by signature id.
CONFIG_CHANGES: dict[str, tuple[str, ...]] = {
    "test-timeout": ("jest.config: testTimeout: 30000",),
    "timeout-global": ("workflow: timeout-minutes: 60",),
    "timeout-docker": ("Add docker layer caching step",),
    "build-oom": ("env: NODE_OPTIONS: --max-old-space-size=4096",),
    "infra-disk": ("Add cleanup step before build",),
    "res-memory": ("container: options: --memory=4g",),
    "gh-checkout": ("actions/checkout: fetch-depth: 0",),
    "perm-rate-limit": ("Add concurrency group to limit parallel runs",),
}


@dataclass(frozen=True)
class HealingSuggestion:
    """Remediation guidance for one matched signature."""

    signature: FailureSignature
    suggestion: str
    commands: tuple[str, ...] = ()
    config_changes: tuple[str, ...] = ()
    auto_fixable: bool = False

    def __str__(self) -> str:
        marker = "auto-fixable" if self.auto_fixable else "manual"
        return f"[{marker}] {self.signature.name}: {self.suggestion}"

    def to_dict(self) -> dict[str, Any]:
        return {
            "signature_id": self.signature.id,
            "suggestion": self.suggestion,
            "commands": list(self.commands),
            "config_changes": list(self.config_changes),
            "auto_fixable": self.auto_fixable,
        }


class Healer:
    """Builds healing suggestions from analysis results.

    Args:
        commands: Override for the fix command table.
        config_changes: Override for the config change table.
    """

    def __init__(
        self,
        commands: dict[str, tuple[str, ...]] | None = None,
        config_changes: dict[str, tuple[str, ...]] | None = None,
    ) -> None:
        self._commands = FIX_COMMANDS if commands is None else commands
        self._config_changes = CONFIG_CHANGES if config_changes is None else config_changes

    def suggest(self, analysis: AnalysisResult) -> list[HealingSuggestion]:
        """One suggestion per matched signature, in match order."""
        return [self.suggest_for(signature) for signature in analysis.matches]

    def suggest_for(self, signature: FailureSignature) -> HealingSuggestion:
        return HealingSuggestion(
            signature=signature,
            suggestion=signature.suggestion,
            commands=self._commands.get(signature.id, ()),
            config_changes=self._config_changes.get(signature.id, ()),
            auto_fixable=signature.auto_fixable,
        )
