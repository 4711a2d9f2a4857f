"""Healing: remediation commands and config changes for matched failures."""

from karma_ci.healing.suggestions import (
    CONFIG_CHANGES,
    FIX_COMMANDS,
    Healer,
    HealingSuggestion,
)

__all__ = [
    "CONFIG_CHANGES",
    "FIX_COMMANDS",
    "Healer",
    "HealingSuggestion",
]
