# karma_ci/cli/commands: Command modules for the karma-ci CLI.
#
# Each module in this package provides one CLI command.

from .action import action
from .analyze import analyze
from .patterns import patterns

__all__ = [
    "action",
    "analyze",
    "patterns",
]
