"""REPL commands, grouped by category in subpackages.

Importing this package registers every command with tlens.cmds.base.
"""

from tlens.cmds.base import REGISTRY, UsageError, resolve, runop
from tlens.cmds.pages import markets, navigation, settings, status
from tlens.cmds.tasks import taskcancel, tasklist
from tlens.cmds.utilities import control
from tlens.cmds.wallet import connect

__all__ = ["REGISTRY", "UsageError", "resolve", "runop"]
