"""Commands: help, loglevel, quit

Category: Utilities
"""

from dataclasses import dataclass, field

from loguru import logger

from tlens.cmds.base import CATEGORIES, Op, UsageError, command, describe

LEVELS = ("TRACE", "DEBUG", "INFO", "SUCCESS", "WARNING", "ERROR")


@command(names=["help", "?"], category="Utilities")
@dataclass
class OpHelp(Op):
    """List all commands."""

    async def run(self):
        for category, names in CATEGORIES.items():
            logger.info("{}:", category)
            for name in sorted(names):
                logger.info("  {:<12} {}", name, describe(name))


@command(names=["loglevel"], category="Utilities")
@dataclass
class OpLogLevel(Op):
    """Change the console log level: loglevel <TRACE|DEBUG|INFO|WARNING|ERROR>"""

    level: str = field(init=False, default="INFO")

    def setup(self):
        if not self.args or self.args[0].upper() not in LEVELS:
            raise UsageError(f"Usage: loglevel <{'|'.join(LEVELS)}>")

        self.level = self.args[0].upper()

    async def run(self):
        self.state.setConsoleLogLevel(self.level)


@command(names=["quit", "exit"], category="Utilities")
@dataclass
class OpQuit(Op):
    """Exit."""

    async def run(self):
        self.state.exiting = True
