"""Commands: go, links, show, refresh

Category: Pages
"""

import asyncio
from dataclasses import dataclass, field

from loguru import logger

from tlens.cmds.base import Op, UsageError, command
from tlens.engine.router import RouteNotFound


@command(names=["go"], category="Pages")
@dataclass
class OpGo(Op):
    """Open a page by path (see 'links')."""

    path: str = field(init=False, default="/")

    def setup(self):
        if not self.args:
            raise UsageError("Usage: go <path>")

        self.path = self.args[0]

    async def run(self):
        try:
            view = await self.router.navigate(self.path)
        except RouteNotFound as e:
            logger.error("{}", e)
            return

        self.show(view.render())


@command(names=["links"], category="Pages")
@dataclass
class OpLinks(Op):
    """List the pages you can open right now."""

    async def run(self):
        for path, title in self.router.visibleLinks():
            mark = "*" if path == self.router.path else " "
            logger.info("{} {:<26} {}", mark, path, title)

        if not self.router.allowed:
            logger.info("Connect a wallet to unlock the dashboard pages")


@command(names=["show", "page"], category="Pages")
@dataclass
class OpShow(Op):
    """Print the current page again."""

    async def run(self):
        if not self.router.current:
            logger.info("No page open")
            return

        self.show(self.router.current.render())


@command(names=["refresh"], category="Pages")
@dataclass
class OpRefresh(Op):
    """Re-fetch every widget on the current page now."""

    async def run(self):
        view = self.router.current
        if not view:
            return

        if not await view.load():
            logger.warning("Nothing to refresh until the wallet is connected")
            return

        self.show(view.render())
