"""Commands: markets, market, ask, trigger

Category: Markets
"""

from dataclasses import dataclass, field

from loguru import logger

from tlens.cmds.base import Op, UsageError, command
from tlens.engine.views import CustomQueryView, MarketsHubView


@command(names=["markets"], category="Markets")
@dataclass
class OpMarkets(Op):
    """Open the markets hub."""

    async def run(self):
        if hub := await self.page(MarketsHubView.path, MarketsHubView):
            self.show(hub.render())


@command(names=["market"], category="Markets")
@dataclass
class OpMarket(Op):
    """Show analysis, oracle reading and history for one market."""

    marketId: str = field(init=False, default="")

    def setup(self):
        if not self.args:
            raise UsageError("Usage: market <market id>")

        self.marketId = self.args[0]

    async def run(self):
        hub = await self.page(MarketsHubView.path, MarketsHubView)
        if not hub:
            return

        if hub.widgets["markets"].data and not hub.market(self.marketId):
            logger.warning("{} is not in the current market list, asking anyway...", self.marketId)

        await hub.select(self.marketId)
        self.show(hub.render())


@command(names=["ask"], category="Markets")
@dataclass
class OpAsk(Op):
    """Ask the AI analysis pipeline a free-text question (can take up to a minute)."""

    question: str = field(init=False, default="")

    def setup(self):
        self.question = " ".join(self.args).strip()
        if not self.question:
            raise UsageError("Usage: ask <question>")

    async def run(self):
        view = await self.page(CustomQueryView.path, CustomQueryView)
        if not view:
            return

        logger.info("Analyzing: {}", self.question)
        record = await view.ask(self.question)
        if record and record.timedOut:
            logger.warning("{}", record.error)

        self.show(view.render())


@command(names=["trigger"], category="Markets")
@dataclass
class OpTrigger(Op):
    """Ask the backend to start a new analysis round."""

    async def run(self):
        hub = await self.page(MarketsHubView.path, MarketsHubView)
        if not hub:
            return

        logger.info("{}", await hub.trigger())
