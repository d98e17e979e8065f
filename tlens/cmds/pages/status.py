"""Commands: status, health, ai

Category: Status
"""

from dataclasses import dataclass, field

from loguru import logger

from tlens.cmds.base import Op, UsageError, command
from tlens.engine.errors import GatewayError
from tlens.engine.refresh import HealthWidget
from tlens.engine.views import StatusView, fmtWidget

AI_ACTIONS = ("status", "perf", "config", "cache", "clear", "flush")


@command(names=["status"], category="Status")
@dataclass
class OpStatus(Op):
    """Open the system status page."""

    async def run(self):
        if view := await self.page(StatusView.path, StatusView):
            self.show(view.render())


@command(names=["health"], category="Status")
@dataclass
class OpHealth(Op):
    """Check backend health (no wallet needed)."""

    async def run(self):
        widget = HealthWidget("health", self.gateway.getHealth)
        await widget.refresh()

        health = widget.data
        logger.info(
            "{}",
            fmtWidget(widget, lambda h: f"{h.status} (api {h.services.api}, oracle {h.services.oracle})"),
        )

        if health.metrics:
            m = health.metrics
            logger.info(
                "{} markets, {} analyses running, blockchain {}",
                m.total_markets,
                m.active_analyses,
                "connected" if m.blockchain_connected else "disconnected",
            )

        if health.error:
            logger.warning("{}", health.error)


@command(names=["ai"], category="Status")
@dataclass
class OpAI(Op):
    """AI subsystem: ai [status|perf|config|cache|clear|flush]"""

    action: str = field(init=False, default="status")

    def setup(self):
        if self.args:
            self.action = self.args[0].lower()

        if self.action not in AI_ACTIONS:
            raise UsageError(f"Usage: ai [{'|'.join(AI_ACTIONS)}]")

    async def run(self):
        view = await self.page(StatusView.path, StatusView)
        if not view:
            return

        match self.action:
            case "clear":
                logger.info("{}", await view.clearCache())
            case "flush":
                logger.info("{}", await view.flushQueue())
            case "config":
                try:
                    config = await self.gateway.getAIConfig()
                except GatewayError as e:
                    logger.error("AI config unavailable: {}", e.message)
                    return

                logger.info(
                    "enhanced features {}, mode {}",
                    "on" if config.enhanced_features_enabled else "off",
                    config.mode or "default",
                )
                for key, val in sorted(config.config.items()):
                    logger.info("  {} = {}", key, val)
            case "status" | "perf" | "cache":
                name = {"status": "ai status", "perf": "ai performance", "cache": "ai cache"}[self.action]
                await view.widgets[name].refresh()
                self.show([line for line in view.render() if line.startswith(name)])
