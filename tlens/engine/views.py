"""Dashboard views.

A view is a bag of widgets plus a text rendering. Protected views consult
the access guard before fetching anything, and the router never hands a
protected view to a disconnected session in the first place; the
ConnectPrompt is shown instead.

Views receive their collaborators through a ViewContext (gateway, wallet
manager for reading session state, theme) instead of reaching for globals.
"""

from __future__ import annotations

import asyncio
import datetime
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, ClassVar, Final

from loguru import logger

from tlens.engine.errors import GatewayError, GatewayTimeout
from tlens.engine.guard import canAccess
from tlens.engine.models import CustomQueryResponse, MarketData, UserSettings
from tlens.engine.networks import PREFERRED_NETWORK, explorerAddressUrl, networkName
from tlens.engine.primitives import formatAddress, formatBalance
from tlens.engine.refresh import (
    AI_STATUS_INTERVAL,
    ANALYTICS_INTERVAL,
    HEALTH_INTERVAL,
    HISTORY_INTERVAL,
    MARKETS_INTERVAL,
    STATUS_INTERVAL,
    HealthWidget,
    Widget,
)

if TYPE_CHECKING:
    from tlens.engine.gateway import RemoteDataGateway
    from tlens.engine.theme import ThemeManager
    from tlens.engine.wallet import WalletSessionManager


@dataclass(slots=True)
class ViewContext:
    gateway: RemoteDataGateway
    wallet: WalletSessionManager
    theme: ThemeManager | None = None
    oracleAddress: str = ""


def fmtTime(ts: float | None) -> str:
    if not ts:
        return "never"

    return datetime.datetime.fromtimestamp(ts).strftime("%H:%M:%S")


def fmtWidget(widget: Widget, show: Callable[[Any], str]) -> str:
    if widget.loading and widget.data is None:
        return f"{widget.name}: loading..."

    if widget.error:
        return f"{widget.name}: unavailable ({widget.error}), 'refresh' to retry"

    return f"{widget.name}: {show(widget.data)}"


class View:
    path: ClassVar[str] = ""
    title: ClassVar[str] = ""
    protected: ClassVar[bool] = True

    # widget name -> refresh interval (seconds) for widgets re-fetched in the background
    intervals: ClassVar[dict[str, float]] = {}

    def __init__(self, ctx: ViewContext):
        self.ctx = ctx
        self.widgets: dict[str, Widget] = {}
        self.build()

    def build(self) -> None:
        pass

    def widget(
        self, name: str, fetch: Callable[[], Awaitable[Any]], kind: type[Widget] = Widget, **kwargs
    ) -> Widget:
        self.widgets[name] = w = kind(name, fetch, **kwargs)
        return w

    @property
    def allowed(self) -> bool:
        return not self.protected or canAccess(self.ctx.wallet.state)

    async def load(self) -> bool:
        """Fetch every widget concurrently. Returns False if the guard refused."""
        if not self.allowed:
            logger.warning("[{}] Not loading: wallet not connected", self.path)
            return False

        widgets = list(self.widgets.values())
        results = await asyncio.gather(*(w.refresh() for w in widgets), return_exceptions=True)
        for w, result in zip(widgets, results):
            if isinstance(result, BaseException):
                logger.opt(exception=result).error("[{}] Widget {} crashed", self.path, w.name)

        return True

    def render(self) -> list[str]:
        return [f"== {self.title} ({self.path}) =="]


class ConnectPrompt(View):
    """What a protected route shows while the wallet isn't connected: a prompt, never an error."""

    protected = False

    def __init__(self, ctx: ViewContext, requested: str):
        super().__init__(ctx)
        self.requested = requested
        self.title = "Wallet Required"

    def render(self) -> list[str]:
        lines = [
            "== Wallet Required ==",
            f"Connect your wallet to access {self.requested}",
            "  'connect' to connect a wallet, 'go /' to go back home",
        ]

        if err := self.ctx.wallet.state.lastError:
            lines.append(f"  last wallet error: {err.message}")

        return lines


class LandingView(View):
    path = "/"
    title = "TruthLens"
    protected = False
    intervals = {"health": HEALTH_INTERVAL}

    def build(self) -> None:
        self.widget("health", self.ctx.gateway.getHealth, HealthWidget)

    def render(self) -> list[str]:
        state = self.ctx.wallet.state
        lines = super().render()
        lines.append("AI-verified credibility and risk scores for prediction markets")
        lines.append(fmtWidget(self.widgets["health"], lambda h: h.status))

        if canAccess(state):
            lines.append(f"Connected as {formatAddress(state.account)}, opening dashboard...")
        else:
            lines.append("Connect a wallet to open the dashboard ('connect')")

        return lines


class DashboardView(View):
    path = "/dashboard"
    title = "Dashboard"
    intervals = {
        "markets": MARKETS_INTERVAL,
        "status": STATUS_INTERVAL,
        "analytics": ANALYTICS_INTERVAL,
        "history": HISTORY_INTERVAL,
        "blockchain": HISTORY_INTERVAL,
    }

    def build(self) -> None:
        gw = self.ctx.gateway
        self.widget("markets", gw.getMarkets)
        self.widget("status", gw.getStatus)
        self.widget("analytics", gw.getAnalytics)
        self.widget("history", gw.getAnalysisHistory)
        self.widget("blockchain", gw.getBlockchainData)

    def render(self) -> list[str]:
        state = self.ctx.wallet.state
        w = self.widgets
        lines = super().render()
        lines.append(
            f"wallet: {formatAddress(state.account)} :: {formatBalance(state.balance)} :: {networkName(state.chainId)}"
        )
        lines.append(fmtWidget(w["markets"], lambda ms: f"{len(ms)} active markets"))
        lines.append(
            fmtWidget(
                w["status"],
                lambda s: f"{s.total_markets} markets, {s.active_analyses} analyses, "
                f"{s.total_attestations} attestations, chain {'up' if s.blockchain_connected else 'DOWN'}",
            )
        )
        lines.append(
            fmtWidget(
                w["analytics"],
                lambda a: f"{a.markets_analyzed} analyzed, success {a.success_rate:.1f}%, "
                f"avg confidence {a.avg_confidence:.2f}",
            )
        )
        lines.append(fmtWidget(w["history"], lambda h: f"{len(h.get('history', h))} history records"))
        lines.append(fmtWidget(w["blockchain"], lambda b: f"{len(b.get('attestations', b))} attestation records"))
        return lines


@dataclass(slots=True)
class QueryRecord:
    question: str
    response: CustomQueryResponse | None = None
    error: str | None = None
    timedOut: bool = False
    when: datetime.datetime = field(default_factory=datetime.datetime.now)


async def askQuestion(ctx: ViewContext, question: str) -> QueryRecord:
    """Run one free-text analysis, capturing failures into the record instead of raising."""
    record = QueryRecord(question.strip())
    try:
        record.response = await ctx.gateway.analyzeCustomQuestion(question)
    except GatewayTimeout as e:
        record.error = e.message
        record.timedOut = True
    except GatewayError as e:
        record.error = f"Analysis failed: {e.message}"

    return record


class MarketsHubView(View):
    path = "/dashboard/markets-hub"
    title = "Markets Hub"
    intervals = {"markets": MARKETS_INTERVAL}

    def build(self) -> None:
        self.widget("markets", self.ctx.gateway.getMarkets)
        self.selected: str | None = None
        self.lastQuery: QueryRecord | None = None
        self.lastTrigger: str | None = None

    def market(self, marketId: str) -> MarketData | None:
        for m in self.widgets["markets"].data or []:
            if m.market_id == marketId:
                return m

        return None

    async def select(self, marketId: str) -> None:
        """Focus one market: load its analysis, oracle reading, and history side by side."""
        if not self.allowed:
            return

        gw = self.ctx.gateway
        self.selected = marketId
        self.widget("analysis", lambda: gw.getAnalysis(marketId))
        self.widget("oracle", lambda: gw.getOracleReading(marketId))
        self.widget("market history", lambda: gw.getMarketHistory(marketId))

        await asyncio.gather(
            *(self.widgets[n].refresh() for n in ("analysis", "oracle", "market history"))
        )

    async def ask(self, question: str) -> QueryRecord | None:
        if not self.allowed:
            return None

        self.lastQuery = await askQuestion(self.ctx, question)
        return self.lastQuery

    async def trigger(self) -> str:
        try:
            result = await self.ctx.gateway.triggerAnalysis()
        except GatewayError as e:
            self.lastTrigger = f"Trigger failed: {e.message}"
        else:
            self.lastTrigger = f"{result.status}: {result.message}"
            await self.widgets["markets"].refresh()

        return self.lastTrigger

    def render(self) -> list[str]:
        lines = super().render()
        lines.append(
            fmtWidget(
                self.widgets["markets"],
                lambda ms: "\n".join(
                    [f"{len(ms)} markets"]
                    + [
                        f"  {m.market_id:<12} {m.current_price:>8.3f} {m.change_24h:>+7.2f}%  {m.title}"
                        for m in ms
                    ]
                ),
            )
        )

        if self.selected:
            lines.append(f"-- {self.selected} --")
            lines.append(
                fmtWidget(
                    self.widgets["analysis"],
                    lambda a: f"credibility {a.credibility_score:.2f} risk {a.risk_index:.2f} "
                    f"confidence {a.confidence:.2f} ({a.links_analyzed} links)"
                    + (f" tx {a.tx_hash}" if a.tx_hash else ""),
                )
            )
            lines.append(
                fmtWidget(
                    self.widgets["oracle"],
                    lambda o: f"on-chain cred {o.cred_score:.2f} risk {o.risk_index:.2f} "
                    f"signed by {formatAddress(o.signer)} at {fmtTime(o.timestamp)}",
                )
            )
            lines.append(
                fmtWidget(
                    self.widgets["market history"],
                    lambda h: f"{len(h.price_history)} price points, {len(h.analysis_history)} analyses",
                )
            )

        if self.lastTrigger:
            lines.append(self.lastTrigger)

        return lines


class CustomQueryView(View):
    path = "/dashboard/custom-query"
    title = "Custom Query"

    def build(self) -> None:
        self.history: list[QueryRecord] = []

    async def ask(self, question: str) -> QueryRecord | None:
        if not self.allowed:
            return None

        record = await askQuestion(self.ctx, question)
        self.history.append(record)
        return record

    def render(self) -> list[str]:
        lines = super().render()
        if not self.history:
            lines.append("Ask anything: 'ask <question>'")

        for r in self.history[-5:]:
            lines.append(f"[{r.when:%H:%M:%S}] Q: {r.question}")
            if r.response:
                lines.append(f"  A ({r.response.confidence:.0%}): {r.response.answer}")
                for src in r.response.sources:
                    lines.append(f"    - {src}")
            else:
                lines.append(f"  ! {r.error}")

        return lines


class StatusView(View):
    path = "/dashboard/status"
    title = "System Status"
    intervals = {
        "status": STATUS_INTERVAL,
        "health": HEALTH_INTERVAL,
        "ai status": AI_STATUS_INTERVAL,
        "ai performance": AI_STATUS_INTERVAL,
    }

    def build(self) -> None:
        gw = self.ctx.gateway
        self.widget("status", gw.getStatus)
        self.widget("health", gw.getHealth, HealthWidget)
        self.widget("ai status", gw.getAIStatus)
        self.widget("ai performance", gw.getAIPerformance)
        self.widget("ai cache", gw.getAICacheStats)

    async def clearCache(self) -> str:
        return await self._control("AI cache cleared", self.ctx.gateway.clearAICache)

    async def flushQueue(self) -> str:
        return await self._control("AI queue flushed", self.ctx.gateway.flushAIQueue)

    async def _control(self, done: str, action: Callable[[], Awaitable[Any]]) -> str:
        try:
            await action()
        except GatewayError as e:
            return f"Failed: {e.message}"

        await asyncio.gather(self.widgets["ai status"].refresh(), self.widgets["ai cache"].refresh())
        return done

    def render(self) -> list[str]:
        w = self.widgets
        lines = super().render()
        lines.append(
            fmtWidget(
                w["health"],
                lambda h: f"{h.status} (api {h.services.api}, markets {h.services.markets}, "
                f"oracle {h.services.oracle}, analysis {h.services.analysis})"
                + (f", {h.error}" if h.error else ""),
            )
        )
        lines.append(
            fmtWidget(
                w["status"],
                lambda s: f"{s.total_markets} markets, last update {fmtTime(s.last_update)}",
            )
        )
        lines.append(
            fmtWidget(
                w["ai status"],
                lambda a: f"{a.status} (enhanced {'on' if a.enhanced_features_enabled else 'off'})"
                + (f", {a.queue_status.pending_items} queued" if a.queue_status else ""),
            )
        )
        lines.append(
            fmtWidget(
                w["ai performance"],
                lambda p: f"avg {p.response_time_avg:.2f}s, cache hits {p.cache_hit_rate:.0%}, "
                f"errors {p.error_rate:.0%}",
            )
        )
        lines.append(
            fmtWidget(w["ai cache"], lambda c: f"{c.cache_size} entries, {c.memory_usage or '?'} used")
        )
        return lines


class SettingsView(View):
    path = "/dashboard/settings"
    title = "Settings"

    def build(self) -> None:
        gw = self.ctx.gateway

        # the defaults stay visible (and editable) if the backend can't be reached
        self.widget("settings", gw.getSettings, data=UserSettings())
        self.widget("ai config", gw.getAIConfig)
        self.apiKey: str | None = None

    @property
    def settings(self) -> UserSettings:
        return self.widgets["settings"].data

    async def save(self, settings: UserSettings | None = None) -> bool:
        settings = settings or self.settings
        try:
            await self.ctx.gateway.updateSettings(settings)
        except GatewayError as e:
            logger.error("Failed to save settings: {}", e.message)
            return False

        self.widgets["settings"].data = settings
        return True

    async def generateApiKey(self) -> str | None:
        try:
            reply = await self.ctx.gateway.generateApiKey()
        except GatewayError as e:
            logger.error("Failed to generate API key: {}", e.message)
            return None

        self.apiKey = reply.get("api_key") or reply.get("key")
        return self.apiKey

    def render(self) -> list[str]:
        lines = super().render()
        lines.append(
            fmtWidget(
                self.widgets["settings"],
                lambda s: f"notifications {s.notifications}, privacy {s.privacy}, display {s.display}",
            )
        )

        if self.widgets["settings"].error:
            # still show what we'd save
            lines.append(f"  using defaults: {self.settings}")

        if self.ctx.theme:
            lines.append(f"theme: {self.ctx.theme.theme} (effective {self.ctx.theme.effectiveTheme})")

        lines.append(
            fmtWidget(
                self.widgets["ai config"],
                lambda c: f"enhanced {'on' if c.enhanced_features_enabled else 'off'}, mode {c.mode or 'default'}",
            )
        )

        if oracle := self.ctx.oracleAddress:
            chainId = self.ctx.wallet.state.chainId or PREFERRED_NETWORK
            lines.append(f"oracle contract: {explorerAddressUrl(chainId, oracle) or oracle}")

        if self.apiKey:
            lines.append(f"api key: {self.apiKey}")

        return lines


VIEWS: Final[dict[str, type[View]]] = {
    v.path: v
    for v in (LandingView, DashboardView, MarketsHubView, CustomQueryView, StatusView, SettingsView)
}
