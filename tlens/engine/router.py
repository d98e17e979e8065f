"""Guarded navigation between views.

The router re-evaluates the access guard on every wallet transition (it
subscribes to the session manager) instead of trusting whatever the guard
said when a view was first opened.

A protected path requested without a connected wallet shows ConnectPrompt
and schedules a redirect home after REDIRECT_DELAY. If the wallet connects
before the redirect fires, the redirect is cancelled and the requested
view loads instead.
"""

from __future__ import annotations

import asyncio
from collections.abc import Coroutine
from typing import Any, Final

from loguru import logger

from tlens.engine.guard import DASHBOARD_ROUTE, canAccess, isProtectedPath
from tlens.engine.refresh import Refresher
from tlens.engine.session import WalletSession
from tlens.engine.views import VIEWS, ConnectPrompt, View, ViewContext
from tlens.engine.wallet import LANDING_ROUTE, WalletSessionManager

REDIRECT_DELAY: Final = 0.1
LANDING_REDIRECT_DELAY: Final = 0.8


class RouteNotFound(KeyError):
    def __init__(self, path: str):
        super().__init__(path)
        self.path = path

    def __str__(self) -> str:
        return f"No such page: {self.path}"


def cleanPath(path: str) -> str:
    return "/" + path.strip().strip("/")


class Router:
    def __init__(
        self,
        wallet: WalletSessionManager,
        ctx: ViewContext,
        views: dict[str, type[View]] | None = None,
    ):
        self.wallet = wallet
        self.ctx = ctx
        self.views = views or VIEWS

        self.path: str | None = None
        self.current: View | None = None

        # protected path the ConnectPrompt is standing in for
        self.requested: str | None = None

        self.redirectTask: asyncio.Task | None = None
        self.landingTask: asyncio.Task | None = None
        self.refreshers: list[Refresher] = []
        self.tasks: set[asyncio.Task] = set()
        self.reloading = False

        self.unsubscribe = wallet.subscribe(self.guardChanged)

    @property
    def allowed(self) -> bool:
        return canAccess(self.wallet.state)

    def spawn(self, coro: Coroutine[Any, Any, Any], name: str) -> asyncio.Task:
        task = asyncio.create_task(coro, name=name)
        self.tasks.add(task)
        task.add_done_callback(self.finished)
        return task

    def finished(self, task: asyncio.Task) -> None:
        self.tasks.discard(task)
        if task.cancelled():
            return

        if err := task.exception():
            logger.opt(exception=err).error("[router] {} failed", task.get_name())

    async def navigate(self, path: str) -> View:
        """Show 'path'. Returns the view now current (ConnectPrompt if the guard refused)."""
        path = cleanPath(path)
        if path not in self.views:
            raise RouteNotFound(path)

        self.cancelRedirect()
        self.cancelLandingRedirect()

        kind = self.views[path]
        if kind.protected and not self.allowed:
            logger.info("[router] {} requires a connected wallet", path)
            prompt = ConnectPrompt(self.ctx, path)
            await self.show(path, prompt)
            self.requested = path
            self.redirectTask = self.spawn(self.redirectHome(), f"redirect from {path}")
            return prompt

        view = kind(self.ctx)
        self.requested = None
        await self.show(path, view)

        await view.load()

        # something else may have been navigated to while loading
        if self.current is view:
            self.startRefreshers(view)
            if path == LANDING_ROUTE:
                self.scheduleLandingRedirect()

        return view

    async def navigateWithWalletCheck(self, path: str) -> bool:
        """Navigate only if the guard allows it; False (and no navigation) otherwise."""
        if isProtectedPath(cleanPath(path)) and not self.allowed:
            logger.warning("Please connect your wallet to access {}", path)
            return False

        await self.navigate(path)
        return True

    async def reload(self) -> None:
        """Drop the wallet session, re-probe, and rebuild the current route from scratch."""
        target = self.requested or self.path or LANDING_ROUTE

        # the rebuild below decides the page, not the intermediate transitions
        self.reloading = True
        try:
            self.wallet.reset()
            await self.wallet.probeExistingConnection()
        finally:
            self.reloading = False

        await self.navigate(target)

    def visibleLinks(self) -> list[tuple[str, str]]:
        allowed = self.allowed
        return [(path, v.title) for path, v in self.views.items() if allowed or not v.protected]

    async def show(self, path: str, view: View) -> None:
        await self.stopRefreshers()
        self.path = path
        self.current = view
        logger.info("[router] Showing {} ({})", view.title, path)

    def startRefreshers(self, view: View) -> None:
        for name, interval in view.intervals.items():
            if widget := view.widgets.get(name):
                r = Refresher(widget, interval)
                r.start(immediate=False)
                self.refreshers.append(r)

    async def stopRefreshers(self) -> None:
        refreshers, self.refreshers = self.refreshers, []
        await asyncio.gather(*(r.stop() for r in refreshers))

    # ------------------------------------------------------------------
    # Guard re-evaluation
    # ------------------------------------------------------------------

    def guardChanged(self, session: WalletSession) -> None:
        if self.reloading:
            return

        if canAccess(session):
            if self.requested and self.redirectTask:
                requested = self.requested
                logger.info("[router] Wallet connected, opening {}", requested)
                self.cancelRedirect()
                self.spawn(self.navigate(requested), f"open {requested}")
            elif self.path == LANDING_ROUTE:
                self.scheduleLandingRedirect()

            return

        self.cancelLandingRedirect()
        if self.current and self.current.protected and self.path:
            # lost access while looking at a protected view
            self.spawn(self.navigate(self.path), f"guard {self.path}")

    async def redirectHome(self) -> None:
        await asyncio.sleep(REDIRECT_DELAY)
        self.redirectTask = None
        if self.allowed:
            return

        self.requested = None
        logger.info("[router] Redirecting to {}", LANDING_ROUTE)
        await self.navigate(LANDING_ROUTE)

    def cancelRedirect(self) -> None:
        if self.redirectTask:
            self.redirectTask.cancel()
            self.redirectTask = None

    def scheduleLandingRedirect(self) -> None:
        if self.landingTask or not self.allowed:
            return

        self.landingTask = self.spawn(self.landingRedirect(), "landing redirect")

    async def landingRedirect(self) -> None:
        await asyncio.sleep(LANDING_REDIRECT_DELAY)
        self.landingTask = None
        if self.path == LANDING_ROUTE and self.allowed:
            await self.navigate(DASHBOARD_ROUTE)

    def cancelLandingRedirect(self) -> None:
        if self.landingTask:
            self.landingTask.cancel()
            self.landingTask = None

    async def stop(self) -> None:
        self.unsubscribe()
        self.cancelRedirect()
        self.cancelLandingRedirect()
        await self.stopRefreshers()

        pending = list(self.tasks)
        for task in pending:
            task.cancel()

        await asyncio.gather(*pending, return_exceptions=True)
