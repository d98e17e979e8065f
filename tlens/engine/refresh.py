"""Widgets (one backend call each) and their fixed-interval refreshers."""

from __future__ import annotations

import asyncio
import time
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from typing import Any, Final

from loguru import logger

from tlens.engine.errors import GatewayError, GatewayHTTPError
from tlens.engine.models import HealthStatus, ServiceStates

MARKETS_INTERVAL: Final = 30.0
HEALTH_INTERVAL: Final = 30.0
STATUS_INTERVAL: Final = 30.0
AI_STATUS_INTERVAL: Final = 30.0
ANALYTICS_INTERVAL: Final = 60.0
HISTORY_INTERVAL: Final = 60.0


@dataclass(slots=True)
class Widget:
    """One independently failing piece of a view.

    A failed fetch flips only this widget into its "unavailable" state
    ('error' set, last good 'data' kept) and never raises to the view.

    Every refresh takes a sequence number; a response that lands after a
    newer one was already applied is dropped.
    """

    name: str
    fetch: Callable[[], Awaitable[Any]]
    data: Any = None
    error: str | None = None
    loading: bool = True
    updated: float | None = None

    # last started / last applied refresh
    seq: int = 0
    applied: int = 0

    @property
    def available(self) -> bool:
        return self.error is None and not self.loading

    def recover(self, err: GatewayError) -> Any | None:
        """Substitute data to show for 'err', or None to mark the widget unavailable."""
        return None

    async def refresh(self) -> bool:
        """Fetch once. Returns True if new data was applied."""
        self.seq += 1
        ticket = self.seq

        try:
            data = await self.fetch()
        except GatewayError as e:
            if ticket < self.applied:
                return False

            self.applied = ticket
            self.loading = False

            if (substitute := self.recover(e)) is not None:
                self.data = substitute
                self.error = None
                self.updated = time.time()
            else:
                self.error = e.message

            logger.warning("[{}] Unavailable: {}", self.name, e.message)
            return False

        if ticket < self.applied:
            logger.debug("[{}] Ignoring stale response #{} (have #{})", self.name, ticket, self.applied)
            return False

        self.applied = ticket
        self.data = data
        self.error = None
        self.loading = False
        self.updated = time.time()
        return True


@dataclass(slots=True)
class HealthWidget(Widget):
    """Health never goes "unavailable": failures become an unhealthy/error status to display."""

    data: Any = field(
        default_factory=lambda: HealthStatus(status="loading", timestamp=time.time())
    )

    def recover(self, err: GatewayError) -> HealthStatus:
        if isinstance(err, GatewayHTTPError):
            return HealthStatus(
                status="unhealthy",
                timestamp=time.time(),
                services=ServiceStates(api="degraded"),
                error=f"HTTP {err.status}",
            )

        return HealthStatus(
            status="error",
            timestamp=time.time(),
            services=ServiceStates(),
            error=err.message or "Connection failed",
        )


class Refresher:
    """Re-run one widget every 'interval' seconds.

    Each tick spawns its own task, so a slow or failing refresh never delays
    or cancels the next scheduled one.
    """

    def __init__(self, widget: Widget, interval: float):
        self.widget = widget
        self.interval = interval
        self.task: asyncio.Task | None = None
        self.inflight: set[asyncio.Task] = set()

    def start(self, immediate: bool = True) -> asyncio.Task:
        """Begin ticking. With immediate=False the first refresh waits one interval
        (for widgets the view just loaded)."""
        if not self.task:
            self.task = asyncio.create_task(self.run(immediate), name=f"refresh {self.widget.name}")

        return self.task

    async def run(self, immediate: bool = True) -> None:
        if not immediate:
            await asyncio.sleep(self.interval)

        while True:
            self.spawn()
            await asyncio.sleep(self.interval)

    def spawn(self) -> asyncio.Task:
        task = asyncio.create_task(self.widget.refresh(), name=f"{self.widget.name} tick")
        self.inflight.add(task)
        task.add_done_callback(self.finished)
        return task

    def finished(self, task: asyncio.Task) -> None:
        self.inflight.discard(task)
        if task.cancelled():
            return

        if err := task.exception():
            logger.opt(exception=err).error("[{}] Refresh crashed", self.widget.name)

    async def stop(self) -> None:
        pending = [t for t in (self.task, *self.inflight) if t]
        for task in pending:
            task.cancel()

        await asyncio.gather(*pending, return_exceptions=True)
        self.task = None
        self.inflight.clear()

    @property
    def running(self) -> bool:
        return self.task is not None and not self.task.done()
