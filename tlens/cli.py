#!/usr/bin/env python3

original_print = print
import asyncio
import datetime
import itertools
import os
import pathlib
import time
from collections.abc import Coroutine, MutableMapping
from dataclasses import dataclass, field
from typing import Any

import httpx
from loguru import logger
from prompt_toolkit import PromptSession
from prompt_toolkit.auto_suggest import AutoSuggestFromHistory
from prompt_toolkit.history import FileHistory, ThreadedHistory
from prompt_toolkit.patch_stdout import patch_stdout
from prompt_toolkit.shortcuts import set_title
from prompt_toolkit.styles import Style

from tlens import cmds
from tlens.completer import CommandCompleter
from tlens.engine.gateway import RemoteDataGateway
from tlens.engine.networks import configureTestnetRpc
from tlens.engine.provider import JsonRpcProvider, WalletProvider
from tlens.engine.router import Router
from tlens.engine.store import ClientStore
from tlens.engine.theme import ThemeManager
from tlens.engine.toolbar import ToolbarRenderer
from tlens.engine.views import ViewContext
from tlens.engine.wallet import LANDING_ROUTE, WalletSessionManager
from tlens.helpers import Settings


@dataclass(slots=True)
class TruthLensApp:
    settings: Settings = field(default_factory=Settings.fromConfig)

    # wallet provider override (else built from settings.walletRpc, else no wallet at all)
    provider: WalletProvider | None = None

    # persisted client state override (tests pass a dict; else a diskcache under settings.cacheDir)
    cache: MutableMapping[str, Any] | None = None

    # backend transport override (tests pass an httpx.MockTransport)
    transport: httpx.AsyncBaseTransport | None = None

    # number of seconds between toolbar redraws
    toolbarUpdateInterval: float = 1.0

    exiting: bool = False

    toolbarStyle: Style = field(
        default_factory=lambda: Style.from_dict({"bottom-toolbar": "fg:default bg:default"})
    )

    # Engine modules (initialized in __post_init__)
    store: ClientStore = field(init=False)
    wallet: WalletSessionManager = field(init=False)
    gateway: RemoteDataGateway = field(init=False)
    theme: ThemeManager = field(init=False)
    router: Router = field(init=False)
    toolbar: ToolbarRenderer = field(init=False)

    # background tasks by id (see 'tasks' command)
    tasks: dict[int, asyncio.Task] = field(init=False, default_factory=dict)
    taskIds: Any = field(init=False, default_factory=lambda: itertools.count(1))

    _console_sink: Any = field(init=False, default=None)
    _console_handler_id: int | None = field(init=False, default=None)

    def __post_init__(self) -> None:
        self.setupLogging()

        configureTestnetRpc(self.settings.testnetRpc)

        self.store = ClientStore(self.cache if self.cache is not None else self.settings.cacheDir)

        if self.provider is None and self.settings.walletRpc:
            self.provider = JsonRpcProvider(self.settings.walletRpc)

        self.wallet = WalletSessionManager(self.provider, self.store, navigator=self)
        self.gateway = RemoteDataGateway(self.settings.backendUrl, transport=self.transport)
        self.theme = ThemeManager(self.store)
        self.updateToolbarStyle()

        self.router = Router(
            self.wallet,
            ViewContext(self.gateway, self.wallet, self.theme, self.settings.oracleAddress),
        )

        self.toolbar = ToolbarRenderer(app=self)

    def setupLogging(self) -> None:
        now = datetime.datetime.now()
        LOGDIR = pathlib.Path(self.settings.logDir) / f"{now.year}" / f"{now.month:02}"
        LOGDIR.mkdir(exist_ok=True, parents=True)
        LOG_FILE_TEMPLATE = str(LOGDIR / f"tlens-{now.isoformat(timespec='seconds')}".replace(":", "-"))

        logger.info("Logging session with prefix: {}", LOG_FILE_TEMPLATE)

        def asink(x):
            # original print() respects the patch_stdout() context the REPL runs in,
            # so async log lines don't tear up the prompt and toolbar.
            original_print(x, end="")

        logger.remove()
        self._console_sink = asink
        self._console_handler_id = logger.add(asink, colorize=True, level="INFO")

        # everything (including user input logged at TRACE) goes to the log files
        logger.add(sink=LOG_FILE_TEMPLATE + "-tlens.log", level="TRACE", colorize=False)
        logger.add(
            sink=LOG_FILE_TEMPLATE + "-tlens-color.log",
            level="TRACE",
            colorize=True,
        )

    def setConsoleLogLevel(self, level: str) -> None:
        """Change the console log level at runtime.

        Removes the current console handler and re-adds it at the new level."""
        if self._console_handler_id is not None:
            logger.remove(self._console_handler_id)

        self._console_handler_id = logger.add(self._console_sink, colorize=True, level=level)
        logger.info("Console log level set to {}", level)

    def updateToolbarStyle(self) -> None:
        self.toolbarStyle = Style.from_dict({"bottom-toolbar": self.theme.style})

    def setTheme(self, theme: str) -> None:
        self.theme.setTheme(theme)
        self.updateToolbarStyle()

    # ------------------------------------------------------------------
    # Navigator (called by the wallet manager)
    # ------------------------------------------------------------------

    def navigate(self, path: str) -> None:
        self.task_create(f"navigate {path}", self.router.navigate(path))

    def reload(self) -> None:
        logger.info("Wallet network changed, reloading...")
        self.task_create("reload", self.router.reload())

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    async def prepare(self) -> None:
        set_title("TruthLens")

        logger.info("Backend: {}", self.settings.backendUrl)
        if self.provider is None:
            logger.warning("No wallet provider configured (TLENS_WALLET_RPC); dashboard pages stay locked")

        self.wallet.start()
        await self.wallet.restore()

        view = await self.router.navigate(LANDING_ROUTE)
        for line in view.render():
            logger.info("{}", line)

    async def runSingleCommand(self, cmd: str, rest: str | None) -> None:
        _t0 = time.perf_counter()
        try:
            await cmds.runop(cmd, rest, self)
        except cmds.UsageError as e:
            logger.error("{}", e)
        except Exception as e:
            logger.exception("[{}] Error with command: {}", cmd, e)
        finally:
            logger.debug("[{}] Duration: {:,.4f}", cmd, time.perf_counter() - _t0)

    async def buildAndRun(self, text1: str) -> None:
        # multiple commands on one line are split by semicolons and run in order
        for ccmd in text1.split(";"):
            ccmd = ccmd.strip()
            if not ccmd:
                continue

            cmd, *rest = ccmd.split(None, 1)
            await self.runSingleCommand(cmd, rest[0] if rest else None)

            if self.exiting:
                return

    async def dorepl(self) -> None:
        completer = CommandCompleter(self)
        session: PromptSession = PromptSession(
            history=ThreadedHistory(FileHistory(os.path.expanduser("~/.tlens_history"))),
            auto_suggest=AutoSuggestFromHistory(),
            completer=completer,
        )

        app = session.app

        async def updateToolbar():
            while not self.exiting:
                app.invalidate()
                await asyncio.sleep(self.toolbarUpdateInterval)

        self.task_create("toolbar", updateToolbar())

        # The Command Processing REPL
        while not self.exiting:
            try:
                text1 = await session.prompt_async(
                    "tlens> ",
                    enable_history_search=True,
                    bottom_toolbar=self.toolbar.render,
                    complete_while_typing=True,
                    search_ignore_case=True,
                    style=self.toolbarStyle,
                    reserve_space_for_menu=4,
                )

                # log user input to our active logfile(s)
                logger.trace("tlens> {}", text1)

                await self.buildAndRun(text1)
            except KeyboardInterrupt:
                # Control-C pressed. Try again.
                continue
            except EOFError:
                # Control-D pressed
                logger.error("Exiting...")
                self.exiting = True
                break

    async def runall(self) -> None:
        await self.prepare()

        try:
            while not self.exiting:
                try:
                    await self.dorepl()
                except Exception:
                    logger.exception("Uncaught exception in repl? Restarting...")
                    continue
        finally:
            await self.stop()

    # ------------------------------------------------------------------
    # Background tasks
    # ------------------------------------------------------------------

    def task_create(self, name: str, coroutine: Coroutine[Any, Any, Any]) -> asyncio.Task:
        taskId = next(self.taskIds)
        task = asyncio.create_task(coroutine, name=f"[{taskId}] {name}")
        self.tasks[taskId] = task

        def done(t: asyncio.Task) -> None:
            self.tasks.pop(taskId, None)
            if not t.cancelled() and (err := t.exception()):
                logger.opt(exception=err).error("[{}] Task failed", t.get_name())

        task.add_done_callback(done)
        return task

    def task_stop_id(self, taskId: int) -> bool:
        if task := self.tasks.get(taskId):
            task.cancel()
            return True

        return False

    def task_report(self) -> None:
        background = [
            *self.tasks.values(),
            *self.router.tasks,
            *(r.task for r in self.router.refreshers if r.task),
            *([self.wallet.pumpTask] if self.wallet.pumpTask else []),
        ]

        if not background:
            logger.info("No background tasks")
            return

        for task in background:
            logger.info("{:<40} {}", task.get_name(), "done" if task.done() else "running")

    async def stop(self) -> None:
        self.exiting = True

        await self.router.stop()
        await self.wallet.stop()

        pending = list(self.tasks.values())
        for task in pending:
            task.cancel()

        await asyncio.gather(*pending, return_exceptions=True)

        await self.gateway.aclose()
        if aclose := getattr(self.provider, "aclose", None):
            await aclose()

        self.store.close()


def main() -> None:
    app = TruthLensApp()
    with patch_stdout(raw=True):
        try:
            asyncio.run(app.runall())
        except KeyboardInterrupt:
            logger.warning("Stopped")


if __name__ == "__main__":
    main()
