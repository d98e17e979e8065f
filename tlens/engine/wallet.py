"""Wallet session manager: the single owner of wallet connection state.

Every interaction with the wallet provider goes through WalletSessionManager.
The manager mutates its WalletSession only from its own methods and from the
provider event channel; views and the router read snapshots.

Provider events are not handled by independent callbacks. Each provider
listener just posts a (WalletEvent, payload) message into 'inbox' and the
single pump task feeds every message through handleEvent(), so all
transitions happen in one place.

Async populate results can race each other (connect() in flight while the
wallet reports an account switch, or the user disconnecting while a balance
lookup is outstanding). Every populate takes a ticket from 'epoch' and its
result is only applied if the ticket is still current when the awaits
resolve. disconnect() and every newer populate advance the epoch, so the
last started flow always wins and nothing stale gets resurrected.
"""

from __future__ import annotations

import asyncio
import enum
from collections.abc import Callable
from typing import Any, Final

from loguru import logger

from tlens.engine.networks import PREFERRED_NETWORK, addChainParams, networkName
from tlens.engine.primitives import formatAddress, normalizeAddress, toHexChainId
from tlens.engine.protocols import Navigator
from tlens.engine.provider import (
    ACCOUNTS_CHANGED,
    CHAIN_CHANGED,
    DISCONNECT,
    UNRECOGNIZED_CHAIN,
    USER_REJECTED,
    WalletProvider,
    getAccounts,
    getBalance,
    getChainId,
    requestAccounts,
)
from tlens.engine.session import ErrorKind, WalletError, WalletSession
from tlens.engine.store import ClientStore

LANDING_ROUTE: Final = "/"


class WalletEvent(enum.Enum):
    ACCOUNTS_CHANGED = ACCOUNTS_CHANGED
    CHAIN_CHANGED = CHAIN_CHANGED
    DISCONNECTED = DISCONNECT


SessionObserver = Callable[[WalletSession], Any]


class WalletSessionManager:
    """Owns the WalletSession and every provider interaction.

    Parameters
    ----------
    provider:
        The wallet provider, or None when no wallet is installed.
    store:
        Persisted client state (connection flag + last account).
    navigator:
        Host used for the disconnect redirect and the chain-change reload.
    """

    def __init__(
        self,
        provider: WalletProvider | None,
        store: ClientStore,
        navigator: Navigator | None = None,
    ):
        self.provider = provider
        self.store = store
        self.navigator = navigator

        self.session = WalletSession()

        # True while an account request is waiting on the user
        self.pending = False

        self.epoch = 0
        self.inbox: asyncio.Queue[tuple[WalletEvent, Any]] = asyncio.Queue()
        self.pumpTask: asyncio.Task | None = None

        self.observers: list[SessionObserver] = []
        self._listeners: dict[str, Callable[..., Any]] = {}

    # ------------------------------------------------------------------
    # Reading
    # ------------------------------------------------------------------

    @property
    def state(self) -> WalletSession:
        return self.session.snapshot()

    def subscribe(self, observer: SessionObserver) -> Callable[[], None]:
        """Register 'observer' to be called after every session transition.

        Returns a callable which removes the observer again."""
        self.observers.append(observer)

        def unsubscribe() -> None:
            if observer in self.observers:
                self.observers.remove(observer)

        return unsubscribe

    def notify(self) -> None:
        snapshot = self.session.snapshot()
        for observer in list(self.observers):
            observer(snapshot)

    # ------------------------------------------------------------------
    # Provider event channel
    # ------------------------------------------------------------------

    def attach(self) -> None:
        """Subscribe to provider events (once, for the lifetime of the app)."""
        if self.provider is None or self._listeners:
            return

        self._listeners = {
            ACCOUNTS_CHANGED: lambda accounts=None: self.post(WalletEvent.ACCOUNTS_CHANGED, accounts),
            CHAIN_CHANGED: lambda chainId=None: self.post(WalletEvent.CHAIN_CHANGED, chainId),
            DISCONNECT: lambda error=None: self.post(WalletEvent.DISCONNECTED, error),
        }

        for event, listener in self._listeners.items():
            self.provider.on(event, listener)

    def detach(self) -> None:
        if self.provider is None:
            return

        for event, listener in self._listeners.items():
            self.provider.removeListener(event, listener)

        self._listeners = {}

    def post(self, event: WalletEvent, payload: Any = None) -> None:
        self.inbox.put_nowait((event, payload))

    def start(self) -> asyncio.Task:
        """Attach to the provider and run the event pump in the background."""
        self.attach()
        if not self.pumpTask:
            self.pumpTask = asyncio.create_task(self.pump(), name="wallet event pump")

        return self.pumpTask

    async def stop(self) -> None:
        self.detach()
        if self.pumpTask:
            self.pumpTask.cancel()
            try:
                await self.pumpTask
            except asyncio.CancelledError:
                pass

            self.pumpTask = None

    async def pump(self) -> None:
        while True:
            event, payload = await self.inbox.get()
            try:
                await self.handleEvent(event, payload)
            except Exception:
                logger.exception("[wallet] Failed handling {} ({})", event.name, payload)
            finally:
                self.inbox.task_done()

    async def handleEvent(self, event: WalletEvent, payload: Any = None) -> None:
        """The one transition function for provider-originated events."""
        logger.info("[wallet] Provider event: {} {}", event.value, payload)

        match event:
            case WalletEvent.ACCOUNTS_CHANGED:
                accounts = list(payload or [])
                if not accounts:
                    self.disconnect()
                    return

                # switch identity without prompting again
                await self.populate(accounts[0], self.epoch)
            case WalletEvent.CHAIN_CHANGED:
                # chain-scoped state is never patched in place
                if self.navigator:
                    self.navigator.reload()
            case WalletEvent.DISCONNECTED:
                self.disconnect()

    # ------------------------------------------------------------------
    # Operations
    # ------------------------------------------------------------------

    async def restore(self) -> None:
        """Startup probe, only attempted if a previous run left us connected."""
        if not self.store.wasConnected():
            logger.info("[wallet] No previous wallet connection remembered")
            return

        logger.info(
            "[wallet] Previous session used {}, checking wallet...",
            formatAddress(self.store.lastAccount()),
        )
        await self.probeExistingConnection()

    async def probeExistingConnection(self) -> None:
        """Adopt an already-authorized account without prompting the user.

        Failures here mean "not known yet" instead of an error, so the
        session is left exactly as it was."""
        if self.provider is None:
            return

        expected = self.epoch
        try:
            accounts = await getAccounts(self.provider)
        except Exception as e:
            logger.debug("[wallet] Probe for existing accounts failed: {}", e)
            return

        if accounts:
            await self.populate(accounts[0], expected)

    async def connect(self) -> WalletError | None:
        """Request account access and populate the session.

        Returns the WalletError (also stored as lastError) on failure. None means
        no error was recorded: either the session is now connected, or this flow
        was overtaken (for example by disconnect()) and its result dropped, so
        check state.connected for the outcome."""
        if self.provider is None:
            return self.fail(
                WalletError(
                    ErrorKind.ProviderMissing,
                    "No wallet provider detected. Install a wallet to continue.",
                ),
                self.epoch,
            )

        expected = self.epoch
        self.pending = True
        self.session.lastError = None
        self.notify()

        try:
            try:
                accounts = await requestAccounts(self.provider)
            except Exception as e:
                code = getattr(e, "code", None)
                if code == USER_REJECTED:
                    err = WalletError(ErrorKind.UserRejected, "Wallet connection rejected by user", code)
                else:
                    err = WalletError(
                        ErrorKind.ConnectionFailed, "Failed to connect wallet. Please try again.", code
                    )

                logger.error("[wallet] Connect failed: {}", e)
                return self.fail(err, expected)

            if not accounts:
                return self.fail(
                    WalletError(ErrorKind.ConnectionFailed, "Wallet granted no accounts"), expected
                )

            return await self.populate(accounts[0], expected)
        finally:
            self.pending = False

    def reset(self) -> None:
        """Drop everything read from the wallet and invalidate in-flight flows.

        Unlike disconnect() the persisted connection is kept, so a following
        probe can adopt the account again."""
        self.epoch += 1
        self.session.reset()
        self.notify()

    def disconnect(self) -> None:
        """Reset to the disconnected shape and go back to the landing view. Idempotent."""
        self.store.forgetWallet()
        self.reset()
        logger.info("[wallet] Disconnected")

        if self.navigator:
            self.navigator.navigate(LANDING_ROUTE)

    async def switchNetwork(self, targetChainId: int = PREFERRED_NETWORK) -> WalletError | None:
        """Ask the wallet to move to 'targetChainId', registering the network first if the wallet doesn't know it."""
        if self.provider is None:
            return self.fail(
                WalletError(ErrorKind.ProviderMissing, "No wallet provider detected."), self.epoch
            )

        name = networkName(targetChainId)
        switch = [{"chainId": toHexChainId(targetChainId)}]

        try:
            await self.provider.request("wallet_switchEthereumChain", switch)
        except Exception as e:
            code = getattr(e, "code", None)
            if code != UNRECOGNIZED_CHAIN:
                logger.error("[wallet] Switching to {} failed: {}", name, e)
                return self.fail(
                    WalletError(ErrorKind.NetworkSwitchFailed, f"Failed to switch to {name}", code),
                    self.epoch,
                )

            logger.warning("[wallet] Wallet doesn't know {}, adding it...", name)

            try:
                params = addChainParams(targetChainId)
            except KeyError:
                return self.fail(
                    WalletError(
                        ErrorKind.NetworkSwitchFailed,
                        f"No network configuration for chain id {targetChainId}",
                        code,
                    ),
                    self.epoch,
                )

            try:
                await self.provider.request("wallet_addEthereumChain", [params])
                await self.provider.request("wallet_switchEthereumChain", switch)
            except Exception as addErr:
                logger.error("[wallet] Adding {} failed: {}", name, addErr)
                return self.fail(
                    WalletError(
                        ErrorKind.NetworkSwitchFailed,
                        f"Failed to add {name} to wallet",
                        getattr(addErr, "code", None),
                    ),
                    self.epoch,
                )

        logger.info("[wallet] Switched to {}", name)
        if self.session.connected:
            self.session.chainId = targetChainId

        self.session.lastError = None
        self.notify()
        return None

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def current(self, ticket: int) -> bool:
        return ticket == self.epoch

    async def populate(self, account: str, expected: int) -> WalletError | None:
        """Load chain + balance for 'account' and install it as the connected identity.

        'expected' is the epoch observed when the calling flow started; if
        anything transitioned since then this flow is already stale."""
        if not self.current(expected):
            logger.warning("[wallet] Dropping stale populate for {}", account)
            return None

        self.epoch += 1
        ticket = self.epoch

        try:
            address = normalizeAddress(account)
            chainId = await getChainId(self.provider)
            balance = await getBalance(self.provider, address)
        except Exception as e:
            if not self.current(ticket):
                logger.warning("[wallet] Ignoring failure of superseded populate: {}", e)
                return None

            logger.error("[wallet] Failed initializing wallet {}: {}", account, e)
            return self.fail(
                WalletError(
                    ErrorKind.InitializationFailed,
                    "Failed to initialize wallet connection",
                    getattr(e, "code", None),
                ),
                ticket,
            )

        if not self.current(ticket):
            logger.warning(
                "[wallet] Discarding stale result for {} (session moved on)", formatAddress(address)
            )
            return None

        self.session.apply(address, balance, chainId)
        self.store.rememberWallet(address)

        logger.info(
            "[wallet] Connected {} on {} (balance {})",
            formatAddress(address),
            networkName(chainId),
            balance,
        )

        self.notify()
        return None

    def fail(self, err: WalletError, ticket: int) -> WalletError:
        """Record 'err' as lastError unless the failing flow was already superseded."""
        if self.current(ticket):
            self.session.lastError = err
            self.notify()

        logger.warning("[wallet] {}", err)
        return err
