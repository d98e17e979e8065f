"""Wallet provider boundary (EIP-1193 style request/event interface).

The dashboard never talks to a wallet directly; everything goes through an
object matching the WalletProvider protocol:

    await provider.request("eth_accounts")
    provider.on("accountsChanged", handler)

JsonRpcProvider is the concrete implementation: JSON-RPC 2.0 over HTTP to a
node that holds keys for the user (a local dev node with unlocked accounts,
a signer daemon, etc).
"""

from __future__ import annotations

import asyncio
import inspect
import itertools
from collections import defaultdict
from collections.abc import Callable
from typing import Any, Final, Protocol, runtime_checkable

import httpx
from loguru import logger

from tlens.engine.primitives import formatEther, fromHexChainId

# Provider error codes we react to.
# https://eips.ethereum.org/EIPS/eip-1193#provider-errors
USER_REJECTED: Final = 4001
UNAUTHORIZED: Final = 4100
UNSUPPORTED_METHOD: Final = 4200
PROVIDER_DISCONNECTED: Final = 4900
UNRECOGNIZED_CHAIN: Final = 4902
REQUEST_PENDING: Final = -32002
METHOD_NOT_FOUND: Final = -32601

# event names as emitted by injected wallets
ACCOUNTS_CHANGED: Final = "accountsChanged"
CHAIN_CHANGED: Final = "chainChanged"
DISCONNECT: Final = "disconnect"


class ProviderError(Exception):
    """A provider request failed. 'code' is the provider error code (if the provider gave one)."""

    def __init__(self, code: int | None, message: str, data: Any = None):
        super().__init__(message)
        self.code = code
        self.message = message
        self.data = data

    def __str__(self) -> str:
        return f"[code {self.code}] {self.message}"


@runtime_checkable
class WalletProvider(Protocol):
    async def request(self, method: str, params: list[Any] | None = None) -> Any: ...
    def on(self, event: str, handler: Callable[..., Any]) -> None: ...
    def removeListener(self, event: str, handler: Callable[..., Any]) -> None: ...


class ProviderEvents:
    """Listener registry shared by provider implementations (and test doubles)."""

    def __init__(self) -> None:
        self.listeners: defaultdict[str, list[Callable[..., Any]]] = defaultdict(list)
        self.pending: set[asyncio.Future] = set()

    def on(self, event: str, handler: Callable[..., Any]) -> None:
        self.listeners[event].append(handler)

    def removeListener(self, event: str, handler: Callable[..., Any]) -> None:
        try:
            self.listeners[event].remove(handler)
        except ValueError:
            pass

    def emit(self, event: str, *args: Any) -> int:
        """Deliver 'event' to every listener. Returns number of listeners notified.

        Coroutine listeners are scheduled on the running loop instead of awaited.
        """
        handlers = list(self.listeners.get(event, []))
        for handler in handlers:
            result = handler(*args)
            if inspect.isawaitable(result):
                task = asyncio.ensure_future(result)
                self.pending.add(task)
                task.add_done_callback(self.listenerDone)

        return len(handlers)

    def listenerDone(self, task: asyncio.Future) -> None:
        self.pending.discard(task)
        if task.cancelled():
            return

        if err := task.exception():
            logger.opt(exception=err).error("[provider] Event listener failed")


class JsonRpcProvider(ProviderEvents):
    """Wallet provider backed by a JSON-RPC node over HTTP.

    Wallet-only methods the node doesn't implement come back as regular
    JSON-RPC errors (usually -32601) and surface as ProviderError.
    """

    def __init__(self, url: str, timeout: float = 10, client: httpx.AsyncClient | None = None):
        super().__init__()
        self.url = url
        self.client = client or httpx.AsyncClient(timeout=timeout)
        self.ids = itertools.count(1)

    async def request(self, method: str, params: list[Any] | None = None) -> Any:
        body = dict(jsonrpc="2.0", id=next(self.ids), method=method, params=params or [])
        logger.trace("[wallet rpc] -> {}", body)

        try:
            response = await self.client.post(self.url, json=body)
            response.raise_for_status()
            reply = response.json()
        except httpx.HTTPError as e:
            raise ProviderError(PROVIDER_DISCONNECTED, f"Wallet endpoint unreachable: {e}") from e
        except ValueError as e:
            raise ProviderError(None, f"Wallet endpoint returned invalid JSON: {e}") from e

        logger.trace("[wallet rpc] <- {}", reply)

        if err := reply.get("error"):
            raise ProviderError(err.get("code"), err.get("message", "unknown error"), err.get("data"))

        return reply.get("result")

    async def aclose(self) -> None:
        await self.client.aclose()


# ── convenience calls (each raises ProviderError on failure) ──


async def getAccounts(provider: WalletProvider) -> list[str]:
    """Accounts already authorized for us (never prompts)."""
    return list(await provider.request("eth_accounts") or [])


async def requestAccounts(provider: WalletProvider) -> list[str]:
    """Request account access (may prompt the user)."""
    return list(await provider.request("eth_requestAccounts") or [])


async def getChainId(provider: WalletProvider) -> int:
    return fromHexChainId(await provider.request("eth_chainId"))


async def getBalance(provider: WalletProvider, address: str) -> str:
    return formatEther(await provider.request("eth_getBalance", [address, "latest"]))


async def signMessage(provider: WalletProvider, address: str, message: str) -> str:
    hexmsg = "0x" + message.encode().hex()
    return await provider.request("personal_sign", [hexmsg, address])


def walletErrorMessage(error: BaseException) -> str:
    """Map a provider failure to text suitable for showing the user."""
    code = getattr(error, "code", None)
    message = getattr(error, "message", None) or str(error)

    match code:
        case 4001:
            return "Connection rejected by user"
        case 4902:
            return "Network not supported by wallet"
        case -32002:
            return "Connection request already pending"

    if "User rejected" in message:
        return "User rejected the request"

    return message or "An unknown error occurred"
