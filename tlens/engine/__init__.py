"""tlens engine layer: wallet session, access guard, backend gateway, views.

Nothing in here touches the terminal; cli.py hosts it in a prompt_toolkit
REPL. All modules use ``from __future__ import annotations`` and modern
Python typing (``str | None``, ``@dataclass(slots=True)``, etc.).

Modules
-------
primitives
    Pure formatting helpers (stdlib only).
    - ``formatEther``, ``formatAddress``, ``formatBalance``, ``normalizeAddress``
    - ``toHexChainId``, ``fromHexChainId``

networks
    Chain metadata for BSC mainnet/testnet and Ethereum mainnet/Goerli.
    - ``NetworkConfig``, ``NETWORKS``, ``PREFERRED_NETWORK`` (BSC Testnet, 97)
    - ``networkName``, ``isSupportedNetwork``, ``addChainParams``, ``explorerAddressUrl``

session
    ``WalletSession`` record plus ``WalletError`` / ``ErrorKind`` descriptors.

provider
    EIP-1193 style wallet boundary.
    - ``WalletProvider`` protocol, ``ProviderError``, provider error codes
    - ``JsonRpcProvider``: JSON-RPC 2.0 over httpx to a key-holding node

store
    ``ClientStore``: persisted flags (wallet connection, theme) over diskcache.

wallet
    ``WalletSessionManager``: the single owner of wallet state. Provider
    events are queued and applied by one transition function; an epoch
    ticket discards results of superseded flows.

guard
    ``canAccessProtected``: the one predicate deciding access to /dashboard.

errors / models / gateway
    ``RemoteDataGateway``: typed httpx client for the TruthLens backend,
    raising ``GatewayTimeout`` / ``GatewayUnavailable`` / ``GatewayHTTPError`` /
    ``SchemaError``; payloads decode into frozen dataclasses.

refresh
    ``Widget`` (independently failing data slot), ``HealthWidget``, and the
    fixed-interval ``Refresher``.

views / router
    Dashboard pages and guarded navigation with the delayed redirect home.

theme / toolbar
    Display theme preference and the bottom toolbar renderer.
"""

# Convenience re-exports for common usage:
# from tlens.engine import WalletSessionManager, RemoteDataGateway
from tlens.engine.gateway import RemoteDataGateway
from tlens.engine.guard import canAccessProtected
from tlens.engine.session import ErrorKind, WalletError, WalletSession
from tlens.engine.wallet import WalletEvent, WalletSessionManager

__all__ = [
    "RemoteDataGateway",
    "canAccessProtected",
    "ErrorKind",
    "WalletError",
    "WalletSession",
    "WalletEvent",
    "WalletSessionManager",
]
