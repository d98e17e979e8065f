"""Client-side persisted state (survives restarts).

Nothing stored here is authoritative. The wallet flag only decides if we
should bother probing the provider on startup; the provider is always
asked again for the real answer.
"""

from __future__ import annotations

from collections.abc import MutableMapping
from typing import Any, Final

import diskcache  # type: ignore

WALLET_CONNECTED: Final = "walletConnected"
WALLET_ACCOUNT: Final = "walletAccount"
THEME: Final = "truthlens-theme"


class ClientStore:
    """Small key/value facade over a diskcache directory.

    'cache' may be any dict-like object (tests pass a plain dict).
    """

    def __init__(self, cache: MutableMapping[str, Any] | str):
        if isinstance(cache, str):
            cache = diskcache.Cache(cache)

        self.cache: MutableMapping[str, Any] = cache

    def get(self, key: str, default: Any = None) -> Any:
        return self.cache.get(key, default)

    def set(self, key: str, value: Any) -> None:
        self.cache[key] = value

    def remove(self, key: str) -> None:
        self.cache.pop(key, None)

    # ── wallet ──

    def rememberWallet(self, account: str) -> None:
        self.set(WALLET_CONNECTED, True)
        self.set(WALLET_ACCOUNT, account)

    def forgetWallet(self) -> None:
        self.remove(WALLET_CONNECTED)
        self.remove(WALLET_ACCOUNT)

    def wasConnected(self) -> bool:
        return bool(self.get(WALLET_CONNECTED, False))

    def lastAccount(self) -> str | None:
        return self.get(WALLET_ACCOUNT)

    def close(self) -> None:
        if close := getattr(self.cache, "close", None):
            close()
