"""Process-wide wallet session record and its error descriptor."""
from __future__ import annotations

import dataclasses
import enum


class ErrorKind(enum.Enum):
    ProviderMissing = "ProviderMissing"
    UserRejected = "UserRejected"
    ConnectionFailed = "ConnectionFailed"
    NetworkSwitchFailed = "NetworkSwitchFailed"
    InitializationFailed = "InitializationFailed"


@dataclasses.dataclass(slots=True, frozen=True)
class WalletError:
    """Most recent wallet failure, shown inline next to the control that caused it."""

    kind: ErrorKind
    message: str
    code: int | None = None

    def __str__(self) -> str:
        if self.code is not None:
            return f"{self.kind.value} [code {self.code}]: {self.message}"

        return f"{self.kind.value}: {self.message}"


@dataclasses.dataclass(slots=True)
class WalletSession:
    """Wallet connection state shared by every view.

    Only WalletSessionManager mutates this record. Everybody else reads
    it (or a snapshot() of it).

    'connected' is True exactly when 'account' is set; 'balance' and
    'chainId' only carry meaning while connected and are cleared on
    every reset.
    """

    connected: bool = False
    account: str | None = None
    balance: str | None = None
    chainId: int | None = None
    lastError: WalletError | None = None

    def reset(self) -> None:
        self.connected = False
        self.account = None
        self.balance = None
        self.chainId = None
        self.lastError = None

    def apply(self, account: str, balance: str, chainId: int) -> None:
        assert account, "connected sessions require an account"

        self.account = account
        self.balance = balance
        self.chainId = chainId
        self.connected = True
        self.lastError = None

    def snapshot(self) -> WalletSession:
        return dataclasses.replace(self)

    def consistent(self) -> bool:
        if self.connected != (self.account is not None):
            return False

        if not self.connected:
            return self.balance is None and self.chainId is None

        return True
