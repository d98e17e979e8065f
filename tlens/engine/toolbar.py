"""Bottom toolbar renderer.

Shows the wallet line (address, balance, network), the current page, and
the last wallet error. Re-rendered on every prompt_toolkit invalidate.
"""

from __future__ import annotations

import datetime
from typing import TYPE_CHECKING

from prompt_toolkit.formatted_text import HTML

from tlens.engine.networks import NETWORKS, isSupportedNetwork, networkName
from tlens.engine.primitives import formatAddress, formatBalance

if TYPE_CHECKING:
    from tlens.cli import TruthLensApp


class ToolbarRenderer:
    def __init__(self, app: TruthLensApp) -> None:
        self.app = app

    def walletLine(self) -> str:
        wallet = self.app.wallet
        state = wallet.state

        if wallet.provider is None:
            return "wallet: no provider (set TLENS_WALLET_RPC)"

        if wallet.pending:
            return "wallet: waiting for approval..."

        if not state.connected:
            return "wallet: not connected"

        symbol = NETWORKS[state.chainId].symbol if isSupportedNetwork(state.chainId) else ""
        line = f"wallet: {formatAddress(state.account)} :: {formatBalance(state.balance)} {symbol}".rstrip()
        line += f" :: {networkName(state.chainId)}"

        if not isSupportedNetwork(state.chainId):
            line += " (unsupported, try 'network')"

        return line

    def render(self) -> HTML:
        state = self.app.wallet.state
        router = self.app.router
        page = router.path or "-"
        if router.requested:
            page += " (connect wallet)"

        now = datetime.datetime.now().strftime("%H:%M:%S")
        top = "{}  ::  page {}  ::  {}"
        args = [self.walletLine(), page, now]

        if err := state.lastError:
            top += "\n<b>{}</b>: {}"
            args += [err.kind.name, err.message]

        return HTML(top).format(*args)
