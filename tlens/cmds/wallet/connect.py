"""Commands: connect, disconnect, network

Category: Wallet
"""

from dataclasses import dataclass, field

from loguru import logger

from tlens.cmds.base import Op, UsageError, command
from tlens.engine.networks import NETWORKS, PREFERRED_NETWORK, explorerAddressUrl, networkName
from tlens.engine.primitives import fromHexChainId


@command(names=["connect"], category="Wallet")
@dataclass
class OpConnect(Op):
    """Connect your wallet (asks the wallet for account access)."""

    async def run(self):
        if self.wallet.state.connected:
            logger.info("Already connected as {}", self.wallet.state.account)
            return

        if err := await self.wallet.connect():
            logger.error("Connect failed: {}", err.message)
            return

        state = self.wallet.state
        if state.connected:
            logger.info("Connected: {}", explorerAddressUrl(state.chainId, state.account) or state.account)


@command(names=["disconnect"], category="Wallet")
@dataclass
class OpDisconnect(Op):
    """Forget the wallet connection and go back to the landing page."""

    async def run(self):
        self.wallet.disconnect()


@command(names=["network"], category="Wallet")
@dataclass
class OpNetwork(Op):
    """Switch the wallet network (default: BSC Testnet). 'network list' shows known networks."""

    chainId: int = field(init=False, default=PREFERRED_NETWORK)
    listing: bool = field(init=False, default=False)

    def setup(self):
        if not self.args:
            return

        if self.args[0] == "list":
            self.listing = True
            return

        try:
            self.chainId = fromHexChainId(self.args[0])
        except ValueError as e:
            raise UsageError(f"Not a chain id: {self.args[0]}") from e

    async def run(self):
        if self.listing:
            current = self.wallet.state.chainId
            for chainId, net in NETWORKS.items():
                mark = "*" if chainId == current else " "
                logger.info("{} {:>4} {} ({})", mark, chainId, net.name, net.symbol)

            return

        logger.info("Switching wallet to {}...", networkName(self.chainId))
        if err := await self.wallet.switchNetwork(self.chainId):
            logger.error("{}", err.message)
