"""Network metadata for the chains the wallet may be switched to."""

from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Any, Final

from tlens.engine.primitives import toHexChainId


@dataclass(slots=True, frozen=True)
class NetworkConfig:
    chainId: int
    name: str
    symbol: str
    decimals: int
    rpcUrl: str
    blockExplorerUrl: str


BSC_MAINNET: Final = 56
BSC_TESTNET: Final = 97
ETHEREUM_MAINNET: Final = 1
ETHEREUM_GOERLI: Final = 5

# The dashboard expects the wallet to sit on the BSC testnet where the oracle lives.
PREFERRED_NETWORK: Final = BSC_TESTNET

NETWORKS: dict[int, NetworkConfig] = {
    BSC_MAINNET: NetworkConfig(
        BSC_MAINNET,
        "BSC Mainnet",
        "BNB",
        18,
        "https://bsc-dataseed.binance.org/",
        "https://bscscan.com/",
    ),
    BSC_TESTNET: NetworkConfig(
        BSC_TESTNET,
        "BSC Testnet",
        "BNB",
        18,
        "https://data-seed-prebsc-1-s1.binance.org:8545/",
        "https://testnet.bscscan.com/",
    ),
    ETHEREUM_MAINNET: NetworkConfig(
        ETHEREUM_MAINNET,
        "Ethereum Mainnet",
        "ETH",
        18,
        "https://mainnet.infura.io/v3/YOUR_PROJECT_ID",
        "https://etherscan.io/",
    ),
    ETHEREUM_GOERLI: NetworkConfig(
        ETHEREUM_GOERLI,
        "Goerli Testnet",
        "ETH",
        18,
        "https://goerli.infura.io/v3/YOUR_PROJECT_ID",
        "https://goerli.etherscan.io/",
    ),
}


def configureTestnetRpc(rpcUrl: str | None) -> None:
    """Replace the BSC testnet RPC endpoint used for wallet network-add requests."""
    if rpcUrl:
        NETWORKS[BSC_TESTNET] = replace(NETWORKS[BSC_TESTNET], rpcUrl=rpcUrl)


def networkName(chainId: int | None) -> str:
    if chainId is None:
        return "Not Connected"

    if network := NETWORKS.get(chainId):
        return network.name

    return f"Unknown Network ({chainId})"


def isSupportedNetwork(chainId: int | None) -> bool:
    return chainId in NETWORKS


def addChainParams(chainId: int) -> dict[str, Any]:
    """Build the 'wallet_addEthereumChain' request parameter for 'chainId'.

    Raises KeyError if we have no metadata for the network.
    """
    network = NETWORKS[chainId]
    return {
        "chainId": toHexChainId(chainId),
        "chainName": network.name,
        "nativeCurrency": {
            "name": network.symbol,
            "symbol": network.symbol,
            "decimals": network.decimals,
        },
        "rpcUrls": [network.rpcUrl],
        "blockExplorerUrls": [network.blockExplorerUrl],
    }


def explorerAddressUrl(chainId: int, address: str) -> str | None:
    if network := NETWORKS.get(chainId):
        return f"{network.blockExplorerUrl.rstrip('/')}/address/{address}"

    return None
