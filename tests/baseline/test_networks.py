"""Tests for tlens.engine.networks: chain metadata."""

import pytest

from tlens.engine import networks
from tlens.engine.networks import (
    BSC_TESTNET,
    NETWORKS,
    PREFERRED_NETWORK,
    addChainParams,
    configureTestnetRpc,
    explorerAddressUrl,
    isSupportedNetwork,
    networkName,
)


def test_preferred_is_bsc_testnet():
    assert PREFERRED_NETWORK == 97
    assert NETWORKS[PREFERRED_NETWORK].name == "BSC Testnet"
    assert NETWORKS[PREFERRED_NETWORK].blockExplorerUrl == "https://testnet.bscscan.com/"


@pytest.mark.parametrize(
    "chainId,name",
    [(56, "BSC Mainnet"), (97, "BSC Testnet"), (1, "Ethereum Mainnet"), (5, "Goerli Testnet")],
)
def test_network_names(chainId, name):
    assert networkName(chainId) == name
    assert isSupportedNetwork(chainId)


def test_unknown_network():
    assert networkName(1234) == "Unknown Network (1234)"
    assert networkName(None) == "Not Connected"
    assert not isSupportedNetwork(1234)
    assert not isSupportedNetwork(None)


def test_add_chain_params():
    params = addChainParams(56)
    assert params == {
        "chainId": "0x38",
        "chainName": "BSC Mainnet",
        "nativeCurrency": {"name": "BNB", "symbol": "BNB", "decimals": 18},
        "rpcUrls": ["https://bsc-dataseed.binance.org/"],
        "blockExplorerUrls": ["https://bscscan.com/"],
    }


def test_add_chain_params_unknown():
    with pytest.raises(KeyError):
        addChainParams(31337)


def test_explorer_url():
    assert explorerAddressUrl(97, "0xabc") == "https://testnet.bscscan.com/address/0xabc"
    assert explorerAddressUrl(31337, "0xabc") is None


def test_configure_testnet_rpc(monkeypatch):
    monkeypatch.setattr(networks, "NETWORKS", dict(NETWORKS))

    configureTestnetRpc("http://localhost:8545")
    assert networks.NETWORKS[BSC_TESTNET].rpcUrl == "http://localhost:8545"
    assert networks.addChainParams(BSC_TESTNET)["rpcUrls"] == ["http://localhost:8545"]

    # empty keeps the current endpoint
    configureTestnetRpc("")
    assert networks.NETWORKS[BSC_TESTNET].rpcUrl == "http://localhost:8545"
