"""Shared test fixtures for the tlens test suite.

FakeProvider is a test double for an injected EIP-1193 wallet, allowing
headless testing of the wallet session manager without a real wallet
or node. Any request can be made to fail or to block until released.
"""

import asyncio
from typing import Any

import httpx
import pytest

from tlens.engine.gateway import RemoteDataGateway
from tlens.engine.provider import ProviderError, ProviderEvents
from tlens.engine.store import ClientStore
from tlens.engine.views import ViewContext
from tlens.engine.wallet import WalletSessionManager

ALICE = "0xAbCdEf0123456789aBcDeF0123456789AbCdEf01"
BOB = "0x1111111111111111111111111111111111111111"

ONE_ETHER = 10**18


class FakeProvider(ProviderEvents):
    """Test double for an injected wallet.

    'accounts' is what the wallet grants on eth_requestAccounts; 'authorized'
    is what eth_accounts reports without prompting.
    """

    def __init__(self, accounts: list[str] | None = None, chainId: int = 97):
        super().__init__()
        self.accounts = list(accounts if accounts is not None else [ALICE])
        self.authorized: list[str] = []
        self.chainId = chainId
        self.balances: dict[str, int] = {ALICE.lower(): ONE_ETHER + ONE_ETHER // 2, BOB.lower(): 2 * ONE_ETHER}
        self.knownChains = {56, 97, 1, 5}

        self.calls: list[tuple[str, Any]] = []

        # method (or (method, first param)) -> exception raised by the request
        self.failures: dict[Any, BaseException] = {}

        # method (or (method, first param)) -> event the request waits on
        self.gates: dict[Any, asyncio.Event] = {}

    def gate(self, key: Any) -> asyncio.Event:
        self.gates[key] = gate = asyncio.Event()
        return gate

    def methods(self) -> list[str]:
        return [method for method, _ in self.calls]

    async def request(self, method: str, params: list[Any] | None = None) -> Any:
        self.calls.append((method, params))
        first = params[0] if params and isinstance(params[0], str) else None

        for key in ((method, first), method):
            if gate := self.gates.get(key):
                await gate.wait()

        for key in ((method, first), method):
            if err := self.failures.get(key):
                raise err

        match method:
            case "eth_accounts":
                return list(self.authorized)
            case "eth_requestAccounts":
                self.authorized = list(self.accounts)
                return list(self.accounts)
            case "eth_chainId":
                return hex(self.chainId)
            case "eth_getBalance":
                return hex(self.balances.get(params[0].lower(), 0))
            case "wallet_switchEthereumChain":
                chainId = int(params[0]["chainId"], 16)
                if chainId not in self.knownChains:
                    raise ProviderError(4902, "Unrecognized chain ID")

                self.chainId = chainId
                return None
            case "wallet_addEthereumChain":
                self.knownChains.add(int(params[0]["chainId"], 16))
                return None

        raise ProviderError(-32601, f"Method not found: {method}")


class FakeNavigator:
    """Records what the wallet manager asked the host to do."""

    def __init__(self):
        self.paths: list[str] = []
        self.reloads = 0

    def navigate(self, path: str) -> None:
        self.paths.append(path)

    def reload(self) -> None:
        self.reloads += 1


async def settle(rounds: int = 10) -> None:
    """Let scheduled tasks run."""
    for _ in range(rounds):
        await asyncio.sleep(0)


def mockGateway(handler) -> RemoteDataGateway:
    return RemoteDataGateway("http://backend.test", transport=httpx.MockTransport(handler))


# ── sample backend payloads ──

MARKETS = [
    {
        "market_id": "btc-100k",
        "question": "Will BTC close above $100k this year?",
        "current_price": 0.62,
        "name": "BTC 100k",
        "price_24h": [0.6, 0.61, 0.62],
        "volume_24h": [1000, 1500, 1200],
        "market_cap": 250000,
        "change_24h": 3.3,
    },
    {
        "market_id": "eth-etf",
        "question": "Will an ETH ETF launch?",
        "current_price": 0.41,
    },
]

STATUS = {
    "total_markets": 2,
    "active_analyses": 1,
    "total_attestations": 14,
    "blockchain_connected": True,
    "last_update": 1_700_000_000,
}

HEALTH = {
    "status": "healthy",
    "timestamp": 1_700_000_000,
    "services": {"api": "online", "markets": "online", "oracle": "online", "analysis": "online"},
    "metrics": {"total_markets": 2, "active_analyses": 1, "blockchain_connected": True, "last_update": 1_700_000_000},
}

ANALYTICS = {
    "markets_analyzed": 40,
    "success_rate": 97.5,
    "avg_confidence": 0.82,
    "total_attestations": 14,
    "performance_metrics": {"response_time": 0.4, "uptime": 99.9, "error_rate": 0.01, "throughput": 12},
    "time_series": [{"timestamp": 1_700_000_000, "markets_analyzed": 4, "confidence": 0.8, "success_rate": 100}],
}

ANALYSIS = {
    "market_id": "btc-100k",
    "credibility_score": 0.71,
    "risk_index": 0.22,
    "confidence": 0.9,
    "links_analyzed": 12,
    "metadata": {"model": "gpt"},
    "tx_hash": "0xdeadbeef",
}

ORACLE = {
    "market_id": "btc-100k",
    "cred_score": 0.7,
    "risk_index": 0.2,
    "timestamp": 1_700_000_000,
    "meta_uri": "ipfs://meta",
    "signer": BOB,
}


def backendRoutes(**overrides) -> dict[str, Any]:
    routes: dict[str, Any] = {
        "GET /markets": MARKETS,
        "GET /status": STATUS,
        "GET /health": HEALTH,
        "GET /analytics": ANALYTICS,
        "GET /analytics/history": {"history": []},
        "GET /analytics/blockchain": {"attestations": []},
        "GET /analyze/btc-100k": ANALYSIS,
        "GET /oracle/btc-100k": ORACLE,
        "GET /markets/btc-100k/history": {"market_id": "btc-100k", "price_history": [], "analysis_history": []},
        "GET /ai/status": {"success": True, "status": "operational", "enhanced_features_enabled": True},
        "GET /ai/performance": {"response_time_avg": 1.2, "cache_hit_rate": 0.5},
        "GET /ai/cache/stats": {"cache_size": 10, "memory_usage": "1MB"},
        "GET /ai/config": {"enhanced_features_enabled": True, "config": {"mode": "fast"}},
        "POST /ai/cache/clear": {"success": True},
        "POST /ai/queue/flush": {"success": True},
        "GET /settings": {"privacy": {"shareAnalytics": False}},
        "POST /settings": {"success": True},
        "POST /settings/api-key": {"api_key": "tl-123"},
        "POST /analyze": {"answer": "Unlikely", "confidence": 0.6, "sources": ["https://example.com"]},
        "POST /trigger-analysis": {"status": "started", "message": "Analysis triggered"},
    }
    routes.update(overrides)
    return routes


class FakeBackend:
    """httpx.MockTransport handler serving canned JSON per "METHOD /path".

    A route value may be an int (status code with no body), an exception
    class (raised as a transport error), or any JSON-able payload.
    """

    def __init__(self, **overrides):
        self.routes = backendRoutes(**overrides)
        self.requests: list[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        route = self.routes.get(f"{request.method} {request.url.path}")

        if route is None:
            return httpx.Response(404, json={"detail": "Not Found"})

        if isinstance(route, int):
            return httpx.Response(route, json={"detail": "boom"})

        if isinstance(route, type) and issubclass(route, Exception):
            raise route("simulated failure", request=request)

        return httpx.Response(200, json=route)

    def hits(self, route: str) -> int:
        method, path = route.split(" ", 1)
        return sum(1 for r in self.requests if r.method == method and r.url.path == path)


# ── Fixtures ──


@pytest.fixture
def provider() -> FakeProvider:
    return FakeProvider()


@pytest.fixture
def store() -> ClientStore:
    return ClientStore({})


@pytest.fixture
def navigator() -> FakeNavigator:
    return FakeNavigator()


@pytest.fixture
def manager(provider, store, navigator) -> WalletSessionManager:
    return WalletSessionManager(provider, store, navigator)


@pytest.fixture
def backend() -> FakeBackend:
    return FakeBackend()


@pytest.fixture
def gateway(backend) -> RemoteDataGateway:
    return mockGateway(backend)


@pytest.fixture
def ctx(gateway, manager) -> ViewContext:
    return ViewContext(gateway, manager)
