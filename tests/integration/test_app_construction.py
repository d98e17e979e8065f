"""Smoke tests for TruthLensApp construction and command dispatch.

These catch missing imports, missing slot declarations, and broken
__post_init__ wiring that unit tests on the engine modules miss.
"""

import asyncio
from unittest.mock import patch

import httpx
import pytest
from conftest import FakeBackend, FakeProvider

from tlens.engine.protocols import Navigator
from tlens.engine.views import DashboardView, LandingView, StatusView
from tlens.helpers import Settings


@pytest.fixture
def patched():
    with patch("tlens.cli.TruthLensApp.setupLogging"), patch("tlens.cli.set_title"):
        yield


def makeApp(provider=None, backend=None):
    from tlens.cli import TruthLensApp

    return TruthLensApp(
        settings=Settings(backendUrl="http://backend.test"),
        provider=provider,
        cache={},
        transport=httpx.MockTransport(backend or FakeBackend()),
    )


class TestAppConstruction:
    def test_engine_modules_initialized(self, patched):
        app = makeApp(FakeProvider())

        assert app.store is not None
        assert app.wallet.provider is app.provider
        assert app.wallet.navigator is app
        assert isinstance(app, Navigator)
        assert app.gateway.baseUrl == "http://backend.test"
        assert app.router.ctx.theme is app.theme
        assert app.toolbar is not None
        assert app.tasks == {}

    def test_without_wallet_rpc_there_is_no_provider(self, patched):
        app = makeApp()
        assert app.provider is None
        assert "no provider" in app.toolbar.walletLine()

    def test_wallet_rpc_builds_json_rpc_provider(self, patched):
        from tlens.cli import TruthLensApp
        from tlens.engine.provider import JsonRpcProvider

        app = TruthLensApp(
            settings=Settings(walletRpc="http://127.0.0.1:8545"),
            cache={},
        )
        assert isinstance(app.provider, JsonRpcProvider)


class TestAppFlow:
    @pytest.mark.asyncio
    async def test_prepare_opens_landing(self, patched):
        backend = FakeBackend()
        app = makeApp(FakeProvider(), backend)
        try:
            await app.prepare()
            assert isinstance(app.router.current, LandingView)
            assert backend.hits("GET /health") == 1
        finally:
            await app.stop()

    @pytest.mark.asyncio
    async def test_commands_run_in_order(self, patched):
        app = makeApp(FakeProvider())
        try:
            await app.prepare()
            await app.buildAndRun("connect; go /dashboard/status")

            assert app.wallet.state.connected
            assert isinstance(app.router.current, StatusView)
        finally:
            await app.stop()

    @pytest.mark.asyncio
    async def test_bad_command_does_not_stop_the_line(self, patched):
        app = makeApp(FakeProvider())
        try:
            await app.buildAndRun("frobnicate; loglevel; quit; connect")

            assert app.exiting
            # quit ends the line before 'connect'
            assert not app.wallet.state.connected
        finally:
            await app.stop()

    @pytest.mark.asyncio
    async def test_protected_page_without_wallet_shows_prompt(self, patched):
        backend = FakeBackend()
        app = makeApp(FakeProvider(), backend)
        try:
            await app.buildAndRun("markets")
            assert app.router.requested == "/dashboard/markets-hub"
            assert backend.hits("GET /markets") == 0
        finally:
            await app.stop()

    @pytest.mark.asyncio
    async def test_disconnect_returns_to_landing(self, patched):
        app = makeApp(FakeProvider())
        try:
            await app.buildAndRun("connect; go /dashboard")
            assert isinstance(app.router.current, DashboardView)

            await app.buildAndRun("disconnect")
            for _ in range(50):
                if isinstance(app.router.current, LandingView):
                    break
                await asyncio.sleep(0.01)

            assert isinstance(app.router.current, LandingView)
        finally:
            await app.stop()
