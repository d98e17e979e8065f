"""Tests for tlens.engine.provider: the wallet provider boundary."""

import asyncio
import json

import httpx
import pytest
from conftest import settle

from tlens.engine.provider import (
    ACCOUNTS_CHANGED,
    JsonRpcProvider,
    ProviderError,
    ProviderEvents,
    WalletProvider,
    getBalance,
    getChainId,
    signMessage,
    walletErrorMessage,
)


def rpcProvider(handler) -> JsonRpcProvider:
    client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    return JsonRpcProvider("http://node.test", client=client)


def reply(result=None, error=None):
    def handler(request: httpx.Request) -> httpx.Response:
        body = json.loads(request.content)
        out = {"jsonrpc": "2.0", "id": body["id"]}
        if error:
            out["error"] = error
        else:
            out["result"] = result(body) if callable(result) else result

        return httpx.Response(200, json=out)

    return handler


class TestJsonRpcProvider:
    def test_matches_protocol(self):
        assert isinstance(JsonRpcProvider("http://node.test"), WalletProvider)

    @pytest.mark.asyncio
    async def test_request_body_and_result(self):
        seen = []

        def result(body):
            seen.append(body)
            return "0x61"

        provider = rpcProvider(reply(result))
        assert await getChainId(provider) == 97
        assert seen[0]["jsonrpc"] == "2.0"
        assert seen[0]["method"] == "eth_chainId"
        assert seen[0]["params"] == []
        await provider.aclose()

    @pytest.mark.asyncio
    async def test_request_ids_increase(self):
        ids = []
        provider = rpcProvider(reply(lambda body: ids.append(body["id"])))
        await provider.request("eth_accounts")
        await provider.request("eth_accounts")
        assert ids == [1, 2]

    @pytest.mark.asyncio
    async def test_rpc_error_becomes_provider_error(self):
        provider = rpcProvider(reply(error={"code": 4001, "message": "User rejected"}))
        with pytest.raises(ProviderError) as e:
            await provider.request("eth_requestAccounts")

        assert e.value.code == 4001
        assert e.value.message == "User rejected"

    @pytest.mark.asyncio
    async def test_unreachable_is_disconnected(self):
        def handler(request):
            raise httpx.ConnectError("refused", request=request)

        provider = rpcProvider(handler)
        with pytest.raises(ProviderError) as e:
            await provider.request("eth_accounts")

        assert e.value.code == 4900

    @pytest.mark.asyncio
    async def test_http_error_status(self):
        provider = rpcProvider(lambda request: httpx.Response(502, text="bad gateway"))
        with pytest.raises(ProviderError) as e:
            await provider.request("eth_accounts")

        assert e.value.code == 4900

    @pytest.mark.asyncio
    async def test_invalid_json(self):
        provider = rpcProvider(lambda request: httpx.Response(200, text="<html>"))
        with pytest.raises(ProviderError) as e:
            await provider.request("eth_accounts")

        assert e.value.code is None

    @pytest.mark.asyncio
    async def test_balance_is_formatted(self):
        provider = rpcProvider(reply(hex(3 * 10**18)))
        assert await getBalance(provider, "0xabc") == "3.0"

    @pytest.mark.asyncio
    async def test_sign_message_hex_encodes(self):
        seen = []
        provider = rpcProvider(reply(lambda body: seen.append(body["params"]) or "0xsig"))
        assert await signMessage(provider, "0xabc", "hi") == "0xsig"
        assert seen[0] == ["0x6869", "0xabc"]


class TestProviderEvents:
    def test_emit_calls_listeners(self):
        events = ProviderEvents()
        got = []
        events.on(ACCOUNTS_CHANGED, got.append)

        assert events.emit(ACCOUNTS_CHANGED, ["0xabc"]) == 1
        assert got == [["0xabc"]]

    def test_remove_listener(self):
        events = ProviderEvents()
        got = []
        events.on(ACCOUNTS_CHANGED, got.append)
        events.removeListener(ACCOUNTS_CHANGED, got.append)
        events.removeListener(ACCOUNTS_CHANGED, got.append)

        assert events.emit(ACCOUNTS_CHANGED, []) == 0
        assert got == []

    @pytest.mark.asyncio
    async def test_async_listeners_are_scheduled(self):
        events = ProviderEvents()
        got = []

        async def listener(accounts):
            got.append(accounts)

        events.on(ACCOUNTS_CHANGED, listener)
        events.emit(ACCOUNTS_CHANGED, ["0xabc"])
        await asyncio.sleep(0)
        assert got == [["0xabc"]]

    @pytest.mark.asyncio
    async def test_async_listener_tasks_are_held_until_done(self):
        events = ProviderEvents()
        release = asyncio.Event()

        async def slow(accounts):
            await release.wait()

        async def broken(accounts):
            raise RuntimeError("listener bug")

        events.on(ACCOUNTS_CHANGED, slow)
        events.on(ACCOUNTS_CHANGED, broken)
        events.emit(ACCOUNTS_CHANGED, ["0xabc"])
        assert len(events.pending) == 2

        await settle()
        assert len(events.pending) == 1

        release.set()
        await asyncio.gather(*events.pending)
        assert events.pending == set()


@pytest.mark.parametrize(
    "error,message",
    [
        (ProviderError(4001, "whatever"), "Connection rejected by user"),
        (ProviderError(4902, "whatever"), "Network not supported by wallet"),
        (ProviderError(-32002, "whatever"), "Connection request already pending"),
        (ProviderError(None, "User rejected the request."), "User rejected the request"),
        (ProviderError(-32603, "internal"), "internal"),
        (RuntimeError(""), "An unknown error occurred"),
    ],
)
def test_wallet_error_message(error, message):
    assert walletErrorMessage(error) == message
