import json

import httpx
import pytest

from hunter.alchemy_client import AlchemyProvider, AlchemyRestClient, JsonRpcTransport
from hunter.config import Settings
from hunter.errors import RpcError

from tests.helpers import BAYC, USDC, VITALIK

RPC_URL = "https://eth-mainnet.g.alchemy.com/v2/test-key"


def _transport(handler, **kwargs):
    delays = []

    async def fake_sleep(delay: float) -> None:
        delays.append(delay)

    http = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    return JsonRpcTransport(RPC_URL, client=http, sleep=fake_sleep, **kwargs), delays


@pytest.mark.asyncio
async def test_rpc_call_sends_jsonrpc_envelope() -> None:
    bodies = []

    def handler(request: httpx.Request) -> httpx.Response:
        bodies.append(json.loads(request.content))
        return httpx.Response(200, json={"jsonrpc": "2.0", "id": 1, "result": "0x10"})

    transport, delays = _transport(handler)
    assert await transport.call("eth_getBalance", [VITALIK, "latest"]) == "0x10"

    body = bodies[0]
    assert body["jsonrpc"] == "2.0"
    assert body["method"] == "eth_getBalance"
    assert body["params"] == [VITALIK, "latest"]
    assert isinstance(body["id"], str)
    assert delays == []


@pytest.mark.asyncio
async def test_rpc_retries_with_linear_backoff() -> None:
    responses = [
        httpx.Response(503, text="busy"),
        httpx.Response(200, json={"error": {"code": -32000, "message": "rate limited"}}),
        httpx.Response(200, json={"result": "0x1"}),
    ]

    def handler(request: httpx.Request) -> httpx.Response:
        return responses.pop(0)

    transport, delays = _transport(handler)
    assert await transport.call("eth_getTransactionCount", [VITALIK, "latest"]) == "0x1"
    assert delays == [1.0, 2.0]


@pytest.mark.asyncio
async def test_rpc_raises_last_error_after_exhausting_retries() -> None:
    calls = []

    def handler(request: httpx.Request) -> httpx.Response:
        calls.append(request)
        return httpx.Response(200, json={"error": {"code": -32602, "message": "invalid params"}})

    transport, delays = _transport(handler)
    with pytest.raises(RpcError) as excinfo:
        await transport.call("eth_getBalance", ["nope"])

    assert excinfo.value.code == -32602
    assert len(calls) == 3
    assert delays == [1.0, 2.0]


@pytest.mark.asyncio
async def test_rpc_without_retries_fails_fast() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(500)

    transport, delays = _transport(handler, max_retries=0)
    with pytest.raises(RpcError) as excinfo:
        await transport.call("eth_getBalance", [VITALIK, "latest"])
    assert excinfo.value.status_code == 500
    assert delays == []


@pytest.mark.asyncio
async def test_rest_token_balances_normalized() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        assert request.url.path.endswith("/assets/tokens/balances/by-address")
        body = json.loads(request.content)
        assert body["addresses"] == [{"address": VITALIK, "networks": ["eth-mainnet"]}]
        return httpx.Response(
            200,
            json={
                "data": {
                    "tokens": [
                        {"network": "eth-mainnet", "tokenAddress": USDC, "tokenBalance": "0x05"},
                        {"network": "eth-mainnet", "tokenAddress": None, "tokenBalance": "0x01"},
                    ]
                }
            },
        )

    rest = AlchemyRestClient(
        "https://nft", "https://data", client=httpx.AsyncClient(transport=httpx.MockTransport(handler))
    )
    result = await rest.get_token_balances(VITALIK)
    assert result == {
        "address": VITALIK,
        "tokenBalances": [{"contractAddress": USDC, "tokenBalance": "0x05"}],
    }


@pytest.mark.asyncio
async def test_rest_token_balances_without_list_is_an_error() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, json={"data": {}})

    rest = AlchemyRestClient(
        "https://nft", "https://data", client=httpx.AsyncClient(transport=httpx.MockTransport(handler))
    )
    with pytest.raises(RpcError):
        await rest.get_token_balances(VITALIK)


@pytest.mark.asyncio
async def test_rest_nfts_for_owner_sends_contract_filter() -> None:
    seen = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(200, json={"ownedNfts": [], "totalCount": 0})

    rest = AlchemyRestClient(
        "https://nft", "https://data", client=httpx.AsyncClient(transport=httpx.MockTransport(handler))
    )
    await rest.get_nfts_for_owner(
        VITALIK, contractAddresses=[BAYC], withMetadata=True, nested={"ignored": 1}
    )

    params = seen[0].url.params
    assert seen[0].url.path.endswith("/getNFTsForOwner")
    assert params["owner"] == VITALIK
    assert params.get_list("contractAddresses[]") == [BAYC]
    assert params["withMetadata"] == "true"
    assert "nested" not in params


def test_provider_from_settings_builds_urls() -> None:
    settings = Settings(
        ALCHEMY_API_KEY="k" * 32,
        GEMINI_API_KEY="gemini",
        COINGECKO_API_KEY="coingecko",
        RPC_MAX_RETRIES=1,
        _env_file=None,
    )
    provider = AlchemyProvider.from_settings(settings)

    assert provider.rpc.url == f"https://eth-mainnet.g.alchemy.com/v2/{'k' * 32}"
    assert provider.rpc.max_retries == 1
    assert provider.rest.nft_url == f"https://eth-mainnet.g.alchemy.com/nft/v3/{'k' * 32}"
    assert provider.rest.data_url == f"https://api.g.alchemy.com/data/v1/{'k' * 32}"
