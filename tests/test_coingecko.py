import httpx
import pytest

from hunter.coingecko import CoinGeckoClient

from tests.helpers import USDC

PEPE = "0x6982508145454ce325ddbe47a25d4ec3d2311933"


def _client(handler) -> CoinGeckoClient:
    http = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    return CoinGeckoClient(api_key="demo-key", client=http)


@pytest.mark.asyncio
async def test_search_token_resolves_ethereum_contract() -> None:
    seen = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        if request.url.path.endswith("/search"):
            return httpx.Response(
                200,
                json={
                    "coins": [
                        {"id": "pepe-other", "symbol": "PEPEX", "name": "Other"},
                        {"id": "pepe", "symbol": "pepe", "name": "Pepe", "large": "logo.png"},
                    ]
                },
            )
        if request.url.path.endswith("/coins/pepe"):
            return httpx.Response(
                200,
                json={
                    "symbol": "pepe",
                    "name": "Pepe",
                    "platforms": {"ethereum": PEPE},
                    "market_data": {"current_price": {"usd": 0.00001}},
                    "image": {"large": "logo.png"},
                },
            )
        return httpx.Response(404)

    client = _client(handler)
    result = await client.search_token("PEPE")

    assert result == {
        "id": "pepe",
        "symbol": "PEPE",
        "name": "Pepe",
        "contractAddress": PEPE,
        "image": "logo.png",
    }
    assert all(r.headers["x-cg-demo-api-key"] == "demo-key" for r in seen)


@pytest.mark.asyncio
async def test_not_found_and_errors_return_none() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        if request.url.path.endswith("/search"):
            return httpx.Response(200, json={"coins": []})
        if "contract" in request.url.path:
            return httpx.Response(404)
        return httpx.Response(500, text="down")

    client = _client(handler)

    assert await client.search_token("NOPE") is None
    assert await client.get_token_metadata_by_address(USDC) is None
    assert await client.get_token_details("anything") is None


@pytest.mark.asyncio
async def test_transport_error_returns_none() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("offline", request=request)

    client = _client(handler)
    assert await client.get_token_price_by_address(USDC) is None


@pytest.mark.asyncio
async def test_token_price_by_address() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        assert request.url.params["contract_addresses"] == USDC
        return httpx.Response(200, json={USDC.lower(): {"usd": 1.0}})

    client = _client(handler)
    assert await client.get_token_price_by_address(USDC) == 1.0
