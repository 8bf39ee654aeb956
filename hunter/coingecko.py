"""CoinGecko API integration for token lookup and prices.

Used for symbol -> contract address resolution and current USD prices. A 404
or an empty body is a normal "not listed" answer, so every method returns
None rather than raising when CoinGecko has nothing to say.
"""

from __future__ import annotations

from typing import Any, Dict, Optional

import httpx

from hunter.utils.logging import get_logger

logger = get_logger(__name__)

DEFAULT_BASE_URL = "https://api.coingecko.com/api/v3"
PLATFORM = "ethereum"


class CoinGeckoClient:
    """Thin async wrapper over the CoinGecko REST API."""

    def __init__(
        self,
        api_key: Optional[str] = None,
        base_url: str = DEFAULT_BASE_URL,
        client: Optional[httpx.AsyncClient] = None,
        timeout: float = 10.0,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self._api_key = api_key
        self._client = client or httpx.AsyncClient(timeout=timeout)
        self._owns_client = client is None
        self._timeout = timeout

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()

    async def _get(self, path: str, params: Optional[Dict[str, Any]] = None) -> Any:
        headers = {"Accept": "application/json"}
        if self._api_key:
            headers["x-cg-demo-api-key"] = self._api_key

        url = f"{self.base_url}{path}"
        try:
            response = await self._client.get(
                url, params=params, headers=headers, timeout=self._timeout
            )
        except httpx.HTTPError as exc:
            logger.warning("coingecko_request_failed", path=path, error=str(exc))
            return None

        if response.status_code == 404:
            logger.debug("coingecko_not_found", path=path)
            return None
        if not response.is_success:
            logger.warning(
                "coingecko_http_error", path=path, status=response.status_code
            )
            return None
        if not response.content:
            return None

        try:
            return response.json()
        except ValueError as exc:
            logger.warning("coingecko_invalid_json", path=path, error=str(exc))
            return None

    async def search_token(self, query: str) -> Optional[Dict[str, Any]]:
        """Search by symbol and return the coin with its Ethereum contract."""
        data = await self._get("/search", {"query": query})
        if not isinstance(data, dict):
            return None

        wanted = query.lower()
        coins = [c for c in data.get("coins") or [] if isinstance(c, dict)]
        match = next(
            (c for c in coins if c.get("id") and str(c.get("symbol", "")).lower() == wanted),
            None,
        )
        if match is None:
            return None

        details = await self.get_token_details(match["id"])
        if not details:
            return None

        return {
            "id": match["id"],
            "symbol": str(match.get("symbol", query)).upper(),
            "name": match.get("name") or query,
            "contractAddress": details.get("contractAddress"),
            "image": match.get("large") or match.get("thumb"),
        }

    async def get_token_details(self, coin_id: str) -> Optional[Dict[str, Any]]:
        """Coin details by CoinGecko id: Ethereum contract address and price."""
        data = await self._get(
            f"/coins/{coin_id}",
            {
                "localization": "false",
                "tickers": "false",
                "market_data": "true",
                "community_data": "false",
                "developer_data": "false",
                "sparkline": "false",
            },
        )
        if not isinstance(data, dict):
            return None

        platforms = data.get("platforms") or {}
        market = data.get("market_data") or {}
        image = data.get("image") or {}
        return {
            "contractAddress": platforms.get(PLATFORM) or None,
            "currentPrice": (market.get("current_price") or {}).get("usd"),
            "image": image.get("large") or image.get("small"),
            "symbol": str(data.get("symbol") or "").upper() or None,
            "name": data.get("name"),
        }

    async def get_token_price_by_address(self, contract_address: str) -> Optional[float]:
        """Current USD price for an Ethereum token contract."""
        data = await self._get(
            f"/simple/token_price/{PLATFORM}",
            {"contract_addresses": contract_address, "vs_currencies": "usd"},
        )
        if not isinstance(data, dict):
            return None
        price = (data.get(contract_address.lower()) or {}).get("usd")
        return float(price) if isinstance(price, (int, float)) else None

    async def get_token_metadata_by_address(
        self, contract_address: str
    ) -> Optional[Dict[str, Any]]:
        """Name, symbol, logo and price for an Ethereum token contract."""
        data = await self._get(f"/coins/{PLATFORM}/contract/{contract_address}")
        if not isinstance(data, dict):
            return None
        image = data.get("image") or {}
        return {
            "name": data.get("name"),
            "symbol": str(data.get("symbol") or "").upper() or None,
            "logo": image.get("large") or image.get("small"),
            "currentPrice": ((data.get("market_data") or {}).get("current_price") or {}).get(
                "usd"
            ),
        }


__all__ = ["CoinGeckoClient"]
