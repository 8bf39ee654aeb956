"""Alchemy clients: direct JSON-RPC transport and the enhanced REST APIs."""

from __future__ import annotations

import asyncio
import uuid
from typing import Any, Awaitable, Callable, Dict, List, Optional, Sequence

import httpx

from hunter.errors import RpcError
from hunter.utils.logging import get_logger

logger = get_logger(__name__)

JSONRPC_VERSION = "2.0"
DEFAULT_TIMEOUT_SECONDS = 10.0
DEFAULT_MAX_RETRIES = 2
DEFAULT_BACKOFF_SECONDS = 1.0


class JsonRpcTransport:
    """JSON-RPC 2.0 over HTTP POST with bounded linear-backoff retries.

    A non-2xx status, a transport failure, or an ``error`` member in the
    response is retried up to ``max_retries`` more times; attempt N waits
    ``N * backoff_seconds`` before the next one. The last error is raised
    once retries are exhausted.
    """

    def __init__(
        self,
        url: str,
        client: Optional[httpx.AsyncClient] = None,
        timeout: float = DEFAULT_TIMEOUT_SECONDS,
        max_retries: int = DEFAULT_MAX_RETRIES,
        backoff_seconds: float = DEFAULT_BACKOFF_SECONDS,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
    ) -> None:
        self.url = url
        self._client = client or httpx.AsyncClient(timeout=timeout)
        self._owns_client = client is None
        self.timeout = timeout
        self.max_retries = max_retries
        self.backoff_seconds = backoff_seconds
        self._sleep = sleep

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()

    async def call(self, method: str, params: Sequence[Any]) -> Any:
        """Invoke ``method`` and return its ``result`` member."""
        attempts = self.max_retries + 1
        last_error: Optional[RpcError] = None
        for attempt in range(1, attempts + 1):
            try:
                return await self._send(method, list(params))
            except RpcError as exc:
                last_error = exc
                if attempt >= attempts:
                    break
                delay = attempt * self.backoff_seconds
                logger.warning(
                    "rpc_retry",
                    method=method,
                    attempt=attempt,
                    delay=delay,
                    error=str(exc),
                )
                await self._sleep(delay)

        logger.error("rpc_failed", method=method, attempts=attempts, error=str(last_error))
        raise last_error

    async def _send(self, method: str, params: List[Any]) -> Any:
        message: Dict[str, Any] = {
            "jsonrpc": JSONRPC_VERSION,
            "id": str(uuid.uuid4()),
            "method": method,
            "params": params,
        }
        try:
            response = await self._client.post(
                self.url,
                json=message,
                headers={"Content-Type": "application/json"},
                timeout=self.timeout,
            )
        except httpx.HTTPError as exc:
            raise RpcError(f"{method} transport error: {exc}", method=method) from exc

        if not response.is_success:
            raise RpcError(
                f"{method} failed with HTTP {response.status_code}",
                method=method,
                status_code=response.status_code,
            )

        try:
            payload = response.json()
        except ValueError as exc:
            raise RpcError(f"{method} returned invalid JSON", method=method) from exc

        if not isinstance(payload, dict):
            raise RpcError(f"{method} returned a non-object payload", method=method)

        if payload.get("error") is not None:
            error_obj = payload["error"]
            message_text = ""
            code = None
            if isinstance(error_obj, dict):
                message_text = error_obj.get("message") or ""
                code = error_obj.get("code")
            raise RpcError(
                message_text or str(error_obj),
                method=method,
                code=code,
                data=error_obj,
            )

        if "result" not in payload:
            raise RpcError(f"{method} response has no result", method=method)
        return payload["result"]


def _query_params(options: Dict[str, Any]) -> Dict[str, Any]:
    """Keep only options that can be sent as query-string values."""
    params: Dict[str, Any] = {}
    for key, value in options.items():
        if isinstance(value, bool):
            params[key] = str(value).lower()
        elif isinstance(value, (str, int, float)):
            params[key] = value
        elif isinstance(value, list) and all(isinstance(v, (str, int)) for v in value):
            params[f"{key}[]"] = value
    return params


class AlchemyRestClient:
    """Alchemy's higher-level REST APIs (NFT v3 and Portfolio token balances)."""

    def __init__(
        self,
        nft_url: str,
        data_url: str,
        network: str = "eth-mainnet",
        client: Optional[httpx.AsyncClient] = None,
        timeout: float = DEFAULT_TIMEOUT_SECONDS,
    ) -> None:
        self.nft_url = nft_url.rstrip("/")
        self.data_url = data_url.rstrip("/")
        self.network = network
        self._client = client or httpx.AsyncClient(timeout=timeout)
        self._owns_client = client is None
        self.timeout = timeout

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()

    async def _request(self, name: str, method: str, url: str, **kwargs: Any) -> Any:
        response = await self._client.request(method, url, timeout=self.timeout, **kwargs)
        if not response.is_success:
            raise RpcError(
                f"{name} failed with HTTP {response.status_code}",
                method=name,
                status_code=response.status_code,
            )
        try:
            return response.json()
        except ValueError as exc:
            raise RpcError(f"{name} returned invalid JSON", method=name) from exc

    async def get_token_balances(self, address: str) -> Dict[str, Any]:
        """ERC-20 balances via the Portfolio API, as ``{address, tokenBalances}``."""
        payload = await self._request(
            "getTokenBalances",
            "POST",
            f"{self.data_url}/assets/tokens/balances/by-address",
            json={
                "addresses": [{"address": address, "networks": [self.network]}],
                "includeNativeTokens": False,
            },
        )
        data = payload.get("data") if isinstance(payload, dict) else None
        tokens = data.get("tokens") if isinstance(data, dict) else None
        if not isinstance(tokens, list):
            raise RpcError("getTokenBalances returned no token list", method="getTokenBalances")

        balances = []
        for token in tokens:
            if not isinstance(token, dict) or not token.get("tokenAddress"):
                continue
            balances.append(
                {
                    "contractAddress": token["tokenAddress"],
                    "tokenBalance": token.get("tokenBalance"),
                }
            )
        return {"address": address, "tokenBalances": balances}

    async def get_nfts_for_owner(self, owner: str, **options: Any) -> Any:
        params: Dict[str, Any] = {"owner": owner, "pageSize": 100, "withMetadata": "false"}
        contracts = options.pop("contractAddresses", None)
        params.update(_query_params(options))
        if contracts:
            params["contractAddresses[]"] = list(contracts)
        return await self._request(
            "getNftsForOwner", "GET", f"{self.nft_url}/getNFTsForOwner", params=params
        )

    async def get_owners_for_contract(self, contract_address: str, **options: Any) -> Any:
        params: Dict[str, Any] = {"contractAddress": contract_address}
        params.update(_query_params(options))
        return await self._request(
            "getOwnersForContract",
            "GET",
            f"{self.nft_url}/getOwnersForContract",
            params=params,
        )

    async def get_owners_for_nft(self, contract_address: str, token_id: str) -> Any:
        return await self._request(
            "getOwnersForNft",
            "GET",
            f"{self.nft_url}/getOwnersForNFT",
            params={"contractAddress": contract_address, "tokenId": token_id},
        )


class AlchemyProvider:
    """Shared registry for the RPC transport and REST client."""

    def __init__(self, rpc: JsonRpcTransport, rest: AlchemyRestClient) -> None:
        self.rpc = rpc
        self.rest = rest

    @classmethod
    def from_settings(cls, settings: Any, client: Optional[httpx.AsyncClient] = None) -> "AlchemyProvider":
        rpc = JsonRpcTransport(
            settings.alchemy_rpc_url,
            client=client,
            timeout=settings.http_timeout_seconds,
            max_retries=settings.rpc_max_retries,
            backoff_seconds=settings.rpc_backoff_seconds,
        )
        rest = AlchemyRestClient(
            settings.alchemy_nft_url,
            settings.alchemy_data_url,
            network=settings.alchemy_network,
            client=client,
            timeout=settings.http_timeout_seconds,
        )
        return cls(rpc=rpc, rest=rest)

    async def shutdown(self) -> None:
        await asyncio.gather(self.rpc.aclose(), self.rest.aclose())


__all__ = ["AlchemyProvider", "AlchemyRestClient", "JsonRpcTransport"]
