"""Execute planned provider calls behind the method allowlist."""

from __future__ import annotations

import asyncio
from collections import OrderedDict
from typing import Any, Awaitable, Callable, Dict, List, Optional, Sequence, Tuple

from hunter.alchemy_client import AlchemyProvider
from hunter.allowlist import AllowedMethod, parse_method
from hunter.planner_types import ADDRESS_SYNTAX, ApiCall, ExtractedData
from hunter.utils.formatting import is_significant
from hunter.utils.logging import get_logger

logger = get_logger(__name__)

# Results are filed per target under these keys, whatever purpose text the
# planner attached to the call.
PURPOSE_KEYS: Dict[AllowedMethod, str] = {
    AllowedMethod.GET_BALANCE: "balance",
    AllowedMethod.GET_TRANSACTION_COUNT: "transactionCount",
    AllowedMethod.GET_TOKEN_BALANCES: "tokenBalances",
    AllowedMethod.GET_TOKEN_METADATA: "tokenMetadata",
    AllowedMethod.GET_ASSET_TRANSFERS: "transfers",
    AllowedMethod.GET_LOGS: "logs",
    AllowedMethod.GET_NFTS_FOR_OWNER: "nfts",
    AllowedMethod.GET_OWNERS_FOR_CONTRACT: "owners",
    AllowedMethod.GET_OWNERS_FOR_NFT: "nftOwners",
}

DEFAULT_TRANSFER_CATEGORIES = ["external", "erc20", "erc721", "erc1155"]
DEFAULT_TRANSFER_COUNT = "0x14"

# Bucket for calls that carry no address at all.
NO_TARGET = ""

Handler = Callable[[List[Any], ExtractedData], Awaitable[Any]]


def _is_address(value: Any) -> bool:
    return isinstance(value, str) and bool(ADDRESS_SYNTAX.match(value.strip()))


def _first_address(params: Sequence[Any], *keys: str) -> Optional[str]:
    """First address among positional params or the named keys of a dict param."""
    for param in params:
        if _is_address(param):
            return param.strip()
        if isinstance(param, dict):
            for key in keys:
                if _is_address(param.get(key)):
                    return param[key].strip()
    return None


def _first_dict(params: Sequence[Any]) -> Dict[str, Any]:
    for param in params:
        if isinstance(param, dict):
            return dict(param)
    return {}


def call_target(call: ApiCall) -> Optional[str]:
    """The address a call is about: the owner for wallet calls, else the contract."""
    method = parse_method(call.method)
    if method is AllowedMethod.GET_ASSET_TRANSFERS:
        return _first_address(call.params, "fromAddress", "toAddress")
    if method is AllowedMethod.GET_NFTS_FOR_OWNER:
        return _first_address(call.params, "owner")
    if method in (AllowedMethod.GET_OWNERS_FOR_CONTRACT, AllowedMethod.GET_OWNERS_FOR_NFT):
        return _first_address(call.params, "contractAddress")
    return _first_address(call.params, "address")


def normalize_token_balances(address: str, result: Any) -> Dict[str, Any]:
    """Coerce an ``alchemy_getTokenBalances`` result to the shared balance schema."""
    entries = result.get("tokenBalances") if isinstance(result, dict) else None
    balances = []
    for entry in entries or []:
        if not isinstance(entry, dict) or not entry.get("contractAddress"):
            continue
        if entry.get("error"):
            continue
        balances.append(
            {
                "contractAddress": entry["contractAddress"],
                "tokenBalance": entry.get("tokenBalance"),
            }
        )
    return {"address": address, "tokenBalances": balances}


class ApiExecutor:
    """Run allowlisted calls against the provider; failures degrade to None."""

    def __init__(self, provider: AlchemyProvider) -> None:
        self.provider = provider
        self._handlers: Dict[AllowedMethod, Handler] = {
            AllowedMethod.GET_BALANCE: self._get_balance,
            AllowedMethod.GET_TRANSACTION_COUNT: self._get_transaction_count,
            AllowedMethod.GET_TOKEN_BALANCES: self._get_token_balances,
            AllowedMethod.GET_TOKEN_METADATA: self._get_token_metadata,
            AllowedMethod.GET_ASSET_TRANSFERS: self._get_asset_transfers,
            AllowedMethod.GET_LOGS: self._get_logs,
            AllowedMethod.GET_NFTS_FOR_OWNER: self._get_nfts_for_owner,
            AllowedMethod.GET_OWNERS_FOR_CONTRACT: self._get_owners_for_contract,
            AllowedMethod.GET_OWNERS_FOR_NFT: self._get_owners_for_nft,
        }

    async def execute(
        self,
        method_path: str,
        params: Optional[Sequence[Any]] = None,
        extracted: Optional[ExtractedData] = None,
    ) -> Any:
        """Run one call. Never raises: any failure is logged and returns None."""
        method = parse_method(method_path)
        if method is None:
            logger.warning("executor_method_rejected", method=method_path)
            return None

        handler = self._handlers[method]
        try:
            result = await handler(list(params or []), extracted or ExtractedData())
        except Exception as exc:
            logger.error(
                "executor_call_failed",
                method=method.value,
                error=str(exc),
                error_type=type(exc).__name__,
            )
            return None

        logger.info("executor_call_success", method=method.value)
        return result

    async def execute_plan(
        self,
        calls: Sequence[ApiCall],
        extracted: Optional[ExtractedData] = None,
    ) -> Dict[str, Dict[str, Any]]:
        """Run a plan and file results as ``{target: {purpose_key: result}}``.

        Targets are lower-cased addresses. Calls for one target run in plan
        order; different targets run concurrently. A key is present only for
        calls that were actually issued, with None meaning the call failed.
        """
        grouped: "OrderedDict[str, List[Tuple[AllowedMethod, ApiCall]]]" = OrderedDict()
        for call in calls:
            method = parse_method(call.method)
            if method is None:
                logger.warning("executor_method_rejected", method=call.method)
                continue
            target = (call_target(call) or NO_TARGET).lower()
            grouped.setdefault(target, []).append((method, call))

        async def run_target(entries: List[Tuple[AllowedMethod, ApiCall]]) -> Dict[str, Any]:
            results: Dict[str, Any] = {}
            for method, call in entries:
                key = PURPOSE_KEYS[method]
                result = await self.execute(call.method, call.params, extracted)
                if result is None and results.get(key) is not None:
                    continue
                results[key] = result
            return results

        outcomes = await asyncio.gather(*(run_target(entries) for entries in grouped.values()))
        return dict(zip(grouped.keys(), outcomes))

    async def enrich_token_metadata(
        self, token_balances: Any, limit: int = 10
    ) -> List[Dict[str, Any]]:
        """Attach metadata to the first ``limit`` significant token balances.

        Lookups fan out concurrently; tokens past the limit are dropped.
        """
        entries = token_balances.get("tokenBalances") if isinstance(token_balances, dict) else None
        significant = [
            entry
            for entry in entries or []
            if isinstance(entry, dict)
            and entry.get("contractAddress")
            and is_significant(entry.get("tokenBalance"))
        ][:limit]

        metadata = await asyncio.gather(
            *(
                self.execute(AllowedMethod.GET_TOKEN_METADATA.value, [entry["contractAddress"]])
                for entry in significant
            )
        )

        enriched = []
        for entry, meta in zip(significant, metadata):
            meta = meta if isinstance(meta, dict) else {}
            enriched.append(
                {
                    "contractAddress": entry["contractAddress"],
                    "tokenBalance": entry.get("tokenBalance"),
                    "name": meta.get("name") or "Unknown Token",
                    "symbol": meta.get("symbol") or "???",
                    "decimals": meta.get("decimals"),
                    "logo": meta.get("logo"),
                }
            )
        return enriched

    async def _get_balance(self, params: List[Any], extracted: ExtractedData) -> Any:
        address, block = self._address_and_block(params)
        return await self.provider.rpc.call("eth_getBalance", [address, block])

    async def _get_transaction_count(self, params: List[Any], extracted: ExtractedData) -> Any:
        address, block = self._address_and_block(params)
        return await self.provider.rpc.call("eth_getTransactionCount", [address, block])

    async def _get_token_balances(self, params: List[Any], extracted: ExtractedData) -> Any:
        address = self._require_address(params, "address")
        try:
            return await self.provider.rest.get_token_balances(address)
        except Exception as exc:
            logger.warning(
                "executor_token_balances_fallback", address=address, error=str(exc)
            )
        result = await self.provider.rpc.call("alchemy_getTokenBalances", [address, "erc20"])
        return normalize_token_balances(address, result)

    async def _get_token_metadata(self, params: List[Any], extracted: ExtractedData) -> Any:
        contract = self._require_address(params, "contractAddress", "address")
        return await self.provider.rpc.call("alchemy_getTokenMetadata", [contract])

    async def _get_asset_transfers(self, params: List[Any], extracted: ExtractedData) -> Any:
        options = _first_dict(params)
        if not options:
            address = self._require_address(params)
            options = {"fromAddress": address}
        elif not (_is_address(options.get("fromAddress")) or _is_address(options.get("toAddress"))):
            address = _first_address(params)
            if address:
                options["fromAddress"] = address
        options.setdefault("category", list(DEFAULT_TRANSFER_CATEGORIES))
        options.setdefault("fromBlock", "0x0")
        options.setdefault("toBlock", "latest")
        options.setdefault("maxCount", DEFAULT_TRANSFER_COUNT)
        options.setdefault("order", "desc")
        return await self.provider.rpc.call("alchemy_getAssetTransfers", [options])

    async def _get_logs(self, params: List[Any], extracted: ExtractedData) -> Any:
        log_filter = _first_dict(params)
        if not log_filter:
            log_filter = {"address": self._require_address(params)}
        return await self.provider.rpc.call("eth_getLogs", [log_filter])

    async def _get_nfts_for_owner(self, params: List[Any], extracted: ExtractedData) -> Any:
        owner = self._require_address(params, "owner")
        options = _first_dict(params)
        options.pop("owner", None)
        if extracted.collections:
            # Filter server-side so pagination cannot hide the requested collection.
            options["contractAddresses"] = list(extracted.collections)
        return await self.provider.rest.get_nfts_for_owner(owner, **options)

    async def _get_owners_for_contract(self, params: List[Any], extracted: ExtractedData) -> Any:
        contract = self._require_address(params, "contractAddress")
        options = _first_dict(params)
        options.pop("contractAddress", None)
        return await self.provider.rest.get_owners_for_contract(contract, **options)

    async def _get_owners_for_nft(self, params: List[Any], extracted: ExtractedData) -> Any:
        contract = self._require_address(params, "contractAddress")
        options = _first_dict(params)
        token_id = options.get("tokenId")
        if token_id is None:
            token_id = next(
                (p for p in params if isinstance(p, (str, int)) and not _is_address(p)),
                None,
            )
        if token_id is None or isinstance(token_id, bool):
            raise ValueError("nft.getOwnersForNft requires a tokenId")
        return await self.provider.rest.get_owners_for_nft(contract, str(token_id))

    @staticmethod
    def _require_address(params: Sequence[Any], *keys: str) -> str:
        address = _first_address(params, *keys)
        if address is None:
            raise ValueError("call parameters contain no address")
        return address

    def _address_and_block(self, params: List[Any]) -> Tuple[str, str]:
        address = self._require_address(params, "address")
        block = next(
            (p for p in params[1:] if isinstance(p, str) and not _is_address(p)),
            "latest",
        )
        return address, block


__all__ = [
    "ApiExecutor",
    "NO_TARGET",
    "PURPOSE_KEYS",
    "call_target",
    "normalize_token_balances",
]
