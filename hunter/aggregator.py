"""Turn raw per-address execution results into response objects.

Every field here is present only when the call behind it was issued and
returned something usable. A missing key and a zero are different answers,
so nothing is defaulted to zero.
"""

from typing import Any, Dict, List, Mapping, Optional, Sequence

from hunter.planner_types import ExtractedData, ResolvedEntity
from hunter.utils.formatting import (
    format_eth,
    format_token_balance,
    is_meaningful,
    is_significant,
    parse_quantity,
    short_address,
    token_numeric_value,
)

WEI_PER_ETH = 10**18
WHALE_THRESHOLD_WEI = 100 * WEI_PER_ETH
MEDIUM_RISK_THRESHOLD_WEI = 1 * WEI_PER_ETH
ACTIVE_TX_THRESHOLD = 100
HEAVY_TRADER_TX_THRESHOLD = 1000
DIVERSIFIED_HOLDINGS_THRESHOLD = 10
MAX_TRANSFERS = 20


def _nft_contract(nft: Mapping[str, Any]) -> Optional[str]:
    contract = nft.get("contract")
    if isinstance(contract, dict) and contract.get("address"):
        return str(contract["address"])
    if nft.get("contractAddress"):
        return str(nft["contractAddress"])
    return None


def _summarize_nft(nft: Mapping[str, Any]) -> Dict[str, Any]:
    contract = nft.get("contract") if isinstance(nft.get("contract"), dict) else {}
    return {
        "contractAddress": _nft_contract(nft),
        "tokenId": nft.get("tokenId"),
        "name": nft.get("name") or nft.get("title"),
        "collectionName": contract.get("name"),
    }


def build_token_holdings(
    token_metadata: Sequence[Mapping[str, Any]],
    prices: Optional[Mapping[str, float]] = None,
) -> List[Dict[str, Any]]:
    """Meaningful holdings sorted by decimal-adjusted balance, largest first.

    ``token_metadata`` is the enriched list from the executor. ``prices`` maps
    lower-cased contract addresses to USD prices.
    """
    prices = prices or {}
    meaningful = [
        token
        for token in token_metadata
        if is_meaningful(token.get("tokenBalance"), token.get("decimals"))
    ]
    meaningful.sort(
        key=lambda token: token_numeric_value(token.get("tokenBalance"), token.get("decimals")),
        reverse=True,
    )

    holdings = []
    for token in meaningful:
        holding: Dict[str, Any] = {
            "symbol": token.get("symbol") or "???",
            "name": token.get("name") or "Unknown Token",
            "balance": format_token_balance(token.get("tokenBalance"), token.get("decimals")),
            "contractAddress": token.get("contractAddress"),
        }
        if token.get("logo"):
            holding["logo"] = token["logo"]
        price = prices.get(str(token.get("contractAddress") or "").lower())
        if price is not None:
            amount = token_numeric_value(token.get("tokenBalance"), token.get("decimals"))
            holding["priceUsd"] = price
            holding["valueUsd"] = round(amount * price, 2)
        holdings.append(holding)
    return holdings


def significant_token_balances(raw_token_balances: Any) -> List[Dict[str, Any]]:
    """Entries of a normalized token-balance result with a non-zero balance."""
    entries = (
        raw_token_balances.get("tokenBalances")
        if isinstance(raw_token_balances, dict)
        else None
    )
    return [
        dict(entry)
        for entry in entries or []
        if isinstance(entry, dict)
        and entry.get("contractAddress")
        and is_significant(entry.get("tokenBalance"))
    ]


def filter_nfts(
    raw_nfts: Any,
    requested: Sequence[str],
    collection_labels: Optional[Mapping[str, str]] = None,
) -> Dict[str, Any]:
    """NFT fields for an owner, narrowed to the requested collections if any."""
    owned = raw_nfts.get("ownedNfts") if isinstance(raw_nfts, dict) else None
    nfts = [nft for nft in owned or [] if isinstance(nft, dict)]

    fields: Dict[str, Any] = {}
    if requested:
        wanted = {address.lower() for address in requested}
        nfts = [nft for nft in nfts if (_nft_contract(nft) or "").lower() in wanted]
        labels = collection_labels or {}
        fields["requestedCollection"] = ", ".join(
            labels.get(address.lower(), address) for address in requested
        )
        fields["requestedCollectionFound"] = bool(nfts)
        fields["requestedCollectionCount"] = len(nfts)

    fields["nfts"] = [_summarize_nft(nft) for nft in nfts]
    return fields


def summarize_transfers(raw_transfers: Any) -> List[Dict[str, Any]]:
    transfers = raw_transfers.get("transfers") if isinstance(raw_transfers, dict) else None
    summary = []
    for transfer in (transfers or [])[:MAX_TRANSFERS]:
        if not isinstance(transfer, dict):
            continue
        summary.append(
            {
                "hash": transfer.get("hash"),
                "from": transfer.get("from"),
                "to": transfer.get("to"),
                "value": transfer.get("value"),
                "asset": transfer.get("asset"),
                "category": transfer.get("category"),
                "blockNum": transfer.get("blockNum"),
            }
        )
    return summary


def derive_tags(result: Mapping[str, Any]) -> List[str]:
    """Address tags computed only from the fields that were fetched."""
    tags = []
    wei = parse_quantity(result.get("balanceWei"))
    if wei is not None and wei > WHALE_THRESHOLD_WEI:
        tags.append("whale")

    transactions = result.get("transactions")
    if isinstance(transactions, int):
        if transactions > ACTIVE_TX_THRESHOLD:
            tags.append("active")
        if transactions > HEAVY_TRADER_TX_THRESHOLD:
            tags.append("heavy-trader")

    holdings = result.get("tokenHoldings")
    if holdings:
        tags.append("token-collector")
        if len(holdings) > DIVERSIFIED_HOLDINGS_THRESHOLD:
            tags.append("diversified")

    if result.get("nfts"):
        tags.append("nft-holder")
    return tags


def aggregate_address(
    address: str,
    raw: Mapping[str, Any],
    extracted: Optional[ExtractedData] = None,
    token_metadata: Optional[Sequence[Mapping[str, Any]]] = None,
    prices: Optional[Mapping[str, float]] = None,
    collection_labels: Optional[Mapping[str, str]] = None,
) -> Dict[str, Any]:
    """Build the address result from ``{purpose: raw_result}``.

    ``token_metadata`` holds the enriched significant balances; when omitted,
    holdings fall back to the raw entries with unknown metadata.
    """
    extracted = extracted or ExtractedData()
    result: Dict[str, Any] = {"address": address, "shortAddress": short_address(address)}

    wei = parse_quantity(raw.get("balance"))
    if wei is not None:
        result["balance"] = format_eth(wei)
        result["balanceWei"] = str(wei)

    count = parse_quantity(raw.get("transactionCount"))
    if count is not None:
        result["transactions"] = count

    if raw.get("tokenBalances") is not None:
        if token_metadata is None:
            token_metadata = significant_token_balances(raw["tokenBalances"])
        result["tokenHoldings"] = build_token_holdings(token_metadata, prices)

    if raw.get("nfts") is not None:
        result.update(filter_nfts(raw["nfts"], extracted.collections, collection_labels))

    if raw.get("transfers") is not None:
        result["transfers"] = summarize_transfers(raw["transfers"])

    if "transactions" in result:
        result["status"] = "active" if result["transactions"] > 0 else "inactive"
    if wei is not None:
        if wei > WHALE_THRESHOLD_WEI:
            result["risk"] = "low"
        elif wei > MEDIUM_RISK_THRESHOLD_WEI:
            result["risk"] = "medium"
        else:
            result["risk"] = "high"
    result["tags"] = derive_tags(result)
    return result


def aggregate_token(
    symbol: str,
    entity: Optional[ResolvedEntity],
    raw: Optional[Mapping[str, Any]] = None,
    price: Optional[float] = None,
    metadata: Optional[Mapping[str, Any]] = None,
) -> Dict[str, Any]:
    """Token-analysis result for a symbol, resolved or not."""
    raw = raw or {}
    result: Dict[str, Any] = {"symbol": symbol.upper()}
    if entity is None:
        result["resolved"] = False
        return result

    result["resolved"] = True
    result["symbol"] = entity.symbol
    result["name"] = entity.name
    result["contractAddress"] = entity.address
    result["source"] = entity.source

    onchain = raw.get("tokenMetadata") if isinstance(raw.get("tokenMetadata"), dict) else {}
    decimals = entity.decimals if entity.decimals is not None else onchain.get("decimals")
    if decimals is not None:
        result["decimals"] = decimals
    if price is not None:
        result["priceUsd"] = price

    merged = dict(metadata or {})
    for key in ("name", "symbol", "logo"):
        if onchain.get(key) and not merged.get(key):
            merged[key] = onchain[key]
    if merged:
        result["metadata"] = merged

    if raw.get("transfers") is not None:
        result["transfers"] = summarize_transfers(raw["transfers"])
    return result


__all__ = [
    "aggregate_address",
    "aggregate_token",
    "build_token_holdings",
    "derive_tags",
    "filter_nfts",
    "significant_token_balances",
    "summarize_transfers",
]
