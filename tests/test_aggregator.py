from hunter.aggregator import (
    aggregate_address,
    aggregate_token,
    build_token_holdings,
    filter_nfts,
    summarize_transfers,
)
from hunter.planner_types import ExtractedData, ResolvedEntity

from tests.helpers import BAYC, USDC, VITALIK

ONE_ETH = hex(10**18)
OTHER_TOKEN = "0x" + "3" * 40


def test_full_wallet_fields() -> None:
    result = aggregate_address(VITALIK, {"balance": ONE_ETH, "transactionCount": "0x5"})

    assert result == {
        "address": VITALIK,
        "shortAddress": "0xd8dA...6045",
        "balance": "1.0000 ETH",
        "balanceWei": str(10**18),
        "transactions": 5,
        "status": "active",
        "risk": "high",
        "tags": [],
    }


def test_fields_absent_when_call_failed_or_not_issued() -> None:
    result = aggregate_address(VITALIK, {"balance": "0x1", "transactionCount": None})

    assert result["balance"] == "0.0000 ETH"
    assert "transactions" not in result
    assert "status" not in result
    assert "tokenHoldings" not in result
    assert "nfts" not in result

    bare = aggregate_address(VITALIK, {"transactionCount": "0x0"})
    assert bare["transactions"] == 0
    assert bare["status"] == "inactive"
    assert "balance" not in bare
    assert "risk" not in bare


def test_whale_tags_and_risk() -> None:
    result = aggregate_address(
        VITALIK, {"balance": hex(101 * 10**18), "transactionCount": hex(1001)}
    )

    assert result["risk"] == "low"
    assert result["tags"] == ["whale", "active", "heavy-trader"]


def test_medium_risk_band() -> None:
    result = aggregate_address(VITALIK, {"balance": hex(2 * 10**18)})
    assert result["risk"] == "medium"


def test_token_holdings_sorted_with_dust_dropped() -> None:
    metadata = [
        {"contractAddress": OTHER_TOKEN, "tokenBalance": hex(5 * 10**18), "symbol": "AAA", "name": "Aaa", "decimals": 18},
        {"contractAddress": USDC, "tokenBalance": hex(2_500 * 10**6), "symbol": "USDC", "name": "USD Coin", "decimals": 6, "logo": "usdc.png"},
        {"contractAddress": "0x" + "4" * 40, "tokenBalance": hex(10**13), "symbol": "DUST", "name": "Dust", "decimals": 18},
    ]

    holdings = build_token_holdings(metadata, {USDC.lower(): 1.0})

    assert [h["symbol"] for h in holdings] == ["USDC", "AAA"]
    assert holdings[0] == {
        "symbol": "USDC",
        "name": "USD Coin",
        "balance": "2.5K",
        "contractAddress": USDC,
        "logo": "usdc.png",
        "priceUsd": 1.0,
        "valueUsd": 2500.0,
    }
    assert holdings[1]["balance"] == "5.00"
    assert "priceUsd" not in holdings[1]


def test_token_holdings_fall_back_to_raw_balances() -> None:
    raw = {"tokenBalances": {"tokenBalances": [{"contractAddress": USDC, "tokenBalance": hex(10**18)}]}}

    result = aggregate_address(VITALIK, raw)

    assert result["tokenHoldings"][0]["symbol"] == "???"
    assert result["tokenHoldings"][0]["name"] == "Unknown Token"
    assert result["tags"] == ["token-collector"]


def test_empty_token_balances_still_reported() -> None:
    result = aggregate_address(VITALIK, {"tokenBalances": {"tokenBalances": []}}, token_metadata=[])
    assert result["tokenHoldings"] == []
    assert "token-collector" not in result["tags"]


def test_requested_collection_not_held(resolver) -> None:
    result = aggregate_address(
        VITALIK,
        {"nfts": {"ownedNfts": [{"contract": {"address": OTHER_TOKEN}, "tokenId": "9"}]}},
        ExtractedData(addresses=[VITALIK], collections=[BAYC]),
        collection_labels=resolver.collection_labels(),
    )

    assert result["requestedCollection"] == "Bored Ape Yacht Club"
    assert result["requestedCollectionFound"] is False
    assert result["requestedCollectionCount"] == 0
    assert result["nfts"] == []
    assert "nft-holder" not in result["tags"]


def test_requested_collection_held() -> None:
    fields = filter_nfts(
        {
            "ownedNfts": [
                {"contract": {"address": BAYC.lower(), "name": "BoredApeYachtClub"}, "tokenId": "1", "name": "#1"},
                {"contractAddress": BAYC, "tokenId": "2"},
                {"contract": {"address": OTHER_TOKEN}, "tokenId": "3"},
            ]
        },
        [BAYC],
    )

    assert fields["requestedCollection"] == BAYC
    assert fields["requestedCollectionFound"] is True
    assert fields["requestedCollectionCount"] == 2
    assert fields["nfts"][0] == {
        "contractAddress": BAYC.lower(),
        "tokenId": "1",
        "name": "#1",
        "collectionName": "BoredApeYachtClub",
    }


def test_unfiltered_nfts_have_no_collection_fields() -> None:
    fields = filter_nfts({"ownedNfts": [{"contract": {"address": BAYC}, "tokenId": "1"}]}, [])
    assert set(fields) == {"nfts"}
    assert len(fields["nfts"]) == 1


def test_transfers_are_capped() -> None:
    raw = {"transfers": [{"hash": f"0x{i}", "asset": "ETH"} for i in range(30)]}
    summary = summarize_transfers(raw)
    assert len(summary) == 20
    assert summary[0]["hash"] == "0x0"


def test_unresolved_token() -> None:
    assert aggregate_token("pepe", None) == {"symbol": "PEPE", "resolved": False}


def test_resolved_token_merges_metadata() -> None:
    entity = ResolvedEntity(symbol="USDC", name="USD Coin", address=USDC, decimals=6)

    result = aggregate_token(
        "usdc",
        entity,
        raw={"tokenMetadata": {"name": "USD Coin", "symbol": "USDC", "logo": "l.png", "decimals": 6}},
        price=1.0,
        metadata={"image": "cg.png", "name": "USDC"},
    )

    assert result["resolved"] is True
    assert result["contractAddress"] == USDC
    assert result["decimals"] == 6
    assert result["priceUsd"] == 1.0
    assert result["source"] == "static"
    assert result["metadata"] == {"image": "cg.png", "name": "USDC", "symbol": "USDC", "logo": "l.png"}
    assert "transfers" not in result
