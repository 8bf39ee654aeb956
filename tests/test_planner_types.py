import json

import pytest
from pydantic import ValidationError

from hunter.planner_types import ExtractedData, Intent, QueryPlan
from hunter.utils.tables import load_collection_table, load_token_table

from tests.helpers import BAYC, VITALIK


def test_extracted_data_rejects_malformed_addresses() -> None:
    with pytest.raises(ValidationError):
        ExtractedData(addresses=["0x1234"])
    with pytest.raises(ValidationError):
        ExtractedData.model_validate({"contractAddresses": ["not-an-address"]})


def test_extracted_data_normalizes_tokens() -> None:
    data = ExtractedData(tokens=["$pepe", "PEPE", "usdc"])
    assert data.tokens == ["PEPE", "USDC"]


def test_merge_keeps_first_bag_and_dedupes_hex_case_insensitively() -> None:
    local = ExtractedData(addresses=[VITALIK], collections=[BAYC])
    remote = ExtractedData(addresses=[VITALIK.lower()], collections=[BAYC.lower()], amounts=["1 ETH"])

    merged = local.merge(remote)

    assert merged.addresses == [VITALIK]
    assert merged.collections == [BAYC]
    assert merged.amounts == ["1 ETH"]


def test_query_plan_parses_camel_case_payload() -> None:
    plan = QueryPlan.model_validate(
        {
            "intent": "address_analysis",
            "confidence": 0.9,
            "extractedData": {"addresses": [VITALIK]},
            "apiCalls": [
                {"method": "core.getBalance", "params": [VITALIK, "latest"], "purpose": "balance"}
            ],
            "reasoning": "address present",
            "hunterCommentary": "ignored",
        }
    )
    assert plan.intent is Intent.ADDRESS_ANALYSIS
    assert plan.api_calls[0].params == [VITALIK, "latest"]
    assert plan.to_payload()["extractedData"]["addresses"] == [VITALIK]


@pytest.mark.parametrize(
    "payload",
    [
        {"intent": "address_analysis", "confidence": 1.5},
        {"intent": "send_money", "confidence": 0.9},
        {"confidence": 0.9},
        {"intent": "unknown", "confidence": 0.2, "apiCalls": [{"method": "x"}]},
    ],
)
def test_query_plan_rejects_invalid_payloads(payload) -> None:
    with pytest.raises(ValidationError):
        QueryPlan.model_validate(payload)


def test_is_confident_uses_threshold() -> None:
    plan = QueryPlan(intent=Intent.UNKNOWN, confidence=0.3)
    assert plan.is_confident(0.3)
    assert not plan.is_confident(0.31)


def test_load_tables_from_json(tmp_path) -> None:
    tokens_file = tmp_path / "tokens.json"
    tokens_file.write_text(
        json.dumps({"tokens": {"foo": {"name": "Foo", "address": VITALIK, "decimals": 9}}})
    )
    collections_file = tmp_path / "collections.json"
    collections_file.write_text(
        json.dumps({"collections": {"apes": {"name": "Apes", "address": BAYC}}})
    )

    tokens = load_token_table(tokens_file)
    collections = load_collection_table(collections_file)

    assert tokens["FOO"] == {"symbol": "FOO", "name": "Foo", "address": VITALIK, "decimals": 9}
    assert collections == {"apes": {"name": "Apes", "address": BAYC}}


def test_load_tables_reject_bad_files(tmp_path) -> None:
    with pytest.raises(FileNotFoundError):
        load_token_table(tmp_path / "missing.json")

    bad = tmp_path / "bad.json"
    bad.write_text(json.dumps({"nope": {}}))
    with pytest.raises(ValueError):
        load_collection_table(bad)
