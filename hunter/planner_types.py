"""Shared types for the planner system."""

from __future__ import annotations

import re
from dataclasses import dataclass
from enum import Enum
from typing import Annotated, Any, Dict, List, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, StringConstraints, field_validator

ADDRESS_SYNTAX = re.compile(r"^0x[a-fA-F0-9]{40}$")

# Carried into the JSON schema sent to the completion service.
AddressStr = Annotated[str, StringConstraints(pattern=ADDRESS_SYNTAX.pattern)]

DEFAULT_CONFIDENCE_THRESHOLD = 0.3


class Intent(str, Enum):
    """Query intents the planner may emit."""

    ADDRESS_ANALYSIS = "address_analysis"
    TOKEN_ANALYSIS = "token_analysis"
    UNKNOWN = "unknown"
    # Accepted from the completion service but executed like any other plan.
    WHALE_TRACKING = "whale_tracking"
    TRANSACTION_HISTORY = "transaction_history"
    PROFIT_ANALYSIS = "profit_analysis"
    CONTRACT_INTERACTION = "contract_interaction"
    AIRDROP_ANALYSIS = "airdrop_analysis"


CANONICAL_INTENTS = (Intent.ADDRESS_ANALYSIS, Intent.TOKEN_ANALYSIS, Intent.UNKNOWN)


def _dedupe(values: List[str], fold_case: bool) -> List[str]:
    seen = set()
    result: List[str] = []
    for value in values:
        if not isinstance(value, str):
            continue
        cleaned = value.strip()
        if not cleaned:
            continue
        key = cleaned.lower() if fold_case else cleaned
        if key in seen:
            continue
        seen.add(key)
        result.append(cleaned)
    return result


class ExtractedData(BaseModel):
    """Entities pulled out of the query. Every list behaves as a set."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    addresses: List[AddressStr] = Field(default_factory=list)
    tokens: List[str] = Field(default_factory=list)
    contract_addresses: List[AddressStr] = Field(
        default_factory=list, alias="contractAddresses"
    )
    collections: List[AddressStr] = Field(default_factory=list)
    amounts: List[str] = Field(default_factory=list)
    timeframes: List[str] = Field(default_factory=list)

    @field_validator("addresses", "contract_addresses", "collections")
    @classmethod
    def _dedupe_addresses(cls, values: List[str]) -> List[str]:
        return _dedupe(values, fold_case=True)

    @field_validator("tokens")
    @classmethod
    def _normalize_tokens(cls, values: List[str]) -> List[str]:
        return _dedupe([v.lstrip("$").upper() for v in values], fold_case=False)

    @field_validator("amounts", "timeframes")
    @classmethod
    def _dedupe_text(cls, values: List[str]) -> List[str]:
        return _dedupe(values, fold_case=False)

    def merge(self, other: "ExtractedData") -> "ExtractedData":
        """Union of both bags, keeping this bag's values first."""
        return ExtractedData(
            addresses=self.addresses + other.addresses,
            tokens=self.tokens + other.tokens,
            contract_addresses=self.contract_addresses + other.contract_addresses,
            collections=self.collections + other.collections,
            amounts=self.amounts + other.amounts,
            timeframes=self.timeframes + other.timeframes,
        )


ParamValue = Union[str, int, float, bool, Dict[str, Any]]


class ApiCall(BaseModel):
    """One planned provider call."""

    model_config = ConfigDict(extra="ignore")

    method: str = Field(min_length=3)
    params: List[ParamValue] = Field(default_factory=list)
    purpose: str = ""


class QueryPlan(BaseModel):
    """Structured plan produced by the planner.

    This model is also the output schema sent to the completion service; a
    response that fails validation is treated like a service outage.
    """

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    intent: Intent
    confidence: float = Field(ge=0.0, le=1.0)
    extracted_data: ExtractedData = Field(
        default_factory=ExtractedData, alias="extractedData"
    )
    api_calls: List[ApiCall] = Field(default_factory=list, alias="apiCalls")
    reasoning: str = ""

    def is_confident(self, threshold: float = DEFAULT_CONFIDENCE_THRESHOLD) -> bool:
        return self.confidence >= threshold

    def to_payload(self) -> Dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True)


@dataclass
class ResolvedEntity:
    """Token symbol bound to its contract address."""

    symbol: str
    name: str
    address: str
    decimals: Optional[int] = None
    source: str = "static"


@dataclass
class ResolvedCollection:
    """NFT collection name bound to its contract address."""

    key: str
    name: str
    address: str
    symbol: Optional[str] = None


__all__ = [
    "ADDRESS_SYNTAX",
    "ApiCall",
    "CANONICAL_INTENTS",
    "DEFAULT_CONFIDENCE_THRESHOLD",
    "ExtractedData",
    "Intent",
    "QueryPlan",
    "ResolvedCollection",
    "ResolvedEntity",
]
