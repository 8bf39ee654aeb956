"""Allowlist of read-only provider methods the planner may request.

Method paths use the ``{namespace}.{method}`` form (e.g. ``core.getBalance``).
Every planned call is checked against :class:`AllowedMethod` before any
network activity, since the plan comes from a completion service that is not
fully trusted.
"""

from __future__ import annotations

from enum import Enum
from typing import Dict, List, Optional


class AllowedMethod(Enum):
    """Read-only provider methods, keyed by dotted method path."""

    GET_BALANCE = "core.getBalance"
    GET_TRANSACTION_COUNT = "core.getTransactionCount"
    GET_TOKEN_BALANCES = "core.getTokenBalances"
    GET_TOKEN_METADATA = "core.getTokenMetadata"
    GET_ASSET_TRANSFERS = "core.getAssetTransfers"
    GET_LOGS = "core.getLogs"
    GET_NFTS_FOR_OWNER = "nft.getNftsForOwner"
    GET_OWNERS_FOR_CONTRACT = "nft.getOwnersForContract"
    GET_OWNERS_FOR_NFT = "nft.getOwnersForNft"

    @property
    def namespace(self) -> str:
        return self.value.split(".", 1)[0]


METHOD_DESCRIPTIONS: Dict[AllowedMethod, str] = {
    AllowedMethod.GET_BALANCE: "Get ETH balance for address",
    AllowedMethod.GET_TRANSACTION_COUNT: "Get transaction count for address",
    AllowedMethod.GET_TOKEN_BALANCES: "Get all ERC-20 token balances for address",
    AllowedMethod.GET_TOKEN_METADATA: (
        "Get token name/symbol/decimals by contract address "
        "(use for token price queries - price fetched separately)"
    ),
    AllowedMethod.GET_ASSET_TRANSFERS: (
        "Get transfer history (ERC-20, ERC-721, ERC-1155) with filters "
        "(fromAddress, toAddress, contractAddresses, category, fromBlock, toBlock)"
    ),
    AllowedMethod.GET_LOGS: "Get contract event logs",
    AllowedMethod.GET_NFTS_FOR_OWNER: (
        "Get NFTs owned by address (use when query mentions NFTs/collections)"
    ),
    AllowedMethod.GET_OWNERS_FOR_CONTRACT: (
        "Get all owners of an NFT collection "
        "(use for 'how many holders' or 'top holders' queries)"
    ),
    AllowedMethod.GET_OWNERS_FOR_NFT: "Get owners of a specific NFT token ID",
}

_BY_PATH: Dict[str, AllowedMethod] = {method.value: method for method in AllowedMethod}

GENERIC_DESCRIPTION = "Read-only provider method"


def parse_method(method_path: str) -> Optional[AllowedMethod]:
    """Return the allowlisted method for ``method_path`` or None."""
    if not isinstance(method_path, str):
        return None
    return _BY_PATH.get(method_path.strip())


def is_allowed(method_path: str) -> bool:
    """Check if a method path is in the allowlist."""
    return parse_method(method_path) is not None


def describe(method_path: str) -> str:
    """Human-readable description of ``method_path``."""
    method = parse_method(method_path)
    if method is None:
        return GENERIC_DESCRIPTION
    return METHOD_DESCRIPTIONS[method]


def allowed_methods() -> List[str]:
    """All allowed method paths, in declaration order."""
    return [method.value for method in AllowedMethod]


def format_method_list() -> str:
    """Render the allowlist as bullet lines for a planning prompt."""
    return "\n".join(
        f'- "{method.value}" -> {METHOD_DESCRIPTIONS[method]}'
        for method in AllowedMethod
    )


__all__ = [
    "AllowedMethod",
    "METHOD_DESCRIPTIONS",
    "allowed_methods",
    "describe",
    "format_method_list",
    "is_allowed",
    "parse_method",
]
