"""Static token and NFT collection lookup tables."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Dict, Optional

# Keyed by upper-case ticker symbol.
DEFAULT_TOKENS: Dict[str, Dict[str, Any]] = {
    "USDC": {
        "symbol": "USDC",
        "name": "USD Coin",
        "address": "0xA0b86991c6218b36c1d19D4a2e9Eb0cE3606eB48",
        "decimals": 6,
    },
    "USDT": {
        "symbol": "USDT",
        "name": "Tether USD",
        "address": "0xdAC17F958D2ee523a2206206994597C13D831ec7",
        "decimals": 6,
    },
    "DAI": {
        "symbol": "DAI",
        "name": "Dai Stablecoin",
        "address": "0x6B175474E89094C44Da98b954EedeAC495271d0F",
        "decimals": 18,
    },
    "WETH": {
        "symbol": "WETH",
        "name": "Wrapped Ether",
        "address": "0xC02aaA39b223FE8D0A0e5C4F27eAD9083C756Cc2",
        "decimals": 18,
    },
    "WBTC": {
        "symbol": "WBTC",
        "name": "Wrapped BTC",
        "address": "0x2260FAC5E5542a773Aa44fBCfeDf7C193bc2C599",
        "decimals": 8,
    },
    "PEPE": {
        "symbol": "PEPE",
        "name": "Pepe",
        "address": "0x6982508145454Ce325dDbE47a25d4ec3d2311933",
        "decimals": 18,
    },
    "SHIB": {
        "symbol": "SHIB",
        "name": "Shiba Inu",
        "address": "0x95aD61b0a150d79219dCF64E1E6Cc01f0B64C4cE",
        "decimals": 18,
    },
    "LINK": {
        "symbol": "LINK",
        "name": "Chainlink",
        "address": "0x514910771AF9Ca656af840dff83E8264EcF986CA",
        "decimals": 18,
    },
    "UNI": {
        "symbol": "UNI",
        "name": "Uniswap",
        "address": "0x1f9840a85d5aF5bf1D1762F925BDADdC4201F984",
        "decimals": 18,
    },
    "AAVE": {
        "symbol": "AAVE",
        "name": "Aave",
        "address": "0x7Fc66500c84A76Ad7e9c93437bFc5Ac33E2DDaE9",
        "decimals": 18,
    },
    "LDO": {
        "symbol": "LDO",
        "name": "Lido DAO",
        "address": "0x5A98FcBEA516Cf06857215779Fd812CA3beF1B32",
        "decimals": 18,
    },
    "MATIC": {
        "symbol": "MATIC",
        "name": "Polygon",
        "address": "0x7D1AfA7B718fb893dB30A3aBc0Cfc608AaCfeBB0",
        "decimals": 18,
    },
}

# Keyed by a short collection slug.
DEFAULT_COLLECTIONS: Dict[str, Dict[str, Any]] = {
    "bayc": {
        "name": "Bored Ape Yacht Club",
        "address": "0xBC4CA0EdA7647A8aB7C2061c2E118A18a936f13D",
        "symbol": "BAYC",
    },
    "mayc": {
        "name": "Mutant Ape Yacht Club",
        "address": "0x60E4d786628Fea6478F785A6d7e704777c86a7c6",
        "symbol": "MAYC",
    },
    "cryptopunks": {
        "name": "CryptoPunks",
        "address": "0xb47e3cd837dDF8e4c57F05d70Ab865de6e193BBB",
    },
    "azuki": {
        "name": "Azuki",
        "address": "0xED5AF388653567Af2F388E6224dC7C4b3241C544",
        "symbol": "AZUKI",
    },
    "pudgypenguins": {
        "name": "Pudgy Penguins",
        "address": "0xBd3531dA5CF5857e7CfAA92426877b022e612cf8",
        "symbol": "PPG",
    },
    "doodles": {
        "name": "Doodles",
        "address": "0x8a90CAb2b38dba80c64b7734e58Ee1dB38B8992e",
        "symbol": "DOODLE",
    },
    "milady": {
        "name": "Milady Maker",
        "address": "0x5Af0D9827E0c53E4799BB226655A1de152A425a5",
        "symbol": "MIL",
    },
}


def _load_json_section(path: Path, section: str) -> Dict[str, Dict[str, Any]]:
    if not path.exists():
        raise FileNotFoundError(f"Lookup table not found: {path}")

    with path.open("r", encoding="utf-8") as handle:
        data = json.load(handle)

    entries = data.get(section) if isinstance(data, dict) else None
    if not isinstance(entries, dict):
        raise ValueError(f"{path} must contain a '{section}' object")
    return entries


def load_token_table(path: Optional[Path] = None) -> Dict[str, Dict[str, Any]]:
    """Load tokens from a ``{"tokens": {...}}`` JSON file or fall back to defaults."""
    if path is None:
        return DEFAULT_TOKENS

    tokens: Dict[str, Dict[str, Any]] = {}
    for key, entry in _load_json_section(path, "tokens").items():
        if not isinstance(entry, dict) or not entry.get("address"):
            continue
        symbol = str(entry.get("symbol") or key).upper()
        tokens[key.strip().upper()] = {
            "symbol": symbol,
            "name": entry.get("name") or symbol,
            "address": entry["address"],
            "decimals": int(entry.get("decimals", 18)),
        }
    return tokens


def load_collection_table(path: Optional[Path] = None) -> Dict[str, Dict[str, Any]]:
    """Load NFT collections from a ``{"collections": {...}}`` JSON file."""
    if path is None:
        return DEFAULT_COLLECTIONS

    collections: Dict[str, Dict[str, Any]] = {}
    for key, entry in _load_json_section(path, "collections").items():
        if not isinstance(entry, dict) or not entry.get("address"):
            continue
        collections[key] = {
            "name": entry.get("name") or key,
            "address": entry["address"],
            **({"symbol": entry["symbol"]} if entry.get("symbol") else {}),
        }
    return collections


__all__ = [
    "DEFAULT_COLLECTIONS",
    "DEFAULT_TOKENS",
    "load_collection_table",
    "load_token_table",
]
