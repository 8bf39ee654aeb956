"""Pattern-based entity extraction from free-text queries."""

import re
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Mapping

# Regex patterns
ADDRESS_PATTERN = re.compile(r"(?<![0-9a-fA-Fx])(0x[a-fA-F0-9]{40})(?![0-9a-fA-F])")
DOLLAR_SYMBOL_PATTERN = re.compile(r"\$([A-Za-z][A-Za-z0-9]{1,9})\b")
BARE_SYMBOL_PATTERN = re.compile(r"\b([A-Z][A-Z0-9]{1,9})\b")
STOP_WORDS = {"THE", "AND", "FOR", "BUT", "NOT", "YOU", "ARE", "THIS", "NFT", "NFTS"}
NFT_KEYWORDS = {"nft", "nfts", "collection", "collections", "own", "owns", "hold", "holds"}


@dataclass
class MatchedEntities:
    """Entities recognised locally in a query."""

    addresses: List[str] = field(default_factory=list)
    symbols: List[str] = field(default_factory=list)
    collections: List[str] = field(default_factory=list)
    mentions_nfts: bool = False


def _unique(values: Iterable[str], key=lambda v: v) -> List[str]:
    seen = set()
    result = []
    for value in values:
        marker = key(value)
        if marker in seen:
            continue
        seen.add(marker)
        result.append(value)
    return result


def extract_addresses(text: str) -> List[str]:
    """Every ``0x`` + 40 hex address in ``text``, first occurrence wins."""
    return _unique(ADDRESS_PATTERN.findall(text), key=str.lower)


def extract_symbols(text: str, known_symbols: Iterable[str] = ()) -> List[str]:
    """Token symbols in ``text``.

    ``$SYMBOL`` is always a symbol. A bare upper-case word only counts when it
    is a known ticker, so ordinary capitalised words are not mistaken for one.
    """
    known = {symbol.upper() for symbol in known_symbols}
    stripped = ADDRESS_PATTERN.sub(" ", text)

    found = [match.upper() for match in DOLLAR_SYMBOL_PATTERN.findall(stripped)]
    for match in BARE_SYMBOL_PATTERN.findall(stripped):
        if match in known and match not in STOP_WORDS:
            found.append(match)
    return _unique(found)


def extract_collections(text: str, collections: Mapping[str, Mapping[str, Any]]) -> List[str]:
    """Keys of the collections named in ``text`` (key, display name or symbol)."""
    found: List[str] = []
    for key, entry in collections.items():
        names = [key, str(entry.get("name") or "")]
        if any(
            name and re.search(rf"\b{re.escape(name)}\b", text, re.IGNORECASE)
            for name in names
        ):
            found.append(key)
            continue
        symbol = entry.get("symbol")
        # Symbols are short, so only an exact upper-case mention counts.
        if symbol and re.search(rf"\b{re.escape(str(symbol).upper())}\b", text):
            found.append(key)
    return _unique(found)


def mentions_nfts(text: str) -> bool:
    words = set(re.findall(r"[a-z]+", text.lower()))
    return bool(words & NFT_KEYWORDS)


def match_entities(
    text: str,
    token_table: Mapping[str, Mapping[str, Any]],
    collection_table: Mapping[str, Mapping[str, Any]],
) -> MatchedEntities:
    """Run every extractor over ``text``."""
    collections = extract_collections(text, collection_table)
    symbols = extract_symbols(text, token_table.keys())
    # A collection symbol such as BAYC is not a fungible token.
    collection_symbols: Dict[str, str] = {
        str(collection_table[key].get("symbol", "")).upper(): key for key in collections
    }
    symbols = [symbol for symbol in symbols if symbol not in collection_symbols]
    return MatchedEntities(
        addresses=extract_addresses(text),
        symbols=symbols,
        collections=collections,
        mentions_nfts=bool(collections) or mentions_nfts(text),
    )


__all__ = [
    "ADDRESS_PATTERN",
    "MatchedEntities",
    "extract_addresses",
    "extract_collections",
    "extract_symbols",
    "match_entities",
    "mentions_nfts",
]
