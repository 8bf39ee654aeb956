"""Token symbol and NFT collection resolution.

Token lookups go static table -> TTL cache -> CoinGecko, first match wins.
Collections resolve from the static table only.
"""

from __future__ import annotations

import asyncio
import time
from dataclasses import replace
from typing import (
    Any,
    Callable,
    Dict,
    Generic,
    Iterable,
    Mapping,
    Optional,
    Tuple,
    TypeVar,
)

from hunter.coingecko import CoinGeckoClient
from hunter.planner_types import ResolvedCollection, ResolvedEntity
from hunter.utils.logging import get_logger

logger = get_logger(__name__)

DEFAULT_CACHE_TTL_SECONDS = 24 * 60 * 60

V = TypeVar("V")


class TTLCache(Generic[V]):
    """In-memory cache whose entries expire ``ttl_seconds`` after insertion.

    Expiry is checked lazily on read. Writers to the same key simply
    overwrite each other.
    """

    def __init__(
        self,
        ttl_seconds: float = DEFAULT_CACHE_TTL_SECONDS,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.ttl_seconds = ttl_seconds
        self._clock = clock
        self._entries: Dict[str, Tuple[float, V]] = {}

    def get(self, key: str) -> Optional[V]:
        entry = self._entries.get(key)
        if entry is None:
            return None
        inserted_at, value = entry
        if self._clock() - inserted_at >= self.ttl_seconds:
            self._entries.pop(key, None)
            return None
        return value

    def set(self, key: str, value: V) -> None:
        self._entries[key] = (self._clock(), value)

    def purge_expired(self) -> int:
        """Drop every expired entry and return how many were removed."""
        now = self._clock()
        expired = [
            key
            for key, (inserted_at, _) in self._entries.items()
            if now - inserted_at >= self.ttl_seconds
        ]
        for key in expired:
            self._entries.pop(key, None)
        return len(expired)

    def __len__(self) -> int:
        return len(self._entries)


class Resolver:
    """Map token symbols and collection names to contract addresses."""

    def __init__(
        self,
        tokens: Mapping[str, Mapping[str, Any]],
        collections: Mapping[str, Mapping[str, Any]],
        coingecko: Optional[CoinGeckoClient] = None,
        cache: Optional[TTLCache[ResolvedEntity]] = None,
    ) -> None:
        self.tokens = {key.strip().upper(): value for key, value in tokens.items()}
        self.collections = dict(collections)
        self.coingecko = coingecko
        self.cache: TTLCache[ResolvedEntity] = cache if cache is not None else TTLCache()
        self._inflight: Dict[str, "asyncio.Future[Optional[ResolvedEntity]]"] = {}

    @property
    def known_symbols(self) -> Iterable[str]:
        return self.tokens.keys()

    @staticmethod
    def normalize_symbol(symbol: str) -> str:
        return symbol.strip().lstrip("$").upper()

    def lookup_static_token(self, symbol: str) -> Optional[ResolvedEntity]:
        entry = self.tokens.get(self.normalize_symbol(symbol))
        if not entry:
            return None
        return ResolvedEntity(
            symbol=str(entry.get("symbol") or symbol).upper(),
            name=str(entry.get("name") or symbol),
            address=str(entry["address"]),
            decimals=entry.get("decimals"),
            source="static",
        )

    async def resolve_token(self, symbol: str) -> Optional[ResolvedEntity]:
        """Resolve a ticker to its contract; None means "skip enrichment"."""
        normalized = self.normalize_symbol(symbol) if isinstance(symbol, str) else ""
        if not normalized:
            return None

        static = self.lookup_static_token(normalized)
        if static:
            return static

        cached = self.cache.get(normalized)
        if cached:
            logger.debug("resolver_cache_hit", symbol=normalized)
            return replace(cached, source="cache")

        if self.coingecko is None:
            return None

        # Concurrent callers for the same symbol share one external lookup.
        pending = self._inflight.get(normalized)
        if pending is None:
            pending = asyncio.ensure_future(self._lookup_external(normalized))
            self._inflight[normalized] = pending
            pending.add_done_callback(
                lambda _fut, key=normalized: self._inflight.pop(key, None)
            )
        return await asyncio.shield(pending)

    async def _lookup_external(self, symbol: str) -> Optional[ResolvedEntity]:
        try:
            found = await self.coingecko.search_token(symbol)
        except Exception as exc:
            logger.error("resolver_lookup_failed", symbol=symbol, error=str(exc))
            return None

        if not found or not found.get("contractAddress"):
            logger.info("resolver_symbol_not_found", symbol=symbol)
            return None

        entity = ResolvedEntity(
            symbol=str(found.get("symbol") or symbol).upper(),
            name=str(found.get("name") or symbol),
            address=str(found["contractAddress"]),
            source="coingecko",
        )
        self.cache.set(symbol, entity)
        logger.info("resolver_symbol_cached", symbol=symbol, address=entity.address)
        return entity

    async def resolve_tokens(self, symbols: Iterable[str]) -> Dict[str, ResolvedEntity]:
        """Resolve many symbols concurrently, omitting the ones not found."""
        unique = []
        for symbol in symbols:
            normalized = self.normalize_symbol(symbol) if isinstance(symbol, str) else ""
            if normalized and normalized not in unique:
                unique.append(normalized)

        resolved = await asyncio.gather(*(self.resolve_token(s) for s in unique))
        return {
            symbol: entity
            for symbol, entity in zip(unique, resolved)
            if entity is not None
        }

    def resolve_collection(self, name: str) -> Optional[ResolvedCollection]:
        """Static-table lookup: exact key, then case-insensitive key/name/symbol."""
        if not isinstance(name, str):
            return None
        normalized = name.strip()
        if not normalized:
            return None

        entry = self.collections.get(normalized)
        if entry:
            return self._collection(normalized, entry)

        lowered = normalized.lower()
        for key, entry in self.collections.items():
            candidates = (key, entry.get("name"), entry.get("symbol"))
            if any(isinstance(c, str) and c.lower() == lowered for c in candidates):
                return self._collection(key, entry)
        return None

    @staticmethod
    def _collection(key: str, entry: Mapping[str, Any]) -> ResolvedCollection:
        return ResolvedCollection(
            key=key,
            name=str(entry.get("name") or key),
            address=str(entry["address"]),
            symbol=entry.get("symbol"),
        )

    def collection_labels(self) -> Dict[str, str]:
        """Lower-cased contract address -> display name for every known collection."""
        return {
            str(entry["address"]).lower(): str(entry.get("name") or key)
            for key, entry in self.collections.items()
            if entry.get("address")
        }

    def purge_cache(self) -> int:
        return self.cache.purge_expired()


__all__ = ["DEFAULT_CACHE_TTL_SECONDS", "Resolver", "TTLCache"]
