"""Query pipeline: validate -> plan -> execute -> aggregate -> narrate."""

from __future__ import annotations

import asyncio
import uuid
from typing import Any, Dict, List, Mapping, Optional, Sequence

from hunter.aggregator import aggregate_address, aggregate_token
from hunter.alchemy_client import AlchemyProvider
from hunter.coingecko import CoinGeckoClient
from hunter.config import Settings
from hunter.errors import QueryValidationError
from hunter.executor import ApiExecutor
from hunter.llm import GeminiClient
from hunter.narrator import Narrator
from hunter.planner import GeminiPlanner
from hunter.planner_types import (
    DEFAULT_CONFIDENCE_THRESHOLD,
    ExtractedData,
    Intent,
    QueryPlan,
)
from hunter.resolver import Resolver, TTLCache
from hunter.utils.formatting import is_meaningful
from hunter.utils.logging import bind_context, clear_context, get_logger
from hunter.utils.prompts import load_prompt_template
from hunter.utils.tables import load_collection_table, load_token_table
from hunter.validation import validate_query

logger = get_logger(__name__)

LOW_CONFIDENCE_RESPONSE = "0xHunter cannot decipher this request..."
LOW_CONFIDENCE_ERROR = "LOW_CONFIDENCE"
LOW_CONFIDENCE_MESSAGE = "Try being more specific."
COLD_TRAIL_RESPONSE = "The trail grows cold. 0xHunter lost the scent on this one."
COLD_TRAIL_ERROR = "SEARCH_FAILED"
COLD_TRAIL_MESSAGE = "Something went wrong while tracking. Try again shortly."


def cold_trail_payload(query: str) -> Dict[str, Any]:
    """Renderable payload for an unexpected pipeline failure."""
    return {
        "success": False,
        "data": {
            "type": Intent.UNKNOWN.value,
            "query": query,
            "response": COLD_TRAIL_RESPONSE,
            "results": [],
            "confidence": 0.0,
            "reasoning": "",
            "error": COLD_TRAIL_ERROR,
            "message": COLD_TRAIL_MESSAGE,
        },
    }


class QueryService:
    """Run one natural-language query end to end."""

    def __init__(
        self,
        planner: GeminiPlanner,
        executor: ApiExecutor,
        narrator: Narrator,
        resolver: Resolver,
        coingecko: Optional[CoinGeckoClient] = None,
        confidence_threshold: float = DEFAULT_CONFIDENCE_THRESHOLD,
        max_token_metadata: int = 10,
        enable_price_enrichment: bool = True,
    ) -> None:
        self.planner = planner
        self.executor = executor
        self.narrator = narrator
        self.resolver = resolver
        self.coingecko = coingecko
        self.confidence_threshold = confidence_threshold
        self.max_token_metadata = max_token_metadata
        self.enable_price_enrichment = enable_price_enrichment

    @classmethod
    def from_settings(cls, settings: Settings) -> "QueryService":
        coingecko = CoinGeckoClient(
            api_key=settings.coingecko_api_key,
            base_url=settings.coingecko_base_url,
            timeout=settings.http_timeout_seconds,
        )
        resolver = Resolver(
            tokens=load_token_table(settings.tokens_json),
            collections=load_collection_table(settings.collections_json),
            coingecko=coingecko,
            cache=TTLCache(ttl_seconds=settings.resolver_cache_ttl_seconds),
        )
        llm = GeminiClient(
            api_key=settings.gemini_api_key,
            model_name=settings.gemini_model,
            timeout=settings.llm_timeout_seconds,
        )
        planner = GeminiPlanner(
            llm=llm,
            resolver=resolver,
            confidence_threshold=settings.planner_confidence_threshold,
            prompt_template=load_prompt_template(
                settings.planner_prompt_file, GeminiPlanner.DEFAULT_PROMPT
            ),
        )
        return cls(
            planner=planner,
            executor=ApiExecutor(AlchemyProvider.from_settings(settings)),
            narrator=Narrator(llm),
            resolver=resolver,
            coingecko=coingecko,
            confidence_threshold=settings.planner_confidence_threshold,
            max_token_metadata=settings.max_token_metadata,
            enable_price_enrichment=settings.enable_price_enrichment,
        )

    async def aclose(self) -> None:
        await self.executor.provider.shutdown()
        if self.coingecko is not None:
            await self.coingecko.aclose()

    async def search(self, query: str) -> Dict[str, Any]:
        """Answer ``query``.

        Raises :class:`QueryValidationError` for malformed input; every other
        failure is rendered into the returned payload.
        """
        bind_context(request_id=uuid.uuid4().hex[:12])
        try:
            text = validate_query(query)
            logger.info("search_started", query=text)
            try:
                return await self._run(text)
            except Exception as exc:
                logger.exception("search_failed", error=str(exc))
                return cold_trail_payload(text)
        except QueryValidationError as exc:
            logger.info("search_rejected", reason=str(exc))
            raise
        finally:
            clear_context()

    async def _run(self, query: str) -> Dict[str, Any]:
        plan = await self.planner.plan(query)

        if not plan.is_confident(self.confidence_threshold):
            logger.info("search_low_confidence", confidence=plan.confidence)
            return {
                "success": True,
                "data": {
                    "type": plan.intent.value,
                    "query": query,
                    "response": LOW_CONFIDENCE_RESPONSE,
                    "results": [],
                    "confidence": plan.confidence,
                    "reasoning": plan.reasoning or "Planning failed",
                    "error": LOW_CONFIDENCE_ERROR,
                    "message": LOW_CONFIDENCE_MESSAGE,
                },
            }

        raw = await self.executor.execute_plan(plan.api_calls, plan.extracted_data)
        results = await self._aggregate(plan, raw)
        response = await self.narrator.summarize(query, plan.intent.value, results)

        logger.info("search_completed", intent=plan.intent.value, results=len(results))
        return {
            "success": True,
            "data": {
                "type": plan.intent.value,
                "query": query,
                "response": response,
                "results": results,
                "confidence": plan.confidence,
                "reasoning": plan.reasoning,
            },
        }

    async def _aggregate(
        self, plan: QueryPlan, raw: Mapping[str, Mapping[str, Any]]
    ) -> List[Dict[str, Any]]:
        extracted = plan.extracted_data
        labels = self.resolver.collection_labels()

        # Only addresses that had at least one call issued get a result.
        targets = [
            (address, raw[address.lower()])
            for address in extracted.addresses
            if raw.get(address.lower())
        ]
        results: List[Dict[str, Any]] = list(
            await asyncio.gather(
                *(
                    self._aggregate_address(address, bucket, extracted, labels)
                    for address, bucket in targets
                )
            )
        )

        if plan.intent is Intent.TOKEN_ANALYSIS:
            tokens = await asyncio.gather(
                *(self._aggregate_token(symbol, raw) for symbol in extracted.tokens)
            )
            results.extend(tokens)
        return results

    async def _aggregate_address(
        self,
        address: str,
        bucket: Mapping[str, Any],
        extracted: ExtractedData,
        labels: Mapping[str, str],
    ) -> Dict[str, Any]:
        token_metadata = None
        prices: Dict[str, float] = {}
        if bucket.get("tokenBalances") is not None:
            token_metadata = await self.executor.enrich_token_metadata(
                bucket["tokenBalances"], limit=self.max_token_metadata
            )
            prices = await self._holding_prices(token_metadata)
        return aggregate_address(
            address,
            bucket,
            extracted,
            token_metadata=token_metadata,
            prices=prices,
            collection_labels=labels,
        )

    async def _aggregate_token(
        self, symbol: str, raw: Mapping[str, Mapping[str, Any]]
    ) -> Dict[str, Any]:
        entity = await self.resolver.resolve_token(symbol)
        if entity is None:
            return aggregate_token(symbol, None)

        price = None
        metadata = None
        if self.enable_price_enrichment and self.coingecko is not None:
            price, metadata = await asyncio.gather(
                self.coingecko.get_token_price_by_address(entity.address),
                self.coingecko.get_token_metadata_by_address(entity.address),
            )
        return aggregate_token(
            symbol,
            entity,
            raw=raw.get(entity.address.lower()),
            price=price,
            metadata=metadata,
        )

    async def _holding_prices(
        self, token_metadata: Sequence[Mapping[str, Any]]
    ) -> Dict[str, float]:
        if not self.enable_price_enrichment or self.coingecko is None:
            return {}
        contracts = [
            str(token["contractAddress"]).lower()
            for token in token_metadata
            if is_meaningful(token.get("tokenBalance"), token.get("decimals"))
        ]
        prices = await asyncio.gather(
            *(self.coingecko.get_token_price_by_address(c) for c in contracts)
        )
        return {
            contract: price
            for contract, price in zip(contracts, prices)
            if price is not None
        }


__all__ = ["QueryService", "cold_trail_payload"]
