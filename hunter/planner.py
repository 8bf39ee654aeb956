"""Gemini-powered planner that turns a query into allowlisted provider calls."""

from __future__ import annotations

import json
import textwrap
from string import Template
from typing import Any, Dict, List, Optional

from hunter.allowlist import AllowedMethod, format_method_list, is_allowed
from hunter.errors import PlanningError
from hunter.extraction import match_entities
from hunter.llm import GeminiClient
from hunter.planner_types import (
    DEFAULT_CONFIDENCE_THRESHOLD,
    ApiCall,
    ExtractedData,
    QueryPlan,
)
from hunter.resolver import Resolver
from hunter.simple_planner import SimplePlanner
from hunter.utils.json_utils import parse_llm_json
from hunter.utils.logging import get_logger

logger = get_logger(__name__)


class GeminiPlanner:
    """Plan with Gemini, falling back to :class:`SimplePlanner` on any failure.

    Low confidence is a legitimate answer from Gemini, not a failure: the plan
    is kept but its calls are cleared.
    """

    DEFAULT_PROMPT = Template(
        textwrap.dedent(
            """
            You are 0xHunter, an Ethereum mainnet analyst. Plan read-only
            blockchain lookups that answer the user's query: "$query"

            Allowed methods (use these exact dotted names, nothing else):
            $methods

            Planning rules:
            - ADDRESS_ANALYSIS: the query contains a 0x address. Plan
              core.getBalance [address, "latest"], core.getTransactionCount
              [address, "latest"] and core.getTokenBalances [address].
            - If the query mentions NFTs or a collection, add
              nft.getNftsForOwner [address].
            - TOKEN_ANALYSIS: the query names a token ($$SYMBOL or a ticker).
              Plan core.getTokenMetadata [contractAddress] when the contract is
              known.
            - History questions ("bought", "sold", "transactions"): plan
              core.getAssetTransfers [{"fromAddress": address}].
            - Only use addresses that appear in the query or in the entities
              below. Never invent addresses.
            - extractedData.addresses, contractAddresses and collections hold
              0x contract or wallet addresses only. For collections, copy the
              addresses from the recognised entities; never put collection
              names there.
            - Set confidence between 0 and 1. Use a confidence below
              $threshold when the query cannot be answered with these methods.

            Entities already recognised in the query (authoritative):
            $entities

            Respond strictly as JSON matching this schema:
            $schema
            """
        ).strip()
    )

    def __init__(
        self,
        llm: GeminiClient,
        resolver: Resolver,
        fallback: Optional[SimplePlanner] = None,
        confidence_threshold: float = DEFAULT_CONFIDENCE_THRESHOLD,
        prompt_template: Optional[Template] = None,
    ) -> None:
        self.llm = llm
        self.resolver = resolver
        self.fallback = fallback or SimplePlanner(resolver.known_symbols)
        self.confidence_threshold = confidence_threshold
        self._prompt_template = prompt_template or self.DEFAULT_PROMPT

    async def plan(self, query: str) -> QueryPlan:
        local = await self.extract_local(query)
        try:
            plan = await self._plan_with_llm(query, local)
        except Exception as exc:
            logger.warning(
                "planner_fallback",
                error=str(exc),
                error_type=type(exc).__name__,
            )
            plan = self.fallback.plan(query)
            return plan.model_copy(
                update={"extracted_data": plan.extracted_data.merge(local)}
            )
        return self._finalize(plan, local)

    async def extract_local(self, query: str) -> ExtractedData:
        """Entities found by pattern matching, with symbols and collections resolved."""
        matched = match_entities(query, self.resolver.tokens, self.resolver.collections)
        resolved = await self.resolver.resolve_tokens(matched.symbols)

        collections: List[str] = []
        for key in matched.collections:
            collection = self.resolver.resolve_collection(key)
            if collection:
                collections.append(collection.address)

        return ExtractedData(
            addresses=matched.addresses,
            tokens=matched.symbols,
            contract_addresses=[entity.address for entity in resolved.values()],
            collections=collections,
        )

    async def _plan_with_llm(self, query: str, local: ExtractedData) -> QueryPlan:
        prompt = self._build_prompt(query, local)
        logger.debug("planner_prompt", prompt_len=len(prompt))

        text = await self.llm.generate(prompt, json_mode=True)
        logger.debug("planner_raw_response", output=text)
        if not text.strip():
            raise PlanningError("completion service returned no text")

        # Either step raising sends the caller to the fallback planner.
        payload = parse_llm_json(text)
        plan = QueryPlan.model_validate(payload)

        if plan.reasoning:
            logger.info("planner_reasoning", reasoning=plan.reasoning)
        logger.info(
            "planner_plan",
            intent=plan.intent.value,
            confidence=plan.confidence,
            calls=[call.method for call in plan.api_calls],
        )
        return plan

    def _finalize(self, plan: QueryPlan, local: ExtractedData) -> QueryPlan:
        extracted = local.merge(plan.extracted_data)

        calls: List[ApiCall] = []
        for call in plan.api_calls:
            if not is_allowed(call.method):
                logger.warning("planner_dropping_disallowed_call", method=call.method)
                continue
            calls.append(call)

        if not plan.is_confident(self.confidence_threshold):
            logger.info("planner_low_confidence", confidence=plan.confidence)
            calls = []
        elif extracted.collections and extracted.addresses:
            planned = {call.method for call in calls}
            if AllowedMethod.GET_NFTS_FOR_OWNER.value not in planned:
                for address in extracted.addresses:
                    calls.append(
                        ApiCall(
                            method=AllowedMethod.GET_NFTS_FOR_OWNER.value,
                            params=[address],
                            purpose="nfts",
                        )
                    )

        return plan.model_copy(update={"extracted_data": extracted, "api_calls": calls})

    def _build_prompt(self, query: str, local: ExtractedData) -> str:
        context_map: Dict[str, Any] = {
            "query": query,
            "methods": format_method_list(),
            "entities": self._format_entities(local),
            "schema": json.dumps(QueryPlan.model_json_schema(by_alias=True), indent=2),
            "threshold": self.confidence_threshold,
        }
        return self._prompt_template.safe_substitute(context_map)

    @staticmethod
    def _format_entities(local: ExtractedData) -> str:
        entities = {
            key: value
            for key, value in local.model_dump(by_alias=True).items()
            if value
        }
        if not entities:
            return "(none)"
        return json.dumps(entities, indent=2)


__all__ = ["GeminiPlanner"]
