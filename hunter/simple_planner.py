"""Deterministic pattern-based planner used when Gemini is unusable."""

from typing import Iterable

from hunter.extraction import extract_addresses, extract_symbols
from hunter.planner_types import ApiCall, ExtractedData, Intent, QueryPlan
from hunter.utils.logging import get_logger

logger = get_logger(__name__)

ADDRESS_CONFIDENCE = 0.7
TOKEN_CONFIDENCE = 0.6


class SimplePlanner:
    """Regex fallback: always returns a plan and never raises."""

    def __init__(self, known_symbols: Iterable[str] = ()) -> None:
        self.known_symbols = {symbol.upper() for symbol in known_symbols}

    def plan(self, query: str) -> QueryPlan:
        text = query if isinstance(query, str) else ""

        addresses = extract_addresses(text)
        if addresses:
            address = addresses[0]
            logger.info("simple_planner_address", address=address)
            return QueryPlan(
                intent=Intent.ADDRESS_ANALYSIS,
                confidence=ADDRESS_CONFIDENCE,
                extracted_data=ExtractedData(addresses=[address]),
                api_calls=[
                    ApiCall(
                        method="core.getBalance",
                        params=[address, "latest"],
                        purpose="balance",
                    ),
                    ApiCall(
                        method="core.getTransactionCount",
                        params=[address, "latest"],
                        purpose="transactionCount",
                    ),
                    ApiCall(
                        method="core.getTokenBalances",
                        params=[address],
                        purpose="tokenBalances",
                    ),
                ],
                reasoning="Fallback address detection",
            )

        symbols = extract_symbols(text, self.known_symbols)
        if symbols:
            logger.info("simple_planner_token", symbol=symbols[0])
            return QueryPlan(
                intent=Intent.TOKEN_ANALYSIS,
                confidence=TOKEN_CONFIDENCE,
                extracted_data=ExtractedData(tokens=[symbols[0]]),
                api_calls=[],
                reasoning="Fallback token detection",
            )

        logger.info("simple_planner_no_match")
        return QueryPlan(
            intent=Intent.UNKNOWN,
            confidence=0.0,
            reasoning="No fallback pattern matched",
        )


__all__ = ["SimplePlanner"]
