"""Render aggregated results as a short natural-language answer."""

from __future__ import annotations

import json
import textwrap
from string import Template
from typing import Any, Dict, List, Mapping, Optional, Sequence

from hunter.errors import NarrationError
from hunter.llm import GeminiClient
from hunter.planner_types import Intent
from hunter.utils.formatting import short_address
from hunter.utils.logging import get_logger

logger = get_logger(__name__)

FALLBACK_EMPTY = "The trail goes quiet. 0xHunter found nothing on-chain for this query."
FALLBACK_WITH_RESULTS = "0xHunter tracked the target. The on-chain findings are listed below."

LENGTH_BY_INTENT: Dict[str, str] = {
    Intent.ADDRESS_ANALYSIS.value: "three to five sentences, at most 120 words",
    Intent.TOKEN_ANALYSIS.value: "two or three sentences",
    Intent.UNKNOWN.value: "one sentence",
}
DEFAULT_LENGTH = "at most 200 words"


def nft_collection_sentence(results: Sequence[Mapping[str, Any]]) -> Optional[str]:
    """Deterministic answer for "does X hold collection Y", or None."""
    sentences: List[str] = []
    for result in results:
        if "requestedCollectionFound" not in result:
            continue
        owner = result.get("shortAddress") or short_address(str(result.get("address", "")))
        collection = result.get("requestedCollection") or "the requested collection"
        count = int(result.get("requestedCollectionCount") or 0)
        if result["requestedCollectionFound"]:
            noun = "NFT" if count == 1 else "NFTs"
            sentences.append(f"Yes. {owner} holds {count} {noun} from {collection}.")
        else:
            sentences.append(f"No. {owner} does not hold any NFTs from {collection}.")
    return " ".join(sentences) if sentences else None


class Narrator:
    """Summarize results with Gemini, degrading to fixed sentences."""

    SUMMARY_PROMPT = Template(
        textwrap.dedent(
            """
            You are 0xHunter, a terse on-chain tracker. Answer the user's
            question using ONLY the data below.

            User question: "$query"
            Query type: $intent

            Data:
            $results

            Style guide:
            - Length: $length.
            - Plain text, no markdown, no bullet lists.
            - Mention only fields present in the data. A missing field was not
              fetched; never describe it as zero or empty.
            - Quote balances exactly as formatted in the data.
            - Do not give financial advice.
            """
        ).strip()
    )

    def __init__(self, llm: Optional[GeminiClient] = None) -> None:
        self.llm = llm

    async def summarize(
        self,
        query: str,
        intent: str,
        results: Sequence[Mapping[str, Any]],
    ) -> str:
        shortcut = nft_collection_sentence(results)
        if shortcut:
            logger.info("narrator_nft_shortcut")
            return shortcut

        if not results:
            return FALLBACK_EMPTY

        try:
            return await self._summarize_with_llm(query, intent, results)
        except Exception as exc:
            logger.warning(
                "narrator_fallback",
                error=str(exc),
                error_type=type(exc).__name__,
            )
            return FALLBACK_WITH_RESULTS

    async def _summarize_with_llm(
        self,
        query: str,
        intent: str,
        results: Sequence[Mapping[str, Any]],
    ) -> str:
        if self.llm is None:
            raise NarrationError("no completion service configured")

        prompt = self.SUMMARY_PROMPT.safe_substitute(
            query=query,
            intent=intent,
            results=json.dumps(list(results), indent=2, default=str),
            length=LENGTH_BY_INTENT.get(intent, DEFAULT_LENGTH),
        )
        text = (await self.llm.generate(prompt)).strip()
        if not text:
            raise NarrationError("completion service returned no text")
        return text


__all__ = [
    "FALLBACK_EMPTY",
    "FALLBACK_WITH_RESULTS",
    "Narrator",
    "nft_collection_sentence",
]
