"""Gemini completion wrapper shared by the planner and the narrator."""

from __future__ import annotations

import asyncio
from typing import Any, List, Optional

import google.generativeai as genai

from hunter.utils.logging import get_logger

logger = get_logger(__name__)

DEFAULT_TIMEOUT_SECONDS = 15.0


def extract_response_text(response: Any) -> str:
    """Concatenate the text parts of the first candidate."""
    if not response:
        return ""
    candidates = getattr(response, "candidates", None)
    if not candidates:
        return ""
    content = getattr(candidates[0], "content", None)
    parts = getattr(content, "parts", None)
    if not parts:
        return ""
    fragments: List[str] = []
    for part in parts:
        value = getattr(part, "text", None)
        if value:
            fragments.append(value)
    return "".join(fragments)


class GeminiClient:
    """Blocking ``generate_content`` run in a worker thread under a timeout.

    A timeout surfaces as :class:`asyncio.TimeoutError`; callers treat it like
    any other completion failure.
    """

    def __init__(
        self,
        api_key: str,
        model_name: str,
        timeout: float = DEFAULT_TIMEOUT_SECONDS,
        model: Optional[Any] = None,
    ) -> None:
        if model is None:
            genai.configure(api_key=api_key)
            model = genai.GenerativeModel(model_name=model_name)
        self.model = model
        self.model_name = model_name
        self.timeout = timeout

    async def generate(self, prompt: str, json_mode: bool = False) -> str:
        kwargs = {}
        if json_mode:
            kwargs["generation_config"] = {"response_mime_type": "application/json"}
        response = await asyncio.wait_for(
            asyncio.to_thread(
                self.model.generate_content,
                [{"role": "user", "parts": [{"text": prompt}]}],
                **kwargs,
            ),
            timeout=self.timeout,
        )
        text = extract_response_text(response)
        logger.debug("llm_response", model=self.model_name, length=len(text))
        return text


__all__ = ["GeminiClient", "extract_response_text"]
