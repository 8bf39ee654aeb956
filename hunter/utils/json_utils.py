"""JSON parsing utilities for LLM responses."""

import json
from typing import Any, Dict


def strip_code_fence(text: str) -> str:
    """Remove a surrounding markdown code fence (```json ... ```)."""
    cleaned = text.strip()
    if cleaned.startswith("```"):
        first_newline = cleaned.find("\n")
        cleaned = cleaned[first_newline + 1 :] if first_newline != -1 else cleaned[3:]
    if cleaned.endswith("```"):
        cleaned = cleaned[:-3]
    return cleaned.strip()


def parse_llm_json(text: str) -> Dict[str, Any]:
    """
    Parse a JSON object from an LLM response, handling markdown code blocks.

    Args:
        text: Raw text from LLM that may contain JSON wrapped in markdown.

    Returns:
        Parsed JSON object.

    Raises:
        json.JSONDecodeError: If the text cannot be parsed as JSON.
        ValueError: If the JSON is valid but not an object.
    """
    try:
        payload = json.loads(text)
    except json.JSONDecodeError:
        cleaned = strip_code_fence(text)
        try:
            payload = json.loads(cleaned)
        except json.JSONDecodeError as e:
            # Include cleaned text preview in error for debugging
            preview = cleaned[:100] + "..." if len(cleaned) > 100 else cleaned
            raise json.JSONDecodeError(
                f"Failed to parse LLM JSON. Preview: {preview}", e.doc, e.pos
            ) from e

    if not isinstance(payload, dict):
        raise ValueError(f"Expected a JSON object, got {type(payload).__name__}")
    return payload
