import asyncio
import time
from types import SimpleNamespace

import pytest

from hunter.llm import GeminiClient, extract_response_text


def _response(*texts):
    parts = [SimpleNamespace(text=text) for text in texts]
    return SimpleNamespace(candidates=[SimpleNamespace(content=SimpleNamespace(parts=parts))])


def test_extract_response_text_joins_parts() -> None:
    assert extract_response_text(_response('{"a"', ": 1}")) == '{"a": 1}'
    assert extract_response_text(_response(None, "x")) == "x"
    assert extract_response_text(SimpleNamespace(candidates=[])) == ""
    assert extract_response_text(None) == ""


@pytest.mark.asyncio
async def test_generate_requests_json_mode() -> None:
    calls = []

    def generate_content(contents, **kwargs):
        calls.append((contents, kwargs))
        return _response("{}")

    client = GeminiClient(
        "key", "gemini-test", model=SimpleNamespace(generate_content=generate_content)
    )

    assert await client.generate("plan this", json_mode=True) == "{}"
    contents, kwargs = calls[0]
    assert contents == [{"role": "user", "parts": [{"text": "plan this"}]}]
    assert kwargs == {"generation_config": {"response_mime_type": "application/json"}}

    await client.generate("narrate this")
    assert calls[1][1] == {}


@pytest.mark.asyncio
async def test_generate_times_out() -> None:
    def slow_generate(contents, **kwargs):
        time.sleep(0.3)
        return _response("late")

    client = GeminiClient(
        "key",
        "gemini-test",
        timeout=0.01,
        model=SimpleNamespace(generate_content=slow_generate),
    )

    with pytest.raises(asyncio.TimeoutError):
        await client.generate("plan this")
