from types import SimpleNamespace
from typing import Any, Dict, List, Optional
from unittest.mock import AsyncMock

VITALIK = "0xd8dA6BF26964aF9D7eEd9e03E53415D37aA96045"
BAYC = "0xBC4CA0EdA7647A8aB7C2061c2E118A18a936f13D"
USDC = "0xA0b86991c6218b36c1d19D4a2e9Eb0cE3606eB48"


class FakeLLM:
    """Stands in for GeminiClient; records prompts and replays responses."""

    def __init__(self, response: Any = "", error: Optional[BaseException] = None) -> None:
        self.response = response
        self.error = error
        self.prompts: List[str] = []

    async def generate(self, prompt: str, json_mode: bool = False) -> str:
        self.prompts.append(prompt)
        if self.error is not None:
            raise self.error
        return self.response


def make_provider(rpc_results: Optional[Dict[str, Any]] = None) -> SimpleNamespace:
    """Provider double whose RPC answers come from ``{method: result}``.

    A result that is an exception instance is raised instead.
    """
    rpc_results = rpc_results or {}

    async def fake_call(method: str, params: Any) -> Any:
        result = rpc_results.get(method)
        if isinstance(result, BaseException):
            raise result
        return result

    return SimpleNamespace(
        rpc=SimpleNamespace(call=AsyncMock(side_effect=fake_call)),
        rest=SimpleNamespace(
            get_token_balances=AsyncMock(return_value={"address": VITALIK, "tokenBalances": []}),
            get_nfts_for_owner=AsyncMock(return_value={"ownedNfts": []}),
            get_owners_for_contract=AsyncMock(return_value={"owners": []}),
            get_owners_for_nft=AsyncMock(return_value={"owners": []}),
        ),
        shutdown=AsyncMock(),
    )
