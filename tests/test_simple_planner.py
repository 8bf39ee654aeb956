"""Tests for the pattern-based fallback planner."""

from hunter.planner_types import Intent
from hunter.simple_planner import SimplePlanner
from hunter.utils.tables import DEFAULT_TOKENS

from tests.helpers import VITALIK


class TestSimplePlanner:
    """Tests for fallback plan construction."""

    def setup_method(self) -> None:
        self.planner = SimplePlanner(DEFAULT_TOKENS.keys())

    def test_address_gets_three_wallet_calls(self) -> None:
        """An address yields the balance/nonce/token-balance triple."""
        plan = self.planner.plan(f"what is {VITALIK} up to?")

        assert plan.intent is Intent.ADDRESS_ANALYSIS
        assert plan.confidence == 0.7
        assert plan.extracted_data.addresses == [VITALIK]
        assert [call.method for call in plan.api_calls] == [
            "core.getBalance",
            "core.getTransactionCount",
            "core.getTokenBalances",
        ]
        assert plan.api_calls[0].params == [VITALIK, "latest"]
        assert plan.api_calls[2].params == [VITALIK]
        assert plan.reasoning == "Fallback address detection"

    def test_only_first_address_is_planned(self) -> None:
        other = "0x" + "2" * 40
        plan = self.planner.plan(f"compare {other} with {VITALIK}")
        assert plan.extracted_data.addresses == [other]
        assert len(plan.api_calls) == 3

    def test_dollar_symbol_is_token_analysis(self) -> None:
        """$SYMBOL produces a token plan without calls."""
        plan = self.planner.plan("what about $pepe")

        assert plan.intent is Intent.TOKEN_ANALYSIS
        assert plan.confidence == 0.6
        assert plan.extracted_data.tokens == ["PEPE"]
        assert plan.api_calls == []

    def test_known_bare_symbol(self) -> None:
        plan = self.planner.plan("Is USDC still pegged")
        assert plan.intent is Intent.TOKEN_ANALYSIS
        assert plan.extracted_data.tokens == ["USDC"]

    def test_unknown_bare_word_is_ignored(self) -> None:
        plan = SimplePlanner().plan("Is HELLO a thing")
        assert plan.intent is Intent.UNKNOWN

    def test_nothing_matched(self) -> None:
        """Unmatched input yields an unknown plan at zero confidence."""
        plan = self.planner.plan("???")

        assert plan.intent is Intent.UNKNOWN
        assert plan.confidence == 0.0
        assert plan.api_calls == []
        assert plan.reasoning == "No fallback pattern matched"
