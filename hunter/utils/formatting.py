"""Numeric parsing and display helpers for on-chain quantities.

All conversions stay in integer or :class:`~decimal.Decimal` arithmetic until
the final rendering step, so balances far beyond the real ETH supply keep
every digit.
"""

from __future__ import annotations

from decimal import ROUND_HALF_UP, Decimal, localcontext
from typing import Any, Optional

WEI_DECIMALS = 18
DEFAULT_TOKEN_DECIMALS = 18

# Smallest decimal-adjusted amount worth surfacing ("meaningful" tokens).
DUST_THRESHOLD = Decimal("0.0001")


def parse_quantity(value: Any) -> Optional[int]:
    """Parse a JSON-RPC quantity (``"0x1a"``, ``"26"`` or ``26``) into an int.

    Returns None for anything that is not a non-negative integer quantity.
    """
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value if value >= 0 else None
    if not isinstance(value, str):
        return None

    text = value.strip()
    if not text:
        return None
    try:
        if text[:2].lower() == "0x":
            digits = text[2:]
            return int(digits, 16) if digits else 0
        parsed = int(text, 10)
    except ValueError:
        return None
    return parsed if parsed >= 0 else None


def scale_down(raw: int, decimals: int) -> Decimal:
    """Exact ``raw / 10**decimals`` as a Decimal (exponent shift, no rounding)."""
    sign, digits, exponent = Decimal(raw).as_tuple()
    return Decimal((sign, digits, exponent - decimals))


def _quantize(value: Decimal, places: int) -> Decimal:
    quantum = Decimal(1).scaleb(-places)
    with localcontext() as ctx:
        ctx.prec = max(28, len(value.as_tuple().digits) + places + 2)
        return value.quantize(quantum, rounding=ROUND_HALF_UP)


def wei_to_eth(wei: int) -> Decimal:
    """Convert wei to ETH without precision loss."""
    return scale_down(wei, WEI_DECIMALS)


def format_eth(wei: int) -> str:
    """Render wei as ``"<n>.<4 digits> ETH"``; zero renders as ``0.0000 ETH``."""
    return f"{_quantize(wei_to_eth(wei), 4)} ETH"


def token_numeric_value(raw: Any, decimals: Optional[int] = DEFAULT_TOKEN_DECIMALS) -> float:
    """Decimal-adjusted token amount as a float, for display and sorting only."""
    amount = parse_quantity(raw)
    if amount is None:
        return 0.0
    unit = 10 ** _decimals(decimals)
    quotient, remainder = divmod(amount, unit)
    return quotient + remainder / unit


def is_significant(raw: Any) -> bool:
    """A balance is significant when its raw integer value is above zero."""
    amount = parse_quantity(raw)
    return amount is not None and amount > 0


def is_meaningful(raw: Any, decimals: Optional[int] = DEFAULT_TOKEN_DECIMALS) -> bool:
    """True when the decimal-adjusted amount is strictly above 0.0001."""
    amount = parse_quantity(raw)
    if amount is None:
        return False
    # amount / 10**d > 1 / 10**4  <=>  amount * 10**4 > 10**d
    return amount * 10_000 > 10 ** _decimals(decimals)


def format_token_balance(raw: Any, decimals: Optional[int] = DEFAULT_TOKEN_DECIMALS) -> str:
    """Render a raw token balance using magnitude buckets.

    ``0`` -> ``"0"``; below 0.0001 -> ``"<0.0001"``; below 1 -> 4 decimals;
    below 1,000 -> 2 decimals; below 1,000,000 -> thousands with ``K``;
    otherwise millions with ``M``.
    """
    amount = parse_quantity(raw)
    if amount is None or amount == 0:
        return "0"

    value = scale_down(amount, _decimals(decimals))
    if value < DUST_THRESHOLD:
        return "<0.0001"
    if value < 1:
        return str(_quantize(value, 4))
    if value < 1_000:
        return str(_quantize(value, 2))
    if value < 1_000_000:
        return f"{_quantize(scale_down(amount, _decimals(decimals) + 3), 1)}K"
    return f"{_quantize(scale_down(amount, _decimals(decimals) + 6), 1)}M"


def short_address(address: str) -> str:
    """``0xd8dA...6045`` style abbreviation."""
    if not isinstance(address, str) or len(address) < 10:
        return address
    return f"{address[:6]}...{address[-4:]}"


def _decimals(decimals: Any) -> int:
    parsed = parse_quantity(decimals)
    return DEFAULT_TOKEN_DECIMALS if parsed is None else parsed


__all__ = [
    "DUST_THRESHOLD",
    "format_eth",
    "format_token_balance",
    "is_meaningful",
    "is_significant",
    "parse_quantity",
    "scale_down",
    "short_address",
    "token_numeric_value",
    "wei_to_eth",
]
