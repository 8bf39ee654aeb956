"""User query validation."""

from __future__ import annotations

import re

from web3 import Web3

from hunter.errors import QueryValidationError

MIN_QUERY_LENGTH = 3
MAX_QUERY_LENGTH = 500

ADDRESS_CANDIDATE_PATTERN = re.compile(r"0x[a-fA-F0-9]{40}")


def validate_address(value: str) -> bool:
    """Return True for a 42-char ``0x`` address that passes EIP-55 rules.

    All-lowercase and all-uppercase hex is accepted as unchecksummed; mixed
    case must match the checksum exactly.
    """
    if not isinstance(value, str) or len(value) != 42:
        return False
    if not ADDRESS_CANDIDATE_PATTERN.fullmatch(value):
        return False
    digits = value[2:]
    if digits == digits.lower() or digits == digits.upper():
        return bool(Web3.is_address(value))
    return bool(Web3.is_checksum_address(value))


def validate_query(query: str) -> str:
    """Return the stripped query or raise :class:`QueryValidationError`."""
    if not isinstance(query, str):
        raise QueryValidationError("Query must be a string.")

    text = query.strip()
    if len(text) < MIN_QUERY_LENGTH:
        raise QueryValidationError(
            "0xHunter needs more to track. "
            f"Query must be at least {MIN_QUERY_LENGTH} characters."
        )
    if len(text) > MAX_QUERY_LENGTH:
        raise QueryValidationError(
            "The path is too long. "
            f"Query must be under {MAX_QUERY_LENGTH} characters."
        )

    for candidate in ADDRESS_CANDIDATE_PATTERN.findall(text):
        if not validate_address(candidate):
            raise QueryValidationError(
                "0xHunter cannot track this target - invalid address format: "
                f"{candidate}",
                offending=candidate,
            )

    return text


__all__ = ["validate_address", "validate_query"]
