"""CLI interface for 0xHunter.

Usage:
    python -m hunter.cli "what does 0xd8dA6BF26964aF9D7eEd9e03E53415D37aA96045 hold?"
    python -m hunter.cli --output json "price of $PEPE"
    python -m hunter.cli --verify-tables
"""

from __future__ import annotations

import argparse
import asyncio
import sys
from typing import Any, Dict, List, Mapping

from hunter.allowlist import AllowedMethod
from hunter.cli_output import CLIOutput, OutputFormat
from hunter.config import load_settings
from hunter.errors import QueryValidationError
from hunter.executor import ApiExecutor
from hunter.service import QueryService
from hunter.utils.logging import configure_logging, get_logger

logger = get_logger(__name__)


async def verify_token_table(
    executor: ApiExecutor, tokens: Mapping[str, Mapping[str, Any]]
) -> List[Dict[str, Any]]:
    """Compare each static token entry with the symbol its contract reports."""

    async def check(symbol: str, entry: Mapping[str, Any]) -> Dict[str, Any]:
        metadata = await executor.execute(
            AllowedMethod.GET_TOKEN_METADATA.value, [entry["address"]]
        )
        onchain = metadata.get("symbol") if isinstance(metadata, dict) else None
        return {
            "symbol": symbol,
            "address": entry["address"],
            "onchainSymbol": onchain,
            "ok": bool(onchain) and str(onchain).upper() == symbol.upper(),
        }

    return list(
        await asyncio.gather(*(check(symbol, entry) for symbol, entry in tokens.items()))
    )


async def main(argv: List[str] | None = None) -> int:
    """CLI entrypoint."""
    parser = argparse.ArgumentParser(
        description="0xHunter CLI - read-only Ethereum queries in plain English",
    )
    parser.add_argument("query", nargs="?", help="Natural language query")
    parser.add_argument(
        "-o",
        "--output",
        choices=["text", "json"],
        default="text",
        help="Output format (default: text)",
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Show aggregated results and debug logs",
    )
    parser.add_argument(
        "--verify-tables",
        action="store_true",
        help="Check static token addresses against on-chain metadata",
    )
    args = parser.parse_args(argv)

    output = CLIOutput(format=OutputFormat(args.output), verbose=args.verbose)

    if not args.query and not args.verify_tables:
        parser.print_help()
        return 1

    try:
        settings = load_settings()
    except RuntimeError as exc:
        output.error(str(exc))
        return 1

    configure_logging("DEBUG" if args.verbose else settings.log_level, console=args.verbose)
    service = QueryService.from_settings(settings)

    try:
        if args.verify_tables:
            output.status("Verifying static token table...")
            rows = await verify_token_table(service.executor, service.resolver.tokens)
            output.verification(rows)
            return 0 if all(row["ok"] for row in rows) else 2

        try:
            payload = await service.search(args.query)
        except QueryValidationError as exc:
            output.error(str(exc))
            return 1
        output.result(payload)
        return 0
    finally:
        await service.aclose()


def cli_main() -> None:
    """Synchronous wrapper for CLI entry."""
    sys.exit(asyncio.run(main()))


if __name__ == "__main__":
    cli_main()
