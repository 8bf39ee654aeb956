"""CLI output formatting for terminal display."""

from __future__ import annotations

import json
import sys
from enum import Enum
from typing import Any, Dict, Iterable, List, Mapping


class OutputFormat(Enum):
    """Supported output formats."""

    TEXT = "text"
    JSON = "json"


def format_result_plain(result: Mapping[str, Any]) -> List[str]:
    """Plain-text lines for one aggregated result."""
    if "address" in result:
        lines = [f"{result.get('shortAddress') or result['address']}"]
        for key, label in (
            ("balance", "Balance"),
            ("transactions", "Transactions"),
            ("status", "Status"),
            ("risk", "Risk"),
        ):
            if key in result:
                lines.append(f"  {label}: {result[key]}")
        if result.get("tags"):
            lines.append(f"  Tags: {', '.join(result['tags'])}")
        for holding in result.get("tokenHoldings") or []:
            value = f" (${holding['valueUsd']:,.2f})" if "valueUsd" in holding else ""
            lines.append(f"  - {holding['symbol']}: {holding['balance']}{value}")
        if "requestedCollectionFound" in result:
            lines.append(
                f"  {result.get('requestedCollection')}: "
                f"{result.get('requestedCollectionCount', 0)} held"
            )
        return lines

    lines = [f"{result.get('symbol', '?')} {result.get('name', '')}".rstrip()]
    if result.get("contractAddress"):
        lines.append(f"  Contract: {result['contractAddress']}")
    if result.get("priceUsd") is not None:
        lines.append(f"  Price: ${result['priceUsd']}")
    if result.get("resolved") is False:
        lines.append("  Not found")
    return lines


class CLIOutput:
    """Unified output handler for CLI."""

    def __init__(
        self,
        format: OutputFormat = OutputFormat.TEXT,
        verbose: bool = False,
        stream: Any = None,
    ) -> None:
        self.format = format
        self.verbose = verbose
        self.stream = stream or sys.stdout

    def result(self, payload: Mapping[str, Any]) -> None:
        """Output a search payload."""
        if self.format == OutputFormat.JSON:
            print(json.dumps(payload, indent=2, default=str), file=self.stream)
            return

        data: Dict[str, Any] = dict(payload.get("data") or {})
        print(data.get("response", ""), file=self.stream)
        if data.get("message"):
            print(data["message"], file=self.stream)

        if self.verbose:
            for result in data.get("results") or []:
                print("", file=self.stream)
                for line in format_result_plain(result):
                    print(line, file=self.stream)

    def verification(self, rows: Iterable[Mapping[str, Any]]) -> None:
        """Output static-table verification rows."""
        rows = list(rows)
        if self.format == OutputFormat.JSON:
            print(json.dumps(rows, indent=2), file=self.stream)
            return
        for row in rows:
            mark = "OK" if row["ok"] else "MISMATCH"
            onchain = row.get("onchainSymbol") or "unavailable"
            print(
                f"{mark:8} {row['symbol']:8} {row['address']} (on-chain: {onchain})",
                file=self.stream,
            )

    def status(self, message: str) -> None:
        """Output a status message."""
        if self.format == OutputFormat.JSON:
            return
        print(message, file=self.stream)

    def error(self, message: str) -> None:
        """Output an error message."""
        if self.format == OutputFormat.JSON:
            print(json.dumps({"error": message}), file=sys.stderr)
            return
        print(f"Error: {message}", file=sys.stderr)


__all__ = ["CLIOutput", "OutputFormat", "format_result_plain"]
