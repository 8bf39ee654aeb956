"""Exception types raised inside the query pipeline."""

from __future__ import annotations

from typing import Any, Optional


class HunterError(Exception):
    """Base class for pipeline errors."""


class QueryValidationError(HunterError):
    """User input was rejected before planning."""

    def __init__(self, message: str, offending: Optional[str] = None) -> None:
        super().__init__(message)
        self.offending = offending


class PlanningError(HunterError):
    """The completion service produced nothing usable for planning."""


class RpcError(HunterError):
    """Provider reported an error or answered with a non-2xx status."""

    def __init__(
        self,
        message: str,
        method: Optional[str] = None,
        code: Optional[int] = None,
        status_code: Optional[int] = None,
        data: Any = None,
    ) -> None:
        super().__init__(message)
        self.method = method
        self.code = code
        self.status_code = status_code
        self.data = data


class NarrationError(HunterError):
    """The completion service failed while summarising results."""


__all__ = [
    "HunterError",
    "NarrationError",
    "PlanningError",
    "QueryValidationError",
    "RpcError",
]
