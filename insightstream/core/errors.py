"""
Error taxonomy and best-effort parse outcomes.
"""

from dataclasses import dataclass
from typing import Any, Optional


class InsightStreamError(Exception):
    """Base class for errors surfaced to the user."""


class TransportFailure(InsightStreamError):
    """Non-success response (or connection error) from the assistant or query transport."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


class RenderFailure(InsightStreamError):
    """Report composition or PDF rendering failed; no document is delivered."""


class QueryRejected(InsightStreamError):
    """Generated query refused before reaching the query transport."""


@dataclass(frozen=True)
class Outcome:
    """Result of a best-effort parse: either a value or the reason it failed."""
    ok: bool
    value: Any = None
    error: Optional[str] = None

    @classmethod
    def success(cls, value: Any) -> "Outcome":
        return cls(ok=True, value=value)

    @classmethod
    def failure(cls, error: str) -> "Outcome":
        return cls(ok=False, error=error)
