"""
Triplet Error Hierarchy

All engine exceptions inherit from TripletError so callers can catch
the whole family at the presentation boundary.

Usage:
    from triplet.errors import InvalidCoordinate

    try:
        engine.select_tile(row, col)
    except InvalidCoordinate as e:
        logger.warning(f"Bad pick: {e.message}")
"""

from __future__ import annotations
from typing import Any

__all__ = [
    "TripletError",
    "InvalidCoordinate",
    "IllegalMove",
    "InvalidConfiguration",
]


class TripletError(Exception):
    """Base exception for all Triplet errors.

    Attributes:
        code: Machine-readable error code for categorization
        message: Human-readable error description
        context: Additional context for debugging
    """
    code: str = "TRIPLET_ERROR"

    def __init__(
        self,
        message: str,
        code: str | None = None,
        context: dict[str, Any] | None = None,
    ):
        super().__init__(message)
        self.message = message
        if code:
            self.code = code
        self.context = context or {}

    def __str__(self) -> str:
        return self.message

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "code": self.code,
            "message": self.message,
            "context": self.context,
        }


class InvalidCoordinate(TripletError, ValueError):
    """Coordinate outside the board, negative, or not an integer pair."""
    code: str = "INVALID_COORDINATE"


class IllegalMove(TripletError):
    """
    A completed selection that the rules reject.

    Recoverable: the engine reports it as a message, clears the
    selection and lets the same player try again.
    """
    code: str = "ILLEGAL_MOVE"

    def __init__(
        self,
        message: str,
        verdict: Any,
        context: dict[str, Any] | None = None,
    ):
        super().__init__(message, code=verdict.name, context=context)
        self.verdict = verdict


class InvalidConfiguration(TripletError, ValueError):
    """Rejected game configuration; the previous board is retained."""
    code: str = "INVALID_CONFIGURATION"
