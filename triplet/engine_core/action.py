"""
Action System - Actions and results.

Actions represent:
1. Player moves (capture a triple, voluntary skip)
2. System events (forced pass, end of game)

Every applied action is appended to the engine's history. Each inbound
engine call answers with an ActionResult.
"""

from __future__ import annotations
from dataclasses import dataclass, field
from enum import Enum

from .state import Coordinate, Symbol


class ActionType(Enum):
    """Types of actions recorded in the history."""
    CAPTURE = "capture"
    SKIP = "skip"
    FORCED_PASS = "forced_pass"
    END_GAME = "end_game"


class ResultCode(str, Enum):
    """Machine-readable reasons for rejected input that is not an exception."""
    GAME_NOT_STARTED = "GAME_NOT_STARTED"
    GAME_OVER = "GAME_OVER"
    ROBOT_PENDING = "ROBOT_PENDING"
    TILE_TAKEN = "TILE_TAKEN"
    NO_LEGAL_MOVES = "NO_LEGAL_MOVES"


@dataclass
class Action:
    """
    One entry of the game history.

    Captures carry their three coordinates and the points earned;
    other actions only name the player.
    """
    action_type: ActionType
    player: Symbol | None = None
    coords: tuple[Coordinate, ...] = ()
    points: int = 0

    @classmethod
    def capture(cls, player: Symbol, coords: tuple[Coordinate, ...], points: int) -> Action:
        """Factory for a capture."""
        return cls(action_type=ActionType.CAPTURE, player=player, coords=coords, points=points)

    @classmethod
    def skip(cls, player: Symbol) -> Action:
        """Factory for a voluntary skip."""
        return cls(action_type=ActionType.SKIP, player=player)

    @classmethod
    def forced_pass(cls, player: Symbol) -> Action:
        """Factory for an automatic pass."""
        return cls(action_type=ActionType.FORCED_PASS, player=player)

    @classmethod
    def end_game(cls, winner: Symbol | None) -> Action:
        """Factory for the end of the game."""
        return cls(action_type=ActionType.END_GAME, player=winner)

    def describe(self) -> str:
        name = self.player.value if self.player else "Nobody"
        if self.action_type is ActionType.CAPTURE:
            tiles = ", ".join(f"({r},{c})" for r, c in self.coords)
            return f"{name} captured {tiles} for {self.points} point(s)"
        if self.action_type is ActionType.SKIP:
            return f"{name} skipped"
        if self.action_type is ActionType.FORCED_PASS:
            return f"{name} had no valid moves"
        return f"Game over, winner: {name}" if self.player else "Game over, tie"


@dataclass
class ActionResult:
    """
    Result of an inbound engine call.

    Contains:
    - Whether the call succeeded
    - Error text and code (if rejected)
    - Human-readable state changes (for UI/logging)
    """
    success: bool
    error: str | None = None
    error_code: str | None = None
    state_changes: list[str] = field(default_factory=list)

    @classmethod
    def failure(cls, error: str, error_code: str | None = None) -> ActionResult:
        """Create a failure result."""
        return cls(success=False, error=error, error_code=error_code)

    @classmethod
    def ok(cls, *changes: str) -> ActionResult:
        """Create a success result."""
        return cls(success=True, state_changes=list(changes))
