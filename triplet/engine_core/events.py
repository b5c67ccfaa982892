"""
Events - Outbound notifications from the engine.

The engine knows nothing about rendering. Presentation layers subclass
GameObserver (every hook defaults to a no-op) and subscribe to an engine.
EventLog is a ready-made observer that records everything as sequenced,
JSON-friendly events.
"""

from __future__ import annotations
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Sequence

from .state import Board, Coordinate, Symbol


class Severity(str, Enum):
    """How prominently a message should be shown."""
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"


class EventKind(str, Enum):
    BOARD_CHANGED = "board_changed"
    SCORE_CHANGED = "score_changed"
    SELECTION_CHANGED = "selection_changed"
    TURN_CHANGED = "turn_changed"
    MESSAGE = "message"
    GAME_OVER = "game_over"


class GameObserver:
    """Notification interface for presentation layers."""

    def on_board_changed(self, board: Board):
        pass

    def on_score_changed(self, score_a: int, score_b: int):
        pass

    def on_selection_changed(self, selection: Sequence[Coordinate]):
        pass

    def on_turn_changed(self, current_player: Symbol):
        pass

    def on_message(self, text: str, severity: Severity):
        pass

    def on_game_over(self, winner: Symbol | None, final_scores: tuple[int, int]):
        pass


@dataclass
class GameEvent:
    """A recorded notification."""
    sequence: int
    kind: EventKind
    payload: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        return {"sequence": self.sequence, "kind": self.kind.value, "payload": self.payload}


class EventLog(GameObserver):
    """
    Observer that records every notification.

    Args:
        listener: Optional callback invoked with each new event
            (used to push updates over WebSockets)
    """

    def __init__(self, listener: Callable[[GameEvent], None] | None = None):
        self.events: list[GameEvent] = []
        self.listener = listener

    def _record(self, kind: EventKind, **payload: Any):
        event = GameEvent(sequence=len(self.events) + 1, kind=kind, payload=payload)
        self.events.append(event)
        if self.listener:
            self.listener(event)

    def since(self, sequence: int) -> list[GameEvent]:
        """Events recorded after the given sequence number."""
        return [e for e in self.events if e.sequence > sequence]

    def of_kind(self, kind: EventKind) -> list[GameEvent]:
        return [e for e in self.events if e.kind is kind]

    def messages(self) -> list[str]:
        return [e.payload["text"] for e in self.of_kind(EventKind.MESSAGE)]

    def clear(self):
        self.events.clear()

    def on_board_changed(self, board: Board):
        self._record(EventKind.BOARD_CHANGED, rows=board.to_rows())

    def on_score_changed(self, score_a: int, score_b: int):
        self._record(EventKind.SCORE_CHANGED, score_a=score_a, score_b=score_b)

    def on_selection_changed(self, selection: Sequence[Coordinate]):
        self._record(EventKind.SELECTION_CHANGED, selection=[list(c) for c in selection])

    def on_turn_changed(self, current_player: Symbol):
        self._record(EventKind.TURN_CHANGED, current_player=current_player.value)

    def on_message(self, text: str, severity: Severity):
        self._record(EventKind.MESSAGE, text=text, severity=severity.value)

    def on_game_over(self, winner: Symbol | None, final_scores: tuple[int, int]):
        self._record(
            EventKind.GAME_OVER,
            winner=winner.value if winner else None,
            score_a=final_scores[0],
            score_b=final_scores[1],
        )
