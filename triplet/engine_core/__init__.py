"""
Engine Core - Rules and state management for Triplet.

The engine is the runtime that:
1. Generates a fair board
2. Owns board, score and turn state
3. Evaluates selections and enumerates legal moves
4. Applies captures and runs the turn/pass/end state machine
5. Schedules robot moves
"""

from .state import (
    Board,
    Coordinate,
    GamePhase,
    PlayerControl,
    PlayerControls,
    Score,
    Symbol,
    Triple,
    TurnState,
)
from .action import Action, ActionType, ActionResult, ResultCode
from .board_generator import BoardGenerator, generate_board
from .config import GameConfig, MIN_BOARD_SIZE, MAX_BOARD_SIZE
from .connectivity import is_adjacent, is_connected
from .move_evaluator import MoveEvaluator, MoveVerdict, legal_moves
from .events import EventKind, EventLog, GameEvent, GameObserver, Severity
from .scheduler import AsyncioScheduler, ManualScheduler, Scheduler
from .engine import GameEngine

__all__ = [
    "Board",
    "Coordinate",
    "GamePhase",
    "PlayerControl",
    "PlayerControls",
    "Score",
    "Symbol",
    "Triple",
    "TurnState",
    "Action",
    "ActionType",
    "ActionResult",
    "ResultCode",
    "BoardGenerator",
    "generate_board",
    "GameConfig",
    "MIN_BOARD_SIZE",
    "MAX_BOARD_SIZE",
    "is_adjacent",
    "is_connected",
    "MoveEvaluator",
    "MoveVerdict",
    "legal_moves",
    "EventKind",
    "EventLog",
    "GameEvent",
    "GameObserver",
    "Severity",
    "AsyncioScheduler",
    "ManualScheduler",
    "Scheduler",
    "GameEngine",
]
