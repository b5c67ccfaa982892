"""
Session Module - Manages ephemeral game sessions.

A session represents one play-through of a game:
- Created when a client starts a game
- Holds the engine and its event log
- Destroyed when the client ends it

Sessions are EPHEMERAL: nothing is persisted.
"""

from .manager import SessionManager, Session, SessionState
from .game_loop import GameLoop, LoopState, TurnResult, play_robot_game

__all__ = [
    "SessionManager",
    "Session",
    "SessionState",
    "GameLoop",
    "LoopState",
    "TurnResult",
    "play_robot_game",
]
