"""
Pytest fixtures for Triplet tests.
"""

import pytest
from typing import Callable, Optional, Sequence

from ..bots import FirstLegalPolicy
from ..engine_core.config import GameConfig
from ..engine_core.engine import GameEngine
from ..engine_core.events import EventLog
from ..engine_core.scheduler import ManualScheduler
from ..engine_core.state import Board, PlayerControls

# O O X
# X O X
# O X O
SCENARIO_ROWS = ["OOX", "XOX", "OXO"]


@pytest.fixture
def scenario_board() -> Board:
    """The 3x3 board used by the rule examples."""
    return Board.parse(SCENARIO_ROWS)


@pytest.fixture
def make_engine() -> Callable[..., tuple[GameEngine, EventLog]]:
    """
    Factory for deterministic engines.

    Builds an engine on a ManualScheduler with FirstLegalPolicy and an
    EventLog subscribed, started unless start=False.
    """
    def _make(
        rows: Sequence[str] = SCENARIO_ROWS,
        robot: str = "neither",
        start: bool = True,
        seed: Optional[int] = 1,
    ) -> tuple[GameEngine, EventLog]:
        board = Board.parse(rows)
        config = GameConfig(
            board_size=board.size,
            controls=PlayerControls.from_robot_setting(robot),
            seed=seed,
        )
        engine = GameEngine(
            config=config,
            policy=FirstLegalPolicy(),
            scheduler=ManualScheduler(),
            board=board,
        )
        events = EventLog()
        engine.subscribe(events)
        if start:
            engine.start()
        return engine, events

    return _make


@pytest.fixture
def engine(make_engine) -> GameEngine:
    """Started engine on the scenario board, both sides human."""
    engine, _ = make_engine()
    return engine
