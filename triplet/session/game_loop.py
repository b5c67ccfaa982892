"""
Game Loop - Synchronous, text-driven gameplay.

The loop:
1. Player types a command ("2 3", "skip", "robot", "quit")
2. Engine applies it
3. Loop drains pending robot moves on a virtual clock
4. Loop reports messages and moves since the last command
5. Repeat until game over

Used by the terminal game and by robot-vs-robot simulations.
"""

from __future__ import annotations
from dataclasses import dataclass, field
from enum import Enum
from typing import Callable

from ..bots import BotPolicy
from ..engine_core.config import GameConfig
from ..engine_core.engine import GameEngine
from ..engine_core.events import EventKind, EventLog
from ..engine_core.scheduler import ManualScheduler
from ..engine_core.state import PlayerControl, PlayerControls
from ..errors import InvalidCoordinate

HELP_TEXT = (
    "Commands: '<row> <col>' selects or deselects a tile, "
    "'skip' passes, 'robot' lets the robot move, 'quit' leaves."
)


class LoopState(Enum):
    """State of the game loop."""
    WAITING_HUMAN = "waiting_human"
    GAME_OVER = "game_over"
    QUIT = "quit"


@dataclass
class TurnResult:
    """
    Result of processing one command.

    Contains the messages and actions produced since the previous
    command, including any robot moves that followed.
    """
    success: bool
    loop_state: LoopState

    # Messages the engine announced (invalid moves, passes, game over)
    messages: list[str] = field(default_factory=list)

    # History entries applied, human and robot alike
    actions: list[str] = field(default_factory=list)

    # Command problems
    errors: list[str] = field(default_factory=list)

    # Game over info
    winner: str | None = None


class GameLoop:
    """
    The terminal game driver.

    Usage:
        loop = GameLoop.create(config)
        result = loop.start()

        while result.loop_state is LoopState.WAITING_HUMAN:
            show(loop.engine.board.render(), result.messages)
            result = loop.process_command(input("> "))
    """

    def __init__(self, engine: GameEngine, scheduler: ManualScheduler):
        self.engine = engine
        self.scheduler = scheduler
        self.events = EventLog()
        self.engine.subscribe(self.events)
        self._seen_events = 0
        self._seen_actions = 0
        self._quit = False

    @classmethod
    def create(
        cls,
        config: GameConfig,
        policy: BotPolicy | None = None,
        sleep: Callable[[float], None] | None = None,
    ) -> GameLoop:
        """
        Build an engine on a ManualScheduler.

        Pass sleep=time.sleep to make robot moves pause in real time.
        """
        scheduler = ManualScheduler(sleep=sleep)
        engine = GameEngine(config=config, policy=policy, scheduler=scheduler)
        return cls(engine, scheduler)

    @property
    def state(self) -> LoopState:
        if self._quit:
            return LoopState.QUIT
        if self.engine.is_game_over:
            return LoopState.GAME_OVER
        return LoopState.WAITING_HUMAN

    def start(self) -> TurnResult:
        result = self.engine.start()
        return self._run_robot_turns(result.success, [result.error] if result.error else [])

    def process_command(self, command: str) -> TurnResult:
        words = command.strip().lower().split()
        if not words:
            return self._report(False, [HELP_TEXT])

        verb = words[0]
        if verb in ("quit", "q", "exit"):
            self._quit = True
            self.engine.close()
            return self._report(True, [])
        if verb in ("help", "h", "?"):
            return self._report(True, [HELP_TEXT])
        if verb in ("skip", "s", "pass"):
            result = self.engine.skip_turn()
        elif verb in ("robot", "r", "random"):
            result = self.engine.request_robot_move()
        else:
            try:
                row, col = (int(w) for w in words)
            except ValueError:
                return self._report(False, [f"Unknown command: {command.strip()!r}. {HELP_TEXT}"])
            try:
                result = self.engine.select_tile(row, col)
            except InvalidCoordinate as e:
                return self._report(False, [e.message])

        errors = [result.error] if result.error else []
        return self._run_robot_turns(result.success, errors)

    def play_out(self) -> TurnResult:
        """Start and run a game where every side is a robot."""
        return self.start()

    def _run_robot_turns(self, success: bool, errors: list[str]) -> TurnResult:
        """Let pending robot moves play until a human is to move or the game ends."""
        self.scheduler.run_until_idle()
        return self._report(success, errors)

    def _report(self, success: bool, errors: list[str]) -> TurnResult:
        new_events = self.events.events[self._seen_events:]
        self._seen_events = len(self.events.events)
        new_actions = self.engine.history[self._seen_actions:]
        self._seen_actions = len(self.engine.history)

        winner = None
        if self.engine.is_game_over and self.engine.winner:
            winner = self.engine.winner.value

        return TurnResult(
            success=success,
            loop_state=self.state,
            messages=[e.payload["text"] for e in new_events if e.kind is EventKind.MESSAGE],
            actions=[a.describe() for a in new_actions],
            errors=errors,
            winner=winner,
        )


def play_robot_game(
    config: GameConfig,
    policy: BotPolicy | None = None,
) -> GameEngine:
    """Play one game to the end with both sides robot-controlled, no real delays."""
    robots = PlayerControls(PlayerControl.ROBOT, PlayerControl.ROBOT)
    loop = GameLoop.create(config.with_changes(controls=robots), policy=policy)
    loop.play_out()
    return loop.engine
