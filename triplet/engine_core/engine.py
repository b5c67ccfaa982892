"""
Game Engine - The single owner and writer of game state.

Inbound calls (from a presentation layer):
    configure(board_size, controls)   full re-initialisation
    start()                           SETUP -> PLAYING
    select_tile(row, col)             toggle a tile; the third tile resolves a move
    skip_turn()                       voluntary pass
    request_robot_move()              let the robot play the current side

Outbound notifications go to subscribed GameObservers.

Turn flow:
    Selecting(0..2) --3rd tile--> Resolving --legal--> switch player
                                            --illegal--> Selecting(0)
    switch player: flip; a player without legal moves is passed
    automatically, and two such passes in a row end the game.

A robot move is a single-flight timer owned by the engine. While it is
pending the selection shows the robot's pick and all other input is
ignored.
"""

from __future__ import annotations
from functools import partial
import logging
import random
from typing import Sequence

from .action import Action, ActionResult, ResultCode
from .board_generator import BoardGenerator
from .config import GameConfig
from .events import GameObserver, Severity
from .move_evaluator import MoveEvaluator, MoveVerdict, owned_count
from .scheduler import ManualScheduler, Scheduler, TimerHandle
from .state import (
    Board, Coordinate, GamePhase, PlayerControls, Score, Symbol, Triple, TurnState,
)
from ..bots.policy import BotPolicy, RandomPolicy
from ..errors import IllegalMove, InvalidConfiguration, InvalidCoordinate

logger = logging.getLogger(__name__)

STARTING_PLAYER = Symbol.PLAYER_A


class GameEngine:
    """
    One game of Triplet.

    Args:
        config: Board size, controls and robot delays (defaults if omitted)
        policy: Robot policy (RandomPolicy seeded from config.seed if omitted)
        scheduler: Timer source for robot moves (ManualScheduler if omitted)
        board: Start from this board instead of generating one
    """

    def __init__(
        self,
        config: GameConfig | None = None,
        policy: BotPolicy | None = None,
        scheduler: Scheduler | None = None,
        board: Board | None = None,
    ):
        self.config = config or GameConfig()
        self.rng = random.Random(self.config.seed)
        self.policy = policy or RandomPolicy(seed=self.rng.randrange(2**32))
        self.scheduler = scheduler or ManualScheduler()
        self.generator = BoardGenerator(rng=self.rng)

        self._observers: list[GameObserver] = []
        self._pending_robot: TimerHandle | None = None
        self._reset(board or self.generator.generate(self.config.board_size))

    def _reset(self, board: Board):
        self.board = board
        self.evaluator = MoveEvaluator(board=board)
        self.score = Score()
        self.turn = TurnState(current_player=STARTING_PLAYER)
        self.selection: list[Coordinate] = []
        self.history: list[Action] = []

    # =========================================================================
    # Observers
    # =========================================================================

    def subscribe(self, observer: GameObserver):
        self._observers.append(observer)

    def unsubscribe(self, observer: GameObserver):
        if observer in self._observers:
            self._observers.remove(observer)

    def _notify_board(self):
        for obs in self._observers:
            obs.on_board_changed(self.board)

    def _notify_score(self):
        for obs in self._observers:
            obs.on_score_changed(self.score.player_a, self.score.player_b)

    def _notify_selection(self):
        selection = tuple(self.selection)
        for obs in self._observers:
            obs.on_selection_changed(selection)

    def _notify_turn(self):
        for obs in self._observers:
            obs.on_turn_changed(self.turn.current_player)

    def _message(self, text: str, severity: Severity = Severity.INFO):
        for obs in self._observers:
            obs.on_message(text, severity)

    def _notify_all(self):
        self._notify_board()
        self._notify_score()
        self._notify_selection()
        self._notify_turn()

    # =========================================================================
    # Read access
    # =========================================================================

    @property
    def current_player(self) -> Symbol:
        return self.turn.current_player

    @property
    def phase(self) -> GamePhase:
        return self.turn.phase

    @property
    def is_game_over(self) -> bool:
        return self.turn.is_game_over

    @property
    def winner(self) -> Symbol | None:
        return self.turn.winner

    @property
    def controls(self) -> PlayerControls:
        return self.config.controls

    @property
    def robot_pending(self) -> bool:
        return self._pending_robot is not None

    def legal_moves(self, player: Symbol | None = None) -> list[Triple]:
        return self.evaluator.enumerate_legal_moves(player or self.current_player)

    def has_legal_move(self, player: Symbol | None = None) -> bool:
        return self.evaluator.has_legal_move(player or self.current_player)

    # =========================================================================
    # Inbound calls
    # =========================================================================

    def configure(self, board_size: int, controls: PlayerControls | None = None):
        """
        Re-initialise with a new board size and/or controls.

        Regenerates the board and resets scores and turn. On
        InvalidConfiguration the current game is left untouched.
        """
        try:
            config = self.config.with_changes(board_size=board_size, controls=controls)
        except InvalidConfiguration as e:
            logger.warning("Rejected configuration: %s", e)
            raise

        self._cancel_robot()
        self.config = config
        self._reset(self.generator.generate(config.board_size))
        logger.info(
            "Configured %dx%d board, robot: %s",
            config.board_size, config.board_size, config.controls.robot_setting,
        )
        self._notify_all()

    def start(self) -> ActionResult:
        """Begin play; a robot-controlled first player moves right away."""
        if self.turn.phase is GamePhase.GAME_OVER:
            return ActionResult.failure("Game is over", ResultCode.GAME_OVER.value)
        if self.turn.phase is GamePhase.PLAYING:
            return ActionResult.failure("Game already started")

        self.turn.phase = GamePhase.PLAYING
        logger.info("Game started, %s to move", self.current_player.value)
        self._notify_all()
        self._maybe_schedule_robot()
        return ActionResult.ok(f"{self.current_player.value} to move")

    def select_tile(self, row: int, col: int) -> ActionResult:
        coord = self._validate_coordinate(row, col)

        rejected = self._check_accepting_input()
        if rejected:
            return rejected

        if coord in self.selection:
            self.selection.remove(coord)
            self._notify_selection()
            return ActionResult.ok(f"Deselected ({row},{col})")

        if self.board.is_empty(coord):
            self._message("That tile has already been taken.", Severity.WARNING)
            return ActionResult.failure(
                f"Tile ({row},{col}) has already been taken",
                ResultCode.TILE_TAKEN.value,
            )

        self.selection.append(coord)
        self._notify_selection()
        logger.debug("%s selected (%d,%d)", self.current_player.value, row, col)

        if len(self.selection) < 3:
            return ActionResult.ok(f"Selected ({row},{col})")

        return self._resolve(tuple(self.selection))

    def skip_turn(self) -> ActionResult:
        """
        Voluntary pass.

        Unconditional: it does not check whether the player had a move,
        and it does not count toward ending the game.
        """
        rejected = self._check_accepting_input()
        if rejected:
            return rejected

        player = self.current_player
        self._message(f"{player.value} has skipped their turn.")
        self.selection.clear()
        self._notify_selection()
        self.history.append(Action.skip(player))
        logger.info("%s skipped", player.value)

        self._switch_player()
        return ActionResult.ok(f"{player.value} skipped")

    def request_robot_move(self) -> ActionResult:
        """Let the robot play the current side, whoever controls it."""
        rejected = self._check_accepting_input()
        if rejected:
            return rejected
        return self._schedule_robot_move(self.config.manual_robot_delay)

    # =========================================================================
    # Move resolution
    # =========================================================================

    def _validate_coordinate(self, row: int, col: int) -> Coordinate:
        for value in (row, col):
            if isinstance(value, bool) or not isinstance(value, int):
                raise InvalidCoordinate(
                    f"Coordinates must be integers, got ({row!r}, {col!r})",
                    context={"row": row, "col": col},
                )
        coord = (row, col)
        if not self.board.in_bounds(coord):
            raise InvalidCoordinate(
                f"({row},{col}) is outside the {self.board.size}x{self.board.size} board",
                context={"row": row, "col": col, "board_size": self.board.size},
            )
        return coord

    def _check_accepting_input(self) -> ActionResult | None:
        if self.turn.phase is GamePhase.SETUP:
            return ActionResult.failure("Game has not started", ResultCode.GAME_NOT_STARTED.value)
        if self.turn.phase is GamePhase.GAME_OVER:
            return ActionResult.failure("Game is over - no moves allowed", ResultCode.GAME_OVER.value)
        if self._pending_robot is not None:
            return ActionResult.failure("Robot is moving", ResultCode.ROBOT_PENDING.value)
        return None

    def _resolve(self, triple: Sequence[Coordinate]) -> ActionResult:
        """Apply a completed selection, reporting illegal ones to the player."""
        player = self.current_player
        try:
            self._apply_move(triple)
        except IllegalMove as e:
            logger.debug("Rejected %s for %s: %s", list(triple), player.value, e.code)
            self._message(e.message, Severity.WARNING)
            self.selection.clear()
            self._notify_selection()
            return ActionResult.failure(e.message, e.code)

        change = self.history[-1].describe()
        self._switch_player()
        return ActionResult.ok(change)

    def _apply_move(self, triple: Sequence[Coordinate]) -> int:
        """
        Capture a triple for the current player.

        Raises IllegalMove without touching the board or score.
        Returns the points scored.
        """
        player = self.current_player
        verdict = self.evaluator.evaluate(triple, player)
        if verdict is MoveVerdict.ILLEGAL_DISCONNECTED:
            raise IllegalMove(
                "Invalid move! All three tiles must be connected.",
                verdict,
                context={"tiles": [list(c) for c in triple]},
            )
        if verdict is MoveVerdict.ILLEGAL_MAJORITY:
            raise IllegalMove(
                f"Invalid move! Pick at least two {player.value}s.",
                verdict,
                context={"tiles": [list(c) for c in triple]},
            )

        points = owned_count(self.board, triple, player)
        self.board.clear(triple)
        self.score.add(player, points)
        self.history.append(Action.capture(player, tuple(triple), points))
        self.selection.clear()
        logger.info("%s captured %s for %d", player.value, list(triple), points)

        self._notify_score()
        self._notify_board()
        self._notify_selection()
        return points

    # =========================================================================
    # Turn state machine
    # =========================================================================

    def _switch_player(self):
        # Bounded by the two players: after both are found without moves
        # the game is over.
        for _ in range(2):
            self.turn.current_player = self.turn.current_player.opponent
            self._notify_turn()
            player = self.current_player

            if self.evaluator.has_legal_move(player):
                self.turn.consecutive_passes = 0
                break

            self._message(f"{player.value} has no valid moves!")
            self.history.append(Action.forced_pass(player))
            logger.info("%s has no valid moves", player.value)

            if self.turn.consecutive_passes >= 1:
                self._end_game()
                return
            self.turn.consecutive_passes = 1

        self._maybe_schedule_robot()

    def _end_game(self):
        self.turn.phase = GamePhase.GAME_OVER
        self.turn.winner = self.score.leader()
        self.selection.clear()
        self.history.append(Action.end_game(self.turn.winner))

        if self.turn.winner:
            headline = f"{self.turn.winner.value} wins!"
        else:
            headline = "It's a tie!"
        a, b = self.score.as_tuple()
        logger.info("Game over: %s (O %d, X %d)", headline, a, b)

        self._message(f"{headline} Final Scores: O: {a}, X: {b}")
        for obs in self._observers:
            obs.on_game_over(self.turn.winner, (a, b))

    # =========================================================================
    # Robot
    # =========================================================================

    def _maybe_schedule_robot(self):
        if self.turn.phase is GamePhase.PLAYING and self.controls.is_robot(self.current_player):
            self._schedule_robot_move(self.config.robot_delay)

    def _schedule_robot_move(self, delay: float) -> ActionResult:
        if self._pending_robot is not None:
            return ActionResult.failure("Robot is moving", ResultCode.ROBOT_PENDING.value)

        player = self.current_player
        moves = self.evaluator.enumerate_legal_moves(player)
        if not moves:
            return ActionResult.failure(
                f"{player.value} has no valid moves",
                ResultCode.NO_LEGAL_MOVES.value,
            )

        decision = self.policy.select_move(self.board, player, moves)
        self.selection = list(decision.triple)
        self._notify_selection()
        logger.debug(
            "Robot %s picked %s (%s, %d candidates)",
            player.value, list(decision.triple), self.policy.get_name(), len(moves),
        )

        self._pending_robot = self.scheduler.call_later(
            delay, partial(self._commit_robot_move, player, decision.triple)
        )
        return ActionResult.ok(f"Robot {player.value} is choosing")

    def _commit_robot_move(self, player: Symbol, triple: Triple):
        self._pending_robot = None
        if self.turn.phase is not GamePhase.PLAYING or self.current_player is not player:
            logger.debug("Dropping stale robot move for %s", player.value)
            return
        self._resolve(triple)

    def close(self):
        """Cancel any pending robot move. Used when a session is dropped."""
        self._cancel_robot()

    def _cancel_robot(self):
        if self._pending_robot is not None:
            self._pending_robot.cancel()
            self._pending_robot = None
