"""
Game Config - Per-game settings and their environment defaults.

Environment variables (read by GameConfig.from_env):
    TRIPLET_BOARD_SIZE             Default board size (7)
    TRIPLET_ROBOT_DELAY_MS         Pause before an automatic robot move (800)
    TRIPLET_MANUAL_ROBOT_DELAY_MS  Pause before a requested robot move (300)
"""

from __future__ import annotations
from dataclasses import dataclass, field
import os

from ..errors import InvalidConfiguration
from .state import PlayerControl, PlayerControls

MIN_BOARD_SIZE = 3
MAX_BOARD_SIZE = 10


def env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return int(raw)
    except ValueError:
        raise InvalidConfiguration(
            f"{name} must be an integer, got {raw!r}",
            context={"variable": name},
        )


DEFAULT_BOARD_SIZE = 7
DEFAULT_ROBOT_DELAY_MS = 800
DEFAULT_MANUAL_ROBOT_DELAY_MS = 300


@dataclass(frozen=True)
class GameConfig:
    """
    Settings for one game. Validated on construction.

    Raises InvalidConfiguration for a board size outside
    MIN_BOARD_SIZE..MAX_BOARD_SIZE, negative delays, or bad controls.
    """
    board_size: int = DEFAULT_BOARD_SIZE
    controls: PlayerControls = field(default_factory=PlayerControls)
    robot_delay_ms: int = DEFAULT_ROBOT_DELAY_MS
    manual_robot_delay_ms: int = DEFAULT_MANUAL_ROBOT_DELAY_MS
    seed: int | None = None

    def __post_init__(self):
        if isinstance(self.board_size, bool) or not isinstance(self.board_size, int):
            raise InvalidConfiguration(
                f"Board size must be an integer, got {self.board_size!r}",
                context={"board_size": self.board_size},
            )
        if not MIN_BOARD_SIZE <= self.board_size <= MAX_BOARD_SIZE:
            raise InvalidConfiguration(
                f"Board size must be between {MIN_BOARD_SIZE} and {MAX_BOARD_SIZE}",
                context={"board_size": self.board_size},
            )
        if self.robot_delay_ms < 0 or self.manual_robot_delay_ms < 0:
            raise InvalidConfiguration("Robot delays cannot be negative")
        if not isinstance(self.controls, PlayerControls):
            raise InvalidConfiguration(f"Invalid player controls: {self.controls!r}")

    @property
    def robot_delay(self) -> float:
        """Automatic robot delay in seconds."""
        return self.robot_delay_ms / 1000.0

    @property
    def manual_robot_delay(self) -> float:
        """Requested robot delay in seconds."""
        return self.manual_robot_delay_ms / 1000.0

    def with_changes(
        self,
        board_size: int | None = None,
        controls: PlayerControls | None = None,
    ) -> GameConfig:
        """Return a new validated config with size and/or controls replaced."""
        return GameConfig(
            board_size=self.board_size if board_size is None else board_size,
            controls=self.controls if controls is None else controls,
            robot_delay_ms=self.robot_delay_ms,
            manual_robot_delay_ms=self.manual_robot_delay_ms,
            seed=self.seed,
        )

    @classmethod
    def from_env(
        cls,
        robot: str = "neither",
        seed: int | None = None,
    ) -> GameConfig:
        """Build a config from TRIPLET_* environment variables."""
        try:
            controls = PlayerControls.from_robot_setting(robot)
        except ValueError as e:
            raise InvalidConfiguration(str(e), context={"robot": robot})
        return cls(
            board_size=env_int("TRIPLET_BOARD_SIZE", DEFAULT_BOARD_SIZE),
            controls=controls,
            robot_delay_ms=env_int("TRIPLET_ROBOT_DELAY_MS", DEFAULT_ROBOT_DELAY_MS),
            manual_robot_delay_ms=env_int(
                "TRIPLET_MANUAL_ROBOT_DELAY_MS", DEFAULT_MANUAL_ROBOT_DELAY_MS
            ),
            seed=seed,
        )


def parse_controls(player_a: str, player_b: str) -> PlayerControls:
    """Build controls from two 'human'/'robot' strings."""
    try:
        return PlayerControls(
            player_a=PlayerControl(player_a.lower()),
            player_b=PlayerControl(player_b.lower()),
        )
    except ValueError:
        raise InvalidConfiguration(
            f"Player controls must be 'human' or 'robot', got {player_a!r}/{player_b!r}"
        )
