"""
Game State - Board, score and turn containers.

Design principles:
- The engine is the single writer: nothing outside GameEngine mutates these
- Printable: boards parse from and render to plain rows of text
- Symbols keep the classic "O"/"X" letters so messages read naturally
"""

from __future__ import annotations
from dataclasses import dataclass, field
from enum import Enum
from typing import Iterable, Iterator, Sequence

Coordinate = tuple[int, int]  # (row, col), 0-indexed
Triple = tuple[Coordinate, Coordinate, Coordinate]

# right, left, down, up
NEIGHBOR_OFFSETS: tuple[Coordinate, ...] = ((0, 1), (0, -1), (1, 0), (-1, 0))


class Symbol(Enum):
    """Contents of a board cell."""
    PLAYER_A = "O"
    PLAYER_B = "X"
    EMPTY = " "

    @property
    def opponent(self) -> Symbol:
        """The other player's symbol."""
        if self is Symbol.PLAYER_A:
            return Symbol.PLAYER_B
        if self is Symbol.PLAYER_B:
            return Symbol.PLAYER_A
        raise ValueError("EMPTY has no opponent")

    @classmethod
    def parse(cls, text: str) -> Symbol:
        """Parse a cell letter; '.', '_' and ' ' mean empty."""
        if text in (".", "_", " ", ""):
            return cls.EMPTY
        try:
            return cls(text.upper())
        except ValueError:
            raise ValueError(f"Unknown cell symbol: {text!r}")


class GamePhase(Enum):
    """High-level game phases."""
    SETUP = "setup"
    PLAYING = "playing"
    GAME_OVER = "game_over"


class PlayerControl(Enum):
    """Who drives a side."""
    HUMAN = "human"
    ROBOT = "robot"


@dataclass(frozen=True)
class PlayerControls:
    """Control assignment for both sides. Fixed for the duration of a game."""
    player_a: PlayerControl = PlayerControl.HUMAN
    player_b: PlayerControl = PlayerControl.HUMAN

    def for_player(self, player: Symbol) -> PlayerControl:
        if player is Symbol.PLAYER_A:
            return self.player_a
        if player is Symbol.PLAYER_B:
            return self.player_b
        raise ValueError(f"Not a player: {player}")

    def is_robot(self, player: Symbol) -> bool:
        return self.for_player(player) is PlayerControl.ROBOT

    @property
    def robot_setting(self) -> str:
        """Single-word summary: neither, O, X or both."""
        a = self.player_a is PlayerControl.ROBOT
        b = self.player_b is PlayerControl.ROBOT
        if a and b:
            return "both"
        if a:
            return Symbol.PLAYER_A.value
        if b:
            return Symbol.PLAYER_B.value
        return "neither"

    @classmethod
    def from_robot_setting(cls, setting: str) -> PlayerControls:
        """
        Build controls from a single robot setting.

        Accepts "neither", "both", or the symbol letter of the robot side.
        """
        value = setting.strip()
        if value.lower() in ("neither", "none", ""):
            return cls()
        if value.lower() == "both":
            return cls(PlayerControl.ROBOT, PlayerControl.ROBOT)
        if value.upper() == Symbol.PLAYER_A.value:
            return cls(player_a=PlayerControl.ROBOT)
        if value.upper() == Symbol.PLAYER_B.value:
            return cls(player_b=PlayerControl.ROBOT)
        raise ValueError(f"Unknown robot setting: {setting!r}")


@dataclass
class Board:
    """
    Square grid of symbols.

    cells[row][col]; rows are lists so captures can clear in place.
    """
    size: int
    cells: list[list[Symbol]] = field(default_factory=list)

    @classmethod
    def parse(cls, rows: Sequence[str]) -> Board:
        """Build a board from text rows such as ["OOX", "XO.", "OXO"]."""
        size = len(rows)
        cells = []
        for row in rows:
            if len(row) != size:
                raise ValueError("Board rows must form a square")
            cells.append([Symbol.parse(ch) for ch in row])
        return cls(size=size, cells=cells)

    def in_bounds(self, coord: Coordinate) -> bool:
        row, col = coord
        return 0 <= row < self.size and 0 <= col < self.size

    def at(self, coord: Coordinate) -> Symbol:
        row, col = coord
        return self.cells[row][col]

    def is_empty(self, coord: Coordinate) -> bool:
        return self.at(coord) is Symbol.EMPTY

    def clear(self, coords: Iterable[Coordinate]):
        """Mark the given cells as captured."""
        for row, col in coords:
            self.cells[row][col] = Symbol.EMPTY

    def coordinates(self) -> Iterator[Coordinate]:
        """Row-major iteration over every coordinate."""
        for row in range(self.size):
            for col in range(self.size):
                yield (row, col)

    def occupied_neighbors(self, coord: Coordinate) -> list[Coordinate]:
        """Non-empty 4-neighbors of a cell, in NEIGHBOR_OFFSETS order."""
        row, col = coord
        out = []
        for dr, dc in NEIGHBOR_OFFSETS:
            n = (row + dr, col + dc)
            if self.in_bounds(n) and not self.is_empty(n):
                out.append(n)
        return out

    def count(self, symbol: Symbol) -> int:
        return sum(row.count(symbol) for row in self.cells)

    @property
    def occupied_count(self) -> int:
        return self.size * self.size - self.count(Symbol.EMPTY)

    @property
    def is_fair(self) -> bool:
        """Neither player starts with more than one extra tile."""
        return abs(self.count(Symbol.PLAYER_A) - self.count(Symbol.PLAYER_B)) <= 1

    def to_rows(self) -> list[str]:
        """Inverse of parse(); empty cells become '.'."""
        return [
            "".join("." if s is Symbol.EMPTY else s.value for s in row)
            for row in self.cells
        ]

    def render(self) -> str:
        """Grid with row/column indices, for terminals and logs."""
        header = "   " + " ".join(str(c) for c in range(self.size))
        lines = [header]
        for r, row in enumerate(self.cells):
            lines.append(f"{r:>2} " + " ".join(s.value if s is not Symbol.EMPTY else "." for s in row))
        return "\n".join(lines)

    def copy(self) -> Board:
        return Board(size=self.size, cells=[row.copy() for row in self.cells])


@dataclass
class Score:
    """Captured self-owned tiles per player. Never decreases."""
    player_a: int = 0
    player_b: int = 0

    def get(self, player: Symbol) -> int:
        if player is Symbol.PLAYER_A:
            return self.player_a
        if player is Symbol.PLAYER_B:
            return self.player_b
        raise ValueError(f"Not a player: {player}")

    def add(self, player: Symbol, points: int):
        if points < 0:
            raise ValueError("Scores never decrease")
        if player is Symbol.PLAYER_A:
            self.player_a += points
        elif player is Symbol.PLAYER_B:
            self.player_b += points
        else:
            raise ValueError(f"Not a player: {player}")

    def leader(self) -> Symbol | None:
        """Player with the higher score, None on a tie."""
        if self.player_a > self.player_b:
            return Symbol.PLAYER_A
        if self.player_b > self.player_a:
            return Symbol.PLAYER_B
        return None

    def as_tuple(self) -> tuple[int, int]:
        return (self.player_a, self.player_b)


@dataclass
class TurnState:
    """Whose turn it is and how the game stands."""
    current_player: Symbol = Symbol.PLAYER_A
    consecutive_passes: int = 0  # 0 or 1
    phase: GamePhase = GamePhase.SETUP
    winner: Symbol | None = None

    @property
    def is_game_over(self) -> bool:
        return self.phase is GamePhase.GAME_OVER
