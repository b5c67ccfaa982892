"""
Move Evaluator - Classifies triples and generates legal moves.

The move generator is used by:
1. The engine, to detect forced passes
2. Robots, to enumerate candidate moves
3. Tests, as the reference for what evaluate() accepts

Design: a triple is generated from its middle tile. Every connected
triple on a square grid has a tile adjacent to both others, so walking
each occupied cell and pairing its occupied neighbors reaches them all.
"""

from __future__ import annotations
from dataclasses import dataclass
from enum import Enum
from itertools import combinations
from typing import Iterator, Sequence

from .state import Board, Coordinate, Symbol, Triple
from .connectivity import is_connected


class MoveVerdict(Enum):
    """Outcome of evaluating a completed selection."""
    LEGAL = "legal"
    ILLEGAL_MAJORITY = "illegal_majority"
    ILLEGAL_DISCONNECTED = "illegal_disconnected"

    @property
    def is_legal(self) -> bool:
        return self is MoveVerdict.LEGAL


def owned_count(board: Board, triple: Sequence[Coordinate], player: Symbol) -> int:
    """How many tiles of the triple currently show the player's symbol."""
    return sum(1 for coord in triple if board.at(coord) is player)


@dataclass
class MoveEvaluator:
    """
    Evaluates moves against the current board.

    Holds a reference to the engine's board, so it always sees
    the latest captures.
    """
    board: Board

    def evaluate(self, triple: Sequence[Coordinate], player: Symbol) -> MoveVerdict:
        if not is_connected(triple):
            return MoveVerdict.ILLEGAL_DISCONNECTED
        if owned_count(self.board, triple, player) < 2:
            return MoveVerdict.ILLEGAL_MAJORITY
        return MoveVerdict.LEGAL

    def iter_legal_moves(self, player: Symbol) -> Iterator[Triple]:
        """
        Yield every legal triple for the player.

        Triples are (neighbor_i, center, neighbor_j). A line has one middle
        tile and an L one corner, so no triple is yielded twice.
        """
        board = self.board
        for center in board.coordinates():
            if board.is_empty(center):
                continue
            center_owned = board.at(center) is player
            for a, b in combinations(board.occupied_neighbors(center), 2):
                owned = center_owned + (board.at(a) is player) + (board.at(b) is player)
                if owned >= 2:
                    yield (a, center, b)

    def enumerate_legal_moves(self, player: Symbol) -> list[Triple]:
        return list(self.iter_legal_moves(player))

    def has_legal_move(self, player: Symbol) -> bool:
        for _ in self.iter_legal_moves(player):
            return True
        return False


def legal_moves(board: Board, player: Symbol) -> list[Triple]:
    """
    Convenience function to get legal moves.

    Creates a MoveEvaluator and enumerates moves.
    """
    return MoveEvaluator(board=board).enumerate_legal_moves(player)
