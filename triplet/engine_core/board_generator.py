"""
Board Generator - Fair random boards by rejection sampling.

Every cell is an independent coin flip between the two players; the
whole board is re-rolled until neither player has more than one extra
tile. The loop has no retry cap.
"""

from __future__ import annotations
from dataclasses import dataclass, field
import logging
import random

from .state import Board, Symbol
from ..errors import InvalidConfiguration

logger = logging.getLogger(__name__)


@dataclass
class BoardGenerator:
    """Produces fair boards from an injectable RNG."""
    rng: random.Random = field(default_factory=random.Random)

    @classmethod
    def seeded(cls, seed: int | None) -> BoardGenerator:
        return cls(rng=random.Random(seed))

    def generate(self, size: int) -> Board:
        if size < 1:
            raise InvalidConfiguration(
                f"Board size must be positive, got {size}",
                context={"board_size": size},
            )

        attempts = 0
        while True:
            attempts += 1
            board = Board(size=size, cells=[
                [self._flip() for _ in range(size)]
                for _ in range(size)
            ])
            if board.is_fair:
                break

        logger.debug("Generated %dx%d board after %d attempt(s)", size, size, attempts)
        return board

    def _flip(self) -> Symbol:
        return Symbol.PLAYER_A if self.rng.random() < 0.5 else Symbol.PLAYER_B


def generate_board(size: int, rng: random.Random | None = None) -> Board:
    """
    Convenience function to generate a fair board.

    Creates a BoardGenerator and generates a board.
    """
    generator = BoardGenerator(rng=rng) if rng is not None else BoardGenerator()
    return generator.generate(size)
