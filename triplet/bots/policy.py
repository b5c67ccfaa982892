"""
Bot Policy - Interface for robot decision-making.

A BotPolicy looks at the board and the legal moves for its side and
returns a decision. The engine owns timing: it highlights the chosen
triple, waits, then commits it through the normal move path.
"""

from __future__ import annotations
from abc import ABC, abstractmethod
from dataclasses import dataclass
import random
from typing import TYPE_CHECKING, Sequence

if TYPE_CHECKING:
    from ..engine_core.state import Board, Symbol, Triple


@dataclass
class BotDecision:
    """
    A move chosen by a bot.

    Contains:
    - The triple to capture
    - Explanation (for UI/debugging)
    - How many candidates were considered
    """
    triple: Triple
    explanation: str = ""
    confidence: float = 1.0
    evaluated_moves: int = 0


class BotPolicy(ABC):
    """
    Abstract base class for bot policies.

    A policy defines how a robot picks among legal moves.
    """

    @abstractmethod
    def select_move(
        self,
        board: Board,
        player: Symbol,
        legal_moves: Sequence[Triple],
    ) -> BotDecision:
        """
        Select a move from the legal moves.

        Args:
            board: Current board (read-only)
            player: Side the bot plays
            legal_moves: Legal triples for that side, never empty

        Returns:
            BotDecision with the selected triple
        """
        pass

    def get_name(self) -> str:
        """Get the bot's name/identifier."""
        return self.__class__.__name__


class RandomPolicy(BotPolicy):
    """
    Random policy - selects moves uniformly at random.

    Samples the enumerated list as-is. A triple listed twice is twice as
    likely; on a square grid the enumeration never repeats one.
    """

    def __init__(self, seed: int | None = None):
        self.rng = random.Random(seed)

    def select_move(
        self,
        board: Board,
        player: Symbol,
        legal_moves: Sequence[Triple],
    ) -> BotDecision:
        if not legal_moves:
            raise ValueError("No legal moves available")

        triple = self.rng.choice(legal_moves)
        return BotDecision(
            triple=triple,
            explanation="Selected randomly",
            confidence=1.0 / len(legal_moves),
            evaluated_moves=len(legal_moves),
        )


class FirstLegalPolicy(BotPolicy):
    """
    First-legal policy - always selects the first legal move.

    Used for:
    - Deterministic testing
    - Reproducible simulations
    """

    def select_move(
        self,
        board: Board,
        player: Symbol,
        legal_moves: Sequence[Triple],
    ) -> BotDecision:
        if not legal_moves:
            raise ValueError("No legal moves available")

        return BotDecision(
            triple=legal_moves[0],
            explanation="Selected first legal move",
            evaluated_moves=1,
        )
