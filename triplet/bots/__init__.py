"""
Bots module - Robot player implementations.

Provides:
- BotPolicy: Interface for robot decision-making
- RandomPolicy: Uniform choice among legal moves (the game's robot)
- FirstLegalPolicy: Deterministic choice for tests and replays
"""

from .policy import BotPolicy, BotDecision, RandomPolicy, FirstLegalPolicy

__all__ = [
    "BotPolicy",
    "BotDecision",
    "RandomPolicy",
    "FirstLegalPolicy",
]
