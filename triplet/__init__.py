"""
Triplet - Two-player tile-capture board game engine

Players take turns capturing three connected tiles, at least two of which
must carry their own symbol. The engine provides:
- Fair random board generation
- Move evaluation and legal move generation
- The turn/pass/end state machine with observer notifications
- Robot players that pick uniformly among legal moves
"""

__version__ = "0.1.0"
