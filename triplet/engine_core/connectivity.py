"""
Connectivity Rule - Whether three tiles form a connected shape.

A triple is connected when every tile touches at least one other tile
of the triple edge-to-edge (4-neighbor adjacency). On a square grid this
leaves exactly two shapes: a straight line of three and an L.
"""

from __future__ import annotations
from typing import Sequence

from .state import Coordinate


def is_adjacent(a: Coordinate, b: Coordinate) -> bool:
    """Same row or column, one step apart."""
    return abs(a[0] - b[0]) + abs(a[1] - b[1]) == 1


def is_connected(triple: Sequence[Coordinate]) -> bool:
    if len(triple) != 3 or len(set(triple)) != 3:
        return False

    for i, tile in enumerate(triple):
        if not any(is_adjacent(tile, other) for j, other in enumerate(triple) if j != i):
            return False
    return True
