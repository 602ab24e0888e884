"""Distance heuristics on grid cells."""

import math
from .types import Cell


def manhattan_distance(start: Cell, target: Cell) -> float:
    """
    Manhattan (L1) distance heuristic.
    Admissible for 4-directional movement with step costs >= 1.
    """
    return abs(start[0] - target[0]) + abs(start[1] - target[1])


def euclidean_distance(start: Cell, target: Cell) -> float:
    """Euclidean (L2) distance. Used for reward shaping, not for search."""
    return math.hypot(start[0] - target[0], start[1] - target[1])
