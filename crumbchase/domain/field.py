"""Crumb storage, the goal opening and its protective barrier."""

from typing import Optional, Set
import numpy as np

from .types import Cell, GameConfig
from ..utils.rng import SeededRNG


class ObstacleField:
    """
    Flat grid of crumb strengths plus goal bookkeeping.

    A cell blocks the seeker when its strength is above zero; every cell
    outside the grid blocks as well. ``ring_set`` holds the indices of barrier
    cells that still have strength left; it is only ever changed by the
    methods below so it cannot drift from ``cells``.
    """
    
    def __init__(self, config: Optional[GameConfig] = None, rng: Optional[SeededRNG] = None):
        self.config = config or GameConfig()
        self.rng = rng or SeededRNG()
        self.cols = self.config.cols
        self.rows = self.config.rows
        self.n = self.cols * self.rows
        
        self.cells = np.zeros(self.n, dtype=np.float64)
        self.ring_set: Set[int] = set()
        self.goal_open_set: Set[int] = set()
        
        self.goal_column = self.config.goal_column
        self.goal_row = self.config.goal_row
        self.goal_half_height = self.config.goal_half_height
    
    def idx(self, c: int, r: int) -> int:
        """Convert column/row to a flat index."""
        return r * self.cols + c
    
    def cell_of(self, k: int) -> Cell:
        """Convert a flat index back to (column, row)."""
        return (k % self.cols, k // self.cols)
    
    def in_bounds(self, c: int, r: int) -> bool:
        return 0 <= c < self.cols and 0 <= r < self.rows
    
    def is_blocking(self, c: int, r: int) -> bool:
        """Out of bounds always blocks; otherwise any positive strength does."""
        if not self.in_bounds(c, r):
            return True
        return bool(self.cells[self.idx(c, r)] > 0)
    
    def strength(self, c: int, r: int) -> float:
        if not self.in_bounds(c, r):
            return 0.0
        return float(self.cells[self.idx(c, r)])
    
    def add_obstacle(self, c: int, r: int, strength: Optional[float] = None):
        """Lay a crumb, keeping the stronger of the old and new values."""
        if not self.in_bounds(c, r):
            return
        if strength is None:
            strength = self.config.trail_strength
        k = self.idx(c, r)
        self.cells[k] = max(self.cells[k], strength)
    
    def weaken(self, c: int, r: int, amount: float):
        if not self.in_bounds(c, r):
            return
        self.weaken_at_index(self.idx(c, r), amount)
    
    def weaken_at_index(self, k: int, amount: float):
        """Reduce strength at a flat index, never below zero."""
        if not 0 <= k < self.n:
            return
        if self.cells[k] <= 0:
            return
        self.cells[k] = max(0.0, self.cells[k] - amount)
        if self.cells[k] == 0:
            self.ring_set.discard(k)
    
    def count_blocking(self) -> int:
        return int(np.count_nonzero(self.cells > 0))
    
    def clear(self):
        """Remove every crumb and forget the goal sets."""
        self.cells.fill(0.0)
        self.ring_set.clear()
        self.goal_open_set.clear()
    
    def is_goal_cell(self, c: int, r: int) -> bool:
        if c != self.goal_column or not self.in_bounds(c, r):
            return False
        return self.idx(c, r) in self.goal_open_set
    
    def goal_rows(self) -> range:
        """Rows of the goal opening, clipped to the grid."""
        rmin = max(0, self.goal_row - self.goal_half_height)
        rmax = min(self.rows - 1, self.goal_row + self.goal_half_height)
        return range(rmin, rmax + 1)
    
    def build_goal_barrier(self):
        """
        Mark the goal opening and wall it in.

        The barrier is two columns deep next to the opening with one row of
        margin above and below, plus two capping rows on each side in the
        first two columns so it cannot simply be walked around.
        """
        self.ring_set.clear()
        self.goal_open_set.clear()
        rows = self.goal_rows()
        rmin, rmax = rows.start, rows.stop - 1
        gc = self.goal_column
        # Barrier grows away from the edge the goal sits on
        step = 1 if gc < self.cols // 2 else -1
        
        for r in rows:
            self.goal_open_set.add(self.idx(gc, r))
        
        for depth in range(3):
            c = gc + depth * step
            for r in range(rmin - 1, rmax + 2):
                if depth == 0 and rmin <= r <= rmax:
                    continue
                self._add_barrier_cell(c, r)
        
        for depth in range(2):
            c = gc + depth * step
            for r in range(rmin - 2, rmin):
                self._add_barrier_cell(c, r)
            for r in range(rmax + 1, rmax + 3):
                self._add_barrier_cell(c, r)
    
    def _add_barrier_cell(self, c: int, r: int):
        if not self.in_bounds(c, r):
            return
        self.add_obstacle(c, r, self.config.barrier_strength)
        self.ring_set.add(self.idx(c, r))
    
    def decay_one_random_obstacle(self):
        """
        Weaken one crumb by 1.

        With probability ``ring_decay_bias`` a random barrier cell is chosen,
        otherwise a uniformly random cell is tried and weakened only if it
        currently holds a crumb.
        """
        if self.ring_set and self.rng.random() < self.config.ring_decay_bias:
            pick = self.rng.choice_from_set(self.ring_set)
            if pick is not None:
                self.weaken_at_index(pick, 1)
                return
        c = self.rng.randint(0, self.cols - 1)
        r = self.rng.randint(0, self.rows - 1)
        if self.cells[self.idx(c, r)] > 0:
            self.weaken(c, r, 1)
