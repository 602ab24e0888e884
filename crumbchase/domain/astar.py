"""A* search over the 4-connected crumb grid."""

import math
from typing import Callable, List, Optional
import numpy as np

from .types import Cell, PathfindingResult
from .priority_queue import PriorityQueue
from .heuristics import manhattan_distance

# Cost of stepping onto a cell; math.inf marks it impassable
CostFn = Callable[[int, int], float]

# Orthogonal moves only, in a fixed order
NEIGHBOR_OFFSETS = ((1, 0), (-1, 0), (0, 1), (0, -1))


class AStarAlgorithm:
    """
    A* pathfinding on a cols x rows grid with caller-supplied step costs.

    Open nodes are ordered by f and then by flat cell index, so exact ties
    always resolve the same way.
    """
    
    def __init__(self, cols: int, rows: int, cost_fn: CostFn):
        self.cols = cols
        self.rows = rows
        self.cost_fn = cost_fn
        self.reset()
    
    def reset(self):
        """Reset the search state."""
        n = self.cols * self.rows
        self.open_set = PriorityQueue()
        self.g = np.full(n, math.inf)
        self.came_from = np.full(n, -1, dtype=np.int64)
        self.closed = np.zeros(n, dtype=bool)
        self.start: Optional[Cell] = None
        self.goal: Optional[Cell] = None
        self.nodes_explored = 0
    
    def in_bounds(self, c: int, r: int) -> bool:
        return 0 <= c < self.cols and 0 <= r < self.rows
    
    def initialize(self, start: Cell, goal: Cell):
        """Prepare a search from start to goal."""
        if not self.in_bounds(*start):
            raise ValueError(f"Start cell {start} is out of bounds")
        if not self.in_bounds(*goal):
            raise ValueError(f"Goal cell {goal} is out of bounds")
        
        self.reset()
        self.start = start
        self.goal = goal
        
        k = self._idx(start)
        self.g[k] = 0.0
        self.open_set.put(k, manhattan_distance(start, goal), start)
    
    def step(self) -> Optional[PathfindingResult]:
        """
        Expand one node.
        Returns a PathfindingResult once the search is over, None otherwise.
        """
        if self.start is None or self.goal is None:
            raise ValueError("Algorithm not initialized")
        
        if self.open_set.is_empty():
            return PathfindingResult(found=False, nodes_explored=self.nodes_explored)
        
        current, (cc, cr) = self.open_set.get()
        self.closed[current] = True
        self.nodes_explored += 1
        
        if (cc, cr) == self.goal:
            path = self._reconstruct_path()
            return PathfindingResult(
                path=path,
                path_cost=float(self.g[current]),
                nodes_explored=self.nodes_explored,
                found=True,
            )
        
        for dc, dr in NEIGHBOR_OFFSETS:
            nc, nr = cc + dc, cr + dr
            if not self.in_bounds(nc, nr):
                continue
            ni = nr * self.cols + nc
            if self.closed[ni]:
                continue
            
            step_cost = self.cost_fn(nc, nr)
            if step_cost == math.inf:
                continue
            
            tentative = self.g[current] + step_cost
            if tentative < self.g[ni]:
                self.came_from[ni] = current
                self.g[ni] = tentative
                f_cost = tentative + manhattan_distance((nc, nr), self.goal)
                self.open_set.put(ni, f_cost, (nc, nr))
        
        return None
    
    def run_complete(self) -> PathfindingResult:
        """Run the search to completion."""
        # Every node is closed at most once
        for _ in range(self.cols * self.rows + 1):
            result = self.step()
            if result is not None:
                return result
        return PathfindingResult(found=False, nodes_explored=self.nodes_explored)
    
    def _idx(self, cell: Cell) -> int:
        return cell[1] * self.cols + cell[0]
    
    def _reconstruct_path(self) -> List[Cell]:
        """Walk predecessor links from goal back to start, then reverse."""
        start = self._idx(self.start)
        node = self._idx(self.goal)
        path = []
        while node != start and node != -1:
            path.append((node % self.cols, node // self.cols))
            node = int(self.came_from[node])
        path.reverse()
        return path


def find_path(start: Cell, goal: Cell, cols: int, rows: int, cost_fn: CostFn) -> List[Cell]:
    """
    Find a path from start to goal.
    
    Returns the cells to walk through, excluding start and including goal.
    The list is empty when start equals goal, when either end is off the grid,
    or when the goal cannot be reached.
    """
    if start == goal:
        return []
    algorithm = AStarAlgorithm(cols, rows, cost_fn)
    try:
        algorithm.initialize(start, goal)
    except ValueError:
        return []
    return algorithm.run_complete().path
