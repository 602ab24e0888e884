"""Open set for grid A*."""

import heapq
from typing import Any, Dict, List, Optional, Tuple


class PriorityQueue:
    """
    Min-heap of cells keyed by flat cell index.

    Entries are ``(f_cost, cell_index, data)`` tuples, so equal costs pop in
    index order. That matches scanning the cell array front to back for the
    lowest f, which keeps paths deterministic.

    Lowering a cell's cost pushes a new tuple and leaves the old one in the
    heap; ``get`` skips tuples whose cost no longer matches ``_best``.
    """

    def __init__(self):
        self._heap: List[Tuple[float, int, Any]] = []
        self._best: Dict[int, float] = {}

    def is_empty(self) -> bool:
        return not self._best

    def put(self, cell_index: int, f_cost: float, data: Any):
        """Queue a cell, or lower its cost. A higher cost is ignored."""
        known = self._best.get(cell_index)
        if known is not None and known <= f_cost:
            return
        self._best[cell_index] = f_cost
        heapq.heappush(self._heap, (f_cost, cell_index, data))

    def get(self) -> Optional[Tuple[int, Any]]:
        """Pop (cell_index, data) with the lowest cost, or None when empty."""
        while self._heap:
            f_cost, cell_index, data = heapq.heappop(self._heap)
            if self._best.get(cell_index) == f_cost:
                del self._best[cell_index]
                return cell_index, data
        return None
