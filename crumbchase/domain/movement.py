"""Grid-aligned movement: collision resolution and turn helpers."""

import math
from typing import Callable, Optional, Tuple
from .types import Cell

BlockingFn = Callable[[int, int], bool]

# Tolerance for snapping a clamped coordinate onto the cell center
SNAP_EPS = 1e-6


def sign(v: float) -> int:
    if v > 0:
        return 1
    if v < 0:
        return -1
    return 0


def cell_at(x: float, y: float, tile: float) -> Cell:
    """Convert pixel coordinates to the containing cell."""
    return (math.floor(x / tile), math.floor(y / tile))


def center_of(c: int, r: int, tile: float) -> Tuple[float, float]:
    """Pixel coordinates of a cell center."""
    return ((c + 0.5) * tile, (r + 0.5) * tile)


def _in_bounds(c: int, r: int, cols: int, rows: int) -> bool:
    return 0 <= c < cols and 0 <= r < rows


def move_with_collision(x: float, y: float, dx: float, dy: float, tile: float,
                        cols: int, rows: int,
                        is_blocking: Optional[BlockingFn] = None) -> Tuple[float, float]:
    """
    Move a point by (dx, dy), horizontal axis first, then vertical.

    On each axis, if the next cell in the direction of travel is off the grid
    or blocked, the move is clamped at the current cell's center and snapped
    onto it. Resolving the axes separately lets entities slide along walls.
    """
    new_x, new_y = x, y
    
    if dx != 0:
        c, r = cell_at(x, y, tile)
        center_x = (c + 0.5) * tile
        direction = sign(dx)
        next_c = c + direction
        next_blocked = (not _in_bounds(next_c, r, cols, rows) or
                        (is_blocking is not None and is_blocking(next_c, r)))
        
        nx = x + dx
        if next_blocked:
            nx = min(nx, center_x) if direction > 0 else max(nx, center_x)
        
        dest_c, dest_r = cell_at(nx, y, tile)
        dest_blocked = is_blocking is not None and is_blocking(dest_c, dest_r)
        if not dest_blocked and _in_bounds(dest_c, dest_r, cols, rows):
            new_x = nx
        
        if next_blocked and ((direction > 0 and new_x >= center_x - SNAP_EPS) or
                             (direction < 0 and new_x <= center_x + SNAP_EPS)):
            new_x = center_x
    
    if dy != 0:
        c, r = cell_at(new_x, y, tile)
        center_y = (r + 0.5) * tile
        direction = sign(dy)
        next_r = r + direction
        next_blocked = (not _in_bounds(c, next_r, cols, rows) or
                        (is_blocking is not None and is_blocking(c, next_r)))
        
        ny = y + dy
        if next_blocked:
            ny = min(ny, center_y) if direction > 0 else max(ny, center_y)
        
        dest_c, dest_r = cell_at(new_x, ny, tile)
        dest_blocked = is_blocking is not None and is_blocking(dest_c, dest_r)
        if not dest_blocked and _in_bounds(dest_c, dest_r, cols, rows):
            new_y = ny
        
        if next_blocked and ((direction > 0 and new_y >= center_y - SNAP_EPS) or
                             (direction < 0 and new_y <= center_y + SNAP_EPS)):
            new_y = center_y
    
    return new_x, new_y


def nearest_center(pos: float, moving_dir: int, tile: float) -> float:
    """
    Center coordinate to snap to on one axis.
    When moving, the next center ahead is also a candidate.
    """
    i = math.floor(pos / tile)
    c0 = (i + 0.5) * tile
    if moving_dir != 0:
        c1 = (i + 0.5 + sign(moving_dir)) * tile
        return c0 if abs(pos - c0) < abs(pos - c1) else c1
    return c0


def can_turn(pos: float, moving_dir: int, tile: float, turn_eps: float) -> bool:
    """
    Whether the coordinate on the axis being left is close enough to a
    center (the current one, or the next one ahead) to commit a turn.
    """
    i = math.floor(pos / tile)
    c0 = (i + 0.5) * tile
    if abs(pos - c0) <= turn_eps:
        return True
    if moving_dir != 0:
        c1 = (i + 0.5 + sign(moving_dir)) * tile
        if abs(pos - c1) <= turn_eps:
            return True
    return False
