"""Hunters: A* driven pursuers that chew through crumbs."""

import math
from typing import List, Optional, Sequence, Tuple

from .types import Cell, GameConfig
from .field import ObstacleField
from .movement import center_of
from ..utils.rng import SeededRNG


class HunterAgent:
    """
    A single hunter's state and behavior.

    The hunter follows an A* path toward the seeker's cell plus a small random
    offset (jitter) so several hunters do not converge on the same point.
    """
    
    def __init__(self, hunter_id: int, x: float, y: float, speed_cells: float,
                 config: Optional[GameConfig] = None, rng: Optional[SeededRNG] = None):
        self.config = config or GameConfig()
        self.rng = rng or SeededRNG()
        self.tile = self.config.tile
        self.id = hunter_id
        self.x = x
        self.y = y
        self.radius = self.tile * self.config.hunter_radius_factor
        self.speed_cells = speed_cells
        
        self.path: List[Cell] = []
        self.path_timer = 0.0
        self.jitter = self._draw_jitter()
        self.last_cell: Cell = (-1, -1)
    
    @classmethod
    def from_spawn_fraction(cls, col_frac: float, row_frac: float, speed_cells: float,
                            hunter_id: int, config: Optional[GameConfig] = None,
                            rng: Optional[SeededRNG] = None) -> 'HunterAgent':
        """Create a hunter at the center of the cell nearest a grid fraction."""
        config = config or GameConfig()
        col = max(0, min(config.cols - 1, round(config.cols * col_frac)))
        row = max(0, min(config.rows - 1, round(config.rows * row_frac)))
        x, y = center_of(col, row, config.tile)
        return cls(hunter_id, x, y, speed_cells, config=config, rng=rng)
    
    def _draw_jitter(self) -> Tuple[int, int]:
        j = self.config.goal_jitter_range
        return (self.rng.randint(-j, j), self.rng.randint(-j, j))
    
    def get_cell(self) -> Cell:
        return (math.floor(self.x / self.tile), math.floor(self.y / self.tile))
    
    def should_recalculate_path(self, dt: float) -> bool:
        """Count down; when due, rearm the timer and refresh the jitter."""
        self.path_timer -= dt
        if self.path_timer <= 0:
            self.path_timer = 1.0 / self.config.path_recalc_hz
            self.jitter = self._draw_jitter()
            return True
        return False
    
    def get_goal_cell(self, seeker_cell: Cell) -> Cell:
        """Seeker cell plus jitter, clamped to the grid."""
        c = max(0, min(self.config.cols - 1, seeker_cell[0] + self.jitter[0]))
        r = max(0, min(self.config.rows - 1, seeker_cell[1] + self.jitter[1]))
        return (c, r)
    
    def calculate_speed(self, field: ObstacleField) -> float:
        """Speed in px/sec, reduced while in or about to enter a crumb."""
        c, r = self.get_cell()
        in_obstacle = field.is_blocking(c, r)
        if not in_obstacle and self.path:
            nc, nr = self.path[0]
            in_obstacle = field.is_blocking(nc, nr)
        factor = self.config.hunter_speed_in_obstacle if in_obstacle else 1.0
        return self.speed_cells * self.tile * factor
    
    def apply_separation(self, all_hunters: Sequence['HunterAgent'], dt: float):
        """Push away from nearby hunters, weighted by how close they are."""
        radius = self.config.separation_radius_cells * self.tile
        sep_x = 0.0
        sep_y = 0.0
        for other in all_hunters:
            if other.id == self.id:
                continue
            dx = self.x - other.x
            dy = self.y - other.y
            d = math.hypot(dx, dy)
            if 0 < d < radius:
                m = (radius - d) / radius
                sep_x += dx / d * m
                sep_y += dy / d * m
        
        if sep_x != 0 or sep_y != 0:
            length = math.hypot(sep_x, sep_y) or 1.0
            self.x += sep_x / length * self.config.separation_force * dt
            self.y += sep_y / length * self.config.separation_force * dt
    
    def move_along_path(self, speed: float, dt: float, fallback_target: Tuple[float, float]):
        """
        Step toward the next waypoint's center, popping it once reached.
        Without a path, head straight for ``fallback_target`` with a little noise.
        """
        if self.path:
            nc, nr = self.path[0]
            target_x = (nc + 0.5) * self.tile
            target_y = (nr + 0.5) * self.tile
            dx = target_x - self.x
            dy = target_y - self.y
            d = math.hypot(dx, dy) or 1.0
            step = min(d, speed * dt)
            self.x += dx / d * step
            self.y += dy / d * step
            
            if d <= 0.5 or (abs(self.x - target_x) < 0.5 and abs(self.y - target_y) < 0.5):
                self.path.pop(0)
        else:
            noise = self.config.fallback_jitter_cells
            tx = fallback_target[0] + self.rng.uniform(-noise, noise) * self.tile
            ty = fallback_target[1] + self.rng.uniform(-noise, noise) * self.tile
            dx = tx - self.x
            dy = ty - self.y
            d = math.hypot(dx, dy) or 1.0
            step = speed * dt
            self.x += dx / d * step
            self.y += dy / d * step
    
    def clamp_to_grid(self):
        """Keep the center inside the grid; steering alone could push it off."""
        max_x = self.config.cols * self.tile - 1e-6
        max_y = self.config.rows * self.tile - 1e-6
        self.x = min(max(self.x, 0.0), max_x)
        self.y = min(max(self.y, 0.0), max_y)

    def check_cell_change(self) -> Tuple[bool, Cell]:
        """Return (changed, previous cell) and remember the current cell."""
        cur = self.get_cell()
        prev = self.last_cell
        self.last_cell = cur
        return cur != prev, prev
    
    def has_caught(self, seeker) -> bool:
        """True when the centers are closer than the combined radii times the margin."""
        dist = math.hypot(self.x - seeker.x, self.y - seeker.y)
        return dist < (self.radius + seeker.radius) * self.config.catch_margin
