"""The seeker: the entity trying to reach the goal."""

import math
from typing import Optional, Tuple

from .types import Cell, GameConfig
from .movement import sign, nearest_center, can_turn


class SeekerAgent:
    """
    Seeker position and Pac-Man style turning.

    ``wish_x/wish_y`` is the direction asked for by input, ``dir_x/dir_y`` the
    direction actually committed. A perpendicular turn only commits close to
    a cell center, immediately from standstill, or after ``turn_wait``
    seconds of waiting.
    """
    
    def __init__(self, config: Optional[GameConfig] = None):
        self.config = config or GameConfig()
        self.tile = self.config.tile
        self.radius = self.tile * self.config.seeker_radius_factor
        self.speed = self.config.seeker_speed_cells * self.tile  # px/sec
        self.turn_eps = self.config.turn_eps
        self.reset()
    
    def reset(self):
        """Back to the spawn cell, not moving."""
        c, r = self.config.spawn_cell
        self.x = (c + 0.5) * self.tile
        self.y = (r + 0.5) * self.tile
        self.dir_x = 0
        self.dir_y = 0
        self.wish_x = 0
        self.wish_y = 0
        self.wish_timer = 0.0
    
    def set_wish(self, dx: int, dy: int):
        self.wish_x = sign(dx)
        self.wish_y = sign(dy)
    
    def stop(self):
        """Stop all movement immediately."""
        self.dir_x = 0
        self.dir_y = 0
        self.wish_x = 0
        self.wish_y = 0
    
    @property
    def is_stationary(self) -> bool:
        return self.dir_x == 0 and self.dir_y == 0
    
    def process_turns(self, dt: float):
        """Commit the wished direction when the turn rules allow it."""
        if self.wish_x != self.dir_x or self.wish_y != self.dir_y:
            self.wish_timer += dt
        else:
            self.wish_timer = 0.0
        
        if self.wish_x == 0 and self.wish_y == 0:
            return
        if self.wish_x == self.dir_x and self.wish_y == self.dir_y:
            return
        
        if self.wish_x == 0 and self.wish_y != 0:
            # Turning vertical: the x axis must line up with a column center
            if (self.is_stationary or
                    can_turn(self.x, self.dir_x, self.tile, self.turn_eps) or
                    self.wish_timer > self.config.turn_wait):
                self.x = nearest_center(self.x, self.dir_x, self.tile)
                self.dir_x = 0
                self.dir_y = self.wish_y
                self.wish_timer = 0.0
        elif self.wish_y == 0 and self.wish_x != 0:
            if (self.is_stationary or
                    can_turn(self.y, self.dir_y, self.tile, self.turn_eps) or
                    self.wish_timer > self.config.turn_wait):
                self.y = nearest_center(self.y, self.dir_y, self.tile)
                self.dir_y = 0
                self.dir_x = self.wish_x
                self.wish_timer = 0.0
    
    def get_movement_delta(self, dt: float) -> Tuple[float, float]:
        return (self.dir_x * self.speed * dt, self.dir_y * self.speed * dt)
    
    def snap_to_grid(self):
        """Snap the axis perpendicular to travel (both when stationary) to center."""
        c, r = self.get_cell()
        if self.dir_x == 0:
            self.x = (c + 0.5) * self.tile
        if self.dir_y == 0:
            self.y = (r + 0.5) * self.tile
    
    def get_cell(self) -> Cell:
        return (math.floor(self.x / self.tile), math.floor(self.y / self.tile))
