"""Core type definitions for the Crumb Chase simulation and learner."""

import math
from dataclasses import dataclass, field
from enum import Enum, auto
from typing import Optional, Tuple, List, Dict, Any
import numpy as np

# Grid cell as (column, row)
Cell = Tuple[int, int]

# Action indices understood by Simulation.step
ACTION_LEFT = 0
ACTION_RIGHT = 1
ACTION_UP = 2
ACTION_DOWN = 3
ACTION_STOP = 4

ACTION_DELTAS: Dict[int, Tuple[int, int]] = {
    ACTION_LEFT: (-1, 0),
    ACTION_RIGHT: (1, 0),
    ACTION_UP: (0, -1),
    ACTION_DOWN: (0, 1),
    ACTION_STOP: (0, 0),
}

ACTION_NAMES: Dict[int, str] = {
    ACTION_LEFT: "left",
    ACTION_RIGHT: "right",
    ACTION_UP: "up",
    ACTION_DOWN: "down",
    ACTION_STOP: "stop",
}


class SimState(Enum):
    """Lifecycle of one level."""
    RUNNING = auto()
    TERMINATED = auto()


class TerminationReason(Enum):
    """Why a level stopped running."""
    CAUGHT = "caught"


@dataclass(frozen=True)
class LevelConfig:
    """Difficulty of a single level."""
    hunters: int
    speed_factor: float  # Hunter speed as a fraction of the seeker's


DEFAULT_LEVELS: Tuple[LevelConfig, ...] = (
    LevelConfig(1, 0.55),
    LevelConfig(1, 0.9),
    LevelConfig(2, 0.55),
    LevelConfig(2, 0.9),
    LevelConfig(2, 1.2),
    LevelConfig(3, 0.75),
    LevelConfig(3, 1.0),
    LevelConfig(3, 1.25),
    LevelConfig(3, 1.5),
    LevelConfig(4, 1.2),
)

# Hunter spawn points as (column fraction, row fraction)
DEFAULT_HUNTER_SPAWNS: Tuple[Tuple[float, float], ...] = (
    (0.35, 0.25),  # upper-left area
    (0.35, 0.75),  # lower-left area
    (0.65, 0.25),  # upper-right area
    (0.65, 0.75),  # lower-right area
    (0.5, 0.5),    # center
)


@dataclass
class GameConfig:
    """Tunables for the grid, the entities and the crumb dynamics."""
    # Grid / sizing
    tile: float = 20.0  # Pixels per grid cell
    cols: int = 40
    rows: int = 25

    # Seeker
    seeker_speed_cells: float = 6.0
    seeker_radius_factor: float = 0.76
    seeker_spawn: Optional[Cell] = None  # Defaults to (cols - 6, rows // 2)

    # Hunters
    hunter_radius_factor: float = 0.88
    hunter_speed_in_obstacle: float = 0.25  # 0 bars hunters from crumbs
    path_recalc_hz: float = 5.0
    obstacle_cost_for_hunter: float = 14.0  # A* cost of a crumb cell (open = 1)
    goal_jitter_range: int = 1
    separation_radius_cells: float = 3.0
    separation_force: float = 40.0  # px/sec
    fallback_jitter_cells: float = 0.2
    hunter_spawns: Tuple[Tuple[float, float], ...] = DEFAULT_HUNTER_SPAWNS

    # Crumbs
    trail_strength: float = 1.0
    barrier_strength: float = 1.0
    decay_per_second: float = 12.0  # Random decay attempts per second
    ring_decay_bias: float = 0.05  # Chance a decay attempt targets the barrier

    # Turning
    turn_eps_factor: float = 0.35
    turn_wait: float = 0.25  # Seconds before a pending turn is forced

    # Goal
    goal_column: int = 0
    goal_half_height: int = 2

    # Collision / reward shaping
    catch_margin: float = 0.75
    danger_radius_cells: float = 5.0

    levels: Tuple[LevelConfig, ...] = DEFAULT_LEVELS

    def __post_init__(self):
        if self.cols <= 0 or self.rows <= 0:
            raise ValueError(f"Grid size must be positive, got {self.cols}x{self.rows}")
        if self.tile <= 0:
            raise ValueError(f"Tile size must be positive, got {self.tile}")
        if not self.levels:
            raise ValueError("At least one level is required")

    @property
    def turn_eps(self) -> float:
        """Distance from a cell center (px) within which the seeker may turn."""
        return self.tile * self.turn_eps_factor

    @property
    def goal_row(self) -> int:
        """Row the goal opening is centered on."""
        return self.rows // 2

    @property
    def max_level(self) -> int:
        return len(self.levels)

    @property
    def spawn_cell(self) -> Cell:
        if self.seeker_spawn is not None:
            return self.seeker_spawn
        return (max(0, self.cols - 6), self.rows // 2)

    def level_config(self, level: int) -> LevelConfig:
        """Get configuration for a level, clamped to [1, max_level]."""
        i = max(1, min(self.max_level, level))
        return self.levels[i - 1]


@dataclass
class QLearningConfig:
    """Hyperparameters of the tabular Q-Learning agent."""
    learning_rate: float = 0.1
    discount_factor: float = 0.95
    epsilon: float = 1.0
    epsilon_decay: float = 0.995
    epsilon_min: float = 0.01
    num_actions: int = 5
    init_noise: float = 0.01  # Upper bound of the tie-breaking Q-value noise

    def __post_init__(self):
        if self.num_actions < 1:
            raise ValueError(f"num_actions must be at least 1, got {self.num_actions}")


@dataclass
class TrainingConfig:
    """Settings for the training driver."""
    max_steps_per_episode: int = 10000
    dt: float = 1 / 60
    steps_per_frame: int = 1
    report_interval: int = 50

    def __post_init__(self):
        if self.dt <= 0:
            raise ValueError(f"dt must be positive, got {self.dt}")
        if self.max_steps_per_episode < 1:
            raise ValueError(f"max_steps_per_episode must be at least 1, got {self.max_steps_per_episode}")


@dataclass
class TickResult:
    """Outcome of one simulation tick."""
    caught: bool = False
    level_complete: bool = False


@dataclass(frozen=True)
class Observation:
    """Normalized view of the game from the seeker's point of view."""
    seeker_x: float
    seeker_y: float
    dir_to_goal_x: float
    dir_to_goal_y: float
    dist_to_goal: float
    dist_to_hunter: float
    dir_to_hunter_x: float
    dir_to_hunter_y: float
    obstacle_up: int
    obstacle_down: int
    obstacle_left: int
    obstacle_right: int
    moving_x: int
    moving_y: int

    def as_array(self) -> np.ndarray:
        """Return the features as a numpy vector."""
        return np.array([
            self.seeker_x, self.seeker_y,
            self.dir_to_goal_x, self.dir_to_goal_y,
            self.dist_to_goal, self.dist_to_hunter,
            self.dir_to_hunter_x, self.dir_to_hunter_y,
            self.obstacle_up, self.obstacle_down,
            self.obstacle_left, self.obstacle_right,
            self.moving_x, self.moving_y,
        ], dtype=float)


@dataclass
class StepResult:
    """Result of Simulation.step in agent-controlled mode."""
    observation: Observation
    reward: float
    done: bool
    info: Dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class GameStats:
    """Stats for the HUD."""
    level: int
    survival_time: float
    obstacle_count: int
    hunter_speed: float  # cells/sec
    hunter_count: int


@dataclass(frozen=True)
class SeekerView:
    x: float
    y: float
    radius: float
    dir_x: int
    dir_y: int


@dataclass(frozen=True)
class HunterView:
    id: int
    x: float
    y: float
    radius: float
    path: Tuple[Cell, ...]


@dataclass(frozen=True)
class Snapshot:
    """Read-only copy of everything a renderer needs."""
    tile: float
    cols: int
    rows: int
    obstacles: np.ndarray  # Strength per cell, flat index r * cols + c
    goal_cells: Tuple[Cell, ...]
    seeker: SeekerView
    hunters: Tuple[HunterView, ...]
    level: int
    state: SimState

    def strength_at(self, c: int, r: int) -> float:
        if 0 <= c < self.cols and 0 <= r < self.rows:
            return float(self.obstacles[r * self.cols + c])
        return 0.0


def unit_vector(dx: float, dy: float) -> Tuple[float, float]:
    """Normalize (dx, dy); the zero vector stays zero."""
    d = math.hypot(dx, dy)
    if d == 0:
        return 0.0, 0.0
    return dx / d, dy / d


@dataclass
class PathfindingResult:
    """Result of a pathfinding operation."""
    path: List[Cell] = field(default_factory=list)  # Excludes start, includes goal
    path_cost: float = 0.0
    nodes_explored: int = 0
    found: bool = False

    @property
    def success(self) -> bool:
        """Whether a non-empty path was found."""
        return self.found and len(self.path) > 0
