"""The game loop: one deterministic tick over seeker, hunters and crumbs."""

import math
from typing import Callable, List, Optional, Tuple

from .types import (
    Cell, GameConfig, SimState, TerminationReason, TickResult, StepResult,
    Observation, GameStats, Snapshot, SeekerView, HunterView, ACTION_DELTAS,
    ACTION_STOP, unit_vector
)
from .field import ObstacleField
from .seeker import SeekerAgent
from .hunter import HunterAgent
from .movement import move_with_collision
from .astar import find_path
from .heuristics import euclidean_distance
from ..utils.rng import SeededRNG

# Reward shaping for Simulation.step
REWARD_GOAL = 100.0
REWARD_CAUGHT = -100.0
PROGRESS_SCALE = 50.0
SURVIVAL_BONUS = 0.05
DANGER_PENALTY = 2.0
STOP_PENALTY = 0.1

# Nothing moves further than this (in tiles) between collision checks
MAX_SUBSTEP_CELLS = 0.5
SUBSTEP_EPS = 1e-9


class Simulation:
    """
    Owns the field, the seeker and the hunters, and advances them together.

    Drive it either with ``set_wish``/``stop`` plus ``tick(dt)`` (direct
    control) or with ``step(action, dt)`` (agent control, gym-like). The state
    is RUNNING until a hunter catches the seeker; reaching the goal advances
    the level and restarts immediately.
    """

    def __init__(self, config: Optional[GameConfig] = None, rng: Optional[SeededRNG] = None):
        self.config = config or GameConfig()
        self.rng = rng or SeededRNG()
        self.field = ObstacleField(self.config, self.rng)
        self.seeker = SeekerAgent(self.config)
        self.hunters: List[HunterAgent] = []

        self.level = 1
        self.state = SimState.RUNNING
        self.termination_reason: Optional[TerminationReason] = None
        self.survival_time = 0.0
        self.decay_accum = 0.0

        self.on_caught: Optional[Callable[[int, float], None]] = None
        self.on_level_complete: Optional[Callable[[int, int], None]] = None

        self.start_level(reset_to_first=True)

    # Level management

    def start_level(self, reset_to_first: bool = False):
        """Clear the field, respawn everything for the current level and run."""
        if reset_to_first:
            self.level = 1
        self.level = max(1, min(self.config.max_level, self.level))

        self.field.clear()
        self.seeker.reset()

        level_cfg = self.config.level_config(self.level)
        speed_cells = self.config.seeker_speed_cells * level_cfg.speed_factor
        spawns = self.config.hunter_spawns
        self.hunters = []
        for i in range(level_cfg.hunters):
            col_frac, row_frac = spawns[i % len(spawns)]
            hunter = HunterAgent.from_spawn_fraction(
                col_frac, row_frac, speed_cells, i, config=self.config, rng=self.rng
            )
            self.hunters.append(hunter)

        self.survival_time = 0.0
        self.decay_accum = 0.0
        self.state = SimState.RUNNING
        self.termination_reason = None

        self.field.build_goal_barrier()

    def reset(self, level: Optional[int] = None) -> Observation:
        """Start over at ``level`` (level 1 when omitted) and observe."""
        self.level = 1 if level is None else level
        self.start_level(reset_to_first=False)
        return self.get_observation()

    @property
    def running(self) -> bool:
        return self.state == SimState.RUNNING

    # Direct control

    def set_wish(self, dx: int, dy: int):
        self.seeker.set_wish(dx, dy)

    def stop(self):
        self.seeker.stop()

    # Pathfinding

    def hunter_step_cost(self, c: int, r: int) -> float:
        """A* cost for hunters: crumbs are dearer than open cells."""
        if self.field.is_blocking(c, r):
            if self.config.hunter_speed_in_obstacle <= 0:
                return math.inf
            return self.config.obstacle_cost_for_hunter
        return 1.0

    def find_path(self, start: Cell, goal: Cell) -> List[Cell]:
        return find_path(start, goal, self.config.cols, self.config.rows, self.hunter_step_cost)

    # Tick

    def max_substep_dt(self) -> float:
        """Longest time slice in which nothing moves more than half a tile."""
        cfg = self.config
        fastest = self.seeker.speed
        for hunter in self.hunters:
            fastest = max(fastest, hunter.speed_cells * cfg.tile + cfg.separation_force)
        if fastest <= 0:
            return math.inf
        return MAX_SUBSTEP_CELLS * cfg.tile / fastest

    def tick(self, dt: float) -> TickResult:
        """
        Advance the game by ``dt`` seconds.

        Movement and catches run in equal slices no longer than
        ``max_substep_dt()``, so a large ``dt`` never carries anyone across a
        cell without the crumb, goal and catch checks seeing it. Crumb decay
        runs once for the whole ``dt``.
        """
        if self.state != SimState.RUNNING:
            return TickResult()

        cfg = self.config
        slices = max(1, math.ceil(dt / self.max_substep_dt() - SUBSTEP_EPS))
        sub_dt = dt / slices
        for _ in range(slices):
            self.survival_time += sub_dt
            result = self._advance(sub_dt)
            if result.caught or result.level_complete:
                return result

        # Crumb decay
        self.decay_accum += dt * cfg.decay_per_second
        while self.decay_accum >= 1:
            self.decay_accum -= 1
            self.field.decay_one_random_obstacle()

        return TickResult()

    def _advance(self, dt: float) -> TickResult:
        """Move the seeker, then the hunters, over one short slice."""
        cfg = self.config
        field = self.field
        seeker = self.seeker

        # Seeker turns and movement
        seeker.process_turns(dt)
        prev_cell = seeker.get_cell()
        dx, dy = seeker.get_movement_delta(dt)
        seeker.x, seeker.y = move_with_collision(
            seeker.x, seeker.y, dx, dy, cfg.tile, cfg.cols, cfg.rows, field.is_blocking
        )
        seeker.snap_to_grid()

        # Crumb trail
        cur_cell = seeker.get_cell()
        if cur_cell != prev_cell and field.in_bounds(*prev_cell):
            if not field.is_goal_cell(*prev_cell):
                field.add_obstacle(prev_cell[0], prev_cell[1], cfg.trail_strength)

        # Win condition
        if field.is_goal_cell(*cur_cell):
            self.level = min(self.level + 1, cfg.max_level)
            self.start_level()
            if self.on_level_complete:
                self.on_level_complete(self.level, len(self.hunters))
            return TickResult(level_complete=True)

        # Hunters
        seeker_pos = (seeker.x, seeker.y)
        for hunter in self.hunters:
            if hunter.should_recalculate_path(dt):
                goal = hunter.get_goal_cell(cur_cell)
                hunter.path = self.find_path(hunter.get_cell(), goal)

            speed = hunter.calculate_speed(field)
            hunter.apply_separation(self.hunters, dt)
            hunter.move_along_path(speed, dt, seeker_pos)
            hunter.clamp_to_grid()

            changed, left_cell = hunter.check_cell_change()
            if changed and field.in_bounds(*left_cell):
                field.weaken(left_cell[0], left_cell[1], math.inf)

            if hunter.has_caught(seeker):
                self.state = SimState.TERMINATED
                self.termination_reason = TerminationReason.CAUGHT
                if self.on_caught:
                    self.on_caught(self.level, self.survival_time)
                return TickResult(caught=True)

        return TickResult()

    # Agent interface

    def step(self, action: int, dt: float = 1 / 60) -> StepResult:
        """
        Apply an action index, tick once and score the transition.
        Unknown action indices leave the seeker's input unchanged.
        """
        delta = ACTION_DELTAS.get(action) if isinstance(action, int) else None
        if delta is not None:
            if action == ACTION_STOP:
                self.stop()
            else:
                self.set_wish(*delta)

        prev_dist = self.distance_to_goal()
        result = self.tick(dt)
        new_dist = self.distance_to_goal()

        if result.caught:
            reward = REWARD_CAUGHT
        elif result.level_complete:
            reward = REWARD_GOAL
        else:
            reward = (prev_dist - new_dist) * PROGRESS_SCALE
            reward += SURVIVAL_BONUS
            danger_radius = self.config.danger_radius_cells * self.config.tile
            min_dist = self.min_distance_to_hunter()
            if min_dist < danger_radius:
                reward -= DANGER_PENALTY * (1 - min_dist / danger_radius)
            if self.seeker.is_stationary:
                reward -= STOP_PENALTY

        return StepResult(
            observation=self.get_observation(),
            reward=reward,
            done=result.caught or result.level_complete,
            info={
                "caught": result.caught,
                "level_complete": result.level_complete,
                "survival_time": self.survival_time,
                "level": self.level,
            },
        )

    def distance_to_goal(self) -> float:
        """Distance in cells from the seeker's cell to the goal center."""
        c, r = self.seeker.get_cell()
        return euclidean_distance((c, r), (self.field.goal_column, self.field.goal_row))

    def nearest_hunter(self) -> Tuple[Optional[HunterAgent], float]:
        nearest = None
        best = math.inf
        for hunter in self.hunters:
            d = math.hypot(hunter.x - self.seeker.x, hunter.y - self.seeker.y)
            if d < best:
                best = d
                nearest = hunter
        return nearest, best

    def min_distance_to_hunter(self) -> float:
        """Distance in pixels to the closest hunter (inf without hunters)."""
        return self.nearest_hunter()[1]

    def get_observation(self) -> Observation:
        cfg = self.config
        seeker = self.seeker
        c, r = seeker.get_cell()
        diag_cells = math.hypot(cfg.cols, cfg.rows)

        goal_dx = self.field.goal_column - c
        goal_dy = self.field.goal_row - r
        goal_dir = unit_vector(goal_dx, goal_dy)

        hunter, dist = self.nearest_hunter()
        if hunter is None:
            hunter_dist = 1.0
            hunter_dir = (0.0, 0.0)
        else:
            hunter_dist = dist / (diag_cells * cfg.tile)
            hunter_dir = unit_vector(hunter.x - seeker.x, hunter.y - seeker.y)

        blocking = self.field.is_blocking
        return Observation(
            seeker_x=seeker.x / (cfg.cols * cfg.tile),
            seeker_y=seeker.y / (cfg.rows * cfg.tile),
            dir_to_goal_x=goal_dir[0],
            dir_to_goal_y=goal_dir[1],
            dist_to_goal=math.hypot(goal_dx, goal_dy) / diag_cells,
            dist_to_hunter=hunter_dist,
            dir_to_hunter_x=hunter_dir[0],
            dir_to_hunter_y=hunter_dir[1],
            obstacle_up=int(blocking(c, r - 1)),
            obstacle_down=int(blocking(c, r + 1)),
            obstacle_left=int(blocking(c - 1, r)),
            obstacle_right=int(blocking(c + 1, r)),
            moving_x=seeker.dir_x,
            moving_y=seeker.dir_y,
        )

    # Read-only views

    def get_stats(self) -> GameStats:
        return GameStats(
            level=self.level,
            survival_time=self.survival_time,
            obstacle_count=self.field.count_blocking(),
            hunter_speed=self.hunters[0].speed_cells if self.hunters else 0.0,
            hunter_count=len(self.hunters),
        )

    def snapshot(self) -> Snapshot:
        """Copy out what a renderer needs; nothing returned aliases live state."""
        obstacles = self.field.cells.copy()
        obstacles.flags.writeable = False
        goal_cells = tuple(sorted(self.field.cell_of(k) for k in self.field.goal_open_set))
        seeker = self.seeker
        return Snapshot(
            tile=self.config.tile,
            cols=self.config.cols,
            rows=self.config.rows,
            obstacles=obstacles,
            goal_cells=goal_cells,
            seeker=SeekerView(seeker.x, seeker.y, seeker.radius, seeker.dir_x, seeker.dir_y),
            hunters=tuple(
                HunterView(h.id, h.x, h.y, h.radius, tuple(h.path)) for h in self.hunters
            ),
            level=self.level,
            state=self.state,
        )
