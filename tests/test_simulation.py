import math

import numpy as np
import pytest

from crumbchase.domain.simulation import Simulation
from crumbchase.domain.types import (
    GameConfig, LevelConfig, SimState, TerminationReason, ACTION_LEFT, ACTION_STOP
)
from crumbchase.utils.rng import SeededRNG


@pytest.fixture
def sim(rng):
    return Simulation(GameConfig(), rng)


@pytest.fixture
def empty_sim(no_hunter_config, rng):
    return Simulation(no_hunter_config, rng)


def test_initial_level_setup(sim):
    assert sim.level == 1
    assert sim.state == SimState.RUNNING
    assert len(sim.hunters) == 1
    assert sim.hunters[0].get_cell() == (14, 6)
    assert sim.hunters[0].speed_cells == pytest.approx(6.0 * 0.55)
    assert sim.seeker.get_cell() == (34, 12)
    assert sim.field.count_blocking() == len(sim.field.ring_set) > 0


def test_reset_is_idempotent(sim):
    sim.set_wish(-1, 0)
    for _ in range(120):
        sim.tick(1 / 60)

    sim.reset()
    first = sim.field.cells.copy()
    ring = set(sim.field.ring_set)
    sim.reset()

    assert np.array_equal(sim.field.cells, first)
    assert sim.field.ring_set == ring
    assert sim.seeker.get_cell() == (34, 12)
    assert sim.seeker.is_stationary
    assert sim.survival_time == 0.0
    assert sim.decay_accum == 0.0
    assert all(not h.path for h in sim.hunters)
    assert sim.level == 1


def test_reset_to_level(sim):
    sim.reset(4)
    assert sim.level == 4
    assert len(sim.hunters) == 2
    sim.reset(99)
    assert sim.level == sim.config.max_level


def test_crumb_laid_in_previous_cell(empty_sim):
    empty_sim.config.decay_per_second = 0.0
    empty_sim.set_wish(1, 0)
    result = empty_sim.tick(0.1)
    assert not result.caught and not result.level_complete
    assert empty_sim.seeker.get_cell() == (35, 12)
    assert empty_sim.field.is_blocking(34, 12)
    assert not empty_sim.field.is_blocking(35, 12)


def test_no_crumb_without_cell_change(empty_sim):
    empty_sim.set_wish(1, 0)
    empty_sim.tick(1 / 60)
    assert empty_sim.seeker.get_cell() == (34, 12)
    assert not empty_sim.field.is_blocking(34, 12)


def test_goal_tick_advances_level_and_skips_hunters(rng):
    sim = Simulation(GameConfig(), rng)
    completed = []
    sim.on_level_complete = lambda level, hunters: completed.append((level, hunters))

    sim.field.weaken(1, 12, math.inf)
    sim.seeker.x, sim.seeker.y = 30.0, 250.0
    sim.set_wish(-1, 0)
    result = sim.tick(0.1)

    assert result.level_complete
    assert not result.caught
    assert sim.level == 2
    assert completed == [(2, 1)]
    # Fresh level: seeker respawned, hunters untouched by the tick
    assert sim.seeker.get_cell() == (34, 12)
    assert sim.hunters[0].path == []
    assert sim.hunters[0].last_cell == (-1, -1)
    assert sim.state == SimState.RUNNING


def test_goal_cells_never_get_crumbs(rng):
    sim = Simulation(GameConfig(levels=(LevelConfig(0, 1.0),), decay_per_second=0.0), rng)
    sim.field.weaken(1, 12, math.inf)
    # Step out of the goal opening into the cell in front of it
    sim.seeker.x, sim.seeker.y = 19.0, 250.0
    sim.set_wish(1, 0)
    result = sim.tick(1 / 60)
    assert not result.level_complete
    assert sim.seeker.get_cell() == (1, 12)
    assert not sim.field.is_blocking(0, 12)
    assert sim.field.strength(0, 12) == 0.0


def test_caught_terminates_and_freezes(sim):
    caught = []
    sim.on_caught = lambda level, t: caught.append((level, t))
    hunter = sim.hunters[0]
    hunter.x, hunter.y = sim.seeker.x + 5, sim.seeker.y

    result = sim.tick(1 / 60)
    assert result.caught
    assert sim.state == SimState.TERMINATED
    assert sim.termination_reason == TerminationReason.CAUGHT
    assert caught == [(1, pytest.approx(1 / 60))]

    survival = sim.survival_time
    snapshot_before = sim.snapshot()
    result = sim.tick(1 / 60)
    assert not result.caught and not result.level_complete
    assert sim.survival_time == survival
    assert sim.snapshot().seeker == snapshot_before.seeker

    sim.start_level()
    assert sim.state == SimState.RUNNING
    assert sim.termination_reason is None


def test_hunter_destroys_crumb_it_leaves(rng):
    sim = Simulation(GameConfig(hunter_spawns=((0.5, 0.25),)), rng)
    hunter = sim.hunters[0]
    start_cell = hunter.get_cell()
    sim.field.add_obstacle(*start_cell, strength=5.0)
    hunter.check_cell_change()

    for _ in range(600):
        sim.tick(1 / 60)
        if hunter.get_cell() != start_cell:
            break
    assert hunter.get_cell() != start_cell
    assert not sim.field.is_blocking(*start_cell)


def test_decay_runs_at_configured_rate(empty_sim, monkeypatch):
    calls = []
    monkeypatch.setattr(empty_sim.field, "decay_one_random_obstacle", lambda: calls.append(1))
    empty_sim.tick(1 / 60)
    assert empty_sim.decay_accum == pytest.approx(12 / 60)
    assert not calls

    empty_sim.decay_accum = 0.0
    for _ in range(4):
        empty_sim.tick(0.25)
    assert len(calls) == 12
    assert empty_sim.decay_accum == 0.0


def test_step_stop_reward(empty_sim):
    result = empty_sim.step(ACTION_STOP, 1 / 60)
    assert result.reward == pytest.approx(0.05 - 0.1)
    assert not result.done
    assert empty_sim.seeker.is_stationary


def test_step_moving_reward_without_progress(empty_sim):
    result = empty_sim.step(ACTION_LEFT, 1 / 60)
    assert result.reward == pytest.approx(0.05)
    assert result.info["level"] == 1


def test_step_progress_reward(empty_sim):
    result = empty_sim.step(ACTION_LEFT, 0.1)
    # One cell closer to the goal along its center row
    assert result.reward == pytest.approx(50 * 1.0 + 0.05)


def test_step_danger_penalty(sim):
    hunter = sim.hunters[0]
    tile = sim.config.tile
    hunter.x, hunter.y = sim.seeker.x, sim.seeker.y - 3 * tile
    hunter.path_timer = 10.0
    hunter.path = [hunter.get_cell()]
    result = sim.step(ACTION_STOP, 1e-6)
    d = sim.min_distance_to_hunter()
    expected = 0.05 - 2 * (1 - d / (5 * tile)) - 0.1
    assert result.reward == pytest.approx(expected, abs=1e-3)


def test_step_terminal_rewards(sim):
    hunter = sim.hunters[0]
    hunter.x, hunter.y = sim.seeker.x, sim.seeker.y
    result = sim.step(ACTION_STOP)
    assert result.done
    assert result.reward == -100
    assert result.info["caught"]

    sim.reset()
    sim.field.weaken(1, 12, math.inf)
    sim.seeker.x = 30.0
    result = sim.step(ACTION_LEFT, 0.1)
    assert result.done
    assert result.reward == 100
    assert result.info["level_complete"]


def test_invalid_action_is_ignored(empty_sim):
    empty_sim.set_wish(-1, 0)
    empty_sim.step(99)
    empty_sim.step(-1)
    empty_sim.step(None)
    assert (empty_sim.seeker.wish_x, empty_sim.seeker.wish_y) == (-1, 0)


def test_observation_features(empty_sim):
    obs = empty_sim.get_observation()
    cfg = empty_sim.config
    assert obs.seeker_x == pytest.approx(690 / (cfg.cols * cfg.tile))
    assert obs.seeker_y == pytest.approx(250 / (cfg.rows * cfg.tile))
    assert (obs.dir_to_goal_x, obs.dir_to_goal_y) == (-1.0, 0.0)
    assert obs.dist_to_goal == pytest.approx(34 / math.hypot(40, 25))
    # Without hunters the nearest hunter is "as far as possible"
    assert obs.dist_to_hunter == 1.0
    assert (obs.dir_to_hunter_x, obs.dir_to_hunter_y) == (0.0, 0.0)
    assert (obs.moving_x, obs.moving_y) == (0, 0)
    assert obs.as_array().shape == (14,)


def test_observation_adjacent_flags(empty_sim):
    empty_sim.field.add_obstacle(34, 11)
    empty_sim.field.add_obstacle(35, 12)
    obs = empty_sim.get_observation()
    assert (obs.obstacle_up, obs.obstacle_down, obs.obstacle_left, obs.obstacle_right) == (1, 0, 0, 1)


def test_observation_nearest_hunter(sim):
    sim.hunters[0].x = sim.seeker.x
    sim.hunters[0].y = sim.seeker.y + 100
    obs = sim.get_observation()
    assert obs.dir_to_hunter_y == pytest.approx(1.0)
    assert obs.dist_to_hunter == pytest.approx(100 / (math.hypot(40, 25) * 20))


def test_stats(sim):
    sim.tick(0.5)
    stats = sim.get_stats()
    assert stats.level == 1
    assert stats.survival_time == pytest.approx(0.5)
    assert stats.hunter_count == 1
    assert stats.hunter_speed == pytest.approx(3.3)
    assert stats.obstacle_count == sim.field.count_blocking()


def test_snapshot_is_detached(sim):
    snap = sim.snapshot()
    with pytest.raises(ValueError):
        snap.obstacles[0] = 5.0
    sim.field.add_obstacle(20, 20, 3.0)
    assert snap.strength_at(20, 20) == 0.0
    assert sim.snapshot().strength_at(20, 20) == 3.0
    assert len(snap.goal_cells) == 5
    assert snap.hunters[0].id == 0


def test_hunter_cost_matches_obstacle_speed(rng):
    sim = Simulation(GameConfig(hunter_speed_in_obstacle=0.0), rng)
    hunter = sim.hunters[0]
    sim.field.add_obstacle(*hunter.get_cell())
    assert hunter.calculate_speed(sim.field) == 0.0
    assert sim.hunter_step_cost(*hunter.get_cell()) == math.inf
    assert sim.hunter_step_cost(0, 0) == 1.0


def test_find_path_prefers_open_cells(empty_sim):
    # Going around the short wall is cheaper than crossing a crumb
    for r in range(3, 8):
        empty_sim.field.add_obstacle(10, r)
    path = empty_sim.find_path((5, 5), (15, 5))
    assert path[-1] == (15, 5)
    assert not any(c == 10 and 3 <= r <= 7 for c, r in path)

    # Crossing is cheaper than walking around a long one
    for r in range(0, 24):
        empty_sim.field.add_obstacle(10, r)
    path = empty_sim.find_path((5, 5), (15, 5))
    assert len(path) == 10
    assert (10, 5) in path


def test_seeded_runs_are_reproducible():
    def run(seed):
        sim = Simulation(GameConfig(), SeededRNG(seed))
        sim.set_wish(-1, 0)
        for _ in range(300):
            sim.tick(1 / 60)
        snap = sim.snapshot()
        return snap.obstacles.tolist(), [(h.x, h.y) for h in snap.hunters]

    assert run(7) == run(7)


# Scenarios

def test_straight_run_to_goal_is_winnable():
    # With the default barrier a seeker that only ever presses left waits at
    # column 2 until decay opens a gap, and a hunter at a normal speed catches
    # it there. Aiming every decay at the barrier clears it in about two
    # seconds, and a crawling hunter leaves only the open path under test.
    config = GameConfig(levels=(LevelConfig(1, 0.1),), ring_decay_bias=1.0)
    sim = Simulation(config, SeededRNG(42))
    assert sim.hunters[0].get_cell() == (14, 6)
    sim.set_wish(-1, 0)

    for _ in range(3600):
        result = sim.step(ACTION_LEFT, 1 / 60)
        assert not result.info["caught"]
        if result.info["level_complete"]:
            break
    else:
        pytest.fail("seeker never reached the goal")


def test_walled_in_seeker_is_freed_by_decay(small_config):
    small_config.decay_per_second = 0.0
    sim = Simulation(small_config, SeededRNG(3))
    c, r = sim.seeker.get_cell()
    neighbors = [(c, r - 1), (c, r + 1), (c - 1, r), (c + 1, r)]
    for cell in neighbors:
        sim.field.add_obstacle(*cell)

    center = (sim.seeker.x, sim.seeker.y)
    for dx, dy in ((-1, 0), (1, 0), (0, -1), (0, 1)):
        sim.set_wish(dx, dy)
        for _ in range(10):
            sim.tick(1 / 60)
        assert (sim.seeker.x, sim.seeker.y) == center
    sim.stop()

    sim.config.decay_per_second = 12.0
    for _ in range(3000):
        sim.tick(1 / 60)
        if any(not sim.field.is_blocking(*cell) for cell in neighbors):
            break
    assert any(not sim.field.is_blocking(*cell) for cell in neighbors)


@pytest.mark.parametrize("overrides", [
    {"cols": 0},
    {"rows": -3},
    {"tile": 0.0},
    {"levels": ()},
])
def test_invalid_config_is_rejected(overrides):
    with pytest.raises(ValueError):
        GameConfig(**overrides)


def test_max_substep_keeps_moves_under_half_a_tile(sim, empty_sim):
    tile = sim.config.tile
    # Seeker 6 cells/s, hunter 3.3 cells/s plus separation push
    assert empty_sim.max_substep_dt() == pytest.approx(0.5 * tile / 120.0)
    assert sim.max_substep_dt() == pytest.approx(0.5 * tile / 120.0)
    fast = Simulation(GameConfig(levels=(LevelConfig(1, 1.5),)), SeededRNG(3))
    assert fast.max_substep_dt() == pytest.approx(0.5 * tile / (9.0 * tile + 40.0))


def test_large_dt_does_not_pass_through_crumbs(empty_sim):
    empty_sim.config.decay_per_second = 0.0
    empty_sim.field.add_obstacle(32, 12)

    result = empty_sim.step(ACTION_LEFT, 0.5)

    assert not result.done
    assert empty_sim.seeker.get_cell() == (33, 12)
    assert empty_sim.seeker.x == pytest.approx(33.5 * empty_sim.config.tile)
    assert empty_sim.field.is_blocking(32, 12)
    # The trail still covers the cell that was left
    assert empty_sim.field.is_blocking(34, 12)
    assert empty_sim.survival_time == pytest.approx(0.5)


def test_large_dt_does_not_skip_a_catch(rng):
    sim = Simulation(GameConfig(levels=(LevelConfig(1, 1.0),)), rng)
    hunter = sim.hunters[0]
    hunter.x, hunter.y = sim.seeker.x - 100.0, sim.seeker.y
    hunter.path = []
    hunter.path_timer = 10.0

    # Head-on: in one whole-second move they would swap places untouched
    result = sim.step(ACTION_LEFT, 1.0)

    assert result.info["caught"]
    assert sim.state == SimState.TERMINATED
    assert sim.survival_time < 1.0
