import math

import pytest

from crumbchase.domain.field import ObstacleField
from crumbchase.domain.types import GameConfig


@pytest.fixture
def field(rng):
    return ObstacleField(GameConfig(), rng)


def test_blocking_matches_strength(field):
    field.add_obstacle(5, 5, 2.0)
    for c in range(field.cols):
        for r in range(field.rows):
            assert field.is_blocking(c, r) == (field.strength(c, r) > 0)


@pytest.mark.parametrize("cell", [(-1, 0), (0, -1), (40, 0), (0, 25), (100, 100)])
def test_out_of_bounds_always_blocks(field, cell):
    assert field.is_blocking(*cell)


def test_out_of_bounds_mutations_are_ignored(field):
    field.add_obstacle(-1, 3, 5.0)
    field.weaken(40, 3, 1.0)
    field.weaken_at_index(-1, 1.0)
    field.weaken_at_index(field.n, 1.0)
    assert field.count_blocking() == 0


def test_add_obstacle_keeps_maximum(field):
    field.add_obstacle(3, 4, 3.0)
    field.add_obstacle(3, 4, 1.0)
    assert field.strength(3, 4) == 3.0
    field.add_obstacle(3, 4, 4.5)
    assert field.strength(3, 4) == 4.5


def test_add_obstacle_defaults_to_trail_strength(field):
    field.add_obstacle(7, 7)
    assert field.strength(7, 7) == field.config.trail_strength


def test_weaken_never_goes_negative(field):
    field.add_obstacle(2, 2, 1.5)
    field.weaken(2, 2, 10.0)
    assert field.strength(2, 2) == 0.0
    assert not field.is_blocking(2, 2)


def test_weaken_by_infinity_destroys(field):
    field.add_obstacle(2, 2, 3.0)
    field.weaken(2, 2, math.inf)
    assert field.strength(2, 2) == 0.0


def test_weaken_to_zero_removes_from_ring(field):
    field.build_goal_barrier()
    k = next(iter(sorted(field.ring_set)))
    c, r = field.cell_of(k)
    field.weaken(c, r, 0.5)
    assert k in field.ring_set
    field.weaken(c, r, 0.5)
    assert k not in field.ring_set
    assert not field.is_blocking(c, r)


def test_goal_opening_is_clear_and_walled(field):
    field.build_goal_barrier()
    goal_rows = list(field.goal_rows())
    assert goal_rows == [10, 11, 12, 13, 14]
    for r in goal_rows:
        assert field.is_goal_cell(0, r)
        assert not field.is_blocking(0, r)
        # Two columns of barrier straight in front of the opening
        assert field.is_blocking(1, r)
        assert field.is_blocking(2, r)
    # Rows just outside the opening are walled on the edge column too
    assert field.is_blocking(0, 9)
    assert field.is_blocking(0, 15)
    assert not field.is_goal_cell(1, 12)
    assert not field.is_goal_cell(0, 9)


def test_barrier_cells_are_all_in_ring(field):
    field.build_goal_barrier()
    assert field.count_blocking() == len(field.ring_set)
    for k in field.ring_set:
        assert field.cells[k] == field.config.barrier_strength


def test_clear_resets_everything(field):
    field.build_goal_barrier()
    field.add_obstacle(20, 20, 1.0)
    field.clear()
    assert field.count_blocking() == 0
    assert not field.ring_set
    assert not field.goal_open_set


def test_decay_prefers_ring_when_biased(rng):
    config = GameConfig(ring_decay_bias=1.0)
    field = ObstacleField(config, rng)
    field.build_goal_barrier()
    field.add_obstacle(30, 20, 1.0)
    ring_before = len(field.ring_set)
    field.decay_one_random_obstacle()
    assert len(field.ring_set) == ring_before - 1
    assert field.is_blocking(30, 20)


def test_decay_only_weakens_existing_crumbs(fixed_rng):
    config = GameConfig(ring_decay_bias=0.0)
    field = ObstacleField(config, fixed_rng)
    # FixedRNG(0.5) always lands on the middle cell
    c = fixed_rng.randint(0, field.cols - 1)
    r = fixed_rng.randint(0, field.rows - 1)
    field.decay_one_random_obstacle()
    assert field.count_blocking() == 0
    field.add_obstacle(c, r, 2.0)
    field.decay_one_random_obstacle()
    assert field.strength(c, r) == 1.0
