import pytest

from crumbchase.domain.types import GameConfig, LevelConfig
from crumbchase.utils.rng import SeededRNG


class FixedRNG:
    """Random source that always returns the same draws."""

    def __init__(self, value: float = 0.0):
        self.value = value

    def random(self):
        return self.value

    def randint(self, a, b):
        return a + int(self.value * (b - a + 1)) if self.value < 1 else b

    def uniform(self, a, b):
        return a + (b - a) * self.value

    def choice(self, seq):
        return seq[0]

    def choice_from_set(self, items):
        return min(items) if items else None


@pytest.fixture
def rng():
    return SeededRNG(1234)


@pytest.fixture
def fixed_rng():
    return FixedRNG(0.5)


@pytest.fixture
def no_hunter_config():
    return GameConfig(levels=(LevelConfig(0, 1.0),))


@pytest.fixture
def small_config():
    return GameConfig(cols=10, rows=8, levels=(LevelConfig(0, 0.5),))
