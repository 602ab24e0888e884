"""Injectable random source for the game and the learner."""

import random
from typing import Optional


class SeededRNG:
    """
    Random source owned by one game session.

    Every random draw in the game (goal jitter, crumb decay, fallback chase
    noise, Q-value noise, exploration) goes through one of these, so a test
    can hand in a seeded instance and replay an exact trajectory. Two
    instances never share state.
    """

    def __init__(self, seed: Optional[int] = None):
        self.seed = seed
        self._source = random.Random(seed)

    def random(self) -> float:
        """Float in [0, 1)."""
        return self._source.random()

    def randint(self, a: int, b: int) -> int:
        """Integer in [a, b], both ends included."""
        return self._source.randint(a, b)

    def uniform(self, a: float, b: float) -> float:
        return self._source.uniform(a, b)

    def choice(self, seq):
        return self._source.choice(seq)

    def choice_from_set(self, items: set):
        """Random member of a set, or None if it is empty."""
        if not items:
            return None
        # Sorted so the draw only depends on the seed, not on set layout
        return self._source.choice(sorted(items))
