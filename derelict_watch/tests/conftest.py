"""
Shared fixtures for Derelict Watch tests.
"""

import pytest

from derelict_watch import GameEngine


class StubRandom:
    """
    Deterministic stand-in for random.Random.

    randint returns the low or high end of its range, randrange returns 0,
    random returns a fixed value, and choice picks a fixed index.
    """

    def __init__(self, random_value=0.99, high=False, pick=0):
        self.random_value = random_value
        self.high = high
        self.pick = pick

    def random(self):
        return self.random_value

    def randrange(self, stop):
        return 0

    def randint(self, low, high):
        return high if self.high else low

    def choice(self, seq):
        return seq[self.pick]


@pytest.fixture
def stub_rng():
    """Factory for StubRandom instances."""
    return StubRandom


@pytest.fixture
def engine():
    """Seeded engine on day 1."""
    game = GameEngine(seed=7)
    game.start_day()
    return game
