"""
Shared fixtures: a throwaway SQLite store and controllable clocks.
"""

import random

import pytest

from image_arena.db import ImageStore
from image_arena.rate_limit import DualRateLimiter, SlidingWindowLimiter


class FakeClock:
    def __init__(self, start=1_000_000.0):
        self.now = float(start)

    def __call__(self):
        return self.now

    def advance(self, seconds):
        self.now += seconds


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def store(tmp_path):
    s = ImageStore(tmp_path / "arena.db")
    s.init_db()
    return s


@pytest.fixture
def seeded_store(store):
    store.add_images([
        ("alpha", "/external-images/alpha.webp"),
        ("beta", "/external-images/beta.webp"),
        ("gamma", "/external-images/gamma.webp"),
    ])
    return store


@pytest.fixture
def limiter(clock):
    """Generous limits that never trigger housekeeping on their own."""
    return DualRateLimiter(
        SlidingWindowLimiter(1000, clock=clock, rng=lambda: 1.0, name="ip"),
        SlidingWindowLimiter(1000, clock=clock, rng=lambda: 1.0, name="session"),
    )


@pytest.fixture
def rng():
    return random.Random(1234)
