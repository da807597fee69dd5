"""Shared fixtures."""

import numpy as np
import pytest


class FixedRandom:
    """Generator stand-in whose uniform draws always return the same value."""

    def __init__(self, value: float):
        self.value = value

    def random(self):
        return self.value


@pytest.fixture
def rng():
    return np.random.default_rng(12345)


@pytest.fixture
def fixed_random():
    return FixedRandom
