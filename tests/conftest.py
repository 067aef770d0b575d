"""Shared fixtures for the econcourse test suite."""

import matplotlib
matplotlib.use("Agg")

import numpy as np
import pytest


@pytest.fixture
def rng():
    return np.random.default_rng(42)


@pytest.fixture
def linear_data(rng):
    """y = 1 + 2 x1 - 0.5 x2 + e, n = 200, with a design including a constant."""
    n = 200
    x = rng.normal(size=(n, 2))
    X = np.column_stack([np.ones(n), x])
    y = X @ np.array([1.0, 2.0, -0.5]) + rng.normal(size=n)
    return X, y


@pytest.fixture
def km_data():
    """Six spells: failures at 1, 3, 5, 6 and censorings at 2, 4."""
    time = np.array([1.0, 2.0, 3.0, 4.0, 5.0, 6.0])
    event = np.array([1, 0, 1, 0, 1, 1])
    return time, event
