"""Shared fixtures."""

import numpy as np
import pytest


@pytest.fixture
def rng():
    return np.random.default_rng(1234)


@pytest.fixture
def one_hot():
    """Targets for 3 classes and 4 samples, one column per sample."""
    return np.array(
        [
            [1.0, 0.0, 0.0, 1.0],
            [0.0, 1.0, 0.0, 0.0],
            [0.0, 0.0, 1.0, 0.0],
        ]
    )


def numerical_gradient(f, x, h=1e-6):
    """Central differences of scalar f with respect to every entry of x."""
    x = np.array(x, dtype=np.float64)
    grad = np.zeros_like(x)
    for idx in np.ndindex(*x.shape):
        orig = x[idx]
        x[idx] = orig + h
        f_plus = f(x)
        x[idx] = orig - h
        f_minus = f(x)
        x[idx] = orig
        grad[idx] = (f_plus - f_minus) / (2 * h)
    return grad


@pytest.fixture
def num_grad():
    return numerical_gradient
