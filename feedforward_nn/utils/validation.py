"""Matrix coercion and shape checks shared by losses, layers and optimizers."""

from numbers import Integral, Real
from typing import Tuple
import numpy as np

from ..errors import ConfigurationError, ShapeMismatch


def as_matrix(x, name: str = "matrix") -> np.ndarray:
    """Coerce input to a 2-D float64 array.

    A 1-D input is read as a single sample, i.e. one column.

    Args:
        x: Array-like input.
        name: Argument name used in error messages.

    Returns:
        2-D float64 array.
    """
    arr = np.asarray(x, dtype=np.float64)
    if arr.ndim == 1:
        arr = arr.reshape(-1, 1)
    if arr.ndim != 2:
        raise ShapeMismatch(f"{name} must be 1-D or 2-D, got shape {arr.shape}")
    return arr


def as_vector(x, name: str = "vector") -> np.ndarray:
    """Coerce input to a 1-D float64 array (column vectors are flattened)."""
    arr = np.asarray(x, dtype=np.float64)
    if arr.ndim == 2 and 1 in arr.shape:
        arr = arr.ravel()
    if arr.ndim != 1:
        raise ShapeMismatch(f"{name} must be a vector, got shape {arr.shape}")
    return arr


def check_same_shape(a: np.ndarray, b: np.ndarray, names: Tuple[str, str] = ("y", "y_fit")) -> None:
    if a.shape != b.shape:
        raise ShapeMismatch(
            f"{names[0]} has shape {a.shape} but {names[1]} has shape {b.shape}"
        )


def check_shape(x: np.ndarray, expected: Tuple[int, ...], name: str) -> None:
    if x.shape != tuple(expected):
        raise ShapeMismatch(f"{name} must have shape {tuple(expected)}, got {x.shape}")


def check_batch(x: np.ndarray, name: str) -> None:
    """Reject a batch with no samples (zero columns)."""
    if x.shape[1] == 0:
        raise ShapeMismatch(f"{name} must hold at least one sample, got shape {x.shape}")


def positive_int(value, name: str) -> int:
    """Validate a strictly positive integer (bools are rejected)."""
    if isinstance(value, bool) or not isinstance(value, Integral) or value <= 0:
        raise ConfigurationError(f"{name} must be a positive integer, got {value!r}")
    return int(value)


def positive_float(value, name: str) -> float:
    """Validate a strictly positive, finite real number."""
    if isinstance(value, bool) or not isinstance(value, Real):
        raise ConfigurationError(f"{name} must be a number, got {value!r}")
    value = float(value)
    if not np.isfinite(value) or value <= 0:
        raise ConfigurationError(f"{name} must be positive and finite, got {value!r}")
    return value


def non_negative_float(value, name: str) -> float:
    if isinstance(value, bool) or not isinstance(value, Real):
        raise ConfigurationError(f"{name} must be a number, got {value!r}")
    value = float(value)
    if not np.isfinite(value) or value < 0:
        raise ConfigurationError(f"{name} must be non-negative and finite, got {value!r}")
    return value


def unit_interval(value, name: str) -> float:
    """Validate a decay-style coefficient in [0, 1)."""
    value = non_negative_float(value, name)
    if value >= 1:
        raise ConfigurationError(f"{name} must lie in [0, 1), got {value!r}")
    return value
