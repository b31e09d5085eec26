"""
Internal validation helpers for the simrng package.

These functions are intended for internal use only and are not part of the public API.
"""
import math
from numbers import Integral, Real
from typing import Type

import numpy as np

from simrng.errors import InsufficientData, InvalidParameter, InvalidRequest, SimRNGError


def _as_real(value, name: str, error: Type[SimRNGError] = InvalidParameter) -> float:
    """Return ``value`` as a finite float or raise ``error``."""
    if isinstance(value, bool) or not isinstance(value, Real):
        raise error(f"{name} must be a real number, got {value!r}.")
    value = float(value)
    if not math.isfinite(value):
        raise error(f"{name} must be finite, got {value!r}.")
    return value


def _validate_positive(value, name: str) -> float:
    value = _as_real(value, name)
    if value <= 0:
        raise InvalidParameter(f"{name} must be positive.")
    return value


def _validate_count(count, name: str = "count") -> int:
    """Validate a positive integer request size.

    Args:
        count (int): requested number of items
        name (str): name used in the error message

    Returns:
        int: the validated count
    """
    if isinstance(count, bool) or not isinstance(count, Integral):
        raise InvalidRequest(f"{name} must be an integer, got {count!r}.")
    if count <= 0:
        raise InvalidRequest(f"{name} must be positive, got {count}.")
    return int(count)


def _validate_significance(alpha) -> float:
    alpha = _as_real(alpha, "significance_level", InvalidRequest)
    if not 0 < alpha < 1:
        raise InvalidRequest(f"significance_level must lie in (0, 1), got {alpha}.")
    return alpha


def _as_values(sample) -> np.ndarray:
    """Return the observations of ``sample`` as a flat float array.

    Raises
    ------
    InsufficientData
        If there are no observations.
    InvalidRequest
        If any observation is NaN or infinite.
    """
    raw = getattr(sample, "values", None)
    if not isinstance(raw, np.ndarray):
        raw = list(sample)
    values = np.asarray(raw, dtype=float).reshape(-1)
    if values.size == 0:
        raise InsufficientData("Sample must contain at least one observation.")
    if not np.all(np.isfinite(values)):
        raise InvalidRequest("Sample must not contain NaN or infinite values.")
    return values
