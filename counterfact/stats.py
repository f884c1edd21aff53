"""
Small statistical helpers shared by the estimators and the exercises.
"""
from __future__ import annotations

from typing import Sequence

import numpy as np

from ._exceptions import SampleError


def clamp(values: Sequence[float] | np.ndarray, lo: float, hi: float) -> np.ndarray:
    """
    Bound every element of ``values`` into the closed interval ``[lo, hi]``.

    Elements already inside the interval are returned unchanged; the rest are
    replaced by the nearest bound. The result always has the same length as
    the input, so an empty input gives an empty array.

    Raises
    ------
    ``ValueError``
        If ``lo > hi``. The bounds are never swapped silently.
    """
    if lo > hi:
        raise ValueError(f"Lower bound {lo} is greater than upper bound {hi}.")
    return np.clip(np.asarray(values, dtype=float), lo, hi)


def standard_error(sample: Sequence[float] | np.ndarray) -> float:
    """
    Standard error of the mean: ``std(sample, ddof=1) / sqrt(n)``.

    A sample of size 1 has no defined variance and returns ``nan``.
    A constant sample returns ``0.0``.

    Raises
    ------
    SampleError
        If the sample is empty.
    """
    x = np.asarray(sample, dtype=float).ravel()
    n = x.size
    if n == 0:
        raise SampleError("Cannot compute a standard error for an empty sample.")
    if n == 1:
        return float("nan")
    return float(np.std(x, ddof=1) / np.sqrt(n))
