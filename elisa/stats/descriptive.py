"""Descriptive statistics for replicate concentration values."""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Sequence

import numpy as np


@dataclass(frozen=True)
class GroupSummary:
    n: int
    mean: float
    sd: float
    sem: float


def mean(values: Sequence[float]) -> float:
    """Arithmetic mean; ``0`` for an empty input.

    Args:
        values (Sequence[float]): Replicate values.

    Returns:
        float: Mean of ``values``.
    """
    arr = np.asarray(values, dtype=float)
    if arr.size == 0:
        return 0.0
    return float(np.mean(arr))


def variance(values: Sequence[float]) -> float:
    """Sample variance (``ddof=1``); ``0`` for fewer than two values."""
    arr = np.asarray(values, dtype=float)
    if arr.size < 2:
        return 0.0
    return float(np.var(arr, ddof=1))


def sum_of_squares(values: Sequence[float], center: float) -> float:
    """Sum of squared deviations from ``center``.

    Args:
        values (Sequence[float]): Replicate values.
        center (float): Reference value, usually the group mean.

    Returns:
        float: ``sum((v - center)^2)``.
    """
    arr = np.asarray(values, dtype=float)
    return float(np.sum((arr - float(center)) ** 2))


def summarize(values: Sequence[float]) -> GroupSummary:
    """Replicate count, mean, sample SD and standard error of the mean.

    SD and SEM are ``0`` for a single replicate and every field is ``0`` for
    an empty input.
    """
    arr = np.asarray(values, dtype=float)
    n = int(arr.size)
    if n == 0:
        return GroupSummary(n=0, mean=0.0, sd=0.0, sem=0.0)
    sd = math.sqrt(variance(arr))
    return GroupSummary(n=n, mean=mean(arr), sd=sd, sem=sd / math.sqrt(n))
