"""Four-parameter logistic (4PL) model, its inverse, and the value types used
by the curve fitter.

Model form:
    ``y = D + (A - D) / (1 + (x / C)^B)``

    - ``A``: response at zero concentration (lower asymptote for an
      increasing curve)
    - ``B``: Hill slope
    - ``C``: EC50, the concentration at the inflection point
    - ``D``: response at infinite concentration

At ``x <= 0`` the model returns ``A`` exactly, which avoids the ``0^B``
ambiguity and matches the meaning of a zero-concentration standard.
"""

from __future__ import annotations

import enum
import math
from dataclasses import dataclass
from typing import Mapping, Optional, Sequence, Union

import numpy as np

ArrayLike = Union[float, Sequence[float], np.ndarray]


@dataclass(frozen=True)
class DataPoint:
    """One standard-curve point: concentration ``x`` and absorbance ``y``."""

    x: float
    y: float


@dataclass(frozen=True)
class FourPLParams:
    """Parameters of the 4PL model.

    ``C`` must be strictly positive while the parameters are in use; ``A``,
    ``B`` and ``D`` are non-negative by convention of plate absorbance data.
    Use :meth:`clamped` to enforce both box constraints.
    """

    A: float
    B: float
    C: float
    D: float

    def clamped(self, c_floor: float = 1e-12) -> "FourPLParams":
        """Project the parameters onto the fitting box.

        Args:
            c_floor (float, optional): Smallest admissible ``C``.

        Returns:
            FourPLParams: Copy with ``A, B, D >= 0`` and ``C >= c_floor``.
        """
        return FourPLParams(
            A=max(0.0, float(self.A)),
            B=max(0.0, float(self.B)),
            C=max(float(c_floor), float(self.C)),
            D=max(0.0, float(self.D)),
        )

    def as_array(self) -> np.ndarray:
        return np.array([self.A, self.B, self.C, self.D], dtype=float)

    @classmethod
    def from_array(cls, values: Sequence[float]) -> "FourPLParams":
        a, b, c, d = (float(v) for v in values)
        return cls(A=a, B=b, C=c, D=d)

    @classmethod
    def from_mapping(cls, values: Mapping[str, float]) -> "FourPLParams":
        return cls(
            A=float(values["A"]),
            B=float(values["B"]),
            C=float(values["C"]),
            D=float(values["D"]),
        )


@dataclass(frozen=True)
class FitResult:
    """Outcome of a 4PL fit.

    ``r_squared`` may be negative when the model is worse than the mean. When
    the standards have zero total variance, R^2 is only defined for a perfect
    fit (reported as ``1.0``); otherwise it is ``nan`` and
    :attr:`r_squared_defined` is ``False``.
    """

    params: FourPLParams
    r_squared: float

    @property
    def r_squared_defined(self) -> bool:
        return math.isfinite(self.r_squared)


class InversionStatus(enum.Enum):
    """Outcome of converting an absorbance back into a concentration."""

    OK = "ok"
    OUT_OF_RANGE = "out_of_range"
    INVALID = "invalid"
    NOT_FITTED = "not_fitted"


@dataclass(frozen=True)
class Inversion:
    """Tagged result of :func:`inverse_four_pl`.

    ``value`` is set only when ``status`` is :attr:`InversionStatus.OK`.
    """

    status: InversionStatus
    value: Optional[float] = None

    @property
    def ok(self) -> bool:
        return self.status is InversionStatus.OK

    def __bool__(self) -> bool:
        return self.ok

    @classmethod
    def out_of_range(cls) -> "Inversion":
        return cls(InversionStatus.OUT_OF_RANGE)

    @classmethod
    def invalid(cls) -> "Inversion":
        return cls(InversionStatus.INVALID)

    @classmethod
    def not_fitted(cls) -> "Inversion":
        return cls(InversionStatus.NOT_FITTED)


def four_pl(x: ArrayLike, params: FourPLParams) -> Union[float, np.ndarray]:
    """Evaluate the 4PL model at one or many concentrations.

    Args:
        x: Concentration(s). Values ``<= 0`` evaluate to ``params.A``.
        params: Model parameters.

    Returns:
        float for scalar input, otherwise a numpy array shaped like ``x``.

    Note:
        Parameters are clamped to the fitting box first (``A, B, D >= 0``,
        ``C >= 1e-12``), so a non-positive ``C`` never reaches the power.
        Overflow of ``(x / C)^B`` saturates the response at ``D`` instead of
        raising.
    """
    x_arr = np.asarray(x, dtype=float)
    box = params.clamped()
    a, b, c, d = box.A, box.B, box.C, box.D

    with np.errstate(over="ignore", divide="ignore", invalid="ignore"):
        positive = x_arr > 0
        safe_x = np.where(positive, x_arr, 1.0)
        y = d + (a - d) / (1.0 + np.power(safe_x / c, b))
        y = np.where(positive, y, a)

    if np.ndim(x) == 0:
        return float(y)
    return y


def inverse_four_pl(y: float, params: FourPLParams) -> Inversion:
    """Invert the 4PL model to recover the concentration for a response.

    Args:
        y: Measured (optionally offset-corrected) absorbance.
        params: Fitted 4PL parameters.

    Returns:
        Inversion: ``OK`` with the concentration, ``OUT_OF_RANGE`` when ``y``
        lies outside the open interval between the asymptotes, or ``INVALID``
        when the inversion has no real, finite solution. Parameters with a
        non-finite value, ``B <= 0`` or ``C <= 0`` are ``INVALID``.
    """
    a, b, c, d = float(params.A), float(params.B), float(params.C), float(params.D)
    y = float(y)

    if not all(math.isfinite(p) for p in (a, b, c, d)) or b <= 0 or c <= 0:
        return Inversion.invalid()

    min_y = min(a, d)
    max_y = max(a, d)
    if not math.isfinite(y) or y <= min_y or y >= max_y:
        return Inversion.out_of_range()

    ratio = (a - d) / (y - d) - 1.0
    if ratio <= 0:
        return Inversion.invalid()

    try:
        value = c * ratio ** (1.0 / b)
    except OverflowError:
        return Inversion.invalid()
    if not math.isfinite(value):
        return Inversion.invalid()
    return Inversion(InversionStatus.OK, float(value))


def sum_squared_residuals(
    x: np.ndarray, y: np.ndarray, params: FourPLParams
) -> float:
    """Sum of squared residuals ``sum((y - f(x))^2)``."""
    resid = np.asarray(y, dtype=float) - four_pl(np.asarray(x, dtype=float), params)
    return float(np.sum(resid**2))


def total_sum_of_squares(y: np.ndarray) -> float:
    y_arr = np.asarray(y, dtype=float)
    return float(np.sum((y_arr - y_arr.mean()) ** 2))
