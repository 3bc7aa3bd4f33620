"""Fit 4PL standard curves and convert absorbances into concentrations.

``CurveFitter`` keeps the last fitted parameters so that plotting and
quantification calls can omit them. The module-level functions ``fit``,
``evaluate``, ``invert`` and ``generate_curve_points`` form the stateless
surface: they take parameters explicitly and are safe to share across
threads.
"""

from __future__ import annotations

import logging
import math
from typing import Iterable, List, Mapping, Optional, Sequence, Tuple, Union

import numpy as np

from ..config import DEFAULT_FIT_SETTINGS, MIN_FIT_POINTS, FitSettings
from ..errors import InsufficientDataError, NotFittedError
from .four_pl import (
    ArrayLike,
    DataPoint,
    FitResult,
    FourPLParams,
    Inversion,
    four_pl,
    inverse_four_pl,
    sum_squared_residuals,
    total_sum_of_squares,
)
from .optimizer import levenberg_marquardt

logger = logging.getLogger(__name__)

PointLike = Union[DataPoint, Tuple[float, float], Sequence[float], Mapping[str, float]]

# SSR at or below this counts as a perfect fit when the standards are flat.
PERFECT_FIT_SSR = 1e-15


def _as_float(value) -> float:
    if value is None:
        return math.nan
    try:
        return float(value)
    except (TypeError, ValueError):
        return math.nan


def _point_xy(point: PointLike) -> Tuple[float, float]:
    if isinstance(point, DataPoint):
        return _as_float(point.x), _as_float(point.y)
    if isinstance(point, Mapping):
        return _as_float(point.get("x")), _as_float(point.get("y"))
    x, y = point
    return _as_float(x), _as_float(y)


def _valid_arrays(points: Iterable[PointLike]) -> Tuple[np.ndarray, np.ndarray, int]:
    pairs = [_point_xy(p) for p in points]
    if not pairs:
        return np.array([], dtype=float), np.array([], dtype=float), 0
    xy = np.asarray(pairs, dtype=float)
    x_arr = xy[:, 0]
    y_arr = xy[:, 1]
    mask = np.isfinite(x_arr) & np.isfinite(y_arr) & (x_arr >= 0)
    return x_arr[mask], y_arr[mask], len(pairs)


def estimate_initial_params(x: np.ndarray, y: np.ndarray) -> FourPLParams:
    """Starting point for the optimizer.

    ``A = min(y)``, ``B = 1``, ``C = median(x)``, ``D = max(y)``. The median
    averages the two middle concentrations when the count is even.
    """
    x_arr = np.asarray(x, dtype=float)
    y_arr = np.asarray(y, dtype=float)
    return FourPLParams(
        A=float(np.min(y_arr)),
        B=1.0,
        C=float(np.median(x_arr)),
        D=float(np.max(y_arr)),
    )


def r_squared(x: np.ndarray, y: np.ndarray, params: FourPLParams) -> float:
    """Coefficient of determination ``1 - SSR/SST``.

    Returns:
        float: R^2, possibly negative. When ``SST == 0`` it is ``1.0`` for a
        perfect fit and ``nan`` otherwise.
    """
    ssr = sum_squared_residuals(x, y, params)
    sst = total_sum_of_squares(y)
    if sst > 0:
        return 1.0 - ssr / sst
    if ssr <= PERFECT_FIT_SSR:
        return 1.0
    return math.nan


class CurveFitter:
    """Fit and apply a 4PL standard curve.

    Attributes:
        params: Parameters from the most recent :meth:`fit`, or ``None``.
        r_squared: R^2 from the most recent :meth:`fit`, or ``None``.
        last_optimization: Optimizer diagnostics from the most recent fit.

    Note:
        The stored state is not thread-safe. Use one fitter per concurrent
        fit, or the module-level functions with explicit parameters.
    """

    def __init__(self, settings: Optional[FitSettings] = None):
        self.settings = settings or DEFAULT_FIT_SETTINGS
        self.params: Optional[FourPLParams] = None
        self.r_squared: Optional[float] = None
        self.last_optimization = None

    def fit(self, points: Iterable[PointLike]) -> FitResult:
        """Fit the 4PL model to standard points.

        Args:
            points: ``DataPoint`` objects, ``(x, y)`` pairs or ``{"x", "y"}``
                mappings. Points with non-finite values or negative ``x`` are
                dropped; ``x == 0`` (blank standards) is kept.

        Returns:
            FitResult: Fitted parameters and R^2.

        Raises:
            InsufficientDataError: If fewer than four points are supplied or
                remain after filtering.
        """
        x_arr, y_arr, n_supplied = _valid_arrays(points)
        if n_supplied < MIN_FIT_POINTS:
            raise InsufficientDataError(
                f"At least {MIN_FIT_POINTS} data points are required for 4PL "
                f"fitting, got {n_supplied}."
            )
        if len(x_arr) < MIN_FIT_POINTS:
            raise InsufficientDataError(
                f"Not enough valid data points for 4PL fitting. Found "
                f"{len(x_arr)} valid points, minimum {MIN_FIT_POINTS} required."
            )

        initial = estimate_initial_params(x_arr, y_arr)
        logger.debug("Initial 4PL estimate: %s", initial)

        optimization = levenberg_marquardt(x_arr, y_arr, initial, self.settings)
        params = optimization.params
        r2 = r_squared(x_arr, y_arr, params)
        if not math.isfinite(r2):
            logger.warning(
                "R^2 is undefined: standards have zero variance but the fit "
                "is not exact (SSR=%.6g).",
                optimization.ssr,
            )

        self.params = params
        self.r_squared = r2
        self.last_optimization = optimization
        logger.info(
            "Fitted 4PL: A=%.4f, B=%.4f, C=%.4f, D=%.4f, R2=%.6f (%s)",
            params.A,
            params.B,
            params.C,
            params.D,
            r2,
            optimization.stop_reason,
        )
        return FitResult(params=params, r_squared=r2)

    def _resolve_params(self, params: Optional[FourPLParams]) -> Optional[FourPLParams]:
        return params if params is not None else self.params

    def evaluate(
        self, x: ArrayLike, params: Optional[FourPLParams] = None
    ) -> Union[float, np.ndarray]:
        use_params = self._resolve_params(params)
        if use_params is None:
            raise NotFittedError(
                "Curve must be fitted before evaluating or params must be provided."
            )
        return four_pl(x, use_params)

    def calculate_concentration(
        self, absorbance: float, params: Optional[FourPLParams] = None
    ) -> Inversion:
        """Convert an absorbance into a concentration.

        Returns:
            Inversion: ``NOT_FITTED`` when no parameters are available,
            otherwise the result of :func:`inverse_four_pl`.
        """
        use_params = self._resolve_params(params)
        if use_params is None:
            return Inversion.not_fitted()
        return inverse_four_pl(absorbance, use_params)

    def generate_curve_points(
        self,
        min_x: float,
        max_x: float,
        num_points: int = 100,
        params: Optional[FourPLParams] = None,
    ) -> List[DataPoint]:
        use_params = self._resolve_params(params)
        if use_params is None:
            raise NotFittedError(
                "Curve must be fitted before generating points or params must "
                "be provided."
            )
        return generate_curve_points(min_x, max_x, num_points, use_params)


def fit(
    points: Iterable[PointLike], settings: Optional[FitSettings] = None
) -> FitResult:
    """Fit the 4PL model without keeping any state."""
    return CurveFitter(settings).fit(points)


def evaluate(x: ArrayLike, params: FourPLParams) -> Union[float, np.ndarray]:
    """Evaluate the 4PL curve with explicit parameters.

    Args:
        x: Concentration(s); values ``<= 0`` give ``A``.
        params (FourPLParams): Curve parameters.

    Returns:
        float | numpy.ndarray: Predicted absorbance(s).
    """
    return four_pl(x, params)


def invert(y: float, params: FourPLParams) -> Inversion:
    """Back-calculate the concentration for one absorbance.

    Args:
        y (float): Absorbance.
        params (FourPLParams): Curve parameters.

    Returns:
        Inversion: Tagged result; see :func:`inverse_four_pl`.
    """
    return inverse_four_pl(y, params)


def generate_curve_points(
    min_x: float, max_x: float, num_points: int, params: FourPLParams
) -> List[DataPoint]:
    """Sample the fitted curve on a log-spaced concentration grid.

    Args:
        min_x (float): Lowest concentration; must be positive and finite.
        max_x (float): Highest concentration; must be positive and finite.
        num_points (int): Number of points to return.
        params (FourPLParams): Curve parameters.

    Returns:
        list[DataPoint]: ``num_points`` points with ``x`` spaced evenly in
        ``log10`` from ``min_x`` to ``max_x``. A single point sits at
        ``min_x``.

    Raises:
        ValueError: If a bound is non-positive or non-finite, ``min_x``
            exceeds ``max_x``, or ``num_points`` is negative.
    """
    min_x = float(min_x)
    max_x = float(max_x)
    if not (math.isfinite(min_x) and math.isfinite(max_x)):
        raise ValueError("Curve bounds must be finite.")
    if min_x <= 0 or max_x <= 0:
        raise ValueError(
            f"Curve bounds must be positive for log spacing, got "
            f"min_x={min_x}, max_x={max_x}."
        )
    if min_x > max_x:
        raise ValueError(
            f"min_x must not exceed max_x, got min_x={min_x}, max_x={max_x}."
        )
    if int(num_points) < 0:
        raise ValueError(f"num_points must be >= 0, got {num_points}.")

    xs = np.logspace(math.log10(min_x), math.log10(max_x), int(num_points))
    if xs.size:
        xs[0] = min_x
    if xs.size > 1:
        xs[-1] = max_x
    ys = np.asarray(four_pl(xs, params), dtype=float)
    return [DataPoint(float(x), float(y)) for x, y in zip(xs, ys)]
