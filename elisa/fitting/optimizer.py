"""Levenberg-Marquardt optimizer specialized to the bounded 4PL model.

The optimizer follows the damped Gauss-Newton scheme used by
``scipy.optimize.curve_fit`` for small problems:

- numerical Jacobian from one-sided (forward) differences,
- Marquardt damping that scales the diagonal of ``J^T J`` by ``1 + lambda``,
- box constraints (``A, B, D >= 0``, ``C >= c_floor``) applied after each
  step rather than inside the linear solve.

It is a best-effort method: it never raises on non-convergence and always
returns the best parameters seen.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Tuple

import numpy as np

from ..config import DEFAULT_FIT_SETTINGS, FitSettings
from .four_pl import FourPLParams, four_pl, sum_squared_residuals
from .linalg import (
    matrix_multiply,
    matrix_vector_multiply,
    solve_linear_system,
    transpose,
)

logger = logging.getLogger(__name__)

STOP_CONVERGED = "converged"
STOP_DAMPING_LIMIT = "damping_limit"
STOP_MAX_ITERATIONS = "max_iterations"


@dataclass(frozen=True)
class OptimizationResult:
    """Diagnostics of one Levenberg-Marquardt run."""

    params: FourPLParams
    ssr: float
    iterations: int
    damping: float
    stop_reason: str

    @property
    def converged(self) -> bool:
        return self.stop_reason == STOP_CONVERGED


def jacobian_and_residuals(
    x: np.ndarray, y: np.ndarray, params: FourPLParams, step: float = 1e-6
) -> Tuple[np.ndarray, np.ndarray]:
    """Forward-difference Jacobian of the 4PL model and the residual vector.

    Args:
        x (numpy.ndarray): Concentrations.
        y (numpy.ndarray): Observed absorbances.
        params (FourPLParams): Point of linearization.
        step (float, optional): Forward-difference step ``h``.

    Returns:
        tuple[numpy.ndarray, numpy.ndarray]: ``J`` with shape ``(n, 4)``
        where ``J[i, j] = (f(x_i; p + h e_j) - f(x_i; p)) / h`` in A, B, C, D
        column order, and residuals ``y - f(x; p)``.
    """
    x_arr = np.asarray(x, dtype=float)
    predicted = np.asarray(four_pl(x_arr, params), dtype=float)
    residuals = np.asarray(y, dtype=float) - predicted

    base = params.as_array()
    jacobian = np.empty((len(x_arr), 4), dtype=float)
    for j in range(4):
        shifted = base.copy()
        shifted[j] += step
        shifted_pred = np.asarray(
            four_pl(x_arr, FourPLParams.from_array(shifted)), dtype=float
        )
        jacobian[:, j] = (shifted_pred - predicted) / step

    return jacobian, residuals


def levenberg_marquardt(
    x: np.ndarray,
    y: np.ndarray,
    initial: FourPLParams,
    settings: FitSettings = DEFAULT_FIT_SETTINGS,
) -> OptimizationResult:
    """Minimize the 4PL sum of squared residuals.

    Args:
        x (numpy.ndarray): Concentrations (finite, non-negative).
        y (numpy.ndarray): Absorbances (finite).
        initial (FourPLParams): Starting parameters; clamped to the box
            constraints before the first iteration.
        settings (FitSettings, optional): Iteration budget, tolerance and
            damping schedule.

    Returns:
        OptimizationResult: Best parameters, their SSR, the number of
        attempts made, the final damping factor and why the loop stopped.

    Note:
        Each attempt consumes one iteration whether the step is accepted,
        rejected, or unsolvable. A singular or non-finite step raises the
        damping factor; the run ends once it exceeds ``settings.max_damping``.
    """
    x_arr = np.asarray(x, dtype=float)
    y_arr = np.asarray(y, dtype=float)

    params = initial.clamped(settings.c_floor)
    damping = float(settings.initial_damping)
    prev_ssr = sum_squared_residuals(x_arr, y_arr, params)
    stop_reason = STOP_MAX_ITERATIONS
    iterations = 0

    for iteration in range(settings.max_iterations):
        iterations = iteration + 1
        jacobian, residuals = jacobian_and_residuals(
            x_arr, y_arr, params, settings.jacobian_step
        )
        jt = transpose(jacobian)
        jtj = matrix_multiply(jt, jacobian)
        jtr = matrix_vector_multiply(jt, residuals)

        for i in range(4):
            jtj[i, i] *= 1.0 + damping
            if jtj[i, i] < settings.diagonal_floor:
                jtj[i, i] = settings.diagonal_floor

        delta = solve_linear_system(jtj, jtr, tol=settings.singular_tolerance)
        if delta is None or not np.all(np.isfinite(delta)):
            damping *= settings.damping_increase
            if damping > settings.max_damping:
                stop_reason = STOP_DAMPING_LIMIT
                break
            continue

        candidate = FourPLParams.from_array(params.as_array() + delta).clamped(
            settings.c_floor
        )
        new_ssr = sum_squared_residuals(x_arr, y_arr, candidate)

        if new_ssr < prev_ssr:
            params = candidate
            damping = max(settings.min_damping, damping / settings.damping_decrease)

            rel_change = abs(prev_ssr - new_ssr) / (prev_ssr + 1e-15)
            prev_ssr = new_ssr
            if rel_change < settings.tolerance:
                stop_reason = STOP_CONVERGED
                break
        else:
            damping *= settings.damping_increase

        if damping > settings.max_damping:
            stop_reason = STOP_DAMPING_LIMIT
            break

    logger.debug(
        "Levenberg-Marquardt stopped (%s) after %d iterations: SSR=%.6g, lambda=%.3g",
        stop_reason,
        iterations,
        prev_ssr,
        damping,
    )
    return OptimizationResult(
        params=params,
        ssr=float(prev_ssr),
        iterations=iterations,
        damping=float(damping),
        stop_reason=stop_reason,
    )
