"""
Four-parameter logistic standard-curve fitting.

Modules:
    four_pl:
        The 4PL model, its inverse, and the DataPoint / FourPLParams /
        FitResult / Inversion value types.

    linalg:
        Transpose, multiply and Gaussian-elimination solve for the small
        normal-equation systems of the optimizer.

    optimizer:
        Bounded Levenberg-Marquardt with a forward-difference Jacobian.

    curve_fitter:
        CurveFitter (stateful) and the stateless fit / evaluate / invert /
        generate_curve_points functions.

Design Principle:
    This subpackage has no dependency on elisa.stats; concentrations it
    produces are grouped by the caller before statistical testing.
"""

from .curve_fitter import (
    CurveFitter,
    estimate_initial_params,
    evaluate,
    fit,
    generate_curve_points,
    invert,
    r_squared,
)
from .four_pl import (
    DataPoint,
    FitResult,
    FourPLParams,
    Inversion,
    InversionStatus,
    four_pl,
    inverse_four_pl,
)
from .linalg import (
    matrix_multiply,
    matrix_vector_multiply,
    solve_linear_system,
    transpose,
)
from .optimizer import OptimizationResult, jacobian_and_residuals, levenberg_marquardt

__all__ = [
    "CurveFitter",
    "DataPoint",
    "FitResult",
    "FourPLParams",
    "Inversion",
    "InversionStatus",
    "OptimizationResult",
    "estimate_initial_params",
    "evaluate",
    "fit",
    "four_pl",
    "generate_curve_points",
    "inverse_four_pl",
    "invert",
    "jacobian_and_residuals",
    "levenberg_marquardt",
    "matrix_multiply",
    "matrix_vector_multiply",
    "r_squared",
    "solve_linear_system",
    "transpose",
]
