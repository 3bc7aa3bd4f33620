"""Centralized numerical settings for curve fitting and statistics."""

from __future__ import annotations

from dataclasses import dataclass

SIGNIFICANCE_ALPHA: float = 0.05
MIN_FIT_POINTS: int = 4


@dataclass(frozen=True)
class FitSettings:
    """Tuning constants for the Levenberg-Marquardt 4PL optimizer.

    Attributes:
        max_iterations: Hard ceiling on optimizer attempts. Accepted and
            rejected steps both count against it.
        tolerance: Relative SSR change below which an accepted step ends the
            optimization.
        initial_damping: Starting Marquardt damping factor (lambda).
        damping_decrease: Divisor applied to lambda after an accepted step.
        damping_increase: Multiplier applied to lambda after a rejected or
            unsolvable step.
        min_damping: Lower bound for lambda.
        max_damping: Optimization stops once lambda exceeds this value.
        diagonal_floor: Minimum value of each damped ``J^T J`` diagonal entry.
        jacobian_step: Forward-difference step used for the numerical
            Jacobian.
        c_floor: Smallest admissible EC50 (``C``); ``C`` must stay strictly
            positive.
        singular_tolerance: Pivot magnitude below which the normal equations
            are treated as singular.
    """

    max_iterations: int = 100000
    tolerance: float = 1e-15
    initial_damping: float = 1e-3
    damping_decrease: float = 10.0
    damping_increase: float = 10.0
    min_damping: float = 1e-10
    max_damping: float = 1e15
    diagonal_floor: float = 1e-10
    jacobian_step: float = 1e-6
    c_floor: float = 1e-12
    singular_tolerance: float = 1e-12


@dataclass(frozen=True)
class StandardsSettings:
    """Options controlling how plate standards become fitting points.

    Attributes:
        subtract_min_od: Subtract the lowest standard/blank absorbance of the
            plate from every reading before fitting and quantification.
        blank_as_standard: Treat blank wells as zero-concentration standards.
    """

    subtract_min_od: bool = False
    blank_as_standard: bool = True


DEFAULT_FIT_SETTINGS = FitSettings()
DEFAULT_STANDARDS_SETTINGS = StandardsSettings()
