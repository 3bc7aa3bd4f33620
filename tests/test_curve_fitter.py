"""Tests for 4PL fitting, concentration lookup and curve sampling."""

import math

import numpy as np
import pytest

from elisa.config import FitSettings
from elisa.errors import InsufficientDataError, NotFittedError
from elisa.fitting import (
    CurveFitter,
    DataPoint,
    FourPLParams,
    InversionStatus,
    estimate_initial_params,
    evaluate,
    fit,
    four_pl,
    generate_curve_points,
    invert,
    levenberg_marquardt,
)

TRUE_PARAMS = FourPLParams(A=0.1, B=1.5, C=50.0, D=2.0)
CONCENTRATIONS = [1.0, 5.0, 25.0, 50.0, 100.0, 250.0, 500.0]


@pytest.fixture
def exact_points():
    return [DataPoint(x, four_pl(x, TRUE_PARAMS)) for x in CONCENTRATIONS]


def test_fit_recovers_generating_parameters(exact_points):
    fitter = CurveFitter()
    result = fitter.fit(exact_points)

    for name in ("A", "B", "C", "D"):
        fitted = getattr(result.params, name)
        expected = getattr(TRUE_PARAMS, name)
        assert abs(fitted - expected) <= 0.01 * expected, name
    assert result.r_squared > 0.999
    assert result.r_squared_defined
    assert fitter.params == result.params
    assert fitter.r_squared == result.r_squared


def test_fit_accepts_pairs_and_mappings(exact_points):
    pairs = [(p.x, p.y) for p in exact_points]
    mappings = [{"x": p.x, "y": p.y} for p in exact_points]
    assert fit(pairs).r_squared > 0.999
    assert fit(mappings).r_squared > 0.999


def test_fit_requires_four_points():
    with pytest.raises(InsufficientDataError, match="At least 4 data points"):
        CurveFitter().fit([DataPoint(1, 0.2), DataPoint(2, 0.4), DataPoint(3, 0.6)])


def test_fit_drops_invalid_points_before_counting():
    points = [
        DataPoint(1.0, 0.2),
        DataPoint(2.0, 0.4),
        DataPoint(3.0, 0.6),
        DataPoint(-1.0, 0.1),
        DataPoint(4.0, math.nan),
    ]
    with pytest.raises(InsufficientDataError, match="Found 3 valid points"):
        CurveFitter().fit(points)


def test_insufficient_data_is_value_error():
    with pytest.raises(ValueError):
        fit([])


def test_flat_standards_give_perfect_r_squared():
    points = [DataPoint(x, 0.5) for x in (1.0, 10.0, 100.0, 1000.0)]
    result = fit(points, FitSettings(max_iterations=200))
    assert result.r_squared == 1.0


def test_initial_estimate_uses_median_concentration():
    x = np.array([1.0, 2.0, 3.0, 10.0])
    y = np.array([0.3, 0.1, 0.9, 0.5])
    initial = estimate_initial_params(x, y)
    assert initial == FourPLParams(A=0.1, B=1.0, C=2.5, D=0.9)


def test_optimizer_counts_every_attempt(exact_points):
    x = np.array([p.x for p in exact_points])
    y = np.array([p.y for p in exact_points])
    start = FourPLParams(A=0.5, B=1.0, C=10.0, D=1.5)
    result = levenberg_marquardt(x, y, start, FitSettings(max_iterations=3))
    assert result.iterations == 3
    assert result.stop_reason == "max_iterations"
    assert not result.converged


def test_optimizer_keeps_parameters_in_bounds():
    x = np.array([0.0, 1.0, 10.0, 100.0, 1000.0])
    y = np.array([0.05, 0.06, 0.4, 1.2, 1.3])
    start = FourPLParams(A=-1.0, B=1.0, C=0.0, D=2.0)
    result = levenberg_marquardt(x, y, start, FitSettings(max_iterations=500))
    assert result.params.A >= 0
    assert result.params.B >= 0
    assert result.params.C >= 1e-12
    assert result.params.D >= 0
    assert math.isfinite(result.ssr)


class TestConcentrationLookup:
    def test_stored_params_are_used(self, exact_points):
        fitter = CurveFitter()
        fitter.fit(exact_points)
        inv = fitter.calculate_concentration(four_pl(75.0, fitter.params))
        assert inv.ok
        assert inv.value == pytest.approx(75.0, rel=1e-6)

    def test_unfitted_returns_not_fitted(self):
        inv = CurveFitter().calculate_concentration(1.0)
        assert inv.status is InversionStatus.NOT_FITTED
        assert inv.value is None

    def test_explicit_params_override(self):
        inv = CurveFitter().calculate_concentration(
            four_pl(20.0, TRUE_PARAMS), TRUE_PARAMS
        )
        assert inv.value == pytest.approx(20.0, rel=1e-6)

    def test_functional_invert_and_evaluate(self):
        assert evaluate(0.0, TRUE_PARAMS) == TRUE_PARAMS.A
        assert invert(TRUE_PARAMS.D, TRUE_PARAMS).status is InversionStatus.OUT_OF_RANGE

    def test_evaluate_without_params_raises(self):
        with pytest.raises(NotFittedError):
            CurveFitter().evaluate(1.0)


class TestCurvePoints:
    def test_count_order_and_endpoints(self):
        points = generate_curve_points(1.0, 1000.0, 50, TRUE_PARAMS)
        assert len(points) == 50
        xs = [p.x for p in points]
        assert all(a < b for a, b in zip(xs, xs[1:]))
        assert xs[0] == pytest.approx(1.0)
        assert xs[-1] == pytest.approx(1000.0)
        for p in points:
            assert p.y == pytest.approx(four_pl(p.x, TRUE_PARAMS))

    def test_log_spacing(self):
        xs = [p.x for p in generate_curve_points(1.0, 100.0, 3, TRUE_PARAMS)]
        assert xs == pytest.approx([1.0, 10.0, 100.0])

    def test_zero_points_gives_empty_list(self):
        assert generate_curve_points(1.0, 10.0, 0, TRUE_PARAMS) == []

    def test_single_point_sits_at_lower_bound(self):
        (point,) = generate_curve_points(2.0, 10.0, 1, TRUE_PARAMS)
        assert point.x == 2.0
        assert point.y == pytest.approx(four_pl(2.0, TRUE_PARAMS))

    def test_reversed_bounds_raise(self):
        with pytest.raises(ValueError, match="exceed"):
            generate_curve_points(100.0, 1.0, 5, TRUE_PARAMS)

    def test_non_positive_bounds_raise(self):
        with pytest.raises(ValueError, match="positive"):
            generate_curve_points(0.0, 10.0, 5, TRUE_PARAMS)
        with pytest.raises(ValueError, match="positive"):
            generate_curve_points(1.0, -10.0, 5, TRUE_PARAMS)

    def test_unfitted_fitter_raises(self):
        with pytest.raises(NotFittedError, match="fitted"):
            CurveFitter().generate_curve_points(1.0, 10.0)

    def test_each_call_returns_fresh_list(self):
        fitter = CurveFitter()
        first = fitter.generate_curve_points(1.0, 10.0, 5, TRUE_PARAMS)
        second = fitter.generate_curve_points(1.0, 10.0, 5, TRUE_PARAMS)
        assert first == second
        assert first is not second
