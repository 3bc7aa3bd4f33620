import math

import numpy as np
import pytest

from elisa.fitting import (
    FourPLParams,
    Inversion,
    InversionStatus,
    four_pl,
    inverse_four_pl,
)

PARAMS = FourPLParams(A=0.1, B=1.5, C=50.0, D=2.0)


def test_zero_concentration_returns_a():
    assert four_pl(0.0, PARAMS) == PARAMS.A
    assert four_pl(-5.0, PARAMS) == PARAMS.A


def test_value_at_ec50_is_midpoint():
    assert four_pl(PARAMS.C, PARAMS) == pytest.approx((PARAMS.A + PARAMS.D) / 2)


def test_vectorized_matches_scalar():
    xs = np.array([0.0, 1.0, 50.0, 500.0])
    ys = four_pl(xs, PARAMS)
    assert isinstance(ys, np.ndarray)
    for x, y in zip(xs, ys):
        assert y == pytest.approx(four_pl(float(x), PARAMS))


def test_huge_concentration_saturates_to_d():
    steep = FourPLParams(A=0.1, B=400.0, C=1.0, D=2.0)
    assert four_pl(1e6, steep) == pytest.approx(2.0)


def test_inverse_round_trip_interior():
    for x in (0.5, 5.0, 50.0, 300.0):
        inv = inverse_four_pl(four_pl(x, PARAMS), PARAMS)
        assert inv.ok
        assert math.isclose(inv.value, x, rel_tol=1e-6)


def test_evaluating_inverse_reproduces_response():
    for y in (0.2, 0.75, 1.05, 1.9):
        inv = inverse_four_pl(y, PARAMS)
        assert abs(four_pl(inv.value, PARAMS) - y) < 1e-6


def test_inverse_on_asymptotes_is_out_of_range():
    assert inverse_four_pl(PARAMS.A, PARAMS).status is InversionStatus.OUT_OF_RANGE
    assert inverse_four_pl(PARAMS.D, PARAMS).status is InversionStatus.OUT_OF_RANGE
    assert inverse_four_pl(5.0, PARAMS).status is InversionStatus.OUT_OF_RANGE
    assert inverse_four_pl(math.nan, PARAMS).status is InversionStatus.OUT_OF_RANGE


def test_inverse_decreasing_curve():
    decreasing = FourPLParams(A=2.0, B=1.0, C=10.0, D=0.2)
    inv = inverse_four_pl(four_pl(20.0, decreasing), decreasing)
    assert inv.ok
    assert inv.value == pytest.approx(20.0, rel=1e-6)


def test_inverse_zero_slope_is_invalid():
    flat_slope = FourPLParams(A=0.1, B=0.0, C=10.0, D=2.0)
    assert inverse_four_pl(1.0, flat_slope).status is InversionStatus.INVALID


def test_negative_ec50_is_clamped_when_evaluating():
    bad = FourPLParams(A=0.1, B=1.5, C=-5.0, D=2.0)
    y = four_pl(10.0, bad)
    assert math.isfinite(y)
    assert y == pytest.approx(four_pl(10.0, bad.clamped()))
    ys = four_pl(np.array([0.0, 1.0, 100.0]), bad)
    assert np.all(np.isfinite(ys))


@pytest.mark.parametrize(
    "params",
    [
        FourPLParams(A=0.1, B=1.5, C=-5.0, D=2.0),
        FourPLParams(A=0.1, B=1.5, C=0.0, D=2.0),
        FourPLParams(A=0.1, B=-1.0, C=10.0, D=2.0),
        FourPLParams(A=0.1, B=1.5, C=math.nan, D=2.0),
        FourPLParams(A=0.1, B=1.5, C=10.0, D=math.inf),
    ],
)
def test_inverse_with_unusable_params_is_invalid(params):
    inv = inverse_four_pl(1.0, params)
    assert inv.status is InversionStatus.INVALID
    assert inv.value is None


def test_inversion_truthiness():
    assert not Inversion.out_of_range()
    assert Inversion.not_fitted().value is None
    assert Inversion(InversionStatus.OK, 3.0)


def test_params_clamped_to_box():
    clamped = FourPLParams(A=-1.0, B=-0.5, C=-3.0, D=-2.0).clamped()
    assert clamped == FourPLParams(A=0.0, B=0.0, C=1e-12, D=0.0)


def test_params_array_conversions():
    assert FourPLParams.from_array(PARAMS.as_array()) == PARAMS
    assert FourPLParams.from_mapping({"A": 0.1, "B": 1.5, "C": 50, "D": 2}) == PARAMS
