"""Special functions and distribution tails used by the hypothesis tests.

Everything here is scalar and dependency-free so that p-values are
reproducible across environments:

- ``log_gamma``: Lanczos approximation (g = 7, nine coefficients).
- ``regularized_incomplete_beta``: Lentz continued fraction, the basis of the
  F and Student t tails.
- ``normal_cdf``: Abramowitz-Stegun 7.1.26 rational approximation.
- Studentized range: a fixed table of alpha = 0.05 critical values and a
  normal-based approximation of pairwise p-values.

References:
    Press et al., Numerical Recipes, 3rd ed., sections 6.1 and 6.4.
    Abramowitz & Stegun, Handbook of Mathematical Functions, 7.1.26.
"""

from __future__ import annotations

import math
import warnings
from typing import Dict, Optional

_LANCZOS_G = 7
_LANCZOS_COEFFICIENTS = (
    0.99999999999980993,
    676.5203681218851,
    -1259.1392167224028,
    771.32342877765313,
    -176.61502916214059,
    12.507343278686905,
    -0.13857109526572012,
    9.9843695780195716e-6,
    1.5056327351493116e-7,
)

_BETA_MAX_ITERATIONS = 200
_BETA_EPSILON = 1e-14
_BETA_TINY = 1e-30

_AS_P = 0.3275911
_AS_A1 = 0.254829592
_AS_A2 = -0.284496736
_AS_A3 = 1.421413741
_AS_A4 = -1.453152027
_AS_A5 = 1.061405429

TUKEY_TABLE_ALPHA = 0.05
TUKEY_P_FLOOR = 0.0001

# Critical q(alpha=0.05; k, df). Rows: number of groups k (2-10).
# Columns: upper df bucket; math.inf covers df > 120.
_DF_BUCKETS = (5, 10, 15, 20, 30, 60, 120, math.inf)
_Q_TABLE_005: Dict[int, tuple] = {
    2: (3.64, 3.15, 3.01, 2.95, 2.89, 2.83, 2.80, 2.77),
    3: (4.60, 4.00, 3.82, 3.74, 3.67, 3.58, 3.53, 3.49),
    4: (5.22, 4.55, 4.33, 4.23, 4.14, 4.04, 3.98, 3.93),
    5: (5.67, 4.94, 4.70, 4.59, 4.49, 4.38, 4.31, 4.26),
    6: (6.03, 5.24, 4.98, 4.86, 4.76, 4.64, 4.57, 4.51),
    7: (6.33, 5.49, 5.22, 5.09, 4.98, 4.86, 4.78, 4.72),
    8: (6.58, 5.70, 5.41, 5.28, 5.16, 5.04, 4.96, 4.89),
    9: (6.80, 5.89, 5.59, 5.45, 5.32, 5.19, 5.11, 5.04),
    10: (7.00, 6.05, 5.74, 5.60, 5.47, 5.33, 5.25, 5.17),
}


def log_gamma(x: float) -> float:
    """Natural log of ``|Gamma(x)|`` via the Lanczos approximation.

    Uses the reflection formula ``Gamma(x) Gamma(1 - x) = pi / sin(pi x)``
    for ``x < 0.5``.
    """
    x = float(x)
    if x < 0.5:
        return math.log(math.pi / abs(math.sin(math.pi * x))) - log_gamma(1.0 - x)

    x -= 1.0
    a = _LANCZOS_COEFFICIENTS[0]
    for i in range(1, _LANCZOS_G + 2):
        a += _LANCZOS_COEFFICIENTS[i] / (x + i)
    t = x + _LANCZOS_G + 0.5
    return 0.5 * math.log(2.0 * math.pi) + (x + 0.5) * math.log(t) - t + math.log(a)


def _beta_continued_fraction(x: float, a: float, b: float) -> float:
    c = 1.0
    d = 1.0 - (a + b) * x / (a + 1.0)
    if abs(d) < _BETA_TINY:
        d = _BETA_TINY
    d = 1.0 / d
    h = d

    for m in range(1, _BETA_MAX_ITERATIONS + 1):
        m2 = 2 * m

        # even step
        aa = m * (b - m) * x / ((a + m2 - 1.0) * (a + m2))
        d = 1.0 + aa * d
        if abs(d) < _BETA_TINY:
            d = _BETA_TINY
        c = 1.0 + aa / c
        if abs(c) < _BETA_TINY:
            c = _BETA_TINY
        d = 1.0 / d
        h *= d * c

        # odd step
        aa = -(a + m) * (a + b + m) * x / ((a + m2) * (a + m2 + 1.0))
        d = 1.0 + aa * d
        if abs(d) < _BETA_TINY:
            d = _BETA_TINY
        c = 1.0 + aa / c
        if abs(c) < _BETA_TINY:
            c = _BETA_TINY
        d = 1.0 / d
        delta = d * c
        h *= delta

        if abs(delta - 1.0) < _BETA_EPSILON:
            break

    return h


def regularized_incomplete_beta(x: float, a: float, b: float) -> float:
    """Regularized incomplete beta function ``I_x(a, b)``.

    Args:
        x (float): Integration limit; values ``<= 0`` give ``0`` and values
            ``>= 1`` give ``1``.
        a (float): First shape parameter (> 0).
        b (float): Second shape parameter (> 0).

    Returns:
        float: ``I_x(a, b)`` in ``[0, 1]``.

    Note:
        When ``x > (a + 1) / (a + b + 2)`` the symmetry
        ``I_x(a, b) = 1 - I_{1-x}(b, a)`` is applied so the continued
        fraction is always evaluated in its fast-converging region.
    """
    x = float(x)
    a = float(a)
    b = float(b)
    if math.isnan(x):
        return math.nan
    if x <= 0.0:
        return 0.0
    if x >= 1.0:
        return 1.0

    if x > (a + 1.0) / (a + b + 2.0):
        return 1.0 - regularized_incomplete_beta(1.0 - x, b, a)

    ln_beta = log_gamma(a) + log_gamma(b) - log_gamma(a + b)
    front = math.exp(a * math.log(x) + b * math.log(1.0 - x) - ln_beta)
    return front * _beta_continued_fraction(x, a, b) / a


def f_distribution_p_value(f: float, df1: float, df2: float) -> float:
    """Upper-tail probability ``P(F > f)`` of the F distribution.

    ``P(F <= f) = I_x(df1/2, df2/2)`` with ``x = df1 f / (df1 f + df2)``.
    Returns ``1`` for non-positive ``f`` or degrees of freedom.
    """
    f = float(f)
    if math.isnan(f) or f <= 0 or df1 <= 0 or df2 <= 0:
        return 1.0
    if math.isinf(f):
        return 0.0

    x = (df1 * f) / (df1 * f + df2)
    cdf = regularized_incomplete_beta(x, df1 / 2.0, df2 / 2.0)
    return max(0.0, min(1.0, 1.0 - cdf))


def t_distribution_p_value(t: float, df: float) -> float:
    """Two-tailed p-value ``P(|T| > |t|)`` for Student's t.

    ``P(|T| > t) = I_x(df/2, 1/2)`` with ``x = df / (df + t^2)``.
    """
    t = float(t)
    if df <= 0 or math.isnan(t):
        return 1.0
    if math.isinf(t):
        return 0.0
    x = df / (df + t * t)
    return regularized_incomplete_beta(x, df / 2.0, 0.5)


def normal_cdf(x: float) -> float:
    """Standard normal CDF (Abramowitz-Stegun 7.1.26, |error| < 1.5e-7)."""
    x = float(x)
    sign = -1.0 if x < 0 else 1.0
    z = abs(x) / math.sqrt(2.0)

    t = 1.0 / (1.0 + _AS_P * z)
    poly = ((((_AS_A5 * t + _AS_A4) * t + _AS_A3) * t + _AS_A2) * t + _AS_A1) * t
    y = 1.0 - poly * math.exp(-z * z)
    return 0.5 * (1.0 + sign * y)


def studentized_range_critical(
    k: int, df: float, alpha: float = TUKEY_TABLE_ALPHA
) -> float:
    """Critical value of the Studentized range from a fixed lookup table.

    Args:
        k (int): Number of groups; clamped to ``[2, 10]``.
        df (float): Error degrees of freedom. The first bucket in
            ``5, 10, 15, 20, 30, 60, 120, inf`` with ``df <= bucket`` is used;
            there is no interpolation between buckets.
        alpha (float, optional): Only ``0.05`` is tabulated. Other values
            emit a ``UserWarning`` and the ``0.05`` value is returned.

    Returns:
        float: Critical ``q`` value.
    """
    if not math.isclose(float(alpha), TUKEY_TABLE_ALPHA):
        warnings.warn(
            f"Studentized range table only covers alpha={TUKEY_TABLE_ALPHA}; "
            f"ignoring alpha={alpha}.",
            UserWarning,
            stacklevel=2,
        )

    k_clamped = min(max(int(k), 2), 10)
    row = _Q_TABLE_005[k_clamped]
    for bucket, q in zip(_DF_BUCKETS, row):
        if df <= bucket:
            return q
    return row[-1]


def approximate_tukey_p_value(q: float, k: int, df: Optional[float] = None) -> float:
    """Approximate p-value of a Studentized range statistic.

    Uses ``P(Q > q) ~= k(k-1)/2 * P(|Z| > q / sqrt(2))``, clipped to
    ``[0.0001, 1]``. ``df`` is accepted for signature symmetry with the
    critical-value lookup but does not enter the approximation.
    """
    z = float(q) / math.sqrt(2.0)
    p_normal = 2.0 * (1.0 - normal_cdf(z))
    p_adjusted = min(1.0, p_normal * k * (k - 1) / 2.0)
    return max(TUKEY_P_FLOOR, min(1.0, p_adjusted))


def significance_stars(p_value: float) -> Optional[str]:
    """GraphPad-style star notation; ``None`` when ``p >= 0.05``."""
    if p_value < 0.0001:
        return "****"
    if p_value < 0.001:
        return "***"
    if p_value < 0.01:
        return "**"
    if p_value < 0.05:
        return "*"
    return None
