"""Classical group-comparison tests on back-calculated concentrations.

All tests are pure functions of their inputs. Underpowered input (fewer than
two groups, or fewer than two replicates where variance is needed) returns a
neutral, non-significant result instead of raising: not having enough data
to reject the null hypothesis is a valid statistical outcome.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from typing import List, Optional, Sequence, Tuple

from ..config import SIGNIFICANCE_ALPHA
from .descriptive import mean, sum_of_squares, variance
from .special import (
    TUKEY_TABLE_ALPHA,
    approximate_tukey_p_value,
    f_distribution_p_value,
    significance_stars,
    studentized_range_critical,
    t_distribution_p_value,
)

logger = logging.getLogger(__name__)

METHOD_ONE_WAY_ANOVA = "One-way ANOVA"
METHOD_T_TEST = "Unpaired t-test"
METHOD_T_TEST_POOLED = "Unpaired t-test (Pooled SD)"


@dataclass(frozen=True)
class Group:
    """A named set of replicate values for one condition."""

    name: str
    values: Tuple[float, ...]

    def __post_init__(self):
        object.__setattr__(self, "name", str(self.name))
        object.__setattr__(self, "values", tuple(float(v) for v in self.values))

    @property
    def n(self) -> int:
        return len(self.values)


@dataclass(frozen=True)
class AnovaResult:
    """One-way ANOVA table.

    When produced by a two-group t-test (see ``analyze_day``), ``f_value`` is
    ``t^2`` and the sum-of-squares / mean-square fields are ``None``.
    """

    f_value: float
    p_value: float
    df_between: int
    df_within: int
    significant: bool
    ms_between: Optional[float] = None
    ms_within: Optional[float] = None
    ss_between: Optional[float] = None
    ss_within: Optional[float] = None
    method: str = METHOD_ONE_WAY_ANOVA


@dataclass(frozen=True)
class TTestResult:
    """Unpaired t-test outcome.

    Attributes:
        t_value: ``|m1 - m2| / se``; ``inf`` when the standard error is zero
            and the means differ.
        p_value: Two-tailed p-value.
        df: Degrees of freedom (pooled df when a global error term is used).
        mean_diff: Signed ``m1 - m2``.
        significant: ``p_value < 0.05``.
        significance: Star notation, or ``None`` when not significant.
    """

    t_value: float
    p_value: float
    df: float
    mean_diff: float
    significant: bool
    significance: Optional[str]
    group1: str = ""
    group2: str = ""


@dataclass(frozen=True)
class TukeyPairResult:
    """One pairwise Tukey HSD comparison.

    ``significant`` compares the mean difference against the HSD threshold
    built from the tabulated critical value; ``significance`` tiers the
    approximate p-value. The two can disagree near the threshold.
    """

    group1: str
    group2: str
    mean1: float
    mean2: float
    mean_diff: float
    hsd: float
    q_value: float
    p_value: float
    significant: bool
    significance: Optional[str]


@dataclass(frozen=True)
class PooledVariance:
    """Error mean square and its degrees of freedom pooled across cells."""

    pooled_variance: float
    pooled_df: int


def _neutral_anova(df_between: int = 0, df_within: int = 0) -> AnovaResult:
    return AnovaResult(
        f_value=0.0,
        p_value=1.0,
        df_between=df_between,
        df_within=df_within,
        significant=False,
    )


def one_way_anova(groups: Sequence[Group]) -> AnovaResult:
    """One-way analysis of variance across groups.

    Args:
        groups: Two or more groups, each with at least one value.

    Returns:
        AnovaResult: F statistic, upper-tail p-value and the ANOVA table.
        Fewer than two groups, or no within-group degrees of freedom, give
        ``F = 0`` and ``p = 1``.
    """
    k = len(groups)
    if k < 2:
        return _neutral_anova()

    total_n = sum(g.n for g in groups)
    grand_sum = sum(sum(g.values) for g in groups)
    grand_mean = grand_sum / total_n if total_n else 0.0

    for g in groups:
        logger.debug(
            "ANOVA group %s: n=%d, mean=%.4f, var=%.6f",
            g.name,
            g.n,
            mean(g.values),
            variance(g.values),
        )
    logger.debug("ANOVA grand mean: %.4f", grand_mean)

    ss_between = 0.0
    ss_within = 0.0
    for g in groups:
        group_mean = mean(g.values)
        ss_between += g.n * (group_mean - grand_mean) ** 2
        ss_within += sum_of_squares(g.values, group_mean)

    df_between = k - 1
    df_within = total_n - k
    if df_within <= 0:
        return _neutral_anova(df_between, df_within)

    ms_between = ss_between / df_between
    ms_within = ss_within / df_within
    f_value = ms_between / ms_within if ms_within > 0 else 0.0
    p_value = f_distribution_p_value(f_value, df_between, df_within)

    logger.debug(
        "ANOVA SSb=%.6f SSw=%.6f MSb=%.6f MSw=%.6f df=(%d, %d) F=%.4f p=%.6f",
        ss_between,
        ss_within,
        ms_between,
        ms_within,
        df_between,
        df_within,
        f_value,
        p_value,
    )

    return AnovaResult(
        f_value=float(f_value),
        p_value=float(p_value),
        df_between=df_between,
        df_within=df_within,
        significant=p_value < SIGNIFICANCE_ALPHA,
        ms_between=float(ms_between),
        ms_within=float(ms_within),
        ss_between=float(ss_between),
        ss_within=float(ss_within),
    )


def tukey_hsd(
    groups: Sequence[Group],
    ms_within: float,
    df_within: float,
    alpha: float = TUKEY_TABLE_ALPHA,
) -> List[TukeyPairResult]:
    """Tukey honestly-significant-difference comparisons for every pair.

    Args:
        groups: Groups compared by the preceding ANOVA.
        ms_within: Within-group mean square from the ANOVA.
        df_within: Within-group degrees of freedom from the ANOVA.
        alpha: Family-wise level; only ``0.05`` is tabulated.

    Returns:
        list[TukeyPairResult]: One entry per unordered pair, in input order
        (``(0, 1), (0, 2), ..., (1, 2), ...``). Empty when fewer than two
        groups are given or ``ms_within <= 0``.

    Note:
        Unequal group sizes use the harmonic mean of the two sample sizes
        (Tukey-Kramer).
    """
    k = len(groups)
    results: List[TukeyPairResult] = []
    if k < 2 or not ms_within > 0:
        return results

    q_critical = studentized_range_critical(k, df_within, alpha)

    for i in range(k):
        for j in range(i + 1, k):
            g1 = groups[i]
            g2 = groups[j]
            mean1 = mean(g1.values)
            mean2 = mean(g2.values)
            mean_diff = abs(mean1 - mean2)

            n_harmonic = (2.0 * g1.n * g2.n) / (g1.n + g2.n)
            se = math.sqrt(ms_within / n_harmonic)
            hsd = q_critical * se
            q_value = mean_diff / se
            p_value = approximate_tukey_p_value(q_value, k, df_within)

            results.append(
                TukeyPairResult(
                    group1=g1.name,
                    group2=g2.name,
                    mean1=mean1,
                    mean2=mean2,
                    mean_diff=mean_diff,
                    hsd=hsd,
                    q_value=q_value,
                    p_value=p_value,
                    significant=mean_diff > hsd,
                    significance=significance_stars(p_value),
                )
            )

    return results


def t_test(
    group1: Group, group2: Group, pooled: Optional[PooledVariance] = None
) -> TTestResult:
    """Unpaired two-tailed Student's t-test.

    Args:
        group1: First group (at least two values).
        group2: Second group (at least two values).
        pooled: Optional error term pooled over a wider design (for example
            every condition/day cell). When given, its variance and degrees
            of freedom replace the per-pair pooled variance, mimicking a
            two-way ANOVA residual.

    Returns:
        TTestResult: ``t = |m1 - m2| / se`` and its two-tailed p-value.
        ``mean_diff`` keeps the sign of ``m1 - m2``. Fewer than two values
        in either group give ``t = 0``, ``p = 1``.
    """
    n1 = group1.n
    n2 = group2.n
    m1 = mean(group1.values)
    m2 = mean(group2.values)
    mean_diff = m1 - m2

    if n1 < 2 or n2 < 2:
        return TTestResult(
            t_value=0.0,
            p_value=1.0,
            df=0,
            mean_diff=mean_diff,
            significant=False,
            significance=None,
            group1=group1.name,
            group2=group2.name,
        )

    if pooled is not None:
        pooled_var = float(pooled.pooled_variance)
        df = pooled.pooled_df
    else:
        df = n1 + n2 - 2
        pooled_var = (
            (n1 - 1) * variance(group1.values) + (n2 - 1) * variance(group2.values)
        ) / df

    se = math.sqrt(max(pooled_var, 0.0) * (1.0 / n1 + 1.0 / n2))
    if se > 0:
        t_value = abs(mean_diff) / se
        p_value = t_distribution_p_value(t_value, df)
    elif mean_diff == 0:
        t_value, p_value = 0.0, 1.0
    else:
        t_value, p_value = math.inf, 0.0

    return TTestResult(
        t_value=float(t_value),
        p_value=float(p_value),
        df=df,
        mean_diff=float(mean_diff),
        significant=p_value < SIGNIFICANCE_ALPHA,
        significance=significance_stars(p_value),
        group1=group1.name,
        group2=group2.name,
    )
