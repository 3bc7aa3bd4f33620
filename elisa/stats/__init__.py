"""
Statistical utilities for comparing quantified samples.

This subpackage provides descriptive statistics, the special functions behind
the F and t distributions, classical hypothesis tests, and the per-day
dispatch used to compare experimental conditions. All functions are pure and
operate on plain numbers; no curve-fitting logic is included.

Modules:
    descriptive:
        Mean, sample variance, sum of squares and replicate summaries
        (n, mean, SD, SEM).

    special:
        Lanczos log-gamma, regularized incomplete beta (Lentz), F and t
        tail probabilities, normal CDF, and the Studentized range lookup.

    hypothesis:
        One-way ANOVA, Tukey HSD and Student's t-test.

    day_analysis:
        Global pooled variance and day-by-day test selection.

Design Principle:
    This subpackage has no dependencies on fitting/. Underpowered input gives
    a neutral, non-significant verdict rather than an exception.
"""

from .day_analysis import (
    DayAnalysis,
    SignificantPair,
    analyze_all_days,
    analyze_day,
    calculate_global_pooled_variance,
    collect_day_groups,
    collect_days,
    replicate_values,
)
from .descriptive import GroupSummary, mean, sum_of_squares, summarize, variance
from .hypothesis import (
    AnovaResult,
    Group,
    PooledVariance,
    TTestResult,
    TukeyPairResult,
    one_way_anova,
    t_test,
    tukey_hsd,
)
from .special import (
    approximate_tukey_p_value,
    f_distribution_p_value,
    log_gamma,
    normal_cdf,
    regularized_incomplete_beta,
    significance_stars,
    studentized_range_critical,
    t_distribution_p_value,
)

__all__ = [
    "AnovaResult",
    "DayAnalysis",
    "Group",
    "GroupSummary",
    "PooledVariance",
    "SignificantPair",
    "TTestResult",
    "TukeyPairResult",
    "analyze_all_days",
    "analyze_day",
    "approximate_tukey_p_value",
    "calculate_global_pooled_variance",
    "collect_day_groups",
    "collect_days",
    "f_distribution_p_value",
    "log_gamma",
    "mean",
    "normal_cdf",
    "one_way_anova",
    "regularized_incomplete_beta",
    "replicate_values",
    "significance_stars",
    "studentized_range_critical",
    "sum_of_squares",
    "summarize",
    "t_distribution_p_value",
    "t_test",
    "tukey_hsd",
    "variance",
]
