"""Per-day statistical comparison of experimental conditions.

Input layout (assembled by the caller from quantified samples)::

    grouped_data = {
        "Control": {1: [12.1, 11.8, 12.5], 3: [...]},
        "Drug A":  {1: [15.0, 14.2, 16.1], 3: [...]},
    }

Each day is analyzed independently across the selected conditions:

- fewer than two conditions with data: nothing to test,
- exactly two: unpaired t-test, using the error term pooled over every
  condition/day cell when one exists (mimicking a two-way ANOVA residual),
- three or more: one-way ANOVA, followed by Tukey HSD only when the ANOVA
  is significant.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass, field
from typing import Any, Dict, Hashable, List, Mapping, Optional, Sequence, Tuple

from .descriptive import mean, sum_of_squares
from .hypothesis import (
    METHOD_ONE_WAY_ANOVA,
    METHOD_T_TEST,
    METHOD_T_TEST_POOLED,
    AnovaResult,
    Group,
    PooledVariance,
    TukeyPairResult,
    one_way_anova,
    t_test,
    tukey_hsd,
)

logger = logging.getLogger(__name__)

GroupedData = Mapping[str, Mapping[Hashable, Any]]


@dataclass(frozen=True)
class SignificantPair:
    group1: str
    group2: str
    significance: Optional[str]
    p_value: float


@dataclass(frozen=True)
class DayAnalysis:
    """Result of comparing all conditions measured on one day.

    ``anova_result`` is ``None`` when fewer than two conditions have data.
    For two conditions it holds the t-test expressed as an ANOVA row
    (``F = t^2``).
    """

    anova_result: Optional[AnovaResult]
    tukey_results: List[TukeyPairResult] = field(default_factory=list)
    significant_pairs: List[SignificantPair] = field(default_factory=list)


def _as_value(entry: Any) -> Optional[float]:
    if isinstance(entry, Mapping):
        entry = entry.get("value")
    if entry is None:
        return None
    try:
        value = float(entry)
    except (TypeError, ValueError):
        return None
    return value if math.isfinite(value) else None


def replicate_values(cell: Any) -> Tuple[float, ...]:
    """Normalize one condition/day cell into a tuple of finite floats.

    Accepts a ``Group``, a mapping with a ``"values"`` key, or a sequence of
    numbers / ``{"value": x}`` mappings. Missing and non-finite entries are
    dropped.
    """
    if cell is None:
        return ()
    if isinstance(cell, Group):
        entries: Sequence[Any] = cell.values
    elif isinstance(cell, Mapping):
        entries = cell.get("values") or ()
    else:
        entries = cell
    values = (_as_value(e) for e in entries)
    return tuple(v for v in values if v is not None)


def _canonical_day(day: Hashable) -> Hashable:
    """Map numeric day labels onto one key, so ``1``, ``1.0`` and ``"1"`` match.

    Integral values become ``int``, other numbers ``float``; labels that are
    not numbers are returned unchanged.
    """
    if isinstance(day, bool):
        return day
    try:
        number = float(day)
    except (TypeError, ValueError):
        return day
    if not math.isfinite(number):
        return day
    return int(number) if number.is_integer() else number


def _day_sort_key(day: Hashable) -> Tuple[int, Any]:
    if isinstance(day, (int, float)) and not isinstance(day, bool):
        return (0, float(day))
    return (1, str(day))


def _condition_cells(
    grouped_data: GroupedData, condition: str
) -> Dict[Hashable, Tuple[float, ...]]:
    """Replicates of one condition keyed by canonical day.

    Raw keys that name the same day are merged in their input order.
    """
    cells: Dict[Hashable, Tuple[float, ...]] = {}
    for day, cell in (grouped_data.get(condition) or {}).items():
        key = _canonical_day(day)
        cells[key] = cells.get(key, ()) + replicate_values(cell)
    return cells


def collect_days(
    grouped_data: GroupedData, conditions: Sequence[str]
) -> List[Hashable]:
    """Every day present for any selected condition, in ascending order.

    Numeric labels are normalized (``"3"`` is returned as ``3``) so the same
    day spelled two ways is listed once.
    """
    days = set()
    for condition in conditions:
        days.update(
            _canonical_day(day) for day in (grouped_data.get(condition) or {})
        )
    return sorted(days, key=_day_sort_key)


def collect_day_groups(
    grouped_data: GroupedData, conditions: Sequence[str], day: Hashable
) -> List[Group]:
    key = _canonical_day(day)
    groups = []
    for condition in conditions:
        values = _condition_cells(grouped_data, condition).get(key, ())
        if values:
            groups.append(Group(condition, values))
    return groups


def calculate_global_pooled_variance(
    grouped_data: GroupedData, conditions: Sequence[str]
) -> Optional[PooledVariance]:
    """Pool within-cell variation over every condition/day cell.

    Each cell with at least two replicates contributes its sum of squares
    about its own mean and ``n - 1`` degrees of freedom.

    Returns:
        PooledVariance | None: ``MS_error = sum(SS) / sum(df)`` and the pooled
        degrees of freedom, or ``None`` when no cell has two replicates.
    """
    total_ss = 0.0
    total_df = 0
    for condition in conditions:
        for values in _condition_cells(grouped_data, condition).values():
            if len(values) > 1:
                total_ss += sum_of_squares(values, mean(values))
                total_df += len(values) - 1

    if total_df <= 0:
        return None
    return PooledVariance(pooled_variance=total_ss / total_df, pooled_df=total_df)


def analyze_day(
    grouped_data: GroupedData,
    conditions: Sequence[str],
    day: Hashable,
    global_stats: Optional[PooledVariance] = None,
) -> DayAnalysis:
    groups = collect_day_groups(grouped_data, conditions, day)
    if len(groups) < 2:
        return DayAnalysis(anova_result=None)

    if len(groups) == 2:
        logger.info(
            "[Day %s] Running t-test for 2 groups (pooled variance: %s)",
            day,
            global_stats is not None,
        )
        t_result = t_test(groups[0], groups[1], global_stats)
        anova = AnovaResult(
            f_value=t_result.t_value**2,
            p_value=t_result.p_value,
            df_between=1,
            df_within=t_result.df,
            significant=t_result.significant,
            method=METHOD_T_TEST_POOLED if global_stats is not None else METHOD_T_TEST,
        )
        pairs = []
        if t_result.significant:
            pairs.append(
                SignificantPair(
                    group1=t_result.group1,
                    group2=t_result.group2,
                    significance=t_result.significance,
                    p_value=t_result.p_value,
                )
            )
        return DayAnalysis(anova_result=anova, significant_pairs=pairs)

    logger.info("[Day %s] Running one-way ANOVA for %d groups", day, len(groups))
    anova = one_way_anova(groups)
    logger.info(
        "[Day %s] %s: F=%.3f, p=%.4f, significant=%s",
        day,
        METHOD_ONE_WAY_ANOVA,
        anova.f_value,
        anova.p_value,
        anova.significant,
    )

    tukey: List[TukeyPairResult] = []
    if anova.significant:
        tukey = tukey_hsd(groups, anova.ms_within, anova.df_within)

    pairs = [
        SignificantPair(
            group1=r.group1,
            group2=r.group2,
            significance=r.significance,
            p_value=r.p_value,
        )
        for r in tukey
        if r.significant
    ]
    return DayAnalysis(anova_result=anova, tukey_results=tukey, significant_pairs=pairs)


def analyze_all_days(
    grouped_data: GroupedData, conditions: Sequence[str]
) -> Dict[Hashable, DayAnalysis]:
    """Analyze every day on which any selected condition was measured.

    The pooled error term is computed once across all days and reused by each
    two-group comparison.

    Returns:
        dict: Day key to :class:`DayAnalysis`, in ascending day order.
    """
    global_stats = calculate_global_pooled_variance(grouped_data, conditions)
    if global_stats is not None:
        logger.info(
            "Global pooled variance (MS_error) = %.4f, df = %d",
            global_stats.pooled_variance,
            global_stats.pooled_df,
        )

    return {
        day: analyze_day(grouped_data, conditions, day, global_stats)
        for day in collect_days(grouped_data, conditions)
    }
