"""Build result tables and write them to reproducible CSV files.

This module is the reporting boundary between in-memory fits/tests and
tabular artifacts. Column labels come from ``elisa.schema.ResultColumns``.
"""

from __future__ import annotations

import logging
import os
from typing import Dict, Hashable, Iterable, Mapping, Optional, Sequence

import numpy as np
import pandas as pd

from .fitting import DataPoint, FourPLParams, generate_curve_points
from .quantification import PlateFit, SampleResult, curve_bounds
from .schema import COLUMNS
from .stats import DayAnalysis, collect_day_groups, collect_days, summarize
from .stats.day_analysis import GroupedData

logger = logging.getLogger(__name__)


def _num(value: Optional[float]) -> float:
    return np.nan if value is None else float(value)


def format_equation(params: FourPLParams, decimals: int = 4) -> str:
    """Render the fitted 4PL equation with numeric parameters substituted."""
    a = f"{params.A:.{decimals}f}"
    b = f"{params.B:.{decimals}f}"
    c = f"{params.C:.{decimals}f}"
    d = f"{params.D:.{decimals}f}"
    return f"y = {d} + ({a} - {d}) / (1 + (x / {c})^{b})"


def create_fit_dataframe(plate_fits: Mapping[Hashable, PlateFit]) -> pd.DataFrame:
    """One row per plate with its 4PL parameters, R^2 and min-OD offset.

    Unfitted plates are kept with empty parameter columns.
    """
    rows = []
    for plate, pf in plate_fits.items():
        fit = pf.fit
        params = fit.params if fit is not None else None
        rows.append(
            {
                COLUMNS.plate: plate,
                COLUMNS.param_a: params.A if params is not None else np.nan,
                COLUMNS.param_b: params.B if params is not None else np.nan,
                COLUMNS.param_c: params.C if params is not None else np.nan,
                COLUMNS.param_d: params.D if params is not None else np.nan,
                COLUMNS.r_squared: fit.r_squared if fit is not None else np.nan,
                COLUMNS.min_od: pf.min_od,
                COLUMNS.equation: format_equation(params) if params is not None else "",
            }
        )
    return pd.DataFrame(
        rows,
        columns=[
            COLUMNS.plate,
            COLUMNS.param_a,
            COLUMNS.param_b,
            COLUMNS.param_c,
            COLUMNS.param_d,
            COLUMNS.r_squared,
            COLUMNS.min_od,
            COLUMNS.equation,
        ],
    )


def create_curve_dataframe(
    standards: Iterable[DataPoint], params: FourPLParams, num_points: int = 100
) -> pd.DataFrame:
    """Sampled fitted curve spanning the standards, for an external chart."""
    lo, hi = curve_bounds(list(standards))
    if not (np.isfinite(lo) and np.isfinite(hi)):
        return pd.DataFrame(columns=["x", "y"])
    points = generate_curve_points(lo, hi, num_points, params)
    return pd.DataFrame({"x": [p.x for p in points], "y": [p.y for p in points]})


def create_sample_dataframe(samples: Iterable[SampleResult]) -> pd.DataFrame:
    """One row per back-calculated well.

    Args:
        samples: Results from :func:`elisa.quantification.quantify_samples`.
            Standard and blank wells, when included, report their nominal
            concentration next to the calculated one.

    Returns:
        pd.DataFrame: Plate, well, name, type, nominal concentration,
        corrected absorbance, dilution, calculated and diluted concentration,
        and inversion status. Failed inversions leave the concentration
        columns empty.
    """
    rows = [
        {
            COLUMNS.plate: s.plate,
            COLUMNS.well: s.well_id,
            COLUMNS.name: s.name,
            COLUMNS.kind: s.kind,
            COLUMNS.nominal_concentration: _num(s.nominal_concentration),
            COLUMNS.absorbance: s.absorbance,
            COLUMNS.dilution: s.dilution,
            COLUMNS.concentration: _num(s.concentration),
            COLUMNS.diluted_concentration: _num(s.diluted_concentration),
            COLUMNS.status: s.inversion.status.value,
        }
        for s in samples
    ]
    return pd.DataFrame(
        rows,
        columns=[
            COLUMNS.plate,
            COLUMNS.well,
            COLUMNS.name,
            COLUMNS.kind,
            COLUMNS.nominal_concentration,
            COLUMNS.absorbance,
            COLUMNS.dilution,
            COLUMNS.concentration,
            COLUMNS.diluted_concentration,
            COLUMNS.status,
        ],
    )


def create_group_summary_dataframe(
    grouped_data: GroupedData, conditions: Optional[Sequence[str]] = None
) -> pd.DataFrame:
    """Replicate count, mean, SD and SEM for every condition/day cell.

    Args:
        grouped_data: ``condition -> day -> replicates`` as passed to
            :func:`elisa.stats.analyze_all_days`.
        conditions: Conditions to report, in row order. Defaults to every
            condition in ``grouped_data``.

    Returns:
        pd.DataFrame: One row per cell with at least one finite replicate,
        ordered by day and then by condition.
    """
    if conditions is None:
        conditions = list(grouped_data)
    rows = []
    for day in collect_days(grouped_data, conditions):
        for group in collect_day_groups(grouped_data, conditions, day):
            summary = summarize(group.values)
            rows.append(
                {
                    COLUMNS.day: day,
                    COLUMNS.condition: group.name,
                    COLUMNS.n: summary.n,
                    COLUMNS.mean: summary.mean,
                    COLUMNS.sd: summary.sd,
                    COLUMNS.sem: summary.sem,
                }
            )
    return pd.DataFrame(
        rows,
        columns=[
            COLUMNS.day,
            COLUMNS.condition,
            COLUMNS.n,
            COLUMNS.mean,
            COLUMNS.sd,
            COLUMNS.sem,
        ],
    )


def create_day_summary_dataframe(
    results: Mapping[Hashable, DayAnalysis],
) -> pd.DataFrame:
    """One row per analyzed day: test used, F (``t^2`` for t-tests), p and df."""
    rows = []
    for day, analysis in results.items():
        anova = analysis.anova_result
        if anova is None:
            continue
        rows.append(
            {
                COLUMNS.day: day,
                COLUMNS.method: anova.method,
                COLUMNS.f_value: anova.f_value,
                COLUMNS.p_value: anova.p_value,
                COLUMNS.df_between: anova.df_between,
                COLUMNS.df_within: anova.df_within,
                COLUMNS.significant: bool(anova.significant),
            }
        )
    return pd.DataFrame(
        rows,
        columns=[
            COLUMNS.day,
            COLUMNS.method,
            COLUMNS.f_value,
            COLUMNS.p_value,
            COLUMNS.df_between,
            COLUMNS.df_within,
            COLUMNS.significant,
        ],
    )


def create_pairwise_dataframe(
    results: Mapping[Hashable, DayAnalysis],
) -> pd.DataFrame:
    """One row per pairwise comparison.

    Days analyzed with ANOVA contribute every Tukey pair; days analyzed with a
    t-test contribute their single pair when it is significant.
    """
    rows = []
    for day, analysis in results.items():
        if analysis.tukey_results:
            for r in analysis.tukey_results:
                rows.append(
                    {
                        COLUMNS.day: day,
                        COLUMNS.group1: r.group1,
                        COLUMNS.group2: r.group2,
                        COLUMNS.mean1: r.mean1,
                        COLUMNS.mean2: r.mean2,
                        COLUMNS.mean_diff: r.mean_diff,
                        COLUMNS.hsd: r.hsd,
                        COLUMNS.q_value: r.q_value,
                        COLUMNS.p_value: r.p_value,
                        COLUMNS.significant: bool(r.significant),
                        COLUMNS.significance: r.significance or "",
                    }
                )
        elif analysis.anova_result is not None:
            for pair in analysis.significant_pairs:
                rows.append(
                    {
                        COLUMNS.day: day,
                        COLUMNS.group1: pair.group1,
                        COLUMNS.group2: pair.group2,
                        COLUMNS.p_value: pair.p_value,
                        COLUMNS.significant: True,
                        COLUMNS.significance: pair.significance or "",
                    }
                )
    return pd.DataFrame(
        rows,
        columns=[
            COLUMNS.day,
            COLUMNS.group1,
            COLUMNS.group2,
            COLUMNS.mean1,
            COLUMNS.mean2,
            COLUMNS.mean_diff,
            COLUMNS.hsd,
            COLUMNS.q_value,
            COLUMNS.p_value,
            COLUMNS.significant,
            COLUMNS.significance,
        ],
    )


def save_results_to_csv(
    frames: Mapping[str, pd.DataFrame], output_dir: str = "output"
) -> Dict[str, str]:
    """Write each named table to ``<output_dir>/<name>.csv``.

    Args:
        frames: Table name to DataFrame, e.g. ``{"samples": df}``.
        output_dir: Destination directory; created if missing.

    Returns:
        dict[str, str]: Table name to written file path.
    """
    os.makedirs(output_dir, exist_ok=True)
    paths = {}
    for name, frame in frames.items():
        path = os.path.join(output_dir, f"{name}.csv")
        frame.to_csv(path, index=False)
        logger.info("Saved %s to %s", name, path)
        paths[name] = path
    return paths
