"""Define standardized column names for result DataFrames."""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class ResultColumns:
    """Container for standardized column labels.

    These column names are used in every result DataFrame produced by
    ``elisa.output``, so fitted curves, sample concentrations and statistical
    comparisons can be joined and exported consistently.

    Attributes:
        plate: Plate index (1-based) a fit or well belongs to.
        well: Well identifier such as ``"A1"``.
        name: Free-text well label supplied by the caller.
        kind: Well type (``sample``, ``standard`` or ``blank``).
        nominal_concentration: Known concentration of a standard (``0`` for
            blanks); empty for samples.
        absorbance: Absorbance after optional min-OD correction.
        dilution: Dilution factor applied to the back-calculated
            concentration.
        concentration: Concentration read off the standard curve, before
            dilution correction.
        diluted_concentration: Concentration multiplied by the dilution
            factor. Empty when the absorbance could not be inverted.
        status: Inversion outcome (``ok``, ``out_of_range``, ``invalid`` or
            ``not_fitted``).
        r_squared: Coefficient of determination of the 4PL fit.
        min_od: Absorbance offset subtracted before fitting.
        condition: Experimental condition of a replicate group.
        day: Day label of a statistical comparison.
        n, mean, sd, sem: Replicate count, mean, sample SD and standard
            error of one condition/day cell.
        method: Statistical test used for the day.
        p_value: Two-sided p-value of the test or pairwise comparison.
        significance: Star notation (``*`` to ``****``) or empty.
    """

    plate: str = "Plate"
    well: str = "Well"
    name: str = "Name"
    kind: str = "Type"
    nominal_concentration: str = "Concentration (std)"
    absorbance: str = "Absorbance"
    dilution: str = "Dilution"
    concentration: str = "Calculated Conc."
    diluted_concentration: str = "Diluted Conc."
    status: str = "Status"
    param_a: str = "A (lower asymptote)"
    param_b: str = "B (Hill slope)"
    param_c: str = "C (EC50)"
    param_d: str = "D (upper asymptote)"
    r_squared: str = "R2"
    min_od: str = "Min OD"
    equation: str = "Equation"
    condition: str = "Condition"
    day: str = "Day"
    n: str = "n"
    mean: str = "Mean"
    sd: str = "SD"
    sem: str = "SEM"
    method: str = "Method"
    f_value: str = "F"
    p_value: str = "p-value"
    df_between: str = "df (between)"
    df_within: str = "df (within)"
    group1: str = "Group 1"
    group2: str = "Group 2"
    mean1: str = "Mean 1"
    mean2: str = "Mean 2"
    mean_diff: str = "Mean Difference"
    hsd: str = "HSD"
    q_value: str = "q"
    t_value: str = "t"
    significant: str = "Significant"
    significance: str = "Significance"


COLUMNS = ResultColumns()
