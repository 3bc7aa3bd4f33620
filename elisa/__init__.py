"""
A Python package for analyzing ELISA plate absorbance data.

Fits four-parameter logistic standard curves, back-calculates sample
concentrations, and compares experimental conditions day by day.

Modules:
    - fitting: 4PL model, Levenberg-Marquardt optimizer and CurveFitter.
    - quantification: Standards preparation, per-plate fits and sample
      concentrations with dilution correction.
    - stats: ANOVA, Tukey HSD, t-tests and per-day test selection.
    - output: Result DataFrames and CSV export.
"""

__version__ = "1.0.0"

from .config import (
    DEFAULT_FIT_SETTINGS,
    DEFAULT_STANDARDS_SETTINGS,
    FitSettings,
    StandardsSettings,
)
from .errors import ElisaError, InsufficientDataError, NotFittedError
from .fitting import (
    CurveFitter,
    DataPoint,
    FitResult,
    FourPLParams,
    Inversion,
    InversionStatus,
    evaluate,
    fit,
    generate_curve_points,
    invert,
)
from .output import (
    create_curve_dataframe,
    create_day_summary_dataframe,
    create_fit_dataframe,
    create_group_summary_dataframe,
    create_pairwise_dataframe,
    create_sample_dataframe,
    format_equation,
    save_results_to_csv,
)
from .quantification import (
    PlateFit,
    SampleResult,
    Well,
    fit_plate,
    fit_plates,
    group_replicates,
    quantify_samples,
)
from .stats import (
    DayAnalysis,
    analyze_all_days,
    analyze_day,
    calculate_global_pooled_variance,
    one_way_anova,
    t_test,
    tukey_hsd,
)

__all__ = [
    # Configuration and errors
    "DEFAULT_FIT_SETTINGS",
    "DEFAULT_STANDARDS_SETTINGS",
    "FitSettings",
    "StandardsSettings",
    "ElisaError",
    "InsufficientDataError",
    "NotFittedError",
    # Curve fitting
    "CurveFitter",
    "DataPoint",
    "FitResult",
    "FourPLParams",
    "Inversion",
    "InversionStatus",
    "fit",
    "evaluate",
    "invert",
    "generate_curve_points",
    # Quantification
    "Well",
    "PlateFit",
    "SampleResult",
    "fit_plate",
    "fit_plates",
    "quantify_samples",
    "group_replicates",
    # Statistics
    "DayAnalysis",
    "one_way_anova",
    "tukey_hsd",
    "t_test",
    "calculate_global_pooled_variance",
    "analyze_day",
    "analyze_all_days",
    # Output
    "format_equation",
    "create_fit_dataframe",
    "create_curve_dataframe",
    "create_sample_dataframe",
    "create_group_summary_dataframe",
    "create_day_summary_dataframe",
    "create_pairwise_dataframe",
    "save_results_to_csv",
]
