"""Turn plate wells into standard curves and sample concentrations.

Pipeline for one plate:

1. Optionally subtract the plate's minimum standard/blank absorbance
   (min-OD correction).
2. Average replicate standards per concentration; blanks count as
   zero-concentration standards when requested.
3. Fit the 4PL curve (at least four distinct concentrations).
4. Invert the curve for every sample well and apply its dilution factor.

Wells are supplied by the caller; parsing plate layouts or well labels is not
done here.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from typing import Dict, Hashable, Iterable, List, Mapping, Optional, Sequence, Tuple

import numpy as np
import pandas as pd

from .config import (
    DEFAULT_STANDARDS_SETTINGS,
    MIN_FIT_POINTS,
    FitSettings,
    StandardsSettings,
)
from .errors import InsufficientDataError
from .fitting import CurveFitter, DataPoint, FitResult, Inversion, inverse_four_pl

logger = logging.getLogger(__name__)

KIND_STANDARD = "standard"
KIND_BLANK = "blank"
KIND_SAMPLE = "sample"


@dataclass(frozen=True)
class Well:
    """One plate well as supplied by the data-assembly layer.

    Attributes:
        well_id: Identifier such as ``"A1"``.
        kind: ``"standard"``, ``"blank"`` or ``"sample"``.
        absorbance: Raw absorbance (OD), or ``None`` if not measured.
        concentration: Nominal concentration of a standard.
        dilution: Dilution factor of a sample (``1`` when undiluted).
        name: Free-text label.
    """

    well_id: str
    kind: str
    absorbance: Optional[float]
    concentration: Optional[float] = None
    dilution: float = 1.0
    name: str = ""


@dataclass(frozen=True)
class PlateFit:
    """Standard-curve fit of one plate.

    Attributes:
        plate: Plate key as supplied by the caller.
        fit: Fitted curve, or ``None`` when the plate could not be fitted.
        min_od: Absorbance offset subtracted before fitting.
        n_standards: Number of averaged standard points available.
    """

    plate: Hashable
    fit: Optional[FitResult]
    min_od: float
    n_standards: int

    @property
    def fitted(self) -> bool:
        return self.fit is not None


@dataclass(frozen=True)
class SampleResult:
    """Back-calculated concentration of one well.

    ``diluted_concentration`` is ``concentration * dilution`` and is ``None``
    whenever the inversion did not succeed. Standard and blank wells carry
    their ``nominal_concentration`` so the curve can be checked against it.
    """

    plate: Hashable
    well_id: str
    name: str
    absorbance: float
    dilution: float
    inversion: Inversion
    kind: str = KIND_SAMPLE
    nominal_concentration: Optional[float] = None

    @property
    def concentration(self) -> Optional[float]:
        return self.inversion.value

    @property
    def diluted_concentration(self) -> Optional[float]:
        if not self.inversion.ok:
            return None
        return self.inversion.value * self.dilution


def _finite(value: Optional[float]) -> bool:
    return value is not None and math.isfinite(float(value))


def min_od_offset(wells: Iterable[Well]) -> float:
    """Lowest absorbance among standard and blank wells (``0`` if none)."""
    readings = [
        float(w.absorbance)
        for w in wells
        if w.kind in (KIND_STANDARD, KIND_BLANK) and _finite(w.absorbance)
    ]
    return min(readings) if readings else 0.0


def prepare_standards(
    wells: Sequence[Well],
    settings: StandardsSettings = DEFAULT_STANDARDS_SETTINGS,
    min_od: Optional[float] = None,
) -> List[DataPoint]:
    """Collapse standard (and blank) wells into averaged fitting points.

    Args:
        wells: All wells of one plate.
        settings: Min-OD and blank handling.
        min_od: Offset to subtract; computed from ``wells`` when omitted and
            ``settings.subtract_min_od`` is set.

    Returns:
        list[DataPoint]: One point per distinct concentration, with the mean
        corrected absorbance of its replicates, sorted by concentration.
    """
    if min_od is None:
        min_od = min_od_offset(wells) if settings.subtract_min_od else 0.0

    rows = []
    for w in wells:
        if not _finite(w.absorbance):
            continue
        if w.kind == KIND_STANDARD and _finite(w.concentration):
            conc = float(w.concentration)
        elif w.kind == KIND_BLANK and settings.blank_as_standard:
            conc = 0.0
        else:
            continue
        rows.append({"x": conc, "y": float(w.absorbance) - float(min_od)})

    if not rows:
        return []

    averaged = (
        pd.DataFrame(rows)
        .groupby("x", as_index=False)["y"]
        .mean()
        .sort_values("x")
    )
    return [
        DataPoint(float(x), float(y))
        for x, y in zip(
            averaged["x"].to_numpy(dtype=float), averaged["y"].to_numpy(dtype=float)
        )
    ]


def fit_plate(
    wells: Sequence[Well],
    plate: Hashable = 1,
    settings: StandardsSettings = DEFAULT_STANDARDS_SETTINGS,
    fit_settings: Optional[FitSettings] = None,
) -> PlateFit:
    """Fit the standard curve of one plate.

    Plates with fewer than four standard concentrations, or whose fit fails,
    yield a ``PlateFit`` with ``fit=None`` rather than raising.
    """
    min_od = min_od_offset(wells) if settings.subtract_min_od else 0.0
    standards = prepare_standards(wells, settings, min_od=min_od)
    logger.debug(
        "Plate %s: %d standard points (min OD %.4f)", plate, len(standards), min_od
    )

    if len(standards) < MIN_FIT_POINTS:
        logger.info(
            "Plate %s: skipped, %d standard points (need %d).",
            plate,
            len(standards),
            MIN_FIT_POINTS,
        )
        return PlateFit(
            plate=plate, fit=None, min_od=min_od, n_standards=len(standards)
        )

    try:
        result = CurveFitter(fit_settings).fit(standards)
    except InsufficientDataError as exc:
        logger.warning("Plate %s fitting failed: %s", plate, exc)
        result = None

    return PlateFit(
        plate=plate, fit=result, min_od=min_od, n_standards=len(standards)
    )


def fit_plates(
    plates: Mapping[Hashable, Sequence[Well]],
    settings: StandardsSettings = DEFAULT_STANDARDS_SETTINGS,
    fit_settings: Optional[FitSettings] = None,
) -> Dict[Hashable, PlateFit]:
    """Fit every plate independently."""
    fits = {
        plate: fit_plate(wells, plate, settings, fit_settings)
        for plate, wells in plates.items()
    }
    n_fitted = sum(1 for f in fits.values() if f.fitted)
    if plates and n_fitted == 0:
        logger.warning(
            "Could not fit any curves. Ensure at least one plate has %d+ standards.",
            MIN_FIT_POINTS,
        )
    return fits


def _nominal_concentration(well: Well) -> Optional[float]:
    if well.kind == KIND_BLANK:
        return 0.0
    if well.kind == KIND_STANDARD and _finite(well.concentration):
        return float(well.concentration)
    return None


def quantify_samples(
    wells: Iterable[Well], plate_fit: PlateFit, include_standards: bool = False
) -> List[SampleResult]:
    """Back-calculate concentrations for the wells of one plate.

    Args:
        wells: All wells of the plate.
        plate_fit: The plate's standard-curve fit.
        include_standards: Also invert standard and blank wells, reporting
            their nominal concentration next to the calculated one.

    Returns:
        list[SampleResult]: One entry per measured well, in input order.
        Absorbances are corrected by the plate's min-OD offset before
        inversion. Wells on an unfitted plate get a ``NOT_FITTED`` inversion.
    """
    kinds = {KIND_SAMPLE}
    if include_standards:
        kinds.update((KIND_STANDARD, KIND_BLANK))
    results = []
    for w in wells:
        if w.kind not in kinds or not _finite(w.absorbance):
            continue
        corrected = float(w.absorbance) - plate_fit.min_od
        if plate_fit.fit is None:
            inversion = Inversion.not_fitted()
        else:
            inversion = inverse_four_pl(corrected, plate_fit.fit.params)
        results.append(
            SampleResult(
                plate=plate_fit.plate,
                well_id=w.well_id,
                name=w.name,
                absorbance=corrected,
                dilution=float(w.dilution) if _finite(w.dilution) else 1.0,
                inversion=inversion,
                kind=w.kind,
                nominal_concentration=_nominal_concentration(w),
            )
        )
    return results


def group_replicates(
    records: Iterable[Tuple[str, Hashable, Optional[float]]],
) -> Dict[str, Dict[Hashable, List[float]]]:
    """Build the condition -> day -> values mapping used by ``elisa.stats``.

    Args:
        records: ``(condition, day, value)`` triples; ``None`` and
            non-finite values are skipped.
    """
    grouped: Dict[str, Dict[Hashable, List[float]]] = {}
    for condition, day, value in records:
        if not _finite(value):
            continue
        grouped.setdefault(condition, {}).setdefault(day, []).append(float(value))
    return grouped


def curve_bounds(
    points: Sequence[DataPoint], pad_factor: float = 2.0
) -> Tuple[float, float]:
    """Concentration span for sampling a fitted curve over its standards.

    The smallest positive concentration is divided by ``pad_factor`` and the
    largest multiplied by it, so the sampled curve extends past the outermost
    standards on a log axis.

    Returns:
        tuple[float, float]: Lower and upper bound, or ``(nan, nan)`` when no
        standard has a positive concentration.
    """
    xs = np.array([p.x for p in points], dtype=float)
    positive = xs[np.isfinite(xs) & (xs > 0)]
    if positive.size == 0:
        return math.nan, math.nan
    return float(positive.min()) / pad_factor, float(positive.max()) * pad_factor
