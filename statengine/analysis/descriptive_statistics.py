# Statistical Engine - Descriptive Statistics
# Summary statistics, histograms, frequency tables, and outlier detection
# Handles: central tendency, dispersion, shape, quartiles

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple

import numpy as np
import pandas as pd
from scipy import stats as scipy_stats

from statengine.analysis.numeric_utils import (
    clean_sample,
    is_constant,
    to_float_array,
    quantile,
    require_observations,
    standard_deviation,
)
from statengine.core.config import OutlierMethod
from statengine.core.exceptions import MissingValuesError
from statengine.core.logging import get_logger
from statengine.core.serialization import dataclass_to_dict

logger = get_logger(__name__)


# ============================================================================
# Data Classes
# ============================================================================

@dataclass(frozen=True)
class HistogramBin:
    """One equal-width histogram bin."""
    min: float
    max: float
    count: int
    frequency: float
    closed: bool = False

    @property
    def label(self) -> str:
        right = "]" if self.closed else ")"
        return f"[{self.min:.10g}, {self.max:.10g}{right}"

    def to_dict(self) -> Dict[str, Any]:
        return {
            "min": self.min,
            "max": self.max,
            "count": self.count,
            "frequency": self.frequency,
            "label": self.label
        }


@dataclass(frozen=True)
class DescriptiveStats:
    """Summary statistics of one numeric sample."""
    mean: float
    median: float
    mode: Tuple[float, ...]
    variance: float
    standard_deviation: float
    min: float
    max: float
    range: float
    quartiles: Tuple[float, float, float]
    iqr: float
    skewness: float
    kurtosis: float
    count: int
    sum: float
    null_count: int
    invalid_count: int = 0
    histogram: Tuple[HistogramBin, ...] = ()
    warnings: Tuple[str, ...] = ()

    def to_dict(self) -> Dict[str, Any]:
        return dataclass_to_dict(self)


@dataclass(frozen=True)
class FrequencyAnalysisResult:
    """Frequency table of a categorical sample or binned numeric sample."""
    frequencies: Dict[str, int]
    relative_frequencies: Dict[str, float]
    cumulative_frequencies: Dict[str, int]
    total: int
    null_count: int
    histogram: Tuple[HistogramBin, ...] = ()
    warnings: Tuple[str, ...] = ()

    def to_dict(self) -> Dict[str, Any]:
        return dataclass_to_dict(self)


@dataclass(frozen=True)
class OutlierResult:
    """Observations flagged as outliers, indexed into the original input."""
    method: OutlierMethod
    threshold: float
    lower_bound: float
    upper_bound: float
    indices: Tuple[int, ...] = field(default_factory=tuple)
    values: Tuple[float, ...] = field(default_factory=tuple)

    @property
    def count(self) -> int:
        return len(self.indices)

    def to_dict(self) -> Dict[str, Any]:
        result = dataclass_to_dict(self)
        result["count"] = self.count
        return result


# ============================================================================
# Descriptive Statistics Calculator
# ============================================================================

class DescriptiveStatisticsCalculator:
    """
    Descriptive statistics calculator.

    Features:
    - Bessel-corrected variance and standard deviation
    - Linear-interpolation quartiles
    - Bias-corrected skewness (G1) and excess kurtosis (G2)
    - Equal-width histograms and frequency tables
    - Z-score and IQR outlier detection
    """

    def __init__(self, verbose: bool = False):
        self.verbose = verbose

    def calculate(self, data: Any, bin_count: Optional[int] = None) -> DescriptiveStats:
        """Describe a numeric sample; nulls and non-finite values are excluded and counted."""
        sample = clean_sample(data)
        values = sample.values
        if sample.count == 0:
            raise MissingValuesError(variable="sample", null_count=sample.excluded_count)

        if self.verbose:
            logger.info(f"Describing sample of {sample.count} observations", nulls=sample.null_count)

        n = sample.count
        notes: List[str] = []

        vmin = float(np.min(values))
        vmax = float(np.max(values))
        q1 = quantile(values, 0.25)
        q2 = quantile(values, 0.5)
        q3 = quantile(values, 0.75)
        constant = is_constant(values)

        if n < 2:
            var = 0.0
            notes.append("Variance is undefined for a single observation; reported as 0")
        elif constant:
            var = 0.0
        else:
            var = float(np.var(values, ddof=1))

        # Summation rounding can push the mean just outside [min, max].
        mean = vmin if constant else min(max(float(np.mean(values)), vmin), vmax)

        skew = 0.0
        kurt = 0.0
        if not constant:
            if n >= 3:
                skew = float(scipy_stats.skew(values, bias=False))
            else:
                notes.append("Skewness needs at least 3 observations; reported as 0")
            if n >= 4:
                kurt = float(scipy_stats.kurtosis(values, fisher=True, bias=False))
            else:
                notes.append("Kurtosis needs at least 4 observations; reported as 0")

        histogram: Tuple[HistogramBin, ...] = ()
        if bin_count is not None:
            histogram, hist_notes = self._histogram(values, bin_count)
            notes.extend(hist_notes)

        return DescriptiveStats(
            mean=mean,
            median=q2,
            mode=self._modes(values),
            variance=var,
            standard_deviation=float(np.sqrt(var)),
            min=vmin,
            max=vmax,
            range=vmax - vmin,
            quartiles=(q1, q2, q3),
            iqr=q3 - q1,
            skewness=skew,
            kurtosis=kurt,
            count=n,
            sum=float(np.sum(values)),
            null_count=sample.null_count,
            invalid_count=sample.invalid_count,
            histogram=histogram,
            warnings=tuple(notes)
        )

    def frequency_analysis(self, data: Any, bin_count: Optional[int] = None) -> FrequencyAnalysisResult:
        """
        Frequency table.

        With ``bin_count`` the data must be numeric and is binned into an
        equal-width histogram; otherwise each distinct value is a category,
        reported in order of first appearance.
        """
        notes: List[str] = []
        if bin_count is not None:
            sample = clean_sample(data)
            if sample.count == 0:
                raise MissingValuesError(variable="sample", null_count=sample.excluded_count)
            bins, _ = self._histogram(sample.values, bin_count)
            counts = {b.label: b.count for b in bins}
            null_count = sample.excluded_count
            histogram = bins
        else:
            series = pd.Series(list(data) if not isinstance(data, pd.Series) else data, dtype=object)
            present = series.dropna()
            null_count = int(series.size - present.size)
            if present.empty:
                raise MissingValuesError(variable="sample", null_count=null_count)
            codes, uniques = pd.factorize(present, sort=False)
            counts = self._category_counts(list(uniques), np.bincount(codes), notes)
            histogram = ()

        total = sum(counts.values())
        relative: Dict[str, float] = {}
        cumulative: Dict[str, int] = {}
        running = 0
        for label, count in counts.items():
            relative[label] = count / total
            running += count
            cumulative[label] = running

        return FrequencyAnalysisResult(
            frequencies=counts,
            relative_frequencies=relative,
            cumulative_frequencies=cumulative,
            total=total,
            null_count=null_count,
            histogram=histogram,
            warnings=tuple(notes)
        )

    @staticmethod
    def _category_counts(categories: List[Any], counts: np.ndarray, notes: List[str]) -> Dict[str, int]:
        # Distinct values that print alike (1 and "1") get their type appended.
        labels = [str(c) for c in categories]
        clashing = {label for label in labels if labels.count(label) > 1}
        if clashing:
            notes.append(
                f"Distinct values share the label(s) {sorted(clashing)}; type names appended to tell them apart"
            )
        return {
            (f"{label} ({type(c).__name__})" if label in clashing else label): int(n)
            for label, c, n in zip(labels, categories, counts)
        }

    def detect_outliers(
        self,
        data: Any,
        method: OutlierMethod = OutlierMethod.ZSCORE,
        threshold: Optional[float] = None
    ) -> OutlierResult:
        """Flag outliers by |z| > threshold or outside the threshold * IQR fences."""
        raw, null_mask, invalid_mask = to_float_array(data)
        valid = ~(null_mask | invalid_mask)
        require_observations(raw[valid], 2)

        values = raw[valid]
        positions = np.flatnonzero(valid)

        if method == OutlierMethod.IQR:
            threshold = 1.5 if threshold is None else threshold
            q1 = quantile(values, 0.25)
            q3 = quantile(values, 0.75)
            iqr = q3 - q1
            lower, upper = q1 - threshold * iqr, q3 + threshold * iqr
        else:
            threshold = 3.0 if threshold is None else threshold
            center = float(np.mean(values))
            sd = standard_deviation(values)
            lower, upper = center - threshold * sd, center + threshold * sd

        mask = (values < lower) | (values > upper)
        return OutlierResult(
            method=method,
            threshold=float(threshold),
            lower_bound=float(lower),
            upper_bound=float(upper),
            indices=tuple(int(i) for i in positions[mask]),
            values=tuple(float(v) for v in values[mask])
        )

    @staticmethod
    def _modes(values: np.ndarray) -> Tuple[float, ...]:
        uniques, counts = np.unique(values, return_counts=True)
        top = counts.max()
        return tuple(float(v) for v in uniques[counts == top])

    @staticmethod
    def _histogram(values: np.ndarray, bin_count: int) -> Tuple[Tuple[HistogramBin, ...], List[str]]:
        n = values.size
        vmin = float(np.min(values))
        vmax = float(np.max(values))
        if vmin == vmax:
            return (
                (HistogramBin(min=vmin, max=vmax, count=int(n), frequency=1.0, closed=True),),
                ["All values are identical; histogram collapsed to a single bin"]
            )

        counts, edges = np.histogram(values, bins=bin_count, range=(vmin, vmax))
        bins = tuple(
            HistogramBin(
                min=float(edges[i]),
                max=vmax if i == bin_count - 1 else float(edges[i + 1]),
                count=int(counts[i]),
                frequency=float(counts[i] / n),
                closed=i == bin_count - 1
            )
            for i in range(bin_count)
        )
        return bins, []


# ============================================================================
# Factory Functions
# ============================================================================

def get_descriptive_calculator() -> DescriptiveStatisticsCalculator:
    """Get descriptive statistics calculator."""
    return DescriptiveStatisticsCalculator()


def quick_describe(data: Any, bin_count: Optional[int] = None) -> Dict[str, Any]:
    """Quick descriptive summary as a plain dictionary."""
    return DescriptiveStatisticsCalculator().calculate(data, bin_count).to_dict()
