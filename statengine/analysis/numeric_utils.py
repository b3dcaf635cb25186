# Statistical Engine - Numeric Utilities
# Sample cleaning, moments, quantiles, ranking, and distribution functions
# Shared by every analysis module

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Sequence, Tuple

import numpy as np
import pandas as pd
from scipy import stats as scipy_stats

from statengine.core.exceptions import (
    ConstantValuesError,
    InsufficientDataError,
    MissingValuesError,
    NonNumericDataError,
    UnequalLengthError,
)


# ============================================================================
# Sample Cleaning
# ============================================================================

@dataclass(frozen=True)
class Sample:
    """
    A cleaned numeric sample.

    ``values`` holds only finite observations in input order. ``count``,
    ``null_count`` and ``invalid_count`` always sum to ``length``.
    """
    values: np.ndarray
    length: int
    null_count: int
    invalid_count: int

    @property
    def count(self) -> int:
        return int(self.values.size)

    @property
    def excluded_count(self) -> int:
        return self.null_count + self.invalid_count


def _as_series(values: Any) -> pd.Series:
    if isinstance(values, pd.Series):
        return values.reset_index(drop=True)
    if isinstance(values, np.ndarray):
        return pd.Series(values.ravel())
    return pd.Series(list(values), dtype=object)


def to_float_array(values: Any, name: str = "sample") -> Tuple[np.ndarray, np.ndarray, np.ndarray]:
    """
    Coerce a raw sequence to floats, keeping positions.

    Returns:
        (array, null_mask, invalid_mask) where excluded positions are NaN

    Raises:
        NonNumericDataError: if a non-null entry cannot be read as a number
    """
    series = _as_series(values)
    null_mask = series.isna().to_numpy()

    present = series[~null_mask]
    coerced = pd.to_numeric(present, errors="coerce")
    bad = coerced.isna().to_numpy()
    if bad.any():
        raise NonNumericDataError(variable=name, examples=present[bad].tolist())

    arr = np.full(len(series), np.nan, dtype=float)
    arr[~null_mask] = coerced.to_numpy(dtype=float)
    invalid_mask = ~null_mask & ~np.isfinite(arr)
    arr[invalid_mask] = np.nan
    return arr, null_mask, invalid_mask


def clean_sample(values: Any, name: str = "sample") -> Sample:
    """Drop null and non-finite entries from a numeric sample."""
    arr, null_mask, invalid_mask = to_float_array(values, name)
    keep = ~(null_mask | invalid_mask)
    return Sample(
        values=arr[keep].copy(),
        length=int(arr.size),
        null_count=int(null_mask.sum()),
        invalid_count=int(invalid_mask.sum())
    )


def clean_pairs(
    *samples: Any,
    names: Optional[Sequence[str]] = None
) -> Tuple[List[np.ndarray], int]:
    """
    Index-aligned listwise deletion across several samples.

    Returns:
        (cleaned arrays, number of dropped positions)

    Raises:
        UnequalLengthError: when the samples differ in length
    """
    names = list(names) if names is not None else [f"sample{i + 1}" for i in range(len(samples))]
    arrays = []
    for values, name in zip(samples, names):
        arr, _, _ = to_float_array(values, name)
        arrays.append(arr)

    lengths = [a.size for a in arrays]
    if len(set(lengths)) > 1:
        raise UnequalLengthError(lengths)

    if not arrays:
        return [], 0
    complete = np.logical_and.reduce([np.isfinite(a) for a in arrays])
    return [a[complete].copy() for a in arrays], int((~complete).sum())


def require_observations(
    values: np.ndarray,
    minimum: int,
    name: str = "sample",
    what: str = "observations"
) -> None:
    """Raise MissingValuesError for an empty sample, InsufficientDataError below ``minimum``."""
    if values.size == 0 and minimum > 0:
        raise MissingValuesError(variable=name)
    if values.size < minimum:
        raise InsufficientDataError(minimum, int(values.size), what=what)


# ============================================================================
# Moments and Quantiles
# ============================================================================

def mean(values: np.ndarray) -> float:
    if values.size == 0:
        raise InsufficientDataError(1, 0)
    return float(np.mean(values))


def variance(values: np.ndarray, ddof: int = 1) -> float:
    """Variance with divisor ``n - ddof`` (sample variance by default)."""
    if values.size < ddof + 1:
        raise InsufficientDataError(ddof + 1, int(values.size))
    return float(np.var(values, ddof=ddof))


def standard_deviation(values: np.ndarray, ddof: int = 1) -> float:
    return float(np.sqrt(variance(values, ddof)))


def quantile(values: np.ndarray, q: float) -> float:
    """Quantile by linear interpolation between order statistics."""
    if values.size == 0:
        raise InsufficientDataError(1, 0)
    return float(np.quantile(values, q, method="linear"))


def is_constant(values: np.ndarray, rtol: float = 1e-12) -> bool:
    """True when the spread is within rounding noise of the values' magnitude."""
    if values.size == 0:
        return False
    return float(np.ptp(values)) <= rtol * float(np.max(np.abs(values)))


def require_variation(values: np.ndarray, name: str = "sample") -> None:
    if is_constant(values):
        raise ConstantValuesError(variable=name)


# ============================================================================
# Ranking
# ============================================================================

def average_ranks(values: np.ndarray) -> np.ndarray:
    """1-based ranks with tied values sharing the mean of their positions."""
    return scipy_stats.rankdata(values, method="average")


def tie_group_sizes(values: np.ndarray) -> np.ndarray:
    """Sizes of groups of tied values (groups of one included)."""
    _, counts = np.unique(values, return_counts=True)
    return counts


def tie_correction_sum(values: np.ndarray) -> float:
    """Sum of t^3 - t over tie groups."""
    t = tie_group_sizes(values).astype(float)
    return float(np.sum(t ** 3 - t))


# ============================================================================
# Distribution Functions
# ============================================================================

def normal_cdf(z: float) -> float:
    return float(scipy_stats.norm.cdf(z))


def normal_ppf(p: float) -> float:
    return float(scipy_stats.norm.ppf(p))


def normal_two_sided_p(z: float) -> float:
    return float(min(1.0, 2 * scipy_stats.norm.sf(abs(z))))


def t_cdf(t: float, df: float) -> float:
    return float(scipy_stats.t.cdf(t, df))


def t_ppf(p: float, df: float) -> float:
    return float(scipy_stats.t.ppf(p, df))


def t_two_sided_p(t: float, df: float) -> float:
    return float(min(1.0, 2 * scipy_stats.t.sf(abs(t), df)))


def f_sf(f: float, df1: float, df2: float) -> float:
    return float(scipy_stats.f.sf(f, df1, df2))


def chi2_sf(x: float, df: float) -> float:
    return float(scipy_stats.chi2.sf(x, df))


def studentized_range_sf(q: float, k: int, df: float) -> float:
    return float(scipy_stats.studentized_range.sf(q, k, df))


def studentized_range_ppf(p: float, k: int, df: float) -> float:
    return float(scipy_stats.studentized_range.ppf(p, k, df))


def kolmogorov_sf(x: float) -> float:
    """Survival function of the asymptotic Kolmogorov distribution."""
    return float(scipy_stats.kstwobign.sf(x))


def group_summary(values: np.ndarray) -> Dict[str, float]:
    """n, mean, sample sd and standard error of one group."""
    n = int(values.size)
    sd = standard_deviation(values) if n > 1 else 0.0
    return {
        "n": n,
        "mean": mean(values),
        "standard_deviation": sd,
        "standard_error": sd / np.sqrt(n) if n > 0 else 0.0,
    }
