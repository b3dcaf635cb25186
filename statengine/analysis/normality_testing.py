# Statistical Engine - Normality Testing
# Shapiro-Wilk and Kolmogorov-Smirnov goodness-of-fit to the normal distribution

from __future__ import annotations

import warnings
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict

import numpy as np
from scipy import stats as scipy_stats

from statengine.analysis.numeric_utils import (
    clean_sample,
    kolmogorov_sf,
    require_observations,
    require_variation,
    standard_deviation,
)
from statengine.core.exceptions import SampleSizeError
from statengine.core.logging import get_logger
from statengine.core.serialization import dataclass_to_dict

logger = get_logger(__name__)


class NormalityTestName(str, Enum):
    SHAPIRO_WILK = "Shapiro-Wilk"
    KOLMOGOROV_SMIRNOV = "Kolmogorov-Smirnov"


@dataclass(frozen=True)
class NormalityTestResult:
    """Normality test result; ``is_normal`` means normality is not rejected."""
    test_name: NormalityTestName
    statistic: float
    p_value: float
    is_normal: bool
    alpha: float
    n: int

    def to_dict(self) -> Dict[str, Any]:
        return dataclass_to_dict(self)


class NormalityTester:
    """
    Normality tests.

    Shapiro-Wilk uses Royston's approximation (valid for 3 to 5000
    observations). Kolmogorov-Smirnov compares the empirical CDF to a normal
    fitted with the sample mean and standard deviation and takes its p-value
    from the asymptotic Kolmogorov distribution.
    """

    def __init__(self, alpha: float = 0.05, min_n: int = 3, max_n: int = 5000):
        self.alpha = alpha
        self.min_n = min_n
        self.max_n = max_n

    def shapiro_wilk(self, data: Any) -> NormalityTestResult:
        values = clean_sample(data).values
        n = int(values.size)
        if n < self.min_n or n > self.max_n:
            raise SampleSizeError("Shapiro-Wilk test", n, self.min_n, self.max_n)
        require_variation(values)

        with warnings.catch_warnings():
            warnings.simplefilter("ignore")
            statistic, p_value = scipy_stats.shapiro(values)

        return NormalityTestResult(
            test_name=NormalityTestName.SHAPIRO_WILK,
            statistic=float(statistic),
            p_value=float(p_value),
            is_normal=bool(p_value > self.alpha),
            alpha=self.alpha,
            n=n
        )

    def kolmogorov_smirnov(self, data: Any) -> NormalityTestResult:
        values = np.sort(clean_sample(data).values)
        require_observations(values, 2)
        require_variation(values)
        n = int(values.size)

        cdf = scipy_stats.norm.cdf(values, loc=float(np.mean(values)), scale=standard_deviation(values))
        steps = np.arange(1, n + 1) / n
        d_plus = np.max(steps - cdf)
        d_minus = np.max(cdf - (steps - 1.0 / n))
        statistic = float(max(d_plus, d_minus))
        p_value = kolmogorov_sf(np.sqrt(n) * statistic)

        return NormalityTestResult(
            test_name=NormalityTestName.KOLMOGOROV_SMIRNOV,
            statistic=statistic,
            p_value=p_value,
            is_normal=bool(p_value > self.alpha),
            alpha=self.alpha,
            n=n
        )

    def test(self, data: Any) -> NormalityTestResult:
        """Shapiro-Wilk inside its valid range, Kolmogorov-Smirnov otherwise."""
        n = clean_sample(data).count
        if self.min_n <= n <= self.max_n:
            return self.shapiro_wilk(data)
        return self.kolmogorov_smirnov(data)


def get_normality_tester(alpha: float = 0.05) -> NormalityTester:
    """Get normality tester."""
    return NormalityTester(alpha=alpha)
