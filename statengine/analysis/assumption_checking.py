# Statistical Engine - Assumption Checking
# Advisory checks attached to test results
# Handles: normality, variance homogeneity, expected frequencies, regression assumptions

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, List, Mapping, Optional

import numpy as np

from statengine.analysis.normality_testing import NormalityTester
from statengine.analysis.numeric_utils import is_constant
from statengine.core.exceptions import StatisticalEngineException
from statengine.core.logging import get_logger
from statengine.core.serialization import dataclass_to_dict

logger = get_logger(__name__)


# ============================================================================
# Enums
# ============================================================================

class AssumptionStatus(str, Enum):
    PASSED = "passed"
    FAILED = "failed"
    WARNING = "warning"


# ============================================================================
# Data Classes
# ============================================================================

@dataclass(frozen=True)
class AssumptionCheck:
    """Outcome of one assumption check. Never blocks the test it annotates."""
    name: str
    result: AssumptionStatus
    description: str
    recommendation: Optional[str] = None
    test: Optional[str] = None
    statistic: Optional[float] = None
    p_value: Optional[float] = None

    @property
    def passed(self) -> bool:
        return self.result == AssumptionStatus.PASSED

    def to_dict(self) -> Dict[str, Any]:
        return dataclass_to_dict(self)


# ============================================================================
# Assumption Checker
# ============================================================================

class AssumptionChecker:
    """
    Assumption checks for parametric procedures.

    Every method returns AssumptionCheck records; failures of the underlying
    sub-tests (too few observations, constant data) become warnings.
    """

    def __init__(
        self,
        alpha: float = 0.05,
        variance_ratio_threshold: float = 4.0,
        min_expected_frequency: float = 5.0,
        linearity_threshold: float = 0.3,
        vif_warning_threshold: float = 5.0,
        vif_failure_threshold: float = 10.0,
        shapiro_min_n: int = 3,
        shapiro_max_n: int = 5000
    ):
        self.alpha = alpha
        self.variance_ratio_threshold = variance_ratio_threshold
        self.min_expected_frequency = min_expected_frequency
        self.linearity_threshold = linearity_threshold
        self.vif_warning_threshold = vif_warning_threshold
        self.vif_failure_threshold = vif_failure_threshold
        self._normality = NormalityTester(alpha=alpha, min_n=shapiro_min_n, max_n=shapiro_max_n)

    def check_normality(
        self,
        values: np.ndarray,
        name: str = "Normality",
        subject: str = "the data"
    ) -> AssumptionCheck:
        """Shapiro-Wilk normality of one sample."""
        try:
            result = self._normality.shapiro_wilk(values)
        except StatisticalEngineException as e:
            return AssumptionCheck(
                name=name,
                result=AssumptionStatus.WARNING,
                description=f"Normality of {subject} could not be tested: {e.message}",
                recommendation="Inspect a Q-Q plot or use a non-parametric test",
                test="Shapiro-Wilk"
            )

        if result.is_normal:
            return AssumptionCheck(
                name=name,
                result=AssumptionStatus.PASSED,
                description=f"Normality of {subject} not rejected (p = {result.p_value:.4f})",
                test="Shapiro-Wilk",
                statistic=result.statistic,
                p_value=result.p_value
            )
        return AssumptionCheck(
            name=name,
            result=AssumptionStatus.FAILED,
            description=f"Normality of {subject} rejected (p = {result.p_value:.4f} < {self.alpha})",
            recommendation="Consider a non-parametric alternative",
            test="Shapiro-Wilk",
            statistic=result.statistic,
            p_value=result.p_value
        )

    def check_group_normality(self, groups: Mapping[str, np.ndarray]) -> List[AssumptionCheck]:
        return [
            self.check_normality(values, name=f"Normality ({label})", subject=f"group '{label}'")
            for label, values in groups.items()
        ]

    def check_variance_homogeneity(
        self,
        groups: Mapping[str, np.ndarray],
        recommendation: str = "Consider Welch's t-test"
    ) -> AssumptionCheck:
        """F-ratio heuristic: largest over smallest group variance."""
        variances = [
            0.0 if is_constant(v) else float(np.var(v, ddof=1))
            for v in groups.values() if v.size > 1
        ]
        if len(variances) < 2:
            return AssumptionCheck(
                name="HomogeneityOfVariance",
                result=AssumptionStatus.WARNING,
                description="Not enough groups with two or more observations to compare variances",
                test="Variance ratio"
            )

        largest, smallest = max(variances), min(variances)
        if largest == 0:
            return AssumptionCheck(
                name="HomogeneityOfVariance",
                result=AssumptionStatus.WARNING,
                description="All groups have zero variance",
                test="Variance ratio"
            )

        ratio = largest / smallest if smallest > 0 else float("inf")
        if ratio < self.variance_ratio_threshold:
            return AssumptionCheck(
                name="HomogeneityOfVariance",
                result=AssumptionStatus.PASSED,
                description=f"Variance ratio {ratio:.2f} is below {self.variance_ratio_threshold:g}",
                test="Variance ratio",
                statistic=ratio
            )
        return AssumptionCheck(
            name="HomogeneityOfVariance",
            result=AssumptionStatus.FAILED,
            description=f"Variance ratio {ratio:.2f} is not below {self.variance_ratio_threshold:g}",
            recommendation=recommendation,
            test="Variance ratio",
            statistic=ratio
        )

    def check_zero_variance_groups(self, groups: Mapping[str, np.ndarray]) -> AssumptionCheck:
        constant = [label for label, v in groups.items() if is_constant(v)]
        if not constant:
            return AssumptionCheck(
                name="ZeroVarianceGroup",
                result=AssumptionStatus.PASSED,
                description="Every group shows variation"
            )
        return AssumptionCheck(
            name="ZeroVarianceGroup",
            result=AssumptionStatus.WARNING,
            description=f"Group(s) with zero variance: {', '.join(constant)}",
            recommendation="Check data entry for these groups; results may be unreliable"
        )

    def check_expected_frequencies(self, expected: np.ndarray) -> AssumptionCheck:
        expected = np.asarray(expected, dtype=float)
        small = int(np.sum(expected < self.min_expected_frequency))
        if small == 0:
            return AssumptionCheck(
                name="SmallExpectedFrequencies",
                result=AssumptionStatus.PASSED,
                description=f"All expected frequencies are at least {self.min_expected_frequency:g}",
                statistic=float(expected.min()) if expected.size else None
            )
        return AssumptionCheck(
            name="SmallExpectedFrequencies",
            result=AssumptionStatus.WARNING,
            description=(
                f"{small} of {expected.size} cells have expected frequency "
                f"below {self.min_expected_frequency:g}"
            ),
            recommendation="Combine sparse categories or use Fisher's exact test",
            statistic=float(expected.min())
        )

    def check_linearity(self, correlation: float) -> AssumptionCheck:
        strength = abs(correlation)
        if strength > self.linearity_threshold:
            return AssumptionCheck(
                name="Linearity",
                result=AssumptionStatus.PASSED,
                description=f"Linear association |r| = {strength:.3f}",
                statistic=correlation
            )
        return AssumptionCheck(
            name="Linearity",
            result=AssumptionStatus.WARNING,
            description=f"Weak linear association |r| = {strength:.3f}",
            recommendation="Inspect a scatter plot; consider transforming variables",
            statistic=correlation
        )

    def check_homoscedasticity(self, statistic: float, p_value: float) -> AssumptionCheck:
        """Breusch-Pagan result as an assumption check."""
        if not np.isfinite(p_value):
            return AssumptionCheck(
                name="Homoscedasticity",
                result=AssumptionStatus.WARNING,
                description="Residual variance could not be assessed",
                test="Breusch-Pagan"
            )
        if p_value > self.alpha:
            return AssumptionCheck(
                name="Homoscedasticity",
                result=AssumptionStatus.PASSED,
                description=f"Constant residual variance not rejected (p = {p_value:.4f})",
                test="Breusch-Pagan",
                statistic=statistic,
                p_value=p_value
            )
        return AssumptionCheck(
            name="Homoscedasticity",
            result=AssumptionStatus.FAILED,
            description=f"Residual variance depends on the predictors (p = {p_value:.4f})",
            recommendation="Use robust standard errors or transform the response",
            test="Breusch-Pagan",
            statistic=statistic,
            p_value=p_value
        )

    def check_independence(self, durbin_watson: float) -> AssumptionCheck:
        if not np.isfinite(durbin_watson):
            return AssumptionCheck(
                name="Independence",
                result=AssumptionStatus.WARNING,
                description="Durbin-Watson statistic is undefined for a perfect fit",
                test="Durbin-Watson"
            )
        if 1.5 <= durbin_watson <= 2.5:
            status = AssumptionStatus.PASSED
            description = f"No evidence of residual autocorrelation (DW = {durbin_watson:.3f})"
            recommendation = None
        elif 1.0 <= durbin_watson <= 3.0:
            status = AssumptionStatus.WARNING
            description = f"Possible residual autocorrelation (DW = {durbin_watson:.3f})"
            recommendation = "Check the ordering of observations"
        else:
            status = AssumptionStatus.FAILED
            description = f"Strong residual autocorrelation (DW = {durbin_watson:.3f})"
            recommendation = "Model the serial dependence or use time-series methods"
        return AssumptionCheck(
            name="Independence",
            result=status,
            description=description,
            recommendation=recommendation,
            test="Durbin-Watson",
            statistic=durbin_watson
        )

    def check_multicollinearity(self, vif: Mapping[str, float]) -> AssumptionCheck:
        if not vif:
            return AssumptionCheck(
                name="Multicollinearity",
                result=AssumptionStatus.PASSED,
                description="Single predictor; multicollinearity not applicable",
                test="VIF"
            )
        worst_name, worst = max(vif.items(), key=lambda item: item[1])
        if worst > self.vif_failure_threshold:
            status = AssumptionStatus.FAILED
        elif worst > self.vif_warning_threshold:
            status = AssumptionStatus.WARNING
        else:
            status = AssumptionStatus.PASSED
        return AssumptionCheck(
            name="Multicollinearity",
            result=status,
            description=f"Largest VIF is {worst:.2f} ({worst_name})",
            recommendation=None if status == AssumptionStatus.PASSED
            else "Remove or combine highly correlated predictors",
            test="VIF",
            statistic=worst
        )

