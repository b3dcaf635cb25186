# Statistical Engine - Hypothesis Testing Engine
# Student and Welch t-tests with effect sizes and assumption checks
# Handles: one-sample, independent two-sample, paired

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple

import numpy as np

from statengine.analysis.assumption_checking import AssumptionCheck, AssumptionChecker
from statengine.analysis.numeric_utils import (
    clean_pairs,
    clean_sample,
    is_constant,
    require_observations,
    require_variation,
    t_ppf,
    t_two_sided_p,
)
from statengine.core.exceptions import ConstantValuesError
from statengine.core.logging import get_logger
from statengine.core.serialization import dataclass_to_dict

logger = get_logger(__name__)


# ============================================================================
# Enums
# ============================================================================

class TTestType(str, Enum):
    ONE_SAMPLE = "one_sample"
    INDEPENDENT = "independent"
    WELCH = "welch"
    PAIRED = "paired"


# ============================================================================
# Data Classes
# ============================================================================

@dataclass(frozen=True)
class TTestResult:
    """t-test result. ``confidence_interval`` brackets the mean difference."""
    test_type: TTestType
    statistic: float
    p_value: float
    degrees_of_freedom: float
    mean_difference: float
    standard_error: float
    confidence_interval: Tuple[float, float]
    effect_size: float
    alpha: float
    n: Tuple[int, ...]
    means: Tuple[float, ...]
    assumptions: Tuple[AssumptionCheck, ...] = field(default_factory=tuple)

    @property
    def is_significant(self) -> bool:
        return self.p_value < self.alpha

    @property
    def effect_magnitude(self) -> str:
        d = abs(self.effect_size)
        if d < 0.2:
            return "negligible"
        elif d < 0.5:
            return "small"
        elif d < 0.8:
            return "medium"
        return "large"

    def to_dict(self) -> Dict[str, Any]:
        result = dataclass_to_dict(self)
        result["is_significant"] = self.is_significant
        result["effect_magnitude"] = self.effect_magnitude
        return result


# ============================================================================
# Hypothesis Test Engine
# ============================================================================

class HypothesisTestEngine:
    """
    t-test engine.

    Features:
    - One-sample test against a hypothesised mean
    - Independent samples (pooled variance or Welch-Satterthwaite)
    - Paired samples over complete pairs
    - Cohen's d and a (1 - alpha) interval for the mean difference
    - Normality and variance-homogeneity checks
    """

    def __init__(self, alpha: float = 0.05, checker: Optional[AssumptionChecker] = None):
        self.alpha = alpha
        self.checker = checker or AssumptionChecker(alpha=alpha)

    def one_sample(self, data: Any, test_value: float = 0.0) -> TTestResult:
        values = clean_sample(data).values
        return self._one_sample(values, test_value, TTestType.ONE_SAMPLE, "sample")

    def paired(self, data1: Any, data2: Any) -> TTestResult:
        """Paired t-test on ``data1 - data2`` over positions where both are present."""
        (a, b), dropped = clean_pairs(data1, data2, names=("data1", "data2"))
        require_observations(a, 2, what="complete pairs")
        if dropped:
            logger.debug("Dropped incomplete pairs", dropped=dropped)
        differences = a - b
        result = self._one_sample(differences, 0.0, TTestType.PAIRED, "differences")
        return TTestResult(
            test_type=result.test_type,
            statistic=result.statistic,
            p_value=result.p_value,
            degrees_of_freedom=result.degrees_of_freedom,
            mean_difference=result.mean_difference,
            standard_error=result.standard_error,
            confidence_interval=result.confidence_interval,
            effect_size=result.effect_size,
            alpha=self.alpha,
            n=(int(a.size),),
            means=(float(np.mean(a)), float(np.mean(b))),
            assumptions=result.assumptions
        )

    def independent(self, data1: Any, data2: Any, equal_variances: bool = True) -> TTestResult:
        g1 = clean_sample(data1, "group1").values
        g2 = clean_sample(data2, "group2").values
        require_observations(g1, 2, name="group1")
        require_observations(g2, 2, name="group2")

        n1, n2 = int(g1.size), int(g2.size)
        m1, m2 = float(np.mean(g1)), float(np.mean(g2))
        if is_constant(g1) and is_constant(g2):
            raise ConstantValuesError(variable="group1/group2")
        v1 = 0.0 if is_constant(g1) else float(np.var(g1, ddof=1))
        v2 = 0.0 if is_constant(g2) else float(np.var(g2, ddof=1))
        diff = m1 - m2

        pooled_var = ((n1 - 1) * v1 + (n2 - 1) * v2) / (n1 + n2 - 2)

        if equal_variances:
            se = float(np.sqrt(pooled_var * (1 / n1 + 1 / n2)))
            dof: float = n1 + n2 - 2
            test_type = TTestType.INDEPENDENT
        else:
            a, b = v1 / n1, v2 / n2
            se = float(np.sqrt(a + b))
            dof = (a + b) ** 2 / (a ** 2 / (n1 - 1) + b ** 2 / (n2 - 1))
            test_type = TTestType.WELCH

        statistic = diff / se
        margin = t_ppf(1 - self.alpha / 2, dof) * se

        assumptions: List[AssumptionCheck] = [
            self.checker.check_normality(g1, name="Normality (group1)", subject="group 1"),
            self.checker.check_normality(g2, name="Normality (group2)", subject="group 2"),
            self.checker.check_variance_homogeneity({"group1": g1, "group2": g2}),
        ]

        return TTestResult(
            test_type=test_type,
            statistic=float(statistic),
            p_value=t_two_sided_p(statistic, dof),
            degrees_of_freedom=float(dof),
            mean_difference=diff,
            standard_error=se,
            confidence_interval=(diff - margin, diff + margin),
            effect_size=diff / float(np.sqrt(pooled_var)),
            alpha=self.alpha,
            n=(n1, n2),
            means=(m1, m2),
            assumptions=tuple(assumptions)
        )

    def _one_sample(
        self,
        values: np.ndarray,
        test_value: float,
        test_type: TTestType,
        name: str
    ) -> TTestResult:
        require_observations(values, 2, name=name)
        require_variation(values, name=name)
        n = int(values.size)
        sample_mean = float(np.mean(values))
        sd = float(np.std(values, ddof=1))

        se = sd / np.sqrt(n)
        diff = sample_mean - test_value
        statistic = diff / se
        dof = n - 1
        margin = t_ppf(1 - self.alpha / 2, dof) * se

        return TTestResult(
            test_type=test_type,
            statistic=float(statistic),
            p_value=t_two_sided_p(statistic, dof),
            degrees_of_freedom=float(dof),
            mean_difference=diff,
            standard_error=float(se),
            confidence_interval=(float(diff - margin), float(diff + margin)),
            effect_size=diff / sd,
            alpha=self.alpha,
            n=(n,),
            means=(sample_mean,),
            assumptions=(self.checker.check_normality(values, subject=f"the {name}"),)
        )


# ============================================================================
# Factory Functions
# ============================================================================

def get_hypothesis_engine(alpha: float = 0.05) -> HypothesisTestEngine:
    """Get hypothesis test engine."""
    return HypothesisTestEngine(alpha=alpha)


def quick_ttest(data1: Any, data2: Any, equal_variances: bool = True) -> Dict[str, Any]:
    """Quick independent two-sample t-test."""
    return HypothesisTestEngine().independent(data1, data2, equal_variances).to_dict()
