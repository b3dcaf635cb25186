# Statistical Engine - ANOVA Analysis Engine
# One-way analysis of variance with Tukey-Kramer post-hoc comparisons
# Handles: sums of squares, effect sizes, group assumption checks

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Mapping, Optional, Tuple

import numpy as np
import pandas as pd

from statengine.analysis.assumption_checking import AssumptionCheck, AssumptionChecker
from statengine.analysis.numeric_utils import (
    clean_sample,
    f_sf,
    is_constant,
    require_observations,
    studentized_range_ppf,
    studentized_range_sf,
    t_two_sided_p,
)
from statengine.core.config import PostHocMethod
from statengine.core.exceptions import ConstantValuesError, InsufficientDataError, ValidationError
from statengine.core.logging import get_logger
from statengine.core.serialization import dataclass_to_dict

logger = get_logger(__name__)


# ============================================================================
# Data Classes
# ============================================================================

@dataclass(frozen=True)
class GroupStatistics:
    """Statistics for a group."""
    group: str
    n: int
    mean: float
    standard_deviation: float
    standard_error: float


@dataclass(frozen=True)
class PostHocComparison:
    """Tukey-Kramer comparison of two group means."""
    group1: str
    group2: str
    mean_difference: float
    q_statistic: float
    p_value: float
    adjusted_p_value: float
    confidence_interval: Tuple[float, float]
    significant: bool

    @property
    def comparison(self) -> str:
        return f"{self.group1} vs {self.group2}"

    def to_dict(self) -> Dict[str, Any]:
        result = dataclass_to_dict(self)
        result["comparison"] = self.comparison
        return result


@dataclass(frozen=True)
class ANOVAResult:
    """Complete one-way ANOVA result."""
    f_statistic: float
    p_value: float
    degrees_of_freedom_between: int
    degrees_of_freedom_within: int
    sum_of_squares_between: float
    sum_of_squares_within: float
    sum_of_squares_total: float
    mean_square_between: float
    mean_square_within: float
    eta_squared: float
    omega_squared: float
    alpha: float
    groups: Tuple[GroupStatistics, ...]
    post_hoc_tests: Optional[Tuple[PostHocComparison, ...]] = None
    assumptions: Tuple[AssumptionCheck, ...] = field(default_factory=tuple)
    warnings: Tuple[str, ...] = field(default_factory=tuple)

    @property
    def is_significant(self) -> bool:
        return self.p_value < self.alpha

    def to_dict(self) -> Dict[str, Any]:
        result = dataclass_to_dict(self)
        result["is_significant"] = self.is_significant
        return result


# ============================================================================
# ANOVA Engine
# ============================================================================

class ANOVAEngine:
    """
    One-way ANOVA engine.

    Features:
    - Between/within sums of squares and the F test
    - Eta-squared and omega-squared effect sizes
    - Tukey-Kramer post-hoc tests from the studentized range distribution
    - Per-group normality, variance ratio and zero-variance checks
    """

    def __init__(self, alpha: float = 0.05, checker: Optional[AssumptionChecker] = None, verbose: bool = False):
        self.alpha = alpha
        self.checker = checker or AssumptionChecker(alpha=alpha)
        self.verbose = verbose

    def analyze(
        self,
        groups: Mapping[str, Any],
        post_hoc: Optional[PostHocMethod] = None
    ) -> ANOVAResult:
        """
        One-way ANOVA over labelled groups.

        Post-hoc comparisons run only when requested and the omnibus F is
        significant at ``alpha``.
        """
        samples = self._clean_groups(groups)
        k = len(samples)
        if k < 2:
            raise InsufficientDataError(2, k, what="groups")
        for label, values in samples.items():
            require_observations(values, 2, name=label, what=f"observations in group '{label}'")

        if self.verbose:
            logger.info(f"ANOVA across {k} groups")

        if all(is_constant(v) for v in samples.values()):
            raise ConstantValuesError(variable="all groups")
        group_means = {
            label: float(v[0]) if is_constant(v) else float(np.mean(v))
            for label, v in samples.items()
        }

        all_values = np.concatenate(list(samples.values()))
        n_total = int(all_values.size)
        grand_mean = float(np.mean(all_values))

        ss_between = float(sum(v.size * (group_means[label] - grand_mean) ** 2 for label, v in samples.items()))
        ss_within = float(sum(np.sum((v - group_means[label]) ** 2) for label, v in samples.items()))
        ss_total = ss_between + ss_within

        df_between = k - 1
        df_within = n_total - k
        ms_between = ss_between / df_between
        ms_within = ss_within / df_within

        f_stat = ms_between / ms_within
        p_value = f_sf(f_stat, df_between, df_within)

        eta_sq = ss_between / ss_total
        omega_sq = max(0.0, (ss_between - df_between * ms_within) / (ss_total + ms_within))

        group_sds = {
            label: 0.0 if is_constant(v) else float(np.std(v, ddof=1))
            for label, v in samples.items()
        }
        group_stats = tuple(
            GroupStatistics(
                group=label,
                n=int(v.size),
                mean=group_means[label],
                standard_deviation=group_sds[label],
                standard_error=group_sds[label] / float(np.sqrt(v.size))
            )
            for label, v in samples.items()
        )

        notes: List[str] = []
        comparisons = None
        if post_hoc == PostHocMethod.TUKEY:
            if p_value < self.alpha:
                comparisons = tuple(self._tukey_hsd(samples, ms_within, df_within))
            else:
                comparisons = ()
                notes.append(f"Post-hoc tests skipped: omnibus F not significant at alpha={self.alpha}")

        assumptions: List[AssumptionCheck] = self.checker.check_group_normality(samples)
        assumptions.append(self.checker.check_variance_homogeneity(
            samples, recommendation="Consider Welch's ANOVA or the Kruskal-Wallis test"
        ))
        assumptions.append(self.checker.check_zero_variance_groups(samples))

        return ANOVAResult(
            f_statistic=float(f_stat),
            p_value=p_value,
            degrees_of_freedom_between=df_between,
            degrees_of_freedom_within=df_within,
            sum_of_squares_between=ss_between,
            sum_of_squares_within=ss_within,
            sum_of_squares_total=ss_total,
            mean_square_between=float(ms_between),
            mean_square_within=float(ms_within),
            eta_squared=float(eta_sq),
            omega_squared=float(omega_sq),
            alpha=self.alpha,
            groups=group_stats,
            post_hoc_tests=comparisons,
            assumptions=tuple(assumptions),
            warnings=tuple(notes)
        )

    def analyze_frame(self, df: pd.DataFrame, dependent_var: str, group_var: str, **kwargs: Any) -> ANOVAResult:
        """ANOVA of ``dependent_var`` grouped by ``group_var``."""
        if dependent_var not in df.columns or group_var not in df.columns:
            raise ValidationError(f"Columns '{dependent_var}' and '{group_var}' must exist")
        frame = df[[group_var, dependent_var]].dropna(subset=[group_var])
        groups = {str(g): part[dependent_var] for g, part in frame.groupby(group_var, sort=True)}
        return self.analyze(groups, **kwargs)

    def _tukey_hsd(
        self,
        samples: Mapping[str, np.ndarray],
        ms_within: float,
        df_within: int
    ) -> List[PostHocComparison]:
        """Tukey-Kramer HSD for all pairs of groups."""
        labels = list(samples.keys())
        k = len(labels)
        q_crit = studentized_range_ppf(1 - self.alpha, k, df_within)
        results = []

        for i in range(k):
            for j in range(i + 1, k):
                gi, gj = samples[labels[i]], samples[labels[j]]
                mean_diff = float(np.mean(gi) - np.mean(gj))
                inv_n = 1 / gi.size + 1 / gj.size
                se = float(np.sqrt(ms_within / 2 * inv_n))

                q = abs(mean_diff) / se
                adjusted = studentized_range_sf(q, k, df_within)
                raw = t_two_sided_p(mean_diff / np.sqrt(ms_within * inv_n), df_within)
                margin = q_crit * se

                results.append(PostHocComparison(
                    group1=labels[i],
                    group2=labels[j],
                    mean_difference=mean_diff,
                    q_statistic=float(q),
                    p_value=raw,
                    adjusted_p_value=float(min(1.0, max(0.0, adjusted))),
                    confidence_interval=(mean_diff - margin, mean_diff + margin),
                    significant=adjusted < self.alpha
                ))

        return results

    @staticmethod
    def _clean_groups(groups: Mapping[str, Any]) -> Dict[str, np.ndarray]:
        if not isinstance(groups, Mapping):
            raise ValidationError("Groups must be a mapping of group label to values")
        return {str(label): clean_sample(values, str(label)).values for label, values in groups.items()}


# ============================================================================
# Factory Functions
# ============================================================================

def get_anova_engine(alpha: float = 0.05) -> ANOVAEngine:
    """Get ANOVA engine."""
    return ANOVAEngine(alpha=alpha)


def quick_anova(df: pd.DataFrame, dependent_var: str, group_var: str) -> Dict[str, Any]:
    """Quick ANOVA analysis."""
    engine = ANOVAEngine()
    return engine.analyze_frame(df, dependent_var, group_var, post_hoc=PostHocMethod.TUKEY).to_dict()
