from __future__ import annotations

from typing import Any, Callable, Optional

from statengine.core.exceptions import UnknownProcedureError

Procedure = Callable[..., Any]

PROCEDURE_NAMES = (
    "descriptive_statistics",
    "frequency_analysis",
    "detect_outliers",
    "correlation",
    "correlation_matrix",
    "shapiro_wilk",
    "kolmogorov_smirnov",
    "normality_test",
    "contingency_table",
    "chi_square_independence",
    "chi_square_goodness_of_fit",
    "one_sample_t_test",
    "independent_t_test",
    "paired_t_test",
    "one_way_anova",
    "linear_regression",
    "multiple_regression",
    "mann_whitney_u",
    "wilcoxon_signed_rank",
    "kruskal_wallis",
    "suggest_tests",
)


class ProcedureRegistry:
    def __init__(self) -> None:
        self._procedures: dict[str, Procedure] = {}

    def register(self, name: str, procedure: Procedure) -> None:
        self._procedures[name] = procedure

    def get(self, name: str) -> Procedure:
        if name not in self._procedures:
            raise UnknownProcedureError(name, self.list())
        return self._procedures[name]

    def list(self) -> list[str]:
        return sorted(self._procedures.keys())

    def __contains__(self, name: object) -> bool:
        return name in self._procedures


def default_registry(engine: Optional[Any] = None) -> ProcedureRegistry:
    """Registry of every engine procedure, bound to ``engine``."""
    if engine is None:
        from statengine.engine import StatisticalAnalysisEngine

        engine = StatisticalAnalysisEngine()
    reg = ProcedureRegistry()
    for name in PROCEDURE_NAMES:
        reg.register(name, getattr(engine, name))
    return reg
