# Statistical Engine - Contingency Analysis
# Cross-tabulation and chi-square tests
# Handles: independence (r x c), goodness of fit, Cramér's V

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, List, Optional, Sequence, Tuple

import numpy as np
import pandas as pd

from statengine.analysis.assumption_checking import AssumptionCheck, AssumptionChecker
from statengine.analysis.numeric_utils import chi2_sf
from statengine.core.exceptions import (
    InsufficientDataError,
    MissingValuesError,
    UnequalLengthError,
    ValidationError,
)
from statengine.core.logging import get_logger
from statengine.core.serialization import dataclass_to_dict

logger = get_logger(__name__)


class ChiSquareTestType(str, Enum):
    INDEPENDENCE = "independence"
    GOODNESS_OF_FIT = "goodness_of_fit"


# ============================================================================
# Data Classes
# ============================================================================

@dataclass(frozen=True)
class ChiSquareResult:
    """Chi-square test result with expected frequencies."""
    test_type: ChiSquareTestType
    statistic: float
    degrees_of_freedom: int
    p_value: float
    cramers_v: float
    observed: Tuple[Tuple[float, ...], ...]
    expected: Tuple[Tuple[float, ...], ...]
    alpha: float
    assumptions: Tuple[AssumptionCheck, ...] = ()
    warnings: Tuple[str, ...] = ()

    @property
    def is_significant(self) -> bool:
        return self.p_value < self.alpha

    def to_dict(self) -> Dict[str, Any]:
        result = dataclass_to_dict(self)
        result["is_significant"] = self.is_significant
        return result


@dataclass(frozen=True)
class ContingencyTable:
    """Cross-tabulation of two categorical variables."""
    row_variable: str
    column_variable: str
    row_labels: Tuple[str, ...]
    column_labels: Tuple[str, ...]
    table: Tuple[Tuple[int, ...], ...]
    row_totals: Tuple[int, ...]
    column_totals: Tuple[int, ...]
    grand_total: int
    chi_square_test: ChiSquareResult

    def to_dataframe(self) -> pd.DataFrame:
        return pd.DataFrame(self.table, index=list(self.row_labels), columns=list(self.column_labels))

    def to_dict(self) -> Dict[str, Any]:
        return dataclass_to_dict(self)


# ============================================================================
# Contingency Analyzer
# ============================================================================

class ContingencyAnalyzer:
    """
    Contingency tables and chi-square tests.

    Expected counts are rowTotal * colTotal / grandTotal; cells with zero
    expectation are left out of the statistic.
    """

    def __init__(self, alpha: float = 0.05, min_expected_frequency: float = 5.0):
        self.alpha = alpha
        self._checker = AssumptionChecker(alpha=alpha, min_expected_frequency=min_expected_frequency)

    def create_table(
        self,
        row_data: Sequence[Any],
        column_data: Sequence[Any],
        row_variable: str = "rows",
        column_variable: str = "columns"
    ) -> ContingencyTable:
        """Cross-tabulate two index-aligned categorical samples and test independence."""
        if len(row_data) != len(column_data):
            raise UnequalLengthError([len(row_data), len(column_data)])

        frame = pd.DataFrame({
            "row": pd.Series(list(row_data), dtype=object),
            "column": pd.Series(list(column_data), dtype=object)
        }).dropna()
        if frame.empty:
            raise MissingValuesError(variable=f"{row_variable}/{column_variable}", null_count=len(row_data))

        frame = frame.astype(str)
        crosstab = pd.crosstab(frame["row"], frame["column"])
        crosstab = crosstab.sort_index(axis=0).sort_index(axis=1)

        counts = crosstab.to_numpy(dtype=int)
        chi_square = self.independence(counts)

        return ContingencyTable(
            row_variable=row_variable,
            column_variable=column_variable,
            row_labels=tuple(str(v) for v in crosstab.index),
            column_labels=tuple(str(v) for v in crosstab.columns),
            table=tuple(tuple(int(c) for c in row) for row in counts),
            row_totals=tuple(int(v) for v in counts.sum(axis=1)),
            column_totals=tuple(int(v) for v in counts.sum(axis=0)),
            grand_total=int(counts.sum()),
            chi_square_test=chi_square
        )

    def independence(self, table: Any) -> ChiSquareResult:
        """Chi-square test of independence on an r x c table of counts."""
        observed = self._as_counts(table)
        if observed.ndim != 2:
            raise ValidationError("Contingency table must be two-dimensional")
        if observed.sum() == 0:
            raise MissingValuesError(variable="table", null_count=0)

        notes: List[str] = []
        keep_rows = observed.sum(axis=1) > 0
        keep_cols = observed.sum(axis=0) > 0
        if not keep_rows.all() or not keep_cols.all():
            notes.append(
                f"Dropped {int((~keep_rows).sum())} empty row(s) and "
                f"{int((~keep_cols).sum())} empty column(s) before testing"
            )
            observed = observed[keep_rows][:, keep_cols]

        r, c = observed.shape
        if r < 2 or c < 2:
            raise InsufficientDataError(2, min(r, c), what="non-empty categories per variable")

        row_totals = observed.sum(axis=1)
        col_totals = observed.sum(axis=0)
        grand_total = float(observed.sum())

        expected = np.outer(row_totals, col_totals) / grand_total
        statistic = self._statistic(observed, expected)
        dof = (r - 1) * (c - 1)
        cramers_v = float(np.sqrt(statistic / (grand_total * min(r - 1, c - 1))))

        return ChiSquareResult(
            test_type=ChiSquareTestType.INDEPENDENCE,
            statistic=statistic,
            degrees_of_freedom=dof,
            p_value=chi2_sf(statistic, dof),
            cramers_v=cramers_v,
            observed=self._freeze(observed),
            expected=self._freeze(expected),
            alpha=self.alpha,
            assumptions=(self._checker.check_expected_frequencies(expected),),
            warnings=tuple(notes)
        )

    def goodness_of_fit(
        self,
        observed: Sequence[float],
        expected: Optional[Sequence[float]] = None
    ) -> ChiSquareResult:
        """
        Chi-square goodness of fit.

        Without ``expected`` the categories are equally likely. Supplied
        expectations (counts or proportions) are rescaled to the observed total.
        """
        obs = self._as_counts(observed).ravel()
        k = obs.size
        if k < 2:
            raise InsufficientDataError(2, k, what="categories")
        total = float(obs.sum())
        if total == 0:
            raise MissingValuesError(variable="observed", null_count=0)

        if expected is None:
            exp = np.full(k, total / k)
        else:
            exp = np.asarray(expected, dtype=float).ravel()
            if exp.size != k:
                raise UnequalLengthError([k, exp.size])
            if np.any(exp < 0) or not np.all(np.isfinite(exp)) or exp.sum() <= 0:
                raise ValidationError(
                    "Expected frequencies must be finite, non-negative and not all zero",
                    field_errors={"expected": ["invalid values"]}
                )
            exp = exp / exp.sum() * total

        statistic = self._statistic(obs, exp)
        dof = k - 1
        cramers_v = float(np.sqrt(statistic / (total * dof)))

        return ChiSquareResult(
            test_type=ChiSquareTestType.GOODNESS_OF_FIT,
            statistic=statistic,
            degrees_of_freedom=dof,
            p_value=chi2_sf(statistic, dof),
            cramers_v=cramers_v,
            observed=self._freeze(obs[np.newaxis, :]),
            expected=self._freeze(exp[np.newaxis, :]),
            alpha=self.alpha,
            assumptions=(self._checker.check_expected_frequencies(exp),)
        )

    @staticmethod
    def _statistic(observed: np.ndarray, expected: np.ndarray) -> float:
        positive = expected > 0
        diff = observed[positive] - expected[positive]
        return float(np.sum(diff * diff / expected[positive]))

    @staticmethod
    def _as_counts(table: Any) -> np.ndarray:
        try:
            counts = np.asarray(table, dtype=float)
        except (TypeError, ValueError) as e:
            raise ValidationError("Frequencies must be numeric counts", cause=e) from e
        if counts.size and (np.any(counts < 0) or not np.all(np.isfinite(counts))):
            raise ValidationError(
                "Frequencies must be finite and non-negative",
                field_errors={"observed": ["negative or non-finite count"]}
            )
        return counts

    @staticmethod
    def _freeze(matrix: np.ndarray) -> Tuple[Tuple[float, ...], ...]:
        return tuple(tuple(float(v) for v in row) for row in matrix)


def get_contingency_analyzer(alpha: float = 0.05) -> ContingencyAnalyzer:
    """Get contingency analyzer."""
    return ContingencyAnalyzer(alpha=alpha)
