# Statistical Engine - Correlation Analysis
# Pearson and Spearman correlation for variable pairs and matrices
# Handles: pairwise-complete observations, significance, Fisher-z intervals

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional, Tuple

import numpy as np
import pandas as pd

from statengine.analysis.numeric_utils import (
    average_ranks,
    clean_pairs,
    is_constant,
    normal_ppf,
    t_two_sided_p,
    to_float_array,
)
from statengine.compute.cancellation import CancellationToken, checkpoint
from statengine.core.config import CorrelationMethod
from statengine.core.exceptions import (
    ConstantValuesError,
    InsufficientDataError,
    UnequalLengthError,
    ValidationError,
)
from statengine.core.logging import get_logger
from statengine.core.serialization import dataclass_to_dict, to_jsonable

logger = get_logger(__name__)

MIN_PAIRS = 3


# ============================================================================
# Data Classes
# ============================================================================

@dataclass(frozen=True)
class CorrelationResult:
    """Correlation of a single variable pair."""
    method: CorrelationMethod
    coefficient: float
    p_value: float
    degrees_of_freedom: int
    n: int
    alpha: float
    confidence_interval: Optional[Tuple[float, float]] = None

    @property
    def is_significant(self) -> bool:
        return self.p_value < self.alpha

    def to_dict(self) -> Dict[str, Any]:
        result = dataclass_to_dict(self)
        result["is_significant"] = self.is_significant
        return result


@dataclass(frozen=True)
class CorrelationMatrix:
    """Symmetric matrix of coefficients with a unit diagonal."""
    variables: Tuple[str, ...]
    method: CorrelationMethod
    matrix: Tuple[Tuple[float, ...], ...]
    p_values: Tuple[Tuple[float, ...], ...]
    n_matrix: Tuple[Tuple[int, ...], ...]
    warnings: Tuple[str, ...] = field(default_factory=tuple)

    def get(self, var1: str, var2: str) -> float:
        i = self.variables.index(var1)
        j = self.variables.index(var2)
        return self.matrix[i][j]

    def to_dataframe(self) -> pd.DataFrame:
        return pd.DataFrame(self.matrix, index=list(self.variables), columns=list(self.variables))

    def strong_pairs(self, threshold: float = 0.7) -> List[Tuple[str, str, float]]:
        """Pairs with |r| >= threshold, strongest first."""
        pairs = []
        k = len(self.variables)
        for i in range(k):
            for j in range(i + 1, k):
                r = self.matrix[i][j]
                if np.isfinite(r) and abs(r) >= threshold:
                    pairs.append((self.variables[i], self.variables[j], r))
        return sorted(pairs, key=lambda p: abs(p[2]), reverse=True)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "variables": list(self.variables),
            "method": self.method.value,
            "matrix": to_jsonable(self.matrix),
            "p_values": to_jsonable(self.p_values),
            "n_matrix": to_jsonable(self.n_matrix),
            "warnings": list(self.warnings)
        }


# ============================================================================
# Correlation Engine
# ============================================================================

class CorrelationEngine:
    """
    Correlation engine.

    Pearson is the product-moment coefficient; Spearman is Pearson applied to
    average ranks. Both use pairwise-complete observations.
    """

    def __init__(self, alpha: float = 0.05, verbose: bool = False):
        self.alpha = alpha
        self.verbose = verbose

    def correlate(
        self,
        x: Any,
        y: Any,
        method: CorrelationMethod = CorrelationMethod.PEARSON,
        names: Tuple[str, str] = ("x", "y")
    ) -> CorrelationResult:
        """Correlation of one pair; raises on constant or too-short input."""
        (xs, ys), _ = clean_pairs(x, y, names=names)
        n = int(xs.size)
        if n < MIN_PAIRS:
            raise InsufficientDataError(MIN_PAIRS, n, what="complete pairs")
        for values, name in ((xs, names[0]), (ys, names[1])):
            if is_constant(values):
                raise ConstantValuesError(variable=name)

        r = self._coefficient(xs, ys, method)
        return CorrelationResult(
            method=method,
            coefficient=r,
            p_value=self._p_value(r, n),
            degrees_of_freedom=n - 2,
            n=n,
            alpha=self.alpha,
            confidence_interval=self._fisher_interval(r, n)
        )

    def matrix(
        self,
        data: Any,
        method: CorrelationMethod = CorrelationMethod.PEARSON,
        cancel_token: Optional[CancellationToken] = None
    ) -> CorrelationMatrix:
        """
        Correlation matrix over named variables.

        ``data`` is a mapping of name to sample or a DataFrame. Pairs that
        are constant or have fewer than three complete observations get NaN
        and a warning rather than an error.
        """
        columns = self._columns(data)
        names = list(columns.keys())
        k = len(names)
        if k < 2:
            raise ValidationError(
                "Correlation matrix needs at least two variables",
                field_errors={"data": [f"got {k} variable(s)"]}
            )

        arrays = [to_float_array(columns[name], name)[0] for name in names]
        lengths = [a.size for a in arrays]
        if len(set(lengths)) > 1:
            raise UnequalLengthError(lengths)

        if method == CorrelationMethod.SPEARMAN and self.verbose:
            logger.info(f"Spearman matrix over {k} variables")

        coef = np.eye(k)
        pvals = np.zeros((k, k))
        counts = np.zeros((k, k), dtype=int)
        notes: List[str] = []
        finite = [np.isfinite(a) for a in arrays]
        for i in range(k):
            counts[i, i] = int(finite[i].sum())

        for i in range(k):
            checkpoint(cancel_token)
            for j in range(i + 1, k):
                mask = finite[i] & finite[j]
                xs, ys = arrays[i][mask], arrays[j][mask]
                n = int(xs.size)
                counts[i, j] = counts[j, i] = n

                if n < MIN_PAIRS:
                    r = p = float("nan")
                    notes.append(f"{names[i]} / {names[j]}: only {n} complete pairs")
                elif is_constant(xs) or is_constant(ys):
                    r = p = float("nan")
                    constant = names[i] if is_constant(xs) else names[j]
                    notes.append(f"{names[i]} / {names[j]}: '{constant}' is constant")
                else:
                    r = self._coefficient(xs, ys, method)
                    p = self._p_value(r, n)

                coef[i, j] = coef[j, i] = r
                pvals[i, j] = pvals[j, i] = p

        if notes:
            logger.warning("Undefined correlations in matrix", pairs=len(notes))

        return CorrelationMatrix(
            variables=tuple(names),
            method=method,
            matrix=tuple(tuple(float(v) for v in row) for row in coef),
            p_values=tuple(tuple(float(v) for v in row) for row in pvals),
            n_matrix=tuple(tuple(int(v) for v in row) for row in counts),
            warnings=tuple(notes)
        )

    @staticmethod
    def _columns(data: Any) -> Dict[str, Any]:
        if isinstance(data, pd.DataFrame):
            return {str(c): data[c] for c in data.columns}
        if isinstance(data, Mapping):
            return {str(k): v for k, v in data.items()}
        raise ValidationError("Correlation data must be a mapping of variable name to values")

    @staticmethod
    def _coefficient(xs: np.ndarray, ys: np.ndarray, method: CorrelationMethod) -> float:
        if method == CorrelationMethod.SPEARMAN:
            xs, ys = average_ranks(xs), average_ranks(ys)
        dx = xs - xs.mean()
        dy = ys - ys.mean()
        r = float(np.sum(dx * dy) / np.sqrt(np.sum(dx * dx) * np.sum(dy * dy)))
        return float(np.clip(r, -1.0, 1.0))

    @staticmethod
    def _p_value(r: float, n: int) -> float:
        if abs(r) >= 1.0:
            return 0.0
        df = n - 2
        t = r * np.sqrt(df / (1.0 - r * r))
        return t_two_sided_p(t, df)

    def _fisher_interval(self, r: float, n: int) -> Optional[Tuple[float, float]]:
        if n <= 3:
            return None
        if abs(r) >= 1.0:
            return (r, r)
        z = np.arctanh(r)
        margin = normal_ppf(1 - self.alpha / 2) / np.sqrt(n - 3)
        return (float(np.tanh(z - margin)), float(np.tanh(z + margin)))


# ============================================================================
# Factory Functions
# ============================================================================

def get_correlation_engine(alpha: float = 0.05) -> CorrelationEngine:
    """Get correlation engine."""
    return CorrelationEngine(alpha=alpha)


def quick_correlation_matrix(data: Any, method: str = "pearson") -> Dict[str, Any]:
    """Quick correlation matrix as a plain dictionary."""
    return CorrelationEngine().matrix(data, CorrelationMethod(method)).to_dict()
