# Statistical Engine - Regression Analysis Engine
# Ordinary least squares with coefficient inference and diagnostics
# Handles: simple and multiple linear regression, collinearity detection

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Mapping, Optional, Sequence, Tuple

import numpy as np
from scipy import linalg as scipy_linalg
from scipy import stats as scipy_stats

from statengine.analysis.assumption_checking import AssumptionCheck, AssumptionChecker
from statengine.analysis.numeric_utils import (
    chi2_sf,
    clean_pairs,
    f_sf,
    is_constant,
    require_observations,
    t_ppf,
    t_two_sided_p,
)
from statengine.compute.cancellation import CancellationToken, checkpoint
from statengine.core.exceptions import ConstantValuesError, SingularMatrixError, ValidationError
from statengine.core.logging import get_logger
from statengine.core.serialization import dataclass_to_dict

logger = get_logger(__name__)

INTERCEPT = "Intercept"


# ============================================================================
# Enums
# ============================================================================

class RegressionModelType(str, Enum):
    LINEAR = "linear"
    MULTIPLE = "multiple"


# ============================================================================
# Data Classes
# ============================================================================

@dataclass(frozen=True)
class RegressionCoefficient:
    """Estimate and inference for one model term."""
    variable: str
    coefficient: float
    standard_error: float
    t_statistic: float
    p_value: float
    confidence_interval: Tuple[float, float]


@dataclass(frozen=True)
class RegressionDiagnostics:
    """Residual diagnostics."""
    durbin_watson: float
    jarque_bera: float
    jarque_bera_p_value: float
    breusch_pagan: float
    breusch_pagan_p_value: float
    vif: Optional[Dict[str, float]] = None
    high_leverage_points: Tuple[int, ...] = ()
    high_influence_points: Tuple[int, ...] = ()


@dataclass(frozen=True)
class RegressionResult:
    """Complete OLS result."""
    model_type: RegressionModelType
    coefficients: Tuple[RegressionCoefficient, ...]
    r_squared: float
    adjusted_r_squared: float
    f_statistic: float
    f_p_value: float
    standard_error: float
    degrees_of_freedom: int
    n: int
    alpha: float
    residuals: Tuple[float, ...]
    fitted: Tuple[float, ...]
    diagnostics: RegressionDiagnostics
    assumptions: Tuple[AssumptionCheck, ...] = field(default_factory=tuple)
    warnings: Tuple[str, ...] = field(default_factory=tuple)

    def coefficient(self, variable: str) -> RegressionCoefficient:
        for coef in self.coefficients:
            if coef.variable == variable:
                return coef
        raise KeyError(variable)

    def predict(self, predictors: Mapping[str, Sequence[float]]) -> np.ndarray:
        """Predictions for new predictor values keyed by variable name."""
        terms = self.coefficients[1:]
        missing = [c.variable for c in terms if c.variable not in predictors]
        if missing:
            raise ValidationError(f"Missing predictor values: {', '.join(missing)}")
        result = np.full(len(predictors[terms[0].variable]), self.coefficients[0].coefficient)
        for coef in terms:
            result = result + coef.coefficient * np.asarray(predictors[coef.variable], dtype=float)
        return result

    def to_dict(self) -> Dict[str, Any]:
        return dataclass_to_dict(self)


# ============================================================================
# Regression Engine
# ============================================================================

class RegressionEngine:
    """
    OLS regression engine.

    Solves the least-squares problem by QR decomposition of the design
    matrix [1, x1, ..., xp] after listwise deletion of incomplete cases.

    Features:
    - Coefficient standard errors, t tests and confidence intervals
    - R-squared, adjusted R-squared and the overall F test
    - Durbin-Watson, Jarque-Bera, Breusch-Pagan, VIF, leverage, Cook's distance
    - Singular design detection naming the offending predictors
    """

    def __init__(
        self,
        alpha: float = 0.05,
        checker: Optional[AssumptionChecker] = None,
        max_condition_number: float = 1e12,
        collinearity_tolerance: float = 1e-8,
        verbose: bool = False
    ):
        self.alpha = alpha
        self.checker = checker or AssumptionChecker(alpha=alpha)
        self.max_condition_number = max_condition_number
        self.collinearity_tolerance = collinearity_tolerance
        self.verbose = verbose

    def linear(
        self,
        x: Any,
        y: Any,
        x_name: str = "x",
        cancel_token: Optional[CancellationToken] = None
    ) -> RegressionResult:
        """Simple linear regression of ``y`` on ``x``."""
        return self._fit({x_name: x}, y, RegressionModelType.LINEAR, cancel_token)

    def multiple(
        self,
        predictors: Mapping[str, Any],
        response: Any,
        cancel_token: Optional[CancellationToken] = None
    ) -> RegressionResult:
        """Multiple linear regression on named predictors."""
        if not isinstance(predictors, Mapping) or not predictors:
            raise ValidationError(
                "Predictors must be a non-empty mapping of name to values",
                field_errors={"predictors": ["empty or not a mapping"]}
            )
        if INTERCEPT in predictors:
            raise ValidationError(f"'{INTERCEPT}' is reserved for the model constant")
        return self._fit(dict(predictors), response, RegressionModelType.MULTIPLE, cancel_token)

    def _fit(
        self,
        predictors: Dict[str, Any],
        response: Any,
        model_type: RegressionModelType,
        cancel_token: Optional[CancellationToken]
    ) -> RegressionResult:
        names = [str(k) for k in predictors.keys()]
        arrays, dropped = clean_pairs(*predictors.values(), response, names=names + ["response"])
        X = np.column_stack(arrays[:-1])
        y = arrays[-1]
        n, p = X.shape
        require_observations(y, p + 2, name="response", what="complete cases")

        notes: List[str] = []
        if dropped:
            notes.append(f"{dropped} incomplete case(s) excluded")
        if is_constant(y):
            raise ConstantValuesError(variable="response")

        self._check_design(X, names)
        checkpoint(cancel_token)

        if self.verbose:
            logger.info(f"Fitting OLS with {p} predictor(s) on {n} cases")

        design = np.column_stack([np.ones(n), X])
        q, r = np.linalg.qr(design)
        beta = scipy_linalg.solve_triangular(r, q.T @ y)
        r_inv = scipy_linalg.solve_triangular(r, np.eye(p + 1))
        xtx_inv = r_inv @ r_inv.T

        fitted = design @ beta
        residuals = y - fitted
        ss_res = float(np.sum(residuals ** 2))
        ss_tot = float(np.sum((y - np.mean(y)) ** 2))
        df_resid = n - p - 1

        r_squared = float(np.clip(1.0 - ss_res / ss_tot, 0.0, 1.0))
        adj_r_squared = 1.0 - (1.0 - r_squared) * (n - 1) / df_resid
        mse = ss_res / df_resid
        if mse == 0:
            notes.append("Residuals are exactly zero; the model fits perfectly")

        se_coef = np.sqrt(np.diag(xtx_inv) * mse)
        with np.errstate(divide="ignore", invalid="ignore"):
            t_stats = np.where(
                se_coef > 0,
                beta / se_coef,
                np.where(beta == 0, 0.0, np.copysign(np.inf, beta))
            )
            f_stat = ((ss_tot - ss_res) / p) / mse if mse > 0 else float("inf")
        t_crit = t_ppf(1 - self.alpha / 2, df_resid)

        coefficients = tuple(
            RegressionCoefficient(
                variable=term,
                coefficient=float(beta[i]),
                standard_error=float(se_coef[i]),
                t_statistic=float(t_stats[i]),
                p_value=t_two_sided_p(float(t_stats[i]), df_resid),
                confidence_interval=(float(beta[i] - t_crit * se_coef[i]), float(beta[i] + t_crit * se_coef[i]))
            )
            for i, term in enumerate([INTERCEPT] + names)
        )

        checkpoint(cancel_token)
        diagnostics = self._diagnostics(design, X, names, residuals, xtx_inv, mse)

        if model_type == RegressionModelType.LINEAR:
            r = float(np.sign(beta[1]) * np.sqrt(r_squared))
        else:
            r = float(np.sqrt(r_squared))
        assumptions = [
            self.checker.check_linearity(r),
            self.checker.check_normality(residuals, name="Normality of Residuals", subject="the residuals"),
            self.checker.check_homoscedasticity(diagnostics.breusch_pagan, diagnostics.breusch_pagan_p_value),
            self.checker.check_independence(diagnostics.durbin_watson),
        ]
        if model_type == RegressionModelType.MULTIPLE:
            assumptions.append(self.checker.check_multicollinearity(diagnostics.vif or {}))

        return RegressionResult(
            model_type=model_type,
            coefficients=coefficients,
            r_squared=r_squared,
            adjusted_r_squared=float(adj_r_squared),
            f_statistic=float(f_stat),
            f_p_value=f_sf(f_stat, p, df_resid) if np.isfinite(f_stat) else 0.0,
            standard_error=float(np.sqrt(mse)),
            degrees_of_freedom=df_resid,
            n=n,
            alpha=self.alpha,
            residuals=tuple(float(v) for v in residuals),
            fitted=tuple(float(v) for v in fitted),
            diagnostics=diagnostics,
            assumptions=tuple(assumptions),
            warnings=tuple(notes)
        )

    # ------------------------------------------------------------------------
    # Design checks
    # ------------------------------------------------------------------------

    def _check_design(self, X: np.ndarray, names: List[str]) -> None:
        """Reject constant predictors and (near-)collinear designs."""
        constant = [name for name, col in zip(names, X.T) if is_constant(col)]
        if constant:
            raise SingularMatrixError(constant)

        # scale-free conditioning of the centred, unit-length predictors
        centred = X - X.mean(axis=0)
        z = centred / np.linalg.norm(centred, axis=0)
        gram = z.T @ z
        condition = float(np.linalg.cond(gram))
        if not np.isfinite(condition) or condition > self.max_condition_number:
            raise SingularMatrixError(self._implicated(z, names), condition_number=condition)

    def _implicated(self, z: np.ndarray, names: List[str]) -> List[str]:
        corr = z.T @ z
        threshold = 1.0 - self.collinearity_tolerance
        implicated: List[str] = []
        k = len(names)
        for i in range(k):
            for j in range(i + 1, k):
                if abs(corr[i, j]) >= threshold:
                    for name in (names[i], names[j]):
                        if name not in implicated:
                            implicated.append(name)
        if implicated:
            return implicated

        # linear combination of several predictors
        for j in range(k):
            others = np.delete(z, j, axis=1)
            coef, *_ = np.linalg.lstsq(others, z[:, j], rcond=None)
            resid = z[:, j] - others @ coef
            if float(resid @ resid) <= self.collinearity_tolerance:
                implicated.append(names[j])
        return implicated or list(names)

    # ------------------------------------------------------------------------
    # Diagnostics
    # ------------------------------------------------------------------------

    def _diagnostics(
        self,
        design: np.ndarray,
        X: np.ndarray,
        names: List[str],
        residuals: np.ndarray,
        xtx_inv: np.ndarray,
        mse: float
    ) -> RegressionDiagnostics:
        n, k = design.shape
        ss_res = float(residuals @ residuals)

        if ss_res > 0:
            dw = float(np.sum(np.diff(residuals) ** 2) / ss_res)
            jb = scipy_stats.jarque_bera(residuals)
            jb_stat, jb_p = float(jb.statistic), float(jb.pvalue)
            bp_stat, bp_p = self._breusch_pagan(design, residuals)
        else:
            dw = jb_stat = jb_p = bp_stat = bp_p = float("nan")

        vif = self._vif(X, names) if X.shape[1] > 1 else None

        leverage = np.einsum("ij,jk,ik->i", design, xtx_inv, design)
        high_leverage = tuple(int(i) for i in np.flatnonzero(leverage > 2 * k / n))
        high_influence: Tuple[int, ...] = ()
        if mse > 0:
            with np.errstate(divide="ignore", invalid="ignore"):
                cooks_d = (residuals ** 2 / (k * mse)) * (leverage / (1 - leverage) ** 2)
            high_influence = tuple(int(i) for i in np.flatnonzero(~np.isfinite(cooks_d) | (cooks_d > 4 / n)))

        return RegressionDiagnostics(
            durbin_watson=dw,
            jarque_bera=jb_stat,
            jarque_bera_p_value=jb_p,
            breusch_pagan=bp_stat,
            breusch_pagan_p_value=bp_p,
            vif=vif,
            high_leverage_points=high_leverage,
            high_influence_points=high_influence
        )

    @staticmethod
    def _breusch_pagan(design: np.ndarray, residuals: np.ndarray) -> Tuple[float, float]:
        """Koenker's studentized LM statistic n * R^2 of e^2 regressed on the design."""
        n, k = design.shape
        u = residuals ** 2
        ss_tot = float(np.sum((u - u.mean()) ** 2))
        if ss_tot == 0:
            return 0.0, 1.0
        coef, *_ = np.linalg.lstsq(design, u, rcond=None)
        ss_res = float(np.sum((u - design @ coef) ** 2))
        lm = n * max(0.0, 1.0 - ss_res / ss_tot)
        return float(lm), chi2_sf(lm, k - 1)

    @staticmethod
    def _vif(X: np.ndarray, names: List[str]) -> Dict[str, float]:
        n, p = X.shape
        vif: Dict[str, float] = {}
        for j in range(p):
            target = X[:, j]
            others = np.column_stack([np.ones(n), np.delete(X, j, axis=1)])
            coef, *_ = np.linalg.lstsq(others, target, rcond=None)
            ss_res = float(np.sum((target - others @ coef) ** 2))
            ss_tot = float(np.sum((target - target.mean()) ** 2))
            r2 = 1.0 - ss_res / ss_tot
            vif[names[j]] = float(1.0 / (1.0 - r2)) if r2 < 1 else float("inf")
        return vif


# ============================================================================
# Factory Functions
# ============================================================================

def get_regression_engine(alpha: float = 0.05) -> RegressionEngine:
    """Get regression engine."""
    return RegressionEngine(alpha=alpha)


def quick_regression(x: Any, y: Any) -> Dict[str, Any]:
    """Quick simple linear regression."""
    return RegressionEngine().linear(x, y).to_dict()
