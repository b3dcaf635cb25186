# Statistical Engine - Analysis Facade
# One entry point per procedure: validates options, applies settings, logs timing

from __future__ import annotations

from typing import Any, Dict, List, Mapping, Optional, Sequence, Union

from statengine.analysis.anova_analysis import ANOVAEngine, ANOVAResult
from statengine.analysis.assumption_checking import AssumptionChecker
from statengine.analysis.contingency_analysis import (
    ChiSquareResult,
    ContingencyAnalyzer,
    ContingencyTable,
)
from statengine.analysis.correlation_analysis import (
    CorrelationEngine,
    CorrelationMatrix,
    CorrelationResult,
)
from statengine.analysis.descriptive_statistics import (
    DescriptiveStatisticsCalculator,
    DescriptiveStats,
    FrequencyAnalysisResult,
    OutlierResult,
)
from statengine.analysis.hypothesis_testing import HypothesisTestEngine, TTestResult
from statengine.analysis.nonparametric_tests import NonParametricResult, NonParametricTestEngine
from statengine.analysis.normality_testing import NormalityTestResult, NormalityTester
from statengine.analysis.regression_analysis import RegressionEngine, RegressionResult
from statengine.analysis.test_suggestion import (
    TestSuggestion,
    TestSuggestionEngine,
    infer_variable_types,
    sample_sizes_of,
)
from statengine.compute.cancellation import CancellationToken, checkpoint
from statengine.core.config import (
    ANOVAOptions,
    ContingencyOptions,
    CorrelationOptions,
    DescriptiveOptions,
    EngineSettings,
    FrequencyOptions,
    GoodnessOfFitOptions,
    IndependentTTestOptions,
    NonParametricOptions,
    NormalityMethod,
    NormalityOptions,
    OneSampleTTestOptions,
    OutlierMethod,
    OutlierOptions,
    PairedTTestOptions,
    ProcedureOptions,
    RegressionOptions,
    SuggestionOptions,
    get_settings,
    parse_options,
)
from statengine.core.logging import get_logger, log_execution_time

logger = get_logger(__name__)

Options = Union[None, Mapping[str, Any], ProcedureOptions]


class StatisticalAnalysisEngine:
    """
    Facade over the analysis modules.

    Holds only immutable settings; every method is a pure function of its
    arguments. Options are validated against the procedure's closed option
    model before any computation starts.
    """

    def __init__(self, settings: Optional[EngineSettings] = None):
        self.settings = settings or get_settings()

    # ------------------------------------------------------------------------
    # Descriptive
    # ------------------------------------------------------------------------

    @log_execution_time(logger=logger)
    def descriptive_statistics(
        self,
        data: Sequence[Any],
        options: Options = None,
        cancel_token: Optional[CancellationToken] = None
    ) -> DescriptiveStats:
        opts = parse_options(DescriptiveOptions, options)
        checkpoint(cancel_token)
        return DescriptiveStatisticsCalculator().calculate(data, bin_count=opts.bin_count)

    @log_execution_time(logger=logger)
    def frequency_analysis(
        self,
        data: Sequence[Any],
        options: Options = None,
        cancel_token: Optional[CancellationToken] = None
    ) -> FrequencyAnalysisResult:
        opts = parse_options(FrequencyOptions, options)
        checkpoint(cancel_token)
        return DescriptiveStatisticsCalculator().frequency_analysis(data, bin_count=opts.bin_count)

    @log_execution_time(logger=logger)
    def detect_outliers(
        self,
        data: Sequence[Any],
        options: Options = None,
        cancel_token: Optional[CancellationToken] = None
    ) -> OutlierResult:
        opts = parse_options(OutlierOptions, options)
        checkpoint(cancel_token)
        threshold = opts.threshold
        if threshold is None:
            threshold = (
                self.settings.outlier_iqr_multiplier if opts.method == OutlierMethod.IQR
                else self.settings.outlier_z_threshold
            )
        return DescriptiveStatisticsCalculator().detect_outliers(data, method=opts.method, threshold=threshold)

    # ------------------------------------------------------------------------
    # Correlation
    # ------------------------------------------------------------------------

    @log_execution_time(logger=logger)
    def correlation(
        self,
        x: Sequence[Any],
        y: Sequence[Any],
        options: Options = None,
        cancel_token: Optional[CancellationToken] = None
    ) -> CorrelationResult:
        opts = parse_options(CorrelationOptions, options)
        checkpoint(cancel_token)
        return CorrelationEngine(alpha=self._alpha(opts)).correlate(x, y, method=opts.method)

    @log_execution_time(logger=logger)
    def correlation_matrix(
        self,
        data: Any,
        options: Options = None,
        cancel_token: Optional[CancellationToken] = None
    ) -> CorrelationMatrix:
        opts = parse_options(CorrelationOptions, options)
        engine = CorrelationEngine(alpha=self._alpha(opts))
        return engine.matrix(data, method=opts.method, cancel_token=cancel_token)

    # ------------------------------------------------------------------------
    # Normality
    # ------------------------------------------------------------------------

    @log_execution_time(logger=logger)
    def shapiro_wilk(
        self,
        data: Sequence[Any],
        options: Options = None,
        cancel_token: Optional[CancellationToken] = None
    ) -> NormalityTestResult:
        opts = parse_options(NormalityOptions, options)
        checkpoint(cancel_token)
        return self._normality(opts).shapiro_wilk(data)

    @log_execution_time(logger=logger)
    def kolmogorov_smirnov(
        self,
        data: Sequence[Any],
        options: Options = None,
        cancel_token: Optional[CancellationToken] = None
    ) -> NormalityTestResult:
        opts = parse_options(NormalityOptions, options)
        checkpoint(cancel_token)
        return self._normality(opts).kolmogorov_smirnov(data)

    @log_execution_time(logger=logger)
    def normality_test(
        self,
        data: Sequence[Any],
        options: Options = None,
        cancel_token: Optional[CancellationToken] = None
    ) -> NormalityTestResult:
        """Requested method, or Shapiro-Wilk inside its valid range and Kolmogorov-Smirnov outside it."""
        opts = parse_options(NormalityOptions, options)
        checkpoint(cancel_token)
        tester = self._normality(opts)
        if opts.method == NormalityMethod.SHAPIRO_WILK:
            return tester.shapiro_wilk(data)
        if opts.method == NormalityMethod.KOLMOGOROV_SMIRNOV:
            return tester.kolmogorov_smirnov(data)
        return tester.test(data)

    # ------------------------------------------------------------------------
    # Contingency
    # ------------------------------------------------------------------------

    @log_execution_time(logger=logger)
    def contingency_table(
        self,
        row_data: Sequence[Any],
        column_data: Sequence[Any],
        options: Options = None,
        cancel_token: Optional[CancellationToken] = None
    ) -> ContingencyTable:
        opts = parse_options(ContingencyOptions, options)
        checkpoint(cancel_token)
        return self._contingency(opts).create_table(
            row_data, column_data,
            row_variable=opts.row_variable,
            column_variable=opts.column_variable
        )

    @log_execution_time(logger=logger)
    def chi_square_independence(
        self,
        table: Sequence[Sequence[float]],
        options: Options = None,
        cancel_token: Optional[CancellationToken] = None
    ) -> ChiSquareResult:
        opts = parse_options(ContingencyOptions, options)
        checkpoint(cancel_token)
        return self._contingency(opts).independence(table)

    @log_execution_time(logger=logger)
    def chi_square_goodness_of_fit(
        self,
        observed: Sequence[float],
        options: Options = None,
        cancel_token: Optional[CancellationToken] = None
    ) -> ChiSquareResult:
        opts = parse_options(GoodnessOfFitOptions, options)
        checkpoint(cancel_token)
        return self._contingency(opts).goodness_of_fit(observed, expected=opts.expected)

    # ------------------------------------------------------------------------
    # Parametric tests
    # ------------------------------------------------------------------------

    @log_execution_time(logger=logger)
    def one_sample_t_test(
        self,
        data: Sequence[Any],
        options: Options = None,
        cancel_token: Optional[CancellationToken] = None
    ) -> TTestResult:
        opts = parse_options(OneSampleTTestOptions, options)
        checkpoint(cancel_token)
        return self._hypothesis(opts).one_sample(data, test_value=opts.test_value)

    @log_execution_time(logger=logger)
    def independent_t_test(
        self,
        data1: Sequence[Any],
        data2: Sequence[Any],
        options: Options = None,
        cancel_token: Optional[CancellationToken] = None
    ) -> TTestResult:
        opts = parse_options(IndependentTTestOptions, options)
        checkpoint(cancel_token)
        return self._hypothesis(opts).independent(data1, data2, equal_variances=opts.assume_equal_variances)

    @log_execution_time(logger=logger)
    def paired_t_test(
        self,
        data1: Sequence[Any],
        data2: Sequence[Any],
        options: Options = None,
        cancel_token: Optional[CancellationToken] = None
    ) -> TTestResult:
        opts = parse_options(PairedTTestOptions, options)
        checkpoint(cancel_token)
        return self._hypothesis(opts).paired(data1, data2)

    @log_execution_time(logger=logger)
    def one_way_anova(
        self,
        groups: Mapping[str, Sequence[Any]],
        options: Options = None,
        cancel_token: Optional[CancellationToken] = None
    ) -> ANOVAResult:
        opts = parse_options(ANOVAOptions, options)
        checkpoint(cancel_token)
        alpha = self._alpha(opts)
        return ANOVAEngine(alpha=alpha, checker=self._checker(alpha)).analyze(groups, post_hoc=opts.post_hoc)

    # ------------------------------------------------------------------------
    # Regression
    # ------------------------------------------------------------------------

    @log_execution_time(logger=logger)
    def linear_regression(
        self,
        x: Sequence[Any],
        y: Sequence[Any],
        options: Options = None,
        cancel_token: Optional[CancellationToken] = None
    ) -> RegressionResult:
        opts = parse_options(RegressionOptions, options)
        return self._regression(opts).linear(x, y, cancel_token=cancel_token)

    @log_execution_time(logger=logger)
    def multiple_regression(
        self,
        predictors: Mapping[str, Sequence[Any]],
        response: Sequence[Any],
        options: Options = None,
        cancel_token: Optional[CancellationToken] = None
    ) -> RegressionResult:
        opts = parse_options(RegressionOptions, options)
        return self._regression(opts).multiple(predictors, response, cancel_token=cancel_token)

    # ------------------------------------------------------------------------
    # Non-parametric tests
    # ------------------------------------------------------------------------

    @log_execution_time(logger=logger)
    def mann_whitney_u(
        self,
        data1: Sequence[Any],
        data2: Sequence[Any],
        options: Options = None,
        cancel_token: Optional[CancellationToken] = None
    ) -> NonParametricResult:
        opts = parse_options(NonParametricOptions, options)
        checkpoint(cancel_token)
        return self._nonparametric(opts).mann_whitney(data1, data2)

    @log_execution_time(logger=logger)
    def wilcoxon_signed_rank(
        self,
        data1: Sequence[Any],
        data2: Sequence[Any],
        options: Options = None,
        cancel_token: Optional[CancellationToken] = None
    ) -> NonParametricResult:
        opts = parse_options(NonParametricOptions, options)
        checkpoint(cancel_token)
        return self._nonparametric(opts).wilcoxon(data1, data2)

    @log_execution_time(logger=logger)
    def kruskal_wallis(
        self,
        groups: Mapping[str, Sequence[Any]],
        options: Options = None,
        cancel_token: Optional[CancellationToken] = None
    ) -> NonParametricResult:
        opts = parse_options(NonParametricOptions, options)
        checkpoint(cancel_token)
        return self._nonparametric(opts).kruskal_wallis(groups)

    # ------------------------------------------------------------------------
    # Recommendation
    # ------------------------------------------------------------------------

    @log_execution_time(logger=logger)
    def suggest_tests(
        self,
        data_types: Mapping[str, Any],
        sample_sizes: Mapping[str, int],
        options: Options = None,
        cancel_token: Optional[CancellationToken] = None
    ) -> List[TestSuggestion]:
        opts = parse_options(SuggestionOptions, options)
        checkpoint(cancel_token)
        engine = TestSuggestionEngine(small_sample_threshold=self.settings.small_sample_threshold)
        return engine.suggest(data_types, sample_sizes, group_count=opts.group_count, paired=opts.paired)

    def suggest_tests_for_data(self, data: Any, options: Options = None) -> List[TestSuggestion]:
        """Infer variable types and sizes from raw columns, then suggest tests."""
        return self.suggest_tests(infer_variable_types(data), sample_sizes_of(data), options)

    # ------------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------------

    def _alpha(self, opts: ProcedureOptions) -> float:
        return opts.resolved_alpha(self.settings)

    def _checker(self, alpha: float) -> AssumptionChecker:
        s = self.settings
        return AssumptionChecker(
            alpha=alpha,
            variance_ratio_threshold=s.variance_ratio_threshold,
            min_expected_frequency=s.min_expected_frequency,
            linearity_threshold=s.linearity_threshold,
            vif_warning_threshold=s.vif_warning_threshold,
            vif_failure_threshold=s.vif_failure_threshold,
            shapiro_min_n=s.shapiro_min_n,
            shapiro_max_n=s.shapiro_max_n
        )

    def _normality(self, opts: ProcedureOptions) -> NormalityTester:
        return NormalityTester(
            alpha=self._alpha(opts),
            min_n=self.settings.shapiro_min_n,
            max_n=self.settings.shapiro_max_n
        )

    def _contingency(self, opts: ProcedureOptions) -> ContingencyAnalyzer:
        return ContingencyAnalyzer(
            alpha=self._alpha(opts),
            min_expected_frequency=self.settings.min_expected_frequency
        )

    def _hypothesis(self, opts: ProcedureOptions) -> HypothesisTestEngine:
        alpha = self._alpha(opts)
        return HypothesisTestEngine(alpha=alpha, checker=self._checker(alpha))

    def _regression(self, opts: ProcedureOptions) -> RegressionEngine:
        alpha = self._alpha(opts)
        return RegressionEngine(
            alpha=alpha,
            checker=self._checker(alpha),
            max_condition_number=self.settings.max_condition_number,
            collinearity_tolerance=self.settings.collinearity_tolerance
        )

    def _nonparametric(self, opts: NonParametricOptions) -> NonParametricTestEngine:
        return NonParametricTestEngine(
            alpha=self._alpha(opts),
            continuity_correction=opts.continuity_correction,
            large_sample_threshold=self.settings.large_sample_threshold
        )


# ============================================================================
# Factory Functions
# ============================================================================

def get_statistical_engine(settings: Optional[EngineSettings] = None) -> StatisticalAnalysisEngine:
    """Get statistical analysis engine."""
    return StatisticalAnalysisEngine(settings=settings)


def quick_analysis(procedure: str, *args: Any, **kwargs: Any) -> Dict[str, Any]:
    """Run one procedure by name and return its result as a plain dictionary."""
    from statengine.compute.registry import default_registry

    engine = StatisticalAnalysisEngine()
    method = default_registry(engine).get(procedure)
    result = method(*args, **kwargs)
    if isinstance(result, list):
        return {"results": [r.to_dict() for r in result]}
    return result.to_dict()
