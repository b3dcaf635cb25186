# Statistical Engine - Analysis Package
"""Statistical procedures.

Import specific modules directly, e.g.:
    from statengine.analysis.anova_analysis import ANOVAEngine
"""

__all__ = [
    "numeric_utils",
    "descriptive_statistics",
    "correlation_analysis",
    "normality_testing",
    "contingency_analysis",
    "hypothesis_testing",
    "anova_analysis",
    "regression_analysis",
    "nonparametric_tests",
    "assumption_checking",
    "test_suggestion",
]
