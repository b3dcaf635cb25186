# Statistical Engine - Package
"""
Statistical analysis engine.

This package provides:
- Descriptive statistics, frequency tables and outlier detection
- Correlation matrices and normality tests
- t-tests, one-way ANOVA with Tukey post-hoc, and chi-square tests
- OLS regression with diagnostics
- Rank-based non-parametric tests
- Rule-based test recommendation
"""

__version__ = "1.0.0"


# Lazy import so submodules can be used without loading every analysis module
def get_engine():
    from statengine.engine import get_statistical_engine
    return get_statistical_engine()


__all__ = ["get_engine", "__version__"]
