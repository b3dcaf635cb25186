# Statistical Engine - Core Package
"""
Core package containing the engine's ambient components:
- Configuration and procedure option models
- Exception hierarchy
- Logging infrastructure
- JSON serialization helpers
"""

from statengine.core.config import EngineSettings, get_settings, parse_options
from statengine.core.exceptions import (
    StatisticalEngineException,
    ErrorCode,
    ValidationError,
    InsufficientDataError,
    MissingValuesError,
    NonNumericDataError,
    ConstantValuesError,
    SingularMatrixError,
    ConvergenceFailureError,
    UnequalLengthError,
    SampleSizeError,
    ComputationCancelledError,
)
from statengine.core.logging import (
    get_logger,
    set_analysis_context,
    clear_analysis_context,
    log_execution_time,
)

__all__ = [
    # Config
    "EngineSettings",
    "get_settings",
    "parse_options",
    # Exceptions
    "StatisticalEngineException",
    "ErrorCode",
    "ValidationError",
    "InsufficientDataError",
    "MissingValuesError",
    "NonNumericDataError",
    "ConstantValuesError",
    "SingularMatrixError",
    "ConvergenceFailureError",
    "UnequalLengthError",
    "SampleSizeError",
    "ComputationCancelledError",
    # Logging
    "get_logger",
    "set_analysis_context",
    "clear_analysis_context",
    "log_execution_time",
]
