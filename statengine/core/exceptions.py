# Statistical Engine - Custom Exceptions
# Exception hierarchy with error codes, context, and recovery hints

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Optional, Sequence
from uuid import UUID, uuid4


class ErrorCode(str, Enum):
    """Standardized error codes for engine failures."""

    # General errors (1xxx)
    UNKNOWN_ERROR = "E1000"
    VALIDATION_ERROR = "E1001"
    CONFIGURATION_ERROR = "E1002"

    # Data errors (3xxx)
    INSUFFICIENT_DATA = "E3000"
    MISSING_VALUES = "E3001"
    NON_NUMERIC_DATA = "E3002"
    CONSTANT_VALUES = "E3003"
    UNEQUAL_LENGTH = "E3004"
    SAMPLE_SIZE = "E3005"

    # Numerical errors (7xxx)
    SINGULAR_MATRIX = "E7000"
    CONVERGENCE_FAILURE = "E7001"

    # Execution errors (8xxx)
    COMPUTATION_CANCELLED = "E8000"
    UNKNOWN_PROCEDURE = "E8001"


@dataclass(frozen=True)
class ErrorContext:
    """Immutable context information for error tracking and debugging."""

    error_id: UUID = field(default_factory=uuid4)
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    component: str = ""
    operation: str = ""
    analysis_id: Optional[str] = None
    additional_data: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for logging/serialization."""
        return {
            "error_id": str(self.error_id),
            "timestamp": self.timestamp.isoformat(),
            "component": self.component,
            "operation": self.operation,
            "analysis_id": self.analysis_id,
            "additional_data": self.additional_data
        }


class StatisticalEngineException(Exception):
    """
    Base exception class for all engine exceptions.

    Every procedure failure surfaces as a subclass of this type so callers
    can map error codes to user-facing messages in one place.
    """

    def __init__(
        self,
        message: str,
        error_code: ErrorCode = ErrorCode.UNKNOWN_ERROR,
        context: Optional[ErrorContext] = None,
        cause: Optional[Exception] = None,
        recovery_hint: Optional[str] = None,
        is_retryable: bool = False
    ) -> None:
        super().__init__(message)
        self.message = message
        self.error_code = error_code
        self.context = context or ErrorContext()
        self.cause = cause
        self.recovery_hint = recovery_hint
        self.is_retryable = is_retryable

    @property
    def kind(self) -> str:
        """Error kind name without the trailing 'Error'."""
        name = self.__class__.__name__
        return name[:-5] if name.endswith("Error") else name

    def to_dict(self) -> dict[str, Any]:
        """Convert exception to dictionary for structured reporting."""
        return {
            "error": True,
            "error_code": self.error_code.value,
            "error_type": self.__class__.__name__,
            "kind": self.kind,
            "message": self.message,
            "recovery_hint": self.recovery_hint,
            "is_retryable": self.is_retryable,
            "context": self.context.to_dict(),
            "cause": str(self.cause) if self.cause else None
        }

    def __str__(self) -> str:
        return f"[{self.error_code.value}] {self.message}"

    def __repr__(self) -> str:
        return (
            f"{self.__class__.__name__}("
            f"message='{self.message}', "
            f"error_code={self.error_code}, "
            f"error_id={self.context.error_id})"
        )


# ============================================================================
# Validation Exceptions
# ============================================================================

class ValidationError(StatisticalEngineException):
    """Invalid procedure options or malformed arguments."""

    def __init__(
        self,
        message: str,
        field_errors: Optional[dict[str, list[str]]] = None,
        **kwargs: Any
    ) -> None:
        super().__init__(
            message=message,
            error_code=ErrorCode.VALIDATION_ERROR,
            **kwargs
        )
        self.field_errors = field_errors or {}

    def to_dict(self) -> dict[str, Any]:
        result = super().to_dict()
        result["field_errors"] = self.field_errors
        return result


class UnknownProcedureError(ValidationError):
    """A plan step names a procedure that is not registered."""

    def __init__(self, procedure: str, available: Sequence[str], **kwargs: Any) -> None:
        super().__init__(
            message=f"Unknown procedure '{procedure}'",
            recovery_hint=f"Available procedures: {', '.join(available)}",
            **kwargs
        )
        self.error_code = ErrorCode.UNKNOWN_PROCEDURE
        self.procedure = procedure


# ============================================================================
# Data Exceptions
# ============================================================================

class DataError(StatisticalEngineException):
    """Base exception for input data that cannot support a computation."""
    pass


class InsufficientDataError(DataError):
    """Fewer usable observations than the procedure requires."""

    def __init__(
        self,
        required_samples: int,
        actual_samples: int,
        what: str = "observations",
        **kwargs: Any
    ) -> None:
        super().__init__(
            message=f"Insufficient data: required at least {required_samples} {what}, got {actual_samples}",
            error_code=ErrorCode.INSUFFICIENT_DATA,
            recovery_hint=f"Provide at least {required_samples} {what}",
            **kwargs
        )
        self.required_samples = required_samples
        self.actual_samples = actual_samples


class MissingValuesError(DataError):
    """A required variable has no usable observations."""

    def __init__(self, variable: str = "sample", null_count: int = 0, **kwargs: Any) -> None:
        super().__init__(
            message=f"Variable '{variable}' has no usable observations ({null_count} missing)",
            error_code=ErrorCode.MISSING_VALUES,
            recovery_hint="Impute or remove missing values before analysis",
            **kwargs
        )
        self.variable = variable
        self.null_count = null_count


class NonNumericDataError(DataError):
    """A numeric procedure received categorical or unparseable input."""

    def __init__(self, variable: str = "sample", examples: Sequence[Any] = (), **kwargs: Any) -> None:
        shown = ", ".join(repr(v) for v in list(examples)[:3])
        message = f"Variable '{variable}' contains non-numeric values"
        if shown:
            message += f": {shown}"
        super().__init__(
            message=message,
            error_code=ErrorCode.NON_NUMERIC_DATA,
            recovery_hint="Use a categorical procedure or convert the values to numbers",
            **kwargs
        )
        self.variable = variable


class ConstantValuesError(DataError):
    """Zero variance where the procedure requires variation."""

    def __init__(self, variable: str = "sample", **kwargs: Any) -> None:
        super().__init__(
            message=f"Variable '{variable}' has zero variance",
            error_code=ErrorCode.CONSTANT_VALUES,
            recovery_hint="The statistic is undefined for constant data; check the variable",
            **kwargs
        )
        self.variable = variable


class UnequalLengthError(DataError):
    """Paired or aligned samples differ in length."""

    def __init__(self, lengths: Sequence[int], **kwargs: Any) -> None:
        super().__init__(
            message=f"Samples must have equal length, got {', '.join(str(n) for n in lengths)}",
            error_code=ErrorCode.UNEQUAL_LENGTH,
            recovery_hint="Align the samples so each index refers to the same case",
            **kwargs
        )
        self.lengths = tuple(lengths)


class SampleSizeError(DataError):
    """Sample size outside the valid range of a test."""

    def __init__(
        self,
        test_name: str,
        actual_samples: int,
        min_samples: int,
        max_samples: Optional[int] = None,
        **kwargs: Any
    ) -> None:
        bounds = f"{min_samples}-{max_samples}" if max_samples is not None else f">= {min_samples}"
        super().__init__(
            message=f"{test_name} requires {bounds} observations, got {actual_samples}",
            error_code=ErrorCode.SAMPLE_SIZE,
            recovery_hint="Use the Kolmogorov-Smirnov test for samples outside this range",
            **kwargs
        )
        self.test_name = test_name
        self.actual_samples = actual_samples
        self.min_samples = min_samples
        self.max_samples = max_samples


# ============================================================================
# Numerical Exceptions
# ============================================================================

class NumericalError(StatisticalEngineException):
    """Base exception for numerical failures."""
    pass


class SingularMatrixError(NumericalError):
    """Design matrix is singular or too ill-conditioned to invert."""

    def __init__(
        self,
        variables: Sequence[str] = (),
        condition_number: Optional[float] = None,
        **kwargs: Any
    ) -> None:
        names = ", ".join(variables) if variables else "unidentified predictors"
        super().__init__(
            message=f"Design matrix is singular or near-singular (implicated: {names})",
            error_code=ErrorCode.SINGULAR_MATRIX,
            recovery_hint="Remove redundant or constant predictors",
            **kwargs
        )
        self.variables = tuple(variables)
        self.condition_number = condition_number


class ConvergenceFailureError(NumericalError):
    """An iterative routine failed to converge."""

    def __init__(self, routine: str, iterations: int, **kwargs: Any) -> None:
        super().__init__(
            message=f"{routine} failed to converge after {iterations} iterations",
            error_code=ErrorCode.CONVERGENCE_FAILURE,
            is_retryable=True,
            **kwargs
        )
        self.routine = routine
        self.iterations = iterations


# ============================================================================
# Execution Exceptions
# ============================================================================

class ComputationCancelledError(StatisticalEngineException):
    """Host cancelled the computation or its deadline expired."""

    def __init__(self, reason: str = "cancelled", **kwargs: Any) -> None:
        super().__init__(
            message=f"Computation stopped: {reason}",
            error_code=ErrorCode.COMPUTATION_CANCELLED,
            is_retryable=True,
            recovery_hint="Retry with a longer timeout or a smaller input",
            **kwargs
        )
        self.reason = reason
