# Statistical Engine - Core Configuration
# Engine settings from the environment and per-procedure option models

from __future__ import annotations

from enum import Enum
from functools import lru_cache
from typing import Any, Mapping, Optional, Type, TypeVar, Union

from pydantic import BaseModel, ConfigDict, Field
from pydantic import ValidationError as PydanticValidationError
from pydantic.alias_generators import to_camel
from pydantic_settings import BaseSettings, SettingsConfigDict

from statengine.core.exceptions import ValidationError


class LogLevel(str, Enum):
    """Logging level enumeration."""
    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"
    CRITICAL = "CRITICAL"


class EngineSettings(BaseSettings):
    """Engine-wide thresholds and defaults, overridable via STATENGINE_* variables."""

    model_config = SettingsConfigDict(
        env_prefix="STATENGINE_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore"
    )

    app_name: str = Field(default="Statistical Analysis Engine")
    app_version: str = Field(default="1.0.0")

    # Inference defaults
    default_alpha: float = Field(default=0.05, gt=0, lt=1)
    small_sample_threshold: int = Field(default=30, ge=2)
    large_sample_threshold: int = Field(default=20, ge=1, description="Mann-Whitney exact-size boundary")

    # Shapiro-Wilk validity range
    shapiro_min_n: int = Field(default=3, ge=3)
    shapiro_max_n: int = Field(default=5000, ge=3)

    # Assumption heuristics
    variance_ratio_threshold: float = Field(default=4.0, gt=1)
    min_expected_frequency: float = Field(default=5.0, gt=0)
    linearity_threshold: float = Field(default=0.3, ge=0, le=1)
    vif_warning_threshold: float = Field(default=5.0, gt=1)
    vif_failure_threshold: float = Field(default=10.0, gt=1)

    # Numerical tolerances
    max_condition_number: float = Field(default=1e12, gt=1)
    collinearity_tolerance: float = Field(default=1e-8, gt=0, lt=1)

    # Outlier detection
    outlier_z_threshold: float = Field(default=3.0, gt=0)
    outlier_iqr_multiplier: float = Field(default=1.5, gt=0)

    # Execution
    max_workers: int = Field(default=4, ge=1, le=64)
    computation_timeout_seconds: Optional[float] = Field(default=None, gt=0)

    # Logging
    log_level: LogLevel = Field(default=LogLevel.INFO)
    log_format: str = Field(default="text")  # json or text


@lru_cache(maxsize=1)
def get_settings() -> EngineSettings:
    """Get cached settings instance."""
    return EngineSettings()


# ============================================================================
# Procedure Options
# ============================================================================

class CorrelationMethod(str, Enum):
    PEARSON = "pearson"
    SPEARMAN = "spearman"


class NormalityMethod(str, Enum):
    SHAPIRO_WILK = "shapiro_wilk"
    KOLMOGOROV_SMIRNOV = "kolmogorov_smirnov"


class PostHocMethod(str, Enum):
    TUKEY = "tukey"


class OutlierMethod(str, Enum):
    ZSCORE = "zscore"
    IQR = "iqr"


class ProcedureOptions(BaseModel):
    """
    Base for the closed option set of a procedure.

    Unknown keys are rejected. Keys may be given in snake_case or camelCase.
    """

    model_config = ConfigDict(
        extra="forbid",
        frozen=True,
        alias_generator=to_camel,
        populate_by_name=True,
        use_enum_values=False
    )

    alpha: Optional[float] = Field(default=None, gt=0, lt=1)

    def resolved_alpha(self, settings: Optional[EngineSettings] = None) -> float:
        if self.alpha is not None:
            return self.alpha
        return (settings or get_settings()).default_alpha


class DescriptiveOptions(ProcedureOptions):
    bin_count: Optional[int] = Field(default=None, ge=1, le=1000)


class FrequencyOptions(ProcedureOptions):
    bin_count: Optional[int] = Field(default=None, ge=1, le=1000)


class OutlierOptions(ProcedureOptions):
    method: OutlierMethod = OutlierMethod.ZSCORE
    threshold: Optional[float] = Field(default=None, gt=0)


class CorrelationOptions(ProcedureOptions):
    method: CorrelationMethod = CorrelationMethod.PEARSON


class NormalityOptions(ProcedureOptions):
    method: Optional[NormalityMethod] = None


class OneSampleTTestOptions(ProcedureOptions):
    test_value: float = 0.0


class IndependentTTestOptions(ProcedureOptions):
    assume_equal_variances: bool = True


class PairedTTestOptions(ProcedureOptions):
    pass


class ANOVAOptions(ProcedureOptions):
    post_hoc: Optional[PostHocMethod] = None


class RegressionOptions(ProcedureOptions):
    pass


class NonParametricOptions(ProcedureOptions):
    continuity_correction: bool = True


class ContingencyOptions(ProcedureOptions):
    row_variable: str = "rows"
    column_variable: str = "columns"


class GoodnessOfFitOptions(ProcedureOptions):
    expected: Optional[list[float]] = Field(default=None, min_length=1)


class SuggestionOptions(ProcedureOptions):
    group_count: Optional[int] = Field(default=None, ge=1)
    paired: bool = False


OptionsT = TypeVar("OptionsT", bound=ProcedureOptions)


def parse_options(
    model: Type[OptionsT],
    options: Union[None, Mapping[str, Any], ProcedureOptions]
) -> OptionsT:
    """
    Validate caller options against a procedure's option model.

    Raises:
        ValidationError: with per-field messages when validation fails
    """
    if options is None:
        return model()
    if isinstance(options, model):
        return options
    if isinstance(options, ProcedureOptions):
        options = options.model_dump(exclude_unset=True)
    try:
        return model.model_validate(dict(options))
    except PydanticValidationError as e:
        field_errors: dict[str, list[str]] = {}
        for err in e.errors():
            key = ".".join(str(p) for p in err["loc"]) or "__root__"
            field_errors.setdefault(key, []).append(err["msg"])
        raise ValidationError(
            f"Invalid options for {model.__name__}",
            field_errors=field_errors,
            cause=e
        ) from e
    except TypeError as e:
        raise ValidationError(f"Options for {model.__name__} must be a mapping", cause=e) from e
