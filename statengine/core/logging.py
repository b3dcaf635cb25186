# Statistical Engine - Structured Logging
# JSON/text formatting, analysis context propagation, and timing of procedures

from __future__ import annotations

import json
import logging
import os
import sys
import time
import traceback
from contextvars import ContextVar
from datetime import datetime, timezone
from functools import wraps
from typing import Any, Callable, Optional, ParamSpec, TypeVar
from uuid import uuid4

from pydantic import BaseModel

from statengine.core.exceptions import StatisticalEngineException

P = ParamSpec("P")
T = TypeVar("T")

# Context variables for analysis correlation (thread-safe, copied into to_thread workers)
analysis_id_ctx: ContextVar[Optional[str]] = ContextVar("analysis_id", default=None)
dataset_id_ctx: ContextVar[Optional[str]] = ContextVar("dataset_id", default=None)


class LogContext(BaseModel):
    """Structured log context for correlation and debugging."""

    analysis_id: Optional[str] = None
    dataset_id: Optional[str] = None
    component: Optional[str] = None
    operation: Optional[str] = None
    duration_ms: Optional[float] = None
    extra: dict[str, Any] = {}

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary, excluding None values."""
        return {k: v for k, v in self.model_dump().items() if v is not None and v != {}}


class JSONFormatter(logging.Formatter):
    """JSON log formatter for log aggregation pipelines."""

    def format(self, record: logging.LogRecord) -> str:
        log_data = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "module": record.module,
            "function": record.funcName,
            "line": record.lineno,
        }

        if analysis_id := analysis_id_ctx.get():
            log_data["analysis_id"] = analysis_id
        if dataset_id := dataset_id_ctx.get():
            log_data["dataset_id"] = dataset_id

        if isinstance(getattr(record, "context", None), LogContext):
            log_data["context"] = record.context.to_dict()

        if getattr(record, "extra_data", None):
            log_data["extra"] = record.extra_data

        if record.exc_info:
            log_data["exception"] = {
                "type": record.exc_info[0].__name__ if record.exc_info[0] else None,
                "message": str(record.exc_info[1]) if record.exc_info[1] else None,
                "traceback": traceback.format_exception(*record.exc_info) if record.exc_info[0] else None
            }

        return json.dumps(log_data, default=str)


class TextFormatter(logging.Formatter):
    """Human-readable text formatter for development."""

    COLORS = {
        "DEBUG": "\033[36m",
        "INFO": "\033[32m",
        "WARNING": "\033[33m",
        "ERROR": "\033[31m",
        "CRITICAL": "\033[35m",
        "RESET": "\033[0m"
    }

    def format(self, record: logging.LogRecord) -> str:
        color = self.COLORS.get(record.levelname, self.COLORS["RESET"])
        reset = self.COLORS["RESET"]

        timestamp = datetime.now(timezone.utc).strftime("%Y-%m-%d %H:%M:%S.%f")[:-3]

        context_parts = []
        if analysis_id := analysis_id_ctx.get():
            context_parts.append(f"analysis:{analysis_id[:8]}")
        if dataset_id := dataset_id_ctx.get():
            context_parts.append(f"dataset:{dataset_id}")
        context = getattr(record, "context", None)
        if isinstance(context, LogContext) and context.duration_ms is not None:
            context_parts.append(f"{context.duration_ms}ms")

        context_str = f" [{' '.join(context_parts)}]" if context_parts else ""

        formatted = (
            f"{timestamp} | "
            f"{color}{record.levelname:8}{reset} | "
            f"{record.name}"
            f"{context_str} | "
            f"{record.getMessage()}"
        )

        extra_data = getattr(record, "extra_data", None)
        if extra_data:
            formatted += " | " + " ".join(f"{k}={v}" for k, v in extra_data.items())

        if record.exc_info:
            formatted += "\n" + "".join(traceback.format_exception(*record.exc_info))

        return formatted


class StructuredLogger:
    """
    Structured logger with context propagation.

    Facade over a stdlib logger: every call may carry a LogContext and
    arbitrary keyword fields which the formatters render.
    """

    def __init__(
        self,
        name: str,
        level: int = logging.INFO,
        use_json: bool = False
    ) -> None:
        self._logger = logging.getLogger(name)
        self._logger.setLevel(level)
        self._logger.propagate = False

        self._logger.handlers.clear()

        handler = logging.StreamHandler(sys.stdout)
        handler.setFormatter(JSONFormatter() if use_json else TextFormatter())
        self._logger.addHandler(handler)

    @property
    def name(self) -> str:
        return self._logger.name

    def is_enabled_for(self, level: int) -> bool:
        return self._logger.isEnabledFor(level)

    def _log(
        self,
        level: int,
        message: str,
        context: Optional[LogContext] = None,
        **extra: Any
    ) -> None:
        if not self._logger.isEnabledFor(level):
            return
        record = self._logger.makeRecord(
            name=self._logger.name,
            level=level,
            fn="",
            lno=0,
            msg=message,
            args=(),
            exc_info=None
        )

        if context:
            record.context = context
        if extra:
            record.extra_data = extra

        self._logger.handle(record)

    def debug(self, message: str, context: Optional[LogContext] = None, **extra: Any) -> None:
        self._log(logging.DEBUG, message, context, **extra)

    def info(self, message: str, context: Optional[LogContext] = None, **extra: Any) -> None:
        self._log(logging.INFO, message, context, **extra)

    def warning(self, message: str, context: Optional[LogContext] = None, **extra: Any) -> None:
        self._log(logging.WARNING, message, context, **extra)

    def error(
        self,
        message: str,
        context: Optional[LogContext] = None,
        exc_info: bool = False,
        **extra: Any
    ) -> None:
        if exc_info:
            self._logger.error(message, exc_info=True, extra={"context": context, "extra_data": extra})
        else:
            self._log(logging.ERROR, message, context, **extra)

    def exception(self, message: str, context: Optional[LogContext] = None, **extra: Any) -> None:
        """Log exception with full traceback."""
        self._logger.exception(message, extra={"context": context, "extra_data": extra})


def log_execution_time(
    logger: Optional[StructuredLogger] = None,
    operation_name: Optional[str] = None,
    log_args: bool = False,
    warn_threshold_ms: float = 1000.0
) -> Callable[[Callable[P, T]], Callable[P, T]]:
    """
    Decorator logging the duration of a procedure call.

    Engine errors are logged at warning level without a traceback; any other
    exception is logged at error level with one.

    Args:
        logger: Logger instance (created from the function's module if None)
        operation_name: Custom operation name (function name if None)
        log_args: Whether to log truncated call arguments
        warn_threshold_ms: Duration above which completion logs at warning level
    """
    def decorator(func: Callable[P, T]) -> Callable[P, T]:
        _logger = logger or get_logger(func.__module__)
        _operation = operation_name or func.__name__

        @wraps(func)
        def wrapper(*args: P.args, **kwargs: P.kwargs) -> T:
            start_time = time.perf_counter()

            context = LogContext(
                operation=_operation,
                analysis_id=analysis_id_ctx.get(),
                dataset_id=dataset_id_ctx.get()
            )

            extra: dict[str, Any] = {}
            if log_args:
                extra["args"] = str(args)[:200]
                extra["kwargs"] = str(kwargs)[:200]

            _logger.debug(f"Starting {_operation}", context=context, **extra)

            try:
                result = func(*args, **kwargs)
            except StatisticalEngineException as e:
                context.duration_ms = round((time.perf_counter() - start_time) * 1000, 2)
                _logger.warning(
                    f"Rejected {_operation}: {e}",
                    context=context,
                    error_code=e.error_code.value
                )
                raise
            except Exception as e:
                context.duration_ms = round((time.perf_counter() - start_time) * 1000, 2)
                _logger.error(
                    f"Failed {_operation} after {context.duration_ms:.2f}ms: {e}",
                    context=context,
                    exc_info=True
                )
                raise

            duration_ms = (time.perf_counter() - start_time) * 1000
            context.duration_ms = round(duration_ms, 2)

            log_method = _logger.warning if duration_ms > warn_threshold_ms else _logger.debug
            log_method(f"Completed {_operation} in {duration_ms:.2f}ms", context=context, **extra)

            return result

        return wrapper
    return decorator


def set_analysis_context(
    analysis_id: Optional[str] = None,
    dataset_id: Optional[str] = None
) -> None:
    """Set correlation ids for all logs in the current context."""
    if analysis_id:
        analysis_id_ctx.set(analysis_id)
    if dataset_id:
        dataset_id_ctx.set(dataset_id)


def clear_analysis_context() -> None:
    """Clear correlation ids after an analysis completes."""
    analysis_id_ctx.set(None)
    dataset_id_ctx.set(None)


def generate_analysis_id() -> str:
    """Generate unique analysis ID for correlation."""
    return str(uuid4())


def get_logger(
    name: str,
    use_json: Optional[bool] = None,
    level: Optional[int] = None
) -> StructuredLogger:
    """
    Factory function for creating structured loggers.

    Args:
        name: Logger name (typically __name__)
        use_json: Use JSON format (read from STATENGINE_LOG_FORMAT if None)
        level: Logging level (read from STATENGINE_LOG_LEVEL if None)

    Returns:
        Configured StructuredLogger instance
    """
    if use_json is None:
        use_json = os.getenv("STATENGINE_LOG_FORMAT", "text").lower() == "json"
    if level is None:
        level_name = os.getenv("STATENGINE_LOG_LEVEL", "INFO").upper()
        level = logging.getLevelName(level_name)
        if not isinstance(level, int):
            level = logging.INFO

    return StructuredLogger(name=name, level=level, use_json=use_json)
