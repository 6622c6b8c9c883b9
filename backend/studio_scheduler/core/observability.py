"""
Observability Infrastructure

structlog configuration for the structure engine: request correlation,
studio/job context on every entry, timing of service operations and a
structured summary of every structure recompute.
"""

import contextvars
import functools
import inspect
import logging
import sys
import time
import uuid
from collections.abc import Callable
from typing import Any, TypeVar

import structlog

from .config import settings

F = TypeVar("F", bound=Callable[..., Any])

correlation_id_var: contextvars.ContextVar[str] = contextvars.ContextVar(
    "correlation_id", default=""
)
studio_id_var: contextvars.ContextVar[str] = contextvars.ContextVar("studio_id", default="")
job_id_var: contextvars.ContextVar[str] = contextvars.ContextVar("job_id", default="")


class SchedulerContextProcessor:
    """Adds correlation, studio and job ids to every log entry that lacks them."""

    def __call__(
        self, logger: Any, name: str, event_dict: dict[str, Any]
    ) -> dict[str, Any]:
        for key, var in (
            ("correlation_id", correlation_id_var),
            ("studio_id", studio_id_var),
            ("job_id", job_id_var),
        ):
            value = var.get("")
            if value:
                event_dict.setdefault(key, value)
        return event_dict


def setup_structured_logging() -> None:
    """Configure structlog; ``LOG_FORMAT`` picks JSON or console rendering."""
    log_level = getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO)

    processors: list[Any] = [
        structlog.contextvars.merge_contextvars,
        SchedulerContextProcessor(),
        structlog.processors.TimeStamper(fmt="ISO"),
        structlog.processors.add_log_level,
    ]
    if settings.LOG_FORMAT == "json":
        processors.extend([structlog.processors.format_exc_info, structlog.processors.JSONRenderer()])
    else:
        processors.append(structlog.dev.ConsoleRenderer(colors=settings.ENVIRONMENT == "local"))

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.make_filtering_bound_logger(log_level),
        logger_factory=structlog.PrintLoggerFactory(),
        cache_logger_on_first_use=True,
    )
    logging.basicConfig(format="%(message)s", stream=sys.stdout, level=log_level)


def get_logger(name: str) -> structlog.BoundLogger:
    return structlog.get_logger(name)


def set_correlation_id(correlation_id: str | None = None) -> str:
    """Set the request correlation id, generating one when absent."""
    correlation_id = correlation_id or str(uuid.uuid4())
    correlation_id_var.set(correlation_id)
    return correlation_id


def get_correlation_id() -> str:
    return correlation_id_var.get("")


def set_studio_id(studio_id: str) -> None:
    studio_id_var.set(studio_id)


def set_job_id(job_id: str) -> None:
    job_id_var.set(job_id)


def log_structure_metrics(
    studio_id: str,
    job_id: str,
    *,
    rows: int,
    tasks: int,
    unclassified: int,
    catalog_available: bool,
    token: int,
    duration_seconds: float,
) -> None:
    """Summary of one structure recompute."""
    get_logger("structure_metrics").info(
        "Structure computed",
        studio_id=studio_id,
        job_id=job_id,
        rows=rows,
        tasks=tasks,
        unclassified=unclassified,
        catalog_available=catalog_available,
        token=token,
        duration_seconds=round(duration_seconds, 6),
    )


def log_error_with_context(
    error: Exception,
    operation: str,
    context: dict[str, Any] | None = None,
    severity: str = "error",
    include_traceback: bool = True,
) -> None:
    """
    Log ``error`` with the failing operation and any domain error details.

    ``severity`` is one of ``critical``, ``error``, ``warning`` or ``info``;
    tracebacks are only attached at error level and above.
    """
    logger = get_logger("error_tracking")

    error_data: dict[str, Any] = {
        "operation": operation,
        "error_type": type(error).__name__,
        "error_message": str(error),
        "severity": severity,
    }
    details = getattr(error, "details", None)
    if details:
        error_data["error_details"] = details
    if context:
        error_data.update(context)

    if severity == "critical":
        logger.critical("Critical error occurred", **error_data, exc_info=include_traceback)
    elif severity == "error":
        logger.error("Error occurred", **error_data, exc_info=include_traceback)
    elif severity == "warning":
        logger.warning("Warning occurred", **error_data)
    else:
        logger.info("Issue occurred", **error_data)


def monitor_performance(operation_type: str) -> Callable[[F], F]:
    """Decorator logging duration and outcome of a sync or async operation."""

    def decorator(func: F) -> F:
        logger = get_logger(func.__module__)

        def finished(start: float, outcome: str, error: Exception | None = None) -> None:
            fields: dict[str, Any] = {
                "operation": operation_type,
                "function": func.__name__,
                "duration_seconds": round(time.perf_counter() - start, 6),
                "outcome": outcome,
            }
            if error is None:
                logger.debug("Operation completed", **fields)
            else:
                logger.info(
                    "Operation failed",
                    **fields,
                    error=str(error),
                    error_type=type(error).__name__,
                )

        if inspect.iscoroutinefunction(func):

            @functools.wraps(func)
            async def async_wrapper(*args: Any, **kwargs: Any) -> Any:
                start = time.perf_counter()
                try:
                    result = await func(*args, **kwargs)
                except Exception as e:
                    finished(start, "error", e)
                    raise
                finished(start, "success")
                return result

            return async_wrapper  # type: ignore[return-value]

        @functools.wraps(func)
        def sync_wrapper(*args: Any, **kwargs: Any) -> Any:
            start = time.perf_counter()
            try:
                result = func(*args, **kwargs)
            except Exception as e:
                finished(start, "error", e)
                raise
            finished(start, "success")
            return result

        return sync_wrapper  # type: ignore[return-value]

    return decorator
