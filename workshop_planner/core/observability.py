"""
Observability Infrastructure

Structured logging and scheduler metrics for the day planner. Logging goes
through structlog with correlation tracking; scheduler operations are counted
and timed with Prometheus metrics.
"""

import contextlib
import contextvars
import logging
import sys
import time
import uuid
from collections.abc import Iterator
from typing import Any

import structlog
from prometheus_client import Counter, Histogram

from .config import settings

# Context variables for correlation tracking
correlation_id_var: contextvars.ContextVar[str] = contextvars.ContextVar(
    "correlation_id", default=""
)
user_id_var: contextvars.ContextVar[str] = contextvars.ContextVar("user_id", default="")

SCHEDULER_OPERATIONS = Counter(
    "workshop_scheduler_operations_total",
    "Total scheduler operations",
    ["operation_type", "status"],
)

SCHEDULER_DURATION = Histogram(
    "workshop_scheduler_operation_duration_seconds",
    "Scheduler operation duration",
    ["operation_type"],
)


class CorrelationIdProcessor:
    """Structlog processor to add correlation ID to all log entries."""

    def __call__(
        self, logger: Any, name: str, event_dict: dict[str, Any]
    ) -> dict[str, Any]:
        correlation_id = correlation_id_var.get("")
        user_id = user_id_var.get("")

        if correlation_id:
            event_dict["correlation_id"] = correlation_id
        if user_id:
            event_dict["user_id"] = user_id

        return event_dict


def setup_structured_logging() -> None:
    """Configure structured logging with JSON or console output."""
    log_level = getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO)

    processors: list[Any] = [
        structlog.contextvars.merge_contextvars,
        CorrelationIdProcessor(),
        structlog.processors.TimeStamper(fmt="ISO"),
        structlog.processors.add_log_level,
        structlog.stdlib.add_logger_name,
    ]

    if settings.LOG_FORMAT == "json":
        processors.append(structlog.processors.JSONRenderer())
    else:
        processors.append(
            structlog.dev.ConsoleRenderer(colors=settings.ENVIRONMENT == "local")
        )

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.make_filtering_bound_logger(log_level),
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )

    logging.basicConfig(
        format="%(message)s",
        stream=sys.stdout,
        level=log_level,
    )


def get_logger(name: str) -> structlog.BoundLogger:
    """Get a structured logger instance."""
    return structlog.get_logger(name)


def set_correlation_id(correlation_id: str | None = None) -> str:
    """Set correlation ID for request tracking."""
    if correlation_id is None:
        correlation_id = str(uuid.uuid4())

    correlation_id_var.set(correlation_id)
    return correlation_id


def set_user_id(user_id: str) -> None:
    """Set user ID for request tracking."""
    user_id_var.set(user_id)


def get_correlation_id() -> str:
    """Get current correlation ID."""
    return correlation_id_var.get("")


@contextlib.contextmanager
def track_scheduler_operation(operation_type: str) -> Iterator[None]:
    """Count and time one scheduler operation.

    The status label is ``success`` when the block completes and the name of
    the raised exception class otherwise; the exception is re-raised.
    """
    started = time.perf_counter()
    status = "success"
    try:
        yield
    except Exception as exc:
        status = type(exc).__name__
        raise
    finally:
        if settings.ENABLE_METRICS:
            SCHEDULER_OPERATIONS.labels(
                operation_type=operation_type, status=status
            ).inc()
            SCHEDULER_DURATION.labels(operation_type=operation_type).observe(
                time.perf_counter() - started
            )
