"""Structured logging configuration using structlog.

Provides JSON-formatted logs with correlation IDs, timestamps, and context,
plus an optional wrapper that logs the lifecycle of entity operations.
"""

import logging
import sys
import time
from contextlib import contextmanager
from typing import Any, Iterator, Optional

import structlog
from structlog.types import EventDict, Processor


_app_context: dict = {"app": "entity-resource-api", "environment": "production"}


def add_app_context(logger: logging.Logger, method_name: str, event_dict: EventDict) -> EventDict:
    """Add application context to log entries.

    Args:
        logger: The logger instance
        method_name: The logging method name
        event_dict: The event dictionary

    Returns:
        Updated event dictionary with application context
    """
    for key, value in _app_context.items():
        event_dict.setdefault(key, value)
    return event_dict


def configure_logging(
    log_level: str = "INFO",
    json_logs: bool = True,
    service_name: Optional[str] = None,
    environment: Optional[str] = None,
) -> None:
    """Configure structured logging for the application.

    Args:
        log_level: Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        json_logs: Whether to output logs in JSON format
        service_name: Name of the service for log tagging
        environment: Deployment environment added to every entry
    """
    if environment:
        _app_context["environment"] = environment

    processors: list[Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
        add_app_context,
    ]

    if json_logs:
        processors.append(structlog.processors.JSONRenderer())
    else:
        processors.append(structlog.dev.ConsoleRenderer())

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )

    # Configure standard logging
    logging.basicConfig(
        format="%(message)s",
        stream=sys.stdout,
        level=getattr(logging, log_level.upper()),
    )

    # Set service name if provided
    if service_name:
        structlog.contextvars.bind_contextvars(service=service_name)


def get_logger(name: str) -> structlog.stdlib.BoundLogger:
    """Get a structured logger instance.

    Args:
        name: Logger name (typically __name__)

    Returns:
        Configured structlog logger
    """
    return structlog.get_logger(name)


def bind_context(**kwargs: Any) -> None:
    """Bind context variables to all subsequent log entries in this context.

    Args:
        **kwargs: Context key-value pairs to bind
    """
    structlog.contextvars.bind_contextvars(**kwargs)


def clear_context() -> None:
    """Clear all context variables."""
    structlog.contextvars.clear_contextvars()


class OperationLogger:
    """Logs start, completion and failure of named operations.

    Events are named ``<operation>_started``, ``<operation>_completed`` and
    ``<operation>_failed``; completion and failure carry ``duration_ms``.
    Exceptions are logged and re-raised unchanged.
    """

    def __init__(self, logger: Optional[structlog.stdlib.BoundLogger] = None):
        self.logger = logger or get_logger("operations")

    @contextmanager
    def operation(self, name: str, **context: Any) -> Iterator[None]:
        start = time.perf_counter()
        self.logger.debug(f"{name}_started", **context)

        try:
            yield
        except Exception as e:
            self.logger.warning(
                f"{name}_failed",
                error=str(e),
                error_type=type(e).__name__,
                duration_ms=round((time.perf_counter() - start) * 1000, 3),
                **context
            )
            raise

        self.logger.info(
            f"{name}_completed",
            duration_ms=round((time.perf_counter() - start) * 1000, 3),
            **context
        )
