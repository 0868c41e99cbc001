"""Structured logging module using structlog."""

from .structured_logger import (
    get_logger,
    configure_logging,
    bind_context,
    clear_context,
    OperationLogger,
)

__all__ = [
    "get_logger",
    "configure_logging",
    "bind_context",
    "clear_context",
    "OperationLogger",
]
