"""Metrics module using Prometheus."""

from .prometheus_metrics import (
    ResourceMetrics,
    setup_metrics,
    get_metrics_handler,
)

__all__ = [
    "ResourceMetrics",
    "setup_metrics",
    "get_metrics_handler",
]
