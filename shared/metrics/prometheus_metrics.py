"""Prometheus metrics definitions and helpers.

Provides metric definitions for HTTP traffic and entity operations.
"""

import time
from contextlib import contextmanager
from typing import Callable, Iterator

from prometheus_client import (
    Counter,
    Gauge,
    Histogram,
    generate_latest,
    CollectorRegistry,
)


class ResourceMetrics:
    """Entity resource API metrics."""

    def __init__(self, registry: CollectorRegistry) -> None:
        """Initialize resource metrics.

        Args:
            registry: Prometheus registry to use
        """
        self.registry = registry

        # HTTP requests
        self.http_requests_total = Counter(
            "http_requests_total",
            "Total HTTP requests",
            ["method", "endpoint", "status"],
            registry=registry,
        )

        self.http_request_duration_seconds = Histogram(
            "http_request_duration_seconds",
            "HTTP request duration in seconds",
            ["method", "endpoint"],
            registry=registry,
        )

        self.http_requests_in_progress = Gauge(
            "http_requests_in_progress",
            "HTTP requests currently in progress",
            ["method", "endpoint"],
            registry=registry,
        )

        # Entity operations
        self.entity_operations_total = Counter(
            "entity_operations_total",
            "Total entity operations handled by resources",
            ["entity", "operation", "outcome"],
            registry=registry,
        )

        self.entity_operation_duration_seconds = Histogram(
            "entity_operation_duration_seconds",
            "Time spent in entity operations, including the store call",
            ["entity", "operation"],
            buckets=[0.001, 0.005, 0.01, 0.05, 0.1, 0.5, 1.0, 5.0],
            registry=registry,
        )

    @contextmanager
    def track_operation(self, entity: str, operation: str) -> Iterator[None]:
        """Count and time one entity operation.

        Outcome is ``success`` unless the block raises, then ``error``.
        """
        start = time.perf_counter()
        outcome = "error"
        try:
            yield
            outcome = "success"
        finally:
            self.entity_operations_total.labels(
                entity=entity, operation=operation, outcome=outcome
            ).inc()
            self.entity_operation_duration_seconds.labels(
                entity=entity, operation=operation
            ).observe(time.perf_counter() - start)


def setup_metrics() -> ResourceMetrics:
    """Create metrics on a fresh registry.

    Returns:
        ResourceMetrics bound to its own CollectorRegistry
    """
    return ResourceMetrics(CollectorRegistry())


def get_metrics_handler(metrics: ResourceMetrics) -> Callable[[], bytes]:
    """Get metrics handler for HTTP endpoint.

    Returns:
        Function that generates Prometheus metrics output
    """

    def metrics_handler() -> bytes:
        return generate_latest(metrics.registry)

    return metrics_handler
