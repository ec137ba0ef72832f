"""Observability for the cache: structured logging and Prometheus metrics."""

from cacheit.observability.logging import get_logger, setup_logging
from cacheit.observability.metrics import MetricsCollector, get_metrics_collector

__all__ = [
    "setup_logging",
    "get_logger",
    "MetricsCollector",
    "get_metrics_collector",
]
