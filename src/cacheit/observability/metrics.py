"""Prometheus metrics for cache activity.

Counters track cache-level mutations, TTL expirations and observer
callbacks that raised.
"""

from typing import Optional

from prometheus_client import Counter, generate_latest

cache_operations_total = Counter(
    "cacheit_operations_total",
    "Total number of mutating cache operations",
    labelnames=["operation"],
)

cache_expirations_total = Counter(
    "cacheit_expirations_total",
    "Total number of cache values cleared by TTL expiry",
)

observer_errors_total = Counter(
    "cacheit_observer_errors_total",
    "Total number of observer callbacks that raised",
    labelnames=["registry"],
)


class MetricsCollector:
    """Collects and exposes Prometheus metrics for the cache.

    Recording can be switched off as a whole, in which case every
    ``record_*`` call is a no-op.
    """

    def __init__(self, enabled: bool = True) -> None:
        self.enabled = enabled

    def record_operation(self, operation: str) -> None:
        """Record a mutating cache operation.

        Args:
            operation: Operation name (set, delete, clear)

        Example:
            >>> collector = get_metrics_collector()
            >>> collector.record_operation("set")
        """
        if self.enabled:
            cache_operations_total.labels(operation=operation).inc()

    def record_expiration(self) -> None:
        """Record a value cleared by its expiry timer."""
        if self.enabled:
            cache_expirations_total.inc()

    def record_observer_error(self, registry: str) -> None:
        """Record an observer callback that raised.

        Args:
            registry: Name of the registry that dispatched the callback
        """
        if self.enabled:
            observer_errors_total.labels(registry=registry).inc()

    def generate_metrics(self) -> bytes:
        """Generate Prometheus metrics in text format.

        Returns:
            Metrics in Prometheus exposition format
        """
        return generate_latest()


_metrics_collector: Optional[MetricsCollector] = None


def get_metrics_collector() -> MetricsCollector:
    """Get the global MetricsCollector instance.

    Returns:
        Singleton MetricsCollector instance
    """
    global _metrics_collector
    if _metrics_collector is None:
        _metrics_collector = MetricsCollector()
    return _metrics_collector
