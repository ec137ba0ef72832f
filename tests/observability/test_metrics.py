"""Tests for Prometheus metrics collection."""

from cacheit.observability.metrics import (
    MetricsCollector,
    cache_expirations_total,
    cache_operations_total,
    get_metrics_collector,
    observer_errors_total,
)


class TestMetricsCollector:
    """Tests for MetricsCollector class."""

    def test_get_metrics_collector_returns_singleton(self) -> None:
        """get_metrics_collector should return same instance each time."""
        assert get_metrics_collector() is get_metrics_collector()

    def test_record_operation_increments_counter(self) -> None:
        collector = MetricsCollector()
        before = cache_operations_total.labels(operation="set")._value.get()  # type: ignore[attr-defined]

        collector.record_operation("set")

        after = cache_operations_total.labels(operation="set")._value.get()  # type: ignore[attr-defined]
        assert after == before + 1

    def test_record_expiration_increments_counter(self) -> None:
        collector = MetricsCollector()
        before = cache_expirations_total._value.get()  # type: ignore[attr-defined]

        collector.record_expiration()

        assert cache_expirations_total._value.get() == before + 1  # type: ignore[attr-defined]

    def test_record_observer_error_increments_counter(self) -> None:
        collector = MetricsCollector()
        before = observer_errors_total.labels(registry="cache")._value.get()  # type: ignore[attr-defined]

        collector.record_observer_error("cache")

        after = observer_errors_total.labels(registry="cache")._value.get()  # type: ignore[attr-defined]
        assert after == before + 1

    def test_disabled_collector_records_nothing(self) -> None:
        collector = MetricsCollector(enabled=False)
        before = cache_expirations_total._value.get()  # type: ignore[attr-defined]

        collector.record_expiration()
        collector.record_operation("set")

        assert cache_expirations_total._value.get() == before  # type: ignore[attr-defined]

    def test_generate_metrics_exposes_cache_counters(self) -> None:
        collector = MetricsCollector()
        collector.record_operation("clear")

        text = collector.generate_metrics().decode("utf-8")

        assert "cacheit_operations_total" in text
        assert "cacheit_expirations_total" in text
