"""Tests for ExpiryTimer and the APScheduler-backed scheduler."""

import gc
import time
from datetime import datetime, timedelta, timezone

import pytest

from cacheit.errors import InvalidTTLError
from cacheit.expiry import APSchedulerScheduler, ExpiryTimer, get_default_scheduler, validate_ttl
from cacheit.observability.metrics import MetricsCollector, cache_expirations_total
from cacheit.value import CacheValue


def _value(scheduler, ttl_ms: int, initial: object = "v") -> CacheValue:
    return CacheValue(initial, ttl_ms, scheduler=scheduler, metrics=MetricsCollector(enabled=False))


class TestValidateTTL:
    """Tests for validate_ttl."""

    @pytest.mark.parametrize("ttl", [0, 1, 60_000])
    def test_accepts_non_negative_integers(self, ttl: int) -> None:
        assert validate_ttl(ttl) == ttl

    @pytest.mark.parametrize("ttl", [-1, 0.5, None, "5", False])
    def test_rejects_everything_else(self, ttl: object) -> None:
        with pytest.raises(InvalidTTLError) as exc_info:
            validate_ttl(ttl)

        assert exc_info.value.ttl_ms == ttl


class TestExpiryTimer:
    """Tests for one-shot expiry."""

    def test_value_is_cleared_once_ttl_elapses(self, scheduler) -> None:
        value = _value(scheduler, 1000)

        scheduler.advance_ms(999)
        assert value.unwrap_current() == "v"

        scheduler.advance_ms(1)
        assert value.unwrap_current() is None
        assert value.unwrap_previous() is None
        assert value.expiry is not None and value.expiry.fired

    def test_update_does_not_postpone_expiry(self, scheduler) -> None:
        value = _value(scheduler, 1000)

        scheduler.advance_ms(900)
        value.update("newer")
        scheduler.advance_ms(100)

        assert value.unwrap_current() is None

    def test_expiry_notifies_subscribers_with_next(self, scheduler) -> None:
        value = _value(scheduler, 10)
        events = []
        value.subscribe(
            on_next=lambda v: events.append(("next", v.unwrap_current())),
            on_complete=lambda: events.append("complete"),
        )

        scheduler.advance_ms(10)

        assert events == [("next", None)]

    def test_fires_only_once(self, scheduler) -> None:
        value = _value(scheduler, 10)
        events = []
        value.subscribe(on_next=lambda v: events.append("next"))

        scheduler.advance_ms(10)
        value.update("again")
        scheduler.advance_ms(1000)
        value.expiry._fire()  # type: ignore[union-attr]

        assert events == ["next", "next"]
        assert value.unwrap_current() == "again"

    def test_zero_ttl_expires_after_initial_write(self, scheduler) -> None:
        value = _value(scheduler, 0)
        assert value.unwrap_current() == "v"

        scheduler.advance_ms(0)

        assert value.unwrap_current() is None

    def test_cancel_prevents_expiry(self, scheduler) -> None:
        value = _value(scheduler, 100)
        timer = value.expiry
        assert timer is not None

        timer.cancel()
        timer.cancel()
        scheduler.advance_ms(500)

        assert value.unwrap_current() == "v"
        assert not timer.pending
        assert not timer.fired

    def test_cancel_after_fire_is_noop(self, scheduler) -> None:
        value = _value(scheduler, 5)
        scheduler.advance_ms(5)

        value.expiry.cancel()  # type: ignore[union-attr]

        assert value.expiry.fired  # type: ignore[union-attr]

    def test_timer_does_not_keep_value_alive(self, scheduler) -> None:
        value = _value(scheduler, 100)
        timer = value.expiry
        assert timer is not None

        del value
        gc.collect()
        scheduler.advance_ms(100)

        assert timer.fired

    def test_expires_at_reflects_ttl(self, scheduler) -> None:
        ttl = timedelta(milliseconds=2500)
        before_arming = datetime.now(timezone.utc)
        value = _value(scheduler, 2500)
        after_arming = datetime.now(timezone.utc)
        timer = value.expiry
        assert timer is not None

        assert timer.ttl_ms == 2500
        assert scheduler.calls[0].when == pytest.approx(2.5)
        assert before_arming + ttl <= timer.expires_at <= after_arming + ttl
        assert timer.expires_at.tzinfo is not None

    def test_update_does_not_move_expires_at(self, scheduler) -> None:
        value = _value(scheduler, 1000)
        timer = value.expiry
        assert timer is not None
        deadline = timer.expires_at

        value.update("newer")

        assert timer.expires_at == deadline

    def test_expiration_is_recorded_in_metrics(self, scheduler) -> None:
        value = CacheValue("v", 1, scheduler=scheduler, metrics=MetricsCollector(enabled=True))
        before = cache_expirations_total._value.get()  # type: ignore[attr-defined]

        scheduler.advance_ms(1)

        assert value.unwrap_current() is None
        assert cache_expirations_total._value.get() == before + 1  # type: ignore[attr-defined]

    def test_direct_construction(self, scheduler) -> None:
        value: CacheValue = CacheValue("v", metrics=MetricsCollector(enabled=False))

        timer = ExpiryTimer(value, 50, scheduler, metrics=MetricsCollector(enabled=False))
        scheduler.advance_ms(50)

        assert timer.fired
        assert value.unwrap_current() is None


class TestAPSchedulerScheduler:
    """Tests for the APScheduler-backed scheduler."""

    def test_runs_callback_after_delay(self) -> None:
        scheduler = APSchedulerScheduler()
        try:
            value = CacheValue("v", 20, scheduler=scheduler)

            deadline = time.monotonic() + 5
            while value.unwrap_current() is not None and time.monotonic() < deadline:
                time.sleep(0.01)

            assert value.unwrap_current() is None
        finally:
            scheduler.shutdown()

    def test_cancelled_call_does_not_run(self) -> None:
        scheduler = APSchedulerScheduler()
        calls = []
        try:
            call = scheduler.call_later(0.2, lambda: calls.append("ran"))
            call.cancel()
            call.cancel()
            time.sleep(0.4)

            assert calls == []
        finally:
            scheduler.shutdown()

    def test_scheduler_starts_lazily(self) -> None:
        scheduler = APSchedulerScheduler()

        assert not scheduler.scheduler.running
        scheduler.shutdown()

    def test_default_scheduler_is_shared(self) -> None:
        assert get_default_scheduler() is get_default_scheduler()
