"""TTL expiry for cache values.

An ExpiryTimer is a one-shot scheduled callback that clears a CacheValue
once its time-to-live has elapsed. Scheduling is delegated to a Scheduler so
the clock can be swapped out; the default implementation runs jobs on an
APScheduler BackgroundScheduler.
"""

import threading
import weakref
from collections.abc import Callable
from datetime import datetime, timedelta, timezone
from typing import TYPE_CHECKING, Any, Optional, Protocol

from apscheduler.jobstores.base import JobLookupError  # type: ignore[import-untyped]
from apscheduler.schedulers.background import BackgroundScheduler  # type: ignore[import-untyped]

from cacheit.errors import InvalidTTLError
from cacheit.observability.logging import get_logger
from cacheit.observability.metrics import MetricsCollector, get_metrics_collector

if TYPE_CHECKING:
    from cacheit.value import CacheValue

logger = get_logger(__name__)


class ScheduledCall(Protocol):
    """A pending callback returned by Scheduler.call_later."""

    def cancel(self) -> None:
        """Prevent the callback from running. Safe to call more than once."""
        ...


class Scheduler(Protocol):
    """Runs a callback once after a delay."""

    def call_later(self, delay: float, callback: Callable[[], None]) -> ScheduledCall:
        """Schedule ``callback`` to run once, ``delay`` seconds from now.

        Args:
            delay: Delay in seconds (0 runs as soon as possible)
            callback: Zero-argument callable

        Returns:
            Handle that can cancel the pending call
        """
        ...


class _APSchedulerCall:
    __slots__ = ("_job",)

    def __init__(self, job: Any) -> None:
        self._job = job

    def cancel(self) -> None:
        try:
            self._job.remove()
        except JobLookupError:
            # already ran or already removed
            pass


class APSchedulerScheduler:
    """Scheduler backed by an APScheduler BackgroundScheduler.

    The underlying scheduler is started lazily on the first call_later(),
    so creating one costs nothing until a TTL is actually used. Jobs use a
    one-shot ``date`` trigger and are never dropped for running late.

    Example:
        >>> scheduler = APSchedulerScheduler()
        >>> call = scheduler.call_later(1.5, lambda: print("expired"))
        >>> call.cancel()
        >>> scheduler.shutdown()
    """

    def __init__(self, scheduler: Optional[BackgroundScheduler] = None) -> None:
        """Initialize the scheduler.

        Args:
            scheduler: Pre-configured APScheduler scheduler (a daemon
                BackgroundScheduler in UTC is created if omitted)
        """
        self.scheduler = scheduler or BackgroundScheduler(timezone="UTC", daemon=True)
        self._start_lock = threading.Lock()

    def call_later(self, delay: float, callback: Callable[[], None]) -> ScheduledCall:
        self._ensure_started()
        run_date = datetime.now(timezone.utc) + timedelta(seconds=delay)
        job = self.scheduler.add_job(
            callback,
            trigger="date",
            run_date=run_date,
            misfire_grace_time=None,
        )
        return _APSchedulerCall(job)

    def shutdown(self, wait: bool = False) -> None:
        """Stop the scheduler; pending expiries are dropped."""
        with self._start_lock:
            if self.scheduler.running:
                self.scheduler.shutdown(wait=wait)
                logger.debug("expiry_scheduler_stopped")

    def _ensure_started(self) -> None:
        with self._start_lock:
            if not self.scheduler.running:
                self.scheduler.start()
                logger.debug("expiry_scheduler_started")


_default_scheduler: Optional[APSchedulerScheduler] = None
_default_scheduler_lock = threading.Lock()


def get_default_scheduler() -> APSchedulerScheduler:
    """Return the process-wide scheduler used when none is injected."""
    global _default_scheduler
    with _default_scheduler_lock:
        if _default_scheduler is None:
            _default_scheduler = APSchedulerScheduler()
        return _default_scheduler


def validate_ttl(ttl_ms: Any) -> int:
    """Check a TTL is a non-negative integer number of milliseconds.

    Raises:
        InvalidTTLError: If the TTL is negative or not an integer
    """
    if isinstance(ttl_ms, bool) or not isinstance(ttl_ms, int) or ttl_ms < 0:
        raise InvalidTTLError(ttl_ms)
    return ttl_ms


class ExpiryTimer:
    """One-shot timer that clears a CacheValue after its TTL.

    The timer only keeps a weak reference to its value, so a pending expiry
    never keeps a dropped value alive. The deadline is fixed when the timer
    is armed; writes to the value do not postpone it.

    Attributes:
        ttl_ms: Time-to-live in milliseconds
        expires_at: UTC deadline computed when the timer was armed
    """

    def __init__(
        self,
        target: "CacheValue[Any]",
        ttl_ms: int,
        scheduler: Scheduler,
        metrics: Optional[MetricsCollector] = None,
    ) -> None:
        """Arm the timer.

        Args:
            target: Value to clear when the TTL elapses
            ttl_ms: Time-to-live in milliseconds
            scheduler: Scheduler that runs the expiry callback
            metrics: Metrics collector (defaults to the global collector)

        Raises:
            InvalidTTLError: If ttl_ms is negative or not an integer
        """
        self.ttl_ms = validate_ttl(ttl_ms)
        self.expires_at = datetime.now(timezone.utc) + timedelta(milliseconds=ttl_ms)
        self._target = weakref.ref(target)
        self._metrics = metrics or get_metrics_collector()
        self._lock = threading.Lock()
        self._state = "pending"
        self._call = scheduler.call_later(ttl_ms / 1000, self._fire)

    @property
    def pending(self) -> bool:
        """Whether the timer has neither fired nor been cancelled."""
        return self._state == "pending"

    @property
    def fired(self) -> bool:
        return self._state == "fired"

    def cancel(self) -> None:
        """Cancel the pending expiry. No-op once fired or cancelled."""
        with self._lock:
            if self._state != "pending":
                return
            self._state = "cancelled"
        self._call.cancel()

    def _fire(self) -> None:
        with self._lock:
            if self._state != "pending":
                return
            self._state = "fired"

        target = self._target()
        if target is None:
            logger.debug("expiry_target_gone", ttl_ms=self.ttl_ms)
            return

        target.clear()
        self._metrics.record_expiration()
        logger.debug("value_expired", ttl_ms=self.ttl_ms)
