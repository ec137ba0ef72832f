"""Cache values: current/previous state with copy isolation.

A CacheValue is the per-key container held by KeyedCache. It keeps the
current value and the one it replaced, copies composite values on the way
in and on the way out so callers never alias stored state, and notifies its
own subscribers on every change.
"""

import copy
import threading
from collections.abc import Callable
from dataclasses import dataclass
from datetime import date, datetime, time, timedelta
from decimal import Decimal
from enum import Enum
from fractions import Fraction
from typing import Any, Generic, Optional, TypeVar
from uuid import UUID

from pydantic import BaseModel

from cacheit.expiry import ExpiryTimer, Scheduler, get_default_scheduler, validate_ttl
from cacheit.observability.metrics import MetricsCollector, get_metrics_collector
from cacheit.observers import ObserverRegistry, Subscription

T = TypeVar("T")

# Values of these types cannot be mutated in place, so they are shared as is.
_ATOMIC_TYPES = (
    type(None),
    bool,
    int,
    float,
    complex,
    str,
    bytes,
    Decimal,
    Fraction,
    Enum,
    UUID,
    date,
    datetime,
    time,
    timedelta,
    range,
)

_MISSING: Any = object()


def isolate(value: T) -> T:
    """Return a copy of ``value`` that shares no mutable state with it.

    Immutable scalars are returned unchanged. Pydantic models are copied
    with ``model_copy(deep=True)``; anything else goes through deepcopy.
    """
    if isinstance(value, _ATOMIC_TYPES):
        return value
    if isinstance(value, BaseModel):
        return value.model_copy(deep=True)
    return copy.deepcopy(value)


@dataclass(frozen=True)
class ValueHandlers(Generic[T]):
    """Handlers registered by CacheValue.subscribe.

    Attributes:
        on_next: Called with the CacheValue after every update or clear
        on_complete: Called once when the subscription ends
    """

    on_next: Optional[Callable[["CacheValue[T]"], None]] = None
    on_complete: Optional[Callable[[], None]] = None


def _complete(handlers: ValueHandlers[Any]) -> None:
    if handlers.on_complete is not None:
        handlers.on_complete()


class CacheValue(Generic[T]):
    """A subscribable value holding its current and previous state.

    Reads always return copies, so mutating what you get back never changes
    what is stored, and mutating what you stored never changes what you read.
    Presence is ``is not None``: ``0``, ``""`` and ``False`` are present values.

    Example:
        >>> value = CacheValue[dict]()
        >>> value.update({"count": 1})
        >>> value.update({"count": 2})
        >>> value.unwrap_previous()
        {'count': 1}
        >>> value.unwrap_current(on_present=print, on_absent=lambda: print("gone"))
        {'count': 2}
    """

    def __init__(
        self,
        value: Optional[T] = _MISSING,
        ttl_ms: Optional[int] = None,
        *,
        scheduler: Optional[Scheduler] = None,
        metrics: Optional[MetricsCollector] = None,
    ) -> None:
        """Create a value, optionally writing an initial value and arming a TTL.

        The initial value is written before the expiry timer is armed, so a
        zero TTL still observes the write before clearing it.

        Args:
            value: Initial value written through update() (omit for an empty value)
            ttl_ms: Optional time-to-live in milliseconds, fixed at creation
            scheduler: Scheduler for the expiry timer (process default if omitted)
            metrics: Metrics collector (defaults to the global collector)

        Raises:
            InvalidTTLError: If ttl_ms is negative or not an integer
        """
        if ttl_ms is not None:
            validate_ttl(ttl_ms)

        self._lock = threading.RLock()
        self._current: Optional[T] = None
        self._previous: Optional[T] = None
        self._metrics = metrics or get_metrics_collector()
        self._subscribers: ObserverRegistry[ValueHandlers[T]] = ObserverRegistry(
            "value", on_cancel=_complete, metrics=self._metrics
        )
        self._discarded = False
        self._expiry: Optional[ExpiryTimer] = None

        if value is not _MISSING:
            self.update(value)

        if ttl_ms is not None:
            self._expiry = ExpiryTimer(
                self,
                ttl_ms,
                scheduler or get_default_scheduler(),
                metrics=self._metrics,
            )

    def __repr__(self) -> str:
        with self._lock:
            return f"CacheValue(current={self._current!r}, previous={self._previous!r})"

    @property
    def expiry(self) -> Optional[ExpiryTimer]:
        """The expiry timer armed at creation, if a TTL was given."""
        return self._expiry

    @property
    def subscriber_count(self) -> int:
        return len(self._subscribers)

    @property
    def discarded(self) -> bool:
        """Whether the owning cache has dropped this value."""
        return self._discarded

    def update(self, value: Optional[T]) -> None:
        """Replace the current value, keeping the old one as previous.

        Args:
            value: New value; None explicitly unsets the current value
        """
        with self._lock:
            # _current is never handed out, so it moves to _previous uncopied
            self._previous = self._current
            self._current = isolate(value)
        self._notify_next()

    def unwrap_current(
        self,
        on_present: Optional[Callable[[T], None]] = None,
        on_absent: Optional[Callable[[], None]] = None,
    ) -> Optional[T]:
        """Read the current value.

        Without handlers, returns a copy of the current value (or None).
        With handlers, calls ``on_present(copy)`` or ``on_absent()`` and
        returns None.
        """
        with self._lock:
            value = isolate(self._current)
        return _unwrap(value, on_present, on_absent)

    def unwrap_previous(
        self,
        on_present: Optional[Callable[[T], None]] = None,
        on_absent: Optional[Callable[[], None]] = None,
    ) -> Optional[T]:
        """Read the previous value; same call shapes as unwrap_current()."""
        with self._lock:
            value = isolate(self._previous)
        return _unwrap(value, on_present, on_absent)

    def clear(self) -> None:
        """Remove both current and previous values and notify subscribers."""
        with self._lock:
            self._current = None
            self._previous = None
        self._notify_next()

    def subscribe(
        self,
        on_next: Optional[Callable[["CacheValue[T]"], None]] = None,
        on_complete: Optional[Callable[[], None]] = None,
    ) -> Subscription:
        """Subscribe to changes of this value.

        Args:
            on_next: Called with this CacheValue after every update or clear
            on_complete: Called once when the subscription is cancelled

        Returns:
            Subscription; unsubscribe() runs on_complete and removes the handlers
        """
        return self._subscribers.subscribe(ValueHandlers(on_next, on_complete))

    def unsubscribe_all(self) -> None:
        """Complete and remove every subscriber, in subscription order.

        Subscribers are removed before any on_complete runs, so an update made
        from on_complete reaches none of them.
        """
        self._subscribers.unsubscribe_all()

    def discard(self, complete_subscribers: bool = False) -> None:
        """Tear the value down after its cache entry was removed.

        Cancels a pending expiry and drops all subscribers. Safe to call more
        than once.

        Args:
            complete_subscribers: Run each subscriber's on_complete before dropping it
        """
        self._discarded = True
        if self._expiry is not None:
            self._expiry.cancel()
        if complete_subscribers:
            self._subscribers.unsubscribe_all()
        else:
            self._subscribers.clear()

    def _notify_next(self) -> None:
        self._subscribers.notify(self._dispatch_next)

    def _dispatch_next(self, handlers: ValueHandlers[T]) -> None:
        if handlers.on_next is not None:
            handlers.on_next(self)


def _unwrap(
    value: Optional[T],
    on_present: Optional[Callable[[T], None]],
    on_absent: Optional[Callable[[], None]],
) -> Optional[T]:
    if on_present is None and on_absent is None:
        return value

    if value is not None:
        if on_present is not None:
            on_present(value)
    elif on_absent is not None:
        on_absent()
    return None
