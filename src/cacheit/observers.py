"""Publish/subscribe primitive shared by the cache and its values.

ObserverRegistry is parameterized by handler shape: KeyedCache registers bare
``Callable[[], None]`` handlers, CacheValue registers ValueHandlers pairs.
The registry itself only knows how to store handlers, hand them to a dispatch
function in subscription order, and run an optional completion hook when a
handler is cancelled.
"""

from collections.abc import Callable
from typing import Generic, Optional, TypeVar

from cacheit.observability.logging import get_logger
from cacheit.observability.metrics import MetricsCollector, get_metrics_collector

logger = get_logger(__name__)

H = TypeVar("H")


class Subscription:
    """Handle returned by ObserverRegistry.subscribe.

    Calling unsubscribe() more than once is safe; only the first call has
    an effect.
    """

    __slots__ = ("_cancel", "_closed")

    def __init__(self, cancel: Callable[[], None]) -> None:
        self._cancel = cancel
        self._closed = False

    @property
    def closed(self) -> bool:
        """Whether unsubscribe() has already been called."""
        return self._closed

    def unsubscribe(self) -> None:
        """Remove the handler from its registry."""
        if self._closed:
            return
        self._closed = True
        self._cancel()


class ObserverRegistry(Generic[H]):
    """Ordered set of observer handlers.

    Attributes:
        name: Registry name used in logs and metrics ("cache" or "value")
    """

    def __init__(
        self,
        name: str,
        on_cancel: Optional[Callable[[H], None]] = None,
        metrics: Optional[MetricsCollector] = None,
    ) -> None:
        """Initialize an empty registry.

        Args:
            name: Registry name used in logs and metrics
            on_cancel: Completion hook run once for a handler when it is
                cancelled individually or by unsubscribe_all()
            metrics: Metrics collector (defaults to the global collector)
        """
        self.name = name
        self._on_cancel = on_cancel
        self._metrics = metrics or get_metrics_collector()
        # token -> handler; dict order is notification order
        self._subscribers: dict[object, H] = {}

    def __len__(self) -> int:
        return len(self._subscribers)

    def subscribe(self, handler: H) -> Subscription:
        """Register a handler.

        Args:
            handler: Handler to notify on every event

        Returns:
            Subscription whose unsubscribe() removes exactly this handler
        """
        token = object()
        self._subscribers[token] = handler
        return Subscription(lambda: self._cancel(token))

    def unsubscribe_all(self) -> None:
        """Remove every handler, running the completion hook for each in order.

        The registry is emptied before the first hook runs, so hooks see no
        subscribers and cannot fire twice.
        """
        handlers = list(self._subscribers.values())
        self._subscribers.clear()
        if self._on_cancel is None:
            return
        for handler in handlers:
            self._invoke(self._on_cancel, handler)

    def clear(self) -> None:
        """Drop every handler without running the completion hook."""
        self._subscribers.clear()

    def notify(self, dispatch: Callable[[H], None]) -> None:
        """Hand every live handler to ``dispatch``, in subscription order.

        Handlers registered while a pass is running are not part of that pass.
        An exception raised for one handler is logged and does not stop the
        remaining handlers.

        Args:
            dispatch: Function that delivers the event to a single handler
        """
        for handler in list(self._subscribers.values()):
            self._invoke(dispatch, handler)

    def _cancel(self, token: object) -> None:
        handler = self._subscribers.pop(token, None)
        if handler is not None and self._on_cancel is not None:
            self._invoke(self._on_cancel, handler)

    def _invoke(self, callback: Callable[[H], None], handler: H) -> None:
        try:
            callback(handler)
        except Exception:
            self._metrics.record_observer_error(self.name)
            logger.exception("observer_failed", registry=self.name)
