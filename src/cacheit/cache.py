"""Keyed cache of subscribable values.

KeyedCache maps string keys to CacheValue instances. Cache-level observers
are told when the set of keys (or the value object behind a key) changes;
changes made directly on a CacheValue after it was stored only reach that
value's own subscribers.
"""

import threading
from collections.abc import Callable
from typing import Any, Generic, Optional, TypeVar

from cacheit.config import CacheSettings, get_default_settings
from cacheit.expiry import Scheduler
from cacheit.observability.logging import get_logger
from cacheit.observability.metrics import MetricsCollector
from cacheit.observers import ObserverRegistry, Subscription
from cacheit.value import CacheValue

logger = get_logger(__name__)

T = TypeVar("T")

CacheHandler = Callable[[], None]

# Marker for "no ttl argument given": use settings.default_ttl_ms.
DEFAULT_TTL: Any = object()


class KeyedCache(Generic[T]):
    """A generic in-process cache with optional TTL and subscriptions.

    Every ``set`` creates a fresh CacheValue, replacing (not merging) any
    value stored under the same key. Expired values stay in the cache with
    no content until they are deleted.

    Attributes:
        settings: Cache settings (default TTL, discard behaviour, metrics)

    Example:
        >>> cache = KeyedCache[dict]()
        >>> value = cache.set("user:1", {"name": "Ada"})
        >>> cache.get("user:1").unwrap_current()
        {'name': 'Ada'}
        >>> cache.delete("user:1")
        True
        >>> cache.has("user:1")
        False
    """

    def __init__(
        self,
        settings: Optional[CacheSettings] = None,
        scheduler: Optional[Scheduler] = None,
        metrics: Optional[MetricsCollector] = None,
    ) -> None:
        """Initialize an empty cache.

        Args:
            settings: Cache settings (defaults from get_default_settings())
            scheduler: Scheduler for expiry timers (process default if omitted)
            metrics: Metrics collector (built from settings.metrics_enabled if omitted)
        """
        self.settings = settings or get_default_settings()
        self._scheduler = scheduler
        self._metrics = metrics or MetricsCollector(enabled=self.settings.metrics_enabled)
        self._entries: dict[str, CacheValue[T]] = {}
        self._lock = threading.RLock()
        self._subscribers: ObserverRegistry[CacheHandler] = ObserverRegistry(
            "cache", metrics=self._metrics
        )

    def __len__(self) -> int:
        return self.size()

    def __contains__(self, key: object) -> bool:
        return isinstance(key, str) and self.has(key)

    def set(
        self, key: str, value: T, ttl: Optional[int] = DEFAULT_TTL
    ) -> CacheValue[T]:
        """Store a value under ``key``.

        Args:
            key: The key to store the value under
            value: The value to store (copied if composite)
            ttl: Time-to-live in milliseconds. Omit it to use
                settings.default_ttl_ms; pass None for an entry that never expires

        Returns:
            The newly created CacheValue, ready to be subscribed to

        Raises:
            InvalidTTLError: If the TTL is negative or not an integer
        """
        ttl_ms = self.settings.default_ttl_ms if ttl is DEFAULT_TTL else ttl
        entry: CacheValue[T] = CacheValue(
            value, ttl_ms, scheduler=self._scheduler, metrics=self._metrics
        )

        with self._lock:
            replaced = self._entries.get(key)
            self._entries[key] = entry

        if replaced is not None:
            self._discard(replaced)

        self._metrics.record_operation("set")
        logger.debug("cache_entry_set", key=key, ttl_ms=ttl_ms, replaced=replaced is not None)
        self._notify()
        return entry

    def get(self, key: str) -> Optional[CacheValue[T]]:
        """Look up the value stored under ``key``.

        Expired values are still returned; they are simply empty.

        Args:
            key: The key to look up

        Returns:
            The CacheValue, or None if the key is not in the cache
        """
        with self._lock:
            return self._entries.get(key)

    def delete(self, key: str) -> bool:
        """Remove the value stored under ``key``.

        Args:
            key: The key to remove

        Returns:
            True if the key was found and removed, False otherwise
        """
        with self._lock:
            entry = self._entries.pop(key, None)

        if entry is None:
            return False

        self._discard(entry)
        self._metrics.record_operation("delete")
        logger.debug("cache_entry_deleted", key=key)
        self._notify()
        return True

    def clear(self) -> None:
        """Remove all entries. Notifies subscribers even if already empty."""
        with self._lock:
            entries = list(self._entries.values())
            self._entries.clear()

        for entry in entries:
            self._discard(entry)

        self._metrics.record_operation("clear")
        logger.debug("cache_cleared", removed=len(entries))
        self._notify()

    def has(self, key: str) -> bool:
        """Check whether ``key`` is in the cache, expired or not."""
        with self._lock:
            return key in self._entries

    def size(self) -> int:
        """Return the number of entries in the cache."""
        with self._lock:
            return len(self._entries)

    def keys(self) -> list[str]:
        """Return a snapshot of the keys currently in the cache."""
        with self._lock:
            return list(self._entries)

    def subscribe(self, handler: CacheHandler) -> Subscription:
        """Subscribe to changes of the cache.

        The handler is called with no arguments after every set, successful
        delete and clear.

        Args:
            handler: Zero-argument callable

        Returns:
            Subscription that can be used to unsubscribe
        """
        return self._subscribers.subscribe(handler)

    def unsubscribe_all(self) -> None:
        """Remove all cache subscribers without emitting any events."""
        self._subscribers.unsubscribe_all()

    def _discard(self, entry: CacheValue[T]) -> None:
        entry.discard(complete_subscribers=self.settings.complete_on_discard)

    def _notify(self) -> None:
        self._subscribers.notify(_call_handler)


def _call_handler(handler: CacheHandler) -> None:
    handler()
