"""cacheit: an in-process keyed cache with TTL and subscriptions.

This package provides:
- KeyedCache: string-keyed cache with cache-level change notifications
- CacheValue: per-key current/previous value with copy isolation and
  its own subscribers
- ExpiryTimer: one-shot TTL expiry backed by an injectable Scheduler
- ObserverRegistry: the publish/subscribe primitive both levels share
- generate_key / add_base_key: unique cache key helpers
"""

from cacheit.cache import KeyedCache
from cacheit.config import CacheSettings, get_default_settings, load_settings_from_env
from cacheit.errors import CacheError, InvalidBaseKeyError, InvalidTTLError
from cacheit.expiry import (
    APSchedulerScheduler,
    ExpiryTimer,
    ScheduledCall,
    Scheduler,
    get_default_scheduler,
)
from cacheit.keys import KeyGenerator, add_base_key, generate_key
from cacheit.observers import ObserverRegistry, Subscription
from cacheit.value import CacheValue, ValueHandlers, isolate

__version__ = "1.0.0"

__all__ = [
    "KeyedCache",
    "CacheValue",
    "ValueHandlers",
    "isolate",
    "ExpiryTimer",
    "Scheduler",
    "ScheduledCall",
    "APSchedulerScheduler",
    "get_default_scheduler",
    "ObserverRegistry",
    "Subscription",
    "KeyGenerator",
    "add_base_key",
    "generate_key",
    "CacheSettings",
    "get_default_settings",
    "load_settings_from_env",
    "CacheError",
    "InvalidBaseKeyError",
    "InvalidTTLError",
]
