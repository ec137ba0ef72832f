"""Example demonstrating KeyedCache usage.

This example shows how to:
1. Configure logging and settings from the environment
2. Subscribe to cache-level and value-level changes
3. Read current and previous values
4. Let a value expire through its TTL
"""

import time

from cacheit import KeyedCache, add_base_key, get_default_scheduler, load_settings_from_env
from cacheit.observability import get_logger, setup_logging

settings = load_settings_from_env()
setup_logging(log_level=settings.log_level, json_logs=settings.json_logs)
logger = get_logger(__name__)


def main() -> None:
    """Main example demonstrating cache usage."""
    cache: KeyedCache[dict] = KeyedCache(settings=settings)
    keys = add_base_key("session")

    cache.subscribe(lambda: logger.info("cache_changed", size=cache.size()))

    key = keys.generate_key("user", "42")
    session = cache.set(key, {"user": "ada", "visits": 1}, ttl=500)
    session.subscribe(
        on_next=lambda value: logger.info(
            "session_changed",
            previous=value.unwrap_previous(),
            current=value.unwrap_current(),
        ),
        on_complete=lambda: logger.info("session_subscription_closed"),
    )

    session.update({"user": "ada", "visits": 2})

    session.unwrap_current(
        on_present=lambda value: logger.info("session_present", visits=value["visits"]),
        on_absent=lambda: logger.info("session_absent"),
    )

    # Wait for the TTL to clear the value; the key stays in the cache
    time.sleep(1)
    logger.info("after_expiry", has_key=cache.has(key), current=session.unwrap_current())

    cache.delete(key)
    get_default_scheduler().shutdown()


if __name__ == "__main__":
    main()
