"""Exception hierarchy for cache errors.

The cache core has almost no failure surface: operations either complete or
reject a bad argument up front. Every exception raised by this package derives
from CacheError and carries a machine-readable code plus optional context.
"""

from typing import Any


class CacheError(Exception):
    """Base exception for all cache errors.

    Attributes:
        message: Human-readable error description
        code: Machine-readable error code
        context: Additional context information
    """

    code: str = "cache_error"

    def __init__(self, message: str, **context: Any) -> None:
        """Initialize cache error with message and optional context.

        Args:
            message: Human-readable error description
            **context: Additional context information (key, ttl_ms, etc.)
        """
        super().__init__(message)
        self.message = message
        self.context = context

    def __str__(self) -> str:
        """Return formatted error message with context."""
        if not self.context:
            return f"[{self.code}] {self.message}"

        context_str = ", ".join(f"{k}={v}" for k, v in self.context.items())
        return f"[{self.code}] {self.message} ({context_str})"


class InvalidBaseKeyError(CacheError, ValueError):
    """Raised when a key generator is created with an empty base key."""

    code = "invalid_base_key"

    def __init__(self, base_key: Any) -> None:
        super().__init__("Base key cannot be empty", base_key=repr(base_key))
        self.base_key = base_key


class InvalidTTLError(CacheError, ValueError):
    """Raised when a time-to-live is negative or not an integer."""

    code = "invalid_ttl"

    def __init__(self, ttl_ms: Any) -> None:
        """Initialize with the rejected TTL.

        Args:
            ttl_ms: The TTL value (milliseconds) that was rejected
        """
        super().__init__(
            "TTL must be a non-negative integer number of milliseconds", ttl_ms=ttl_ms
        )
        self.ttl_ms = ttl_ms
