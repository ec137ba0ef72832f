"""Cache key generation.

Keys have the form ``$CACHE-IT_[base_][part1-part2-..._]<uuid>``, so keys
generated from the same base and parts are still unique.
"""

import uuid
from collections.abc import Callable
from typing import Optional

from cacheit.errors import InvalidBaseKeyError

KEY_PREFIX = "$CACHE-IT"

IdFactory = Callable[[], object]


def generate_key(*parts: str, id_factory: IdFactory = uuid.uuid4) -> str:
    """Generate a unique cache key.

    Args:
        *parts: Optional parts joined with "-" ahead of the unique id
        id_factory: Source of the unique suffix (uuid4 by default)

    Returns:
        Cache key string

    Example:
        >>> generate_key("user", "42")  # doctest: +SKIP
        '$CACHE-IT_user-42_1b4e28ba-2fa1-4d2b-a4e4-1c6f0a2d7a10'
    """
    return _compose_key(None, parts, id_factory)


class KeyGenerator:
    """Generates keys that all share a base key.

    Attributes:
        base_key: Base key placed after the prefix
    """

    def __init__(self, base_key: str, id_factory: IdFactory = uuid.uuid4) -> None:
        """Initialize the generator.

        Raises:
            InvalidBaseKeyError: If base_key is empty
        """
        if not base_key:
            raise InvalidBaseKeyError(base_key)
        self.base_key = base_key
        self._id_factory = id_factory

    def generate_key(self, *parts: str) -> str:
        """Generate a unique key under this generator's base key."""
        return _compose_key(self.base_key, parts, self._id_factory)


def add_base_key(base_key: str, id_factory: IdFactory = uuid.uuid4) -> KeyGenerator:
    """Create a KeyGenerator for ``base_key``.

    Raises:
        InvalidBaseKeyError: If base_key is empty
    """
    return KeyGenerator(base_key, id_factory=id_factory)


def _compose_key(
    base_key: Optional[str], parts: tuple[str, ...], id_factory: IdFactory
) -> str:
    base_part = f"{base_key}_" if base_key is not None else ""
    parts_part = f"{'-'.join(parts)}_" if parts else ""
    return f"{KEY_PREFIX}_{base_part}{parts_part}{id_factory()}"
