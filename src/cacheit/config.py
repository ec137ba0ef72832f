"""Cache configuration models and utilities.

This module provides the settings shared by every KeyedCache instance:
default expiry, discard behaviour, logging and metrics switches.
"""

import logging
import os
from typing import Optional

from dotenv import load_dotenv
from pydantic import BaseModel, ConfigDict, Field, field_validator

_TRUTHY = ("true", "1", "yes")


class CacheSettings(BaseModel):
    """Global cache configuration.

    Attributes:
        default_ttl_ms: TTL applied by KeyedCache.set when the caller passes none
            (None = entries never expire)
        complete_on_discard: Whether subscribers of a slot removed from the cache
            receive their completion callback
        log_level: Logging level used by setup_logging
        json_logs: Whether logs are rendered as JSON
        metrics_enabled: Whether Prometheus counters are updated

    Example:
        >>> settings = CacheSettings(default_ttl_ms=30_000, complete_on_discard=True)
        >>> settings.default_ttl_ms
        30000
    """

    model_config = ConfigDict(frozen=True)

    default_ttl_ms: Optional[int] = Field(
        default=None, ge=0, description="Default TTL in milliseconds (None=no expiry)"
    )
    complete_on_discard: bool = Field(
        default=False, description="Complete slot subscribers when the cache drops the slot"
    )
    log_level: str = Field(default="INFO", description="Logging level")
    json_logs: bool = Field(default=True, description="Render logs as JSON")
    metrics_enabled: bool = Field(default=True, description="Record Prometheus metrics")

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, value: str) -> str:
        """Validate the log level is a standard logging level name.

        Raises:
            ValueError: If the level name is unknown
        """
        normalized = value.upper()
        if not isinstance(logging.getLevelName(normalized), int):
            raise ValueError(f"Unknown log level '{value}'")
        return normalized


def get_default_settings() -> CacheSettings:
    """Get default cache settings (no default TTL, drop subscribers silently)."""
    return CacheSettings()


def load_settings_from_env() -> CacheSettings:
    """Load cache settings from environment variables.

    Automatically loads variables from a .env file if present.

    Reads:
    - CACHEIT_DEFAULT_TTL_MS: Default TTL in milliseconds (empty = no expiry)
    - CACHEIT_COMPLETE_ON_DISCARD: Complete subscribers of removed slots (true/false)
    - CACHEIT_LOG_LEVEL: Logging level
    - CACHEIT_JSON_LOGS: JSON log output (true/false)
    - CACHEIT_METRICS_ENABLED: Record Prometheus metrics (true/false)

    Returns:
        CacheSettings loaded from environment
    """
    load_dotenv()

    default_ttl_str = os.getenv("CACHEIT_DEFAULT_TTL_MS", "").strip()
    default_ttl_ms = int(default_ttl_str) if default_ttl_str else None

    complete_on_discard = (
        os.getenv("CACHEIT_COMPLETE_ON_DISCARD", "false").lower() in _TRUTHY
    )
    log_level = os.getenv("CACHEIT_LOG_LEVEL", "INFO")
    json_logs = os.getenv("CACHEIT_JSON_LOGS", "true").lower() in _TRUTHY
    metrics_enabled = os.getenv("CACHEIT_METRICS_ENABLED", "true").lower() in _TRUTHY

    return CacheSettings(
        default_ttl_ms=default_ttl_ms,
        complete_on_discard=complete_on_discard,
        log_level=log_level,
        json_logs=json_logs,
        metrics_enabled=metrics_enabled,
    )
