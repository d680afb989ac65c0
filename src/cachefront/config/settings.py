# src/cachefront/config/settings.py
# Copyright (c)
# SPDX-License-Identifier: MIT
"""Cachefront Configuration (Pydantic Settings, v2)

Summary:
    Typed, validated configuration for the caching facade and the Redis
    transport behind it. Only the dependency wiring reads the process
    environment; the facade itself receives plain values.

Design:
    - Unknown fields are rejected (`extra="forbid"`); numeric knobs are range-checked.
    - Redis connection resolved from, in order: a URL, the name of another
      environment variable holding a URL, or host/port/password parts.
    - `get_settings()` builds the instance once per process.
    - The startup log line never includes the Redis URL or password.
"""

from __future__ import annotations

import logging
import os
from functools import lru_cache

from pydantic import Field, SecretStr
from pydantic_settings import BaseSettings, SettingsConfigDict

logger = logging.getLogger(__name__)


class Settings(BaseSettings):
    """Typed configuration for cachefront.

    Field names may be passed directly (``Settings(namespace="app")``) or
    through their environment aliases (``CACHE_NAMESPACE=app``).
    """

    # ---------------------------
    # Redis transport
    # ---------------------------
    redis_url: str | None = Field(
        default=None,
        description="Redis connection URL, e.g. redis://localhost:6379/0.",
        validation_alias="REDIS_URL",
    )
    redis_url_env: str | None = Field(
        default=None,
        description="Name of another environment variable that holds the Redis URL.",
        validation_alias="CACHE_REDIS_ENV",
    )
    redis_host: str | None = Field(
        default=None,
        description="Redis hostname, used when no URL is configured.",
        validation_alias="REDIS_HOST",
    )
    redis_port: int = Field(
        default=6379,
        ge=1,
        le=65535,
        description="Redis port, used together with redis_host.",
        validation_alias="REDIS_PORT",
    )
    redis_password: SecretStr | None = Field(
        default=None,
        description="Redis AUTH password, used together with redis_host.",
        validation_alias="REDIS_PASSWORD",
    )
    redis_health_check_interval_s: int = Field(
        default=15,
        ge=1,
        le=3600,
        description="Seconds between PINGs on idle pooled connections.",
        validation_alias="REDIS_HEALTH_CHECK_INTERVAL_S",
    )
    redis_socket_timeout_s: float = Field(
        default=3.0,
        ge=0.1,
        le=60.0,
        description="Per-command socket timeout in seconds.",
        validation_alias="REDIS_SOCKET_TIMEOUT_S",
    )
    redis_socket_connect_timeout_s: float = Field(
        default=3.0,
        ge=0.1,
        le=60.0,
        description="Connect timeout in seconds.",
        validation_alias="REDIS_SOCKET_CONNECT_TIMEOUT_S",
    )
    redis_max_retries: int = Field(
        default=5,
        ge=0,
        le=20,
        description="Reconnect attempts handed to the redis-py client.",
        validation_alias="REDIS_MAX_RETRIES",
    )

    # ---------------------------
    # Cache behavior
    # ---------------------------
    default_expiration_s: int = Field(
        default=900,
        ge=1,
        description="TTL applied when neither the call nor the entry supplies one.",
        validation_alias="CACHE_DEFAULT_EXPIRATION_S",
    )
    namespace: str = Field(
        default="",
        description="Prefix applied to every physical key as '<namespace>:<key>'.",
        validation_alias="CACHE_NAMESPACE",
    )
    read_only: bool = Field(
        default=False,
        description="Silently skip every write (serve from a warmed cache).",
        validation_alias="CACHE_READ_ONLY",
    )
    log_parse_failures: bool = Field(
        default=False,
        description="Log values that fail to serialize or deserialize.",
        validation_alias="CACHE_LOG_PARSE_FAILURES",
    )

    # ---------------------------
    # Background refresh
    # ---------------------------
    background_refresh_interval_ms: int = Field(
        default=60_000,
        ge=1,
        description="Period of the background refresh sweep in milliseconds.",
        validation_alias="CACHE_BACKGROUND_REFRESH_INTERVAL_MS",
    )
    background_refresh_min_ttl_ms: int = Field(
        default=70_000,
        ge=1,
        description="Keys closer than this to expiry are refreshed by the sweep.",
        validation_alias="CACHE_BACKGROUND_REFRESH_MIN_TTL_MS",
    )
    background_refresh_interval_check: bool = Field(
        default=True,
        description="Refuse to arm the sweep when its interval exceeds the minimum TTL.",
        validation_alias="CACHE_BACKGROUND_REFRESH_INTERVAL_CHECK",
    )

    # ---------------------------
    # Logging
    # ---------------------------
    log_level: str | None = Field(
        default=None,
        description="Root log level applied by the dependency wiring; unset leaves logging alone.",
        validation_alias="LOG_LEVEL",
    )

    model_config = SettingsConfigDict(
        env_file=".env",
        extra="forbid",
        case_sensitive=False,
        populate_by_name=True,
    )

    def resolved_redis_url(self) -> str | None:
        """Return the effective Redis URL, or ``None`` when only host parts are set.

        Resolution order:
            1. redis_url (REDIS_URL), if set.
            2. The environment variable named by redis_url_env, if set and present.

        Returns:
            The URL string, or ``None``.
        """
        if self.redis_url:
            return self.redis_url
        if self.redis_url_env:
            return os.getenv(self.redis_url_env) or None
        return None

    def has_redis_config(self) -> bool:
        """Return True when any Redis connection source is configured."""
        return bool(self.resolved_redis_url() or self.redis_host)


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Return a cached singleton `Settings` instance.

    Returns:
        Settings: Validated settings.
    """
    settings = Settings()
    logger.info(
        "Settings initialized",
        extra={
            "namespace": settings.namespace,
            "read_only": settings.read_only,
            "redis_configured": settings.has_redis_config(),
            "default_expiration_s": settings.default_expiration_s,
            "background_refresh": {
                "interval_ms": settings.background_refresh_interval_ms,
                "min_ttl_ms": settings.background_refresh_min_ttl_ms,
                "interval_check": settings.background_refresh_interval_check,
            },
        },
    )
    return settings
