# src/cachefront/infrastructure/caching/redis_client.py
# Copyright (c)
# SPDX-License-Identifier: MIT
"""Async Redis client factory.

Design notes:
    * Provides a small Protocol (`RedisClient`) describing the redis.asyncio
      surface the store adapter relies on; fakeredis satisfies it in tests.
    * Connection source is resolved from settings: URL, then a named env var,
      then host/port/password parts. No source means no client.
    * Reconnects are delegated to redis-py's own retry support; the cache
      layer never retries commands itself.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any, Protocol, cast, runtime_checkable

import redis.asyncio as aioredis
from redis.asyncio.retry import Retry
from redis.backoff import ExponentialBackoff
from redis.exceptions import ConnectionError as RedisConnectionError
from redis.exceptions import TimeoutError as RedisTimeoutError

# -----------------------------------------------------------------------------
# Typed alias for the concrete Redis client.
# Some redis stubs make Redis generic (e.g., Redis[str]).
# -----------------------------------------------------------------------------
if TYPE_CHECKING:
    from redis.asyncio.client import Redis as _RedisGeneric

    AioredisRedis = _RedisGeneric[str]
else:
    from redis.asyncio.client import Redis as AioredisRedis  # type: ignore[assignment]

from cachefront.config.settings import Settings

__all__ = ["RedisClient", "create_redis_client"]

logger = logging.getLogger(__name__)

# Backoff mirrors a capped, growing delay: 100ms steps up to 3s.
_BACKOFF_BASE_S = 0.1
_BACKOFF_CAP_S = 3.0


@runtime_checkable
class RedisClient(Protocol):
    """Protocol for the subset of Redis methods used by the store adapter."""

    async def get(self, name: str) -> Any: ...
    async def mget(self, keys: Any, *args: Any) -> Any: ...
    async def set(
        self,
        name: str,
        value: Any,
        ex: int | None = None,
        px: int | None = None,
        nx: bool = False,
        xx: bool = False,
    ) -> Any: ...
    async def delete(self, *names: str) -> Any: ...
    async def flushall(self) -> Any: ...
    async def keys(self, pattern: str = "*") -> Any: ...
    def pipeline(self, transaction: bool = True) -> Any: ...
    async def aclose(self) -> Any: ...


def _retry(settings: Settings) -> Retry:
    return Retry(
        ExponentialBackoff(cap=_BACKOFF_CAP_S, base=_BACKOFF_BASE_S),
        settings.redis_max_retries,
    )


def _client_options(settings: Settings) -> dict[str, Any]:
    """Options shared by URL and host/port construction."""
    return {
        "encoding": "utf-8",
        "decode_responses": True,
        "health_check_interval": settings.redis_health_check_interval_s,
        "socket_timeout": settings.redis_socket_timeout_s,
        "socket_connect_timeout": settings.redis_socket_connect_timeout_s,
        "retry": _retry(settings),
        "retry_on_error": [RedisConnectionError, RedisTimeoutError],
    }


def create_redis_client(settings: Settings) -> RedisClient | None:
    """Build the concrete asyncio Redis client from settings.

    Args:
        settings: Cache settings.

    Returns:
        A configured client, or ``None`` when no connection source is set.
    """
    url = settings.resolved_redis_url()
    if url:
        # Make the vendor call through an untyped shim so mypy won't care whether
        # redis stubs define a typed or untyped `from_url` in the current env.
        _from_url: Any = aioredis.from_url
        client = _from_url(url=url, **_client_options(settings))
        logger.debug("Redis client created from URL", extra={"source": "url"})
        return cast(RedisClient, cast(AioredisRedis, client))

    if settings.redis_host:
        password = settings.redis_password.get_secret_value() if settings.redis_password else None
        client = aioredis.Redis(
            host=settings.redis_host,
            port=settings.redis_port,
            password=password,
            **_client_options(settings),
        )
        logger.debug(
            "Redis client created from host settings",
            extra={"source": "host", "host": settings.redis_host, "port": settings.redis_port},
        )
        return cast(RedisClient, client)

    logger.info("Redis client not created: no redis config provided")
    return None
