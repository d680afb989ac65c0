# src/cachefront/infrastructure/caching/redis_store.py
# Copyright (c)
# SPDX-License-Identifier: MIT
"""Redis Key-Value Store (redis.asyncio-backed).

Synopsis:
    Thin adapter that implements the application ``KeyValueStorePort`` on top
    of an async Redis client (real or fakeredis). Every Redis failure is
    re-raised as ``BackingStoreError`` with the original error chained.

Design:
    * Conditional writes use a single ``SET key value NX EX ttl`` so the
      "first writer wins" decision is made atomically by Redis itself.
    * Bulk writes run inside one ``MULTI/EXEC`` pipeline.
    * No retries here; reconnect policy belongs to the client.

Layer:
    infrastructure/caching

See Also:
    - cachefront.infrastructure.caching.redis_client
    - cachefront.application.interfaces.store_port.KeyValueStorePort
"""

from __future__ import annotations

import logging
from collections.abc import AsyncIterator, Sequence
from contextlib import asynccontextmanager
from typing import Any

from redis.exceptions import RedisError

from cachefront.application.interfaces.store_port import KeyValueStorePort
from cachefront.domain.exceptions.cache import BackingStoreError
from cachefront.infrastructure.caching.redis_client import RedisClient

__all__ = ["RedisKeyValueStore"]

logger = logging.getLogger(__name__)


class RedisKeyValueStore(KeyValueStorePort):
    """Redis-backed implementation of the KeyValueStorePort Protocol."""

    def __init__(self, client: RedisClient) -> None:
        """Initialize the adapter.

        Args:
            client: Async Redis client; decoded string responses are expected.
        """
        self._client = client

    @property
    def client(self) -> RedisClient:
        """The wrapped Redis client."""
        return self._client

    @asynccontextmanager
    async def _translate(self, operation: str, **details: Any) -> AsyncIterator[None]:
        try:
            yield
        except RedisError as exc:
            logger.warning(
                "Redis operation failed",
                extra={"operation": operation, "error": str(exc), **details},
            )
            raise BackingStoreError(operation, original_error=exc, details=details) from exc

    async def get(self, key: str) -> Any | None:
        async with self._translate("get", key=key):
            return await self._client.get(key)

    async def mget(self, keys: Sequence[str]) -> list[Any | None]:
        if not keys:
            return []
        async with self._translate("mget", count=len(keys)):
            return list(await self._client.mget(list(keys)))

    async def set_with_ttl(self, key: str, value: Any, ttl_seconds: int) -> bool:
        async with self._translate("set_ex", key=key):
            return bool(await self._client.set(key, value, ex=ttl_seconds))

    async def set_if_absent_with_ttl(self, key: str, value: Any, ttl_seconds: int) -> bool:
        async with self._translate("set_nx", key=key):
            return bool(await self._client.set(key, value, ex=ttl_seconds, nx=True))

    async def mset_with_ttl(self, items: Sequence[tuple[str, Any, int]]) -> list[Any]:
        if not items:
            return []
        async with self._translate("multi_set_ex", count=len(items)):
            async with self._client.pipeline(transaction=True) as pipe:
                for key, value, ttl_seconds in items:
                    pipe.set(key, value, ex=ttl_seconds)
                return list(await pipe.execute())

    async def delete(self, keys: Sequence[str]) -> int:
        if not keys:
            return 0
        async with self._translate("delete", count=len(keys)):
            return int(await self._client.delete(*keys))

    async def flush_all(self) -> None:
        async with self._translate("flushall"):
            await self._client.flushall()

    async def list_keys(self, pattern: str = "*") -> list[str]:
        async with self._translate("keys", pattern=pattern):
            return list(await self._client.keys(pattern))

    async def close(self) -> None:
        async with self._translate("close"):
            await self._client.aclose()
