# tests/conftest.py
from __future__ import annotations

from collections.abc import AsyncIterator, Callable
from typing import Any

import fakeredis
import fakeredis.aioredis
import pytest
import pytest_asyncio

from cachefront.application.services.cache_facade import CacheFacade
from cachefront.infrastructure.caching.redis_store import RedisKeyValueStore


@pytest.fixture
def fake_server() -> fakeredis.FakeServer:
    """One in-process Redis server; several clients may share it."""
    return fakeredis.FakeServer()


@pytest.fixture
def fake_redis(fake_server: fakeredis.FakeServer) -> fakeredis.aioredis.FakeRedis:
    """Async fakeredis client with decoded responses, like the real client."""
    return fakeredis.aioredis.FakeRedis(server=fake_server, decode_responses=True)


@pytest.fixture
def store(fake_redis: fakeredis.aioredis.FakeRedis) -> RedisKeyValueStore:
    """Store adapter over the fake client."""
    return RedisKeyValueStore(fake_redis)


@pytest_asyncio.fixture
async def make_facade(
    fake_server: fakeredis.FakeServer,
) -> AsyncIterator[Callable[..., CacheFacade]]:
    """Build facades bound to the shared fake server; all are closed on teardown.

    Each call gets its own client, so two facades behave like two processes
    sharing one Redis.
    """
    created: list[CacheFacade] = []

    def _make(**options: Any) -> CacheFacade:
        client = fakeredis.aioredis.FakeRedis(server=fake_server, decode_responses=True)
        facade = CacheFacade(RedisKeyValueStore(client), **options)
        created.append(facade)
        return facade

    yield _make

    for facade in created:
        await facade.close()


@pytest_asyncio.fixture
async def facade(make_facade: Callable[..., CacheFacade]) -> CacheFacade:
    """Facade with default settings and a quiet refresh timer."""
    return make_facade()
