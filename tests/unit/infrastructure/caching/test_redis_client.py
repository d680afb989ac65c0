# tests/unit/infrastructure/caching/test_redis_client.py
from __future__ import annotations

import pytest
import redis.asyncio as aioredis

from cachefront.config.settings import Settings
from cachefront.infrastructure.caching.redis_client import create_redis_client


@pytest.fixture(autouse=True)
def _clean_redis_env(monkeypatch: pytest.MonkeyPatch) -> None:
    for name in ("REDIS_URL", "REDIS_HOST", "CACHE_REDIS_ENV", "MY_REDIS"):
        monkeypatch.delenv(name, raising=False)


def test_no_connection_source_yields_no_client() -> None:
    assert create_redis_client(Settings()) is None


@pytest.mark.asyncio
async def test_client_from_url_decodes_and_retries() -> None:
    client = create_redis_client(Settings(redis_url="redis://localhost:6390/2", redis_max_retries=3))

    assert isinstance(client, aioredis.Redis)
    kwargs = client.connection_pool.connection_kwargs
    assert kwargs["decode_responses"] is True
    assert kwargs["db"] == 2
    retry = client.get_retry()
    assert retry is not None and retry.get_retries() == 3
    await client.aclose()


@pytest.mark.asyncio
async def test_client_from_named_env_var(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("MY_REDIS", "redis://cache.internal:6391/0")

    client = create_redis_client(Settings(redis_url_env="MY_REDIS"))

    assert isinstance(client, aioredis.Redis)
    assert client.connection_pool.connection_kwargs["host"] == "cache.internal"
    await client.aclose()


@pytest.mark.asyncio
async def test_client_from_host_parts() -> None:
    client = create_redis_client(
        Settings(redis_host="cache.internal", redis_port=6392, redis_password="s3cret")
    )

    assert isinstance(client, aioredis.Redis)
    kwargs = client.connection_pool.connection_kwargs
    assert (kwargs["host"], kwargs["port"], kwargs["password"]) == ("cache.internal", 6392, "s3cret")
    await client.aclose()
