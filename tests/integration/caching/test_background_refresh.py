# tests/integration/caching/test_background_refresh.py
"""End-to-end background refresh over a shared fake Redis server."""

from __future__ import annotations

import asyncio
from collections.abc import Callable

import fakeredis.aioredis
import pytest

from cachefront.application.services.cache_facade import CacheFacade

MakeFacade = Callable[..., CacheFacade]


@pytest.mark.asyncio
async def test_refreshed_key_outlives_its_ttl(make_facade: MakeFacade) -> None:
    facade = make_facade(background_refresh_interval_ms=300)

    assert await facade.set("one", "initial", 1, lambda key: 1) is True
    assert facade.armed

    await asyncio.sleep(1.5)

    assert await facade.get("one") == 1


@pytest.mark.asyncio
async def test_key_without_refresh_expires(make_facade: MakeFacade) -> None:
    facade = make_facade(background_refresh_interval_ms=300)

    await facade.set("one", 1, 1)
    await asyncio.sleep(1.5)

    assert await facade.get("one") is None
    assert not facade.armed


@pytest.mark.asyncio
async def test_async_refresh_callback_renews_value(make_facade: MakeFacade) -> None:
    facade = make_facade(background_refresh_interval_ms=200)
    calls: list[str] = []

    async def load(key: str) -> dict[str, int]:
        calls.append(key)
        await asyncio.sleep(0.01)
        return {"count": len(calls)}

    await facade.set("counter", {"count": 0}, 1, load)
    await asyncio.sleep(0.7)

    value = await facade.get("counter")
    assert calls and all(key == "counter" for key in calls)
    assert value["count"] >= 1


@pytest.mark.asyncio
async def test_existing_key_is_not_enrolled(
    make_facade: MakeFacade, fake_redis: fakeredis.aioredis.FakeRedis
) -> None:
    """The conditional write loses against a present key; the value is still written."""
    facade = make_facade(background_refresh_interval_ms=300)
    await facade.set("k", "plain", 60)

    assert await facade.set("k", "refreshable", 1, lambda key: "refreshed") is True

    assert await facade.get("k") == "refreshable"
    assert 0 < await fake_redis.pttl("k") <= 1_000
    assert "k" not in facade.registry
    assert not facade.armed

    await asyncio.sleep(1.2)
    assert await facade.get("k") is None


@pytest.mark.asyncio
async def test_only_one_process_claims_a_key(make_facade: MakeFacade) -> None:
    first = make_facade()
    second = make_facade()

    await first.set("shared", "a", 60, lambda key: "from-first")
    await second.set("shared", "b", 60, lambda key: "from-second")

    assert "shared" in first.registry
    assert "shared" not in second.registry
    assert first.armed and not second.armed
    assert await first.get("shared") == "b"


@pytest.mark.asyncio
async def test_sweep_renews_registration(make_facade: MakeFacade) -> None:
    facade = make_facade()
    await facade.set("k", "v1", 10, lambda key: "v2")
    original = facade.registry.get("k")

    await asyncio.gather(*facade.scheduler.sweep())

    renewed = facade.registry.get("k")
    assert renewed is not None and renewed is not original
    assert renewed.expires_at >= original.expires_at
    assert await facade.get("k") == "v2"


@pytest.mark.asyncio
async def test_failed_refresh_lets_value_expire(make_facade: MakeFacade) -> None:
    facade = make_facade(background_refresh_interval_ms=200)

    def broken(key: str) -> str:
        raise RuntimeError("upstream down")

    await facade.set("k", "v", 1, broken)
    await asyncio.sleep(1.3)

    assert await facade.get("k") is None
    assert "k" in facade.registry


@pytest.mark.asyncio
async def test_refresh_resolving_after_delete_rewrites_key(make_facade: MakeFacade) -> None:
    """Known race: an in-flight refresh that finishes after ``delete`` writes the key back.

    The key is not re-enrolled, so the resurrected value only lives for one TTL.
    """
    facade = make_facade()
    gate = asyncio.Event()

    async def slow(key: str) -> str:
        await gate.wait()
        return "late"

    await facade.set("k", "v", 10, slow)
    tasks = facade.scheduler.sweep()
    await asyncio.sleep(0)

    assert await facade.delete("k") == 1
    assert await facade.get("k") is None

    gate.set()
    await asyncio.gather(*tasks)

    assert await facade.get("k") == "late"
    assert "k" not in facade.registry


@pytest.mark.asyncio
async def test_flush_during_refresh_does_not_re_enroll(make_facade: MakeFacade) -> None:
    facade = make_facade()
    gate = asyncio.Event()

    async def slow(key: str) -> str:
        await gate.wait()
        return "late"

    await facade.set("k", "v", 10, slow)
    tasks = facade.scheduler.sweep()
    await facade.flush_all()
    gate.set()
    await asyncio.gather(*tasks)

    assert len(facade.registry) == 0
