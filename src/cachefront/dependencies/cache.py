# src/cachefront/dependencies/cache.py
# Copyright (c)
# SPDX-License-Identifier: MIT
"""Dependency wiring for the cache facade.

Overview:
    Builds a :class:`CacheFacade` from :class:`Settings`, wiring the Redis
    client and store adapter, and provides an async context manager that
    closes everything on exit.

Layer:
    dependencies

Design:
    * Settings come from ``get_settings()`` unless passed explicitly, so tests
      can hand in a ``Settings`` instance without touching the environment.
    * An explicit ``store`` (e.g. a fakeredis-backed adapter) bypasses Redis
      client creation; the facade does not close stores it did not create.
    * Missing Redis configuration yields a facade without a store; its
      operations raise ``CacheNotConfiguredError``.
"""

from __future__ import annotations

from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from cachefront.application.interfaces.store_port import KeyValueStorePort
from cachefront.application.services.cache_facade import CacheFacade
from cachefront.application.services.value_codec import Decoder, Encoder
from cachefront.config.settings import Settings, get_settings
from cachefront.infrastructure.caching.redis_client import create_redis_client
from cachefront.infrastructure.caching.redis_store import RedisKeyValueStore
from cachefront.infrastructure.logging.logger import configure_root_logging, get_json_logger

__all__ = ["build_cache_facade", "cache_facade_dependency"]

logger = get_json_logger(__name__)


def build_cache_facade(
    settings: Settings | None = None,
    *,
    store: KeyValueStorePort | None = None,
    value_encoder: Encoder | None = None,
    value_decoder: Decoder | None = None,
) -> CacheFacade:
    """Construct a facade from settings.

    Args:
        settings: Cache settings; defaults to the process-wide singleton.
        store: Pre-built store adapter to use instead of creating a Redis client.
        value_encoder: Optional replacement for ``json.dumps``.
        value_decoder: Optional replacement for ``json.loads``.

    Returns:
        CacheFacade: Ready to use; background refresh arms lazily.
    """
    cfg = settings or get_settings()

    owns_store = False
    if store is None:
        client = create_redis_client(cfg)
        if client is not None:
            store = RedisKeyValueStore(client)
            owns_store = True
        else:
            logger.warning("Cache facade created without a backing store")

    return CacheFacade(
        store,
        namespace=cfg.namespace,
        default_expiration_s=cfg.default_expiration_s,
        read_only=cfg.read_only,
        background_refresh_interval_ms=cfg.background_refresh_interval_ms,
        background_refresh_min_ttl_ms=cfg.background_refresh_min_ttl_ms,
        background_refresh_interval_check=cfg.background_refresh_interval_check,
        value_encoder=value_encoder,
        value_decoder=value_decoder,
        log_parse_failures=cfg.log_parse_failures,
        owns_store=owns_store,
    )


@asynccontextmanager
async def cache_facade_dependency(
    settings: Settings | None = None,
    *,
    store: KeyValueStorePort | None = None,
) -> AsyncGenerator[CacheFacade, None]:
    """Yield a configured facade and close it (timer and owned store) on exit.

    Yields:
        CacheFacade: Facade bound to the configured store.
    """
    cfg = settings or get_settings()
    if cfg.log_level:
        configure_root_logging(cfg.log_level)

    facade = build_cache_facade(cfg, store=store)
    try:
        yield facade
    finally:
        await facade.close()
