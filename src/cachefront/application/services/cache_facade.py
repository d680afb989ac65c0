# src/cachefront/application/services/cache_facade.py
# Copyright (c)
# SPDX-License-Identifier: MIT
"""Cache Facade.

Synopsis:
    Public async operation surface of cachefront: ``get``, ``mget``, ``set``,
    ``mset``, ``delete`` and ``flush_all`` over any ``KeyValueStorePort``.
    Adds namespacing, best-effort value serialization, per-entry expiration
    resolution for bulk writes, and background refresh of registered keys.

Design:
    * Logical keys are mapped to physical keys with an idempotent namespace
      prefix; results of ``mget`` are keyed by the logical keys requested.
    * Read-only mode turns every write into a silent no-op.
    * A write with a ``refresh`` callback first tries a conditional
      ``SET NX EX`` on the key. Only the process whose write is accepted
      registers the key for background refresh, so among processes sharing
      one store at most one keeps a given key warm. A rejected claim falls
      back to a plain timed write, except that a key this process already
      refreshes takes the new callback and TTL.
    * The refresh registry is keyed by physical key, so ``k`` and
      ``<namespace>:k`` name one registration.
    * Renewal writes issued by the sweep skip the claim: the key is still
      present and this process already owns its refresh.
    * Store failures surface as ``BackingStoreError``; nothing is retried.

Layer:
    application/services

See Also:
    - cachefront.application.services.refresh_scheduler
    - cachefront.infrastructure.caching.redis_store.RedisKeyValueStore
"""

from __future__ import annotations

import logging
import time
from collections.abc import Callable, Iterable, Mapping
from typing import Any

from cachefront.application.interfaces.store_port import KeyValueStorePort
from cachefront.application.services.refresh_registry import RefreshRegistry
from cachefront.application.services.refresh_scheduler import RefreshScheduler
from cachefront.application.services.value_codec import Decoder, Encoder, ValueCodec
from cachefront.domain.entities.refresh import RefreshCallback, RefreshDescriptor
from cachefront.domain.exceptions.cache import (
    BackingStoreError,
    CacheArgumentError,
    CacheNotConfiguredError,
)
from cachefront.domain.services.expiration import resolve_all
from cachefront.domain.services.keys import to_physical, to_physical_many
from cachefront.infrastructure.observability.metrics import observe_cache_operation

__all__ = ["CacheFacade"]

logger = logging.getLogger(__name__)


class CacheFacade:
    """Namespaced, serializing, self-refreshing cache over a key-value store."""

    def __init__(
        self,
        store: KeyValueStorePort | None,
        *,
        namespace: str = "",
        default_expiration_s: int = 900,
        read_only: bool = False,
        background_refresh_interval_ms: int = 60_000,
        background_refresh_min_ttl_ms: int = 70_000,
        background_refresh_interval_check: bool = True,
        value_encoder: Encoder | None = None,
        value_decoder: Decoder | None = None,
        log_parse_failures: bool = False,
        owns_store: bool = False,
        clock: Callable[[], float] = time.time,
    ) -> None:
        """Initialize the facade.

        Args:
            store: Backing store; ``None`` makes every operation raise
                ``CacheNotConfiguredError``.
            namespace: Prefix for physical keys.
            default_expiration_s: TTL used when a write supplies none.
            read_only: Skip every write silently.
            background_refresh_interval_ms: Sweep period.
            background_refresh_min_ttl_ms: Entries closer than this to expiry
                are refreshed.
            background_refresh_interval_check: Refuse to arm when the interval
                exceeds the minimum TTL.
            value_encoder: Replacement for ``json.dumps``.
            value_decoder: Replacement for ``json.loads``.
            log_parse_failures: Log values that fail to (de)serialize.
            owns_store: Close ``store`` when the facade is closed.
            clock: Wall-clock source in epoch seconds.
        """
        self._store = store
        self.namespace = namespace
        self.default_expiration_s = default_expiration_s
        self.read_only = read_only
        self._owns_store = owns_store
        self._clock = clock

        self.codec = ValueCodec(
            encoder=value_encoder, decoder=value_decoder, log_failures=log_parse_failures
        )
        self.registry = RefreshRegistry()
        self.scheduler = RefreshScheduler(
            self.registry,
            self._renew,
            interval_ms=background_refresh_interval_ms,
            min_ttl_ms=background_refresh_min_ttl_ms,
            interval_check=background_refresh_interval_check,
            namespace=namespace,
            clock=clock,
        )

        logger.debug(
            "Cache facade created",
            extra={
                "namespace": namespace,
                "default_expiration_s": default_expiration_s,
                "read_only": read_only,
                "store_configured": store is not None,
            },
        )

    # ------------------------------------------------------------------ #
    # Introspection
    # ------------------------------------------------------------------ #
    @property
    def store(self) -> KeyValueStorePort:
        """The backing store.

        Raises:
            CacheNotConfiguredError: If the facade was built without one.
        """
        if self._store is None:
            raise CacheNotConfiguredError("No backing store configured for this cache.")
        return self._store

    @property
    def armed(self) -> bool:
        """True once background refresh has started for this facade."""
        return self.scheduler.armed

    def is_refreshing(self, key: str) -> bool:
        """True when this facade keeps ``key`` warm in the background."""
        return to_physical(self.namespace, key) in self.registry

    def _ttl(self, ttl_seconds: int | None) -> int:
        return ttl_seconds if ttl_seconds is not None and ttl_seconds > 0 else self.default_expiration_s

    # ------------------------------------------------------------------ #
    # Reads
    # ------------------------------------------------------------------ #
    async def get(self, key: str) -> Any | None:
        """Return the cached value for ``key``, or ``None`` on a miss.

        Raises:
            CacheArgumentError: If ``key`` is missing.
            BackingStoreError: If the store fails.
        """
        if key is None:
            raise CacheArgumentError(".get() requires a key.")
        physical = to_physical(self.namespace, key)
        logger.debug("get() called", extra={"key": physical})

        with observe_cache_operation("get", self.namespace) as outcome:
            raw = await self.store.get(physical)
            outcome.hit = raw is not None
        return self.codec.decode(raw)

    async def mget(self, keys: Iterable[str]) -> dict[str, Any]:
        """Return ``{key: value}`` for every key that is present.

        Missing keys are omitted rather than mapped to ``None``.

        Raises:
            CacheArgumentError: If ``keys`` is missing.
            BackingStoreError: If the store fails.
        """
        if keys is None:
            raise CacheArgumentError(".mget() requires keys.")
        logical = list(keys)
        logger.debug("mget() called", extra={"keys": logical})

        with observe_cache_operation("mget", self.namespace) as outcome:
            raws = await self.store.mget(to_physical_many(self.namespace, logical))
            outcome.hit = any(raw is not None for raw in raws)

        return {
            key: self.codec.decode(raw)
            for key, raw in zip(logical, raws, strict=True)
            if raw is not None
        }

    # ------------------------------------------------------------------ #
    # Writes
    # ------------------------------------------------------------------ #
    async def set(
        self,
        key: str,
        value: Any,
        ttl_seconds: int | None = None,
        refresh: RefreshCallback | None = None,
    ) -> bool:
        """Store ``value`` under ``key``.

        Args:
            key: Logical key.
            value: Any value; non-strings are serialized.
            ttl_seconds: Expiration; defaults to ``default_expiration_s``.
            refresh: Optional callback ``key -> new value`` (sync or async).
                When given, the key is enrolled in background refresh if this
                process wins the conditional write.

        Returns:
            True when the store accepted a write, False in read-only mode.

        Raises:
            CacheArgumentError: If ``key`` is missing.
            RefreshIntervalConfigurationError: If this write would arm the
                refresh sweep with an interval longer than the minimum TTL.
            BackingStoreError: If the store fails.
        """
        if key is None:
            raise CacheArgumentError(".set() requires a key and a value.")
        if self.read_only:
            logger.debug("set() skipped in read-only mode", extra={"key": key})
            return False

        ttl = self._ttl(ttl_seconds)
        logger.debug("set() called", extra={"key": key, "ttl_seconds": ttl})

        with observe_cache_operation("set", self.namespace):
            if refresh is None:
                return await self.store.set_with_ttl(
                    to_physical(self.namespace, key), self.codec.encode(value), ttl
                )
            return await self._claim_and_write(key, value, ttl, refresh)

    async def _claim_and_write(
        self, key: str, value: Any, ttl: int, refresh: RefreshCallback
    ) -> bool:
        physical = to_physical(self.namespace, key)
        stored = self.codec.encode(value)

        try:
            won = await self.store.set_if_absent_with_ttl(physical, stored, ttl)
        except BackingStoreError as exc:
            logger.warning(
                "Refresh claim failed; writing without refresh",
                extra={"key": physical, "error": str(exc)},
            )
            won = False

        descriptor = RefreshDescriptor.starting_now(ttl, refresh, key=key, now=self._clock())
        if not won:
            accepted = await self.store.set_with_ttl(physical, stored, ttl)
            # Already ours: the new callback and TTL take over.
            if physical in self.registry:
                self.registry.put(physical, descriptor)
            else:
                logger.debug(
                    "Refresh claim not acquired; written without refresh",
                    extra={"key": physical},
                )
            return accepted

        self.scheduler.arm()
        self.registry.put(physical, descriptor)
        return True

    async def _renew(self, physical: str, value: Any, descriptor: RefreshDescriptor) -> bool:
        """Write a refreshed value and push the key's expiry forward.

        The write always happens, even if the key was deleted while the
        callback ran. The registry entry is only renewed while it is still
        the one the sweep started from.
        """
        if self.read_only:
            return False
        ttl = descriptor.ttl_seconds
        with observe_cache_operation("refresh", self.namespace):
            accepted = await self.store.set_with_ttl(physical, self.codec.encode(value), ttl)
        renewed = RefreshDescriptor.starting_now(
            ttl, descriptor.refresh, key=descriptor.key, now=self._clock()
        )
        if not self.registry.replace(physical, descriptor, renewed):
            logger.debug("Refreshed key is no longer registered", extra={"key": physical})
        return accepted


    async def mset(
        self, entries: Mapping[str, Any], ttl_seconds: int | None = None
    ) -> list[Any]:
        """Store many entries in one atomic transaction.

        Each value may be a plain value or ``{"cacheValue": v, "expiration": s}``;
        see :mod:`cachefront.domain.services.expiration` for precedence.

        Returns:
            The store's per-command replies; empty in read-only mode.

        Raises:
            CacheArgumentError: If ``entries`` is missing.
            BackingStoreError: If the transaction fails (nothing is written).
        """
        if entries is None:
            raise CacheArgumentError(".mset() requires entries.")
        if self.read_only:
            logger.debug("mset() skipped in read-only mode", extra={"count": len(entries)})
            return []

        items = [
            (to_physical(self.namespace, key), self.codec.encode(value), ttl)
            for key, value, ttl in resolve_all(entries, ttl_seconds, self.default_expiration_s)
        ]
        logger.debug("mset() called", extra={"keys": [item[0] for item in items]})

        with observe_cache_operation("mset", self.namespace):
            return await self.store.mset_with_ttl(items)

    async def delete(self, keys: str | Iterable[str]) -> int:
        """Delete one key or many, and drop them from background refresh.

        Returns:
            Number of keys the store removed; 0 in read-only mode.

        Raises:
            CacheArgumentError: If ``keys`` is missing.
            BackingStoreError: If the store fails.
        """
        if keys is None:
            raise CacheArgumentError(".delete() requires at least one key.")
        logical = [keys] if isinstance(keys, str) else list(keys)
        if self.read_only:
            logger.debug("delete() skipped in read-only mode", extra={"keys": logical})
            return 0

        physical = to_physical_many(self.namespace, logical)
        logger.debug("delete() called", extra={"keys": physical})
        self.registry.remove_many(physical)

        with observe_cache_operation("delete", self.namespace):
            return await self.store.delete(physical)

    async def flush_all(self) -> None:
        """Empty the backing store and forget every refresh registration.

        Raises:
            BackingStoreError: If the store fails.
        """
        if self.read_only:
            logger.debug("flush_all() skipped in read-only mode")
            return

        logger.debug("flush_all() called")
        self.registry.remove_all()

        with observe_cache_operation("flush_all", self.namespace):
            await self.store.flush_all()

    # ------------------------------------------------------------------ #
    # Lifecycle
    # ------------------------------------------------------------------ #
    async def close(self) -> None:
        """Stop background refresh and release an owned store."""
        await self.scheduler.stop()
        if self._owns_store and self._store is not None:
            await self._store.close()
        logger.debug("Cache facade closed", extra={"namespace": self.namespace})

    async def __aenter__(self) -> CacheFacade:
        return self

    async def __aexit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        await self.close()
