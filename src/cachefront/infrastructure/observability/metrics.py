# src/cachefront/infrastructure/observability/metrics.py
# Copyright (c)
# SPDX-License-Identifier: MIT
"""Prometheus metrics for the caching facade (registry-aware).

Collectors are created lazily and bound to whatever
``prometheus_client.REGISTRY`` is active when first requested. Several
facades in one process share them; a test that installs a fresh registry
gets fresh collectors instead of a duplicate-registration error.

:func:`observe_cache_operation` wraps one facade call and records its latency
and outcome. Metric emission never raises into the caller.

Example:
    async def get(self, key):
        with observe_cache_operation("get", self.namespace) as outcome:
            raw = await store.get(key)
            outcome.hit = raw is not None
"""

from __future__ import annotations

import logging
import threading
import time
from collections.abc import Iterator
from contextlib import contextmanager, suppress
from dataclasses import dataclass
from typing import Final, TypeVar

import prometheus_client as prom
from prometheus_client import Counter, Histogram

__all__ = [
    "CacheOperationOutcome",
    "get_cache_operation_duration_seconds",
    "get_cache_operations_total",
    "get_cache_refresh_total",
    "observe_cache_operation",
    "record_refresh",
]

_log = logging.getLogger(__name__)

# Cache round trips are short; the upper buckets cover slow refresh writes.
_BUCKETS: Final[tuple[float, ...]] = (
    0.001,
    0.005,
    0.010,
    0.025,
    0.050,
    0.100,
    0.250,
    0.500,
    1.000,
    2.500,
)

_C = TypeVar("_C", Counter, Histogram)

# Cache keyed by metric name within the currently-active registry.
_registry_id: int | None = None
_collectors: dict[str, Counter | Histogram] = {}
_lock = threading.RLock()


def _ensure_registry() -> None:
    """Reset the collector cache if the active registry changed."""
    global _registry_id
    with _lock:
        rid = id(prom.REGISTRY)
        if _registry_id != rid:
            _collectors.clear()
            _registry_id = rid


def _lookup_existing(name: str, kind: type[_C]) -> _C | None:
    """Return a collector already registered under ``name`` on the active registry."""
    with _lock, suppress(Exception):
        mapping = getattr(prom.REGISTRY, "_names_to_collectors", None)
        if isinstance(mapping, dict):
            col = mapping.get(name)
            if isinstance(col, kind):
                return col
    return None


def _get_or_create(name: str, kind: type[_C], help_text: str, labelnames: tuple[str, ...]) -> _C:
    """Get or create a registry-bound collector with stable identity.

    Lookup order is the local cache, then the registry itself, then a new
    registration. A registration that loses a race to another thread falls
    back to the registry lookup.
    """
    _ensure_registry()
    with _lock:
        cached = _collectors.get(name)
        if isinstance(cached, kind):
            return cached

        existing = _lookup_existing(name, kind)
        if existing is not None:
            _collectors[name] = existing
            return existing

        try:
            if kind is Histogram:
                col = Histogram(
                    name, help_text, labelnames, buckets=_BUCKETS, registry=prom.REGISTRY
                )
            else:
                col = Counter(name, help_text, labelnames, registry=prom.REGISTRY)
        except ValueError as exc:
            if "Duplicated timeseries" in str(exc):
                again = _lookup_existing(name, kind)
                if again is not None:
                    _collectors[name] = again
                    return again
            _log.exception("Failed to register Prometheus collector %s", name)
            raise
        _collectors[name] = col
        return col  # type: ignore[return-value]


# ---------------------------------------------------------------------------
# Cache metrics
# ---------------------------------------------------------------------------


def get_cache_operation_duration_seconds() -> Histogram:
    """Return histogram for cache operation latency.

    Labels:
        operation: Facade operation name (``get``, ``mget``, ``set``, ...).
        namespace: Cache namespace/prefix.
        hit: ``true``/``false``/``n/a``.
    """
    return _get_or_create(
        "cache_operation_duration_seconds",
        Histogram,
        "Latency (seconds) of cache operations.",
        ("operation", "namespace", "hit"),
    )


def get_cache_operations_total() -> Counter:
    """Return counter for cache operations.

    Labels:
        operation: Facade operation name.
        namespace: Cache namespace/prefix.
        hit: ``true``/``false``/``n/a``.
    """
    return _get_or_create(
        "cache_operations_total",
        Counter,
        "Total cache operations by type/namespace.",
        ("operation", "namespace", "hit"),
    )


def get_cache_refresh_total() -> Counter:
    """Return counter for background refresh attempts.

    Labels:
        namespace: Cache namespace/prefix.
        result: ``success`` or ``failure``.
    """
    return _get_or_create(
        "cache_background_refresh_total",
        Counter,
        "Background refresh callback outcomes.",
        ("namespace", "result"),
    )


@dataclass
class CacheOperationOutcome:
    """Mutable outcome filled in by the observed block."""

    hit: bool | None = None

    @property
    def label(self) -> str:
        if self.hit is None:
            return "n/a"
        return "true" if self.hit else "false"


@contextmanager
def observe_cache_operation(operation: str, namespace: str) -> Iterator[CacheOperationOutcome]:
    """Record latency and count for one cache operation, including failed ones."""
    outcome = CacheOperationOutcome()
    start = time.perf_counter()
    try:
        yield outcome
    finally:
        duration = time.perf_counter() - start
        with suppress(Exception):
            get_cache_operation_duration_seconds().labels(
                operation=operation, namespace=namespace, hit=outcome.label
            ).observe(duration)
            get_cache_operations_total().labels(
                operation=operation, namespace=namespace, hit=outcome.label
            ).inc()


def record_refresh(namespace: str, *, success: bool) -> None:
    """Count one background refresh outcome."""
    with suppress(Exception):
        get_cache_refresh_total().labels(
            namespace=namespace, result="success" if success else "failure"
        ).inc()
