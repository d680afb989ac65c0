# Copyright (c)
# SPDX-License-Identifier: MIT
"""
Domain Entities: Write and Refresh Descriptors.

Purpose:
    * ``WriteDescriptor``: a bulk-write entry that carries its value plus an
      optional per-key expiration override.
    * ``RefreshDescriptor``: the bookkeeping row for a key registered for
      background refresh.

Layer:
    domain/entities
"""

from __future__ import annotations

import time
from collections.abc import Awaitable, Callable, Mapping
from dataclasses import dataclass
from typing import Any

__all__ = [
    "CACHE_VALUE_FIELD",
    "EXPIRATION_FIELD",
    "RefreshCallback",
    "RefreshDescriptor",
    "WriteDescriptor",
]

#: Reserved field that marks a mapping as a write descriptor.
CACHE_VALUE_FIELD = "cacheValue"

#: Optional per-key expiration override inside a write descriptor.
EXPIRATION_FIELD = "expiration"

#: Produces a replacement value for a key; may be sync or async.
RefreshCallback = Callable[[str], Awaitable[Any] | Any]


@dataclass(frozen=True, slots=True)
class WriteDescriptor:
    """Value plus optional expiration override for one bulk-write entry."""

    value: Any
    expiration: int | None = None

    @staticmethod
    def is_descriptor(payload: Any) -> bool:
        """Return True when ``payload`` carries the reserved value field."""
        return isinstance(payload, Mapping) and CACHE_VALUE_FIELD in payload

    @classmethod
    def from_payload(cls, payload: Mapping[str, Any]) -> WriteDescriptor:
        """Build a descriptor from a ``{cacheValue, expiration?}`` mapping."""
        return cls(
            value=payload[CACHE_VALUE_FIELD],
            expiration=payload.get(EXPIRATION_FIELD),
        )


@dataclass(frozen=True, slots=True)
class RefreshDescriptor:
    """Refresh bookkeeping for one logical key.

    Attributes:
        expires_at: Absolute wall-clock expiry in epoch seconds.
        ttl_seconds: Original TTL span, reused on every renewal write.
        refresh: Callback producing the replacement value.
        key: Key handed to ``refresh``, as the caller wrote it. ``None`` means
            the registry key is passed instead.
    """

    expires_at: float
    ttl_seconds: int
    refresh: RefreshCallback
    key: str | None = None

    @classmethod
    def starting_now(
        cls,
        ttl_seconds: int,
        refresh: RefreshCallback,
        *,
        key: str | None = None,
        now: float | None = None,
    ) -> RefreshDescriptor:
        """Build a descriptor whose expiry is ``ttl_seconds`` from ``now``."""
        start = time.time() if now is None else now
        return cls(
            expires_at=start + ttl_seconds, ttl_seconds=ttl_seconds, refresh=refresh, key=key
        )

    def remaining(self, now: float) -> float:
        """Return seconds left until ``expires_at`` (negative once past)."""
        return self.expires_at - now
