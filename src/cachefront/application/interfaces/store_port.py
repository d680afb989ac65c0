# src/cachefront/application/interfaces/store_port.py
# Copyright (c)
# SPDX-License-Identifier: MIT
"""Application Interface: Key-Value Store Port.

Synopsis:
    The narrow contract the caching facade needs from its backing store.
    Enables swapping Redis, a fake Redis, or another key-value service.

Layer:
    application/interfaces
"""

from __future__ import annotations

from collections.abc import Sequence
from typing import Any, Protocol, runtime_checkable


@runtime_checkable
class KeyValueStorePort(Protocol):
    """Async key-value store with per-key TTL semantics.

    All keys are physical (already namespaced). Implementations raise
    ``BackingStoreError`` when the store fails; absence is never an error.
    """

    async def get(self, key: str) -> Any | None:
        """Return the stored representation, or ``None`` when absent."""

    async def mget(self, keys: Sequence[str]) -> list[Any | None]:
        """Return stored values aligned with ``keys``; absent entries are ``None``."""

    async def set_with_ttl(self, key: str, value: Any, ttl_seconds: int) -> bool:
        """Unconditionally store ``value`` with a TTL."""

    async def set_if_absent_with_ttl(self, key: str, value: Any, ttl_seconds: int) -> bool:
        """Store ``value`` with a TTL only if ``key`` is absent.

        Returns:
            ``True`` when the write was accepted, ``False`` when the key existed.
        """

    async def mset_with_ttl(self, items: Sequence[tuple[str, Any, int]]) -> list[Any]:
        """Store every ``(key, value, ttl_seconds)`` atomically (all or nothing)."""

    async def delete(self, keys: Sequence[str]) -> int:
        """Delete ``keys`` and return how many existed."""

    async def flush_all(self) -> None:
        """Remove every key in the store."""

    async def list_keys(self, pattern: str = "*") -> list[str]:
        """Return keys matching a glob ``pattern``."""

    async def close(self) -> None:
        """Release the underlying connection."""
