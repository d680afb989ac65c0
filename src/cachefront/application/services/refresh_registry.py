# src/cachefront/application/services/refresh_registry.py
# SPDX-License-Identifier: MIT
"""Registry of keys enrolled in background refresh.

Maps a logical key to its :class:`RefreshDescriptor`. Writers (``set`` /
``delete`` / ``flush_all``) and the refresh sweep touch it concurrently; the
sweep works on a copied snapshot so slow refresh callbacks never hold the
lock.

Layer:
    application/services
"""

from __future__ import annotations

import threading
from collections.abc import Iterable

from cachefront.domain.entities.refresh import RefreshDescriptor

__all__ = ["RefreshRegistry"]


class RefreshRegistry:
    """Thread-safe ``key -> RefreshDescriptor`` map."""

    def __init__(self) -> None:
        self._entries: dict[str, RefreshDescriptor] = {}
        self._lock = threading.Lock()

    def put(self, key: str, descriptor: RefreshDescriptor) -> None:
        """Register or replace the descriptor for ``key``."""
        with self._lock:
            self._entries[key] = descriptor

    def replace(
        self, key: str, expected: RefreshDescriptor, descriptor: RefreshDescriptor
    ) -> bool:
        """Swap in ``descriptor`` only while ``key`` still maps to ``expected``.

        Returns:
            False when the entry was removed or replaced in the meantime.
        """
        with self._lock:
            if self._entries.get(key) is not expected:
                return False
            self._entries[key] = descriptor
            return True

    def get(self, key: str) -> RefreshDescriptor | None:
        with self._lock:
            return self._entries.get(key)

    def remove(self, key: str) -> bool:
        """Drop ``key``; return True if it was registered."""
        with self._lock:
            return self._entries.pop(key, None) is not None

    def remove_many(self, keys: Iterable[str]) -> int:
        """Drop every key in ``keys``; return how many were registered."""
        with self._lock:
            return sum(1 for key in keys if self._entries.pop(key, None) is not None)

    def remove_all(self) -> None:
        with self._lock:
            self._entries.clear()

    def snapshot(self) -> list[tuple[str, RefreshDescriptor]]:
        """Return a point-in-time copy of all entries."""
        with self._lock:
            return list(self._entries.items())

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def __contains__(self, key: object) -> bool:
        with self._lock:
            return key in self._entries
