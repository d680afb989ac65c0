# src/cachefront/domain/services/keys.py
# Copyright (c)
# SPDX-License-Identifier: MIT
"""Logical-to-physical cache key mapping.

Purpose:
    Callers address entries by logical key; the backing store sees the
    physical key ``<namespace>:<logical>``. Prefixing is idempotent so keys
    that are re-issued internally (e.g. by a background refresh) are never
    prefixed twice.

Design:
    * Pure domain logic: no logging, no I/O.

Layer:
    domain/services
"""

from __future__ import annotations

from collections.abc import Iterable

__all__ = ["to_physical", "to_physical_many"]

_SEPARATOR = ":"


def to_physical(namespace: str, logical_key: str) -> str:
    """Return the store-facing key for ``logical_key``.

    Args:
        namespace: Namespace prefix; empty means "no prefix".
        logical_key: Caller-facing key, possibly already prefixed.

    Returns:
        ``logical_key`` when the namespace is empty or already applied,
        otherwise ``f"{namespace}:{logical_key}"``.
    """
    if not namespace:
        return logical_key
    prefix = f"{namespace}{_SEPARATOR}"
    if logical_key.startswith(prefix):
        return logical_key
    return f"{prefix}{logical_key}"


def to_physical_many(namespace: str, logical_keys: Iterable[str]) -> list[str]:
    """Map every key in ``logical_keys`` through :func:`to_physical`, keeping order."""
    return [to_physical(namespace, key) for key in logical_keys]
