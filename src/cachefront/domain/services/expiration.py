# src/cachefront/domain/services/expiration.py
# Copyright (c)
# SPDX-License-Identifier: MIT
"""Expiration resolution for bulk writes.

Purpose:
    Decide the value and TTL actually written for each entry of a bulk write.

    Precedence, highest first:
        1. A write descriptor's own ``expiration``.
        2. The call-level expiration of the bulk write.
        3. The instance default.

    A write descriptor always unwraps to its ``cacheValue``, whether or not it
    carries an expiration. Expirations that are ``None`` or not positive are
    treated as absent; a zero TTL is not a valid store expiration.

Layer:
    domain/services
"""

from __future__ import annotations

from collections.abc import Iterator, Mapping
from typing import Any

from cachefront.domain.entities.refresh import WriteDescriptor

__all__ = ["resolve", "resolve_all"]


def _usable(seconds: int | None) -> bool:
    return seconds is not None and seconds > 0


def resolve(
    per_key_value: Any,
    call_level_expiration: int | None,
    instance_default: int,
) -> tuple[Any, int]:
    """Resolve one bulk-write entry to ``(value, ttl_seconds)``.

    Args:
        per_key_value: Raw value or ``{cacheValue, expiration?}`` mapping.
        call_level_expiration: Expiration supplied to the bulk-write call.
        instance_default: Facade-wide default expiration.

    Returns:
        The unwrapped value and its effective TTL in seconds.
    """
    ttl = call_level_expiration if _usable(call_level_expiration) else instance_default
    value = per_key_value

    if WriteDescriptor.is_descriptor(per_key_value):
        descriptor = WriteDescriptor.from_payload(per_key_value)
        value = descriptor.value
        if _usable(descriptor.expiration):
            ttl = int(descriptor.expiration)  # type: ignore[arg-type]

    return value, int(ttl)


def resolve_all(
    entries: Mapping[str, Any],
    call_level_expiration: int | None,
    instance_default: int,
) -> Iterator[tuple[str, Any, int]]:
    """Yield ``(key, value, ttl_seconds)`` for every entry, in mapping order."""
    for key, raw in entries.items():
        value, ttl = resolve(raw, call_level_expiration, instance_default)
        yield key, value, ttl
