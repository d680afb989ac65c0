# Copyright (c)
# SPDX-License-Identifier: MIT
"""
Cache Exceptions

Purpose:
    Error conditions surfaced by the caching facade. Serialization and refresh
    callback failures are deliberately absent: they degrade and are logged
    instead of raised.

Layer: domain/exceptions
"""
from __future__ import annotations

from typing import Any

from .base import CacheError


class CacheArgumentError(CacheError):
    """A required call argument is missing."""

    code = "INCORRECT_ARGUMENT"


class RefreshIntervalConfigurationError(CacheError):
    """The refresh sweep interval is longer than the minimum TTL it protects."""

    code = "BACKGROUND_REFRESH_INTERVAL"

    def __init__(self, interval_ms: int, min_ttl_ms: int) -> None:
        super().__init__(
            "background_refresh_interval_ms cannot be greater than "
            "background_refresh_min_ttl_ms.",
            details={"interval_ms": interval_ms, "min_ttl_ms": min_ttl_ms},
        )


class BackingStoreError(CacheError):
    """The backing key-value store rejected or failed an operation."""

    code = "BACKING_STORE_ERROR"

    def __init__(
        self,
        operation: str,
        *,
        original_error: BaseException | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        merged = {"operation": operation, **(details or {})}
        if original_error is not None:
            merged["original_error"] = str(original_error)
            merged["original_error_type"] = type(original_error).__name__
        super().__init__(f"Backing store operation failed: {operation}", details=merged)
        if original_error is not None:
            self.__cause__ = original_error


class CacheNotConfiguredError(CacheError):
    """No Redis connection settings were provided."""

    code = "CACHE_NOT_CONFIGURED"
