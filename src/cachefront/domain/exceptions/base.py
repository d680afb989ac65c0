# Copyright (c)
# SPDX-License-Identifier: MIT
"""
Base Cache Exceptions.

Summary:
    Canonical base class for cache errors. Every error carries a stable
    ``code`` and a ``details`` mapping so callers can branch or log without
    parsing messages.

Layer:
    domain/exceptions
"""
from __future__ import annotations

from typing import Any


class CacheError(Exception):
    """Base class for all cachefront exceptions."""

    code: str = "CACHE_ERROR"

    def __init__(self, message: str = "", *, details: dict[str, Any] | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.details: dict[str, Any] = details or {}
