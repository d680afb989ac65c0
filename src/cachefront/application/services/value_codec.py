# src/cachefront/application/services/value_codec.py
# SPDX-License-Identifier: MIT
"""Value serialization for the backing store.

Purpose:
    Turn caller values into the store's string representation and back,
    without ever failing the surrounding cache operation.

Rules:
    * ``str`` is stored as-is.
    * Everything else goes through ``encoder`` (``json.dumps`` by default).
      If that fails, the value is passed through unchanged and the store
      decides what to do with it.
    * On read, ``decoder`` (``json.loads`` by default) is attempted; if it
      fails, the raw stored string is returned.
    * ``encoder``/``decoder`` are looked up on every call, so replacing them
      on a live codec takes effect immediately.

Layer:
    application/services
"""

from __future__ import annotations

import base64
import json
import logging
from collections.abc import Callable
from typing import Any

__all__ = [
    "Decoder",
    "Encoder",
    "ValueCodec",
    "bytes_aware_dumps",
    "bytes_aware_loads",
]

logger = logging.getLogger(__name__)

Encoder = Callable[[Any], str]
Decoder = Callable[[str], Any]

_BYTES_TAG = "__bytes__"


def _bytes_default(obj: Any) -> Any:
    if isinstance(obj, bytes | bytearray):
        return {_BYTES_TAG: base64.b64encode(bytes(obj)).decode("ascii")}
    raise TypeError(f"Object of type {type(obj).__name__} is not JSON serializable")


def _bytes_hook(obj: dict[str, Any]) -> Any:
    if len(obj) == 1 and _BYTES_TAG in obj:
        return base64.b64decode(obj[_BYTES_TAG])
    return obj


def bytes_aware_dumps(value: Any) -> str:
    """JSON-encode ``value``, tagging nested ``bytes`` as base64 objects."""
    return json.dumps(value, default=_bytes_default)


def bytes_aware_loads(raw: str) -> Any:
    """Inverse of :func:`bytes_aware_dumps`."""
    return json.loads(raw, object_hook=_bytes_hook)


class ValueCodec:
    """Best-effort encoder/decoder pair with a pluggable implementation."""

    def __init__(
        self,
        *,
        encoder: Encoder | None = None,
        decoder: Decoder | None = None,
        log_failures: bool = False,
    ) -> None:
        self.encoder: Encoder = encoder or json.dumps
        self.decoder: Decoder = decoder or json.loads
        self.log_failures = log_failures

    def encode(self, value: Any) -> Any:
        """Return the storable representation of ``value``."""
        if isinstance(value, str):
            return value
        try:
            return self.encoder(value)
        except (TypeError, ValueError) as exc:
            if self.log_failures:
                logger.error(
                    "Error converting value for storage",
                    extra={"value_type": type(value).__name__, "error": str(exc)},
                )
            return value

    def decode(self, stored: Any) -> Any:
        """Return the caller-facing value for a stored representation."""
        if stored is None:
            return None
        try:
            return self.decoder(stored)
        except (TypeError, ValueError) as exc:
            if self.log_failures:
                logger.error("Error parsing stored value", extra={"error": str(exc)})
            return stored
