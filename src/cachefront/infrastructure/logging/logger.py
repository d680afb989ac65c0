# src/cachefront/infrastructure/logging/logger.py
# Copyright (c)
# SPDX-License-Identifier: MIT
"""JSON log lines for cache operations.

Every record becomes one JSON object with fixed keys (``ts``, ``level``,
``logger``, ``message``, ``pid``) followed by whatever the call site passed in
``extra=``. Cache code logs ``key``, ``namespace``, ``ttl_seconds`` and similar
context that way, so the lines can be filtered without parsing messages.

The process id is part of every line: several processes may share one Redis
and only one of them refreshes a given key.

Usage:
    configure_root_logging("DEBUG")
    log = get_json_logger(__name__)
    log.info("Cache warmed", extra={"namespace": "app"})
"""

from __future__ import annotations

import json
import logging
import os
from collections.abc import Iterator
from datetime import UTC, datetime
from typing import Any

__all__ = ["configure_root_logging", "get_json_logger"]

# Attributes every LogRecord carries; anything else came from ``extra=``.
_STANDARD_ATTRS = frozenset(
    logging.LogRecord("", logging.INFO, "", 0, "", (), None).__dict__
) | {"message", "asctime", "taskName"}


def _extras(record: logging.LogRecord) -> Iterator[tuple[str, Any]]:
    for name, value in record.__dict__.items():
        if name not in _STANDARD_ATTRS and not name.startswith("_"):
            yield name, value


class _JsonFormatter(logging.Formatter):
    """Render records as compact JSON objects."""

    def format(self, record: logging.LogRecord) -> str:
        line: dict[str, Any] = {
            "ts": datetime.fromtimestamp(record.created, tz=UTC).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "pid": record.process or os.getpid(),
        }

        if record.exc_info and record.exc_info[0] is not None:
            err_type, err, _ = record.exc_info
            line["exc_type"] = err_type.__name__
            line["exc_message"] = "" if err is None else str(err)

        line.update(_extras(record))
        return json.dumps(line, separators=(",", ":"), ensure_ascii=False, default=repr)


def _resolve_level(level: str | int | None) -> str | int:
    if level is None:
        level = os.getenv("LOG_LEVEL") or "INFO"
    return level.upper() if isinstance(level, str) else level


def configure_root_logging(level: str | int | None = None) -> None:
    """Set the root level and install one JSON stream handler.

    Repeated calls only adjust the level.

    Args:
        level: Level or level name; falls back to ``LOG_LEVEL``, then ``INFO``.
    """
    root = logging.getLogger()
    root.setLevel(_resolve_level(level))
    if any(isinstance(h.formatter, _JsonFormatter) for h in root.handlers):
        return

    handler = logging.StreamHandler()
    handler.setFormatter(_JsonFormatter())
    root.addHandler(handler)


def get_json_logger(name: str) -> logging.Logger:
    """Return the named logger, propagating to the JSON root handler.

    Call :func:`configure_root_logging` once at startup; this does not.
    """
    logger = logging.getLogger(name)
    logger.propagate = True
    return logger
