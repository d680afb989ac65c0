# src/cachefront/application/services/refresh_scheduler.py
# SPDX-License-Identifier: MIT
"""Background refresh scheduler.

Purpose:
    Periodically sweep the :class:`RefreshRegistry` and renew keys that are
    about to expire, before the backing store evicts them.

State machine:
    - DISARMED -> initial; no timer task.
    - ARMED    -> timer task sweeping every interval until the owner closes.
    The only transition is DISARMED -> ARMED, via :meth:`RefreshScheduler.arm`.
    Arming validates that the sweep interval is not longer than the minimum
    TTL threshold (unless that check is disabled); a failed check leaves the
    scheduler DISARMED.

Sweep:
    Every entry whose remaining lifetime is below the threshold gets its own
    task: the refresh callback runs, and on success the ``renew`` coroutine
    writes the new value and re-registers the key. Callback or write failures
    are logged and the entry is left untouched, so the next sweep retries it.
    The sweep never waits for those tasks; sweeps may overlap.

Layer:
    application/services
"""

from __future__ import annotations

import asyncio
import inspect
import logging
import time
from collections.abc import Awaitable, Callable
from contextlib import suppress
from enum import Enum
from typing import Any

from cachefront.application.services.refresh_registry import RefreshRegistry
from cachefront.domain.entities.refresh import RefreshDescriptor
from cachefront.domain.exceptions.cache import RefreshIntervalConfigurationError
from cachefront.infrastructure.observability.metrics import record_refresh

__all__ = ["RefreshScheduler", "Renewer", "SchedulerState"]

logger = logging.getLogger(__name__)

#: Writes a refreshed value back and re-registers the key.
Renewer = Callable[[str, Any, RefreshDescriptor], Awaitable[Any]]


class SchedulerState(str, Enum):
    """Lifecycle of the refresh timer."""

    DISARMED = "disarmed"
    ARMED = "armed"


class RefreshScheduler:
    """Owns the sweep timer for one cache facade."""

    def __init__(
        self,
        registry: RefreshRegistry,
        renew: Renewer,
        *,
        interval_ms: int,
        min_ttl_ms: int,
        interval_check: bool = True,
        namespace: str = "",
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._registry = registry
        self._renew = renew
        self.interval_ms = interval_ms
        self.min_ttl_ms = min_ttl_ms
        self.interval_check = interval_check
        self._namespace = namespace
        self._clock = clock

        self._state = SchedulerState.DISARMED
        self._timer: asyncio.Task[None] | None = None
        self._inflight: set[asyncio.Task[None]] = set()

    @property
    def state(self) -> SchedulerState:
        return self._state

    @property
    def armed(self) -> bool:
        return self._state is SchedulerState.ARMED

    @property
    def inflight(self) -> int:
        """Number of refresh tasks that have not finished yet."""
        return len(self._inflight)

    def validate(self) -> None:
        """Reject an interval longer than the minimum TTL it is meant to protect.

        Raises:
            RefreshIntervalConfigurationError: If the check is enabled and fails.
        """
        if self.interval_check and self.interval_ms > self.min_ttl_ms:
            raise RefreshIntervalConfigurationError(self.interval_ms, self.min_ttl_ms)

    def arm(self) -> None:
        """Start the sweep timer once; later calls are no-ops.

        Must be called from a running event loop.

        Raises:
            RefreshIntervalConfigurationError: If the interval check fails.
        """
        if self._state is SchedulerState.ARMED:
            return
        self.validate()
        loop = asyncio.get_running_loop()
        self._timer = loop.create_task(self._run(), name="cachefront-refresh-sweep")
        self._state = SchedulerState.ARMED
        logger.info(
            "Background refresh armed",
            extra={
                "namespace": self._namespace,
                "interval_ms": self.interval_ms,
                "min_ttl_ms": self.min_ttl_ms,
            },
        )

    async def _run(self) -> None:
        """Timer loop: sleep one interval, then sweep."""
        interval_s = self.interval_ms / 1000
        while True:
            await asyncio.sleep(interval_s)
            try:
                self.sweep()
            except Exception:  # noqa: BLE001
                logger.exception("Background refresh sweep failed")

    def sweep(self) -> list[asyncio.Task[None]]:
        """Start a refresh task for every entry close to expiry.

        Returns:
            The tasks started by this sweep (not awaited here).
        """
        now = self._clock()
        threshold_s = self.min_ttl_ms / 1000
        loop = asyncio.get_running_loop()
        started: list[asyncio.Task[None]] = []

        for key, descriptor in self._registry.snapshot():
            if descriptor.remaining(now) >= threshold_s:
                continue
            task = loop.create_task(self._refresh_one(key, descriptor))
            self._inflight.add(task)
            task.add_done_callback(self._inflight.discard)
            started.append(task)

        if started:
            logger.debug(
                "Refresh sweep started tasks",
                extra={"namespace": self._namespace, "count": len(started)},
            )
        return started

    async def _refresh_one(self, key: str, descriptor: RefreshDescriptor) -> None:
        try:
            value = descriptor.refresh(key if descriptor.key is None else descriptor.key)
            if inspect.isawaitable(value):
                value = await value
        except Exception as exc:  # noqa: BLE001
            logger.warning(
                "Refresh callback failed; key keeps its current TTL",
                extra={"key": key, "error": str(exc)},
                exc_info=True,
            )
            record_refresh(self._namespace, success=False)
            return

        try:
            await self._renew(key, value, descriptor)
        except Exception as exc:  # noqa: BLE001
            logger.warning(
                "Refresh write failed; will retry on next sweep",
                extra={"key": key, "error": str(exc)},
            )
            record_refresh(self._namespace, success=False)
            return

        record_refresh(self._namespace, success=True)

    async def stop(self) -> None:
        """Cancel the timer and wait for in-flight refreshes to finish.

        The scheduler stays ARMED; it is not restarted after stopping.
        """
        if self._timer is not None:
            self._timer.cancel()
            with suppress(asyncio.CancelledError):
                await self._timer
            self._timer = None
        if self._inflight:
            await asyncio.gather(*list(self._inflight), return_exceptions=True)
