"""Drift-corrected periodic callbacks on an asyncio event loop."""
from __future__ import annotations

import asyncio
import logging
from typing import Callable, Optional


logger = logging.getLogger(__name__)


class DriftCorrectedScheduler:
    """Invoke ``callback`` every ``interval`` seconds without accumulating drift.

    The Nth firing is scheduled for ``start + N * interval`` measured on the
    loop clock. Each deadline is derived from the previous deadline rather
    than from the time the callback finished, so slow callbacks or late
    wake-ups delay a single firing but never shift the ones after it.

    The next timer is armed before the callback runs. An exception raised by
    the callback goes to the loop's exception handler and the schedule keeps
    going.
    """

    def __init__(
        self,
        callback: Callable[[], object],
        interval: float,
        *,
        loop: Optional[asyncio.AbstractEventLoop] = None,
    ) -> None:
        if interval <= 0:
            raise ValueError(f"Interval must be positive, got {interval}")
        self._callback = callback
        self.interval = float(interval)
        self._loop = loop
        self._handle: Optional[asyncio.TimerHandle] = None
        self._next_at: Optional[float] = None
        self.ticks = 0

    # ------------------------------------------------------------------
    @property
    def running(self) -> bool:
        return self._handle is not None

    @property
    def next_deadline(self) -> Optional[float]:
        return self._next_at

    def start(self) -> "DriftCorrectedScheduler":
        if self._handle is not None:
            return self
        if self._loop is None:
            self._loop = asyncio.get_running_loop()
        self._next_at = self._loop.time() + self.interval
        self._handle = self._loop.call_at(self._next_at, self._fire)
        logger.debug("Interval started every %.3fs", self.interval)
        return self

    def cancel(self) -> None:
        if self._handle is None:
            return
        self._handle.cancel()
        self._handle = None
        self._next_at = None
        logger.debug("Interval cancelled after %s ticks", self.ticks)

    # ------------------------------------------------------------------
    def _fire(self) -> None:
        self._next_at += self.interval
        # A deadline already in the past fires on the next loop iteration.
        self._handle = self._loop.call_at(self._next_at, self._fire)
        self.ticks += 1
        self._callback()


def start_interval(
    callback: Callable[[], object],
    interval: float,
    loop: Optional[asyncio.AbstractEventLoop] = None,
) -> DriftCorrectedScheduler:
    """Start a :class:`DriftCorrectedScheduler` and return it as the cancel handle."""

    return DriftCorrectedScheduler(callback, interval, loop=loop).start()
