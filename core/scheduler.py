"""Background thread that drives passive energy generation."""
from __future__ import annotations

import asyncio
import logging
import threading
from typing import Dict, Optional

from . import config
from .game_state import GameState
from .interval import DriftCorrectedScheduler


logger = logging.getLogger(__name__)

_loops: Dict[int, "GenerationLoop"] = {}
_loops_lock = threading.Lock()


class GenerationLoop:
    """Runs a drift-corrected tick on a private asyncio loop in a daemon thread.

    Every tick adds ``state.energy_per_second`` energy to ``state``.
    """

    def __init__(self, state: GameState, interval: float = config.TICK_INTERVAL_SECONDS) -> None:
        self.state = state
        self.interval = float(interval)
        self._thread: Optional[threading.Thread] = None
        self._loop: Optional[asyncio.AbstractEventLoop] = None
        self._scheduler: Optional[DriftCorrectedScheduler] = None
        self._ready = threading.Event()

    @property
    def running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    @property
    def ticks(self) -> int:
        return self._scheduler.ticks if self._scheduler else 0

    def _tick(self) -> None:
        gained = self.state.generate_energy(self.state.energy_per_second)
        logger.debug("Generation tick +%s energy (total=%s)", gained, self.state.energy)

    def _run(self) -> None:
        loop = asyncio.new_event_loop()
        self._loop = loop
        try:
            asyncio.set_event_loop(loop)
            self._scheduler = DriftCorrectedScheduler(self._tick, self.interval, loop=loop)
            self._scheduler.start()
            self._ready.set()
            loop.run_forever()
        finally:
            if self._scheduler is not None:
                self._scheduler.cancel()
            loop.close()
            self._ready.set()

    def start(self) -> "GenerationLoop":
        if self.running:
            return self
        self._ready.clear()
        thread = threading.Thread(target=self._run, name="energy-generation-loop", daemon=True)
        thread.start()
        self._thread = thread
        self._ready.wait()
        logger.info("Energy generation loop started interval=%.3fs", self.interval)
        return self

    def stop(self, timeout: Optional[float] = None) -> None:
        loop = self._loop
        thread = self._thread
        if thread is None or loop is None:
            return
        if not loop.is_closed():
            scheduler = self._scheduler
            if scheduler is not None:
                loop.call_soon_threadsafe(scheduler.cancel)
            loop.call_soon_threadsafe(loop.stop)
        thread.join(timeout)
        self._thread = None
        self._loop = None
        with _loops_lock:
            if _loops.get(id(self.state)) is self:
                del _loops[id(self.state)]
        logger.info("Energy generation loop stopped after %s ticks", self.ticks)


def ensure_generation_loop(
    state: GameState, interval: float = config.TICK_INTERVAL_SECONDS
) -> GenerationLoop:
    """Start the generation loop for ``state`` if it is not already running."""

    with _loops_lock:
        for key in [key for key, entry in _loops.items() if not entry.running]:
            del _loops[key]
        existing = _loops.get(id(state))
        if existing is not None and existing.state is state and existing.running:
            return existing
        generation_loop = GenerationLoop(state, interval).start()
        _loops[id(state)] = generation_loop
        return generation_loop
