"""Periodic wake-ups for the driver."""

from __future__ import annotations

import logging
import threading
import time
from typing import Callable

log = logging.getLogger(__name__)


def monotonic() -> float:
    """Default time source for sessions."""
    return time.monotonic()


class Ticker:
    """Call ``on_tick`` every ``interval`` seconds on a background thread.

    ``stop()`` cancels the ticker and waits for the thread to exit, so no tick
    is delivered once it returns.
    """

    def __init__(self, interval: float, on_tick: Callable[[], None]) -> None:
        if interval <= 0:
            raise ValueError("interval must be positive")
        self.interval = interval
        self._on_tick = on_tick
        self._stopped = threading.Event()
        self._thread = threading.Thread(target=self._run, name="pomocycle-ticker", daemon=True)

    @property
    def running(self) -> bool:
        return self._thread.is_alive()

    def start(self) -> None:
        self._thread.start()
        log.debug("Ticker started (every %.2fs)", self.interval)

    def stop(self) -> None:
        self._stopped.set()
        if self._thread.is_alive() and self._thread is not threading.current_thread():
            self._thread.join()
        log.debug("Ticker stopped")

    def _run(self) -> None:
        # Event.wait returns True as soon as stop() is called.
        while not self._stopped.wait(self.interval):
            self._on_tick()
