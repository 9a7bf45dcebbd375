"""Cancellable periodic tick running in a background thread."""

from __future__ import annotations

import logging
import threading
from datetime import timedelta
from typing import Callable, Optional

logger = logging.getLogger(__name__)

TickCallback = Callable[[threading.Event], None]


class CountdownTicker:
    """Call ``callback`` every ``interval`` until stopped.

    The callback receives the stop event of the run that produced the tick,
    so a receiver can drop ticks that arrive after a cancellation it has
    already acted on.
    """

    def __init__(self, interval: timedelta, callback: TickCallback) -> None:
        self._interval = interval.total_seconds()
        self._callback = callback
        self._lock = threading.Lock()
        self._thread: Optional[threading.Thread] = None
        self._stop_event: Optional[threading.Event] = None

    def start(self) -> None:
        with self._lock:
            if self._thread and self._thread.is_alive():
                return
            stop_event = threading.Event()
            thread = threading.Thread(
                target=self._run,
                args=(stop_event,),
                name="agenda-ticker",
                daemon=True,
            )
            self._thread = thread
            self._stop_event = stop_event
            thread.start()
            logger.debug("Ticker started.")

    def stop(self, *, wait: bool = True) -> None:
        thread: Optional[threading.Thread] = None
        with self._lock:
            if not self._thread or not self._stop_event:
                return
            self._stop_event.set()
            thread = self._thread
            self._thread = None
            self._stop_event = None
        if wait and thread is not threading.current_thread():
            thread.join(timeout=10)
        logger.debug("Ticker stopped.")

    def is_running(self) -> bool:
        with self._lock:
            return bool(self._thread and self._thread.is_alive())

    def _run(self, stop_event: threading.Event) -> None:
        while not stop_event.wait(self._interval):
            try:
                self._callback(stop_event)
            except Exception:
                logger.exception("Tick callback failed; stopping ticker.")
                return
