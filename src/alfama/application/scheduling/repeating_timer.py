from __future__ import annotations

import logging
import threading
from typing import Callable

logger = logging.getLogger(__name__)


class RepeatingTimer:
    """Runs ``callback`` every ``interval_seconds`` on a daemon thread until stopped."""

    def __init__(
        self,
        interval_seconds: float,
        callback: Callable[[], object],
        name: str = "repeating-timer",
    ) -> None:
        if interval_seconds <= 0:
            raise ValueError("interval_seconds must be > 0")
        self._interval_seconds = interval_seconds
        self._callback = callback
        self._name = name
        self._stop_event = threading.Event()
        self._thread: threading.Thread | None = None

    @property
    def interval_seconds(self) -> float:
        return self._interval_seconds

    @property
    def running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def start(self) -> None:
        if self.running:
            return
        self._stop_event.clear()
        self._thread = threading.Thread(target=self._run, name=self._name, daemon=True)
        self._thread.start()
        logger.info(
            "repeating_timer_started",
            extra={"timer": self._name, "interval_seconds": self._interval_seconds},
        )

    def stop(self, timeout_seconds: float | None = 5.0) -> None:
        thread = self._thread
        if thread is None:
            return
        self._stop_event.set()
        if thread is not threading.current_thread():
            thread.join(timeout_seconds)
        self._thread = None
        logger.info("repeating_timer_stopped", extra={"timer": self._name})

    def _run(self) -> None:
        while not self._stop_event.wait(self._interval_seconds):
            try:
                self._callback()
            except Exception:
                logger.exception("repeating_timer_callback_failed", extra={"timer": self._name})
