"""Recurring re-evaluation for callers that show a live BAC.

The engine never schedules itself. A RefreshTask reads the clock, hands the
reading to a callback (usually one that calls evaluate), and repeats on an
interval until stopped.
"""

import logging
import threading
from datetime import datetime, timezone
from typing import Any, Callable, Optional

logger = logging.getLogger(__name__)


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class RefreshTask:
    def __init__(
        self,
        callback: Callable[[datetime], Any],
        interval_seconds: float = 60.0,
        clock: Callable[[], datetime] = utc_now,
    ):
        if interval_seconds <= 0:
            raise ValueError("interval_seconds must be > 0")
        self.callback = callback
        self.interval_seconds = interval_seconds
        self.clock = clock
        self._lock = threading.Lock()
        self._stop_event: Optional[threading.Event] = None
        self._thread: Optional[threading.Thread] = None

    @property
    def is_running(self) -> bool:
        thread = self._thread
        return thread is not None and thread.is_alive()

    def start(self) -> None:
        with self._lock:
            if self.is_running:
                return
            self._stop_event = threading.Event()
            self._thread = threading.Thread(
                target=self._run, args=(self._stop_event,), name="bac-refresh", daemon=True
            )
            self._thread.start()

    def stop(self, timeout: Optional[float] = None) -> None:
        with self._lock:
            thread, stop_event = self._thread, self._stop_event
            self._thread = None
            self._stop_event = None
        if stop_event is not None:
            stop_event.set()
        if thread is not None and thread is not threading.current_thread():
            thread.join(timeout)

    def trigger(self) -> Any:
        """Run the callback now, outside the schedule."""
        return self.callback(self.clock())

    def _run(self, stop_event: threading.Event) -> None:
        while not stop_event.wait(self.interval_seconds):
            try:
                self.trigger()
            except Exception:
                logger.exception("refresh callback failed")

    def __enter__(self) -> "RefreshTask":
        self.start()
        return self

    def __exit__(self, *exc_info) -> None:
        self.stop()
