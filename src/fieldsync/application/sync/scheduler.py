"""
Periodic Task - Cancellable fixed-interval timer.

``start()`` always cancels the current handle before creating a new one,
so there is never more than one live timer per PeriodicTask no matter how
often the app is foregrounded.
"""

import logging
import threading
from typing import Callable, Optional


class TimerHandle:
    """One running timer thread and its cancellation flag."""

    def __init__(self, interval: float):
        self.interval = interval
        self.thread: Optional[threading.Thread] = None
        self._cancelled = threading.Event()

    @property
    def cancelled(self) -> bool:
        return self._cancelled.is_set()

    def cancel(self) -> None:
        self._cancelled.set()

    def wait(self) -> bool:
        """Sleep one interval. Returns True if cancelled meanwhile."""
        return self._cancelled.wait(self.interval)


class PeriodicTask:
    """
    Runs a callback every ``interval`` seconds on a daemon thread.

    Cancelling does not interrupt a callback that is already running; it
    only prevents the next tick.
    """

    def __init__(
        self,
        callback: Callable[[], None],
        interval: float,
        name: str = "fieldsync-timer",
    ):
        if interval <= 0:
            raise ValueError("interval must be positive")
        self.callback = callback
        self.interval = interval
        self.name = name
        self.logger = logging.getLogger("PeriodicTask")

        self._lock = threading.Lock()
        self._handle: Optional[TimerHandle] = None

    @property
    def is_running(self) -> bool:
        with self._lock:
            return self._handle is not None and not self._handle.cancelled

    @property
    def handle(self) -> Optional[TimerHandle]:
        with self._lock:
            return self._handle

    def start(self, interval: Optional[float] = None) -> TimerHandle:
        """Cancel any running timer, then start a fresh one."""
        with self._lock:
            if self._handle is not None:
                self._handle.cancel()
            if interval is not None:
                self.interval = interval

            handle = TimerHandle(self.interval)
            handle.thread = threading.Thread(
                target=self._run, args=(handle,), name=self.name, daemon=True
            )
            self._handle = handle
            handle.thread.start()

        self.logger.info(f"Periodic sync started (every {self.interval:g}s)")
        return handle

    def stop(self) -> bool:
        """
        Cancel the running timer.

        Returns:
            False if no timer was running
        """
        with self._lock:
            handle, self._handle = self._handle, None
        if handle is None or handle.cancelled:
            return False
        handle.cancel()
        self.logger.info("Periodic sync stopped")
        return True

    def _run(self, handle: TimerHandle) -> None:
        while not handle.wait():
            if handle.cancelled:
                break
            try:
                self.callback()
            except Exception as e:
                self.logger.error(f"Periodic callback failed: {e}")
