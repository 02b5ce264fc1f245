"""Periodic background work on a daemon thread."""

from __future__ import annotations

import threading
from abc import ABC, abstractmethod
from datetime import timedelta

from mcp_manager.output import MessageType, VerbosityLevel, message


class PeriodicWorker(ABC):
    """Calls :meth:`run_once` on a daemon thread until stopped.

    The first call happens after ``initial_delay``; later calls follow
    ``interval`` after the previous one ends.  An exception from a pass is
    reported and the loop carries on.  :meth:`stop` sets an event that
    subclasses can hand to long passes for cooperative cancellation.
    """

    # Thread name, also used in log messages
    NAME = "mcp-manager-worker"
    DESCRIPTION = "background worker"

    def __init__(self, interval: timedelta, initial_delay: timedelta):
        self.interval = interval
        self.initial_delay = initial_delay
        self.passes = 0
        self._stop = threading.Event()
        self._thread: threading.Thread | None = None

    @abstractmethod
    def run_once(self) -> None:
        """Do one pass of work."""

    @property
    def running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    @property
    def stopping(self) -> bool:
        return self._stop.is_set()

    def start(self) -> None:
        if self.running:
            return
        self._stop.clear()
        self._thread = threading.Thread(target=self._run, name=self.NAME, daemon=True)
        self._thread.start()
        message(f"{self.DESCRIPTION.capitalize()} started", MessageType.DEBUG, VerbosityLevel.DEBUG)

    def stop(self, timeout: float | None = None) -> None:
        self._stop.set()
        if self._thread is not None:
            self._thread.join(timeout)
            self._thread = None
        message(f"{self.DESCRIPTION.capitalize()} stopped", MessageType.DEBUG, VerbosityLevel.DEBUG)

    def wait(self, timeout: float | None = None) -> bool:
        """Block until the worker is asked to stop; True if it was."""
        return self._stop.wait(timeout)

    def _run(self) -> None:
        if self._stop.wait(self.initial_delay.total_seconds()):
            return

        while not self._stop.is_set():
            try:
                self.run_once()
                self.passes += 1
            except Exception as e:
                # Keep the loop alive; the next interval retries
                message(f"Error during {self.DESCRIPTION}: {e}", MessageType.ERROR, VerbosityLevel.ALWAYS)

            if self._stop.wait(self.interval.total_seconds()):
                break
