"""
Laptop-side idle sampling that keeps the ``idle-time`` report fresh.
"""

from __future__ import annotations

import subprocess
import threading
from typing import Callable, Optional

from awaynotify import logger as app_logger
from awaynotify_core.state_store import IDLE_TIME_KEY, StateStore

DEFAULT_REPORT_INTERVAL_SECONDS = 1.0


class IdleTimeReporter:
    """
    Periodically samples local idle time and writes it to the state store.
    Reporting halts if the idle source fails until restarted.
    """

    def __init__(
        self,
        store: StateStore,
        interval_seconds: float = DEFAULT_REPORT_INTERVAL_SECONDS,
    ) -> None:
        self.store = store
        self.interval_seconds = interval_seconds
        self._idle_seconds_provider: Optional[Callable[[], float]] = None
        self._stop_event = threading.Event()
        self._thread: Optional[threading.Thread] = None
        self.failed = False
        self._logger = app_logger.get_logger()

    @property
    def is_running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def start(self) -> None:
        """Begin reporting idle time in a background thread."""
        if self.is_running:
            return
        self._stop_event.clear()
        self.failed = False
        self._thread = threading.Thread(target=self._run, name="idle-time-reporter", daemon=True)
        self._thread.start()

    def stop(self, timeout: Optional[float] = None) -> None:
        """Stop reporting and wait for the background thread to exit."""
        self._stop_event.set()
        thread = self._thread
        if thread is not None and thread is not threading.current_thread():
            thread.join(timeout)
        self._thread = None

    def wait(self) -> None:
        """Block until the reporter stops."""
        thread = self._thread
        if thread is not None:
            thread.join()

    def set_idle_seconds_provider(self, provider: Callable[[], float]) -> None:
        """
        Override idle seconds acquisition. Primarily used for testing.
        """
        self._idle_seconds_provider = provider

    def report_once(self) -> float:
        idle_seconds = self._get_idle_seconds()
        self.store.write_text(IDLE_TIME_KEY, f"{idle_seconds:.3f}\n")
        return idle_seconds

    def _run(self) -> None:
        while not self._stop_event.is_set():
            try:
                self.report_once()
            except OSError as exc:
                self._logger.error("Unable to sample idle time, stopping reporter: {}", exc)
                self.failed = True
                self._stop_event.set()
                break
            self._stop_event.wait(self.interval_seconds)

    def _get_idle_seconds(self) -> float:
        if self._idle_seconds_provider is not None:
            return self._idle_seconds_provider()
        return _xprintidle_seconds()


def _xprintidle_seconds() -> float:
    try:
        completed = subprocess.run(
            ["xprintidle"], capture_output=True, text=True, timeout=5, check=True
        )
    except subprocess.SubprocessError as exc:
        raise OSError(f"xprintidle failed: {exc}") from exc
    try:
        return int(completed.stdout.strip()) / 1000.0
    except ValueError as exc:
        raise OSError(f"Unexpected xprintidle output {completed.stdout!r}") from exc
