"""
Polling loop that forwards new IRC activity while the user is away.
"""

from __future__ import annotations

import time
from typing import Callable, Optional

from awaynotify import logger as app_logger
from awaynotify_core.idle_decision import decide
from awaynotify_core.models import ActivityLogState, IdleVerdict
from awaynotify_core.notifiers import Notifier
from awaynotify_core.signals import read_idle_reading, read_override
from awaynotify_core.state_store import ACTIVITY_LOG_KEY, StateStore

DEFAULT_POLL_INTERVAL_SECONDS = 1.0


class NotificationDispatcher:
    """
    Once per poll interval, evaluates the idle verdict and sends the newest
    activity-log line when the user is idle and the log has changed.

    Notifier failures propagate out of ``tick`` and ``run_forever``; recovery
    is left to whatever supervises the process.
    """

    def __init__(
        self,
        store: StateStore,
        notifier: Notifier,
        idle_threshold: int,
        *,
        poll_interval: float = DEFAULT_POLL_INTERVAL_SECONDS,
        clock: Callable[[], float] = time.time,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self.store = store
        self.notifier = notifier
        self.idle_threshold = idle_threshold
        self.poll_interval = poll_interval
        self.activity = ActivityLogState()
        self._clock = clock
        self._sleep = sleep
        self._logger = app_logger.get_logger()

    def evaluate(self) -> tuple[IdleVerdict, Optional[float], Optional[float]]:
        """Read both signals fresh and return the verdict with the raw reading."""
        override = read_override(self.store)
        reading = read_idle_reading(self.store, now=self._clock())
        verdict = decide(override, reading, self.idle_threshold)
        return verdict, reading.idle_seconds, reading.staleness_seconds

    def prime(self) -> None:
        """Treat whatever is currently in the activity log as already handled."""
        self.activity.last_seen = self.store.modified_at(ACTIVITY_LOG_KEY)

    def tick(self) -> IdleVerdict:
        verdict, idle_seconds, staleness = self.evaluate()
        self._logger.info(
            "idle={} stale={} is_idle={} reason={}",
            _format_seconds(idle_seconds),
            _format_seconds(staleness),
            verdict.is_idle,
            verdict.reason,
        )

        modified = self.store.modified_at(ACTIVITY_LOG_KEY)
        if verdict.is_idle and modified != self.activity.last_seen:
            # Committed before sending so a failed send is not retried for the same line.
            self.activity.last_seen = modified
            message = self.store.last_line(ACTIVITY_LOG_KEY)
            if message:
                self._logger.info("User is away; forwarding {!r}.", message)
                self.notifier.notify(message)
        return verdict

    def run_forever(self) -> None:
        self._logger.info(
            "Starting dispatcher (threshold={}s, poll interval={}s).",
            self.idle_threshold,
            self.poll_interval,
        )
        self.prime()
        while True:
            self.tick()
            self._sleep(self.poll_interval)


def _format_seconds(value: Optional[float]) -> str:
    return "-" if value is None else f"{value:.2f}"
