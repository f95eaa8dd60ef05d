from __future__ import annotations

import tempfile
import unittest
from pathlib import Path

from awaynotify_core.dispatcher import NotificationDispatcher
from awaynotify_core.errors import NotifierError
from awaynotify_core.state_store import ACTIVITY_LOG_KEY, FORCE_IDLE_KEY, IDLE_TIME_KEY, FileStateStore
from tests.fakes import MemoryStateStore, RecordingNotifier

NOW = 1_000.0
THRESHOLD = 30


class _StopLoop(Exception):
    pass


class DispatcherTests(unittest.TestCase):
    def setUp(self) -> None:
        self.store = MemoryStateStore()
        self.notifier = RecordingNotifier()
        self.dispatcher = NotificationDispatcher(
            self.store, self.notifier, THRESHOLD, clock=lambda: NOW
        )

    def _set_idle(self, idle_seconds: float) -> None:
        self.store.put(IDLE_TIME_KEY, str(idle_seconds), modified_at=NOW - 1)

    def _log(self, text: str, modified_at: float) -> None:
        self.store.put(ACTIVITY_LOG_KEY, text, modified_at=modified_at)

    def test_notifies_once_per_log_change_while_idle(self) -> None:
        self._set_idle(120)
        self._log("#chan <a> hello\n", modified_at=10.0)
        for _ in range(3):
            self.assertTrue(self.dispatcher.tick().is_idle)
        self.assertEqual(self.notifier.messages, ["#chan <a> hello"])

        self._log("#chan <a> hello\n#chan <b> again\n", modified_at=11.0)
        self.dispatcher.tick()
        self.assertEqual(self.notifier.messages, ["#chan <a> hello", "#chan <b> again"])

    def test_no_notification_while_present(self) -> None:
        self._set_idle(5)
        self._log("#chan <a> hello\n", modified_at=10.0)
        self.assertFalse(self.dispatcher.tick().is_idle)
        self.assertEqual(self.notifier.messages, [])
        self.assertIsNone(self.dispatcher.activity.last_seen)

    def test_message_seen_while_present_is_sent_once_idle(self) -> None:
        self._set_idle(5)
        self._log("query <a> ping\n", modified_at=10.0)
        self.dispatcher.tick()
        self._set_idle(300)
        self.dispatcher.tick()
        self.assertEqual(self.notifier.messages, ["query <a> ping"])

    def test_forced_present_suppresses_notifications(self) -> None:
        self._set_idle(300)
        self.store.put(FORCE_IDLE_KEY, "2", modified_at=1.0)
        self._log("query <a> ping\n", modified_at=10.0)
        self.dispatcher.tick()
        self.assertEqual(self.notifier.messages, [])

    def test_missing_idle_report_counts_as_away(self) -> None:
        self._log("query <a> ping\n", modified_at=10.0)
        self.dispatcher.tick()
        self.assertEqual(self.notifier.messages, ["query <a> ping"])

    def test_missing_log_never_notifies(self) -> None:
        self._set_idle(300)
        self.dispatcher.tick()
        self.dispatcher.tick()
        self.assertEqual(self.notifier.messages, [])

    def test_notifier_failure_propagates_after_commit(self) -> None:
        notifier = RecordingNotifier(error=NotifierError("smtp down"))
        dispatcher = NotificationDispatcher(self.store, notifier, THRESHOLD, clock=lambda: NOW)
        self._set_idle(300)
        self._log("query <a> ping\n", modified_at=10.0)
        with self.assertRaises(NotifierError):
            dispatcher.tick()
        self.assertEqual(dispatcher.activity.last_seen, 10.0)
        dispatcher.tick()
        self.assertEqual(len(notifier.messages), 1)

    def test_garbage_idle_report_on_disk_counts_as_away(self) -> None:
        with tempfile.TemporaryDirectory() as tmp_dir:
            store = FileStateStore(Path(tmp_dir))
            store.path_for(IDLE_TIME_KEY).write_bytes(b"\xff\xfe12")
            store.path_for(ACTIVITY_LOG_KEY).write_text("query <a> ping\n", encoding="utf-8")
            dispatcher = NotificationDispatcher(store, self.notifier, THRESHOLD)
            self.assertTrue(dispatcher.tick().is_idle)
        self.assertEqual(self.notifier.messages, ["query <a> ping"])

    def test_run_forever_primes_and_sleeps_between_ticks(self) -> None:
        sleeps = []

        def fake_sleep(seconds: float) -> None:
            sleeps.append(seconds)
            if len(sleeps) == 1:
                self._log("old\nnew\n", modified_at=20.0)
            elif len(sleeps) == 3:
                raise _StopLoop()

        dispatcher = NotificationDispatcher(
            self.store,
            self.notifier,
            THRESHOLD,
            poll_interval=0.5,
            clock=lambda: NOW,
            sleep=fake_sleep,
        )
        self._set_idle(300)
        self._log("old\n", modified_at=10.0)
        with self.assertRaises(_StopLoop):
            dispatcher.run_forever()
        self.assertEqual(sleeps, [0.5, 0.5, 0.5])
        self.assertEqual(self.notifier.messages, ["new"])


if __name__ == "__main__":
    unittest.main()
