from __future__ import annotations

import tempfile
import unittest
from pathlib import Path

from awaynotify_core.errors import ConfigurationError
from awaynotify_core.models import OverrideState
from awaynotify_core.signals import read_idle_reading, read_override, write_override
from awaynotify_core.state_store import FORCE_IDLE_KEY, IDLE_TIME_KEY, FileStateStore
from tests.fakes import MemoryStateStore


class IdleReadingTests(unittest.TestCase):
    def test_reading_with_staleness(self) -> None:
        store = MemoryStateStore()
        store.put(IDLE_TIME_KEY, "12.5\n", modified_at=100.0)
        reading = read_idle_reading(store, now=104.0)
        self.assertEqual(reading.idle_seconds, 12.5)
        self.assertEqual(reading.staleness_seconds, 4.0)

    def test_missing_file_is_absent(self) -> None:
        self.assertTrue(read_idle_reading(MemoryStateStore(), now=0.0).is_absent)

    def test_unparsable_contents_are_absent(self) -> None:
        store = MemoryStateStore()
        for contents in ("", "   ", "abc", "1.2.3"):
            store.put(IDLE_TIME_KEY, contents, modified_at=100.0)
            reading = read_idle_reading(store, now=101.0)
            self.assertIsNone(reading.idle_seconds)
            self.assertIsNone(reading.staleness_seconds)


class OverrideTests(unittest.TestCase):
    def test_absent_flag_is_none(self) -> None:
        store = MemoryStateStore()
        self.assertIs(read_override(store), OverrideState.NONE)
        self.assertEqual(store.deleted, [])

    def test_zero_is_consumed(self) -> None:
        store = MemoryStateStore()
        store.put(FORCE_IDLE_KEY, "0\n", modified_at=1.0)
        self.assertIs(read_override(store), OverrideState.NONE)
        self.assertIsNone(store.read_text(FORCE_IDLE_KEY))
        # Reading again after consumption must not fail.
        self.assertIs(read_override(store), OverrideState.NONE)

    def test_forced_states_persist_across_reads(self) -> None:
        store = MemoryStateStore()
        store.put(FORCE_IDLE_KEY, "1", modified_at=1.0)
        self.assertIs(read_override(store), OverrideState.FORCE_IDLE)
        self.assertIs(read_override(store), OverrideState.FORCE_IDLE)
        store.put(FORCE_IDLE_KEY, " 2 \n", modified_at=2.0)
        self.assertIs(read_override(store), OverrideState.FORCE_NOT_IDLE)
        self.assertEqual(store.deleted, [])

    def test_malformed_flag_is_configuration_error(self) -> None:
        store = MemoryStateStore()
        for contents in ("yes", "", "3", "1.0"):
            store.put(FORCE_IDLE_KEY, contents, modified_at=1.0)
            with self.assertRaises(ConfigurationError):
                read_override(store)

    def test_write_override(self) -> None:
        store = MemoryStateStore()
        write_override(store, OverrideState.FORCE_NOT_IDLE)
        self.assertEqual(store.read_text(FORCE_IDLE_KEY), "2\n")


class UndecodableFileTests(unittest.TestCase):
    def test_binary_idle_time_is_absent(self) -> None:
        with tempfile.TemporaryDirectory() as tmp_dir:
            store = FileStateStore(Path(tmp_dir))
            store.path_for(IDLE_TIME_KEY).write_bytes(b"\xff\xfe12")
            self.assertTrue(read_idle_reading(store).is_absent)

    def test_binary_override_is_configuration_error(self) -> None:
        with tempfile.TemporaryDirectory() as tmp_dir:
            store = FileStateStore(Path(tmp_dir))
            store.path_for(FORCE_IDLE_KEY).write_bytes(b"\xff")
            with self.assertRaises(ConfigurationError):
                read_override(store)


if __name__ == "__main__":
    unittest.main()
