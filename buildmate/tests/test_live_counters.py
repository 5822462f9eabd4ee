"""
Tests for LiveCounters and the progress displays that read them.
"""

import threading
import unittest
from unittest import TestCase
from unittest.mock import patch

from buildmate.util.live_counters import CounterSnapshot, LiveCounters
from buildmate.util.progress_display import (
    STAGE_MESSAGES,
    ASCIIProgressDisplay,
    DisplayConfig,
    NullProgressDisplay,
    create_progress_display,
    format_counters,
)


class TestLiveCounters(TestCase):
    def test_increments_return_new_value(self) -> None:
        counters = LiveCounters()
        self.assertEqual(counters.record_error(), 1)
        self.assertEqual(counters.record_error(), 2)
        self.assertEqual(counters.record_warning(), 1)
        self.assertEqual(counters.record_artifact(), 1)
        self.assertEqual(counters.snapshot(), CounterSnapshot(2, 1, 1))

    def test_reader_sees_monotonic_values(self) -> None:
        counters = LiveCounters()
        seen: list[int] = []
        done = threading.Event()

        def reader() -> None:
            while not done.is_set():
                seen.append(counters.errors)

        thread = threading.Thread(target=reader)
        thread.start()
        for _ in range(10000):
            counters.record_error()
        done.set()
        thread.join()

        self.assertEqual(counters.errors, 10000)
        self.assertEqual(seen, sorted(seen))


class TestProgressDisplay(TestCase):
    def test_format_counters(self) -> None:
        self.assertEqual(
            format_counters(CounterSnapshot(1, 2, 3)),
            "🔴 1 errors, ⚠️ 2 warnings, 📁 3 units",
        )

    def test_factory_respects_none_and_tty(self) -> None:
        counters = LiveCounters()
        self.assertIsInstance(create_progress_display(counters, "none"), NullProgressDisplay)
        with patch("buildmate.util.progress_display.sys") as fake_sys:
            fake_sys.stdout.isatty.return_value = False
            self.assertIsInstance(
                create_progress_display(counters, "rich"), ASCIIProgressDisplay
            )
        self.assertIsInstance(
            create_progress_display(counters, "ascii"), ASCIIProgressDisplay
        )

    def test_stage_message_rotates(self) -> None:
        display = NullProgressDisplay(LiveCounters(), config=DisplayConfig(stage_interval=1.0))
        start = display._start_time
        self.assertEqual(display.stage_message(start), STAGE_MESSAGES[0])
        self.assertEqual(display.stage_message(start + 1.5), STAGE_MESSAGES[1])
        self.assertEqual(
            display.stage_message(start + len(STAGE_MESSAGES)), STAGE_MESSAGES[0]
        )

    def test_ascii_display_starts_and_stops(self) -> None:
        counters = LiveCounters()
        display = ASCIIProgressDisplay(
            counters, "cargo build", DisplayConfig(update_interval=0.01, status_interval=0.0)
        )
        display.start_display()
        counters.record_warning()
        display.stop_display()
        display.stop_display()


if __name__ == "__main__":
    unittest.main()
