"""Tests for the master race clock, driven by a fake time source instead of sleeping."""

import unittest


class FakeTime:
    """Callable monotonic source that only moves when told to."""

    def __init__(self, start=1000.0):
        self.now = start

    def __call__(self):
        return self.now

    def advance(self, seconds):
        self.now += seconds


class TestMasterClock(unittest.TestCase):

    def setUp(self):
        from rt.core.clock import MasterClock
        self.time = FakeTime()
        self.clock = MasterClock(time_source=self.time)

    def test_new_clock_is_paused_at_zero(self):
        self.assertFalse(self.clock.running)
        self.assertEqual(self.clock.elapsed(), 0)

    def test_elapsed_tracks_time_source_while_running(self):
        self.clock.start()
        self.time.advance(12.0)
        self.assertEqual(self.clock.elapsed(), 12000)

    def test_pause_holds_value(self):
        self.clock.start()
        self.time.advance(3.5)
        self.clock.pause()
        self.time.advance(100.0)
        self.assertFalse(self.clock.running)
        self.assertEqual(self.clock.elapsed(), 3500)

    def test_resume_continues_from_paused_value(self):
        self.clock.start()
        self.time.advance(2.0)
        self.clock.pause()
        self.time.advance(50.0)
        self.clock.start()
        self.time.advance(1.0)
        self.assertEqual(self.clock.elapsed(), 3000)

    def test_start_and_pause_are_idempotent(self):
        self.clock.start()
        self.time.advance(1.0)
        self.clock.start()  # no-op, must not restart the measurement
        self.time.advance(1.0)
        self.assertEqual(self.clock.elapsed(), 2000)
        self.clock.pause()
        self.clock.pause()
        self.assertEqual(self.clock.elapsed(), 2000)

    def test_elapsed_never_goes_backwards(self):
        self.clock.start()
        self.time.advance(5.0)
        self.assertEqual(self.clock.elapsed(), 5000)
        self.time.advance(-1.0)
        self.assertEqual(self.clock.elapsed(), 5000)

    def test_reset_while_paused(self):
        self.clock.start()
        self.time.advance(4.0)
        self.clock.pause()
        self.clock.reset()
        self.assertEqual(self.clock.elapsed(), 0)
        self.assertFalse(self.clock.running)

    def test_reset_while_running_keeps_running_from_zero(self):
        self.clock.start()
        self.time.advance(4.0)
        self.clock.reset()
        self.assertTrue(self.clock.running)
        self.time.advance(1.0)
        self.assertEqual(self.clock.elapsed(), 1000)

    def test_freeze_keeps_running(self):
        self.clock.start()
        self.time.advance(7.25)
        self.assertEqual(self.clock.freeze(), 7250)
        self.assertTrue(self.clock.running)
        self.time.advance(0.75)
        self.assertEqual(self.clock.elapsed(), 8000)

    def test_loaded_clock_starts_paused(self):
        from rt.core.clock import MasterClock
        clock = MasterClock(elapsed_ms=61000, time_source=self.time)
        self.assertFalse(clock.running)
        self.assertEqual(clock.elapsed(), 61000)
        clock.start()
        self.time.advance(1.0)
        self.assertEqual(clock.elapsed(), 62000)

    def test_negative_initial_value_clamped(self):
        from rt.core.clock import MasterClock
        self.assertEqual(MasterClock(elapsed_ms=-5, time_source=self.time).elapsed(), 0)


if __name__ == "__main__":
    unittest.main()
