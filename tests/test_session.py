"""Tests for RaceSession: the split engine, finishing, completion, and runner management."""

import random
import unittest

from rt.core.errors import (
    ClockNotRunningError,
    InvalidNameError,
    NoNamesFoundError,
    RaceTimerError,
    RunnerFinishedError,
    RunnerNotFoundError,
    SplitNotFoundError,
    TimingInProgressError,
)
from rt.core.models import Runner
from rt.core.session import FINISH_MIN_LAP_MS, RaceSession
from tests.test_clock import FakeTime


def make_session(names=("A",), **kwargs):
    ft = FakeTime()
    runners = [Runner(id=i, name=n) for i, n in enumerate(names, start=1)]
    return RaceSession(runners=runners, time_source=ft, **kwargs), ft


def assert_log_consistent(test, runner):
    """Index is 1..n, totals ascend, and every lap is total minus the previous total."""
    previous = 0
    for position, split in enumerate(runner.splits, start=1):
        test.assertEqual(split.index, position)
        test.assertGreaterEqual(split.total, previous)
        test.assertEqual(split.lap, split.total - previous)
        previous = split.total


# ──────────────────────────────────────────────────────────────────────────
# Split engine
# ──────────────────────────────────────────────────────────────────────────

class TestRecordSplit(unittest.TestCase):

    def test_two_splits_then_delete_first(self):
        """12000 then 20000, delete the first: the survivor becomes lap 1 of 20000."""
        session, ft = make_session()
        session.start()
        ft.advance(12.0)
        first = session.record_split(1)
        self.assertEqual((first.index, first.total, first.lap), (1, 12000, 12000))
        ft.advance(8.0)
        second = session.record_split(1)
        self.assertEqual((second.index, second.total, second.lap), (2, 20000, 8000))

        session.delete_split(1, first.uid)
        runner = session.store.get(1)
        self.assertEqual(len(runner.splits), 1)
        only = runner.splits[0]
        self.assertEqual((only.index, only.total, only.lap), (1, 20000, 20000))
        self.assertEqual(only.uid, second.uid)

    def test_split_refused_while_paused(self):
        session, ft = make_session()
        with self.assertRaises(ClockNotRunningError):
            session.record_split(1)
        self.assertEqual(session.store.get(1).splits, [])

    def test_split_refused_for_finished_runner(self):
        session, ft = make_session(("A", "B"))
        session.start()
        ft.advance(5.0)
        session.finish_runner(1)
        before = list(session.store.get(1).splits)
        with self.assertRaises(RunnerFinishedError):
            session.record_split(1)
        self.assertEqual(session.store.get(1).splits, before)

    def test_split_for_missing_runner(self):
        session, ft = make_session()
        session.start()
        with self.assertRaises(RunnerNotFoundError) as cm:
            session.record_split(99)
        self.assertEqual(cm.exception.runner_id, 99)

    def test_split_uids_unique_after_delete(self):
        """A deleted split's uid is never handed out again for that runner."""
        session, ft = make_session()
        session.start()
        uids = []
        for _ in range(3):
            ft.advance(1.0)
            uids.append(session.record_split(1).uid)
        session.delete_split(1, uids[-1])
        ft.advance(1.0)
        fresh = session.record_split(1)
        self.assertNotIn(fresh.uid, uids)
        self.assertEqual(fresh.index, 3)

    def test_delete_middle_split_merges_laps(self):
        session, ft = make_session()
        session.start()
        splits = []
        for seconds in (10.0, 5.0, 7.0):
            ft.advance(seconds)
            splits.append(session.record_split(1))
        session.delete_split(1, splits[1].uid)
        runner = session.store.get(1)
        self.assertEqual([s.lap for s in runner.splits], [10000, 12000])
        assert_log_consistent(self, runner)

    def test_delete_missing_split(self):
        session, ft = make_session()
        with self.assertRaises(SplitNotFoundError):
            session.delete_split(1, 42)
        with self.assertRaises(RunnerNotFoundError):
            session.delete_split(7, 1)

    def test_refusals_are_race_timer_errors(self):
        session, ft = make_session()
        with self.assertRaises(RaceTimerError):
            session.record_split(1)


# ──────────────────────────────────────────────────────────────────────────
# Finishing and completion
# ──────────────────────────────────────────────────────────────────────────

class TestFinish(unittest.TestCase):

    def test_finish_adds_marker_split(self):
        session, ft = make_session(("A", "B"))
        session.start()
        ft.advance(30.0)
        session.record_split(1)
        ft.advance(31.0)
        marker = session.finish_runner(1)
        runner = session.store.get(1)
        self.assertTrue(marker.is_finish)
        self.assertEqual(marker.index, 2)
        self.assertEqual(marker.lap, 31000)
        self.assertTrue(runner.finished)
        self.assertEqual(runner.final_time, 61000)
        self.assertEqual(runner.final_time, runner.splits[-1].total)

    def test_finish_right_after_split_marks_last_split(self):
        """A finish within the minimum lap window reuses the previous split."""
        session, ft = make_session(("A", "B"))
        session.start()
        ft.advance(40.0)
        split = session.record_split(1)
        ft.advance(0.0625)  # under FINISH_MIN_LAP_MS
        marker = session.finish_runner(1)
        runner = session.store.get(1)
        self.assertIs(marker, split)
        self.assertTrue(split.is_finish)
        self.assertEqual(len(runner.splits), 1)
        self.assertEqual(runner.final_time, 40062)

    def test_finish_at_threshold_does_not_add_split(self):
        session, ft = make_session(("A", "B"))
        session.start()
        ft.advance(10.0)
        session.record_split(1)
        ft.advance(FINISH_MIN_LAP_MS / 1000)
        session.finish_runner(1)
        self.assertEqual(len(session.store.get(1).splits), 1)

    def test_finish_with_no_splits_at_start(self):
        session, ft = make_session(("A", "B"))
        session.start()
        ft.advance(0.0625)
        self.assertIsNone(session.finish_runner(1))
        runner = session.store.get(1)
        self.assertTrue(runner.finished)
        self.assertEqual(runner.splits, [])

    def test_finish_twice_refused(self):
        session, ft = make_session(("A", "B"))
        session.start()
        ft.advance(5.0)
        session.finish_runner(1)
        final = session.store.get(1).final_time
        ft.advance(5.0)
        with self.assertRaises(RunnerFinishedError):
            session.finish_runner(1)
        self.assertEqual(session.store.get(1).final_time, final)

    def test_finish_before_clock_ever_started(self):
        session, ft = make_session()
        with self.assertRaises(ClockNotRunningError):
            session.finish_runner(1)
        self.assertFalse(session.store.get(1).finished)

    def test_finish_allowed_while_paused_after_start(self):
        session, ft = make_session(("A", "B"))
        session.start()
        ft.advance(9.0)
        session.pause()
        session.finish_runner(2)
        self.assertEqual(session.store.get(2).final_time, 9000)

    def test_all_finished_auto_pauses_once(self):
        calls = []
        session, ft = make_session(("A", "B"), on_complete=calls.append)
        session.start()
        ft.advance(10.0)
        session.finish_runner(1)
        self.assertTrue(session.running)
        self.assertEqual(calls, [])
        ft.advance(2.0)
        session.finish_runner(2)
        self.assertFalse(session.running)
        self.assertEqual(calls, [session])
        # Later ticks and restarts with the same finished field don't fire again
        session.tick()
        session.start()
        self.assertFalse(session.running)
        self.assertEqual(len(calls), 1)

    def test_completion_rearms_after_new_runner(self):
        calls = []
        session, ft = make_session(("A",), on_complete=calls.append)
        session.start()
        ft.advance(3.0)
        session.finish_runner(1)
        self.assertEqual(len(calls), 1)
        session.add_runner("Late")
        session.start()
        ft.advance(3.0)
        session.finish_runner(2)
        self.assertEqual(len(calls), 2)

    def test_removing_last_unfinished_runner_completes(self):
        calls = []
        session, ft = make_session(("A", "B"), on_complete=calls.append)
        session.start()
        ft.advance(1.0)
        session.finish_runner(1)
        session.remove_runner(2)
        self.assertFalse(session.running)
        self.assertEqual(len(calls), 1)

    def test_empty_store_never_completes(self):
        calls = []
        session, ft = make_session((), on_complete=calls.append)
        session.start()
        session.tick()
        self.assertTrue(session.running)
        self.assertEqual(calls, [])


# ──────────────────────────────────────────────────────────────────────────
# Reset and runner management
# ──────────────────────────────────────────────────────────────────────────

class TestResetAndRunners(unittest.TestCase):

    def test_reset_all_clears_data_but_keeps_runners(self):
        session, ft = make_session(("A", "B"))
        session.start()
        ft.advance(4.0)
        session.record_split(1)
        session.finish_runner(2)
        session.reset_all()
        self.assertFalse(session.running)
        self.assertEqual(session.elapsed(), 0)
        self.assertEqual(len(session.runners), 2)
        for runner in session.runners:
            self.assertEqual(runner.splits, [])
            self.assertFalse(runner.finished)
            self.assertIsNone(runner.final_time)
        self.assertFalse(session.has_data)

    def test_add_runner_default_name_and_id(self):
        session, ft = make_session(("A", "B"))
        runner = session.add_runner()
        self.assertEqual(runner.id, 3)
        self.assertEqual(runner.name, "Runner 3")

    def test_add_runner_rejects_blank_name(self):
        session, ft = make_session()
        with self.assertRaises(InvalidNameError):
            session.add_runner("   ")
        self.assertEqual(len(session.runners), 1)

    def test_ids_unique_after_removal(self):
        session, ft = make_session(("A", "B", "C"))
        session.remove_runner(2)
        new = session.add_runner()
        ids = [r.id for r in session.runners]
        self.assertEqual(len(ids), len(set(ids)))
        self.assertEqual(new.id, 4)

    def test_delete_all_runners(self):
        session, ft = make_session(("A", "B"))
        self.assertEqual(session.delete_all_runners(), 2)
        self.assertEqual(session.runners, [])

    def test_rename_before_start(self):
        session, ft = make_session()
        session.rename_runner(1, "  Budi  ")
        self.assertEqual(session.store.get(1).name, "Budi")

    def test_rename_locked_once_clock_has_run(self):
        session, ft = make_session()
        session.start()
        ft.advance(0.5)
        session.pause()
        with self.assertRaises(TimingInProgressError):
            session.rename_runner(1, "Budi")
        self.assertEqual(session.store.get(1).name, "A")

    def test_rename_to_blank_refused(self):
        session, ft = make_session()
        with self.assertRaises(InvalidNameError):
            session.rename_runner(1, "")

    def test_import_runners_appends(self):
        session, ft = make_session(("A",))
        added = session.import_runners(["Nama Pelari", "Budi", '"Siti"', "", "  "])
        self.assertEqual([r.name for r in added], ["Budi", "Siti"])
        self.assertEqual([r.id for r in session.runners], [1, 2, 3])

    def test_import_with_no_names(self):
        session, ft = make_session(("A",))
        with self.assertRaises(NoNamesFoundError):
            session.import_runners(["Nama Pelari", "", '""'])
        self.assertEqual(len(session.runners), 1)


# ──────────────────────────────────────────────────────────────────────────
# Log invariants across operation sequences
# ──────────────────────────────────────────────────────────────────────────

def assert_runner_invariants(test, runner):
    assert_log_consistent(test, runner)
    test.assertEqual(runner.finished, runner.final_time is not None)
    uids = [s.uid for s in runner.splits]
    test.assertEqual(len(uids), len(set(uids)))
    test.assertTrue(all(uid < runner.next_split_uid for uid in uids))
    if not runner.finished:
        test.assertFalse(any(s.is_finish for s in runner.splits))


class TestDeleteFinishMarker(unittest.TestCase):

    def test_delete_appended_finish_marker(self):
        session, ft = make_session(("A", "B"))
        session.start()
        ft.advance(20.0)
        first = session.record_split(1)
        ft.advance(15.0)
        marker = session.finish_runner(1)

        session.delete_split(1, marker.uid)
        runner = session.store.get(1)
        self.assertTrue(runner.finished)
        self.assertEqual(runner.final_time, 35000)
        self.assertEqual(runner.splits, [first])
        self.assertFalse(any(s.is_finish for s in runner.splits))
        assert_runner_invariants(self, runner)

    def test_delete_reused_finish_marker(self):
        """Finish within the minimum lap window marks the last split, deleting it leaves an empty log."""
        session, ft = make_session(("A", "B"))
        session.start()
        ft.advance(40.0)
        split = session.record_split(1)
        ft.advance(0.0625)
        self.assertIs(session.finish_runner(1), split)

        session.delete_split(1, split.uid)
        runner = session.store.get(1)
        self.assertEqual(runner.splits, [])
        self.assertTrue(runner.finished)
        self.assertEqual(runner.final_time, 40062)
        assert_runner_invariants(self, runner)

    def test_delete_before_reused_marker_keeps_marker_total(self):
        session, ft = make_session(("A", "B"))
        session.start()
        ft.advance(10.0)
        first = session.record_split(1)
        ft.advance(12.0)
        second = session.record_split(1)
        ft.advance(0.0625)
        session.finish_runner(1)

        session.delete_split(1, first.uid)
        runner = session.store.get(1)
        self.assertEqual(len(runner.splits), 1)
        only = runner.splits[0]
        self.assertEqual(only.uid, second.uid)
        self.assertEqual((only.index, only.total, only.lap), (1, 22000, 22000))
        self.assertTrue(only.is_finish)
        self.assertEqual(runner.final_time, 22062)
        assert_runner_invariants(self, runner)


class TestRandomOperationSequences(unittest.TestCase):
    """Seeded mixes of start/pause, split, finish and delete keep every runner's log consistent."""

    STEPS = 400

    def _step(self, session, ft, rng):
        op = rng.choice(("advance", "advance", "toggle", "split", "split", "finish", "delete", "add"))
        if op == "advance":
            # Multiples of 1/64 s so the fake clock stays exact
            ft.advance(rng.randint(0, 640) / 64)
            return
        if op == "toggle":
            session.toggle()
            return
        if op == "add":
            if len(session.runners) < 6:
                session.add_runner()
            return

        runner = rng.choice(session.runners)
        before = runner.to_dict()
        if op == "delete":
            if not runner.splits:
                return
            victim = rng.choice(runner.splits)
            expected_totals = [s.total for s in runner.splits if s is not victim]
            session.delete_split(runner.id, victim.uid)
            self.assertEqual([s.total for s in runner.splits], expected_totals)
            self.assertEqual(runner.finished, before["finished"])
            self.assertEqual(runner.final_time, before["finalTime"])
            return

        action = session.record_split if op == "split" else session.finish_runner
        try:
            action(runner.id)
        except RaceTimerError:
            # Refused operations leave the runner untouched
            self.assertEqual(runner.to_dict(), before)
            return
        # Recording never rewrites an earlier total
        kept = runner.splits[:len(before["splits"])]
        self.assertEqual([s.total for s in kept], [s["total"] for s in before["splits"]])
        if op == "finish":
            self.assertEqual(runner.final_time, session.elapsed())

    def test_invariants_hold_after_every_step(self):
        for seed in (1, 7, 42, 2024):
            with self.subTest(seed=seed):
                rng = random.Random(seed)
                session, ft = make_session(("A", "B", "C"))
                for _ in range(self.STEPS):
                    self._step(session, ft, rng)
                    for runner in session.runners:
                        assert_runner_invariants(self, runner)
                    self.assertFalse(session.running and session.store.all_finished)


if __name__ == "__main__":
    unittest.main()
