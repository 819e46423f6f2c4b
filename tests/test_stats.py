"""Tests for the read-side projections: lap stats, pace classification, chart series, split log."""

import unittest

from rt.core.models import Runner, Split
from rt.core.stats import (
    PACE_OFF,
    PACE_ON,
    SORT_CHRONOLOGICAL,
    SORT_GROUPED,
    classify_pace,
    is_best_lap,
    lap_series,
    lap_stats,
    runner_stats,
    split_log,
)


def runner_with_laps(rid, name, laps, finish=False):
    splits = []
    total = 0
    for i, lap in enumerate(laps, start=1):
        total += lap
        splits.append(Split(uid=i, index=i, total=total, lap=lap))
    if finish and splits:
        splits[-1].is_finish = True
    return Runner(id=rid, name=name, splits=splits, finished=finish,
                  final_time=total if finish else None, next_split_uid=len(laps) + 1)


class TestLapStats(unittest.TestCase):

    def test_min_and_average(self):
        stats = lap_stats(runner_with_laps(1, "A", [10000, 8000, 9000]))
        self.assertEqual(stats.min_lap, 8000)
        self.assertAlmostEqual(stats.avg_lap, 9000.0)

    def test_no_splits_no_stats(self):
        self.assertIsNone(lap_stats(Runner(id=1, name="A")))
        self.assertEqual(runner_stats([Runner(id=1, name="A")]), {})

    def test_best_lap_excludes_finish(self):
        runner = runner_with_laps(1, "A", [10000, 9000, 4000], finish=True)
        stats = lap_stats(runner)
        self.assertEqual(stats.min_lap, 4000)
        self.assertFalse(is_best_lap(runner.splits[2], stats))
        self.assertFalse(is_best_lap(runner.splits[1], stats))

    def test_best_lap_flagged(self):
        runner = runner_with_laps(1, "A", [10000, 7000, 9000])
        stats = lap_stats(runner)
        self.assertEqual([is_best_lap(s, stats) for s in runner.splits], [False, True, False])


class TestPace(unittest.TestCase):

    def test_on_and_off_pace(self):
        target = 90000
        self.assertEqual(classify_pace(Split(1, 1, 85000, 85000), target), PACE_ON)
        self.assertEqual(classify_pace(Split(1, 1, 95000, 95000), target), PACE_OFF)
        self.assertEqual(classify_pace(Split(1, 1, 90000, 90000), target), PACE_ON)

    def test_no_target(self):
        self.assertIsNone(classify_pace(Split(1, 1, 85000, 85000), 0))

    def test_finish_split_not_classified(self):
        self.assertIsNone(classify_pace(Split(1, 1, 85000, 85000, is_finish=True), 90000))


class TestLapSeries(unittest.TestCase):

    def test_missing_laps_are_gaps(self):
        a = runner_with_laps(1, "A", [10000, 11000, 12000])
        b = runner_with_laps(2, "B", [9000])
        points = lap_series([a, b])
        self.assertEqual([p.lap for p in points], [1, 2, 3])
        self.assertEqual(points[0].values, {1: 10000, 2: 9000})
        self.assertEqual(points[2].values, {1: 12000})
        self.assertNotIn(2, points[1].values)
        self.assertEqual(points[1].label, "Lap 2")

    def test_filter_to_one_runner(self):
        a = runner_with_laps(1, "A", [10000])
        b = runner_with_laps(2, "B", [9000, 9500])
        points = lap_series([a, b], runner_id=1)
        self.assertEqual(len(points), 1)
        self.assertEqual(points[0].values, {1: 10000})

    def test_empty(self):
        self.assertEqual(lap_series([]), [])
        self.assertEqual(lap_series([Runner(id=1, name="A")]), [])


class TestSplitLog(unittest.TestCase):

    def setUp(self):
        # A: 10000, 20000   B: 15000
        self.a = runner_with_laps(1, "A", [10000, 10000])
        self.b = runner_with_laps(2, "B", [15000])

    def test_grouped_by_runner_then_lap(self):
        rows = split_log([self.b, self.a], mode=SORT_GROUPED)
        self.assertEqual([(r.runner_id, r.split.index) for r in rows], [(1, 1), (1, 2), (2, 1)])

    def test_chronological_newest_first(self):
        rows = split_log([self.a, self.b], mode=SORT_CHRONOLOGICAL)
        self.assertEqual([r.split.total for r in rows], [20000, 15000, 10000])
        self.assertEqual(rows[1].runner_name, "B")

    def test_filter(self):
        rows = split_log([self.a, self.b], runner_id=2)
        self.assertEqual(len(rows), 1)
        self.assertEqual(rows[0].runner_id, 2)

    def test_bad_mode(self):
        with self.assertRaises(ValueError):
            split_log([self.a], mode="sideways")

    def test_does_not_touch_stored_index(self):
        split_log([self.a, self.b], mode=SORT_CHRONOLOGICAL)
        self.assertEqual([s.index for s in self.a.splits], [1, 2])


if __name__ == "__main__":
    unittest.main()
