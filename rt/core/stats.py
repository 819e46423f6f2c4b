"""Read-side projections over the runners: lap stats, pace, chart series and the split log.

All of these are pure functions of the runners passed in. None of them touch
``Split.index`` or any other stored field.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, Optional

from rt.core.models import Runner, Split

SORT_GROUPED = "grouped"
SORT_CHRONOLOGICAL = "chronological"
SORT_MODES = (SORT_GROUPED, SORT_CHRONOLOGICAL)

PACE_ON = "on"
PACE_OFF = "off"


@dataclass(frozen=True)
class LapStats:
    min_lap: int
    avg_lap: float


@dataclass(frozen=True)
class LapPoint:
    lap: int
    values: dict[int, int]

    @property
    def label(self) -> str:
        return f"Lap {self.lap}"


@dataclass(frozen=True)
class SplitRow:
    runner_id: int
    runner_name: str
    split: Split


def lap_stats(runner: Runner) -> Optional[LapStats]:
    if not runner.splits:
        return None
    laps = [s.lap for s in runner.splits]
    return LapStats(min_lap=min(laps), avg_lap=sum(laps) / len(laps))


def runner_stats(runners: Iterable[Runner]) -> dict[int, LapStats]:
    """Fastest and average lap per runner. Runners with no splits are left out."""
    stats = {}
    for runner in runners:
        entry = lap_stats(runner)
        if entry is not None:
            stats[runner.id] = entry
    return stats


def is_best_lap(split: Split, stats: Optional[LapStats]) -> bool:
    # A finish lap is never flagged, even when it's numerically the fastest
    if stats is None or split.is_finish:
        return False
    return split.lap == stats.min_lap


def classify_pace(split: Split, target_ms: int) -> Optional[str]:
    if target_ms <= 0 or split.is_finish:
        return None
    return PACE_ON if split.lap <= target_ms else PACE_OFF


def _filtered(runners: Iterable[Runner], runner_id: Optional[int]) -> list[Runner]:
    return [r for r in runners if runner_id is None or r.id == runner_id]


def lap_series(runners: Iterable[Runner], runner_id: Optional[int] = None) -> list[LapPoint]:
    """Lap durations indexed by lap number, for charting.

    One point per lap number up to the longest log. A runner without a split
    at that lap number simply has no entry in the point (a gap, not a zero).
    """
    runners = _filtered(runners, runner_id)
    max_laps = max((len(r.splits) for r in runners), default=0)
    points = []
    for lap_no in range(1, max_laps + 1):
        values = {}
        for runner in runners:
            split = next((s for s in runner.splits if s.index == lap_no), None)
            if split is not None:
                values[runner.id] = split.lap
        points.append(LapPoint(lap=lap_no, values=values))
    return points


def split_log(runners: Iterable[Runner], runner_id: Optional[int] = None,
              mode: str = SORT_GROUPED) -> list[SplitRow]:
    if mode not in SORT_MODES:
        raise ValueError(f"Unknown sort mode: {mode!r}")
    rows = [
        SplitRow(runner_id=r.id, runner_name=r.name, split=s)
        for r in _filtered(runners, runner_id)
        for s in r.splits
    ]
    if mode == SORT_CHRONOLOGICAL:
        rows.sort(key=lambda row: row.split.total, reverse=True)
    else:
        rows.sort(key=lambda row: (row.runner_id, row.split.index))
    return rows
