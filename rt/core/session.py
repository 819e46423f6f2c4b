"""The race session: master clock + runner store, and every operation that mutates them.

Nothing outside this class writes to a Runner or Split directly. Each method
checks its preconditions first and raises a ``RaceTimerError`` subclass before
changing anything, so a refused operation leaves the session untouched.

All calls are expected from one thread (the UI event loop), which is what keeps
a clock tick from interleaving with a split being recorded.
"""

from __future__ import annotations

import time
from collections.abc import Callable, Iterable
from typing import Any, Optional

from rt.common.logger import log
from rt.core.clock import MasterClock
from rt.core.errors import (
    ClockNotRunningError,
    InvalidNameError,
    NoNamesFoundError,
    RunnerFinishedError,
    SplitNotFoundError,
    TimingInProgressError,
)
from rt.core.models import Runner, Split
from rt.core.runners import RunnerStore
from rt.core.transfer import parse_runner_names

# A final lap this short (ms) is treated as a double tap of split + finish: the previous split becomes the finish
# instead of adding a near-zero lap.
FINISH_MIN_LAP_MS = 100


class RaceSession:

    def __init__(self, runners: Iterable[Runner] = (), elapsed_ms: int = 0,
                 time_source: Callable[[], float] = time.monotonic,
                 on_complete: Optional[Callable[["RaceSession"], Any]] = None):
        self.clock = MasterClock(elapsed_ms, time_source=time_source)
        self.store = RunnerStore(runners)
        self.on_complete = on_complete
        # Armed while not everyone is finished. The completion callback only fires on the transition.
        self._completion_armed = not self.store.all_finished

    @property
    def runners(self) -> list[Runner]:
        return self.store.runners

    def elapsed(self) -> int:
        return self.clock.elapsed()

    @property
    def running(self) -> bool:
        return self.clock.running

    # ------------------------------------------------------------------ #
    #  Clock control                                                       #
    # ------------------------------------------------------------------ #

    def start(self) -> None:
        self.clock.start()
        # Everyone already finished, so the clock has nothing to time
        self._check_completion()

    def pause(self) -> None:
        self.clock.pause()

    def toggle(self) -> bool:
        if self.clock.running:
            self.pause()
        else:
            self.start()
        return self.clock.running

    def tick(self) -> int:
        """Periodic heartbeat from the UI timer. Returns the current clock reading."""
        self._check_completion()
        return self.clock.elapsed()

    def _check_completion(self) -> bool:
        if not self.store.all_finished:
            self._completion_armed = True
            return False
        if self.clock.running:
            self.clock.pause()
        if not self._completion_armed:
            return False
        self._completion_armed = False
        log.info(f"All {len(self.store)} runners finished, clock stopped at {self.clock.elapsed()}ms")
        if self.on_complete is not None:
            self.on_complete(self)
        return True

    # ------------------------------------------------------------------ #
    #  Split engine                                                        #
    # ------------------------------------------------------------------ #

    def record_split(self, runner_id: int) -> Split:
        runner = self.store.require(runner_id)
        if not self.clock.running:
            raise ClockNotRunningError("Start the clock before recording splits")
        if runner.finished:
            raise RunnerFinishedError(f"{runner.name} has already finished")

        now = self.clock.elapsed()
        split = Split(
            uid=runner.allocate_split_uid(),
            index=len(runner.splits) + 1,
            total=now,
            lap=now - runner.last_total,
        )
        runner.splits.append(split)
        log.debug(f"Split {split.index} for runner {runner.id} at {now}ms (lap {split.lap}ms)")
        return split

    def finish_runner(self, runner_id: int) -> Optional[Split]:
        """Finish a runner at the current clock reading.

        Returns the split carrying the finish marker, or None when the runner
        had no splits and finished within the minimum lap window.
        """
        runner = self.store.require(runner_id)
        if runner.finished:
            raise RunnerFinishedError(f"{runner.name} has already finished")
        if not self.clock.running and self.clock.elapsed() == 0:
            raise ClockNotRunningError("The race clock has not been started")

        now = self.clock.elapsed()
        lap = now - runner.last_total
        marker = None
        if lap > FINISH_MIN_LAP_MS:
            marker = Split(
                uid=runner.allocate_split_uid(),
                index=len(runner.splits) + 1,
                total=now,
                lap=lap,
                is_finish=True,
            )
            runner.splits.append(marker)
        elif runner.splits:
            marker = runner.splits[-1]
            marker.is_finish = True

        runner.finished = True
        runner.final_time = now
        log.info(f"Runner {runner.id} '{runner.name}' finished at {now}ms")
        self._check_completion()
        return marker

    def delete_split(self, runner_id: int, split_uid: int) -> Split:
        runner = self.store.require(runner_id)
        split = runner.find_split(split_uid)
        if split is None:
            raise SplitNotFoundError(runner_id, split_uid)
        runner.splits.remove(split)
        runner.renumber()
        log.debug(f"Deleted split {split_uid} (total {split.total}ms) from runner {runner_id}, "
                  f"{len(runner.splits)} splits remain")
        return split

    def reset_session(self) -> None:
        """Clear every runner's splits and finish state. The runners themselves stay."""
        for runner in self.store:
            runner.clear()
        self._completion_armed = True
        log.info(f"Cleared race data for {len(self.store)} runners")

    def reset_all(self) -> None:
        """Stop and zero the clock, then clear all race data."""
        self.clock.pause()
        self.clock.reset()
        self.reset_session()

    @property
    def has_data(self) -> bool:
        return self.clock.elapsed() > 0 or self.store.has_splits

    # ------------------------------------------------------------------ #
    #  Runner management                                                   #
    # ------------------------------------------------------------------ #

    def add_runner(self, name: Optional[str] = None) -> Runner:
        runner = self.store.add(name)
        self._completion_armed = True
        return runner

    def remove_runner(self, runner_id: int) -> Runner:
        runner = self.store.remove(runner_id)
        # Removing the last unfinished runner can complete the race
        self._check_completion()
        return runner

    def delete_all_runners(self) -> int:
        count = self.store.clear()
        self._completion_armed = True
        return count

    def rename_runner(self, runner_id: int, name: str) -> Runner:
        runner = self.store.require(runner_id)
        if self.clock.elapsed() > 0:
            raise TimingInProgressError("Names are locked once the race clock has started")
        name = (name or "").strip()
        if not name:
            raise InvalidNameError("Runner name cannot be empty")
        runner.name = name
        log.debug(f"Renamed runner {runner_id} to '{name}'")
        return runner

    def import_runners(self, lines: Iterable[str]) -> list[Runner]:
        names = parse_runner_names(lines)
        if not names:
            raise NoNamesFoundError("No valid runner names found")
        added = [self.store.add(name) for name in names]
        self._completion_armed = True
        log.info(f"Imported {len(added)} runners")
        return added
