from __future__ import annotations

from typing import Iterable, Iterator, Optional
from rt.common.logger import log
from rt.core.errors import InvalidNameError, RunnerNotFoundError
from rt.core.models import Runner

# Ordered collection of runners. Ids are handed out as max(existing) + 1, so they're unique among live runners but can
# come back after removals.
class RunnerStore:

    def __init__(self, runners: Iterable[Runner] = ()):
        self._runners: list[Runner] = []
        for runner in runners:
            if any(r.id == runner.id for r in self._runners):
                log.warning(f"Dropping runner '{runner.name}' with duplicate id {runner.id}")
                continue
            self._runners.append(runner)

    def __iter__(self) -> Iterator[Runner]:
        return iter(self._runners)

    def __len__(self) -> int:
        return len(self._runners)

    def __contains__(self, runner_id) -> bool:
        return any(r.id == runner_id for r in self._runners)

    @property
    def runners(self) -> list[Runner]:
        return list(self._runners)

    def next_id(self) -> int:
        return max((r.id for r in self._runners), default=0) + 1

    def get(self, runner_id: int) -> Optional[Runner]:
        return next((r for r in self._runners if r.id == runner_id), None)

    # Same as get(), but a missing runner is an error.
    def require(self, runner_id: int) -> Runner:
        runner = self.get(runner_id)
        if runner is None:
            raise RunnerNotFoundError(runner_id)
        return runner

    def add(self, name: Optional[str] = None) -> Runner:
        runner_id = self.next_id()
        if name is None:
            name = f"Runner {runner_id}"
        name = name.strip()
        if not name:
            raise InvalidNameError("Runner name cannot be empty")
        runner = Runner(id=runner_id, name=name)
        self._runners.append(runner)
        log.debug(f"Added runner {runner_id} '{name}'")
        return runner

    def remove(self, runner_id: int) -> Runner:
        runner = self.require(runner_id)
        self._runners.remove(runner)
        log.debug(f"Removed runner {runner_id} '{runner.name}'")
        return runner

    def clear(self) -> int:
        count = len(self._runners)
        self._runners = []
        log.debug(f"Removed all {count} runners")
        return count

    @property
    def all_finished(self) -> bool:
        return bool(self._runners) and all(r.finished for r in self._runners)

    @property
    def has_splits(self) -> bool:
        return any(r.splits for r in self._runners)
