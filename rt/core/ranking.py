"""Finish-order ranking, derived fresh from the runners on every call.

Runners with equal final times keep their store order (Python's sort is
stable). Nothing here is cached, since a deleted split or a late finish can
change the order between two reads.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, Optional

from rt.core.models import Runner

_PODIUM_LABELS = {1: "Juara 1", 2: "Juara 2", 3: "Juara 3"}


@dataclass(frozen=True)
class Placement:
    rank: int
    runner_id: int
    name: str
    final_time: int

    @property
    def label(self) -> str:
        return rank_label(self.rank)

    @property
    def is_podium(self) -> bool:
        return self.rank <= 3


def rank_label(rank: int) -> str:
    return _PODIUM_LABELS.get(rank, f"Posisi {rank}")


def rank_runners(runners: Iterable[Runner]) -> list[Placement]:
    finished = [r for r in runners if r.finished and r.final_time is not None]
    finished.sort(key=lambda r: r.final_time)
    return [
        Placement(rank=position, runner_id=r.id, name=r.name, final_time=r.final_time)
        for position, r in enumerate(finished, start=1)
    ]


def rank_map(runners: Iterable[Runner]) -> dict[int, Placement]:
    return {p.runner_id: p for p in rank_runners(runners)}


def rank_of(runners: Iterable[Runner], runner_id: int) -> Optional[int]:
    placement = rank_map(runners).get(runner_id)
    return placement.rank if placement else None
