"""Runner and split entities, plus their plain-dict (JSON) shapes."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Optional


@dataclass
class Split:
    """One recorded lap event.

    ``total`` is the clock reading when the split was taken and never changes.
    ``index`` and ``lap`` are derived from the runner's log and get recomputed
    whenever an earlier split is deleted.
    """
    uid: int
    index: int
    total: int
    lap: int
    is_finish: bool = False

    def to_dict(self) -> dict:
        return {
            "id": self.uid,
            "index": self.index,
            "total": self.total,
            "lap": self.lap,
            "isFinish": self.is_finish,
        }

    @staticmethod
    def from_dict(data: dict) -> "Split":
        total = data["total"]
        if isinstance(total, bool) or not isinstance(total, int) or total < 0:
            raise ValueError(f"Invalid split total: {total!r}")
        # Older saves used fractional ids, those get a fresh uid from the owning runner
        uid = data.get("id")
        if isinstance(uid, bool) or not isinstance(uid, int) or uid < 1:
            uid = 0
        return Split(
            uid=uid,
            index=int(data.get("index", 0)),
            total=total,
            lap=int(data.get("lap", 0)),
            is_finish=bool(data.get("isFinish", False)),
        )


@dataclass
class Runner:
    id: int
    name: str
    splits: list[Split] = field(default_factory=list)
    finished: bool = False
    final_time: Optional[int] = None
    next_split_uid: int = 1

    @property
    def last_total(self) -> int:
        return self.splits[-1].total if self.splits else 0

    def allocate_split_uid(self) -> int:
        uid = self.next_split_uid
        self.next_split_uid += 1
        return uid

    def find_split(self, uid: int) -> Optional[Split]:
        return next((s for s in self.splits if s.uid == uid), None)

    def renumber(self) -> None:
        """Recompute index and lap for every split from the stored totals."""
        previous_total = 0
        for position, split in enumerate(self.splits, start=1):
            split.index = position
            split.lap = split.total - previous_total
            previous_total = split.total

    def clear(self) -> None:
        self.splits = []
        self.finished = False
        self.final_time = None
        self.next_split_uid = 1

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "splits": [s.to_dict() for s in self.splits],
            "finished": self.finished,
            "finalTime": self.final_time,
            "nextSplitId": self.next_split_uid,
        }

    @staticmethod
    def from_dict(data: dict) -> "Runner":
        runner_id = data["id"]
        if isinstance(runner_id, bool) or not isinstance(runner_id, int):
            raise ValueError(f"Invalid runner id: {runner_id!r}")
        name = str(data.get("name") or "").strip() or f"Runner {runner_id}"
        splits = [Split.from_dict(s) for s in data.get("splits") or []]
        splits.sort(key=lambda s: s.total)

        final_time = data.get("finalTime")
        if isinstance(final_time, bool) or not isinstance(final_time, int) or final_time < 0:
            final_time = None
        # finished and finalTime must agree, whichever one is missing wins
        finished = bool(data.get("finished")) and final_time is not None
        if not finished:
            final_time = None

        highest_uid = max((s.uid for s in splits), default=0)
        next_uid = data.get("nextSplitId")
        if isinstance(next_uid, bool) or not isinstance(next_uid, int) or next_uid <= highest_uid:
            next_uid = highest_uid + 1
        seen = set()
        for split in splits:
            if split.uid == 0 or split.uid in seen:
                split.uid = next_uid
                next_uid += 1
            seen.add(split.uid)

        runner = Runner(
            id=runner_id,
            name=name,
            splits=splits,
            finished=finished,
            final_time=final_time,
            next_split_uid=next_uid,
        )
        runner.renumber()
        return runner
