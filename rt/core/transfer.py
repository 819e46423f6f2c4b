"""Name-list import and ranked lap export (CSV)."""

from __future__ import annotations

import csv
from datetime import date
from io import StringIO
from pathlib import Path
from typing import Iterable

from rt.common.logger import log
from rt.core.models import Runner
from rt.core.ranking import rank_map
from rt.util import format_time

EXPORT_HEADER = ["Peringkat", "Nama Pelari", "Lap #", "Waktu Lap", "Waktu Total", "Status"]
RANK_PLACEHOLDER = "-"
HEADER_TOKEN = "nama"

_TEMPLATE_NAMES = ["Budi Santoso", "Siti Aminah", "Ahmad Yani", "Dewi Sartika"]


def _strip_name(line: str) -> str:
    name = line.strip()
    for quote in ('"', "'"):
        if name.startswith(quote):
            name = name[1:]
        if name.endswith(quote):
            name = name[:-1]
    return name.strip()


def parse_runner_names(lines: Iterable[str]) -> list[str]:
    """Pull runner names out of an imported name list.

    The first line is dropped when it looks like a header (contains "nama",
    any case). Each remaining line is trimmed and loses one layer of
    surrounding double and then single quotes; blank results are skipped.
    """
    names = []
    for position, line in enumerate(lines):
        if position == 0 and HEADER_TOKEN in line.lower():
            continue
        name = _strip_name(line)
        if name:
            names.append(name)
    return names


def export_rows(runners: Iterable[Runner]) -> list[list]:
    runners = list(runners)
    ranks = rank_map(runners)
    rows = []
    for runner in runners:
        placement = ranks.get(runner.id)
        rank = placement.rank if placement else RANK_PLACEHOLDER
        for split in runner.splits:
            rows.append([
                rank,
                runner.name,
                split.index,
                format_time(split.lap),
                format_time(split.total),
                "Finish" if split.is_finish else "Split",
            ])
    return rows


def export_csv(runners: Iterable[Runner]) -> str:
    buf = StringIO()
    w = csv.writer(buf, lineterminator="\n")
    w.writerow(EXPORT_HEADER)
    for row in export_rows(runners):
        w.writerow(row)
    return buf.getvalue()


def import_template() -> str:
    return "\n".join(["Nama Pelari", *_TEMPLATE_NAMES]) + "\n"


def export_filename(today: date | None = None) -> str:
    today = today or date.today()
    return f"hasil_lomba_{today.isoformat()}.csv"


# Reads an imported name list. utf-8-sig so spreadsheet exports with a BOM don't leak it into the first name.
def read_lines(path: Path) -> list[str]:
    with open(path, "r", encoding="utf-8-sig") as f:
        lines = f.read().splitlines()
    log.info(f"Read {len(lines)} lines from '{path}'")
    return lines


def write_text(path: Path, text: str) -> Path:
    with open(path, "w", encoding="utf-8", newline="") as f:
        f.write(text)
    log.info(f"Wrote {len(text)} characters to '{path}'")
    return Path(path)
