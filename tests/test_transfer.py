"""Tests for name-list import parsing and the ranked CSV export."""

import csv
import io
import shutil
import tempfile
import unittest
from datetime import date
from pathlib import Path

from rt.core.models import Runner, Split
from rt.core.transfer import (
    EXPORT_HEADER,
    export_csv,
    export_filename,
    export_rows,
    import_template,
    parse_runner_names,
    read_lines,
    write_text,
)


class TestParseRunnerNames(unittest.TestCase):

    def test_header_line_dropped(self):
        self.assertEqual(parse_runner_names(["Nama Pelari", "Budi"]), ["Budi"])
        self.assertEqual(parse_runner_names(["NAMA", "Budi"]), ["Budi"])

    def test_first_line_kept_without_header_token(self):
        self.assertEqual(parse_runner_names(["Budi", "Siti"]), ["Budi", "Siti"])

    def test_header_token_only_checked_on_first_line(self):
        self.assertEqual(parse_runner_names(["Budi", "Namaste"]), ["Budi", "Namaste"])

    def test_quotes_and_whitespace_stripped(self):
        lines = ["Nama", '  "Siti Aminah"  ', "'Ahmad Yani'", '" Dewi "']
        self.assertEqual(parse_runner_names(lines), ["Siti Aminah", "Ahmad Yani", "Dewi"])

    def test_blank_lines_skipped(self):
        self.assertEqual(parse_runner_names(["", "Budi", "   ", '""']), ["Budi"])

    def test_template_round_trips_to_four_names(self):
        lines = import_template().splitlines()
        self.assertEqual(lines[0], "Nama Pelari")
        self.assertEqual(parse_runner_names(lines),
                         ["Budi Santoso", "Siti Aminah", "Ahmad Yani", "Dewi Sartika"])


class TestExport(unittest.TestCase):

    def setUp(self):
        self.slow = Runner(id=1, name="Slow", splits=[
            Split(1, 1, 30000, 30000),
            Split(2, 2, 62000, 32000, is_finish=True),
        ], finished=True, final_time=62000)
        self.fast = Runner(id=2, name="Fast", splits=[
            Split(1, 1, 58000, 58000, is_finish=True),
        ], finished=True, final_time=58000)
        self.running = Runner(id=3, name="Still, Running", splits=[Split(1, 1, 40000, 40000)])
        self.idle = Runner(id=4, name="Idle")

    def test_rows_carry_rank_or_placeholder(self):
        rows = export_rows([self.slow, self.fast, self.running, self.idle])
        self.assertEqual(rows[0], [2, "Slow", 1, "00:30.00", "00:30.00", "Split"])
        self.assertEqual(rows[1], [2, "Slow", 2, "00:32.00", "01:02.00", "Finish"])
        self.assertEqual(rows[2], [1, "Fast", 1, "00:58.00", "00:58.00", "Finish"])
        self.assertEqual(rows[3], ["-", "Still, Running", 1, "00:40.00", "00:40.00", "Split"])
        self.assertEqual(len(rows), 4)

    def test_csv_header_and_quoting(self):
        text = export_csv([self.running])
        parsed = list(csv.reader(io.StringIO(text)))
        self.assertEqual(parsed[0], EXPORT_HEADER)
        self.assertEqual(parsed[1][1], "Still, Running")
        self.assertEqual(len(parsed), 2)

    def test_csv_with_no_splits_is_header_only(self):
        self.assertEqual(export_csv([self.idle]).splitlines(), [",".join(EXPORT_HEADER)])

    def test_filename(self):
        self.assertEqual(export_filename(date(2026, 3, 9)), "hasil_lomba_2026-03-09.csv")


class TestFileHelpers(unittest.TestCase):

    def setUp(self):
        self.tmpdir = tempfile.mkdtemp()
        self._tmppath = Path(self.tmpdir)

    def tearDown(self):
        shutil.rmtree(self.tmpdir, ignore_errors=True)

    def test_write_then_read_lines(self):
        path = self._tmppath / "names.csv"
        write_text(path, import_template())
        self.assertEqual(read_lines(path)[1], "Budi Santoso")

    def test_read_strips_bom_and_crlf(self):
        path = self._tmppath / "excel.csv"
        path.write_bytes("\ufeffNama Pelari\r\nBudi\r\n".encode("utf-8"))
        lines = read_lines(path)
        self.assertEqual(lines, ["Nama Pelari", "Budi"])
        self.assertEqual(parse_runner_names(lines), ["Budi"])


if __name__ == "__main__":
    unittest.main()
