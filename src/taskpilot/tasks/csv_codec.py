# src/taskpilot/tasks/csv_codec.py

"""
CSV row encoding used by the task file.

Contract:
- a field is quoted iff it contains ',', '"', '\\r' or '\\n'
- embedded quotes are doubled
- None is written as an empty field
- decoding is the exact inverse (quoted commas, doubled quotes and
  quoted line breaks included)

Backed by the stdlib csv module with the default (excel) dialect, whose
QUOTE_MINIMAL rule is exactly the one above.

The file is written through encode_row(). decode_row() is its single-line
inverse and is only used to inspect encoded rows (tests, debugging); the
loader goes through read_records(), which reports a broken record instead of
raising so one damaged row never hides the rest of the file.
"""

from __future__ import annotations

import csv
import io
import sys
from collections.abc import Iterable, Iterator, Sequence
from dataclasses import dataclass, field
from typing import IO

ROW_TERMINATOR = "\r\n"


def _raise_field_size_limit() -> None:
    # The csv default (131072 chars) is lower than what the writer accepts.
    limit = sys.maxsize
    while True:
        try:
            csv.field_size_limit(limit)
            return
        except OverflowError:
            limit //= 10


_raise_field_size_limit()


def _writer(buf: IO[str]):
    return csv.writer(buf, quoting=csv.QUOTE_MINIMAL, lineterminator=ROW_TERMINATOR)


def encode_row(fields: Sequence[str | None]) -> str:
    """Encode one row (without the trailing line terminator)."""
    buf = io.StringIO()
    _writer(buf).writerow(["" if f is None else str(f) for f in fields])
    return buf.getvalue()[: -len(ROW_TERMINATOR)]


def decode_row(line: str) -> list[str]:
    """Decode a single encoded row. An empty line decodes to one empty field."""
    rows = list(csv.reader(io.StringIO(line, newline="")))
    if not rows:
        return [""]
    return rows[0]


def write_rows(fh: IO[str], rows: Iterable[Sequence[str | None]]) -> None:
    """Write rows to a file opened with newline=''."""
    for row in rows:
        fh.write(encode_row(row) + ROW_TERMINATOR)


@dataclass(frozen=True, slots=True)
class CsvRecord:
    """One decoded record. `error` is set when the record could not be read cleanly."""

    line: int
    fields: list[str] = field(default_factory=list)
    error: str | None = None


class _LineDecoder:
    """Decodes physical lines one by one and remembers which ones were not valid text."""

    def __init__(self, fh: IO[bytes], encoding: str) -> None:
        self._lines = iter(fh)
        self._encoding = encoding
        self._count = 0
        self.bad_lines: set[int] = set()

    def __iter__(self) -> _LineDecoder:
        return self

    def __next__(self) -> str:
        raw = next(self._lines)
        self._count += 1
        try:
            return raw.decode(self._encoding)
        except UnicodeDecodeError:
            self.bad_lines.add(self._count)
            return raw.decode(self._encoding, errors="replace")


def read_records(fh: IO[bytes], encoding: str = "utf-8") -> Iterator[CsvRecord]:
    """
    Yield records from a file opened in binary mode.

    A record spanning a line that is not valid `encoding`, or one the csv
    parser rejects, is yielded with `error` set; reading goes on with the
    next record.
    """
    lines = _LineDecoder(fh, encoding)
    reader = csv.reader(lines)
    start = 1

    while True:
        try:
            fields = next(reader)
        except StopIteration:
            return
        except csv.Error as e:
            yield CsvRecord(line=start, error=str(e))
            lines.bad_lines = {n for n in lines.bad_lines if n > reader.line_num}
            start = reader.line_num + 1
            continue

        end = reader.line_num
        damaged = {n for n in lines.bad_lines if n <= end}
        if damaged:
            lines.bad_lines -= damaged
            yield CsvRecord(line=start, fields=fields, error=f"invalid {encoding} bytes")
        else:
            yield CsvRecord(line=start, fields=fields)
        start = end + 1
