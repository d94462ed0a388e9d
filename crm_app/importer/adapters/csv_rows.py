"""CSV row parser for bulk imports.

Turns raw delimited text into an ordered sequence of rows keyed by column
name. Headers and values are trimmed, a leading BOM is dropped and fully
blank lines are skipped. Short rows simply lack the trailing columns and
extra cells are ignored; such rows surface later as missing-field validation
errors rather than parser failures.

Only text that cannot be turned into rows at all (undecodable bytes, no
header line, broken quoting) raises :class:`CSVParseError`.
"""

from __future__ import annotations

import csv
import io
from dataclasses import dataclass, field
from typing import Iterator, Sequence

from crm_app.importer.contracts import ImportContract


class CSVParseError(Exception):
    """Raised when the source text cannot be decoded into rows."""

    def __init__(self, message: str, *, line_number: int | None = None) -> None:
        super().__init__(message)
        self.line_number = line_number


@dataclass(frozen=True)
class CSVRow:
    """One data row with the source line it started on (header is line 1)."""

    row_number: int
    values: dict[str, str]

    def get(self, column: str) -> str:
        return self.values.get(column, "")


@dataclass
class CSVParseStatistics:
    """Accumulated statistics from CSV parsing."""

    rows_parsed: int = 0
    rows_skipped_blank: int = 0


@dataclass(frozen=True)
class ParsedCSV:
    header: tuple[str, ...]
    raw_header: tuple[str, ...]
    rows: tuple[CSVRow, ...]
    statistics: CSVParseStatistics = field(default_factory=CSVParseStatistics)

    def __len__(self) -> int:
        return len(self.rows)

    def __iter__(self) -> Iterator[CSVRow]:
        return iter(self.rows)


def _sanitize_header(header: str | None) -> str:
    token = (header or "").strip()
    return token.lstrip("\ufeff").strip()


def _row_is_blank(cells: Sequence[str]) -> bool:
    return all(cell.strip() == "" for cell in cells)


def decode_csv_source(source: str | bytes) -> str:
    """Return CSV text, decoding bytes as UTF-8 (BOM tolerated)."""

    if isinstance(source, bytes):
        try:
            return source.decode("utf-8-sig")
        except UnicodeDecodeError as exc:
            raise CSVParseError(f"CSV content is not valid UTF-8: {exc.reason} at byte {exc.start}.") from exc
    if source is None:
        raise CSVParseError("CSV content is missing.")
    return source


def _build_row(header: Sequence[str], cells: Sequence[str], row_number: int) -> CSVRow:
    values: dict[str, str] = {}
    for column, cell in zip(header, cells):
        if not column or column in values:
            continue
        values[column] = cell.strip()
    return CSVRow(row_number=row_number, values=values)


def parse_csv_rows(source: str | bytes, *, contract: ImportContract | None = None) -> ParsedCSV:
    """
    Parse CSV text into rows keyed by column name.

    When ``contract`` is given, header aliases resolve to its canonical column
    names; unknown columns are kept under their trimmed header.
    """

    text = decode_csv_source(source)
    reader = csv.reader(io.StringIO(text, newline=""), strict=True)
    statistics = CSVParseStatistics()

    raw_header: tuple[str, ...] | None = None
    header: tuple[str, ...] = ()
    rows: list[CSVRow] = []
    consumed_lines = 0
    try:
        for cells in reader:
            # A quoted value may span several lines; the row starts right after the previous record.
            start_line = consumed_lines + 1
            consumed_lines = reader.line_num
            if raw_header is None:
                if _row_is_blank(cells):
                    continue
                raw_header = tuple(_sanitize_header(cell) for cell in cells)
                header = contract.resolve_headers(raw_header) if contract else raw_header
                continue
            if _row_is_blank(cells):
                statistics.rows_skipped_blank += 1
                continue
            rows.append(_build_row(header, cells, start_line))
            statistics.rows_parsed += 1
    except csv.Error as exc:
        raise CSVParseError(f"Malformed CSV near line {reader.line_num}: {exc}", line_number=reader.line_num) from exc

    if raw_header is None:
        raise CSVParseError("CSV content has no header row.")

    return ParsedCSV(header=header, raw_header=raw_header, rows=tuple(rows), statistics=statistics)
