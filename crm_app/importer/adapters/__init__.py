"""Source adapters that turn uploaded files into importer rows."""

from .csv_rows import CSVParseError, CSVParseStatistics, CSVRow, ParsedCSV, decode_csv_source, parse_csv_rows

__all__ = [
    "CSVParseError",
    "CSVParseStatistics",
    "CSVRow",
    "ParsedCSV",
    "decode_csv_source",
    "parse_csv_rows",
]
