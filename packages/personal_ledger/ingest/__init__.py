"""Bulk ingestion of transactions from external files."""

from .csv_import import CsvRow, ImportReport, RowError, import_csv, import_csv_file, parse_csv_rows

__all__ = [
    "CsvRow",
    "ImportReport",
    "RowError",
    "import_csv",
    "import_csv_file",
    "parse_csv_rows",
]
