"""Simple CSV import: ``date,description,amount,type`` rows into the ledger.

Format
------
- First line is a header and is ignored; blank lines are skipped.
- Each row is split on commas (no quoting support) and values are stripped.
- ``date`` is ``YYYY-MM-DD``; ``amount`` a positive number; ``type`` is
  ``Debit`` or ``Credit`` (case-insensitive).

Bad rows are reported with their 1-based line number and skipped. Categories
are suggested per valid row on a bounded thread pool; results keep input
order and the whole batch is persisted with one write.
"""

from __future__ import annotations

import datetime as dt
import time
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from decimal import Decimal
from pathlib import Path

from ..advisory import AdvisoryGateway
from ..config import DEFAULT_IMPORT_MAX_WORKERS
from ..entry import parse_amount
from ..errors import EntryValidationError
from ..ledger import LedgerStore
from ..logging_setup import get_logger
from ..models import Transaction, TransactionInput, TransactionType

EXPECTED_COLUMNS: tuple[str, ...] = ("date", "description", "amount", "type")

_logger = get_logger("personal_ledger.ingest.csv_import")


@dataclass(frozen=True, slots=True)
class CsvRow:
    """One raw data row; ``column_count`` is the number of comma-separated cells."""

    line_no: int
    date: str
    description: str
    amount: str
    type: str
    column_count: int = len(EXPECTED_COLUMNS)


@dataclass(frozen=True, slots=True)
class RowError:
    line_no: int
    message: str

    def __str__(self) -> str:
        return f"line {self.line_no}: {self.message}"


@dataclass(slots=True)
class ImportReport:
    added: list[Transaction] = field(default_factory=list)
    errors: list[RowError] = field(default_factory=list)


def parse_csv_rows(text: str) -> list[CsvRow]:
    rows: list[CsvRow] = []
    lines = text.replace("\r\n", "\n").split("\n")
    for idx, line in enumerate(lines[1:], start=2):
        if not line.strip():
            continue
        cells = [c.strip() for c in line.split(",")]
        padded = (cells + [""] * len(EXPECTED_COLUMNS))[: len(EXPECTED_COLUMNS)]
        rows.append(
            CsvRow(
                line_no=idx,
                date=padded[0],
                description=padded[1],
                amount=padded[2],
                type=padded[3],
                column_count=len(cells),
            )
        )
    return rows


def _parse_type(raw: str) -> TransactionType:
    for member in TransactionType:
        if raw.casefold() == member.value.casefold():
            return member
    raise EntryValidationError(f"unknown type {raw!r}; expected Debit or Credit")


def _validate_row(row: CsvRow) -> tuple[dt.date, str, Decimal, TransactionType]:
    if row.column_count != len(EXPECTED_COLUMNS):
        raise EntryValidationError(
            f"expected {len(EXPECTED_COLUMNS)} columns, got {row.column_count}"
        )
    try:
        when = dt.date.fromisoformat(row.date)
    except ValueError as e:
        raise EntryValidationError(f"invalid date {row.date!r}") from e
    return when, row.description, parse_amount(row.amount), _parse_type(row.type)


def import_csv(
    text: str,
    store: LedgerStore,
    gateway: AdvisoryGateway,
    *,
    max_workers: int = DEFAULT_IMPORT_MAX_WORKERS,
) -> ImportReport:
    """Validate, categorize and bulk-add every usable row of ``text``."""

    t0 = time.perf_counter()
    report = ImportReport()
    valid: list[tuple[CsvRow, tuple[dt.date, str, Decimal, TransactionType]]] = []
    for row in parse_csv_rows(text):
        try:
            valid.append((row, _validate_row(row)))
        except EntryValidationError as e:
            report.errors.append(RowError(row.line_no, e.message))

    descriptions = [fields[1] for _, fields in valid]
    if descriptions:
        workers = max(1, min(max_workers, len(descriptions)))
        with ThreadPoolExecutor(max_workers=workers) as pool:
            categories = list(pool.map(gateway.suggest_category, descriptions))
    else:
        categories = []

    records: list[TransactionInput] = []
    for (row, (when, description, amount, tx_type)), category in zip(
        valid, categories, strict=True
    ):
        try:
            records.append(
                TransactionInput(
                    date=when,
                    description=description,
                    amount=amount,
                    type=tx_type,
                    category=category,
                )
            )
        except ValueError as e:
            report.errors.append(RowError(row.line_no, str(e).splitlines()[0]))

    report.added = store.add_bulk(records)
    report.errors.sort(key=lambda err: err.line_no)
    _logger.info(
        "import:csv_done added=%d errors=%d latency_ms=%.2f",
        len(report.added),
        len(report.errors),
        (time.perf_counter() - t0) * 1000.0,
    )
    return report


def import_csv_file(
    path: str | Path,
    store: LedgerStore,
    gateway: AdvisoryGateway,
    *,
    max_workers: int = DEFAULT_IMPORT_MAX_WORKERS,
) -> ImportReport:
    text = Path(path).read_text(encoding="utf-8")
    return import_csv(text, store, gateway, max_workers=max_workers)


__all__ = [
    "CsvRow",
    "EXPECTED_COLUMNS",
    "ImportReport",
    "RowError",
    "import_csv",
    "import_csv_file",
    "parse_csv_rows",
]
