"""Derived analytics over ledger snapshots.

Every function here is pure: same inputs, same output, inputs untouched.
Datasets are small, so results are recomputed on each ledger change rather
than maintained incrementally.
"""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from datetime import date, timedelta
from decimal import ROUND_HALF_UP, Decimal

from .models import Category, CategorySpendPoint, ForecastPoint, Transaction

# Trailing history kept in the merged chart series, in days.
HISTORY_WINDOW_DAYS = 30


def _debits(ledger: Iterable[Transaction]) -> list[Transaction]:
    return [tx for tx in ledger if tx.is_debit]


def debit_totals_by_category(ledger: Iterable[Transaction]) -> dict[Category, Decimal]:
    """Sum debit amounts per category, keyed in first-encounter order."""

    totals: dict[Category, Decimal] = {}
    for tx in _debits(ledger):
        totals[tx.category] = totals.get(tx.category, Decimal(0)) + tx.amount
    return totals


def total_debits(ledger: Iterable[Transaction]) -> Decimal:
    return sum((tx.amount for tx in _debits(ledger)), Decimal(0))


def spend_by_category(ledger: Iterable[Transaction]) -> list[CategorySpendPoint]:
    """Return whole-unit debit spend per category, largest first.

    Credits are ignored and categories without debits are omitted. Amounts
    are rounded half-up before ordering; equal amounts keep the order in which
    their categories first appear in ``ledger``.
    """

    points = [
        CategorySpendPoint(
            category=category,
            amount=int(total.quantize(Decimal(1), rounding=ROUND_HALF_UP)),
        )
        for category, total in debit_totals_by_category(ledger).items()
    ]
    # sorted() is stable, which gives the encounter-order tie break.
    return sorted(points, key=lambda p: p.amount, reverse=True)


def cumulative_actuals(ledger: Iterable[Transaction]) -> dict[date, Decimal]:
    """Running debit total at each date that has at least one debit."""

    running = Decimal(0)
    by_date: dict[date, Decimal] = {}
    for tx in sorted(_debits(ledger), key=lambda t: t.date):
        running += tx.amount
        by_date[tx.date] = running
    return by_date


def merge_actual_with_forecast(
    ledger: Iterable[Transaction],
    forecast_series: Sequence[ForecastPoint],
    *,
    today: date | None = None,
) -> list[ForecastPoint]:
    """Merge cumulative actual spend with a cumulative forecast series.

    - Dates are the union of debit dates and forecast dates, ascending.
    - ``actual`` is carried forward from the latest prior debit date (0 before
      any debit).
    - ``forecast`` is the series value for that date, or ``None`` when the
      series has no entry (rendered as a gap, never as zero). The first entry
      wins when the series repeats a date.
    - Points older than ``today - 30 days`` are dropped; future dates stay.
    """

    anchor = today or date.today()
    actuals = cumulative_actuals(ledger)

    forecasts: dict[date, float] = {}
    for point in forecast_series:
        if point.forecast is not None and point.date not in forecasts:
            forecasts[point.date] = point.forecast

    cutoff = anchor - timedelta(days=HISTORY_WINDOW_DAYS)
    merged: list[ForecastPoint] = []
    last_actual = Decimal(0)
    for day in sorted(actuals.keys() | forecasts.keys()):
        if day in actuals:
            last_actual = actuals[day]
        if day < cutoff:
            continue
        merged.append(
            ForecastPoint(date=day, forecast=forecasts.get(day), actual=float(last_actual))
        )
    return merged


__all__ = [
    "HISTORY_WINDOW_DAYS",
    "cumulative_actuals",
    "debit_totals_by_category",
    "merge_actual_with_forecast",
    "spend_by_category",
    "total_debits",
]
