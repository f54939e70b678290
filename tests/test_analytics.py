from __future__ import annotations

from datetime import date
from decimal import Decimal

from personal_ledger.analytics import (
    cumulative_actuals,
    merge_actual_with_forecast,
    spend_by_category,
    total_debits,
)
from personal_ledger.models import (
    Category,
    CategorySpendPoint,
    ForecastPoint,
    Transaction,
    TransactionType,
)
from personal_ledger.seed import starter_ledger

TODAY = date(2024, 6, 10)


def _tx(
    tid: str,
    when: date,
    amount: str,
    category: Category = Category.OTHER,
    tx_type: TransactionType = TransactionType.DEBIT,
) -> Transaction:
    return Transaction(
        id=tid,
        date=when,
        description=f"tx {tid}",
        amount=Decimal(amount),
        type=tx_type,
        category=category,
    )


def test_spend_by_category_on_starter_ledger() -> None:
    points = spend_by_category(starter_ledger(TODAY))
    assert points == [
        CategorySpendPoint(Category.RENT, 1200),
        CategorySpendPoint(Category.GROCERIES, 215),
        CategorySpendPoint(Category.UTILITIES, 75),
        CategorySpendPoint(Category.TRANSPORT, 22),
        CategorySpendPoint(Category.ENTERTAINMENT, 16),
    ]


def test_spend_rounds_half_up_and_ignores_credits() -> None:
    ledger = [
        _tx("a", TODAY, "10.50", Category.SHOPPING),
        _tx("b", TODAY, "999", Category.INCOME, TransactionType.CREDIT),
    ]
    assert spend_by_category(ledger) == [CategorySpendPoint(Category.SHOPPING, 11)]


def test_spend_ties_keep_first_seen_order() -> None:
    ledger = [
        _tx("a", TODAY, "20", Category.TRANSPORT),
        _tx("b", TODAY, "20", Category.GROCERIES),
        _tx("c", TODAY, "30", Category.RENT),
    ]
    assert [p.category for p in spend_by_category(ledger)] == [
        Category.RENT,
        Category.TRANSPORT,
        Category.GROCERIES,
    ]


def test_spend_empty_ledger() -> None:
    assert spend_by_category([]) == []
    assert total_debits([]) == Decimal(0)


def test_cumulative_actuals_accumulate_by_date() -> None:
    ledger = [
        _tx("a", date(2024, 6, 5), "5"),
        _tx("b", date(2024, 6, 1), "10"),
        _tx("c", date(2024, 6, 1), "2.5"),
        _tx("d", date(2024, 6, 3), "100", tx_type=TransactionType.CREDIT),
    ]
    assert cumulative_actuals(ledger) == {
        date(2024, 6, 1): Decimal("12.5"),
        date(2024, 6, 5): Decimal("17.5"),
    }


def test_merge_carries_actuals_forward_and_leaves_forecast_gaps() -> None:
    ledger = [
        _tx("a", date(2024, 6, 1), "10"),
        _tx("b", date(2024, 6, 5), "5"),
        _tx("c", date(2024, 6, 3), "100", tx_type=TransactionType.CREDIT),
    ]
    forecast = [
        ForecastPoint(date(2024, 6, 11), forecast=20.0),
        ForecastPoint(date(2024, 6, 12), forecast=35.0),
        ForecastPoint(date(2024, 6, 11), forecast=99.0),
    ]

    merged = merge_actual_with_forecast(ledger, forecast, today=TODAY)

    assert merged == [
        ForecastPoint(date(2024, 6, 1), forecast=None, actual=10.0),
        ForecastPoint(date(2024, 6, 5), forecast=None, actual=15.0),
        ForecastPoint(date(2024, 6, 11), forecast=20.0, actual=15.0),
        ForecastPoint(date(2024, 6, 12), forecast=35.0, actual=15.0),
    ]


def test_merge_drops_points_older_than_window_but_keeps_their_totals() -> None:
    ledger = [
        _tx("old", date(2024, 5, 1), "100"),
        _tx("edge", date(2024, 5, 11), "1"),
        _tx("new", date(2024, 6, 1), "10"),
    ]

    merged = merge_actual_with_forecast(ledger, [], today=TODAY)

    assert [(p.date, p.actual) for p in merged] == [
        (date(2024, 5, 11), 101.0),
        (date(2024, 6, 1), 111.0),
    ]


def test_merge_forecast_before_any_debit_has_zero_actual() -> None:
    merged = merge_actual_with_forecast(
        [], [ForecastPoint(date(2024, 6, 11), forecast=50.0)], today=TODAY
    )
    assert merged == [ForecastPoint(date(2024, 6, 11), forecast=50.0, actual=0.0)]


def test_inputs_are_left_unchanged() -> None:
    ledger = [
        _tx("b", date(2024, 6, 5), "5", Category.RENT),
        _tx("a", date(2024, 6, 1), "10", Category.GROCERIES),
    ]
    forecast = [
        ForecastPoint(date(2024, 6, 12), forecast=35.0),
        ForecastPoint(date(2024, 6, 11), forecast=20.0),
    ]
    ledger_before = list(ledger)
    forecast_before = list(forecast)

    spend_by_category(ledger)
    merge_actual_with_forecast(ledger, forecast, today=TODAY)

    assert ledger == ledger_before
    assert forecast == forecast_before
