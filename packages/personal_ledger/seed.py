"""Starter ledger used on first run and whenever stored data is unusable."""

from __future__ import annotations

from datetime import date, timedelta
from decimal import Decimal

from .models import Category, Ledger, Transaction, TransactionType

# (id, days before today, description, amount, type, category)
_STARTER_ROWS: tuple[tuple[str, int, str, str, TransactionType, Category], ...] = (
    ("1", 28, "PAYCHECK DEPOSIT", "3500", TransactionType.CREDIT, Category.INCOME),
    ("2", 25, "MONTHLY RENT", "1200", TransactionType.DEBIT, Category.RENT),
    ("3", 20, "Trader Joes Groceries", "125.50", TransactionType.DEBIT, Category.GROCERIES),
    ("4", 15, "ELECTRICITY BILL", "75.20", TransactionType.DEBIT, Category.UTILITIES),
    ("5", 10, "NETFLIX", "15.99", TransactionType.DEBIT, Category.ENTERTAINMENT),
    ("6", 5, "UBER RIDE", "22.45", TransactionType.DEBIT, Category.TRANSPORT),
    ("7", 0, "WHOLE FOODS MARKET", "89.90", TransactionType.DEBIT, Category.GROCERIES),
)


def starter_ledger(today: date | None = None) -> Ledger:
    """Return the fixed starter transactions dated relative to ``today``."""

    anchor = today or date.today()
    return tuple(
        Transaction(
            id=tx_id,
            date=anchor - timedelta(days=days_ago),
            description=description,
            amount=Decimal(amount),
            type=tx_type,
            category=category,
        )
        for tx_id, days_ago, description, amount, tx_type, category in _STARTER_ROWS
    )


__all__ = ["starter_ledger"]
