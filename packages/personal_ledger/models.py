"""Data models and type aliases for ``personal_ledger``.

Transactions are validated with Pydantic because they cross trust
boundaries (the persisted blob, CSV rows, form input). Derived analytics
points are plain frozen dataclasses: they are produced by this package and
never parsed from outside.
"""

from __future__ import annotations

import datetime as dt
from dataclasses import dataclass
from decimal import Decimal
from enum import StrEnum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_serializer

# ---------------------------------------------------------------------------
# Enumerations
# ---------------------------------------------------------------------------


class Category(StrEnum):
    """Closed set of spending categories."""

    GROCERIES = "Groceries"
    TRANSPORT = "Transport"
    ENTERTAINMENT = "Entertainment"
    UTILITIES = "Utilities"
    RENT = "Rent"
    SHOPPING = "Shopping"
    INCOME = "Income"
    OTHER = "Other"


# Declaration order; used for prompts and JSON Schema enums.
CATEGORIES: tuple[Category, ...] = tuple(Category)


class TransactionType(StrEnum):
    DEBIT = "Debit"
    CREDIT = "Credit"


# Amounts persist as JSON numbers (binary floats). Below this bound, with at
# most two decimal places, every amount reads back exactly.
MAX_AMOUNT = Decimal("999999999999.99")
AMOUNT_DECIMAL_PLACES = 2


# ---------------------------------------------------------------------------
# Transactions
# ---------------------------------------------------------------------------


class TransactionInput(BaseModel):
    """A transaction before the ledger assigns it an identity.

    ``amount`` is a positive magnitude; direction is carried by ``type``.
    """

    model_config = ConfigDict(frozen=True, extra="forbid", str_strip_whitespace=True)

    date: dt.date
    description: str
    amount: Decimal = Field(gt=0, le=MAX_AMOUNT)
    type: TransactionType
    category: Category

    @field_serializer("amount", when_used="json")
    def _amount_as_number(self, v: Decimal) -> float:
        # The persisted blob stores amounts as JSON numbers.
        return float(v)

    @property
    def is_debit(self) -> bool:
        return self.type is TransactionType.DEBIT


class Transaction(TransactionInput):
    """A ledger entry. Replaced wholesale on edit, never patched."""

    id: str = Field(min_length=1)

    @classmethod
    def from_input(cls, record: TransactionInput, *, transaction_id: str) -> Transaction:
        return cls(id=transaction_id, **record.model_dump())

    def to_input(self) -> TransactionInput:
        return TransactionInput(**self.model_dump(exclude={"id"}))

    def replace(self, **changes: Any) -> Transaction:
        """Return a validated copy with ``changes`` applied (id is kept)."""

        data = self.model_dump()
        data.update(changes)
        data["id"] = self.id
        return Transaction(**data)


type Ledger = tuple[Transaction, ...]
"""An immutable ledger snapshot, newest first."""


# ---------------------------------------------------------------------------
# Derived analytics points
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class ForecastPoint:
    """One day of a cumulative spend series.

    Provider series always carry ``forecast``. In a merged series ``actual``
    is the cumulative debit total carried forward to ``date`` and
    ``forecast`` is ``None`` when no projection exists for that day (a gap,
    not a zero).
    """

    date: dt.date
    forecast: float | None = None
    actual: float | None = None


@dataclass(frozen=True, slots=True)
class CategorySpendPoint:
    """Total debit spend for one category, in whole currency units."""

    category: Category
    amount: int


__all__ = [
    "AMOUNT_DECIMAL_PLACES",
    "CATEGORIES",
    "Category",
    "CategorySpendPoint",
    "ForecastPoint",
    "Ledger",
    "MAX_AMOUNT",
    "Transaction",
    "TransactionInput",
    "TransactionType",
]
