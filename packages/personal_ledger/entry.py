"""Transaction entry workflow: form draft, validation, category suggestion.

A draft holds raw form values. Suggesting a category is an explicit
request/apply pair: the request remembers the description revision it was
made for, and ``apply_suggestion`` drops the result if the description has
changed since. Slow provider replies therefore cannot overwrite a category
the user is already typing past.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal, InvalidOperation

from pydantic import ValidationError

from .advisory import AdvisoryGateway
from .errors import EntryValidationError
from .ledger import LedgerStore
from .logging_setup import get_logger
from .models import (
    AMOUNT_DECIMAL_PLACES,
    MAX_AMOUNT,
    Category,
    Transaction,
    TransactionInput,
    TransactionType,
)

INVALID_AMOUNT_MESSAGE = "Please enter a valid amount."

_logger = get_logger("personal_ledger.entry")


def parse_amount(raw: str) -> Decimal:
    """Parse a user-typed amount; raise :class:`EntryValidationError` if invalid.

    Valid amounts are positive, at most :data:`MAX_AMOUNT` and carry no more
    than two decimal places, so they survive the persisted JSON number.
    """

    try:
        value = Decimal(str(raw).strip())
    except (InvalidOperation, ValueError) as e:
        raise EntryValidationError(INVALID_AMOUNT_MESSAGE) from e
    if not value.is_finite() or value <= 0 or value > MAX_AMOUNT:
        raise EntryValidationError(INVALID_AMOUNT_MESSAGE)
    if -value.normalize().as_tuple().exponent > AMOUNT_DECIMAL_PLACES:
        raise EntryValidationError(INVALID_AMOUNT_MESSAGE)
    return value


@dataclass(frozen=True, slots=True)
class SuggestionRequest:
    description: str
    revision: int


@dataclass(slots=True)
class EntryDraft:
    """Mutable form state for adding or editing one transaction."""

    date: date = field(default_factory=date.today)
    description: str = ""
    amount: str = ""
    type: TransactionType = TransactionType.DEBIT
    category: Category = Category.OTHER
    editing: Transaction | None = None
    _revision: int = field(default=0, init=False, repr=False, compare=False)

    @classmethod
    def for_edit(cls, tx: Transaction) -> EntryDraft:
        return cls(
            date=tx.date,
            description=tx.description,
            amount=str(tx.amount),
            type=tx.type,
            category=tx.category,
            editing=tx,
        )

    @property
    def revision(self) -> int:
        return self._revision

    def set_description(self, text: str) -> None:
        if text != self.description:
            self.description = text
            self._revision += 1

    # ---- Category suggestion -------------------------------------------------

    def request_category_suggestion(self) -> SuggestionRequest | None:
        """Return a request for the current description, or ``None`` if moot.

        Nothing is requested for a blank description, nor when editing and
        the description still matches the stored transaction.
        """

        text = self.description.strip()
        if not text:
            return None
        if self.editing is not None and self.description == self.editing.description:
            return None
        return SuggestionRequest(description=text, revision=self._revision)

    def apply_suggestion(self, request: SuggestionRequest, category: Category) -> bool:
        if request.revision != self._revision:
            _logger.debug(
                "entry:stale_suggestion requested_rev=%d current_rev=%d",
                request.revision,
                self._revision,
            )
            return False
        self.category = category
        return True

    def suggest_category(self, gateway: AdvisoryGateway) -> bool:
        """Request, fetch and apply a suggestion; True when the draft changed."""

        request = self.request_category_suggestion()
        if request is None:
            return False
        return self.apply_suggestion(request, gateway.suggest_category(request.description))

    # ---- Submission ----------------------------------------------------------

    def to_input(self) -> TransactionInput:
        amount = parse_amount(self.amount)
        try:
            return TransactionInput(
                date=self.date,
                description=self.description,
                amount=amount,
                type=self.type,
                category=self.category,
            )
        except ValidationError as e:
            first = e.errors()[0]
            loc = ".".join(str(p) for p in first.get("loc", ()))
            raise EntryValidationError(f"{loc}: {first.get('msg')}") from e

    def submit(self, store: LedgerStore) -> Transaction:
        """Add a new transaction or replace the edited one.

        Raises :class:`EntryValidationError` before touching the store when
        the draft is invalid. Editing a transaction that was deleted in the
        meantime raises it too, since there is nothing left to replace.
        """

        record = self.to_input()
        if self.editing is None:
            return store.add(record)
        updated = Transaction.from_input(record, transaction_id=self.editing.id)
        if not store.update(updated):
            raise EntryValidationError("Transaction not found")
        return updated


def amount_is_valid(raw: str) -> bool:
    try:
        parse_amount(raw)
    except EntryValidationError:
        return False
    return True


__all__ = [
    "EntryDraft",
    "INVALID_AMOUNT_MESSAGE",
    "SuggestionRequest",
    "amount_is_valid",
    "parse_amount",
]
