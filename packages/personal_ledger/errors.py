"""Exception hierarchy for ``personal_ledger``.

Only :class:`EntryValidationError` is meant to reach users; storage and
advisory errors are caught at the ledger and gateway seams and turned into
degraded-but-working behavior.
"""

from __future__ import annotations


class LedgerError(Exception):
    """Base class for package errors."""


class StorageError(LedgerError):
    """A blob store could not read or write its backing medium."""


class EntryValidationError(LedgerError, ValueError):
    """User input was rejected before any record was created.

    ``message`` is the text shown to the user.
    """

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class AdvisoryError(LedgerError, RuntimeError):
    """The generative-AI provider failed or returned an unusable response."""
