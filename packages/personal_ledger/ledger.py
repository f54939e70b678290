"""The ledger store: sole owner of the transaction list.

Consumers read immutable snapshots (``tuple`` of frozen models) and mutate
only through :class:`LedgerStore`. Every mutation re-sorts newest first,
persists the full list under one blob key, and then notifies subscribers.

Persistence is best effort: a failed write is logged and the in-memory
ledger stays authoritative for the rest of the session.
"""

from __future__ import annotations

import itertools
import threading
from collections.abc import Callable, Iterable, Sequence
from datetime import UTC, date, datetime

from pydantic import TypeAdapter, ValidationError

from .errors import StorageError
from .logging_setup import get_logger
from .models import Ledger, Transaction, TransactionInput
from .seed import starter_ledger
from .storage import BlobStore

STORAGE_KEY = "fin-ai-transactions"

type Listener = Callable[[Ledger], None]
type IdFactory = Callable[[], str]

_LEDGER_ADAPTER: TypeAdapter[list[Transaction]] = TypeAdapter(list[Transaction])

_logger = get_logger("personal_ledger.ledger")


def sort_ledger(transactions: Iterable[Transaction]) -> Ledger:
    """Order by date descending; equal dates keep their relative order."""

    return tuple(sorted(transactions, key=lambda t: t.date, reverse=True))


def serialize_ledger(ledger: Sequence[Transaction]) -> str:
    return _LEDGER_ADAPTER.dump_json(list(ledger), indent=2).decode("utf-8")


def parse_ledger(text: str) -> Ledger:
    """Parse and validate a stored ledger blob.

    Raises ``ValueError`` (including pydantic's ``ValidationError``) when the
    text is not a JSON array of valid transactions or ids repeat.
    """

    items = _LEDGER_ADAPTER.validate_json(text)
    seen: set[str] = set()
    for tx in items:
        if tx.id in seen:
            raise ValueError(f"duplicate transaction id in stored ledger: {tx.id!r}")
        seen.add(tx.id)
    return sort_ledger(items)


class TimestampIdFactory:
    """``<UTC ISO timestamp>-<n>`` ids with a per-factory counter.

    The counter is the per-item discriminator: ids stay unique even when many
    are minted within the same clock tick.
    """

    def __init__(self) -> None:
        self._counter = itertools.count()
        self._lock = threading.Lock()

    def __call__(self) -> str:
        with self._lock:
            n = next(self._counter)
        stamp = datetime.now(UTC).isoformat(timespec="microseconds").replace("+00:00", "Z")
        return f"{stamp}-{n}"


class LedgerStore:
    """Owned ledger state with snapshot reads and mutate-and-notify writes.

    Parameters
    ----------
    blobs:
        Backend used to persist the serialized ledger.
    storage_key:
        Blob key holding the ledger (defaults to :data:`STORAGE_KEY`).
    seed_factory:
        Produces the starter ledger when nothing usable is stored.
    id_factory:
        Mints transaction ids; defaults to :class:`TimestampIdFactory`.
    """

    def __init__(
        self,
        blobs: BlobStore,
        *,
        storage_key: str = STORAGE_KEY,
        seed_factory: Callable[[], Ledger] | None = None,
        id_factory: IdFactory | None = None,
    ) -> None:
        self._blobs = blobs
        self._key = storage_key
        self._seed_factory = seed_factory or (lambda: starter_ledger(date.today()))
        self._new_id = id_factory or TimestampIdFactory()
        self._ledger: Ledger = ()
        self._listeners: list[Listener] = []
        # Single-writer discipline: concurrent mutators are serialized here.
        self._lock = threading.RLock()

    # ---- Reads ---------------------------------------------------------------

    def snapshot(self) -> Ledger:
        return self._ledger

    def get(self, transaction_id: str) -> Transaction | None:
        for tx in self._ledger:
            if tx.id == transaction_id:
                return tx
        return None

    def __len__(self) -> int:
        return len(self._ledger)

    # ---- Observers -----------------------------------------------------------

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Register ``listener(snapshot)``; returns an unsubscribe callable."""

        self._listeners.append(listener)

        def _unsubscribe() -> None:
            try:
                self._listeners.remove(listener)
            except ValueError:
                pass

        return _unsubscribe

    def _notify(self, snapshot: Ledger) -> None:
        for listener in list(self._listeners):
            try:
                listener(snapshot)
            except Exception:  # noqa: BLE001 - one bad view must not break the others
                _logger.exception("ledger:listener_failed listener=%r", listener)

    # ---- Persistence ---------------------------------------------------------

    def _persist(self, ledger: Ledger) -> bool:
        try:
            self._blobs.write(self._key, serialize_ledger(ledger))
        except (StorageError, TypeError, ValueError) as e:
            _logger.error(
                "ledger:persist_failed key=%s count=%d error=%s",
                self._key,
                len(ledger),
                e,
            )
            return False
        _logger.debug("ledger:persisted key=%s count=%d", self._key, len(ledger))
        return True

    def _commit(self, ledger: Iterable[Transaction]) -> Ledger:
        """Sort, install, persist; caller notifies after releasing the lock."""

        snapshot = sort_ledger(ledger)
        self._ledger = snapshot
        self._persist(snapshot)
        return snapshot

    def load(self) -> Ledger:
        """Load the stored ledger, seeding it when absent or unusable.

        Never raises. A missing blob is seeded and persisted. An unreadable or
        malformed blob is logged and replaced in memory by the seed; the next
        mutation overwrites it.
        """

        with self._lock:
            try:
                raw = self._blobs.read(self._key)
            except StorageError as e:
                _logger.error("ledger:load_failed key=%s error=%s", self._key, e)
                snapshot = sort_ledger(self._seed_factory())
                self._ledger = snapshot
            else:
                if raw is None:
                    _logger.info("ledger:seeded key=%s", self._key)
                    snapshot = self._commit(self._seed_factory())
                else:
                    try:
                        snapshot = parse_ledger(raw)
                    except (ValidationError, ValueError) as e:
                        _logger.error(
                            "ledger:malformed_blob key=%s error=%s",
                            self._key,
                            str(e).splitlines()[0],
                        )
                        snapshot = sort_ledger(self._seed_factory())
                    self._ledger = snapshot
        _logger.info("ledger:loaded key=%s count=%d", self._key, len(snapshot))
        self._notify(snapshot)
        return snapshot

    # ---- Mutations -----------------------------------------------------------

    def _mint_id(self, taken: set[str]) -> str:
        tid = self._new_id()
        while tid in taken:
            tid = self._new_id()
        taken.add(tid)
        return tid

    def add(self, record: TransactionInput) -> Transaction:
        """Create one transaction with a fresh id and persist the ledger."""

        with self._lock:
            taken = {tx.id for tx in self._ledger}
            created = Transaction.from_input(record, transaction_id=self._mint_id(taken))
            snapshot = self._commit((created, *self._ledger))
        _logger.info("ledger:added id=%s", created.id)
        self._notify(snapshot)
        return created

    def add_bulk(self, records: Sequence[TransactionInput]) -> list[Transaction]:
        """Create many transactions and persist once for the whole batch."""

        if not records:
            return []
        with self._lock:
            taken = {tx.id for tx in self._ledger}
            created = [
                Transaction.from_input(r, transaction_id=self._mint_id(taken)) for r in records
            ]
            snapshot = self._commit((*created, *self._ledger))
        _logger.info("ledger:bulk_added count=%d", len(created))
        self._notify(snapshot)
        return created

    def update(self, record: Transaction) -> bool:
        """Replace the transaction with ``record.id``.

        Returns ``False`` and leaves the ledger untouched when no entry
        matches.
        """

        with self._lock:
            if self.get(record.id) is None:
                _logger.warning("ledger:update_unknown_id id=%s", record.id)
                return False
            snapshot = self._commit(record if tx.id == record.id else tx for tx in self._ledger)
        _logger.info("ledger:updated id=%s", record.id)
        self._notify(snapshot)
        return True

    def delete(self, transaction_id: str) -> bool:
        """Remove the transaction with ``transaction_id``.

        Returns ``False`` and leaves the ledger untouched when no entry
        matches.
        """

        with self._lock:
            if self.get(transaction_id) is None:
                _logger.warning("ledger:delete_unknown_id id=%s", transaction_id)
                return False
            snapshot = self._commit(tx for tx in self._ledger if tx.id != transaction_id)
        _logger.info("ledger:deleted id=%s", transaction_id)
        self._notify(snapshot)
        return True


__all__ = [
    "STORAGE_KEY",
    "LedgerStore",
    "TimestampIdFactory",
    "parse_ledger",
    "serialize_ledger",
    "sort_ledger",
]
