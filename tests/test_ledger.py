from __future__ import annotations

import json
from datetime import date
from decimal import Decimal

import pytest
from pydantic import ValidationError

from personal_ledger.errors import StorageError
from personal_ledger.ledger import STORAGE_KEY, LedgerStore, parse_ledger, serialize_ledger
from personal_ledger.models import Category, Transaction, TransactionInput, TransactionType
from personal_ledger.seed import starter_ledger
from personal_ledger.storage import MemoryBlobStore

TODAY = date(2024, 6, 15)


class CountingBlobStore(MemoryBlobStore):
    def __init__(self, initial: dict[str, str] | None = None) -> None:
        super().__init__(initial)
        self.writes = 0

    def write(self, key: str, text: str) -> None:
        self.writes += 1
        super().write(key, text)


class BrokenBlobStore:
    def read(self, key: str) -> str | None:
        raise StorageError("disk on fire")

    def write(self, key: str, text: str) -> None:
        raise StorageError("disk on fire")


def _store(blobs=None, **kwargs) -> LedgerStore:
    return LedgerStore(
        blobs if blobs is not None else CountingBlobStore(),
        seed_factory=lambda: starter_ledger(TODAY),
        **kwargs,
    )


def _input(description: str = "Coffee", amount: str = "4.50", when: date = TODAY) -> TransactionInput:
    return TransactionInput(
        date=when,
        description=description,
        amount=Decimal(amount),
        type=TransactionType.DEBIT,
        category=Category.OTHER,
    )


def test_first_load_seeds_and_persists() -> None:
    blobs = CountingBlobStore()
    store = _store(blobs)

    snapshot = store.load()

    assert len(snapshot) == 7
    assert blobs.writes == 1
    stored = json.loads(blobs.read(STORAGE_KEY))
    assert [row["id"] for row in stored] == [tx.id for tx in snapshot]
    assert stored[0]["amount"] == 89.9


def test_snapshot_is_newest_first() -> None:
    store = _store()
    dates = [tx.date for tx in store.load()]
    assert dates == sorted(dates, reverse=True)


def test_entries_sorted_by_date_descending() -> None:
    store = LedgerStore(MemoryBlobStore(), seed_factory=lambda: ())
    store.load()
    for day in (1, 3, 2):
        store.add(_input(f"day {day}", when=date(2024, 1, day)))

    assert [tx.date for tx in store.snapshot()] == [
        date(2024, 1, 3),
        date(2024, 1, 2),
        date(2024, 1, 1),
    ]


def test_amount_above_bound_is_rejected_before_persisting() -> None:
    with pytest.raises(ValidationError):
        _input(amount="1e400")


def test_large_amount_round_trips_exactly() -> None:
    blobs = CountingBlobStore()
    first = _store(blobs)
    first.load()
    added = first.add(_input(amount="123456789012.34"))

    second = _store(blobs)
    second.load()
    assert second.get(added.id).amount == Decimal("123456789012.34")


def test_reload_round_trips_through_blob() -> None:
    blobs = CountingBlobStore()
    first = _store(blobs)
    first.load()
    added = first.add(_input())

    second = _store(blobs)
    assert second.load() == first.snapshot()
    assert second.get(added.id) == added


@pytest.mark.parametrize(
    "raw",
    [
        "not json",
        '{"id": "1"}',
        '[{"id": "1", "date": "2024-01-01"}]',
    ],
)
def test_malformed_blob_falls_back_to_seed_without_overwriting(raw: str) -> None:
    blobs = CountingBlobStore({STORAGE_KEY: raw})
    store = _store(blobs)

    assert len(store.load()) == 7
    assert blobs.writes == 0
    assert blobs.read(STORAGE_KEY) == raw


def test_duplicate_ids_in_blob_are_rejected() -> None:
    seed = starter_ledger(TODAY)
    text = serialize_ledger((seed[0], seed[0]))
    with pytest.raises(ValueError):
        parse_ledger(text)


def test_unavailable_storage_keeps_working_in_memory() -> None:
    store = _store(BrokenBlobStore())
    assert len(store.load()) == 7

    created = store.add(_input())

    assert store.get(created.id) == created
    assert len(store) == 8


def test_add_assigns_fresh_ids_and_notifies() -> None:
    store = _store()
    store.load()
    seen: list[int] = []
    store.subscribe(lambda snap: seen.append(len(snap)))

    a = store.add(_input("A"))
    b = store.add(_input("B"))

    assert a.id != b.id
    assert a.id not in {"1", "2", "3", "4", "5", "6", "7"}
    assert seen == [8, 9]


def test_add_skips_colliding_ids() -> None:
    ids = iter(["1", "7", "fresh"])
    store = _store(id_factory=lambda: next(ids))
    store.load()
    assert store.add(_input()).id == "fresh"


def test_equal_dates_keep_relative_order() -> None:
    store = _store()
    store.load()
    first = store.add(_input("first"))
    second = store.add(_input("second"))
    same_day = [tx.id for tx in store.snapshot() if tx.date == TODAY]
    # New entries go in front; a stable sort keeps that among equal dates.
    assert same_day.index(second.id) < same_day.index(first.id)


def test_add_bulk_persists_once() -> None:
    blobs = CountingBlobStore()
    store = _store(blobs)
    store.load()
    notified: list[int] = []
    store.subscribe(lambda snap: notified.append(len(snap)))
    writes_before = blobs.writes

    created = store.add_bulk([_input("a"), _input("b"), _input("c")])

    assert len(created) == 3
    assert len({tx.id for tx in created}) == 3
    assert blobs.writes == writes_before + 1
    assert notified == [10]


def test_add_bulk_empty_is_noop() -> None:
    blobs = CountingBlobStore()
    store = _store(blobs)
    store.load()
    writes_before = blobs.writes

    assert store.add_bulk([]) == []
    assert blobs.writes == writes_before


def test_update_replaces_whole_record() -> None:
    store = _store()
    store.load()
    original = store.get("5")
    edited = original.replace(description="HULU", amount=Decimal("7.99"))

    assert store.update(edited) is True
    assert store.get("5") == edited
    assert len(store) == 7


def test_update_unknown_id_is_noop() -> None:
    blobs = CountingBlobStore()
    store = _store(blobs)
    store.load()
    before = store.snapshot()
    writes_before = blobs.writes
    ghost = Transaction.from_input(_input(), transaction_id="ghost")

    assert store.update(ghost) is False
    assert store.snapshot() is before
    assert blobs.writes == writes_before


def test_delete() -> None:
    blobs = CountingBlobStore()
    store = _store(blobs)
    store.load()
    assert store.delete("3") is True
    assert store.get("3") is None
    assert len(store) == 6

    before = store.snapshot()
    writes_before = blobs.writes
    assert store.delete("3") is False
    assert store.snapshot() is before
    assert blobs.writes == writes_before


def test_failing_listener_does_not_block_others() -> None:
    store = _store()
    calls: list[str] = []

    def bad(_snapshot) -> None:
        raise RuntimeError("boom")

    store.subscribe(bad)
    store.subscribe(lambda _snap: calls.append("ok"))

    store.load()

    assert calls == ["ok"]


def test_unsubscribe_stops_notifications() -> None:
    store = _store()
    calls: list[int] = []
    unsubscribe = store.subscribe(lambda snap: calls.append(len(snap)))
    store.load()
    unsubscribe()
    unsubscribe()
    store.add(_input())
    assert calls == [7]
