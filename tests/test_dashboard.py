from __future__ import annotations

import random
from datetime import date, timedelta
from decimal import Decimal

import pytest

from personal_ledger.dashboard import DashboardView
from personal_ledger.gateway import ResilientAdvisor
from personal_ledger.ledger import LedgerStore
from personal_ledger.local_advisor import LocalAdvisor
from personal_ledger.models import Category, TransactionInput, TransactionType
from personal_ledger.seed import starter_ledger
from personal_ledger.storage import MemoryBlobStore

TODAY = date(2024, 6, 15)


def _coffee() -> TransactionInput:
    return TransactionInput(
        date=TODAY,
        description="Coffee",
        amount=Decimal("1000"),
        type=TransactionType.DEBIT,
        category=Category.SHOPPING,
    )


@pytest.fixture
def store() -> LedgerStore:
    s = LedgerStore(MemoryBlobStore(), seed_factory=lambda: starter_ledger(TODAY))
    s.load()
    return s


@pytest.fixture
def gateway() -> ResilientAdvisor:
    return ResilientAdvisor(primary=None, fallback=LocalAdvisor(rng=random.Random(1)))


def test_spend_tracks_ledger_changes(store: LedgerStore, gateway: ResilientAdvisor) -> None:
    view = DashboardView(store, gateway, today_fn=lambda: TODAY)
    assert view.spend[0].category is Category.RENT

    store.add(_coffee())

    assert [(p.category, p.amount) for p in view.spend[:2]] == [
        (Category.RENT, 1200),
        (Category.SHOPPING, 1000),
    ]


def test_refresh_forecast_merges_actuals(store: LedgerStore, gateway: ResilientAdvisor) -> None:
    view = DashboardView(store, gateway, today_fn=lambda: TODAY)

    series = view.refresh_forecast()

    assert series is not None
    assert view.forecast_series == series
    future = [p for p in series if p.date > TODAY]
    assert len(future) == 30
    assert all(p.forecast is not None for p in future)
    assert future[0].actual == pytest.approx(1529.04)
    assert all(p.forecast is None for p in series if p.date <= TODAY)


def test_forecast_superseded_by_ledger_change_is_discarded(store: LedgerStore) -> None:
    class MutatingGateway(ResilientAdvisor):
        def forecast_expenses(self, ledger, *, today=None):
            result = super().forecast_expenses(ledger, today=today)
            store.add(_coffee())
            return result

    view = DashboardView(store, MutatingGateway(primary=None), today_fn=lambda: TODAY)

    assert view.refresh_forecast() is None
    assert view.forecast_series == []


def test_insights_superseded_by_ledger_change_is_discarded(store: LedgerStore) -> None:
    class MutatingOnceGateway(ResilientAdvisor):
        mutated = False

        def generate_insights(self, ledger):
            if not self.mutated:
                self.mutated = True
                store.delete("1")
            return super().generate_insights(ledger)

    view = DashboardView(store, MutatingOnceGateway(primary=None))

    assert view.refresh_insights() is None
    assert view.insights is None
    # A refresh against the settled ledger is accepted.
    assert view.refresh_insights() is not None
    assert view.insights is not None


def test_close_unsubscribes(store: LedgerStore, gateway: ResilientAdvisor) -> None:
    view = DashboardView(store, gateway)
    generation = view.generation
    view.close()
    view.close()

    store.add(_coffee())

    assert view.generation == generation


def test_future_dated_transactions_are_kept(store: LedgerStore, gateway: ResilientAdvisor) -> None:
    store.add(
        TransactionInput(
            date=TODAY + timedelta(days=3),
            description="Prepaid rent",
            amount=Decimal("10"),
            type=TransactionType.DEBIT,
            category=Category.RENT,
        )
    )
    view = DashboardView(store, gateway, today_fn=lambda: TODAY)
    series = view.refresh_forecast()
    point = next(p for p in series if p.date == TODAY + timedelta(days=3))
    assert point.actual == pytest.approx(1539.04)
