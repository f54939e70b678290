"""Dashboard view model: derived analytics kept in step with the ledger.

Spend by category is recomputed synchronously on every ledger change.
Forecast and insights are slow advisory calls, so each refresh records the
ledger generation it started from and drops its result when the ledger has
changed in the meantime.
"""

from __future__ import annotations

import threading
from collections.abc import Callable
from datetime import date

from .advisory import AdvisoryGateway
from .analytics import merge_actual_with_forecast, spend_by_category
from .ledger import LedgerStore
from .logging_setup import get_logger
from .models import CategorySpendPoint, ForecastPoint, Ledger

_logger = get_logger("personal_ledger.dashboard")


class DashboardView:
    """Observe a :class:`LedgerStore` and hold the derived dashboard state.

    Attributes
    ----------
    spend:
        Current spend-by-category points, always in step with the ledger.
    forecast_series:
        Last accepted merged actual/forecast series (empty until refreshed).
    insights:
        Last accepted insights text (``None`` until refreshed).
    """

    def __init__(
        self,
        store: LedgerStore,
        gateway: AdvisoryGateway,
        *,
        today_fn: Callable[[], date] = date.today,
    ) -> None:
        self._store = store
        self._gateway = gateway
        self._today_fn = today_fn
        self._lock = threading.Lock()
        self._generation = 0
        self.spend: list[CategorySpendPoint] = spend_by_category(store.snapshot())
        self.forecast_series: list[ForecastPoint] = []
        self.insights: str | None = None
        self._unsubscribe: Callable[[], None] | None = store.subscribe(self._on_change)

    @property
    def generation(self) -> int:
        return self._generation

    def _on_change(self, snapshot: Ledger) -> None:
        with self._lock:
            self._generation += 1
            self.spend = spend_by_category(snapshot)

    def _accept(self, started_at: int, what: str) -> bool:
        if started_at != self._generation:
            _logger.info(
                "dashboard:%s_discarded started_gen=%d current_gen=%d",
                what,
                started_at,
                self._generation,
            )
            return False
        return True

    def refresh_forecast(self) -> list[ForecastPoint] | None:
        """Fetch a forecast and merge it with actuals.

        Returns the merged series, or ``None`` when the ledger changed while
        the forecast was being computed (the stored series is then left as is).
        """

        with self._lock:
            started_at = self._generation
        ledger = self._store.snapshot()
        today = self._today_fn()
        raw = self._gateway.forecast_expenses(ledger, today=today)
        merged = merge_actual_with_forecast(ledger, raw, today=today)
        with self._lock:
            if not self._accept(started_at, "forecast"):
                return None
            self.forecast_series = merged
        return merged

    def refresh_insights(self) -> str | None:
        with self._lock:
            started_at = self._generation
        text = self._gateway.generate_insights(self._store.snapshot())
        with self._lock:
            if not self._accept(started_at, "insights"):
                return None
            self.insights = text
        return text

    def close(self) -> None:
        if self._unsubscribe is not None:
            self._unsubscribe()
            self._unsubscribe = None


__all__ = ["DashboardView"]
