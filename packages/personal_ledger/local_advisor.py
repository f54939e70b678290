"""Offline advisor used without provider credentials and as the fallback.

Nothing here touches the network. Categorization is keyword based, the
forecast projects the recent daily average with a little jitter, and the
insight text is a fixed template around the total debit spend.
"""

from __future__ import annotations

import random
import re
from collections.abc import Sequence
from datetime import date, timedelta
from decimal import Decimal

from .advisory import FORECAST_HORIZON_DAYS, ConversationSession
from .analytics import total_debits
from .logging_setup import get_logger
from .models import Category, ForecastPoint, Transaction

# Evaluated in order; first match wins.
_KEYWORD_RULES: tuple[tuple[re.Pattern[str], Category], ...] = (
    (re.compile(r"paycheck|deposit", re.IGNORECASE), Category.INCOME),
    (re.compile(r"groceries|market|food", re.IGNORECASE), Category.GROCERIES),
    (re.compile(r"uber|lyft|transport", re.IGNORECASE), Category.TRANSPORT),
    (re.compile(r"netflix|hulu|movie", re.IGNORECASE), Category.ENTERTAINMENT),
    (re.compile(r"bill|electric|water", re.IGNORECASE), Category.UTILITIES),
    (re.compile(r"rent", re.IGNORECASE), Category.RENT),
    (re.compile(r"amazon|target|shopping", re.IGNORECASE), Category.SHOPPING),
)

_LOOKBACK_DAYS = 30
_DEFAULT_DAILY_SPEND = 50.0
_JITTER_SPAN = 10.0

MOCK_CHAT_REPLY = "I am a mock bot. I can't answer your questions without an OpenAI API key."

_logger = get_logger("personal_ledger.local_advisor")


def categorize_by_keywords(description: str) -> Category:
    for pattern, category in _KEYWORD_RULES:
        if pattern.search(description or ""):
            return category
    return Category.OTHER


def recent_daily_average(ledger: Sequence[Transaction], *, today: date) -> float:
    """Average daily debit spend over the last 30 days (50 when there is none)."""

    cutoff = today - timedelta(days=_LOOKBACK_DAYS)
    recent = [tx for tx in ledger if tx.is_debit and tx.date >= cutoff]
    spent = sum((tx.amount for tx in recent), Decimal(0))
    average = float(spent) / _LOOKBACK_DAYS
    return average or _DEFAULT_DAILY_SPEND


class LocalAdvisor:
    """Deterministic (up to the injected RNG) stand-in for the provider."""

    def __init__(self, *, rng: random.Random | None = None) -> None:
        self._rng = rng or random.Random()

    def suggest_category(self, description: str) -> Category:
        return categorize_by_keywords(description)

    def forecast_expenses(
        self, ledger: Sequence[Transaction], *, today: date | None = None
    ) -> list[ForecastPoint]:
        anchor = today or date.today()
        daily = recent_daily_average(ledger, today=anchor)
        points: list[ForecastPoint] = []
        cumulative = 0.0
        for offset in range(1, FORECAST_HORIZON_DAYS + 1):
            cumulative += daily + (self._rng.random() - 0.5) * _JITTER_SPAN
            points.append(
                ForecastPoint(date=anchor + timedelta(days=offset), forecast=round(cumulative, 2))
            )
        _logger.debug(
            "local_advisor:forecast daily_average=%.2f points=%d", daily, len(points)
        )
        return points

    def generate_insights(self, ledger: Sequence[Transaction]) -> str:
        spent = total_debits(ledger)
        return (
            f"* You've spent a total of **${spent:.2f}** this month. "
            "Keep an eye on your spending goals!\n"
            "* Consider reviewing your **Entertainment** category for potential savings."
        )

    def init_conversation(self) -> ConversationSession:
        return ConversationSession()

    def chat(
        self, session: ConversationSession, message: str, ledger: Sequence[Transaction]
    ) -> str:
        session.turns += 1
        return MOCK_CHAT_REPLY


__all__ = [
    "LocalAdvisor",
    "MOCK_CHAT_REPLY",
    "categorize_by_keywords",
    "recent_daily_average",
]
