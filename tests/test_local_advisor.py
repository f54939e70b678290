from __future__ import annotations

import random
from datetime import date, timedelta

import pytest

from personal_ledger.local_advisor import (
    MOCK_CHAT_REPLY,
    LocalAdvisor,
    categorize_by_keywords,
    recent_daily_average,
)
from personal_ledger.models import Category
from personal_ledger.seed import starter_ledger

TODAY = date(2024, 6, 15)


class _MidpointRandom(random.Random):
    """Always returns 0.5, so forecast jitter is zero."""

    def random(self) -> float:
        return 0.5


@pytest.mark.parametrize(
    ("description", "expected"),
    [
        ("PAYCHECK DEPOSIT", Category.INCOME),
        ("Whole Foods Market", Category.GROCERIES),
        ("Lyft to airport", Category.TRANSPORT),
        ("hulu subscription", Category.ENTERTAINMENT),
        ("City water bill", Category.UTILITIES),
        ("Monthly RENT", Category.RENT),
        ("amazon.com order", Category.SHOPPING),
        ("Mystery charge", Category.OTHER),
        ("", Category.OTHER),
    ],
)
def test_keyword_rules(description: str, expected: Category) -> None:
    assert categorize_by_keywords(description) is expected


def test_keyword_rules_first_match_wins() -> None:
    # "market" (Groceries) is checked before "shopping".
    assert categorize_by_keywords("Shopping market") is Category.GROCERIES


def test_recent_daily_average() -> None:
    ledger = starter_ledger(TODAY)
    # All starter debits fall inside the 30-day window.
    assert recent_daily_average(ledger, today=TODAY) == pytest.approx(1529.04 / 30)
    assert recent_daily_average([], today=TODAY) == 50.0
    assert recent_daily_average(ledger, today=TODAY + timedelta(days=200)) == 50.0


def test_forecast_is_cumulative_over_thirty_days() -> None:
    advisor = LocalAdvisor(rng=_MidpointRandom())

    series = advisor.forecast_expenses([], today=TODAY)

    assert len(series) == 30
    assert series[0].date == TODAY + timedelta(days=1)
    assert series[-1].date == TODAY + timedelta(days=30)
    assert [p.forecast for p in series[:3]] == [50.0, 100.0, 150.0]
    assert all(p.actual is None for p in series)


def test_forecast_jitter_is_bounded() -> None:
    series = LocalAdvisor(rng=random.Random(7)).forecast_expenses([], today=TODAY)
    values = [p.forecast for p in series]
    steps = [b - a for a, b in zip([0.0, *values], values, strict=False)]
    assert all(44.99 <= step <= 55.01 for step in steps)


def test_insights_mention_total_spend() -> None:
    text = LocalAdvisor().generate_insights(starter_ledger(TODAY))
    assert "**$1529.04**" in text
    assert "Entertainment" in text


def test_chat_returns_mock_reply() -> None:
    advisor = LocalAdvisor()
    session = advisor.init_conversation()
    assert advisor.chat(session, "How much on rent?", starter_ledger(TODAY)) == MOCK_CHAT_REPLY
    assert session.turns == 1
    assert session.previous_response_id is None
