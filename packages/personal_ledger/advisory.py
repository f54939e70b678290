"""Advisory gateway contract.

The gateway is the seam through which the ledger asks an external
generative-AI provider for category suggestions, expense forecasts, short
narrative insights and chat replies. Implementations:

- :class:`personal_ledger.local_advisor.LocalAdvisor`: offline heuristics.
- :class:`personal_ledger.openai_advisor.OpenAIAdvisor`: OpenAI Responses API.
- :class:`personal_ledger.gateway.ResilientAdvisor`: what callers use; turns
  every provider failure into the documented fallback value.

Conversation state is explicit. ``init_conversation()`` hands out a
:class:`ConversationSession` that the caller threads through ``chat()``; the
full ledger travels with every chat turn, so no transaction state is synced
incrementally.
"""

from __future__ import annotations

import uuid
from collections.abc import Sequence
from dataclasses import dataclass, field
from datetime import UTC, date, datetime
from typing import Protocol

from .models import Category, ForecastPoint, Transaction

# Days projected forward by a forecast.
FORECAST_HORIZON_DAYS = 30
# Below this many historical debits the local heuristic replaces the provider.
MIN_DEBITS_FOR_PROVIDER_FORECAST = 3

INSIGHTS_APOLOGY = "Could not generate insights at this time."
CHAT_TROUBLE = "Sorry, I'm having trouble connecting right now."


@dataclass(slots=True)
class ConversationSession:
    """Handle for one chat conversation.

    ``previous_response_id`` links provider turns together; it stays ``None``
    for local sessions and before the first successful provider reply.
    """

    session_id: str = field(default_factory=lambda: uuid.uuid4().hex)
    created_at: datetime = field(default_factory=lambda: datetime.now(UTC))
    previous_response_id: str | None = None
    turns: int = 0


class AdvisoryGateway(Protocol):
    def suggest_category(self, description: str) -> Category: ...

    def forecast_expenses(
        self, ledger: Sequence[Transaction], *, today: date | None = None
    ) -> list[ForecastPoint]: ...

    def generate_insights(self, ledger: Sequence[Transaction]) -> str: ...

    def init_conversation(self) -> ConversationSession: ...

    def chat(
        self, session: ConversationSession, message: str, ledger: Sequence[Transaction]
    ) -> str: ...


__all__ = [
    "AdvisoryGateway",
    "CHAT_TROUBLE",
    "ConversationSession",
    "FORECAST_HORIZON_DAYS",
    "INSIGHTS_APOLOGY",
    "MIN_DEBITS_FOR_PROVIDER_FORECAST",
]
