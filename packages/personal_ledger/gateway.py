"""Failure-tolerant composition of advisory gateways.

:class:`ResilientAdvisor` is the gateway the rest of the package talks to.
It never raises for provider trouble; each operation has one fallback:

=====================  ===============================================
operation              fallback
=====================  ===============================================
``suggest_category``   ``Category.OTHER``
``forecast_expenses``  local heuristic forecast
``generate_insights``  :data:`~personal_ledger.advisory.INSIGHTS_APOLOGY`
``chat``               :data:`~personal_ledger.advisory.CHAT_TROUBLE`
=====================  ===============================================

Without a primary provider every call goes to the local advisor, so the
offline experience is the mock behavior rather than a string of apologies.
"""

from __future__ import annotations

from collections.abc import Sequence
from datetime import date

from .advisory import (
    CHAT_TROUBLE,
    INSIGHTS_APOLOGY,
    MIN_DEBITS_FOR_PROVIDER_FORECAST,
    AdvisoryGateway,
    ConversationSession,
)
from .config import Settings
from .local_advisor import LocalAdvisor
from .logging_setup import get_logger
from .models import Category, ForecastPoint, Transaction

_logger = get_logger("personal_ledger.gateway")


def _coerce_category(value: object) -> Category:
    if isinstance(value, Category):
        return value
    try:
        return Category(str(value))
    except ValueError:
        return Category.OTHER


class ResilientAdvisor:
    """Route calls to ``primary`` and absorb its failures.

    Parameters
    ----------
    primary:
        Provider-backed gateway, or ``None`` when no credentials exist.
    fallback:
        Local advisor used offline, for thin forecast history, and as the
        forecast fallback.
    """

    def __init__(
        self,
        primary: AdvisoryGateway | None,
        fallback: LocalAdvisor | None = None,
    ) -> None:
        self.primary = primary
        self.fallback = fallback or LocalAdvisor()

    @property
    def online(self) -> bool:
        return self.primary is not None

    def suggest_category(self, description: str) -> Category:
        if not description or not description.strip():
            return Category.OTHER
        if self.primary is None:
            return self.fallback.suggest_category(description)
        try:
            return _coerce_category(self.primary.suggest_category(description))
        except Exception as e:  # noqa: BLE001 - any provider failure maps to Other
            _logger.error("gateway:categorize_fallback error=%s", e)
            return Category.OTHER

    def forecast_expenses(
        self, ledger: Sequence[Transaction], *, today: date | None = None
    ) -> list[ForecastPoint]:
        if self.primary is None:
            return self.fallback.forecast_expenses(ledger, today=today)
        debit_count = sum(1 for tx in ledger if tx.is_debit)
        if debit_count < MIN_DEBITS_FOR_PROVIDER_FORECAST:
            _logger.info("gateway:forecast_local reason=thin_history debits=%d", debit_count)
            return self.fallback.forecast_expenses(ledger, today=today)
        try:
            return self.primary.forecast_expenses(ledger, today=today)
        except Exception as e:  # noqa: BLE001
            _logger.error("gateway:forecast_fallback error=%s", e)
            return self.fallback.forecast_expenses(ledger, today=today)

    def generate_insights(self, ledger: Sequence[Transaction]) -> str:
        if self.primary is None:
            return self.fallback.generate_insights(ledger)
        try:
            return self.primary.generate_insights(ledger)
        except Exception as e:  # noqa: BLE001
            _logger.error("gateway:insights_fallback error=%s", e)
            return INSIGHTS_APOLOGY

    def init_conversation(self) -> ConversationSession:
        if self.primary is None:
            return self.fallback.init_conversation()
        try:
            return self.primary.init_conversation()
        except Exception as e:  # noqa: BLE001
            _logger.error("gateway:init_conversation_fallback error=%s", e)
            return ConversationSession()

    def chat(
        self, session: ConversationSession, message: str, ledger: Sequence[Transaction]
    ) -> str:
        if self.primary is None:
            return self.fallback.chat(session, message, ledger)
        try:
            return self.primary.chat(session, message, ledger)
        except Exception as e:  # noqa: BLE001
            _logger.error("gateway:chat_fallback session=%s error=%s", session.session_id, e)
            return CHAT_TROUBLE


def build_advisor(settings: Settings) -> ResilientAdvisor:
    """Wire the gateway from settings; offline when no API key is configured."""

    if not settings.ai_enabled:
        _logger.warning(
            "OPENAI_API_KEY is not set; using local mock advice. Set it to enable AI features."
        )
        return ResilientAdvisor(primary=None)

    from .openai_advisor import OpenAIAdvisor

    primary = OpenAIAdvisor(
        api_key=settings.openai_api_key,
        model=settings.openai_model,
        timeout=settings.openai_timeout,
    )
    return ResilientAdvisor(primary=primary)


__all__ = ["ResilientAdvisor", "build_advisor"]
