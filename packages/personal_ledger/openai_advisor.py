"""Advisory gateway backed by the OpenAI Responses API.

Public API:
    - :class:`OpenAIAdvisor`

Every provider failure (missing key, HTTP error after retries, malformed or
off-schema output) surfaces as :class:`~personal_ledger.errors.AdvisoryError`.
Mapping those failures to user-facing fallbacks is the job of
:class:`personal_ledger.gateway.ResilientAdvisor`. No client is created and
no environment is read at import time.
"""

from __future__ import annotations

import random
import time
from collections.abc import Sequence
from datetime import date
from typing import Any

from openai import OpenAI
from openai.types.responses import ResponseTextConfigParam

from . import prompting
from .advisory import ConversationSession
from .analytics import debit_totals_by_category
from .config import DEFAULT_MODEL, DEFAULT_TIMEOUT_SEC
from .errors import AdvisoryError
from .logging_setup import get_logger
from .models import Category, ForecastPoint, Transaction
from .parsing import decode_json_object, extract_response_text, parse_category, parse_forecast

# ---- Tunables (private) ------------------------------------------------------

_MAX_ATTEMPTS: int = 3
_BACKOFF_SCHEDULE_SEC: tuple[float, ...] = (0.5, 2.0)
_JITTER_PCT: float = 0.20

_logger = get_logger("personal_ledger.openai_advisor")


def _is_retryable(exc: BaseException) -> bool:
    """Return True only for HTTP 429 and 5xx errors.

    Parsing/validation errors are terminal and never retried.
    """

    sc = getattr(exc, "status_code", None)
    return isinstance(sc, int) and (sc == 429 or 500 <= sc < 600)


def _sleep_backoff(attempt_no: int) -> None:
    if attempt_no - 1 < len(_BACKOFF_SCHEDULE_SEC):
        base = _BACKOFF_SCHEDULE_SEC[attempt_no - 1]
    else:
        base = _BACKOFF_SCHEDULE_SEC[-1]
    jitter = base * _JITTER_PCT
    time.sleep(max(0.0, base + random.uniform(-jitter, jitter)))


class OpenAIAdvisor:
    """Categorize, forecast, narrate and chat through the Responses API.

    Parameters
    ----------
    api_key:
        OpenAI API key. ``None`` lets the SDK read ``OPENAI_API_KEY``.
    model:
        Model name used for every call.
    timeout:
        Per-request timeout in seconds; the SDK's own retries are disabled
        so the retry budget here is the only one.
    """

    def __init__(
        self,
        *,
        api_key: str | None = None,
        model: str = DEFAULT_MODEL,
        timeout: float = DEFAULT_TIMEOUT_SEC,
    ) -> None:
        self._api_key = api_key
        self._model = model
        self._timeout = timeout
        self._client: OpenAI | None = None

    def _get_client(self) -> OpenAI:
        if self._client is None:
            self._client = OpenAI(api_key=self._api_key, timeout=self._timeout, max_retries=0)
        return self._client

    def _create_response(
        self,
        op: str,
        *,
        instructions: str,
        user_input: str,
        text_cfg: ResponseTextConfigParam | None = None,
        previous_response_id: str | None = None,
    ) -> Any:
        """Issue one Responses call with bounded retries on 429/5xx."""

        kwargs: dict[str, Any] = {
            "model": self._model,
            "instructions": instructions,
            "input": user_input,
        }
        if text_cfg is not None:
            kwargs["text"] = text_cfg
        if previous_response_id is not None:
            kwargs["previous_response_id"] = previous_response_id

        attempt = 1
        while True:
            t0 = time.perf_counter()
            try:
                resp = self._get_client().responses.create(**kwargs)
            except Exception as e:  # noqa: BLE001 - SDK raises a wide family of errors
                dt_ms = (time.perf_counter() - t0) * 1000.0
                if attempt >= _MAX_ATTEMPTS or not _is_retryable(e):
                    _logger.error(
                        "openai:%s_failed_terminal latency_ms=%.2f attempt=%d error=%s",
                        op,
                        dt_ms,
                        attempt,
                        e.__class__.__name__,
                    )
                    raise AdvisoryError(f"{op} failed: {e}") from e
                _logger.warning(
                    "openai:%s_retry latency_ms=%.2f attempt=%d error=%s",
                    op,
                    dt_ms,
                    attempt,
                    e.__class__.__name__,
                )
                _sleep_backoff(attempt)
                attempt += 1
                continue
            _logger.info(
                "openai:%s_done latency_ms=%.2f attempt=%d",
                op,
                (time.perf_counter() - t0) * 1000.0,
                attempt,
            )
            return resp

    # ---- Gateway operations --------------------------------------------------

    def suggest_category(self, description: str) -> Category:
        resp = self._create_response(
            "categorize",
            instructions=prompting.build_categorize_instructions(),
            user_input=prompting.build_categorize_input(description),
            text_cfg={"format": prompting.build_category_response_format()},
        )
        try:
            return parse_category(decode_json_object(extract_response_text(resp)))
        except ValueError as e:
            raise AdvisoryError(f"categorize returned an unusable response: {e}") from e

    def forecast_expenses(
        self, ledger: Sequence[Transaction], *, today: date | None = None
    ) -> list[ForecastPoint]:
        anchor = today or date.today()
        resp = self._create_response(
            "forecast",
            instructions=prompting.build_forecast_instructions(),
            user_input=prompting.build_forecast_input(ledger, today=anchor),
            text_cfg={"format": prompting.build_forecast_response_format()},
        )
        try:
            return parse_forecast(decode_json_object(extract_response_text(resp)))
        except ValueError as e:
            raise AdvisoryError(f"forecast returned an unusable response: {e}") from e

    def generate_insights(self, ledger: Sequence[Transaction]) -> str:
        resp = self._create_response(
            "insights",
            instructions="You are a concise personal finance coach.",
            user_input=prompting.build_insights_input(debit_totals_by_category(ledger)),
        )
        try:
            return extract_response_text(resp)
        except ValueError as e:
            raise AdvisoryError(f"insights returned no text: {e}") from e

    def init_conversation(self) -> ConversationSession:
        # Provider-side state is created lazily by the first chat turn.
        return ConversationSession()

    def chat(
        self, session: ConversationSession, message: str, ledger: Sequence[Transaction]
    ) -> str:
        resp = self._create_response(
            "chat",
            instructions=prompting.CHAT_SYSTEM_INSTRUCTIONS,
            user_input=prompting.build_chat_input(message, ledger),
            previous_response_id=session.previous_response_id,
        )
        try:
            reply = extract_response_text(resp)
        except ValueError as e:
            raise AdvisoryError(f"chat returned no text: {e}") from e
        response_id = getattr(resp, "id", None)
        if isinstance(response_id, str) and response_id:
            session.previous_response_id = response_id
        session.turns += 1
        return reply


__all__ = ["OpenAIAdvisor"]
