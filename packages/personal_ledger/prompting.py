"""Prompt construction and response schemas for the advisory calls.

This module builds:
- A deterministic JSON serialization of transactions with a fixed field
  order.
- System instructions and user content for categorization, forecasting,
  insights and chat.
- The strict ``text.format`` JSON Schema objects for the OpenAI Responses
  API (categorization and forecast only; insights and chat are free text).
"""

from __future__ import annotations

import json
from collections.abc import Mapping, Sequence
from datetime import date
from decimal import Decimal

from openai.types.responses.response_format_text_json_schema_config_param import (
    ResponseFormatTextJSONSchemaConfigParam,
)

from .advisory import FORECAST_HORIZON_DAYS
from .models import CATEGORIES, Category, Transaction

TRANSACTION_FIELD_ORDER: tuple[str, ...] = (
    "id",
    "date",
    "description",
    "amount",
    "type",
    "category",
)

CHAT_SYSTEM_INSTRUCTIONS = (
    "You are Fin-AI, a helpful personal finance assistant. You will answer questions "
    "based ONLY on the user's transaction data provided in the prompt. Do not invent any "
    "data. If you don't know the answer, say so. Respond concisely. You can answer "
    "questions like 'How much did I spend on [Category]?' or 'Show my last 5 "
    "transactions'. You cannot set reminders or perform actions."
)


def serialize_transactions_to_json(ledger: Sequence[Transaction]) -> str:
    """Serialize transactions to a JSON array with a fixed field order."""

    arr: list[dict[str, object]] = []
    for tx in ledger:
        data = tx.model_dump(mode="json")
        arr.append({key: data.get(key) for key in TRANSACTION_FIELD_ORDER})
    return json.dumps(arr, ensure_ascii=False)


# ---- Categorization ----------------------------------------------------------


def build_categorize_instructions() -> str:
    return (
        "You categorize personal bank transactions. Choose exactly one category from the "
        "allowed list. Never invent categories. Output JSON only that conforms to the "
        "specified schema."
    )


def build_categorize_input(description: str) -> str:
    allowed = ", ".join(CATEGORIES)
    return (
        f"Allowed categories: {allowed}\n"
        f'Categorize the following transaction description: "{description}"'
    )


def build_category_response_format() -> ResponseFormatTextJSONSchemaConfigParam:
    """Strict schema: ``{"category": <one of CATEGORIES>}``."""

    return {
        "type": "json_schema",
        "name": "transaction_category",
        "schema": {
            "type": "object",
            "properties": {
                "category": {
                    "type": "string",
                    "enum": [c.value for c in CATEGORIES],
                    "description": "The most likely category for the transaction.",
                }
            },
            "required": ["category"],
            "additionalProperties": False,
        },
        "strict": True,
    }


# ---- Forecast ----------------------------------------------------------------


def build_forecast_instructions() -> str:
    return (
        "You project personal spending. Given historical debit amounts by date, project the "
        "CUMULATIVE expense for each upcoming day. Output JSON only that conforms to the "
        "specified schema."
    )


def build_forecast_input(ledger: Sequence[Transaction], *, today: date) -> str:
    history = [
        {"date": tx.date.isoformat(), "amount": float(tx.amount)} for tx in ledger if tx.is_debit
    ]
    return (
        f"Based on the following historical daily expenses, project the CUMULATIVE daily "
        f"expense for the next {FORECAST_HORIZON_DAYS} days. Today's date is "
        f"{today.isoformat()}. Each point has \"date\" (YYYY-MM-DD, starting tomorrow) and "
        f'"forecast" (the cumulative forecasted expense up to and including that day).\n'
        f"Historical data: {json.dumps(history)}"
    )


def build_forecast_response_format() -> ResponseFormatTextJSONSchemaConfigParam:
    """Strict schema: ``{"points": [{"date": str, "forecast": number}, ...]}``."""

    return {
        "type": "json_schema",
        "name": "expense_forecast",
        "schema": {
            "type": "object",
            "properties": {
                "points": {
                    "type": "array",
                    "items": {
                        "type": "object",
                        "properties": {
                            "date": {"type": "string"},
                            "forecast": {"type": "number"},
                        },
                        "required": ["date", "forecast"],
                        "additionalProperties": False,
                    },
                }
            },
            "required": ["points"],
            "additionalProperties": False,
        },
        "strict": True,
    }


# ---- Insights ----------------------------------------------------------------


def build_insights_input(summary: Mapping[Category, Decimal]) -> str:
    payload = {str(category): float(total) for category, total in summary.items()}
    return (
        "Here is a summary of a user's spending this month by category: "
        f"{json.dumps(payload)}. Provide 1-2 simple, personalized, text-based recommendations "
        "or insights in markdown format. For example: \"You've spent $X on 'Category', which "
        'is Y% higher than your average. Consider...". Keep the insights concise and '
        "actionable."
    )


# ---- Chat --------------------------------------------------------------------


def build_chat_input(message: str, ledger: Sequence[Transaction]) -> str:
    return (
        f"Here is the user's transaction data (JSON format): "
        f"{serialize_transactions_to_json(ledger)}. The user asks: \"{message}\". "
        "Please answer based on the data provided."
    )


__all__ = [
    "CHAT_SYSTEM_INSTRUCTIONS",
    "TRANSACTION_FIELD_ORDER",
    "build_categorize_input",
    "build_categorize_instructions",
    "build_category_response_format",
    "build_chat_input",
    "build_forecast_input",
    "build_forecast_instructions",
    "build_forecast_response_format",
    "build_insights_input",
    "serialize_transactions_to_json",
]
