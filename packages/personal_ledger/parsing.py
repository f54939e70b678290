"""Result parsing for advisory responses.

Provider output is untrusted. Every helper here either returns a value in
the package's own types or raises ``ValueError`` (pydantic's
``ValidationError`` included); deciding what to do on failure belongs to
the caller.
"""

from __future__ import annotations

import datetime as dt
import json
import re
from collections.abc import Mapping
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

from .models import CATEGORIES, Category, ForecastPoint

_ISO_DATE_RE = re.compile(r"^\d{4}-\d{2}-\d{2}$")


def extract_response_text(resp: Any) -> str:
    """Locate the text output of an OpenAI Responses SDK result.

    Prefers ``resp.output_text``; falls back to ``resp.output[0].content[0].text``
    (or its ``.value``) for SDK shape differences. Raises ``ValueError`` when
    no text is found.
    """

    text: str | None = getattr(resp, "output_text", None)
    if not text:
        try:
            first = resp.output[0] if getattr(resp, "output", None) else None
            content = getattr(first, "content", None)
            if content:
                txt_obj = getattr(content[0], "text", None)
                if isinstance(txt_obj, str):
                    text = txt_obj
                else:
                    maybe_val = getattr(txt_obj, "value", None)
                    if isinstance(maybe_val, str):
                        text = maybe_val
        except (AttributeError, IndexError, TypeError):
            text = None
    if not text or not isinstance(text, str):
        raise ValueError("Unexpected Responses API shape; unable to locate text output")
    return text


def decode_json_object(text: str) -> Mapping[str, Any]:
    try:
        decoded = json.loads(text)
    except json.JSONDecodeError as e:
        raise ValueError("Model output was not valid JSON per the requested schema") from e
    if not isinstance(decoded, Mapping):
        raise ValueError("Invalid response: expected a JSON object at top level")
    return decoded


# ---------------------------------------------------------------------------
# Categorization
# ---------------------------------------------------------------------------


class _CategoryBody(BaseModel):
    model_config = ConfigDict(extra="ignore", str_strip_whitespace=True)

    category: str


def parse_category(body: Mapping[str, Any]) -> Category:
    """Return the suggested category; values outside the enum become ``Other``."""

    parsed = _CategoryBody.model_validate(body)
    allowed = {c.value: c for c in CATEGORIES}
    return allowed.get(parsed.category, Category.OTHER)


# ---------------------------------------------------------------------------
# Forecast
# ---------------------------------------------------------------------------


class _ForecastItem(BaseModel):
    model_config = ConfigDict(extra="ignore")

    date: dt.date
    forecast: float = Field(allow_inf_nan=False)

    @field_validator("date", mode="before")
    @classmethod
    def _iso_date_string(cls, v: Any) -> Any:
        # Pydantic would also accept timestamps; the wire contract is YYYY-MM-DD.
        if not isinstance(v, str) or not _ISO_DATE_RE.fullmatch(v.strip()):
            raise ValueError(f"date must be a YYYY-MM-DD string; got {v!r}")
        return v.strip()


class _ForecastBody(BaseModel):
    model_config = ConfigDict(extra="ignore")

    points: list[_ForecastItem]


def parse_forecast(body: Mapping[str, Any]) -> list[ForecastPoint]:
    """Return forecast points ascending by date, first occurrence per date.

    An empty series is treated as malformed.
    """

    parsed = _ForecastBody.model_validate(body)
    if not parsed.points:
        raise ValueError("Invalid response: forecast contained no points")
    by_date: dict[dt.date, float] = {}
    for item in parsed.points:
        by_date.setdefault(item.date, item.forecast)
    return [ForecastPoint(date=d, forecast=by_date[d]) for d in sorted(by_date)]


__all__ = [
    "decode_json_object",
    "extract_response_text",
    "parse_category",
    "parse_forecast",
]
