"""Test helpers to stub the OpenAI Responses client used by openai_advisor.py.

Tests script the provider by queueing replies: a ``str`` is returned as
``output_text``, a ``dict``/``list`` is JSON-encoded first, and an exception
instance is raised from ``responses.create``. Every call's kwargs are
captured so tests can make lightweight assertions about the request.
"""

from __future__ import annotations

import json
from collections import deque
from collections.abc import Iterable
from typing import Any


class StatusError(Exception):
    """Stand-in for SDK HTTP errors; only ``status_code`` matters to retries."""

    def __init__(self, status_code: int, message: str = "") -> None:
        super().__init__(message or f"HTTP {status_code}")
        self.status_code = status_code


class StubResponse:
    def __init__(self, output_text: str, response_id: str) -> None:
        self.output_text = output_text
        self.id = response_id


class OpenAIStub:
    """Minimal stub matching the ``openai.OpenAI`` shape.

    Install with ``monkeypatch.setattr(openai_advisor, "OpenAI", stub.factory)``.
    ``init_kwargs`` records how the client was constructed.
    """

    def __init__(self, replies: Iterable[Any] = ()) -> None:
        self._replies: deque[Any] = deque(replies)
        self.calls: list[dict[str, Any]] = []
        self.init_kwargs: list[dict[str, Any]] = []

        class _Responses:
            def __init__(self, outer: OpenAIStub) -> None:
                self._outer = outer

            def create(self, **kwargs: Any) -> StubResponse:
                outer = self._outer
                outer.calls.append(kwargs)
                if not outer._replies:
                    raise AssertionError("OpenAIStub: no reply queued for this call")
                reply = outer._replies.popleft()
                if isinstance(reply, BaseException):
                    raise reply
                if not isinstance(reply, str):
                    reply = json.dumps(reply)
                return StubResponse(reply, f"resp_{len(outer.calls)}")

        self.responses = _Responses(self)

    def queue(self, *replies: Any) -> None:
        self._replies.extend(replies)

    def factory(self, *args: Any, **kwargs: Any) -> OpenAIStub:
        self.init_kwargs.append(kwargs)
        return self
