"""Test helpers to stub the OpenAI client used by ``categorize.py``.

The stub parses the numbered names out of the user message and hands them to
a ``reply`` callable, which returns the assistant text for that batch or an
exception to raise instead. Every ``chat.completions.create`` call's kwargs
and the names it carried are recorded for assertions.
"""

from __future__ import annotations

import json
import re
from collections.abc import Callable
from types import SimpleNamespace
from typing import Any, TypeAlias

import httpx
import openai
import pytest

_NAMES_MARKER = "Names:\n"
_NUMBERED = re.compile(r"^\d+\. (.*)$")

Reply: TypeAlias = Callable[[list[str]], str | None | BaseException]


def extract_names(user_content: str) -> list[str]:
    pos = user_content.find(_NAMES_MARKER)
    if pos == -1:
        raise AssertionError("classifier: user content missing the Names block")
    names: list[str] = []
    for line in user_content[pos + len(_NAMES_MARKER) :].split("\n"):
        m = _NUMBERED.match(line)
        if m is None:
            raise AssertionError(f"classifier: unexpected name line {line!r}")
        names.append(m.group(1))
    return names


def json_reply(mapping: dict[str, str]) -> str:
    return json.dumps(mapping)


def status_error(status: int, message: str = "stubbed failure") -> openai.APIStatusError:
    """Build the SDK exception the real client raises for ``status``."""

    request = httpx.Request("POST", "https://api.openai.com/v1/chat/completions")
    response = httpx.Response(status, request=request)
    cls: type[openai.APIStatusError] = {
        401: openai.AuthenticationError,
        429: openai.RateLimitError,
        500: openai.InternalServerError,
    }.get(status, openai.APIStatusError)
    return cls(message, response=response, body=None)


class OpenAIStub:
    """Minimal stand-in for ``openai.OpenAI`` as used by the classifier.

    Install with :meth:`install`; the stub then replaces the ``OpenAI``
    symbol in ``revolut_transformer.categorize`` and returns itself as the
    client.
    """

    def __init__(self, reply: Reply) -> None:
        self._reply = reply
        self.calls: list[dict[str, Any]] = []
        self.batches: list[list[str]] = []
        self.client_kwargs: list[dict[str, Any]] = []

        outer = self

        class _Completions:
            def create(self, **kwargs: Any) -> Any:
                outer.calls.append(kwargs)
                user = next(m["content"] for m in kwargs["messages"] if m["role"] == "user")
                names = extract_names(user)
                outer.batches.append(names)
                result = outer._reply(names)
                if isinstance(result, BaseException):
                    raise result
                message = SimpleNamespace(content=result)
                return SimpleNamespace(choices=[SimpleNamespace(message=message)])

        self.chat = SimpleNamespace(completions=_Completions())

    def _factory(self, *args: Any, **kwargs: Any) -> OpenAIStub:
        self.client_kwargs.append(kwargs)
        return self

    def install(self, monkeypatch: pytest.MonkeyPatch) -> OpenAIStub:
        import revolut_transformer.categorize as categorize_mod

        monkeypatch.setattr(categorize_mod, "OpenAI", self._factory)
        return self
