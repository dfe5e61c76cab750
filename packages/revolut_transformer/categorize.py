"""Category assignment strategies.

Public API:
    - :class:`Categorizer` (protocol shared by both strategies)
    - :class:`HeuristicCategorizer`
    - :class:`OpenAIClassifier`

Both strategies map a set of merchant/description names to taxonomy
categories. The heuristic is pure and always available; the classifier sends
the distinct names to the OpenAI chat completions API in sequential batches
and falls back to the heuristic, per batch, when a reply cannot be parsed.
No side effects occur at import time (no client creation, no environment
reads).
"""

from __future__ import annotations

import math
import random
import re
import time
from collections.abc import Iterable, Iterator, Mapping, Sequence
from typing import Any, Protocol

from openai import APIError, OpenAI
from pydantic import TypeAdapter, ValidationError

from . import prompting
from .categories import CATEGORIES, CategoryMap, canonical_category, heuristic_category
from .config import DEFAULT_MODEL, Settings
from .errors import ClassificationError
from .logging_setup import get_logger

# ---- Tunables (private) ------------------------------------------------------

_BATCH_SIZE_DEFAULT: int = 40
_TEMPERATURE: float = 0.1
_MAX_ATTEMPTS: int = 3
_BACKOFF_SCHEDULE_SEC: tuple[float, ...] = (0.5, 2.0)
_JITTER_PCT: float = 0.20

_MISSING_KEY_MESSAGE = "Please add your LLM API key in Settings (OPENAI_API_KEY)."

# First JSON-object-shaped span of a reply (greedy, spans newlines).
_JSON_OBJECT_RE = re.compile(r"\{[\s\S]*\}")

_REPLY_ADAPTER: TypeAdapter[dict[str, Any]] = TypeAdapter(dict[str, Any])

_logger = get_logger("revolut_transformer.categorize")


class Categorizer(Protocol):
    def classify(self, names: Iterable[str]) -> dict[str, str]: ...


def _distinct_names(names: Iterable[str]) -> list[str]:
    """Return non-blank names once each, in first-seen order."""

    return [n for n in dict.fromkeys(names) if isinstance(n, str) and n.strip()]


class HeuristicCategorizer:
    """Rule-based strategy: deterministic, no I/O."""

    def classify(self, names: Iterable[str]) -> dict[str, str]:
        return {n: heuristic_category(n) for n in _distinct_names(names)}


# ---- Internal helpers --------------------------------------------------------


def _paginate(n_total: int, batch_size: int) -> Iterator[tuple[int, int, int]]:
    """Yield ``(batch_index, base, end)`` half-open ranges over ``n_total``."""

    for k in range(math.ceil(n_total / batch_size)):
        base = k * batch_size
        yield k, base, min(base + batch_size, n_total)


def _is_retryable(exc: BaseException) -> bool:
    """Return True only for HTTP 429 and 5xx errors."""

    sc = getattr(exc, "status_code", None)
    return isinstance(sc, int) and (sc == 429 or 500 <= sc < 600)


def _sleep_backoff(attempt_no: int) -> None:
    if attempt_no - 1 < len(_BACKOFF_SCHEDULE_SEC):
        base = _BACKOFF_SCHEDULE_SEC[attempt_no - 1]
    else:
        base = _BACKOFF_SCHEDULE_SEC[-1]
    jitter = base * _JITTER_PCT
    time.sleep(max(0.0, base + random.uniform(-jitter, jitter)))


def _extract_reply_text(resp: Any) -> str:
    """Return the assistant text of a chat completion, ``"{}"`` when absent."""

    try:
        content = resp.choices[0].message.content
    except (AttributeError, IndexError, TypeError):
        content = None
    if not isinstance(content, str) or not content.strip():
        return "{}"
    return content.strip()


def _parse_reply(text: str) -> dict[str, Any] | None:
    """Decode a reply as a JSON object, recovering an embedded object if needed.

    Returns ``None`` when neither the full text nor its first ``{...}`` span
    decodes to a JSON object.
    """

    try:
        return _REPLY_ADAPTER.validate_json(text)
    except ValidationError:
        pass
    m = _JSON_OBJECT_RE.search(text)
    if m is None:
        return None
    try:
        return _REPLY_ADAPTER.validate_json(m.group(0))
    except ValidationError:
        return None


def _align_reply(
    reply: Mapping[str, Any], names: Sequence[str], categories: Sequence[str]
) -> tuple[dict[str, str], int]:
    """Return ``(mapping, fallbacks)`` covering exactly ``names``.

    Names absent from the reply, or mapped to a value outside the taxonomy,
    take their heuristic category. Reply keys that are not batch names are
    ignored.
    """

    out: dict[str, str] = {}
    fallbacks = 0
    for name in names:
        category = canonical_category(reply.get(name), categories=categories)
        if category is None:
            category = heuristic_category(name)
            fallbacks += 1
        out[name] = category
    return out, fallbacks


# ---- External classifier -----------------------------------------------------


def _create_client(api_key: str) -> OpenAI:
    # Retries are handled here (429/5xx only), not by the SDK.
    return OpenAI(api_key=api_key, max_retries=0)


class OpenAIClassifier:
    """External-classifier strategy over the OpenAI chat completions API.

    Parameters
    ----------
    api_key:
        Provider credential. When missing, :meth:`classify` raises
        :class:`ClassificationError` before any request is made.
    model:
        Chat model identifier (default ``gpt-4o-mini``).
    batch_size:
        Maximum names per request (default and upper bound 40).
    categories:
        Taxonomy sent with every request and used to validate replies.
    """

    def __init__(
        self,
        api_key: str | None,
        *,
        model: str = DEFAULT_MODEL,
        batch_size: int = _BATCH_SIZE_DEFAULT,
        categories: Sequence[str] = CATEGORIES,
    ) -> None:
        if not isinstance(batch_size, int) or not (1 <= batch_size <= _BATCH_SIZE_DEFAULT):
            raise ValueError(f"batch_size must be an integer in [1, {_BATCH_SIZE_DEFAULT}]")
        self.api_key = api_key
        self.model = model
        self.batch_size = batch_size
        self.categories = tuple(categories)

    @classmethod
    def from_settings(cls, settings: Settings, **kwargs: Any) -> OpenAIClassifier:
        return cls(settings.api_key_value(), model=settings.classifier_model, **kwargs)

    def classify(
        self,
        names: Iterable[str],
        *,
        category_map: CategoryMap | None = None,
    ) -> dict[str, str]:
        """Classify ``names`` and return ``name -> category`` for each of them.

        Batches are sent one after another. When ``category_map`` is given,
        each batch's result is merged into it as soon as the batch completes,
        so a later failure leaves earlier batches in place.

        Raises
        ------
        ClassificationError
            No credential is configured, or a request failed (after retries
            for 429/5xx). Remaining batches are not sent.
        """

        if not self.api_key:
            raise ClassificationError(_MISSING_KEY_MESSAGE)

        distinct = _distinct_names(names)
        if not distinct:
            return {}

        client = _create_client(self.api_key)
        mapping: dict[str, str] = {}
        for batch_index, base, end in _paginate(len(distinct), self.batch_size):
            batch = distinct[base:end]
            result = self._classify_batch(client, batch_index, batch)
            mapping.update(result)
            if category_map is not None:
                category_map.merge(result)
        return mapping

    def _request(self, client: OpenAI, batch_index: int, batch: Sequence[str]) -> Any:
        messages = prompting.build_messages(batch, self.categories)
        attempt = 1
        while True:
            t0 = time.perf_counter()
            try:
                return client.chat.completions.create(
                    model=self.model,
                    temperature=_TEMPERATURE,
                    messages=messages,
                )
            except APIError as e:
                dt_ms = (time.perf_counter() - t0) * 1000.0
                if attempt >= _MAX_ATTEMPTS or not _is_retryable(e):
                    _logger.error(
                        "classify:batch_failed batch_index=%d names=%d latency_ms=%.2f error=%s",
                        batch_index,
                        len(batch),
                        dt_ms,
                        e.__class__.__name__,
                    )
                    status = getattr(e, "status_code", None)
                    detail = f"{status} {e.message}" if status is not None else e.message
                    raise ClassificationError(
                        f"OpenAI API error: {detail}",
                        batch_index=batch_index,
                        status_code=status,
                    ) from e
                _logger.warning(
                    "classify:batch_retry batch_index=%d latency_ms=%.2f error=%s attempt=%d",
                    batch_index,
                    dt_ms,
                    e.__class__.__name__,
                    attempt,
                )
                _sleep_backoff(attempt)
                attempt += 1

    def _classify_batch(
        self, client: OpenAI, batch_index: int, batch: Sequence[str]
    ) -> dict[str, str]:
        _logger.info(
            "classify:batch_llm batch_index=%d names=%d model=%s",
            batch_index,
            len(batch),
            self.model,
        )
        t0 = time.perf_counter()
        resp = self._request(client, batch_index, batch)
        text = _extract_reply_text(resp)

        reply = _parse_reply(text)
        if reply is None:
            _logger.warning(
                "classify:batch_fallback batch_index=%d names=%d reason=unparseable_reply",
                batch_index,
                len(batch),
            )
            return {name: heuristic_category(name) for name in batch}

        result, fallbacks = _align_reply(reply, batch, self.categories)
        _logger.info(
            "classify:batch_done batch_index=%d names=%d fallbacks=%d latency_ms=%.2f",
            batch_index,
            len(result),
            fallbacks,
            (time.perf_counter() - t0) * 1000.0,
        )
        return result


__all__ = [
    "Categorizer",
    "HeuristicCategorizer",
    "OpenAIClassifier",
]
