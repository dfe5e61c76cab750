"""Date normalization to ``YYYY-MM-DD``."""

from __future__ import annotations

import re
from datetime import UTC

from dateutil import parser as date_parser

from .logging_setup import get_logger

_ISO_DATE = re.compile(r"^\d{4}-\d{2}-\d{2}$")

_logger = get_logger("revolut_transformer.dates")


def normalize_date(raw: str | None) -> str:
    """Return the calendar date of ``raw`` as ``YYYY-MM-DD``, or ``""``.

    When the first ten characters already look like ``YYYY-MM-DD`` they are
    returned verbatim, so a Revolut timestamp such as ``2025-08-01 23:59:00``
    keeps its local calendar date. Anything else goes through
    :func:`dateutil.parser.parse`; aware results are projected to UTC. An
    empty string means the date is unknown.
    """

    if raw is None:
        return ""
    s = str(raw).strip()
    if not s:
        return ""
    head = s[:10]
    if _ISO_DATE.match(head):
        return head
    try:
        dt = date_parser.parse(s)
    except (ValueError, OverflowError):
        _logger.debug("date:unparseable raw=%r", raw)
        return ""
    if dt.tzinfo is not None:
        dt = dt.astimezone(UTC)
    return dt.date().isoformat()


__all__ = ["normalize_date"]
