"""Delimited-text decode/encode for Revolut exports and normalized output.

Decoding follows RFC 4180 quoting via the stdlib :mod:`csv` module (quoted
fields with embedded commas and newlines, doubled quotes) and is lenient:
short rows are padded with empty strings, long rows are truncated, and both
are reported as diagnostics rather than raised. Lines the reader rejects are
skipped and reported the same way; blank lines before the header are
ignored. A header that lacks required columns is reported through
``missing_columns``; decoding still succeeds.

Encoding writes data lines only (no header unless asked). A field is quoted,
with inner quotes doubled, if and only if it contains a comma, a double quote
or a newline. This is the output wire format and must stay bit-exact.
"""

from __future__ import annotations

import csv
from collections.abc import Iterable, Iterator, Mapping, Sequence
from dataclasses import dataclass, field
from io import StringIO
from typing import TextIO

from .logging_setup import get_logger
from .models import REQUIRED_COLUMNS, NormalizedTransaction

DELIMITER = ","
_QUOTE = '"'
_QUOTE_TRIGGERS = (DELIMITER, _QUOTE, "\n")

_logger = get_logger("revolut_transformer.csv_codec")


@dataclass(frozen=True, slots=True)
class DecodedCsv:
    """Result of :func:`decode_csv`.

    ``rows`` keeps file order. ``errors`` holds per-row parsing issues;
    ``missing_columns`` lists required header names absent from the file.
    """

    rows: list[dict[str, str]]
    headers: tuple[str, ...]
    missing_columns: tuple[str, ...] = ()
    errors: tuple[str, ...] = field(default_factory=tuple)


def find_missing_columns(
    headers: Iterable[str], required: Sequence[str] = REQUIRED_COLUMNS
) -> tuple[str, ...]:
    present = set(headers)
    return tuple(c for c in required if c not in present)


def _records(f: TextIO, errors: list[str]) -> Iterator[list[str]]:
    """Yield parsed records from ``f``, skipping lines the reader rejects.

    Each rejected line is recorded in ``errors`` and decoding continues with
    the next line.
    """

    reader = csv.reader(f, delimiter=DELIMITER)
    while True:
        try:
            record = next(reader)
        except StopIteration:
            return
        except csv.Error as exc:
            errors.append(f"Line {reader.line_num}: {exc}; line skipped")
            continue
        yield record


def decode_csv(text: str, *, required: Sequence[str] = REQUIRED_COLUMNS) -> DecodedCsv:
    """Decode ``text`` (header line first) into column-keyed rows."""

    text = text.lstrip("\ufeff")
    if not text.strip():
        return DecodedCsv(
            rows=[],
            headers=(),
            missing_columns=tuple(required),
            errors=("Empty file",),
        )

    rows: list[dict[str, str]] = []
    errors: list[str] = []
    with StringIO(text) as f:
        records = _records(f, errors)
        # Leading blank lines are not the header.
        first = next((r for r in records if any(c.strip() for c in r)), [])
        headers = tuple(h.strip() for h in first)
        width = len(headers)
        for record in records:
            if not record:
                # Blank line
                continue
            if len(record) != width:
                kind = "too few" if len(record) < width else "too many"
                errors.append(
                    f"Row {len(rows) + 1}: {kind} fields (expected {width}, got {len(record)})"
                )
            padded = list(record[:width]) + [""] * (width - len(record))
            rows.append(dict(zip(headers, padded, strict=True)))

    missing = find_missing_columns(headers, required)
    if missing:
        _logger.warning(
            "decode:missing_columns missing=%s got=%s", ", ".join(missing), ", ".join(headers)
        )
    _logger.info("decode:done rows=%d issues=%d", len(rows), len(errors))
    return DecodedCsv(
        rows=rows,
        headers=headers,
        missing_columns=missing,
        errors=tuple(errors),
    )


def escape_field(value: object) -> str:
    """Render one field, quoting only when it holds ``,``, ``"`` or ``\\n``."""

    if value is None:
        return ""
    s = value if isinstance(value, str) else str(value)
    if any(ch in s for ch in _QUOTE_TRIGGERS):
        return _QUOTE + s.replace(_QUOTE, _QUOTE * 2) + _QUOTE
    return s


def encode_csv(
    columns: Sequence[str],
    rows: Iterable[Mapping[str, object] | NormalizedTransaction],
    *,
    header: bool = False,
) -> str:
    """Encode ``rows`` as delimited text in ``columns`` order.

    Rows may be mappings keyed by column name or
    :class:`~revolut_transformer.models.NormalizedTransaction` instances.
    Lines are ``\\n``-terminated; the result is empty when there is nothing
    to write.
    """

    lines: list[str] = []
    if header:
        lines.append(DELIMITER.join(escape_field(c) for c in columns))
    for row in rows:
        record = row.as_output_row() if isinstance(row, NormalizedTransaction) else row
        lines.append(DELIMITER.join(escape_field(record.get(c)) for c in columns))
    return "".join(line + "\n" for line in lines)


__all__ = ["DELIMITER", "DecodedCsv", "decode_csv", "encode_csv", "escape_field"]
