"""Raw Revolut rows to normalized transactions.

Mapping rules, applied per row in order:

- rows without any field are skipped
- ``only_completed``: keep only rows whose ``State`` is ``COMPLETED``
- ``date``: the configured date column, else ``Completed Date``, else
  ``Started Date``; normalized to ``YYYY-MM-DD`` (empty when unparseable)
- ``type``/``amount``: ``Expense`` when the parsed amount is negative, else
  ``Income``; ``amount`` is the absolute value rounded to two places
- ``category``: the category map entry for ``Description``, else heuristic
- ``currency`` copied verbatim; ``account``/``source`` from settings;
  ``notes`` empty
"""

from __future__ import annotations

from collections.abc import Iterable, Sequence

from .amounts import parse_amount, quantize_amount
from .categories import CategoryMap
from .config import Settings
from .dates import normalize_date
from .logging_setup import get_logger
from .models import (
    COMPLETED_STATE,
    DateField,
    NormalizedTransaction,
    RawTransactionRow,
    TransactionType,
    TypeFilter,
)

_logger = get_logger("revolut_transformer.transform")


def _cell(row: RawTransactionRow, column: str) -> str:
    value = row.get(column)
    return "" if value is None else str(value)


def is_completed(row: RawTransactionRow) -> bool:
    return _cell(row, "State").strip().upper() == COMPLETED_STATE


def select_rows(
    raw_rows: Iterable[RawTransactionRow], settings: Settings
) -> list[RawTransactionRow]:
    """Drop empty rows and, when configured, rows that are not completed."""

    rows = [r for r in raw_rows if r]
    if settings.only_completed:
        rows = [r for r in rows if is_completed(r)]
    return rows


def _date_source(row: RawTransactionRow, date_field: DateField) -> str:
    for column in (date_field.value, DateField.COMPLETED.value, DateField.STARTED.value):
        value = _cell(row, column)
        if value.strip():
            return value
    return ""


def transform_row(
    row: RawTransactionRow,
    *,
    idx: int,
    settings: Settings,
    category_map: CategoryMap,
) -> NormalizedTransaction:
    signed = parse_amount(_cell(row, "Amount"))
    name = _cell(row, "Description")
    return NormalizedTransaction(
        idx=idx,
        date=normalize_date(_date_source(row, settings.date_field)),
        type=TransactionType.EXPENSE if signed < 0 else TransactionType.INCOME,
        amount=quantize_amount(abs(signed)),
        currency=_cell(row, "Currency"),
        category=category_map.resolve(name),
        name=name,
        account=settings.account_label,
        notes="",
        source=settings.source_label,
    )


def transform_rows(
    raw_rows: Iterable[RawTransactionRow],
    settings: Settings,
    category_map: CategoryMap | None = None,
) -> list[NormalizedTransaction]:
    """Normalize ``raw_rows`` into transactions, preserving input order."""

    cmap = category_map if category_map is not None else CategoryMap()
    selected = select_rows(raw_rows, settings)
    out = [
        transform_row(row, idx=i, settings=settings, category_map=cmap)
        for i, row in enumerate(selected)
    ]
    _logger.debug(
        "transform:done rows=%d expenses=%d",
        len(out),
        sum(1 for t in out if t.type is TransactionType.EXPENSE),
    )
    return out


def filter_by_type(
    rows: Sequence[NormalizedTransaction], type_filter: TypeFilter | str
) -> list[NormalizedTransaction]:
    """Return the export subset for ``type_filter`` without touching ``rows``."""

    selected = TypeFilter(type_filter)
    return [r for r in rows if selected.admits(r.type)]


def unique_descriptions(
    raw_rows: Iterable[RawTransactionRow], settings: Settings
) -> list[str]:
    """Distinct trimmed descriptions of the selected rows, first-seen order."""

    names = (_cell(r, "Description").strip() for r in select_rows(raw_rows, settings))
    return [n for n in dict.fromkeys(names) if n]


__all__ = [
    "filter_by_type",
    "is_completed",
    "select_rows",
    "transform_row",
    "transform_rows",
    "unique_descriptions",
]
