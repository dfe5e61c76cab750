"""Data models and type aliases for ``revolut_transformer``.

Raw rows stay opaque string mappings keyed by the Revolut export header. The
normalized record is a frozen ``dataclass`` with an explicit field order that
mirrors the output CSV columns; edits produce replacement instances.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from decimal import Decimal
from enum import StrEnum
from typing import TypeAlias

from .amounts import format_amount

# ---------------------------------------------------------------------------
# Column sets
# ---------------------------------------------------------------------------

REQUIRED_COLUMNS: tuple[str, ...] = (
    "Type",
    "Product",
    "Started Date",
    "Completed Date",
    "Description",
    "Amount",
    "Fee",
    "Currency",
    "State",
    "Balance",
)
"""Header columns of a Revolut transaction export (case-sensitive)."""

OUTPUT_COLUMNS: tuple[str, ...] = (
    "Date",
    "Type",
    "Amount",
    "Currency",
    "Category",
    "Name",
    "Account",
    "Notes",
    "Source",
)
"""Column order of the exported (headerless) CSV."""

COMPLETED_STATE = "COMPLETED"

# A single decoded export row: column name -> raw cell text.
RawTransactionRow: TypeAlias = Mapping[str, str]


# ---------------------------------------------------------------------------
# Enumerations
# ---------------------------------------------------------------------------


class TransactionType(StrEnum):
    EXPENSE = "Expense"
    INCOME = "Income"


class DateField(StrEnum):
    """Which export column supplies the transaction date."""

    COMPLETED = "Completed Date"
    STARTED = "Started Date"


class TypeFilter(StrEnum):
    """Export-time selection of transaction types."""

    BOTH = "Both"
    EXPENSE = "Expense"
    INCOME = "Income"

    def admits(self, tx_type: TransactionType) -> bool:
        return self is TypeFilter.BOTH or self.value == tx_type.value


# ---------------------------------------------------------------------------
# Normalized record
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class NormalizedTransaction:
    """A single normalized transaction.

    ``amount`` is always non-negative with two fractional digits; the sign of
    the source amount lives only in ``type``. ``date`` is ``YYYY-MM-DD`` or
    empty when the source date could not be parsed. ``idx`` is the 0-based
    position within the transformed set and is not exported.
    """

    idx: int
    date: str
    type: TransactionType
    amount: Decimal
    currency: str
    category: str
    name: str
    account: str
    notes: str = ""
    source: str = ""

    def __post_init__(self) -> None:
        if self.amount < 0:
            raise ValueError(f"amount must be non-negative, got {self.amount}")

    def as_output_row(self) -> dict[str, str]:
        """Return the record keyed by :data:`OUTPUT_COLUMNS`."""

        return {
            "Date": self.date,
            "Type": self.type.value,
            "Amount": format_amount(self.amount),
            "Currency": self.currency,
            "Category": self.category,
            "Name": self.name,
            "Account": self.account,
            "Notes": self.notes,
            "Source": self.source,
        }


__all__ = [
    "COMPLETED_STATE",
    "OUTPUT_COLUMNS",
    "REQUIRED_COLUMNS",
    "DateField",
    "NormalizedTransaction",
    "RawTransactionRow",
    "TransactionType",
    "TypeFilter",
]
