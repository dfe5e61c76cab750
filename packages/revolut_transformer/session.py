"""Transformation session: the state a front end drives.

A session owns one uploaded export at a time: its raw rows, user-visible
diagnostics, the category map and the normalized rows with any user edits.
Uploading a new file replaces all of it. Edits are explicit setter calls on
the normalized rows (``date``, ``category``, ``notes``) and survive a later
classification pass; a stable sort by date reorders rows without losing them.
"""

from __future__ import annotations

import dataclasses
from typing import Any

from .categories import CategoryMap
from .categorize import OpenAIClassifier
from .config import Settings
from .csv_codec import DecodedCsv, decode_csv, encode_csv
from .dates import normalize_date
from .errors import ClassificationError
from .logging_setup import get_logger
from .models import OUTPUT_COLUMNS, NormalizedTransaction
from .transform import filter_by_type, transform_rows, unique_descriptions

_EDITABLE_FIELDS: frozenset[str] = frozenset({"date", "category", "notes"})
_MAX_REPORTED_PARSE_ISSUES = 3

_logger = get_logger("revolut_transformer.session")


class TransformSession:
    """Session-scoped pipeline state for one settings record."""

    def __init__(self, settings: Settings | None = None) -> None:
        self.settings = settings if settings is not None else Settings()
        self.category_map = CategoryMap()
        self.errors: list[str] = []
        self.status = ""
        self._raw_rows: list[dict[str, str]] = []
        self._rows: list[NormalizedTransaction] = []
        # idx -> {field: value} for user edits, re-applied after rebuilds
        self._edits: dict[int, dict[str, str]] = {}

    # ---- Loading -------------------------------------------------------------

    def load_csv(self, text: str) -> DecodedCsv:
        """Decode a new export, replacing every previous row, edit and category."""

        self.errors = []
        self.category_map.clear()
        self._edits = {}
        self._rows = []

        decoded = decode_csv(text)
        if decoded.errors:
            shown = " | ".join(decoded.errors[:_MAX_REPORTED_PARSE_ISSUES])
            self.errors.append(f"Parsing issues: {shown}")
        if decoded.missing_columns:
            self.errors.append(
                f"Missing expected columns: {', '.join(decoded.missing_columns)}. "
                f"Got: {', '.join(decoded.headers)}"
            )

        self._raw_rows = list(decoded.rows)
        self._rebuild()
        self.status = f"Loaded {len(self._raw_rows)} rows."
        return decoded

    def update_settings(self, settings: Settings) -> None:
        """Swap settings and rebuild rows.

        Edits are kept unless the completed-only selection changes, which
        renumbers the rows.
        """

        if settings.only_completed != self.settings.only_completed:
            self._edits = {}
            self._rows = []
        self.settings = settings
        self._rebuild()

    # ---- Views ---------------------------------------------------------------

    @property
    def raw_rows(self) -> list[dict[str, str]]:
        return list(self._raw_rows)

    @property
    def rows(self) -> list[NormalizedTransaction]:
        return list(self._rows)

    @property
    def unique_names(self) -> list[str]:
        return unique_descriptions(self._raw_rows, self.settings)

    def export_rows(self) -> list[NormalizedTransaction]:
        return filter_by_type(self._rows, self.settings.type_filter)

    def to_csv(self, *, header: bool = False) -> str:
        return encode_csv(OUTPUT_COLUMNS, self.export_rows(), header=header)

    # ---- Classification ------------------------------------------------------

    def classify(self, classifier: OpenAIClassifier | None = None) -> bool:
        """Run the external classifier over the unique names.

        Categories merge into the session map batch by batch. On failure the
        message is recorded in :attr:`errors`, batches that already completed
        stay applied and ``False`` is returned.
        """

        clf = classifier
        if clf is None:
            clf = OpenAIClassifier.from_settings(self.settings)
        self.status = "Classifying with LLM..."
        try:
            clf.classify(self.unique_names, category_map=self.category_map)
        except ClassificationError as e:
            _logger.warning("session:classify_failed error=%s", e)
            self.errors.append(str(e))
            self.status = ""
            return False
        finally:
            self._rebuild()
        self.status = "Classification complete."
        return True

    # ---- Editing -------------------------------------------------------------

    def set_date(self, idx: int, value: str) -> NormalizedTransaction:
        return self._edit(idx, "date", normalize_date(value))

    def set_category(self, idx: int, value: str) -> NormalizedTransaction:
        return self._edit(idx, "category", value)

    def set_notes(self, idx: int, value: str) -> NormalizedTransaction:
        return self._edit(idx, "notes", value)

    def sort_by_date(self, *, descending: bool = False) -> None:
        """Stable sort by date; rows without a date always go last."""

        dated = [r for r in self._rows if r.date]
        undated = [r for r in self._rows if not r.date]
        dated.sort(key=lambda r: r.date, reverse=descending)
        self._rows = dated + undated

    # ---- Internals -----------------------------------------------------------

    def _position(self, idx: int) -> int:
        for pos, row in enumerate(self._rows):
            if row.idx == idx:
                return pos
        raise KeyError(f"no transaction with idx {idx}")

    def _edit(self, idx: int, field_name: str, value: str) -> NormalizedTransaction:
        if field_name not in _EDITABLE_FIELDS:  # pragma: no cover - internal misuse
            raise ValueError(f"field is not editable: {field_name!r}")
        pos = self._position(idx)
        updated = dataclasses.replace(self._rows[pos], **{field_name: value})
        self._rows[pos] = updated
        self._edits.setdefault(idx, {})[field_name] = value
        return updated

    def _rebuild(self) -> None:
        order = [r.idx for r in self._rows]
        fresh = transform_rows(self._raw_rows, self.settings, self.category_map)
        by_idx: dict[int, NormalizedTransaction] = {}
        for row in fresh:
            changes: dict[str, Any] = self._edits.get(row.idx, {})
            by_idx[row.idx] = dataclasses.replace(row, **changes) if changes else row

        # Keep the current display order for rows that still exist.
        rebuilt = [by_idx.pop(i) for i in order if i in by_idx]
        rebuilt.extend(by_idx.values())
        self._rows = rebuilt


__all__ = ["TransformSession"]
