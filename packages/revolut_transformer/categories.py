"""Spending taxonomy, heuristic rules and the session category map.

The heuristic is a pure function: it lower-cases a merchant/description and
walks :data:`HEURISTIC_RULES` in order; the first rule with a keyword found in
the text wins. Rule order is a priority list (income before transfers before
merchant keywords) and must not be reordered: ``"Salary ACME"`` is Income and
``"Uber"`` is Transport, never Shopping.
"""

from __future__ import annotations

from collections.abc import Iterable, Iterator, Mapping

CATEGORIES: tuple[str, ...] = (
    "Groceries",
    "Restaurants",
    "Transport",
    "Shopping",
    "Entertainment",
    "Bills",
    "Housing",
    "Health",
    "Travel",
    "Cash Withdrawal",
    "Transfers",
    "Income",
    "Fees",
    "Other",
)

FALLBACK_CATEGORY = "Other"

# (category, keywords) in priority order. Keywords are lower-case substrings;
# trailing spaces are significant ("bar " must not match "barber").
HEURISTIC_RULES: tuple[tuple[str, tuple[str, ...]], ...] = (
    ("Income", ("salary", "stipend", "payroll", "bonifico in entrata")),
    ("Cash Withdrawal", ("atm", "cash withdrawal", "prelievo")),
    ("Transfers", ("transfer", "bonifico", "internal transfer", "worldpay")),
    ("Shopping", ("amazon", "zalando", "decathlon", "ikea")),
    ("Groceries", ("conad", "coop", "lidl", "eurospin", "supermerc")),
    (
        "Restaurants",
        (
            "bar ",
            "caffe",
            "ristor",
            "trattoria",
            "locanda",
            "osteria",
            "pizza",
            "mcd",
            "burger",
            "kebab",
        ),
    ),
    ("Transport", ("trenitalia", "italo", "uber", "taxi", "flixbus", "ryanair", "wizz")),
    ("Entertainment", ("spotify", "netflix", "steam", "prime", "disney")),
    ("Bills", ("enel", "acea", "tim", "vodafone", "windtre", "bolletta")),
    ("Housing", ("affitto", "rent", "mutuo", "mortgage")),
    ("Health", ("farmacia", "pharma", "clinic", "ospedale", "dental")),
    ("Travel", ("hotel", "booking", "airbnb", "hostel")),
    ("Fees", ("fee", "commission")),
)


def heuristic_category(name: str | None) -> str:
    """Return the first matching category for ``name``, else ``"Other"``."""

    s = (name or "").lower()
    for category, keywords in HEURISTIC_RULES:
        if any(k in s for k in keywords):
            return category
    return FALLBACK_CATEGORY


def canonical_category(value: object, *, categories: Iterable[str] = CATEGORIES) -> str | None:
    """Map a classifier value onto the taxonomy spelling, or ``None``.

    Matching ignores surrounding whitespace and letter case.
    """

    if not isinstance(value, str):
        return None
    wanted = value.strip().casefold()
    for c in categories:
        if c.casefold() == wanted:
            return c
    return None


class CategoryMap:
    """Session-scoped ``name -> category`` store.

    Entries are added or overwritten as classifier batches complete and are
    only removed wholesale by :meth:`clear` (a new upload). Lookups that miss
    fall back to :func:`heuristic_category` without storing the result.
    """

    def __init__(self, initial: Mapping[str, str] | None = None) -> None:
        self._data: dict[str, str] = dict(initial or {})

    def __contains__(self, name: object) -> bool:
        return name in self._data

    def __len__(self) -> int:
        return len(self._data)

    def __iter__(self) -> Iterator[str]:
        return iter(self._data)

    def __repr__(self) -> str:
        return f"CategoryMap({self._data!r})"

    def get(self, name: str) -> str | None:
        return self._data.get(name)

    def merge(self, mapping: Mapping[str, str]) -> None:
        self._data.update(mapping)

    def clear(self) -> None:
        self._data.clear()

    def resolve(self, name: str) -> str:
        """Return the stored category for ``name`` or its heuristic category.

        Names are looked up verbatim first, then trimmed, since classifier
        input names are trimmed descriptions.
        """

        found = self._data.get(name) or self._data.get(name.strip())
        return found if found else heuristic_category(name)

    def as_dict(self) -> dict[str, str]:
        return dict(self._data)


__all__ = [
    "CATEGORIES",
    "FALLBACK_CATEGORY",
    "HEURISTIC_RULES",
    "CategoryMap",
    "canonical_category",
    "heuristic_category",
]
