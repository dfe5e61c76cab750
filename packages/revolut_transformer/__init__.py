"""Public interface for the ``revolut_transformer`` package.

Re-exports the pipeline functions, models and session as the stable import
surface. There is no runtime logic here.
"""

from .amounts import format_amount, parse_amount
from .categories import CATEGORIES, HEURISTIC_RULES, CategoryMap, heuristic_category
from .categorize import Categorizer, HeuristicCategorizer, OpenAIClassifier
from .config import Settings
from .csv_codec import DecodedCsv, decode_csv, encode_csv, escape_field
from .dates import normalize_date
from .errors import ClassificationError, RevolutTransformerError
from .models import (
    OUTPUT_COLUMNS,
    REQUIRED_COLUMNS,
    DateField,
    NormalizedTransaction,
    RawTransactionRow,
    TransactionType,
    TypeFilter,
)
from .session import TransformSession
from .transform import filter_by_type, transform_rows, unique_descriptions

__all__ = [
    # Pipeline
    "parse_amount",
    "format_amount",
    "normalize_date",
    "heuristic_category",
    "transform_rows",
    "filter_by_type",
    "unique_descriptions",
    "decode_csv",
    "encode_csv",
    "escape_field",
    # Categorization
    "Categorizer",
    "HeuristicCategorizer",
    "OpenAIClassifier",
    "CategoryMap",
    "CATEGORIES",
    "HEURISTIC_RULES",
    # Models / types
    "NormalizedTransaction",
    "RawTransactionRow",
    "TransactionType",
    "DateField",
    "TypeFilter",
    "DecodedCsv",
    "Settings",
    "TransformSession",
    "OUTPUT_COLUMNS",
    "REQUIRED_COLUMNS",
    # Errors
    "RevolutTransformerError",
    "ClassificationError",
]
