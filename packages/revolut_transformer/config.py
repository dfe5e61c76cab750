"""Run settings for the transformer.

Settings are read-only inputs to the pipeline. They come from environment
variables (the CLI loads a local ``.env`` first), from a JSON settings
document using the same keys the browser front end stored, or from explicit
keyword arguments. This package never writes settings back.

Environment variables
---------------------
``OPENAI_API_KEY``          classifier credential
``REVOLUT_WEBSITE_NAME``    label written to the ``Source`` column
``REVOLUT_SOURCE``          label written to the ``Account`` column
``REVOLUT_DATE_FIELD``      ``Completed Date`` or ``Started Date``
``REVOLUT_ONLY_COMPLETED``  boolean (``true``/``false``/``1``/``0``)
``REVOLUT_MODEL``           classifier model identifier
``REVOLUT_TYPE_FILTER``     ``Both``, ``Expense`` or ``Income``
"""

from __future__ import annotations

import os
from collections.abc import Mapping
from os import PathLike
from pathlib import Path
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, SecretStr, field_validator

from .models import DateField, TypeFilter

DEFAULT_WEBSITE_NAME = "Revolut CSV Transformer"
DEFAULT_SOURCE = "Revolut"
DEFAULT_MODEL = "gpt-4o-mini"

_ENV_FIELDS: Mapping[str, str] = {
    "OPENAI_API_KEY": "api_key",
    "REVOLUT_WEBSITE_NAME": "website_name",
    "REVOLUT_SOURCE": "source",
    "REVOLUT_DATE_FIELD": "date_field",
    "REVOLUT_ONLY_COMPLETED": "only_completed",
    "REVOLUT_MODEL": "classifier_model",
    "REVOLUT_TYPE_FILTER": "type_filter",
}


class Settings(BaseModel):
    """Typed, validated settings record.

    Field aliases match the keys of the stored settings document
    (``websiteName``, ``dateField``, ``onlyCompleted``, ``model``, ``apiKey``,
    ``typeFilter``); Python field names are accepted as well.
    """

    model_config = ConfigDict(
        extra="forbid",
        frozen=True,
        populate_by_name=True,
        str_strip_whitespace=True,
    )

    website_name: str = Field(DEFAULT_WEBSITE_NAME, alias="websiteName")
    source: str = DEFAULT_SOURCE
    date_field: DateField = Field(DateField.COMPLETED, alias="dateField")
    only_completed: bool = Field(True, alias="onlyCompleted")
    classifier_model: str = Field(DEFAULT_MODEL, alias="model")
    api_key: SecretStr | None = Field(None, alias="apiKey")
    type_filter: TypeFilter = Field(TypeFilter.BOTH, alias="typeFilter")

    @field_validator("api_key", mode="before")
    @classmethod
    def _blank_key_is_none(cls, v: Any) -> Any:
        if isinstance(v, str) and not v.strip():
            return None
        return v

    @field_validator("classifier_model")
    @classmethod
    def _model_non_empty(cls, v: str) -> str:
        return v or DEFAULT_MODEL

    # ---- Derived values -----------------------------------------------------

    @property
    def account_label(self) -> str:
        return self.source or DEFAULT_SOURCE

    @property
    def source_label(self) -> str:
        return self.website_name or DEFAULT_WEBSITE_NAME

    def api_key_value(self) -> str | None:
        return self.api_key.get_secret_value() if self.api_key is not None else None

    # ---- Construction -------------------------------------------------------

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> Settings:
        """Build settings from environment variables; unset ones keep defaults."""

        env = os.environ if environ is None else environ
        data = {field: env[var] for var, field in _ENV_FIELDS.items() if env.get(var)}
        return cls.model_validate(data)

    @classmethod
    def from_json_file(cls, path: str | PathLike[str]) -> Settings:
        """Load a stored settings document (JSON object)."""

        return cls.model_validate_json(Path(path).read_text(encoding="utf-8"))

    def with_overrides(self, **overrides: Any) -> Settings:
        """Return a validated copy with every non-``None`` override applied."""

        data = self.model_dump()
        data.update({k: v for k, v in overrides.items() if v is not None})
        return type(self).model_validate(data)


__all__ = ["DEFAULT_MODEL", "DEFAULT_SOURCE", "DEFAULT_WEBSITE_NAME", "Settings"]
