"""Pytest configuration for test isolation.

The CLI loads ``.env`` from the working directory and settings fall back to
environment variables. To keep tests hermetic, each test runs from its own
temporary directory with every setting-related variable cleared.
"""

from __future__ import annotations

from pathlib import Path

import pytest

_ENV_VARS = (
    "OPENAI_API_KEY",
    "REVOLUT_WEBSITE_NAME",
    "REVOLUT_SOURCE",
    "REVOLUT_DATE_FIELD",
    "REVOLUT_ONLY_COMPLETED",
    "REVOLUT_MODEL",
    "REVOLUT_TYPE_FILTER",
    "REVOLUT_TRANSFORMER_LOG_LEVEL",
)


@pytest.fixture(autouse=True)
def _isolate_env(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    for var in _ENV_VARS:
        monkeypatch.delenv(var, raising=False)
    monkeypatch.chdir(tmp_path)
