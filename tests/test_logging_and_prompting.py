from __future__ import annotations

import io
import logging

import pytest

import revolut_transformer.logging_setup as logging_setup
from revolut_transformer.categories import CATEGORIES
from revolut_transformer.prompting import build_messages, build_user_content


@pytest.fixture
def package_logger():
    logger = logging.getLogger(logging_setup.LOGGER_NAME)
    saved = (list(logger.handlers), logger.level, logger.propagate)
    yield logger
    logger.handlers, logger.level, logger.propagate = saved


@pytest.mark.parametrize(
    ("value", "expected"),
    [
        (logging.DEBUG, logging.DEBUG),
        ("warning", logging.WARNING),
        (" Error ", logging.ERROR),
        ("15", 15),
        ("nonsense", logging.INFO),
        (None, logging.INFO),
    ],
)
def test_resolve_level(value, expected):
    assert logging_setup.resolve_level(value) == expected


@pytest.mark.parametrize(
    ("env_value", "expected"),
    [("debug", logging.DEBUG), ("verbose", logging.INFO), ("", logging.INFO)],
)
def test_resolve_level_reads_env(monkeypatch, env_value, expected):
    monkeypatch.setenv("REVOLUT_TRANSFORMER_LOG_LEVEL", env_value)
    assert logging_setup.resolve_level() == expected


def test_explicit_level_wins_over_env(monkeypatch):
    monkeypatch.setenv("REVOLUT_TRANSFORMER_LOG_LEVEL", "ERROR")
    assert logging_setup.resolve_level("debug") == logging.DEBUG


def test_configure_logging_replaces_its_handler(package_logger):
    first, second = io.StringIO(), io.StringIO()
    logging_setup.configure_logging("DEBUG", stream=first)
    logging_setup.configure_logging("DEBUG", stream=second)

    logging_setup.get_logger("revolut_transformer.csv_codec").debug("decode:done rows=%d", 3)

    assert first.getvalue() == ""
    assert second.getvalue().endswith("DEBUG revolut_transformer.csv_codec decode:done rows=3\n")
    assert len(package_logger.handlers) == 1
    assert package_logger.propagate is False


def test_configure_logging_filters_below_level(package_logger):
    buf = io.StringIO()
    logging_setup.configure_logging("warning", stream=buf)
    log = logging_setup.get_logger("revolut_transformer.session")
    log.info("session:loaded rows=1")
    log.warning("session:classify_failed error=boom")
    assert "session:loaded" not in buf.getvalue()
    assert "session:classify_failed error=boom" in buf.getvalue()


def test_user_content_lists_categories_and_numbered_names():
    content = build_user_content(["Lidl", "Uber, Milano"], CATEGORIES)
    assert ", ".join(CATEGORIES) in content
    assert content.endswith("Names:\n1. Lidl\n2. Uber, Milano")


def test_messages_are_system_then_user():
    messages = build_messages(["Lidl"], CATEGORIES)
    assert [m["role"] for m in messages] == ["system", "user"]
    assert "JSON" in messages[0]["content"]
