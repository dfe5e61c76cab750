"""Logging for ``revolut_transformer``.

Modules log through :func:`get_logger` with names under the
``revolut_transformer`` logger and never attach handlers themselves; until a
front end calls :func:`configure_logging` the package stays silent. Records
are structured ``event key=value`` lines, e.g.
``classify:batch_done batch_index=0 names=40``.
"""

from __future__ import annotations

import logging
import os
import sys
from typing import IO

LOGGER_NAME = "revolut_transformer"
LEVEL_ENV_VAR = "REVOLUT_TRANSFORMER_LOG_LEVEL"

_FORMAT = "%(asctime)s %(levelname)s %(name)s %(message)s"

_package_logger = logging.getLogger(LOGGER_NAME)
_package_logger.addHandler(logging.NullHandler())


class _ConsoleHandler(logging.StreamHandler):
    """The one handler :func:`configure_logging` owns on the package logger."""


def resolve_level(level: int | str | None = None) -> int:
    """Return the numeric level for ``level``.

    ``None`` reads :data:`LEVEL_ENV_VAR`. Names are case-insensitive and
    numeric strings are accepted; anything unrecognised means ``INFO``.
    """

    if level is None:
        level = os.getenv(LEVEL_ENV_VAR, "")
    if isinstance(level, int):
        return level
    name = level.strip().upper()
    if name.isdigit():
        return int(name)
    return logging.getLevelNamesMapping().get(name, logging.INFO)


def configure_logging(
    level: int | str | None = None, *, stream: IO[str] | None = None
) -> logging.Handler:
    """Send package records to ``stream`` (``sys.stderr`` by default).

    A repeated call replaces the handler installed by the previous one, so
    the level or stream can be changed without duplicating output.
    """

    for h in list(_package_logger.handlers):
        if isinstance(h, (_ConsoleHandler, logging.NullHandler)):
            _package_logger.removeHandler(h)

    handler = _ConsoleHandler(stream if stream is not None else sys.stderr)
    handler.setFormatter(logging.Formatter(_FORMAT))
    _package_logger.addHandler(handler)
    _package_logger.setLevel(resolve_level(level))
    _package_logger.propagate = False
    return handler


def get_logger(name: str) -> logging.Logger:
    return logging.getLogger(name)


__all__ = ["LEVEL_ENV_VAR", "LOGGER_NAME", "configure_logging", "get_logger", "resolve_level"]
