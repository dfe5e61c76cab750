"""Exception types raised by ``revolut_transformer``.

Parse anomalies in amounts, dates and CSV rows are never raised; they degrade
to zero, an empty date or empty fields. Only classification can fail.
"""

from __future__ import annotations


class RevolutTransformerError(Exception):
    """Base class for errors raised by this package."""


class ClassificationError(RevolutTransformerError):
    """The external classifier could not produce categories.

    Raised when no credential is configured (before any request is sent) and
    when a request fails outright. ``batch_index`` is the 0-based batch whose
    request failed, or ``None`` when no request was attempted. ``status_code``
    carries the HTTP status when the provider returned one.
    """

    def __init__(
        self,
        message: str,
        *,
        batch_index: int | None = None,
        status_code: int | None = None,
    ) -> None:
        super().__init__(message)
        self.batch_index = batch_index
        self.status_code = status_code


__all__ = ["ClassificationError", "RevolutTransformerError"]
