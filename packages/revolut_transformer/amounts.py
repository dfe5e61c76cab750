"""Amount parsing for Revolut exports.

Revolut writes amounts in the account locale: ``1.234,56`` (dots group,
comma is the decimal mark) or ``1,234.56``. The parsing rule is deliberately
simple: drop every ``.`` and turn every ``,`` into the decimal point. It is
exact for EU-formatted exports, where a dot only ever groups thousands. When
both separators appear and the dot comes last the value is US-formatted with
grouping, so commas are dropped instead.

Known approximation: a bare dot decimal without grouping (``12.50``) still
reads as ``1250``. Exports do not produce that shape in the EU locale.
"""

from __future__ import annotations

from decimal import ROUND_HALF_UP, Decimal, InvalidOperation

from .logging_setup import get_logger

_TWO_PLACES = Decimal("0.01")

_logger = get_logger("revolut_transformer.amounts")


def _canonical_digits(s: str) -> str:
    if "," in s and "." in s and s.rfind(".") > s.rfind(","):
        # 1,234.56 -> 1234.56
        return s.replace(",", "")
    # 1.234,56 -> 1234.56 ; -47,30 -> -47.30
    return s.replace(".", "").replace(",", ".")


def parse_amount(raw: str | None) -> Decimal:
    """Parse a locale-formatted amount into a signed ``Decimal``.

    Whitespace anywhere in the input is ignored. Empty or unparseable input,
    and amounts too large to round to cents, yield ``Decimal(0)``; a
    malformed amount never stops the pipeline.
    """

    if raw is None:
        return Decimal(0)
    s = "".join(str(raw).split())
    if not s:
        return Decimal(0)
    try:
        value = Decimal(_canonical_digits(s))
        if not value.is_finite():
            _logger.debug("amount:non_finite raw=%r", raw)
            return Decimal(0)
        # Values needing more digits than the context allows cannot be rounded.
        quantize_amount(value)
    except InvalidOperation:
        _logger.debug("amount:unparseable raw=%r", raw)
        return Decimal(0)
    return value


def quantize_amount(value: Decimal) -> Decimal:
    """Round to exactly two fractional digits (half-up)."""

    return value.quantize(_TWO_PLACES, rounding=ROUND_HALF_UP)


def format_amount(value: Decimal) -> str:
    # Exactly two decimals; ASCII dot; no scientific notation.
    return f"{quantize_amount(value):.2f}"


__all__ = ["format_amount", "parse_amount", "quantize_amount"]
