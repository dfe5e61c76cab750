from decimal import Decimal

import pytest

from revolut_transformer.amounts import format_amount, parse_amount, quantize_amount


@pytest.mark.parametrize("raw", ["1.234,56", "1,234.56", " 1 234,56 ", "+1.234,56"])
def test_eu_and_us_grouping_parse_to_same_value(raw: str):
    assert parse_amount(raw) == Decimal("1234.56")


def test_negative_eu_amount():
    assert parse_amount("-47,30") == Decimal("-47.30")
    assert parse_amount("- 1.000,00") == Decimal("-1000")


def test_multiple_dot_groups_are_dropped():
    assert parse_amount("1.234.567,89") == Decimal("1234567.89")


@pytest.mark.parametrize(
    "raw",
    [None, "", "   ", "abc", "12,3,4", "NaN", "Infinity", "1e30", "-" + "9" * 30],
)
def test_unparseable_amount_is_zero(raw):
    assert parse_amount(raw) == Decimal(0)


def test_bare_dot_decimal_is_known_approximation():
    # Dots always group thousands under the parsing rule.
    assert parse_amount("12.50") == Decimal("1250")


def test_format_amount_two_places_half_up():
    assert format_amount(Decimal("47.3")) == "47.30"
    assert format_amount(Decimal("0.005")) == "0.01"
    assert format_amount(Decimal("1234")) == "1234.00"
    assert quantize_amount(Decimal("2.675")) == Decimal("2.68")
