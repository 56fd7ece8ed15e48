"""Tests for amount parsing."""

from decimal import Decimal

import pytest

from ledgerkit.utils.amount_parser import parse_amount, parse_positive_amount


@pytest.mark.parametrize(
    "value, expected",
    [
        ("123.45", Decimal("123.45")),
        ("$1,234.56", Decimal("1234.56")),
        ("-50", Decimal("-50.00")),
        ("(75.10)", Decimal("-75.10")),
        ("€9.99", Decimal("9.99")),
        (10, Decimal("10.00")),
        (0.1, Decimal("0.10")),
        (Decimal("2.345"), Decimal("2.35")),
        ("  7  ", Decimal("7.00")),
    ],
)
def test_parse_amount(value, expected):
    assert parse_amount(value) == expected


@pytest.mark.parametrize("value", [None, "", "abc", "NaN", "inf", "-Infinity", True, "1e999999999"])
def test_parse_amount_rejects(value):
    with pytest.raises(ValueError):
        parse_amount(value)


def test_parse_positive_amount_rejects_zero_and_negative():
    with pytest.raises(ValueError):
        parse_positive_amount("0")
    with pytest.raises(ValueError):
        parse_positive_amount("-1")
    # Rounds to zero
    with pytest.raises(ValueError):
        parse_positive_amount("0.001")


def test_parse_positive_amount():
    assert parse_positive_amount("0.01") == Decimal("0.01")
