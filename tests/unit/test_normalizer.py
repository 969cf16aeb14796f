from __future__ import annotations

import pytest

from campaign_tracker.csvimport.normalizer import normalize_number, parse_number


@pytest.mark.parametrize(
    "token,expected",
    [
        ("1.234,56", 1234.56),
        ("1,234.56", 1234.56),
        ("€1.234", 1234.0),
        ("", 0.0),
        ("22%", 22.0),
        ("abc", 0.0),
    ],
)
def test_normalize_reference_values(token, expected):
    assert normalize_number(token) == pytest.approx(expected)


def test_decimal_comma_with_two_digits():
    assert normalize_number("12,5") == pytest.approx(12.5)
    assert normalize_number("0,99") == pytest.approx(0.99)


def test_ambiguous_thousands_is_read_as_integer():
    # separator 3 places from the end: grouping, not decimal
    assert normalize_number("1,234") == 1234.0
    assert normalize_number("1.234") == 1234.0


def test_multiple_grouping_separators():
    assert normalize_number("1.234.567") == 1234567.0
    assert normalize_number("1,234,567.89") == pytest.approx(1234567.89)
    assert normalize_number("1.234.567,89") == pytest.approx(1234567.89)


def test_currency_whitespace_and_quotes_stripped():
    assert normalize_number(" $ 99.90 ") == pytest.approx(99.9)
    assert normalize_number('"€ 1.220,00"') == pytest.approx(1220.0)
    assert normalize_number("£5") == 5.0


def test_percent_with_decimal_comma():
    assert normalize_number("4,5%") == pytest.approx(4.5)


def test_negative_and_parenthesized():
    assert normalize_number("-12,50") == pytest.approx(-12.5)
    # parentheses are dropped, not read as a sign
    assert normalize_number("(12)") == 12.0


def test_none_and_whitespace_are_zero():
    assert normalize_number(None) == 0.0
    assert normalize_number("   ") == 0.0


def test_parse_number_distinguishes_garbage_from_zero():
    assert parse_number("") == 0.0
    assert parse_number("0") == 0.0
    assert parse_number("abc") is None
    assert parse_number("abc12") is None
    assert parse_number("-") is None


@pytest.mark.parametrize(
    "token,expected",
    [
        ("12abc", 12.0),
        ("10 pz", 10.0),
        ("5pcs", 5.0),
        ("1.234,56 EUR", 1234.56),
        ("3,5 kg", 3.5),
    ],
)
def test_trailing_text_after_leading_number_ignored(token, expected):
    assert parse_number(token) == pytest.approx(expected)


def test_float_literals_other_than_plain_decimals():
    for token in ("inf", "nan"):
        assert parse_number(token) is None
        assert normalize_number(token) == 0.0
    # only the leading digits count
    assert parse_number("1e3") == 1.0
    assert parse_number("1_000") == 1.0


def test_normalize_is_idempotent_on_its_output():
    for token in ("1.234,56", "1,234.56", "€1.234", "22%", "7"):
        once = normalize_number(token)
        assert normalize_number(str(once)) == pytest.approx(once)


def test_unparseable_token_logged_at_debug(caplog):
    import logging

    # the app logger may not propagate to root once setup_logging() ran
    log = logging.getLogger("campaign_tracker.csvimport.normalizer")
    log.addHandler(caplog.handler)
    log.setLevel(logging.DEBUG)
    try:
        normalize_number("n/a")
    finally:
        log.removeHandler(caplog.handler)
        log.setLevel(logging.NOTSET)
    assert any("unparseable" in r.getMessage() for r in caplog.records)
