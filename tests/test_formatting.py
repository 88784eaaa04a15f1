from datetime import date, datetime

import pytest

from pocket_ledger.exceptions import InvalidArgumentError
from pocket_ledger.formatting import (
    format_currency,
    format_date,
    format_percentage,
    month_label,
    normalize_currency,
    parse_currency,
    parse_date,
)


def test_format_currency_en_us():
    assert format_currency(1234.56, locale="en_US") == "$1,234.56"
    assert format_currency(1234.56, include_sign=False, locale="en_US") == "1,234.56"
    assert format_currency(-100, locale="en_US") == "-$100.00"


def test_format_currency_pt_br():
    assert format_currency(-1234.5, locale="pt_BR") == "-R$ 1.234,50"
    assert format_currency(0, locale="pt_BR") == "R$ 0,00"


def test_parse_currency_strips_symbols_and_separators():
    assert parse_currency("R$ 1.234,56", "pt_BR") == 1234.56
    assert parse_currency("$1,000.00", "en_US") == 1000.0
    assert parse_currency(" 42 ", "en_US") == 42.0
    assert parse_currency(12.5, "en_US") == 12.5


def test_parse_currency_negative_forms():
    assert parse_currency("($1,000.00)", "en_US") == -1000.0
    assert parse_currency("-$5", "en_US") == -5.0
    assert parse_currency("5-", "en_US") == -5.0


@pytest.mark.parametrize("bad", ["", "abc", "1.2.3", "$", None, "1,5", "12,34,5", "1,0000.00"])
def test_parse_currency_rejects_garbage(bad):
    with pytest.raises(InvalidArgumentError):
        parse_currency(bad, "en_US")


def test_parse_currency_thousands_groups_follow_locale():
    assert parse_currency("12,345,678.9", "en_US") == 12345678.9
    assert parse_currency("1.234.567,89", "pt_BR") == 1234567.89
    with pytest.raises(InvalidArgumentError):
        parse_currency("1.5", "pt_BR")
    with pytest.raises(InvalidArgumentError):
        parse_currency("1,234.5", "pt_BR")


def test_format_of_parse_matches_normalize():
    for text in ["1234.5", "$1,234.50", " 1234.50 "]:
        assert format_currency(parse_currency(text, "en_US"), locale="en_US") == "$1,234.50"
        assert normalize_currency(text, "en_US") == "$1,234.50"
    assert normalize_currency("1234,5", "pt_BR") == "R$ 1.234,50"


def test_unknown_locale_rejected():
    with pytest.raises(InvalidArgumentError):
        format_currency(1, locale="xx_XX")


def test_percentage_and_dates():
    assert format_percentage(85, locale="en_US") == "85.0%"
    assert format_percentage(12.3456, decimals=2, locale="pt_BR") == "12,35%"
    assert format_date(date(2024, 3, 5), "en_US") == "03/05/2024"
    assert format_date("2024-03-05", "pt_BR") == "05/03/2024"
    assert month_label(2024, 3, "en_US") == "March 2024"
    assert month_label(2024, 3, "pt_BR") == "Março 2024"


def test_parse_date_accepts_common_inputs():
    assert parse_date("2024-03-05T10:00:00") == date(2024, 3, 5)
    assert parse_date(datetime(2024, 3, 5, 23, 59)) == date(2024, 3, 5)
    with pytest.raises(InvalidArgumentError):
        parse_date("not a date")
