from __future__ import annotations

from datetime import date, datetime
from decimal import Decimal

from optionledger.services.display import (
    format_currency,
    format_date,
    format_percent,
    format_strike,
    pl_style,
)


def test_format_currency():
    assert format_currency(Decimal("1234.5")) == "$1,234.50"
    assert format_currency(Decimal("-100")) == "-$100.00"
    assert format_currency(None) == "--"


def test_format_strike():
    assert format_strike(Decimal("100")) == "$100"
    assert format_strike(Decimal("102.5")) == "$102.50"


def test_format_date():
    assert format_date(datetime(2024, 5, 1, 10, 30)) == "2024-05-01"
    assert format_date(date(2024, 6, 21)) == "2024-06-21"
    assert format_date(None) == "--"


def test_format_percent():
    assert format_percent(Decimal("66.67")) == "66.67%"
    assert format_percent(Decimal("100")) == "100%"


def test_pl_style():
    assert pl_style(Decimal("1")) == "green"
    assert pl_style(Decimal("-1")) == "red"
    assert pl_style(Decimal("0")) == "white"
