"""
Display formatting services for the optionledger CLI.

This module provides formatting helpers shared by the table renderers.
"""

from __future__ import annotations

from datetime import date, datetime
from decimal import ROUND_HALF_UP, Decimal
from typing import Optional, Union


def format_currency(value: Decimal | None) -> str:
    """Format a decimal value as currency."""
    if value is None:
        return "--"
    quantized = value.quantize(Decimal("0.01"), rounding=ROUND_HALF_UP)
    sign = "-" if quantized < 0 else ""
    quantized = abs(quantized)
    return f"{sign}${quantized:,.2f}"


def format_strike(strike: Decimal) -> str:
    """Render a strike without trailing zeros for whole-dollar values."""
    if strike == strike.to_integral_value():
        return f"${int(strike)}"
    return f"${strike.quantize(Decimal('0.01'))}"


def format_date(value: Optional[Union[date, datetime]]) -> str:
    if value is None:
        return "--"
    if isinstance(value, datetime):
        value = value.date()
    return value.isoformat()


def format_percent(value: Decimal) -> str:
    """Format an already-scaled percentage such as ``Decimal("66.67")``."""
    text = f"{value.quantize(Decimal('0.01'), rounding=ROUND_HALF_UP):,.2f}"
    if text.endswith(".00"):
        text = text[:-3]
    return f"{text}%"


def pl_style(value: Optional[Decimal]) -> str:
    """Rich style for a profit/loss figure."""
    if value is None or value == 0:
        return "white"
    return "green" if value > 0 else "red"
