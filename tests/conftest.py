"""Pytest configuration and fixtures."""

from datetime import date, datetime
from decimal import Decimal
from typing import Optional, Union

import pytest

from optionledger.core.models import ParsedOption, Transaction

DateLike = Union[date, datetime]


def build_txn(
    txn_id: str,
    trans_code: str,
    *,
    when: DateLike = datetime(2024, 5, 1, 10, 0),
    symbol: str = "TSLA",
    option_type: Optional[str] = "Put",
    strike: Optional[str] = "100",
    expiration: Optional[date] = date(2024, 6, 21),
    quantity: int = 1,
    price: str = "0",
    amount: str = "0",
    is_option: bool = True,
) -> Transaction:
    """Create a normalized transaction with option details."""
    return Transaction(
        id=txn_id,
        activity_date=when,
        instrument=symbol,
        description=f"{symbol} {expiration} {option_type} ${strike}" if is_option else symbol,
        trans_code=trans_code,
        quantity=quantity,
        price=Decimal(price),
        amount=Decimal(amount),
        option=ParsedOption(
            symbol=symbol,
            expiration=expiration if is_option else None,
            strike=Decimal(strike) if is_option and strike is not None else None,
            option_type=option_type if is_option else None,
            is_option=is_option,
        ),
    )


@pytest.fixture
def make_txn():
    """Factory fixture for :class:`Transaction` records."""
    return build_txn
