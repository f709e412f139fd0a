from __future__ import annotations

from datetime import date, datetime
from decimal import Decimal
from itertools import product

import pytest

from optionledger.core.legs import OptionLeg
from optionledger.services.classifier import (
    STRATEGY_TYPES,
    classify_strategy,
    is_multi_leg_strategy,
)

JUNE = date(2024, 6, 21)
JULY = date(2024, 7, 19)


def _leg(
    trans_code: str,
    option_type: str,
    strike: str,
    *,
    expiration: date = JUNE,
    quantity: int = 1,
) -> OptionLeg:
    return OptionLeg(
        id=f"{trans_code}-{option_type}-{strike}-{expiration}",
        transaction_id="txn",
        symbol="SPY",
        expiration=expiration,
        strike=Decimal(strike),
        option_type=option_type,
        trans_code=trans_code,
        quantity=quantity,
        price=Decimal("1"),
        amount=Decimal("100"),
        activity_date=datetime(2024, 5, 1),
        status="open",
    )


@pytest.mark.parametrize(
    ("leg", "cover", "expected"),
    [
        (_leg("STO", "Call", "110", quantity=2), 200, "Covered Call"),
        (_leg("STO", "Call", "110", quantity=2), 199, "Short Call"),
        (_leg("STO", "Call", "110"), None, "Short Call"),
        (_leg("STO", "Put", "90"), None, "Cash Secured Put"),
        (_leg("STO", "Put", "90"), 500, "Cash Secured Put"),
        (_leg("BTO", "Call", "110"), None, "Long Call"),
        (_leg("BTO", "Put", "90"), None, "Long Put"),
        (_leg("BTC", "Put", "90"), None, "Unknown"),
    ],
)
def test_single_leg_rules(leg, cover, expected):
    assert classify_strategy([leg], cover) == expected


def test_cover_uses_contract_multiplier():
    leg = _leg("STO", "Call", "110", quantity=2)
    assert classify_strategy([leg], 20, shares_per_contract=10) == "Covered Call"


@pytest.mark.parametrize(
    ("legs", "expected"),
    [
        ([_leg("STO", "Put", "95"), _leg("BTO", "Put", "90")], "Put Credit Spread"),
        ([_leg("BTO", "Put", "95"), _leg("STO", "Put", "90")], "Put Debit Spread"),
        ([_leg("STO", "Call", "105"), _leg("BTO", "Call", "110")], "Call Credit Spread"),
        ([_leg("BTO", "Call", "105"), _leg("STO", "Call", "110")], "Call Debit Spread"),
        ([_leg("BTO", "Call", "100"), _leg("BTO", "Put", "100")], "Long Straddle"),
        ([_leg("STO", "Call", "100"), _leg("STO", "Put", "100")], "Short Straddle"),
        ([_leg("BTO", "Call", "110"), _leg("BTO", "Put", "90")], "Long Strangle"),
        ([_leg("STO", "Call", "110"), _leg("STO", "Put", "90")], "Short Strangle"),
        (
            [_leg("STO", "Call", "100"), _leg("BTO", "Call", "100", expiration=JULY)],
            "Calendar Spread",
        ),
        (
            [_leg("STO", "Call", "100"), _leg("BTO", "Call", "105", expiration=JULY)],
            "Diagonal Spread",
        ),
        ([_leg("STO", "Call", "100"), _leg("BTO", "Put", "100", expiration=JULY)], "Unknown"),
        ([_leg("STO", "Call", "100"), _leg("BTO", "Put", "90")], "Unknown"),
        ([_leg("STO", "Put", "100"), _leg("STO", "Put", "90")], "Unknown"),
        ([_leg("STO", "Put", "100"), _leg("BTO", "Put", "100")], "Unknown"),
    ],
)
def test_two_leg_rules(legs, expected):
    assert classify_strategy(legs) == expected
    assert classify_strategy(list(reversed(legs))) == expected



def test_iron_condor():
    legs = [
        _leg("BTO", "Put", "85"),
        _leg("STO", "Put", "90"),
        _leg("STO", "Call", "110"),
        _leg("BTO", "Call", "115"),
    ]
    assert classify_strategy(legs) == "Iron Condor"


def test_four_legs_with_wrong_sides_are_unknown():
    legs = [
        _leg("STO", "Put", "85"),
        _leg("BTO", "Put", "90"),
        _leg("STO", "Call", "110"),
        _leg("BTO", "Call", "115"),
    ]
    assert classify_strategy(legs) == "Unknown"


@pytest.mark.parametrize("count", [0, 3, 5])
def test_other_leg_counts_are_unknown(count):
    legs = [_leg("STO", "Put", str(90 + index)) for index in range(count)]
    assert classify_strategy(legs) == "Unknown"


def test_classifier_is_total_over_pairs():
    choices = list(
        product(["STO", "BTO", "STC", "BTC"], ["Call", "Put"], ["90", "100"], [JUNE, JULY])
    )
    for first, second in product(choices, repeat=2):
        legs = [
            _leg(first[0], first[1], first[2], expiration=first[3]),
            _leg(second[0], second[1], second[2], expiration=second[3]),
        ]
        assert classify_strategy(legs) in STRATEGY_TYPES


def test_multi_leg_strategy_helper():
    assert is_multi_leg_strategy("Iron Condor")
    assert is_multi_leg_strategy("Put Credit Spread")
    assert not is_multi_leg_strategy("Cash Secured Put")
    assert not is_multi_leg_strategy("Unknown")
