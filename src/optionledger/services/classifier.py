"""Strategy classification for option leg sets.

:func:`classify_strategy` is a pure, total function: every input, including an empty or
oddly shaped leg list, maps to exactly one strategy name, with ``"Unknown"`` as the fallback.
"""

from __future__ import annotations

from typing import Optional, Sequence

from ..core.legs import OptionLeg

COVERED_CALL = "Covered Call"
CASH_SECURED_PUT = "Cash Secured Put"
PUT_CREDIT_SPREAD = "Put Credit Spread"
CALL_CREDIT_SPREAD = "Call Credit Spread"
PUT_DEBIT_SPREAD = "Put Debit Spread"
CALL_DEBIT_SPREAD = "Call Debit Spread"
IRON_CONDOR = "Iron Condor"
LONG_STRADDLE = "Long Straddle"
SHORT_STRADDLE = "Short Straddle"
LONG_STRANGLE = "Long Strangle"
SHORT_STRANGLE = "Short Strangle"
CALENDAR_SPREAD = "Calendar Spread"
DIAGONAL_SPREAD = "Diagonal Spread"
LONG_CALL = "Long Call"
LONG_PUT = "Long Put"
SHORT_CALL = "Short Call"
SHORT_PUT = "Short Put"
LONG_STOCK = "Long Stock"
SHORT_STOCK = "Short Stock"
UNKNOWN = "Unknown"

STRATEGY_TYPES = (
    COVERED_CALL,
    CASH_SECURED_PUT,
    PUT_CREDIT_SPREAD,
    CALL_CREDIT_SPREAD,
    PUT_DEBIT_SPREAD,
    CALL_DEBIT_SPREAD,
    IRON_CONDOR,
    LONG_STRADDLE,
    SHORT_STRADDLE,
    LONG_STRANGLE,
    SHORT_STRANGLE,
    CALENDAR_SPREAD,
    DIAGONAL_SPREAD,
    LONG_CALL,
    LONG_PUT,
    SHORT_CALL,
    SHORT_PUT,
    LONG_STOCK,
    SHORT_STOCK,
    UNKNOWN,
)

SINGLE_LEG_STRATEGIES = frozenset(
    {
        COVERED_CALL,
        CASH_SECURED_PUT,
        SHORT_CALL,
        SHORT_PUT,
        LONG_CALL,
        LONG_PUT,
        LONG_STOCK,
        SHORT_STOCK,
    }
)

SHARES_PER_CONTRACT = 100


def is_multi_leg_strategy(strategy: str) -> bool:
    """True for recognized strategies that need more than one leg."""
    return strategy != UNKNOWN and strategy not in SINGLE_LEG_STRATEGIES


def _classify_single(
    leg: OptionLeg, cover_quantity: Optional[int], shares_per_contract: int
) -> str:
    if leg.trans_code == "STO":
        if leg.option_type == "Call":
            if cover_quantity is not None and cover_quantity >= leg.quantity * shares_per_contract:
                return COVERED_CALL
            return SHORT_CALL
        # Short puts are always reported as cash secured.
        return CASH_SECURED_PUT
    if leg.trans_code == "BTO":
        return LONG_CALL if leg.option_type == "Call" else LONG_PUT
    return UNKNOWN


def _classify_pair(first: OptionLeg, second: OptionLeg) -> str:  # noqa: C901
    lower, higher = sorted((first, second), key=lambda leg: leg.strike)
    same_strike = lower.strike == higher.strike
    same_expiration = lower.expiration == higher.expiration
    codes = {lower.trans_code, higher.trans_code}

    if lower.option_type != higher.option_type:
        if not same_expiration:
            return UNKNOWN
        if codes == {"BTO"}:
            return LONG_STRADDLE if same_strike else LONG_STRANGLE
        if codes == {"STO"}:
            return SHORT_STRADDLE if same_strike else SHORT_STRANGLE
        return UNKNOWN

    if codes != {"BTO", "STO"}:
        return UNKNOWN

    puts = lower.option_type == "Put"
    if same_expiration:
        if same_strike:
            return UNKNOWN
        if lower.trans_code == "BTO":
            return PUT_CREDIT_SPREAD if puts else CALL_DEBIT_SPREAD
        return PUT_DEBIT_SPREAD if puts else CALL_CREDIT_SPREAD

    return CALENDAR_SPREAD if same_strike else DIAGONAL_SPREAD


def _classify_four(legs: Sequence[OptionLeg]) -> str:
    puts = sorted((leg for leg in legs if leg.option_type == "Put"), key=lambda leg: leg.strike)
    calls = sorted((leg for leg in legs if leg.option_type == "Call"), key=lambda leg: leg.strike)
    if len(puts) != 2 or len(calls) != 2:
        return UNKNOWN

    lower_put, higher_put = puts
    lower_call, higher_call = calls
    put_credit = lower_put.trans_code == "BTO" and higher_put.trans_code == "STO"
    call_credit = lower_call.trans_code == "STO" and higher_call.trans_code == "BTO"
    if put_credit and call_credit:
        return IRON_CONDOR
    return UNKNOWN


def classify_strategy(
    legs: Sequence[OptionLeg],
    cover_quantity: Optional[int] = None,
    *,
    shares_per_contract: int = SHARES_PER_CONTRACT,
) -> str:
    """
    Map a leg set to a strategy name.

    Parameters
    ----------
    legs:
        Opening legs that make up the candidate position.
    cover_quantity:
        Shares of the underlying held when the position was opened. Only used to tell a
        covered call from a naked short call.
    shares_per_contract:
        Contract multiplier applied in the cover check.
    """
    if len(legs) == 1:
        return _classify_single(legs[0], cover_quantity, shares_per_contract)
    if len(legs) == 2:
        return _classify_pair(legs[0], legs[1])
    if len(legs) == 4:
        return _classify_four(legs)
    return UNKNOWN
