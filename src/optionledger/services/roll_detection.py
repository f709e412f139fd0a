"""
Roll detection.

A roll is a closing trade paired with an opening trade on the same day, same underlying and
same option type, where the strike or the expiration changes. Short rolls pair STC with STO and
long rolls pair BTC with BTO.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from decimal import Decimal
from typing import Dict, Iterable, List, Optional, Set, Tuple

from ..core.models import Transaction
from .events import BuildRecorder
from .position_hash import stable_id

_EXPECTED_OPEN = {"STC": "STO", "BTC": "BTO"}


@dataclass(frozen=True)
class Roll:
    """A detected close-then-reopen pairing between two legs."""

    id: str
    symbol: str
    option_type: str
    quantity: int
    from_leg_id: str
    to_leg_id: str
    roll_date: datetime
    from_strike: Decimal
    to_strike: Decimal
    from_expiration: date
    to_expiration: date
    close_amount: Decimal
    open_amount: Decimal

    @property
    def net_credit(self) -> Decimal:
        return self.open_amount + self.close_amount


def _is_rollable(txn: Transaction) -> bool:
    option = txn.option
    return (
        txn.is_option
        and option.strike is not None
        and option.expiration is not None
        and option.option_type is not None
    )


def _find_matching_open(
    close: Transaction,
    openers: List[Transaction],
    used: Set[int],
) -> Optional[int]:
    expected = _EXPECTED_OPEN[close.trans_code]
    for index, candidate in enumerate(openers):
        if index in used or candidate.trans_code != expected:
            continue
        if candidate.option.option_type != close.option.option_type:
            continue
        if candidate.quantity != close.quantity:
            continue
        same_contract = (
            candidate.option.strike == close.option.strike
            and candidate.option.expiration == close.option.expiration
        )
        if same_contract:
            continue
        return index
    return None


def _make_roll(close: Transaction, opened: Transaction) -> Roll:
    return Roll(
        id=stable_id("roll", (close.id, opened.id)),
        symbol=close.symbol,
        option_type=close.option.option_type or "",
        quantity=close.quantity,
        from_leg_id=close.id,
        to_leg_id=opened.id,
        roll_date=close.activity_date,
        from_strike=close.option.strike,  # type: ignore[arg-type]
        to_strike=opened.option.strike,  # type: ignore[arg-type]
        from_expiration=close.option.expiration,  # type: ignore[arg-type]
        to_expiration=opened.option.expiration,  # type: ignore[arg-type]
        close_amount=close.amount,
        open_amount=opened.amount,
    )


def detect_rolls(
    transactions: Iterable[Transaction],
    recorder: Optional[BuildRecorder] = None,
) -> List[Roll]:
    """
    Detect same-day roll pairs across ``transactions``.

    Each opening transaction is used by at most one roll. Rolls come back ordered by roll date
    and then by the input order of their closing transaction.
    """
    by_day_symbol: Dict[Tuple[date, str], List[Transaction]] = {}
    for txn in transactions:
        if not _is_rollable(txn):
            continue
        by_day_symbol.setdefault((txn.trade_day, txn.symbol), []).append(txn)

    rolls: List[Roll] = []
    for txns in by_day_symbol.values():
        closers = [txn for txn in txns if txn.trans_code in _EXPECTED_OPEN]
        openers = [txn for txn in txns if txn.is_opening]
        used: Set[int] = set()
        for close in closers:
            match_index = _find_matching_open(close, openers, used)
            if match_index is None:
                continue
            used.add(match_index)
            roll = _make_roll(close, openers[match_index])
            rolls.append(roll)
            if recorder is not None:
                recorder.emit(
                    "roll_detected",
                    roll_id=roll.id,
                    from_leg_id=roll.from_leg_id,
                    to_leg_id=roll.to_leg_id,
                    net_credit=roll.net_credit,
                )

    rolls.sort(key=lambda roll: roll.roll_date)
    return rolls
