"""Share counts used to decide whether a short call is covered."""

from __future__ import annotations

from collections import deque
from datetime import datetime
from typing import Deque, Iterable, List

from ..core.models import Transaction


def _stock_transactions(transactions: Iterable[Transaction], symbol: str) -> List[Transaction]:
    wanted = symbol.strip().upper()
    return [
        txn
        for txn in transactions
        if not txn.option.is_option
        and txn.trans_code in {"BUY", "SELL"}
        and txn.instrument.strip().upper() == wanted
    ]


def shares_held_at(transactions: Iterable[Transaction], symbol: str, as_of: datetime) -> int:
    """
    Return shares of ``symbol`` held at ``as_of`` using FIFO lot accounting.

    Sells beyond the shares on hand are ignored rather than producing a short balance.
    """
    relevant = sorted(
        (txn for txn in _stock_transactions(transactions, symbol) if txn.activity_date <= as_of),
        key=lambda txn: txn.activity_date,
    )

    lots: Deque[int] = deque()
    for txn in relevant:
        if txn.trans_code == "BUY":
            lots.append(txn.quantity)
            continue
        to_sell = txn.quantity
        while to_sell and lots:
            take = min(lots[0], to_sell)
            to_sell -= take
            if take == lots[0]:
                lots.popleft()
            else:
                lots[0] -= take
    return sum(lots)
