"""Fold split fills of the same order into single transactions."""

from __future__ import annotations

from datetime import date
from decimal import Decimal
from typing import Dict, List, Optional, Sequence, Set, Tuple

from ..config import DEFAULT_CONSOLIDATION_TOLERANCE
from ..core.models import Transaction

FillKey = Tuple[date, str, Optional[date], Optional[Decimal], Optional[str], str]


def _fill_key(txn: Transaction) -> FillKey:
    option = txn.option
    return (
        txn.trade_day,
        txn.instrument.strip().upper(),
        option.expiration,
        option.strike,
        option.option_type,
        txn.trans_code,
    )


def _combine(group: Sequence[Transaction]) -> Transaction:
    quantity = sum(txn.quantity for txn in group)
    amount = sum((txn.amount for txn in group), Decimal("0"))
    weighted = sum((txn.price * txn.quantity for txn in group), Decimal("0"))
    price = (weighted / quantity).quantize(Decimal("0.0001")) if quantity else group[0].price
    return group[0].model_copy(update={"quantity": quantity, "amount": amount, "price": price})


def consolidate_transactions(
    transactions: Sequence[Transaction],
    tolerance: Decimal = DEFAULT_CONSOLIDATION_TOLERANCE,
) -> List[Transaction]:
    """
    Merge option fills that share day, contract and code when their prices are close.

    A group whose prices spread more than ``tolerance`` is kept as separate transactions.
    Consolidated records keep the first fill's id and position in the output; non-option
    transactions pass through untouched. Total amount is conserved.
    """
    groups: Dict[FillKey, List[Transaction]] = {}
    for txn in transactions:
        if txn.is_option:
            groups.setdefault(_fill_key(txn), []).append(txn)

    result: List[Transaction] = []
    emitted: Set[FillKey] = set()
    for txn in transactions:
        if not txn.is_option:
            result.append(txn)
            continue

        key = _fill_key(txn)
        group = groups[key]
        if len(group) == 1:
            result.append(txn)
            continue

        prices = [member.price for member in group]
        if max(prices) - min(prices) > tolerance:
            result.append(txn)
            continue

        if key not in emitted:
            emitted.add(key)
            result.append(_combine(group))

    return result
