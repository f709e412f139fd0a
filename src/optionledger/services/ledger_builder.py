"""Group opening transactions into per-contract ledgers."""

from __future__ import annotations

from typing import Dict, Iterable

from ..core.legs import ContractIdentity, LegLedger
from ..core.models import Transaction

LedgerMap = Dict[ContractIdentity, LegLedger]


def build_leg_ledgers(openers: Iterable[Transaction]) -> LedgerMap:
    """
    Build one :class:`LegLedger` per contract identity from STO/BTO transactions.

    ``openers`` must already be sorted by date. Every transaction becomes its own lot, and the
    mapping preserves the order in which each identity was first opened.
    """
    ledgers: LedgerMap = {}
    for txn in openers:
        identity = ContractIdentity.from_transaction(txn)
        ledger = ledgers.get(identity)
        if ledger is None:
            ledger = ledgers[identity] = LegLedger(identity=identity)
        ledger.add_opening(txn)
    return ledgers
