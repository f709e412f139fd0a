"""Assemble positions from matched ledgers."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from typing import Callable, Iterable, List, Literal, Optional, Tuple

from ..core.legs import LegLedger, OptionLeg
from .classifier import SHARES_PER_CONTRACT, classify_strategy
from .position_hash import stable_id
from .roll_detection import Roll

PositionStatus = Literal["open", "closed"]
CoverLookup = Callable[[str, datetime], int]


@dataclass(frozen=True)
class CashFlow:
    """Signed cash impact of one lot."""

    lot_id: str
    transaction_id: str
    trans_code: str
    date: datetime
    amount: Decimal


@dataclass(frozen=True)
class Position:
    """One or more legs sharing a strategy and cash-flow set."""

    id: str
    symbol: str
    strategy_type: str
    status: PositionStatus
    entry_date: datetime
    exit_date: Optional[datetime]
    legs: Tuple[OptionLeg, ...]
    probe_legs: Tuple[OptionLeg, ...]
    cash_flows: Tuple[CashFlow, ...]
    transaction_ids: Tuple[str, ...]
    ledger_keys: Tuple[str, ...]
    total_credit: Decimal
    total_debit: Decimal
    rolls: Tuple[Roll, ...] = ()
    roll_chain_id: Optional[str] = None
    manual_group_id: Optional[str] = None

    @property
    def net_pl(self) -> Decimal:
        return self.total_credit - self.total_debit

    @property
    def realized_pl(self) -> Optional[Decimal]:
        """Equal to ``net_pl`` once closed; ``None`` while any leg is open."""
        if self.status != "closed":
            return None
        return self.net_pl

    @property
    def max_profitable_debit(self) -> Optional[Decimal]:
        """Largest closing debit that still leaves the position net profitable."""
        if self.status != "open":
            return None
        return self.total_credit

    @property
    def is_open(self) -> bool:
        return self.status == "open"

    @property
    def is_closed(self) -> bool:
        return self.status == "closed"


def split_credit_debit(flows: Iterable[CashFlow]) -> Tuple[Decimal, Decimal]:
    """Return (credits, debits) with debits as a positive magnitude."""
    credit = Decimal("0")
    debit = Decimal("0")
    for flow in flows:
        if flow.amount > 0:
            credit += flow.amount
        else:
            debit += -flow.amount
    return credit, debit


def _unique(values: Iterable[str]) -> Tuple[str, ...]:
    return tuple(dict.fromkeys(values))


def assemble_position(
    ledger: LegLedger,
    *,
    cover_lookup: Optional[CoverLookup] = None,
    shares_per_contract: int = SHARES_PER_CONTRACT,
) -> Position:
    """Build the pre-merge :class:`Position` for a single ledger."""
    lots = (*ledger.lots, *ledger.close_lots)
    flows = tuple(
        CashFlow(
            lot_id=lot.lot_id,
            transaction_id=lot.transaction_id,
            trans_code=lot.trans_code,
            date=lot.date,
            amount=lot.amount,
        )
        for lot in lots
    )
    credit, debit = split_credit_debit(flows)
    transaction_ids = _unique(lot.transaction_id for lot in lots)

    probe = ledger.first_opening_leg()
    entry_date = ledger.first_open_date
    cover = None
    if cover_lookup is not None and probe.trans_code == "STO" and probe.option_type == "Call":
        cover = cover_lookup(ledger.identity.symbol, entry_date)
    strategy = classify_strategy([probe], cover, shares_per_contract=shares_per_contract)

    closed = ledger.is_closed
    return Position(
        id=stable_id("position", transaction_ids),
        symbol=ledger.identity.symbol,
        strategy_type=strategy,
        status="closed" if closed else "open",
        entry_date=entry_date,
        exit_date=ledger.last_close_date if closed else None,
        legs=tuple(ledger.option_legs()),
        probe_legs=(probe,),
        cash_flows=flows,
        transaction_ids=transaction_ids,
        ledger_keys=(ledger.identity.key,),
        total_credit=credit,
        total_debit=debit,
    )


def assemble_positions(
    ledgers: Iterable[LegLedger],
    *,
    cover_lookup: Optional[CoverLookup] = None,
    shares_per_contract: int = SHARES_PER_CONTRACT,
) -> List[Position]:
    """Produce exactly one position per ledger, in ledger order."""
    return [
        assemble_position(
            ledger, cover_lookup=cover_lookup, shares_per_contract=shares_per_contract
        )
        for ledger in ledgers
    ]
