"""
Position build orchestration.

:func:`build_positions` is the library entry point: it rebuilds every position, roll and roll
chain from a complete transaction list. No state survives between calls, so the same input
always produces the same output.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Iterable, List, Optional, Sequence, Tuple

from ..config import EngineConfig
from ..core.models import Transaction
from .chain_builder import RollChain, attach_rolls, build_roll_chains
from .consolidation import consolidate_transactions
from .events import Anomaly, BuildObserver, BuildRecorder
from .ledger_builder import build_leg_ledgers
from .leg_matching import match_closing_transactions
from .manual_groupings import ManualGrouping, apply_manual_groupings
from .merger import merge_multi_leg_positions
from .positions import CoverLookup, Position, assemble_positions
from .roll_detection import Roll, detect_rolls
from .stock_holdings import shares_held_at
from .summary import (
    StrategyPerformance,
    SummaryStats,
    calculate_summary,
    strategy_breakdown,
)


@dataclass(frozen=True)
class BuildResult:
    """Everything produced by one build."""

    positions: Tuple[Position, ...]
    rolls: Tuple[Roll, ...]
    chains: Tuple[RollChain, ...]
    anomalies: Tuple[Anomaly, ...]

    def summary(self) -> SummaryStats:
        return calculate_summary(self.positions)

    def strategies(self) -> List[StrategyPerformance]:
        return strategy_breakdown(self.positions)


def sort_option_transactions(transactions: Iterable[Transaction]) -> List[Transaction]:
    """Option transactions by date; ties keep their input order."""
    return sorted(
        (txn for txn in transactions if txn.is_option),
        key=lambda txn: txn.activity_date,
    )


def _cover_lookup(transactions: List[Transaction]) -> Optional[CoverLookup]:
    if not any(txn.trans_code in {"BUY", "SELL"} for txn in transactions):
        return None

    def _lookup(symbol: str, as_of: datetime) -> int:
        return shares_held_at(transactions, symbol, as_of)

    return _lookup


def build_positions(
    transactions: Iterable[Transaction],
    *,
    config: Optional[EngineConfig] = None,
    observer: Optional[BuildObserver] = None,
    manual_groupings: Sequence[ManualGrouping] = (),
) -> BuildResult:
    """
    Build positions, rolls and roll chains from ``transactions``.

    ``manual_groupings`` fuse the positions holding the named transactions before the automatic
    multi-leg merge runs. Reconciliation problems are returned as anomalies on the result.
    Malformed option records raise :class:`~optionledger.core.models.MalformedTransactionError`.
    """
    config = config or EngineConfig()
    recorder = BuildRecorder(observer)

    source = list(transactions)
    records = source
    if config.consolidate_fills:
        records = consolidate_transactions(source, config.consolidation_tolerance)

    option_txns = sort_option_transactions(records)
    openers = [txn for txn in option_txns if txn.is_opening]
    closers = [txn for txn in option_txns if txn.is_closing]

    ledgers = build_leg_ledgers(openers)
    match_closing_transactions(ledgers, closers, recorder)

    cover_lookup = _cover_lookup(records) if config.detect_covered_calls else None
    positions = assemble_positions(
        ledgers.values(),
        cover_lookup=cover_lookup,
        shares_per_contract=config.contract_multiplier,
    )
    positions = apply_manual_groupings(positions, manual_groupings, source, recorder)
    positions = merge_multi_leg_positions(
        positions, window=config.merge_window, recorder=recorder
    )

    rolls = detect_rolls(option_txns, recorder)
    chains = build_roll_chains(rolls, positions, recorder)
    positions = attach_rolls(positions, rolls, chains)

    recorder.emit(
        "build_complete",
        transactions=len(option_txns),
        positions=len(positions),
        rolls=len(rolls),
        chains=len(chains),
        anomalies=len(recorder.anomalies),
    )
    return BuildResult(
        positions=tuple(positions),
        rolls=tuple(rolls),
        chains=tuple(chains),
        anomalies=tuple(recorder.anomalies),
    )
