"""Fuse time-clustered single-leg positions into recognized multi-leg strategies."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from decimal import Decimal
from typing import Dict, List, Optional, Sequence, Tuple

from ..config import DEFAULT_MERGE_WINDOW
from .classifier import classify_strategy, is_multi_leg_strategy
from .events import BuildRecorder
from .position_hash import stable_id
from .positions import Position

_EPOCH = datetime(1970, 1, 1)


def entry_bucket(entry_date: datetime, window: timedelta = DEFAULT_MERGE_WINDOW) -> int:
    """Index of the fixed-width time bucket containing ``entry_date``."""
    if entry_date.tzinfo is not None:
        entry_date = entry_date.astimezone(timezone.utc).replace(tzinfo=None)
    return (entry_date - _EPOCH) // window


def merge_group(members: Sequence[Position], strategy: str) -> Position:
    """Combine ``members`` into a single position classified as ``strategy``."""
    all_closed = all(member.is_closed for member in members)
    transaction_ids = tuple(txn_id for member in members for txn_id in member.transaction_ids)
    exit_date = None
    if all_closed:
        exit_date = max(member.exit_date for member in members if member.exit_date is not None)
    return Position(
        id=stable_id("position", transaction_ids),
        symbol=members[0].symbol,
        strategy_type=strategy,
        status="closed" if all_closed else "open",
        entry_date=min(member.entry_date for member in members),
        exit_date=exit_date,
        legs=tuple(leg for member in members for leg in member.legs),
        probe_legs=tuple(leg for member in members for leg in member.probe_legs),
        cash_flows=tuple(flow for member in members for flow in member.cash_flows),
        transaction_ids=transaction_ids,
        ledger_keys=tuple(key for member in members for key in member.ledger_keys),
        total_credit=sum((member.total_credit for member in members), Decimal("0")),
        total_debit=sum((member.total_debit for member in members), Decimal("0")),
    )


def merge_multi_leg_positions(
    positions: Sequence[Position],
    *,
    window: timedelta = DEFAULT_MERGE_WINDOW,
    recorder: Optional[BuildRecorder] = None,
) -> List[Position]:
    """
    Merge positions that were opened together into multi-leg strategies.

    Positions are grouped by symbol and entry-time bucket. A group is merged only when the
    first opening lot of each member classifies as a recognized multi-leg strategy; any other
    group is left as separate positions. Manually grouped positions pass through unchanged.
    """
    merged: List[Position] = []
    groups: Dict[Tuple[str, int], List[Position]] = {}
    for position in positions:
        if position.manual_group_id is not None:
            merged.append(position)
            continue
        key = (position.symbol, entry_bucket(position.entry_date, window))
        groups.setdefault(key, []).append(position)

    for (symbol, _bucket), members in groups.items():
        if len(members) == 1:
            merged.append(members[0])
            continue

        probe = [leg for member in members for leg in member.probe_legs]
        strategy = classify_strategy(probe)
        if not is_multi_leg_strategy(strategy):
            merged.extend(members)
            continue

        combined = merge_group(members, strategy)
        merged.append(combined)
        if recorder is not None:
            recorder.emit(
                "positions_merged",
                symbol=symbol,
                strategy=strategy,
                members=len(members),
                position_id=combined.id,
            )

    merged.sort(key=lambda position: (position.entry_date, position.symbol))
    return merged
