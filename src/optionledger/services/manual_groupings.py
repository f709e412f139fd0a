"""User-defined position groupings.

A manual grouping names a set of transactions by content hash and the strategy the trader says
they form. Every position holding one of those transactions is fused into a single position
carrying that strategy and the grouping's id. Grouped positions are left alone by the automatic
multi-leg merger.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Dict, Iterable, List, Optional, Sequence, Set

from ..core.models import Transaction
from .classifier import STRATEGY_TYPES
from .events import BuildRecorder
from .merger import merge_group
from .position_hash import compute_transaction_hash
from .positions import Position


@dataclass(frozen=True)
class ManualGrouping:
    """Transactions the trader grouped into one position by hand."""

    group_id: str
    transaction_hashes: frozenset
    strategy_type: str

    def __post_init__(self) -> None:
        if self.strategy_type not in STRATEGY_TYPES:
            raise ValueError(f"Unknown strategy type: {self.strategy_type}")
        object.__setattr__(self, "transaction_hashes", frozenset(self.transaction_hashes))


def _ids_by_hash(transactions: Iterable[Transaction]) -> Dict[str, List[str]]:
    ids: Dict[str, List[str]] = {}
    for txn in transactions:
        ids.setdefault(compute_transaction_hash(txn), []).append(txn.id)
    return ids


def apply_manual_groupings(
    positions: Sequence[Position],
    groupings: Sequence[ManualGrouping],
    transactions: Iterable[Transaction],
    recorder: Optional[BuildRecorder] = None,
) -> List[Position]:
    """
    Fuse the positions named by each grouping, in grouping order.

    A position claimed by an earlier grouping is not available to a later one. A grouping that
    matches no available position is skipped.
    """
    if not groupings:
        return list(positions)

    ids_by_hash = _ids_by_hash(transactions)
    remaining = list(positions)
    grouped: List[Position] = []

    for grouping in groupings:
        wanted: Set[str] = {
            txn_id
            for txn_hash in grouping.transaction_hashes
            for txn_id in ids_by_hash.get(txn_hash, ())
        }
        members = [p for p in remaining if wanted.intersection(p.transaction_ids)]
        if not members:
            if recorder is not None:
                recorder.emit("manual_grouping_skipped", group_id=grouping.group_id)
            continue

        combined = replace(
            merge_group(members, grouping.strategy_type),
            manual_group_id=grouping.group_id,
        )
        grouped.append(combined)
        claimed = {member.id for member in members}
        remaining = [p for p in remaining if p.id not in claimed]
        if recorder is not None:
            recorder.emit(
                "manual_grouping_applied",
                group_id=grouping.group_id,
                strategy=grouping.strategy_type,
                members=len(members),
                position_id=combined.id,
            )

    return grouped + remaining
