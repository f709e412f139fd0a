"""
Roll chain linking.

Threads detected rolls into chains of positions. A roll's closing transaction belongs to the
position it rolls out of and its opening transaction to the position it rolls into, so each
roll is an edge between two positions. Chains follow those edges from a position nobody rolled
into until no further roll leaves the current position.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from datetime import date, datetime
from decimal import Decimal
from typing import Dict, List, Optional, Sequence, Set, Tuple

from .events import BuildRecorder
from .position_hash import stable_id
from .positions import Position, PositionStatus
from .roll_detection import Roll


@dataclass(frozen=True)
class RollChainSegment:
    """One hop of a chain: the rolls that moved a position into its successor."""

    sequence: int
    from_position_id: str
    to_position_id: str
    rolls: Tuple[Roll, ...]
    credit: Decimal
    debit: Decimal

    @property
    def roll_date(self) -> datetime:
        return self.rolls[0].roll_date

    @property
    def from_strike(self) -> Decimal:
        return self.rolls[0].from_strike

    @property
    def to_strike(self) -> Decimal:
        return self.rolls[0].to_strike

    @property
    def from_expiration(self) -> date:
        return self.rolls[0].from_expiration

    @property
    def to_expiration(self) -> date:
        return self.rolls[0].to_expiration

    @property
    def net_credit(self) -> Decimal:
        return self.credit - self.debit


@dataclass(frozen=True)
class RollChain:
    """Ordered sequence of roll segments sharing a lineage."""

    id: str
    symbol: str
    status: PositionStatus
    segments: Tuple[RollChainSegment, ...]
    position_ids: Tuple[str, ...]
    total_credits: Decimal
    total_debits: Decimal
    net_pl: Decimal

    @property
    def net_credit(self) -> Decimal:
        return self.total_credits - self.total_debits

    @property
    def roll_count(self) -> int:
        return sum(len(segment.rolls) for segment in self.segments)

    @property
    def start_date(self) -> datetime:
        return self.segments[0].roll_date

    @property
    def end_date(self) -> datetime:
        return self.segments[-1].roll_date


def _roll_cash(rolls: Sequence[Roll]) -> Tuple[Decimal, Decimal]:
    credit = Decimal("0")
    debit = Decimal("0")
    for roll in rolls:
        for amount in (roll.close_amount, roll.open_amount):
            if amount > 0:
                credit += amount
            else:
                debit += -amount
    return credit, debit


class _RollGraph:
    """Position-to-position roll edges with consumption tracking."""

    def __init__(
        self,
        positions: Sequence[Position],
        rolls: Sequence[Roll],
        recorder: Optional[BuildRecorder],
    ) -> None:
        owner: Dict[str, str] = {}
        for position in positions:
            for txn_id in position.transaction_ids:
                owner.setdefault(txn_id, position.id)

        self.outgoing: Dict[str, List[Roll]] = {}
        self.incoming: Set[str] = set()
        self.target: Dict[str, str] = {}
        self.source: Dict[str, str] = {}
        self.ordered: List[Roll] = []
        for roll in rolls:
            source = owner.get(roll.from_leg_id)
            target = owner.get(roll.to_leg_id)
            if source is None or target is None or source == target:
                if recorder is not None:
                    recorder.emit("roll_unlinked", roll_id=roll.id)
                continue
            self.outgoing.setdefault(source, []).append(roll)
            self.incoming.add(target)
            self.source[roll.id] = source
            self.target[roll.id] = target
            self.ordered.append(roll)
        self.consumed: Set[str] = set()

    def walk(self, start: str) -> List[Tuple[str, str, List[Roll]]]:
        hops: List[Tuple[str, str, List[Roll]]] = []
        visited = {start}
        current = start
        while True:
            pending = [r for r in self.outgoing.get(current, []) if r.id not in self.consumed]
            if not pending:
                break
            successor = self.target[pending[0].id]
            if successor in visited:
                break
            hop = [roll for roll in pending if self.target[roll.id] == successor]
            self.consumed.update(roll.id for roll in hop)
            hops.append((current, successor, hop))
            visited.add(successor)
            current = successor
        return hops


def build_roll_chains(
    rolls: Sequence[Roll],
    positions: Sequence[Position],
    recorder: Optional[BuildRecorder] = None,
) -> List[RollChain]:
    """Link ``rolls`` into chains over ``positions``."""
    by_id = {position.id: position for position in positions}
    graph = _RollGraph(positions, rolls, recorder)

    starts = [
        position.id
        for position in positions
        if position.id in graph.outgoing and position.id not in graph.incoming
    ]

    chains: List[RollChain] = []

    def _collect(start: str) -> None:
        hops = graph.walk(start)
        if hops:
            chains.append(_make_chain(hops, by_id))

    for start in starts:
        _collect(start)
    # Branches and cycles leave rolls behind; each starts its own chain.
    for roll in graph.ordered:
        if roll.id not in graph.consumed:
            _collect(graph.source[roll.id])

    chains.sort(key=lambda chain: chain.start_date)
    return chains


def _make_chain(
    hops: List[Tuple[str, str, List[Roll]]],
    by_id: Dict[str, Position],
) -> RollChain:
    segments = []
    for sequence, (source, target, hop_rolls) in enumerate(hops, start=1):
        credit, debit = _roll_cash(hop_rolls)
        segments.append(
            RollChainSegment(
                sequence=sequence,
                from_position_id=source,
                to_position_id=target,
                rolls=tuple(sorted(hop_rolls, key=lambda roll: roll.roll_date)),
                credit=credit,
                debit=debit,
            )
        )

    position_ids = (hops[0][0], *(target for _source, target, _rolls in hops))
    terminal = by_id[position_ids[-1]]
    return RollChain(
        id=stable_id("chain", [roll.id for segment in segments for roll in segment.rolls]),
        symbol=terminal.symbol,
        status=terminal.status,
        segments=tuple(segments),
        position_ids=position_ids,
        total_credits=sum((segment.credit for segment in segments), Decimal("0")),
        total_debits=sum((segment.debit for segment in segments), Decimal("0")),
        net_pl=sum((by_id[pid].net_pl for pid in position_ids), Decimal("0")),
    )


def attach_rolls(
    positions: Sequence[Position],
    rolls: Sequence[Roll],
    chains: Sequence[RollChain],
) -> List[Position]:
    """Return copies of ``positions`` carrying their rolls and roll chain id."""
    chain_for: Dict[str, str] = {}
    for chain in chains:
        for position_id in chain.position_ids:
            chain_for.setdefault(position_id, chain.id)

    attached: List[Position] = []
    for position in positions:
        txn_ids = set(position.transaction_ids)
        related = tuple(
            roll for roll in rolls if roll.from_leg_id in txn_ids or roll.to_leg_id in txn_ids
        )
        attached.append(
            replace(position, rolls=related, roll_chain_id=chain_for.get(position.id))
        )
    return attached
