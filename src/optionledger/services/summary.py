"""Portfolio-level totals over built positions."""

from __future__ import annotations

from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal
from typing import Dict, Iterable, List

from .positions import Position


@dataclass(frozen=True)
class SummaryStats:
    """Aggregate figures for a set of positions."""

    total_pl: Decimal
    open_positions_count: int
    closed_positions_count: int
    total_premium_collected: Decimal
    win_rate: Decimal
    total_wins: int
    total_losses: int


def calculate_summary(positions: Iterable[Position]) -> SummaryStats:
    """
    Fold positions into summary statistics.

    Wins and losses count closed positions by the sign of their realized P/L; break-even
    positions count as neither. ``win_rate`` is a percentage rounded to two places.
    """
    total_pl = Decimal("0")
    premium = Decimal("0")
    open_count = 0
    closed_count = 0
    wins = 0
    losses = 0

    for position in positions:
        total_pl += position.net_pl
        premium += position.total_credit
        if position.is_open:
            open_count += 1
            continue
        closed_count += 1
        realized = position.realized_pl
        if realized > 0:
            wins += 1
        elif realized < 0:
            losses += 1

    decided = wins + losses
    win_rate = Decimal("0")
    if decided:
        win_rate = (Decimal(wins) * Decimal("100") / Decimal(decided)).quantize(
            Decimal("0.01"), rounding=ROUND_HALF_UP
        )

    return SummaryStats(
        total_pl=total_pl,
        open_positions_count=open_count,
        closed_positions_count=closed_count,
        total_premium_collected=premium,
        win_rate=win_rate,
        total_wins=wins,
        total_losses=losses,
    )


@dataclass(frozen=True)
class StrategyPerformance:
    """P/L totals for every position of one strategy type."""

    strategy_type: str
    count: int
    total_pl: Decimal
    average_pl: Decimal


def strategy_breakdown(positions: Iterable[Position]) -> List[StrategyPerformance]:
    """
    Group positions by strategy type, best total P/L first.

    Closed positions contribute realized P/L and open ones their running net P/L. Averages are
    rounded to cents.
    """
    totals: Dict[str, Decimal] = {}
    counts: Dict[str, int] = {}
    for position in positions:
        pl = position.realized_pl if position.realized_pl is not None else position.net_pl
        totals[position.strategy_type] = totals.get(position.strategy_type, Decimal("0")) + pl
        counts[position.strategy_type] = counts.get(position.strategy_type, 0) + 1

    rows = [
        StrategyPerformance(
            strategy_type=strategy,
            count=counts[strategy],
            total_pl=total,
            average_pl=(total / counts[strategy]).quantize(
                Decimal("0.01"), rounding=ROUND_HALF_UP
            ),
        )
        for strategy, total in totals.items()
    ]
    rows.sort(key=lambda row: row.total_pl, reverse=True)
    return rows
