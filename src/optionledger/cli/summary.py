"""CLI command for portfolio-level summary statistics."""

from __future__ import annotations

from pathlib import Path
from typing import Optional, Sequence

import click
from rich.console import Console
from rich.table import Table

from ..services.display import format_currency, format_percent, pl_style
from ..services.json_serializer import (
    serialize_anomalies,
    serialize_strategy_performance,
    serialize_summary,
)
from ..services.summary import StrategyPerformance, SummaryStats
from .positions import print_anomalies
from .utils import build_options, run_build


def _build_summary_table(stats: SummaryStats) -> Table:
    table = Table(title="Portfolio Summary", expand=False)
    table.add_column("Metric", style="cyan", no_wrap=True)
    table.add_column("Value", justify="right")

    style = pl_style(stats.total_pl)
    table.add_row("Total P/L", f"[{style}]{format_currency(stats.total_pl)}[/{style}]")
    table.add_row("Premium Collected", format_currency(stats.total_premium_collected))
    table.add_row("Open Positions", str(stats.open_positions_count))
    table.add_row("Closed Positions", str(stats.closed_positions_count))
    table.add_row("Wins", str(stats.total_wins))
    table.add_row("Losses", str(stats.total_losses))
    table.add_row("Win Rate", format_percent(stats.win_rate))
    return table


def _build_strategy_table(rows: Sequence[StrategyPerformance]) -> Table:
    table = Table(title="Strategy Performance", expand=False)
    table.add_column("Strategy", style="cyan", no_wrap=True)
    table.add_column("Positions", justify="right")
    table.add_column("Total P/L", justify="right")
    table.add_column("Avg P/L", justify="right")

    for row in rows:
        style = pl_style(row.total_pl)
        table.add_row(
            row.strategy_type,
            str(row.count),
            f"[{style}]{format_currency(row.total_pl)}[/{style}]",
            format_currency(row.average_pl),
        )
    return table


@click.command("summary")
@build_options
def summary_command(
    transactions_file: Path,
    output_format: str,
    merge_window_seconds: Optional[float],
    consolidate: Optional[bool],
    groupings_file: Optional[Path],
    verbose: bool,
) -> None:
    """Display portfolio totals and per-strategy results."""
    console = Console()
    result = run_build(
        transactions_file,
        merge_window_seconds=merge_window_seconds,
        consolidate=consolidate,
        verbose=verbose,
        groupings_file=groupings_file,
    )
    stats = result.summary()
    strategies = result.strategies()

    if output_format.lower() == "json":
        console.print_json(
            data={
                "summary": serialize_summary(stats),
                "strategies": [serialize_strategy_performance(row) for row in strategies],
                "anomalies": serialize_anomalies(result.anomalies),
            }
        )
        return

    console.print(_build_summary_table(stats))
    if strategies:
        console.print(_build_strategy_table(strategies))
    print_anomalies(console, result.anomalies)
