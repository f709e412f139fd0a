"""CLI command for displaying assembled option positions."""

from __future__ import annotations

from decimal import Decimal
from pathlib import Path
from typing import List, Optional, Sequence

import click
from rich.console import Console
from rich.table import Table

from ..services.display import format_currency, format_date, format_strike, pl_style
from ..services.events import Anomaly
from ..services.json_serializer import serialize_anomalies, serialize_position
from ..services.positions import Position
from .utils import build_options, run_build

StatusChoice = click.Choice(["all", "open", "closed"], case_sensitive=False)


def _filter_positions(positions: Sequence[Position], status: str) -> List[Position]:
    if status == "all":
        return list(positions)
    return [position for position in positions if position.status == status]


def _build_position_table(positions: Sequence[Position]) -> Table:
    table = Table(title="Option Positions", expand=True)
    table.add_column("Symbol", style="magenta", no_wrap=True)
    table.add_column("Strategy", style="cyan")
    table.add_column("Status", style="yellow", no_wrap=True)
    table.add_column("Entry", style="cyan", no_wrap=True)
    table.add_column("Exit", style="cyan", no_wrap=True)
    table.add_column("Legs", justify="right")
    table.add_column("Credit", justify="right")
    table.add_column("Debit", justify="right")
    table.add_column("Net P/L", justify="right")
    table.add_column("Max Close Debit", justify="right")
    table.add_column("Rolls", justify="right")

    total_credit = Decimal("0")
    total_debit = Decimal("0")
    for position in positions:
        net = position.net_pl
        table.add_row(
            position.symbol,
            position.strategy_type,
            position.status.upper(),
            format_date(position.entry_date),
            format_date(position.exit_date),
            str(len(position.legs)),
            format_currency(position.total_credit),
            format_currency(position.total_debit),
            f"[{pl_style(net)}]{format_currency(net)}[/{pl_style(net)}]",
            format_currency(position.max_profitable_debit),
            str(len(position.rolls)) if position.rolls else "--",
        )
        total_credit += position.total_credit
        total_debit += position.total_debit

    table.add_section()
    table.add_row(
        f"[bold]Totals (Positions: {len(positions)})[/bold]",
        "",
        "",
        "",
        "",
        "",
        format_currency(total_credit),
        format_currency(total_debit),
        format_currency(total_credit - total_debit),
        "",
        "",
        end_section=True,
    )
    return table


def _build_leg_table(position: Position) -> Table:
    title = (
        f"Legs • {position.symbol} {position.strategy_type} • "
        f"{format_date(position.entry_date)}"
    )
    table = Table(title=title, expand=True)
    table.add_column("Date", style="cyan", no_wrap=True)
    table.add_column("Code", style="yellow", no_wrap=True)
    table.add_column("Type", style="magenta", no_wrap=True)
    table.add_column("Strike", justify="right")
    table.add_column("Expiration", style="magenta", no_wrap=True)
    table.add_column("Qty", justify="right")
    table.add_column("Price", justify="right")
    table.add_column("Amount", justify="right")
    table.add_column("Status", style="yellow", no_wrap=True)

    for leg in position.legs:
        table.add_row(
            format_date(leg.activity_date),
            leg.trans_code,
            leg.option_type,
            format_strike(leg.strike),
            format_date(leg.expiration),
            str(leg.quantity),
            format_currency(leg.price),
            format_currency(leg.amount),
            leg.status.upper(),
        )
    return table


def print_anomalies(console: Console, anomalies: Sequence[Anomaly]) -> None:
    if not anomalies:
        return
    console.print("\n[red]Warnings:[/red]")
    for anomaly in anomalies:
        console.print(f"- {anomaly.contract_key} • {anomaly.transaction_id}: {anomaly.message}")


@click.command("positions")
@build_options
@click.option(
    "--status",
    type=StatusChoice,
    default="all",
    show_default=True,
    help="Filter by position status.",
)
@click.option("--show-legs", is_flag=True, help="Show the legs of each position.")
def positions_command(
    transactions_file: Path,
    output_format: str,
    merge_window_seconds: Optional[float],
    consolidate: Optional[bool],
    groupings_file: Optional[Path],
    verbose: bool,
    status: str,
    show_legs: bool,
) -> None:
    """Display positions built from a transaction file."""
    console = Console()
    result = run_build(
        transactions_file,
        merge_window_seconds=merge_window_seconds,
        consolidate=consolidate,
        verbose=verbose,
        groupings_file=groupings_file,
    )
    positions = _filter_positions(result.positions, status.lower())

    if output_format.lower() == "json":
        console.print_json(
            data={
                "positions": [serialize_position(position) for position in positions],
                "anomalies": serialize_anomalies(result.anomalies),
            }
        )
        return

    if positions:
        console.print(_build_position_table(positions))
        if show_legs:
            for position in positions:
                console.print(_build_leg_table(position))
    else:
        console.print("[yellow]No positions match the requested filters.[/yellow]")

    print_anomalies(console, result.anomalies)
