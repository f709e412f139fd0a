"""CLI command for displaying detected rolls and roll chains."""

from __future__ import annotations

from decimal import Decimal
from pathlib import Path
from typing import Optional, Sequence

import click
from rich.console import Console
from rich.table import Table

from ..services.chain_builder import RollChain
from ..services.display import format_currency, format_date, format_strike, pl_style
from ..services.json_serializer import serialize_anomalies, serialize_chain, serialize_roll
from .positions import print_anomalies
from .utils import build_options, run_build


def _build_chain_table(chain: RollChain) -> Table:
    title = (
        f"Roll Chain • {chain.symbol} • {format_date(chain.start_date)} → "
        f"{format_date(chain.end_date)} • {chain.status.upper()}"
    )
    table = Table(title=title, expand=True)
    table.add_column("#", justify="right")
    table.add_column("Date", style="cyan", no_wrap=True)
    table.add_column("Strike", justify="right")
    table.add_column("Expiration", style="magenta", no_wrap=True)
    table.add_column("Rolls", justify="right")
    table.add_column("Credit", justify="right")
    table.add_column("Debit", justify="right")
    table.add_column("Net", justify="right")

    for segment in chain.segments:
        net = segment.net_credit
        table.add_row(
            str(segment.sequence),
            format_date(segment.roll_date),
            f"{format_strike(segment.from_strike)} → {format_strike(segment.to_strike)}",
            f"{format_date(segment.from_expiration)} → {format_date(segment.to_expiration)}",
            str(len(segment.rolls)),
            format_currency(segment.credit),
            format_currency(segment.debit),
            f"[{pl_style(net)}]{format_currency(net)}[/{pl_style(net)}]",
        )

    table.add_section()
    table.add_row(
        "",
        "[bold]Totals[/bold]",
        "",
        "",
        str(chain.roll_count),
        format_currency(chain.total_credits),
        format_currency(chain.total_debits),
        format_currency(chain.net_credit),
        end_section=True,
    )
    return table


def _print_chain_footer(console: Console, chains: Sequence[RollChain]) -> None:
    total = sum((chain.net_pl for chain in chains), Decimal("0"))
    console.print(
        f"Chains: {len(chains)} • Net P/L across chained positions: {format_currency(total)}"
    )


@click.command("rolls")
@build_options
def rolls_command(
    transactions_file: Path,
    output_format: str,
    merge_window_seconds: Optional[float],
    consolidate: Optional[bool],
    groupings_file: Optional[Path],
    verbose: bool,
) -> None:
    """Display detected rolls grouped into roll chains."""
    console = Console()
    result = run_build(
        transactions_file,
        merge_window_seconds=merge_window_seconds,
        consolidate=consolidate,
        verbose=verbose,
        groupings_file=groupings_file,
    )

    if output_format.lower() == "json":
        console.print_json(
            data={
                "chains": [serialize_chain(chain) for chain in result.chains],
                "rolls": [serialize_roll(roll) for roll in result.rolls],
                "anomalies": serialize_anomalies(result.anomalies),
            }
        )
        return

    if not result.chains:
        console.print("[yellow]No roll chains found.[/yellow]")
    else:
        for chain in result.chains:
            console.print(_build_chain_table(chain))
        _print_chain_footer(console, result.chains)

    print_anomalies(console, result.anomalies)
