"""Shared options and build plumbing for the optionledger commands."""

from __future__ import annotations

import logging
from dataclasses import replace
from datetime import timedelta
from pathlib import Path
from typing import Callable, Optional

import click

from ..config import ConfigError, EngineConfig
from ..core.models import MalformedTransactionError
from ..services.engine import BuildResult, build_positions
from ..services.events import logging_observer
from ..services.transaction_loader import (
    TransactionLoadError,
    load_manual_groupings,
    load_transactions,
)

FormatChoice = click.Choice(["table", "json"], case_sensitive=False)

logger = logging.getLogger("optionledger")


def build_options(func: Callable) -> Callable:
    """Attach the input file and engine options shared by every command."""
    decorators = [
        click.argument(
            "transactions_file",
            type=click.Path(exists=True, dir_okay=False, path_type=Path),
        ),
        click.option(
            "--format",
            "output_format",
            type=FormatChoice,
            default="table",
            show_default=True,
            help="Output format.",
        ),
        click.option(
            "--merge-window-seconds",
            type=click.FloatRange(min=0, min_open=True),
            default=None,
            help="Entry-time bucket width for multi-leg merging (default: 300).",
        ),
        click.option(
            "--consolidate/--no-consolidate",
            default=None,
            help="Fold same-day split fills before matching.",
        ),
        click.option(
            "--groupings",
            "groupings_file",
            type=click.Path(exists=True, dir_okay=False, path_type=Path),
            default=None,
            help="JSON file of manual position groupings.",
        ),
        click.option("--verbose", "-v", is_flag=True, help="Log build events."),
    ]
    for decorator in reversed(decorators):
        func = decorator(func)
    return func


def configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )


def resolve_config(
    merge_window_seconds: Optional[float],
    consolidate: Optional[bool],
) -> EngineConfig:
    """Environment defaults, overridden by any flags given on the command line."""
    try:
        config = EngineConfig.from_env()
        overrides = {}
        if merge_window_seconds is not None:
            overrides["merge_window"] = timedelta(seconds=merge_window_seconds)
        if consolidate is not None:
            overrides["consolidate_fills"] = consolidate
        if overrides:
            config = replace(config, **overrides)
    except ConfigError as exc:
        raise click.ClickException(str(exc)) from exc
    return config


def run_build(
    transactions_file: Path,
    *,
    merge_window_seconds: Optional[float],
    consolidate: Optional[bool],
    verbose: bool,
    groupings_file: Optional[Path] = None,
) -> BuildResult:
    """Load ``transactions_file`` and build positions, surfacing input errors to click."""
    configure_logging(verbose)
    config = resolve_config(merge_window_seconds, consolidate)
    try:
        transactions = load_transactions(transactions_file)
        groupings = load_manual_groupings(groupings_file) if groupings_file else []
        return build_positions(
            transactions,
            config=config,
            observer=logging_observer(logger),
            manual_groupings=groupings,
        )
    except (TransactionLoadError, MalformedTransactionError) as exc:
        raise click.ClickException(str(exc)) from exc
