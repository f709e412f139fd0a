"""
Command-line interface for optionledger.

Provides the CLI command group and registers individual subcommands.
"""

from __future__ import annotations

import click

from .. import __version__
from .positions import positions_command
from .rolls import rolls_command
from .summary import summary_command


@click.group()
@click.version_option(version=__version__)
def main():
    """OptionLedger - Options position ledger and roll chain tool."""
    pass


# Register CLI subcommands
main.add_command(positions_command)
main.add_command(rolls_command)
main.add_command(summary_command)


if __name__ == "__main__":
    main()
