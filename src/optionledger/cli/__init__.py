"""Command-line interface for optionledger."""

from .commands import main

__all__ = ["main"]
