"""
OptionLedger - Options position ledger and roll chain tool.

Builds positions, rolls and roll chains from normalized option transactions.
"""

__version__ = "0.1.0"

from .config import EngineConfig
from .core.models import Transaction
from .services.classifier import classify_strategy
from .services.engine import BuildResult, build_positions
from .services.summary import SummaryStats, calculate_summary

__all__ = [
    "BuildResult",
    "EngineConfig",
    "SummaryStats",
    "Transaction",
    "build_positions",
    "calculate_summary",
    "classify_strategy",
    "__version__",
]
