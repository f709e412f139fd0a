"""Services for building positions, rolls and roll chains."""

from .chain_builder import RollChain, RollChainSegment, attach_rolls, build_roll_chains
from .classifier import STRATEGY_TYPES, classify_strategy, is_multi_leg_strategy
from .consolidation import consolidate_transactions
from .engine import BuildResult, build_positions
from .events import Anomaly, BuildEvent, BuildRecorder, logging_observer
from .ledger_builder import build_leg_ledgers
from .leg_matching import match_closing_transactions
from .merger import merge_multi_leg_positions
from .position_hash import compute_position_hash
from .positions import Position, assemble_positions
from .roll_detection import Roll, detect_rolls
from .summary import SummaryStats, calculate_summary

__all__ = [
    "Anomaly",
    "BuildEvent",
    "BuildRecorder",
    "BuildResult",
    "Position",
    "Roll",
    "RollChain",
    "RollChainSegment",
    "STRATEGY_TYPES",
    "SummaryStats",
    "assemble_positions",
    "attach_rolls",
    "build_leg_ledgers",
    "build_positions",
    "build_roll_chains",
    "calculate_summary",
    "classify_strategy",
    "compute_position_hash",
    "consolidate_transactions",
    "detect_rolls",
    "is_multi_leg_strategy",
    "logging_observer",
    "match_closing_transactions",
    "merge_multi_leg_positions",
]
