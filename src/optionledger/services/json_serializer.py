"""JSON serialization utilities for build output."""

from __future__ import annotations

from datetime import date, datetime
from decimal import Decimal
from typing import Any, Dict, Iterable, Optional

from ..core.legs import OptionLeg
from .chain_builder import RollChain, RollChainSegment
from .events import Anomaly
from .position_hash import compute_position_hash
from .positions import Position
from .roll_detection import Roll
from .summary import StrategyPerformance, SummaryStats


def serialize_decimal(value: Any) -> Any:
    """Serialize Decimal values to JSON-compatible format."""
    if isinstance(value, Decimal):
        normalized = value.normalize()
        return format(normalized, "f")
    return value


def serialize_date(value: Optional[date | datetime]) -> Optional[str]:
    if value is None:
        return None
    return value.isoformat()


def serialize_leg(leg: OptionLeg) -> Dict[str, Any]:
    return {
        "id": leg.id,
        "transaction_id": leg.transaction_id,
        "symbol": leg.symbol,
        "expiration": serialize_date(leg.expiration),
        "strike": serialize_decimal(leg.strike),
        "option_type": leg.option_type,
        "trans_code": leg.trans_code,
        "quantity": leg.quantity,
        "price": serialize_decimal(leg.price),
        "amount": serialize_decimal(leg.amount),
        "activity_date": serialize_date(leg.activity_date),
        "status": leg.status,
    }


def serialize_roll(roll: Roll) -> Dict[str, Any]:
    return {
        "id": roll.id,
        "symbol": roll.symbol,
        "option_type": roll.option_type,
        "quantity": roll.quantity,
        "from_leg_id": roll.from_leg_id,
        "to_leg_id": roll.to_leg_id,
        "roll_date": serialize_date(roll.roll_date),
        "from_strike": serialize_decimal(roll.from_strike),
        "to_strike": serialize_decimal(roll.to_strike),
        "from_expiration": serialize_date(roll.from_expiration),
        "to_expiration": serialize_date(roll.to_expiration),
        "net_credit": serialize_decimal(roll.net_credit),
    }


def serialize_position(position: Position) -> Dict[str, Any]:
    """Serialize a position, including its legs and the rolls touching it."""
    return {
        "id": position.id,
        "hash": compute_position_hash(position),
        "symbol": position.symbol,
        "strategy_type": position.strategy_type,
        "status": position.status,
        "entry_date": serialize_date(position.entry_date),
        "exit_date": serialize_date(position.exit_date),
        "total_credit": serialize_decimal(position.total_credit),
        "total_debit": serialize_decimal(position.total_debit),
        "net_pl": serialize_decimal(position.net_pl),
        "realized_pl": serialize_decimal(position.realized_pl),
        "max_profitable_debit": serialize_decimal(position.max_profitable_debit),
        "transaction_ids": list(position.transaction_ids),
        "roll_chain_id": position.roll_chain_id,
        "manual_group_id": position.manual_group_id,
        "legs": [serialize_leg(leg) for leg in position.legs],
        "rolls": [serialize_roll(roll) for roll in position.rolls],
    }


def _serialize_segment(segment: RollChainSegment) -> Dict[str, Any]:
    return {
        "sequence": segment.sequence,
        "from_position_id": segment.from_position_id,
        "to_position_id": segment.to_position_id,
        "roll_date": serialize_date(segment.roll_date),
        "from_strike": serialize_decimal(segment.from_strike),
        "to_strike": serialize_decimal(segment.to_strike),
        "from_expiration": serialize_date(segment.from_expiration),
        "to_expiration": serialize_date(segment.to_expiration),
        "credit": serialize_decimal(segment.credit),
        "debit": serialize_decimal(segment.debit),
        "net_credit": serialize_decimal(segment.net_credit),
        "roll_ids": [roll.id for roll in segment.rolls],
    }


def serialize_chain(chain: RollChain) -> Dict[str, Any]:
    return {
        "id": chain.id,
        "symbol": chain.symbol,
        "status": chain.status,
        "roll_count": chain.roll_count,
        "start_date": serialize_date(chain.start_date),
        "end_date": serialize_date(chain.end_date),
        "total_credits": serialize_decimal(chain.total_credits),
        "total_debits": serialize_decimal(chain.total_debits),
        "net_credit": serialize_decimal(chain.net_credit),
        "net_pl": serialize_decimal(chain.net_pl),
        "position_ids": list(chain.position_ids),
        "segments": [_serialize_segment(segment) for segment in chain.segments],
    }


def serialize_anomaly(anomaly: Anomaly) -> Dict[str, Any]:
    return {
        "kind": anomaly.kind,
        "transaction_id": anomaly.transaction_id,
        "contract_key": anomaly.contract_key,
        "trans_code": anomaly.trans_code,
        "requested_quantity": anomaly.requested_quantity,
        "matched_quantity": anomaly.matched_quantity,
        "unmatched_quantity": anomaly.unmatched_quantity,
        "unmatched_amount": serialize_decimal(anomaly.unmatched_amount),
        "message": anomaly.message,
    }


def serialize_summary(summary: SummaryStats) -> Dict[str, Any]:
    return {
        "total_pl": serialize_decimal(summary.total_pl),
        "open_positions_count": summary.open_positions_count,
        "closed_positions_count": summary.closed_positions_count,
        "total_premium_collected": serialize_decimal(summary.total_premium_collected),
        "win_rate": serialize_decimal(summary.win_rate),
        "total_wins": summary.total_wins,
        "total_losses": summary.total_losses,
    }


def serialize_strategy_performance(row: StrategyPerformance) -> Dict[str, Any]:
    return {
        "strategy_type": row.strategy_type,
        "count": row.count,
        "total_pl": serialize_decimal(row.total_pl),
        "average_pl": serialize_decimal(row.average_pl),
    }


def serialize_anomalies(anomalies: Iterable[Anomaly]) -> list:
    return [serialize_anomaly(anomaly) for anomaly in anomalies]
