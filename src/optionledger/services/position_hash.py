"""Deterministic identifiers and content hashes for build output."""

from __future__ import annotations

import uuid
from datetime import date, datetime
from decimal import Decimal
from hashlib import sha256
from typing import TYPE_CHECKING, Iterable

if TYPE_CHECKING:
    from ..core.models import Transaction
    from .positions import Position

_NAMESPACE = uuid.uuid5(uuid.NAMESPACE_URL, "https://optionledger.invalid/build")


def stable_id(kind: str, parts: Iterable[str]) -> str:
    """Return a UUID string that depends only on ``kind`` and ``parts``."""
    return str(uuid.uuid5(_NAMESPACE, "|".join((kind, *parts))))


def _text(value: object) -> str:
    if value is None:
        return ""
    if isinstance(value, Decimal):
        return format(value.normalize(), "f")
    if isinstance(value, (date, datetime)):
        return value.isoformat()
    return str(value)


def compute_transaction_hash(txn: "Transaction") -> str:
    """
    Hash the content of one transaction record.

    Two records with the same date, instrument, code, description, quantities and option
    details share a hash regardless of their ids. Manual groupings are keyed on this value.
    """
    option = txn.option
    key = "|".join(
        _text(value)
        for value in (
            txn.activity_date,
            txn.instrument,
            txn.trans_code,
            txn.description,
            txn.quantity,
            txn.price,
            txn.amount,
            option.symbol,
            option.expiration,
            option.strike,
            option.option_type,
        )
    )
    return sha256(key.encode("utf-8")).hexdigest()


def compute_position_hash(position: "Position") -> str:
    """
    Hash a position's identifying shape for deduplication by a storage layer.

    The hash covers symbol, strategy, entry date and the sorted leg keys, so rebuilding from
    the same transactions always yields the same value.
    """
    leg_keys = sorted(
        "|".join(
            (
                leg.expiration.isoformat(),
                format(leg.strike.normalize(), "f"),
                leg.option_type,
                leg.trans_code,
            )
        )
        for leg in position.legs
    )
    key = "|".join(
        [
            position.symbol,
            position.strategy_type,
            position.entry_date.isoformat(),
            ";".join(leg_keys),
        ]
    )
    return sha256(key.encode("utf-8")).hexdigest()
