"""Load normalized transaction records from JSON."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any, List, Union

from pydantic import ValidationError

from ..core.models import Transaction
from .manual_groupings import ManualGrouping


class TransactionLoadError(ValueError):
    """Raised when a transaction file cannot be read or validated."""


def parse_transactions(records: Any) -> List[Transaction]:
    """Validate a list of transaction dictionaries, reporting the 1-based record number."""
    if isinstance(records, dict):
        records = records.get("transactions")
    if not isinstance(records, list):
        raise TransactionLoadError(
            "Expected a list of transactions or an object with a 'transactions' list."
        )

    transactions: List[Transaction] = []
    for index, record in enumerate(records, start=1):
        try:
            transactions.append(Transaction.model_validate(record))
        except ValidationError as exc:
            raise TransactionLoadError(f"Record {index}: {exc}") from exc
    return transactions


def _read_json(path: Union[str, Path]) -> Any:
    try:
        with open(path, "r", encoding="utf-8") as handle:
            return json.load(handle)
    except UnicodeDecodeError as exc:
        raise TransactionLoadError(f"{path} is not UTF-8 encoded: {exc}") from exc
    except json.JSONDecodeError as exc:
        raise TransactionLoadError(f"{path} is not valid JSON: {exc}") from exc


def load_transactions(path: Union[str, Path]) -> List[Transaction]:
    """Read and validate a JSON file of normalized transactions."""
    return parse_transactions(_read_json(path))


def parse_manual_groupings(records: Any) -> List[ManualGrouping]:
    """Build groupings from ``{"group_id", "transaction_hashes", "strategy_type"}`` objects."""
    if isinstance(records, dict):
        records = records.get("groupings")
    if not isinstance(records, list):
        raise TransactionLoadError(
            "Expected a list of groupings or an object with a 'groupings' list."
        )

    groupings: List[ManualGrouping] = []
    for index, record in enumerate(records, start=1):
        try:
            groupings.append(
                ManualGrouping(
                    group_id=str(record["group_id"]),
                    transaction_hashes=frozenset(record["transaction_hashes"]),
                    strategy_type=record["strategy_type"],
                )
            )
        except (KeyError, TypeError, ValueError) as exc:
            raise TransactionLoadError(f"Grouping {index}: {exc}") from exc
    return groupings


def load_manual_groupings(path: Union[str, Path]) -> List[ManualGrouping]:
    """Read a JSON file of manual groupings."""
    return parse_manual_groupings(_read_json(path))
