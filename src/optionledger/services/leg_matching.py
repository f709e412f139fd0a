"""FIFO closing-transaction matching service.

Applies STC/BTC/OEXP/OASGN transactions to the ledgers produced by
:func:`~optionledger.services.ledger_builder.build_leg_ledgers`. Each consumed slice of an
opening lot produces a close lot carrying a pro-rated share of the closing amount. Closing
quantity that cannot be reconciled is reported as an :class:`Anomaly`; nothing here raises for
reconciliation problems.
"""

from __future__ import annotations

from decimal import Decimal
from typing import Iterable, List, Optional

from ..core.legs import ContractIdentity, LegLedger, LotEntry
from ..core.models import Transaction
from .events import Anomaly, AnomalyKind, BuildRecorder
from .ledger_builder import LedgerMap

_TARGET_DIRECTION = {"BTC": "short", "STC": "long"}
_PROBED_CODES = {"OEXP", "OASGN"}


def _quantize(value: Decimal) -> Decimal:
    """Normalise monetary values to cents while preserving sign."""
    return value.quantize(Decimal("0.01"))


def _anomaly(
    kind: AnomalyKind,
    txn: Transaction,
    contract_key: str,
    *,
    matched: int,
    unmatched_amount: Decimal,
    message: str,
) -> Anomaly:
    return Anomaly(
        kind=kind,
        transaction_id=txn.id,
        contract_key=contract_key,
        trans_code=txn.trans_code,
        requested_quantity=txn.quantity,
        matched_quantity=matched,
        unmatched_amount=unmatched_amount,
        message=message,
    )


def resolve_target_ledger(
    ledgers: LedgerMap,
    txn: Transaction,
    recorder: BuildRecorder,
) -> Optional[LegLedger]:
    """
    Return the ledger a closing transaction applies to, or ``None`` after recording why not.

    BTC always closes a short ledger and STC a long one. Expirations and assignments carry no
    direction, so both identities are probed and exactly one must still hold open quantity.
    """
    probe = ContractIdentity.from_transaction(txn, direction="long")
    as_of = txn.activity_date

    if txn.trans_code in _PROBED_CODES:
        candidates = [
            ledger
            for ledger in (
                ledgers.get(probe.with_direction("long")),
                ledgers.get(probe.with_direction("short")),
            )
            if ledger is not None and ledger.available_quantity(as_of=as_of) > 0
        ]
        if len(candidates) == 1:
            return candidates[0]
        if candidates:
            recorder.record_anomaly(
                _anomaly(
                    "ambiguous_direction",
                    txn,
                    probe.contract_key,
                    matched=0,
                    unmatched_amount=txn.amount,
                    message=(
                        f"{txn.trans_code} could close both long and short lots; "
                        f"{txn.quantity} contract(s) skipped"
                    ),
                )
            )
            return None
        recorder.record_anomaly(
            _anomaly(
                "unmatched_close",
                txn,
                probe.contract_key,
                matched=0,
                unmatched_amount=txn.amount,
                message=f"No open lots for {txn.trans_code}; {txn.quantity} contract(s) unmatched",
            )
        )
        return None

    identity = probe.with_direction(_TARGET_DIRECTION[txn.trans_code])  # type: ignore[arg-type]
    ledger = ledgers.get(identity)
    if ledger is None or ledger.available_quantity(as_of=as_of) == 0:
        recorder.record_anomaly(
            _anomaly(
                "unmatched_close",
                txn,
                identity.key,
                matched=0,
                unmatched_amount=txn.amount,
                message=f"No open {identity.direction} lots; {txn.quantity} contract(s) unmatched",
            )
        )
        return None
    return ledger


def apply_closing_transaction(
    ledger: LegLedger,
    txn: Transaction,
    recorder: BuildRecorder,
) -> List[LotEntry]:
    """Consume ``txn`` against ``ledger`` FIFO and return the close lots created."""
    slices, remainder = ledger.consume(txn.quantity, txn.trans_code, as_of=txn.activity_date)

    close_lots: List[LotEntry] = []
    allocated = Decimal("0")
    for index, piece in enumerate(slices, start=1):
        is_last = index == len(slices)
        if is_last and remainder == 0:
            share = txn.amount - allocated
        else:
            share = _quantize(txn.amount * piece.quantity / txn.quantity)
        allocated += share

        lot = LotEntry(
            lot_id=f"{txn.id}#{index}",
            transaction_id=txn.id,
            trans_code=txn.trans_code,
            quantity=piece.quantity,
            remaining_quantity=0,
            price=txn.price,
            amount=share,
            date=txn.activity_date,
            consumed_lot_id=piece.lot_id,
        )
        ledger.add_close_lot(lot)
        close_lots.append(lot)
        recorder.emit(
            "lot_consumed",
            transaction_id=txn.id,
            lot_id=piece.lot_id,
            quantity=piece.quantity,
            amount=share,
            ledger=ledger.identity.key,
        )

    if remainder:
        recorder.record_anomaly(
            _anomaly(
                "quantity_mismatch",
                txn,
                ledger.identity.key,
                matched=txn.quantity - remainder,
                unmatched_amount=txn.amount - allocated,
                message=(
                    f"{remainder} of {txn.quantity} contract(s) unmatched; "
                    f"only {txn.quantity - remainder} open"
                ),
            )
        )
    return close_lots


def match_closing_transactions(
    ledgers: LedgerMap,
    closers: Iterable[Transaction],
    recorder: Optional[BuildRecorder] = None,
) -> List[Anomaly]:
    """
    Apply closing transactions to ``ledgers`` in the given (date) order.

    Mutates the ledgers in place and returns the anomalies recorded while matching.
    """
    recorder = recorder or BuildRecorder()
    start = len(recorder.anomalies)
    for txn in closers:
        ledger = resolve_target_ledger(ledgers, txn, recorder)
        if ledger is not None:
            apply_closing_transaction(ledger, txn, recorder)
    return recorder.anomalies[start:]
