"""Anomalies and structured build events.

The build never writes log output itself. Components report what happened through a
:class:`BuildRecorder`, which keeps the anomaly list that ends up on the build result and
forwards every event to an optional observer callable. :func:`logging_observer` adapts that
stream onto the standard :mod:`logging` module.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Any, Callable, Dict, List, Literal, Optional

AnomalyKind = Literal["unmatched_close", "quantity_mismatch", "ambiguous_direction"]


@dataclass(frozen=True)
class Anomaly:
    """A closing transaction that could not be fully reconciled against open lots."""

    kind: AnomalyKind
    transaction_id: str
    contract_key: str
    trans_code: str
    requested_quantity: int
    matched_quantity: int
    unmatched_amount: Decimal
    message: str

    @property
    def unmatched_quantity(self) -> int:
        return self.requested_quantity - self.matched_quantity


@dataclass(frozen=True)
class BuildEvent:
    """A named event with structured fields."""

    name: str
    fields: Dict[str, Any] = field(default_factory=dict)


BuildObserver = Callable[[BuildEvent], None]


class BuildRecorder:
    """Collects anomalies for a single build and relays events to an observer."""

    def __init__(self, observer: Optional[BuildObserver] = None) -> None:
        self._observer = observer
        self.anomalies: List[Anomaly] = []

    def emit(self, name: str, **fields: Any) -> None:
        if self._observer is not None:
            self._observer(BuildEvent(name=name, fields=fields))

    def record_anomaly(self, anomaly: Anomaly) -> None:
        self.anomalies.append(anomaly)
        self.emit("anomaly", anomaly=anomaly)


def logging_observer(logger: Optional[logging.Logger] = None) -> BuildObserver:
    """Return an observer that writes events to ``logger``; anomalies log at WARNING."""
    target = logger or logging.getLogger("optionledger.build")

    def _observe(event: BuildEvent) -> None:
        if event.name == "anomaly":
            anomaly: Anomaly = event.fields["anomaly"]
            target.warning(
                "%s for %s (%s): %s",
                anomaly.kind,
                anomaly.transaction_id,
                anomaly.contract_key,
                anomaly.message,
            )
            return
        details = " ".join(f"{key}={value}" for key, value in sorted(event.fields.items()))
        target.debug("%s %s", event.name, details)

    return _observe
