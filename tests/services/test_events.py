from __future__ import annotations

import logging
from decimal import Decimal

from optionledger.services.events import Anomaly, BuildRecorder, logging_observer


def _anomaly() -> Anomaly:
    return Anomaly(
        kind="quantity_mismatch",
        transaction_id="close",
        contract_key="TSLA-2024-06-21-P-10000-short",
        trans_code="BTC",
        requested_quantity=10,
        matched_quantity=6,
        unmatched_amount=Decimal("-40"),
        message="4 of 10 contract(s) unmatched; only 6 open",
    )


def test_recorder_without_observer_keeps_anomalies():
    recorder = BuildRecorder()
    recorder.emit("ignored", value=1)
    recorder.record_anomaly(_anomaly())

    assert len(recorder.anomalies) == 1
    assert recorder.anomalies[0].unmatched_quantity == 4


def test_recorder_forwards_events():
    events = []
    recorder = BuildRecorder(events.append)

    recorder.emit("positions_merged", symbol="TSLA", members=2)
    recorder.record_anomaly(_anomaly())

    assert [event.name for event in events] == ["positions_merged", "anomaly"]
    assert events[0].fields == {"symbol": "TSLA", "members": 2}
    assert events[1].fields["anomaly"].kind == "quantity_mismatch"


def test_logging_observer_levels(caplog):
    logger = logging.getLogger("optionledger.test")
    recorder = BuildRecorder(logging_observer(logger))

    with caplog.at_level(logging.DEBUG, logger="optionledger.test"):
        recorder.emit("lot_consumed", lot_id="open", quantity=2)
        recorder.record_anomaly(_anomaly())

    levels = [(record.levelno, record.getMessage()) for record in caplog.records]
    assert levels[0] == (logging.DEBUG, "lot_consumed lot_id=open quantity=2")
    assert levels[1][0] == logging.WARNING
    assert "quantity_mismatch" in levels[1][1]
    assert "4 of 10" in levels[1][1]
