from __future__ import annotations

from datetime import datetime

import pytest

from optionledger.services.engine import build_positions
from optionledger.services.events import BuildRecorder
from optionledger.services.ledger_builder import build_leg_ledgers
from optionledger.services.leg_matching import match_closing_transactions
from optionledger.services.manual_groupings import ManualGrouping, apply_manual_groupings
from optionledger.services.merger import merge_multi_leg_positions
from optionledger.services.position_hash import compute_transaction_hash
from optionledger.services.positions import assemble_positions


def _spread_legs(make_txn):
    # Outside the default merge window.
    return [
        make_txn("short", "STO", when=datetime(2024, 5, 1, 10, 0), strike="95", amount="300"),
        make_txn("long", "BTO", when=datetime(2024, 5, 1, 11, 0), strike="90", amount="-120"),
    ]


def _positions(transactions):
    ledgers = build_leg_ledgers(transactions)
    match_closing_transactions(ledgers, [])
    return assemble_positions(ledgers.values())


def _grouping(transactions, group_id="g-1", strategy="Put Credit Spread"):
    return ManualGrouping(
        group_id=group_id,
        transaction_hashes=frozenset(compute_transaction_hash(txn) for txn in transactions),
        strategy_type=strategy,
    )


def test_grouping_fuses_positions_under_strategy(make_txn):
    transactions = _spread_legs(make_txn)
    positions = _positions(transactions)
    events = []

    grouped = apply_manual_groupings(
        positions, [_grouping(transactions)], transactions, BuildRecorder(events.append)
    )

    assert len(grouped) == 1
    position = grouped[0]
    assert position.strategy_type == "Put Credit Spread"
    assert position.manual_group_id == "g-1"
    assert set(position.transaction_ids) == {"short", "long"}
    assert position.net_pl == 180
    assert [event.name for event in events] == ["manual_grouping_applied"]
    assert events[0].fields["members"] == 2


def test_unmatched_grouping_is_skipped(make_txn):
    transactions = _spread_legs(make_txn)
    stranger = make_txn("other", "STO", when=datetime(2024, 7, 1), symbol="AAPL")
    positions = _positions(transactions)
    events = []

    grouped = apply_manual_groupings(
        positions, [_grouping([stranger])], transactions, BuildRecorder(events.append)
    )

    assert grouped == list(positions)
    assert [event.name for event in events] == ["manual_grouping_skipped"]


def test_first_grouping_claims_shared_positions(make_txn):
    transactions = _spread_legs(make_txn)
    positions = _positions(transactions)

    grouped = apply_manual_groupings(
        positions,
        [
            _grouping(transactions, group_id="first"),
            _grouping(transactions[:1], group_id="second", strategy="Short Put"),
        ],
        transactions,
    )

    assert [position.manual_group_id for position in grouped] == ["first"]


def test_merger_leaves_grouped_positions_alone(make_txn):
    transactions = [
        make_txn("short", "STO", when=datetime(2024, 5, 1, 10, 0), strike="95", amount="300"),
        make_txn("other", "STO", when=datetime(2024, 5, 1, 10, 0), option_type="Call"),
    ]
    positions = _positions(transactions)
    grouped = apply_manual_groupings(
        positions, [_grouping(transactions[:1], strategy="Short Put")], transactions
    )

    merged = merge_multi_leg_positions(grouped)

    assert len(merged) == 2
    assert {position.manual_group_id for position in merged} == {"g-1", None}


def test_unknown_strategy_is_rejected():
    with pytest.raises(ValueError, match="Unknown strategy type"):
        ManualGrouping(group_id="g", transaction_hashes=frozenset(), strategy_type="Butterfly")


def test_build_positions_applies_groupings_before_merge(make_txn):
    transactions = _spread_legs(make_txn) + [
        make_txn("close-short", "BTC", when=datetime(2024, 5, 9), strike="95", amount="-50"),
        make_txn("close-long", "STC", when=datetime(2024, 5, 9), strike="90", amount="20"),
    ]

    ungrouped = build_positions(transactions)
    result = build_positions(transactions, manual_groupings=[_grouping(transactions[:2])])

    assert len(ungrouped.positions) == 2
    assert len(result.positions) == 1
    position = result.positions[0]
    assert position.manual_group_id == "g-1"
    assert position.status == "closed"
    assert position.realized_pl == 150
    assert result.anomalies == ()
